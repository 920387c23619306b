from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sylvia.core.auth import get_current_user
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.user_book import LibraryResponse
from sylvia.services.library_service import list_library, list_wishlist, to_library_items

router = APIRouter(tags=["library"])


@router.get("/library", response_model=LibraryResponse)
def get_library(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LibraryResponse(items=to_library_items(list_library(db, user.id)))


@router.get("/wishlist", response_model=LibraryResponse)
def get_wishlist(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LibraryResponse(items=to_library_items(list_wishlist(db, user.id)))
