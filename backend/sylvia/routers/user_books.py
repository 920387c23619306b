from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
import logging

from sylvia.core.auth import get_current_user
from sylvia.core.dependencies import DOMAIN_ERRORS, to_http_exception
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.user_book import AddUserBookRequest, AddUserBookResponse, LibraryItem, UserBookUpdate
from sylvia.services import library_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user-books", tags=["user-books"])


@router.post("", response_model=AddUserBookResponse)
def add_user_book(
    payload: AddUserBookRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a catalog book to the library and/or the wishlist."""
    try:
        return library_service.add_user_book(
            db,
            user.id,
            payload.book,
            in_library=payload.in_library,
            in_wishlist=payload.in_wishlist,
        )
    except DOMAIN_ERRORS as e:
        db.rollback()
        raise to_http_exception(e)


@router.patch("/{book_id}", response_model=LibraryItem)
def update_user_book(
    book_id: str,
    patch: UserBookUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update only the fields sent in the body."""
    try:
        row = library_service.update_user_book(db, user.id, book_id, patch)
    except DOMAIN_ERRORS as e:
        db.rollback()
        raise to_http_exception(e)
    return LibraryItem.model_validate(row)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_book(
    book_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        library_service.remove_user_book(db, user.id, book_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
