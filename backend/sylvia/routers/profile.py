from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sylvia.core.auth import get_current_user
from sylvia.core.dependencies import DOMAIN_ERRORS, to_http_exception
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.profile import ProfileResponse, ProfileUpdate, PublicProfilePage, PublicReviewsResponse
from sylvia.schemas.user_list import UserListDetail
from sylvia.services import list_service, profile_service

router = APIRouter(tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
def me(user: Profile = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=ProfileResponse)
def update_me(
    patch: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return profile_service.update_profile(db, user, patch)
    except DOMAIN_ERRORS as e:
        db.rollback()
        raise to_http_exception(e)


@router.get("/u/{username}", response_model=PublicProfilePage)
def public_profile(username: str, db: Session = Depends(get_db)):
    try:
        return profile_service.get_public_profile_page(db, username)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.get("/u/{username}/reviews", response_model=PublicReviewsResponse)
def public_reviews(username: str, db: Session = Depends(get_db)):
    try:
        return profile_service.get_public_reviews(db, username)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.get("/u/{username}/lists/{list_id}", response_model=UserListDetail)
def public_list(username: str, list_id: str, db: Session = Depends(get_db)):
    try:
        return list_service.get_public_list(db, username, list_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
