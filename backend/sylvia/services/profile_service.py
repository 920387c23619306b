"""
Profile rows and public profile pages.
"""
from typing import Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from sylvia.models import Profile, UserBook, UserList
from sylvia.schemas.profile import (
    ProfileUpdate,
    PublicListSummary,
    PublicProfilePage,
    PublicProfileSummary,
    PublicReview,
    PublicReviewsResponse,
)
from sylvia.services.errors import ConflictError, InvalidInputError, NotFoundError
from sylvia.services.library_service import list_library, list_wishlist, to_library_items
from sylvia.utils.text import normalize_avatar_url

logger = logging.getLogger(__name__)


def get_or_create_profile(db: Session, auth_user_id: str, email: str = "") -> Profile:
    """
    Return the profile for a Supabase user id, creating it on first sight.

    Concurrent first requests can race on the insert; the loser rolls back
    and reads the winner's row.
    """
    profile = db.get(Profile, auth_user_id)
    if profile is not None:
        if email and profile.email != email:
            profile.email = email
            db.commit()
        return profile

    profile = Profile(id=auth_user_id, email=email or None)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        profile = db.get(Profile, auth_user_id)
        if profile is None:
            raise
        logger.info("Profile %s created concurrently, reusing it", auth_user_id)
        return profile

    db.refresh(profile)
    logger.info("Created profile %s", auth_user_id)
    return profile


def find_profile_by_username(db: Session, username: str) -> Optional[Profile]:
    normalized = username.strip().lower()
    if not normalized:
        return None
    return db.query(Profile).filter(func.lower(Profile.username) == normalized).first()


def update_profile(db: Session, profile: Profile, patch: ProfileUpdate) -> Profile:
    changes = patch.model_dump(exclude_unset=True)

    if "username" in changes:
        username = (changes["username"] or "").strip() or None
        if username is not None:
            other = find_profile_by_username(db, username)
            if other is not None and other.id != profile.id:
                raise ConflictError("Username already taken")
        changes["username"] = username

    if "avatar_url" in changes:
        changes["avatar_url"] = normalize_avatar_url(changes["avatar_url"])

    for key in ("is_public_library", "is_public_wishlist"):
        if key in changes and changes[key] is None:
            raise InvalidInputError(f"{key} cannot be null")

    for key, value in changes.items():
        setattr(profile, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already taken")
    db.refresh(profile)
    return profile


def _require_profile(db: Session, username: str) -> Profile:
    profile = find_profile_by_username(db, username)
    if profile is None:
        raise NotFoundError(f"No profile named {username}")
    return profile


def get_public_profile_page(db: Session, username: str) -> PublicProfilePage:
    profile = _require_profile(db, username)

    library = to_library_items(list_library(db, profile.id)) if profile.is_public_library else None
    wishlist = to_library_items(list_wishlist(db, profile.id)) if profile.is_public_wishlist else None
    if library is not None:
        # Private notes never leave the owner's views
        for item in library:
            item.personal_note = None
            if not item.is_public_review:
                item.public_review = None
    if wishlist is not None:
        for item in wishlist:
            item.personal_note = None
            item.public_review = None

    review_count = db.query(func.count()).select_from(UserBook).filter(
        UserBook.user_id == profile.id,
        UserBook.is_public_review.is_(True),
    ).scalar() or 0

    lists = db.query(UserList).filter(
        UserList.user_id == profile.id,
        UserList.is_public.is_(True),
    ).order_by(UserList.created_at.desc()).all()

    return PublicProfilePage(
        profile=PublicProfileSummary.model_validate(profile),
        is_public_library=profile.is_public_library,
        is_public_wishlist=profile.is_public_wishlist,
        library=library,
        wishlist=wishlist,
        public_review_count=review_count,
        lists=[PublicListSummary.model_validate(lst) for lst in lists],
    )


def get_public_reviews(db: Session, username: str) -> PublicReviewsResponse:
    profile = _require_profile(db, username)
    if not profile.is_public_library:
        raise NotFoundError(f"Reviews of {username} are private")

    rows = (
        db.query(UserBook)
        .options(joinedload(UserBook.book))
        .filter(UserBook.user_id == profile.id, UserBook.is_public_review.is_(True))
        .order_by(UserBook.added_at.desc())
        .all()
    )
    return PublicReviewsResponse(
        profile=PublicProfileSummary.model_validate(profile),
        items=[PublicReview.model_validate(row) for row in rows],
    )
