"""Community feed of public reviews."""
from collections import Counter
from typing import List
import logging

from sqlalchemy.orm import Session, joinedload

from sylvia.models import Profile, UserBook
from sylvia.schemas.book import BookRecord
from sylvia.schemas.feed import FeedItem, FeedResponse, TopReviewer
from sylvia.schemas.profile import PublicProfileSummary
from sylvia.utils.text import is_valid_cover_url

logger = logging.getLogger(__name__)

FEED_LIMIT = 30
TOP_REVIEWER_SAMPLE = 200
TOP_REVIEWER_COUNT = 5


def _public_reviews(db: Session):
    return db.query(UserBook).filter(UserBook.is_public_review.is_(True))


def get_feed(db: Session, min_rating: int = 0, sort: str = "recent") -> FeedResponse:
    query = _public_reviews(db).options(joinedload(UserBook.book))
    if min_rating > 0:
        query = query.filter(UserBook.rating >= min_rating)
    if sort == "rating":
        query = query.order_by(UserBook.rating.desc(), UserBook.added_at.desc())
    else:
        query = query.order_by(UserBook.added_at.desc())
    rows = query.limit(FEED_LIMIT).all()

    user_ids = {row.user_id for row in rows}
    profiles = {}
    if user_ids:
        profiles = {p.id: p for p in db.query(Profile).filter(Profile.id.in_(user_ids)).all()}

    items: List[FeedItem] = []
    for row in rows:
        book = row.book
        if book is None or not is_valid_cover_url(book.cover_url) or not book.description:
            continue
        profile = profiles.get(row.user_id)
        items.append(FeedItem(
            book_id=row.book_id,
            user_id=row.user_id,
            added_at=row.added_at,
            rating=row.rating,
            public_review=row.public_review,
            book=BookRecord.model_validate(book),
            profile=PublicProfileSummary.model_validate(profile) if profile else None,
        ))

    return FeedResponse(items=items, top_reviewers=get_top_reviewers(db))


def get_top_reviewers(db: Session) -> List[TopReviewer]:
    sample = (
        _public_reviews(db)
        .with_entities(UserBook.user_id)
        .order_by(UserBook.added_at.desc())
        .limit(TOP_REVIEWER_SAMPLE)
        .all()
    )
    counts = Counter(user_id for (user_id,) in sample)
    top = counts.most_common(TOP_REVIEWER_COUNT)
    if not top:
        return []

    profiles = {
        p.id: p for p in db.query(Profile).filter(Profile.id.in_([user_id for user_id, _ in top])).all()
    }
    reviewers = []
    for user_id, reviews in top:
        profile = profiles.get(user_id)
        reviewers.append(TopReviewer(
            user_id=user_id,
            username=profile.username if profile else None,
            avatar_url=profile.avatar_url if profile else None,
            reviews=reviews,
        ))
    return reviewers
