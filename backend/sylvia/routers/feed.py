from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sylvia.database import get_db
from sylvia.schemas.feed import FeedResponse
from sylvia.services.feed_service import get_feed

router = APIRouter(tags=["feed"])


@router.get("/feed", response_model=FeedResponse)
def feed(
    min_rating: int = Query(0, ge=0, le=5),
    sort: str = Query("recent", pattern="^(recent|rating)$"),
    db: Session = Depends(get_db),
):
    """Latest public reviews and the most active reviewers."""
    return get_feed(db, min_rating=min_rating, sort=sort)
