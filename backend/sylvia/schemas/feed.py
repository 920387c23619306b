from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from sylvia.schemas.book import BookRecord
from sylvia.schemas.profile import PublicProfileSummary


class FeedItem(BaseModel):
    book_id: str
    user_id: str
    added_at: Optional[datetime] = None
    rating: Optional[int] = None
    public_review: Optional[str] = None
    book: BookRecord
    profile: Optional[PublicProfileSummary] = None


class TopReviewer(BaseModel):
    user_id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    reviews: int


class FeedResponse(BaseModel):
    items: List[FeedItem]
    top_reviewers: List[TopReviewer]
