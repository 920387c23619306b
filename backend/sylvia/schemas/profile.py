from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from sylvia.schemas.book import BookRecord
from sylvia.schemas.user_book import LibraryItem


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    is_public_library: bool = False
    is_public_wishlist: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(default=None, max_length=40, pattern=r"^[A-Za-z0-9_.-]*$")
    avatar_url: Optional[str] = None
    is_public_library: Optional[bool] = None
    is_public_wishlist: Optional[bool] = None


class PublicProfileSummary(BaseModel):
    id: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class PublicListSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class PublicProfilePage(BaseModel):
    profile: PublicProfileSummary
    is_public_library: bool
    is_public_wishlist: bool
    library: Optional[List[LibraryItem]] = None
    wishlist: Optional[List[LibraryItem]] = None
    public_review_count: int = 0
    lists: List[PublicListSummary] = []


class PublicReview(BaseModel):
    book_id: str
    rating: Optional[int] = None
    public_review: Optional[str] = None
    book: Optional[BookRecord] = None

    class Config:
        from_attributes = True


class PublicReviewsResponse(BaseModel):
    profile: PublicProfileSummary
    items: List[PublicReview]
