from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from sylvia.models import ReadingStatus
from sylvia.schemas.book import BookRecord


class AddUserBookRequest(BaseModel):
    book: BookRecord
    in_library: bool = False
    in_wishlist: bool = False


class AddUserBookResponse(BaseModel):
    ok: bool = True
    already_in_library: bool
    already_in_wishlist: bool


class UserBookUpdate(BaseModel):
    """
    Partial update of a tracked book.

    Only fields present in the request body are applied (see
    ``model_dump(exclude_unset=True)``); an explicit null clears the value.
    Unknown fields are rejected.
    """
    model_config = ConfigDict(extra="forbid")

    in_library: Optional[bool] = None
    in_wishlist: Optional[bool] = None
    reading_status: Optional[ReadingStatus] = None
    reading_started_at: Optional[datetime] = None
    reading_finished_at: Optional[datetime] = None
    pages_total: Optional[int] = Field(default=None, ge=0)
    pages_read: Optional[int] = Field(default=None, ge=0)
    is_public_review: Optional[bool] = None
    public_review: Optional[str] = None
    personal_note: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class LibraryItem(BaseModel):
    """A tracked book joined with its catalog record."""
    book_id: str
    in_library: bool = False
    in_wishlist: bool = False
    reading_status: Optional[ReadingStatus] = None
    reading_started_at: Optional[datetime] = None
    reading_finished_at: Optional[datetime] = None
    pages_total: Optional[int] = None
    pages_read: Optional[int] = None
    rating: Optional[int] = None
    is_public_review: bool = False
    public_review: Optional[str] = None
    personal_note: Optional[str] = None
    added_at: Optional[datetime] = None
    book: Optional[BookRecord] = None

    class Config:
        from_attributes = True


class LibraryResponse(BaseModel):
    items: list[LibraryItem]
