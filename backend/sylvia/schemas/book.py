from pydantic import BaseModel, Field, field_validator
from typing import Optional


class BookRecord(BaseModel):
    """Normalized catalog book, as stored in the books table."""
    id: str = Field(min_length=1)
    title: str = "Unknown title"
    authors: list[str] = Field(default_factory=list)
    cover_url: Optional[str] = None
    description: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    language: Optional[str] = None
    isbn10: Optional[str] = None
    isbn13: Optional[str] = None
    published_date: Optional[str] = None
    published_year: Optional[int] = None

    class Config:
        from_attributes = True

    @field_validator("id")
    @classmethod
    def _strip_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("book id must not be blank")
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value):
        if value is None or not str(value).strip():
            return "Unknown title"
        return str(value).strip()

    @field_validator("authors", "categories", mode="before")
    @classmethod
    def _coerce_list(cls, value):
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item]


class BookWithReason(BookRecord):
    reason: str


class BookSearchResponse(BaseModel):
    items: list[BookRecord]
    total_items: int


class BackfillResponse(BaseModel):
    updated: int
    skipped: int
