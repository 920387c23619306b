from pydantic import BaseModel, model_validator
from typing import Optional, List


class ImportRow(BaseModel):
    """One Goodreads export row after header aliasing."""
    title: str = ""
    author: str = ""
    isbn: str = ""
    isbn13: str = ""
    shelf: str = "to-read"
    rating: Optional[float] = None
    date_read: Optional[str] = None
    date_added: Optional[str] = None
    pages: Optional[int] = None


class GoodreadsImportRequest(BaseModel):
    rows: Optional[List[ImportRow]] = None
    csv_text: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self):
        if self.rows is None and self.csv_text is None:
            raise ValueError("Provide either rows or csv_text")
        return self


class GoodreadsImportResponse(BaseModel):
    imported: int
    skipped: int
    truncated: bool = False
