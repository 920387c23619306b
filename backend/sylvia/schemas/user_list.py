from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from sylvia.schemas.book import BookRecord


class UserListCreate(BaseModel):
    name: str = Field(max_length=120)
    description: Optional[str] = None
    is_public: bool = False


class UserListUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = None
    is_public: Optional[bool] = None


class UserListResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_public: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AddListBookRequest(BaseModel):
    book_id: str


class UserListItem(BaseModel):
    list_id: str
    book_id: str
    added_at: Optional[datetime] = None
    book: Optional[BookRecord] = None

    class Config:
        from_attributes = True


class UserListDetail(UserListResponse):
    items: List[UserListItem] = []
