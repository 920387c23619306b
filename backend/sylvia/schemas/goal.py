from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class GoalUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_books: Optional[int] = Field(default=None, ge=0)
    target_pages: Optional[int] = Field(default=None, ge=0)


class GoalResponse(BaseModel):
    year: int
    month: int
    target_books: Optional[int] = None
    target_pages: Optional[int] = None

    class Config:
        from_attributes = True
