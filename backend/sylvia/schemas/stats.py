from pydantic import BaseModel
from typing import Optional, List


class ReadingStats(BaseModel):
    total: int = 0
    to_read: int = 0
    reading: int = 0
    finished: int = 0
    avg_rating: float = 0.0
    avg_speed: int = 0


class MonthCount(BaseModel):
    label: str  # "YYYY-MM"
    count: int


class MonthPages(BaseModel):
    label: str  # "YYYY-MM"
    pages: int


class GenreCount(BaseModel):
    genre: str
    count: int


class GoalProgress(BaseModel):
    year: int
    month: int
    target_books: Optional[int] = None
    target_pages: Optional[int] = None
    progress_books: int = 0
    progress_pages: int = 0
    book_percent: int = 0
    page_percent: int = 0
    reached: bool = False


class ReaderLevel(BaseModel):
    name: str
    min: int
    max: Optional[int] = None
    next_level_target: Optional[int] = None
    books_to_next_level: Optional[int] = None


class Badge(BaseModel):
    label: str
    achieved: bool


class Gamification(BaseModel):
    finished_count: int
    streak_days: int
    level: ReaderLevel
    badges: List[Badge]


class StatsResponse(BaseModel):
    stats: ReadingStats
    monthly_counts: List[MonthCount]
    monthly_pages: List[MonthPages]
    avg_duration_days: int
    top_genres: List[GenreCount]
    goal: GoalProgress


class StatsSummaryResponse(BaseModel):
    top_genres: List[GenreCount]
    gamification: Gamification
