from datetime import date, datetime, timezone
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from sylvia.core.auth import get_current_user
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.stats import StatsResponse, StatsSummaryResponse
from sylvia.schemas.user_book import LibraryItem
from sylvia.services import reading_stats
from sylvia.services.goal_service import get_goal
from sylvia.services.library_service import list_library, list_wishlist, to_library_items
from sylvia.utils.csv_utils import to_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"])

LIBRARY_EXPORT_COLUMNS = [
    "title", "authors", "status", "rating", "started_at",
    "finished_at", "pages_total", "pages_read", "added_at",
]
WISHLIST_EXPORT_COLUMNS = ["title", "authors", "added_at"]


def _current_goal(db: Session, user_id: str, items: List[LibraryItem]):
    today = datetime.now(timezone.utc)
    goal = get_goal(db, user_id, today.year, today.month)
    return reading_stats.goal_progress(
        items,
        today.year,
        today.month,
        target_books=goal.target_books if goal else None,
        target_pages=goal.target_pages if goal else None,
    )


@router.get("", response_model=StatsResponse)
def get_stats(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Reading statistics over the user's library."""
    items = to_library_items(list_library(db, user.id))
    return StatsResponse(
        stats=reading_stats.compute_stats(items),
        monthly_counts=reading_stats.monthly_counts(items),
        monthly_pages=reading_stats.monthly_pages(items),
        avg_duration_days=reading_stats.average_duration_days(items),
        top_genres=reading_stats.top_genres(items, reading_stats.STATS_TOP_GENRES),
        goal=_current_goal(db, user.id, items),
    )


@router.get("/summary", response_model=StatsSummaryResponse)
def get_stats_summary(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Top genres and gamification for the home and profile pages."""
    items = to_library_items(list_library(db, user.id))
    goal = _current_goal(db, user.id, items)
    return StatsSummaryResponse(
        top_genres=reading_stats.top_genres(items, reading_stats.HOME_TOP_GENRES),
        gamification=reading_stats.compute_gamification(items, goal_reached=goal.reached),
    )


def _in_range(item: LibraryItem, start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    added = reading_stats.parse_timestamp(item.added_at)
    if added is None:
        return False
    day = added.date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def _iso(value) -> Optional[str]:
    dt = reading_stats.parse_timestamp(value)
    return dt.isoformat() if dt else None


def _export_row(item: LibraryItem, kind: str) -> dict:
    book = item.book
    row = {
        "title": book.title if book else "",
        "authors": "; ".join(book.authors) if book else "",
    }
    if kind == "library":
        status_value = item.reading_status.value if item.reading_status else None
        row.update({
            "status": status_value,
            "rating": item.rating,
            "started_at": _iso(item.reading_started_at),
            "finished_at": _iso(item.reading_finished_at),
            "pages_total": item.pages_total,
            "pages_read": item.pages_read,
        })
    row["added_at"] = _iso(item.added_at)
    return row


@router.get("/export")
def export_csv(
    kind: str = Query("library", pattern="^(library|wishlist)$"),
    start: Optional[date] = Query(None, description="First added_at day, inclusive"),
    end: Optional[date] = Query(None, description="Last added_at day, inclusive"),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if start is not None and end is not None and start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end",
        )

    rows = list_library(db, user.id) if kind == "library" else list_wishlist(db, user.id)
    items = [item for item in to_library_items(rows) if _in_range(item, start, end)]
    headers = LIBRARY_EXPORT_COLUMNS if kind == "library" else WISHLIST_EXPORT_COLUMNS
    body = to_csv([_export_row(item, kind) for item in items], headers=headers)

    logger.info("CSV export user=%s kind=%s rows=%d", user.id, kind, len(items))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="sylvia-{kind}.csv"'},
    )
