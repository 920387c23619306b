"""
Reading statistics over a user's tracked books.

Every function here is total: empty input gives zero/default values and
missing or malformed dates, page counts and ratings are skipped rather
than raising. Items only need the LibraryItem attributes, so ORM rows and
plain objects work as well as the pydantic schema.
"""
import logging
import math
from collections import Counter
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sylvia.models import ReadingStatus
from sylvia.schemas.stats import (
    Badge,
    Gamification,
    GenreCount,
    GoalProgress,
    MonthCount,
    MonthPages,
    ReaderLevel,
    ReadingStats,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# Date used to place an item in a month: finished, else started, else added
DEFAULT_DATE_FIELDS: Tuple[str, ...] = ("reading_finished_at", "reading_started_at", "added_at")

HOME_TOP_GENRES = 3
STATS_TOP_GENRES = 5

# (name, min finished books, max finished books)
LEVELS: List[Tuple[str, int, Optional[int]]] = [
    ("Bronze", 0, 4),
    ("Silver", 5, 14),
    ("Gold", 15, 29),
    ("Platinum", 30, None),
]

BOOK_COUNT_BADGES = [
    ("First book", 1),
    ("5 books", 5),
    ("10 books", 10),
    ("25 books", 25),
    ("50 books", 50),
]
STREAK_BADGES = [
    ("7-day streak", 7),
    ("14-day streak", 14),
]
GOAL_BADGE = "Monthly goal"


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a datetime, date or ISO-8601 string to an aware UTC datetime.

    Naive datetimes are taken as UTC. Anything unparseable gives None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Skipping malformed date %r", value)
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _status(item) -> str:
    return item.reading_status or ReadingStatus.TO_READ


def _pages(item) -> int:
    """Read pages when known (0 included), else total pages, else 0."""
    if item.pages_read is not None:
        return item.pages_read
    return item.pages_total or 0


def _elapsed_days(start: datetime, end: datetime) -> int:
    """Whole days between two instants, rounded up and never below 1."""
    return max(1, math.ceil((end - start).total_seconds() / SECONDS_PER_DAY))


def relevant_date(item, date_fields: Sequence[str] = DEFAULT_DATE_FIELDS) -> Optional[datetime]:
    for field_name in date_fields:
        dt = parse_timestamp(getattr(item, field_name, None))
        if dt is not None:
            return dt
    return None


def reading_speed_sample(item) -> Optional[float]:
    """Pages per day for one item, or None without both dates and a page count."""
    start = parse_timestamp(item.reading_started_at)
    end = parse_timestamp(item.reading_finished_at)
    if start is None or end is None or not (item.pages_read or item.pages_total):
        return None
    speed = _pages(item) / _elapsed_days(start, end)
    if not math.isfinite(speed):
        return None
    return speed


def compute_stats(items: Iterable) -> ReadingStats:
    items = list(items)
    statuses = Counter(_status(item) for item in items)

    ratings = [
        item.rating for item in items
        if isinstance(item.rating, int) and not isinstance(item.rating, bool)
    ]
    avg_rating = round_half_up(sum(ratings) / len(ratings), 1) if ratings else 0.0

    samples = [s for s in (reading_speed_sample(item) for item in items) if s is not None]
    avg_speed = int(round_half_up(sum(samples) / len(samples))) if samples else 0

    return ReadingStats(
        total=len(items),
        to_read=statuses.get(ReadingStatus.TO_READ, 0),
        reading=statuses.get(ReadingStatus.READING, 0),
        finished=statuses.get(ReadingStatus.FINISHED, 0),
        avg_rating=avg_rating,
        avg_speed=avg_speed,
    )


def average_duration_days(items: Iterable) -> int:
    durations = []
    for item in items:
        start = parse_timestamp(item.reading_started_at)
        end = parse_timestamp(item.reading_finished_at)
        if start is None or end is None:
            continue
        durations.append(_elapsed_days(start, end))
    if not durations:
        return 0
    return int(round_half_up(sum(durations) / len(durations)))


def _month_key(dt: datetime) -> str:
    return dt.strftime("%Y-%m")


def monthly_counts(items: Iterable, date_fields: Sequence[str] = DEFAULT_DATE_FIELDS) -> List[MonthCount]:
    buckets: Counter = Counter()
    for item in items:
        dt = relevant_date(item, date_fields)
        if dt is None:
            continue
        buckets[_month_key(dt)] += 1
    return [MonthCount(label=label, count=count) for label, count in sorted(buckets.items())]


def monthly_pages(items: Iterable, date_fields: Sequence[str] = DEFAULT_DATE_FIELDS) -> List[MonthPages]:
    buckets: Counter = Counter()
    for item in items:
        dt = relevant_date(item, date_fields)
        pages = _pages(item)
        if dt is None or not pages:
            continue
        buckets[_month_key(dt)] += pages
    return [MonthPages(label=label, pages=pages) for label, pages in sorted(buckets.items())]


def top_genres(items: Iterable, limit: int = STATS_TOP_GENRES) -> List[GenreCount]:
    counts: Counter = Counter()
    for item in items:
        book = getattr(item, "book", None)
        if book is None:
            continue
        for category in book.categories or []:
            if category:
                counts[category] += 1
    # most_common keeps first-seen order among equal counts
    return [GenreCount(genre=genre, count=count) for genre, count in counts.most_common(limit)]


def finished_dates(items: Iterable) -> List[datetime]:
    dates = []
    for item in items:
        dt = parse_timestamp(item.reading_finished_at)
        if dt is not None:
            dates.append(dt)
    return dates


def compute_streak(dates: Iterable) -> int:
    """
    Consecutive days with a finished book, walking back from the most
    recent finish date and stopping at the first gap.
    """
    days = set()
    for value in dates:
        dt = parse_timestamp(value)
        if dt is not None:
            days.add(dt.date())
    if not days:
        return 0

    ordered = sorted(days, reverse=True)
    streak = 1
    for newer, older in zip(ordered, ordered[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def reader_level(finished_count: int) -> ReaderLevel:
    current = LEVELS[0]
    for level in LEVELS:
        name, low, high = level
        if finished_count >= low and (high is None or finished_count <= high):
            current = level
            break

    name, low, high = current
    next_target = next((lvl[1] for lvl in LEVELS if lvl[1] > low), None)
    return ReaderLevel(
        name=name,
        min=low,
        max=high,
        next_level_target=next_target,
        books_to_next_level=(next_target - finished_count) if next_target is not None else None,
    )


def compute_badges(finished_count: int, streak_days: int, goal_reached: bool) -> List[Badge]:
    badges = [Badge(label=label, achieved=finished_count >= threshold) for label, threshold in BOOK_COUNT_BADGES]
    badges += [Badge(label=label, achieved=streak_days >= threshold) for label, threshold in STREAK_BADGES]
    badges.append(Badge(label=GOAL_BADGE, achieved=goal_reached))
    return badges


def _percent(progress: int, target: Optional[int]) -> int:
    if not target or target <= 0:
        return 0
    return min(100, int(round_half_up(progress / target * 100)))


def goal_progress(
    items: Iterable,
    year: int,
    month: int,
    target_books: Optional[int] = None,
    target_pages: Optional[int] = None,
    date_fields: Sequence[str] = DEFAULT_DATE_FIELDS,
) -> GoalProgress:
    """Progress towards a monthly goal from the items dated in that month."""
    month_label = f"{year:04d}-{month:02d}"
    in_month = []
    for item in items:
        dt = relevant_date(item, date_fields)
        if dt is not None and _month_key(dt) == month_label:
            in_month.append(item)
    progress_books = sum(1 for item in in_month if _status(item) == ReadingStatus.FINISHED)
    progress_pages = sum(_pages(item) for item in in_month)

    reached = bool(
        (target_books and progress_books >= target_books)
        or (target_pages and progress_pages >= target_pages)
    )
    return GoalProgress(
        year=year,
        month=month,
        target_books=target_books,
        target_pages=target_pages,
        progress_books=progress_books,
        progress_pages=progress_pages,
        book_percent=_percent(progress_books, target_books),
        page_percent=_percent(progress_pages, target_pages),
        reached=reached,
    )


def compute_gamification(items: Iterable, goal_reached: bool = False) -> Gamification:
    dates = finished_dates(items)
    streak = compute_streak(dates)
    finished_count = len(dates)
    return Gamification(
        finished_count=finished_count,
        streak_days=streak,
        level=reader_level(finished_count),
        badges=compute_badges(finished_count, streak, goal_reached),
    )
