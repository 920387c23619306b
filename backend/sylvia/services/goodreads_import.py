"""
Goodreads CSV import.

Rows are mapped from the export's column names, each row is matched
against the catalog (ISBN first, then title/author) and the best hit is
added to the library or wishlist according to its Goodreads shelf.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple
import logging
import re

from sqlalchemy.orm import Session

from sylvia.models import ReadingStatus, UserBook
from sylvia.schemas.goodreads import GoodreadsImportResponse, ImportRow
from sylvia.services.catalog import CatalogQuery, CatalogSearch, CatalogUnavailableError, has_cover_and_description
from sylvia.services.library_service import get_user_book, upsert_book
from sylvia.utils.csv_utils import parse_csv

logger = logging.getLogger(__name__)

MAX_ROWS = 500

FIELD_ALIASES: Dict[str, List[str]] = {
    "title": ["title", "book title"],
    "author": ["author", "authors"],
    "isbn": ["isbn"],
    "isbn13": ["isbn13"],
    "shelf": ["exclusive shelf", "shelf", "bookshelves"],
    "rating": ["my rating", "rating"],
    "date_read": ["date read"],
    "date_added": ["date added"],
    "pages": ["number of pages", "pages"],
}

DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d", "%d/%m/%Y")

# Goodreads writes ISBNs as ="0123456789" so spreadsheets keep leading zeros
EXCEL_WRAPPED_RE = re.compile(r'^="?([^"]*)"?$')


def _get_field(record: Dict[str, str], keys: List[str]) -> str:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str):
            return value
    return ""


def _unwrap(value: str) -> str:
    value = value.strip()
    match = EXCEL_WRAPPED_RE.match(value)
    return match.group(1).strip() if match else value


def _parse_number(value: str) -> Optional[float]:
    cleaned = value.replace(",", ".").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def map_row(record: Dict[str, str]) -> ImportRow:
    normalized = {key.strip().lower(): value for key, value in record.items()}
    pages = _parse_number(_get_field(normalized, FIELD_ALIASES["pages"]))
    return ImportRow(
        title=_get_field(normalized, FIELD_ALIASES["title"]).strip(),
        author=_get_field(normalized, FIELD_ALIASES["author"]).strip(),
        isbn=_unwrap(_get_field(normalized, FIELD_ALIASES["isbn"])),
        isbn13=_unwrap(_get_field(normalized, FIELD_ALIASES["isbn13"])),
        shelf=_get_field(normalized, FIELD_ALIASES["shelf"]).strip() or "to-read",
        rating=_parse_number(_get_field(normalized, FIELD_ALIASES["rating"])),
        date_read=_get_field(normalized, FIELD_ALIASES["date_read"]).strip() or None,
        date_added=_get_field(normalized, FIELD_ALIASES["date_added"]).strip() or None,
        pages=int(round(pages)) if pages else None,
    )


def parse_goodreads_csv(text: str) -> Tuple[List[ImportRow], bool]:
    """Map a Goodreads export; returns the rows (at most MAX_ROWS) and whether it was truncated."""
    rows = [map_row(record) for record in parse_csv(text)]
    rows = [row for row in rows if row.title or row.isbn or row.isbn13]
    if len(rows) > MAX_ROWS:
        return rows[:MAX_ROWS], True
    return rows, False


def build_query(row: ImportRow) -> str:
    if row.isbn13:
        return f"isbn:{row.isbn13}"
    if row.isbn:
        return f"isbn:{row.isbn}"
    if row.title and row.author:
        return f"intitle:{row.title}+inauthor:{row.author}"
    if row.title:
        return f"intitle:{row.title}"
    return ""


def shelf_membership(shelf: str) -> Tuple[bool, bool, ReadingStatus]:
    """(in_library, in_wishlist, reading_status) for a Goodreads shelf name."""
    shelf = shelf.strip().lower()
    if shelf == "to-read":
        return False, True, ReadingStatus.TO_READ
    if shelf == "currently-reading":
        return True, False, ReadingStatus.READING
    if shelf == "read":
        return True, False, ReadingStatus.FINISHED
    return True, False, ReadingStatus.TO_READ


def parse_goodreads_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable Goodreads date %r", value)
        return None


def _rating(value: Optional[float]) -> Optional[int]:
    # Goodreads exports 0 for "not rated"
    if value is None:
        return None
    rating = int(round(value))
    return rating if 1 <= rating <= 5 else None


def import_rows(
    db: Session,
    user_id: str,
    rows: List[ImportRow],
    catalog_search: CatalogSearch,
    language: Optional[str] = "fr",
) -> GoodreadsImportResponse:
    imported = 0
    skipped = 0

    for row in rows[:MAX_ROWS]:
        q = build_query(row)
        if not q:
            skipped += 1
            continue

        try:
            results = catalog_search(CatalogQuery(q=q, max_results=1, language=language))
        except CatalogUnavailableError as e:
            logger.warning("Goodreads import lookup failed for q=%s: %s", q, e)
            skipped += 1
            continue

        if not results or not has_cover_and_description(results[0]):
            skipped += 1
            continue
        record = results[0]

        in_library, in_wishlist, status = shelf_membership(row.shelf)
        upsert_book(db, record)
        user_book = get_user_book(db, user_id, record.id)
        if user_book is None:
            user_book = UserBook(user_id=user_id, book_id=record.id)
            db.add(user_book)
        in_library = in_library or bool(user_book.in_library)
        user_book.in_library = in_library
        user_book.in_wishlist = in_wishlist and not in_library
        user_book.reading_status = status
        user_book.rating = _rating(row.rating)
        user_book.reading_finished_at = parse_goodreads_date(row.date_read)
        user_book.pages_total = row.pages
        added_at = parse_goodreads_date(row.date_added)
        if added_at is not None:
            user_book.added_at = added_at
        db.commit()
        imported += 1

    logger.info("Goodreads import user=%s imported=%d skipped=%d", user_id, imported, skipped)
    return GoodreadsImportResponse(imported=imported, skipped=skipped)
