"""
Refresh stored books whose catalog metadata is incomplete.
"""
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from sylvia.models import Book
from sylvia.schemas.book import BackfillResponse
from sylvia.services.catalog import CatalogUnavailableError, GoogleBooksClient

logger = logging.getLogger(__name__)

BACKFILL_BATCH = 30

BACKFILLED_FIELDS = (
    "cover_url",
    "description",
    "categories",
    "isbn10",
    "isbn13",
    "published_year",
    "published_date",
    "language",
)


def backfill_books(db: Session, client: GoogleBooksClient, limit: int = BACKFILL_BATCH) -> BackfillResponse:
    """Re-fetch up to ``limit`` books missing language or publication date."""
    books = (
        db.query(Book)
        .filter(or_(Book.language.is_(None), Book.published_date.is_(None)))
        .order_by(Book.created_at.asc())
        .limit(limit)
        .all()
    )
    if not books:
        return BackfillResponse(updated=0, skipped=0)

    logger.info("Backfilling %d book(s)", len(books))
    updated = 0
    skipped = 0
    for book in books:
        try:
            record = client.get_volume(book.id)
        except CatalogUnavailableError:
            skipped += 1
            continue

        for field_name in BACKFILLED_FIELDS:
            setattr(book, field_name, getattr(record, field_name))
        updated += 1

    db.commit()
    logger.info("Backfill done: updated=%d skipped=%d", updated, skipped)
    return BackfillResponse(updated=updated, skipped=skipped)
