from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from sylvia.core.auth import get_current_user
from sylvia.core.config import settings
from sylvia.core.dependencies import get_catalog
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.goodreads import GoodreadsImportRequest, GoodreadsImportResponse
from sylvia.services.catalog import GoogleBooksClient
from sylvia.services.goodreads_import import MAX_ROWS, import_rows, parse_goodreads_csv

logger = logging.getLogger(__name__)

router = APIRouter(tags=["import"])


@router.post("/import-goodreads", response_model=GoodreadsImportResponse)
def import_goodreads(
    payload: GoodreadsImportRequest,
    user: Profile = Depends(get_current_user),
    catalog: GoogleBooksClient = Depends(get_catalog),
    db: Session = Depends(get_db),
):
    """Import a Goodreads export, given as raw CSV text or pre-mapped rows."""
    if payload.csv_text is not None:
        rows, truncated = parse_goodreads_csv(payload.csv_text)
    else:
        rows = [row for row in payload.rows if row.title or row.isbn or row.isbn13]
        truncated = len(rows) > MAX_ROWS
        rows = rows[:MAX_ROWS]

    logger.info("Goodreads import user=%s rows=%d truncated=%s", user.id, len(rows), truncated)
    result = import_rows(db, user.id, rows, catalog, language=settings.CATALOG_LANGUAGE)
    result.truncated = truncated
    return result
