from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from sylvia.core.auth import get_current_user
from sylvia.core.config import settings
from sylvia.core.dependencies import get_catalog
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.book import BackfillResponse, BookSearchResponse
from sylvia.services.book_backfill import backfill_books
from sylvia.services.catalog import (
    SEARCH_FILTERS,
    CatalogQuery,
    CatalogUnavailableError,
    GoogleBooksClient,
    build_search_query,
    has_cover_and_description,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])

PAGE_SIZE = 10


@router.get("/search", response_model=BookSearchResponse)
def search_books(
    query: str = Query("", description="Text to search for"),
    filter: str = Query("title", description="title, author, isbn or series"),
    lang: Optional[str] = Query(None, description="Language restriction (defaults to the catalog language)"),
    include_other: bool = Query(False, description="Do not restrict results to one language"),
    order_by: str = Query("relevance", pattern="^(relevance|newest)$"),
    page: int = Query(1, ge=1),
    catalog: GoogleBooksClient = Depends(get_catalog),
):
    """Search the catalog, keeping only books with a cover and a description."""
    if not query.strip():
        return BookSearchResponse(items=[], total_items=0)
    if filter not in SEARCH_FILTERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"filter must be one of {', '.join(SEARCH_FILTERS)}",
        )

    language = None if include_other else (lang or settings.CATALOG_LANGUAGE)
    catalog_query = CatalogQuery(
        q=build_search_query(query, filter),
        max_results=PAGE_SIZE,
        start_index=(page - 1) * PAGE_SIZE,
        language=language,
        order_by=order_by,
    )
    try:
        books = catalog.search(catalog_query)
    except CatalogUnavailableError:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"items": [], "total_items": 0},
        )

    items = [book for book in books if has_cover_and_description(book)]
    return BookSearchResponse(items=items, total_items=len(items))


@router.post("/backfill", response_model=BackfillResponse)
def backfill(
    user: Profile = Depends(get_current_user),
    catalog: GoogleBooksClient = Depends(get_catalog),
    db: Session = Depends(get_db),
):
    """Refresh stored books missing language or publication date."""
    logger.info("Backfill requested by user=%s", user.id)
    return backfill_books(db, catalog)
