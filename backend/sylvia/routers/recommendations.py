from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from sylvia.core.auth import get_current_user
from sylvia.core.config import settings
from sylvia.core.dependencies import get_catalog
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.recommendation import RandomDiscoveryResponse, RecommendationsResponse
from sylvia.services import recommendation_engine
from sylvia.services.catalog import GoogleBooksClient
from sylvia.services.library_service import get_book, list_tracked, to_library_items
from sylvia.utils.timing import log_elapsed, now_ms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("", response_model=RecommendationsResponse)
def get_recommendations(
    book_id: Optional[str] = Query(None, description="Stored book used as a seed"),
    user: Profile = Depends(get_current_user),
    catalog: GoogleBooksClient = Depends(get_catalog),
    db: Session = Depends(get_db),
):
    t0 = now_ms()

    seed = None
    if book_id:
        seed = get_book(db, book_id)
        if seed is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Book not found",
            )

    tracked = to_library_items(list_tracked(db, user.id))
    response = recommendation_engine.recommend(
        tracked,
        catalog,
        seed=seed,
        language=settings.CATALOG_LANGUAGE,
    )

    if settings.DEBUG:
        log_elapsed(t0, f"user={user.id} recommendations items={len(response.items)}", logger.debug)
    logger.info(
        "Recommendations for user=%s: %d item(s), basis=%s",
        user.id, len(response.items), response.basis.type if response.basis else None,
    )
    return response


@router.get("/random", response_model=RandomDiscoveryResponse)
def get_random_discovery(
    user: Profile = Depends(get_current_user),
    catalog: GoogleBooksClient = Depends(get_catalog),
    db: Session = Depends(get_db),
):
    tracked = to_library_items(list_tracked(db, user.id))
    items = recommendation_engine.random_discovery(tracked, catalog, language=settings.CATALOG_LANGUAGE)
    return RandomDiscoveryResponse(items=items)
