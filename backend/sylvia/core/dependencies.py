"""
Shared route dependencies and the domain error -> HTTP mapping.
"""
import logging

from fastapi import HTTPException, Request, status

from sylvia.services.catalog import CatalogUnavailableError, GoogleBooksClient
from sylvia.services.errors import ConflictError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def get_catalog(request: Request) -> GoogleBooksClient:
    """The catalog client created at app startup (replaced in tests)."""
    return request.app.state.catalog


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, CatalogUnavailableError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Book catalog unavailable")
    logger.error("No HTTP mapping for %s", type(exc).__name__)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")


DOMAIN_ERRORS = (NotFoundError, ConflictError, InvalidInputError, CatalogUnavailableError)
