"""
Google Books catalog client.

Normalizes raw volumes into BookRecord, caches search results for a short
time and turns every transport failure into CatalogUnavailableError so that
callers can decide whether an empty result is acceptable.
"""
import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import requests

from sylvia.schemas.book import BookRecord
from sylvia.utils.text import is_valid_cover_url
from sylvia.utils.timing import time_operation

logger = logging.getLogger(__name__)

SLOW_CATALOG_CALL_MS = 1500.0

SEARCH_FILTERS = ("title", "author", "isbn", "series")


class CatalogUnavailableError(Exception):
    """Raised when the catalog cannot be reached or answers with a non-2xx status."""
    pass


@dataclass(frozen=True)
class CatalogQuery:
    q: str
    max_results: int = 10
    start_index: int = 0
    language: Optional[str] = None
    order_by: str = "relevance"

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "q": self.q,
            "maxResults": self.max_results,
            "startIndex": self.start_index,
            "orderBy": self.order_by,
        }
        if self.language:
            params["langRestrict"] = self.language
        return params


# Signature shared by GoogleBooksClient.search and the fakes used in tests
CatalogSearch = Callable[[CatalogQuery], List[BookRecord]]


class TTLCache:
    """
    Time-bounded in-memory cache.

    Entries are stored as ``key -> (value, inserted_at)`` and expire once
    ``clock() - inserted_at >= ttl_seconds``. The clock is injectable so
    expiry can be driven deterministically.

    Expired entries are purged on every write, so the map only holds live
    entries plus whatever expired since the last write. Routes run in a
    threadpool; a lock guards the map.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at >= self.ttl_seconds

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._expired(inserted_at, self._clock()):
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            stale = [k for k, (_, inserted_at) in self._entries.items() if self._expired(inserted_at, now)]
            for k in stale:
                self._entries.pop(k, None)
            self._entries[key] = (value, now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def build_search_query(query: str, search_filter: str = "title") -> str:
    if search_filter == "author":
        return f"inauthor:{query}"
    if search_filter == "isbn":
        return f"isbn:{query}"
    if search_filter == "series":
        return f"intitle:{query}+series"
    return f"intitle:{query}"


def upgrade_cover_url(url: Optional[str]) -> Optional[str]:
    """Force https, ask for the larger zoom level and drop placeholder images."""
    if not url:
        return None
    if url.startswith("http://"):
        url = "https://" + url[len("http://"):]
    if "zoom=" in url:
        url = re.sub(r"zoom=\d", "zoom=2", url)
    else:
        url = f"{url}{'&' if '?' in url else '?'}zoom=2"
    if not is_valid_cover_url(url):
        return None
    return url


def _extract_identifiers(volume_info: dict) -> Tuple[Optional[str], Optional[str]]:
    isbn_10 = None
    isbn_13 = None
    for ident in volume_info.get("industryIdentifiers") or []:
        t = ident.get("type")
        val = ident.get("identifier")
        if t == "ISBN_10" and isbn_10 is None:
            isbn_10 = val
        elif t == "ISBN_13" and isbn_13 is None:
            isbn_13 = val
    return isbn_10, isbn_13


def _parse_published(published: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    if not published:
        return None, None
    year_match = re.match(r"^(\d{4})", published)
    year = int(year_match.group(1)) if year_match else None
    if len(published) >= 10:
        return published[:10], year
    if re.match(r"^\d{4}-\d{2}$", published):
        return f"{published}-01", year
    if year is not None:
        return f"{year:04d}-01-01", year
    return None, None


def normalize_book(volume: dict) -> BookRecord:
    """Convert a raw Google Books volume into a BookRecord."""
    info = volume.get("volumeInfo") or {}
    isbn_10, isbn_13 = _extract_identifiers(info)
    published_date, published_year = _parse_published(info.get("publishedDate"))
    image_links = info.get("imageLinks") or {}
    cover = image_links.get("thumbnail") or image_links.get("smallThumbnail")

    return BookRecord(
        id=volume.get("id") or "",
        title=info.get("title"),
        authors=info.get("authors") or [],
        cover_url=upgrade_cover_url(cover),
        description=info.get("description"),
        categories=info.get("categories") or [],
        language=info.get("language"),
        isbn10=isbn_10,
        isbn13=isbn_13,
        published_date=published_date,
        published_year=published_year,
    )


def has_cover_and_description(book: BookRecord) -> bool:
    return bool(book.cover_url and book.description)


class GoogleBooksClient:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        cache: Optional[TTLCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.cache = cache
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "GoogleBooksClient":
        return cls(
            base_url=settings.GOOGLE_BOOKS_BASE_URL,
            api_key=settings.GOOGLE_BOOKS_API_KEY,
            timeout=settings.CATALOG_TIMEOUT_SECONDS,
            cache=TTLCache(settings.CATALOG_CACHE_TTL_SECONDS),
        )

    def _get_json(self, url: str, params: Dict[str, Any]) -> dict:
        if self.api_key:
            params = {**params, "key": self.api_key}
        try:
            with time_operation(f"catalog GET {url} q={params.get('q')}", logger.info, min_ms=SLOW_CATALOG_CALL_MS):
                resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Google Books request failed url=%s q=%s: %s", url, params.get("q"), e)
            raise CatalogUnavailableError(str(e)) from e

    def search(self, query: CatalogQuery) -> List[BookRecord]:
        """Run a volumes search; results without a volume id are dropped."""
        cache_key = tuple(sorted(query.to_params().items()))
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return list(cached)

        data = self._get_json(self.base_url, query.to_params())
        books = [normalize_book(item) for item in (data.get("items") or []) if item.get("id")]

        if self.cache is not None:
            self.cache.set(cache_key, tuple(books))
        return books

    def __call__(self, query: CatalogQuery) -> List[BookRecord]:
        return self.search(query)

    def get_volume(self, volume_id: str) -> BookRecord:
        data = self._get_json(f"{self.base_url}/{volume_id}", {})
        if not data.get("id"):
            raise CatalogUnavailableError(f"volume {volume_id} has no id")
        return normalize_book(data)
