"""
Recommendation scoring over a user's library and wishlist.

The engine is a pure function of the tracked books it is given plus a
catalog search callable; it never touches the database. Catalog failures
are logged and treated as an empty result for the phase that failed.
"""
from typing import Dict, Iterable, List, Optional, Set
import logging
import random
from dataclasses import dataclass, field

from sylvia.schemas.book import BookRecord, BookWithReason
from sylvia.schemas.recommendation import (
    RecommendationBasis,
    RecommendationSources,
    RecommendationsResponse,
)
from sylvia.schemas.user_book import LibraryItem
from sylvia.services.catalog import (
    CatalogQuery,
    CatalogSearch,
    CatalogUnavailableError,
    has_cover_and_description,
)

logger = logging.getLogger(__name__)

# Seed book boosts
SEED_CATEGORY_BOOST = 3
SEED_TITLE_BOOST = 3

TOP_CATEGORIES = 3
TOP_AUTHORS = 2
TOP_TITLES = 2

MAX_RESULTS = 40
FALLBACK_MAX_RESULTS = 24

RANDOM_ATTEMPTS = 3
RANDOM_PAGE_COUNT = 8
RANDOM_PAGE_SIZE = 10
RANDOM_MAX_ITEMS = 12
RANDOM_MIN_SUBJECT_LENGTH = 3

REASON_CATEGORY = "Similar category: {}"
REASON_AUTHOR = "Similar author: {}"
REASON_TITLE = "Similar title: {}"
REASON_GENERIC = "Close to your recent reads"
REASON_RANDOM = "Random discovery"

FALLBACK_SUBJECTS = [
    "fiction",
    "thriller",
    "romance",
    "fantasy",
    "science fiction",
    "mystery",
    "history",
    "biography",
    "self-help",
    "business",
    "psychology",
    "travel",
    "cooking",
    "poetry",
    "young adult",
]


@dataclass
class RecommendationSignals:
    """Ranked category/author/title signals derived from a user's books."""
    top_categories: List[str] = field(default_factory=list)
    top_authors: List[str] = field(default_factory=list)
    top_titles: List[str] = field(default_factory=list)

    def basis(self) -> Optional[RecommendationBasis]:
        """Categories first, then authors, then titles; None when there is no signal."""
        if self.top_categories:
            return RecommendationBasis(type="categories", values=self.top_categories)
        if self.top_authors:
            return RecommendationBasis(type="authors", values=self.top_authors)
        if self.top_titles:
            return RecommendationBasis(type="titles", values=self.top_titles)
        return None

    def fallback_query(self) -> Optional[str]:
        if self.top_authors:
            return f"inauthor:{self.top_authors[0]}"
        if self.top_titles:
            return f"intitle:{self.top_titles[0]}"
        return None


@dataclass
class OwnedIndex:
    """Catalog ids and ISBNs of books the user already tracks."""
    ids: Set[str] = field(default_factory=set)
    isbns: Set[str] = field(default_factory=set)

    @classmethod
    def from_tracked(cls, tracked: Iterable[LibraryItem]) -> "OwnedIndex":
        index = cls()
        for item in tracked:
            index.ids.add(item.book_id)
            if item.book is None:
                continue
            for isbn in (item.book.isbn10, item.book.isbn13):
                if isbn:
                    index.isbns.add(isbn)
        return index

    def owns(self, book: BookRecord) -> bool:
        if book.id in self.ids:
            return True
        if book.isbn10 and book.isbn10 in self.isbns:
            return True
        if book.isbn13 and book.isbn13 in self.isbns:
            return True
        return False


def _rank(scores: Dict[str, float], limit: int) -> List[str]:
    # sorted() is stable, so equal scores keep first-seen order
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    return [key for key, _ in ranked[:limit]]


def compute_signals(
    tracked: List[LibraryItem],
    seed: Optional[BookRecord] = None,
) -> RecommendationSignals:
    """
    Tally categories (+1 each), titles (weighted by rating, 1 when unrated)
    and authors (+1 each) over the tracked books, then boost the seed book's
    categories and title.
    """
    category_counts: Dict[str, float] = {}
    title_scores: Dict[str, float] = {}
    author_counts: Dict[str, float] = {}

    for item in tracked:
        book = item.book
        if book is None:
            continue
        for category in book.categories:
            category_counts[category] = category_counts.get(category, 0) + 1
        if book.title:
            weight = item.rating if item.rating is not None else 1
            title_scores[book.title] = title_scores.get(book.title, 0) + weight
        for author in book.authors:
            if not author:
                continue
            author_counts[author] = author_counts.get(author, 0) + 1

    if seed is not None:
        for category in seed.categories:
            category_counts[category] = category_counts.get(category, 0) + SEED_CATEGORY_BOOST
        if seed.title:
            title_scores[seed.title] = title_scores.get(seed.title, 0) + SEED_TITLE_BOOST

    return RecommendationSignals(
        top_categories=_rank(category_counts, TOP_CATEGORIES),
        top_authors=_rank(author_counts, TOP_AUTHORS),
        top_titles=_rank(title_scores, TOP_TITLES),
    )


def build_basis_query(basis: RecommendationBasis) -> str:
    prefix = {"categories": "subject", "authors": "inauthor", "titles": "intitle"}[basis.type]
    return " OR ".join(f"{prefix}:{value}" for value in basis.values)


def filter_candidates(
    books: Iterable[BookRecord],
    language: Optional[str],
    owned: Optional[OwnedIndex] = None,
) -> List[BookRecord]:
    """Keep books in the target language that have a cover and a description and are not owned."""
    kept = []
    for book in books:
        if language and book.language != language:
            continue
        if not has_cover_and_description(book):
            continue
        if owned is not None and owned.owns(book):
            continue
        kept.append(book)
    return kept


def assign_reason(book: BookRecord, signals: RecommendationSignals) -> str:
    """
    Explain a candidate: category hit, then author hit, then a top title
    contained in the candidate title, then a generic reason.
    """
    categories = {c.lower() for c in signals.top_categories}
    authors = {a.lower() for a in signals.top_authors}
    titles = [t.lower() for t in signals.top_titles]

    for category in book.categories:
        if category.lower() in categories:
            return REASON_CATEGORY.format(category.lower())

    for author in book.authors:
        if author.lower() in authors:
            return REASON_AUTHOR.format(author.lower())

    candidate_title = book.title.lower()
    for title in titles:
        if title in candidate_title:
            return REASON_TITLE.format(title)

    return REASON_GENERIC


def _search(catalog_search: CatalogSearch, query: CatalogQuery) -> List[BookRecord]:
    try:
        return catalog_search(query)
    except CatalogUnavailableError as e:
        logger.warning("Catalog search failed for q=%s: %s", query.q, e)
        return []


def recommend(
    tracked: List[LibraryItem],
    catalog_search: CatalogSearch,
    seed: Optional[BookRecord] = None,
    language: Optional[str] = "fr",
) -> RecommendationsResponse:
    """
    Recommend catalog books from the user's library and wishlist.

    Args:
        tracked: the user's library and wishlist rows, each with its book
        catalog_search: callable running a CatalogQuery against the catalog
        seed: optional book whose categories and title are boosted
        language: candidates must be in this language

    Returns an empty item list (never an error) when there is no signal or
    the catalog cannot be reached.
    """
    sources = RecommendationSources(
        library=sum(1 for item in tracked if item.in_library),
        wishlist=sum(1 for item in tracked if item.in_wishlist),
    )
    signals = compute_signals(tracked, seed)
    basis = signals.basis()
    if basis is None:
        logger.info("No recommendation signal (tracked=%d, seed=%s)", len(tracked), seed.id if seed else None)
        return RecommendationsResponse(items=[], basis=None, sources=sources)

    owned = OwnedIndex.from_tracked(tracked)
    query = CatalogQuery(q=build_basis_query(basis), max_results=MAX_RESULTS, language=language)
    candidates = filter_candidates(_search(catalog_search, query), language, owned)

    fallback_q = signals.fallback_query()
    if not candidates and fallback_q:
        logger.info("No candidates for q=%s, retrying with q=%s", query.q, fallback_q)
        fallback = CatalogQuery(q=fallback_q, max_results=FALLBACK_MAX_RESULTS, language=language)
        candidates = filter_candidates(_search(catalog_search, fallback), language, owned)

    items = [
        BookWithReason(**book.model_dump(), reason=assign_reason(book, signals))
        for book in candidates
    ]
    return RecommendationsResponse(items=items, basis=basis, sources=sources)


def random_discovery(
    tracked: List[LibraryItem],
    catalog_search: CatalogSearch,
    language: Optional[str] = "fr",
    rng: Optional[random.Random] = None,
    attempts: int = RANDOM_ATTEMPTS,
) -> List[BookWithReason]:
    """
    Pick a random subject (from the user's categories, else a fixed list) and
    a random result page; retry up to ``attempts`` times until something
    survives the language and cover/description filters.
    """
    rng = rng or random.Random()
    user_subjects = [
        category.strip()
        for item in tracked
        if item.book is not None
        for category in item.book.categories
        if len(category.strip()) >= RANDOM_MIN_SUBJECT_LENGTH
    ]
    subject_pool = user_subjects or FALLBACK_SUBJECTS

    for attempt in range(attempts):
        subject = rng.choice(subject_pool)
        start_index = rng.randrange(RANDOM_PAGE_COUNT) * RANDOM_PAGE_SIZE
        query = CatalogQuery(
            q=f"subject:{subject}",
            max_results=MAX_RESULTS,
            start_index=start_index,
            language=language,
            order_by="relevance",
        )
        books = filter_candidates(_search(catalog_search, query), language)[:RANDOM_MAX_ITEMS]
        if books:
            return [BookWithReason(**book.model_dump(), reason=REASON_RANDOM) for book in books]
        logger.debug("Random discovery attempt %d empty (subject=%s, start=%d)", attempt + 1, subject, start_index)

    return []
