"""Tests for the recommendation scorer and random discovery."""
import random

from conftest import FakeCatalog, make_book
from sylvia.schemas.user_book import LibraryItem
from sylvia.services.recommendation_engine import (
    FALLBACK_MAX_RESULTS,
    FALLBACK_SUBJECTS,
    MAX_RESULTS,
    RANDOM_MAX_ITEMS,
    REASON_GENERIC,
    REASON_RANDOM,
    assign_reason,
    build_basis_query,
    compute_signals,
    random_discovery,
    recommend,
)


def tracked(book_id, in_library=True, in_wishlist=False, rating=None, **book_fields):
    return LibraryItem(
        book_id=book_id,
        in_library=in_library,
        in_wishlist=in_wishlist,
        rating=rating,
        book=make_book(book_id, **book_fields),
    )


def test_top_categories_ranked_by_count():
    items = [
        tracked("a", categories=["Fiction"]),
        tracked("b", categories=["Fiction", "History"]),
        tracked("c", categories=["Fiction"]),
    ]
    signals = compute_signals(items)
    assert signals.top_categories == ["Fiction", "History"]
    assert signals.basis().type == "categories"


def test_seed_only_gives_seed_categories():
    signals = compute_signals([], seed=make_book("seed", categories=["Fantasy"]))
    assert signals.top_categories == ["Fantasy"]


def test_seed_boost_outranks_library_tallies():
    items = [
        tracked("a", categories=["Fiction"]),
        tracked("b", categories=["Fiction"]),
    ]
    signals = compute_signals(items, seed=make_book("seed", categories=["Poetry"]))
    assert signals.top_categories[0] == "Poetry"


def test_at_most_three_categories_two_authors_two_titles():
    items = [
        tracked(str(i), categories=[f"Cat{i}"], authors=[f"Author{i}"], title=f"Title{i}")
        for i in range(5)
    ]
    signals = compute_signals(items)
    assert signals.top_categories == ["Cat0", "Cat1", "Cat2"]
    assert signals.top_authors == ["Author0", "Author1"]
    assert signals.top_titles == ["Title0", "Title1"]


def test_titles_weighted_by_rating():
    items = [
        tracked("a", title="Dune", rating=None, categories=[]),
        tracked("b", title="Emma", rating=5, categories=[]),
    ]
    assert compute_signals(items).top_titles == ["Emma", "Dune"]


def test_basis_falls_back_to_authors_then_titles():
    by_author = compute_signals([tracked("a", categories=[], authors=["Le Guin"])])
    assert by_author.basis().type == "authors"

    by_title = compute_signals([tracked("a", categories=[], authors=[], title="Solaris")])
    assert by_title.basis().type == "titles"
    assert by_title.basis().values == ["Solaris"]


def test_basis_query():
    signals = compute_signals([tracked("a", categories=["Fiction", "History"])])
    assert build_basis_query(signals.basis()) == "subject:Fiction OR subject:History"


def test_no_signal_returns_empty_without_calling_catalog():
    catalog = FakeCatalog()
    response = recommend([], catalog)
    assert response.items == []
    assert response.basis is None
    assert catalog.queries == []


def test_candidates_matching_owned_isbn13_are_excluded():
    owned = tracked("owned", categories=["Fiction"], isbn13="9780000000001")
    catalog = FakeCatalog({
        "subject:Fiction": [
            make_book("other-edition", isbn13="9780000000001"),
            make_book("fresh", isbn13="9780000000002"),
        ],
    })
    response = recommend([owned], catalog)
    assert [b.id for b in response.items] == ["fresh"]


def test_candidates_filtered_by_id_language_cover_and_description():
    owned = tracked("owned", categories=["Fiction"])
    catalog = FakeCatalog({
        "subject:Fiction": [
            make_book("owned"),
            make_book("english", language="en"),
            make_book("no-cover", cover_url=None),
            make_book("no-description", description=None),
            make_book("keep"),
        ],
    })
    response = recommend([owned], catalog, language="fr")
    assert [b.id for b in response.items] == ["keep"]


def test_query_uses_language_and_page_size():
    catalog = FakeCatalog()
    recommend([tracked("a", categories=["Fiction"])], catalog, language="fr")
    first = catalog.queries[0]
    assert first.q == "subject:Fiction"
    assert first.max_results == MAX_RESULTS
    assert first.language == "fr"


def test_fallback_query_on_empty_first_phase():
    item = tracked("a", categories=["Fiction"], authors=["Ursula K. Le Guin"])
    catalog = FakeCatalog({"inauthor:Ursula K. Le Guin": [make_book("b", categories=[])]})
    response = recommend([item], catalog)
    assert [q.q for q in catalog.queries] == ["subject:Fiction", "inauthor:Ursula K. Le Guin"]
    assert catalog.queries[1].max_results == FALLBACK_MAX_RESULTS
    assert [b.id for b in response.items] == ["b"]


def test_catalog_failure_gives_empty_items():
    catalog = FakeCatalog(fail=True)
    response = recommend([tracked("a", categories=["Fiction"])], catalog)
    assert response.items == []
    assert response.basis.type == "categories"


def test_sources_count_library_and_wishlist():
    items = [
        tracked("a", in_library=True),
        tracked("b", in_library=False, in_wishlist=True),
        tracked("c", in_library=False, in_wishlist=True),
    ]
    response = recommend(items, FakeCatalog())
    assert response.sources.library == 1
    assert response.sources.wishlist == 2


def test_reasons_prefer_category_then_author_then_title():
    signals = compute_signals([
        tracked("a", categories=["Fiction"], authors=["Jane Austen"], title="Emma"),
    ])
    assert assign_reason(make_book("x", categories=["FICTION"]), signals) == "Similar category: fiction"
    assert assign_reason(make_book("y", categories=["Poetry"], authors=["Jane Austen"]), signals) == "Similar author: jane austen"
    assert assign_reason(make_book("z", categories=[], authors=[], title="Emma: Annotated"), signals) == "Similar title: emma"
    assert assign_reason(make_book("w", categories=[], authors=[], title="Other"), signals) == REASON_GENERIC


def test_random_discovery_uses_user_subjects():
    catalog = FakeCatalog()
    catalog.handler = lambda query: [make_book(f"r{i}") for i in range(20)]
    items = random_discovery([tracked("a", categories=["Mystery"])], catalog, rng=random.Random(7))

    assert len(items) == RANDOM_MAX_ITEMS
    assert all(item.reason == REASON_RANDOM for item in items)
    query = catalog.queries[0]
    assert query.q == "subject:Mystery"
    assert query.start_index % 10 == 0
    assert 0 <= query.start_index <= 70


def test_random_discovery_falls_back_to_fixed_subjects_and_retries():
    catalog = FakeCatalog()
    items = random_discovery([], catalog, rng=random.Random(1))
    assert items == []
    assert len(catalog.queries) == 3
    for query in catalog.queries:
        assert query.q.split(":", 1)[1] in FALLBACK_SUBJECTS


def test_random_discovery_ignores_short_categories():
    catalog = FakeCatalog()
    random_discovery([tracked("a", categories=["SF"])], catalog, rng=random.Random(3))
    assert catalog.queries[0].q.split(":", 1)[1] in FALLBACK_SUBJECTS
