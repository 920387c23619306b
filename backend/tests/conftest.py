"""Pytest configuration for backend tests."""
import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Never touch a real database from tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sylvia.database import Base, get_db  # noqa: E402
import sylvia.models  # noqa: E402,F401
from sylvia.core.auth import get_current_user  # noqa: E402
from sylvia.core.dependencies import get_catalog  # noqa: E402
from sylvia.main import app  # noqa: E402
from sylvia.models import Book, Profile  # noqa: E402
from sylvia.schemas.book import BookRecord  # noqa: E402
from sylvia.services.catalog import CatalogQuery, CatalogUnavailableError  # noqa: E402


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so every session (and the
    TestClient's worker thread) sees the same tables.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    yield session
    session.close()


class FakeCatalog:
    """
    Stand-in for GoogleBooksClient.

    ``results`` maps a query string to the books returned for it; ``handler``
    overrides the lookup entirely. Every query is recorded in ``queries``.
    """

    def __init__(self, results: Optional[Dict[str, List[BookRecord]]] = None, fail: bool = False):
        self.results = results or {}
        self.fail = fail
        self.handler: Optional[Callable[[CatalogQuery], List[BookRecord]]] = None
        self.volumes: Dict[str, BookRecord] = {}
        self.queries: List[CatalogQuery] = []

    def search(self, query: CatalogQuery) -> List[BookRecord]:
        self.queries.append(query)
        if self.fail:
            raise CatalogUnavailableError("catalog down")
        if self.handler is not None:
            return self.handler(query)
        return list(self.results.get(query.q, []))

    def __call__(self, query: CatalogQuery) -> List[BookRecord]:
        return self.search(query)

    def get_volume(self, volume_id: str) -> BookRecord:
        if self.fail or volume_id not in self.volumes:
            raise CatalogUnavailableError(f"volume {volume_id} unavailable")
        return self.volumes[volume_id]


def make_book(book_id: str, **overrides) -> BookRecord:
    """A catalog book that passes the cover/description/language filters."""
    data = {
        "id": book_id,
        "title": f"Book {book_id}",
        "authors": ["Some Author"],
        "cover_url": f"https://books.google.com/books/content?id={book_id}&zoom=2",
        "description": "A description.",
        "categories": ["Fiction"],
        "language": "fr",
    }
    data.update(overrides)
    return BookRecord(**data)


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def user(db: Session) -> Profile:
    profile = Profile(id="user-1", email="reader@example.com", username="reader")
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def add_stored_book(db: Session):
    def _add(book_id: str, **overrides) -> Book:
        book = Book(**make_book(book_id, **overrides).model_dump())
        db.add(book)
        db.commit()
        return book
    return _add


@pytest.fixture
def client(db: Session, user: Profile, catalog: FakeCatalog):
    """
    TestClient with the database, the authenticated user and the catalog
    replaced. Used without a ``with`` block so the startup hook (init_db on
    the configured database) does not run.
    """
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_catalog] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db: Session, catalog: FakeCatalog):
    """TestClient with real authentication (no user override)."""
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()
