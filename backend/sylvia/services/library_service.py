"""
User library store: catalog book upserts and the per-user tracked-book rows.

Membership rule: the library is authoritative. Adding a book to the library
clears its wishlist flag, while asking to wishlist a book that is (or is
being) put in the library is refused with AlreadyInLibraryError.
"""
from typing import List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from sylvia.models import Book, UserBook
from sylvia.schemas.book import BookRecord
from sylvia.schemas.user_book import AddUserBookResponse, LibraryItem, UserBookUpdate
from sylvia.services.errors import AlreadyInLibraryError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = {"in_library", "in_wishlist", "is_public_review"}


def upsert_book(db: Session, record: BookRecord) -> Book:
    """Insert or refresh a catalog book (flushes, does not commit)."""
    data = record.model_dump()
    book = db.get(Book, record.id)
    if book is None:
        book = Book(**data)
        db.add(book)
    else:
        for key, value in data.items():
            setattr(book, key, value)
    db.flush()
    return book


def get_user_book(db: Session, user_id: str, book_id: str) -> Optional[UserBook]:
    return db.query(UserBook).filter(
        UserBook.user_id == user_id,
        UserBook.book_id == book_id,
    ).first()


def add_user_book(
    db: Session,
    user_id: str,
    record: BookRecord,
    in_library: bool = False,
    in_wishlist: bool = False,
) -> AddUserBookResponse:
    """Store the book and merge the requested membership into the user's row."""
    existing = get_user_book(db, user_id, record.id)
    was_in_library = bool(existing and existing.in_library)
    was_in_wishlist = bool(existing and existing.in_wishlist)

    if in_wishlist and (was_in_library or in_library):
        raise AlreadyInLibraryError("Book is already in the library")

    next_in_library = was_in_library or in_library
    next_in_wishlist = was_in_wishlist or in_wishlist
    if in_library and was_in_wishlist:
        next_in_wishlist = False

    upsert_book(db, record)
    if existing is None:
        existing = UserBook(user_id=user_id, book_id=record.id)
        db.add(existing)
    existing.in_library = next_in_library
    existing.in_wishlist = next_in_wishlist
    db.commit()

    logger.info(
        "user_book upsert user=%s book=%s library=%s wishlist=%s",
        user_id, record.id, next_in_library, next_in_wishlist,
    )
    return AddUserBookResponse(
        ok=True,
        already_in_library=was_in_library,
        already_in_wishlist=was_in_wishlist,
    )


def update_user_book(db: Session, user_id: str, book_id: str, patch: UserBookUpdate) -> UserBook:
    """Apply the fields present in ``patch``; explicit nulls clear nullable fields."""
    row = get_user_book(db, user_id, book_id)
    if row is None:
        raise NotFoundError(f"Book {book_id} is not tracked")

    changes = patch.model_dump(exclude_unset=True)
    for key in NON_NULLABLE_FIELDS:
        if key in changes and changes[key] is None:
            raise InvalidInputError(f"{key} cannot be null")

    next_in_library = changes.get("in_library", row.in_library)
    if changes.get("in_wishlist") and next_in_library:
        raise AlreadyInLibraryError("Book is already in the library")
    if changes.get("in_library"):
        changes["in_wishlist"] = False

    for key, value in changes.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def remove_user_book(db: Session, user_id: str, book_id: str) -> None:
    row = get_user_book(db, user_id, book_id)
    if row is None:
        raise NotFoundError(f"Book {book_id} is not tracked")
    db.delete(row)
    db.commit()


def _user_books_query(db: Session, user_id: str):
    return (
        db.query(UserBook)
        .options(joinedload(UserBook.book))
        .filter(UserBook.user_id == user_id)
        .order_by(UserBook.added_at.desc())
    )


def list_library(db: Session, user_id: str) -> List[UserBook]:
    return _user_books_query(db, user_id).filter(UserBook.in_library.is_(True)).all()


def list_wishlist(db: Session, user_id: str) -> List[UserBook]:
    return _user_books_query(db, user_id).filter(UserBook.in_wishlist.is_(True)).all()


def list_tracked(db: Session, user_id: str) -> List[UserBook]:
    """Rows that are in the library or on the wishlist."""
    return _user_books_query(db, user_id).filter(
        or_(UserBook.in_library.is_(True), UserBook.in_wishlist.is_(True))
    ).all()


def to_library_items(rows: List[UserBook]) -> List[LibraryItem]:
    return [LibraryItem.model_validate(row) for row in rows]


def get_book(db: Session, book_id: str) -> Optional[BookRecord]:
    book = db.get(Book, book_id)
    if book is None:
        return None
    return BookRecord.model_validate(book)
