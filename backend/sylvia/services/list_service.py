"""Custom reading lists."""
from typing import List
import logging

from sqlalchemy.orm import Session, joinedload

from sylvia.models import Book, UserList, UserListBook
from sylvia.schemas.user_list import UserListCreate, UserListUpdate
from sylvia.services.errors import ConflictError, InvalidInputError, NotFoundError
from sylvia.services.profile_service import find_profile_by_username

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError("List name is required")
    return cleaned


def create_list(db: Session, user_id: str, payload: UserListCreate) -> UserList:
    user_list = UserList(
        user_id=user_id,
        name=_clean_name(payload.name),
        description=payload.description or None,
        is_public=payload.is_public,
    )
    db.add(user_list)
    db.commit()
    db.refresh(user_list)
    return user_list


def get_user_lists(db: Session, user_id: str) -> List[UserList]:
    return db.query(UserList).filter(UserList.user_id == user_id).order_by(UserList.created_at.desc()).all()


def get_list(db: Session, user_id: str, list_id: str) -> UserList:
    user_list = (
        db.query(UserList)
        .options(joinedload(UserList.items).joinedload(UserListBook.book))
        .filter(UserList.id == list_id, UserList.user_id == user_id)
        .first()
    )
    if user_list is None:
        raise NotFoundError(f"List {list_id} not found")
    return user_list


def update_list(db: Session, user_id: str, list_id: str, patch: UserListUpdate) -> UserList:
    user_list = get_list(db, user_id, list_id)
    changes = patch.model_dump(exclude_unset=True)
    if "name" in changes:
        changes["name"] = _clean_name(changes["name"])
    if "description" in changes:
        changes["description"] = changes["description"] or None
    if "is_public" in changes and changes["is_public"] is None:
        raise InvalidInputError("is_public cannot be null")
    for key, value in changes.items():
        setattr(user_list, key, value)
    db.commit()
    db.refresh(user_list)
    return user_list


def delete_list(db: Session, user_id: str, list_id: str) -> None:
    user_list = get_list(db, user_id, list_id)
    db.delete(user_list)
    db.commit()


def add_book_to_list(db: Session, user_id: str, list_id: str, book_id: str) -> UserListBook:
    get_list(db, user_id, list_id)
    if db.get(Book, book_id) is None:
        raise NotFoundError(f"Book {book_id} not found")
    if db.get(UserListBook, (list_id, book_id)) is not None:
        raise ConflictError("Book already in list")

    item = UserListBook(list_id=list_id, book_id=book_id)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_book_from_list(db: Session, user_id: str, list_id: str, book_id: str) -> None:
    get_list(db, user_id, list_id)
    item = db.get(UserListBook, (list_id, book_id))
    if item is None:
        raise NotFoundError(f"Book {book_id} is not in list {list_id}")
    db.delete(item)
    db.commit()


def get_public_list(db: Session, username: str, list_id: str) -> UserList:
    """A list shared by ``username``; private lists look like missing ones."""
    profile = find_profile_by_username(db, username)
    if profile is None:
        raise NotFoundError(f"No profile named {username}")
    user_list = get_list(db, profile.id, list_id)
    if not user_list.is_public:
        raise NotFoundError(f"List {list_id} not found")
    return user_list
