from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List

from sylvia.core.auth import get_current_user
from sylvia.core.dependencies import DOMAIN_ERRORS, to_http_exception
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.user_list import (
    AddListBookRequest,
    UserListCreate,
    UserListDetail,
    UserListItem,
    UserListResponse,
    UserListUpdate,
)
from sylvia.services import list_service

router = APIRouter(prefix="/lists", tags=["lists"])


@router.post("", response_model=UserListResponse, status_code=status.HTTP_201_CREATED)
def create_list(
    payload: UserListCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return list_service.create_list(db, user.id, payload)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.get("", response_model=List[UserListResponse])
def get_lists(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_service.get_user_lists(db, user.id)


@router.get("/{list_id}", response_model=UserListDetail)
def get_list(
    list_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return list_service.get_list(db, user.id, list_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.patch("/{list_id}", response_model=UserListResponse)
def update_list(
    list_id: str,
    patch: UserListUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return list_service.update_list(db, user.id, list_id, patch)
    except DOMAIN_ERRORS as e:
        db.rollback()
        raise to_http_exception(e)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_list(
    list_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        list_service.delete_list(db, user.id, list_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{list_id}/books", response_model=UserListItem, status_code=status.HTTP_201_CREATED)
def add_book(
    list_id: str,
    payload: AddListBookRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return list_service.add_book_to_list(db, user.id, list_id, payload.book_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.delete("/{list_id}/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_book(
    list_id: str,
    book_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        list_service.remove_book_from_list(db, user.id, list_id, book_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
