from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.orm import Session

from sylvia.core.auth import get_current_user
from sylvia.core.dependencies import DOMAIN_ERRORS, to_http_exception
from sylvia.database import get_db
from sylvia.models import Profile
from sylvia.schemas.goal import GoalResponse, GoalUpdate
from sylvia.services import goal_service

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("/{year}/{month}", response_model=GoalResponse)
def get_goal(
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal = goal_service.get_goal(db, user.id, year, month)
    if goal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No goal for this month",
        )
    return goal


@router.put("/{year}/{month}", response_model=GoalResponse)
def put_goal(
    payload: GoalUpdate,
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return goal_service.upsert_goal(
        db,
        user.id,
        year,
        month,
        target_books=payload.target_books,
        target_pages=payload.target_pages,
    )


@router.delete("/{year}/{month}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    year: int = Path(..., ge=1900, le=9999),
    month: int = Path(..., ge=1, le=12),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        goal_service.delete_goal(db, user.id, year, month)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
