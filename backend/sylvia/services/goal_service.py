from typing import Optional
import logging

from sqlalchemy.orm import Session

from sylvia.models import UserGoal
from sylvia.services.errors import NotFoundError

logger = logging.getLogger(__name__)


def get_goal(db: Session, user_id: str, year: int, month: int) -> Optional[UserGoal]:
    return db.get(UserGoal, (user_id, year, month))


def upsert_goal(
    db: Session,
    user_id: str,
    year: int,
    month: int,
    target_books: Optional[int] = None,
    target_pages: Optional[int] = None,
) -> UserGoal:
    """Set the monthly targets; a 0 target is stored as "no target"."""
    goal = get_goal(db, user_id, year, month)
    if goal is None:
        goal = UserGoal(user_id=user_id, year=year, month=month)
        db.add(goal)
    goal.target_books = target_books or None
    goal.target_pages = target_pages or None
    db.commit()
    db.refresh(goal)
    logger.info(
        "Goal set user=%s %04d-%02d books=%s pages=%s",
        user_id, year, month, goal.target_books, goal.target_pages,
    )
    return goal


def delete_goal(db: Session, user_id: str, year: int, month: int) -> None:
    goal = get_goal(db, user_id, year, month)
    if goal is None:
        raise NotFoundError(f"No goal for {year:04d}-{month:02d}")
    db.delete(goal)
    db.commit()
