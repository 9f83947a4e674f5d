from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from app.wildlife.constants import MAX_RATING, MIN_RATING
from app.wildlife.modules.catalog.models import Creature
from app.wildlife.modules.feedback.models import Feedback

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.wildlife.models import User


class FeedbackErrorCode(Enum):
    MISSING_COMMENT = "missing_comment"
    INVALID_RATING = "invalid_rating"
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"


class FeedbackError(Exception):
    def __init__(self, message: str, code: FeedbackErrorCode):
        super().__init__(message)
        self.message = message
        self.code = code


def parse_rating(raw) -> int:
    """Coerce form input to an int rating in range; raises INVALID_RATING otherwise."""
    try:
        rating = int(raw)
    except (TypeError, ValueError):
        raise FeedbackError(
            f"Please provide a valid rating ({MIN_RATING}-{MAX_RATING})", FeedbackErrorCode.INVALID_RATING
        )
    if rating < MIN_RATING or rating > MAX_RATING:
        raise FeedbackError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}", FeedbackErrorCode.INVALID_RATING
        )
    return rating


def get_feedback_for_creature(s: "Session", creature_id: int) -> list[Feedback]:
    return list(
        s.execute(
            select(Feedback)
            .where(Feedback.creature_id == creature_id)
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        ).scalars()
    )


def get_average_rating(s: "Session", creature_id: int) -> float | None:
    avg = s.execute(
        select(func.avg(Feedback.rating)).where(Feedback.creature_id == creature_id, Feedback.rating.isnot(None))
    ).scalar()
    return round(float(avg), 2) if avg is not None else None


def create_feedback(
    s: "Session",
    user_id: int,
    creature_id: int,
    comment: str | None,
    rating=None,
) -> Feedback:
    comment = (comment or "").strip()
    if not comment:
        raise FeedbackError("Comment is required", FeedbackErrorCode.MISSING_COMMENT)
    rating_value = parse_rating(rating) if rating not in (None, "") else None

    if s.get(Creature, creature_id) is None:
        raise FeedbackError("Creature not found", FeedbackErrorCode.NOT_FOUND)

    fb = Feedback(user_id=user_id, creature_id=creature_id, comment=comment, rating=rating_value)
    s.add(fb)
    s.flush()
    return fb


def delete_feedback(s: "Session", feedback_id: int, user: "User") -> int:
    """
    Delete feedback owned by `user` (admins may delete any). Returns the
    creature id the feedback belonged to.
    """
    fb = s.get(Feedback, feedback_id)
    if fb is None:
        raise FeedbackError("Feedback not found", FeedbackErrorCode.NOT_FOUND)
    if not user.is_admin and fb.user_id != user.id:
        raise FeedbackError("Not authorized to delete this feedback", FeedbackErrorCode.NOT_AUTHORIZED)
    creature_id = fb.creature_id
    s.delete(fb)
    s.flush()
    return creature_id


def get_feedback_count(s: "Session") -> int:
    return int(s.execute(select(func.count(Feedback.id))).scalar() or 0)


def get_user_feedback_count(s: "Session", user_id: int) -> int:
    return int(s.execute(select(func.count(Feedback.id)).where(Feedback.user_id == user_id)).scalar() or 0)


def get_recent_feedback(s: "Session", limit: int = 10) -> list[Feedback]:
    return list(
        s.execute(
            select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc()).limit(limit)
        ).scalars()
    )
