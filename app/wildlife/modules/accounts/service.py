"""
Accounts: credential checks, registration, and admin user management.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_, select, update
from werkzeug.security import check_password_hash, generate_password_hash

from app.wildlife.constants import MIN_PASSWORD_LENGTH
from app.wildlife.models import User
from app.wildlife.modules.feedback.models import Feedback

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class AuthErrorCode(Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_FIELDS = "missing_fields"
    PASSWORD_MISMATCH = "password_mismatch"
    WEAK_PASSWORD = "weak_password"
    USER_EXISTS = "user_exists"


class AuthError(Exception):
    def __init__(self, message: str, code: AuthErrorCode):
        super().__init__(message)
        self.message = message
        self.code = code


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def authenticate(s: "Session", email: str | None, password: str | None) -> User:
    """
    Return the user for a valid email/password pair. Unknown email and wrong
    password raise the same INVALID_CREDENTIALS error.
    """
    email = normalize_email(email)
    if not email or not password:
        raise AuthError("Email and password are required", AuthErrorCode.MISSING_CREDENTIALS)

    user = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not check_password_hash(user.password_hash, password):
        raise AuthError(INVALID_CREDENTIALS_MESSAGE, AuthErrorCode.INVALID_CREDENTIALS)
    return user


def register(
    s: "Session",
    username: str | None,
    email: str | None,
    password: str | None,
    confirm_password: str | None = None,
) -> User:
    username = (username or "").strip()
    email = normalize_email(email)
    password = password or ""

    if not username or not email or not password:
        raise AuthError("All fields are required", AuthErrorCode.MISSING_FIELDS)
    if confirm_password is not None and password != confirm_password:
        raise AuthError("Passwords do not match", AuthErrorCode.PASSWORD_MISMATCH)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", AuthErrorCode.WEAK_PASSWORD
        )

    existing = s.execute(
        select(User.id).where(or_(User.email == email, User.username == username))
    ).first()
    if existing:
        raise AuthError("User with this email or username already exists", AuthErrorCode.USER_EXISTS)

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
        is_admin=False,
    )
    s.add(user)
    s.flush()
    return user


def get_user_by_id(s: "Session", user_id: int) -> User | None:
    return s.get(User, user_id)


def touch_last_active(s: "Session", user: User) -> None:
    user.last_active = datetime.utcnow()


# ---------- Admin user management ----------

def list_users_with_stats(s: "Session") -> list[tuple[User, int]]:
    """All users, newest first, each paired with its feedback count."""
    feedback_count = func.count(Feedback.id).label("feedback_count")
    rows = s.execute(
        select(User, feedback_count)
        .outerjoin(Feedback, Feedback.user_id == User.id)
        .group_by(User.id)
        .order_by(User.created_at.desc(), User.id.desc())
    ).all()
    return [(u, int(c)) for u, c in rows]


def get_user_count(s: "Session") -> int:
    return int(s.execute(select(func.count(User.id))).scalar() or 0)


def get_admin_count(s: "Session") -> int:
    return int(s.execute(select(func.count(User.id)).where(User.is_admin.is_(True))).scalar() or 0)


def _set_admin(s: "Session", user_id: int, value: bool) -> bool:
    result = s.execute(update(User).where(User.id == user_id).values(is_admin=value))
    return (result.rowcount or 0) > 0


def make_admin(s: "Session", user_id: int) -> bool:
    return _set_admin(s, user_id, True)


def revoke_admin(s: "Session", user_id: int) -> bool:
    return _set_admin(s, user_id, False)


def is_admin(s: "Session", user_id: int) -> bool:
    return bool(s.execute(select(User.is_admin).where(User.id == user_id)).scalar())


def delete_user(s: "Session", user_id: int) -> bool:
    s.execute(delete(Feedback).where(Feedback.user_id == user_id))
    result = s.execute(delete(User).where(User.id == user_id))
    return (result.rowcount or 0) > 0
