"""
Best-effort activity trail.

log_activity() writes in its own short transaction so a logging failure can
never roll back or fail the request that triggered it; errors only reach the
server log. Read-side helpers aggregate over a trailing window of days, bound
as a query parameter.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from flask import Flask, Request, current_app, g, has_request_context, request
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.wildlife.constants import (
    ACTIVITY_RETENTION_DAYS,
    ACTIVITY_SKIP_PATHS,
    ACTIVITY_SKIP_SUFFIXES,
    ACTIVITY_STATS_DAYS,
    LOGS_PER_PAGE,
)
from app.wildlife.models import ActivityLog

logger = logging.getLogger(__name__)


@dataclass
class ActivityStats:
    daily_activity: list[dict[str, Any]] = field(default_factory=list)
    top_actions: list[dict[str, Any]] = field(default_factory=list)
    active_users: list[dict[str, Any]] = field(default_factory=list)
    totals: dict[str, int] = field(default_factory=dict)


def _request_meta(req: Request | None) -> tuple[str, str]:
    if req is None:
        return "system", "system"
    return (req.remote_addr or "unknown"), (req.headers.get("User-Agent") or "unknown")


def log_activity(
    user_id: int | None,
    username: str | None,
    action: str,
    details: str | None = None,
    req: Request | None = None,
    *,
    app: Flask | None = None,
) -> None:
    if req is None and has_request_context():
        req = request
    ip_address, user_agent = _request_meta(req)
    try:
        app = app or current_app._get_current_object()  # type: ignore[attr-defined]
        sm = app.extensions["sqlalchemy_sessionmaker"]
        s: Session = sm()
        try:
            s.add(
                ActivityLog(
                    user_id=user_id,
                    username=username,
                    action=action[:100],
                    details=details,
                    ip_address=ip_address[:45],
                    user_agent=user_agent,
                )
            )
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()
    except Exception as e:
        logger.error("Activity log error (action=%s): %s", action, e)


def log_current_user_activity(action: str, details: str | None = None) -> None:
    user = getattr(g, "current_user", None)
    log_activity(user.id if user else None, user.username if user else None, action, details)


def should_log_page_view(path: str) -> bool:
    if any(p in path for p in ACTIVITY_SKIP_PATHS):
        return False
    return not path.endswith(ACTIVITY_SKIP_SUFFIXES)


def log_page_view() -> None:
    """after_request hook body: record "<METHOD> <path>" for signed-in users."""
    user = getattr(g, "current_user", None)
    if not user or not should_log_page_view(request.path):
        return
    log_activity(user.id, user.username, f"{request.method} {request.path}")


def _cutoff(days: int) -> datetime:
    return datetime.utcnow() - timedelta(days=int(days))


def get_activity_stats(s: Session, days: int = ACTIVITY_STATS_DAYS) -> ActivityStats | None:
    cutoff = _cutoff(days)
    recent = ActivityLog.created_at > cutoff
    try:
        day_col = func.date(ActivityLog.created_at).label("date")
        daily = s.execute(
            select(day_col, func.count(ActivityLog.id).label("count"))
            .where(recent)
            .group_by(day_col)
            .order_by(day_col.desc())
        ).all()

        action_count = func.count(ActivityLog.id).label("count")
        top_actions = s.execute(
            select(ActivityLog.action, action_count)
            .where(recent)
            .group_by(ActivityLog.action)
            .order_by(action_count.desc())
            .limit(10)
        ).all()

        user_count = func.count(ActivityLog.id).label("activity_count")
        active_users = s.execute(
            select(ActivityLog.username, user_count, func.max(ActivityLog.created_at).label("last_active"))
            .where(recent, ActivityLog.username.isnot(None))
            .group_by(ActivityLog.username)
            .order_by(user_count.desc())
            .limit(10)
        ).all()

        totals = s.execute(
            select(
                func.count(ActivityLog.id).label("total_activities"),
                func.count(func.distinct(ActivityLog.user_id)).label("unique_users"),
            ).where(recent)
        ).one()
    except Exception as e:
        s.rollback()
        logger.error("Activity stats error: %s", e)
        return None

    return ActivityStats(
        daily_activity=[{"date": str(d), "count": int(c)} for d, c in daily],
        top_actions=[{"action": a, "count": int(c)} for a, c in top_actions],
        active_users=[
            {"username": u, "activity_count": int(c), "last_active": last} for u, c, last in active_users
        ],
        totals={"total_activities": int(totals.total_activities or 0), "unique_users": int(totals.unique_users or 0)},
    )


def get_recent_logs(s: Session, limit: int = 50) -> list[ActivityLog]:
    try:
        return list(
            s.execute(
                select(ActivityLog).order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)
            ).scalars()
        )
    except Exception as e:
        s.rollback()
        logger.error("Recent logs error: %s", e)
        return []


def count_logs(s: Session) -> int:
    return int(s.execute(select(func.count(ActivityLog.id))).scalar() or 0)


def list_logs(s: Session, page: int = 1, per_page: int = LOGS_PER_PAGE) -> list[ActivityLog]:
    page = max(page, 1)
    return list(
        s.execute(
            select(ActivityLog)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(per_page)
            .offset((page - 1) * per_page)
        ).scalars()
    )


def clean_old_logs(s: Session, days: int = ACTIVITY_RETENTION_DAYS) -> int:
    """Delete rows older than `days`; returns the number removed (0 on failure)."""
    try:
        result = s.execute(delete(ActivityLog).where(ActivityLog.created_at < _cutoff(days)))
        s.commit()
        return int(result.rowcount or 0)
    except Exception as e:
        s.rollback()
        logger.error("Clean logs error: %s", e)
        return 0
