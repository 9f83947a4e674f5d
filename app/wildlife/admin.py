from __future__ import annotations

import os
import platform
import sys
import time
from datetime import datetime

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from sqlalchemy import text

from app.wildlife.activity import (
    clean_old_logs,
    count_logs,
    get_activity_stats,
    get_recent_logs,
    list_logs,
    log_current_user_activity,
)
from app.wildlife.cache import image_cache, ping, redis_client
from app.wildlife.constants import ACTIVITY_RETENTION_DAYS, LOGS_PER_PAGE
from app.wildlife.db import db_session
from app.wildlife.modules.accounts.service import get_admin_count, get_user_count
from app.wildlife.modules.catalog.service import get_category_count, get_creature_count
from app.wildlife.modules.feedback.service import get_feedback_count, get_recent_feedback
from app.wildlife.modules.images.service import get_image_count
from app.wildlife.rbac import admin_required
from app.wildlife.utils import parse_int

bp = Blueprint("admin", __name__)

_PROCESS_STARTED = time.monotonic()


def _format_duration(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


@bp.get("/")
@admin_required
def index():
    s = db_session()
    stats = {
        "user_count": get_user_count(s),
        "admin_count": get_admin_count(s),
        "category_count": get_category_count(s),
        "creature_count": get_creature_count(s),
        "feedback_count": get_feedback_count(s),
        "image_count": get_image_count(s),
        "log_count": count_logs(s),
    }
    activity_stats = get_activity_stats(s, 7)
    recent_logs = get_recent_logs(s, 10)
    recent_feedback = get_recent_feedback(s, 5)
    log_current_user_activity("ADMIN_DASHBOARD_VIEW")
    return render_template(
        "admin/dashboard.html",
        stats=stats,
        activity_stats=activity_stats,
        recent_logs=recent_logs,
        recent_feedback=recent_feedback,
    )


def _system_health() -> dict:
    info = {
        "platform": platform.system(),
        "arch": platform.machine(),
        "hostname": platform.node(),
        "python_version": sys.version.split()[0],
        "process_uptime": _format_duration(time.monotonic() - _PROCESS_STARTED),
        "cpu_cores": os.cpu_count(),
        "pid": os.getpid(),
    }
    if hasattr(os, "getloadavg"):
        info["cpu_load"] = [round(x, 2) for x in os.getloadavg()]
    return info


def _database_health() -> dict:
    s = db_session()
    engine = current_app.extensions["sqlalchemy_engine"]
    health: dict = {"status": "error", "message": "Not connected", "dialect": engine.dialect.name}
    try:
        started = time.perf_counter()
        if engine.dialect.name == "postgresql":
            row = s.execute(
                text("SELECT version() AS version, pg_database_size(current_database()) AS db_size")
            ).one()
            version = row.version.split(" ")[1]
            db_size = f"{round(row.db_size / 1024 / 1024, 2)} MB"
        else:
            version = s.execute(text("SELECT sqlite_version()")).scalar()
            db_size = None
        latency_ms = (time.perf_counter() - started) * 1000
        health = {
            "status": "healthy",
            "dialect": engine.dialect.name,
            "latency": f"{latency_ms:.1f}ms",
            "version": version,
            "db_size": db_size,
        }
    except Exception as e:
        s.rollback()
        current_app.logger.warning("Admin health DB check failed: %s", e)
        health["message"] = str(e)
        return health

    pool = engine.pool
    pool_stats = {"status": pool.status()}
    for name in ("size", "checkedin", "checkedout", "overflow"):
        fn = getattr(pool, name, None)
        if callable(fn):
            pool_stats[name] = fn()
    health["pool_stats"] = pool_stats
    return health


def _redis_health() -> dict:
    client = redis_client()
    if client is None:
        return {"status": "error", "message": "Not connected"}
    started = time.perf_counter()
    if not ping(client):
        return {"status": "error", "message": "Ping failed"}
    latency_ms = (time.perf_counter() - started) * 1000
    stats = image_cache().stats() or {}
    return {
        "status": "healthy",
        "latency": f"{latency_ms:.1f}ms",
        "cached_images": stats.get("cachedImages", 0),
        "memory_used": stats.get("memoryUsed", "unknown"),
    }


@bp.get("/health")
@admin_required
def health():
    system = _system_health()
    database = _database_health()
    redis_health = _redis_health()
    log_current_user_activity("ADMIN_HEALTH_VIEW")
    return render_template(
        "admin/health.html",
        system_health=system,
        db_health=database,
        redis_health=redis_health,
        checked_at=datetime.utcnow(),
    )


@bp.get("/logs")
@admin_required
def logs():
    s = db_session()
    page = max(parse_int(request.args.get("page"), 1) or 1, 1)
    total_logs = count_logs(s)
    total_pages = (total_logs + LOGS_PER_PAGE - 1) // LOGS_PER_PAGE
    return render_template(
        "admin/logs.html",
        logs=list_logs(s, page, LOGS_PER_PAGE),
        activity_stats=get_activity_stats(s, 7),
        pagination={"page": page, "total_pages": total_pages, "total_logs": total_logs},
    )


@bp.post("/logs/clean")
@admin_required
def logs_clean():
    days = parse_int(request.form.get("days"), ACTIVITY_RETENTION_DAYS)
    if days is None or days < 1:
        flash("Days must be a positive number", "danger")
        return redirect(url_for("admin.logs"))
    deleted = clean_old_logs(db_session(), days)
    log_current_user_activity("ADMIN_LOGS_CLEAN", f"Deleted {deleted} logs older than {days} days")
    flash(f"Cleaned {deleted} logs older than {days} days", "success")
    return redirect(url_for("admin.logs"))
