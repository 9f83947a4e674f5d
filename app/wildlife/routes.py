import time
from datetime import datetime

from flask import Blueprint, current_app, g, jsonify, redirect, url_for

from app.wildlife.cache import ping, redis_client
from app.wildlife.db import db_session, ping_db

bp = Blueprint("routes", __name__)

_STARTED = time.monotonic()


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


@bp.get("/")
def index():
    if getattr(g, "current_user", None):
        return redirect(url_for("gallery.index"))
    return redirect(url_for("auth.login_get"))


@bp.get("/health")
def health():
    """Liveness plus build info. No DB access."""
    return jsonify(
        {
            "status": "healthy",
            "version": current_app.config.get("APP_VERSION"),
            "timestamp": _now(),
            "uptime": round(time.monotonic() - _STARTED, 3),
        }
    )


@bp.get("/health/ready")
def health_ready():
    """
    Readiness: the database must answer SELECT 1. Redis is reported but the
    app serves without it, so it never fails the probe.
    """
    checks = {
        "database": ping_db(db_session()),
        "redis": ping(redis_client()),
    }
    ready = checks["database"]
    body = {"status": "ready" if ready else "degraded", "timestamp": _now(), "checks": checks}
    return jsonify(body), (200 if ready else 503)


@bp.get("/health/live")
def health_live():
    return jsonify({"status": "alive", "timestamp": _now()})
