from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from functools import wraps

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for

from app.wildlife.activity import log_activity
from app.wildlife.db import db_session
from app.wildlife.modules.accounts.service import AuthError, authenticate, get_user_by_id, register, touch_last_active
from app.wildlife.utils import safe_next

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds
_LAST_ACTIVE_RESOLUTION = timedelta(minutes=1)


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the users row named by the session's user id.
    The admin flag is read from that row, never from the session.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None

    user_id = session.get("user_id")
    if not user_id:
        return

    try:
        s = db_session()
        user = get_user_by_id(s, int(user_id))
        if not user:
            session.clear()
            return
        g.current_user = user
        if user.last_active is None or datetime.utcnow() - user.last_active > _LAST_ACTIVE_RESOLUTION:
            touch_last_active(s, user)
            s.commit()
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        session.clear()
        g.current_user = None


def anonymous_only(fn):
    """Signed-in users are sent to the gallery instead of the login/register pages."""

    @wraps(fn)
    def wrapped(*args, **kwargs):
        if getattr(g, "current_user", None):
            return redirect(url_for("gallery.index"))
        return fn(*args, **kwargs)

    return wrapped


@bp.get("/login")
@anonymous_only
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt)


@bp.post("/login")
@anonymous_only
def login_post():
    email = request.form.get("email")
    password = request.form.get("password")
    nxt = safe_next(request.form.get("next"))
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    _record_attempt(ip)

    s = db_session()
    try:
        user = authenticate(s, email, password)
    except AuthError as e:
        log_activity(None, None, "LOGIN_FAILED", f"email={(email or '').strip().lower()} reason={e.code.value}")
        flash(e.message, "danger")
        return redirect(url_for("auth.login_get", next=nxt) if nxt else url_for("auth.login_get"))
    except Exception:
        current_app.logger.exception("Login POST crashed (request_id=%s)", getattr(g, "request_id", None))
        flash("An error occurred during login", "danger")
        return redirect(url_for("auth.login_get"))

    session.regenerate()  # type: ignore[attr-defined]
    session["user_id"] = user.id
    _login_attempts[ip].clear()
    log_activity(user.id, user.username, "LOGIN")
    flash("Welcome back!", "success")
    return redirect(nxt or url_for("gallery.index"))


@bp.get("/register")
@anonymous_only
def register_get():
    return render_template("auth/register.html")


@bp.post("/register")
@anonymous_only
def register_post():
    s = db_session()
    try:
        user = register(
            s,
            request.form.get("username"),
            request.form.get("email"),
            request.form.get("password"),
            request.form.get("confirm_password"),
        )
        s.commit()
    except AuthError as e:
        s.rollback()
        flash(e.message, "danger")
        return redirect(url_for("auth.register_get"))
    except Exception:
        s.rollback()
        current_app.logger.exception("Registration crashed (request_id=%s)", getattr(g, "request_id", None))
        flash("An error occurred during registration", "danger")
        return redirect(url_for("auth.register_get"))

    log_activity(user.id, user.username, "REGISTER")
    flash("Registration successful! Please login.", "success")
    return redirect(url_for("auth.login_get"))


@bp.get("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        log_activity(user.id, user.username, "LOGOUT")
    session.clear()
    return redirect(url_for("auth.login_get"))
