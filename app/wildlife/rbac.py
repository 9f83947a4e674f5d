from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import flash, g, jsonify, redirect, request, url_for

from app.wildlife.models import User


def _wants_json() -> bool:
    return request.is_json or "/api/" in request.path or request.path.startswith("/chat")


def _login_redirect():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_user() is None:
            if _wants_json():
                return jsonify({"error": "Authentication required"}), 401
            flash("Please login to access this page", "danger")
            return _login_redirect()
        return fn(*args, **kwargs)

    return wrapped


def admin_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    g.current_user is reloaded from the users table on every request, so a
    revoked admin loses access on their next request.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user = current_user()
        if user is None:
            flash("Please login to access this page", "danger")
            return _login_redirect()
        if not user.is_admin:
            if _wants_json():
                return jsonify({"error": "Admin access required"}), 403
            flash("Admin access required", "danger")
            return redirect(url_for("gallery.index"))
        return fn(*args, **kwargs)

    return wrapped
