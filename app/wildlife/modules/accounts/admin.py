from __future__ import annotations

from flask import Blueprint, flash, g, redirect, render_template, url_for

from app.wildlife.activity import log_activity
from app.wildlife.db import db_session
from app.wildlife.modules.accounts.service import (
    delete_user,
    get_user_by_id,
    is_admin,
    list_users_with_stats,
    make_admin,
    revoke_admin,
)
from app.wildlife.modules.feedback.service import get_user_feedback_count
from app.wildlife.rbac import admin_required

bp = Blueprint("admin_users", __name__)


@bp.get("/users")
@admin_required
def users_list():
    users = list_users_with_stats(db_session())
    user = g.current_user
    log_activity(user.id, user.username, "ADMIN_USERS_VIEW")
    return render_template("admin/users.html", users=users)


@bp.post("/users/<int:user_id>/make-admin")
@admin_required
def users_make_admin(user_id: int):
    s = db_session()
    target = get_user_by_id(s, user_id)
    if not target:
        flash("User not found", "danger")
        return redirect(url_for("admin_users.users_list"))

    if is_admin(s, user_id):
        flash(f"{target.username} is already an admin", "info")
        return redirect(url_for("admin_users.users_list"))

    make_admin(s, user_id)
    s.commit()
    me = g.current_user
    log_activity(me.id, me.username, "ADMIN_PROMOTE_USER", f"Promoted {target.username} to admin")
    flash(f"{target.username} is now an admin", "success")
    return redirect(url_for("admin_users.users_list"))


@bp.post("/users/<int:user_id>/revoke-admin")
@admin_required
def users_revoke_admin(user_id: int):
    me = g.current_user
    if user_id == me.id:
        flash("You cannot revoke your own admin rights", "danger")
        return redirect(url_for("admin_users.users_list"))

    s = db_session()
    target = get_user_by_id(s, user_id)
    if not target:
        flash("User not found", "danger")
        return redirect(url_for("admin_users.users_list"))

    revoke_admin(s, user_id)
    s.commit()
    log_activity(me.id, me.username, "ADMIN_REVOKE_USER", f"Revoked admin from {target.username}")
    flash(f"Admin rights revoked from {target.username}", "success")
    return redirect(url_for("admin_users.users_list"))


@bp.post("/users/<int:user_id>/delete")
@admin_required
def users_delete(user_id: int):
    me = g.current_user
    if user_id == me.id:
        flash("You cannot delete your own account", "danger")
        return redirect(url_for("admin_users.users_list"))

    s = db_session()
    target = get_user_by_id(s, user_id)
    if not target:
        flash("User not found", "danger")
        return redirect(url_for("admin_users.users_list"))

    username = target.username
    feedback_count = get_user_feedback_count(s, user_id)
    s.expunge(target)
    delete_user(s, user_id)
    s.commit()
    log_activity(me.id, me.username, "ADMIN_USER_DELETE", f"Deleted user {username} ({feedback_count} feedback)")
    flash(f"User {username} deleted along with {feedback_count} feedback entries", "success")
    return redirect(url_for("admin_users.users_list"))
