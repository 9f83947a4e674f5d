from __future__ import annotations

from flask import Blueprint, current_app, flash, g, jsonify, redirect, request, url_for

from app.wildlife.activity import log_activity
from app.wildlife.db import db_session
from app.wildlife.modules.feedback.service import (
    FeedbackError,
    FeedbackErrorCode,
    create_feedback,
    delete_feedback,
    get_feedback_for_creature,
    parse_rating,
)
from app.wildlife.rbac import login_required
from app.wildlife.utils import parse_int

bp = Blueprint("feedback", __name__)


@bp.post("/")
@login_required
def submit():
    user = g.current_user
    creature_id = parse_int(request.form.get("creature_id"))
    if not creature_id:
        flash("Creature not found", "danger")
        return redirect(url_for("gallery.index"))

    detail_url = url_for("gallery.creature_detail", creature_id=creature_id)
    s = db_session()
    try:
        rating = parse_rating(request.form.get("rating"))
        fb = create_feedback(s, user.id, creature_id, request.form.get("comment"), rating)
        s.commit()
    except FeedbackError as e:
        s.rollback()
        flash(e.message, "danger")
        if e.code == FeedbackErrorCode.NOT_FOUND:
            return redirect(url_for("gallery.index"))
        return redirect(detail_url)

    log_activity(user.id, user.username, "FEEDBACK_CREATE", f"creature_id={creature_id} feedback_id={fb.id}")
    flash("Thank you for your feedback!", "success")
    return redirect(detail_url)


@bp.post("/delete/<int:feedback_id>")
@login_required
def delete(feedback_id: int):
    user = g.current_user
    s = db_session()
    try:
        creature_id = delete_feedback(s, feedback_id, user)
        s.commit()
    except FeedbackError as e:
        s.rollback()
        flash(e.message, "danger")
        return redirect(url_for("gallery.index"))

    log_activity(user.id, user.username, "FEEDBACK_DELETE", f"feedback_id={feedback_id}")
    flash("Feedback deleted", "success")
    return redirect(url_for("gallery.creature_detail", creature_id=creature_id))


@bp.get("/api/<int:creature_id>")
@login_required
def api_list(creature_id: int):
    try:
        items = get_feedback_for_creature(db_session(), creature_id)
    except Exception:
        current_app.logger.exception("API feedback error (creature_id=%s)", creature_id)
        return jsonify({"error": "Server error"}), 500
    return jsonify([fb.to_dict() for fb in items])
