from __future__ import annotations

from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for

from app.wildlife.db import db_session
from app.wildlife.modules.catalog.service import (
    get_all_categories,
    get_all_creatures,
    get_category_by_id,
    get_creature_by_id,
    search_creatures,
)
from app.wildlife.modules.feedback.service import get_average_rating, get_feedback_for_creature
from app.wildlife.rbac import login_required

bp = Blueprint("gallery", __name__)


@bp.get("/")
@login_required
def index():
    s = db_session()
    return render_template(
        "gallery/index.html",
        title="Animal & Bird Gallery",
        categories=get_all_categories(s),
        creatures=get_all_creatures(s),
        current_category=None,
    )


@bp.get("/category/<int:category_id>")
@login_required
def category(category_id: int):
    s = db_session()
    current = get_category_by_id(s, category_id)
    if current is None:
        flash("Category not found", "danger")
        return redirect(url_for("gallery.index"))
    return render_template(
        "gallery/index.html",
        title=f"{current.name} Gallery",
        categories=get_all_categories(s),
        creatures=get_all_creatures(s, category_id),
        current_category=current,
    )


@bp.get("/creature/<int:creature_id>")
@login_required
def creature_detail(creature_id: int):
    s = db_session()
    creature = get_creature_by_id(s, creature_id)
    if creature is None:
        flash("Creature not found", "danger")
        return redirect(url_for("gallery.index"))

    feedback = get_feedback_for_creature(s, creature_id)
    avg = get_average_rating(s, creature_id)
    return render_template(
        "gallery/detail.html",
        title=creature.name,
        creature=creature,
        feedback=feedback,
        avg_rating=f"{avg:.1f}" if avg is not None else "No ratings",
        feedback_count=len(feedback),
    )


@bp.get("/api/creature/<int:creature_id>")
@login_required
def api_creature(creature_id: int):
    creature = get_creature_by_id(db_session(), creature_id)
    if creature is None:
        return jsonify({"error": "Creature not found"}), 404
    return jsonify(creature.to_dict())


@bp.get("/api/search")
@login_required
def api_search():
    try:
        creatures = search_creatures(db_session(), request.args.get("q") or "")
    except Exception:
        current_app.logger.exception("Search error")
        return jsonify({"error": "Server error"}), 500
    return jsonify([c.to_dict() for c in creatures])
