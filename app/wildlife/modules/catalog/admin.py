from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from app.wildlife.activity import log_current_user_activity
from app.wildlife.cache import image_cache
from app.wildlife.db import db_session
from app.wildlife.modules.catalog.seed_data import SAMPLE_CATEGORIES, SAMPLE_CREATURES
from app.wildlife.modules.catalog.service import (
    CREATURE_TEXT_FIELDS,
    CatalogError,
    create_category,
    create_creature,
    delete_creature,
    get_all_categories,
    get_all_creatures,
    get_creature_by_id,
    seed_sample_data,
    update_creature,
)
from app.wildlife.modules.images.service import image_url_for, save_image_with_cache_invalidation
from app.wildlife.rbac import admin_required

bp = Blueprint("admin_catalog", __name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")


def _creature_payload() -> dict:
    payload = {"name": request.form.get("name"), "category_id": request.form.get("category_id")}
    for key in CREATURE_TEXT_FIELDS:
        payload[key] = request.form.get(key)
    return payload


@bp.get("/creatures")
@admin_required
def creatures_list():
    s = db_session()
    return render_template(
        "admin/creatures.html",
        creatures=get_all_creatures(s),
        categories=get_all_categories(s),
    )


@bp.get("/creatures/new")
@admin_required
def creatures_new_get():
    return render_template("admin/creature_form.html", creature=None, categories=get_all_categories(db_session()))


@bp.post("/creatures")
@admin_required
def creatures_new_post():
    s = db_session()
    try:
        creature = create_creature(s, _creature_payload())
        s.commit()
    except CatalogError as e:
        s.rollback()
        flash(e.message, "danger")
        return redirect(url_for("admin_catalog.creatures_new_get"))

    log_current_user_activity("ADMIN_CREATURE_CREATE", f"Created creature: {creature.name}")
    flash(f'Creature "{creature.name}" created successfully!', "success")
    return redirect(url_for("admin_catalog.creatures_list"))


@bp.get("/creatures/<int:creature_id>/edit")
@admin_required
def creatures_edit_get(creature_id: int):
    s = db_session()
    creature = get_creature_by_id(s, creature_id)
    if not creature:
        flash("Creature not found", "danger")
        return redirect(url_for("admin_catalog.creatures_list"))
    return render_template("admin/creature_form.html", creature=creature, categories=get_all_categories(s))


@bp.post("/creatures/<int:creature_id>")
@admin_required
def creatures_edit_post(creature_id: int):
    s = db_session()
    creature = get_creature_by_id(s, creature_id)
    if not creature:
        flash("Creature not found", "danger")
        return redirect(url_for("admin_catalog.creatures_list"))
    try:
        update_creature(s, creature, _creature_payload())
        s.commit()
    except CatalogError as e:
        s.rollback()
        flash(e.message, "danger")
        return redirect(url_for("admin_catalog.creatures_edit_get", creature_id=creature_id))

    log_current_user_activity("ADMIN_CREATURE_UPDATE", f"Updated creature: {creature.name}")
    flash(f'Creature "{creature.name}" updated successfully!', "success")
    return redirect(url_for("admin_catalog.creatures_list"))


@bp.post("/creatures/<int:creature_id>/delete")
@admin_required
def creatures_delete(creature_id: int):
    s = db_session()
    creature = get_creature_by_id(s, creature_id)
    if not creature:
        flash("Creature not found", "danger")
        return redirect(url_for("admin_catalog.creatures_list"))

    name = creature.name
    delete_creature(s, creature_id)
    s.commit()
    image_cache().invalidate(creature_id)
    log_current_user_activity("ADMIN_CREATURE_DELETE", f"Deleted creature: {name}")
    flash(f'Creature "{name}" deleted successfully!', "success")
    return redirect(url_for("admin_catalog.creatures_list"))


@bp.post("/creatures/<int:creature_id>/image")
@admin_required
def creatures_upload_image(creature_id: int):
    s = db_session()
    creature = get_creature_by_id(s, creature_id)
    if not creature:
        flash("Creature not found", "danger")
        return redirect(url_for("admin_catalog.creatures_list"))

    f = request.files.get("image")
    if not f or not f.filename:
        flash("Please choose an image file", "danger")
        return redirect(url_for("admin_catalog.creatures_edit_get", creature_id=creature_id))
    content_type = (f.mimetype or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        flash("Unsupported image type (use JPEG, PNG, GIF or WebP)", "danger")
        return redirect(url_for("admin_catalog.creatures_edit_get", creature_id=creature_id))
    data = f.read()
    if not data:
        flash("Uploaded file is empty", "danger")
        return redirect(url_for("admin_catalog.creatures_edit_get", creature_id=creature_id))

    save_image_with_cache_invalidation(s, image_cache(), creature_id, data, content_type)
    creature = get_creature_by_id(s, creature_id)
    creature.image_url = image_url_for(creature_id)
    s.commit()
    current_app.logger.info("Image stored (creature_id=%s bytes=%s)", creature_id, len(data))
    log_current_user_activity("ADMIN_IMAGE_UPLOAD", f"Uploaded image for {creature.name} ({len(data)} bytes)")
    flash(f'Image for "{creature.name}" updated', "success")
    return redirect(url_for("admin_catalog.creatures_edit_get", creature_id=creature_id))


@bp.post("/categories")
@admin_required
def categories_new_post():
    s = db_session()
    try:
        cat = create_category(s, request.form.get("name"), request.form.get("description"))
        s.commit()
    except CatalogError as e:
        s.rollback()
        flash(e.message, "danger")
        return redirect(url_for("admin_catalog.creatures_list"))

    log_current_user_activity("ADMIN_CATEGORY_CREATE", f"Created category: {cat.name}")
    flash(f'Category "{cat.name}" created successfully!', "success")
    return redirect(url_for("admin_catalog.creatures_list"))


@bp.post("/seed/reset")
@admin_required
def seed_reset():
    s = db_session()
    creature_ids = [c.id for c in get_all_creatures(s)]
    try:
        seed_sample_data(s, reset=True)
        s.commit()
    except Exception as e:
        s.rollback()
        current_app.logger.exception("Seed reset failed")
        flash(f"Error resetting database: {e.__class__.__name__}", "danger")
        return redirect(url_for("admin.index"))

    cache = image_cache()
    for creature_id in creature_ids:
        cache.invalidate(creature_id)
    log_current_user_activity("ADMIN_SEED_RESET", f"Reset database with {len(SAMPLE_CREATURES)} creatures")
    flash(
        f"Database reset! Added {len(SAMPLE_CATEGORIES)} categories and {len(SAMPLE_CREATURES)} creatures.",
        "success",
    )
    return redirect(url_for("admin.index"))


@bp.post("/seed/add")
@admin_required
def seed_add():
    s = db_session()
    try:
        result = seed_sample_data(s, reset=False)
        s.commit()
    except Exception as e:
        s.rollback()
        current_app.logger.exception("Seed add failed")
        flash(f"Error adding sample data: {e.__class__.__name__}", "danger")
        return redirect(url_for("admin.index"))

    log_current_user_activity("ADMIN_SEED_ADD", f"Added {result.categories} categories, {result.creatures} creatures")
    if result.categories == 0 and result.creatures == 0:
        flash("All sample data already exists!", "success")
    else:
        flash(f"Added {result.categories} categories and {result.creatures} creatures.", "success")
    return redirect(url_for("admin.index"))
