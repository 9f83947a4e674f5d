from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, redirect, request

from app.wildlife.cache import image_cache
from app.wildlife.constants import IMAGE_MAX_AGE
from app.wildlife.db import db_session
from app.wildlife.modules.images.service import (
    SOURCE_CACHE,
    ImageNotFound,
    compute_etag,
    get_image_with_cache,
)

bp = Blueprint("images", __name__)


@bp.get("/cache/stats")
def cache_stats():
    stats = image_cache().stats()
    if stats is None:
        return jsonify({"error": "Redis not available"})
    return jsonify(stats)


@bp.get("/<int(signed=True):creature_id>")
def serve_image(creature_id: int):
    if creature_id <= 0:
        return jsonify({"error": "Invalid creature ID"}), 400

    try:
        result = get_image_with_cache(db_session(), image_cache(), creature_id)
    except ImageNotFound:
        return redirect(current_app.config["PLACEHOLDER_NOT_FOUND_URL"])
    except Exception:
        current_app.logger.exception(
            "Image serve error (creature_id=%s request_id=%s)", creature_id, getattr(g, "request_id", None)
        )
        return redirect(current_app.config["PLACEHOLDER_ERROR_URL"])

    etag = compute_etag(result.data)
    x_cache = "HIT" if result.source == SOURCE_CACHE else "MISS"

    if etag in request.if_none_match:
        resp = current_app.response_class(status=304)
        resp.set_etag(etag)
        resp.headers["X-Cache"] = x_cache
        return resp

    resp = current_app.response_class(result.data, mimetype=result.content_type)
    resp.headers["Content-Type"] = result.content_type
    resp.headers["Content-Length"] = str(len(result.data))
    resp.headers["Cache-Control"] = f"public, max-age={IMAGE_MAX_AGE}"
    resp.set_etag(etag)
    resp.headers["X-Cache"] = x_cache
    return resp
