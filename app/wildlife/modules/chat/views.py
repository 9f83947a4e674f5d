from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.wildlife.db import db_session
from app.wildlife.modules.chat.service import ChatError, ChatErrorCode, ask
from app.wildlife.rbac import login_required

bp = Blueprint("chat", __name__)

_STATUS = {
    ChatErrorCode.MISSING_MESSAGE: 400,
    ChatErrorCode.NOT_CONFIGURED: 503,
    ChatErrorCode.QUOTA_EXCEEDED: 503,
    ChatErrorCode.INVALID_API_KEY: 503,
    ChatErrorCode.UPSTREAM: 500,
}


@bp.post("/")
@login_required
def chat():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    try:
        reply = ask(db_session(), payload.get("message"), payload.get("context"))
    except ChatError as e:
        return jsonify({"error": e.message}), _STATUS[e.code]
    return jsonify({"reply": reply})
