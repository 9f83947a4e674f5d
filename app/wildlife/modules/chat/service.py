"""
Chat assistant: builds a system prompt from the catalog and forwards the
user's message to the OpenAI chat completions API.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable

import openai
from flask import current_app
from openai import OpenAI

from app.wildlife.modules.catalog.service import get_all_creatures

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.wildlife.modules.catalog.models import Creature

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
TEMPERATURE = 0.7
EMPTY_REPLY = "Sorry, I could not generate a response."


class ChatErrorCode(Enum):
    MISSING_MESSAGE = "missing_message"
    NOT_CONFIGURED = "not_configured"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_API_KEY = "invalid_api_key"
    UPSTREAM = "upstream"


class ChatError(Exception):
    def __init__(self, message: str, code: ChatErrorCode):
        super().__init__(message)
        self.message = message
        self.code = code


def build_system_prompt(creatures: Iterable["Creature"], context: str | None = None) -> str:
    lines = []
    for c in creatures:
        description = (c.description or "No description")[:100]
        lines.append(f"- {c.name} ({c.category_name}): {description}...")
    parts = [
        "You are a helpful assistant for an animal and bird gallery website.",
        "You help users learn about various animals and birds. Be friendly, informative, and educational.",
        "",
        "Here are the animals and birds in our gallery:",
        "\n".join(lines),
        "",
    ]
    if context:
        parts.append(f"Current context: The user is viewing {context}")
        parts.append("")
    parts.append(
        "Provide helpful, accurate information about animals and birds. If asked about something not in "
        "our gallery, you can still provide general information but mention that it's not currently in our "
        "collection."
    )
    return "\n".join(parts)


def get_client() -> OpenAI | None:
    """Process-wide OpenAI client, created on first use; None without an API key."""
    app = current_app
    client = app.extensions.get("openai_client")
    if client is None:
        api_key = app.config.get("OPENAI_API_KEY")
        if not api_key:
            return None
        client = OpenAI(api_key=api_key)
        app.extensions["openai_client"] = client
    return client


def _map_upstream_error(e: Exception) -> ChatError:
    code = getattr(e, "code", None)
    if code == "insufficient_quota":
        return ChatError(
            "OpenAI API quota exceeded. Please check your API key and billing.", ChatErrorCode.QUOTA_EXCEEDED
        )
    if code == "invalid_api_key" or isinstance(e, openai.AuthenticationError):
        return ChatError("Invalid OpenAI API key. Please check your configuration.", ChatErrorCode.INVALID_API_KEY)
    return ChatError("Error processing your message. Please try again.", ChatErrorCode.UPSTREAM)


def ask(s: "Session", message, context: str | None = None, client: OpenAI | None = None) -> str:
    message = str(message).strip() if message is not None else ""
    if not message:
        raise ChatError("Message is required", ChatErrorCode.MISSING_MESSAGE)

    client = client or get_client()
    if client is None:
        raise ChatError(
            "Chat service unavailable. Please configure OPENAI_API_KEY.", ChatErrorCode.NOT_CONFIGURED
        )

    system_prompt = build_system_prompt(get_all_creatures(s), context)
    try:
        completion = client.chat.completions.create(
            model=current_app.config.get("OPENAI_MODEL") or "gpt-3.5-turbo",
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
    except Exception as e:
        logger.error("OpenAI API error: %s", e)
        raise _map_upstream_error(e) from e

    choices = getattr(completion, "choices", None) or []
    reply = choices[0].message.content if choices and choices[0].message else None
    return reply or EMPTY_REPLY
