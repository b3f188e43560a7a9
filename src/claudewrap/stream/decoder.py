"""Event decoder: one NDJSON line in, one classified stream event out."""

from __future__ import annotations

import json
import logging
from typing import Any

from claudewrap.stream.models import (
    DebugEvent,
    DecodedEvent,
    ErrorEvent,
    ResultEvent,
    SessionEvent,
    TokenEvent,
)

logger = logging.getLogger(__name__)

#: Reason used when an error payload carries neither ``result`` nor ``message``.
UNKNOWN_ERROR = "Unknown streaming error"

#: Max characters of a rejected line to include in diagnostics.
_PREVIEW_LEN = 200


def decode_line(line: str, *, verbose: bool = False) -> DecodedEvent | None:
    """Parse *line* as JSON and classify it.

    Returns ``None`` for blank lines and for anything that is not valid
    JSON; those never enter the semantic stream.
    """
    stripped = line.strip()
    if not stripped:
        return None

    try:
        value = json.loads(stripped)
    except json.JSONDecodeError:
        if verbose:
            logger.debug("non-JSON output from CLI: %s", stripped[:_PREVIEW_LEN])
        return None

    return classify_event(value)


def classify_event(value: Any) -> DecodedEvent:
    """Map a parsed JSON value onto a stream event.

    Result and error detection run before the generic ``text`` check,
    since a result payload may itself carry text.
    """
    if not isinstance(value, dict):
        return DebugEvent(raw=value)

    event_type = value.get("type")

    if event_type == "result" and value.get("subtype") == "success":
        return ResultEvent(
            text=_as_text(value.get("result")),
            session_id=_as_session_id(value.get("session_id")),
            is_error=value.get("is_error") is True,
        )

    if event_type == "error" or (
        event_type == "result" and value.get("is_error") is True
    ):
        return ErrorEvent(reason=_error_reason(value))

    text = value.get("text")
    if isinstance(text, str) and text:
        return TokenEvent(text=text)

    if event_type == "session":
        session_id = _as_session_id(value.get("session_id"))
        if session_id is not None:
            return SessionEvent(session_id=session_id)

    # Native stream-json shapes: ``system`` init carries the session id,
    # ``assistant`` wraps an API message with text content blocks.
    if event_type == "system":
        session_id = _as_session_id(value.get("session_id"))
        if session_id is not None:
            return SessionEvent(session_id=session_id)

    if event_type == "assistant":
        message_text = _assistant_text(value.get("message"))
        if message_text:
            return TokenEvent(text=message_text)

    return DebugEvent(raw=value)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _as_session_id(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _error_reason(value: dict[str, Any]) -> str:
    for key in ("result", "message"):
        reason = value.get(key)
        if isinstance(reason, str) and reason:
            return reason
        if isinstance(reason, dict):
            nested = reason.get("message")
            if isinstance(nested, str) and nested:
                return nested
    return UNKNOWN_ERROR


def _assistant_text(message: object) -> str:
    if not isinstance(message, dict):
        return ""
    blocks = message.get("content")
    if not isinstance(blocks, list):
        return ""
    parts = [
        block["text"]
        for block in blocks
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
    ]
    return "".join(parts)
