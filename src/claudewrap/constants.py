"""Shared constants and type aliases for the claudewrap client."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

#: Executable invoked when no path is configured.
DEFAULT_EXECUTABLE = "claude"

#: Environment forced onto every child process so the tool never
#: tries to talk to a terminal.
NON_INTERACTIVE_ENV: dict[str, str] = {
    "CI": "true",
    "TERM": "dumb",
    "NO_COLOR": "1",
}

#: Env var the tool reads its API key from.
API_KEY_ENV = "ANTHROPIC_API_KEY"

#: Listener type for streaming notifications (sync or async).
Listener = Callable[..., Awaitable[None] | None]

#: Async collaborator that refreshes OAuth credentials; returns success.
TokenRefresher = Callable[[Any], Awaitable[bool]]
