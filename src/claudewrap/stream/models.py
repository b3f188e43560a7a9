"""Decoded stream events, per-run aggregate state, and terminal outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

# --------------------------------------------------------------------------- #
# Decoded events
# --------------------------------------------------------------------------- #


class _EventBase(BaseModel):
    """Common config for every decoded stream event."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class TokenEvent(_EventBase):
    """An incremental text fragment."""

    kind: Literal["token"] = "token"
    text: str = Field(description="Fragment text as emitted by the CLI")


class ResultEvent(_EventBase):
    """Terminal success payload."""

    kind: Literal["result"] = "result"
    text: str = Field(default="", description="Aggregated result text")
    session_id: str | None = Field(
        default=None,
        description="Session identifier for --resume",
    )
    is_error: bool = Field(default=False, description="Failure flag from the CLI")


class SessionEvent(_EventBase):
    """Announces a session identifier without completing the run."""

    kind: Literal["session"] = "session"
    session_id: str = Field(description="Session identifier")


class ErrorEvent(_EventBase):
    """Explicit failure payload."""

    kind: Literal["error"] = "error"
    reason: str = Field(description="Failure description")


class DebugEvent(_EventBase):
    """Anything the decoder does not recognise."""

    kind: Literal["debug"] = "debug"
    raw: Any = Field(description="Parsed JSON value, untouched")


def _event_discriminator(v: Any) -> str:
    """Extract the discriminator value from raw data or a model instance."""
    if isinstance(v, dict):
        return str(v.get("kind", ""))
    return str(getattr(v, "kind", ""))


DecodedEvent = Annotated[
    Annotated[TokenEvent, Tag("token")]
    | Annotated[ResultEvent, Tag("result")]
    | Annotated[SessionEvent, Tag("session")]
    | Annotated[ErrorEvent, Tag("error")]
    | Annotated[DebugEvent, Tag("debug")],
    Discriminator(_event_discriminator),
]
"""Discriminated union of all decoded stream events."""


# --------------------------------------------------------------------------- #
# Per-run state
# --------------------------------------------------------------------------- #


@dataclass
class StreamState:
    """Mutable aggregate for one subprocess run.

    ``accumulated_text`` only ever grows.  The text carried by a ``result``
    event is kept apart in ``result_text`` and, when non-empty, wins as
    completion text.
    """

    accumulated_text: str = ""
    last_session_id: str | None = None
    aborted: bool = False
    result_text: str | None = None
    failure_reason: str | None = None
    finished: bool = False

    @property
    def completion_text(self) -> str:
        if self.result_text:
            return self.result_text
        return self.accumulated_text


# --------------------------------------------------------------------------- #
# Terminal outcomes
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class Completed:
    """The run finished successfully."""

    text: str
    session_id: str | None = None


@dataclass(frozen=True)
class Failed:
    """The run failed to spawn, exited non-zero, or reported an error."""

    reason: str
    exit_code: int | None = None


@dataclass(frozen=True)
class Aborted:
    """The caller aborted the run."""


TerminalOutcome = Completed | Failed | Aborted
