"""Pydantic v2 models for prompts and non-streaming CLI responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from claudewrap.constants import Listener


class PromptRequest(BaseModel):
    """A prompt with optional system-prompt overrides and streaming hooks."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    prompt: str = Field(description="User prompt text")
    system_prompt: str | None = Field(
        default=None,
        description="Replaces the CLI's system prompt",
    )
    append_system_prompt: str | None = Field(
        default=None,
        description="Appended to the CLI's system prompt",
    )
    stream: bool = Field(default=False, description="Use the streaming path")
    on_token: Listener | None = Field(default=None, exclude=True)
    on_complete: Listener | None = Field(default=None, exclude=True)
    on_error: Listener | None = Field(default=None, exclude=True)

    def listeners(self) -> dict[str, Listener]:
        """Return the streaming hooks keyed by notification name."""
        hooks = {
            "token": self.on_token,
            "complete": self.on_complete,
            "error": self.on_error,
        }
        return {name: hook for name, hook in hooks.items() if hook is not None}


class ResultMessage(BaseModel):
    """The ``result`` object printed by ``--output-format json``.

    Unknown fields are kept so newer CLI releases do not break parsing.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="result", description="Message type")
    subtype: str | None = Field(default=None, description="e.g. 'success'")
    is_error: bool = Field(default=False, description="CLI-reported failure")
    result: str | None = Field(default=None, description="Final response text")
    session_id: str | None = Field(default=None, description="Session identifier")
    cost_usd: float | None = Field(default=None, description="Cost of the run")
    total_cost_usd: float | None = Field(default=None, description="Cumulative cost")
    duration_ms: int | None = Field(default=None, description="Wall time")
    duration_api_ms: int | None = Field(default=None, description="API time")
    num_turns: int | None = Field(default=None, description="Agent turns taken")


class ClaudeResponse(BaseModel):
    """Outcome of a non-streaming invocation."""

    success: bool = Field(description="True when the CLI exited with code 0")
    message: ResultMessage | None = Field(
        default=None,
        description="Parsed payload (successful runs only)",
    )
    error: ResultMessage | None = Field(
        default=None,
        description="Parsed payload (failed runs only)",
    )
    exit_code: int = Field(description="CLI exit status")
    stdout: str = Field(default="", description="Raw standard output")
    stderr: str = Field(default="", description="Raw standard error")

    @property
    def payload(self) -> ResultMessage | None:
        """Whichever of ``message`` / ``error`` is set."""
        return self.message if self.message is not None else self.error


def parse_result_payload(value: Any) -> ResultMessage | None:
    """Validate a decoded stdout value, keeping the last element of a list."""
    if isinstance(value, list):
        if not value:
            return None
        value = value[-1]
    if not isinstance(value, dict):
        return None
    return ResultMessage.model_validate(value)
