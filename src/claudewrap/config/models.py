"""Pydantic v2 models for claudewrap configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claudewrap.constants import DEFAULT_EXECUTABLE


class OAuthCredentials(BaseModel):
    """OAuth credentials as stored by the CLI under ``claudeAiOauth``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="accessToken", description="Bearer token")
    refresh_token: str = Field(
        alias="refreshToken",
        description="Token exchanged for a new access token",
    )
    expires_at: int = Field(
        alias="expiresAt",
        description="Expiry as epoch milliseconds (or lifetime in seconds "
        "straight from the token endpoint)",
    )


class ClientConfig(BaseModel):
    """Immutable settings shared by every invocation of one client."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    executable_path: str = Field(
        default=DEFAULT_EXECUTABLE,
        description="CLI binary to invoke",
    )
    working_directory: Path = Field(
        default_factory=Path.cwd,
        description="Working directory of the child process",
    )
    model: str | None = Field(
        default=None,
        description="Model identifier passed with --model",
    )
    verbose: bool = Field(
        default=False,
        description="Forward debug events and log diagnostics",
    )
    skip_permissions: bool = Field(
        default=False,
        description="Pass --dangerously-skip-permissions",
    )
    api_key: str | None = Field(
        default=None,
        description="Injected into the child env as ANTHROPIC_API_KEY",
    )
    oauth: OAuthCredentials | None = Field(
        default=None,
        description="Credentials written out when the credentials file is missing",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds before a non-streaming run is killed",
    )
    abort_timeout: float = Field(
        default=3.0,
        ge=0,
        description="Seconds between SIGTERM and SIGKILL on abort (0 disables)",
    )

    @field_validator("executable_path")
    @classmethod
    def _non_empty_executable(cls, value: str) -> str:
        if not value.strip():
            msg = "executable_path must not be empty"
            raise ValueError(msg)
        return value
