"""Exception hierarchy for claudewrap."""

from __future__ import annotations


class ClaudeWrapError(Exception):
    """Base class for every error raised by claudewrap."""


class ExecutableNotFoundError(ClaudeWrapError):
    """The configured CLI executable could not be found."""


class ProcessFailedError(ClaudeWrapError):
    """The CLI process exited with a non-zero status."""

    def __init__(self, message: str, exit_code: int = -1, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class StreamFailedError(ClaudeWrapError):
    """A streamed run ended in failure."""

    def __init__(self, reason: str, exit_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.exit_code = exit_code


class StreamAbortedError(ClaudeWrapError):
    """A streamed run was aborted by the caller."""

    def __init__(self, message: str = "Stream aborted by user") -> None:
        super().__init__(message)


class TokenRefreshError(ClaudeWrapError):
    """The OAuth refresh-token exchange was rejected."""
