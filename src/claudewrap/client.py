"""ClaudeClient — the public entry point for invoking the Claude CLI."""

from __future__ import annotations

import json
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from claudewrap.args import build_chat_args, build_stream_args
from claudewrap.auth.refresh import attempt_refresh_token
from claudewrap.config.models import ClientConfig
from claudewrap.constants import Listener, TokenRefresher
from claudewrap.errors import ProcessFailedError
from claudewrap.helpers import format_stderr_preview
from claudewrap.models import ClaudeResponse, PromptRequest, ResultMessage, parse_result_payload
from claudewrap.runner import CommandResult, execute_command
from claudewrap.stream.process import StreamProcess
from claudewrap.stream.response import StreamingResponse

if TYPE_CHECKING:
    from claudewrap.session import Session

logger = logging.getLogger(__name__)

#: Substrings of a result that mean the stored credentials were rejected.
AUTH_FAILURE_MARKERS = ("Invalid bearer token", "OAuth")


class _Attempt(Enum):
    """Progress of a non-streaming invocation through its one allowed retry."""

    FIRST_ATTEMPT = auto()
    RETRYING = auto()
    DONE = auto()


def is_auth_failure(message: ResultMessage | None) -> bool:
    """True when *message* reports rejected credentials."""
    if message is None or not message.is_error or not message.result:
        return False
    return any(marker in message.result for marker in AUTH_FAILURE_MARKERS)


def build_response(result: CommandResult) -> ClaudeResponse:
    """Turn captured process output into a :class:`ClaudeResponse`.

    Unparseable stdout yields a response without a payload rather than
    an exception; success is decided by the exit code alone.
    """
    payload: ResultMessage | None = None
    text = result.stdout.strip()
    if text:
        try:
            payload = parse_result_payload(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.debug("could not parse CLI output as a result: %s", exc)

    success = result.exit_code == 0
    return ClaudeResponse(
        success=success,
        message=payload if success else None,
        error=None if success else payload,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def _as_request(prompt: str | PromptRequest) -> PromptRequest:
    if isinstance(prompt, PromptRequest):
        return prompt
    return PromptRequest(prompt=prompt)


class ClaudeClient:
    """Runs the Claude CLI as a child process, one invocation per call.

    The client holds only an immutable :class:`ClientConfig`, so any
    number of invocations may run concurrently on the same instance.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        token_refresher: TokenRefresher = attempt_refresh_token,
    ) -> None:
        self._config = config if config is not None else ClientConfig()
        self._token_refresher = token_refresher

    # ------------------------------------------------------------------ #
    # Options
    # ------------------------------------------------------------------ #

    @property
    def options(self) -> ClientConfig:
        """A copy of the current configuration."""
        return self._config.model_copy()

    def set_options(self, **changes: Any) -> ClientConfig:
        """Replace configuration fields and return the new configuration.

        The merged settings are validated as a whole; on error the
        existing configuration is kept and ``ValidationError`` propagates.
        """
        merged = {**self._config.model_dump(), **changes}
        self._config = ClientConfig.model_validate(merged)
        return self.options

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #

    async def chat(
        self,
        prompt: str | PromptRequest,
        session_id: str | None = None,
    ) -> ClaudeResponse | StreamingResponse:
        """Send *prompt*, resuming *session_id* when given.

        Returns a :class:`ClaudeResponse` once the CLI has exited, or a
        live :class:`StreamingResponse` when the request asks to stream.
        """
        request = _as_request(prompt)
        if request.stream:
            return await self.stream(request, session_id)
        return await self._execute_chat(request, session_id)

    async def _execute_chat(
        self,
        request: PromptRequest,
        session_id: str | None,
    ) -> ClaudeResponse:
        command = build_chat_args(self._config, request, session_id)
        attempt = _Attempt.FIRST_ATTEMPT
        while attempt is not _Attempt.DONE:
            if self._config.verbose:
                logger.debug("running %s (attempt=%s)", command, attempt.name)
            result = await execute_command(
                command,
                cwd=self._config.working_directory,
                api_key=self._config.api_key,
                timeout=self._config.timeout,
            )
            response = build_response(result)

            if attempt is _Attempt.FIRST_ATTEMPT and is_auth_failure(response.payload):
                logger.warning("authentication failed, attempting token refresh")
                if await self._token_refresher(self._config.oauth):
                    attempt = _Attempt.RETRYING
                    continue
                logger.warning("token refresh failed, returning original response")
            attempt = _Attempt.DONE

        if not response.success and self._config.verbose and response.stderr.strip():
            logger.debug(
                "CLI exited with code %d:\n  %s",
                response.exit_code,
                format_stderr_preview(response.stderr),
            )
        return response

    async def stream(
        self,
        prompt: str | PromptRequest,
        session_id: str | None = None,
        **listeners: Listener,
    ) -> StreamingResponse:
        """Start a streamed run and return its live response.

        Keyword arguments subscribe listeners by notification name
        (``token=...``, ``complete=...``), in addition to any hooks set on
        the request.
        """
        request = _as_request(prompt)
        hooks = {**request.listeners(), **listeners}
        process = StreamProcess(
            self._config,
            build_stream_args(self._config, request, session_id),
        )
        return await process.start(hooks)

    async def version(self) -> str:
        """Return the CLI's ``--version`` output.

        Raises:
            ProcessFailedError: The CLI exited with a non-zero status.
        """
        executable = self._config.executable_path
        result = await execute_command(
            [executable, "--version"],
            cwd=self._config.working_directory,
            api_key=self._config.api_key,
            timeout=self._config.timeout,
        )
        if result.exit_code != 0:
            msg = f"{executable} --version exited with code {result.exit_code}"
            raise ProcessFailedError(msg, exit_code=result.exit_code, stderr=result.stderr)
        return result.stdout.strip()

    def new_session(self) -> Session:
        """Start an empty multi-turn session bound to this client."""
        from claudewrap.session import Session

        return Session(self)
