"""Command-line argument construction for the Claude CLI."""

from __future__ import annotations

from claudewrap.config.models import ClientConfig
from claudewrap.models import PromptRequest


def default_args(config: ClientConfig, output_format: str = "json") -> list[str]:
    """Flags shared by every invocation."""
    args = ["--output-format", output_format]
    if config.model:
        args.extend(["--model", config.model])
    if config.skip_permissions:
        args.append("--dangerously-skip-permissions")
    return args


def _prompt_args(request: PromptRequest, session_id: str | None) -> list[str]:
    args = ["--print", request.prompt]
    if request.system_prompt:
        args.extend(["--system-prompt", request.system_prompt])
    if request.append_system_prompt:
        args.extend(["--append-system-prompt", request.append_system_prompt])
    if session_id:
        args.extend(["--resume", session_id])
    return args


def build_chat_args(
    config: ClientConfig,
    request: PromptRequest,
    session_id: str | None = None,
) -> list[str]:
    """Full argv (executable first) for a non-streaming JSON run."""
    return [
        config.executable_path,
        *default_args(config, "json"),
        *_prompt_args(request, session_id),
    ]


def build_stream_args(
    config: ClientConfig,
    request: PromptRequest,
    session_id: str | None = None,
) -> list[str]:
    """Full argv for a streaming run.

    The CLI refuses ``stream-json`` output without ``--verbose``.
    """
    return [
        config.executable_path,
        *default_args(config, "stream-json"),
        "--verbose",
        *_prompt_args(request, session_id),
    ]
