"""claudewrap chat — send one prompt to the Claude CLI."""

from __future__ import annotations

import asyncio
import contextlib
import signal

import click

from claudewrap.client import ClaudeClient
from claudewrap.commands.options import config_options, load_or_exit, setup_logging
from claudewrap.errors import ClaudeWrapError
from claudewrap.models import ClaudeResponse, PromptRequest
from claudewrap.stream.models import Aborted, Failed

#: Exit status used when the user interrupts a streamed run.
_EXIT_ABORTED = 130


@click.command()
@click.argument("prompt", required=False)
@config_options
@click.option(
    "--stream/--no-stream",
    default=True,
    help="Print tokens as they arrive (default) or wait for the full result.",
)
@click.option("-r", "--resume", "session_id", help="Session id to continue.")
@click.option("-m", "--model", help="Model to use (overrides config).")
@click.option("--system-prompt", help="Replace the CLI's system prompt.")
@click.option("--append-system-prompt", help="Append to the CLI's system prompt.")
@click.option(
    "--skip-permissions",
    is_flag=True,
    help="Pass --dangerously-skip-permissions to the CLI.",
)
def chat(
    prompt: str | None,
    config_file: str | None,
    verbose: bool,
    stream: bool,
    session_id: str | None,
    model: str | None,
    system_prompt: str | None,
    append_system_prompt: str | None,
    skip_permissions: bool,
) -> None:
    """Send PROMPT (or stdin when omitted) and print the response."""
    setup_logging(verbose)

    if prompt is None:
        prompt = click.get_text_stream("stdin").read().strip()
    if not prompt:
        raise click.ClickException("No prompt provided.")

    config = load_or_exit(
        config_file,
        model=model,
        verbose=True if verbose else None,
        skip_permissions=True if skip_permissions else None,
    )
    client = ClaudeClient(config)
    request = PromptRequest(
        prompt=prompt,
        system_prompt=system_prompt,
        append_system_prompt=append_system_prompt,
    )

    if stream:
        code = asyncio.run(_stream(client, request, session_id))
    else:
        code = asyncio.run(_once(client, request, session_id))
    raise SystemExit(code)


async def _stream(
    client: ClaudeClient,
    request: PromptRequest,
    session_id: str | None,
) -> int:
    def on_token(text: str) -> None:
        click.echo(text, nl=False)

    response = await client.stream(request, session_id, token=on_token)

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, response.abort)
    try:
        outcome = await response.wait()
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    click.echo()
    if isinstance(outcome, Aborted):
        click.echo("Aborted.", err=True)
        return _EXIT_ABORTED
    if isinstance(outcome, Failed):
        click.echo(f"Error: {outcome.reason}", err=True)
        return 1
    if response.session_id:
        click.echo(f"session: {response.session_id}", err=True)
    return 0


async def _once(
    client: ClaudeClient,
    request: PromptRequest,
    session_id: str | None,
) -> int:
    try:
        response = await client.chat(request, session_id)
    except ClaudeWrapError as exc:
        click.echo(f"Error: {exc}", err=True)
        return 1
    if not isinstance(response, ClaudeResponse):
        raise click.ClickException("Unexpected streaming response from Claude CLI.")

    payload = response.payload
    if response.success:
        if payload is not None and payload.result is not None:
            click.echo(payload.result)
        else:
            click.echo(response.stdout, nl=False)
        if payload is not None and payload.session_id:
            click.echo(f"session: {payload.session_id}", err=True)
        return 0

    detail = response.stderr.strip()
    if payload is not None and payload.result:
        detail = payload.result
    click.echo(f"Error: Claude CLI exited with code {response.exit_code}", err=True)
    if detail:
        click.echo(f"  {detail}", err=True)
    return 1
