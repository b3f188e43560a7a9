"""claudewrap tool-version — report the installed Claude CLI version."""

from __future__ import annotations

import asyncio

import click

from claudewrap.client import ClaudeClient
from claudewrap.commands.options import config_options, load_or_exit, setup_logging
from claudewrap.errors import ClaudeWrapError


@click.command("tool-version")
@config_options
def tool_version(config_file: str | None, verbose: bool) -> None:
    """Print the version reported by the Claude CLI."""
    setup_logging(verbose)
    config = load_or_exit(config_file, verbose=True if verbose else None)

    try:
        version = asyncio.run(ClaudeClient(config).version())
    except ClaudeWrapError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(version)
