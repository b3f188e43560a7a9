"""claudewrap refresh-token — refresh the CLI's stored OAuth token."""

from __future__ import annotations

import asyncio

import click

from claudewrap.auth.refresh import attempt_refresh_token
from claudewrap.commands.options import config_options, load_or_exit, setup_logging


@click.command("refresh-token")
@config_options
def refresh_token(config_file: str | None, verbose: bool) -> None:
    """Exchange the stored refresh token for a new access token."""
    setup_logging(verbose)
    config = load_or_exit(config_file, verbose=True if verbose else None)

    if not asyncio.run(attempt_refresh_token(config.oauth)):
        click.echo("Token refresh failed (run with -v for details).", err=True)
        raise SystemExit(1)
    click.echo("Token refreshed.")
