"""Options and config loading shared by the commands."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from claudewrap.config.models import ClientConfig
from claudewrap.config.parser import ConfigError, load_config

F = TypeVar("F", bound=Callable[..., Any])


def config_options(func: F) -> F:
    """Attach ``-f/--file`` and ``-v/--verbose`` to a command."""
    func = click.option(
        "-v", "--verbose", is_flag=True, help="Enable verbose output."
    )(func)
    func = click.option(
        "-f", "--file", "config_file", type=click.Path(), help="Config file path."
    )(func)
    return func


def setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def load_or_exit(config_file: str | None, **overrides: Any) -> ClientConfig:
    """Load the config, printing the error and exiting 1 on failure."""
    try:
        return load_config(Path(config_file) if config_file else None, **overrides)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
