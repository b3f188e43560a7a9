"""claudewrap init — scaffold a claudewrap.yaml in the current directory."""

from __future__ import annotations

from pathlib import Path

import click

from claudewrap.config.parser import DEFAULT_CONFIG_NAME

ENV_EXAMPLE_FILENAME = ".env.example"

TEMPLATE_YAML = """\
# claudewrap configuration
# Every key is optional; CLI flags and CLAUDEWRAP_* env vars override them.

# Claude CLI binary (name on PATH or absolute path)
executable_path: claude

# Working directory for the CLI, relative to this file
# working_directory: .

# Model passed with --model
# model: claude-sonnet-4-5

# Forward debug events and log diagnostics
verbose: false

# Pass --dangerously-skip-permissions (only in trusted sandboxes)
skip_permissions: false

# Kill non-streaming runs after this many seconds
# timeout: 300

# Seconds between SIGTERM and SIGKILL when a stream is aborted (0 disables)
abort_timeout: 3

# OAuth credentials written to ~/.claude/.credentials.json if it is missing
# oauth:
#   accessToken: ...
#   refreshToken: ...
#   expiresAt: 0
"""

TEMPLATE_ENV_EXAMPLE = """\
# Copy this file to .env and fill in the values you need.
# claudewrap loads .env from the directory containing claudewrap.yaml.

ANTHROPIC_API_KEY=
CLAUDEWRAP_MODEL=
CLAUDEWRAP_EXECUTABLE=
"""


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help=f"Overwrite existing {DEFAULT_CONFIG_NAME} if it exists.",
)
def init(force: bool) -> None:
    """Scaffold a claudewrap config in the current directory."""
    cwd = Path.cwd()
    config_path = cwd / DEFAULT_CONFIG_NAME
    env_example_path = cwd / ENV_EXAMPLE_FILENAME

    if config_path.exists() and not force:
        raise click.ClickException(
            f"{DEFAULT_CONFIG_NAME} already exists. Use --force to overwrite."
        )

    try:
        config_path.write_text(TEMPLATE_YAML, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot write {DEFAULT_CONFIG_NAME}: {exc}") from exc
    click.echo(f"  Created {DEFAULT_CONFIG_NAME}")

    if not env_example_path.exists() or force:
        try:
            env_example_path.write_text(TEMPLATE_ENV_EXAMPLE, encoding="utf-8")
        except OSError as exc:
            raise click.ClickException(
                f"Cannot write {ENV_EXAMPLE_FILENAME}: {exc}"
            ) from exc
        click.echo(f"  Created {ENV_EXAMPLE_FILENAME}")
    else:
        click.echo(f"  Skipped {ENV_EXAMPLE_FILENAME} (already exists)")

    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. Edit {DEFAULT_CONFIG_NAME} if the defaults do not suit you")
    click.echo("  2. Copy .env.example to .env if you use an API key")
    click.echo('  3. Run `claudewrap chat "hello"`')
