"""Root CLI group and version flag."""

import click

from claudewrap import __version__
from claudewrap.commands.auth import refresh_token
from claudewrap.commands.chat import chat
from claudewrap.commands.init import init
from claudewrap.commands.version import tool_version


@click.group()
@click.version_option(version=__version__, prog_name="claudewrap")
def cli() -> None:
    """claudewrap — drive the Claude CLI from scripts and the shell."""


cli.add_command(init)
cli.add_command(chat)
cli.add_command(tool_version)
cli.add_command(refresh_token)
