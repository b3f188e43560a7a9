"""Run a CLI command to completion and capture its output."""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass
from pathlib import Path

from claudewrap.errors import ClaudeWrapError, ExecutableNotFoundError, ProcessFailedError
from claudewrap.helpers import (
    build_child_env,
    drain_output,
    read_into,
    signal_process_group,
    wait_for_exit,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a finished process."""

    stdout: str
    stderr: str
    exit_code: int


async def execute_command(
    command: list[str],
    cwd: Path | str | None = None,
    api_key: str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run *command* with stdin closed and wait for it to exit.

    A non-zero exit status is returned, not raised.  The result is
    returned once the process itself has exited; output still held open
    by a background grandchild is read for a short grace period only.

    Raises:
        ExecutableNotFoundError: The executable does not exist.
        ClaudeWrapError: The process could not be spawned.
        ProcessFailedError: The process outlived *timeout* and its
            process group was killed.
    """
    executable = command[0]
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=build_child_env(api_key),
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        msg = (
            f"Command not found: {executable}\n"
            f"Make sure '{executable}' is installed and on your PATH."
        )
        raise ExecutableNotFoundError(msg) from exc
    except OSError as exc:
        msg = f"Failed to spawn {executable}: {exc}"
        raise ClaudeWrapError(msg) from exc

    stdout = bytearray()
    stderr = bytearray()
    readers = asyncio.gather(read_into(proc.stdout, stdout), read_into(proc.stderr, stderr))
    try:
        returncode = await asyncio.wait_for(wait_for_exit(proc), timeout=timeout)
    except TimeoutError:
        signal_process_group(proc, signal.SIGKILL)
        returncode = await wait_for_exit(proc)
        readers.cancel()
        msg = f"{executable} timed out after {timeout}s"
        logger.error("%s", msg)
        raise ProcessFailedError(msg, exit_code=returncode) from None
    except asyncio.CancelledError:
        readers.cancel()
        signal_process_group(proc, signal.SIGKILL)
        raise

    await drain_output(readers, proc.pid)
    return CommandResult(
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
        exit_code=returncode,
    )
