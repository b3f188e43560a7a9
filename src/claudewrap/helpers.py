"""Shared helpers for process invocation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os

from claudewrap.constants import API_KEY_ENV, NON_INTERACTIVE_ENV

logger = logging.getLogger(__name__)

#: Seconds between exit checks while the child's pipes are still open.
_EXIT_POLL_INTERVAL = 0.05

#: Bytes requested per read from a child's stdout/stderr pipe.
READ_CHUNK_SIZE = 65_536

#: Seconds to keep reading output after the child has exited.
DRAIN_TIMEOUT = 1.0


def format_stderr_preview(stderr_text: str, max_lines: int = 5) -> str:
    """Extract and format the last N non-empty lines from stderr output."""
    lines = [line for line in stderr_text.split("\n") if line.strip()]
    last = lines[-max_lines:] if len(lines) > max_lines else lines
    return "\n  ".join(last)


def build_child_env(
    api_key: str | None = None,
    base: dict[str, str] | None = None,
) -> dict[str, str]:
    """Return the environment for a CLI child process.

    Starts from *base* (the current environment by default), injects the
    API key when one is configured, and forces non-interactive mode.
    """
    env = dict(os.environ if base is None else base)
    if api_key:
        env[API_KEY_ENV] = api_key
    env.update(NON_INTERACTIVE_ENV)
    return env


def signal_process_group(proc: asyncio.subprocess.Process, sig: int) -> None:
    """Send *sig* to the process group *proc* leads.

    Children are spawned with ``start_new_session=True``, so the group
    also holds anything the CLI started that may keep its pipes open.
    Falls back to signalling *proc* alone if the group cannot be reached.
    """
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        return
    except OSError as exc:
        logger.debug("killpg(%s) failed: %s", proc.pid, exc)
        with contextlib.suppress(ProcessLookupError):
            proc.send_signal(sig)


async def wait_for_exit(proc: asyncio.subprocess.Process) -> int:
    """Return *proc*'s exit status as soon as it has exited.

    ``Process.wait()`` only returns once the stdout/stderr pipes are
    closed as well, which a backgrounded grandchild can delay
    indefinitely.  The exit status itself is known earlier.
    """
    if proc.returncode is not None:
        return proc.returncode

    waiter = asyncio.ensure_future(proc.wait())
    try:
        while True:
            done, _ = await asyncio.wait({waiter}, timeout=_EXIT_POLL_INTERVAL)
            if done:
                return waiter.result()
            if proc.returncode is not None:
                return proc.returncode
    finally:
        if not waiter.done():
            waiter.cancel()


async def read_into(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    """Append everything read from *stream* to *sink* until EOF."""
    if stream is None:
        return
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            return
        sink.extend(chunk)


async def drain_output(readers: asyncio.Future[object], pid: int) -> None:
    """Give *readers* up to :data:`DRAIN_TIMEOUT` to finish after exit.

    Output still open after that (held by a surviving grandchild) is
    abandoned.  Read errors propagate.
    """
    try:
        await asyncio.wait_for(readers, timeout=DRAIN_TIMEOUT)
    except TimeoutError:
        logger.warning(
            "process %s exited but its output stayed open for %.1fs; "
            "closing without waiting for EOF",
            pid,
            DRAIN_TIMEOUT,
        )
