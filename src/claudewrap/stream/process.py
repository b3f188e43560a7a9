"""Lifecycle controller — owns the CLI child process of one streamed run."""

from __future__ import annotations

import asyncio
import logging
import signal

from claudewrap.config.models import ClientConfig
from claudewrap.constants import Listener
from claudewrap.helpers import (
    READ_CHUNK_SIZE,
    build_child_env,
    drain_output,
    format_stderr_preview,
    read_into,
    signal_process_group,
    wait_for_exit,
)
from claudewrap.stream.aggregator import StreamAggregator
from claudewrap.stream.decoder import decode_line
from claudewrap.stream.lines import LineSplitter
from claudewrap.stream.models import (
    Aborted,
    Completed,
    Failed,
    StreamState,
    TerminalOutcome,
)
from claudewrap.stream.response import StreamingResponse

logger = logging.getLogger(__name__)

#: Maximum stderr characters folded into a failure reason.
_MAX_STDERR_CHARS = 2048


class StreamProcess:
    """Runs the CLI once and pipes its NDJSON stdout into a StreamingResponse.

    stdout flows chunk by chunk through ``LineSplitter`` →
    ``decode_line`` → ``StreamAggregator``; stderr is collected for the
    failure reason.  The terminal outcome is resolved once, after the
    process has exited:

    * aborted → :class:`Aborted` (even if a result was already decoded)
    * non-zero exit → :class:`Failed` with exit code and stderr
    * error event seen → :class:`Failed` with the event's reason
    * otherwise → :class:`Completed`

    The child leads its own process group, and signals go to the whole
    group.  Exit is detected independently of the pipes, so output left
    open by a background grandchild cannot hold the outcome back.
    """

    def __init__(self, config: ClientConfig, args: list[str]) -> None:
        self._config = config
        self._args = args
        self._state = StreamState()
        self._splitter = LineSplitter()
        self._stderr = bytearray()
        self._proc: asyncio.subprocess.Process | None = None
        self._task: asyncio.Task[None] | None = None
        self._kill_handle: asyncio.TimerHandle | None = None
        self._response = StreamingResponse(abort=self.abort)
        self._aggregator = StreamAggregator(
            self._state,
            self._response.emit,
            verbose=config.verbose,
        )

    @property
    def response(self) -> StreamingResponse:
        return self._response

    @property
    def state(self) -> StreamState:
        return self._state

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def start(
        self,
        listeners: dict[str, Listener] | None = None,
    ) -> StreamingResponse:
        """Spawn the process and begin streaming.

        *listeners* are subscribed before the spawn so that a spawn
        failure still reaches an ``error`` listener.  A run aborted
        before it starts resolves as :class:`Aborted` without spawning.
        """
        for name, listener in (listeners or {}).items():
            self._response.on(name, listener)

        if self._state.aborted:
            logger.debug("run aborted before start, not spawning")
            await self._response.finish(Aborted())
            return self._response

        executable = self._args[0]
        if self._config.verbose:
            logger.debug("spawning %s (cwd=%s)", self._args, self._config.working_directory)

        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self._args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self._config.working_directory),
                env=build_child_env(self._config.api_key),
                start_new_session=True,
            )
        except FileNotFoundError:
            reason = (
                f"Claude CLI not found: '{executable}'. "
                "Make sure it is installed and on your PATH."
            )
            logger.error("%s", reason)
            await self._response.finish(Failed(reason))
            return self._response
        except OSError as exc:
            reason = f"Failed to spawn Claude CLI: {exc}"
            logger.error("%s", reason)
            await self._response.finish(Failed(reason))
            return self._response

        self._response.pid = self._proc.pid
        if self._state.aborted:
            # abort() landed while the spawn was in flight.
            self._terminate(self._proc)
        self._task = asyncio.create_task(self._run(self._proc))
        return self._response

    def abort(self) -> None:
        """Mark the run aborted and send SIGTERM to its process group.

        Escalates to SIGKILL if the run has not finished after
        ``abort_timeout`` seconds (0 disables escalation).  Idempotent.
        """
        if self._state.aborted or self._response.done:
            return
        self._state.aborted = True
        if self._proc is not None:
            self._terminate(self._proc)

    def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        logger.debug("aborting CLI process %s", proc.pid)
        signal_process_group(proc, signal.SIGTERM)

        timeout = self._config.abort_timeout
        if timeout > 0:
            loop = asyncio.get_running_loop()
            self._kill_handle = loop.call_later(timeout, self._kill)

    def _kill(self) -> None:
        proc = self._proc
        if proc is None:
            return
        logger.warning(
            "CLI process %s ignored SIGTERM for %.1fs, sending SIGKILL",
            proc.pid,
            self._config.abort_timeout,
        )
        signal_process_group(proc, signal.SIGKILL)

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #

    async def _run(self, proc: asyncio.subprocess.Process) -> None:
        returncode: int | None = None
        read_error: Exception | None = None
        pumps = asyncio.gather(
            self._pump_stdout(proc),
            read_into(proc.stderr, self._stderr),
        )
        exited = asyncio.ensure_future(wait_for_exit(proc))
        try:
            await asyncio.wait({pumps, exited}, return_when=asyncio.FIRST_COMPLETED)
            if pumps.done() and not pumps.cancelled() and pumps.exception() is not None:
                read_error = pumps.exception()
                logger.error("error reading CLI output: %s", read_error)
                signal_process_group(proc, signal.SIGKILL)

            returncode = await exited

            if not pumps.done():
                try:
                    await drain_output(pumps, proc.pid)
                except Exception as exc:
                    logger.error("error reading CLI output: %s", exc)
                    read_error = exc
        except asyncio.CancelledError:
            self._state.aborted = True
            pumps.cancel()
            exited.cancel()
            signal_process_group(proc, signal.SIGKILL)
            self._response.cancel()
            raise
        finally:
            if self._kill_handle is not None:
                self._kill_handle.cancel()
                self._kill_handle = None

        leftover = self._splitter.close()
        if leftover.strip() and self._config.verbose:
            logger.debug("discarding unterminated output: %s", leftover[:200])

        await self._response.finish(self._outcome(returncode, read_error))

    async def _pump_stdout(self, proc: asyncio.subprocess.Process) -> None:
        if proc.stdout is None:
            return
        while True:
            chunk = await proc.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                return
            if self._state.aborted:
                # Keep draining so the child never blocks on a full pipe.
                continue
            for line in self._splitter.feed(chunk):
                event = decode_line(line, verbose=self._config.verbose)
                if event is not None:
                    await self._aggregator.handle(event)

    def _outcome(
        self,
        returncode: int | None,
        read_error: Exception | None,
    ) -> TerminalOutcome:
        if self._state.aborted:
            return Aborted()

        stderr_text = self._stderr.decode(errors="replace").strip()
        if self._config.verbose and stderr_text:
            logger.debug("CLI stderr:\n  %s", format_stderr_preview(stderr_text))

        if returncode is not None and returncode != 0:
            reason = (
                f"Claude CLI exited with code {returncode}: "
                f"{stderr_text[:_MAX_STDERR_CHARS]}"
            )
            logger.error("%s", reason)
            return Failed(reason, exit_code=returncode)

        if read_error is not None:
            return Failed(f"Error reading Claude CLI output: {read_error}", returncode)

        if self._state.failure_reason is not None:
            return Failed(self._state.failure_reason, exit_code=returncode)

        return Completed(self._state.completion_text, self._state.last_session_id)
