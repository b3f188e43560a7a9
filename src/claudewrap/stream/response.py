"""StreamingResponse — caller-facing handle for one streamed invocation."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable

from claudewrap.constants import Listener
from claudewrap.errors import StreamAbortedError, StreamFailedError
from claudewrap.stream.models import Aborted, Completed, Failed, TerminalOutcome

logger = logging.getLogger(__name__)

#: Every notification a listener can subscribe to.
NOTIFICATIONS = frozenset({"token", "complete", "error", "session", "debug", "aborted"})


class StreamingResponse:
    """Listener registry plus the awaitable terminal outcome of a run.

    Listeners may be plain functions or coroutine functions; they are
    called in registration order.  A listener that raises is logged and
    skipped so one bad subscriber cannot stall the stream.
    """

    def __init__(self, abort: Callable[[], None] | None = None) -> None:
        self._abort_hook = abort
        self._listeners: dict[str, list[Listener]] = {name: [] for name in NOTIFICATIONS}
        self._outcome: asyncio.Future[TerminalOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self._finishing = False
        self.session_id: str | None = None
        self.pid: int | None = None

    # ------------------------------------------------------------------ #
    # Subscription
    # ------------------------------------------------------------------ #

    def on(self, name: str, listener: Listener) -> StreamingResponse:
        """Subscribe *listener* to notification *name*; returns ``self``."""
        if name not in NOTIFICATIONS:
            known = ", ".join(sorted(NOTIFICATIONS))
            msg = f"Unknown notification {name!r} (expected one of: {known})"
            raise ValueError(msg)
        self._listeners[name].append(listener)
        return self

    def off(self, name: str, listener: Listener) -> None:
        """Remove a previously registered listener, if present."""
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    async def emit(self, name: str, *args: object) -> None:
        """Deliver notification *name* to its listeners."""
        if name == "session" and args:
            self.session_id = str(args[0])
        for listener in list(self._listeners[name]):
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("%s listener raised", name)

    # ------------------------------------------------------------------ #
    # Control
    # ------------------------------------------------------------------ #

    def abort(self) -> None:
        """Request cancellation of the run.

        The outcome becomes :class:`Aborted` once the process has exited.
        Has no effect after the run has been resolved.
        """
        if self.done or self._abort_hook is None:
            return
        self._abort_hook()

    @property
    def done(self) -> bool:
        """Whether the terminal outcome has been resolved."""
        return self._finishing or self._outcome.done()

    async def wait(self) -> TerminalOutcome:
        """Wait for and return the terminal outcome."""
        return await asyncio.shield(self._outcome)

    async def text(self) -> str:
        """Wait for the run and return its completion text.

        Raises:
            StreamAbortedError: The run was aborted.
            StreamFailedError: The run failed.
        """
        outcome = await self.wait()
        if isinstance(outcome, Aborted):
            raise StreamAbortedError()
        if isinstance(outcome, Failed):
            raise StreamFailedError(outcome.reason, outcome.exit_code)
        return outcome.text

    # ------------------------------------------------------------------ #
    # Resolution (driven by the lifecycle controller)
    # ------------------------------------------------------------------ #

    async def finish(self, outcome: TerminalOutcome) -> bool:
        """Resolve the run with *outcome* and send its terminal notification.

        Returns ``False`` (and changes nothing) if the run was already
        resolved.
        """
        if self.done:
            logger.warning("ignoring duplicate resolution: %r", outcome)
            return False
        self._finishing = True

        if isinstance(outcome, Completed):
            if outcome.session_id is not None:
                self.session_id = outcome.session_id
            await self.emit("complete", outcome.text)
        elif isinstance(outcome, Failed):
            await self.emit("error", StreamFailedError(outcome.reason, outcome.exit_code))
        else:
            await self.emit("aborted")

        self._outcome.set_result(outcome)
        return True

    def cancel(self) -> None:
        """Cancel the outcome future when the run itself is cancelled."""
        if not self._outcome.done():
            self._outcome.cancel()
