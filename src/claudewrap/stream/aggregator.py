"""Event aggregator: turns decoded events into caller notifications."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from claudewrap.stream.decoder import UNKNOWN_ERROR
from claudewrap.stream.models import (
    DebugEvent,
    DecodedEvent,
    ErrorEvent,
    ResultEvent,
    SessionEvent,
    StreamState,
    TokenEvent,
)

logger = logging.getLogger(__name__)

#: Coroutine used to deliver a named notification to listeners.
Emitter = Callable[..., Awaitable[None]]


def text_increment(accumulated: str, text: str) -> str:
    """Return the part of *text* not already reflected in *accumulated*.

    A fragment that extends the accumulated text yields only the new
    suffix.  Anything else, including a partial overlap, counts as a
    disjoint fragment and is returned whole.
    """
    if text.startswith(accumulated):
        return text[len(accumulated) :]
    return text


class StreamAggregator:
    """Consumes decoded events for a single run and updates its state.

    Terminal notifications (``complete``, ``error``, ``aborted``) are not
    sent from here; the lifecycle controller sends exactly one of them when
    the process exits.  A ``result`` event closes the stream: anything
    decoded after it is ignored.
    """

    def __init__(
        self,
        state: StreamState,
        emit: Emitter,
        verbose: bool = False,
    ) -> None:
        self._state = state
        self._emit = emit
        self._verbose = verbose

    @property
    def state(self) -> StreamState:
        return self._state

    async def handle(self, event: DecodedEvent) -> None:
        """Apply one decoded event."""
        if self._state.aborted:
            return
        if self._state.finished:
            logger.debug("ignoring %s event after result", event.kind)
            return

        if isinstance(event, TokenEvent):
            await self._on_token(event)
        elif isinstance(event, ResultEvent):
            await self._on_result(event)
        elif isinstance(event, ErrorEvent):
            self._on_error(event)
        elif isinstance(event, SessionEvent):
            await self._record_session(event.session_id)
        elif isinstance(event, DebugEvent):
            if self._verbose:
                await self._emit("debug", event.raw)

    async def _on_token(self, event: TokenEvent) -> None:
        increment = text_increment(self._state.accumulated_text, event.text)
        if not increment:
            return
        self._state.accumulated_text += increment
        await self._emit("token", increment)

    async def _on_result(self, event: ResultEvent) -> None:
        self._state.result_text = event.text
        self._state.finished = True
        if event.is_error:
            logger.warning("CLI flagged its result as an error")
            if self._state.failure_reason is None:
                self._state.failure_reason = event.text or UNKNOWN_ERROR
        if event.session_id is not None:
            await self._record_session(event.session_id)

    def _on_error(self, event: ErrorEvent) -> None:
        # First reported failure wins.
        if self._state.failure_reason is None:
            self._state.failure_reason = event.reason
        logger.debug("stream error event: %s", event.reason)

    async def _record_session(self, session_id: str) -> None:
        if session_id == self._state.last_session_id:
            return
        self._state.last_session_id = session_id
        await self._emit("session", session_id)
