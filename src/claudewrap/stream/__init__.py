"""Streaming subprocess protocol engine."""

from claudewrap.stream.aggregator import StreamAggregator, text_increment
from claudewrap.stream.decoder import classify_event, decode_line
from claudewrap.stream.lines import LineSplitter
from claudewrap.stream.models import (
    Aborted,
    Completed,
    DebugEvent,
    DecodedEvent,
    ErrorEvent,
    Failed,
    ResultEvent,
    SessionEvent,
    StreamState,
    TerminalOutcome,
    TokenEvent,
)
from claudewrap.stream.process import StreamProcess
from claudewrap.stream.response import NOTIFICATIONS, StreamingResponse

__all__ = [
    "NOTIFICATIONS",
    "Aborted",
    "Completed",
    "DebugEvent",
    "DecodedEvent",
    "ErrorEvent",
    "Failed",
    "LineSplitter",
    "ResultEvent",
    "SessionEvent",
    "StreamAggregator",
    "StreamProcess",
    "StreamState",
    "StreamingResponse",
    "TerminalOutcome",
    "TokenEvent",
    "classify_event",
    "decode_line",
    "text_increment",
]
