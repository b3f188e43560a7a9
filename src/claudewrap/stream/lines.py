"""Reassemble newline-delimited lines from arbitrarily split output chunks."""

from __future__ import annotations

from collections.abc import Iterator


class LineSplitter:
    """Accumulates raw chunks and yields complete lines.

    Splitting happens on bytes so a multi-byte character cut in half by a
    pipe read is only decoded once both halves have arrived.  A trailing
    fragment without a terminator is held back until a later chunk
    completes it, and is dropped by :meth:`close`.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received after the last line separator."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes | str) -> Iterator[str]:
        """Add *chunk* and return an iterator over the lines now complete.

        The chunk is buffered immediately; lines are taken off the buffer
        as the iterator is consumed.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode(self._encoding)
        self._buffer.extend(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            idx = self._buffer.find(b"\n")
            if idx < 0:
                return
            raw = bytes(self._buffer[:idx])
            del self._buffer[: idx + 1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            yield raw.decode(self._encoding, errors="replace")

    def close(self) -> str:
        """End the stream and return the unterminated fragment, if any.

        The fragment is never yielded as a line.
        """
        leftover = bytes(self._buffer).decode(self._encoding, errors="replace")
        self._buffer.clear()
        return leftover
