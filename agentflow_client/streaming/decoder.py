"""Incremental frame decoder for streamed graph responses.

The server writes JSON objects either one per line (NDJSON) or back to
back with no separator at all, and the transport may split the body at
any byte. :class:`ChunkDecoder` reassembles complete values from those
fragments:

1. Complete lines are parsed as one JSON value each. A line that is not a
   single value is re-scanned for concatenated objects before anything on
   it is discarded.
2. Whatever follows the last newline is scanned for balanced ``{...}``
   spans, which are emitted as soon as they close.

Text that cannot be resolved yet stays buffered until more bytes arrive
or :meth:`ChunkDecoder.finish` is called.
"""

from __future__ import annotations

import codecs
import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 100


class _ScanState(Enum):
    OUTSIDE_STRING = "outside_string"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


class FrameExtractor:
    """Resumable scanner for the first balanced ``{...}`` span of a text.

    Leading whitespace is skipped. Braces inside string literals are
    ignored, and a backslash inside a string escapes the next character.
    Position, depth and string state survive between :meth:`scan` calls,
    so a text that only grows at the end is examined once per character.
    Call :meth:`reset` whenever the text changes other than by appending.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._pos = 0
        self._start: int | None = None
        self._depth = 0
        self._state = _ScanState.OUTSIDE_STRING

    def scan(self, text: str) -> tuple[int, int] | None:
        """Return ``(start, end)`` of the first closed object, else None.

        None means the text does not start with ``{`` (after whitespace)
        or the object has not closed yet.
        """
        if self._start is None:
            pos = self._pos
            while pos < len(text) and text[pos].isspace():
                pos += 1
            self._pos = pos
            if pos >= len(text) or text[pos] != "{":
                return None
            self._start = pos

        for index in range(self._pos, len(text)):
            char = text[index]

            if self._state is _ScanState.ESCAPED:
                self._state = _ScanState.IN_STRING
                continue

            if self._state is _ScanState.IN_STRING:
                if char == "\\":
                    self._state = _ScanState.ESCAPED
                elif char == '"':
                    self._state = _ScanState.OUTSIDE_STRING
                continue

            if char == '"':
                self._state = _ScanState.IN_STRING
            elif char == "{":
                self._depth += 1
            elif char == "}":
                self._depth -= 1
                if self._depth == 0:
                    span = (self._start, index + 1)
                    self.reset()
                    return span

        self._pos = len(text)
        return None


def extract_first_object(text: str) -> tuple[str, str] | None:
    """Find the first balanced ``{...}`` span at the start of ``text``.

    Returns:
        ``(object_text, remainder)`` with the remainder left-stripped, or
        None when ``text`` does not start with ``{`` or the object has not
        closed yet.
    """
    span = FrameExtractor().scan(text)
    if span is None:
        return None
    start, end = span
    return text[start:end], text[end:].lstrip()


class ChunkDecoder:
    """Turns raw byte chunks into parsed JSON values, in arrival order.

    Usage::

        decoder = ChunkDecoder()
        async for chunk in response.aiter_bytes():
            for value in decoder.feed(chunk):
                handle(value)
        for value in decoder.finish():
            handle(value)

    Not thread-safe; use one decoder per response.
    """

    def __init__(self) -> None:
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        # Everything before this offset is known to hold no newline
        self._newline_from = 0
        self._extractor = FrameExtractor()
        self.discarded = 0

    @property
    def pending(self) -> str:
        """Text received but not yet resolved into a value."""
        return self._buffer

    def feed(self, data: bytes) -> list[Any]:
        """Add a chunk and return every value it completed."""
        self._buffer += self._text_decoder.decode(data)
        return self._drain()

    def finish(self) -> list[Any]:
        """Flush at end of stream and return any remaining values.

        A trailing fragment that still does not parse is dropped with a
        warning and counted in :attr:`discarded`; it is never raised.
        """
        self._buffer += self._text_decoder.decode(b"", final=True)
        values = self._drain()

        remainder = self._buffer.strip()
        self._buffer = ""
        self._newline_from = 0
        self._extractor.reset()
        if remainder:
            try:
                values.append(json.loads(remainder))
            except json.JSONDecodeError as exc:
                self.discarded += 1
                logger.warning(
                    "Dropping incomplete trailing stream data (%d chars): %s (%s)",
                    len(remainder),
                    remainder[:_PREVIEW_CHARS],
                    exc,
                )
        return values

    def _drain(self) -> list[Any]:
        values: list[Any] = []

        cursor = 0
        while True:
            newline = self._buffer.find("\n", max(cursor, self._newline_from))
            if newline < 0:
                break
            line = self._buffer[cursor:newline].strip()
            cursor = newline + 1
            if line:
                values.extend(self._parse_line(line))
        if cursor:
            self._buffer = self._buffer[cursor:]
            self._extractor.reset()

        while True:
            span = self._extractor.scan(self._buffer)
            if span is None:
                break
            start, end = span
            candidate = self._buffer[start:end]
            self._buffer = self._buffer[end:].lstrip()
            try:
                values.append(json.loads(candidate))
            except json.JSONDecodeError as exc:
                self._discard(candidate, exc)

        self._newline_from = len(self._buffer)
        return values

    def _parse_line(self, line: str) -> list[Any]:
        try:
            return [json.loads(line)]
        except json.JSONDecodeError as exc:
            first_error = exc

        # Several objects written back to back on one line
        values: list[Any] = []
        rest = line
        while rest:
            extracted = extract_first_object(rest)
            if extracted is None:
                break
            candidate, rest = extracted
            try:
                values.append(json.loads(candidate))
            except json.JSONDecodeError as exc:
                self._discard(candidate, exc)

        if rest:
            self._discard(rest, first_error if not values else None)
        return values

    def _discard(self, text: str, error: Exception | None) -> None:
        self.discarded += 1
        logger.warning(
            "Failed to parse stream frame: %s%s",
            text[:_PREVIEW_CHARS],
            f" ({error})" if error else "",
        )


async def iter_frames(chunks: AsyncIterator[bytes]) -> AsyncIterator[Any]:
    """Decode an async byte iterator into JSON values as they complete."""
    decoder = ChunkDecoder()
    async for chunk in chunks:
        for value in decoder.feed(chunk):
            yield value
    for value in decoder.finish():
        yield value
