"""One streaming exchange with the graph server.

A :class:`StreamSession` owns a single ``POST /v1/graph/stream`` response.
It is both an async context manager and an async iterator: every byte
chunk read from the response is decoded immediately and the resulting
:class:`StreamChunk` objects are handed out one by one, so nothing is
buffered beyond the frame currently being reassembled.

The response is released exactly once, whichever way the session ends:
exhausted, closed early by the consumer, or aborted by an error.
"""

from __future__ import annotations

import contextlib
import logging
from collections import deque
from typing import TYPE_CHECKING, Any

import httpx

from agentflow_client.exceptions import RequestTimeoutError, TransportError, error_from_response
from agentflow_client.streaming.decoder import ChunkDecoder
from agentflow_client.streaming.events import StreamChunk

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agentflow_client.messages import Message

logger = logging.getLogger(__name__)

STREAM_PATH = "/v1/graph/stream"
STREAM_ACCEPT = "application/x-ndjson, application/json"


class StreamSession:
    """Pull-based iterator over one streaming response.

    Usage::

        async with StreamSession(http, url, body, headers=h, timeout=30) as session:
            async for chunk in session:
                print(chunk.event)
        session.messages  # every message seen, in order
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        body: dict[str, Any],
        *,
        headers: dict[str, str],
        timeout: float,
    ) -> None:
        self._http_client = http_client
        self._url = url
        self._body = body
        self._headers = headers
        self._timeout = timeout

        self._stack: contextlib.AsyncExitStack | None = None
        self._response: httpx.Response | None = None
        self._byte_iter: AsyncIterator[bytes] | None = None
        self._decoder = ChunkDecoder()
        self._pending: deque[StreamChunk] = deque()
        self._exhausted = False

        self.messages: list[Message] = []
        self.chunk_count = 0
        self.closed = False

    @property
    def discarded_frames(self) -> int:
        """Frames dropped because they could not be parsed."""
        return self._decoder.discarded

    async def open(self) -> None:
        """Send the request and check the response status.

        Raises:
            RequestTimeoutError: The server did not answer within the timeout
            TransportError: Connection failure or non-2xx status (raised
                before any of the body is parsed)
        """
        if self._response is not None:
            return
        if self.closed:
            raise TransportError("Stream session is already closed")

        stack = contextlib.AsyncExitStack()
        self._stack = stack
        try:
            response = await stack.enter_async_context(
                self._http_client.stream(
                    "POST",
                    self._url,
                    json=self._body,
                    headers=self._headers,
                    timeout=httpx.Timeout(self._timeout),
                )
            )
        except httpx.TimeoutException as e:
            await self._release()
            logger.warning("Stream timeout after %ss", self._timeout)
            raise RequestTimeoutError(self._timeout) from e
        except httpx.HTTPError as e:
            await self._release()
            logger.error("Stream failed: %s", e)
            raise TransportError(f"Stream request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.warning("Stream failed with HTTP %s", response.status_code)
            try:
                try:
                    await response.aread()
                except (httpx.HTTPError, httpx.StreamError) as e:
                    logger.debug("Could not read error body of failed stream response: %s", e)
                raise error_from_response(response, "Stream request failed")
            finally:
                await self._release()

        self._response = response
        self._byte_iter = response.aiter_bytes()

    async def __aenter__(self) -> StreamSession:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __aiter__(self) -> StreamSession:
        return self

    async def __anext__(self) -> StreamChunk:
        while not self._pending:
            if self._exhausted or self.closed:
                await self.aclose()
                raise StopAsyncIteration
            await self._read_more()
        return self._pending.popleft()

    async def _read_more(self) -> None:
        if self._response is None:
            await self.open()
        assert self._byte_iter is not None

        try:
            raw = await self._byte_iter.__anext__()
        except StopAsyncIteration:
            values = self._decoder.finish()
            self._exhausted = True
        except httpx.TimeoutException as e:
            await self.aclose()
            logger.warning("Stream timeout after %ss", self._timeout)
            raise RequestTimeoutError(self._timeout) from e
        except httpx.HTTPError as e:
            await self.aclose()
            logger.error("Stream failed while reading: %s", e)
            raise TransportError(f"Stream read failed: {type(e).__name__}: {e}") from e
        except BaseException:
            await self.aclose()
            raise
        else:
            values = self._decoder.feed(raw)

        for value in values:
            self._pending.append(self._accept(value))

    def _accept(self, value: Any) -> StreamChunk:
        chunk = StreamChunk.from_frame(value)
        self.chunk_count += 1
        if chunk.message is not None:
            self.messages.append(chunk.message)
        logger.debug("Stream chunk received: %s", chunk.event)
        return chunk

    async def aclose(self) -> None:
        """Release the response. Safe to call more than once."""
        self._pending.clear()
        await self._release()

    async def _release(self) -> None:
        if self.closed:
            return
        self.closed = True
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()
