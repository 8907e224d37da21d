"""Tool execution loop around the invoke and stream endpoints.

One top-level call alternates between an exchange with the graph server
and local execution of the tools the server asked for:

    ITERATING --(no tool calls)--------------------------------> DONE
    ITERATING --(tool calls)--> EXECUTING_TOOLS --(iteration <= limit)--> ITERATING
                                                 --(iteration >  limit)--> LIMIT_REACHED

Iterations never overlap. A transport failure or timeout in any exchange
aborts the whole call; there is no retry. Hitting the recursion limit is
not an error, it is reported on the result.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from agentflow_client.codec import ResponseGranularity, build_request_body
from agentflow_client.exceptions import ConfigurationError
from agentflow_client.messages import Message
from agentflow_client.settings import DEFAULT_RECURSION_LIMIT
from agentflow_client.streaming.session import STREAM_ACCEPT, STREAM_PATH, StreamSession

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from agentflow_client.base import BaseAgentFlowClient
    from agentflow_client.streaming.events import StreamChunk
    from agentflow_client.tools import ToolExecutor

logger = logging.getLogger(__name__)

INVOKE_PATH = "/v1/graph/invoke"


class LoopStatus(str, Enum):
    """States of the tool loop."""

    ITERATING = "iterating"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    LIMIT_REACHED = "limit_reached"


@dataclass(frozen=True)
class GraphRequest:
    """What the caller asks the graph to do."""

    messages: list[Message | dict[str, Any]]
    initial_state: dict[str, Any] | None = None
    config: dict[str, Any] | None = None
    recursion_limit: int = DEFAULT_RECURSION_LIMIT
    response_granularity: ResponseGranularity | str | None = None

    def body_for(self, iteration: int, messages: list[Message | dict[str, Any]]) -> dict[str, Any]:
        """Request body for one iteration; initial_state goes out only on the first."""
        return build_request_body(
            messages,
            initial_state=self.initial_state if iteration == 1 else None,
            config=self.config,
            recursion_limit=self.recursion_limit,
            response_granularity=self.response_granularity,
        )


@dataclass
class LoopState:
    """Mutable bookkeeping for one top-level call."""

    recursion_limit: int
    current_messages: list[Message | dict[str, Any]]
    iteration: int = 1
    iterations_run: int = 0
    status: LoopStatus = LoopStatus.ITERATING
    history: list[Message] = field(default_factory=list)
    last_response: list[Message] = field(default_factory=list)
    last_data: dict[str, Any] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.status in (LoopStatus.DONE, LoopStatus.LIMIT_REACHED)

    @property
    def limit_reached(self) -> bool:
        return self.status is LoopStatus.LIMIT_REACHED

    def to_result(self) -> LoopResult:
        return LoopResult(
            iterations=self.iterations_run,
            limit_reached=self.limit_reached,
            messages=list(self.last_response),
            all_messages=list(self.history),
            state=self.last_data.get("state"),
            context=self.last_data.get("context"),
            summary=self.last_data.get("summary"),
            meta=self.last_data.get("meta"),
        )


@dataclass(frozen=True)
class LoopResult:
    """Terminal output of a loop run.

    Attributes:
        iterations: Exchanges performed.
        limit_reached: True when the loop stopped at the recursion limit
            with tool calls still pending.
        messages: Messages produced by the final exchange.
        all_messages: Caller input, every produced message and every tool
            result, in order.
        state / context / summary / meta: From the last invoke response
            (None for streamed runs).
    """

    iterations: int
    limit_reached: bool
    messages: list[Message]
    all_messages: list[Message]
    state: Any = None
    context: Any = None
    summary: Any = None
    meta: Any = None


@dataclass(frozen=True)
class InvokePartialResult:
    """Snapshot handed to ``on_partial_result`` after each invoke exchange."""

    iteration: int
    messages: list[Message]
    has_tool_calls: bool
    is_final: bool
    state: Any = None
    context: Any = None
    summary: Any = None
    meta: Any = None


def _as_message(item: Message | dict[str, Any]) -> Message:
    return item if isinstance(item, Message) else Message.from_wire(item)


def _response_messages(data: dict[str, Any]) -> list[Message]:
    """Messages from an invoke response; malformed entries are skipped."""
    messages: list[Message] = []
    for raw in data.get("messages") or []:
        try:
            messages.append(Message.from_wire(raw))
        except (PydanticValidationError, TypeError) as e:
            logger.warning("Skipping malformed message in invoke response: %s", e)
    return messages


class ChunkStream:
    """Async iterator over every chunk of a streamed loop run.

    Use it as an async context manager so the in-flight response is
    released even when iteration stops early::

        async with client.stream(messages) as stream:
            async for chunk in stream:
                ...
        stream.result.iterations
    """

    def __init__(self, chunks: AsyncGenerator[StreamChunk, None], state: LoopState) -> None:
        self._chunks = chunks
        self._state = state

    @property
    def status(self) -> LoopStatus:
        return self._state.status

    @property
    def result(self) -> LoopResult | None:
        """Loop outcome once iteration has finished, else None."""
        return self._state.to_result() if self._state.finished else None

    def __aiter__(self) -> ChunkStream:
        return self

    async def __anext__(self) -> StreamChunk:
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        await self._chunks.aclose()

    async def __aenter__(self) -> ChunkStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class ToolLoopController:
    """Runs the exchange/tool-execution loop for one client.

    Args:
        client: Provides the HTTP client, headers and timeout.
        tool_executor: Executes remote tool calls; without one the loop
            stops after the first exchange.
    """

    def __init__(self, client: BaseAgentFlowClient, tool_executor: ToolExecutor | None = None) -> None:
        self._client = client
        self._tool_executor = tool_executor

    def _new_state(self, request: GraphRequest) -> LoopState:
        if request.recursion_limit < 1:
            raise ConfigurationError(f"recursion_limit must be >= 1, got {request.recursion_limit}")
        state = LoopState(
            recursion_limit=request.recursion_limit,
            current_messages=list(request.messages),
        )
        state.history.extend(_as_message(m) for m in request.messages)
        return state

    async def _after_exchange(self, state: LoopState, produced: list[Message]) -> bool:
        """Advance the state machine after an exchange; returns has_tool_calls."""
        state.iterations_run += 1
        state.last_response = produced
        state.history.extend(produced)

        executor = self._tool_executor
        if executor is None or not executor.has_tool_calls(produced):
            if executor is None and any(m.tool_call_blocks() for m in produced):
                logger.warning("Response contains remote tool calls but no tool executor is attached")
            logger.debug("No remote tool calls found, finishing")
            state.status = LoopStatus.DONE
            return False

        state.status = LoopStatus.EXECUTING_TOOLS
        logger.debug("Found remote tool calls, executing")
        tool_results = await executor.execute_tool_calls(produced)
        logger.debug("Executed %d tool calls", len(tool_results))

        state.history.extend(tool_results)
        state.current_messages = list(tool_results)
        state.iteration += 1
        if state.iteration <= state.recursion_limit:
            state.status = LoopStatus.ITERATING
        else:
            state.status = LoopStatus.LIMIT_REACHED
            logger.warning("Recursion limit of %d reached", state.recursion_limit)
        return True

    # ─── Streaming ───────────────────────────────────────────────────────────

    def stream(self, request: GraphRequest) -> ChunkStream:
        """Start a streamed loop run; chunks are forwarded unchanged as they arrive."""
        state = self._new_state(request)
        return ChunkStream(self._stream_chunks(request, state), state)

    async def _stream_chunks(
        self, request: GraphRequest, state: LoopState
    ) -> AsyncGenerator[StreamChunk, None]:
        client = self._client
        logger.debug("Starting stream with recursion_limit=%d", state.recursion_limit)

        while state.status is LoopStatus.ITERATING:
            logger.debug("Stream iteration %d/%d", state.iteration, state.recursion_limit)
            session = StreamSession(
                client._get_http_client(),
                client._url(STREAM_PATH),
                request.body_for(state.iteration, state.current_messages),
                headers=client._headers(accept=STREAM_ACCEPT),
                timeout=client.config.timeout,
            )
            async with session:
                async for chunk in session:
                    yield chunk

            logger.debug(
                "Stream iteration completed with %d chunks, %d messages",
                session.chunk_count,
                len(session.messages),
            )
            await self._after_exchange(state, list(session.messages))

        logger.debug("Stream completed after %d iterations", state.iterations_run)

    # ─── Invoke ──────────────────────────────────────────────────────────────

    async def invoke(
        self,
        request: GraphRequest,
        on_partial_result: Callable[[InvokePartialResult], Awaitable[None] | None] | None = None,
    ) -> LoopResult:
        """Run the loop with single-shot ``/v1/graph/invoke`` exchanges."""
        state = self._new_state(request)
        logger.debug("Starting invoke with recursion_limit=%d", state.recursion_limit)

        while state.status is LoopStatus.ITERATING:
            logger.debug("Invoke iteration %d/%d", state.iteration, state.recursion_limit)
            response = await self._client._request(
                "POST",
                INVOKE_PATH,
                operation="Invoke",
                json=request.body_for(state.iteration, state.current_messages),
            )
            data = response.get("data", response) if isinstance(response, dict) else {}
            if not isinstance(data, dict):
                data = {}
            produced = _response_messages(data)
            state.last_data = data

            iteration = state.iteration
            has_calls = await self._after_exchange(state, produced)

            if on_partial_result is not None:
                partial = InvokePartialResult(
                    iteration=iteration,
                    messages=produced,
                    has_tool_calls=has_calls,
                    is_final=state.finished,
                    state=data.get("state"),
                    context=data.get("context"),
                    summary=data.get("summary"),
                    meta=data.get("meta"),
                )
                outcome = on_partial_result(partial)
                if inspect.isawaitable(outcome):
                    await outcome

        logger.debug("Invoke completed after %d iterations", state.iterations_run)
        return state.to_result()
