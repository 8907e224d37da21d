"""AgentFlow client facade.

Combines the base HTTP layer with the endpoint mixins and the tool loop.
This module is a thin facade; behaviour lives in base, endpoints, loop
and tools.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from agentflow_client.base import BaseAgentFlowClient, resolve_config
from agentflow_client.codec import ResponseGranularity
from agentflow_client.endpoints import GraphMixin, MemoryMixin, ThreadMixin
from agentflow_client.loop import GraphRequest, ToolLoopController
from agentflow_client.tools import ToolExecutor, ToolRegistration

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from agentflow_client.loop import ChunkStream, InvokePartialResult, LoopResult
    from agentflow_client.messages import Message

__all__ = ["AgentFlowClient"]


class AgentFlowClient(BaseAgentFlowClient, GraphMixin, ThreadMixin, MemoryMixin):
    """Client for an AgentFlow graph server.

    Explicit arguments override the ``AGENTFLOW_*`` settings.

    Usage:
        async with AgentFlowClient(base_url="http://localhost:8000") as client:
            client.register_tool(ToolRegistration(name="add", node="calc", handler=add))
            result = await client.invoke([Message.text_message("What is 2 + 3?")])

            async with client.stream([Message.text_message("hi")]) as stream:
                async for chunk in stream:
                    ...
    """

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
        debug: bool | None = None,
        recursion_limit: int | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        config = resolve_config(
            base_url=base_url,
            auth_token=auth_token,
            timeout=timeout,
            debug=debug,
            recursion_limit=recursion_limit,
        )
        super().__init__(config, http_client=http_client, transport=transport)
        self.tool_executor = ToolExecutor()
        self._loop = ToolLoopController(self, self.tool_executor)

    def register_tool(self, registration: ToolRegistration) -> None:
        """Make a local tool available to remote tool calls."""
        self.tool_executor.register(registration)

    def tool_manifest(self) -> list[dict[str, Any]]:
        """Function-calling descriptors of every registered tool."""
        return self.tool_executor.manifest()

    def _graph_request(
        self,
        messages: list[Message | dict[str, Any]],
        initial_state: dict[str, Any] | None,
        config: dict[str, Any] | None,
        recursion_limit: int | None,
        response_granularity: ResponseGranularity | str | None,
    ) -> GraphRequest:
        return GraphRequest(
            messages=list(messages),
            initial_state=initial_state,
            config=config,
            recursion_limit=recursion_limit if recursion_limit is not None else self.config.recursion_limit,
            response_granularity=response_granularity,
        )

    async def invoke(
        self,
        messages: list[Message | dict[str, Any]],
        *,
        initial_state: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
        recursion_limit: int | None = None,
        response_granularity: ResponseGranularity | str | None = ResponseGranularity.FULL,
        on_partial_result: Callable[[InvokePartialResult], Awaitable[None] | None] | None = None,
    ) -> LoopResult:
        """Run the graph to completion, executing requested tools locally.

        Args:
            messages: Conversation input
            initial_state: Agent state sent with the first request only
            config: Graph config (e.g. ``{"thread_id": ...}``)
            recursion_limit: Maximum exchanges; defaults to the client's
            response_granularity: How much state the server returns
            on_partial_result: Called after every exchange

        Returns:
            LoopResult; ``limit_reached`` is set when tools were still
            pending at the recursion limit

        Raises:
            RequestTimeoutError: An exchange exceeded the timeout
            TransportError: Connection failure or non-2xx response
        """
        request = self._graph_request(messages, initial_state, config, recursion_limit, response_granularity)
        return await self._loop.invoke(request, on_partial_result)

    def stream(
        self,
        messages: list[Message | dict[str, Any]],
        *,
        initial_state: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
        recursion_limit: int | None = None,
        response_granularity: ResponseGranularity | str | None = ResponseGranularity.LOW,
    ) -> ChunkStream:
        """Stream the graph run chunk by chunk, executing requested tools between exchanges.

        Nothing is sent until the returned stream is first iterated.
        """
        request = self._graph_request(messages, initial_state, config, recursion_limit, response_granularity)
        return self._loop.stream(request)
