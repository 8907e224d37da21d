"""Client-side tool registry and executor.

The graph server may answer with ``remote_tool_call`` blocks asking the
client to run a function it registered locally. :class:`ToolExecutor`
owns the name -> registration table, describes the tools to the server,
and turns each requested call into exactly one tool-result message.

Handlers receive the call's argument mapping. State a handler needs
should be bound explicitly (``functools.partial`` or a bound method)
rather than captured from module globals.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agentflow_client.messages import (
    Message,
    RemoteToolCallBlock,
    ToolCallStatus,
    ToolResultBlock,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    ToolHandler = Callable[[dict[str, Any]], Awaitable[Any] | Any]

logger = logging.getLogger(__name__)


def _empty_parameters() -> dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


@dataclass(frozen=True)
class ToolRegistration:
    """A locally executable tool.

    Attributes:
        name: Unique tool name (the key the server calls it by).
        node: Graph node that owns the tool.
        handler: Callable taking the argument dict; may be async.
        description: Shown to the model; defaults to "Execute <name>".
        parameters: JSON schema of the arguments.
    """

    name: str
    node: str
    handler: ToolHandler
    description: str | None = None
    parameters: dict[str, Any] | None = None

    def descriptor(self) -> dict[str, Any]:
        """Function-calling descriptor for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description or f"Execute {self.name}",
                "parameters": self.parameters or _empty_parameters(),
            },
        }


def extract_tool_calls(messages: Iterable[Message]) -> list[RemoteToolCallBlock]:
    """All remote tool call blocks across ``messages``, in arrival order."""
    return [block for message in messages for block in message.tool_call_blocks()]


class ToolExecutor:
    """Registry of local tools plus execution of server-requested calls.

    Usage::

        executor = ToolExecutor()
        executor.register(ToolRegistration(name="get_weather", node="weather", handler=fetch))
        if executor.has_tool_calls(messages):
            results = await executor.execute_tool_calls(messages)
    """

    def __init__(self, tools: Iterable[ToolRegistration] = ()) -> None:
        self._tools: dict[str, ToolRegistration] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolRegistration) -> None:
        """Store ``tool`` under its name, replacing any earlier registration."""
        if tool.name in self._tools:
            logger.debug("Replacing registration for tool '%s'", tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool '%s' for node '%s'", tool.name, tool.node)

    def get(self, name: str) -> ToolRegistration | None:
        return self._tools.get(name)

    @property
    def registrations(self) -> list[ToolRegistration]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def manifest(self) -> list[dict[str, Any]]:
        """Descriptors for every registered tool, in registration order."""
        return [tool.descriptor() for tool in self._tools.values()]

    def tools_for_node(self, node: str) -> list[ToolRegistration]:
        return [tool for tool in self._tools.values() if tool.node == node]

    @staticmethod
    def has_tool_calls(messages: Iterable[Message]) -> bool:
        """True if any message contains a remote tool call block."""
        return any(message.tool_call_blocks() for message in messages)

    async def execute_tool_calls(self, messages: Iterable[Message]) -> list[Message]:
        """Run every requested tool call, one after another.

        Returns one tool message per call, in call order, each holding a
        single ToolResultBlock correlated by ``call_id``. Handler failures
        and unknown tool names become failed results; this method does not
        raise for them.
        """
        results: list[Message] = []
        for call in extract_tool_calls(messages):
            block = await self._execute_one(call)
            results.append(Message.tool_message([block]))
        return results

    async def _execute_one(self, call: RemoteToolCallBlock) -> ToolResultBlock:
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning("Tool '%s' requested by the server is not registered", call.name)
            return ToolResultBlock(
                call_id=call.id,
                output={"error": f"Tool '{call.name}' not found"},
                status=ToolCallStatus.FAILED,
                is_error=True,
            )

        logger.debug("Executing tool '%s' (call %s)", call.name, call.id)
        try:
            output = tool.handler(call.args)
            if inspect.isawaitable(output):
                output = await output
        except Exception as e:
            logger.warning("Tool '%s' failed: %s", call.name, e)
            return ToolResultBlock(
                call_id=call.id,
                output={"error": str(e)},
                status=ToolCallStatus.FAILED,
                is_error=True,
            )

        return ToolResultBlock(
            call_id=call.id,
            output=output,
            status=ToolCallStatus.COMPLETED,
            is_error=False,
        )
