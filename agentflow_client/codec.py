"""Message codec: wire serialization for outbound requests.

Pure functions turning :class:`Message` objects into the JSON shapes the
graph server accepts, plus the request body shared by the invoke and
stream endpoints.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from agentflow_client.messages import ContentBlock, Message, TextBlock, parse_content
from agentflow_client.settings import DEFAULT_RECURSION_LIMIT

if TYPE_CHECKING:
    from collections.abc import Iterable

# Sent when a message has no id yet; the server assigns one.
UNASSIGNED_MESSAGE_ID = 0


class ResponseGranularity(str, Enum):
    """How much of the agent state the server sends back."""

    FULL = "full"
    PARTIAL = "partial"
    LOW = "low"


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (list, tuple)) and len(value) == 0)


def clean_block(block: ContentBlock) -> dict[str, Any]:
    """Dump a block, dropping empty-list and None-valued fields."""
    dumped = block.model_dump(mode="json")
    return {key: value for key, value in dumped.items() if not _is_empty(value)}


def _is_plain_text(content: tuple[ContentBlock, ...]) -> bool:
    if len(content) != 1 or not isinstance(content[0], TextBlock):
        return False
    return not content[0].annotations


def serialize_content(content: tuple[ContentBlock, ...]) -> str | list[dict[str, Any]]:
    """Content in wire form: bare text for a lone plain text block, else a block list."""
    if _is_plain_text(content):
        return content[0].text  # type: ignore[union-attr]
    return [clean_block(block) for block in content]


def decode_content(content: Any) -> tuple[ContentBlock, ...]:
    """Inverse of :func:`serialize_content`."""
    return parse_content(content)


def serialize_message(message: Message) -> dict[str, Any]:
    """Serialize a message for API transmission.

    ``message_id`` is sent verbatim when set and as ``0`` otherwise;
    ``metadata`` only when non-empty; ``tool_calls`` only when present.
    """
    role = message.role.value if isinstance(message.role, Enum) else message.role
    serialized: dict[str, Any] = {
        "role": role,
        "content": serialize_content(message.content),
    }

    if message.message_id is not None:
        serialized["message_id"] = message.message_id
    else:
        serialized["message_id"] = UNASSIGNED_MESSAGE_ID

    if message.metadata:
        serialized["metadata"] = message.metadata
    if message.tool_calls is not None:
        serialized["tool_calls"] = message.tool_calls

    return serialized


def serialize_messages(messages: Iterable[Message | dict[str, Any]]) -> list[dict[str, Any]]:
    """Serialize a message list; already-serialized dicts pass through."""
    return [m if isinstance(m, dict) else serialize_message(m) for m in messages]


def build_request_body(
    messages: Iterable[Message | dict[str, Any]],
    *,
    initial_state: dict[str, Any] | None = None,
    config: dict[str, Any] | None = None,
    recursion_limit: int | None = DEFAULT_RECURSION_LIMIT,
    response_granularity: ResponseGranularity | str | None = None,
) -> dict[str, Any]:
    """Build the body for ``/v1/graph/invoke`` and ``/v1/graph/stream``.

    Optional fields that are None are left out of the body.
    """
    body: dict[str, Any] = {"messages": serialize_messages(messages)}
    if initial_state is not None:
        body["initial_state"] = initial_state
    if config is not None:
        body["config"] = config
    if recursion_limit is not None:
        body["recursion_limit"] = recursion_limit
    if response_granularity is not None:
        body["response_granularity"] = ResponseGranularity(response_granularity).value
    return body
