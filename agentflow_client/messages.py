"""Conversation message model.

Messages are immutable once built. Content is an ordered tuple of
content blocks discriminated by their ``type`` field; block types this
client does not understand are kept as :class:`UnknownBlock` with every
field preserved so they survive a round trip to the server unchanged.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Message author roles known to the graph server."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolCallStatus(str, Enum):
    """Completion status carried by a tool result block."""

    COMPLETED = "completed"
    FAILED = "failed"


class TextBlock(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str
    annotations: list[Any] = Field(default_factory=list)


class RemoteToolCallBlock(BaseModel):
    """Instruction from the agent to run a locally registered tool."""

    model_config = ConfigDict(frozen=True)

    type: Literal["remote_tool_call"] = "remote_tool_call"
    name: str
    id: str | int
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    """Outcome of a tool call, correlated to it by ``call_id``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    call_id: str | int
    output: Any = None
    status: ToolCallStatus | str = ToolCallStatus.COMPLETED
    is_error: bool = False


class UnknownBlock(BaseModel):
    """Any other block type, kept verbatim."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str


ContentBlock = Union[TextBlock, RemoteToolCallBlock, ToolResultBlock, UnknownBlock]

_BLOCK_TYPES: dict[str, type[BaseModel]] = {
    "text": TextBlock,
    "remote_tool_call": RemoteToolCallBlock,
    "tool_result": ToolResultBlock,
}


def parse_block(raw: Any) -> ContentBlock:
    """Turn one wire block into a typed content block.

    Blocks of a known type that fail validation are kept as
    :class:`UnknownBlock` instead of being dropped.
    """
    if isinstance(raw, (TextBlock, RemoteToolCallBlock, ToolResultBlock, UnknownBlock)):
        return raw
    if isinstance(raw, str):
        return TextBlock(text=raw)
    if not isinstance(raw, dict):
        raise TypeError(f"Content block must be a mapping, got {type(raw).__name__}")

    block_type = raw.get("type")
    model = _BLOCK_TYPES.get(block_type) if isinstance(block_type, str) else None
    if model is not None:
        try:
            return model.model_validate(raw)  # type: ignore[return-value]
        except PydanticValidationError:
            logger.debug("Keeping malformed %s block verbatim", block_type)
    return UnknownBlock.model_validate({**raw, "type": str(block_type or "unknown")})


def parse_content(content: Any) -> tuple[ContentBlock, ...]:
    """Decode message content from its wire form.

    A bare string becomes a single text block; a list is decoded block by
    block; ``None`` is empty content.
    """
    if content is None:
        return ()
    if isinstance(content, str):
        return (TextBlock(text=content),)
    if isinstance(content, (list, tuple)):
        return tuple(parse_block(block) for block in content)
    return (parse_block(content),)


class TokenUsage(BaseModel):
    """Token counters reported by the server for one message."""

    model_config = ConfigDict(frozen=True, extra="allow")

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class Message(BaseModel):
    """A single conversation message.

    Usage::

        msg = Message.text_message("What is the weather in Paris?")
        msg.text()  # "What is the weather in Paris?"
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: Role | str
    content: tuple[ContentBlock, ...] = ()
    message_id: str | int | None = None
    timestamp: float | str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    usages: TokenUsage | None = None
    tool_calls: list[dict[str, Any]] | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, Role):
            try:
                return Role(value)
            except ValueError:
                return value
        return value

    @field_validator("content", mode="before")
    @classmethod
    def _decode_content(cls, value: Any) -> tuple[ContentBlock, ...]:
        return parse_content(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def text_message(
        cls,
        text: str,
        role: Role | str = Role.USER,
        *,
        message_id: str | int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Build a message holding one text block."""
        return cls(
            role=role,
            content=(TextBlock(text=text),),
            message_id=message_id,
            metadata=metadata or {},
        )

    @classmethod
    def tool_message(cls, blocks: list[ToolResultBlock] | tuple[ToolResultBlock, ...]) -> Message:
        """Build a tool-role message carrying tool result blocks."""
        return cls(role=Role.TOOL, content=tuple(blocks))

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Message:
        """Build a message from its JSON form as sent by the server."""
        return cls.model_validate(data)

    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    def tool_call_blocks(self) -> list[RemoteToolCallBlock]:
        """Remote tool call blocks in content order."""
        return [block for block in self.content if isinstance(block, RemoteToolCallBlock)]
