"""AgentFlow client: streaming graph invocation with local tool execution."""

from agentflow_client.client import AgentFlowClient
from agentflow_client.codec import ResponseGranularity, serialize_message
from agentflow_client.endpoints import DistanceMetric, MemoryType, RetrievalStrategy
from agentflow_client.exceptions import (
    AgentFlowError,
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    NotFoundError,
    PermissionDeniedError,
    RequestTimeoutError,
    ServerError,
    TransportError,
    ValidationError,
)
from agentflow_client.loop import ChunkStream, InvokePartialResult, LoopResult, LoopStatus
from agentflow_client.messages import (
    Message,
    RemoteToolCallBlock,
    Role,
    TextBlock,
    TokenUsage,
    ToolCallStatus,
    ToolResultBlock,
    UnknownBlock,
)
from agentflow_client.streaming import ChunkDecoder, StreamChunk, StreamEventType
from agentflow_client.tools import ToolExecutor, ToolRegistration

__all__ = [
    "AgentFlowClient",
    "AgentFlowError",
    "AuthenticationError",
    "BadRequestError",
    "ChunkDecoder",
    "ChunkStream",
    "ConfigurationError",
    "DistanceMetric",
    "InvokePartialResult",
    "LoopResult",
    "LoopStatus",
    "MemoryType",
    "Message",
    "NotFoundError",
    "PermissionDeniedError",
    "RemoteToolCallBlock",
    "RequestTimeoutError",
    "ResponseGranularity",
    "RetrievalStrategy",
    "Role",
    "ServerError",
    "StreamChunk",
    "StreamEventType",
    "TextBlock",
    "TokenUsage",
    "ToolCallStatus",
    "ToolExecutor",
    "ToolRegistration",
    "ToolResultBlock",
    "TransportError",
    "UnknownBlock",
    "ValidationError",
    "serialize_message",
]
