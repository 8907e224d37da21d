"""Endpoint mixins for the AgentFlow client facade."""

from agentflow_client.endpoints.graph import GraphMixin
from agentflow_client.endpoints.memory import DistanceMetric, MemoryMixin, MemoryType, RetrievalStrategy
from agentflow_client.endpoints.threads import ThreadMixin

__all__ = [
    "DistanceMetric",
    "GraphMixin",
    "MemoryMixin",
    "MemoryType",
    "RetrievalStrategy",
    "ThreadMixin",
]
