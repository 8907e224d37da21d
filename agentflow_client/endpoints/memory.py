"""Memory store operations.

Store, search, list and forget long-term memories kept by the graph
server's store backend.
"""

import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MemoryType(str, Enum):
    """Kinds of memory the store distinguishes."""

    EPISODIC = "episodic"
    SEMANTIC = "semantic"
    PROCEDURAL = "procedural"
    ENTITY = "entity"
    RELATIONSHIP = "relationship"
    CUSTOM = "custom"
    DECLARATIVE = "declarative"


class RetrievalStrategy(str, Enum):
    SIMILARITY = "similarity"
    TEMPORAL = "temporal"
    RELEVANCE = "relevance"
    HYBRID = "hybrid"
    GRAPH_TRAVERSAL = "graph_traversal"


class DistanceMetric(str, Enum):
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"
    MANHATTAN = "manhattan"


def _enum_value(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else value


class MemoryMixin:
    """Mixin providing memory store operations."""

    async def store_memory(
        self,
        content: str,
        memory_type: MemoryType | str,
        category: str,
        *,
        config: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Store one memory.

        Returns:
            Response whose ``data.memory_id`` identifies the stored memory
        """
        logger.debug("Storing memory with type %s", _enum_value(memory_type))
        return await self._request(
            "POST",
            "/v1/store/memories",
            operation="Store memory",
            json={
                "config": config or {},
                "options": options or {},
                "content": content,
                "memory_type": _enum_value(memory_type),
                "category": category,
                "metadata": metadata or {},
            },
        )

    async def search_memory(
        self,
        query: str,
        *,
        memory_type: MemoryType | str = MemoryType.EPISODIC,
        category: str = "",
        limit: int = 10,
        score_threshold: float = 0,
        filters: dict[str, Any] | None = None,
        retrieval_strategy: RetrievalStrategy | str = RetrievalStrategy.SIMILARITY,
        distance_metric: DistanceMetric | str = DistanceMetric.COSINE,
        max_tokens: int = 4000,
        config: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Search stored memories.

        Args:
            query: Text to match against
            memory_type: Restrict to one memory type
            category: Restrict to one category ("" for all)
            limit: Maximum number of results
            score_threshold: Minimum similarity score
            filters: Backend-specific metadata filters
            retrieval_strategy: How candidates are ranked
            distance_metric: Vector distance used for similarity
            max_tokens: Budget for returned memory content

        Returns:
            Response whose ``data.results`` lists scored memories
        """
        logger.debug("Searching memories with query: %s", query)
        return await self._request(
            "POST",
            "/v1/store/search",
            operation="Search memory",
            json={
                "config": config or {},
                "options": options or {},
                "query": query,
                "memory_type": _enum_value(memory_type),
                "category": category,
                "limit": limit,
                "score_threshold": score_threshold,
                "filters": filters or {},
                "retrieval_strategy": _enum_value(retrieval_strategy),
                "distance_metric": _enum_value(distance_metric),
                "max_tokens": max_tokens,
            },
        )

    async def list_memories(
        self,
        *,
        limit: int = 100,
        config: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """List stored memories, newest first."""
        return await self._request(
            "POST",
            "/v1/store/memories/list",
            operation="List memories",
            json={"config": config or {}, "options": options or {}, "limit": limit},
        )

    async def forget_memories(
        self,
        *,
        memory_type: MemoryType | str | None = None,
        category: str | None = None,
        filters: dict[str, Any] | None = None,
        config: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Delete every memory matching the given selectors.

        Only the selectors that are set go into the request body; an empty
        body forgets according to the server's default scope.
        """
        body: dict[str, Any] = {}
        if config:
            body["config"] = config
        if options:
            body["options"] = options
        if memory_type:
            body["memory_type"] = _enum_value(memory_type)
        if category:
            body["category"] = category
        if filters:
            body["filters"] = filters

        logger.debug("Forget memories request: %s", body)
        return await self._request("POST", "/v1/store/memories/forget", operation="Forget memories", json=body)
