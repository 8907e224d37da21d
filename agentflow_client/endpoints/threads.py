"""Thread and thread-message operations.

Listing, inspecting and editing the conversation threads the server
checkpoints. The client holds no thread state of its own.
"""

import logging
from typing import Any

from agentflow_client.codec import serialize_messages
from agentflow_client.messages import Message

logger = logging.getLogger(__name__)


class ThreadMixin:
    """Mixin providing thread CRUD operations."""

    async def threads(
        self,
        search: str | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """List threads with optional search and pagination.

        Args:
            search: Free-text filter
            offset: Number of threads to skip
            limit: Maximum number of threads returned

        Returns:
            Response whose ``data.threads`` lists thread summaries
        """
        return await self._request(
            "GET",
            "/v1/threads",
            operation="Threads list fetch",
            params={"search": search, "offset": offset, "limit": limit},
        )

    async def thread_details(self, thread_id: str | int) -> dict[str, Any]:
        """Fetch one thread's details."""
        return await self._request("GET", f"/v1/threads/{thread_id}", operation="Thread details fetch")

    async def thread_state(self, thread_id: str | int) -> dict[str, Any]:
        """Fetch the agent state checkpointed for a thread."""
        return await self._request("GET", f"/v1/threads/{thread_id}/state", operation="Thread state fetch")

    async def thread_messages(
        self,
        thread_id: str | int,
        search: str | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """List the messages stored on a thread.

        Returns:
            Response whose ``data.messages`` holds wire-form messages;
            decode them with ``Message.from_wire``
        """
        return await self._request(
            "GET",
            f"/v1/threads/{thread_id}/messages",
            operation="Thread messages fetch",
            params={"search": search, "offset": offset, "limit": limit},
        )

    async def add_thread_messages(
        self,
        thread_id: str | int,
        messages: list[Message | dict[str, Any]],
        config: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Append messages to a thread's checkpoint."""
        logger.debug("Adding %d messages to thread %s", len(messages), thread_id)
        return await self._request(
            "POST",
            f"/v1/threads/{thread_id}/messages",
            operation="Add thread messages",
            json={
                "config": config or {},
                "messages": serialize_messages(messages),
                "metadata": metadata or {},
            },
        )

    async def delete_thread(self, thread_id: str | int, config: dict[str, Any] | None = None) -> dict[str, Any]:
        """Delete a thread and its checkpoints."""
        return await self._request(
            "DELETE",
            f"/v1/threads/{thread_id}",
            operation="Delete thread",
            json={"config": config or {}},
        )

    async def delete_thread_message(
        self,
        thread_id: str | int,
        message_id: str,
        config: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Delete a single message from a thread."""
        return await self._request(
            "DELETE",
            f"/v1/threads/{thread_id}/messages/{message_id}",
            operation="Delete thread message",
            json={"config": config or {}},
        )
