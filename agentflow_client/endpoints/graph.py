"""Graph metadata operations.

Server health, compiled graph structure and the agent state schema.
"""

from typing import Any


class GraphMixin:
    """Mixin providing graph-level read operations."""

    async def ping(self) -> dict[str, Any]:
        """Check that the server is reachable.

        Returns:
            ``{"data": "pong", "metadata": {...}}`` style response
        """
        return await self._request("GET", "/ping", operation="Ping")

    async def graph(self) -> dict[str, Any]:
        """Fetch the compiled graph: info, nodes and edges.

        Returns:
            Response whose ``data`` holds ``info``, ``nodes`` and ``edges``
        """
        return await self._request("GET", "/v1/graph", operation="Graph fetch")

    async def graph_state_schema(self) -> dict[str, Any]:
        """Fetch the JSON schema of the agent state.

        Useful for building forms or validating ``initial_state`` before
        calling invoke/stream.
        """
        return await self._request("GET", "/v1/graph:StateSchema", operation="State schema fetch")
