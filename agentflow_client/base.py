"""Base AgentFlow client with HTTP request handling and connection management.

Provides the shared httpx client, bearer-token header injection, timeout
handling and the mapping of failed responses onto the exception
hierarchy. Endpoint groups are added to the facade via mixins.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, field_validator

from agentflow_client.exceptions import (
    ConfigurationError,
    RequestTimeoutError,
    TransportError,
    error_from_response,
)
from agentflow_client.settings import DEFAULT_RECURSION_LIMIT, get_settings

logger = logging.getLogger(__name__)


class ClientConfig(BaseModel):
    """Configuration for the AgentFlow client."""

    base_url: str = Field(..., description="Graph server base URL")
    auth_token: str | None = Field(default=None, description="Bearer token (None = no auth)")
    timeout: float = Field(default=300.0, gt=0, description="Per-request timeout in seconds")
    debug: bool = Field(default=False, description="Verbose request/stream logging")
    recursion_limit: int = Field(
        default=DEFAULT_RECURSION_LIMIT,
        ge=1,
        description="Default iteration cap for invoke/stream",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value


def resolve_config(
    base_url: str | None = None,
    auth_token: str | None = None,
    timeout: float | None = None,
    debug: bool | None = None,
    recursion_limit: int | None = None,
) -> ClientConfig:
    """Merge explicit arguments over environment settings."""
    settings = get_settings()
    token = auth_token
    if token is None and settings.auth_token is not None:
        token = settings.auth_token.get_secret_value() or None
    try:
        return ClientConfig(
            base_url=base_url or settings.base_url,
            auth_token=token,
            timeout=timeout if timeout is not None else settings.timeout,
            debug=debug if debug is not None else settings.debug,
            recursion_limit=recursion_limit if recursion_limit is not None else settings.recursion_limit,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid client configuration: {e}") from e


class BaseAgentFlowClient:
    """Base HTTP client for the AgentFlow graph API.

    Handles connection management, auth headers and HTTP requests.
    Endpoint-specific functionality is added via mixins.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize base client.

        Args:
            config: Optional configuration (uses settings if not provided)
            http_client: Caller-owned httpx client; it is not closed by
                :meth:`close`
            transport: Custom httpx transport for the client this object
                creates (e.g. ``httpx.MockTransport`` in tests)
        """
        self.config = config or resolve_config()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._transport = transport

        if self.config.debug:
            from agentflow_client.logging_config import configure_logging

            configure_logging("DEBUG")

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared httpx.AsyncClient.

        The client is created lazily on first use and reused across requests
        so connections are pooled.
        """
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> BaseAgentFlowClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self, accept: str = "application/json") -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": accept}
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: API path (without base URL)
            operation: Human-readable name used in logs and error messages
            json: JSON body
            params: Query parameters; None values are dropped

        Returns:
            Response JSON ({} for an empty body)

        Raises:
            RequestTimeoutError: The configured timeout elapsed
            TransportError: Connection failure or non-2xx response
        """
        client = self._get_http_client()
        query = {k: v for k, v in (params or {}).items() if v is not None} or None

        logger.debug("%s: %s %s", operation, method, path)
        try:
            response = await client.request(
                method,
                self._url(path),
                headers=self._headers(),
                json=json,
                params=query,
            )
        except httpx.TimeoutException as e:
            logger.warning("%s timed out after %ss", operation, self.config.timeout)
            raise RequestTimeoutError(self.config.timeout) from e
        except httpx.HTTPError as e:
            logger.error("%s failed: %s", operation, e)
            raise TransportError(f"{operation} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.warning("%s failed with HTTP %s", operation, response.status_code)
            raise error_from_response(response, f"{operation} failed")

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(
                f"{operation} returned invalid JSON",
                status_code=response.status_code,
            ) from e

        logger.debug("%s succeeded", operation)
        return data
