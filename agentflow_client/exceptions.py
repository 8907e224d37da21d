"""AgentFlow client exception hierarchy.

Only transport and timeout failures escape the client as exceptions.
Malformed stream frames, failing tool handlers and unknown tool names are
absorbed and reported through log records or failed tool-result messages.

Usage:
    from agentflow_client.exceptions import RequestTimeoutError, TransportError

    try:
        result = await client.invoke(messages)
    except TransportError as e:
        logger.error("Invoke failed: %s (status=%s)", e, e.status_code)
"""

from __future__ import annotations

import uuid
from typing import Any

import httpx


class AgentFlowError(Exception):
    """Base exception for all AgentFlow client errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ConfigurationError(AgentFlowError):
    """Errors from client configuration."""

    pass


class TransportError(AgentFlowError):
    """A request could not be completed or the server answered non-2xx.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        details: Parsed JSON error body (empty when the body was not JSON).
        request_id: Server-assigned request id from the response metadata.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        self.details = details or {}
        self.request_id = request_id
        super().__init__(message, correlation_id=correlation_id)


class BadRequestError(TransportError):
    """HTTP 400."""


class AuthenticationError(TransportError):
    """HTTP 401."""


class PermissionDeniedError(TransportError):
    """HTTP 403."""


class NotFoundError(TransportError):
    """HTTP 404."""


class ValidationError(TransportError):
    """HTTP 422 (server-side request validation)."""


class ServerError(TransportError):
    """HTTP 5xx."""


class RequestTimeoutError(AgentFlowError):
    """The configured per-request timeout elapsed before the exchange finished."""

    def __init__(self, timeout: float, *, correlation_id: str | None = None):
        self.timeout = timeout
        super().__init__(f"Request timeout after {timeout:g}s", correlation_id=correlation_id)


_STATUS_ERRORS: dict[int, type[TransportError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
}


def _error_class_for(status_code: int) -> type[TransportError]:
    if status_code >= 500:
        return ServerError
    return _STATUS_ERRORS.get(status_code, TransportError)


def _extract_error_message(body: dict[str, Any]) -> str | None:
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    for key in ("detail", "message"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def error_from_response(response: httpx.Response, default_message: str) -> TransportError:
    """Build the typed error for a non-2xx response.

    JSON bodies contribute the server's error message and
    ``metadata.request_id``. A body that is not JSON, or could not be read,
    falls back to ``default_message``.
    """
    details: dict[str, Any] = {}
    try:
        parsed = response.json()
    except (ValueError, httpx.ResponseNotRead):
        parsed = None
    if isinstance(parsed, dict):
        details = parsed

    server_message = _extract_error_message(details)
    metadata = details.get("metadata")
    request_id = metadata.get("request_id") if isinstance(metadata, dict) else None

    message = f"{default_message}: HTTP {response.status_code}"
    if server_message:
        message = f"{message} - {server_message}"

    return _error_class_for(response.status_code)(
        message,
        status_code=response.status_code,
        details=details,
        request_id=request_id,
    )
