"""
Errors raised by source clients and pipeline stages.

Every HTTP-level failure is a ConnectorError, so orchestration code can
record "this source gave nothing" with one except clause and move on.
Errors that are never worth retrying carry ``retryable = False``.
"""

from typing import Any


class ConnectorError(Exception):
    """A source request failed."""

    retryable = False
    default_message = "Request failed"

    def __init__(
        self,
        message: str | None = None,
        connector: str | None = None,
        status_code: int | None = None,
        response_body: Any = None,
    ):
        self.message = message or self.default_message
        self.connector = connector
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(self.message)

    def __str__(self) -> str:
        text = self.message
        if self.connector:
            text = f"[{self.connector}] {text}"
        if self.status_code:
            text = f"{text} (HTTP {self.status_code})"
        return text


class RateLimitError(ConnectorError):
    """HTTP 429. ``retry_after`` holds the server's hint in seconds, if any."""

    retryable = True
    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        connector: str | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, connector, status_code=429)
        self.retry_after = retry_after

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text} - retry after {self.retry_after}s" if self.retry_after else text


class NotFoundError(ConnectorError):
    """HTTP 404 for a named resource."""

    def __init__(self, resource_type: str, resource_id: str, connector: str | None = None):
        super().__init__(f"{resource_type} '{resource_id}' not found", connector, status_code=404)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(ConnectorError):
    """The payload could not be decoded or lacks an expected field."""

    def __init__(self, message: str, connector: str | None = None, field: str | None = None):
        super().__init__(message, connector)
        self.field = field


class AuthenticationError(ConnectorError):
    default_message = "Access denied"

    def __init__(self, message: str | None = None, connector: str | None = None):
        super().__init__(message, connector, status_code=401)


class ServiceUnavailableError(ConnectorError):
    """Any 5xx answer."""

    retryable = True
    default_message = "Service temporarily unavailable"

    def __init__(
        self,
        message: str | None = None,
        connector: str | None = None,
        status_code: int = 503,
    ):
        super().__init__(message, connector, status_code=status_code)


class TimeoutError(ConnectorError):
    retryable = True
    default_message = "Request timed out"

    def __init__(
        self,
        message: str | None = None,
        connector: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(message, connector)
        self.timeout = timeout


class ToolTimeoutError(Exception):
    """A planned tool call ran past the runner timeout."""

    def __init__(self, server: str, tool: str, timeout: float):
        self.server = server
        self.tool = tool
        self.timeout = timeout
        super().__init__(f"Tool timeout: {server}.{tool} after {timeout}s")


class SpecValidationError(Exception):
    """A research run specification was rejected; ``errors`` lists each problem."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)
