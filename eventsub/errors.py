"""
Exceptions for the EventSub client.

Two families:
    ValidationError: Raised locally, before any request is sent.
        Deterministic, never retried; the caller must fix the input.
    TransportError: Raised by the HTTP transport for non-2xx responses,
        timeouts and network faults. Propagated unchanged by the
        subscription, conduit and shard clients.

Partial shard-batch failures are not exceptions; they are reported
through BatchResult (see eventsub.schemas).
"""

from __future__ import annotations


class EventSubError(Exception):
    """Base exception for the EventSub client."""


# =============================================================================
# Local validation
# =============================================================================


class ValidationError(EventSubError):
    """Raised when an input fails local validation."""

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        return f"{self.field}: {self.args[0]}"


# =============================================================================
# Transport
# =============================================================================


class TransportError(EventSubError):
    """Raised when a request fails at the HTTP layer."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.response_body = response_body
        self.retryable = retryable

    def __str__(self) -> str:
        parts = [f"[eventsub] {self.args[0]}"]
        if self.method and self.path:
            parts.append(f"({self.method} {self.path})")
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)


class AuthenticationError(TransportError):
    """Raised when authentication fails (401/403)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class RateLimitError(TransportError):
    """Raised when rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        **kwargs,
    ):
        super().__init__(message, retryable=True, **kwargs)
        self.retry_after = retry_after


class NotFoundError(TransportError):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class BadRequestError(TransportError):
    """Raised when the remote side rejects the request body (400/422)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, retryable=False, **kwargs)
