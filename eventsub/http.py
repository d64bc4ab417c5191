"""
HTTP transport for the EventSub client.

HelixTransport is the only component that performs I/O. The subscription,
conduit and shard clients hand it a method, path and payload and receive a
TransportResponse or a TransportError.

Retry Strategy (network layer only):
    - Retryable errors: timeouts, network errors, 429, 5xx
    - Non-retryable: 4xx (except 429), auth errors
    - Only GET and DELETE are retried; a repeated POST or PATCH could
      report a committed change as a conflict
    - Backoff: exponential with jitter, Retry-After honoured for 429

Cancellation is never intercepted: asyncio.CancelledError raised while a
request is in flight propagates to the caller untouched.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx

from eventsub.config import DEFAULT_CONTEXT, ApiVersion, EventSubConfig, RequestContext
from eventsub.errors import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 60.0

RETRYABLE_METHODS = frozenset({"GET", "DELETE"})


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Status code and decoded body of a successful request."""

    status_code: int
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def data(self) -> list[dict[str, Any]]:
        """The `data` array most endpoints wrap their records in."""
        if not self.body:
            return []
        return self.body.get("data") or []


class HelixTransport:
    """
    Async HTTP transport.

    Provides:
    - HTTP client management
    - Client-Id / bearer token injection (per-call overridable)
    - Error mapping to TransportError subtypes
    - Request/response logging
    - Retry with backoff for transient failures
    """

    def __init__(
        self,
        config: EventSubConfig,
        *,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Client configuration
            http_transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.config = config
        self._http_transport = http_transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._http_transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _get_auth_headers(self, context: RequestContext) -> dict[str, str]:
        credentials = context.resolve(self.config)
        headers = {"Client-Id": credentials.client_id}
        if credentials.access_token:
            headers["Authorization"] = f"Bearer {credentials.access_token}"
        return headers

    async def send(
        self,
        method: str,
        path: str,
        api_version: ApiVersion = ApiVersion.HELIX,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> TransportResponse:
        """
        Send a request, retrying transient failures.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: Endpoint path below the API version prefix
            api_version: API version prefix
            params: Query parameters
            json: JSON body
            context: Per-call credential overrides

        Returns:
            TransportResponse

        Raises:
            TransportError: On any non-retryable error or after max retries
        """
        url = f"{api_version.prefix}{path}"
        headers = self._get_auth_headers(context or DEFAULT_CONTEXT)

        for attempt in range(self.config.max_retries + 1):
            try:
                return await self._do_request(
                    method, url, params=params, json=json, headers=headers
                )
            except TransportError as e:
                if not e.retryable or method.upper() not in RETRYABLE_METHODS:
                    raise

                if attempt >= self.config.max_retries:
                    logger.warning(
                        f"[eventsub] Max retries ({self.config.max_retries}) "
                        f"reached for {method} {url}"
                    )
                    raise

                backoff = self._calculate_backoff(attempt, e)
                logger.info(
                    f"[eventsub] Retry {attempt + 1}/{self.config.max_retries} "
                    f"for {method} {url} after {backoff:.2f}s"
                )
                await asyncio.sleep(backoff)

        raise TransportError("Unreachable retry state", method=method, path=url)

    def _calculate_backoff(self, attempt: int, error: TransportError) -> float:
        """
        Calculate backoff delay with exponential growth and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
            error: The error that triggered the retry

        Returns:
            Delay in seconds
        """
        if isinstance(error, RateLimitError) and error.retry_after:
            return min(error.retry_after, MAX_BACKOFF_SECONDS)

        base_delay = self.config.retry_delay * (2 ** attempt)

        # ±25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)

        return min(base_delay + jitter, MAX_BACKOFF_SECONDS)

    async def _do_request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> TransportResponse:
        """Execute a single HTTP request."""
        client = await self._get_client()

        if self.config.log_requests:
            logger.debug(f"[eventsub] {method} {url} params={params} body={json}")

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timeout: {e}",
                method=method,
                path=url,
                retryable=True,
            ) from e
        except httpx.NetworkError as e:
            raise TransportError(
                f"Network error: {e}",
                method=method,
                path=url,
                retryable=True,
            ) from e

        if self.config.log_responses:
            logger.debug(
                f"[eventsub] Response: status={response.status_code} "
                f"body={response.text[:500] if response.text else 'empty'}"
            )

        self._check_response(response, method, url)

        try:
            body = response.json() if response.content else None
        except ValueError as e:
            raise TransportError(
                f"Malformed response body: {e}",
                method=method,
                path=url,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        return TransportResponse(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )

    def _check_response(self, response: httpx.Response, method: str, url: str) -> None:
        """
        Raise the TransportError subtype matching a non-2xx response.

        Raises:
            AuthenticationError: For 401/403
            RateLimitError: For 429
            NotFoundError: For 404
            BadRequestError: For 400/422
            TransportError: For other errors
        """
        if response.is_success:
            return

        status = response.status_code
        body = response.text
        context = {
            "method": method,
            "path": url,
            "status_code": status,
            "response_body": body,
        }

        if status in (401, 403):
            raise AuthenticationError(f"Authentication failed: {body}", **context)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Rate limit exceeded",
                retry_after=float(retry_after) if retry_after else None,
                **context,
            )

        if status == 404:
            raise NotFoundError(f"Resource not found: {body}", **context)

        if status in (400, 422):
            raise BadRequestError(f"Bad request: {body}", **context)

        raise TransportError(
            f"Request failed: {body}",
            retryable=status >= 500,
            **context,
        )

    async def __aenter__(self) -> HelixTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
