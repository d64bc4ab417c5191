"""
Configuration for the EventSub client.

EventSubConfig holds the defaults shared by every call (client id, token,
connection settings). RequestContext carries per-call overrides and is
passed explicitly to each operation; overrides win over the config.

Usage:
    config = EventSubConfig.from_env()

    # Use a different user token for one call
    ctx = RequestContext(access_token="user-token")
    await client.create_subscription(..., context=ctx)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class ApiVersion(str, Enum):
    """API path prefixes."""

    HELIX = "helix"

    @property
    def prefix(self) -> str:
        return f"/{self.value}"


@dataclass(frozen=True, slots=True)
class EventSubConfig:
    """Configuration for the EventSub client."""

    # Authentication
    client_id: str = ""
    access_token: str | None = None

    # Connection
    base_url: str = "https://api.twitch.tv"
    timeout: float = 30.0

    # Network-layer retry (timeouts, 429, 5xx)
    max_retries: int = 3
    retry_delay: float = 1.0

    # Observability
    log_requests: bool = False
    log_responses: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if not self.client_id:
            raise ValueError("EventSub client id is required")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_env(cls) -> EventSubConfig:
        """Build configuration from EVENTSUB_* environment variables."""
        return cls(
            client_id=os.getenv("EVENTSUB_CLIENT_ID", ""),
            access_token=os.getenv("EVENTSUB_ACCESS_TOKEN"),
            base_url=os.getenv("EVENTSUB_BASE_URL", "https://api.twitch.tv"),
            timeout=float(os.getenv("EVENTSUB_TIMEOUT", "30")),
            max_retries=int(os.getenv("EVENTSUB_MAX_RETRIES", "3")),
            log_requests=os.getenv("EVENTSUB_LOG_REQUESTS", "false").lower() == "true",
            log_responses=os.getenv("EVENTSUB_LOG_RESPONSES", "false").lower() == "true",
        )


@dataclass(frozen=True, slots=True)
class Credentials:
    """Effective credentials for a single request."""

    client_id: str
    access_token: str | None


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Per-call overrides for the configured credentials."""

    client_id: str | None = None
    access_token: str | None = None

    def resolve(self, config: EventSubConfig) -> Credentials:
        """Merge with config; values set here take precedence."""
        return Credentials(
            client_id=self.client_id or config.client_id,
            access_token=self.access_token or config.access_token,
        )


DEFAULT_CONTEXT = RequestContext()
