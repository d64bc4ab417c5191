"""
EventSub - async client for event subscriptions, conduits and shards.

Covers the registration side of event delivery:

- **Subscriptions**: create, list (cursor-paginated) and delete
- **Conduits**: create, resize, list and delete shard groups
- **Shards**: list a conduit's shards and reassign their transports in bulk
- **Transports**: webhook, websocket and conduit descriptors, validated locally

Quick Start:
    >>> from eventsub import EventSubClient, EventSubConfig
    >>>
    >>> async with EventSubClient(EventSubConfig.from_env()) as client:
    ...     conduit = await client.create_conduit(shard_count=2)
    ...     page = await client.list_conduit_shards(conduit.id)

Delivering the events themselves (webhook server, websocket sessions) is
out of scope.
"""

__version__ = "0.1.0"

from eventsub.builder import CreateSubscriptionRequest, build_create_request
from eventsub.client import EventSubClient
from eventsub.conduits import ConduitManager
from eventsub.config import ApiVersion, EventSubConfig, RequestContext
from eventsub.errors import (
    AuthenticationError,
    BadRequestError,
    EventSubError,
    NotFoundError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from eventsub.http import HelixTransport, TransportResponse
from eventsub.schemas import (
    BatchResult,
    Conduit,
    ConduitTransport,
    Shard,
    ShardError,
    ShardPage,
    ShardStatus,
    ShardTransport,
    ShardUpdate,
    Subscription,
    SubscriptionFilter,
    SubscriptionPage,
    SubscriptionStatus,
    TransportMethod,
    ValidationResult,
    WebhookTransport,
    WebsocketTransport,
    make_transport,
)
from eventsub.shards import ShardBatchUpdater, validate_shard_updates
from eventsub.subscriptions import SubscriptionRegistry

__all__ = [
    "__version__",
    # Client
    "EventSubClient",
    "EventSubConfig",
    "RequestContext",
    "ApiVersion",
    "HelixTransport",
    "TransportResponse",
    # Components
    "SubscriptionRegistry",
    "ConduitManager",
    "ShardBatchUpdater",
    "CreateSubscriptionRequest",
    "build_create_request",
    "validate_shard_updates",
    # Transports
    "TransportMethod",
    "WebhookTransport",
    "WebsocketTransport",
    "ConduitTransport",
    "ValidationResult",
    "make_transport",
    # Resources
    "Subscription",
    "SubscriptionFilter",
    "SubscriptionPage",
    "SubscriptionStatus",
    "Conduit",
    "Shard",
    "ShardPage",
    "ShardStatus",
    "ShardTransport",
    "ShardUpdate",
    "ShardError",
    "BatchResult",
    # Errors
    "EventSubError",
    "ValidationError",
    "TransportError",
    "AuthenticationError",
    "RateLimitError",
    "NotFoundError",
    "BadRequestError",
]
