"""
EventSub client facade.

Bundles the subscription registry, conduit manager and shard updater
behind one object sharing a single HTTP transport.

Usage:
    async with EventSubClient(EventSubConfig.from_env()) as client:
        conduit = await client.create_conduit(shard_count=4)

        await client.update_conduit_shards(conduit.id, [
            ShardUpdate(id="0", transport=ShardTransport(
                method="websocket", session_id="AQoQ...",
            )),
        ])

        subscription = await client.create_subscription(
            "channel.chat.message", "1",
            {"broadcaster_user_id": "1234", "user_id": "5678"},
            "conduit", {"conduit_id": conduit.id},
        )
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any

import httpx

from eventsub.builder import build_create_request
from eventsub.conduits import ConduitManager
from eventsub.config import EventSubConfig, RequestContext
from eventsub.http import HelixTransport
from eventsub.schemas import (
    BatchResult,
    Conduit,
    ShardPage,
    ShardStatus,
    ShardUpdate,
    Subscription,
    SubscriptionFilter,
    SubscriptionPage,
    TransportMethod,
    make_transport,
)
from eventsub.shards import ShardBatchUpdater
from eventsub.subscriptions import SubscriptionRegistry


class EventSubClient:
    """Async client for EventSub subscriptions, conduits and shards."""

    def __init__(
        self,
        config: EventSubConfig,
        *,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Default credentials and connection settings
            http_transport: Optional httpx transport, mainly for tests
        """
        self.config = config
        self.transport = HelixTransport(config, http_transport=http_transport)
        self.subscriptions = SubscriptionRegistry(self.transport)
        self.conduits = ConduitManager(self.transport)
        self.shards = ShardBatchUpdater(self.transport)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def create_subscription(
        self,
        type: str,
        version: str,
        condition: Mapping[str, str],
        method: str | TransportMethod,
        transport_fields: Mapping[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> Subscription:
        """
        Create a subscription.

        Args:
            type: Subscription type
            version: Version of the subscription type
            condition: Type-specific parameters
            method: Transport method (webhook, websocket, conduit)
            transport_fields: Fields of that transport method
            context: Per-call credential overrides
        """
        transport = make_transport(method, **transport_fields)
        request = build_create_request(type, version, condition, transport)
        return await self.subscriptions.create(request, context=context)

    async def list_subscriptions(
        self,
        filter: SubscriptionFilter | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> SubscriptionPage:
        return await self.subscriptions.list(filter, cursor, context=context)

    def iter_subscriptions(
        self,
        filter: SubscriptionFilter | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> AsyncIterator[Subscription]:
        return self.subscriptions.iter_subscriptions(filter, cursor, context=context)

    async def delete_subscription(
        self, subscription_id: str, *, context: RequestContext | None = None
    ) -> bool:
        return await self.subscriptions.delete(subscription_id, context=context)

    # =========================================================================
    # Conduits
    # =========================================================================

    async def create_conduit(
        self, shard_count: int, *, context: RequestContext | None = None
    ) -> Conduit:
        return await self.conduits.create(shard_count, context=context)

    async def update_conduit(
        self, conduit_id: str, shard_count: int, *, context: RequestContext | None = None
    ) -> Conduit:
        return await self.conduits.update(conduit_id, shard_count, context=context)

    async def list_conduits(self, *, context: RequestContext | None = None) -> list[Conduit]:
        return await self.conduits.list(context=context)

    async def delete_conduit(
        self, conduit_id: str, *, context: RequestContext | None = None
    ) -> bool:
        return await self.conduits.delete(conduit_id, context=context)

    # =========================================================================
    # Shards
    # =========================================================================

    async def list_conduit_shards(
        self,
        conduit_id: str,
        status: str | ShardStatus | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> ShardPage:
        return await self.conduits.list_shards(conduit_id, status, cursor, context=context)

    async def update_conduit_shards(
        self,
        conduit_id: str,
        updates: Sequence[ShardUpdate],
        *,
        context: RequestContext | None = None,
    ) -> BatchResult:
        return await self.shards.update_shards(conduit_id, updates, context=context)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> EventSubClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
