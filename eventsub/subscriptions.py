"""
Subscription registry client.

Creates, lists and deletes EventSub subscriptions.

Usage:
    registry = SubscriptionRegistry(transport)

    request = build_create_request(
        "channel.follow", "2",
        {"broadcaster_user_id": "1234", "moderator_user_id": "1234"},
        WebsocketTransport(session_id="AQoQ..."),
    )
    subscription = await registry.create(request)

    # Walk every page; resume later from page.cursor if needed
    async for page in registry.iter_pages(SubscriptionFilter(status="enabled")):
        ...

    await registry.delete(subscription.id)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from eventsub.builder import CreateSubscriptionRequest
from eventsub.config import RequestContext
from eventsub.errors import TransportError, ValidationError
from eventsub.http import HelixTransport
from eventsub.schemas import Subscription, SubscriptionFilter, SubscriptionPage

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_PATH = "/eventsub/subscriptions"


async def delete_by_id(
    transport: HelixTransport,
    path: str,
    resource_id: str,
    context: RequestContext | None,
) -> bool:
    """
    DELETE path?id=resource_id and report whether the registry removed it.

    Only a 204 counts as removed. Any other HTTP outcome, including 404
    for an id that is already gone, returns False. Errors without a status
    code (timeouts, network faults) propagate.
    """
    try:
        response = await transport.send(
            "DELETE", path, params={"id": resource_id}, context=context
        )
    except TransportError as e:
        if e.status_code is None:
            raise
        logger.warning(f"[eventsub] Delete {path} id={resource_id} failed: {e}")
        return False

    if response.status_code != 204:
        logger.warning(
            f"[eventsub] Delete {path} id={resource_id} returned {response.status_code}"
        )
        return False

    logger.info(f"[eventsub] Deleted {path} id={resource_id}")
    return True


class SubscriptionRegistry:
    """Client for the subscription registry."""

    def __init__(self, transport: HelixTransport):
        self._transport = transport

    async def create(
        self,
        request: CreateSubscriptionRequest,
        *,
        context: RequestContext | None = None,
    ) -> Subscription:
        """
        Register a subscription.

        Args:
            request: Request built by build_create_request
            context: Per-call credential overrides

        Returns:
            The registry-assigned subscription (id and status populated)
        """
        logger.info(
            f"[eventsub] Creating subscription: {request.type} v{request.version} "
            f"via {request.transport.method}"
        )

        response = await self._transport.send(
            "POST",
            SUBSCRIPTIONS_PATH,
            json=request.to_api_dict(),
            context=context,
        )

        page = SubscriptionPage(**(response.body or {}))
        if not page.data:
            raise TransportError(
                "Registry returned no subscription",
                method="POST",
                path=SUBSCRIPTIONS_PATH,
                status_code=response.status_code,
            )

        subscription = page.data[0]
        logger.info(f"[eventsub] Created subscription: {subscription.id} ({subscription.status})")
        return subscription

    async def list(
        self,
        filter: SubscriptionFilter | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> SubscriptionPage:
        """
        Fetch one page of subscriptions, oldest first.

        Args:
            filter: Optional status/type/user filters
            cursor: Opaque cursor from a previous page
            context: Per-call credential overrides

        Returns:
            Page of subscriptions; page.cursor is None on the last page
        """
        query = filter or SubscriptionFilter()
        response = await self._transport.send(
            "GET",
            SUBSCRIPTIONS_PATH,
            params=query.to_params(cursor),
            context=context,
        )
        return SubscriptionPage(**(response.body or {}))

    async def iter_pages(
        self,
        filter: SubscriptionFilter | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> AsyncIterator[SubscriptionPage]:
        """
        Yield pages lazily, starting at `cursor` (or the first page).

        The cursor of every page yielded can be persisted and passed back
        here to resume after a restart.
        """
        while True:
            page = await self.list(filter, cursor, context=context)
            yield page

            if not page.has_next:
                return
            cursor = page.cursor

    async def iter_subscriptions(
        self,
        filter: SubscriptionFilter | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> AsyncIterator[Subscription]:
        """Yield every subscription across all pages, in page order."""
        async for page in self.iter_pages(filter, cursor, context=context):
            for subscription in page.data:
                yield subscription

    async def delete(
        self,
        subscription_id: str,
        *,
        context: RequestContext | None = None,
    ) -> bool:
        """
        Delete a subscription.

        Returns:
            True only if the registry reports removal (204); False otherwise,
            including when the subscription does not exist
        """
        if not subscription_id:
            raise ValidationError("must be set", "id")

        logger.info(f"[eventsub] Deleting subscription: {subscription_id}")
        return await delete_by_id(self._transport, SUBSCRIPTIONS_PATH, subscription_id, context)
