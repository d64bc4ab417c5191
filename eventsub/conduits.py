"""
Conduit manager.

Conduits own a dense range of shards [0, shard_count). Lowering the shard
count makes the registry disable every shard whose index is at or above
the new count; raising it adds unassigned shards. The manager only sends
the new count and relies on the registry for both effects.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from eventsub.config import RequestContext
from eventsub.errors import TransportError, ValidationError
from eventsub.http import HelixTransport
from eventsub.schemas import (
    Conduit,
    ConduitList,
    Shard,
    ShardPage,
    ShardStatus,
    check_shard_count,
)
from eventsub.subscriptions import delete_by_id

logger = logging.getLogger(__name__)

CONDUITS_PATH = "/eventsub/conduits"
SHARDS_PATH = "/eventsub/conduits/shards"


def _require_conduit_id(conduit_id: str) -> None:
    if not conduit_id or not conduit_id.strip():
        raise ValidationError("must be set", "conduit_id")


class ConduitManager:
    """Client for conduit lifecycle and shard listing."""

    def __init__(self, transport: HelixTransport):
        self._transport = transport

    async def create(
        self,
        shard_count: int,
        *,
        context: RequestContext | None = None,
    ) -> Conduit:
        """
        Create a conduit.

        Args:
            shard_count: Initial number of shards (1 to 20000)
            context: Per-call credential overrides

        Returns:
            The created conduit
        """
        check_shard_count(shard_count).raise_for_error()

        logger.info(f"[eventsub] Creating conduit with {shard_count} shards")
        response = await self._transport.send(
            "POST",
            CONDUITS_PATH,
            json={"shard_count": shard_count},
            context=context,
        )

        conduit = self._single(response.data, "POST")
        logger.info(f"[eventsub] Created conduit: {conduit.id}")
        return conduit

    async def update(
        self,
        conduit_id: str,
        shard_count: int,
        *,
        context: RequestContext | None = None,
    ) -> Conduit:
        """
        Change a conduit's shard count.

        Args:
            conduit_id: Conduit to resize
            shard_count: New number of shards (1 to 20000)
            context: Per-call credential overrides

        Returns:
            The updated conduit
        """
        _require_conduit_id(conduit_id)
        check_shard_count(shard_count).raise_for_error()

        logger.info(f"[eventsub] Updating conduit {conduit_id}: shard_count={shard_count}")
        response = await self._transport.send(
            "PATCH",
            CONDUITS_PATH,
            json={"id": conduit_id, "shard_count": shard_count},
            context=context,
        )

        return self._single(response.data, "PATCH")

    async def list(self, *, context: RequestContext | None = None) -> list[Conduit]:
        """List every conduit owned by the client id (not paginated)."""
        response = await self._transport.send("GET", CONDUITS_PATH, context=context)
        return ConduitList(**(response.body or {})).data

    async def delete(
        self,
        conduit_id: str,
        *,
        context: RequestContext | None = None,
    ) -> bool:
        """
        Delete a conduit.

        Returns:
            True only if the registry reports removal (204)
        """
        _require_conduit_id(conduit_id)

        logger.info(f"[eventsub] Deleting conduit: {conduit_id}")
        return await delete_by_id(self._transport, CONDUITS_PATH, conduit_id, context)

    # =========================================================================
    # Shards
    # =========================================================================

    async def list_shards(
        self,
        conduit_id: str,
        status: str | ShardStatus | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> ShardPage:
        """
        Fetch one page of a conduit's shards.

        Args:
            conduit_id: Conduit to inspect
            status: Only return shards with this status
            cursor: Opaque cursor from a previous page
            context: Per-call credential overrides
        """
        _require_conduit_id(conduit_id)

        params = {"conduit_id": conduit_id}
        if status:
            params["status"] = status.value if isinstance(status, ShardStatus) else status
        if cursor:
            params["after"] = cursor

        response = await self._transport.send(
            "GET", SHARDS_PATH, params=params, context=context
        )
        return ShardPage(**(response.body or {}))

    async def iter_shards(
        self,
        conduit_id: str,
        status: str | ShardStatus | None = None,
        cursor: str | None = None,
        *,
        context: RequestContext | None = None,
    ) -> AsyncIterator[Shard]:
        """Yield every shard across all pages."""
        while True:
            page = await self.list_shards(conduit_id, status, cursor, context=context)
            for shard in page.data:
                yield shard

            if not page.has_next:
                return
            cursor = page.cursor

    @staticmethod
    def _single(data: list[dict], method: str) -> Conduit:
        if not data:
            raise TransportError(
                "Registry returned no conduit",
                method=method,
                path=CONDUITS_PATH,
            )
        return Conduit(**data[0])
