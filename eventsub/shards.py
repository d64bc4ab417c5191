"""
Shard batch updater.

Assigns transports to many shards of a conduit in one call. The whole
batch is validated locally first and rejected as a unit if any shard is
invalid, since the registry does not accept mixed transport shapes. Once
sent, the registry may still refuse individual shards; those come back
in BatchResult.errored alongside the accepted ones. Nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from eventsub.conduits import SHARDS_PATH
from eventsub.config import RequestContext
from eventsub.errors import ValidationError
from eventsub.http import HelixTransport
from eventsub.schemas import (
    BatchResult,
    ShardUpdate,
    TransportMethod,
    UpdateShardsResponse,
    ValidationResult,
    check_secret,
)

logger = logging.getLogger(__name__)

SHARD_METHODS = (TransportMethod.WEBHOOK.value, TransportMethod.WEBSOCKET.value)


def _validate_shard(update: ShardUpdate) -> tuple[ValidationResult, dict[str, Any]]:
    transport = update.transport
    method = transport.method.strip().lower()

    if not update.id:
        return ValidationResult.fail("id", "must be set"), {}

    if method not in SHARD_METHODS:
        return (
            ValidationResult.fail(
                "transport.method", f"valid values: {', '.join(SHARD_METHODS)}"
            ),
            {},
        )

    if method == TransportMethod.WEBHOOK.value:
        # The secret may be omitted for shards, but not be out of range
        if transport.secret is not None:
            result = check_secret(transport.secret)
            if not result:
                return ValidationResult.fail("transport.secret", result.message or ""), {}
        payload = {"method": method, "callback": transport.callback}
        if transport.secret is not None:
            payload["secret"] = transport.secret
    else:
        payload = {"method": method, "session_id": transport.session_id}

    payload = {key: value for key, value in payload.items() if value is not None}
    return ValidationResult.ok(), {"id": update.id, "transport": payload}


def validate_shard_updates(updates: Sequence[ShardUpdate]) -> list[dict[str, Any]]:
    """
    Validate a batch and return the canonical request items.

    Methods are lower-cased and fields of the other method dropped.

    Raises:
        ValidationError: For the first invalid shard; nothing is returned
            for a partially valid batch
    """
    if not updates:
        raise ValidationError("must contain at least one shard", "shards")

    items: list[dict[str, Any]] = []
    for position, update in enumerate(updates):
        result, item = _validate_shard(update)
        result.raise_for_error(prefix=f"shards[{position}].")
        items.append(item)
    return items


def _order_like(items: list, order: dict[str, int]) -> tuple:
    return tuple(sorted(items, key=lambda item: order.get(item.id, len(order))))


class ShardBatchUpdater:
    """Applies transport assignments to a conduit's shards."""

    def __init__(self, transport: HelixTransport):
        self._transport = transport

    async def update_shards(
        self,
        conduit_id: str,
        updates: Sequence[ShardUpdate],
        *,
        context: RequestContext | None = None,
    ) -> BatchResult:
        """
        Update shards of a conduit.

        Args:
            conduit_id: Conduit owning the shards
            updates: Shard assignments, in caller order
            context: Per-call credential overrides

        Returns:
            BatchResult with accepted and errored shards, each in the
            order of `updates`
        """
        if not conduit_id or not conduit_id.strip():
            raise ValidationError("must be set", "conduit_id")
        items = validate_shard_updates(updates)

        logger.info(f"[eventsub] Updating {len(items)} shards of conduit {conduit_id}")
        response = await self._transport.send(
            "PATCH",
            SHARDS_PATH,
            json={"conduit_id": conduit_id, "shards": items},
            context=context,
        )

        parsed = UpdateShardsResponse(**(response.body or {}))
        order = {update.id: position for position, update in enumerate(updates)}
        result = BatchResult(
            accepted=_order_like(parsed.data, order),
            errored=_order_like(parsed.errors, order),
        )

        if result.has_errors:
            logger.warning(
                f"[eventsub] Conduit {conduit_id}: {len(result.errored)} of "
                f"{len(items)} shard updates rejected: {result.errored_ids}"
            )
        return result
