"""
Conduit Shards Example

This example walks through the conduit lifecycle:
1. Create a conduit
2. Point its shards at websocket sessions
3. Route a subscription through the conduit
4. Shrink the conduit and inspect the disabled shards

Requires EVENTSUB_CLIENT_ID and EVENTSUB_ACCESS_TOKEN (an app access token)
and websocket session ids from live connections.

Run: python -m examples.01-conduit-shards.main SESSION_ID [SESSION_ID ...]
"""

import asyncio
import logging
import sys

from eventsub import (
    EventSubClient,
    EventSubConfig,
    ShardStatus,
    ShardTransport,
    ShardUpdate,
    TransportError,
    ValidationError,
)

logging.basicConfig(level=logging.INFO)


async def main(session_ids: list[str]):
    config = EventSubConfig.from_env()

    async with EventSubClient(config) as client:
        conduit = await client.create_conduit(shard_count=len(session_ids) + 1)
        print(f"Conduit: {conduit.id} ({conduit.shard_count} shards)")

        updates = [
            ShardUpdate(
                id=str(index),
                transport=ShardTransport(method="websocket", session_id=session_id),
            )
            for index, session_id in enumerate(session_ids)
        ]
        result = await client.update_conduit_shards(conduit.id, updates)

        print(f"Accepted shards: {result.accepted_ids}")
        for error in result.errored:
            print(f"Shard {error.id} rejected: {error.code} {error.message}")

        try:
            subscription = await client.create_subscription(
                "stream.online",
                "1",
                {"broadcaster_user_id": "12826"},
                "conduit",
                {"conduit_id": conduit.id},
            )
            print(f"Subscription: {subscription.id} ({subscription.state.value})")
        except (ValidationError, TransportError) as e:
            print(f"Subscription failed: {e}")

        # Drop the spare shard; the registry disables it
        await client.update_conduit(conduit.id, len(session_ids))
        page = await client.list_conduit_shards(conduit.id, ShardStatus.DISABLED)
        print(f"Disabled shards: {[shard.id for shard in page.data]}")

        deleted = await client.delete_conduit(conduit.id)
        print(f"Conduit deleted: {deleted}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: main.py SESSION_ID [SESSION_ID ...]")
    asyncio.run(main(sys.argv[1:]))
