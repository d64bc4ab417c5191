"""
Pytest configuration and fixtures for EventSub tests.
"""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add the repository root to path for imports
# This allows `from eventsub import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from eventsub import EventSubClient, EventSubConfig  # noqa: E402


# =============================================================================
# Fake registry
# =============================================================================


class FakeRegistry:
    """
    In-memory stand-in for the remote registry, served through
    httpx.MockTransport.

    Mirrors the remote behaviour the client relies on: lowering a conduit's
    shard count disables the shards at or above the new count, raising it
    adds unassigned slots, and shard updates past the count are rejected
    per item.
    """

    PAGE_SIZE = 25

    def __init__(self):
        self.conduits: dict[str, dict] = {}
        self.subscriptions: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self._next_id = 0

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    @staticmethod
    def _slot(index: int) -> dict:
        return {"id": str(index), "status": "disabled", "transport": None}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/helix")
        body = json.loads(request.content) if request.content else {}
        route = (request.method, path)

        if route == ("POST", "/eventsub/conduits"):
            return self._create_conduit(body)
        if route == ("PATCH", "/eventsub/conduits"):
            return self._update_conduit(body)
        if route == ("GET", "/eventsub/conduits"):
            return httpx.Response(
                200,
                json={"data": [self._conduit_view(c) for c in self.conduits.values()]},
            )
        if route == ("DELETE", "/eventsub/conduits"):
            return self._delete(self.conduits, request.url.params["id"])
        if route == ("GET", "/eventsub/conduits/shards"):
            return self._list_shards(request.url.params)
        if route == ("PATCH", "/eventsub/conduits/shards"):
            return self._update_shards(body)
        if route == ("POST", "/eventsub/subscriptions"):
            return self._create_subscription(body)
        if route == ("DELETE", "/eventsub/subscriptions"):
            return self._delete(self.subscriptions, request.url.params["id"])

        return httpx.Response(404, json={"error": "Not Found"})

    @staticmethod
    def _conduit_view(conduit: dict) -> dict:
        return {"id": conduit["id"], "shard_count": conduit["shard_count"]}

    def _create_conduit(self, body: dict) -> httpx.Response:
        conduit_id = self._new_id("conduit")
        count = body["shard_count"]
        self.conduits[conduit_id] = {
            "id": conduit_id,
            "shard_count": count,
            "shards": [self._slot(i) for i in range(count)],
        }
        return httpx.Response(200, json={"data": [self._conduit_view(self.conduits[conduit_id])]})

    def _update_conduit(self, body: dict) -> httpx.Response:
        conduit = self.conduits.get(body["id"])
        if conduit is None:
            return httpx.Response(404, json={"error": "Not Found"})

        count = body["shard_count"]
        shards = conduit["shards"]
        for shard in shards[count:]:
            shard["status"] = "disabled"
        shards.extend(self._slot(i) for i in range(len(shards), count))
        conduit["shard_count"] = count
        return httpx.Response(200, json={"data": [self._conduit_view(conduit)]})

    def _list_shards(self, params: httpx.QueryParams) -> httpx.Response:
        conduit = self.conduits.get(params["conduit_id"])
        if conduit is None:
            return httpx.Response(404, json={"error": "Not Found"})

        shards = conduit["shards"]
        if "status" in params:
            shards = [s for s in shards if s["status"] == params["status"]]

        offset = int(params["after"].removeprefix("cursor-")) if "after" in params else 0
        page = shards[offset:offset + self.PAGE_SIZE]
        next_offset = offset + self.PAGE_SIZE
        pagination = {"cursor": f"cursor-{next_offset}"} if next_offset < len(shards) else {}
        return httpx.Response(200, json={"data": page, "pagination": pagination})

    def _update_shards(self, body: dict) -> httpx.Response:
        conduit = self.conduits.get(body["conduit_id"])
        if conduit is None:
            return httpx.Response(404, json={"error": "Not Found"})

        accepted, errors = [], []
        for item in body["shards"]:
            index = int(item["id"])
            if index >= conduit["shard_count"]:
                errors.append({
                    "id": item["id"],
                    "code": "invalid_parameter",
                    "message": "shard id is out of range",
                })
                continue
            transport = {k: v for k, v in item["transport"].items() if k != "secret"}
            shard = conduit["shards"][index]
            shard["transport"] = transport
            shard["status"] = "enabled"
            accepted.append(dict(shard))
        return httpx.Response(202, json={"data": accepted, "errors": errors})

    def _create_subscription(self, body: dict) -> httpx.Response:
        subscription_id = self._new_id("sub")
        transport = {k: v for k, v in body["transport"].items() if k != "secret"}
        status = (
            "webhook_callback_verification_pending"
            if transport["method"] == "webhook"
            else "enabled"
        )
        record = {
            "id": subscription_id,
            "status": status,
            "type": body["type"],
            "version": body["version"],
            "condition": body["condition"],
            "transport": transport,
            "created_at": "2024-05-01T12:00:00Z",
            "cost": 0,
        }
        self.subscriptions[subscription_id] = record
        return httpx.Response(
            202,
            json={"data": [record], "total": len(self.subscriptions), "total_cost": 0, "max_total_cost": 10000},
        )

    @staticmethod
    def _delete(store: dict, resource_id: str) -> httpx.Response:
        if store.pop(resource_id, None) is None:
            return httpx.Response(404, json={"error": "Not Found"})
        return httpx.Response(204)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def config():
    """Test configuration without retry delays."""
    return EventSubConfig(
        client_id="test-client-id",
        access_token="test-app-token",
        max_retries=0,
    )


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def client(config, fake_registry):
    """Client wired to the fake registry."""
    return EventSubClient(config, http_transport=httpx.MockTransport(fake_registry.handle))


@pytest.fixture
def subscription_payload():
    """A subscription record as returned by the registry."""
    return {
        "id": "f1c2a387-161a-49f9-a165-0f21d7a4e1c4",
        "status": "enabled",
        "type": "channel.follow",
        "version": "2",
        "condition": {"broadcaster_user_id": "1234", "moderator_user_id": "1234"},
        "transport": {
            "method": "websocket",
            "session_id": "AQoQexAWVYKSTIu4ec_2VAxyuhAB",
            "connected_at": "2024-05-01T12:00:00Z",
        },
        "created_at": "2024-05-01T12:00:00Z",
        "cost": 0,
    }
