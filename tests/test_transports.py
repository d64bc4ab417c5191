"""
Tests for transport descriptors.

Tests cover:
- Per-method validation rules and boundaries
- make_transport factory (unknown methods, foreign fields)
- Request shapes without cross-method leakage
- Parsing registry payloads through the discriminated union
"""

import pytest
from pydantic import TypeAdapter

from eventsub import (
    ConduitTransport,
    TransportMethod,
    ValidationError,
    ValidationResult,
    WebhookTransport,
    WebsocketTransport,
    make_transport,
)
from eventsub.schemas import ShardTransportDescriptor, TransportDescriptor

CALLBACK = "https://example.com/eventsub/callback"


# =============================================================================
# Webhook
# =============================================================================


class TestWebhookTransport:
    """Tests for webhook validation."""

    @pytest.mark.parametrize("length", [10, 11, 50, 99, 100])
    def test_secret_within_bounds_is_valid(self, length):
        transport = WebhookTransport(callback=CALLBACK, secret="s" * length)
        assert transport.validate().valid

    @pytest.mark.parametrize("length", [0, 9, 101, 150])
    def test_secret_out_of_bounds_fails(self, length):
        result = WebhookTransport(callback=CALLBACK, secret="s" * length).validate()
        assert not result
        assert result.field == "secret"

    def test_missing_secret_fails(self):
        result = WebhookTransport(callback=CALLBACK).validate()
        assert result.field == "secret"

    @pytest.mark.parametrize("callback", ["", "   "])
    def test_empty_callback_fails(self, callback):
        result = WebhookTransport(callback=callback, secret="s" * 20).validate()
        assert not result.valid
        assert result.field == "callback"

    def test_callback_checked_before_secret(self):
        result = WebhookTransport(callback="", secret="short").validate()
        assert result.field == "callback"

    def test_api_dict(self):
        transport = WebhookTransport(callback=CALLBACK, secret="0123456789")
        assert transport.to_api_dict() == {
            "method": "webhook",
            "callback": CALLBACK,
            "secret": "0123456789",
        }

    def test_secret_hidden_from_repr(self):
        transport = WebhookTransport(callback=CALLBACK, secret="super-secret-value")
        assert "super-secret-value" not in repr(transport)

    def test_immutable(self):
        transport = WebhookTransport(callback=CALLBACK, secret="0123456789")
        with pytest.raises(Exception):
            transport.callback = "https://other.example.com"


# =============================================================================
# Websocket / Conduit
# =============================================================================


class TestWebsocketTransport:
    def test_valid(self):
        assert WebsocketTransport(session_id="AQoQexAWVYKSTIu4ec").validate()

    @pytest.mark.parametrize("session_id", ["", "  "])
    def test_empty_session_fails(self, session_id):
        result = WebsocketTransport(session_id=session_id).validate()
        assert result.field == "session_id"

    def test_api_dict_omits_connection_times(self):
        transport = WebsocketTransport(
            session_id="abc",
            connected_at="2024-05-01T12:00:00Z",
        )
        assert transport.to_api_dict() == {"method": "websocket", "session_id": "abc"}


class TestConduitTransport:
    def test_valid(self):
        assert ConduitTransport(conduit_id="bfcfc993-26b1-b876-44d9-afe75a379dac").validate()

    def test_empty_conduit_id_fails(self):
        result = ConduitTransport(conduit_id="").validate()
        assert result.field == "conduit_id"

    def test_api_dict(self):
        assert ConduitTransport(conduit_id="c-1").to_api_dict() == {
            "method": "conduit",
            "conduit_id": "c-1",
        }


# =============================================================================
# ValidationResult
# =============================================================================


class TestValidationResult:
    def test_ok_does_not_raise(self):
        ValidationResult.ok().raise_for_error()

    def test_fail_raises_with_prefixed_field(self):
        with pytest.raises(ValidationError) as exc_info:
            ValidationResult.fail("secret", "too short").raise_for_error(prefix="transport.")

        assert exc_info.value.field == "transport.secret"
        assert "too short" in str(exc_info.value)


# =============================================================================
# Factory
# =============================================================================


class TestMakeTransport:
    """Tests for building descriptors from a method tag."""

    def test_builds_each_method(self):
        assert isinstance(
            make_transport("webhook", callback=CALLBACK, secret="0123456789"),
            WebhookTransport,
        )
        assert isinstance(make_transport("websocket", session_id="s"), WebsocketTransport)
        assert isinstance(make_transport("conduit", conduit_id="c"), ConduitTransport)

    def test_method_is_case_insensitive(self):
        transport = make_transport("WebSocket", session_id="s")
        assert transport.method == "websocket"

    def test_accepts_enum(self):
        transport = make_transport(TransportMethod.CONDUIT, conduit_id="c")
        assert transport.conduit_id == "c"

    def test_unknown_method_is_programming_error(self):
        with pytest.raises(ValueError, match="Unknown transport method"):
            make_transport("carrier-pigeon", callback=CALLBACK)

    def test_foreign_fields_rejected(self):
        with pytest.raises(ValueError, match="session_id"):
            make_transport("webhook", callback=CALLBACK, secret="0123456789", session_id="s")

    def test_factory_does_not_validate(self):
        transport = make_transport("webhook", callback=CALLBACK, secret="short")
        assert not transport.validate()


# =============================================================================
# Parsing
# =============================================================================


class TestTransportParsing:
    """Registry payloads select the right variant."""

    def test_discriminated_parse(self):
        adapter = TypeAdapter(TransportDescriptor)

        webhook = adapter.validate_python({"method": "webhook", "callback": CALLBACK})
        websocket = adapter.validate_python({
            "method": "websocket",
            "session_id": "abc",
            "connected_at": "2024-05-01T12:00:00Z",
            "disconnected_at": None,
        })
        conduit = adapter.validate_python({"method": "conduit", "conduit_id": "c-1"})

        assert isinstance(webhook, WebhookTransport)
        assert webhook.secret is None
        assert isinstance(websocket, WebsocketTransport)
        assert websocket.connected_at is not None
        assert isinstance(conduit, ConduitTransport)

    def test_foreign_fields_not_carried(self):
        adapter = TypeAdapter(TransportDescriptor)
        parsed = adapter.validate_python({
            "method": "conduit",
            "conduit_id": "c-1",
            "session_id": "leaked",
        })
        assert not hasattr(parsed, "session_id")

    def test_shard_transport_rejects_conduit(self):
        adapter = TypeAdapter(ShardTransportDescriptor)
        with pytest.raises(Exception):
            adapter.validate_python({"method": "conduit", "conduit_id": "c-1"})


class TestMakeTransportFieldTypes:
    """Badly typed field values surface as ValidationError."""

    def test_none_callback(self):
        with pytest.raises(ValidationError) as exc_info:
            make_transport("webhook", callback=None, secret="0123456789")

        assert exc_info.value.field == "transport.callback"
        assert exc_info.value.__cause__ is not None

    def test_none_session_id(self):
        with pytest.raises(ValidationError) as exc_info:
            make_transport("websocket", session_id=None)
        assert exc_info.value.field == "transport.session_id"

    def test_non_string_conduit_id(self):
        with pytest.raises(ValidationError) as exc_info:
            make_transport("conduit", conduit_id=["c-1"])
        assert exc_info.value.field == "transport.conduit_id"
