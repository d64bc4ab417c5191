"""
Subscription request builder.

Turns (type, version, condition, transport) into a validated, immutable
request body. Nothing here performs I/O; a ValidationError raised by
build_create_request means no request was sent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from eventsub.errors import ValidationError
from eventsub.schemas import (
    ConduitTransport,
    TransportDescriptor,
    WebhookTransport,
    WebsocketTransport,
    to_validation_error,
)


class CreateSubscriptionRequest(BaseModel):
    """Body of a create-subscription call."""

    model_config = ConfigDict(frozen=True)

    type: str
    version: str
    condition: dict[str, str] = Field(default_factory=dict)
    transport: TransportDescriptor

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API request format; the transport carries only its own fields."""
        return {
            "type": self.type,
            "version": self.version,
            "condition": dict(self.condition),
            "transport": self.transport.to_api_dict(),
        }


def build_create_request(
    type: str,
    version: str,
    condition: Mapping[str, str],
    transport: WebhookTransport | WebsocketTransport | ConduitTransport,
) -> CreateSubscriptionRequest:
    """
    Validate inputs and build a create-subscription request.

    Args:
        type: Subscription type, e.g. channel.follow
        version: Version of the subscription type
        condition: Type-specific parameters, e.g. broadcaster_user_id
        transport: Delivery transport

    Returns:
        Immutable request

    Raises:
        ValidationError: The first failed precondition
    """
    if not type:
        raise ValidationError("must be set", "type")
    if not version:
        raise ValidationError("must be set", "version")
    if not condition:
        raise ValidationError("must be a non-empty mapping", "condition")

    transport.validate().raise_for_error(prefix="transport.")

    try:
        return CreateSubscriptionRequest(
            type=type,
            version=version,
            condition=dict(condition),
            transport=transport,
        )
    except PydanticValidationError as e:
        # e.g. condition.broadcaster_user_id given as an int
        raise to_validation_error(e) from e
