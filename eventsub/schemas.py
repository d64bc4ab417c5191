"""
Pydantic schemas for the EventSub API.

Transports are modelled as a discriminated union: one model per delivery
method, each carrying only its own fields, selected by the `method` tag.
A descriptor can never hold fields of two methods at once.

Request-side validation rules (secret length, non-empty ids) are exposed
through `validate()` rather than enforced at construction, so registry
responses that omit write-only fields (e.g. the webhook secret) still parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from eventsub.errors import ValidationError

# =============================================================================
# Limits
# =============================================================================

SECRET_MIN_LENGTH = 10
SECRET_MAX_LENGTH = 100

MIN_SHARD_COUNT = 1
MAX_SHARD_COUNT = 20_000


# =============================================================================
# Validation result
# =============================================================================


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a local validation check."""

    valid: bool
    field: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, field: str, message: str) -> ValidationResult:
        return cls(valid=False, field=field, message=message)

    def __bool__(self) -> bool:
        return self.valid

    def raise_for_error(self, prefix: str = "") -> None:
        """Raise ValidationError if the check failed."""
        if not self.valid:
            raise ValidationError(self.message or "invalid value", f"{prefix}{self.field}")


def to_validation_error(error: PydanticValidationError, prefix: str = "") -> ValidationError:
    """Convert the first pydantic error into a ValidationError naming its field."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return ValidationError(first["msg"], f"{prefix}{field}")


def check_secret(secret: str | None) -> ValidationResult:
    """Webhook secrets must be 10 to 100 characters, inclusive."""
    if secret is None or not SECRET_MIN_LENGTH <= len(secret) <= SECRET_MAX_LENGTH:
        return ValidationResult.fail(
            "secret",
            f"must be set and between {SECRET_MIN_LENGTH} and {SECRET_MAX_LENGTH} "
            "characters (inclusive)",
        )
    return ValidationResult.ok()


def check_shard_count(shard_count: int) -> ValidationResult:
    if isinstance(shard_count, bool) or not isinstance(shard_count, int):
        return ValidationResult.fail("shard_count", "must be an integer")
    if not MIN_SHARD_COUNT <= shard_count <= MAX_SHARD_COUNT:
        return ValidationResult.fail(
            "shard_count",
            f"must be greater than 0 and less than or equal to {MAX_SHARD_COUNT}",
        )
    return ValidationResult.ok()


# =============================================================================
# Transports
# =============================================================================


class TransportMethod(str, Enum):
    """Event delivery methods."""

    WEBHOOK = "webhook"
    WEBSOCKET = "websocket"
    CONDUIT = "conduit"

    @classmethod
    def from_string(cls, value: str) -> TransportMethod:
        """Case-insensitive lookup; unknown methods are a programming error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown transport method: {value!r}") from None


class WebhookTransport(BaseModel):
    """Deliver events by POSTing to a callback URL."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: Literal["webhook"] = "webhook"
    callback: str = ""
    secret: str | None = Field(None, repr=False, description="Write-only signing secret")

    def validate(self) -> ValidationResult:
        if not self.callback or not self.callback.strip():
            return ValidationResult.fail("callback", "must be set")
        return check_secret(self.secret)

    def to_api_dict(self) -> dict[str, Any]:
        data = {"method": self.method, "callback": self.callback}
        if self.secret is not None:
            data["secret"] = self.secret
        return data


class WebsocketTransport(BaseModel):
    """Deliver events over an open websocket session."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: Literal["websocket"] = "websocket"
    session_id: str = ""

    # Reported by the registry only
    connected_at: datetime | None = None
    disconnected_at: datetime | None = None

    def validate(self) -> ValidationResult:
        if not self.session_id or not self.session_id.strip():
            return ValidationResult.fail("session_id", "must be set")
        return ValidationResult.ok()

    def to_api_dict(self) -> dict[str, Any]:
        return {"method": self.method, "session_id": self.session_id}


class ConduitTransport(BaseModel):
    """Deliver events through a conduit's shards."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: Literal["conduit"] = "conduit"
    conduit_id: str = ""

    def validate(self) -> ValidationResult:
        if not self.conduit_id or not self.conduit_id.strip():
            return ValidationResult.fail("conduit_id", "must be set")
        return ValidationResult.ok()

    def to_api_dict(self) -> dict[str, Any]:
        return {"method": self.method, "conduit_id": self.conduit_id}


TransportDescriptor = Annotated[
    Union[WebhookTransport, WebsocketTransport, ConduitTransport],
    Field(discriminator="method"),
]

# A shard already belongs to a conduit, so it cannot target one
ShardTransportDescriptor = Annotated[
    Union[WebhookTransport, WebsocketTransport],
    Field(discriminator="method"),
]

_TRANSPORT_MODELS: dict[TransportMethod, type[BaseModel]] = {
    TransportMethod.WEBHOOK: WebhookTransport,
    TransportMethod.WEBSOCKET: WebsocketTransport,
    TransportMethod.CONDUIT: ConduitTransport,
}


def make_transport(
    method: str | TransportMethod, **fields: Any
) -> WebhookTransport | WebsocketTransport | ConduitTransport:
    """
    Build a transport descriptor from a method tag and its fields.

    Args:
        method: Delivery method (webhook, websocket, conduit)
        **fields: Fields of that method only

    Returns:
        Transport descriptor (not yet validated)

    Raises:
        ValueError: Unknown method, or a field that belongs to another method
        ValidationError: A field value of the wrong type (e.g. None)
    """
    method = TransportMethod.from_string(method)
    model = _TRANSPORT_MODELS[method]

    foreign = set(fields) - (set(model.model_fields) - {"method"})
    if foreign:
        raise ValueError(
            f"Fields {sorted(foreign)} do not belong to the {method.value} transport"
        )
    try:
        return model(**fields)
    except PydanticValidationError as e:
        raise to_validation_error(e, prefix="transport.") from e


# =============================================================================
# Subscriptions
# =============================================================================


class SubscriptionStatus(str, Enum):
    """
    Coarse subscription lifecycle, owned by the registry.

    pending -> enabled   verification succeeded
    pending -> revoked   verification failed or authorization removed
    enabled -> revoked   revoked later (user action, notification failures)

    revoked is terminal; the registry eventually drops the subscription.
    """

    ENABLED = "enabled"
    PENDING = "pending"
    REVOKED = "revoked"

    @classmethod
    def from_wire(cls, status: str) -> SubscriptionStatus:
        """Collapse the registry's detailed status strings."""
        if status == "enabled":
            return cls.ENABLED
        if status == "pending" or status.endswith("_pending"):
            return cls.PENDING
        return cls.REVOKED

    @property
    def is_terminal(self) -> bool:
        return self is SubscriptionStatus.REVOKED

    def can_transition_to(self, other: SubscriptionStatus) -> bool:
        return other in _SUBSCRIPTION_TRANSITIONS[self]


_SUBSCRIPTION_TRANSITIONS: dict[SubscriptionStatus, frozenset[SubscriptionStatus]] = {
    SubscriptionStatus.PENDING: frozenset({SubscriptionStatus.ENABLED, SubscriptionStatus.REVOKED}),
    SubscriptionStatus.ENABLED: frozenset({SubscriptionStatus.REVOKED}),
    SubscriptionStatus.REVOKED: frozenset(),
}


class Subscription(BaseModel):
    """A registered interest in one event type."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    status: str  # detailed registry status, e.g. webhook_callback_verification_pending
    type: str
    version: str
    condition: dict[str, str] = Field(default_factory=dict)
    transport: TransportDescriptor
    created_at: datetime | None = None
    cost: int = 0

    @property
    def state(self) -> SubscriptionStatus:
        return SubscriptionStatus.from_wire(self.status)


class Pagination(BaseModel):
    """Opaque forward-only cursor."""

    model_config = ConfigDict(extra="ignore")

    cursor: str | None = None


class SubscriptionFilter(BaseModel):
    """Query filters for listing subscriptions."""

    model_config = ConfigDict(frozen=True)

    status: str | None = Field(None, description="Filter by detailed status")
    type: str | None = Field(None, description="Filter by subscription type")
    user_id: str | None = Field(None, description="Filter by user referenced in the condition")

    def to_params(self, cursor: str | None = None) -> dict[str, Any]:
        """Convert to query parameters."""
        params: dict[str, Any] = {}
        if self.status:
            params["status"] = self.status
        if self.type:
            params["type"] = self.type
        if self.user_id:
            params["user_id"] = self.user_id
        if cursor:
            params["after"] = cursor
        return params


class SubscriptionPage(BaseModel):
    """One page of subscriptions, oldest first."""

    model_config = ConfigDict(extra="ignore")

    data: list[Subscription] = Field(default_factory=list)
    total: int = 0
    total_cost: int = 0
    max_total_cost: int = 0
    pagination: Pagination = Field(default_factory=Pagination)

    @property
    def cursor(self) -> str | None:
        return self.pagination.cursor or None

    @property
    def has_next(self) -> bool:
        return self.cursor is not None


# =============================================================================
# Conduits and shards
# =============================================================================


class Conduit(BaseModel):
    """A group of shards that subscriptions can deliver to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    shard_count: int


class ConduitList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[Conduit] = Field(default_factory=list)


class ShardStatus(str, Enum):
    """Shard statuses reported by the registry."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    WEBHOOK_CALLBACK_VERIFICATION_PENDING = "webhook_callback_verification_pending"
    WEBHOOK_CALLBACK_VERIFICATION_FAILED = "webhook_callback_verification_failed"
    NOTIFICATION_FAILURES_EXCEEDED = "notification_failures_exceeded"
    WEBSOCKET_DISCONNECTED = "websocket_disconnected"
    WEBSOCKET_FAILED_PING_PONG = "websocket_failed_ping_pong"
    WEBSOCKET_RECEIVED_INBOUND_TRAFFIC = "websocket_received_inbound_traffic"
    WEBSOCKET_INTERNAL_ERROR = "websocket_internal_error"
    WEBSOCKET_NETWORK_TIMEOUT = "websocket_network_timeout"
    WEBSOCKET_NETWORK_ERROR = "websocket_network_error"
    WEBSOCKET_FAILED_TO_RECONNECT = "websocket_failed_to_reconnect"


class Shard(BaseModel):
    """One partition of a conduit, addressed by its index."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    status: str
    transport: ShardTransportDescriptor | None = None  # None for an unassigned slot

    @property
    def index(self) -> int:
        return int(self.id)

    @property
    def enabled(self) -> bool:
        return self.status == ShardStatus.ENABLED.value


class ShardPage(BaseModel):
    """One page of a conduit's shards."""

    model_config = ConfigDict(extra="ignore")

    data: list[Shard] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)

    @property
    def cursor(self) -> str | None:
        return self.pagination.cursor or None

    @property
    def has_next(self) -> bool:
        return self.cursor is not None


class ShardTransport(BaseModel):
    """
    Requested transport for a shard update.

    The method is free text, compared case-insensitively. Fields are
    checked when the batch is validated.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    callback: str | None = None
    secret: str | None = Field(None, repr=False)
    session_id: str | None = None

    @classmethod
    def from_descriptor(
        cls, descriptor: WebhookTransport | WebsocketTransport | ConduitTransport
    ) -> ShardTransport:
        fields = descriptor.to_api_dict()
        fields.pop("conduit_id", None)
        return cls(**fields)


class ShardUpdate(BaseModel):
    """Assign a transport to one shard."""

    model_config = ConfigDict(frozen=True)

    id: str
    transport: ShardTransport


class ShardError(BaseModel):
    """A shard the registry refused to update."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    code: str | None = None
    message: str = ""


class UpdateShardsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[Shard] = Field(default_factory=list)
    errors: list[ShardError] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BatchResult:
    """
    Outcome of a shard batch update.

    Accepted shards are already committed remotely. Errored shards are
    reported, not raised; an all-errored batch is still a BatchResult.
    Both collections follow the order of the submitted updates.
    """

    accepted: tuple[Shard, ...] = ()
    errored: tuple[ShardError, ...] = ()

    @property
    def all_accepted(self) -> bool:
        return not self.errored

    @property
    def has_errors(self) -> bool:
        return bool(self.errored)

    @property
    def accepted_ids(self) -> list[str]:
        return [shard.id for shard in self.accepted]

    @property
    def errored_ids(self) -> list[str]:
        return [error.id for error in self.errored]
