"""Shared data models for order tracking."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from order_tracking.errors import MalformedTriggerError

MarkerValue = bool | str | None


def is_set(value: Any) -> bool:
    """Whether a marker or text field counts as set."""
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _marker(value: Any) -> MarkerValue:
    if value is None or isinstance(value, (bool, str)):
        return value
    return bool(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 value; naive timestamps are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Stage(str, Enum):
    """Pipeline stages, in pipeline order."""

    NEW = "novo"
    INSUMOS_PENDING = "insumos"
    IN_PRODUCTION = "em_producao"
    SHIPPING = "envio_expedicao"
    DISPATCHED = "despachado"


@dataclass
class Order:
    """One line item in the order store."""

    id: str
    numero_pedido: str | None = None
    insumos: MarkerValue = None
    em_producao: MarkerValue = None
    envio_expedicao: MarkerValue = None
    despachado: MarkerValue = None
    tracking_code: str | None = None
    dia_pedido: datetime | None = None
    created_at: datetime | None = None
    color: str | None = None
    size: str | None = None
    mirror: str | None = None
    user_id: str | None = None

    @property
    def group_key(self) -> str:
        """Order-group key, falling back to the order's own identifier."""
        return self.numero_pedido or self.id

    @property
    def label(self) -> str:
        return self.numero_pedido or self.id

    @property
    def ordered_at(self) -> datetime | None:
        return self.dia_pedido or self.created_at

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Order":
        """Build an Order from a raw order-store row.

        Unknown columns are ignored and missing optional columns default to
        unset. The tracking code is read from ``nota/rastreio`` (the store's
        column name) or ``tracking_code``.
        """
        tracking = record.get("nota/rastreio", record.get("tracking_code"))
        return cls(
            id=_text(record.get("id")) or "",
            numero_pedido=_text(record.get("numero_pedido")),
            insumos=_marker(record.get("insumos")),
            em_producao=_marker(record.get("em_producao")),
            envio_expedicao=_marker(record.get("envio_expedicao")),
            despachado=_marker(record.get("despachado")),
            tracking_code=_text(tracking),
            dia_pedido=parse_timestamp(record.get("dia_pedido")),
            created_at=parse_timestamp(record.get("created_at")),
            color=_text(record.get("cor")),
            size=_text(record.get("tamanho")),
            mirror=_text(record.get("espelho")),
            user_id=_text(record.get("user_id")),
        )


@dataclass
class OrderGroup:
    """Sibling line items sharing an order-group key, shown as one unit."""

    key: str
    orders: list[Order] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.orders[0].label if self.orders else self.key

    @property
    def representative_date(self) -> datetime | None:
        """Earliest order date across members."""
        dates = [o.ordered_at for o in self.orders if o.ordered_at is not None]
        return min(dates) if dates else None


@dataclass
class NotificationToken:
    """A push registration for one device."""

    token: str
    user_id: str | None = None
    device_info: dict[str, Any] = field(default_factory=dict)
    updated_at: datetime | None = None


@dataclass(frozen=True)
class StageTransitionEvent:
    """Notification derived from one order mutation. Never persisted."""

    changed_field: str
    title: str
    body: str
    order_id: str
    group_key: str


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"


@dataclass
class ChangeNotification:
    """One order-store mutation: the before/after pair of a single order."""

    type: ChangeType
    after: Order
    before: Order | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChangeNotification":
        """Parse a storage change notification.

        Accepts ``before``/``after`` as well as the store webhook's
        ``old_record``/``new_record`` keys. For an INSERT any ``before``
        record is ignored, so every field counts as previously unset.
        """
        if not isinstance(payload, Mapping):
            raise MalformedTriggerError("change notification must be a mapping")

        raw_type = str(payload.get("type", "")).upper()
        try:
            change_type = ChangeType(raw_type)
        except ValueError:
            raise MalformedTriggerError(
                f"unsupported change type {payload.get('type')!r}"
            ) from None

        after = payload.get("after") or payload.get("new_record")
        if not isinstance(after, Mapping):
            raise MalformedTriggerError("change notification has no 'after' record")

        before = payload.get("before") or payload.get("old_record")
        if before is not None and not isinstance(before, Mapping):
            raise MalformedTriggerError("'before' record must be a mapping")

        # An insert has no previous state, whatever the payload carries.
        if change_type is ChangeType.INSERT or before is None:
            return cls(type=change_type, after=Order.from_record(after))
        return cls(
            type=change_type,
            after=Order.from_record(after),
            before=Order.from_record(before),
        )


class DeliveryOutcome(str, Enum):
    """Per-recipient result of one push send."""

    DELIVERED = "delivered"
    TRANSIENT_FAILURE = "transient-failure"
    PERMANENTLY_INVALID = "permanently-invalid"


@dataclass
class SendResult:
    token: str
    outcome: DeliveryOutcome
    error: str | None = None


@dataclass
class DispatchResult:
    """Aggregate outcome of one dispatcher invocation."""

    notified: bool = False
    title: str = ""
    body: str = ""
    recipients: int = 0
    delivered: int = 0
    failed: int = 0
    invalid: int = 0
    removed: int = 0
    abandoned: int = 0
    timed_out: bool = False
    error: str | None = None

    @property
    def message(self) -> str:
        return f"{self.title} - {self.body}" if self.notified else "No relevant changes"

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out


@dataclass(frozen=True)
class PushMessage:
    """Payload sent to each recipient of one event."""

    title: str
    body: str
    icon: str
    badge: str
    data: dict[str, str] = field(default_factory=dict)
