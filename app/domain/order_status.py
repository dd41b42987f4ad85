# app/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    # ustawiany przez zewnetrzny fulfillment, nie przez ten serwis
    DELIVERED = "delivered"


#dozwolone przejscia, pending jest jedynym stanem poczatkowym
TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
    OrderStatus.DELIVERED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


class GatewayStatus(str, Enum):
    """Kody statusu wysylane przez Fawry w webhooku."""

    NEW = "NEW"
    PAID = "PAID"
    CANCELED = "CANCELED"
    DELIVERED = "DELIVERED"
    REFUNDED = "REFUNDED"
    PARTIAL_REFUNDED = "PARTIAL_REFUNDED"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, value: str) -> "GatewayStatus | None":
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


#kazdy kod ma wpis, None = nie zmieniamy statusu zamowienia
GATEWAY_STATUS_MAP: dict[GatewayStatus, OrderStatus | None] = {
    GatewayStatus.NEW: OrderStatus.CONFIRMED,
    GatewayStatus.PAID: OrderStatus.CONFIRMED,
    GatewayStatus.CANCELED: OrderStatus.CANCELLED,
    GatewayStatus.EXPIRED: OrderStatus.CANCELLED,
    GatewayStatus.FAILED: OrderStatus.CANCELLED,
    GatewayStatus.REFUNDED: OrderStatus.REFUNDED,
    GatewayStatus.DELIVERED: None,
    GatewayStatus.PARTIAL_REFUNDED: None,
}


def target_status(gateway_status: GatewayStatus | None) -> OrderStatus | None:
    if gateway_status is None:
        return None
    return GATEWAY_STATUS_MAP[gateway_status]
