"""Order status transitions, terminal states, and event names."""

from __future__ import annotations

from src.models.enums import OrderServiceStatus, OrderStatus

# ---------------------------------------------------------------------------
# Valid status transitions: current_status -> set of allowed next statuses
# ---------------------------------------------------------------------------

ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.DRAFT: {
        OrderStatus.PENDING_AGENCY_CONFIRMATION,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PENDING_AGENCY_CONFIRMATION: {
        OrderStatus.PARTIALLY_CONFIRMED,
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PARTIALLY_CONFIRMED: {
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    },
}

# Terminal statuses (no further transitions)
ORDER_TERMINAL_STATUSES: set[OrderStatus] = {
    OrderStatus.CONFIRMED,
    OrderStatus.CANCELLED,
}

# Source statuses from which the explicit cancellation override is accepted
CANCELLABLE_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.DRAFT,
    OrderStatus.PENDING_AGENCY_CONFIRMATION,
    OrderStatus.PARTIALLY_CONFIRMED,
})

LINE_ITEM_TRANSITIONS: dict[OrderServiceStatus, set[OrderServiceStatus]] = {
    OrderServiceStatus.UNCONFIRMED: {
        OrderServiceStatus.CONFIRMED,
        OrderServiceStatus.DECLINED,
    },
}

ORDER_NUMBER_PREFIX = "ORD"

# SQLSTATEs worth retrying a status change on (serialization failure,
# deadlock and lock timeout). Anything else is a real error.
RETRYABLE_SQLSTATES: frozenset[str] = frozenset({"40001", "40P01", "55P03"})

# ---------------------------------------------------------------------------
# Log event names
# ---------------------------------------------------------------------------

EVENT_ORDER_CREATED = "order.created"
EVENT_ORDER_STATUS_CHANGED = "order.status_changed"
EVENT_ORDER_CANCELLED = "order.cancelled"
EVENT_LINE_ITEM_RESPONDED = "order_service.responded"
