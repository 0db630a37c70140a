"""Order status aggregation: derive an order's status from its line items.

The aggregate status is a pure function of the line-item statuses, with two
exceptions: ``draft`` is held until the placing organization submits the
order, and ``cancelled`` can be forced from any non-terminal status. Both
``confirmed`` and ``cancelled`` are absorbing.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.exceptions import BusinessRuleException, ValidationException
from src.models.enums import OrderServiceStatus, OrderStatus
from src.modules.order.constants import (
    CANCELLABLE_STATUSES,
    LINE_ITEM_TRANSITIONS,
    ORDER_TERMINAL_STATUSES,
    ORDER_TRANSITIONS,
)


def derive_status(line_statuses: Iterable[OrderServiceStatus]) -> OrderStatus:
    """Compute the aggregate status for a submitted order.

    Priority: any declined line cancels the order; all confirmed confirms it;
    some confirmed is a partial confirmation; otherwise it is still waiting on
    the agencies.
    """
    statuses = list(line_statuses)
    if not statuses:
        raise ValidationException("An order must contain at least one service")

    if OrderServiceStatus.DECLINED in statuses:
        return OrderStatus.CANCELLED
    if all(s == OrderServiceStatus.CONFIRMED for s in statuses):
        return OrderStatus.CONFIRMED
    if OrderServiceStatus.CONFIRMED in statuses:
        return OrderStatus.PARTIALLY_CONFIRMED
    return OrderStatus.PENDING_AGENCY_CONFIRMATION


def next_status(
    current: OrderStatus, line_statuses: Iterable[OrderServiceStatus]
) -> OrderStatus:
    """Status an order should hold after a line-item change."""
    if current in ORDER_TERMINAL_STATUSES or current == OrderStatus.DRAFT:
        return current
    return derive_status(line_statuses)


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise BusinessRuleException unless ``current -> target`` is allowed.

    Re-applying the current status is always accepted.
    """
    if current == target:
        return
    allowed = ORDER_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise BusinessRuleException(
            f"Cannot transition order from '{current.value}' to '{target.value}'. "
            f"Allowed: {sorted(s.value for s in allowed)}"
        )


def cancel_target(current: OrderStatus) -> OrderStatus:
    """Validate the explicit cancellation override and return the new status."""
    if current not in CANCELLABLE_STATUSES:
        raise BusinessRuleException(
            f"Cannot cancel order in status '{current.value}'"
        )
    return OrderStatus.CANCELLED


def ensure_line_item_transition(
    current: OrderServiceStatus, target: OrderServiceStatus
) -> None:
    allowed = LINE_ITEM_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise BusinessRuleException(
            f"Service has already been {current.value}; cannot mark it {target.value}"
        )
