"""Order lifecycle service: placing orders and applying provider responses.

Every status-affecting write runs through ``_change_status``: a SAVEPOINT
that locks the order row, applies the mutation, recomputes the aggregate
status and flushes. Lock or version conflicts roll the savepoint back and
the whole read-modify-write is retried.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.config import settings
from src.exceptions import (
    BusinessRuleException,
    ConcurrentModificationException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from src.models.enums import (
    LineItemDecision,
    OrderServiceStatus,
    OrderStatus,
    ServiceStatus,
)
from src.models.order import Order
from src.models.order_service import OrderService
from src.models.port import Port
from src.models.service import Service
from src.models.vessel import Vessel
from src.modules.order.aggregator import (
    cancel_target,
    derive_status,
    ensure_line_item_transition,
    ensure_transition,
    next_status,
)
from src.modules.order.constants import (
    EVENT_LINE_ITEM_RESPONDED,
    EVENT_ORDER_CANCELLED,
    EVENT_ORDER_CREATED,
    EVENT_ORDER_STATUS_CHANGED,
    ORDER_NUMBER_PREFIX,
    ORDER_TERMINAL_STATUSES,
    RETRYABLE_SQLSTATES,
)

logger = logging.getLogger(__name__)

_DECISION_TO_STATUS: dict[LineItemDecision, OrderServiceStatus] = {
    LineItemDecision.CONFIRM: OrderServiceStatus.CONFIRMED,
    LineItemDecision.DECLINE: OrderServiceStatus.DECLINED,
}


def _is_retryable(exc: Exception) -> bool:
    """True for version conflicts and lock/serialization failures only."""
    if isinstance(exc, StaleDataError):
        return True
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in RETRYABLE_SQLSTATES


class OrderFulfillmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reference number generation
    # ------------------------------------------------------------------

    async def _generate_order_number(self) -> str:
        """Generate ORD-YYYY-NNNNNN reference using a DB sequence."""
        result = await self.db.execute(text("SELECT nextval('order_number_seq')"))
        seq_val = result.scalar()
        year = datetime.now(UTC).year
        return f"{ORDER_NUMBER_PREFIX}-{year}-{seq_val:06d}"

    # ------------------------------------------------------------------
    # Create / submit
    # ------------------------------------------------------------------

    async def create_order(
        self,
        placed_by_user_id: uuid.UUID,
        placed_by_organization_id: uuid.UUID,
        vessel_id: uuid.UUID,
        port_id: uuid.UUID,
        service_ids: list[uuid.UUID],
        notes: str | None = None,
        submit: bool = True,
    ) -> Order:
        """Create a draft order with one unconfirmed line per service, then submit it."""
        unique_ids = list(dict.fromkeys(service_ids or []))
        if not unique_ids:
            raise ValidationException(
                "An order must contain at least one service",
                details=[{"field": "service_ids", "message": "At least one service is required"}],
            )

        vessel = (
            await self.db.execute(select(Vessel).where(Vessel.id == vessel_id))
        ).scalar_one_or_none()
        if vessel is None:
            raise NotFoundException(f"Vessel {vessel_id} not found")
        if vessel.organization_id != placed_by_organization_id:
            raise ForbiddenException("Orders can only be placed for your organization's vessels")

        port = (
            await self.db.execute(select(Port).where(Port.id == port_id))
        ).scalar_one_or_none()
        if port is None:
            raise NotFoundException(f"Port {port_id} not found")

        result = await self.db.execute(select(Service).where(Service.id.in_(unique_ids)))
        services_by_id = {s.id: s for s in result.scalars().all()}

        missing = [str(sid) for sid in unique_ids if sid not in services_by_id]
        if missing:
            raise NotFoundException(f"Services not found: {', '.join(missing)}")

        for service in services_by_id.values():
            if service.status != ServiceStatus.ACTIVE:
                raise BusinessRuleException(f"Service '{service.name}' is not currently offered")
            if service.port_id != port_id:
                raise BusinessRuleException(
                    f"Service '{service.name}' is not offered at port {port.code}"
                )

        order = Order(
            order_number=await self._generate_order_number(),
            vessel_id=vessel_id,
            port_id=port_id,
            placed_by_user_id=placed_by_user_id,
            placed_by_organization_id=placed_by_organization_id,
            notes=notes,
            status=OrderStatus.DRAFT,
        )
        self.db.add(order)
        await self.db.flush()

        for service_id in unique_ids:
            service = services_by_id[service_id]
            self.db.add(
                OrderService(
                    order_id=order.id,
                    service_id=service.id,
                    provider_organization_id=service.organization_id,
                    price_snapshot=service.price,
                    status=OrderServiceStatus.UNCONFIRMED,
                )
            )
        await self.db.flush()

        logger.info(
            "Created order %s (%s) with %d services",
            order.id, order.order_number, len(unique_ids),
            extra={
                "event": EVENT_ORDER_CREATED,
                "order_id": str(order.id),
                "placed_by_organization_id": str(placed_by_organization_id),
            },
        )

        if submit:
            return await self.submit_order(order.id, placed_by_organization_id)
        return await self.get_order(order.id)

    async def submit_order(
        self, order_id: uuid.UUID, organization_id: uuid.UUID
    ) -> Order:
        """Move a draft order to the status derived from its line items."""

        def _submit(order: Order) -> None:
            if order.placed_by_organization_id != organization_id:
                raise ForbiddenException("Only the placing organization can submit this order")
            if order.status != OrderStatus.DRAFT:
                raise BusinessRuleException(
                    f"Only draft orders can be submitted (current: '{order.status.value}')"
                )
            target = derive_status(li.status for li in order.line_items)
            self._apply_status(order, target, organization_id)

        return await self._change_status(order_id, _submit)

    # ------------------------------------------------------------------
    # Provider responses
    # ------------------------------------------------------------------

    async def respond_to_line_item(
        self,
        order_id: uuid.UUID,
        line_item_id: uuid.UUID,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        decision: LineItemDecision,
        notes: str | None = None,
    ) -> Order:
        """Confirm or decline one service on an order as its providing organization."""
        target = _DECISION_TO_STATUS[decision]

        def _respond(order: Order) -> None:
            self._ensure_open_for_responses(order)

            line = next((li for li in order.line_items if li.id == line_item_id), None)
            if line is None:
                raise NotFoundException(
                    f"Service line {line_item_id} not found on order {order_id}"
                )
            if line.provider_organization_id != organization_id:
                raise ForbiddenException(
                    "Only the organization providing this service can respond to it"
                )

            self._record_response(order, line, target, organization_id, user_id, notes)
            self._apply_provider_outcome(order, organization_id)

        return await self._change_status(order_id, _respond)

    async def respond_for_provider(
        self,
        order_id: uuid.UUID,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        decision: LineItemDecision,
        notes: str | None = None,
    ) -> Order:
        """Confirm or decline every open service the organization provides on an order.

        All of the provider's unconfirmed lines change in one locked update, so
        the aggregate status moves once for the whole response.
        """
        target = _DECISION_TO_STATUS[decision]

        def _respond_all(order: Order) -> None:
            self._ensure_open_for_responses(order)

            own_lines = [
                li for li in order.line_items
                if li.provider_organization_id == organization_id
            ]
            if not own_lines:
                raise ForbiddenException(
                    "Your organization does not provide any service on this order"
                )
            pending = [li for li in own_lines if li.status == OrderServiceStatus.UNCONFIRMED]
            if not pending:
                raise BusinessRuleException(
                    "Your organization has already responded to all of its services on this order"
                )

            for line in pending:
                self._record_response(order, line, target, organization_id, user_id, notes)
            self._apply_provider_outcome(order, organization_id)

        return await self._change_status(order_id, _respond_all)

    @staticmethod
    def _ensure_open_for_responses(order: Order) -> None:
        if order.status == OrderStatus.DRAFT:
            raise BusinessRuleException("Order has not been submitted yet")
        if order.status in ORDER_TERMINAL_STATUSES:
            raise BusinessRuleException(
                f"Order is already {order.status.value}; services can no longer be updated"
            )

    @staticmethod
    def _record_response(
        order: Order,
        line: OrderService,
        target: OrderServiceStatus,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        notes: str | None,
    ) -> None:
        ensure_line_item_transition(line.status, target)
        line.status = target
        line.responded_at = datetime.now(UTC)
        line.responded_by_user_id = user_id
        if notes:
            line.notes = notes

        logger.info(
            "Order %s service line %s %s by organization %s",
            order.id, line.id, target.value, organization_id,
            extra={
                "event": EVENT_LINE_ITEM_RESPONDED,
                "order_id": str(order.id),
                "line_item_id": str(line.id),
                "status": target.value,
            },
        )

    def _apply_provider_outcome(self, order: Order, organization_id: uuid.UUID) -> None:
        new_status = next_status(order.status, (li.status for li in order.line_items))
        if new_status == OrderStatus.CANCELLED:
            order.cancellation_reason = "A requested service was declined by its provider"
        self._apply_status(order, new_status, organization_id)

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    async def cancel_order(
        self,
        order_id: uuid.UUID,
        organization_id: uuid.UUID,
        reason: str,
        is_platform_team: bool = False,
    ) -> Order:
        """Force an order into ``cancelled`` (placing organization or platform team only)."""

        def _cancel(order: Order) -> None:
            if order.placed_by_organization_id != organization_id and not is_platform_team:
                raise ForbiddenException("Only the placing organization can cancel this order")
            target = cancel_target(order.status)
            order.cancellation_reason = reason
            self._apply_status(order, target, organization_id)

        order = await self._change_status(order_id, _cancel)
        logger.info(
            "Cancelled order %s: %s",
            order_id, reason,
            extra={"event": EVENT_ORDER_CANCELLED, "order_id": str(order_id)},
        )
        return order

    # ------------------------------------------------------------------
    # Get / List
    # ------------------------------------------------------------------

    async def get_order(self, order_id: uuid.UUID) -> Order:
        """Get an order with its service lines."""
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.line_items).selectinload(OrderService.service))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def list_orders(
        self,
        placed_by_organization_id: uuid.UUID,
        status: OrderStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """List orders placed by an organization, paginated."""
        condition = Order.placed_by_organization_id == placed_by_organization_id
        return await self._paginate(condition, status, limit, offset)

    async def list_provider_orders(
        self,
        provider_organization_id: uuid.UUID,
        status: OrderStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """List orders containing at least one service provided by the organization."""
        provider_orders = select(OrderService.order_id).where(
            OrderService.provider_organization_id == provider_organization_id
        )
        condition = Order.id.in_(provider_orders)
        return await self._paginate(condition, status, limit, offset)

    async def _paginate(self, condition, status, limit, offset) -> tuple[list[Order], int]:
        query = select(Order).where(condition)
        count_query = select(func.count()).select_from(Order).where(condition)

        if status is not None:
            query = query.where(Order.status == status)
            count_query = count_query.where(Order.status == status)

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(
            query.options(selectinload(Order.line_items))
            .order_by(Order.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Status changes under lock
    # ------------------------------------------------------------------

    async def _lock_order(self, order_id: uuid.UUID) -> Order:
        # selectinload keeps FOR UPDATE on the orders row only (no outer join)
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.line_items))
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def _change_status(
        self, order_id: uuid.UUID, mutate: Callable[[Order], None]
    ) -> Order:
        max_attempts = settings.order_status_max_retries
        for attempt in range(1, max_attempts + 1):
            try:
                async with self.db.begin_nested():
                    order = await self._lock_order(order_id)
                    mutate(order)
                    await self.db.flush()
                return order
            except (StaleDataError, DBAPIError) as exc:
                if not _is_retryable(exc):
                    raise
                if attempt >= max_attempts:
                    logger.error(
                        "Giving up on order %s status update after %d attempts: %s",
                        order_id, attempt, exc,
                    )
                    raise ConcurrentModificationException(
                        f"Order {order_id} was modified concurrently; please retry"
                    ) from exc
                logger.warning(
                    "Concurrent update on order %s (attempt %d/%d): %s",
                    order_id, attempt, max_attempts, exc,
                )
                await asyncio.sleep(settings.order_status_retry_backoff_seconds * attempt)

        raise ConcurrentModificationException(f"Order {order_id} could not be updated")

    def _apply_status(
        self, order: Order, target: OrderStatus, triggered_by: uuid.UUID
    ) -> None:
        old_status = order.status
        ensure_transition(old_status, target)
        if old_status == target:
            return

        order.status = target
        if target == OrderStatus.CANCELLED:
            order.cancelled_at = datetime.now(UTC)

        logger.info(
            "Order %s transitioned %s -> %s",
            order.id, old_status.value, target.value,
            extra={
                "event": EVENT_ORDER_STATUS_CHANGED,
                "order_id": str(order.id),
                "from_status": old_status.value,
                "to_status": target.value,
                "triggered_by": str(triggered_by),
            },
        )
