"""Order service layer (Use Cases).

Orchestrates order creation, reads, updates, status transitions,
discounts and deletion.  Every write runs as one unit of work:

1. ``aggregate_locks`` serializes callers touching the same order inside
   this process (taken *before* the transaction opens),
2. ``transaction.atomic`` + ``select_for_update`` guard the rows across
   processes,
3. totals are recomputed from lines read fresh inside the transaction.

Business rules enforced:
- Customer and seller must exist to create an order.
- Closed orders cannot be updated.
- Status changes follow ``modules.orders.state_machine``.
- Discounts apply only to PENDING orders, with ``0 < percentage <= 100``.
- Only PENDING orders can be deleted.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from django.db import transaction

from modules.core.locks import aggregate_locks, order_key
from modules.customers.exceptions import CustomerNotFound
from modules.orders import state_machine
from modules.orders.constants import (
    DELETABLE_STATES,
    DISCOUNTABLE_STATES,
    OrderStatus,
)
from modules.orders.dtos import DiscountSummaryDTO
from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderStatusChanged,
    OrderTotalsChanged,
)
from modules.orders.exceptions import (
    InvalidDiscount,
    InvalidStatusTransition,
    OrderClosed,
    OrderNotDeletable,
    OrderNotEditable,
    OrderNotFound,
    SellerNotFound,
)
from modules.orders.models import Order
from modules.orders.totals import (
    ZERO,
    OrderTotals,
    discount_from_percentage,
    recompute_totals,
    totals_of,
)

if TYPE_CHECKING:
    from modules.core.repositories.sellers import ISellerRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
    from modules.orders.repositories.interfaces import (
        IOrderLineRepository,
        IOrderRepository,
    )

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        order_line_repository: IOrderLineRepository,
        customer_repository: ICustomerRepository,
        seller_repository: ISellerRepository,
    ) -> None:
        self._order_repo = order_repository
        self._line_repo = order_line_repository
        self._customer_repo = customer_repository
        self._seller_repo = seller_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an empty PENDING order.

        Totals start at zero and ``notes`` at ``None`` unless provided.

        Raises:
            CustomerNotFound: customer does not exist.
            SellerNotFound: seller does not exist or lacks a selling role.
        """
        log = logger.bind(
            customer_id=str(dto.customer_id),
            seller_id=str(dto.seller_id),
        )
        log.info("order.creation_started")

        if not self._customer_repo.exists(str(dto.customer_id)):
            raise CustomerNotFound(dto.customer_id)
        if not self._seller_repo.exists(str(dto.seller_id)):
            raise SellerNotFound(dto.seller_id)

        order = Order(
            customer_id=dto.customer_id,
            seller_id=dto.seller_id,
            status=OrderStatus.PENDING,
            subtotal=ZERO,
            discount=ZERO,
            tax=ZERO,
            total=ZERO,
            notes=dto.notes,
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                customer_id=str(dto.customer_id),
                seller_id=str(dto.seller_id),
            )
        )
        self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
        )
        return order

    def update_order(self, order_id: str, dto: UpdateOrderDTO) -> Order:
        """Patch ``notes`` and/or the discount amount, then recompute totals.

        Only fields explicitly set on *dto* are applied.  Recomputing caps
        the stored discount at the current subtotal, so the discount that
        ends up stored can be lower than the one applied earlier.

        Raises:
            OrderNotFound: order does not exist.
            OrderClosed: order is CLOSED.
            InvalidDiscount: discount is negative or exceeds the subtotal.
        """
        with aggregate_locks.hold(order_key(order_id)):
            return self._update_order(order_id, dto)

    @transaction.atomic
    def _update_order(self, order_id: str, dto: UpdateOrderDTO) -> Order:
        order = self._load_for_update(order_id)
        previous = totals_of(order)
        log = logger.bind(order_id=str(order.id), status=order.status)

        if order.is_terminal:
            log.warning("order.update_rejected")
            raise OrderClosed(order.id)

        fields = dto.model_fields_set
        if "notes" in fields:
            order.notes = dto.notes
        if "discount" in fields:
            discount = dto.discount if dto.discount is not None else ZERO
            if discount < 0:
                raise InvalidDiscount("Discount cannot be negative.")
            if discount > order.subtotal:
                raise InvalidDiscount(
                    f"Discount {discount} cannot exceed the order subtotal "
                    f"{order.subtotal}."
                )
            order.discount = discount

        self._recompute_and_save(order, previous)
        log.info("order.updated", fields=sorted(fields))
        return order

    def change_status(self, order_id: str, new_status: str) -> Order:
        """Transition an order to *new_status*.

        Only the status is persisted.  ``OrderStatusChanged`` is recorded
        in the outbox and published after commit; notification is a
        handler concern.

        Raises:
            OrderNotFound: order does not exist.
            InvalidStatusTransition: the transition is not allowed.
        """
        with aggregate_locks.hold(order_key(order_id)):
            return self._change_status(order_id, new_status)

    @transaction.atomic
    def _change_status(self, order_id: str, new_status: str) -> Order:
        order = self._load_for_update(order_id)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
        )

        try:
            state_machine.validate_transition(order.status, new_status)
        except InvalidStatusTransition:
            log.warning("order.invalid_transition")
            raise

        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
            )
        )
        self._order_repo.save(order)

        log.info("order.status_changed")
        return order

    def mark_as_adding_products(self, order_id: str) -> Order:
        return self.change_status(order_id, OrderStatus.ADDING_PRODUCTS)

    def mark_as_available_for_payment(self, order_id: str) -> Order:
        return self.change_status(order_id, OrderStatus.AVAILABLE_FOR_PAYMENT)

    def mark_as_paid(self, order_id: str) -> Order:
        return self.change_status(order_id, OrderStatus.PAID)

    def mark_as_delivered(self, order_id: str) -> Order:
        return self.change_status(order_id, OrderStatus.DELIVERED)

    def mark_as_closed(self, order_id: str) -> Order:
        return self.change_status(order_id, OrderStatus.CLOSED)

    def apply_discount(self, order_id: str, percentage: Any) -> Order:
        """Set the discount to ``subtotal * percentage / 100``.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotEditable: order is not PENDING.
            InvalidDiscount: percentage is not in ``(0, 100]``.
        """
        with aggregate_locks.hold(order_key(order_id)):
            return self._apply_discount(order_id, percentage)

    @transaction.atomic
    def _apply_discount(self, order_id: str, percentage: Any) -> Order:
        order = self._load_for_update(order_id)
        previous = totals_of(order)
        log = logger.bind(order_id=str(order.id), status=order.status)

        if order.status not in DISCOUNTABLE_STATES:
            log.warning("order.discount_rejected")
            raise OrderNotEditable(order.status, DISCOUNTABLE_STATES)

        pct = _to_percentage(percentage)
        order.discount = discount_from_percentage(order.subtotal, pct)
        self._recompute_and_save(order, previous)

        log.info(
            "order.discount_applied",
            percentage=str(pct),
            discount=str(order.discount),
        )
        return order

    def remove_discount(self, order_id: str) -> Order:
        """Reset the discount to zero and recompute totals.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotEditable: order is not PENDING.
        """
        with aggregate_locks.hold(order_key(order_id)):
            return self._remove_discount(order_id)

    @transaction.atomic
    def _remove_discount(self, order_id: str) -> Order:
        order = self._load_for_update(order_id)
        previous = totals_of(order)
        if order.status not in DISCOUNTABLE_STATES:
            raise OrderNotEditable(order.status, DISCOUNTABLE_STATES)

        order.discount = ZERO
        self._recompute_and_save(order, previous)
        logger.info("order.discount_removed", order_id=str(order.id))
        return order

    def delete_order(self, order_id: str) -> None:
        """Soft-delete a PENDING order.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotDeletable: order is not PENDING.
        """
        with aggregate_locks.hold(order_key(order_id)):
            self._delete_order(order_id)

    @transaction.atomic
    def _delete_order(self, order_id: str) -> None:
        order = self._load_for_update(order_id)
        if order.status not in DELETABLE_STATES:
            logger.warning(
                "order.delete_rejected", order_id=str(order.id), status=order.status
            )
            raise OrderNotDeletable(order.id, order.status)

        order.add_domain_event(OrderDeleted(aggregate_id=order.id))
        self._order_repo.delete(order)
        logger.info("order.deleted", order_id=str(order.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def get_order_with_lines(self, order_id: str) -> Order:
        """Retrieve an order with its lines prefetched.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_with_lines(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    def list_by_customer(self, customer_id: str) -> List[Order]:
        return self._order_repo.list_by_customer(customer_id)

    def list_by_seller(self, seller_id: str) -> List[Order]:
        """Orders handled by a seller.

        Raises:
            SellerNotFound: if the seller does not exist.
        """
        if not self._seller_repo.exists(seller_id):
            raise SellerNotFound(seller_id)
        return self._order_repo.list_by_seller(seller_id)

    def list_by_status(self, status: str) -> List[Order]:
        return self._order_repo.list_by_status(status)

    def list_available_for_payment(self) -> List[Order]:
        return self._order_repo.list_by_status(OrderStatus.AVAILABLE_FOR_PAYMENT)

    def discount_summary(self, order_id: str) -> DiscountSummaryDTO:
        """Subtotal, discount (amount and percentage), tax and total."""
        return DiscountSummaryDTO.from_entity(self.get_order(order_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_for_update(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def _recompute_and_save(self, order: Order, previous: OrderTotals) -> Order:
        return save_with_recomputed_totals(
            order, previous, self._order_repo, self._line_repo
        )


def save_with_recomputed_totals(
    order: Order,
    previous: OrderTotals,
    order_repository: IOrderRepository,
    order_line_repository: IOrderLineRepository,
) -> Order:
    """Recompute *order* totals from its lines, read fresh, and persist it.

    *previous* is the totals snapshot taken when the order was loaded;
    ``OrderTotalsChanged`` is recorded only when the totals moved.
    """
    lines = order_line_repository.list_for_order(str(order.id))
    recompute_totals(order, lines)
    current = totals_of(order)
    if current != previous:
        order.add_domain_event(
            OrderTotalsChanged(
                aggregate_id=order.id,
                subtotal=str(current.subtotal),
                discount=str(current.discount),
                tax=str(current.tax),
                total=str(current.total),
            )
        )
    return order_repository.save(order)


def _to_percentage(value: Any) -> Decimal:
    try:
        pct = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidDiscount(f"Invalid discount percentage: {value!r}.") from None
    if not pct.is_finite() or pct <= 0 or pct > HUNDRED:
        raise InvalidDiscount(
            f"Discount percentage must be greater than 0 and at most 100, got {value}."
        )
    return pct
