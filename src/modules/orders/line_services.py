"""Order line service layer (Use Cases).

Adds, changes and removes the lines of an order while keeping the order
totals consistent with them.

Every mutation follows the same unit of work:

1. hold ``order:<id>`` (and ``product:<id>`` when stock is checked) in
   ``aggregate_locks``,
2. open a transaction and lock the order row (and product row),
3. gate on ``EDITABLE_STATES``, validate stock, mutate the line,
4. re-read the order's lines and recompute + persist the order totals.

Lines never reach their order through ``line.order``; the order id is
always passed explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog

from django.db import IntegrityError, transaction

from modules.core.locks import aggregate_locks, order_key, product_key
from modules.orders.constants import EDITABLE_STATES
from modules.orders.exceptions import (
    DuplicateLine,
    InvalidQuantity,
    LineNotFound,
    NoLinesFound,
    OrderNotEditable,
    OrderNotFound,
)
from modules.orders.models import Order, OrderLine
from modules.orders.services import save_with_recomputed_totals
from modules.orders.totals import totals_of
from modules.products.exceptions import ProductNotFound
from modules.products.stock import StockValidator

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderLineDTO, UpdateOrderLineDTO
    from modules.orders.repositories.interfaces import (
        IOrderLineRepository,
        IOrderRepository,
    )
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderLineService:
    """Application service for OrderLine use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        order_line_repository: IOrderLineRepository,
        product_repository: IProductRepository,
        stock_validator: Optional[StockValidator] = None,
    ) -> None:
        self._order_repo = order_repository
        self._line_repo = order_line_repository
        self._product_repo = product_repository
        self._stock = stock_validator or StockValidator(product_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_line(self, order_id: str, dto: CreateOrderLineDTO) -> OrderLine:
        """Add a product to an order.

        The line snapshots the current product price as ``unit_price``.

        Raises:
            OrderNotFound: order does not exist.
            OrderNotEditable: order is not PENDING or ADDING_PRODUCTS.
            ProductNotFound: product does not exist.
            ProductUnavailable: product is not ACTIVE.
            InsufficientStock: product stock is below ``dto.quantity``.
            DuplicateLine: the order already has a line for the product.
        """
        keys = (order_key(order_id), product_key(dto.product_id))
        with aggregate_locks.hold(*keys):
            return self._create_line(str(order_id), dto)

    @transaction.atomic
    def _create_line(self, order_id: str, dto: CreateOrderLineDTO) -> OrderLine:
        product_id = str(dto.product_id)
        log = logger.bind(order_id=order_id, product_id=product_id)

        order = self._load_order_for_update(order_id)
        self._ensure_editable(order)
        previous = totals_of(order)

        product = self._load_product_for_update(product_id)
        self._stock.validate_available(product_id, dto.quantity, product=product)

        if self._line_repo.get_by_order_and_product(order_id, product_id):
            log.warning("order_line.duplicate")
            raise DuplicateLine(order_id, product_id)

        line = OrderLine(
            order_id=order.id,
            product_id=product.id,
            quantity=dto.quantity,
            unit_price=product.price,
        )
        line.recalculate_subtotal()
        try:
            self._line_repo.save(line)
        except IntegrityError:
            log.warning("order_line.duplicate", source="constraint")
            raise DuplicateLine(order_id, product_id) from None

        save_with_recomputed_totals(order, previous, self._order_repo, self._line_repo)

        log.info(
            "order_line.created",
            line_id=str(line.id),
            quantity=line.quantity,
            subtotal=str(line.subtotal),
        )
        return line

    def update_quantity(self, line_id: str, new_quantity: int) -> OrderLine:
        """Change a line's quantity after re-validating stock.

        Raises:
            InvalidQuantity: ``new_quantity`` is not positive.
            LineNotFound: line does not exist.
            OrderNotEditable: order is not PENDING or ADDING_PRODUCTS.
            ProductUnavailable: product is no longer ACTIVE.
            InsufficientStock: product stock is below ``new_quantity``.
        """
        if new_quantity is None or new_quantity <= 0:
            raise InvalidQuantity(new_quantity)

        line = self.get_line(line_id)
        keys = (order_key(line.order_id), product_key(line.product_id))
        with aggregate_locks.hold(*keys):
            return self._update_quantity(line_id, new_quantity)

    @transaction.atomic
    def _update_quantity(self, line_id: str, new_quantity: int) -> OrderLine:
        line = self.get_line(line_id)
        order = self._load_order_for_update(str(line.order_id))
        self._ensure_editable(order)
        previous = totals_of(order)

        self._apply_quantity(line, new_quantity)
        save_with_recomputed_totals(order, previous, self._order_repo, self._line_repo)
        return line

    def update_line(self, line_id: str, dto: UpdateOrderLineDTO) -> OrderLine:
        """Apply a partial update; ``quantity`` is the only mutable field.

        Stock is re-validated only when the quantity actually changes.

        Raises:
            LineNotFound: line does not exist.
            OrderNotEditable: order is not PENDING or ADDING_PRODUCTS.
            ProductUnavailable: product is no longer ACTIVE.
            InsufficientStock: product stock is below the new quantity.
        """
        line = self.get_line(line_id)
        keys = (order_key(line.order_id), product_key(line.product_id))
        with aggregate_locks.hold(*keys):
            return self._update_line(line_id, dto)

    @transaction.atomic
    def _update_line(self, line_id: str, dto: UpdateOrderLineDTO) -> OrderLine:
        line = self.get_line(line_id)
        order = self._load_order_for_update(str(line.order_id))
        self._ensure_editable(order)
        previous = totals_of(order)

        if dto.quantity is not None and dto.quantity != line.quantity:
            self._apply_quantity(line, dto.quantity)

        save_with_recomputed_totals(order, previous, self._order_repo, self._line_repo)
        return line

    def delete_line(self, line_id: str) -> None:
        """Remove a line and recompute the order totals from the rest.

        When the remaining subtotal drops below the stored discount, the
        discount is lowered to that subtotal and stays lowered: adding
        lines back later does not restore it.

        Raises:
            LineNotFound: line does not exist.
            OrderNotEditable: order is not PENDING or ADDING_PRODUCTS.
        """
        line = self.get_line(line_id)
        with aggregate_locks.hold(order_key(line.order_id)):
            self._delete_line(line_id)

    @transaction.atomic
    def _delete_line(self, line_id: str) -> None:
        line = self.get_line(line_id)
        order_id = str(line.order_id)
        order = self._load_order_for_update(order_id)
        self._ensure_editable(order)
        previous = totals_of(order)

        self._line_repo.delete(line)
        save_with_recomputed_totals(order, previous, self._order_repo, self._line_repo)
        logger.info("order_line.removed", line_id=str(line_id), order_id=order_id)

    def delete_line_by_order_and_product(self, order_id: str, product_id: str) -> None:
        """Remove the order's line for *product_id*.

        Raises:
            LineNotFound: no line exists for the pair.
            OrderNotEditable: order is not PENDING or ADDING_PRODUCTS.
        """
        line = self._line_repo.get_by_order_and_product(str(order_id), str(product_id))
        if not line:
            raise LineNotFound(order_id=order_id, product_id=product_id)
        self.delete_line(str(line.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_line(self, line_id: str) -> OrderLine:
        """Retrieve a single line by ID.

        Raises:
            LineNotFound: if the line does not exist.
        """
        line = self._line_repo.get_by_id(str(line_id))
        if not line:
            raise LineNotFound(line_id)
        return line

    def list_lines_for_order(self, order_id: str) -> List[OrderLine]:
        """Lines of an existing order.

        An order without lines is reported as ``NoLinesFound`` rather than
        an empty list.

        Raises:
            OrderNotFound: order does not exist.
            NoLinesFound: order exists but has no lines.
        """
        if not self._order_repo.exists(str(order_id)):
            raise OrderNotFound(order_id)
        lines = self._line_repo.list_for_order(str(order_id))
        if not lines:
            raise NoLinesFound(order_id)
        return lines

    def validate_stock_available(self, product_id: str, quantity: int) -> Product:
        """Pre-flight stock check; see ``StockValidator.validate_available``.

        Raises:
            InvalidQuantity: ``quantity`` is not positive.
        """
        if quantity is None or quantity <= 0:
            raise InvalidQuantity(quantity)
        return self._stock.validate_available(str(product_id), quantity)

    def is_product_available(self, product_id: str) -> bool:
        return self._stock.is_available(str(product_id))

    def available_stock(self, product_id: str) -> int:
        return self._stock.available_stock(str(product_id))

    def list_available_products(self) -> List[Product]:
        return self._stock.list_available()

    def list_products_by_status(self, status: str) -> List[Product]:
        return self._stock.list_by_status(status)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_order_for_update(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def _load_product_for_update(self, product_id: str) -> Product:
        product = self._product_repo.get_for_update(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def _ensure_editable(self, order: Order) -> None:
        if not order.is_editable:
            logger.warning(
                "order_line.order_not_editable",
                order_id=str(order.id),
                status=order.status,
            )
            raise OrderNotEditable(order.status, EDITABLE_STATES)

    def _apply_quantity(self, line: OrderLine, quantity: int) -> None:
        product = self._load_product_for_update(str(line.product_id))
        self._stock.validate_available(str(line.product_id), quantity, product=product)

        old_quantity = line.quantity
        line.quantity = quantity
        line.recalculate_subtotal()
        self._line_repo.save(line)
        logger.info(
            "order_line.quantity_updated",
            line_id=str(line.id),
            order_id=str(line.order_id),
            old_quantity=old_quantity,
            new_quantity=quantity,
        )
