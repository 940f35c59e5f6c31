"""Stock validation against the product catalog.

``StockValidator`` answers "can this quantity of this product be sold right
now?" without side effects: stock is checked, never reserved or debited.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from modules.products.exceptions import (
    InsufficientStock,
    InvalidProductStatus,
    ProductNotFound,
    ProductUnavailable,
)
from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockValidator:
    """Read-only stock and availability checks."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._products = product_repository

    def validate_available(
        self,
        product_id: str,
        requested_quantity: int,
        product: Optional[Product] = None,
    ) -> Product:
        """Ensure *product_id* is sellable in *requested_quantity*.

        A caller already holding a locked row passes it as *product* to
        avoid a second read.

        Raises:
            ProductNotFound: The product does not exist.
            ProductUnavailable: The product status is not ``ACTIVE``.
            InsufficientStock: Stock is lower than the requested quantity.
        """
        if product is None:
            product = self._products.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        if product.status != ProductStatus.ACTIVE:
            logger.warning(
                "stock.product_unavailable",
                product_id=str(product.id),
                status=product.status,
            )
            raise ProductUnavailable(product.name, product.status)

        if product.stock < requested_quantity:
            logger.warning(
                "stock.insufficient",
                product_id=str(product.id),
                available=product.stock,
                requested=requested_quantity,
            )
            raise InsufficientStock(product.name, product.stock, requested_quantity)

        return product

    def is_available(self, product_id: str) -> bool:
        """``True`` when the product exists, is ``ACTIVE`` and has stock."""
        product = self._products.get_by_id(product_id)
        return product is not None and product.is_sellable

    def available_stock(self, product_id: str) -> int:
        """Current stock of the product, ``0`` when it does not exist."""
        product = self._products.get_by_id(product_id)
        return product.stock if product is not None else 0

    def list_available(self) -> List[Product]:
        """Products that can be added to an order right now."""
        return self._products.list_available()

    def list_by_status(self, status: str) -> List[Product]:
        """Products currently in *status*.

        Raises:
            InvalidProductStatus: *status* is not a ``ProductStatus`` value.
        """
        if status not in ProductStatus.values:
            raise InvalidProductStatus(status)
        return self._products.list_by_status(status)
