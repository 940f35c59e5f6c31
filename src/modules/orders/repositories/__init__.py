"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderLineDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderLineRepository,
    IOrderRepository,
)

__all__ = [
    "IOrderLineRepository",
    "IOrderRepository",
    "OrderDjangoRepository",
    "OrderLineDjangoRepository",
]
