"""Customer domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import NotFound


class CustomerNotFound(NotFound):
    """The referenced customer does not exist or has been soft-deleted."""

    code = "customer_not_found"

    def __init__(self, customer_id: object) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer not found with ID: {customer_id}")
