"""Generic repository interfaces (Dependency Inversion Principle).

Service-layer code depends on these abstractions, never on the Django
ORM directly.  Implementations return ``None`` for missing or malformed
ids (Null Object style); services decide which ``NotFound`` to raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IReadRepository(ABC, Generic[T]):
    """Look-up contract for entities this core references but does not own."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Return ``True`` when an entity with *id* exists."""


class IRepository(IReadRepository[T]):
    """Full persistence contract for entities mutated by this core.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""

    @abstractmethod
    def delete(self, entity: T) -> None:
        """Remove an entity (soft or hard delete, per aggregate)."""
