"""Typed domain error hierarchy shared by every bounded context.

Services raise these; the API boundary (``modules.core.exception_handler``)
turns them into structured responses using ``status_code`` and ``code``.
Anything that is *not* a ``DomainError`` is treated as an unexpected fault.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for business errors recoverable at the API boundary."""

    status_code: int = 400
    code: str = "domain_error"


class NotFound(DomainError):
    """A referenced entity does not exist."""

    status_code = 404
    code = "not_found"


class Conflict(DomainError):
    """The operation collides with existing state (e.g. a duplicate)."""

    status_code = 409
    code = "conflict"


class IllegalState(DomainError):
    """The aggregate's current status forbids the operation."""

    code = "illegal_state"


class BusinessRuleViolation(DomainError):
    """A business rule (stock, product availability, ...) rejects the input."""

    code = "business_rule_violation"


class InvalidArgument(DomainError):
    """Malformed or out-of-range input that passed schema validation."""

    code = "invalid_argument"
