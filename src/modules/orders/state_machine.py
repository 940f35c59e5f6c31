"""Order status state machine.

Rules, checked in this order:

1. ``CLOSED`` is terminal; nothing leaves it, not even ``CLOSED -> CLOSED``.
2. Pairs listed in ``ILLEGAL_TRANSITIONS`` are rejected with their reason:
   ``PENDING`` cannot jump to ``DELIVERED`` or ``CLOSED``, ``PAID`` cannot
   jump to ``CLOSED``, and ``PAID``/``DELIVERED`` cannot fall back to an
   earlier settled status.
3. Everything else is legal, including ``PAID -> ADDING_PRODUCTS`` and
   self-transitions of non-terminal statuses.

Being *legal* is different from being *editable*: lines can only be
changed while the order is in ``EDITABLE_STATES``.
"""

from __future__ import annotations

from modules.orders.constants import (
    EDITABLE_STATES,
    ILLEGAL_TRANSITIONS,
    TERMINAL_STATES,
    OrderStatus,
)
from modules.orders.exceptions import InvalidStatusTransition


def validate_transition(current: str, target: str) -> None:
    """Raise ``InvalidStatusTransition`` unless *current* -> *target* is legal."""
    if target not in OrderStatus.values:
        raise InvalidStatusTransition(current, target, "unknown target status")

    if current in TERMINAL_STATES:
        raise InvalidStatusTransition(
            current,
            target,
            f"order is {OrderStatus(current).label.lower()} and terminal",
        )

    reason = ILLEGAL_TRANSITIONS.get(current, {}).get(target)
    if reason is not None:
        raise InvalidStatusTransition(current, target, reason)


def can_transition(current: str, target: str) -> bool:
    try:
        validate_transition(current, target)
    except InvalidStatusTransition:
        return False
    return True


def is_editable(status: str) -> bool:
    """Lines may be created, updated or deleted only in editable statuses."""
    return status in EDITABLE_STATES
