# app/domain/order_state.py
"""
Order status rules.

    pending -> confirmed -> shipped -> delivered
    pending | confirmed | shipped -> cancelled

delivered and cancelled are terminal for cancellation. A direct status set
(admin override) may pick any status from the enum, including skipping
steps such as pending -> delivered; only the value itself is validated.
"""
from dataclasses import dataclass
from enum import Enum

from app.domain.errors import InvalidTransition, ValidationError


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


INITIAL_STATUS = OrderStatus.PENDING

CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.SHIPPED})

VALID_STATUSES = tuple(s.value for s in OrderStatus)


@dataclass(frozen=True)
class StatusChange:
    status: OrderStatus
    # set deliveredAt if (and only if) it is still empty
    stamp_delivered: bool


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    if not value:
        raise ValidationError("Status is required.", field="status")
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(
            "Invalid status. Must be one of: " + ", ".join(VALID_STATUSES),
            field="status",
        ) from None


def plan_status_change(target) -> StatusChange:
    status = parse_status(target)
    return StatusChange(status=status, stamp_delivered=status is OrderStatus.DELIVERED)


def check_cancellable(current) -> None:
    status = parse_status(current)
    if status not in CANCELLABLE_STATUSES:
        raise InvalidTransition(status.value, OrderStatus.CANCELLED.value)
