import pytest

from app.domain.errors import InvalidTransition, ValidationError
from app.domain.order_state import (
    OrderStatus,
    check_cancellable,
    parse_status,
    plan_status_change,
)


def test_parse_known_statuses():
    for value in ("pending", "confirmed", "shipped", "delivered", "cancelled"):
        assert parse_status(value).value == value


@pytest.mark.parametrize("value", ["", None, "refunded", "PENDING"])
def test_parse_rejects_unknown(value):
    with pytest.raises(ValidationError):
        parse_status(value)


@pytest.mark.parametrize("status", ["pending", "confirmed", "shipped"])
def test_cancellable_statuses(status):
    check_cancellable(status)


@pytest.mark.parametrize("status", ["delivered", "cancelled"])
def test_terminal_statuses_cannot_be_cancelled(status):
    with pytest.raises(InvalidTransition) as exc:
        check_cancellable(status)
    assert exc.value.current == status
    assert status in str(exc.value)


def test_delivered_stamps_timestamp():
    change = plan_status_change("delivered")
    assert change.status is OrderStatus.DELIVERED
    assert change.stamp_delivered


@pytest.mark.parametrize("status", ["pending", "confirmed", "shipped", "cancelled"])
def test_other_statuses_do_not_stamp(status):
    assert not plan_status_change(status).stamp_delivered
