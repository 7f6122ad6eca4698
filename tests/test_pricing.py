import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.domain.errors import ValidationError
from app.domain.pricing import (
    LineItem,
    OrderDraft,
    generate_order_no,
    items_total,
    price_order,
    shipping_cost_for,
)

ORDER_NO_RE = re.compile(r"^ORD-\d{8}-[0-9A-F]{8}$")


def _draft(items, shipping_method="fast", **kw):
    return OrderDraft(
        full_name="Ali Khan",
        email="ali@example.com",
        phone="+923001234567",
        address="Lahore",
        shipping_method=shipping_method,
        items=items,
        **kw,
    )


def _item(quantity, unit_price):
    return LineItem(product_id=uuid.uuid4(), quantity=quantity, unit_price=Decimal(unit_price))


class TestShippingCost:
    def test_table(self, config):
        assert shipping_cost_for("standard", config) == Decimal("100")
        assert shipping_cost_for("fast", config) == Decimal("200")

    def test_unknown_method_is_validation_error(self, config):
        with pytest.raises(ValidationError) as exc:
            shipping_cost_for("overnight", config)
        assert exc.value.field == "shipping_method"
        assert "overnight" in str(exc.value)

    def test_config_table_is_read_only(self, config):
        with pytest.raises(TypeError):
            config.shipping_rates["fast"] = Decimal("0")


class TestTotals:
    def test_scenario_two_items_fast(self, config):
        priced = price_order(_draft([_item(2, "500")], "fast"), config)

        assert priced.shipping_cost == Decimal("200")
        assert priced.total_amount == Decimal("1200")

    def test_sums_every_line(self, config):
        items = [_item(1, "99.50"), _item(3, "10"), _item(2, "0")]
        priced = price_order(_draft(items, "standard"), config)

        assert priced.total_amount == Decimal("99.50") + Decimal("30") + Decimal("100")

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            items_total([])

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_bad_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError):
            items_total([_item(quantity, "10")])

    def test_negative_unit_price_rejected(self):
        with pytest.raises(ValidationError):
            items_total([_item(1, "-0.01")])

    def test_only_cash_on_delivery(self, config):
        with pytest.raises(ValidationError):
            price_order(_draft([_item(1, "10")], payment_method="card"), config)


class TestOrderNumber:
    def test_format(self):
        assert ORDER_NO_RE.match(generate_order_no())

    def test_uses_utc_date(self):
        now = datetime(2026, 3, 9, 23, 30, tzinfo=timezone.utc)
        assert generate_order_no(now).startswith("ORD-20260309-")

    def test_suffixes_are_random(self):
        numbers = {generate_order_no() for _ in range(2000)}
        # 32 random bits: a collision in 2000 draws is vanishingly unlikely
        assert len(numbers) == 2000

    def test_priced_order_gets_a_number(self, config):
        priced = price_order(_draft([_item(1, "10")]), config)
        assert ORDER_NO_RE.match(priced.order_no)
