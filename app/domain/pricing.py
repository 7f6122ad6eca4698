# app/domain/pricing.py
"""
Pricing & numbering for new orders.

Everything here is a pure function of its inputs: nothing touches the
database, so the values can be computed (and tested) before the write.
Money is Decimal throughout; the shipping table comes from ShopConfig.
"""
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from app.domain.errors import ValidationError
from app.utils.settings import ShopConfig

ORDER_NO_PREFIX = "ORD"
PAYMENT_METHOD = "cash_on_delivery"


@dataclass(frozen=True)
class LineItem:
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class OrderDraft:
    """Schema-validated checkout input; carries no derived fields."""

    full_name: str
    email: str
    phone: str
    address: str
    shipping_method: str
    items: Sequence[LineItem]
    payment_method: str = PAYMENT_METHOD


@dataclass(frozen=True)
class PricedOrder:
    shipping_cost: Decimal
    total_amount: Decimal
    order_no: str


def shipping_cost_for(shipping_method: str, config: ShopConfig) -> Decimal:
    rate = config.shipping_rates.get(shipping_method)
    if rate is None:
        raise ValidationError(
            f"Invalid shipping method: {shipping_method}", field="shipping_method"
        )
    return Decimal(rate)


def items_total(items: Sequence[LineItem]) -> Decimal:
    if not items:
        raise ValidationError("Order must contain at least one item", field="items")

    total = Decimal("0")
    for idx, item in enumerate(items):
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(
                f"Quantity must be an integer >= 1 (item {idx})", field="items.quantity"
            )
        unit_price = Decimal(item.unit_price)
        if unit_price < 0:
            raise ValidationError(
                f"Unit price cannot be negative (item {idx})", field="items.unit_price"
            )
        total += unit_price * item.quantity
    return total


def generate_order_no(now: datetime | None = None) -> str:
    """ORD-YYYYMMDD-XXXXXXXX, date in UTC, suffix from the OS CSPRNG."""
    now = now or datetime.now(timezone.utc)
    day = now.astimezone(timezone.utc).strftime("%Y%m%d")
    suffix = secrets.token_hex(4).upper()
    return f"{ORDER_NO_PREFIX}-{day}-{suffix}"


def price_order(draft: OrderDraft, config: ShopConfig, now: datetime | None = None) -> PricedOrder:
    if draft.payment_method != PAYMENT_METHOD:
        raise ValidationError("Only cash on delivery is supported", field="payment_method")

    shipping_cost = shipping_cost_for(draft.shipping_method, config)
    total = items_total(draft.items) + shipping_cost

    return PricedOrder(
        shipping_cost=shipping_cost,
        total_amount=total,
        order_no=generate_order_no(now),
    )
