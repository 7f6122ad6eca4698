# app/data/models/order.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship, validates

from app.data.database import Base
from app.domain.errors import ValidationError

# derived at creation, frozen afterwards
READ_ONLY_FIELDS = ("order_no", "shipping_cost", "total_amount")


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_no = Column(String(32), nullable=False)

    status = Column(String(20), nullable=False, default="pending", index=True)

    # customer info, orders are placed without an account
    full_name = Column(String(2000), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    address = Column(String(2000), nullable=False)

    payment_method = Column(String(32), nullable=False, default="cash_on_delivery")
    shipping_method = Column(String(20), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("order_no", name="uq_orders_order_no"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')",
            name="ck_orders_status",
        ),
        CheckConstraint("payment_method = 'cash_on_delivery'", name="ck_orders_payment_method"),
        CheckConstraint("shipping_cost >= 0", name="ck_orders_shipping_cost"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount"),
        Index("ix_orders_email_created", "email", "created_at"),
        Index("ix_orders_status_created", "status", "created_at"),
    )

    @validates(*READ_ONLY_FIELDS)
    def _guard_read_only(self, key, value):
        # loads from the db don't go through validators, so a set id means
        # this row was already written
        if self.id is not None:
            raise ValidationError(f"{key} is read-only after creation", field=key)
        return value

    def __repr__(self):
        return f"<OrderModel(id={self.id}, order_no='{self.order_no}', status='{self.status}')>"
