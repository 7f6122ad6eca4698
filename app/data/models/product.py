# app/data/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    text,
)

from app.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(120), nullable=False, index=True)
    description = Column(String(2000), nullable=False)
    category = Column(String(40), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    image_url = Column(String(500), nullable=False)
    image_asset_id = Column(String(255), nullable=False)

    is_available = Column(Boolean, nullable=False, default=True, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock"),
        # soft delete flag and timestamp always move together
        CheckConstraint(
            "(is_deleted AND deleted_at IS NOT NULL) OR (NOT is_deleted AND deleted_at IS NULL)",
            name="ck_products_soft_delete",
        ),
        # name is unique among live products only
        Index(
            "uq_products_live_name",
            "name",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
        Index("ix_products_deleted_available_category", "is_deleted", "is_available", "category"),
    )

    def __repr__(self):
        return f"<ProductModel(id={self.id}, name='{self.name}', deleted={self.is_deleted})>"
