# app/domain/schemas.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.settings import PRODUCT_CATEGORIES

ShippingMethod = Literal["standard", "fast"]
Category = Literal[PRODUCT_CATEGORIES]

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
PHONE_PATTERN = r"^\+92\d{10,12}$"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _strip_lower(v):
    return v.strip().lower() if isinstance(v, str) else v


# ----------------------------------------------------------------------
# orders
# ----------------------------------------------------------------------
class OrderItemIn(BaseModel):
    """Line item as sent at checkout; unit_price is the price the customer saw."""

    product_id: uuid.UUID
    quantity: int = Field(..., ge=1, description="Quantity (>= 1)")
    unit_price: Decimal = Field(..., ge=0, description="Unit price snapshot (>= 0)")


class OrderCreate(BaseModel):
    """
    Checkout payload. Derived fields (order_no, shipping_cost, total_amount,
    status) are not part of it; if a client sends them they are dropped.
    """

    full_name: str = Field(..., min_length=1, max_length=2000)
    email: str = Field(..., max_length=320, pattern=EMAIL_PATTERN)
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Format +923001234567")
    address: str = Field(..., min_length=1, max_length=2000)
    shipping_method: ShippingMethod
    items: List[OrderItemIn] = Field(..., min_length=1)

    @field_validator("full_name", "address", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _strip_lower(v)


class StatusUpdate(BaseModel):
    # plain str: the state machine reports unknown values itself
    status: str


class ProductSnapshot(BaseModel):
    id: uuid.UUID
    name: str
    price: Decimal
    image_url: str
    category: str
    is_available: bool


class OrderItemOut(BaseModel):
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    product: ProductSnapshot | None = None


class OrderOut(BaseModel):
    id: uuid.UUID
    order_no: str
    status: str
    full_name: str
    email: str
    phone: str
    address: str
    payment_method: str
    shipping_method: str
    shipping_cost: Decimal
    total_amount: Decimal
    items: List[OrderItemOut]
    delivered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderPagination(BaseModel):
    current_page: int
    limit: int
    total_pages: int
    total_orders: int
    has_next_page: bool
    has_prev_page: bool


class OrderPage(BaseModel):
    orders: List[OrderOut]
    pagination: OrderPagination


# ----------------------------------------------------------------------
# catalog
# ----------------------------------------------------------------------
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = Field(..., min_length=1, max_length=2000)
    category: Category
    price: Decimal = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)

    # names are stored trimmed and lower-cased
    @field_validator("name", "category", mode="before")
    @classmethod
    def normalize_lower(cls, v):
        return _strip_lower(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return _strip(v)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = Field(None, min_length=1, max_length=2000)
    category: Category | None = None
    price: Decimal | None = Field(None, ge=0)
    stock_quantity: int | None = Field(None, ge=0)

    @field_validator("name", "category", mode="before")
    @classmethod
    def normalize_lower(cls, v):
        return _strip_lower(v)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return _strip(v)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


class StockUpdate(BaseModel):
    stock_quantity: int = Field(..., ge=0)


class ProductOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    category: str
    price: Decimal
    stock_quantity: int
    image_url: str
    image_asset_id: str
    is_available: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductPagination(BaseModel):
    current_page: int
    limit: int
    total_pages: int
    total_products: int
    has_next_page: bool
    has_prev_page: bool


class ProductPage(BaseModel):
    products: List[ProductOut]
    pagination: ProductPagination


class AvailabilityOut(BaseModel):
    name: str
    is_available: bool
