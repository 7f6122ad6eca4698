# app/repos/order_repo.py
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.product import ProductModel
from app.domain.errors import Conflict, NotFound, NumberGenerationExhausted, ValidationError
from app.domain.order_state import (
    CANCELLABLE_STATUSES,
    INITIAL_STATUS,
    OrderStatus,
    check_cancellable,
    parse_status,
    plan_status_change,
)
from app.domain.pricing import OrderDraft, PricedOrder, generate_order_no
from app.repos.product_repo import ProductRepo, _escape_like, parse_id
from app.utils.logging import get_logger
from app.utils.pagination import paginate
from app.utils.settings import ORDER_NUMBER_ATTEMPTS

logger = get_logger(__name__)

ORDER_NO_CONSTRAINT = "uq_orders_order_no"


def is_order_no_collision(error: IntegrityError) -> bool:
    # postgres names the constraint, sqlite names the column
    msg = str(error.orig)
    return ORDER_NO_CONSTRAINT in msg or "orders.order_no" in msg or "(order_no)" in msg


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepo(db)

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------
    def _build(self, draft: OrderDraft, priced: PricedOrder, order_no: str) -> OrderModel:
        return OrderModel(
            order_no=order_no,
            status=INITIAL_STATUS.value,
            full_name=draft.full_name,
            email=draft.email,
            phone=draft.phone,
            address=draft.address,
            payment_method=draft.payment_method,
            shipping_method=draft.shipping_method,
            shipping_cost=priced.shipping_cost,
            total_amount=priced.total_amount,
            items=[
                OrderItemModel(
                    position=pos,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for pos, item in enumerate(draft.items)
            ],
        )

    def create_order(
        self,
        draft: OrderDraft,
        priced: PricedOrder,
        renumber: Callable[[], str] = generate_order_no,
        max_attempts: int = ORDER_NUMBER_ATTEMPTS,
    ) -> OrderModel:
        """
        Inserts the order, relying on the unique constraint on order_no.
        Only an order_no collision is retried (with a fresh number);
        any other integrity error fails straight away.
        """
        attempt = 0
        order_no = priced.order_no

        while attempt < max_attempts:
            attempt += 1
            order = self._build(draft, priced, order_no)
            self.db.add(order)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if not is_order_no_collision(e):
                    logger.error(f"Order insert failed: {e.orig}")
                    raise Conflict("Failed to create order.") from e

                logger.warning(
                    f"Order number {order_no} already taken "
                    f"(attempt {attempt}/{max_attempts})"
                )
                if attempt < max_attempts:
                    order_no = renumber()
                continue

            self.db.refresh(order)
            logger.info(f"Order {order.order_no} stored after {attempt} attempt(s)")
            return order

        raise NumberGenerationExhausted(max_attempts)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_order(self, order_id) -> OrderModel:
        oid = parse_id(order_id, "Order")
        order = self.db.get(OrderModel, oid, populate_existing=True)
        if not order:
            raise NotFound("Order", order_id)
        return order

    def resolve_products(self, orders: List[OrderModel]) -> Dict[uuid.UUID, ProductModel]:
        """Read-side join: order items only hold product ids."""
        ids = {item.product_id for order in orders for item in order.items}
        return self.products.get_many(ids)

    def _page(self, query, page: int, limit: int) -> Tuple[List[OrderModel], Dict[str, Any]]:
        query = query.order_by(OrderModel.created_at.desc(), OrderModel.id)
        return paginate(query, page, limit, total_key="total_orders")

    def find_by_customer(
        self,
        page: int,
        limit: int,
        full_name: str | None = None,
        email: str | None = None,
    ) -> Tuple[List[OrderModel], Dict[str, Any]]:
        full_name = (full_name or "").strip()
        email = (email or "").strip().lower()
        if not full_name and not email:
            raise ValidationError(
                "Either 'email' or 'full_name' query parameter is required.",
                field="customer",
            )

        query = self.db.query(OrderModel)
        if email:
            query = query.filter(OrderModel.email == email)
        if full_name:
            query = query.filter(
                OrderModel.full_name.ilike(f"%{_escape_like(full_name)}%", escape="\\")
            )
        return self._page(query, page, limit)

    def find_by_status(self, status, page: int, limit: int) -> Tuple[List[OrderModel], Dict[str, Any]]:
        status = parse_status(status)
        query = self.db.query(OrderModel).filter(OrderModel.status == status.value)
        return self._page(query, page, limit)

    def find_all(self, page: int, limit: int) -> Tuple[List[OrderModel], Dict[str, Any]]:
        return self._page(self.db.query(OrderModel), page, limit)

    # ------------------------------------------------------------------
    # status changes, single UPDATE each so the row update is atomic
    # ------------------------------------------------------------------
    def update_status(self, order_id, target, now: datetime | None = None) -> OrderModel:
        change = plan_status_change(target)
        oid = parse_id(order_id, "Order")
        now = now or datetime.now(timezone.utc)

        values: Dict[str, Any] = {"status": change.status.value, "updated_at": now}
        if change.stamp_delivered:
            # first delivery wins, later ones keep the original timestamp
            values["delivered_at"] = func.coalesce(OrderModel.delivered_at, now)

        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == oid)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound("Order", order_id)

        self.db.commit()
        logger.info(f"Order {oid} status set to {change.status.value}")
        return self.get_order(oid)

    def cancel(self, order_id, now: datetime | None = None) -> OrderModel:
        oid = parse_id(order_id, "Order")
        now = now or datetime.now(timezone.utc)

        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == oid,
                OrderModel.status.in_([s.value for s in CANCELLABLE_STATUSES]),
            )
            .values(status=OrderStatus.CANCELLED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            # nothing matched: either missing or in a non-cancellable state
            current = self.get_order(oid)
            check_cancellable(current.status)
            # status moved back into a cancellable state between the two statements
            raise Conflict(f"Order {oid} changed concurrently, retry the cancellation.")

        self.db.commit()
        logger.info(f"Order {oid} cancelled")
        return self.get_order(oid)
