# app/services/order_service.py
import uuid
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.product import ProductModel
from app.domain.errors import NotFound, ValidationError
from app.domain.order_state import parse_status
from app.domain.pricing import LineItem, OrderDraft, generate_order_no, price_order
from app.domain.schemas import OrderCreate
from app.repos.order_repo import OrderRepo
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger
from app.utils.settings import ShopConfig, get_config

logger = get_logger(__name__)


def product_snapshot(product: ProductModel | None) -> Dict[str, Any] | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "image_url": product.image_url,
        "category": product.category,
        "is_available": product.is_available,
    }


def serialize_order(order: OrderModel, products: Dict[uuid.UUID, ProductModel]) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_no": order.order_no,
        "status": order.status,
        "full_name": order.full_name,
        "email": order.email,
        "phone": order.phone,
        "address": order.address,
        "payment_method": order.payment_method,
        "shipping_method": order.shipping_method,
        "shipping_cost": order.shipping_cost,
        "total_amount": order.total_amount,
        "items": [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "product": product_snapshot(products.get(item.product_id)),
            }
            for item in order.items
        ],
        "delivered_at": order.delivered_at,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class OrderService:
    """
    Order use cases. Pricing and numbering run as pure functions before the
    write; status changes go through the repo's atomic updates.
    """

    def __init__(
        self,
        db: Session,
        notifications: NotificationService | None = None,
        config: ShopConfig | None = None,
    ):
        self.repo = OrderRepo(db)
        self.notifications = notifications or NotificationService()
        self.config = config or get_config()

    def _details(self, order: OrderModel) -> Dict[str, Any]:
        return serialize_order(order, self.repo.resolve_products([order]))

    def _page(self, orders: List[OrderModel], pagination: Dict[str, Any]) -> Dict[str, Any]:
        products = self.repo.resolve_products(orders)
        return {
            "orders": [serialize_order(o, products) for o in orders],
            "pagination": pagination,
        }

    def _check_products(self, items: List[LineItem]) -> None:
        products = self.repo.products.get_many(i.product_id for i in items)

        # same product on several lines counts against stock once
        wanted: Dict[uuid.UUID, int] = {}
        for item in items:
            wanted[item.product_id] = wanted.get(item.product_id, 0) + item.quantity

        for product_id, quantity in wanted.items():
            product = products.get(product_id)
            if product is None or product.is_deleted:
                raise NotFound("Product", product_id)
            if not product.is_available:
                raise ValidationError(
                    f"Product '{product.name}' is not available", field="items.product_id"
                )
            if product.stock_quantity < quantity:
                raise ValidationError(
                    f"Not enough stock for '{product.name}' "
                    f"(requested {quantity}, in stock {product.stock_quantity})",
                    field="items.quantity",
                )

    # commands
    def create_order(self, payload: OrderCreate) -> Dict[str, Any]:
        """
        1. check referenced products
        2. price + number the order (server side only)
        3. store, retrying on order number collision
        4. queue notifications (fire-and-forget)
        """
        draft = OrderDraft(
            full_name=payload.full_name,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
            shipping_method=payload.shipping_method,
            items=[
                LineItem(product_id=i.product_id, quantity=i.quantity, unit_price=i.unit_price)
                for i in payload.items
            ],
        )

        self._check_products(list(draft.items))
        priced = price_order(draft, self.config)

        order = self.repo.create_order(
            draft,
            priced,
            renumber=generate_order_no,
            max_attempts=self.config.order_number_attempts,
        )
        logger.info(f"Order {order.order_no} created, total {order.total_amount}")

        details = self._details(order)
        self.notifications.notify_customer(details)
        self.notifications.notify_operations(details)
        return details

    def update_status(self, order_id, status) -> Dict[str, Any]:
        order = self.repo.update_status(order_id, status)
        return self._details(order)

    def cancel_order(self, order_id) -> Dict[str, Any]:
        order = self.repo.cancel(order_id)
        return self._details(order)

    # query
    def get_order(self, order_id) -> Dict[str, Any]:
        return self._details(self.repo.get_order(order_id))

    def orders_by_customer(
        self,
        full_name: str | None = None,
        email: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        orders, pagination = self.repo.find_by_customer(page, limit, full_name=full_name, email=email)
        return self._page(orders, pagination)

    def orders_by_status(self, status, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        orders, pagination = self.repo.find_by_status(parse_status(status), page, limit)
        return self._page(orders, pagination)

    def all_orders(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        orders, pagination = self.repo.find_all(page, limit)
        return self._page(orders, pagination)
