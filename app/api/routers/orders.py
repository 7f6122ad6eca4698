# app/api/routers/orders.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.routers.errors import to_http
from app.data.database import get_db
from app.domain.errors import ShopError
from app.domain.schemas import OrderCreate, OrderOut, OrderPage, StatusUpdate
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_notifications() -> NotificationService:
    return NotificationService()


def get_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notifications),
) -> OrderService:
    return OrderService(db, notifications=notifications)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(payload: OrderCreate, svc: OrderService = Depends(get_service)):
    """
    Places a cash-on-delivery order. Shipping cost, total and order number
    are computed here; notifications are queued asynchronously.
    """
    try:
        return svc.create_order(payload)
    except ShopError as e:
        raise to_http(e)


@router.get("/", response_model=OrderPage)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.all_orders(page=page, limit=limit)
    except ShopError as e:
        raise to_http(e)


@router.get("/customer", response_model=OrderPage)
def orders_by_customer(
    full_name: str | None = Query(None),
    email: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.orders_by_customer(full_name=full_name, email=email, page=page, limit=limit)
    except ShopError as e:
        raise to_http(e)


@router.get("/status", response_model=OrderPage)
def orders_by_status(
    status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.orders_by_status(status, page=page, limit=limit)
    except ShopError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, svc: OrderService = Depends(get_service)):
    try:
        return svc.get_order(order_id)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: str, payload: StatusUpdate, svc: OrderService = Depends(get_service)):
    try:
        return svc.update_status(order_id, payload.status)
    except ShopError as e:
        raise to_http(e)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(order_id: str, svc: OrderService = Depends(get_service)):
    try:
        return svc.cancel_order(order_id)
    except ShopError as e:
        raise to_http(e)
