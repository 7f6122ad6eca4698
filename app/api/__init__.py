# app/api/__init__.py
from fastapi import APIRouter

from app.api.routers import health, orders, products

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(products.router)
api_router.include_router(orders.router)

__all__ = ["api_router", "health"]
