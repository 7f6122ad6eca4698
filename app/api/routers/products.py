# app/api/routers/products.py
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.routers.errors import schema_error_to_http, to_http
from app.data.database import get_db
from app.domain.errors import ShopError
from app.domain.schemas import (
    AvailabilityOut,
    ProductCreate,
    ProductOut,
    ProductPage,
    ProductUpdate,
    StockUpdate,
)
from app.services.catalog_service import CatalogService
from app.services.media_client import MediaClient

router = APIRouter(prefix="/products", tags=["products"])


def get_media_client() -> MediaClient:
    return MediaClient()


def get_service(
    db: Session = Depends(get_db),
    media: MediaClient = Depends(get_media_client),
) -> CatalogService:
    return CatalogService(db, media)


def _spool(upload: UploadFile | None) -> str | None:
    """Copies the upload to a temp file."""
    if upload is None or not upload.filename:
        return None
    suffix = os.path.splitext(upload.filename)[1]
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        shutil.copyfileobj(upload.file, tmp)
        return tmp.name


@contextmanager
def _spooled(upload: UploadFile | None):
    """Temp copy of the upload that never outlives the request."""
    path = _spool(upload)
    try:
        yield path
    finally:
        # store() removes it once uploaded, anything failing earlier leaves it behind
        if path and os.path.exists(path):
            os.remove(path)


# public
@router.get("/", response_model=ProductPage)
def available_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    category: str | None = None,
    svc: CatalogService = Depends(get_service),
):
    try:
        return svc.list_products(page, limit, search=search, category=category, scope="available")
    except ShopError as e:
        raise to_http(e)


@router.get("/all", response_model=ProductPage)
def all_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    category: str | None = None,
    svc: CatalogService = Depends(get_service),
):
    try:
        return svc.list_products(page, limit, search=search, category=category, scope="live")
    except ShopError as e:
        raise to_http(e)


@router.get("/categories", response_model=List[str])
def categories(svc: CatalogService = Depends(get_service)):
    return svc.categories()


@router.get("/category/{category}", response_model=List[ProductOut])
def products_by_category(category: str, svc: CatalogService = Depends(get_service)):
    try:
        return svc.list_by_category(category)
    except ShopError as e:
        raise to_http(e)


# admin
@router.get("/admin/all", response_model=ProductPage)
def admin_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    category: str | None = None,
    show_deleted: bool = False,
    show_unavailable: bool = False,
    svc: CatalogService = Depends(get_service),
):
    try:
        return svc.list_products(
            page,
            limit,
            search=search,
            category=category,
            scope="admin",
            show_deleted=show_deleted,
            show_unavailable=show_unavailable,
        )
    except ShopError as e:
        raise to_http(e)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, svc: CatalogService = Depends(get_service)):
    try:
        return svc.get_product(product_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/", response_model=ProductOut, status_code=201)
def add_product(
    name: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    price: str = Form(...),
    stock_quantity: int = Form(0),
    image: UploadFile | None = File(None),
    svc: CatalogService = Depends(get_service),
):
    # form fields arrive as strings, the schema does the coercion
    try:
        data = ProductCreate(
            name=name,
            description=description,
            category=category,
            price=price,
            stock_quantity=stock_quantity,
        )
    except PydanticValidationError as e:
        raise schema_error_to_http(e)

    try:
        with _spooled(image) as image_path:
            return svc.add_product(data, image_path)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductUpdate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.update_product(product_id, payload)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{product_id}/image", response_model=ProductOut)
def update_product_image(
    product_id: str,
    image: UploadFile | None = File(None),
    svc: CatalogService = Depends(get_service),
):
    try:
        with _spooled(image) as image_path:
            return svc.update_image(product_id, image_path)
    except ShopError as e:
        raise to_http(e)


@router.patch("/{product_id}/toggle-availability", response_model=AvailabilityOut)
def toggle_availability(product_id: str, svc: CatalogService = Depends(get_service)):
    try:
        product = svc.toggle_availability(product_id)
    except ShopError as e:
        raise to_http(e)
    return {"name": product.name, "is_available": product.is_available}


@router.patch("/{product_id}/stock", response_model=ProductOut)
def update_stock(product_id: str, payload: StockUpdate, svc: CatalogService = Depends(get_service)):
    try:
        return svc.update_stock(product_id, payload.stock_quantity)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{product_id}")
def remove_product(product_id: str, svc: CatalogService = Depends(get_service)):
    try:
        svc.remove_product(product_id)
    except ShopError as e:
        raise to_http(e)
    return {"detail": "Product was deleted successfully"}


@router.patch("/{product_id}/restore", response_model=ProductOut)
def restore_product(product_id: str, svc: CatalogService = Depends(get_service)):
    try:
        return svc.restore_product(product_id)
    except ShopError as e:
        raise to_http(e)
