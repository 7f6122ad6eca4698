# app/services/catalog_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.errors import Conflict, ShopError, ValidationError
from app.domain.schemas import ProductCreate, ProductUpdate
from app.repos.product_repo import ProductRepo
from app.services.media_client import MediaClient
from app.utils.logging import get_logger
from app.utils.settings import ShopConfig, get_config

logger = get_logger(__name__)

LISTING_SCOPES = ("available", "live", "admin")


class CatalogService:
    """
    Use cases for the product catalog.
    Products are soft-deleted; hard deletes only happen in the cleanup job.
    """

    def __init__(self, db: Session, media: MediaClient, config: ShopConfig | None = None):
        self.repo = ProductRepo(db)
        self.media = media
        self.config = config or get_config()

    # query
    def get_product(self, product_id) -> ProductModel:
        return self.repo.get(product_id)

    def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        category: str | None = None,
        scope: str = "available",
        show_deleted: bool = False,
        show_unavailable: bool = False,
    ) -> Dict[str, Any]:
        if scope not in LISTING_SCOPES:
            raise ValidationError(f"Unknown listing scope: {scope}", field="scope")

        search = (search or "").strip() or None
        category = (category or "").strip().lower() or None

        if scope == "available":
            include_deleted, include_unavailable = False, False
        elif scope == "live":
            include_deleted, include_unavailable = False, True
        else:
            include_deleted, include_unavailable = show_deleted, show_unavailable

        products, pagination = self.repo.list_page(
            page,
            limit,
            search=search,
            category=category,
            include_deleted=include_deleted,
            include_unavailable=include_unavailable,
        )
        return {"products": products, "pagination": pagination}

    def list_by_category(self, category: str) -> List[ProductModel]:
        category = (category or "").strip().lower()
        if not category:
            raise ValidationError("Valid category is required.", field="category")
        return self.repo.list_by_category(category)

    def categories(self) -> List[str]:
        return list(self.config.categories)

    # commands
    def add_product(self, data: ProductCreate, image_path: str | None) -> ProductModel:
        if not image_path:
            raise ValidationError("Product image is required", field="image")

        if self.repo.live_name_taken(data.name):
            raise Conflict("Product with this name already exists.")

        # upload is mandatory, DependencyFailure propagates
        asset = self.media.store(image_path)

        product = ProductModel(
            name=data.name,
            description=data.description,
            category=data.category,
            price=data.price,
            stock_quantity=data.stock_quantity,
            image_url=asset.url,
            image_asset_id=asset.asset_id,
            is_available=True,
            is_deleted=False,
            deleted_at=None,
        )
        try:
            created = self.repo.create(product)
        except ShopError:
            # don't leave an orphan on the media host
            self.media.release(asset.asset_id)
            raise

        logger.info(f"Product {created.id} '{created.name}' created")
        return created

    def update_product(self, product_id, data: ProductUpdate) -> ProductModel:
        fields = data.model_dump(exclude_none=True)

        if "name" in fields:
            current = self.repo.get(product_id)
            if self.repo.live_name_taken(fields["name"], exclude_id=current.id):
                raise Conflict("Product with this name already exists.")

        product = self.repo.update_fields(product_id, fields)
        logger.info(f"Product {product.id} updated: {sorted(fields)}")
        return product

    def update_image(self, product_id, image_path: str | None) -> ProductModel:
        if not image_path:
            raise ValidationError("Image is required", field="image")

        current = self.repo.get(product_id)
        old_asset_id = current.image_asset_id

        asset = self.media.store(image_path)
        try:
            product = self.repo.update_fields(
                current.id, {"image_url": asset.url, "image_asset_id": asset.asset_id}
            )
        except ShopError:
            # product went away in between, the new upload is an orphan
            self.media.release(asset.asset_id)
            raise

        # best-effort, the new image is already live
        if old_asset_id and not self.media.release(old_asset_id):
            logger.warning(f"Old image {old_asset_id} of product {product.id} was not released")

        return product

    def toggle_availability(self, product_id) -> ProductModel:
        product = self.repo.toggle_availability(product_id)
        logger.info(f"Product {product.id} availability toggled to {product.is_available}")
        return product

    def update_stock(self, product_id, stock_quantity: int) -> ProductModel:
        if isinstance(stock_quantity, bool) or not isinstance(stock_quantity, int) or stock_quantity < 0:
            raise ValidationError("Stock quantity must be an integer >= 0", field="stock_quantity")
        return self.repo.set_stock(product_id, stock_quantity)

    def remove_product(self, product_id) -> ProductModel:
        product = self.repo.soft_delete(product_id)
        logger.info(f"Product {product.id} soft-deleted at {product.deleted_at}")
        return product

    def restore_product(self, product_id) -> ProductModel:
        product = self.repo.restore(product_id)
        logger.info(f"Product {product.id} restored")
        return product
