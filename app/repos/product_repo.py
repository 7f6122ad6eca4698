# app/repos/product_repo.py
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Tuple

from sqlalchemy import delete, not_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.errors import Conflict, NotFound
from app.utils.logging import get_logger
from app.utils.pagination import paginate

logger = get_logger(__name__)


def parse_id(value, entity: str) -> uuid.UUID:
    """Malformed ids can't match anything, so they surface as NotFound."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFound(entity, value) from None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get(self, product_id, include_deleted: bool = False) -> ProductModel:
        pid = parse_id(product_id, "Product")
        product = self.db.get(ProductModel, pid, populate_existing=True)
        if not product or (product.is_deleted and not include_deleted):
            raise NotFound("Product", product_id)
        return product

    def get_many(self, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, ProductModel]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all()
        return {p.id: p for p in rows}

    def live_name_taken(self, name: str, exclude_id: uuid.UUID | None = None) -> bool:
        stmt = select(ProductModel.id).where(
            ProductModel.name == name,
            not_(ProductModel.is_deleted),
        )
        if exclude_id is not None:
            stmt = stmt.where(ProductModel.id != exclude_id)
        return self.db.execute(stmt.limit(1)).first() is not None

    def list_page(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        category: str | None = None,
        include_deleted: bool = False,
        include_unavailable: bool = True,
    ) -> Tuple[List[ProductModel], Dict[str, Any]]:
        query = self.db.query(ProductModel)

        if not include_deleted:
            query = query.filter(not_(ProductModel.is_deleted))
        if not include_unavailable:
            query = query.filter(ProductModel.is_available)

        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.filter(
                or_(
                    ProductModel.name.ilike(pattern, escape="\\"),
                    ProductModel.description.ilike(pattern, escape="\\"),
                )
            )
        if category:
            query = query.filter(ProductModel.category == category.lower())

        query = query.order_by(ProductModel.created_at.desc(), ProductModel.id)
        return paginate(query, page, limit, total_key="total_products")

    def list_by_category(self, category: str) -> List[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.category == category, not_(ProductModel.is_deleted))
            .order_by(ProductModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def purge_candidates(self, cutoff: datetime) -> List[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_deleted, ProductModel.deleted_at < cutoff)
            .order_by(ProductModel.deleted_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def create(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Product insert rejected: {e.orig}")
            raise Conflict("Product with this name already exists.") from e
        self.db.refresh(product)
        return product

    def update_fields(self, product_id, fields: Dict[str, Any]) -> ProductModel:
        product = self.get(product_id)
        for key, value in fields.items():
            setattr(product, key, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise Conflict("Product with this name already exists.") from e
        self.db.refresh(product)
        return product

    def _live_update(self, product_id, values) -> ProductModel:
        pid = parse_id(product_id, "Product")
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == pid, not_(ProductModel.is_deleted))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound("Product", product_id)
        self.db.commit()
        # the row may have just been soft-deleted
        return self.get(pid, include_deleted=True)

    def toggle_availability(self, product_id) -> ProductModel:
        # flipped in the statement itself, no read-modify-write
        return self._live_update(product_id, {"is_available": not_(ProductModel.is_available)})

    def set_stock(self, product_id, quantity: int) -> ProductModel:
        return self._live_update(product_id, {"stock_quantity": quantity})

    def soft_delete(self, product_id, now: datetime | None = None) -> ProductModel:
        now = now or datetime.now(timezone.utc)
        return self._live_update(product_id, {"is_deleted": True, "deleted_at": now})

    def restore(self, product_id) -> ProductModel:
        pid = parse_id(product_id, "Product")
        try:
            result = self.db.execute(
                update(ProductModel)
                .where(ProductModel.id == pid, ProductModel.is_deleted)
                .values(is_deleted=False, deleted_at=None)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            # a live product took the name while this one was deleted
            self.db.rollback()
            raise Conflict("A live product with this name already exists.") from e
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound("Deleted product", product_id)
        self.db.commit()
        return self.get(pid)

    def hard_delete(self, product_id: uuid.UUID) -> bool:
        # only ever removes soft-deleted rows
        result = self.db.execute(
            delete(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.is_deleted)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0
