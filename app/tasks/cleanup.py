# app/tasks/cleanup.py
import uuid
from datetime import datetime, timezone
from typing import Dict

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.repos.product_repo import ProductRepo
from app.services.lock_service import LockService
from app.services.media_client import MediaClient
from app.utils.logging import get_logger
from app.utils.settings import ShopConfig, get_config

logger = get_logger(__name__)

CLEANUP_LOCK = "cleanup-deleted-products"
CLEANUP_LOCK_TTL = 60 * 60


def _release_image(media: MediaClient, asset_id: str, product_id) -> None:
    try:
        released = media.release(asset_id)
    except Exception as e:
        logger.warning(f"Release of image {asset_id} (product {product_id}) raised: {e}")
        return
    if not released:
        logger.warning(f"Image {asset_id} of product {product_id} was not released")


def purge_deleted_products(
    db: Session,
    media: MediaClient,
    config: ShopConfig,
    now: datetime | None = None,
) -> Dict[str, int]:
    """
    Hard-deletes products soft-deleted longer than the retention window.

    Per product: release the image (best-effort), then delete the row.
    A failing product is logged and skipped; whatever is left over is
    simply picked up again by the next run.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - config.retention_window
    repo = ProductRepo(db)

    candidates = repo.purge_candidates(cutoff)
    if not candidates:
        logger.info("No deleted products to clean up")
        return {"found": 0, "deleted": 0, "failed": 0}

    logger.info(f"Found {len(candidates)} products to permanently delete")

    # detach plain values first, a rollback below would expire the models
    targets = [(p.id, p.image_asset_id) for p in candidates]

    deleted = failed = 0
    for product_id, asset_id in targets:
        if asset_id:
            _release_image(media, asset_id, product_id)

        try:
            if repo.hard_delete(product_id):
                deleted += 1
                logger.info(f"Permanently deleted product {product_id}")
        except SQLAlchemyError as e:
            db.rollback()
            failed += 1
            logger.error(f"Cleanup of product {product_id} failed: {e}")

    logger.info(f"Cleanup finished: {deleted} deleted, {failed} failed")
    return {"found": len(targets), "deleted": deleted, "failed": failed}


@celery_app.task(name="app.tasks.cleanup.cleanup_deleted_products_task")
def cleanup_deleted_products_task():
    logger.info("Cleanup deleted products task started")

    lock_service = LockService()
    token = uuid.uuid4().hex
    if not lock_service.acquire(CLEANUP_LOCK, token, ttl=CLEANUP_LOCK_TTL):
        logger.info("Cleanup already running elsewhere, skipping")
        return {"skipped": True}

    db = SessionLocal()
    try:
        return purge_deleted_products(db, MediaClient(), get_config())
    finally:
        db.close()
        try:
            lock_service.release(CLEANUP_LOCK, token)
        except RedisError as e:
            # the lock expires on its own after CLEANUP_LOCK_TTL
            logger.warning(f"Failed to release lock {CLEANUP_LOCK}: {e}")
