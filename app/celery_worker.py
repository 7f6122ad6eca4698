# app/celery_worker.py
from celery import Celery
from celery.schedules import crontab

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CLEANUP_HOUR_UTC

celery_app = Celery(
    "shop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks must be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "app.tasks.cleanup",
    "app.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "cleanup-deleted-products-daily": {
        "task": "app.tasks.cleanup.cleanup_deleted_products_task",
        "schedule": crontab(hour=CLEANUP_HOUR_UTC, minute=0),
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_serializer = "json"
celery_app.conf.accept_content = ["json"]
