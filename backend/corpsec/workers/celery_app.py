"""Celery app configuration."""
from celery import Celery

from corpsec.config import get_settings

settings = get_settings()

celery_app = Celery(
    "corpsec",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["corpsec.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_default_queue="default",
    # AI extraction gets its own workers: celery -A corpsec.workers.celery_app worker -Q extraction
    task_routes={
        "corpsec.workers.tasks.extract_processing_document": {"queue": settings.celery_extraction_queue},
    },
)
