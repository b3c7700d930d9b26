"""Celery tasks for queued document extraction."""
import asyncio
import logging
from datetime import datetime
from uuid import UUID

from corpsec.config import get_settings
from corpsec.database import SessionLocal
from corpsec.models.document import PipelineStatus
from corpsec.services.processing import run_extraction
from corpsec.services.storage import get_storage
from corpsec.workers.celery_app import celery_app

logger = logging.getLogger(__name__)
settings = get_settings()


def retry_countdown(next_retry_at: datetime | None, now: datetime | None = None) -> int:
    """Seconds until the scheduled retry, never negative."""
    if next_retry_at is None:
        return 0
    now = now or datetime.utcnow()
    return max(0, int((next_retry_at - now).total_seconds()))


@celery_app.task(bind=True, max_retries=settings.processing_max_retries)
def extract_processing_document(self, processing_document_id: str):
    """
    Run AI extraction for one processing document.
    
    Retryable failures are rescheduled for the document's next_retry_at;
    dead-lettered and permanently failed documents are left for review.
    """
    db = SessionLocal()
    
    try:
        try:
            record = asyncio.run(run_extraction(db, get_storage(), UUID(processing_document_id)))
        except LookupError:
            logger.error(f"Processing document {processing_document_id} not found")
            return {"status": "error", "message": "Processing document not found"}
        
        status = record.pipeline_status
        if status == PipelineStatus.FAILED_RETRYABLE:
            countdown = retry_countdown(record.next_retry_at)
            logger.info(f"Retrying processing document {processing_document_id} in {countdown}s")
            raise self.retry(countdown=countdown)
        
        logger.info(f"Processing document {processing_document_id} finished as {status}")
        return {
            "status": "success" if status == PipelineStatus.EXTRACTION_DONE else "failed",
            "processing_document_id": processing_document_id,
            "pipeline_status": status,
        }
    
    finally:
        db.close()
