"""
Document processing pipeline.

Uploads are hashed for exact-duplicate detection, queued for AI extraction
and moved through pipeline statuses. Failures back off exponentially and
land in the dead letter state once retries are exhausted.
"""
import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from uuid import UUID

from sqlalchemy.orm import Session

from corpsec.config import get_settings
from corpsec.models.audit import AuditAction, ChangeSource
from corpsec.models.document import (
    Document, ProcessingDocument, DocumentType, ExtractionStatus, PipelineStatus,
    DocumentPriority, UploadSource, DuplicateStatus,
)
from corpsec.services.ai import (
    AIImage, AIProviderError, AIRequest, ExtractionError, call_ai, get_best_available_model,
)
from corpsec.services.audit import create_audit_log
from corpsec.services.bizfile.extractor import clean_json_response
from corpsec.services.errors import ConflictError
from corpsec.services.pages import read_page_metadata
from corpsec.services.storage import LocalStorage, processing_key, sha256_bytes

logger = logging.getLogger(__name__)
settings = get_settings()

ALLOWED_PROCESSING_TYPES = {
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/tiff": ".tiff",
}

FAILED_STATUSES = {PipelineStatus.FAILED_RETRYABLE, PipelineStatus.FAILED_PERMANENT}


class DuplicateDecision(str, Enum):
    CONFIRM_DUPLICATE = "CONFIRM_DUPLICATE"
    REJECT_DUPLICATE = "REJECT_DUPLICATE"
    MARK_AS_NEW_VERSION = "MARK_AS_NEW_VERSION"


DECISION_STATUS = {
    DuplicateDecision.CONFIRM_DUPLICATE: DuplicateStatus.CONFIRMED,
    DuplicateDecision.REJECT_DUPLICATE: DuplicateStatus.REJECTED,
    DuplicateDecision.MARK_AS_NEW_VERSION: DuplicateStatus.NONE,
}

EXTRACTION_SYSTEM_PROMPT = """You extract data from business documents such as invoices, receipts,
bank statements and letters. Use YYYY-MM-DD for dates, plain numbers for amounts and ISO codes
for currencies. Use null for anything not present."""

EXTRACTION_USER_PROMPT = """Extract this document into JSON:

{
  "documentCategory": "INVOICE|RECEIPT|BANK_STATEMENT|CONTRACT|LETTER|OTHER",
  "vendorName": "string|null",
  "documentNumber": "string|null",
  "documentDate": "YYYY-MM-DD|null",
  "currency": "string|null",
  "totalAmount": null,
  "taxAmount": null,
  "lineItems": [{"description": "string", "quantity": null, "unitPrice": null, "amount": null}]
}

Respond with the JSON object only."""


@dataclass
class UploadOutcome:
    document: Document
    processing_document: ProcessingDocument
    duplicate_of: ProcessingDocument | None = None


# ============ Upload & duplicates ============

def find_exact_duplicate(
    db: Session, tenant_id: UUID, company_id: UUID | None, file_hash: str, exclude_id: UUID | None = None
) -> ProcessingDocument | None:
    """Earliest live processing document with the same content in the same company."""
    query = (
        db.query(ProcessingDocument)
        .join(Document, ProcessingDocument.document_id == Document.id)
        .filter(
            ProcessingDocument.file_hash == file_hash,
            ProcessingDocument.deleted_at.is_(None),
            Document.deleted_at.is_(None),
            Document.tenant_id == tenant_id,
            Document.company_id == company_id,
        )
    )
    if exclude_id:
        query = query.filter(ProcessingDocument.id != exclude_id)
    return query.order_by(ProcessingDocument.created_at).first()


def validate_processing_upload(content: bytes, mime_type: str) -> None:
    if not content:
        raise ValueError("No file provided")
    max_bytes = settings.max_processing_file_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise ValueError(f"File size exceeds maximum of {settings.max_processing_file_size_mb}MB")
    if mime_type not in ALLOWED_PROCESSING_TYPES:
        raise ValueError("Only PDF and image files are allowed")


def upload_processing_document(
    db: Session,
    storage: LocalStorage,
    *,
    tenant_id: UUID,
    company_id: UUID,
    user_id: UUID | None,
    file_name: str,
    content: bytes,
    mime_type: str,
    priority: DocumentPriority = DocumentPriority.NORMAL,
    upload_source: UploadSource = UploadSource.WEB,
) -> UploadOutcome:
    """Store the file, record page metadata and flag exact duplicates."""
    validate_processing_upload(content, mime_type)
    
    file_hash = sha256_bytes(content)
    extension = Path(file_name).suffix.lower() or ALLOWED_PROCESSING_TYPES[mime_type]
    key = processing_key(tenant_id, company_id, extension)
    storage.upload(key, content)
    
    document = Document(
        tenant_id=tenant_id,
        company_id=company_id,
        uploaded_by_id=user_id,
        document_type=DocumentType.UPLOADED.value,
        file_name=Path(key).name,
        original_file_name=file_name,
        storage_key=key,
        file_size=len(content),
        mime_type=mime_type,
        extraction_status=ExtractionStatus.PENDING.value,
    )
    db.add(document)
    db.flush()
    
    duplicate = find_exact_duplicate(db, tenant_id, company_id, file_hash)
    pages = read_page_metadata(content, mime_type)
    
    record = ProcessingDocument(
        document_id=document.id,
        is_container=True,
        file_hash=file_hash,
        page_count=pages.page_count if pages else None,
        pages=pages.pages_as_dicts() if pages else [],
        pipeline_status=PipelineStatus.UPLOADED.value,
        priority=priority.value,
        upload_source=upload_source.value,
        duplicate_status=(DuplicateStatus.SUSPECTED if duplicate else DuplicateStatus.NONE).value,
        duplicate_of_id=duplicate.id if duplicate else None,
    )
    db.add(record)
    db.flush()
    
    if duplicate:
        logger.warning(f"Processing document {record.id} duplicates {duplicate.id} (hash {file_hash[:12]})")
    
    create_audit_log(
        db,
        action=AuditAction.UPLOAD,
        entity_type="ProcessingDocument",
        entity_id=record.id,
        entity_name=file_name,
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=company_id,
        summary=f"Uploaded {file_name} for processing",
        metadata={
            "file_size": len(content),
            "mime_type": mime_type,
            "priority": priority.value,
            "duplicate_of": str(duplicate.id) if duplicate else None,
        },
    )
    return UploadOutcome(document=document, processing_document=record, duplicate_of=duplicate)


# ============ Pipeline status ============

def retry_delay_seconds(previous_error_count: int) -> int:
    """Exponential backoff capped at the configured maximum."""
    delay = settings.processing_retry_base_seconds * settings.processing_backoff_multiplier ** previous_error_count
    return min(delay, settings.processing_retry_max_seconds)


def transition_pipeline_status(
    record: ProcessingDocument,
    to_status: PipelineStatus,
    error: dict | None = None,
    now: datetime | None = None,
) -> PipelineStatus:
    """
    Move a document to a new pipeline status.
    
    Failures record the error and schedule a retry; once the retry budget
    is spent a retryable failure becomes DEAD_LETTER. Returns the status
    actually applied.
    """
    now = now or datetime.utcnow()
    
    if to_status in FAILED_STATUSES:
        previous = record.error_count or 0
        record.last_error = error or {}
        record.error_count = previous + 1
        if record.first_error_at is None:
            record.first_error_at = now
        
        if to_status == PipelineStatus.FAILED_PERMANENT:
            record.can_retry = False
            record.next_retry_at = None
        elif previous >= settings.processing_max_retries:
            to_status = PipelineStatus.DEAD_LETTER
        else:
            record.next_retry_at = now + timedelta(seconds=retry_delay_seconds(previous))
    
    if to_status == PipelineStatus.DEAD_LETTER:
        record.dead_letter_at = now
        record.can_retry = False
        record.next_retry_at = None
    elif to_status == PipelineStatus.EXTRACTION_DONE:
        record.next_retry_at = None
    
    logger.info(f"Processing document {record.id}: {record.pipeline_status} -> {to_status.value}")
    record.pipeline_status = to_status.value
    return to_status


def queue_for_extraction(db: Session, record: ProcessingDocument) -> ProcessingDocument:
    """Mark queued; the caller enqueues the worker task after commit."""
    if record.pipeline_status == PipelineStatus.PROCESSING:
        raise ConflictError("Extraction already in progress")
    if not record.can_retry:
        raise ValueError("Document cannot be retried")
    transition_pipeline_status(record, PipelineStatus.QUEUED)
    db.flush()
    return record


def record_duplicate_decision(
    db: Session, record: ProcessingDocument, decision: DuplicateDecision, user_id: UUID | None, tenant_id: UUID | None
) -> ProcessingDocument:
    if record.duplicate_status != DuplicateStatus.SUSPECTED:
        raise ValueError("Document is not flagged as a possible duplicate")
    
    old_status = record.duplicate_status
    record.duplicate_status = DECISION_STATUS[decision].value
    if decision == DuplicateDecision.REJECT_DUPLICATE:
        record.duplicate_of_id = None
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.UPDATE,
        entity_type="ProcessingDocument",
        entity_id=record.id,
        tenant_id=tenant_id,
        user_id=user_id,
        summary=f"Duplicate decision: {decision.value}",
        changes={"duplicate_status": {"old": old_status, "new": record.duplicate_status}},
    )
    return record


# ============ Extraction ============

def parse_document_response(content: str) -> dict:
    try:
        data = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        raise ExtractionError("Failed to parse AI extraction response. The AI returned invalid JSON.") from e
    if not isinstance(data, dict):
        raise ExtractionError("AI extraction returned no data")
    return data


def _error_payload(error: Exception) -> dict:
    return {"code": type(error).__name__, "message": str(error), "at": datetime.utcnow().isoformat()}


def _fail_retryable(db: Session, record: ProcessingDocument, error: Exception) -> None:
    transition_pipeline_status(record, PipelineStatus.FAILED_RETRYABLE, _error_payload(error))
    record.document.extraction_status = ExtractionStatus.FAILED.value
    record.document.extraction_error = str(error)
    db.commit()


async def run_extraction(db: Session, storage: LocalStorage, processing_document_id: UUID) -> ProcessingDocument:
    """
    Extract a queued document with the best available model.
    
    Commits status changes as it goes. Provider, parse and unexpected failures
    leave the document FAILED_RETRYABLE or DEAD_LETTER; a missing file is permanent.
    """
    record = db.query(ProcessingDocument).filter(ProcessingDocument.id == processing_document_id).first()
    if not record:
        raise LookupError("Processing document not found")
    document = record.document
    
    transition_pipeline_status(record, PipelineStatus.PROCESSING)
    db.commit()
    
    try:
        content = storage.download(document.storage_key)
    except FileNotFoundError as e:
        logger.error(f"Stored file missing for processing document {record.id}: {e}")
        transition_pipeline_status(record, PipelineStatus.FAILED_PERMANENT, _error_payload(e))
        db.commit()
        return record
    
    try:
        model = get_best_available_model()
        if not model:
            raise AIProviderError(
                "No AI provider configured. Set one of: OPENAI_API_KEY, ANTHROPIC_API_KEY, or GOOGLE_AI_API_KEY"
            )
        response = await call_ai(AIRequest(
            model=model,
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
            user_prompt=EXTRACTION_USER_PROMPT,
            images=[AIImage(base64=base64.b64encode(content).decode("ascii"), mime_type=document.mime_type)],
            json_mode=True,
        ))
        data = parse_document_response(response.content)
    except (AIProviderError, ExtractionError) as e:
        logger.error(f"Extraction failed for processing document {record.id}: {e}")
        _fail_retryable(db, record, e)
        return record
    except Exception as e:
        logger.exception(f"Unexpected extraction error for processing document {record.id}")
        db.rollback()
        _fail_retryable(db, record, e)
        return record
    
    record.extracted_data = data
    record.ai_model = response.model
    record.ai_usage = {
        "input_tokens": response.usage.input_tokens,
        "output_tokens": response.usage.output_tokens,
        "total_tokens": response.usage.total_tokens,
    }
    document.extraction_status = ExtractionStatus.COMPLETED.value
    document.extraction_error = None
    document.extracted_data = data
    document.extracted_at = datetime.utcnow()
    transition_pipeline_status(record, PipelineStatus.EXTRACTION_DONE)
    create_audit_log(
        db,
        action=AuditAction.EXTRACT,
        entity_type="ProcessingDocument",
        entity_id=record.id,
        entity_name=document.original_file_name,
        tenant_id=document.tenant_id,
        company_id=document.company_id,
        summary=f"Extracted {data.get('documentCategory') or 'document'} with {response.model}",
        change_source=ChangeSource.SYSTEM,
    )
    db.commit()
    return record


# ============ Lifecycle ============

def soft_delete_processing_document(
    db: Session, record: ProcessingDocument, user_id: UUID | None, tenant_id: UUID | None
) -> ProcessingDocument:
    if record.pipeline_status == PipelineStatus.PROCESSING:
        raise ConflictError("Cannot delete a document while extraction is in progress")
    now = datetime.utcnow()
    record.deleted_at = now
    record.document.deleted_at = now
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.DELETE,
        entity_type="ProcessingDocument",
        entity_id=record.id,
        entity_name=record.document.original_file_name,
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=record.document.company_id,
        summary=f"Deleted processing document {record.document.original_file_name}",
    )
    return record


def restore_processing_document(
    db: Session, record: ProcessingDocument, user_id: UUID | None, tenant_id: UUID | None
) -> ProcessingDocument:
    if record.deleted_at is None:
        raise ValueError("Document is not deleted")
    record.deleted_at = None
    record.document.deleted_at = None
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.RESTORE,
        entity_type="ProcessingDocument",
        entity_id=record.id,
        entity_name=record.document.original_file_name,
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=record.document.company_id,
        summary=f"Restored processing document {record.document.original_file_name}",
    )
    return record
