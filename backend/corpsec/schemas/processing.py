"""Processing document schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from corpsec.services.processing import DuplicateDecision


class ProcessingDocumentRead(BaseModel):
    """Processing document with its pipeline state."""
    id: UUID
    document_id: UUID
    is_container: bool
    file_hash: str | None = None
    page_count: int | None = None
    pages: list = []
    pipeline_status: str
    priority: str
    upload_source: str
    last_error: dict | None = None
    error_count: int
    first_error_at: datetime | None = None
    next_retry_at: datetime | None = None
    can_retry: bool
    dead_letter_at: datetime | None = None
    duplicate_status: str
    duplicate_of_id: UUID | None = None
    extracted_data: dict | None = None
    ai_model: str | None = None
    ai_usage: dict | None = None
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)


class ProcessingDocumentList(BaseModel):
    items: list[ProcessingDocumentRead]
    total: int
    page: int
    limit: int


class ProcessingUploadResponse(BaseModel):
    processing_document: ProcessingDocumentRead
    duplicate_warning: str | None = None


class DuplicateDecisionRequest(BaseModel):
    decision: DuplicateDecision


class JobStatus(BaseModel):
    """Queued extraction job."""
    processing_document_id: UUID
    pipeline_status: str
    message: str
