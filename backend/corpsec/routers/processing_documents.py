"""Processing documents router: queued AI extraction with retries and duplicate review."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.document import (
    Document, DocumentPriority, DuplicateStatus, PipelineStatus, ProcessingDocument, UploadSource,
)
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import accessible_company_ids, check_company_access, get_current_user, resolve_tenant_id
from corpsec.routers.errors import service_errors
from corpsec.schemas.processing import (
    DuplicateDecisionRequest, JobStatus, ProcessingDocumentList, ProcessingDocumentRead, ProcessingUploadResponse,
)
from corpsec.services import processing as pipeline
from corpsec.services.storage import LocalStorage, get_storage
from corpsec.workers.tasks import extract_processing_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/processing-documents", tags=["processing-documents"])


def _get_record(db: Session, user: User, record_id: UUID, include_deleted: bool = False) -> ProcessingDocument:
    query = (
        db.query(ProcessingDocument)
        .join(Document, ProcessingDocument.document_id == Document.id)
        .filter(ProcessingDocument.id == record_id)
    )
    if not include_deleted:
        query = query.filter(ProcessingDocument.deleted_at.is_(None))
    if user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Document.tenant_id == user.tenant_id)
    record = query.first()
    if not record:
        raise HTTPException(status_code=404, detail="Processing document not found")
    
    company_ids = accessible_company_ids(db, user)
    if company_ids is not None and record.document.company_id not in company_ids:
        raise HTTPException(status_code=403, detail="Access denied to this document")
    return record


def _enqueue(db: Session, record: ProcessingDocument) -> None:
    """Mark queued, commit, then hand the job to the worker."""
    with service_errors():
        pipeline.queue_for_extraction(db, record)
    db.commit()
    extract_processing_document.delay(str(record.id))
    logger.info(f"Queued processing document {record.id} for extraction")


@router.get("", response_model=ProcessingDocumentList)
async def list_processing_documents(
    pipeline_status: PipelineStatus | None = None,
    duplicate_status: DuplicateStatus | None = None,
    company_id: UUID | None = None,
    tenant_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List processing documents, newest first."""
    query = (
        db.query(ProcessingDocument)
        .join(Document, ProcessingDocument.document_id == Document.id)
        .filter(ProcessingDocument.deleted_at.is_(None))
    )
    scope = resolve_tenant_id(current_user, tenant_id)
    if scope:
        query = query.filter(Document.tenant_id == scope)
    
    company_ids = accessible_company_ids(db, current_user)
    if company_ids is not None:
        query = query.filter(Document.company_id.in_(company_ids))
    if company_id:
        query = query.filter(Document.company_id == company_id)
    if pipeline_status:
        query = query.filter(ProcessingDocument.pipeline_status == pipeline_status.value)
    if duplicate_status:
        query = query.filter(ProcessingDocument.duplicate_status == duplicate_status.value)
    
    total = query.count()
    rows = query.order_by(ProcessingDocument.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return ProcessingDocumentList(items=rows, total=total, page=page, limit=limit)


@router.post("", response_model=ProcessingUploadResponse, status_code=202)
async def upload_processing_document(
    file: UploadFile = File(...),
    company_id: UUID = Form(...),
    priority: DocumentPriority = Form(DocumentPriority.NORMAL),
    upload_source: UploadSource = Form(UploadSource.WEB),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage)
):
    """Upload a file and queue it for extraction."""
    company = check_company_access(db, current_user, company_id, write=True)
    content = await file.read()
    
    with service_errors():
        outcome = pipeline.upload_processing_document(
            db,
            storage,
            tenant_id=company.tenant_id,
            company_id=company.id,
            user_id=current_user.id,
            file_name=file.filename or "upload",
            content=content,
            mime_type=file.content_type,
            priority=priority,
            upload_source=upload_source,
        )
    record = outcome.processing_document
    _enqueue(db, record)
    db.refresh(record)
    
    warning = None
    if outcome.duplicate_of:
        warning = f"An exact duplicate of this file already exists (processing document {outcome.duplicate_of.id})"
    return ProcessingUploadResponse(processing_document=record, duplicate_warning=warning)


@router.get("/{record_id}", response_model=ProcessingDocumentRead)
async def get_processing_document(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_record(db, current_user, record_id)


@router.post("/{record_id}/extract", response_model=JobStatus, status_code=202)
async def retry_extraction(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Queue (or re-queue) extraction."""
    record = _get_record(db, current_user, record_id)
    check_company_access(db, current_user, record.document.company_id, write=True)
    _enqueue(db, record)
    return JobStatus(
        processing_document_id=record.id,
        pipeline_status=record.pipeline_status,
        message="Extraction queued",
    )


@router.post("/{record_id}/duplicate-decision", response_model=ProcessingDocumentRead)
async def decide_duplicate(
    record_id: UUID,
    body: DuplicateDecisionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Resolve a suspected duplicate."""
    record = _get_record(db, current_user, record_id)
    check_company_access(db, current_user, record.document.company_id, write=True)
    with service_errors():
        pipeline.record_duplicate_decision(
            db, record, body.decision, current_user.id, record.document.tenant_id
        )
    db.commit()
    db.refresh(record)
    return record


@router.delete("/{record_id}")
async def delete_processing_document(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record = _get_record(db, current_user, record_id)
    check_company_access(db, current_user, record.document.company_id, write=True)
    with service_errors():
        pipeline.soft_delete_processing_document(db, record, current_user.id, record.document.tenant_id)
    db.commit()
    return {"message": "Processing document deleted"}


@router.post("/{record_id}/restore", response_model=ProcessingDocumentRead)
async def restore_processing_document(
    record_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    record = _get_record(db, current_user, record_id, include_deleted=True)
    check_company_access(db, current_user, record.document.company_id, write=True)
    with service_errors():
        pipeline.restore_processing_document(db, record, current_user.id, record.document.tenant_id)
    db.commit()
    db.refresh(record)
    return record
