"""BizFile documents router: upload, AI extraction, diff preview and selective update."""
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.document import Document, ExtractionStatus
from corpsec.models.tenant import Tenant
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import accessible_company_ids, check_company_access, get_current_user, resolve_tenant_id
from corpsec.routers.errors import service_errors
from corpsec.schemas.document import (
    AIMetadata, ApplyUpdateRequest, ApplyUpdateResponse, DocumentRead, DocumentUploadResponse,
    ExtractRequest, ExtractResponse, PreviewDiffRequest, PreviewDiffResponse,
)
from corpsec.services.ai import calculate_cost, format_cost, get_model_config
from corpsec.services.bizfile.diff import generate_bizfile_diff
from corpsec.services.bizfile.extractor import BizFileExtractionResult, extract_bizfile_with_vision
from corpsec.services.bizfile.normalizer import normalize_extracted_data
from corpsec.services.bizfile.processor import process_bizfile_extraction, process_bizfile_extraction_selective
from corpsec.services.bizfile.types import ExtractedBizFileData, OfficerAction, SelectiveResult
from corpsec.services.documents import ALLOWED_UPLOAD_TYPES, live_documents, soft_delete_document, store_document
from corpsec.services.storage import LocalStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _get_document(db: Session, user: User, document_id: UUID) -> Document:
    """Live document in the user's reach, else 404/403."""
    document = live_documents(db).filter(Document.id == document_id).first()
    if not document or (user.role != UserRole.SUPER_ADMIN and document.tenant_id != user.tenant_id):
        raise HTTPException(status_code=404, detail="Document not found")
    
    company_ids = accessible_company_ids(db, user)
    if company_ids is not None and document.uploaded_by_id != user.id and document.company_id not in company_ids:
        raise HTTPException(status_code=403, detail="Access denied to this document")
    return document


def _ai_metadata(result: BizFileExtractionResult) -> AIMetadata:
    config = get_model_config(result.model_used)
    cost = calculate_cost(result.model_used, result.usage.input_tokens, result.usage.output_tokens)
    return AIMetadata(
        model_used=result.model_used,
        model_name=config.name,
        provider_used=result.provider_used,
        usage=asdict(result.usage),
        estimated_cost=cost,
        formatted_cost=format_cost(cost),
    )


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _return_to_pending(storage: LocalStorage, moved_key: str, original_key: str) -> None:
    """Put a file moved by a rolled-back extraction back where the document row points."""
    if moved_key == original_key or not storage.exists(moved_key):
        return
    try:
        storage.move(moved_key, original_key)
    except (OSError, ValueError) as e:
        logger.error(f"Could not move {moved_key} back to {original_key}: {e}")


def _update_message(result: SelectiveResult) -> str:
    officers = result.officer_changes
    holders = result.shareholder_changes
    if not (result.updated_fields or any(officers.values()) or any(holders.values())):
        return "No changes detected; company is up to date"
    return (
        f"Company updated: {len(result.updated_fields)} field(s) changed; "
        f"officers {officers['added']} added, {officers['updated']} updated, {officers['ceased']} ceased; "
        f"shareholders {holders['added']} added, {holders['updated']} updated, {holders['removed']} removed"
    )


@router.post("/upload", response_model=DocumentUploadResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    tenant_id: UUID | None = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage)
):
    """Upload a BizFile for extraction."""
    target_tenant = resolve_tenant_id(current_user, tenant_id, required=True)
    if not db.query(Tenant).filter(Tenant.id == target_tenant, Tenant.deleted_at.is_(None)).first():
        raise HTTPException(status_code=404, detail="Tenant not found")
    
    content = await file.read()
    with service_errors():
        document = store_document(
            db,
            storage,
            tenant_id=target_tenant,
            user_id=current_user.id,
            file_name=file.filename or "bizfile",
            content=content,
            mime_type=file.content_type,
        )
    db.commit()
    return DocumentUploadResponse(document_id=document.id, file_name=document.file_name, file_size=document.file_size)


@router.get("/{document_id}", response_model=DocumentRead)
async def get_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get document by ID."""
    return _get_document(db, current_user, document_id)


@router.delete("/{document_id}")
async def delete_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Soft delete a document."""
    document = _get_document(db, current_user, document_id)
    if current_user.role == UserRole.COMPANY_USER and document.uploaded_by_id != current_user.id:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    with service_errors():
        soft_delete_document(db, document, user_id=current_user.id)
    db.commit()
    return {"message": "Document deleted"}


@router.post("/{document_id}/extract", response_model=ExtractResponse)
async def extract_document(
    document_id: UUID,
    body: ExtractRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage)
):
    """
    Extract a BizFile with AI and create or update its company.
    
    The document is marked PROCESSING for the duration; any failure leaves
    it FAILED with the error message.
    """
    body = body or ExtractRequest()
    document = _get_document(db, current_user, document_id)
    if document.uploaded_by_id != current_user.id and current_user.role not in (
        UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN
    ):
        raise HTTPException(status_code=403, detail="Only the uploader or an admin can extract this document")
    if document.extraction_status == ExtractionStatus.PROCESSING:
        raise HTTPException(status_code=409, detail="Extraction already in progress")
    if document.mime_type not in ALLOWED_UPLOAD_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported file type for extraction")
    
    document.extraction_status = ExtractionStatus.PROCESSING.value
    document.extraction_error = None
    db.commit()
    original_key = document.storage_key
    
    try:
        content = storage.download(document.storage_key)
        result = await extract_bizfile_with_vision(
            content, document.mime_type, body.model_id, body.additional_context
        )
        processed = process_bizfile_extraction(
            db, document.id, result.data, current_user.id, document.tenant_id, storage
        )
        db.commit()
    except (ValueError, LookupError, FileNotFoundError, SQLAlchemyError) as e:
        moved_key = document.storage_key
        db.rollback()
        logger.error(f"BizFile extraction failed for document {document_id}: {e}")
        _return_to_pending(storage, moved_key, original_key)
        document.extraction_status = ExtractionStatus.FAILED.value
        document.extraction_error = str(e)
        db.commit()
        if isinstance(e, SQLAlchemyError):
            raise HTTPException(status_code=400, detail="Extraction failed: could not save the extracted data")
        raise HTTPException(status_code=400, detail=f"Extraction failed: {e}")
    
    return ExtractResponse(
        company_id=processed.company_id,
        created=processed.created,
        extracted_data=normalize_extracted_data(result.data).to_json(),
        ai_metadata=_ai_metadata(result),
    )


@router.post("/{document_id}/preview-diff", response_model=PreviewDiffResponse)
async def preview_diff(
    document_id: UUID,
    body: PreviewDiffRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage)
):
    """Extract and compare against an existing company without writing anything."""
    document = _get_document(db, current_user, document_id)
    company = check_company_access(db, current_user, body.company_id)
    if company.tenant_id != document.tenant_id:
        raise HTTPException(status_code=400, detail="Document and company belong to different tenants")
    
    try:
        content = storage.download(document.storage_key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Stored file not found")
    
    with service_errors():
        result = await extract_bizfile_with_vision(
            content, document.mime_type, body.model_id, body.additional_context
        )
        data = normalize_extracted_data(result.data)
        diff = generate_bizfile_diff(db, company.id, data, company.tenant_id)
    
    return PreviewDiffResponse(
        extracted_data=data.to_json(),
        diff=diff.to_dict(),
        company_updated_at=company.updated_at,
        ai_metadata=_ai_metadata(result),
    )


@router.post("/{document_id}/apply-update", response_model=ApplyUpdateResponse)
async def apply_update(
    document_id: UUID,
    body: ApplyUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Apply a reviewed extraction to an existing company, field by field."""
    document = _get_document(db, current_user, document_id)
    company = check_company_access(db, current_user, body.company_id, write=True)
    if company.tenant_id != document.tenant_id:
        raise HTTPException(status_code=400, detail="Document and company belong to different tenants")
    
    try:
        data = ExtractedBizFileData.model_validate(body.extracted_data)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid extracted data: {e.error_count()} invalid field(s)")
    
    extracted_uen = (data.entity_details.uen or "").strip().upper()
    if extracted_uen != company.uen.upper():
        raise HTTPException(status_code=400, detail=f"UEN mismatch: expected {company.uen}, got {extracted_uen}")
    
    warning = None
    if body.expected_updated_at and company.updated_at and company.updated_at > _as_naive_utc(body.expected_updated_at):
        warning = "Company was modified by another user after the preview was generated"
        logger.warning(f"Concurrent update on company {company.id} while applying BizFile {document.id}")
    
    actions = [
        OfficerAction(officer_id=a.officer_id, action=a.action, cessation_date=a.cessation_date)
        for a in body.officer_actions
    ]
    with service_errors():
        result = process_bizfile_extraction_selective(
            db, document.id, data, current_user.id, company.tenant_id, company.id, actions
        )
    db.commit()
    
    return ApplyUpdateResponse(
        company_id=result.company_id,
        message=_update_message(result),
        updated_fields=result.updated_fields,
        officer_changes=result.officer_changes,
        shareholder_changes=result.shareholder_changes,
        concurrent_update_warning=warning,
    )
