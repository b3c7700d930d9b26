"""Document uploads and lifecycle for BizFile and company files."""
import logging
from datetime import datetime
from pathlib import Path
from uuid import UUID

from sqlalchemy.orm import Session

from corpsec.config import get_settings
from corpsec.models.audit import AuditAction
from corpsec.models.document import Document, DocumentType, ExtractionStatus
from corpsec.services.audit import create_audit_log, log_delete
from corpsec.services.errors import ConflictError
from corpsec.services.storage import LocalStorage, company_key, pending_key

logger = logging.getLogger(__name__)
settings = get_settings()

ALLOWED_UPLOAD_TYPES = {
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
}


def validate_document_upload(content: bytes, mime_type: str | None) -> None:
    if not content:
        raise ValueError("No file provided")
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise ValueError(f"File size exceeds maximum of {settings.max_upload_size_mb}MB")
    if mime_type not in ALLOWED_UPLOAD_TYPES:
        raise ValueError("Invalid file type. Allowed types: PDF, PNG, JPG, WEBP")


def store_document(
    db: Session,
    storage: LocalStorage,
    *,
    tenant_id: UUID,
    file_name: str,
    content: bytes,
    mime_type: str,
    user_id: UUID | None = None,
    company_id: UUID | None = None,
    document_type: DocumentType = DocumentType.BIZFILE,
) -> Document:
    """
    Save an upload and its Document row.
    
    Files without a company yet land under the tenant's pending folder and
    are moved once a BizFile extraction resolves the company.
    """
    validate_document_upload(content, mime_type)
    extension = Path(file_name).suffix.lower() or ALLOWED_UPLOAD_TYPES[mime_type]
    key = company_key(tenant_id, company_id, extension) if company_id else pending_key(tenant_id, extension)
    storage.upload(key, content)
    
    document = Document(
        tenant_id=tenant_id,
        company_id=company_id,
        uploaded_by_id=user_id,
        document_type=document_type.value,
        file_name=Path(key).name,
        original_file_name=file_name,
        storage_key=key,
        file_size=len(content),
        mime_type=mime_type,
        extraction_status=ExtractionStatus.PENDING.value,
    )
    db.add(document)
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.UPLOAD,
        entity_type="Document",
        entity_id=document.id,
        entity_name=file_name,
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=company_id,
        summary=f"Uploaded {file_name}",
        metadata={"file_size": len(content), "mime_type": mime_type, "document_type": document_type.value},
    )
    logger.info(f"Stored document {document.id} ({len(content)} bytes) at {key}")
    return document


def live_documents(db: Session, tenant_id: UUID | None = None):
    query = db.query(Document).filter(Document.deleted_at.is_(None))
    if tenant_id:
        query = query.filter(Document.tenant_id == tenant_id)
    return query


def soft_delete_document(db: Session, document: Document, user_id: UUID | None = None) -> Document:
    if document.extraction_status == ExtractionStatus.PROCESSING:
        raise ConflictError("Cannot delete a document while extraction is in progress")
    document.deleted_at = datetime.utcnow()
    log_delete(
        db, "Document", document, name=document.original_file_name,
        tenant_id=document.tenant_id, user_id=user_id, company_id=document.company_id,
    )
    return document
