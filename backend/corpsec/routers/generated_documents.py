"""Generated documents router (resolutions, letters and other drafted paperwork)."""
from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.audit import AuditAction
from corpsec.models.document import GeneratedDocument, GeneratedDocumentStatus
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import accessible_company_ids, check_company_access, get_current_user, resolve_tenant_id
from corpsec.schemas.generated_document import (
    GeneratedDocumentCreate, GeneratedDocumentRead, GeneratedDocumentUpdate,
)
from corpsec.schemas.patch import patch_values
from corpsec.services.audit import create_audit_log, log_delete, log_update

router = APIRouter(prefix="/generated-documents", tags=["generated-documents"])


def _get_generated(db: Session, user: User, document_id: UUID) -> GeneratedDocument:
    query = db.query(GeneratedDocument).filter(
        GeneratedDocument.id == document_id,
        GeneratedDocument.deleted_at.is_(None),
    )
    if user.role != UserRole.SUPER_ADMIN:
        query = query.filter(GeneratedDocument.tenant_id == user.tenant_id)
    document = query.first()
    if not document:
        raise HTTPException(status_code=404, detail="Generated document not found")
    if document.company_id:
        check_company_access(db, user, document.company_id)
    return document


@router.get("", response_model=List[GeneratedDocumentRead])
async def list_generated_documents(
    company_id: UUID | None = None,
    status: GeneratedDocumentStatus | None = None,
    tenant_id: UUID | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(GeneratedDocument).filter(GeneratedDocument.deleted_at.is_(None))
    scope = resolve_tenant_id(current_user, tenant_id)
    if scope:
        query = query.filter(GeneratedDocument.tenant_id == scope)
    company_ids = accessible_company_ids(db, current_user)
    if company_ids is not None:
        query = query.filter(GeneratedDocument.company_id.in_(company_ids))
    if company_id:
        query = query.filter(GeneratedDocument.company_id == company_id)
    if status:
        query = query.filter(GeneratedDocument.status == status.value)
    return query.order_by(GeneratedDocument.updated_at.desc()).all()


@router.post("", response_model=GeneratedDocumentRead, status_code=201)
async def create_generated_document(
    body: GeneratedDocumentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a draft."""
    if body.company_id:
        company = check_company_access(db, current_user, body.company_id, write=True)
        tenant_id = company.tenant_id
    else:
        tenant_id = resolve_tenant_id(current_user, body.tenant_id, required=True)
    
    document = GeneratedDocument(
        tenant_id=tenant_id,
        company_id=body.company_id,
        title=body.title,
        content=body.content,
        status=GeneratedDocumentStatus.DRAFT.value,
        created_by_id=current_user.id,
        meta=body.metadata,
    )
    db.add(document)
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.DOCUMENT_GENERATED,
        entity_type="GeneratedDocument",
        entity_id=document.id,
        entity_name=document.title,
        tenant_id=tenant_id,
        user_id=current_user.id,
        company_id=document.company_id,
        summary=f"Generated document {document.title}",
    )
    db.commit()
    db.refresh(document)
    return document


@router.get("/{document_id}", response_model=GeneratedDocumentRead)
async def get_generated_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_generated(db, current_user, document_id)


@router.patch("/{document_id}", response_model=GeneratedDocumentRead)
async def update_generated_document(
    document_id: UUID,
    update: GeneratedDocumentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit a draft."""
    document = _get_generated(db, current_user, document_id)
    if document.status != GeneratedDocumentStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Only draft documents can be edited")
    
    update_data = patch_values(update, GeneratedDocument)
    changes = {}
    for field, value in update_data.items():
        attr = "meta" if field == "metadata" else field
        old = getattr(document, attr)
        if old != value:
            changes[field] = {"old": old if field != "content" else None, "new": value if field != "content" else None}
            setattr(document, attr, value)
    log_update(
        db, "GeneratedDocument", document, changes, name=document.title,
        tenant_id=document.tenant_id, user_id=current_user.id, company_id=document.company_id,
    )
    db.commit()
    db.refresh(document)
    return document


@router.post("/{document_id}/finalize", response_model=GeneratedDocumentRead)
async def finalize_generated_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lock a draft as final."""
    document = _get_generated(db, current_user, document_id)
    if document.status != GeneratedDocumentStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Only draft documents can be finalized")
    if current_user.role == UserRole.COMPANY_USER:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    
    document.status = GeneratedDocumentStatus.FINALIZED.value
    document.finalized_at = datetime.utcnow()
    document.finalized_by_id = current_user.id
    create_audit_log(
        db,
        action=AuditAction.DOCUMENT_FINALIZED,
        entity_type="GeneratedDocument",
        entity_id=document.id,
        entity_name=document.title,
        tenant_id=document.tenant_id,
        user_id=current_user.id,
        company_id=document.company_id,
        summary=f"Finalized document {document.title}",
    )
    db.commit()
    db.refresh(document)
    return document


@router.delete("/{document_id}")
async def delete_generated_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    document = _get_generated(db, current_user, document_id)
    if current_user.role == UserRole.COMPANY_USER and document.created_by_id != current_user.id:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    document.deleted_at = datetime.utcnow()
    log_delete(
        db, "GeneratedDocument", document, name=document.title,
        tenant_id=document.tenant_id, user_id=current_user.id, company_id=document.company_id,
    )
    db.commit()
    return {"message": "Generated document deleted"}
