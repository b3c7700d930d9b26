"""Companies router."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.company import Company, CompanyOfficer, CompanyShareholder
from corpsec.models.document import Document, DocumentType
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import (
    accessible_company_ids, check_company_access, get_current_user, resolve_tenant_id,
)
from corpsec.routers.errors import service_errors
from corpsec.schemas.audit import AuditLogList
from corpsec.schemas.company import (
    CompanyCreate, CompanyDelete, CompanyList, CompanyRead, CompanyUpdate, ComplianceRead,
    OfficerRead, OfficerUpdate, ShareholderRead, ShareholderUpdate,
)
from corpsec.schemas.document import DocumentRead
from corpsec.schemas.patch import patch_values
from corpsec.services import companies as company_service
from corpsec.services.audit import get_audit_history
from corpsec.services.compliance import compliance_status, parse_uen
from corpsec.services.documents import live_documents, store_document
from corpsec.services.storage import LocalStorage, get_storage

router = APIRouter(prefix="/companies", tags=["companies"])


def _detail(company) -> CompanyRead:
    """Company with only its current addresses, officers and shareholders."""
    detail = CompanyRead.model_validate(company)
    detail.addresses = [a for a in detail.addresses if a.is_current]
    detail.officers = [o for o in detail.officers if o.is_current]
    detail.shareholders = [s for s in detail.shareholders if s.is_current]
    return detail


@router.get("", response_model=CompanyList)
async def list_companies(
    query: str | None = None,
    status: str | None = None,
    entity_type: str | None = None,
    tenant_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Search companies visible to the current user."""
    rows, total = company_service.search_companies(
        db,
        resolve_tenant_id(current_user, tenant_id),
        query=query,
        status=status,
        entity_type=entity_type,
        company_ids=accessible_company_ids(db, current_user),
        page=page,
        limit=limit,
    )
    return CompanyList(items=rows, total=total, page=page, limit=limit)


@router.post("", response_model=CompanyRead, status_code=201)
async def create_company(
    company: CompanyCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a company by hand."""
    if current_user.role not in (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    tenant_id = resolve_tenant_id(current_user, company.tenant_id, required=True)
    
    values = company.model_dump(exclude={"tenant_id"})
    values["uen"] = values["uen"].strip().upper()
    with service_errors():
        db_company = company_service.create_company(db, tenant_id, values, user_id=current_user.id)
    db.commit()
    db.refresh(db_company)
    return _detail(db_company)


@router.get("/stats")
async def get_company_stats(
    tenant_id: UUID | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Company counts by status."""
    return company_service.company_stats(
        db, resolve_tenant_id(current_user, tenant_id), accessible_company_ids(db, current_user)
    )


@router.get("/{company_id}", response_model=CompanyRead)
async def get_company(
    company_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _detail(check_company_access(db, current_user, company_id))


@router.patch("/{company_id}", response_model=CompanyRead)
async def update_company(
    company_id: UUID,
    update: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update company fields; changes are audited."""
    company = check_company_access(db, current_user, company_id, write=True)
    updates = patch_values(update, Company)
    if updates.get("uen"):
        updates["uen"] = updates["uen"].strip().upper()
    with service_errors():
        company_service.update_company(db, company, updates, user_id=current_user.id)
    db.commit()
    db.refresh(company)
    return _detail(company)


@router.delete("/{company_id}")
async def delete_company(
    company_id: UUID,
    body: CompanyDelete,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Soft delete a company."""
    if current_user.role not in (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    company = check_company_access(db, current_user, company_id, write=True)
    company_service.soft_delete_company(db, company, body.reason, user_id=current_user.id)
    db.commit()
    return {"message": f"Company {company.name} deleted"}


@router.post("/{company_id}/restore", response_model=CompanyRead)
async def restore_company(
    company_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Restore a soft-deleted company."""
    if current_user.role not in (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    company = check_company_access(db, current_user, company_id, write=True, include_deleted=True)
    if company.deleted_at is None:
        raise HTTPException(status_code=400, detail="Company is not deleted")
    with service_errors():
        company_service.restore_company(db, company, user_id=current_user.id)
    db.commit()
    db.refresh(company)
    return _detail(company)


@router.get("/{company_id}/compliance", response_model=ComplianceRead)
async def get_compliance(
    company_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """UEN classification and annual return status."""
    company = check_company_access(db, current_user, company_id)
    uen = parse_uen(company.uen)
    status = compliance_status(company.financial_year_end_month)
    return ComplianceRead(
        uen=company.uen,
        uen_valid=uen.is_valid,
        uen_type=uen.uen_type,
        year_of_registration=uen.year_of_registration,
        status=status.status,
        fye_date=status.fye_date,
        ar_due_date=status.ar_due_date,
        days_until_due=status.days_until_due,
    )


@router.get("/{company_id}/audit", response_model=AuditLogList)
async def get_company_audit(
    company_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company = check_company_access(db, current_user, company_id)
    rows, total = get_audit_history(db, tenant_id=company.tenant_id, company_id=company.id, page=page, limit=limit)
    return AuditLogList(items=rows, total=total, page=page, limit=limit)


# ============ Officers & Shareholders ============

@router.patch("/{company_id}/officers/{officer_id}", response_model=OfficerRead)
async def update_officer(
    company_id: UUID,
    officer_id: UUID,
    update: OfficerUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company = check_company_access(db, current_user, company_id, write=True)
    with service_errors():
        officer = company_service.get_officer(db, company.id, officer_id)
        company_service.update_officer(db, company, officer, patch_values(update, CompanyOfficer), current_user.id)
    db.commit()
    db.refresh(officer)
    return officer


@router.delete("/{company_id}/officers/{officer_id}", response_model=OfficerRead)
async def remove_officer(
    company_id: UUID,
    officer_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cease an officer."""
    company = check_company_access(db, current_user, company_id, write=True)
    with service_errors():
        officer = company_service.get_officer(db, company.id, officer_id)
        company_service.remove_officer(db, company, officer, current_user.id)
    db.commit()
    db.refresh(officer)
    return officer


@router.patch("/{company_id}/shareholders/{shareholder_id}", response_model=ShareholderRead)
async def update_shareholder(
    company_id: UUID,
    shareholder_id: UUID,
    update: ShareholderUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company = check_company_access(db, current_user, company_id, write=True)
    with service_errors():
        shareholder = company_service.get_shareholder(db, company.id, shareholder_id)
        company_service.update_shareholder(
            db, company, shareholder, patch_values(update, CompanyShareholder), current_user.id
        )
    db.commit()
    db.refresh(shareholder)
    return shareholder


@router.delete("/{company_id}/shareholders/{shareholder_id}", response_model=ShareholderRead)
async def remove_shareholder(
    company_id: UUID,
    shareholder_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company = check_company_access(db, current_user, company_id, write=True)
    with service_errors():
        shareholder = company_service.get_shareholder(db, company.id, shareholder_id)
        company_service.remove_shareholder(db, company, shareholder, current_user.id)
    db.commit()
    db.refresh(shareholder)
    return shareholder


# ============ Documents ============

@router.get("/{company_id}/documents", response_model=List[DocumentRead])
async def list_company_documents(
    company_id: UUID,
    document_type: DocumentType | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    company = check_company_access(db, current_user, company_id)
    query = live_documents(db, company.tenant_id).filter(Document.company_id == company.id)
    if document_type:
        query = query.filter(Document.document_type == document_type.value)
    return query.order_by(Document.created_at.desc()).all()


@router.post("/{company_id}/documents", response_model=DocumentRead, status_code=201)
async def upload_company_document(
    company_id: UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage)
):
    """Attach a file to a company."""
    company = check_company_access(db, current_user, company_id, write=True)
    content = await file.read()
    with service_errors():
        document = store_document(
            db,
            storage,
            tenant_id=company.tenant_id,
            company_id=company.id,
            user_id=current_user.id,
            file_name=file.filename or "upload",
            content=content,
            mime_type=file.content_type,
            document_type=DocumentType.UPLOADED,
        )
    db.commit()
    db.refresh(document)
    return document
