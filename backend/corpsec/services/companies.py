"""Company CRUD, search, soft delete and officer/shareholder maintenance."""
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from corpsec.models.company import Company, CompanyOfficer, CompanyShareholder
from corpsec.models.tenant import Tenant
from corpsec.services.audit import compute_changes, log_create, log_delete, log_restore, log_update, snapshot
from corpsec.services.bizfile.processor import recalculate_percentages
from corpsec.services.errors import ConflictError

logger = logging.getLogger(__name__)

COMPANY_FIELDS = [
    "uen", "name", "former_name", "entity_type", "status", "status_date", "incorporation_date",
    "primary_ssic_code", "primary_ssic_description", "secondary_ssic_code", "secondary_ssic_description",
    "financial_year_end_day", "financial_year_end_month", "home_currency",
    "last_agm_date", "last_ar_filed_date", "accounts_due_date",
    "paid_up_capital_amount", "paid_up_capital_currency", "issued_capital_amount", "issued_capital_currency",
    "internal_notes",
]

OFFICER_FIELDS = ["role", "name", "nationality", "address", "appointment_date", "cessation_date", "is_current"]

SHAREHOLDER_FIELDS = ["share_class", "number_of_shares", "nationality", "address", "currency", "is_current"]


def live_companies(db: Session, tenant_id: UUID | None = None):
    query = db.query(Company).filter(Company.deleted_at.is_(None))
    if tenant_id:
        query = query.filter(Company.tenant_id == tenant_id)
    return query


def _check_uen_available(db: Session, tenant_id: UUID, uen: str, exclude_id: UUID | None = None) -> None:
    query = live_companies(db, tenant_id).filter(Company.uen == uen)
    if exclude_id:
        query = query.filter(Company.id != exclude_id)
    if query.first():
        raise ConflictError(f"A company with UEN {uen} already exists")


def create_company(db: Session, tenant_id: UUID, values: dict, user_id: UUID | None = None) -> Company:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
    if not tenant:
        raise LookupError("Tenant not found")
    
    count = live_companies(db, tenant_id).count()
    if count >= tenant.max_companies:
        raise ValueError(f"Company limit reached for this tenant ({tenant.max_companies})")
    
    _check_uen_available(db, tenant_id, values["uen"])
    company = Company(tenant_id=tenant_id, **values)
    db.add(company)
    db.flush()
    log_create(
        db, "Company", company, name=company.name,
        tenant_id=tenant_id, user_id=user_id, company_id=company.id,
    )
    logger.info(f"Created company {company.uen} in tenant {tenant_id}")
    return company


def update_company(db: Session, company: Company, updates: dict, user_id: UUID | None = None) -> Company:
    if "uen" in updates and updates["uen"] != company.uen:
        _check_uen_available(db, company.tenant_id, updates["uen"], exclude_id=company.id)
    
    before = snapshot(company, COMPANY_FIELDS)
    for field, value in updates.items():
        setattr(company, field, value)
    db.flush()
    log_update(
        db, "Company", company, compute_changes(before, snapshot(company, COMPANY_FIELDS)),
        name=company.name, tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
    )
    return company


def soft_delete_company(db: Session, company: Company, reason: str, user_id: UUID | None = None) -> Company:
    company.deleted_at = datetime.utcnow()
    company.deleted_reason = reason
    log_delete(
        db, "Company", company, name=company.name, reason=reason,
        tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
    )
    return company


def restore_company(db: Session, company: Company, user_id: UUID | None = None) -> Company:
    tenant = db.query(Tenant).filter(Tenant.id == company.tenant_id).first()
    if tenant is None or tenant.deleted_at is not None:
        raise ValueError(
            f'Cannot restore company "{company.name}" - parent tenant is deleted. Restore the tenant first.'
        )
    _check_uen_available(db, company.tenant_id, company.uen, exclude_id=company.id)
    company.deleted_at = None
    company.deleted_reason = None
    log_restore(
        db, "Company", company, name=company.name,
        tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
    )
    return company


def search_companies(
    db: Session,
    tenant_id: UUID | None,
    *,
    query: str | None = None,
    status: str | None = None,
    entity_type: str | None = None,
    company_ids: list[UUID] | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Company], int]:
    """Live companies matching the filters; company_ids restricts to assigned companies."""
    q = live_companies(db, tenant_id)
    if company_ids is not None:
        q = q.filter(Company.id.in_(company_ids))
    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(Company.name.ilike(pattern), Company.uen.ilike(pattern)))
    if status:
        q = q.filter(Company.status == status)
    if entity_type:
        q = q.filter(Company.entity_type == entity_type)
    
    total = q.count()
    rows = q.order_by(Company.name).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def company_stats(db: Session, tenant_id: UUID | None, company_ids: list[UUID] | None = None) -> dict:
    q = db.query(Company.status, func.count(Company.id)).filter(Company.deleted_at.is_(None))
    if tenant_id:
        q = q.filter(Company.tenant_id == tenant_id)
    if company_ids is not None:
        q = q.filter(Company.id.in_(company_ids))
    by_status = {status: count for status, count in q.group_by(Company.status).all()}
    return {"total": sum(by_status.values()), "by_status": by_status}


# ============ Officers & shareholders ============

def get_officer(db: Session, company_id: UUID, officer_id: UUID) -> CompanyOfficer:
    officer = db.query(CompanyOfficer).filter(
        CompanyOfficer.id == officer_id, CompanyOfficer.company_id == company_id
    ).first()
    if not officer:
        raise LookupError("Officer not found")
    return officer


def get_shareholder(db: Session, company_id: UUID, shareholder_id: UUID) -> CompanyShareholder:
    shareholder = db.query(CompanyShareholder).filter(
        CompanyShareholder.id == shareholder_id, CompanyShareholder.company_id == company_id
    ).first()
    if not shareholder:
        raise LookupError("Shareholder not found")
    return shareholder


def update_officer(db: Session, company: Company, officer: CompanyOfficer, updates: dict, user_id: UUID | None = None):
    before = snapshot(officer, OFFICER_FIELDS)
    for field, value in updates.items():
        setattr(officer, field, value)
    if updates.get("cessation_date"):
        officer.is_current = False
    db.flush()
    log_update(
        db, "CompanyOfficer", officer, compute_changes(before, snapshot(officer, OFFICER_FIELDS)),
        name=officer.name, tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
    )
    return officer


def remove_officer(db: Session, company: Company, officer: CompanyOfficer, user_id: UUID | None = None):
    """Cease the officer as of now; the row is kept for history."""
    before = snapshot(officer, OFFICER_FIELDS)
    officer.cessation_date = officer.cessation_date or datetime.utcnow()
    officer.is_current = False
    db.flush()
    log_update(
        db, "CompanyOfficer", officer, compute_changes(before, snapshot(officer, OFFICER_FIELDS)),
        name=officer.name, tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
        summary=f"Ceased officer {officer.name}",
    )
    return officer


def update_shareholder(
    db: Session, company: Company, shareholder: CompanyShareholder, updates: dict, user_id: UUID | None = None
):
    before = snapshot(shareholder, SHAREHOLDER_FIELDS)
    for field, value in updates.items():
        setattr(shareholder, field, value)
    db.flush()
    recalculate_percentages(db, company.id)
    log_update(
        db, "CompanyShareholder", shareholder, compute_changes(before, snapshot(shareholder, SHAREHOLDER_FIELDS)),
        name=shareholder.name, tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
    )
    return shareholder


def remove_shareholder(db: Session, company: Company, shareholder: CompanyShareholder, user_id: UUID | None = None):
    shareholder.is_current = False
    db.flush()
    recalculate_percentages(db, company.id)
    log_update(
        db, "CompanyShareholder", shareholder, {"is_current": {"old": True, "new": False}},
        name=shareholder.name, tenant_id=company.tenant_id, user_id=user_id, company_id=company.id,
        summary=f"Removed shareholder {shareholder.name}",
    )
    return shareholder
