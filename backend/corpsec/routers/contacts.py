"""Contacts router."""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.contact import Contact, CompanyContact, ContactType
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import accessible_company_ids, check_company_access, get_current_user, resolve_tenant_id
from corpsec.schemas.contact import (
    ContactCreate, ContactLinkCreate, ContactLinkRead, ContactList, ContactRead, ContactUpdate,
)
from corpsec.schemas.patch import patch_values
from corpsec.services.audit import compute_changes, log_delete, log_update, snapshot
from corpsec.services.contacts import (
    ContactInput, build_full_name, find_or_create_contact, link_contact_to_company, unlink_contact_from_company,
)

router = APIRouter(prefix="/contacts", tags=["contacts"])

CONTACT_FIELDS = [
    "first_name", "last_name", "identification_type", "identification_number", "nationality",
    "corporate_name", "corporate_uen", "full_name", "email", "phone", "full_address", "is_active",
]


def _require_writer(user: User) -> None:
    if user.role == UserRole.COMPANY_USER:
        raise HTTPException(status_code=403, detail="Insufficient permissions")


def _get_contact(db: Session, user: User, contact_id: UUID) -> Contact:
    query = db.query(Contact).filter(Contact.id == contact_id, Contact.deleted_at.is_(None))
    if user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Contact.tenant_id == user.tenant_id)
    contact = query.first()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.get("", response_model=ContactList)
async def list_contacts(
    query: str | None = None,
    contact_type: ContactType | None = None,
    company_id: UUID | None = None,
    tenant_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Search contacts; company-scoped users only see contacts of their companies."""
    q = db.query(Contact).filter(Contact.deleted_at.is_(None))
    scope = resolve_tenant_id(current_user, tenant_id)
    if scope:
        q = q.filter(Contact.tenant_id == scope)
    
    company_ids = accessible_company_ids(db, current_user)
    if company_id:
        check_company_access(db, current_user, company_id)
        company_ids = [company_id]
    if company_ids is not None:
        linked = db.query(CompanyContact.contact_id).filter(CompanyContact.company_id.in_(company_ids))
        q = q.filter(Contact.id.in_(linked))
    
    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(
            Contact.full_name.ilike(pattern),
            Contact.identification_number.ilike(pattern),
            Contact.corporate_uen.ilike(pattern),
            Contact.email.ilike(pattern),
        ))
    if contact_type:
        q = q.filter(Contact.contact_type == contact_type.value)
    
    total = q.count()
    rows = q.order_by(Contact.full_name).offset((page - 1) * limit).limit(limit).all()
    return ContactList(items=rows, total=total, page=page, limit=limit)


@router.post("", response_model=ContactRead, status_code=201)
async def create_contact(
    contact: ContactCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a contact; an existing match on identification or UEN is a conflict."""
    _require_writer(current_user)
    tenant_id = resolve_tenant_id(current_user, contact.tenant_id, required=True)
    if contact.contact_type == ContactType.CORPORATE and not contact.corporate_name:
        raise HTTPException(status_code=400, detail="Corporate name is required for corporate contacts")
    if contact.contact_type == ContactType.INDIVIDUAL and not (contact.first_name or contact.last_name):
        raise HTTPException(status_code=400, detail="Name is required for individual contacts")
    
    db_contact, is_new = find_or_create_contact(
        db, tenant_id, ContactInput(**contact.model_dump(exclude={"tenant_id"})), user_id=current_user.id
    )
    if not is_new:
        raise HTTPException(status_code=409, detail="A contact with this identification already exists")
    db.commit()
    db.refresh(db_contact)
    return db_contact


@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _get_contact(db, current_user, contact_id)


@router.patch("/{contact_id}", response_model=ContactRead)
async def update_contact(
    contact_id: UUID,
    update: ContactUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _require_writer(current_user)
    contact = _get_contact(db, current_user, contact_id)
    before = snapshot(contact, CONTACT_FIELDS)
    for field, value in patch_values(update, Contact).items():
        setattr(contact, field, value)
    contact.full_name = build_full_name(
        contact.contact_type, contact.first_name, contact.last_name, contact.corporate_name
    )
    db.flush()
    log_update(
        db, "Contact", contact, compute_changes(before, snapshot(contact, CONTACT_FIELDS)),
        name=contact.full_name, tenant_id=contact.tenant_id, user_id=current_user.id,
    )
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Soft delete a contact."""
    _require_writer(current_user)
    contact = _get_contact(db, current_user, contact_id)
    contact.deleted_at = datetime.utcnow()
    log_delete(db, "Contact", contact, name=contact.full_name, tenant_id=contact.tenant_id, user_id=current_user.id)
    db.commit()
    return {"message": "Contact deleted"}


@router.post("/{contact_id}/companies", response_model=ContactLinkRead, status_code=201)
async def link_company(
    contact_id: UUID,
    body: ContactLinkCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Link a contact to a company under a relationship such as Director or Secretary."""
    contact = _get_contact(db, current_user, contact_id)
    company = check_company_access(db, current_user, body.company_id, write=True)
    if company.tenant_id != contact.tenant_id:
        raise HTTPException(status_code=400, detail="Contact and company belong to different tenants")
    link = link_contact_to_company(db, company.id, contact.id, body.relationship_type, body.is_primary)
    db.commit()
    db.refresh(link)
    return link


@router.delete("/{contact_id}/companies/{company_id}")
async def unlink_company(
    contact_id: UUID,
    company_id: UUID,
    relationship: str | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    contact = _get_contact(db, current_user, contact_id)
    company = check_company_access(db, current_user, company_id, write=True)
    removed = unlink_contact_from_company(db, company.id, contact.id, relationship)
    if not removed:
        raise HTTPException(status_code=404, detail="Link not found")
    db.commit()
    return {"message": f"Removed {removed} link(s)"}
