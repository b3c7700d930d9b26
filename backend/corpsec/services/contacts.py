"""Contact lookup, creation and company linking."""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from corpsec.models.audit import ChangeSource
from corpsec.models.contact import Contact, CompanyContact, ContactType
from corpsec.services.audit import log_create

logger = logging.getLogger(__name__)


@dataclass
class ContactInput:
    """Fields used to match or create a contact."""
    contact_type: ContactType = ContactType.INDIVIDUAL
    first_name: str | None = None
    last_name: str | None = None
    identification_type: str | None = None
    identification_number: str | None = None
    nationality: str | None = None
    corporate_name: str | None = None
    corporate_uen: str | None = None
    full_address: str | None = None
    email: str | None = None
    phone: str | None = None


def build_full_name(
    contact_type: str,
    first_name: str | None = None,
    last_name: str | None = None,
    corporate_name: str | None = None,
) -> str:
    if contact_type == ContactType.CORPORATE:
        return corporate_name or "Unknown Corporate"
    name = " ".join(part for part in (first_name, last_name) if part)
    return name or "Unknown"


def split_name(full_name: str) -> tuple[str, str]:
    """First word as first name, remainder as last name."""
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _live_contacts(db: Session, tenant_id: UUID):
    return db.query(Contact).filter(Contact.tenant_id == tenant_id, Contact.deleted_at.is_(None))


def find_or_create_contact(
    db: Session,
    tenant_id: UUID,
    data: ContactInput,
    user_id: UUID | None = None,
    change_source: ChangeSource = ChangeSource.MANUAL,
) -> tuple[Contact, bool]:
    """
    Match by identification, then by corporate UEN, else create.
    
    Returns (contact, is_new).
    """
    if data.identification_type and data.identification_number:
        existing = _live_contacts(db, tenant_id).filter(
            Contact.identification_type == data.identification_type,
            Contact.identification_number == data.identification_number,
        ).first()
        if existing:
            return existing, False
    
    if data.corporate_uen:
        existing = _live_contacts(db, tenant_id).filter(
            Contact.corporate_uen == data.corporate_uen,
        ).first()
        if existing:
            return existing, False
    
    contact = Contact(
        tenant_id=tenant_id,
        contact_type=data.contact_type,
        first_name=data.first_name,
        last_name=data.last_name,
        identification_type=data.identification_type,
        identification_number=data.identification_number,
        nationality=data.nationality,
        corporate_name=data.corporate_name,
        corporate_uen=data.corporate_uen,
        full_name=build_full_name(data.contact_type, data.first_name, data.last_name, data.corporate_name),
        full_address=data.full_address,
        email=data.email,
        phone=data.phone,
    )
    db.add(contact)
    db.flush()
    log_create(
        db, "Contact", contact, name=contact.full_name,
        tenant_id=tenant_id, user_id=user_id, change_source=change_source,
    )
    logger.info(f"Created contact {contact.full_name} ({contact.id})")
    return contact, True


def link_contact_to_company(
    db: Session,
    company_id: UUID,
    contact_id: UUID,
    relationship_type: str,
    is_primary: bool = False,
) -> CompanyContact:
    """Create or update the (company, contact, relationship) link."""
    link = db.query(CompanyContact).filter(
        CompanyContact.company_id == company_id,
        CompanyContact.contact_id == contact_id,
        CompanyContact.relationship_type == relationship_type,
    ).first()
    if link:
        link.is_primary = is_primary
    else:
        link = CompanyContact(
            company_id=company_id,
            contact_id=contact_id,
            relationship_type=relationship_type,
            is_primary=is_primary,
        )
        db.add(link)
    db.flush()
    return link


def unlink_contact_from_company(
    db: Session, company_id: UUID, contact_id: UUID, relationship_type: str | None = None
) -> int:
    query = db.query(CompanyContact).filter(
        CompanyContact.company_id == company_id,
        CompanyContact.contact_id == contact_id,
    )
    if relationship_type:
        query = query.filter(CompanyContact.relationship_type == relationship_type)
    return query.delete(synchronize_session=False)
