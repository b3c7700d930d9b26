"""
Permanent deletion and restoration of soft-deleted records.

Each purged record runs in its own transaction. Dependent rows are deleted
children-first so foreign keys hold at every step; a failing record is
rolled back and reported while the remaining records continue.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from corpsec.models.audit import AuditLog, AuditAction
from corpsec.models.company import (
    Company, CompanyAddress, CompanyFormerName, ShareCapital, CompanyOfficer,
    CompanyShareholder, CompanyCharge,
)
from corpsec.models.contact import Contact, CompanyContact
from corpsec.models.document import Document, ProcessingDocument, GeneratedDocument
from corpsec.models.tenant import Tenant, TenantStatus
from corpsec.models.user import User, UserCompanyAssignment
from corpsec.services.audit import create_audit_log

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("tenant", "user", "company", "contact")
MIN_REASON_LENGTH = 10

ENTITY_MODELS = {
    "tenant": Tenant,
    "user": User,
    "company": Company,
    "contact": Contact,
}

ENTITY_PLURALS = {"tenant": "tenants", "user": "users", "company": "companies", "contact": "contacts"}


@dataclass
class PurgeResult:
    success: bool
    message: str
    deleted_count: int
    failed_count: int = 0
    deleted_records: list[dict] = field(default_factory=list)
    failed_records: list[dict] = field(default_factory=list)


@dataclass
class RestoreResult:
    success: bool
    message: str
    restored_count: int
    restored_records: list[dict] = field(default_factory=list)


def _display_name(entity_type: str, record) -> str:
    if entity_type == "user":
        return f"{record.first_name} {record.last_name} ({record.email})"
    if entity_type == "contact":
        return record.full_name
    return record.name


class PurgeService:
    """Super-admin purge and restore of soft-deleted tenants, users, companies and contacts."""
    
    def __init__(self, db: Session):
        self.db = db
    
    # ============ Listing ============
    
    def list_deleted(self) -> dict:
        db = self.db
        tenants = db.query(Tenant).filter(Tenant.deleted_at.isnot(None)).order_by(Tenant.deleted_at.desc()).all()
        users = db.query(User).filter(User.deleted_at.isnot(None)).order_by(User.deleted_at.desc()).all()
        companies = db.query(Company).filter(Company.deleted_at.isnot(None)).order_by(Company.deleted_at.desc()).all()
        contacts = db.query(Contact).filter(Contact.deleted_at.isnot(None)).order_by(Contact.deleted_at.desc()).all()
        
        def count(model, column, value) -> int:
            return db.query(func.count(model.id)).filter(column == value).scalar() or 0
        
        def tenant_name(tenant_id) -> str | None:
            if tenant_id is None:
                return None
            tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
            return tenant.name if tenant else None
        
        return {
            "stats": {
                "tenants": len(tenants),
                "users": len(users),
                "companies": len(companies),
                "contacts": len(contacts),
            },
            "records": {
                "tenants": [
                    {
                        "id": str(t.id),
                        "name": t.name,
                        "slug": t.slug,
                        "deleted_at": t.deleted_at,
                        "deleted_reason": t.deleted_reason,
                        "user_count": count(User, User.tenant_id, t.id),
                        "company_count": count(Company, Company.tenant_id, t.id),
                    }
                    for t in tenants
                ],
                "users": [
                    {
                        "id": str(u.id),
                        "email": u.email,
                        "first_name": u.first_name,
                        "last_name": u.last_name,
                        "deleted_at": u.deleted_at,
                        "tenant_name": tenant_name(u.tenant_id),
                    }
                    for u in users
                ],
                "companies": [
                    {
                        "id": str(c.id),
                        "name": c.name,
                        "uen": c.uen,
                        "deleted_at": c.deleted_at,
                        "deleted_reason": c.deleted_reason,
                        "tenant_name": tenant_name(c.tenant_id),
                        "document_count": count(Document, Document.company_id, c.id),
                        "officer_count": count(CompanyOfficer, CompanyOfficer.company_id, c.id),
                        "shareholder_count": count(CompanyShareholder, CompanyShareholder.company_id, c.id),
                    }
                    for c in companies
                ],
                "contacts": [
                    {
                        "id": str(c.id),
                        "full_name": c.full_name,
                        "deleted_at": c.deleted_at,
                        "tenant_name": tenant_name(c.tenant_id),
                    }
                    for c in contacts
                ],
            },
        }
    
    # ============ Validation ============
    
    @staticmethod
    def _validate(entity_type: str, entity_ids: list) -> None:
        if entity_type not in ENTITY_TYPES:
            raise ValueError("Invalid entity type. Must be tenant, user, company, or contact")
        if not entity_ids:
            raise ValueError("Entity IDs are required")
    
    def _soft_deleted(self, entity_type: str, entity_ids: list[UUID]) -> list:
        model = ENTITY_MODELS[entity_type]
        records = self.db.query(model).filter(
            model.id.in_(entity_ids),
            model.deleted_at.isnot(None),
        ).all()
        if not records:
            raise LookupError(f"No soft-deleted {ENTITY_PLURALS[entity_type]} found with the provided IDs")
        return records
    
    # ============ Cascades ============
    
    def _delete_company_children(self, company_ids: list[UUID], document_ids: list[UUID]) -> None:
        """Rows hanging off companies, deepest first."""
        db = self.db
        db.query(UserCompanyAssignment).filter(UserCompanyAssignment.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyCharge).filter(CompanyCharge.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyShareholder).filter(CompanyShareholder.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(ShareCapital).filter(ShareCapital.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyOfficer).filter(CompanyOfficer.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyAddress).filter(CompanyAddress.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyFormerName).filter(CompanyFormerName.company_id.in_(company_ids)).delete(synchronize_session=False)
        db.query(CompanyContact).filter(CompanyContact.company_id.in_(company_ids)).delete(synchronize_session=False)
        self._delete_documents(document_ids)
        db.query(GeneratedDocument).filter(GeneratedDocument.company_id.in_(company_ids)).delete(synchronize_session=False)
    
    def _delete_documents(self, document_ids: list[UUID]) -> None:
        db = self.db
        if not document_ids:
            return
        processing_ids = [
            pid for (pid,) in db.query(ProcessingDocument.id).filter(ProcessingDocument.document_id.in_(document_ids)).all()
        ]
        if processing_ids:
            db.query(ProcessingDocument).filter(ProcessingDocument.duplicate_of_id.in_(processing_ids)).update(
                {ProcessingDocument.duplicate_of_id: None}, synchronize_session=False
            )
            db.query(ProcessingDocument).filter(ProcessingDocument.id.in_(processing_ids)).delete(synchronize_session=False)
        db.query(Document).filter(Document.id.in_(document_ids)).delete(synchronize_session=False)
    
    def _purge_tenant(self, tenant: Tenant) -> None:
        db = self.db
        company_ids = [cid for (cid,) in db.query(Company.id).filter(Company.tenant_id == tenant.id).all()]
        document_ids = [did for (did,) in db.query(Document.id).filter(Document.tenant_id == tenant.id).all()]
        user_ids = [uid for (uid,) in db.query(User.id).filter(User.tenant_id == tenant.id).all()]
        
        if user_ids:
            db.query(UserCompanyAssignment).filter(UserCompanyAssignment.user_id.in_(user_ids)).delete(synchronize_session=False)
        self._delete_company_children(company_ids, document_ids)
        db.query(GeneratedDocument).filter(GeneratedDocument.tenant_id == tenant.id).delete(synchronize_session=False)
        db.query(Company).filter(Company.tenant_id == tenant.id).delete(synchronize_session=False)
        db.query(Contact).filter(Contact.tenant_id == tenant.id).delete(synchronize_session=False)
        db.query(User).filter(User.tenant_id == tenant.id).delete(synchronize_session=False)
        db.query(AuditLog).filter(AuditLog.tenant_id == tenant.id).delete(synchronize_session=False)
        db.query(Tenant).filter(Tenant.id == tenant.id).delete(synchronize_session=False)
    
    def _purge_user(self, user: User) -> None:
        db = self.db
        db.query(UserCompanyAssignment).filter(UserCompanyAssignment.user_id == user.id).delete(synchronize_session=False)
        db.query(GeneratedDocument).filter(GeneratedDocument.created_by_id == user.id).update(
            {GeneratedDocument.created_by_id: None}, synchronize_session=False
        )
        db.query(GeneratedDocument).filter(GeneratedDocument.finalized_by_id == user.id).update(
            {GeneratedDocument.finalized_by_id: None}, synchronize_session=False
        )
        db.query(Document).filter(Document.uploaded_by_id == user.id).update(
            {Document.uploaded_by_id: None}, synchronize_session=False
        )
        db.query(User).filter(User.id == user.id).delete(synchronize_session=False)
    
    def _purge_company(self, company: Company) -> None:
        db = self.db
        document_ids = [did for (did,) in db.query(Document.id).filter(Document.company_id == company.id).all()]
        self._delete_company_children([company.id], document_ids)
        db.query(Company).filter(Company.id == company.id).delete(synchronize_session=False)
    
    def _purge_contact(self, contact: Contact) -> None:
        db = self.db
        db.query(CompanyContact).filter(CompanyContact.contact_id == contact.id).delete(synchronize_session=False)
        db.query(CompanyOfficer).filter(CompanyOfficer.contact_id == contact.id).update(
            {CompanyOfficer.contact_id: None}, synchronize_session=False
        )
        db.query(CompanyShareholder).filter(CompanyShareholder.contact_id == contact.id).update(
            {CompanyShareholder.contact_id: None}, synchronize_session=False
        )
        db.query(CompanyCharge).filter(CompanyCharge.charge_holder_id == contact.id).update(
            {CompanyCharge.charge_holder_id: None}, synchronize_session=False
        )
        db.query(Contact).filter(Contact.id == contact.id).delete(synchronize_session=False)
    
    def _purge_one(self, entity_type: str, record) -> None:
        {
            "tenant": self._purge_tenant,
            "user": self._purge_user,
            "company": self._purge_company,
            "contact": self._purge_contact,
        }[entity_type](record)
    
    # ============ Purge ============
    
    def purge(self, entity_type: str, entity_ids: list[UUID], reason: str | None, actor: User) -> PurgeResult:
        """Hard-delete soft-deleted records, one transaction each."""
        self._validate(entity_type, entity_ids)
        if not reason or len(reason.strip()) < MIN_REASON_LENGTH:
            raise ValueError(f"Reason must be at least {MIN_REASON_LENGTH} characters")
        
        records = self._soft_deleted(entity_type, entity_ids)
        targets = [(record.id, _display_name(entity_type, record)) for record in records]
        actor_id, actor_tenant_id = actor.id, actor.tenant_id
        self.db.expunge_all()
        
        deleted: list[dict] = []
        failed: list[dict] = []
        for record_id, name in targets:
            model = ENTITY_MODELS[entity_type]
            try:
                record = self.db.query(model).filter(model.id == record_id).one()
                self._purge_one(entity_type, record)
                self.db.commit()
                deleted.append({"id": str(record_id), "name": name})
                logger.info(f"Purged {entity_type} {record_id} ({name})")
            except SQLAlchemyError as e:
                self.db.rollback()
                failed.append({"id": str(record_id), "name": name, "error": str(e.__cause__ or e)})
                logger.warning(f"Failed to purge {entity_type} {record_id}: {e}")
        
        message = f"Permanently deleted {len(deleted)} {entity_type}(s)"
        if failed:
            message += f", {len(failed)} failed"
        
        create_audit_log(
            self.db,
            action=AuditAction.DELETE,
            entity_type=f"Purge_{entity_type}",
            entity_id=",".join(str(i) for i, _ in targets),
            entity_name=", ".join(n for _, n in targets)[:255],
            tenant_id=actor_tenant_id,
            user_id=actor_id,
            summary=message,
            reason=reason.strip(),
            metadata={
                "deleted_records": deleted,
                "failed_records": failed,
                "deleted_count": len(deleted),
                "failed_count": len(failed),
            },
        )
        self.db.commit()
        
        return PurgeResult(
            success=len(deleted) > 0,
            message=message,
            deleted_count=len(deleted),
            failed_count=len(failed),
            deleted_records=deleted,
            failed_records=failed,
        )
    
    # ============ Restore ============
    
    def _check_parent_tenant(self, entity_type: str, record) -> None:
        if record.tenant_id is None:
            return
        tenant = self.db.query(Tenant).filter(Tenant.id == record.tenant_id).first()
        if tenant is None or tenant.deleted_at is not None:
            raise ValueError(
                f'Cannot restore {entity_type} "{_display_name(entity_type, record)}" - '
                "parent tenant is deleted. Restore the tenant first."
            )
    
    def _restore_tenant(self, tenant: Tenant) -> None:
        db = self.db
        for user in db.query(User).filter(User.tenant_id == tenant.id, User.deleted_at.isnot(None)).all():
            user.deleted_at = None
            user.is_active = False
        for company in db.query(Company).filter(Company.tenant_id == tenant.id, Company.deleted_at.isnot(None)).all():
            company.deleted_at = None
            company.deleted_reason = None
        for contact in db.query(Contact).filter(Contact.tenant_id == tenant.id, Contact.deleted_at.isnot(None)).all():
            contact.deleted_at = None
        tenant.deleted_at = None
        tenant.deleted_reason = None
        tenant.status = TenantStatus.SUSPENDED.value
        tenant.suspended_at = datetime.utcnow()
    
    def restore(self, entity_type: str, entity_ids: list[UUID], actor: User) -> RestoreResult:
        """Clear soft-delete markers; users come back inactive, tenants suspended."""
        self._validate(entity_type, entity_ids)
        records = self._soft_deleted(entity_type, entity_ids)
        
        if entity_type != "tenant":
            for record in records:
                self._check_parent_tenant(entity_type, record)
        
        restored = []
        for record in records:
            if entity_type == "tenant":
                self._restore_tenant(record)
            else:
                record.deleted_at = None
                if entity_type == "user":
                    record.is_active = False
                elif entity_type == "company":
                    record.deleted_reason = None
            restored.append({"id": str(record.id), "name": _display_name(entity_type, record)})
        
        message = f"Restored {len(restored)} {entity_type}(s)"
        create_audit_log(
            self.db,
            action=AuditAction.RESTORE,
            entity_type=f"Restore_{entity_type}",
            entity_id=",".join(r["id"] for r in restored),
            entity_name=", ".join(r["name"] for r in restored)[:255],
            tenant_id=actor.tenant_id,
            user_id=actor.id,
            summary=message,
            metadata={"restored_records": restored},
        )
        self.db.commit()
        logger.info(message)
        
        return RestoreResult(
            success=True,
            message=message,
            restored_count=len(restored),
            restored_records=restored,
        )
