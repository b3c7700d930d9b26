"""Database models."""
from corpsec.models.tenant import Tenant, TenantStatus
from corpsec.models.user import User, UserRole, UserCompanyAssignment
from corpsec.models.company import (
    Company, CompanyAddress, CompanyFormerName, ShareCapital,
    CompanyOfficer, CompanyShareholder, CompanyCharge,
    EntityType, CompanyStatus, OfficerRole, AddressType,
)
from corpsec.models.contact import Contact, CompanyContact, ContactType, IdentificationType
from corpsec.models.document import (
    Document, ProcessingDocument, GeneratedDocument,
    DocumentType, ExtractionStatus, PipelineStatus, DocumentPriority,
    UploadSource, DuplicateStatus, GeneratedDocumentStatus,
)
from corpsec.models.audit import AuditLog, AuditAction, ChangeSource

__all__ = [
    "Tenant", "TenantStatus",
    "User", "UserRole", "UserCompanyAssignment",
    "Company", "CompanyAddress", "CompanyFormerName", "ShareCapital",
    "CompanyOfficer", "CompanyShareholder", "CompanyCharge",
    "EntityType", "CompanyStatus", "OfficerRole", "AddressType",
    "Contact", "CompanyContact", "ContactType", "IdentificationType",
    "Document", "ProcessingDocument", "GeneratedDocument",
    "DocumentType", "ExtractionStatus", "PipelineStatus", "DocumentPriority",
    "UploadSource", "DuplicateStatus", "GeneratedDocumentStatus",
    "AuditLog", "AuditAction", "ChangeSource",
]
