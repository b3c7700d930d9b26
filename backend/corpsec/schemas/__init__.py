"""Pydantic schemas for API request/response."""
from corpsec.schemas.tenant import TenantCreate, TenantRead, TenantUpdate, TenantDelete
from corpsec.schemas.user import (
    UserCreate, UserRead, UserUpdate, Token, TokenData,
    CompanyAssignmentCreate, CompanyAssignmentRead,
)
from corpsec.schemas.company import (
    CompanyCreate, CompanyRead, CompanyUpdate, CompanyDelete, CompanyList, CompanyListItem,
    OfficerRead, OfficerUpdate, ShareholderRead, ShareholderUpdate, ComplianceRead,
)
from corpsec.schemas.contact import (
    ContactCreate, ContactRead, ContactUpdate, ContactList, ContactLinkCreate, ContactLinkRead,
)
from corpsec.schemas.document import (
    DocumentRead, DocumentUploadResponse, ExtractRequest, ExtractResponse,
    PreviewDiffRequest, PreviewDiffResponse, ApplyUpdateRequest, ApplyUpdateResponse,
)
from corpsec.schemas.processing import (
    ProcessingDocumentRead, ProcessingDocumentList, ProcessingUploadResponse,
    DuplicateDecisionRequest, JobStatus,
)
from corpsec.schemas.generated_document import (
    GeneratedDocumentCreate, GeneratedDocumentRead, GeneratedDocumentUpdate,
)
from corpsec.schemas.audit import AuditLogRead, AuditLogList, AuditStats
from corpsec.schemas.purge import PurgeRequest, PurgeResponse, RestoreRequest, RestoreResponse

__all__ = [
    "TenantCreate", "TenantRead", "TenantUpdate", "TenantDelete",
    "UserCreate", "UserRead", "UserUpdate", "Token", "TokenData",
    "CompanyAssignmentCreate", "CompanyAssignmentRead",
    "CompanyCreate", "CompanyRead", "CompanyUpdate", "CompanyDelete", "CompanyList", "CompanyListItem",
    "OfficerRead", "OfficerUpdate", "ShareholderRead", "ShareholderUpdate", "ComplianceRead",
    "ContactCreate", "ContactRead", "ContactUpdate", "ContactList", "ContactLinkCreate", "ContactLinkRead",
    "DocumentRead", "DocumentUploadResponse", "ExtractRequest", "ExtractResponse",
    "PreviewDiffRequest", "PreviewDiffResponse", "ApplyUpdateRequest", "ApplyUpdateResponse",
    "ProcessingDocumentRead", "ProcessingDocumentList", "ProcessingUploadResponse",
    "DuplicateDecisionRequest", "JobStatus",
    "GeneratedDocumentCreate", "GeneratedDocumentRead", "GeneratedDocumentUpdate",
    "AuditLogRead", "AuditLogList", "AuditStats",
    "PurgeRequest", "PurgeResponse", "RestoreRequest", "RestoreResponse",
]
