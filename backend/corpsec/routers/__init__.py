"""API routers."""
from corpsec.routers.health import router as health_router
from corpsec.routers.auth import router as auth_router
from corpsec.routers.admin import router as admin_router
from corpsec.routers.companies import router as companies_router
from corpsec.routers.contacts import router as contacts_router
from corpsec.routers.documents import router as documents_router
from corpsec.routers.processing_documents import router as processing_documents_router
from corpsec.routers.generated_documents import router as generated_documents_router
from corpsec.routers.audit_logs import router as audit_logs_router
from corpsec.routers.ai import router as ai_router

__all__ = [
    "health_router",
    "auth_router",
    "admin_router",
    "companies_router",
    "contacts_router",
    "documents_router",
    "processing_documents_router",
    "generated_documents_router",
    "audit_logs_router",
    "ai_router",
]
