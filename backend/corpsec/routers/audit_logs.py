"""Audit log router."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.audit import AuditAction, ChangeSource
from corpsec.models.user import User, UserRole
from corpsec.routers.auth import check_company_access, require_role, resolve_tenant_id
from corpsec.schemas.audit import AuditLogList, AuditStats
from corpsec.services.audit import get_audit_history, get_tenant_audit_stats

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])

auditors = require_role(UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN, UserRole.COMPANY_ADMIN)


@router.get("", response_model=AuditLogList)
async def list_audit_logs(
    action: AuditAction | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    company_id: UUID | None = None,
    user_id: UUID | None = None,
    change_source: ChangeSource | None = None,
    tenant_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(auditors),
    db: Session = Depends(get_db)
):
    """Tenant-scoped audit trail; super admins see every tenant."""
    if current_user.role == UserRole.COMPANY_ADMIN:
        # Company admins only read the trail of a company they manage
        company_id = check_company_access(db, current_user, company_id).id if company_id else None
        if company_id is None:
            return AuditLogList(items=[], total=0, page=page, limit=limit)
    
    rows, total = get_audit_history(
        db,
        tenant_id=resolve_tenant_id(current_user, tenant_id),
        company_id=company_id,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action.value if action else None,
        change_source=change_source.value if change_source else None,
        page=page,
        limit=limit,
    )
    return AuditLogList(items=rows, total=total, page=page, limit=limit)


@router.get("/stats", response_model=AuditStats)
async def audit_stats(
    days: int = Query(30, ge=1, le=365),
    tenant_id: UUID | None = None,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN)),
    db: Session = Depends(get_db)
):
    return get_tenant_audit_stats(db, resolve_tenant_id(current_user, tenant_id), days)
