"""Admin router for tenant, user and data purge management."""
import logging
from dataclasses import asdict
from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from corpsec.database import get_db
from corpsec.models.audit import AuditAction
from corpsec.models.company import Company
from corpsec.models.contact import Contact
from corpsec.models.tenant import Tenant, TenantStatus
from corpsec.models.user import User, UserRole, UserCompanyAssignment
from corpsec.routers.auth import get_password_hash, request_info, require_role, resolve_tenant_id
from corpsec.routers.errors import service_errors
from corpsec.schemas.patch import patch_values
from corpsec.schemas.purge import PurgeRequest, PurgeResponse, RestoreRequest, RestoreResponse
from corpsec.schemas.tenant import TenantCreate, TenantDelete, TenantRead, TenantUpdate
from corpsec.schemas.user import (
    CompanyAssignmentCreate, CompanyAssignmentRead, UserCreate, UserRead, UserUpdate,
)
from corpsec.services.audit import compute_changes, create_audit_log, log_create, log_delete, log_update, snapshot
from corpsec.services.naming import slugify
from corpsec.services.purge import PurgeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

super_admin = require_role(UserRole.SUPER_ADMIN)
user_admin = require_role(UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN)

TENANT_FIELDS = [
    "name", "status", "contact_email", "contact_phone", "settings",
    "max_users", "max_companies", "suspend_reason",
]
USER_FIELDS = ["email", "first_name", "last_name", "role", "is_active"]


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name) or "tenant"
    slug, n = base, 1
    while db.query(Tenant).filter(Tenant.slug == slug).first():
        n += 1
        slug = f"{base}-{n}"
    return slug


def _get_tenant(db: Session, tenant_id: UUID) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


# ============ Tenant Management ============

@router.get("/tenants", response_model=List[TenantRead])
async def list_tenants(
    include_deleted: bool = False,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """List all tenants."""
    query = db.query(Tenant)
    if not include_deleted:
        query = query.filter(Tenant.deleted_at.is_(None))
    return query.order_by(Tenant.name).all()


@router.post("/tenants", response_model=TenantRead, status_code=201)
async def create_tenant(
    tenant: TenantCreate,
    request: Request,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Create a new tenant."""
    existing = db.query(Tenant).filter(Tenant.name == tenant.name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Tenant name already exists")
    
    db_tenant = Tenant(**tenant.model_dump(), slug=_unique_slug(db, tenant.name))
    db.add(db_tenant)
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.TENANT_CREATED,
        entity_type="Tenant",
        entity_id=db_tenant.id,
        entity_name=db_tenant.name,
        tenant_id=db_tenant.id,
        user_id=current_user.id,
        summary=f"Created tenant {db_tenant.name}",
        **request_info(request),
    )
    db.commit()
    db.refresh(db_tenant)
    logger.info(f"Created tenant {db_tenant.slug}")
    return db_tenant


@router.get("/tenants/{tenant_id}", response_model=TenantRead)
async def get_tenant(
    tenant_id: UUID,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    return _get_tenant(db, tenant_id)


@router.patch("/tenants/{tenant_id}", response_model=TenantRead)
async def update_tenant(
    tenant_id: UUID,
    update: TenantUpdate,
    request: Request,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Update tenant settings and status."""
    tenant = _get_tenant(db, tenant_id)
    update_data = patch_values(update, Tenant)
    
    if "name" in update_data and update_data["name"] != tenant.name:
        if db.query(Tenant).filter(Tenant.name == update_data["name"], Tenant.id != tenant.id).first():
            raise HTTPException(status_code=400, detail="Tenant name already exists")
    
    new_status = update_data.get("status")
    if new_status and new_status != tenant.status:
        if new_status == TenantStatus.ACTIVE:
            tenant.activated_at = datetime.utcnow()
        elif new_status == TenantStatus.SUSPENDED:
            tenant.suspended_at = datetime.utcnow()
    
    before = snapshot(tenant, TENANT_FIELDS)
    for field, value in update_data.items():
        setattr(tenant, field, value)
    
    changes = compute_changes(before, snapshot(tenant, TENANT_FIELDS))
    if changes:
        create_audit_log(
            db,
            action=AuditAction.TENANT_UPDATED,
            entity_type="Tenant",
            entity_id=tenant.id,
            entity_name=tenant.name,
            tenant_id=tenant.id,
            user_id=current_user.id,
            summary=f"Updated tenant {tenant.name}: {', '.join(changes)}",
            changes=changes,
            **request_info(request),
        )
    db.commit()
    db.refresh(tenant)
    return tenant


@router.delete("/tenants/{tenant_id}")
async def delete_tenant(
    tenant_id: UUID,
    body: TenantDelete,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Soft delete a tenant together with its users, companies and contacts."""
    tenant = _get_tenant(db, tenant_id)
    now = datetime.utcnow()
    
    for model in (User, Company, Contact):
        db.query(model).filter(model.tenant_id == tenant.id, model.deleted_at.is_(None)).update(
            {model.deleted_at: now}, synchronize_session=False
        )
    tenant.deleted_at = now
    tenant.deleted_reason = body.reason
    tenant.status = TenantStatus.DEACTIVATED.value
    log_delete(db, "Tenant", tenant, name=tenant.name, reason=body.reason, tenant_id=tenant.id, user_id=current_user.id)
    db.commit()
    logger.info(f"Soft deleted tenant {tenant.slug}")
    return {"message": f"Tenant {tenant.name} deleted"}


# ============ User Management ============

def _get_user(db: Session, current_user: User, user_id: UUID) -> User:
    query = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None))
    if current_user.role != UserRole.SUPER_ADMIN:
        query = query.filter(User.tenant_id == current_user.tenant_id)
    user = query.first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _check_role_grant(current_user: User, role: str) -> None:
    """Tenant admins are pinned to their tenant and cannot mint super admins."""
    if current_user.role != UserRole.SUPER_ADMIN and role == UserRole.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Insufficient permissions to assign this role")


@router.get("/users", response_model=List[UserRead])
async def list_users(
    tenant_id: UUID | None = None,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    """List live users in the current (or requested) tenant."""
    scope = resolve_tenant_id(current_user, tenant_id)
    query = db.query(User).filter(User.deleted_at.is_(None))
    if scope:
        query = query.filter(User.tenant_id == scope)
    return query.order_by(User.email).all()


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    user: UserCreate,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    """Create a new user."""
    _check_role_grant(current_user, user.role)
    email = user.email.strip().lower()
    
    tenant_id = None
    if user.role != UserRole.SUPER_ADMIN:
        tenant_id = resolve_tenant_id(current_user, user.tenant_id, required=True)
        tenant = db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
        if not tenant:
            raise HTTPException(status_code=400, detail="Tenant not found")
        user_count = db.query(User).filter(User.tenant_id == tenant_id, User.deleted_at.is_(None)).count()
        if user_count >= tenant.max_users:
            raise HTTPException(status_code=400, detail=f"User limit reached for this tenant ({tenant.max_users})")
    
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    
    db_user = User(
        tenant_id=tenant_id,
        email=email,
        password_hash=get_password_hash(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
    )
    db.add(db_user)
    db.flush()
    log_create(db, "User", db_user, name=email, tenant_id=tenant_id, user_id=current_user.id)
    db.commit()
    db.refresh(db_user)
    return db_user


@router.patch("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: UUID,
    update: UserUpdate,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    """Update a user."""
    user = _get_user(db, current_user, user_id)
    update_data = patch_values(update, User)
    if "role" in update_data:
        _check_role_grant(current_user, update_data["role"])
    if "email" in update_data:
        update_data["email"] = update_data["email"].strip().lower()
        if db.query(User).filter(User.email == update_data["email"], User.id != user.id).first():
            raise HTTPException(status_code=400, detail="Email already registered")
    if "password" in update_data:
        update_data["password_hash"] = get_password_hash(update_data.pop("password"))
    
    before = snapshot(user, USER_FIELDS)
    for field, value in update_data.items():
        setattr(user, field, value)
    db.flush()
    log_update(
        db, "User", user, compute_changes(before, snapshot(user, USER_FIELDS)),
        name=user.email, tenant_id=user.tenant_id, user_id=current_user.id,
    )
    db.commit()
    db.refresh(user)
    return user


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    """Soft delete a user."""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    user = _get_user(db, current_user, user_id)
    user.deleted_at = datetime.utcnow()
    user.is_active = False
    log_delete(db, "User", user, name=user.email, tenant_id=user.tenant_id, user_id=current_user.id)
    db.commit()
    return {"message": "User deleted"}


@router.post("/users/{user_id}/companies", response_model=CompanyAssignmentRead, status_code=201)
async def assign_company(
    user_id: UUID,
    body: CompanyAssignmentCreate,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    """Give a user access to a company of their tenant."""
    user = _get_user(db, current_user, user_id)
    company = db.query(Company).filter(
        Company.id == body.company_id,
        Company.tenant_id == user.tenant_id,
        Company.deleted_at.is_(None),
    ).first()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    
    assignment = db.query(UserCompanyAssignment).filter(
        UserCompanyAssignment.user_id == user.id,
        UserCompanyAssignment.company_id == company.id,
    ).first()
    if assignment:
        assignment.is_primary = body.is_primary
    else:
        assignment = UserCompanyAssignment(user_id=user.id, company_id=company.id, is_primary=body.is_primary)
        db.add(assignment)
    db.flush()
    create_audit_log(
        db,
        action=AuditAction.USER_COMPANY_ASSIGNED,
        entity_type="User",
        entity_id=user.id,
        entity_name=user.email,
        tenant_id=user.tenant_id,
        user_id=current_user.id,
        company_id=company.id,
        summary=f"Assigned {user.email} to {company.name}",
    )
    db.commit()
    db.refresh(assignment)
    return assignment


@router.delete("/users/{user_id}/companies/{company_id}")
async def unassign_company(
    user_id: UUID,
    company_id: UUID,
    current_user: User = Depends(user_admin),
    db: Session = Depends(get_db)
):
    user = _get_user(db, current_user, user_id)
    assignment = db.query(UserCompanyAssignment).filter(
        UserCompanyAssignment.user_id == user.id,
        UserCompanyAssignment.company_id == company_id,
    ).first()
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    db.delete(assignment)
    create_audit_log(
        db,
        action=AuditAction.UPDATE,
        entity_type="User",
        entity_id=user.id,
        entity_name=user.email,
        tenant_id=user.tenant_id,
        user_id=current_user.id,
        company_id=company_id,
        summary=f"Removed {user.email} from company",
    )
    db.commit()
    return {"message": "Assignment removed"}


# ============ Data Purge ============

@router.get("/purge")
async def list_purgeable(
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Soft-deleted records eligible for permanent deletion."""
    return PurgeService(db).list_deleted()


@router.post("/purge", response_model=PurgeResponse)
async def purge_records(
    body: PurgeRequest,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Permanently delete soft-deleted records and everything under them."""
    with service_errors():
        result = PurgeService(db).purge(body.entity_type, body.entity_ids, body.reason, current_user)
    return asdict(result)


@router.patch("/purge", response_model=RestoreResponse)
async def restore_records(
    body: RestoreRequest,
    current_user: User = Depends(super_admin),
    db: Session = Depends(get_db)
):
    """Restore soft-deleted records."""
    with service_errors():
        result = PurgeService(db).restore(body.entity_type, body.entity_ids, current_user)
    return asdict(result)
