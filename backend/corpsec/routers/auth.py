"""Authentication router and access helpers."""
import logging
from datetime import datetime, timedelta
from uuid import UUID

import bcrypt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from corpsec.config import get_settings
from corpsec.database import get_db
from corpsec.models.audit import AuditAction, ChangeSource
from corpsec.models.company import Company
from corpsec.models.tenant import Tenant, TenantStatus
from corpsec.models.user import User, UserRole, UserCompanyAssignment
from corpsec.schemas.user import Token, TokenData, UserRead
from corpsec.services.audit import create_audit_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

ALGORITHM = "HS256"

COMPANY_SCOPED_ROLES = (UserRole.COMPANY_ADMIN, UserRole.COMPANY_USER)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def request_info(request: Request) -> dict:
    """Client address and agent for audit entries."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Get current user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        tenant_id = payload.get("tenant_id")
        token_data = TokenData(
            user_id=UUID(user_id),
            tenant_id=UUID(tenant_id) if tenant_id else None,
            role=payload.get("role"),
        )
    except (JWTError, ValueError):
        raise credentials_exception
    
    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None or user.deleted_at is not None or not user.is_active:
        raise credentials_exception
    return user


def require_role(*roles: UserRole):
    """Dependency to require specific roles."""
    async def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user
    return role_checker


# ============ Tenant & company scoping ============

def resolve_tenant_id(user: User, requested: UUID | None = None, required: bool = False) -> UUID | None:
    """
    Tenant a request operates on.
    
    Everyone but a super admin is pinned to their own tenant. A super admin
    may name one, and must when the operation creates tenant-owned records.
    """
    if user.role != UserRole.SUPER_ADMIN:
        return user.tenant_id
    if requested is None and required:
        raise HTTPException(status_code=400, detail="Tenant ID is required for Super Admin operations")
    return requested


def accessible_company_ids(db: Session, user: User) -> list[UUID] | None:
    """Assigned company ids for company-scoped roles; None means the whole tenant."""
    if user.role not in COMPANY_SCOPED_ROLES:
        return None
    rows = db.query(UserCompanyAssignment.company_id).filter(UserCompanyAssignment.user_id == user.id).all()
    return [row[0] for row in rows]


def check_company_access(
    db: Session, user: User, company_id: UUID, write: bool = False, include_deleted: bool = False
) -> Company:
    """Load a company the user may see, or raise 404/403."""
    query = db.query(Company).filter(Company.id == company_id)
    if not include_deleted:
        query = query.filter(Company.deleted_at.is_(None))
    company = query.first()
    if not company or (user.role != UserRole.SUPER_ADMIN and company.tenant_id != user.tenant_id):
        raise HTTPException(status_code=404, detail="Company not found")
    
    if user.role in COMPANY_SCOPED_ROLES:
        if company.id not in accessible_company_ids(db, user):
            raise HTTPException(status_code=403, detail="Access denied to this company")
        if write and user.role == UserRole.COMPANY_USER:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
    return company


# ============ Endpoints ============

def _login_failed(db: Session, request: Request, email: str, user: User | None, reason: str) -> None:
    create_audit_log(
        db,
        action=AuditAction.LOGIN_FAILED,
        entity_type="User",
        entity_id=user.id if user else email,
        entity_name=email,
        tenant_id=user.tenant_id if user else None,
        user_id=user.id if user else None,
        summary=f"Failed login for {email}",
        change_source=ChangeSource.API,
        reason=reason,
        **request_info(request),
    )
    db.commit()
    logger.warning(f"Failed login for {email}: {reason}")


@router.post("/token", response_model=Token)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login and get access token."""
    email = form_data.username.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    
    if not user or user.deleted_at is not None or not user.is_active:
        _login_failed(db, request, email, user, "unknown or inactive user")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not verify_password(form_data.password, user.password_hash):
        _login_failed(db, request, email, user, "wrong password")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    if user.role != UserRole.SUPER_ADMIN:
        tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
        if not tenant or tenant.deleted_at is not None or tenant.status != TenantStatus.ACTIVE:
            _login_failed(db, request, email, user, "tenant not active")
            raise HTTPException(status_code=403, detail="Account access restricted")
    
    user.last_login_at = datetime.utcnow()
    create_audit_log(
        db,
        action=AuditAction.LOGIN,
        entity_type="User",
        entity_id=user.id,
        entity_name=email,
        tenant_id=user.tenant_id,
        user_id=user.id,
        summary=f"{email} logged in",
        change_source=ChangeSource.API,
        **request_info(request),
    )
    db.commit()
    
    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "tenant_id": str(user.tenant_id) if user.tenant_id else None,
            "role": user.role,
        },
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes)
    )
    return Token(access_token=access_token)


@router.get("/me", response_model=UserRead)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return current_user


@router.post("/logout")
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record the logout; tokens are stateless and simply discarded by the client."""
    create_audit_log(
        db,
        action=AuditAction.LOGOUT,
        entity_type="User",
        entity_id=current_user.id,
        entity_name=current_user.email,
        tenant_id=current_user.tenant_id,
        user_id=current_user.id,
        summary=f"{current_user.email} logged out",
        change_source=ChangeSource.API,
        **request_info(request),
    )
    db.commit()
    return {"message": "Logged out"}
