"""User and auth schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from corpsec.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema."""
    email: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.COMPANY_USER


class UserCreate(UserBase):
    """Create user request. tenant_id is only honoured for super admins."""
    password: str = Field(min_length=8)
    tenant_id: UUID | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class UserUpdate(BaseModel):
    """Update user request."""
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole | None = None
    password: str | None = Field(None, min_length=8)
    is_active: bool | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class UserRead(BaseModel):
    """User response."""
    id: UUID
    tenant_id: UUID | None = None
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class CompanyAssignmentCreate(BaseModel):
    company_id: UUID
    is_primary: bool = False


class CompanyAssignmentRead(BaseModel):
    id: UUID
    user_id: UUID
    company_id: UUID
    is_primary: bool
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """JWT token payload."""
    user_id: UUID | None = None
    tenant_id: UUID | None = None
    role: str | None = None
