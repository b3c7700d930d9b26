"""Tenant schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from corpsec.models.tenant import TenantStatus


class TenantBase(BaseModel):
    """Base tenant schema."""
    name: str = Field(min_length=1, max_length=255)
    contact_email: str | None = None
    contact_phone: str | None = None
    settings: dict = {}
    max_users: int = Field(50, ge=1)
    max_companies: int = Field(100, ge=1)


class TenantCreate(TenantBase):
    """Create tenant request."""
    pass


class TenantUpdate(BaseModel):
    """Update tenant request."""
    name: str | None = None
    status: TenantStatus | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    settings: dict | None = None
    max_users: int | None = Field(None, ge=1)
    max_companies: int | None = Field(None, ge=1)
    suspend_reason: str | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class TenantDelete(BaseModel):
    reason: str = Field(min_length=10)


class TenantRead(TenantBase):
    """Tenant response."""
    id: UUID
    slug: str
    status: str
    activated_at: datetime | None = None
    suspended_at: datetime | None = None
    suspend_reason: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)
