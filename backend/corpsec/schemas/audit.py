"""Audit log schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AuditLogRead(BaseModel):
    id: UUID
    tenant_id: UUID | None = None
    user_id: UUID | None = None
    company_id: UUID | None = None
    action: str
    entity_type: str
    entity_id: str
    entity_name: str | None = None
    summary: str | None = None
    change_source: str
    changes: dict | None = None
    reason: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="meta")
    ip_address: str | None = None
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class AuditLogList(BaseModel):
    items: list[AuditLogRead]
    total: int
    page: int
    limit: int


class AuditStats(BaseModel):
    days: int
    total: int
    by_action: dict[str, int]
    by_entity_type: dict[str, int]
    by_change_source: dict[str, int]
