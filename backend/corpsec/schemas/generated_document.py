"""Generated document schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class GeneratedDocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = ""
    company_id: UUID | None = None
    tenant_id: UUID | None = None
    metadata: dict = {}


class GeneratedDocumentUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = None
    metadata: dict | None = None


class GeneratedDocumentRead(BaseModel):
    id: UUID
    tenant_id: UUID
    company_id: UUID | None = None
    title: str
    content: str
    status: str
    finalized_at: datetime | None = None
    finalized_by_id: UUID | None = None
    created_by_id: UUID | None = None
    metadata: dict = Field(default={}, validation_alias="meta")
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)
