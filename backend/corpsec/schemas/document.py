"""BizFile document schemas."""
from typing import Literal
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class DocumentRead(BaseModel):
    """Document response."""
    id: UUID
    tenant_id: UUID
    company_id: UUID | None = None
    uploaded_by_id: UUID | None = None
    document_type: str
    file_name: str
    original_file_name: str
    file_size: int
    mime_type: str
    extraction_status: str
    extraction_error: str | None = None
    extracted_data: dict | None = None
    extracted_at: datetime | None = None
    created_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class DocumentUploadResponse(BaseModel):
    document_id: UUID
    file_name: str
    file_size: int


class ExtractRequest(BaseModel):
    model_id: str | None = None
    additional_context: str | None = None


class AIMetadata(BaseModel):
    model_used: str
    model_name: str
    provider_used: str
    usage: dict
    estimated_cost: float
    formatted_cost: str


class ExtractResponse(BaseModel):
    company_id: UUID
    created: bool
    extracted_data: dict
    ai_metadata: AIMetadata


class PreviewDiffRequest(BaseModel):
    company_id: UUID
    model_id: str | None = None
    additional_context: str | None = None


class PreviewDiffResponse(BaseModel):
    extracted_data: dict
    diff: dict
    company_updated_at: datetime | None = None
    ai_metadata: AIMetadata


class OfficerActionRequest(BaseModel):
    officer_id: UUID
    action: Literal["cease", "follow_up"]
    cessation_date: str | None = None


class ApplyUpdateRequest(BaseModel):
    company_id: UUID
    extracted_data: dict
    officer_actions: list[OfficerActionRequest] = []
    expected_updated_at: datetime | None = None


class ApplyUpdateResponse(BaseModel):
    company_id: UUID
    message: str
    updated_fields: list[str]
    officer_changes: dict
    shareholder_changes: dict
    concurrent_update_warning: str | None = None
