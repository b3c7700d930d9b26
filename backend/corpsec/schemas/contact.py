"""Contact schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from corpsec.models.contact import ContactType, IdentificationType


class ContactBase(BaseModel):
    """Base contact schema."""
    contact_type: ContactType = ContactType.INDIVIDUAL
    first_name: str | None = None
    last_name: str | None = None
    identification_type: IdentificationType | None = None
    identification_number: str | None = None
    nationality: str | None = None
    corporate_name: str | None = None
    corporate_uen: str | None = None
    email: str | None = None
    phone: str | None = None
    full_address: str | None = None


class ContactCreate(ContactBase):
    """Create contact request."""
    tenant_id: UUID | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class ContactUpdate(BaseModel):
    """Update contact request."""
    first_name: str | None = None
    last_name: str | None = None
    identification_type: IdentificationType | None = None
    identification_number: str | None = None
    nationality: str | None = None
    corporate_name: str | None = None
    corporate_uen: str | None = None
    email: str | None = None
    phone: str | None = None
    full_address: str | None = None
    is_active: bool | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class ContactRead(ContactBase):
    """Contact response."""
    id: UUID
    tenant_id: UUID
    contact_type: str
    identification_type: str | None = None
    full_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)


class ContactList(BaseModel):
    items: list[ContactRead]
    total: int
    page: int
    limit: int


class ContactLinkCreate(BaseModel):
    company_id: UUID
    relationship_type: str = Field(min_length=1, max_length=100)
    is_primary: bool = False


class ContactLinkRead(BaseModel):
    id: UUID
    company_id: UUID
    contact_id: UUID
    relationship_type: str
    is_primary: bool
    
    model_config = ConfigDict(from_attributes=True)
