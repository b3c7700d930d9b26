"""Company, officer and shareholder schemas."""
from uuid import UUID
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from corpsec.models.company import EntityType, CompanyStatus, OfficerRole


class CompanyBase(BaseModel):
    """Base company schema."""
    uen: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    former_name: str | None = None
    entity_type: EntityType = EntityType.PRIVATE_LIMITED
    status: CompanyStatus = CompanyStatus.LIVE
    status_date: datetime | None = None
    incorporation_date: datetime | None = None
    primary_ssic_code: str | None = None
    primary_ssic_description: str | None = None
    secondary_ssic_code: str | None = None
    secondary_ssic_description: str | None = None
    financial_year_end_day: int | None = Field(None, ge=1, le=31)
    financial_year_end_month: int | None = Field(None, ge=1, le=12)
    home_currency: str = "SGD"
    last_agm_date: datetime | None = None
    last_ar_filed_date: datetime | None = None
    accounts_due_date: datetime | None = None
    paid_up_capital_amount: float | None = None
    paid_up_capital_currency: str | None = None
    issued_capital_amount: float | None = None
    issued_capital_currency: str | None = None
    internal_notes: str | None = None


class CompanyCreate(CompanyBase):
    """Create company request."""
    tenant_id: UUID | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class CompanyUpdate(BaseModel):
    """Update company request."""
    uen: str | None = None
    name: str | None = None
    former_name: str | None = None
    entity_type: EntityType | None = None
    status: CompanyStatus | None = None
    status_date: datetime | None = None
    incorporation_date: datetime | None = None
    primary_ssic_code: str | None = None
    primary_ssic_description: str | None = None
    secondary_ssic_code: str | None = None
    secondary_ssic_description: str | None = None
    financial_year_end_day: int | None = Field(None, ge=1, le=31)
    financial_year_end_month: int | None = Field(None, ge=1, le=12)
    home_currency: str | None = None
    last_agm_date: datetime | None = None
    last_ar_filed_date: datetime | None = None
    accounts_due_date: datetime | None = None
    paid_up_capital_amount: float | None = None
    paid_up_capital_currency: str | None = None
    issued_capital_amount: float | None = None
    issued_capital_currency: str | None = None
    internal_notes: str | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class CompanyDelete(BaseModel):
    reason: str = Field(min_length=1)


class CompanyListItem(BaseModel):
    """Company in list view."""
    id: UUID
    uen: str
    name: str
    entity_type: str
    status: str
    financial_year_end_month: int | None = None
    incorporation_date: datetime | None = None
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)


class CompanyList(BaseModel):
    items: list[CompanyListItem]
    total: int
    page: int
    limit: int


class AddressRead(BaseModel):
    id: UUID
    address_type: str
    full_address: str
    postal_code: str
    effective_from: datetime | None = None
    is_current: bool
    
    model_config = ConfigDict(from_attributes=True)


class OfficerRead(BaseModel):
    id: UUID
    contact_id: UUID | None = None
    role: str
    name: str
    identification_type: str | None = None
    identification_number: str | None = None
    nationality: str | None = None
    address: str | None = None
    appointment_date: datetime | None = None
    cessation_date: datetime | None = None
    is_current: bool
    
    model_config = ConfigDict(from_attributes=True)


class OfficerUpdate(BaseModel):
    role: OfficerRole | None = None
    name: str | None = None
    nationality: str | None = None
    address: str | None = None
    appointment_date: datetime | None = None
    cessation_date: datetime | None = None
    
    model_config = ConfigDict(use_enum_values=True)


class ShareholderRead(BaseModel):
    id: UUID
    contact_id: UUID | None = None
    name: str
    shareholder_type: str
    identification_type: str | None = None
    identification_number: str | None = None
    nationality: str | None = None
    share_class: str
    number_of_shares: int
    percentage_held: float | None = None
    currency: str | None = None
    is_current: bool
    
    model_config = ConfigDict(from_attributes=True)


class ShareholderUpdate(BaseModel):
    share_class: str | None = None
    number_of_shares: int | None = Field(None, ge=0)
    nationality: str | None = None
    address: str | None = None
    currency: str | None = None


class ChargeRead(BaseModel):
    id: UUID
    charge_number: str | None = None
    charge_holder_name: str
    amount_secured: float | None = None
    amount_secured_text: str | None = None
    currency: str | None = None
    registration_date: datetime | None = None
    is_fully_discharged: bool
    
    model_config = ConfigDict(from_attributes=True)


class CompanyRead(CompanyBase):
    """Company detail with current registry records."""
    id: UUID
    tenant_id: UUID
    entity_type: str
    status: str
    has_charges: bool
    fye_as_at_last_ar: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    addresses: list[AddressRead] = []
    officers: list[OfficerRead] = []
    shareholders: list[ShareholderRead] = []
    charges: list[ChargeRead] = []
    
    model_config = ConfigDict(from_attributes=True)


class ComplianceRead(BaseModel):
    uen: str
    uen_valid: bool
    uen_type: str | None = None
    year_of_registration: str | None = None
    status: str
    fye_date: date | None = None
    ar_due_date: date | None = None
    days_until_due: int | None = None
