"""Company model and its registry-sourced child records."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Integer, BigInteger, Float, Text, Boolean,
    Index, text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from corpsec.database import Base


class EntityType(str, Enum):
    """ACRA entity types."""
    PRIVATE_LIMITED = "PRIVATE_LIMITED"
    EXEMPTED_PRIVATE_LIMITED = "EXEMPTED_PRIVATE_LIMITED"
    PUBLIC_LIMITED = "PUBLIC_LIMITED"
    PUBLIC_COMPANY_LIMITED_BY_GUARANTEE = "PUBLIC_COMPANY_LIMITED_BY_GUARANTEE"
    SOLE_PROPRIETORSHIP = "SOLE_PROPRIETORSHIP"
    PARTNERSHIP = "PARTNERSHIP"
    LIMITED_PARTNERSHIP = "LIMITED_PARTNERSHIP"
    LIMITED_LIABILITY_PARTNERSHIP = "LIMITED_LIABILITY_PARTNERSHIP"
    FOREIGN_COMPANY = "FOREIGN_COMPANY"
    VARIABLE_CAPITAL_COMPANY = "VARIABLE_CAPITAL_COMPANY"
    OTHER = "OTHER"


class CompanyStatus(str, Enum):
    """Registry status of a company."""
    LIVE = "LIVE"
    STRUCK_OFF = "STRUCK_OFF"
    WINDING_UP = "WINDING_UP"
    DISSOLVED = "DISSOLVED"
    IN_LIQUIDATION = "IN_LIQUIDATION"
    IN_RECEIVERSHIP = "IN_RECEIVERSHIP"
    AMALGAMATED = "AMALGAMATED"
    CONVERTED = "CONVERTED"
    OTHER = "OTHER"


class OfficerRole(str, Enum):
    """Officer appointment roles."""
    DIRECTOR = "DIRECTOR"
    MANAGING_DIRECTOR = "MANAGING_DIRECTOR"
    ALTERNATE_DIRECTOR = "ALTERNATE_DIRECTOR"
    SECRETARY = "SECRETARY"
    CEO = "CEO"
    CFO = "CFO"
    AUDITOR = "AUDITOR"
    LIQUIDATOR = "LIQUIDATOR"
    RECEIVER = "RECEIVER"
    JUDICIAL_MANAGER = "JUDICIAL_MANAGER"


class AddressType(str, Enum):
    """Company address kinds."""
    REGISTERED_OFFICE = "REGISTERED_OFFICE"
    MAILING = "MAILING"
    RESIDENTIAL = "RESIDENTIAL"
    BUSINESS = "BUSINESS"


class Company(Base):
    """Company record, unique by UEN within a tenant."""
    
    __tablename__ = "companies"
    __table_args__ = (
        # Soft-deleted rows do not hold their UEN
        Index(
            "uq_company_tenant_uen_live", "tenant_id", "uen", unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    
    # Identity
    uen = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    former_name = Column(String(255), nullable=True)
    date_of_name_change = Column(DateTime, nullable=True)
    entity_type = Column(String(50), nullable=False, default=EntityType.PRIVATE_LIMITED.value)
    status = Column(String(30), nullable=False, default=CompanyStatus.LIVE.value)
    status_date = Column(DateTime, nullable=True)
    incorporation_date = Column(DateTime, nullable=True)
    registration_date = Column(DateTime, nullable=True)
    date_of_address = Column(DateTime, nullable=True)
    
    # Activities
    primary_ssic_code = Column(String(10), nullable=True)
    primary_ssic_description = Column(String(500), nullable=True)
    secondary_ssic_code = Column(String(10), nullable=True)
    secondary_ssic_description = Column(String(500), nullable=True)
    
    # Financial year
    financial_year_end_day = Column(Integer, nullable=True)
    financial_year_end_month = Column(Integer, nullable=True)
    fye_as_at_last_ar = Column(DateTime, nullable=True)
    home_currency = Column(String(3), nullable=False, default="SGD")
    
    # Compliance
    last_agm_date = Column(DateTime, nullable=True)
    last_ar_filed_date = Column(DateTime, nullable=True)
    accounts_due_date = Column(DateTime, nullable=True)
    
    # Capital
    paid_up_capital_amount = Column(Float, nullable=True)
    paid_up_capital_currency = Column(String(3), nullable=True)
    issued_capital_amount = Column(Float, nullable=True)
    issued_capital_currency = Column(String(3), nullable=True)
    
    has_charges = Column(Boolean, nullable=False, default=False)
    internal_notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
    deleted_reason = Column(Text, nullable=True)
    
    # Relationships
    tenant = relationship("Tenant", back_populates="companies")
    addresses = relationship("CompanyAddress", back_populates="company")
    former_names = relationship("CompanyFormerName", back_populates="company")
    share_capital = relationship("ShareCapital", back_populates="company")
    officers = relationship("CompanyOfficer", back_populates="company")
    shareholders = relationship("CompanyShareholder", back_populates="company")
    charges = relationship("CompanyCharge", back_populates="company")
    contacts = relationship("CompanyContact", back_populates="company")
    documents = relationship("Document", back_populates="company")
    user_assignments = relationship("UserCompanyAssignment", back_populates="company")


class CompanyAddress(Base):
    """Dated company address; only one current row per type."""
    
    __tablename__ = "company_addresses"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    address_type = Column(String(30), nullable=False)
    block = Column(String(20), nullable=True)
    street_name = Column(String(255), nullable=False, default="")
    level = Column(String(10), nullable=True)
    unit = Column(String(20), nullable=True)
    building_name = Column(String(255), nullable=True)
    postal_code = Column(String(10), nullable=False, default="")
    country = Column(String(100), nullable=False, default="SINGAPORE")
    full_address = Column(String(500), nullable=False)
    effective_from = Column(DateTime, nullable=True)
    effective_to = Column(DateTime, nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    company = relationship("Company", back_populates="addresses")


class CompanyFormerName(Base):
    """Historical company name."""
    
    __tablename__ = "company_former_names"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    former_name = Column(String(255), nullable=False)
    effective_from = Column(DateTime, nullable=True)
    effective_to = Column(DateTime, nullable=True)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    company = relationship("Company", back_populates="former_names")


class ShareCapital(Base):
    """Share capital line by class and currency."""
    
    __tablename__ = "share_capital"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    share_class = Column(String(50), nullable=False, default="ORDINARY")
    currency = Column(String(3), nullable=False, default="SGD")
    number_of_shares = Column(BigInteger, nullable=False, default=0)
    par_value = Column(Float, nullable=True)
    total_value = Column(Float, nullable=False, default=0)
    is_paid_up = Column(Boolean, nullable=False, default=True)
    is_treasury = Column(Boolean, nullable=False, default=False)
    effective_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    company = relationship("Company", back_populates="share_capital")


class CompanyOfficer(Base):
    """Director, secretary or other appointed officer."""
    
    __tablename__ = "company_officers"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id"), nullable=True)
    role = Column(String(30), nullable=False, default=OfficerRole.DIRECTOR.value)
    name = Column(String(255), nullable=False)
    identification_type = Column(String(20), nullable=True)
    identification_number = Column(String(50), nullable=True)
    nationality = Column(String(100), nullable=True)
    address = Column(String(500), nullable=True)
    appointment_date = Column(DateTime, nullable=True)
    cessation_date = Column(DateTime, nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    company = relationship("Company", back_populates="officers")
    contact = relationship("Contact", back_populates="officer_positions")


class CompanyShareholder(Base):
    """Shareholding of an individual or corporate holder."""
    
    __tablename__ = "company_shareholders"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id"), nullable=True)
    name = Column(String(255), nullable=False)
    shareholder_type = Column(String(20), nullable=False, default="INDIVIDUAL")
    identification_type = Column(String(20), nullable=True)
    identification_number = Column(String(50), nullable=True)
    nationality = Column(String(100), nullable=True)
    place_of_origin = Column(String(100), nullable=True)
    address = Column(String(500), nullable=True)
    share_class = Column(String(50), nullable=False, default="ORDINARY")
    number_of_shares = Column(BigInteger, nullable=False, default=0)
    percentage_held = Column(Float, nullable=True)
    currency = Column(String(3), nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    company = relationship("Company", back_populates="shareholders")
    contact = relationship("Contact", back_populates="shareholdings")


class CompanyCharge(Base):
    """Registered charge over company assets."""
    
    __tablename__ = "company_charges"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    charge_holder_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id"), nullable=True)
    charge_number = Column(String(50), nullable=True)
    charge_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    charge_holder_name = Column(String(255), nullable=False)
    amount_secured = Column(Float, nullable=True)
    amount_secured_text = Column(String(255), nullable=True)
    currency = Column(String(3), nullable=True)
    registration_date = Column(DateTime, nullable=True)
    discharge_date = Column(DateTime, nullable=True)
    is_fully_discharged = Column(Boolean, nullable=False, default=False)
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    company = relationship("Company", back_populates="charges")
    charge_holder = relationship("Contact", back_populates="charges_held")
