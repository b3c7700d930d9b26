"""Contact model and company relationships."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from corpsec.database import Base


class ContactType(str, Enum):
    """Individual person or corporate body."""
    INDIVIDUAL = "INDIVIDUAL"
    CORPORATE = "CORPORATE"


class IdentificationType(str, Enum):
    """Identity document types."""
    NRIC = "NRIC"
    FIN = "FIN"
    PASSPORT = "PASSPORT"
    UEN = "UEN"
    OTHER = "OTHER"


class Contact(Base):
    """Person or corporate body known to a tenant."""
    
    __tablename__ = "contacts"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    contact_type = Column(String(20), nullable=False, default=ContactType.INDIVIDUAL.value)
    
    # Individual
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    identification_type = Column(String(20), nullable=True)
    identification_number = Column(String(50), nullable=True)
    nationality = Column(String(100), nullable=True)
    
    # Corporate
    corporate_name = Column(String(255), nullable=True)
    corporate_uen = Column(String(20), nullable=True)
    
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    full_address = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
    
    # Relationships
    tenant = relationship("Tenant", back_populates="contacts")
    company_relations = relationship("CompanyContact", back_populates="contact")
    officer_positions = relationship("CompanyOfficer", back_populates="contact")
    shareholdings = relationship("CompanyShareholder", back_populates="contact")
    charges_held = relationship("CompanyCharge", back_populates="charge_holder")


class CompanyContact(Base):
    """Link between a contact and a company with a named relationship."""
    
    __tablename__ = "company_contacts"
    __table_args__ = (
        UniqueConstraint("company_id", "contact_id", "relationship_type", name="uq_company_contact_relationship"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=False)
    contact_id = Column(UUID(as_uuid=True), ForeignKey("contacts.id"), nullable=False)
    relationship_type = Column(String(100), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    company = relationship("Company", back_populates="contacts")
    contact = relationship("Contact", back_populates="company_relations")
