"""Tenant model for multi-tenancy."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from corpsec.database import Base


class TenantStatus(str, Enum):
    """Tenant lifecycle status."""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING_SETUP = "PENDING_SETUP"
    DEACTIVATED = "DEACTIVATED"


class Tenant(Base):
    """Tenant for multi-tenant isolation."""
    
    __tablename__ = "tenants"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(100), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=TenantStatus.PENDING_SETUP.value)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    settings = Column(JSON, nullable=False, default=dict)
    
    # Limits
    max_users = Column(Integer, nullable=False, default=50)
    max_companies = Column(Integer, nullable=False, default=100)
    
    # Lifecycle
    activated_at = Column(DateTime, nullable=True)
    suspended_at = Column(DateTime, nullable=True)
    suspend_reason = Column(Text, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
    deleted_reason = Column(Text, nullable=True)
    
    # Relationships
    users = relationship("User", back_populates="tenant")
    companies = relationship("Company", back_populates="tenant")
    contacts = relationship("Contact", back_populates="tenant")
