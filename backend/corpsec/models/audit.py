"""Audit log model."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from sqlalchemy.dialects.postgresql import UUID

from corpsec.database import Base


class AuditAction(str, Enum):
    """Audited action kinds."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"
    EXTRACT = "EXTRACT"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAILED = "LOGIN_FAILED"
    TENANT_CREATED = "TENANT_CREATED"
    TENANT_UPDATED = "TENANT_UPDATED"
    USER_COMPANY_ASSIGNED = "USER_COMPANY_ASSIGNED"
    DOCUMENT_GENERATED = "DOCUMENT_GENERATED"
    DOCUMENT_FINALIZED = "DOCUMENT_FINALIZED"


class ChangeSource(str, Enum):
    """Where a change came from."""
    MANUAL = "MANUAL"
    BIZFILE_UPLOAD = "BIZFILE_UPLOAD"
    API = "API"
    SYSTEM = "SYSTEM"


class AuditLog(Base):
    """Append-only record of a user or system action.
    
    Ids are stored without foreign keys so entries outlive the rows they describe.
    """
    
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), nullable=True)
    user_id = Column(UUID(as_uuid=True), nullable=True)
    company_id = Column(UUID(as_uuid=True), nullable=True)
    
    action = Column(String(30), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Text, nullable=False)
    entity_name = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)
    change_source = Column(String(20), nullable=False, default=ChangeSource.MANUAL.value)
    changes = Column(JSON, nullable=True)
    reason = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    
    # Request context
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    request_id = Column(String(100), nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
