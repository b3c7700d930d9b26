"""Document, processing pipeline and generated document models."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, Boolean, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from corpsec.database import Base


class DocumentType(str, Enum):
    """Stored document kinds."""
    BIZFILE = "BIZFILE"
    UPLOADED = "UPLOADED"


class ExtractionStatus(str, Enum):
    """BizFile extraction status."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PipelineStatus(str, Enum):
    """Processing pipeline status."""
    UPLOADED = "UPLOADED"
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    SPLIT_PENDING = "SPLIT_PENDING"
    SPLIT_DONE = "SPLIT_DONE"
    EXTRACTION_DONE = "EXTRACTION_DONE"
    FAILED_RETRYABLE = "FAILED_RETRYABLE"
    FAILED_PERMANENT = "FAILED_PERMANENT"
    DEAD_LETTER = "DEAD_LETTER"


class DocumentPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class UploadSource(str, Enum):
    WEB = "WEB"
    EMAIL = "EMAIL"
    API = "API"
    CLIENT_PORTAL = "CLIENT_PORTAL"


class DuplicateStatus(str, Enum):
    NONE = "NONE"
    SUSPECTED = "SUSPECTED"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class GeneratedDocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    FINALIZED = "FINALIZED"
    ARCHIVED = "ARCHIVED"


class Document(Base):
    """Uploaded file with BizFile extraction state."""
    
    __tablename__ = "documents"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=True)
    uploaded_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    document_type = Column(String(20), nullable=False, default=DocumentType.BIZFILE.value)
    
    # File info
    file_name = Column(String(512), nullable=False)
    original_file_name = Column(String(512), nullable=False)
    storage_key = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    
    # Extraction
    extraction_status = Column(String(20), nullable=False, default=ExtractionStatus.PENDING.value)
    extraction_error = Column(Text, nullable=True)
    extracted_data = Column(JSON, nullable=True)
    extracted_at = Column(DateTime, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
    
    # Relationships
    company = relationship("Company", back_populates="documents")
    processing = relationship("ProcessingDocument", back_populates="document", uselist=False)


class ProcessingDocument(Base):
    """Pipeline state for a document run through AI extraction."""
    
    __tablename__ = "processing_documents"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False, unique=True)
    is_container = Column(Boolean, nullable=False, default=True)
    file_hash = Column(String(64), nullable=True)  # SHA-256
    page_count = Column(Integer, nullable=True)
    pages = Column(JSON, nullable=False, default=list)
    
    # Pipeline
    pipeline_status = Column(String(20), nullable=False, default=PipelineStatus.UPLOADED.value)
    priority = Column(String(10), nullable=False, default=DocumentPriority.NORMAL.value)
    upload_source = Column(String(20), nullable=False, default=UploadSource.WEB.value)
    
    # Failures
    last_error = Column(JSON, nullable=True)
    error_count = Column(Integer, nullable=False, default=0)
    first_error_at = Column(DateTime, nullable=True)
    next_retry_at = Column(DateTime, nullable=True)
    can_retry = Column(Boolean, nullable=False, default=True)
    dead_letter_at = Column(DateTime, nullable=True)
    
    # Duplicates
    duplicate_status = Column(String(20), nullable=False, default=DuplicateStatus.NONE.value)
    duplicate_of_id = Column(UUID(as_uuid=True), ForeignKey("processing_documents.id"), nullable=True)
    
    # Extraction output
    extracted_data = Column(JSON, nullable=True)
    ai_model = Column(String(50), nullable=True)
    ai_usage = Column(JSON, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
    
    document = relationship("Document", back_populates="processing")


class GeneratedDocument(Base):
    """Document drafted from company data, editable until finalized."""
    
    __tablename__ = "generated_documents"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey("tenants.id"), nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=True)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default=GeneratedDocumentStatus.DRAFT.value)
    finalized_at = Column(DateTime, nullable=True)
    finalized_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
