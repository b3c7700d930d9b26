"""Initial corpsec schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True)


def _fk(name, target, nullable=False):
    return sa.Column(name, postgresql.UUID(as_uuid=True), sa.ForeignKey(target), nullable=nullable)


def _created():
    return sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()'))


def _updated():
    return sa.Column('updated_at', sa.DateTime(), nullable=True)


def upgrade() -> None:
    # Tenants table
    op.create_table(
        'tenants',
        _id(),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING_SETUP'),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('settings', postgresql.JSON(), nullable=False, server_default='{}'),
        sa.Column('max_users', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('max_companies', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspend_reason', sa.Text(), nullable=True),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_reason', sa.Text(), nullable=True),
    )
    
    # Users table; super admins have no tenant
    op.create_table(
        'users',
        _id(),
        _fk('tenant_id', 'tenants.id', nullable=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='COMPANY_USER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    
    # Contacts table
    op.create_table(
        'contacts',
        _id(),
        _fk('tenant_id', 'tenants.id'),
        sa.Column('contact_type', sa.String(20), nullable=False, server_default='INDIVIDUAL'),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('identification_type', sa.String(20), nullable=True),
        sa.Column('identification_number', sa.String(50), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('corporate_name', sa.String(255), nullable=True),
        sa.Column('corporate_uen', sa.String(20), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('full_address', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    
    # Companies table
    op.create_table(
        'companies',
        _id(),
        _fk('tenant_id', 'tenants.id'),
        sa.Column('uen', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('former_name', sa.String(255), nullable=True),
        sa.Column('date_of_name_change', sa.DateTime(), nullable=True),
        sa.Column('entity_type', sa.String(50), nullable=False, server_default='PRIVATE_LIMITED'),
        sa.Column('status', sa.String(30), nullable=False, server_default='LIVE'),
        sa.Column('status_date', sa.DateTime(), nullable=True),
        sa.Column('incorporation_date', sa.DateTime(), nullable=True),
        sa.Column('registration_date', sa.DateTime(), nullable=True),
        sa.Column('date_of_address', sa.DateTime(), nullable=True),
        sa.Column('primary_ssic_code', sa.String(10), nullable=True),
        sa.Column('primary_ssic_description', sa.String(500), nullable=True),
        sa.Column('secondary_ssic_code', sa.String(10), nullable=True),
        sa.Column('secondary_ssic_description', sa.String(500), nullable=True),
        sa.Column('financial_year_end_day', sa.Integer(), nullable=True),
        sa.Column('financial_year_end_month', sa.Integer(), nullable=True),
        sa.Column('fye_as_at_last_ar', sa.DateTime(), nullable=True),
        sa.Column('home_currency', sa.String(3), nullable=False, server_default='SGD'),
        sa.Column('last_agm_date', sa.DateTime(), nullable=True),
        sa.Column('last_ar_filed_date', sa.DateTime(), nullable=True),
        sa.Column('accounts_due_date', sa.DateTime(), nullable=True),
        sa.Column('paid_up_capital_amount', sa.Float(), nullable=True),
        sa.Column('paid_up_capital_currency', sa.String(3), nullable=True),
        sa.Column('issued_capital_amount', sa.Float(), nullable=True),
        sa.Column('issued_capital_currency', sa.String(3), nullable=True),
        sa.Column('has_charges', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_reason', sa.Text(), nullable=True),
    )
    # UEN is unique among live companies only
    op.create_index(
        'uq_company_tenant_uen_live', 'companies', ['tenant_id', 'uen'], unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
    )
    
    # User-company assignments table
    op.create_table(
        'user_company_assignments',
        _id(),
        _fk('user_id', 'users.id'),
        _fk('company_id', 'companies.id'),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created(),
        sa.UniqueConstraint('user_id', 'company_id', name='uq_user_company'),
    )
    
    # Company addresses table
    op.create_table(
        'company_addresses',
        _id(),
        _fk('company_id', 'companies.id'),
        sa.Column('address_type', sa.String(30), nullable=False),
        sa.Column('block', sa.String(20), nullable=True),
        sa.Column('street_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('level', sa.String(10), nullable=True),
        sa.Column('unit', sa.String(20), nullable=True),
        sa.Column('building_name', sa.String(255), nullable=True),
        sa.Column('postal_code', sa.String(10), nullable=False, server_default=''),
        sa.Column('country', sa.String(100), nullable=False, server_default='SINGAPORE'),
        sa.Column('full_address', sa.String(500), nullable=False),
        sa.Column('effective_from', sa.DateTime(), nullable=True),
        sa.Column('effective_to', sa.DateTime(), nullable=True),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
        _updated(),
    )
    
    # Former names table
    op.create_table(
        'company_former_names',
        _id(),
        _fk('company_id', 'companies.id'),
        sa.Column('former_name', sa.String(255), nullable=False),
        sa.Column('effective_from', sa.DateTime(), nullable=True),
        sa.Column('effective_to', sa.DateTime(), nullable=True),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
    )
    
    # Share capital table
    op.create_table(
        'share_capital',
        _id(),
        _fk('company_id', 'companies.id'),
        sa.Column('share_class', sa.String(50), nullable=False, server_default='ORDINARY'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='SGD'),
        sa.Column('number_of_shares', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('par_value', sa.Float(), nullable=True),
        sa.Column('total_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_paid_up', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_treasury', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('effective_date', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
    )
    
    # Officers table
    op.create_table(
        'company_officers',
        _id(),
        _fk('company_id', 'companies.id'),
        _fk('contact_id', 'contacts.id', nullable=True),
        sa.Column('role', sa.String(30), nullable=False, server_default='DIRECTOR'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('identification_type', sa.String(20), nullable=True),
        sa.Column('identification_number', sa.String(50), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('appointment_date', sa.DateTime(), nullable=True),
        sa.Column('cessation_date', sa.DateTime(), nullable=True),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
        _updated(),
    )
    
    # Shareholders table
    op.create_table(
        'company_shareholders',
        _id(),
        _fk('company_id', 'companies.id'),
        _fk('contact_id', 'contacts.id', nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('shareholder_type', sa.String(20), nullable=False, server_default='INDIVIDUAL'),
        sa.Column('identification_type', sa.String(20), nullable=True),
        sa.Column('identification_number', sa.String(50), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('place_of_origin', sa.String(100), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('share_class', sa.String(50), nullable=False, server_default='ORDINARY'),
        sa.Column('number_of_shares', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('percentage_held', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
        _updated(),
    )
    
    # Charges table
    op.create_table(
        'company_charges',
        _id(),
        _fk('company_id', 'companies.id'),
        _fk('charge_holder_id', 'contacts.id', nullable=True),
        sa.Column('charge_number', sa.String(50), nullable=True),
        sa.Column('charge_type', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('charge_holder_name', sa.String(255), nullable=False),
        sa.Column('amount_secured', sa.Float(), nullable=True),
        sa.Column('amount_secured_text', sa.String(255), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('registration_date', sa.DateTime(), nullable=True),
        sa.Column('discharge_date', sa.DateTime(), nullable=True),
        sa.Column('is_fully_discharged', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created(),
        _updated(),
    )
    
    # Company contacts table
    op.create_table(
        'company_contacts',
        _id(),
        _fk('company_id', 'companies.id'),
        _fk('contact_id', 'contacts.id'),
        sa.Column('relationship_type', sa.String(100), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created(),
        sa.UniqueConstraint('company_id', 'contact_id', 'relationship_type', name='uq_company_contact_relationship'),
    )
    
    # Documents table
    op.create_table(
        'documents',
        _id(),
        _fk('tenant_id', 'tenants.id'),
        _fk('company_id', 'companies.id', nullable=True),
        _fk('uploaded_by_id', 'users.id', nullable=True),
        sa.Column('document_type', sa.String(20), nullable=False, server_default='BIZFILE'),
        sa.Column('file_name', sa.String(512), nullable=False),
        sa.Column('original_file_name', sa.String(512), nullable=False),
        sa.Column('storage_key', sa.String(1024), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('extraction_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('extraction_error', sa.Text(), nullable=True),
        sa.Column('extracted_data', postgresql.JSON(), nullable=True),
        sa.Column('extracted_at', sa.DateTime(), nullable=True),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    
    # Processing documents table (pipeline state per upload)
    op.create_table(
        'processing_documents',
        _id(),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('documents.id'), nullable=False, unique=True),
        sa.Column('is_container', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('file_hash', sa.String(64), nullable=True),
        sa.Column('page_count', sa.Integer(), nullable=True),
        sa.Column('pages', postgresql.JSON(), nullable=False, server_default='[]'),
        sa.Column('pipeline_status', sa.String(20), nullable=False, server_default='UPLOADED'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='NORMAL'),
        sa.Column('upload_source', sa.String(20), nullable=False, server_default='WEB'),
        sa.Column('last_error', postgresql.JSON(), nullable=True),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('first_error_at', sa.DateTime(), nullable=True),
        sa.Column('next_retry_at', sa.DateTime(), nullable=True),
        sa.Column('can_retry', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('dead_letter_at', sa.DateTime(), nullable=True),
        sa.Column('duplicate_status', sa.String(20), nullable=False, server_default='NONE'),
        _fk('duplicate_of_id', 'processing_documents.id', nullable=True),
        sa.Column('extracted_data', postgresql.JSON(), nullable=True),
        sa.Column('ai_model', sa.String(50), nullable=True),
        sa.Column('ai_usage', postgresql.JSON(), nullable=True),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    
    # Generated documents table
    op.create_table(
        'generated_documents',
        _id(),
        _fk('tenant_id', 'tenants.id'),
        _fk('company_id', 'companies.id', nullable=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('finalized_at', sa.DateTime(), nullable=True),
        _fk('finalized_by_id', 'users.id', nullable=True),
        _fk('created_by_id', 'users.id', nullable=True),
        sa.Column('metadata', postgresql.JSON(), nullable=False, server_default='{}'),
        _created(),
        _updated(),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    
    # Audit logs table; ids are not foreign keys
    op.create_table(
        'audit_logs',
        _id(),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(30), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Text(), nullable=False),
        sa.Column('entity_name', sa.String(255), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('change_source', sa.String(20), nullable=False, server_default='MANUAL'),
        sa.Column('changes', postgresql.JSON(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('request_id', sa.String(100), nullable=True),
        _created(),
    )
    op.create_index('ix_audit_logs_tenant_created', 'audit_logs', ['tenant_id', 'created_at'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('generated_documents')
    op.drop_table('processing_documents')
    op.drop_table('documents')
    op.drop_table('company_contacts')
    op.drop_table('company_charges')
    op.drop_table('company_shareholders')
    op.drop_table('company_officers')
    op.drop_table('share_capital')
    op.drop_table('company_former_names')
    op.drop_table('company_addresses')
    op.drop_table('user_company_assignments')
    op.drop_table('companies')
    op.drop_table('contacts')
    op.drop_table('users')
    op.drop_table('tenants')
