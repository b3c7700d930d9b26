"""
Persist extracted BizFile data.

Two entry points:
- process_bizfile_extraction: create or fully update a company from a BizFile
- process_bizfile_extraction_selective: apply only the differences found by the diff

Both add to the caller's session and flush; the caller commits.
"""
import logging
import re
from datetime import datetime
from pathlib import Path
from uuid import UUID

from sqlalchemy.orm import Session

from corpsec.models.audit import AuditAction, ChangeSource
from corpsec.models.company import (
    Company, CompanyAddress, CompanyFormerName, ShareCapital, CompanyOfficer,
    CompanyShareholder, CompanyCharge, AddressType, OfficerRole,
)
from corpsec.models.contact import ContactType
from corpsec.models.document import (
    Document, ProcessingDocument, ExtractionStatus, PipelineStatus, DocumentPriority, UploadSource,
)
from corpsec.services.audit import create_audit_log, compute_changes, snapshot
from corpsec.services.bizfile.diff import compute_capital, generate_bizfile_diff
from corpsec.services.bizfile.normalizer import (
    build_full_address, normalize_extracted_data, parse_date, DEFAULT_CURRENCY,
)
from corpsec.services.bizfile.types import (
    ExtractedAddress, ExtractedBizFileData, ExtractedOfficer, ExtractedShareholder,
    OfficerAction, ProcessingResult, SelectiveResult,
    map_company_status, map_contact_type, map_entity_type, map_identification_type, map_officer_role,
)
from corpsec.services.contacts import ContactInput, find_or_create_contact, link_contact_to_company, split_name
from corpsec.services.storage import LocalStorage

logger = logging.getLogger(__name__)

SHAREHOLDER_RELATIONSHIP = "Shareholder"

COMPANY_AUDIT_FIELDS = [
    "name", "former_name", "entity_type", "status", "status_date", "incorporation_date",
    "primary_ssic_code", "primary_ssic_description", "secondary_ssic_code", "secondary_ssic_description",
    "financial_year_end_day", "financial_year_end_month", "last_agm_date", "last_ar_filed_date",
    "accounts_due_date", "paid_up_capital_amount", "issued_capital_amount", "has_charges",
]


def _role_label(role: OfficerRole) -> str:
    return role.value.replace("_", " ").title()


def _id_type_value(value: str | None) -> str | None:
    mapped = map_identification_type(value)
    return mapped.value if mapped else None


# ============ Company fields ============

def _company_values(data: ExtractedBizFileData) -> dict:
    """Column values for a full create/update."""
    entity = data.entity_details
    ssic = data.ssic_activities
    compliance = data.compliance
    fy = data.financial_year
    values = {
        "name": entity.name,
        "former_name": entity.former_name,
        "date_of_name_change": parse_date(entity.date_of_name_change),
        "entity_type": map_entity_type(entity.entity_type).value,
        "status": map_company_status(entity.status).value,
        "status_date": parse_date(entity.status_date),
        "incorporation_date": parse_date(entity.incorporation_date),
        "registration_date": parse_date(entity.registration_date),
        "date_of_address": parse_date(data.registered_address.effective_from) if data.registered_address else None,
        "primary_ssic_code": ssic.primary.code if ssic and ssic.primary else None,
        "primary_ssic_description": ssic.primary.description if ssic and ssic.primary else None,
        "secondary_ssic_code": ssic.secondary.code if ssic and ssic.secondary else None,
        "secondary_ssic_description": ssic.secondary.description if ssic and ssic.secondary else None,
        "financial_year_end_day": fy.end_day if fy else None,
        "financial_year_end_month": fy.end_month if fy else None,
        "home_currency": data.home_currency or DEFAULT_CURRENCY,
        "last_agm_date": parse_date(compliance.last_agm_date) if compliance else None,
        "last_ar_filed_date": parse_date(compliance.last_ar_filed_date) if compliance else None,
        "accounts_due_date": parse_date(compliance.accounts_due_date) if compliance else None,
        "fye_as_at_last_ar": parse_date(compliance.fye_as_at_last_ar) if compliance else None,
        "has_charges": bool(data.charges),
    }
    return values


def _apply_capital(company: Company, data: ExtractedBizFileData) -> None:
    """Extracted paid-up/issued amounts, else sums over the share capital rows."""
    paid_up, issued, currency = compute_capital(data.share_capital)
    if data.paid_up_capital and data.paid_up_capital.amount is not None:
        company.paid_up_capital_amount = data.paid_up_capital.amount
        company.paid_up_capital_currency = data.paid_up_capital.currency or DEFAULT_CURRENCY
    elif data.share_capital:
        company.paid_up_capital_amount = paid_up
        company.paid_up_capital_currency = currency
    if data.issued_capital and data.issued_capital.amount is not None:
        company.issued_capital_amount = data.issued_capital.amount
        company.issued_capital_currency = data.issued_capital.currency or DEFAULT_CURRENCY
    elif data.share_capital:
        company.issued_capital_amount = issued
        company.issued_capital_currency = currency


# ============ Child records ============

def _replace_address(
    db: Session, company_id: UUID, address_type: AddressType, address: ExtractedAddress, document_id: UUID
) -> CompanyAddress:
    """Close the current address of this type and add the new one."""
    now = datetime.utcnow()
    for previous in db.query(CompanyAddress).filter(
        CompanyAddress.company_id == company_id,
        CompanyAddress.address_type == address_type,
        CompanyAddress.is_current.is_(True),
    ).all():
        previous.is_current = False
        previous.effective_to = now
    
    row = CompanyAddress(
        company_id=company_id,
        address_type=address_type.value,
        block=address.block,
        street_name=address.street_name or "",
        level=address.level,
        unit=address.unit,
        building_name=address.building_name,
        postal_code=address.postal_code or "",
        full_address=build_full_address(address) or "",
        effective_from=parse_date(address.effective_from),
        is_current=True,
        source_document_id=document_id,
    )
    db.add(row)
    db.flush()
    return row


def _add_officer(
    db: Session, company: Company, officer: ExtractedOfficer, document_id: UUID, user_id: UUID | None
) -> CompanyOfficer:
    role = map_officer_role(officer.role)
    is_current = not officer.cessation_date
    first_name, last_name = split_name(officer.name)
    contact, _ = find_or_create_contact(
        db,
        company.tenant_id,
        ContactInput(
            contact_type=ContactType.INDIVIDUAL,
            first_name=first_name,
            last_name=last_name,
            identification_type=_id_type_value(officer.identification_type),
            identification_number=officer.identification_number,
            nationality=officer.nationality,
            full_address=officer.address,
        ),
        user_id=user_id,
        change_source=ChangeSource.BIZFILE_UPLOAD,
    )
    row = CompanyOfficer(
        company_id=company.id,
        contact_id=contact.id,
        role=role.value,
        name=officer.name,
        identification_type=_id_type_value(officer.identification_type),
        identification_number=officer.identification_number,
        nationality=officer.nationality,
        address=officer.address,
        appointment_date=parse_date(officer.appointment_date),
        cessation_date=parse_date(officer.cessation_date),
        is_current=is_current,
        source_document_id=document_id,
    )
    db.add(row)
    if is_current:
        link_contact_to_company(db, company.id, contact.id, _role_label(role))
    db.flush()
    return row


def _add_shareholder(
    db: Session, company: Company, holder: ExtractedShareholder, document_id: UUID, user_id: UUID | None
) -> CompanyShareholder:
    holder_type = map_contact_type(holder.type)
    if holder_type == ContactType.CORPORATE:
        contact_input = ContactInput(
            contact_type=ContactType.CORPORATE,
            corporate_name=holder.name,
            corporate_uen=holder.identification_number,
            full_address=holder.address,
        )
    else:
        first_name, last_name = split_name(holder.name)
        contact_input = ContactInput(
            contact_type=ContactType.INDIVIDUAL,
            first_name=first_name,
            last_name=last_name,
            identification_type=_id_type_value(holder.identification_type),
            identification_number=holder.identification_number,
            nationality=holder.nationality,
            full_address=holder.address,
        )
    contact, _ = find_or_create_contact(
        db, company.tenant_id, contact_input, user_id=user_id, change_source=ChangeSource.BIZFILE_UPLOAD,
    )
    row = CompanyShareholder(
        company_id=company.id,
        contact_id=contact.id,
        name=holder.name,
        shareholder_type=holder_type.value,
        identification_type=_id_type_value(holder.identification_type),
        identification_number=holder.identification_number,
        nationality=holder.nationality,
        place_of_origin=holder.place_of_origin,
        address=holder.address,
        share_class=holder.share_class or "ORDINARY",
        number_of_shares=int(holder.number_of_shares or 0),
        percentage_held=holder.percentage_held,
        currency=holder.currency,
        is_current=True,
        source_document_id=document_id,
    )
    db.add(row)
    link_contact_to_company(db, company.id, contact.id, SHAREHOLDER_RELATIONSHIP)
    db.flush()
    return row


def recalculate_percentages(db: Session, company_id: UUID) -> None:
    """Percentage held by each current shareholder, rounded to 2 places."""
    holders = db.query(CompanyShareholder).filter(
        CompanyShareholder.company_id == company_id,
        CompanyShareholder.is_current.is_(True),
    ).all()
    total = sum(h.number_of_shares or 0 for h in holders)
    if total <= 0:
        return
    for holder in holders:
        holder.percentage_held = round((holder.number_of_shares or 0) / total * 100, 2)
    db.flush()


def _current_officer(db: Session, company_id: UUID, officer: ExtractedOfficer) -> CompanyOfficer | None:
    """Existing current officer with the same id number (or name) and role."""
    query = db.query(CompanyOfficer).filter(
        CompanyOfficer.company_id == company_id,
        CompanyOfficer.is_current.is_(True),
        CompanyOfficer.role == map_officer_role(officer.role).value,
    )
    if officer.identification_number:
        return query.filter(CompanyOfficer.identification_number == officer.identification_number).first()
    return query.filter(CompanyOfficer.name == officer.name).first()


def _current_shareholder(db: Session, company_id: UUID, holder: ExtractedShareholder) -> CompanyShareholder | None:
    query = db.query(CompanyShareholder).filter(
        CompanyShareholder.company_id == company_id,
        CompanyShareholder.is_current.is_(True),
    )
    if holder.identification_number:
        return query.filter(CompanyShareholder.identification_number == holder.identification_number).first()
    return query.filter(CompanyShareholder.name == holder.name).first()


# ============ Document bookkeeping ============

def _complete_document(db: Session, document: Document, company_id: UUID, data: ExtractedBizFileData) -> None:
    document.company_id = company_id
    document.extraction_status = ExtractionStatus.COMPLETED.value
    document.extraction_error = None
    document.extracted_data = data.to_json()
    document.extracted_at = datetime.utcnow()
    db.flush()


def ensure_processing_document(db: Session, document_id: UUID) -> ProcessingDocument:
    """Pipeline record for a BizFile that was extracted outside the queue."""
    existing = db.query(ProcessingDocument).filter(ProcessingDocument.document_id == document_id).first()
    if existing:
        return existing
    record = ProcessingDocument(
        document_id=document_id,
        is_container=True,
        pipeline_status=PipelineStatus.EXTRACTION_DONE.value,
        priority=DocumentPriority.NORMAL.value,
        upload_source=UploadSource.WEB.value,
    )
    db.add(record)
    db.flush()
    return record


def _safe_name_part(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9-]+", "", value)


def _file_stored_name(document: Document, data: ExtractedBizFileData) -> str:
    """BIZFILE_{receiptDate}_{receiptNo}{ext}, or the current name without receipt details."""
    ext = Path(document.storage_key).suffix
    meta = data.document_metadata
    if meta and meta.receipt_date and meta.receipt_no:
        return f"BIZFILE_{_safe_name_part(meta.receipt_date)}_{_safe_name_part(meta.receipt_no)}{ext}"
    return Path(document.storage_key).name


def _move_to_company_folder(
    storage: LocalStorage, document: Document, company: Company, data: ExtractedBizFileData
) -> None:
    """Move the stored file out of pending/ into the company's folder."""
    file_name = _file_stored_name(document, data)
    new_key = f"{company.tenant_id}/companies/{company.id}/{file_name}"
    if new_key == document.storage_key:
        return
    if storage.exists(new_key):
        # Same receipt filed twice; keep both files
        path = Path(file_name)
        file_name = f"{path.stem}_{str(document.id)[:8]}{path.suffix}"
        new_key = f"{company.tenant_id}/companies/{company.id}/{file_name}"
    try:
        storage.move(document.storage_key, new_key)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not move BizFile {document.id} to {new_key}: {e}")
        return
    document.storage_key = new_key
    document.file_name = file_name


def _get_document(db: Session, document_id: UUID) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise LookupError("Document not found")
    return document


# ============ Full processing ============

def process_bizfile_extraction(
    db: Session,
    document_id: UUID,
    data: ExtractedBizFileData,
    user_id: UUID | None,
    tenant_id: UUID,
    storage: LocalStorage | None = None,
) -> ProcessingResult:
    """Create the company from a BizFile, or update the existing one with the same UEN."""
    data = normalize_extracted_data(data)
    entity = data.entity_details
    document = _get_document(db, document_id)
    
    company = db.query(Company).filter(
        Company.tenant_id == tenant_id,
        Company.uen == entity.uen,
        Company.deleted_at.is_(None),
    ).first()
    created = company is None
    values = _company_values(data)
    
    if created:
        company = Company(tenant_id=tenant_id, uen=entity.uen, **values)
        db.add(company)
        db.flush()
        before = {}
    else:
        before = snapshot(company, COMPANY_AUDIT_FIELDS)
        for key, value in values.items():
            setattr(company, key, value)
    
    _complete_document(db, document, company.id, data)
    
    # Former names
    for former in entity.former_names:
        effective_from = parse_date(former.effective_from)
        exists = db.query(CompanyFormerName).filter(
            CompanyFormerName.company_id == company.id,
            CompanyFormerName.former_name == former.name,
            CompanyFormerName.effective_from == effective_from,
        ).first()
        if not exists:
            db.add(CompanyFormerName(
                company_id=company.id,
                former_name=former.name,
                effective_from=effective_from,
                effective_to=parse_date(former.effective_to),
                source_document_id=document.id,
            ))
    
    # Addresses
    if data.registered_address:
        _replace_address(db, company.id, AddressType.REGISTERED_OFFICE, data.registered_address, document.id)
    if data.mailing_address:
        _replace_address(db, company.id, AddressType.MAILING, data.mailing_address, document.id)
    
    # Share capital
    for entry in data.share_capital:
        number = int(entry.number_of_shares or 0)
        total = entry.total_value
        if total is None and entry.par_value is not None:
            total = number * entry.par_value
        db.add(ShareCapital(
            company_id=company.id,
            share_class=entry.share_class or "ORDINARY",
            currency=entry.currency or DEFAULT_CURRENCY,
            number_of_shares=number,
            par_value=entry.par_value,
            total_value=total or 0,
            is_paid_up=entry.is_paid_up is not False,
            is_treasury=bool(entry.is_treasury),
            source_document_id=document.id,
        ))
    _apply_capital(company, data)
    
    treasury = data.treasury_shares
    if treasury and (treasury.number_of_shares or 0) > 0:
        db.add(ShareCapital(
            company_id=company.id,
            share_class="TREASURY",
            currency=treasury.currency or DEFAULT_CURRENCY,
            number_of_shares=int(treasury.number_of_shares),
            total_value=0,
            is_paid_up=False,
            is_treasury=True,
            source_document_id=document.id,
        ))
    
    # Officers
    for officer in data.officers:
        existing = None if created else _current_officer(db, company.id, officer)
        if existing:
            existing.nationality = officer.nationality or existing.nationality
            existing.address = officer.address or existing.address
            if officer.cessation_date:
                existing.cessation_date = parse_date(officer.cessation_date)
                existing.is_current = False
        else:
            _add_officer(db, company, officer, document.id, user_id)
    
    # Shareholders
    for holder in data.shareholders:
        existing = None if created else _current_shareholder(db, company.id, holder)
        if existing:
            existing.share_class = holder.share_class or existing.share_class
            existing.number_of_shares = int(holder.number_of_shares or 0)
            existing.percentage_held = holder.percentage_held
            existing.currency = holder.currency
        else:
            _add_shareholder(db, company, holder, document.id, user_id)
    db.flush()
    if data.shareholders and any(h.percentage_held is None for h in data.shareholders):
        recalculate_percentages(db, company.id)
    
    # Charges
    for charge in data.charges:
        if charge.charge_number and db.query(CompanyCharge).filter(
            CompanyCharge.company_id == company.id,
            CompanyCharge.charge_number == charge.charge_number,
        ).first():
            continue
        db.add(CompanyCharge(
            company_id=company.id,
            charge_number=charge.charge_number,
            charge_type=charge.charge_type,
            description=charge.description,
            charge_holder_name=charge.charge_holder_name or "Unknown",
            amount_secured=charge.amount_secured,
            amount_secured_text=charge.amount_secured_text,
            currency=charge.currency,
            registration_date=parse_date(charge.registration_date),
            discharge_date=parse_date(charge.discharge_date),
            is_fully_discharged=bool(charge.discharge_date),
            source_document_id=document.id,
        ))
    
    ensure_processing_document(db, document.id)
    if storage is not None:
        _move_to_company_folder(storage, document, company, data)
    
    verb = "Created" if created else "Updated"
    create_audit_log(
        db,
        action=AuditAction.CREATE if created else AuditAction.UPDATE,
        entity_type="Company",
        entity_id=company.id,
        entity_name=company.name,
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=company.id,
        summary=f'{verb} company "{company.name}" (UEN: {company.uen}) from BizFile extraction',
        change_source=ChangeSource.BIZFILE_UPLOAD,
        changes=None if created else compute_changes(before, snapshot(company, COMPANY_AUDIT_FIELDS)),
        metadata={
            "document_id": str(document.id),
            "officers": len(data.officers),
            "shareholders": len(data.shareholders),
            "charges": len(data.charges),
        },
    )
    db.flush()
    logger.info(f"{verb} company {company.uen} from BizFile document {document.id}")
    return ProcessingResult(company_id=company.id, created=created)


# ============ Selective processing ============

def _apply_field(db: Session, company: Company, field: str, data: ExtractedBizFileData, document_id: UUID) -> None:
    entity = data.entity_details
    ssic = data.ssic_activities
    compliance = data.compliance
    
    if field == "name":
        company.name = entity.name
    elif field == "formerName":
        company.former_name = entity.former_name
    elif field == "entityType":
        company.entity_type = map_entity_type(entity.entity_type).value
    elif field == "status":
        company.status = map_company_status(entity.status).value
    elif field == "statusDate":
        company.status_date = parse_date(entity.status_date)
    elif field == "incorporationDate":
        company.incorporation_date = parse_date(entity.incorporation_date)
    elif field == "primarySsicCode":
        company.primary_ssic_code = ssic.primary.code if ssic.primary else None
    elif field == "primarySsicDescription":
        company.primary_ssic_description = ssic.primary.description if ssic.primary else None
    elif field == "secondarySsicCode":
        company.secondary_ssic_code = ssic.secondary.code if ssic.secondary else None
    elif field == "secondarySsicDescription":
        company.secondary_ssic_description = ssic.secondary.description if ssic.secondary else None
    elif field == "registeredAddress":
        _replace_address(db, company.id, AddressType.REGISTERED_OFFICE, data.registered_address, document_id)
        company.date_of_address = parse_date(data.registered_address.effective_from)
    elif field == "lastAgmDate":
        company.last_agm_date = parse_date(compliance.last_agm_date)
    elif field == "lastArFiledDate":
        company.last_ar_filed_date = parse_date(compliance.last_ar_filed_date)
    elif field == "accountsDueDate":
        company.accounts_due_date = parse_date(compliance.accounts_due_date)
    elif field == "financialYearEnd":
        company.financial_year_end_day = data.financial_year.end_day
        company.financial_year_end_month = data.financial_year.end_month
    elif field in ("paidUpCapital", "issuedCapital"):
        _apply_capital(company, data)


def process_bizfile_extraction_selective(
    db: Session,
    document_id: UUID,
    data: ExtractedBizFileData,
    user_id: UUID | None,
    tenant_id: UUID,
    company_id: UUID,
    officer_actions: list[OfficerAction] | None = None,
) -> SelectiveResult:
    """Apply only what changed between the stored company and the BizFile."""
    data = normalize_extracted_data(data)
    document = _get_document(db, document_id)
    diff = generate_bizfile_diff(db, company_id, data, tenant_id)
    company = db.query(Company).filter(Company.id == company_id).first()
    result = SelectiveResult(company_id=company.id)
    
    if not diff.has_differences:
        _complete_document(db, document, company.id, data)
        ensure_processing_document(db, document.id)
        logger.info(f"BizFile {document.id} matches company {company.uen}; nothing to update")
        return result
    
    # Company fields
    before = snapshot(company, COMPANY_AUDIT_FIELDS)
    for field_diff in diff.differences:
        _apply_field(db, company, field_diff.field, data, document.id)
        result.updated_fields.append(field_diff.label)
    
    # Officers
    actions = {str(a.officer_id): a for a in (officer_actions or [])}
    for officer_diff in diff.officer_diffs:
        if officer_diff.type == "added":
            _add_officer(db, company, officer_diff.extracted, document.id, user_id)
            result.officer_changes["added"] += 1
        elif officer_diff.type == "updated":
            row = db.query(CompanyOfficer).filter(CompanyOfficer.id == officer_diff.officer_id).first()
            row.role = officer_diff.role
            row.nationality = officer_diff.extracted.nationality or row.nationality
            row.address = officer_diff.extracted.address or row.address
            result.officer_changes["updated"] += 1
        elif officer_diff.type == "potentially_ceased":
            action = actions.get(str(officer_diff.officer_id))
            if action is None:
                continue
            if action.action == "cease":
                row = db.query(CompanyOfficer).filter(CompanyOfficer.id == officer_diff.officer_id).first()
                row.cessation_date = parse_date(action.cessation_date) or datetime.utcnow()
                row.is_current = False
                result.officer_changes["ceased"] += 1
            elif action.action == "follow_up":
                result.officer_changes["follow_up"] += 1
    
    # Shareholders
    for holder_diff in diff.shareholder_diffs:
        if holder_diff.type == "added":
            _add_shareholder(db, company, holder_diff.extracted, document.id, user_id)
            result.shareholder_changes["added"] += 1
        elif holder_diff.type == "updated":
            row = db.query(CompanyShareholder).filter(CompanyShareholder.id == holder_diff.shareholder_id).first()
            extracted = holder_diff.extracted
            row.share_class = extracted.share_class or "ORDINARY"
            row.number_of_shares = int(extracted.number_of_shares or 0)
            row.percentage_held = extracted.percentage_held
            row.currency = extracted.currency or row.currency
            row.nationality = extracted.nationality or row.nationality
            row.address = extracted.address or row.address
            result.shareholder_changes["updated"] += 1
        elif holder_diff.type == "removed":
            row = db.query(CompanyShareholder).filter(CompanyShareholder.id == holder_diff.shareholder_id).first()
            row.is_current = False
            result.shareholder_changes["removed"] += 1
    db.flush()
    
    if any(result.shareholder_changes.values()):
        recalculate_percentages(db, company.id)
    
    _complete_document(db, document, company.id, data)
    ensure_processing_document(db, document.id)
    
    # Audit
    if result.updated_fields:
        create_audit_log(
            db,
            action=AuditAction.UPDATE,
            entity_type="Company",
            entity_id=company.id,
            entity_name=company.name,
            tenant_id=tenant_id,
            user_id=user_id,
            company_id=company.id,
            summary=f"Updated company from BizFile: {', '.join(result.updated_fields)}",
            change_source=ChangeSource.BIZFILE_UPLOAD,
            changes=compute_changes(before, snapshot(company, COMPANY_AUDIT_FIELDS)),
            metadata={"document_id": str(document.id)},
        )
    oc = result.officer_changes
    if oc["added"] or oc["updated"] or oc["ceased"]:
        create_audit_log(
            db,
            action=AuditAction.UPDATE,
            entity_type="CompanyOfficer",
            entity_id=company.id,
            entity_name=company.name,
            tenant_id=tenant_id,
            user_id=user_id,
            company_id=company.id,
            summary=(
                f"Updated officers from BizFile: {oc['added']} added, "
                f"{oc['updated']} updated, {oc['ceased']} ceased"
            ),
            change_source=ChangeSource.BIZFILE_UPLOAD,
            metadata={"document_id": str(document.id), **oc},
        )
    sc = result.shareholder_changes
    if any(sc.values()):
        create_audit_log(
            db,
            action=AuditAction.UPDATE,
            entity_type="CompanyShareholder",
            entity_id=company.id,
            entity_name=company.name,
            tenant_id=tenant_id,
            user_id=user_id,
            company_id=company.id,
            summary=(
                f"Updated shareholders from BizFile: {sc['added']} added, "
                f"{sc['updated']} updated, {sc['removed']} removed"
            ),
            change_source=ChangeSource.BIZFILE_UPLOAD,
            metadata={"document_id": str(document.id), **sc},
        )
    db.flush()
    logger.info(
        f"Applied BizFile {document.id} to {company.uen}: {len(result.updated_fields)} field(s), "
        f"officers {oc}, shareholders {sc}"
    )
    return result
