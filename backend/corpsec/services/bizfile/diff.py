"""Compare extracted BizFile data against the stored company record."""
import logging
from uuid import UUID

from sqlalchemy.orm import Session

from corpsec.models.company import (
    Company, CompanyAddress, CompanyOfficer, CompanyShareholder, AddressType,
)
from corpsec.services.bizfile.normalizer import build_full_address, format_date
from corpsec.services.bizfile.types import (
    DiffResult, DiffSummary, ExtractedBizFileData, FieldDiff, OfficerDiff, ShareholderDiff,
    ShareCapitalEntry, map_company_status, map_contact_type, map_entity_type,
    map_identification_type, map_officer_role,
)

logger = logging.getLogger(__name__)

DEFAULT_SHARE_CLASS = "ORDINARY"


def _text(value) -> str | None:
    if value is None:
        return None
    if hasattr(value, "value"):
        value = value.value
    text = str(value)
    return text if text != "" else None


def _name_key(name: str | None) -> str:
    return " ".join((name or "").lower().split())


def format_money(currency: str | None, amount: float | None) -> str | None:
    if amount is None:
        return None
    return f"{currency or 'SGD'} {amount:,.2f}"


def compute_capital(entries: list[ShareCapitalEntry]) -> tuple[float, float, str]:
    """(paid_up, issued, currency) from share capital rows, treasury excluded."""
    paid_up = sum((e.total_value or 0) for e in entries if e.is_paid_up is not False and not e.is_treasury)
    issued = sum((e.total_value or 0) for e in entries if not e.is_treasury)
    currency = (entries[0].currency if entries else None) or "SGD"
    return paid_up, issued, currency


class _FieldComparer:
    """Collects FieldDiffs for values that differ and are not both empty."""
    
    def __init__(self):
        self.differences: list[FieldDiff] = []
    
    def compare(self, field: str, label: str, old, new, category: str) -> None:
        old_text = _text(old)
        new_text = _text(new)
        if old_text != new_text and (old_text or new_text):
            self.differences.append(FieldDiff(field, label, old_text, new_text, category))


def _compare_company_fields(db: Session, company: Company, data: ExtractedBizFileData) -> list[FieldDiff]:
    diff = _FieldComparer()
    entity = data.entity_details
    
    # Entity
    diff.compare("name", "Company Name", company.name, entity.name, "entity")
    if entity.former_name:
        diff.compare("formerName", "Former Name", company.former_name, entity.former_name, "entity")
    if entity.entity_type:
        diff.compare("entityType", "Entity Type", company.entity_type, map_entity_type(entity.entity_type), "entity")
    if entity.status:
        diff.compare("status", "Status", company.status, map_company_status(entity.status), "entity")
    if entity.status_date:
        diff.compare("statusDate", "Status Date", format_date(company.status_date), format_date(entity.status_date), "entity")
    if entity.incorporation_date:
        diff.compare(
            "incorporationDate", "Incorporation Date",
            format_date(company.incorporation_date), format_date(entity.incorporation_date), "entity",
        )
    
    # SSIC
    if data.ssic_activities:
        primary = data.ssic_activities.primary
        secondary = data.ssic_activities.secondary
        diff.compare("primarySsicCode", "Primary SSIC Code", company.primary_ssic_code, primary.code if primary else None, "ssic")
        diff.compare(
            "primarySsicDescription", "Primary SSIC Description",
            company.primary_ssic_description, primary.description if primary else None, "ssic",
        )
        diff.compare("secondarySsicCode", "Secondary SSIC Code", company.secondary_ssic_code, secondary.code if secondary else None, "ssic")
        diff.compare(
            "secondarySsicDescription", "Secondary SSIC Description",
            company.secondary_ssic_description, secondary.description if secondary else None, "ssic",
        )
    
    # Registered address
    if data.registered_address:
        current = db.query(CompanyAddress).filter(
            CompanyAddress.company_id == company.id,
            CompanyAddress.address_type == AddressType.REGISTERED_OFFICE,
            CompanyAddress.is_current.is_(True),
        ).first()
        diff.compare(
            "registeredAddress", "Registered Address",
            current.full_address if current else None, build_full_address(data.registered_address), "address",
        )
    
    # Compliance
    if data.compliance:
        diff.compare("lastAgmDate", "Last AGM Date", format_date(company.last_agm_date), format_date(data.compliance.last_agm_date), "compliance")
        diff.compare(
            "lastArFiledDate", "Last AR Filed Date",
            format_date(company.last_ar_filed_date), format_date(data.compliance.last_ar_filed_date), "compliance",
        )
        diff.compare(
            "accountsDueDate", "Accounts Due Date",
            format_date(company.accounts_due_date), format_date(data.compliance.accounts_due_date), "compliance",
        )
    
    fy = data.financial_year
    if fy and fy.end_day and fy.end_month:
        old_fye = None
        if company.financial_year_end_day and company.financial_year_end_month:
            old_fye = f"Day {company.financial_year_end_day}, Month {company.financial_year_end_month}"
        diff.compare("financialYearEnd", "Financial Year End", old_fye, f"Day {fy.end_day}, Month {fy.end_month}", "compliance")
    
    # Capital
    if data.share_capital:
        paid_up, issued, currency = compute_capital(data.share_capital)
        diff.compare(
            "paidUpCapital", "Paid Up Capital",
            format_money(company.paid_up_capital_currency, company.paid_up_capital_amount),
            format_money(currency, paid_up), "capital",
        )
        diff.compare(
            "issuedCapital", "Issued Capital",
            format_money(company.issued_capital_currency, company.issued_capital_amount),
            format_money(currency, issued), "capital",
        )
    
    return diff.differences


def _diff_officers(db: Session, company_id: UUID, data: ExtractedBizFileData) -> list[OfficerDiff]:
    existing = db.query(CompanyOfficer).filter(
        CompanyOfficer.company_id == company_id,
        CompanyOfficer.is_current.is_(True),
    ).all()
    matched: set[UUID] = set()
    diffs: list[OfficerDiff] = []
    
    for officer in data.officers:
        if officer.cessation_date:
            continue
        role = map_officer_role(officer.role)
        id_type = map_identification_type(officer.identification_type)
        match, confidence = None, "low"
        
        if officer.identification_number:
            wanted = officer.identification_number.strip().upper()
            for row in existing:
                if row.id in matched or not row.identification_number:
                    continue
                same_type = not id_type or not row.identification_type or row.identification_type == id_type
                if row.identification_number.strip().upper() == wanted and same_type:
                    match, confidence = row, "high"
                    break
        
        if match is None:
            for row in existing:
                if row.id not in matched and _name_key(row.name) == _name_key(officer.name) and row.role == role:
                    match, confidence = row, "medium"
                    break
        
        if match is None:
            diffs.append(OfficerDiff(
                type="added", name=officer.name, role=role.value, match_confidence="low",
                identification_number=officer.identification_number, extracted=officer,
            ))
            continue
        
        matched.add(match.id)
        if match.role != role:
            diffs.append(OfficerDiff(
                type="updated", name=officer.name, role=role.value, match_confidence=confidence,
                officer_id=match.id, identification_number=officer.identification_number,
                changes=[{"field": "role", "label": "Role", "old_value": match.role, "new_value": role.value}],
                extracted=officer,
            ))
    
    for row in existing:
        if row.id not in matched:
            diffs.append(OfficerDiff(
                type="potentially_ceased", name=row.name, role=row.role, match_confidence="high",
                officer_id=row.id, identification_number=row.identification_number,
            ))
    return diffs


def _diff_shareholders(db: Session, company_id: UUID, data: ExtractedBizFileData) -> list[ShareholderDiff]:
    existing = db.query(CompanyShareholder).filter(
        CompanyShareholder.company_id == company_id,
        CompanyShareholder.is_current.is_(True),
    ).all()
    matched: set[UUID] = set()
    diffs: list[ShareholderDiff] = []
    
    for holder in data.shareholders:
        holder_type = map_contact_type(holder.type)
        match, confidence = None, "low"
        
        if holder.identification_number:
            wanted = holder.identification_number.strip().upper()
            for row in existing:
                if (
                    row.id not in matched
                    and row.identification_number
                    and row.identification_number.strip().upper() == wanted
                    and row.shareholder_type == holder_type
                ):
                    match, confidence = row, "high"
                    break
        
        if match is None:
            for row in existing:
                if (
                    row.id not in matched
                    and _name_key(row.name) == _name_key(holder.name)
                    and row.shareholder_type == holder_type
                ):
                    match, confidence = row, "medium"
                    break
        
        if match is None:
            diffs.append(ShareholderDiff(
                type="added", name=holder.name, match_confidence="low",
                identification_number=holder.identification_number, extracted=holder,
            ))
            continue
        
        matched.add(match.id)
        new_class = holder.share_class or DEFAULT_SHARE_CLASS
        new_shares = int(holder.number_of_shares or 0)
        changes = []
        if (match.share_class or DEFAULT_SHARE_CLASS) != new_class:
            changes.append({"field": "shareClass", "label": "Share Class", "old_value": match.share_class, "new_value": new_class})
        if int(match.number_of_shares or 0) != new_shares:
            changes.append({
                "field": "numberOfShares", "label": "Number of Shares",
                "old_value": int(match.number_of_shares or 0), "new_value": new_shares,
            })
        if changes:
            diffs.append(ShareholderDiff(
                type="updated", name=holder.name, match_confidence=confidence,
                shareholder_id=match.id, identification_number=holder.identification_number,
                changes=changes,
                shareholding_changes={
                    "old_shares": int(match.number_of_shares or 0),
                    "new_shares": new_shares,
                    "old_share_class": match.share_class,
                    "new_share_class": new_class,
                },
                extracted=holder,
            ))
    
    for row in existing:
        if row.id not in matched:
            diffs.append(ShareholderDiff(
                type="removed", name=row.name, match_confidence="high",
                shareholder_id=row.id, identification_number=row.identification_number,
            ))
    return diffs


def generate_bizfile_diff(
    db: Session,
    company_id: UUID,
    data: ExtractedBizFileData,
    tenant_id: UUID,
) -> DiffResult:
    """Field, officer and shareholder differences between a company and a BizFile."""
    company = db.query(Company).filter(
        Company.id == company_id,
        Company.tenant_id == tenant_id,
        Company.deleted_at.is_(None),
    ).first()
    if not company:
        raise LookupError("Company not found")
    
    differences = _compare_company_fields(db, company, data)
    officer_diffs = _diff_officers(db, company.id, data)
    shareholder_diffs = _diff_shareholders(db, company.id, data)
    
    summary = DiffSummary(
        officers_added=sum(1 for d in officer_diffs if d.type == "added"),
        officers_updated=sum(1 for d in officer_diffs if d.type == "updated"),
        officers_potentially_ceased=sum(1 for d in officer_diffs if d.type == "potentially_ceased"),
        shareholders_added=sum(1 for d in shareholder_diffs if d.type == "added"),
        shareholders_updated=sum(1 for d in shareholder_diffs if d.type == "updated"),
        shareholders_removed=sum(1 for d in shareholder_diffs if d.type == "removed"),
    )
    result = DiffResult(
        has_differences=bool(differences or officer_diffs or shareholder_diffs),
        existing_company={"name": company.name, "uen": company.uen},
        differences=differences,
        officer_diffs=officer_diffs,
        shareholder_diffs=shareholder_diffs,
        summary=summary,
    )
    logger.info(
        f"BizFile diff for {company.uen}: {len(differences)} field(s), "
        f"{len(officer_diffs)} officer change(s), {len(shareholder_diffs)} shareholder change(s)"
    )
    return result
