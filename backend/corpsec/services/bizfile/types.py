"""Extracted BizFile data model, registry value mappings and diff result types."""
import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from corpsec.models.company import EntityType, CompanyStatus, OfficerRole
from corpsec.models.contact import ContactType, IdentificationType


def _to_number(value: Any) -> float | None:
    """Accept numbers or strings like "SGD 1,000.50"; None when unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^\d.\-]", "", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


Number = Annotated[float | None, BeforeValidator(_to_number)]


class _Section(BaseModel):
    """camelCase JSON in, snake_case attributes out."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class FormerName(_Section):
    name: str
    effective_from: str | None = None
    effective_to: str | None = None


class EntityDetails(_Section):
    uen: str
    name: str
    former_name: str | None = None
    date_of_name_change: str | None = None
    former_names: list[FormerName] = []
    entity_type: str | None = None
    status: str | None = None
    status_date: str | None = None
    incorporation_date: str | None = None
    registration_date: str | None = None


class SsicActivity(_Section):
    code: str | None = None
    description: str | None = None


class SsicActivities(_Section):
    primary: SsicActivity | None = None
    secondary: SsicActivity | None = None


class ExtractedAddress(_Section):
    block: str | None = None
    street_name: str | None = None
    level: str | None = None
    unit: str | None = None
    building_name: str | None = None
    postal_code: str | None = None
    effective_from: str | None = None


class CapitalAmount(_Section):
    amount: Number = None
    currency: str | None = None


class ShareCapitalEntry(_Section):
    share_class: str | None = None
    currency: str | None = None
    number_of_shares: Number = None
    par_value: Number = None
    total_value: Number = None
    is_paid_up: bool | None = None  # treated as paid up when absent
    is_treasury: bool | None = None


class TreasuryShares(_Section):
    number_of_shares: Number = None
    currency: str | None = None


class ExtractedShareholder(_Section):
    name: str
    type: str | None = None  # INDIVIDUAL or CORPORATE
    identification_type: str | None = None
    identification_number: str | None = None
    nationality: str | None = None
    place_of_origin: str | None = None
    address: str | None = None
    share_class: str | None = None
    number_of_shares: Number = None
    percentage_held: Number = None
    currency: str | None = None


class ExtractedOfficer(_Section):
    name: str
    role: str | None = None
    identification_type: str | None = None
    identification_number: str | None = None
    nationality: str | None = None
    address: str | None = None
    appointment_date: str | None = None
    cessation_date: str | None = None


class ExtractedAuditor(_Section):
    name: str | None = None
    address: str | None = None
    appointment_date: str | None = None


class FinancialYear(_Section):
    end_day: int | None = None
    end_month: int | None = None


class ExtractedCompliance(_Section):
    last_agm_date: str | None = None
    last_ar_filed_date: str | None = None
    accounts_due_date: str | None = None
    fye_as_at_last_ar: str | None = None


class ExtractedCharge(_Section):
    charge_number: str | None = None
    charge_type: str | None = None
    description: str | None = None
    charge_holder_name: str | None = None
    amount_secured: Number = None
    amount_secured_text: str | None = None
    currency: str | None = None
    registration_date: str | None = None
    discharge_date: str | None = None


class DocumentMetadata(_Section):
    receipt_no: str | None = None
    receipt_date: str | None = None


class ExtractedBizFileData(_Section):
    """Structured content of a BizFile business profile."""
    entity_details: EntityDetails
    ssic_activities: SsicActivities | None = None
    registered_address: ExtractedAddress | None = None
    mailing_address: ExtractedAddress | None = None
    paid_up_capital: CapitalAmount | None = None
    issued_capital: CapitalAmount | None = None
    share_capital: list[ShareCapitalEntry] = []
    treasury_shares: TreasuryShares | None = None
    shareholders: list[ExtractedShareholder] = []
    officers: list[ExtractedOfficer] = []
    auditor: ExtractedAuditor | None = None
    financial_year: FinancialYear | None = None
    home_currency: str | None = None
    compliance: ExtractedCompliance | None = None
    charges: list[ExtractedCharge] = []
    document_metadata: DocumentMetadata | None = None
    
    def to_json(self) -> dict:
        """camelCase dict suitable for JSON columns and API responses."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============ Value mappings ============

ENTITY_TYPE_MAP = {
    "PRIVATE_LIMITED": EntityType.PRIVATE_LIMITED,
    "PRIVATE LIMITED": EntityType.PRIVATE_LIMITED,
    "PRIVATE COMPANY LIMITED BY SHARES": EntityType.PRIVATE_LIMITED,
    "EXEMPTED_PRIVATE_LIMITED": EntityType.EXEMPTED_PRIVATE_LIMITED,
    "EXEMPTED PRIVATE LIMITED": EntityType.EXEMPTED_PRIVATE_LIMITED,
    "EXEMPT PRIVATE LIMITED": EntityType.EXEMPTED_PRIVATE_LIMITED,
    "EXEMPT PRIVATE COMPANY LIMITED BY SHARES": EntityType.EXEMPTED_PRIVATE_LIMITED,
    "EXEMPTED PRIVATE COMPANY LIMITED BY SHARES": EntityType.EXEMPTED_PRIVATE_LIMITED,
    "PUBLIC_LIMITED": EntityType.PUBLIC_LIMITED,
    "PUBLIC LIMITED": EntityType.PUBLIC_LIMITED,
    "PUBLIC COMPANY LIMITED BY SHARES": EntityType.PUBLIC_LIMITED,
    "PUBLIC_COMPANY_LIMITED_BY_GUARANTEE": EntityType.PUBLIC_COMPANY_LIMITED_BY_GUARANTEE,
    "PUBLIC COMPANY LIMITED BY GUARANTEE": EntityType.PUBLIC_COMPANY_LIMITED_BY_GUARANTEE,
    "SOLE_PROPRIETORSHIP": EntityType.SOLE_PROPRIETORSHIP,
    "SOLE PROPRIETORSHIP": EntityType.SOLE_PROPRIETORSHIP,
    "PARTNERSHIP": EntityType.PARTNERSHIP,
    "LIMITED_PARTNERSHIP": EntityType.LIMITED_PARTNERSHIP,
    "LIMITED PARTNERSHIP": EntityType.LIMITED_PARTNERSHIP,
    "LIMITED_LIABILITY_PARTNERSHIP": EntityType.LIMITED_LIABILITY_PARTNERSHIP,
    "LIMITED LIABILITY PARTNERSHIP": EntityType.LIMITED_LIABILITY_PARTNERSHIP,
    "LLP": EntityType.LIMITED_LIABILITY_PARTNERSHIP,
    "FOREIGN_COMPANY": EntityType.FOREIGN_COMPANY,
    "FOREIGN COMPANY": EntityType.FOREIGN_COMPANY,
    "VARIABLE_CAPITAL_COMPANY": EntityType.VARIABLE_CAPITAL_COMPANY,
    "VARIABLE CAPITAL COMPANY": EntityType.VARIABLE_CAPITAL_COMPANY,
    "VCC": EntityType.VARIABLE_CAPITAL_COMPANY,
}

COMPANY_STATUS_MAP = {
    "LIVE": CompanyStatus.LIVE,
    "LIVE COMPANY": CompanyStatus.LIVE,
    "STRUCK_OFF": CompanyStatus.STRUCK_OFF,
    "STRUCK OFF": CompanyStatus.STRUCK_OFF,
    "WINDING_UP": CompanyStatus.WINDING_UP,
    "WINDING UP": CompanyStatus.WINDING_UP,
    "DISSOLVED": CompanyStatus.DISSOLVED,
    "IN_LIQUIDATION": CompanyStatus.IN_LIQUIDATION,
    "IN LIQUIDATION": CompanyStatus.IN_LIQUIDATION,
    "IN_RECEIVERSHIP": CompanyStatus.IN_RECEIVERSHIP,
    "IN RECEIVERSHIP": CompanyStatus.IN_RECEIVERSHIP,
    "AMALGAMATED": CompanyStatus.AMALGAMATED,
    "CONVERTED": CompanyStatus.CONVERTED,
}

OFFICER_ROLE_MAP = {
    "DIRECTOR": OfficerRole.DIRECTOR,
    "MANAGING_DIRECTOR": OfficerRole.MANAGING_DIRECTOR,
    "MANAGING DIRECTOR": OfficerRole.MANAGING_DIRECTOR,
    "ALTERNATE_DIRECTOR": OfficerRole.ALTERNATE_DIRECTOR,
    "ALTERNATE DIRECTOR": OfficerRole.ALTERNATE_DIRECTOR,
    "SECRETARY": OfficerRole.SECRETARY,
    "COMPANY SECRETARY": OfficerRole.SECRETARY,
    "CEO": OfficerRole.CEO,
    "CHIEF EXECUTIVE OFFICER": OfficerRole.CEO,
    "CFO": OfficerRole.CFO,
    "CHIEF FINANCIAL OFFICER": OfficerRole.CFO,
    "AUDITOR": OfficerRole.AUDITOR,
    "LIQUIDATOR": OfficerRole.LIQUIDATOR,
    "RECEIVER": OfficerRole.RECEIVER,
    "JUDICIAL_MANAGER": OfficerRole.JUDICIAL_MANAGER,
    "JUDICIAL MANAGER": OfficerRole.JUDICIAL_MANAGER,
}

ID_TYPES = {t.value for t in IdentificationType}


def _key(value: str | None) -> str:
    return " ".join((value or "").upper().split())


def map_entity_type(value: str | None) -> EntityType:
    return ENTITY_TYPE_MAP.get(_key(value), EntityType.OTHER)


def map_company_status(value: str | None) -> CompanyStatus:
    return COMPANY_STATUS_MAP.get(_key(value), CompanyStatus.OTHER)


def map_officer_role(value: str | None) -> OfficerRole:
    return OFFICER_ROLE_MAP.get(_key(value), OfficerRole.DIRECTOR)


def map_contact_type(value: str | None) -> ContactType:
    return ContactType.CORPORATE if _key(value) == "CORPORATE" else ContactType.INDIVIDUAL


def map_identification_type(value: str | None) -> IdentificationType | None:
    key = _key(value)
    if not key:
        return None
    return IdentificationType(key) if key in ID_TYPES else IdentificationType.OTHER


# ============ Diff and processing results ============

DiffCategory = Literal["entity", "ssic", "address", "compliance", "capital"]
MatchConfidence = Literal["high", "medium", "low"]


@dataclass
class FieldDiff:
    """A company field whose stored value differs from the extracted one."""
    field: str
    label: str
    old_value: str | None
    new_value: str | None
    category: DiffCategory


@dataclass
class OfficerDiff:
    type: Literal["added", "updated", "potentially_ceased"]
    name: str
    role: str
    match_confidence: MatchConfidence
    officer_id: UUID | None = None
    identification_number: str | None = None
    changes: list[dict] = field(default_factory=list)
    extracted: ExtractedOfficer | None = None
    
    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "officer_id": str(self.officer_id) if self.officer_id else None,
            "name": self.name,
            "role": self.role,
            "identification_number": self.identification_number,
            "match_confidence": self.match_confidence,
            "changes": self.changes,
        }


@dataclass
class ShareholderDiff:
    type: Literal["added", "updated", "removed"]
    name: str
    match_confidence: MatchConfidence
    shareholder_id: UUID | None = None
    identification_number: str | None = None
    changes: list[dict] = field(default_factory=list)
    shareholding_changes: dict | None = None
    extracted: ExtractedShareholder | None = None
    
    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "shareholder_id": str(self.shareholder_id) if self.shareholder_id else None,
            "name": self.name,
            "identification_number": self.identification_number,
            "match_confidence": self.match_confidence,
            "changes": self.changes,
            "shareholding_changes": self.shareholding_changes,
        }


@dataclass
class DiffSummary:
    officers_added: int = 0
    officers_updated: int = 0
    officers_potentially_ceased: int = 0
    shareholders_added: int = 0
    shareholders_updated: int = 0
    shareholders_removed: int = 0


@dataclass
class DiffResult:
    """Comparison of extracted BizFile data with the stored company."""
    has_differences: bool
    existing_company: dict
    differences: list[FieldDiff] = field(default_factory=list)
    officer_diffs: list[OfficerDiff] = field(default_factory=list)
    shareholder_diffs: list[ShareholderDiff] = field(default_factory=list)
    summary: DiffSummary = field(default_factory=DiffSummary)
    
    def to_dict(self) -> dict:
        return {
            "has_differences": self.has_differences,
            "existing_company": self.existing_company,
            "differences": [vars(d).copy() for d in self.differences],
            "officer_diffs": [d.to_dict() for d in self.officer_diffs],
            "shareholder_diffs": [d.to_dict() for d in self.shareholder_diffs],
            "summary": vars(self.summary).copy(),
        }


@dataclass
class OfficerAction:
    """User decision for an officer missing from the new BizFile."""
    officer_id: UUID
    action: Literal["cease", "follow_up"]
    cessation_date: str | None = None


@dataclass
class ProcessingResult:
    company_id: UUID
    created: bool


@dataclass
class SelectiveResult:
    company_id: UUID
    created: bool = False
    updated_fields: list[str] = field(default_factory=list)
    officer_changes: dict = field(default_factory=lambda: {"added": 0, "updated": 0, "ceased": 0, "follow_up": 0})
    shareholder_changes: dict = field(default_factory=lambda: {"added": 0, "updated": 0, "removed": 0})
