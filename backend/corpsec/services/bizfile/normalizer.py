"""Cleanup of AI-extracted BizFile data before it is compared or saved."""
import re
from datetime import datetime, date

from corpsec.models.contact import ContactType
from corpsec.services.bizfile.types import (
    ExtractedAddress, ExtractedBizFileData, map_contact_type,
)
from corpsec.services.naming import normalize_name, normalize_company_name, normalize_address

CURRENCY_NAMES = {
    "SINGAPORE DOLLAR": "SGD",
    "SINGAPORE DOLLARS": "SGD",
    "S": "SGD",
}

DEFAULT_CURRENCY = "SGD"


def normalize_currency(value: str | None) -> str | None:
    """ISO code from values like "sgd", "SGD$", "S$" or "Singapore Dollars"."""
    if not value or not value.strip():
        return None
    upper = value.strip().upper()
    
    compact = re.sub(r"[^A-Z]", "", upper)
    if len(compact) == 3:
        return compact
    
    name = re.sub(r"[^A-Z]+", " ", upper).strip()
    for token in name.split():
        if len(token) == 3:
            return token
    if name in CURRENCY_NAMES:
        return CURRENCY_NAMES[name]
    return upper


def parse_date(value: str | date | None) -> datetime | None:
    """datetime from an ISO date string; None for blanks or garbage."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = value.strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d %b %Y", "%d %B %Y"):
        try:
            return datetime.strptime(text[:10] if fmt == "%Y-%m-%d" else text, fmt)
        except ValueError:
            continue
    return None


def format_date(value: str | date | None) -> str | None:
    """YYYY-MM-DD or None."""
    parsed = parse_date(value)
    return parsed.strftime("%Y-%m-%d") if parsed else None


def build_full_address(address: ExtractedAddress | None) -> str | None:
    """Single-line Singapore address: block, street, #level-unit, building, postal code."""
    if address is None:
        return None
    parts = []
    if address.block:
        parts.append(address.block)
    if address.street_name:
        parts.append(address.street_name)
    
    level = (address.level or "").lstrip("#")
    unit = address.unit or ""
    if level and unit:
        parts.append(f"#{level}-{unit}")
    elif unit:
        parts.append(f"#{unit.lstrip('#')}")
    
    if address.building_name:
        parts.append(address.building_name)
    
    line = normalize_address(" ".join(parts)) if parts else None
    if address.postal_code:
        line = f"{line} Singapore {address.postal_code}" if line else f"Singapore {address.postal_code}"
    return line


def _normalize_address_section(address: ExtractedAddress | None) -> None:
    if address is None:
        return
    address.street_name = normalize_address(address.street_name)
    address.building_name = normalize_address(address.building_name)


def normalize_extracted_data(data: ExtractedBizFileData) -> ExtractedBizFileData:
    """Title-case names and addresses and normalize currencies; returns a copy."""
    result = data.model_copy(deep=True)
    
    entity = result.entity_details
    entity.name = normalize_company_name(entity.name) or entity.name
    entity.former_name = normalize_company_name(entity.former_name)
    for former in entity.former_names:
        former.name = normalize_company_name(former.name) or former.name
    
    if result.ssic_activities:
        for activity in (result.ssic_activities.primary, result.ssic_activities.secondary):
            if activity:
                activity.description = normalize_company_name(activity.description)
    
    _normalize_address_section(result.registered_address)
    _normalize_address_section(result.mailing_address)
    
    for capital in (result.paid_up_capital, result.issued_capital):
        if capital:
            capital.currency = normalize_currency(capital.currency) or DEFAULT_CURRENCY
    for entry in result.share_capital:
        entry.currency = normalize_currency(entry.currency) or DEFAULT_CURRENCY
    if result.treasury_shares:
        result.treasury_shares.currency = normalize_currency(result.treasury_shares.currency)
    if result.home_currency:
        result.home_currency = normalize_currency(result.home_currency)
    
    for officer in result.officers:
        officer.name = normalize_name(officer.name) or officer.name
        officer.nationality = normalize_company_name(officer.nationality)
        officer.address = normalize_address(officer.address)
    
    for holder in result.shareholders:
        if map_contact_type(holder.type) == ContactType.CORPORATE:
            holder.name = normalize_company_name(holder.name) or holder.name
        else:
            holder.name = normalize_name(holder.name) or holder.name
        holder.nationality = normalize_company_name(holder.nationality)
        holder.place_of_origin = normalize_company_name(holder.place_of_origin)
        holder.address = normalize_address(holder.address)
        holder.currency = normalize_currency(holder.currency)
    
    if result.auditor:
        result.auditor.name = normalize_company_name(result.auditor.name)
        result.auditor.address = normalize_address(result.auditor.address)
    
    for charge in result.charges:
        charge.charge_holder_name = normalize_company_name(charge.charge_holder_name)
        charge.description = normalize_company_name(charge.description)
        charge.currency = normalize_currency(charge.currency)
    
    return result
