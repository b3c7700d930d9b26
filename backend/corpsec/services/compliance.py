"""UEN parsing and annual return compliance status."""
import calendar
import re
from dataclasses import dataclass
from datetime import date


@dataclass
class UENInfo:
    """Parsed Unique Entity Number."""
    is_valid: bool
    uen_type: str | None = None  # business, local_company, others
    year_of_registration: str | None = None


@dataclass
class ComplianceStatus:
    """Annual return filing status for a company."""
    status: str  # compliant, due_soon, overdue, unknown
    fye_date: date | None = None
    ar_due_date: date | None = None
    days_until_due: int | None = None


UEN_BUSINESS = re.compile(r"^\d{8}[A-Z]$")
UEN_LOCAL_COMPANY = re.compile(r"^\d{9}[A-Z]$")
UEN_OTHERS = re.compile(r"^[A-Z]\d{2}[A-Z]{2}\d{4}[A-Z]$")

AR_DUE_MONTHS = 7
DUE_SOON_DAYS = 30


def parse_uen(uen: str | None) -> UENInfo:
    """Classify a UEN and derive its year of registration."""
    if not uen:
        return UENInfo(is_valid=False)
    uen = uen.strip().upper()
    
    if UEN_BUSINESS.match(uen):
        return UENInfo(True, "business", uen[:4])
    if UEN_LOCAL_COMPANY.match(uen):
        return UENInfo(True, "local_company", uen[:4])
    if UEN_OTHERS.match(uen):
        return UENInfo(True, "others", "20" + uen[1:3])
    return UENInfo(is_valid=False)


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _add_months(value: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compliance_status(fye_month: int | None, today: date | None = None) -> ComplianceStatus:
    """
    Annual return status from the financial year end month.
    
    The last FYE is the end of that month this year, or last year when
    this year's has not passed yet. The AR is due seven months later.
    """
    if not fye_month or not 1 <= fye_month <= 12:
        return ComplianceStatus(status="unknown")
    
    today = today or date.today()
    fye = _month_end(today.year, fye_month)
    if fye > today:
        fye = _month_end(today.year - 1, fye_month)
    
    ar_due = _add_months(fye, AR_DUE_MONTHS)
    days = (ar_due - today).days
    
    if days < 0:
        status = "overdue"
    elif days <= DUE_SOON_DAYS:
        status = "due_soon"
    else:
        status = "compliant"
    
    return ComplianceStatus(status=status, fye_date=fye, ar_due_date=ar_due, days_until_due=days)
