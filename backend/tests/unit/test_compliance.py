"""Tests for UEN parsing and annual return status."""
from datetime import date

import pytest


class TestParseUEN:
    """Test UEN classification."""
    
    def test_local_company(self):
        """Test a 9-digit local company UEN."""
        from corpsec.services.compliance import parse_uen
        
        info = parse_uen("201912345K")
        assert info.is_valid is True
        assert info.uen_type == "local_company"
        assert info.year_of_registration == "2019"
    
    def test_business(self):
        """Test an 8-digit business UEN."""
        from corpsec.services.compliance import parse_uen
        
        info = parse_uen("19981234A")
        assert info.is_valid is True
        assert info.uen_type == "business"
        assert info.year_of_registration == "1998"
    
    def test_others(self):
        """Test the T/S prefixed format."""
        from corpsec.services.compliance import parse_uen
        
        info = parse_uen("t08ll1234a")
        assert info.is_valid is True
        assert info.uen_type == "others"
        assert info.year_of_registration == "2008"
    
    @pytest.mark.parametrize("uen", [None, "", "ABC", "2019123456789K"])
    def test_invalid(self, uen):
        """Test values that are not UENs."""
        from corpsec.services.compliance import parse_uen
        
        info = parse_uen(uen)
        assert info.is_valid is False
        assert info.uen_type is None


class TestComplianceStatus:
    """Test AR due date calculation."""
    
    def test_unknown_without_fye(self):
        """Test that a missing FYE month gives unknown."""
        from corpsec.services.compliance import compliance_status
        
        assert compliance_status(None).status == "unknown"
        assert compliance_status(13).status == "unknown"
    
    def test_compliant(self):
        """Test a company well before its AR due date."""
        from corpsec.services.compliance import compliance_status
        
        result = compliance_status(12, today=date(2026, 3, 1))
        assert result.status == "compliant"
        assert result.fye_date == date(2025, 12, 31)
        assert result.ar_due_date == date(2026, 7, 31)
        assert result.days_until_due == 152
    
    def test_due_soon(self):
        """Test a company within 30 days of its AR due date."""
        from corpsec.services.compliance import compliance_status
        
        result = compliance_status(12, today=date(2026, 7, 10))
        assert result.status == "due_soon"
        assert result.days_until_due == 21
    
    def test_overdue(self):
        """Test a company past its AR due date."""
        from corpsec.services.compliance import compliance_status
        
        result = compliance_status(12, today=date(2026, 8, 15))
        assert result.status == "overdue"
        assert result.days_until_due == -15
    
    def test_fye_today_counts_as_passed(self):
        """Test that an FYE ending today is the latest FYE."""
        from corpsec.services.compliance import compliance_status
        
        result = compliance_status(6, today=date(2026, 6, 30))
        assert result.fye_date == date(2026, 6, 30)
        assert result.ar_due_date == date(2027, 1, 30)
    
    def test_month_end_clamped(self):
        """Test that the due date is clamped to the target month's end."""
        from corpsec.services.compliance import compliance_status
        
        result = compliance_status(7, today=date(2026, 9, 1))
        assert result.fye_date == date(2026, 7, 31)
        assert result.ar_due_date == date(2027, 2, 28)
