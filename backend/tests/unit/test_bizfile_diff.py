"""Tests for comparing BizFile extractions with stored companies."""
import copy

import pytest


def _load(payload):
    from corpsec.services.bizfile.normalizer import normalize_extracted_data
    from corpsec.services.bizfile.types import ExtractedBizFileData
    
    return normalize_extracted_data(ExtractedBizFileData.model_validate(payload))


@pytest.fixture
def existing_company(db_session, make_document, tenant, bizfile_payload):
    """Company created from the standard BizFile payload."""
    from corpsec.models.company import Company
    from corpsec.services.bizfile.processor import process_bizfile_extraction
    
    document = make_document(tenant)
    result = process_bizfile_extraction(db_session, document.id, _load(bizfile_payload), None, tenant.id)
    db_session.commit()
    return db_session.query(Company).filter(Company.id == result.company_id).first()


class TestCapitalHelpers:
    """Test capital totals and money formatting."""
    
    def test_compute_capital(self):
        """Test that treasury rows are excluded and unpaid rows count as issued only."""
        from corpsec.services.bizfile.diff import compute_capital
        from corpsec.services.bizfile.types import ShareCapitalEntry
        
        entries = [
            ShareCapitalEntry(total_value=1000, currency="USD"),
            ShareCapitalEntry(total_value=500, is_paid_up=False),
            ShareCapitalEntry(total_value=200, is_treasury=True),
        ]
        assert compute_capital(entries) == (1000, 1500, "USD")
        assert compute_capital([]) == (0, 0, "SGD")
    
    def test_format_money(self):
        """Test money formatting."""
        from corpsec.services.bizfile.diff import format_money
        
        assert format_money("SGD", 1000) == "SGD 1,000.00"
        assert format_money(None, 12.5) == "SGD 12.50"
        assert format_money("SGD", None) is None


class TestGenerateDiff:
    """Test field, officer and shareholder diffs."""
    
    def test_no_differences(self, db_session, existing_company, tenant, bizfile_payload):
        """Test that the same BizFile produces no differences."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(bizfile_payload), tenant.id)
        
        assert result.has_differences is False
        assert result.differences == []
        assert result.existing_company == {"name": "Sunrise Trading Pte. Ltd.", "uen": "201912345K"}
    
    def test_field_differences(self, db_session, existing_company, tenant, bizfile_payload):
        """Test changed name, address and AGM date."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["entityDetails"]["name"] = "SUNRISE GLOBAL PTE. LTD."
        payload["registeredAddress"]["postalCode"] = "079904"
        payload["compliance"]["lastAgmDate"] = "2026-06-30"
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        by_field = {d.field: d for d in result.differences}
        
        assert result.has_differences is True
        assert set(by_field) == {"name", "registeredAddress", "lastAgmDate"}
        assert by_field["name"].old_value == "Sunrise Trading Pte. Ltd."
        assert by_field["name"].new_value == "Sunrise Global Pte. Ltd."
        assert by_field["registeredAddress"].category == "address"
        assert by_field["lastAgmDate"].old_value == "2025-06-30"
        assert by_field["lastAgmDate"].new_value == "2026-06-30"
    
    def test_capital_difference(self, db_session, existing_company, tenant, bizfile_payload):
        """Test that capital changes are compared as formatted money."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["shareCapital"][0]["totalValue"] = 150000
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        by_field = {d.field: d for d in result.differences}
        
        assert by_field["paidUpCapital"].old_value == "SGD 100,000.00"
        assert by_field["paidUpCapital"].new_value == "SGD 150,000.00"
        assert "issuedCapital" in by_field
    
    def test_officer_diffs(self, db_session, existing_company, tenant, bizfile_payload):
        """Test added, updated and potentially ceased officers."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["officers"] = [
            dict(payload["officers"][0], role="Managing Director"),
            {"name": "WONG KAI", "role": "Director", "identificationType": "NRIC", "identificationNumber": "S1111111C"},
        ]
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        by_type = {d.type: d for d in result.officer_diffs}
        
        assert by_type["updated"].name == "Tan Ah Kow"
        assert by_type["updated"].match_confidence == "high"
        assert by_type["updated"].changes[0]["old_value"] == "DIRECTOR"
        assert by_type["updated"].changes[0]["new_value"] == "MANAGING_DIRECTOR"
        assert by_type["added"].name == "Wong Kai"
        assert by_type["added"].match_confidence == "low"
        assert by_type["potentially_ceased"].name == "Lee Mei Ling"
        assert by_type["potentially_ceased"].officer_id is not None
        assert result.summary.officers_added == 1
        assert result.summary.officers_updated == 1
        assert result.summary.officers_potentially_ceased == 1
    
    def test_officer_matched_by_name(self, db_session, existing_company, tenant, bizfile_payload):
        """Test that an officer without an id number is matched by name and role."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        del payload["officers"][1]["identificationNumber"]
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        
        assert result.officer_diffs == []
    
    def test_ceased_officer_in_extraction_ignored(self, db_session, existing_company, tenant, bizfile_payload):
        """Test that officers with a cessation date are not matched."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["officers"][1]["cessationDate"] = "2025-12-31"
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        
        assert [d.type for d in result.officer_diffs] == ["potentially_ceased"]
        assert result.officer_diffs[0].name == "Lee Mei Ling"
    
    def test_shareholder_diffs(self, db_session, existing_company, tenant, bizfile_payload):
        """Test updated, added and removed shareholders."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["shareholders"] = [
            dict(payload["shareholders"][0], numberOfShares=70000),
            {"name": "HARBOUR CAPITAL LTD", "type": "CORPORATE", "identificationNumber": "202000002B", "numberOfShares": 30000},
        ]
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id)
        by_type = {d.type: d for d in result.shareholder_diffs}
        
        updated = by_type["updated"]
        assert updated.shareholding_changes["old_shares"] == 60000
        assert updated.shareholding_changes["new_shares"] == 70000
        assert updated.changes[0]["field"] == "numberOfShares"
        assert by_type["added"].name == "Harbour Capital Ltd"
        assert by_type["removed"].name == "Lim Holdings Pte. Ltd."
        assert result.summary.shareholders_removed == 1
    
    def test_to_dict(self, db_session, existing_company, tenant, bizfile_payload):
        """Test the API representation."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        payload = copy.deepcopy(bizfile_payload)
        payload["officers"] = payload["officers"][:1]
        
        result = generate_bizfile_diff(db_session, existing_company.id, _load(payload), tenant.id).to_dict()
        
        assert result["has_differences"] is True
        assert result["summary"]["officers_potentially_ceased"] == 1
        assert result["officer_diffs"][0]["officer_id"]
        assert "extracted" not in result["officer_diffs"][0]
    
    def test_other_tenant_company_not_found(self, db_session, existing_company, other_tenant, bizfile_payload):
        """Test that companies are looked up within the tenant."""
        from corpsec.services.bizfile.diff import generate_bizfile_diff
        
        with pytest.raises(LookupError):
            generate_bizfile_diff(db_session, existing_company.id, _load(bizfile_payload), other_tenant.id)
