"""Tests for BizFile data parsing and normalization."""
from datetime import datetime

import pytest


class TestExtractedData:
    """Test parsing of the camelCase extraction JSON."""
    
    def test_parse_payload(self, bizfile_payload):
        """Test that camelCase keys map to snake_case attributes."""
        from corpsec.services.bizfile.types import ExtractedBizFileData
        
        data = ExtractedBizFileData.model_validate(bizfile_payload)
        
        assert data.entity_details.uen == "201912345K"
        assert data.registered_address.street_name == "ANSON ROAD"
        assert data.financial_year.end_month == 12
        assert len(data.officers) == 2
        assert data.document_metadata.receipt_no == "ACRA250101"
    
    def test_money_strings_parsed(self, bizfile_payload):
        """Test that formatted amounts become floats."""
        from corpsec.services.bizfile.types import ExtractedBizFileData
        
        bizfile_payload["shareCapital"][0]["totalValue"] = "SGD 1,250.50"
        data = ExtractedBizFileData.model_validate(bizfile_payload)
        
        assert data.share_capital[0].total_value == 1250.50
        assert data.share_capital[0].number_of_shares == 100000.0
    
    def test_unparseable_number_is_none(self):
        """Test that garbage numbers are dropped rather than rejected."""
        from corpsec.services.bizfile.types import ShareCapitalEntry
        
        entry = ShareCapitalEntry.model_validate({"numberOfShares": "n/a"})
        assert entry.number_of_shares is None
    
    def test_to_json_round_trip_keys(self, bizfile_payload):
        """Test that to_json emits camelCase and drops empty values."""
        from corpsec.services.bizfile.types import ExtractedBizFileData
        
        result = ExtractedBizFileData.model_validate(bizfile_payload).to_json()
        
        assert "entityDetails" in result
        assert "formerName" not in result["entityDetails"]
        assert result["registeredAddress"]["postalCode"] == "079903"
    
    def test_missing_entity_details_rejected(self):
        """Test that the entity section is required."""
        from pydantic import ValidationError
        from corpsec.services.bizfile.types import ExtractedBizFileData
        
        with pytest.raises(ValidationError):
            ExtractedBizFileData.model_validate({"officers": []})


class TestValueMappings:
    """Test registry value mapping."""
    
    def test_entity_type(self):
        """Test entity type labels."""
        from corpsec.models.company import EntityType
        from corpsec.services.bizfile.types import map_entity_type
        
        assert map_entity_type("Private Company Limited by Shares") == EntityType.PRIVATE_LIMITED
        assert map_entity_type("exempt private company limited by shares") == EntityType.EXEMPTED_PRIVATE_LIMITED
        assert map_entity_type("LLP") == EntityType.LIMITED_LIABILITY_PARTNERSHIP
        assert map_entity_type("Something else") == EntityType.OTHER
        assert map_entity_type(None) == EntityType.OTHER
    
    def test_company_status(self):
        """Test status labels."""
        from corpsec.models.company import CompanyStatus
        from corpsec.services.bizfile.types import map_company_status
        
        assert map_company_status("Live Company") == CompanyStatus.LIVE
        assert map_company_status("struck  off") == CompanyStatus.STRUCK_OFF
        assert map_company_status("") == CompanyStatus.OTHER
    
    def test_officer_role_defaults_to_director(self):
        """Test that unknown roles map to director."""
        from corpsec.models.company import OfficerRole
        from corpsec.services.bizfile.types import map_officer_role
        
        assert map_officer_role("Company Secretary") == OfficerRole.SECRETARY
        assert map_officer_role("Chief Executive Officer") == OfficerRole.CEO
        assert map_officer_role("Nominee") == OfficerRole.DIRECTOR
    
    def test_identification_type(self):
        """Test identification type mapping."""
        from corpsec.models.contact import IdentificationType
        from corpsec.services.bizfile.types import map_identification_type
        
        assert map_identification_type("nric") == IdentificationType.NRIC
        assert map_identification_type("Driving Licence") == IdentificationType.OTHER
        assert map_identification_type(None) is None
    
    def test_contact_type(self):
        """Test shareholder type mapping."""
        from corpsec.models.contact import ContactType
        from corpsec.services.bizfile.types import map_contact_type
        
        assert map_contact_type("corporate") == ContactType.CORPORATE
        assert map_contact_type(None) == ContactType.INDIVIDUAL


class TestNormalizer:
    """Test currency, date and address helpers."""
    
    @pytest.mark.parametrize("value,expected", [
        ("S$", "SGD"),
        ("SGD$", "SGD"),
        ("Singapore Dollars", "SGD"),
        ("usd", "USD"),
        (None, None),
        ("  ", None),
    ])
    def test_normalize_currency(self, value, expected):
        """Test currency code normalization."""
        from corpsec.services.bizfile.normalizer import normalize_currency
        
        assert normalize_currency(value) == expected
    
    @pytest.mark.parametrize("value", ["2024-03-15", "15/03/2024", "15 Mar 2024", "15 March 2024"])
    def test_parse_date_formats(self, value):
        """Test the accepted date formats."""
        from corpsec.services.bizfile.normalizer import parse_date
        
        assert parse_date(value) == datetime(2024, 3, 15)
    
    def test_parse_date_invalid(self):
        """Test blanks and garbage."""
        from corpsec.services.bizfile.normalizer import parse_date, format_date
        
        assert parse_date("") is None
        assert parse_date("not a date") is None
        assert format_date(None) is None
        assert format_date("15/03/2024") == "2024-03-15"
    
    def test_build_full_address(self):
        """Test the single-line address layout."""
        from corpsec.services.bizfile.normalizer import build_full_address
        from corpsec.services.bizfile.types import ExtractedAddress
        
        address = ExtractedAddress(
            block="10",
            street_name="ANSON ROAD",
            level="10",
            unit="01",
            building_name="INTERNATIONAL PLAZA",
            postal_code="079903",
        )
        assert build_full_address(address) == "10 Anson Road #10-01 International Plaza Singapore 079903"
    
    def test_build_full_address_unit_only(self):
        """Test an address with a unit but no level."""
        from corpsec.services.bizfile.normalizer import build_full_address
        from corpsec.services.bizfile.types import ExtractedAddress
        
        address = ExtractedAddress(street_name="Orchard Road", unit="#05", postal_code="238801")
        assert build_full_address(address) == "Orchard Road #05 Singapore 238801"
        assert build_full_address(ExtractedAddress(postal_code="238801")) == "Singapore 238801"
        assert build_full_address(None) is None
    
    def test_normalize_extracted_data(self, bizfile_payload):
        """Test that names and addresses are title-cased on a copy."""
        from corpsec.services.bizfile.normalizer import normalize_extracted_data
        from corpsec.services.bizfile.types import ExtractedBizFileData
        
        data = ExtractedBizFileData.model_validate(bizfile_payload)
        result = normalize_extracted_data(data)
        
        assert result.entity_details.name == "Sunrise Trading Pte. Ltd."
        assert result.officers[0].name == "Tan Ah Kow"
        assert result.officers[0].nationality == "Singapore Citizen"
        assert result.shareholders[1].name == "Lim Holdings Pte. Ltd."
        assert result.registered_address.street_name == "Anson Road"
        assert result.share_capital[0].currency == "SGD"
        # Original untouched
        assert data.entity_details.name == "SUNRISE TRADING PTE. LTD."
