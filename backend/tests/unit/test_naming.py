"""Tests for name, address and slug normalization."""
import pytest


class TestNormalizeCompanyName:
    """Test company name title-casing."""
    
    def test_private_limited_suffix(self):
        """Test that Pte. Ltd. is title-cased with its punctuation."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name("TAN HOLDINGS PTE. LTD.") == "Tan Holdings Pte. Ltd."
    
    def test_single_letter_in_brackets_kept(self):
        """Test that (S) stays upper case."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name("SUNRISE (S) PTE LTD") == "Sunrise (S) Pte Ltd"
    
    def test_connectors_lower_cased(self):
        """Test that connectors after the first word are lower case."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name("BANK OF SINGAPORE") == "Bank of Singapore"
        assert normalize_company_name("THE ART COMPANY") == "The Art Company"
    
    def test_acronyms_and_roman_numerals(self):
        """Test that acronyms and roman numerals stay upper case."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name("ALPHA II FUND VCC") == "Alpha II Fund VCC"
    
    def test_mixed_case_unchanged(self):
        """Test that already mixed-case names are returned as-is."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name("McKinsey & Company") == "McKinsey & Company"
    
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_none(self, value):
        """Test that blank input gives None."""
        from corpsec.services.naming import normalize_company_name
        
        assert normalize_company_name(value) is None


class TestNormalizeName:
    """Test personal name title-casing."""
    
    def test_basic_name(self):
        """Test an all-caps name."""
        from corpsec.services.naming import normalize_name
        
        assert normalize_name("TAN AH KOW") == "Tan Ah Kow"
    
    def test_particles_lower_cased(self):
        """Test Malay and Indian name particles."""
        from corpsec.services.naming import normalize_name
        
        assert normalize_name("MUHAMMAD BIN ABDULLAH") == "Muhammad bin Abdullah"
        assert normalize_name("RAJ S/O KUMAR") == "Raj s/o Kumar"
    
    def test_apostrophe(self):
        """Test that the letter after an apostrophe is capitalized."""
        from corpsec.services.naming import normalize_name
        
        assert normalize_name("O'BRIEN") == "O'Brien"
    
    def test_whitespace_collapsed(self):
        """Test that extra whitespace is removed."""
        from corpsec.services.naming import normalize_name
        
        assert normalize_name("  LIM   MEI  LING ") == "Lim Mei Ling"


class TestNormalizeAddress:
    """Test address title-casing."""
    
    def test_unit_numbers_kept(self):
        """Test that unit numbers and postal codes are untouched."""
        from corpsec.services.naming import normalize_address
        
        result = normalize_address("10 ANSON ROAD #10-01 INTERNATIONAL PLAZA")
        assert result == "10 Anson Road #10-01 International Plaza"
    
    def test_postal_code(self):
        """Test a postal code suffix."""
        from corpsec.services.naming import normalize_address
        
        assert normalize_address("SINGAPORE 079903") == "Singapore 079903"


class TestSlugify:
    """Test slug generation."""
    
    def test_slugify(self):
        """Test punctuation removal and hyphenation."""
        from corpsec.services.naming import slugify
        
        assert slugify("Acme Corp & Sons!") == "acme-corp-sons"
        assert slugify("  Already-slugged  ") == "already-slugged"
