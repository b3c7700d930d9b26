"""Tests for file storage and page metadata."""
from uuid import uuid4

import pytest


class TestLocalStorage:
    """Test the filesystem storage backend."""
    
    def test_upload_download(self, storage):
        """Test storing and reading back a file."""
        key = storage.upload("tenant/companies/c1/file.pdf", b"content")
        
        assert key == "tenant/companies/c1/file.pdf"
        assert storage.exists(key)
        assert storage.download(key) == b"content"
    
    def test_missing_file(self, storage):
        """Test that missing keys raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            storage.download("nope/missing.pdf")
    
    def test_move_and_delete(self, storage):
        """Test moving a file to a new key and deleting it."""
        storage.upload("pending/a.pdf", b"x")
        storage.move("pending/a.pdf", "t/companies/c/b.pdf")
        
        assert not storage.exists("pending/a.pdf")
        assert storage.exists("t/companies/c/b.pdf")
        
        storage.delete("t/companies/c/b.pdf")
        storage.delete("t/companies/c/b.pdf")  # no-op when already gone
        assert not storage.exists("t/companies/c/b.pdf")
    
    def test_key_cannot_escape_root(self, storage):
        """Test that path traversal is rejected."""
        with pytest.raises(ValueError, match="escapes root"):
            storage.upload("../outside.txt", b"x")
    
    def test_key_layout(self):
        """Test the per-tenant key helpers."""
        from corpsec.services.storage import company_key, pending_key, processing_key
        
        tenant_id, company_id = uuid4(), uuid4()
        assert pending_key(tenant_id, ".pdf").startswith(f"pending/{tenant_id}/")
        assert company_key(tenant_id, company_id, ".png").startswith(f"{tenant_id}/companies/{company_id}/")
        assert processing_key(tenant_id, company_id, ".pdf").endswith(".pdf")
    
    def test_sha256(self):
        """Test content hashing."""
        from corpsec.services.storage import sha256_bytes
        
        assert sha256_bytes(b"abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestPageMetadata:
    """Test page counting for PDFs and images."""
    
    def test_pdf_pages(self, pdf_bytes):
        """Test page count and size of a PDF."""
        from corpsec.services.pages import read_page_metadata
        
        meta = read_page_metadata(pdf_bytes, "application/pdf")
        
        assert meta.page_count == 2
        assert meta.pages[0].page_number == 1
        assert meta.pages[0].width == 595
        assert meta.pages[1].height == 842
    
    def test_image_page(self, png_bytes):
        """Test that an image is a single page."""
        from corpsec.services.pages import read_page_metadata
        
        meta = read_page_metadata(png_bytes, "image/png")
        
        assert meta.page_count == 1
        assert meta.pages_as_dicts() == [
            {"page_number": 1, "width": 120, "height": 80, "has_text_layer": False}
        ]
    
    def test_unreadable_file(self):
        """Test that corrupt files give None instead of raising."""
        from corpsec.services.pages import read_page_metadata
        
        assert read_page_metadata(b"not an image", "image/png") is None
        assert read_page_metadata(b"not a pdf", "application/pdf") is None
    
    def test_extract_pdf_text(self, pdf_bytes):
        """Test text layer extraction."""
        from corpsec.services.pages import extract_pdf_text
        
        text = extract_pdf_text(pdf_bytes)
        assert "BUSINESS PROFILE" in text
        assert "OFFICERS" in text
