"""API tests for BizFile upload, extraction, diff preview and apply."""
import copy
from uuid import UUID

import pytest


@pytest.fixture
def fake_extraction(monkeypatch, bizfile_payload):
    """Replace the vision call; tests edit `payload` to change what the model returns."""
    from corpsec.routers import documents
    from corpsec.services.ai import AIUsage
    from corpsec.services.bizfile.extractor import BizFileExtractionResult
    from corpsec.services.bizfile.types import ExtractedBizFileData
    
    state = {"payload": copy.deepcopy(bizfile_payload), "error": None, "calls": 0}
    
    async def _extract(content, mime_type, model_id=None, additional_context=None):
        state["calls"] += 1
        if state["error"]:
            raise state["error"]
        return BizFileExtractionResult(
            data=ExtractedBizFileData.model_validate(state["payload"]),
            model_used="gpt-4.1",
            provider_used="openai",
            usage=AIUsage(input_tokens=1000, output_tokens=500, total_tokens=1500),
        )
    
    monkeypatch.setattr(documents, "extract_bizfile_with_vision", _extract)
    return state


def _upload(client, headers, content, name="bizfile.pdf", mime_type="application/pdf"):
    return client.post("/api/v1/documents/upload", files={"file": (name, content, mime_type)}, headers=headers)


class TestUpload:
    """Test BizFile uploads."""
    
    def test_upload_pdf(self, client, pdf_bytes, tenant_admin, auth_headers):
        """Test that an upload is stored as a pending document."""
        headers = auth_headers(tenant_admin)
        
        response = _upload(client, headers, pdf_bytes)
        
        assert response.status_code == 201
        body = response.json()
        assert body["file_size"] == len(pdf_bytes)
        
        document = client.get(f"/api/v1/documents/{body['document_id']}", headers=headers).json()
        assert document["extraction_status"] == "PENDING"
        assert document["company_id"] is None
    
    def test_upload_rejects_other_types(self, client, tenant_admin, auth_headers):
        """Test that only PDFs and images are accepted."""
        response = _upload(client, auth_headers(tenant_admin), b"hello", name="notes.txt", mime_type="text/plain")
        
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid file type. Allowed types: PDF, PNG, JPG, WEBP"
    
    def test_upload_rejects_empty_file(self, client, tenant_admin, auth_headers):
        """Test that empty files are rejected."""
        response = _upload(client, auth_headers(tenant_admin), b"")
        
        assert response.status_code == 400
    
    def test_super_admin_needs_tenant(self, client, pdf_bytes, super_admin, auth_headers):
        """Test that super admins must say which tenant the upload belongs to."""
        response = _upload(client, auth_headers(super_admin), pdf_bytes)
        
        assert response.status_code == 400
    
    def test_other_tenant_document_not_found(self, client, make_document, other_tenant, tenant_admin, auth_headers):
        """Test tenant isolation for documents."""
        document = make_document(other_tenant)
        
        assert client.get(f"/api/v1/documents/{document.id}", headers=auth_headers(tenant_admin)).status_code == 404


class TestExtract:
    """Test extraction into a company."""
    
    def test_extract_creates_company(self, client, db_session, pdf_bytes, fake_extraction, tenant_admin, auth_headers):
        """Test that extraction creates the company and completes the document."""
        from corpsec.models.company import Company
        
        headers = auth_headers(tenant_admin)
        document_id = _upload(client, headers, pdf_bytes).json()["document_id"]
        
        response = client.post(f"/api/v1/documents/{document_id}/extract", headers=headers)
        
        assert response.status_code == 200
        body = response.json()
        assert body["created"] is True
        assert body["ai_metadata"]["model_used"] == "gpt-4.1"
        assert body["ai_metadata"]["estimated_cost"] == pytest.approx(0.006)
        
        company = db_session.query(Company).filter(Company.id == UUID(body["company_id"])).one()
        assert company.uen == "201912345K"
        
        document = client.get(f"/api/v1/documents/{document_id}", headers=headers).json()
        assert document["extraction_status"] == "COMPLETED"
        assert document["company_id"] == body["company_id"]
        assert document["file_name"] == "BIZFILE_2026-01-05_ACRA250101.pdf"
    
    def test_second_extract_updates_company(self, client, pdf_bytes, fake_extraction, tenant_admin, auth_headers):
        """Test that a BizFile for a known UEN updates rather than duplicates."""
        headers = auth_headers(tenant_admin)
        first = _upload(client, headers, pdf_bytes).json()["document_id"]
        second = _upload(client, headers, pdf_bytes, name="again.pdf").json()["document_id"]
        
        created = client.post(f"/api/v1/documents/{first}/extract", headers=headers).json()
        updated = client.post(f"/api/v1/documents/{second}/extract", headers=headers).json()
        
        assert updated["created"] is False
        assert updated["company_id"] == created["company_id"]
    
    def test_extract_failure_marks_document(self, client, pdf_bytes, fake_extraction, tenant_admin, auth_headers):
        """Test that a failed extraction leaves the document FAILED with the error."""
        headers = auth_headers(tenant_admin)
        document_id = _upload(client, headers, pdf_bytes).json()["document_id"]
        fake_extraction["error"] = ValueError("model returned no JSON")
        
        response = client.post(f"/api/v1/documents/{document_id}/extract", headers=headers)
        
        assert response.status_code == 400
        assert response.json()["detail"] == "Extraction failed: model returned no JSON"
        document = client.get(f"/api/v1/documents/{document_id}", headers=headers).json()
        assert document["extraction_status"] == "FAILED"
        assert document["extraction_error"] == "model returned no JSON"
    
    def test_database_failure_marks_document(
        self, client, db_session, storage, monkeypatch, pdf_bytes, fake_extraction, tenant_admin, auth_headers
    ):
        """Test that a failed save leaves the document FAILED, its file in place, and retryable."""
        from sqlalchemy.exc import OperationalError
        
        from corpsec.models.document import Document
        from corpsec.services.bizfile import processor
        
        headers = auth_headers(tenant_admin)
        document_id = _upload(client, headers, pdf_bytes).json()["document_id"]
        original_key = db_session.query(Document).filter(Document.id == UUID(document_id)).one().storage_key
        
        real_audit = processor.create_audit_log
        
        def failing_audit(*args, **kwargs):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))
        
        monkeypatch.setattr(processor, "create_audit_log", failing_audit)
        response = client.post(f"/api/v1/documents/{document_id}/extract", headers=headers)
        
        assert response.status_code == 400
        assert response.json()["detail"] == "Extraction failed: could not save the extracted data"
        document = db_session.query(Document).filter(Document.id == UUID(document_id)).one()
        assert document.extraction_status == "FAILED"
        assert document.company_id is None
        assert document.storage_key == original_key
        assert storage.exists(original_key)
        
        monkeypatch.setattr(processor, "create_audit_log", real_audit)
        retry = client.post(f"/api/v1/documents/{document_id}/extract", headers=headers)
        
        assert retry.status_code == 200
        assert retry.json()["created"] is True
    
    def test_extract_after_company_deleted(self, client, company, pdf_bytes, fake_extraction, tenant_admin, auth_headers):
        """Test that a BizFile for a soft-deleted company's UEN creates a fresh company."""
        headers = auth_headers(tenant_admin)
        client.request("DELETE", f"/api/v1/companies/{company.id}", json={"reason": "Struck off"}, headers=headers)
        document_id = _upload(client, headers, pdf_bytes).json()["document_id"]
        
        response = client.post(f"/api/v1/documents/{document_id}/extract", headers=headers)
        
        assert response.status_code == 200
        assert response.json()["created"] is True
        assert response.json()["company_id"] != str(company.id)
    
    def test_extract_in_progress_conflict(self, client, make_document, tenant, fake_extraction, tenant_admin, auth_headers):
        """Test that a document being extracted cannot be extracted again."""
        document = make_document(tenant, extraction_status="PROCESSING")
        
        response = client.post(f"/api/v1/documents/{document.id}/extract", headers=auth_headers(tenant_admin))
        
        assert response.status_code == 409
        assert fake_extraction["calls"] == 0
    
    def test_only_uploader_or_admin(self, client, make_document, tenant, company_admin, fake_extraction, auth_headers):
        """Test that other users cannot extract someone else's upload."""
        document = make_document(tenant)
        
        response = client.post(f"/api/v1/documents/{document.id}/extract", headers=auth_headers(company_admin))
        
        assert response.status_code == 403


class TestPreviewAndApply:
    """Test the review flow for updating an existing company."""
    
    @pytest.fixture
    def extracted(self, client, pdf_bytes, fake_extraction, tenant_admin, auth_headers):
        """Company created from a first BizFile, plus a second upload ready for review."""
        headers = auth_headers(tenant_admin)
        first = _upload(client, headers, pdf_bytes).json()["document_id"]
        company_id = client.post(f"/api/v1/documents/{first}/extract", headers=headers).json()["company_id"]
        second = _upload(client, headers, pdf_bytes, name="update.pdf").json()["document_id"]
        return {"headers": headers, "company_id": company_id, "document_id": second}
    
    def test_preview_without_changes(self, client, extracted):
        """Test that the same BizFile shows no differences."""
        response = client.post(
            f"/api/v1/documents/{extracted['document_id']}/preview-diff",
            json={"company_id": extracted["company_id"]},
            headers=extracted["headers"],
        )
        
        assert response.status_code == 200
        assert response.json()["diff"]["has_differences"] is False
    
    def test_preview_then_apply(self, client, db_session, extracted, fake_extraction):
        """Test a rename and a departed secretary through preview and apply."""
        from corpsec.models.company import CompanyOfficer
        
        payload = fake_extraction["payload"]
        payload["entityDetails"]["name"] = "SUNRISE HOLDINGS PTE. LTD."
        payload["officers"] = payload["officers"][:1]
        
        preview = client.post(
            f"/api/v1/documents/{extracted['document_id']}/preview-diff",
            json={"company_id": extracted["company_id"]},
            headers=extracted["headers"],
        ).json()
        
        diff = preview["diff"]
        assert diff["has_differences"] is True
        assert "name" in [d["field"] for d in diff["differences"]]
        ceased = [d for d in diff["officer_diffs"] if d["type"] == "potentially_ceased"]
        assert [d["name"] for d in ceased] == ["Lee Mei Ling"]
        
        response = client.post(
            f"/api/v1/documents/{extracted['document_id']}/apply-update",
            json={
                "company_id": extracted["company_id"],
                "extracted_data": preview["extracted_data"],
                "officer_actions": [
                    {"officer_id": ceased[0]["officer_id"], "action": "cease", "cessation_date": "2026-01-02"},
                ],
                "expected_updated_at": preview["company_updated_at"],
            },
            headers=extracted["headers"],
        )
        
        assert response.status_code == 200
        body = response.json()
        assert "Company Name" in body["updated_fields"]
        assert body["officer_changes"]["ceased"] == 1
        assert body["concurrent_update_warning"] is None
        
        officer = db_session.query(CompanyOfficer).filter(CompanyOfficer.id == UUID(ceased[0]["officer_id"])).one()
        assert officer.is_current is False
    
    def test_apply_uen_mismatch(self, client, extracted, bizfile_payload):
        """Test that data for a different UEN is refused."""
        data = copy.deepcopy(bizfile_payload)
        data["entityDetails"]["uen"] = "202099999Z"
        
        response = client.post(
            f"/api/v1/documents/{extracted['document_id']}/apply-update",
            json={"company_id": extracted["company_id"], "extracted_data": data},
            headers=extracted["headers"],
        )
        
        assert response.status_code == 400
        assert response.json()["detail"] == "UEN mismatch: expected 201912345K, got 202099999Z"
    
    def test_apply_warns_on_concurrent_update(self, client, extracted, bizfile_payload):
        """Test that a stale preview produces a warning but still applies."""
        response = client.post(
            f"/api/v1/documents/{extracted['document_id']}/apply-update",
            json={
                "company_id": extracted["company_id"],
                "extracted_data": bizfile_payload,
                "expected_updated_at": "2000-01-01T00:00:00",
            },
            headers=extracted["headers"],
        )
        
        assert response.status_code == 200
        body = response.json()
        assert body["concurrent_update_warning"] == "Company was modified by another user after the preview was generated"
        assert body["message"] == "No changes detected; company is up to date"
