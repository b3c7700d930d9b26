"""API tests for generated documents."""


class TestGeneratedDocuments:
    """Test the draft, edit and finalize lifecycle."""
    
    def _create(self, client, headers, company, **fields):
        payload = {"title": "Directors' Resolution", "content": "RESOLVED THAT ...", "company_id": str(company.id)}
        payload.update(fields)
        return client.post("/api/v1/generated-documents", json=payload, headers=headers)
    
    def test_create_draft(self, client, company, tenant, tenant_admin, auth_headers):
        """Test that new documents start as drafts in the company's tenant."""
        response = self._create(client, auth_headers(tenant_admin), company, metadata={"template": "dr-01"})
        
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "DRAFT"
        assert body["tenant_id"] == str(tenant.id)
        assert body["metadata"] == {"template": "dr-01"}
    
    def test_edit_then_finalize(self, client, db_session, company, tenant_admin, auth_headers):
        """Test that drafts can be edited until finalized."""
        from corpsec.models.audit import AuditLog
        
        headers = auth_headers(tenant_admin)
        document_id = self._create(client, headers, company).json()["id"]
        url = f"/api/v1/generated-documents/{document_id}"
        
        edited = client.patch(url, json={"title": "Members' Resolution"}, headers=headers)
        assert edited.status_code == 200
        assert edited.json()["title"] == "Members' Resolution"
        
        final = client.post(f"{url}/finalize", headers=headers)
        assert final.status_code == 200
        assert final.json()["status"] == "FINALIZED"
        assert final.json()["finalized_by_id"] == str(tenant_admin.id)
        
        locked = client.patch(url, json={"content": "changed"}, headers=headers)
        assert locked.status_code == 400
        assert locked.json()["detail"] == "Only draft documents can be edited"
        assert client.post(f"{url}/finalize", headers=headers).status_code == 400
        
        actions = {entry.action for entry in db_session.query(AuditLog).all()}
        assert {"DOCUMENT_GENERATED", "UPDATE", "DOCUMENT_FINALIZED"} <= actions
    
    def test_content_is_not_copied_into_audit(self, client, db_session, company, tenant_admin, auth_headers):
        """Test that content edits are logged without the content itself."""
        from corpsec.models.audit import AuditLog
        
        headers = auth_headers(tenant_admin)
        document_id = self._create(client, headers, company).json()["id"]
        
        client.patch(f"/api/v1/generated-documents/{document_id}", json={"content": "Private terms"}, headers=headers)
        
        entry = db_session.query(AuditLog).filter(AuditLog.action == "UPDATE").one()
        assert entry.changes == {"content": {"old": None, "new": None}}
    
    def test_company_user_cannot_finalize(self, client, company, company_user, assign, tenant_admin, auth_headers):
        """Test that read-only users cannot finalize."""
        assign(company_user, company)
        document_id = self._create(client, auth_headers(tenant_admin), company).json()["id"]
        
        response = client.post(
            f"/api/v1/generated-documents/{document_id}/finalize", headers=auth_headers(company_user)
        )
        
        assert response.status_code == 403
    
    def test_list_and_delete(self, client, company, tenant_admin, auth_headers):
        """Test listing by status and soft delete."""
        headers = auth_headers(tenant_admin)
        first = self._create(client, headers, company).json()["id"]
        self._create(client, headers, company, title="Notice of AGM")
        client.post(f"/api/v1/generated-documents/{first}/finalize", headers=headers)
        
        drafts = client.get("/api/v1/generated-documents", params={"status": "DRAFT"}, headers=headers).json()
        assert [d["title"] for d in drafts] == ["Notice of AGM"]
        
        assert client.delete(f"/api/v1/generated-documents/{first}", headers=headers).status_code == 200
        assert client.get(f"/api/v1/generated-documents/{first}", headers=headers).status_code == 404
    
    def test_other_tenant_not_found(self, client, make_company, make_user, other_tenant, company, tenant_admin, auth_headers):
        """Test tenant isolation."""
        from corpsec.models.user import UserRole
        
        document_id = self._create(client, auth_headers(tenant_admin), company).json()["id"]
        outsider = make_user(UserRole.TENANT_ADMIN, other_tenant, email="admin@other.example.com")
        
        response = client.get(f"/api/v1/generated-documents/{document_id}", headers=auth_headers(outsider))
        
        assert response.status_code == 404
