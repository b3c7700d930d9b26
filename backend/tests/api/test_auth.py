"""API tests for health checks and authentication."""
from datetime import timedelta

PASSWORD = "password123"


class TestHealth:
    """Test health endpoints."""
    
    def test_health(self, client):
        """Test the liveness endpoint."""
        response = client.get("/api/v1/health")
        
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
    
    def test_ready(self, client):
        """Test the readiness endpoint against the test database."""
        response = client.get("/api/v1/health/ready")
        
        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "ok"
    
    def test_root(self, client):
        """Test the root endpoint."""
        assert client.get("/").json()["health"] == "/api/v1/health"


class TestLogin:
    """Test the token endpoint."""
    
    def _login(self, client, email, password=PASSWORD):
        return client.post("/api/v1/auth/token", data={"username": email, "password": password})
    
    def test_login_success(self, client, db_session, tenant_admin):
        """Test that valid credentials return a bearer token and are audited."""
        from corpsec.models.audit import AuditLog
        
        response = self._login(client, "TENANT_ADMIN@example.com")
        
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == "tenant_admin@example.com"
        assert me.json()["last_login_at"] is not None
        
        assert db_session.query(AuditLog).filter(AuditLog.action == "LOGIN").count() == 1
    
    def test_wrong_password(self, client, db_session, tenant_admin):
        """Test that a wrong password is rejected and audited."""
        from corpsec.models.audit import AuditLog
        
        response = self._login(client, "tenant_admin@example.com", "wrong-password")
        
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"
        entry = db_session.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED").one()
        assert entry.reason == "wrong password"
    
    def test_unknown_user(self, client):
        """Test that unknown emails get the same error."""
        response = self._login(client, "nobody@example.com")
        
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"
    
    def test_inactive_user(self, client, make_user, tenant):
        """Test that deactivated users cannot log in."""
        from corpsec.models.user import UserRole
        
        make_user(UserRole.COMPANY_USER, tenant, is_active=False)
        
        assert self._login(client, "company_user@example.com").status_code == 401
    
    def test_suspended_tenant(self, client, make_tenant, make_user):
        """Test that users of a suspended tenant are restricted."""
        from corpsec.models.tenant import TenantStatus
        from corpsec.models.user import UserRole
        
        suspended = make_tenant(name="Dormant Services", status=TenantStatus.SUSPENDED)
        make_user(UserRole.TENANT_ADMIN, suspended)
        
        response = self._login(client, "tenant_admin@example.com")
        
        assert response.status_code == 403
        assert response.json()["detail"] == "Account access restricted"
    
    def test_super_admin_without_tenant(self, client, super_admin):
        """Test that super admins log in without a tenant."""
        assert self._login(client, "super_admin@example.com").status_code == 200


class TestTokens:
    """Test token validation."""
    
    def test_missing_token(self, client):
        """Test that protected endpoints need a token."""
        assert client.get("/api/v1/auth/me").status_code == 401
    
    def test_garbage_token(self, client):
        """Test that invalid tokens are rejected."""
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"
    
    def test_expired_token(self, client, tenant_admin):
        """Test that expired tokens are rejected."""
        from corpsec.routers.auth import create_access_token
        
        token = create_access_token({"sub": str(tenant_admin.id)}, expires_delta=timedelta(minutes=-1))
        
        assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401
    
    def test_deleted_user_token(self, client, db_session, tenant_admin, auth_headers):
        """Test that tokens of soft-deleted users stop working."""
        from datetime import datetime
        
        headers = auth_headers(tenant_admin)
        tenant_admin.deleted_at = datetime.utcnow()
        db_session.commit()
        
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401
    
    def test_logout(self, client, db_session, company_user, auth_headers):
        """Test that logout is audited."""
        from corpsec.models.audit import AuditLog
        
        response = client.post("/api/v1/auth/logout", headers=auth_headers(company_user))
        
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out"}
        assert db_session.query(AuditLog).filter(AuditLog.action == "LOGOUT").count() == 1
