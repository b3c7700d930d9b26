"""API tests for the AI model registry endpoint."""


class TestModels:
    """Test model listing."""
    
    def test_no_provider_configured(self, client, company_user, auth_headers):
        """Test that models are listed as unavailable without API keys."""
        response = client.get("/api/v1/ai/models", headers=auth_headers(company_user))
        
        assert response.status_code == 200
        body = response.json()
        assert body["default_model"] == "gpt-5.2"
        assert body["best_available_model"] is None
        assert not any(model["available"] for model in body["models"])
    
    def test_configured_provider(self, client, monkeypatch, company_user, auth_headers):
        """Test that configuring a provider makes its models available."""
        from corpsec.services import ai
        
        monkeypatch.setattr(ai.settings, "anthropic_api_key", "sk-ant-test")
        
        body = client.get("/api/v1/ai/models", headers=auth_headers(company_user)).json()
        
        assert body["best_available_model"] == "claude-opus-4.5"
        available = {model["id"] for model in body["models"] if model["available"]}
        assert available == {"claude-opus-4.5", "claude-sonnet-4.5"}
    
    def test_requires_login(self, client):
        """Test that the registry is not public."""
        assert client.get("/api/v1/ai/models").status_code == 401
