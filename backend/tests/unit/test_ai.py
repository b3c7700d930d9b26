"""Tests for the AI provider layer."""
import asyncio

import pytest


@pytest.fixture
def no_keys(monkeypatch):
    from corpsec.services import ai
    
    monkeypatch.setattr(ai.settings, "openai_api_key", "")
    monkeypatch.setattr(ai.settings, "anthropic_api_key", "")
    monkeypatch.setattr(ai.settings, "google_ai_api_key", "")
    return ai.settings


class TestModelRegistry:
    """Test model lookup and availability."""
    
    def test_unknown_model(self):
        """Test that unknown ids raise AIProviderError."""
        from corpsec.services.ai import AIProviderError, get_model_config
        
        with pytest.raises(AIProviderError, match="Unknown AI model: nope"):
            get_model_config("nope")
    
    def test_no_provider_configured(self, no_keys):
        """Test that nothing is available without API keys."""
        from corpsec.services.ai import get_best_available_model, list_models
        
        assert get_best_available_model() is None
        assert all(m["available"] is False for m in list_models())
    
    def test_default_model_preferred(self, no_keys, monkeypatch):
        """Test that the configured default wins when its provider has a key."""
        from corpsec.services.ai import get_best_available_model
        
        monkeypatch.setattr(no_keys, "default_ai_model", "gpt-4.1")
        monkeypatch.setattr(no_keys, "openai_api_key", "sk-test")
        
        assert get_best_available_model() == "gpt-4.1"
    
    def test_falls_back_to_configured_provider(self, no_keys, monkeypatch):
        """Test that another provider's model is used when the default has no key."""
        from corpsec.services.ai import get_best_available_model
        
        monkeypatch.setattr(no_keys, "default_ai_model", "gpt-4.1")
        monkeypatch.setattr(no_keys, "anthropic_api_key", "sk-ant-test")
        
        assert get_best_available_model() == "claude-opus-4.5"
    
    def test_unknown_default_uses_fallback(self, no_keys, monkeypatch):
        """Test that an invalid default model id falls back."""
        from corpsec.services.ai import FALLBACK_MODEL, get_default_model
        
        monkeypatch.setattr(no_keys, "default_ai_model", "does-not-exist")
        assert get_default_model() == FALLBACK_MODEL
    
    def test_list_models_fields(self):
        """Test the model listing shape."""
        from corpsec.services.ai import list_models
        
        model = next(m for m in list_models() if m["id"] == "gemini-3-flash")
        assert model["provider"] == "google"
        assert model["supports_vision"] is True
        assert model["input_price_per_million"] == 0.5


class TestCost:
    """Test cost estimates."""
    
    def test_calculate_cost(self):
        """Test per-million pricing."""
        from corpsec.services.ai import calculate_cost, format_cost
        
        cost = calculate_cost("gpt-4.1", 1_000_000, 500_000)
        assert cost == pytest.approx(6.0)
        assert format_cost(cost) == "$6.0000"
    
    def test_unknown_model_costs_nothing(self):
        """Test that unknown models cost zero."""
        from corpsec.services.ai import calculate_cost
        
        assert calculate_cost("nope", 1000, 1000) == 0.0


class TestCallAI:
    """Test provider dispatch with the HTTP layer replaced."""
    
    def test_missing_key(self, no_keys):
        """Test that calling without a key fails clearly."""
        from corpsec.services.ai import AIProviderError, AIRequest, call_ai
        
        request = AIRequest(model="gpt-4.1", system_prompt="s", user_prompt="u")
        with pytest.raises(AIProviderError, match="OpenAI API key not configured"):
            asyncio.run(call_ai(request))
    
    def test_openai_payload(self, no_keys, monkeypatch):
        """Test that PDFs are sent as files and JSON mode is requested."""
        from corpsec.services import ai
        
        monkeypatch.setattr(no_keys, "openai_api_key", "sk-test")
        sent = {}
        
        async def fake_post(provider, url, payload, headers):
            sent.update(provider=provider, payload=payload, headers=headers)
            return {
                "choices": [{"message": {"content": '{"ok": true}'}}],
                "usage": {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
            }
        
        monkeypatch.setattr(ai, "_post", fake_post)
        response = asyncio.run(ai.call_ai(ai.AIRequest(
            model="gpt-4.1",
            system_prompt="system",
            user_prompt="user",
            images=[ai.AIImage(base64="JVBERi0=", mime_type="application/pdf")],
            json_mode=True,
        )))
        
        assert response.content == '{"ok": true}'
        assert response.model == "gpt-4.1"
        assert response.provider == "openai"
        assert response.usage.total_tokens == 120
        assert sent["headers"]["Authorization"] == "Bearer sk-test"
        assert sent["payload"]["response_format"] == {"type": "json_object"}
        assert sent["payload"]["messages"][1]["content"][0]["type"] == "file"
    
    def test_anthropic_json_instruction(self, no_keys, monkeypatch):
        """Test that Anthropic calls append the JSON-only instruction."""
        from corpsec.services import ai
        
        monkeypatch.setattr(no_keys, "anthropic_api_key", "sk-ant-test")
        sent = {}
        
        async def fake_post(provider, url, payload, headers):
            sent.update(payload=payload)
            return {
                "content": [{"type": "text", "text": "{}"}],
                "usage": {"input_tokens": 10, "output_tokens": 5},
            }
        
        monkeypatch.setattr(ai, "_post", fake_post)
        response = asyncio.run(ai.call_ai(ai.AIRequest(
            model="claude-sonnet-4.5",
            system_prompt="system",
            user_prompt="user",
            images=[ai.AIImage(base64="iVBOR", mime_type="image/png")],
            json_mode=True,
        )))
        
        assert response.usage.total_tokens == 15
        assert sent["payload"]["system"].endswith(ai.JSON_ONLY_INSTRUCTION)
        assert sent["payload"]["messages"][0]["content"][0]["type"] == "image"
    
    def test_empty_response(self, no_keys, monkeypatch):
        """Test that an empty completion is an error."""
        from corpsec.services import ai
        
        monkeypatch.setattr(no_keys, "google_ai_api_key", "g-test")
        
        async def fake_post(provider, url, payload, headers):
            return {"candidates": []}
        
        monkeypatch.setattr(ai, "_post", fake_post)
        with pytest.raises(ai.AIProviderError, match="empty response"):
            asyncio.run(ai.call_ai(ai.AIRequest(model="gemini-3", system_prompt="s", user_prompt="u")))
    
    def test_non_json_body(self, no_keys, monkeypatch):
        """Test that a 200 with an HTML body is a provider error."""
        import httpx
        
        from corpsec.services import ai
        
        monkeypatch.setattr(no_keys, "openai_api_key", "sk-test")
        
        async def html_post(self, url, **kwargs):
            return httpx.Response(200, text="<html>Bad gateway</html>", request=httpx.Request("POST", url))
        
        monkeypatch.setattr(httpx.AsyncClient, "post", html_post)
        with pytest.raises(ai.AIProviderError, match="OpenAI returned a non-JSON response"):
            asyncio.run(ai.call_ai(ai.AIRequest(model="gpt-4.1", system_prompt="s", user_prompt="u")))
    
    def test_malformed_payload(self, no_keys, monkeypatch):
        """Test that a JSON body missing the expected fields is a provider error."""
        from corpsec.services import ai
        
        monkeypatch.setattr(no_keys, "openai_api_key", "sk-test")
        
        async def fake_post(provider, url, payload, headers):
            return {"choices": [{"finish_reason": "stop"}]}
        
        monkeypatch.setattr(ai, "_post", fake_post)
        with pytest.raises(ai.AIProviderError, match="OpenAI returned a malformed response"):
            asyncio.run(ai.call_ai(ai.AIRequest(model="gpt-4.1", system_prompt="s", user_prompt="u")))
