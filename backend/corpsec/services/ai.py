"""AI provider layer: model registry, cost tracking and vision/JSON calls over HTTP."""
import logging
from dataclasses import dataclass, field

import httpx

from corpsec.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class AIProviderError(ValueError):
    """Provider missing, misconfigured or returned an unusable response."""


class ExtractionError(ValueError):
    """AI output could not be turned into structured data."""


@dataclass(frozen=True)
class AIModelConfig:
    """Registry entry for a supported model."""
    id: str
    name: str
    provider: str  # openai, anthropic, google
    provider_model_id: str
    input_price_per_million: float
    output_price_per_million: float
    supports_vision: bool = True
    supports_temperature: bool = True
    max_tokens: int = 8192


AI_MODELS: dict[str, AIModelConfig] = {
    "gpt-5.2": AIModelConfig("gpt-5.2", "GPT-5.2", "openai", "gpt-5.2", 1.75, 14.0, supports_temperature=False, max_tokens=16384),
    "gpt-4.1": AIModelConfig("gpt-4.1", "GPT-4.1", "openai", "gpt-4.1", 2.0, 8.0, max_tokens=16384),
    "claude-opus-4.5": AIModelConfig("claude-opus-4.5", "Claude Opus 4.5", "anthropic", "claude-opus-4-5-20251101", 5.0, 25.0, max_tokens=4096),
    "claude-sonnet-4.5": AIModelConfig("claude-sonnet-4.5", "Claude Sonnet 4.5", "anthropic", "claude-sonnet-4-5-20250929", 3.0, 15.0, max_tokens=4096),
    "gemini-3": AIModelConfig("gemini-3", "Gemini 3 Pro", "google", "gemini-3-pro-preview", 2.5, 10.0),
    "gemini-3-flash": AIModelConfig("gemini-3-flash", "Gemini 3 Flash", "google", "gemini-3-flash-preview", 0.5, 3.0),
}

FALLBACK_MODEL = "gpt-5.2"

PROVIDER_NAMES = {"openai": "OpenAI", "anthropic": "Anthropic", "google": "Google AI"}

JSON_ONLY_INSTRUCTION = (
    "IMPORTANT: You must respond with valid JSON only. "
    "Do not include any text outside the JSON object."
)


@dataclass
class AIImage:
    """Base64 file attachment (image or PDF)."""
    base64: str
    mime_type: str


@dataclass
class AIRequest:
    model: str
    system_prompt: str
    user_prompt: str
    images: list[AIImage] = field(default_factory=list)
    json_mode: bool = False
    temperature: float = 0.1
    max_tokens: int | None = None


@dataclass
class AIUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass
class AIResponse:
    content: str
    model: str
    provider: str
    usage: AIUsage


# ============ Registry ============

def _provider_key(provider: str) -> str:
    return {
        "openai": settings.openai_api_key,
        "anthropic": settings.anthropic_api_key,
        "google": settings.google_ai_api_key,
    }.get(provider, "")


def is_provider_available(provider: str) -> bool:
    return bool(_provider_key(provider))


def get_model_config(model_id: str) -> AIModelConfig:
    config = AI_MODELS.get(model_id)
    if not config:
        raise AIProviderError(f"Unknown AI model: {model_id}")
    return config


def get_default_model() -> str:
    if settings.default_ai_model in AI_MODELS:
        return settings.default_ai_model
    return FALLBACK_MODEL


def get_best_available_model() -> str | None:
    """Default model if its provider is configured, else the first usable one."""
    default = get_default_model()
    if is_provider_available(AI_MODELS[default].provider):
        return default
    for model_id, config in AI_MODELS.items():
        if is_provider_available(config.provider):
            return model_id
    return None


def list_models() -> list[dict]:
    return [
        {
            "id": config.id,
            "name": config.name,
            "provider": config.provider,
            "available": is_provider_available(config.provider),
            "supports_vision": config.supports_vision,
            "input_price_per_million": config.input_price_per_million,
            "output_price_per_million": config.output_price_per_million,
        }
        for config in AI_MODELS.values()
    ]


def calculate_cost(model_id: str, input_tokens: int, output_tokens: int) -> float:
    """Estimated USD cost for a call; 0 for unknown models."""
    config = AI_MODELS.get(model_id)
    if not config:
        return 0.0
    return (
        input_tokens / 1_000_000 * config.input_price_per_million
        + output_tokens / 1_000_000 * config.output_price_per_million
    )


def format_cost(cost: float) -> str:
    return f"${cost:.4f}"


# ============ Provider calls ============

async def _post(provider: str, url: str, payload: dict, headers: dict) -> dict:
    try:
        async with httpx.AsyncClient(timeout=settings.ai_timeout_seconds) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"{PROVIDER_NAMES[provider]} request failed: {e}")
        raise AIProviderError(f"{PROVIDER_NAMES[provider]} request failed: {e}") from e
    
    if response.status_code != 200:
        logger.error(f"{PROVIDER_NAMES[provider]} returned {response.status_code}: {response.text[:500]}")
        raise AIProviderError(f"{PROVIDER_NAMES[provider]} API error ({response.status_code})")
    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"{PROVIDER_NAMES[provider]} returned a non-JSON body: {response.text[:500]}")
        raise AIProviderError(f"{PROVIDER_NAMES[provider]} returned a non-JSON response") from e
    if not isinstance(data, dict):
        raise AIProviderError(f"{PROVIDER_NAMES[provider]} returned an unexpected response")
    return data


async def _call_openai(config: AIModelConfig, request: AIRequest, api_key: str) -> AIResponse:
    content: list[dict] = []
    for image in request.images:
        data_url = f"data:{image.mime_type};base64,{image.base64}"
        if image.mime_type == "application/pdf":
            content.append({"type": "file", "file": {"filename": "document.pdf", "file_data": data_url}})
        else:
            content.append({"type": "image_url", "image_url": {"url": data_url, "detail": "high"}})
    content.append({"type": "text", "text": request.user_prompt})
    
    payload = {
        "model": config.provider_model_id,
        "messages": [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": content},
        ],
        "max_completion_tokens": request.max_tokens or config.max_tokens,
    }
    if config.supports_temperature:
        payload["temperature"] = request.temperature
    if request.json_mode:
        payload["response_format"] = {"type": "json_object"}
    
    data = await _post(
        "openai",
        "https://api.openai.com/v1/chat/completions",
        payload,
        {"Authorization": f"Bearer {api_key}"},
    )
    choices = data.get("choices") or []
    text = choices[0]["message"].get("content") if choices else None
    usage = data.get("usage") or {}
    return AIResponse(
        content=text or "",
        model=config.id,
        provider="openai",
        usage=AIUsage(
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        ),
    )


async def _call_anthropic(config: AIModelConfig, request: AIRequest, api_key: str) -> AIResponse:
    content: list[dict] = []
    for image in request.images:
        source = {"type": "base64", "media_type": image.mime_type, "data": image.base64}
        block_type = "document" if image.mime_type == "application/pdf" else "image"
        content.append({"type": block_type, "source": source})
    content.append({"type": "text", "text": request.user_prompt})
    
    system_prompt = request.system_prompt
    if request.json_mode:
        system_prompt = f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTION}"
    
    data = await _post(
        "anthropic",
        "https://api.anthropic.com/v1/messages",
        {
            "model": config.provider_model_id,
            "max_tokens": request.max_tokens or config.max_tokens,
            "temperature": request.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": content}],
        },
        {"x-api-key": api_key, "anthropic-version": "2023-06-01"},
    )
    text = "".join(block.get("text", "") for block in data.get("content", []) if block.get("type") == "text")
    usage = data.get("usage") or {}
    input_tokens = usage.get("input_tokens", 0)
    output_tokens = usage.get("output_tokens", 0)
    return AIResponse(
        content=text,
        model=config.id,
        provider="anthropic",
        usage=AIUsage(input_tokens, output_tokens, input_tokens + output_tokens),
    )


async def _call_google(config: AIModelConfig, request: AIRequest, api_key: str) -> AIResponse:
    parts: list[dict] = [
        {"inline_data": {"mime_type": image.mime_type, "data": image.base64}}
        for image in request.images
    ]
    parts.append({"text": request.user_prompt})
    
    generation_config = {
        "temperature": request.temperature,
        "maxOutputTokens": request.max_tokens or config.max_tokens,
    }
    if request.json_mode:
        generation_config["responseMimeType"] = "application/json"
    
    data = await _post(
        "google",
        f"https://generativelanguage.googleapis.com/v1beta/models/{config.provider_model_id}:generateContent",
        {
            "systemInstruction": {"parts": [{"text": request.system_prompt}]},
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        },
        {"x-goog-api-key": api_key},
    )
    candidates = data.get("candidates") or []
    text = ""
    if candidates:
        text = "".join(p.get("text", "") for p in candidates[0].get("content", {}).get("parts", []))
    usage = data.get("usageMetadata") or {}
    return AIResponse(
        content=text,
        model=config.id,
        provider="google",
        usage=AIUsage(
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
            total_tokens=usage.get("totalTokenCount", 0),
        ),
    )


PROVIDER_CALLS = {
    "openai": _call_openai,
    "anthropic": _call_anthropic,
    "google": _call_google,
}


async def call_ai(request: AIRequest) -> AIResponse:
    """Send a prompt (with optional attachments) to the model's provider."""
    config = get_model_config(request.model)
    api_key = _provider_key(config.provider)
    if not api_key:
        raise AIProviderError(
            f"{PROVIDER_NAMES[config.provider]} API key not configured. "
            "Please set the appropriate environment variable."
        )
    
    logger.info(f"Calling {config.provider}/{config.provider_model_id} with {len(request.images)} attachment(s)")
    try:
        response = await PROVIDER_CALLS[config.provider](config, request, api_key)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        logger.error(f"Malformed {config.provider} response: {e!r}")
        raise AIProviderError(f"{PROVIDER_NAMES[config.provider]} returned a malformed response") from e
    
    if not response.content:
        raise AIProviderError(f"{PROVIDER_NAMES[config.provider]} returned an empty response")
    logger.info(
        f"{config.id} usage: {response.usage.input_tokens} in / {response.usage.output_tokens} out"
    )
    return response
