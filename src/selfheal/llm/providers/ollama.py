"""
Ollama LLM Client (Local Model Support)

API: http://localhost:11434/api/chat
No credential is needed; the server address and model come from config.
"""

import httpx

from selfheal.shared.domain.exceptions import LlmProviderError
from selfheal.shared.infrastructure.config_source import ConfigSource
from selfheal.shared.infrastructure.logging import get_logger

from ..registry import ProviderProfile, ProviderRegistry
from ..types import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    LlmProvider,
    LlmRequest,
    LlmResponse,
    LlmUsage,
)
from .base import ILlmClient

logger = get_logger(__name__)


class OllamaClient(ILlmClient):
    """Client for a local Ollama inference server."""

    def __init__(self, config: ConfigSource):
        self._profile = ProviderRegistry.profile(LlmProvider.OLLAMA)
        self._endpoint = self._profile.resolve_base_url(config)
        self._default_model = self._profile.resolve_model(config)
        # CPU-side generation on larger models is slow; allow a long read window
        self._timeout = httpx.Timeout(connect=10.0, read=120.0, write=10.0, pool=5.0)
        self._http_client: httpx.AsyncClient | None = None

        logger.debug("ollama_client_initialized", endpoint=self._endpoint, default_model=self._default_model)

    @property
    def provider(self) -> LlmProvider:
        return LlmProvider.OLLAMA

    def _ensure_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(base_url=self._endpoint, timeout=self._timeout)
        return self._http_client

    async def complete(self, request: LlmRequest) -> LlmResponse:
        client = self._ensure_http_client()
        model = request.model or self._default_model

        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": DEFAULT_TEMPERATURE if request.temperature is None else request.temperature,
                "num_predict": request.max_tokens or DEFAULT_MAX_TOKENS,
            },
        }

        try:
            response = await client.post("/api/chat", json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise LlmProviderError(f"Model '{model}' not found. Run 'ollama pull {model}'.") from e
            raise LlmProviderError(f"Ollama API error: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("ollama_request_failed", error=str(e), model=model)
            raise LlmProviderError(f"Ollama API error: {e}") from e

        content = (result.get("message") or {}).get("content")
        if not content:
            raise LlmProviderError("No content received from Ollama API")

        prompt_tokens = result.get("prompt_eval_count", 0)
        completion_tokens = result.get("eval_count", 0)

        return LlmResponse(
            content=content,
            model=result.get("model") or model,
            usage=LlmUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=result.get("done_reason") or None,
        )

    def is_configured(self) -> bool:
        return bool(self._endpoint and self._default_model)

    def get_available_models(self) -> list[str]:
        return list(self._profile.models)

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


ProviderRegistry.register(
    ProviderProfile(
        provider=LlmProvider.OLLAMA,
        label="Ollama",
        build=OllamaClient,
        model_key="OLLAMA_MODEL",
        default_model="qwen2.5-coder",
        base_url_key="OLLAMA_BASE_URL",
        base_url="http://localhost:11434",
    )
)
