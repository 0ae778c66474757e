"""
OpenAI Chat Completions Client (supports both OpenAI and GitHub Models)

GitHub Models serves the same chat-completions API from its own endpoint
with a GitHub token as credential.
"""

import httpx

from selfheal.shared.domain.exceptions import ConfigurationError, LlmProviderError
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

_HOSTED = (LlmProvider.OPENAI, LlmProvider.GITHUB)


class OpenAIClient(ILlmClient):
    """Hosted chat-completions client - OpenAI or GitHub Models"""

    def __init__(self, config: ConfigSource, provider: LlmProvider = LlmProvider.OPENAI):
        if provider not in _HOSTED:
            raise ValueError(f"OpenAIClient does not serve provider {provider.value}")

        self._profile = ProviderRegistry.profile(provider)
        self._label = self._profile.label

        api_key = config.get(self._profile.credential_key)
        if not self._profile.has_credential(api_key):
            raise ConfigurationError(
                f"{self._label} credential not configured. "
                f"Please set the {self._profile.credential_key} environment variable.",
                context={"provider": provider.value, "key": self._profile.credential_key},
            )

        self._api_key = api_key.strip()
        self._default_model = self._profile.resolve_model(config)
        self._base_url = self._profile.resolve_base_url(config)
        self._timeout = float(config.get("LLM_TIMEOUT_SECONDS", 60.0))

        # Transport is built on first complete() call
        self._http_client: httpx.AsyncClient | None = None

    @property
    def provider(self) -> LlmProvider:
        return self._profile.provider

    def _ensure_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            try:
                self._http_client = httpx.AsyncClient(
                    base_url=self._base_url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    timeout=self._timeout,
                )
            except Exception as e:
                raise LlmProviderError(f"{self._label} transport could not be initialized: {e}") from e
            logger.debug("llm_transport_initialized", provider=self.provider.value, base_url=self._base_url)
        return self._http_client

    async def complete(self, request: LlmRequest) -> LlmResponse:
        client = self._ensure_http_client()

        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        payload = {
            "model": request.model or self._default_model,
            "messages": messages,
            "temperature": DEFAULT_TEMPERATURE if request.temperature is None else request.temperature,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
        }

        try:
            response = await client.post("/chat/completions", json=payload)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("llm_request_failed", provider=self.provider.value, error=str(e))
            raise LlmProviderError(f"{self._label} API error: {e}") from e

        choices = result.get("choices") or []
        choice = choices[0] if choices else {}
        content = (choice.get("message") or {}).get("content")
        if not content:
            raise LlmProviderError(f"No content received from {self._label} API")

        usage = result.get("usage")
        return LlmResponse(
            content=content,
            model=result.get("model") or payload["model"],
            usage=LlmUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )
            if usage
            else None,
            finish_reason=choice.get("finish_reason") or None,
        )

    def is_configured(self) -> bool:
        return self._profile.has_credential(self._api_key)

    def get_available_models(self) -> list[str]:
        return list(self._profile.models)

    async def aclose(self) -> None:
        """Release the transport, if one was created."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


def _create_github_client(config: ConfigSource) -> OpenAIClient:
    return OpenAIClient(config, LlmProvider.GITHUB)


ProviderRegistry.register(
    ProviderProfile(
        provider=LlmProvider.OPENAI,
        label="OpenAI",
        build=OpenAIClient,
        credential_key="OPENAI_API_KEY",
        model_key="OPENAI_MODEL",
        default_model="gpt-4o-mini",
        base_url_key="OPENAI_BASE_URL",
        base_url="https://api.openai.com/v1",
    )
)
ProviderRegistry.register(
    ProviderProfile(
        provider=LlmProvider.GITHUB,
        label="GitHub Models",
        build=_create_github_client,
        credential_key="GITHUB_TOKEN",
        model_key="GITHUB_MODEL",
        default_model="gpt-4o-mini",
        base_url_key="GITHUB_MODELS_BASE_URL",
        base_url="https://models.inference.ai.azure.com",
    )
)
