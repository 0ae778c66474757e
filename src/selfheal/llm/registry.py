"""
Provider profiles for model clients.

Each provider module registers a ProviderProfile on import. A profile says
how to build the client, which config keys it reads and which models it
serves; clients answer is_configured() and get_available_models() from it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from selfheal.shared.infrastructure.config_source import ConfigSource

from .providers.base import ILlmClient
from .types import SUPPORTED_MODELS, LlmProvider

# Values shipped in .env.example files; treated the same as an empty key
PLACEHOLDER_CREDENTIALS = frozenset(
    {
        "your_openai_api_key_here",
        "your_github_token_here",
        "changeme",
        "change-me",
    }
)


def is_usable_credential(value) -> bool:
    """A credential is usable when it is a non-blank, non-placeholder string."""
    if not isinstance(value, str):
        return False
    stripped = value.strip()
    return bool(stripped) and stripped.lower() not in PLACEHOLDER_CREDENTIALS


@dataclass(frozen=True)
class ProviderProfile:
    """Static facts about one provider plus the callable that builds its client."""
    provider: LlmProvider
    label: str
    build: Callable[[ConfigSource], ILlmClient]
    credential_key: Optional[str] = None
    model_key: Optional[str] = None
    default_model: Optional[str] = None
    base_url_key: Optional[str] = None
    base_url: Optional[str] = None

    @property
    def models(self) -> tuple[str, ...]:
        return SUPPORTED_MODELS[self.provider]

    def has_credential(self, value) -> bool:
        """Providers without a credential key never need one."""
        return self.credential_key is None or is_usable_credential(value)

    def resolve_base_url(self, config: ConfigSource) -> Optional[str]:
        value = config.get(self.base_url_key) if self.base_url_key else None
        url = value or self.base_url
        return url.rstrip("/") if url else None

    def resolve_model(self, config: ConfigSource) -> Optional[str]:
        value = config.get(self.model_key) if self.model_key else None
        return value or self.default_model


class ProviderRegistry:
    """Provider profiles keyed by LlmProvider."""

    _profiles: dict[LlmProvider, ProviderProfile] = {}

    @classmethod
    def register(cls, profile: ProviderProfile) -> None:
        cls._profiles[profile.provider] = profile

    @classmethod
    def profile(cls, provider: LlmProvider) -> ProviderProfile:
        """
        Look up a provider's profile.

        Raises:
            ValueError: If provider is not registered
        """
        if provider not in cls._profiles:
            available = [p.value for p in cls.available()]
            raise ValueError(f"No provider registered for: {provider.value}. Available: {available}")
        return cls._profiles[provider]

    @classmethod
    def create(cls, provider: LlmProvider, config: ConfigSource) -> ILlmClient:
        return cls.profile(provider).build(config)

    @classmethod
    def available(cls) -> list[LlmProvider]:
        return list(cls._profiles.keys())
