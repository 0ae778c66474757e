"""
LLM Client Factory

Creates the model client the pipeline talks to. A client that cannot be
built (missing credential, unknown provider, broken transport) degrades to
the deterministic mock instead of failing the caller.
"""

from typing import Optional

from selfheal.shared.infrastructure.config_source import ConfigSource, SettingsConfigSource
from selfheal.shared.infrastructure.logging import get_logger

# Ensure all providers are registered on import
import selfheal.llm.providers.mock
import selfheal.llm.providers.ollama
import selfheal.llm.providers.openai
from .providers.base import ILlmClient
from .providers.mock import MockLlmClient
from .registry import ProviderRegistry
from .types import LlmProvider

logger = get_logger(__name__)


def create_client(provider: LlmProvider, config: ConfigSource) -> ILlmClient:
    """
    Create a client for a specific provider, without fallback.

    Raises:
        ConfigurationError: If the provider's credential is missing
        ValueError: If the provider is not registered
    """
    return ProviderRegistry.create(provider, config)


async def create_llm_client(config: Optional[ConfigSource] = None, use_mock: bool = False) -> ILlmClient:
    """
    Create the configured model client.

    Args:
        config: Key/value source; LLM_PROVIDER selects the provider (default openai)
        use_mock: Skip provider selection and return the mock client

    Returns:
        The configured client, or the mock client when construction fails
    """
    if use_mock:
        logger.info("llm_client_created", provider=LlmProvider.MOCK.value, reason="mock_requested")
        return MockLlmClient()

    config = config or SettingsConfigSource()
    provider_name = str(config.get("LLM_PROVIDER", LlmProvider.OPENAI.value)).strip().lower()

    try:
        client = create_client(LlmProvider(provider_name), config)
    except Exception as e:
        logger.warning(
            "llm_client_fallback_to_mock",
            provider=provider_name,
            error_type=type(e).__name__,
            error=str(e),
        )
        return MockLlmClient()

    logger.info("llm_client_created", provider=client.provider.value)
    return client
