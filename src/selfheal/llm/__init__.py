"""
LLM Integration Module

Pluggable model-client layer for the self-healing pipeline.

Public API:
- LlmProvider: Provider enum
- LlmRequest/LlmResponse/LlmUsage: Request/response types
- ILlmClient: Provider interface
- create_llm_client: Async factory with mock fallback
- PromptManager: Prompt template loading
"""

from .types import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    SUPPORTED_MODELS,
    LlmProvider,
    LlmRequest,
    LlmResponse,
    LlmUsage,
)
from .providers.base import ILlmClient
from .factory import create_client, create_llm_client
from .providers.mock import MockLlmClient
from .prompts import PromptManager, PromptTemplateError, get_prompt_manager

__all__ = [
    # Types
    "LlmProvider",
    "LlmRequest",
    "LlmResponse",
    "LlmUsage",
    "SUPPORTED_MODELS",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",

    # Providers
    "ILlmClient",
    "MockLlmClient",

    # Factory
    "create_client",
    "create_llm_client",

    # Prompts
    "PromptManager",
    "PromptTemplateError",
    "get_prompt_manager",
]
