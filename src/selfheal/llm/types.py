"""
LLM Type Definitions

Request/response contract shared by every model provider. Field names are
snake_case; to_json() emits the camelCase shape used in results.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional

from selfheal.shared.domain.base_model import BaseDomainModel


class LlmProvider(str, Enum):
    """Model provider types"""
    OPENAI = "openai"
    GITHUB = "github"
    OLLAMA = "ollama"
    MOCK = "mock"


# Models each provider is known to serve
SUPPORTED_MODELS: dict[LlmProvider, tuple[str, ...]] = {
    LlmProvider.OPENAI: ("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-3.5-turbo"),
    LlmProvider.GITHUB: ("gpt-4o", "gpt-4o-mini", "meta-llama-3.1-405b-instruct", "phi-3-medium-128k-instruct"),
    LlmProvider.OLLAMA: ("llama3.1", "codellama", "mistral", "qwen2.5-coder"),
    LlmProvider.MOCK: ("mock-gpt-4",),
}

DEFAULT_TEMPERATURE = 0.1  # Low temperature for consistent code generation
DEFAULT_MAX_TOKENS = 2000


@dataclass(frozen=True)
class LlmRequest(BaseDomainModel):
    """Request to a model provider"""
    prompt: str
    system_prompt: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass(frozen=True)
class LlmUsage(BaseDomainModel):
    """Token accounting reported by (or estimated for) a completion"""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class LlmResponse(BaseDomainModel):
    """Response from a model provider"""
    content: str
    model: str
    usage: Optional[LlmUsage] = None
    finish_reason: Optional[str] = None
