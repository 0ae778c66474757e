"""
Mock LLM Provider

Deterministic offline client used in tests, in development and as the
fallback when a real provider cannot be constructed.
"""

import json

from ..registry import ProviderProfile, ProviderRegistry
from ..types import LlmProvider, LlmRequest, LlmResponse, LlmUsage
from .base import ILlmClient

DEFAULT_MOCK_RESPONSE = "Mock LLM response"
DEFAULT_MOCK_MODEL = "gpt-4o-mini"

_CLASSIFY_FIXTURE = json.dumps(
    {
        "primaryCategory": "runtime-error",
        "subCategory": "null-reference",
        "severity": "high",
        "confidence": 0.9,
    }
)

_PROPOSE_FIXTURE = """
// Mock patch proposal
function fixNullReference(input: any) {
  assertNonNull(input, 'Input cannot be null');
  return input.property;
}
"""


def estimate_tokens(text: str) -> int:
    """Rough token estimate: four characters per token."""
    return len(text) // 4


class MockLlmClient(ILlmClient):
    """
    Returns canned responses keyed by prompt substring.

    Keys are matched case-insensitively against the prompt in registration
    order; the first match wins. Prompts matching no key get the generic
    default response.
    """

    def __init__(self, config=None):
        # config accepted for registry compatibility; the mock reads nothing
        self._responses: dict[str, str] = {}
        self.add_mock_response("classify", _CLASSIFY_FIXTURE)
        self.add_mock_response("propose", _PROPOSE_FIXTURE)

    @property
    def provider(self) -> LlmProvider:
        return LlmProvider.MOCK

    def add_mock_response(self, key: str, response: str) -> None:
        """Register (or replace) the canned response for a prompt keyword."""
        self._responses[key.lower()] = response

    async def complete(self, request: LlmRequest) -> LlmResponse:
        content = DEFAULT_MOCK_RESPONSE
        prompt = request.prompt.lower()

        for key, response in self._responses.items():
            if key in prompt:
                content = response
                break

        return LlmResponse(
            content=content,
            model=request.model or DEFAULT_MOCK_MODEL,
            usage=LlmUsage(
                prompt_tokens=estimate_tokens(request.prompt),
                completion_tokens=estimate_tokens(content),
                total_tokens=estimate_tokens(request.prompt + content),
            ),
            finish_reason="stop",
        )

    def is_configured(self) -> bool:
        return True

    def get_available_models(self) -> list[str]:
        return list(ProviderRegistry.profile(LlmProvider.MOCK).models)


ProviderRegistry.register(ProviderProfile(provider=LlmProvider.MOCK, label="Mock", build=MockLlmClient))
