"""Tests for selfheal.llm.providers.ollama"""

import json

import httpx
import pytest

from selfheal.llm.providers.ollama import OllamaClient
from selfheal.llm.types import LlmProvider, LlmRequest
from selfheal.shared.domain.exceptions import LlmProviderError
from selfheal.shared.infrastructure.config_source import DictConfigSource


def _client(handler):
    client = OllamaClient(DictConfigSource({"OLLAMA_MODEL": "codellama"}))
    client._http_client = httpx.AsyncClient(
        base_url="http://ollama.test",
        transport=httpx.MockTransport(handler),
    )
    return client


class TestOllamaClient:
    def test_needs_no_credential(self):
        client = OllamaClient(DictConfigSource({}))

        assert client.is_configured() is True
        assert client.provider == LlmProvider.OLLAMA

    @pytest.mark.asyncio
    async def test_complete_posts_non_streaming_chat(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "model": "codellama",
                    "message": {"role": "assistant", "content": "patched"},
                    "prompt_eval_count": 20,
                    "eval_count": 5,
                    "done_reason": "stop",
                },
            )

        response = await _client(handler).complete(LlmRequest(prompt="fix"))

        assert captured["path"] == "/api/chat"
        assert captured["body"]["stream"] is False
        assert captured["body"]["model"] == "codellama"
        assert response.content == "patched"
        assert response.usage.total_tokens == 25

    @pytest.mark.asyncio
    async def test_missing_model_suggests_pull(self):
        client = _client(lambda request: httpx.Response(404, json={"error": "model not found"}))

        with pytest.raises(LlmProviderError, match="ollama pull codellama"):
            await client.complete(LlmRequest(prompt="fix"))

    @pytest.mark.asyncio
    async def test_connection_error_raises_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(LlmProviderError, match="Ollama API error"):
            await _client(handler).complete(LlmRequest(prompt="fix"))
