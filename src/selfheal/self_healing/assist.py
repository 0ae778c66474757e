"""Model access for pipeline stages that may consult the LLM."""

from __future__ import annotations

from selfheal.llm.prompts import PromptManager, get_prompt_manager
from selfheal.llm.providers.base import ILlmClient
from selfheal.llm.types import LlmRequest
from selfheal.self_healing.config import PromptNames
from selfheal.shared.domain.exceptions import LlmProviderError
from selfheal.shared.infrastructure.logging import get_logger
from selfheal.shared.utils.retry_utils import async_retry

logger = get_logger(__name__)


class LlmAssist:
    """Renders a task template, sends it, and retries provider failures.

    Provider failures that outlive the retries are logged and reported as
    ``None`` so the calling stage keeps its deterministic result.
    """

    def __init__(
        self,
        client: ILlmClient,
        prompts: PromptNames | None = None,
        prompt_manager: PromptManager | None = None,
        max_attempts: int = 1,
        retry_delay: float = 0.5,
    ) -> None:
        self._client = client
        self._prompts = prompts or PromptNames()
        self._prompt_manager = prompt_manager or get_prompt_manager()
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay

    @property
    def client(self) -> ILlmClient:
        return self._client

    @property
    def prompts(self) -> PromptNames:
        return self._prompts

    async def ask(self, template: str, variables: dict[str, object]) -> str | None:
        request = LlmRequest(
            prompt=self._prompt_manager.load(template, variables),
            system_prompt=self._prompt_manager.load(self._prompts.system_core),
        )

        complete = async_retry(
            retries=self._max_attempts - 1,
            initial_delay=self._retry_delay,
            exceptions=(LlmProviderError,),
        )(self._client.complete)

        try:
            response = await complete(request)
        except LlmProviderError as e:
            logger.warning(
                "llm_assist_unavailable",
                template=template,
                provider=self._client.provider.value,
                error=str(e),
            )
            return None

        logger.debug(
            "llm_assist_completed",
            template=template,
            model=response.model,
            total_tokens=response.usage.total_tokens if response.usage else None,
        )
        return response.content.strip() or None
