"""
Base LLM Client Interface

Every provider (hosted API, local inference server, mock) implements this
interface; the factory picks one and the pipeline never sees the concrete type.
"""

from abc import ABC, abstractmethod

from ..types import LlmProvider, LlmRequest, LlmResponse


class ILlmClient(ABC):
    """Interface for model providers"""

    @property
    @abstractmethod
    def provider(self) -> LlmProvider:
        """The provider type"""
        pass

    @abstractmethod
    async def complete(self, request: LlmRequest) -> LlmResponse:
        """
        Generate a completion for the request

        Raises:
            LlmProviderError: If the provider fails or returns no content
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if the client has what it needs to serve requests

        Note:
            Should NOT raise exceptions - return False on any error
        """
        pass

    @abstractmethod
    def get_available_models(self) -> list[str]:
        """Models this provider can serve"""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} provider={self.provider.value}>"
