"""
Domain exceptions for SelfHeal.

Follows the "Fail Fast" principle: configuration problems surface at
construction time, never as silently defaulted values.
All application errors inherit from SelfHealError.
"""


class SelfHealError(Exception):
    """Base class for all SelfHeal exceptions."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(SelfHealError):
    """Raised when configuration is missing, invalid or out of range."""

    pass


class HealInProgressError(SelfHealError):
    """Raised when heal() is called while another run is still in flight."""

    pass


class LlmProviderError(SelfHealError):
    """Raised when a model provider fails to produce a completion."""

    pass
