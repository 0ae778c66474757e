"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env file.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

TRUTHY = frozenset({"1", "true", "yes", "on"})


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="selfheal-core", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging / Privacy
    log_redaction_enabled: bool = Field(default=True, description="Enable PII redaction in logs")

    # LLM Provider
    llm_provider: str = Field(
        default="openai",
        description="LLM provider (openai/github/ollama/mock)",
    )

    # OpenAI
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI default model")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")

    # GitHub Models (OpenAI-compatible)
    github_token: str | None = Field(default=None, description="GitHub token for GitHub Models")
    github_model: str = Field(default="gpt-4o-mini", description="GitHub Models default model")
    github_models_base_url: str = Field(
        default="https://models.inference.ai.azure.com",
        description="GitHub Models endpoint",
    )

    # Ollama (local inference server)
    ollama_base_url: str = Field(default="http://localhost:11434", description="Ollama endpoint")
    ollama_model: str = Field(default="qwen2.5-coder", description="Ollama default model")

    # Self-healing pipeline. Kept as raw strings; SelfHealConfig parses and
    # validates them so a bad value surfaces as a ConfigurationError.
    selfheal_auto_apply: str | None = Field(default=None, description="Mark eligible patches for automatic application")
    selfheal_confidence_threshold: str | None = Field(
        default=None,
        description="Minimum confidence (0-1) for automatic application",
    )
    selfheal_max_retries: str | None = Field(default=None, description="Attempts per model call")
    selfheal_generate_tests: str | None = Field(default=None, description="Run the test synthesizer stage")
    selfheal_use_mock_llm: str | None = Field(default=None, description="Force the deterministic mock client")
    selfheal_llm_assist: str | None = Field(default=None, description="Let classifier/proposer consult the model")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @model_validator(mode="after")
    def _warn_on_mock_in_production(self) -> "Settings":
        """Production runs should not silently answer from canned responses."""
        mock_forced = (self.selfheal_use_mock_llm or "").strip().lower() in TRUTHY
        if self.is_production and (mock_forced or self.llm_provider.lower() == "mock"):
            structlog.get_logger(__name__).warning(
                "mock_llm_in_production",
                message="The deterministic mock LLM client is enabled in production. "
                "Set LLM_PROVIDER and SELFHEAL_USE_MOCK_LLM for real completions.",
            )
        return self


# Global settings instance
settings = Settings()
