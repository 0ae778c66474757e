"""Self-healing engine configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from selfheal.shared.domain.exceptions import ConfigurationError
from selfheal.shared.infrastructure.config_source import ConfigSource

# Config-source keys for each engine option
SOURCE_KEYS = {
    "auto_apply": "SELFHEAL_AUTO_APPLY",
    "confidence_threshold": "SELFHEAL_CONFIDENCE_THRESHOLD",
    "max_retries": "SELFHEAL_MAX_RETRIES",
    "generate_tests": "SELFHEAL_GENERATE_TESTS",
    "use_mock_llm": "SELFHEAL_USE_MOCK_LLM",
    "llm_assist": "SELFHEAL_LLM_ASSIST",
}


class PromptNames(BaseModel):
    """Template used for each model-backed task."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    system_core: str = "00_system.core"
    classify: str = "10_task.classify"
    synthesize_test: str = "20_task.synthesize_test"
    propose_patch: str = "30_task.propose_patch"
    diff_guard: str = "35_task.diff_guard"
    critique_patch: str = "40_task.critique_patch"
    commit_message: str = "50_task.commit_message"
    pull_request_body: str = "60_task.pull_request_body"


class SelfHealConfig(BaseModel):
    """
    Options for SelfHealEngine.

    Values are validated on construction; out-of-range or unparseable
    confidence_threshold / max_retries raise instead of being defaulted.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    auto_apply: bool = False
    confidence_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    max_retries: int = Field(default=3, ge=1)
    generate_tests: bool = True
    use_mock_llm: bool = False
    llm_assist: bool = False
    prompts: PromptNames = Field(default_factory=PromptNames)

    @classmethod
    def build(cls, values: Mapping[str, Any] | None = None) -> "SelfHealConfig":
        """
        Validate values into a config.

        Raises:
            ConfigurationError: Naming every offending option
        """
        try:
            return cls.model_validate(dict(values or {}))
        except ValidationError as e:
            problems = []
            for error in e.errors():
                option = ".".join(str(part) for part in error["loc"]) or "config"
                problems.append(f"{option}: {error['msg']}")
            raise ConfigurationError(
                "Invalid self-heal configuration: " + "; ".join(problems),
                context={"errors": problems},
            ) from e

    @classmethod
    def from_source(cls, source: ConfigSource) -> "SelfHealConfig":
        """Read every option present in a key/value source."""
        values = {}
        for option, key in SOURCE_KEYS.items():
            value = source.get(key)
            if value is not None:
                values[option] = value
        return cls.build(values)

    @classmethod
    def from_yaml(cls, path: Path) -> "SelfHealConfig":
        """
        Load options from a YAML file.

        The file may hold the options at top level or under a ``selfheal:`` key.
        """
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read self-heal config '{path}': {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Self-heal config '{path}' must be a mapping")

        return cls.build(data.get("selfheal", data))
