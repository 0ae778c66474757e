"""
Self-Heal Engine

Runs one captured error through the pipeline:

    classify -> propose -> validate -> critique -> synthesize -> narrate

Only one heal() may be in flight per engine. Stage failures become a
failed SelfHealResult; the only exception a caller sees from heal() is
HealInProgressError.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from selfheal.llm.factory import create_llm_client
from selfheal.llm.providers.base import ILlmClient
from selfheal.self_healing.assist import LlmAssist
from selfheal.self_healing.classifier import IssueClassifier
from selfheal.self_healing.config import SelfHealConfig
from selfheal.self_healing.critic import PatchCritic
from selfheal.self_healing.models import (
    Complexity,
    ErrorInfo,
    HealMetadata,
    HealStage,
    IssueClassification,
    Recommendation,
    RiskLevel,
    SelfHealResult,
    Severity,
    ValidationVerdict,
    new_issue_id,
    new_trace_id,
)
from selfheal.self_healing.narrator import Narrator
from selfheal.self_healing.proposer import PatchProposer
from selfheal.self_healing.synthesizer import TestSynthesizer
from selfheal.self_healing.validator import PatchValidator
from selfheal.shared.domain.exceptions import HealInProgressError
from selfheal.shared.infrastructure.config_source import ConfigSource, SettingsConfigSource
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[Optional[ConfigSource], bool], Awaitable[ILlmClient]]

# Percent of classification confidence kept for each verdict
VERDICT_WEIGHTS = {
    ValidationVerdict.PASS: 100,
    ValidationVerdict.WARN: 70,
    ValidationVerdict.FAIL: 30,
}


def compute_confidence(classification_confidence: int, verdict: ValidationVerdict) -> int:
    """Weight classification confidence by verdict, rounding half up."""
    return (classification_confidence * VERDICT_WEIGHTS[verdict] + 50) // 100


class SelfHealEngine:
    """
    Orchestrates the self-healing pipeline.

    Args:
        config: SelfHealConfig, or a mapping of options validated into one.
            When omitted, options are read from ``config_source``.
        config_source: Key/value source for credentials and options
            (defaults to application settings).
        client_factory: Builds the model client on first use.

    Raises:
        ConfigurationError: When options are invalid
    """

    def __init__(
        self,
        config: SelfHealConfig | Mapping[str, Any] | None = None,
        config_source: Optional[ConfigSource] = None,
        client_factory: ClientFactory = create_llm_client,
    ) -> None:
        self._config_source = config_source or SettingsConfigSource()

        if isinstance(config, SelfHealConfig):
            self._config = config
        elif config is not None:
            self._config = SelfHealConfig.build(config)
        else:
            self._config = SelfHealConfig.from_source(self._config_source)

        self._client_factory = client_factory
        self._client: Optional[ILlmClient] = None

        self._classifier = IssueClassifier()
        self._proposer = PatchProposer()
        self._validator = PatchValidator()
        self._critic = PatchCritic()
        self._synthesizer = TestSynthesizer()
        self._narrator = Narrator()

        self._in_progress = False
        self._state = HealStage.IDLE

    @property
    def config(self) -> SelfHealConfig:
        return self._config

    @property
    def state(self) -> HealStage:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._in_progress

    async def heal(self, error: ErrorInfo) -> SelfHealResult:
        """
        Run the full pipeline for one error.

        Raises:
            HealInProgressError: If another heal() on this engine is running
        """
        if self._in_progress:
            raise HealInProgressError(
                "Self-healing process already in progress",
                context={"state": self._state.value},
            )

        self._in_progress = True
        try:
            trace_id = new_trace_id()
            with structlog.contextvars.bound_contextvars(trace_id=trace_id):
                return await self._run(error, trace_id)
        finally:
            self._in_progress = False

    async def aclose(self) -> None:
        """Release the model client's transport, if it holds one."""
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()

    async def _get_client(self) -> ILlmClient:
        if self._client is None:
            self._client = await self._client_factory(self._config_source, self._config.use_mock_llm)
        return self._client

    async def _run(self, error: ErrorInfo, trace_id: str) -> SelfHealResult:
        issue_id = new_issue_id()
        start_time = datetime.now(timezone.utc)
        started = time.monotonic()

        logger.info("selfheal_started", issue_id=issue_id, error_type=error.type, location=error.location)

        try:
            assist = None
            if self._config.llm_assist:
                assist = LlmAssist(
                    await self._get_client(),
                    prompts=self._config.prompts,
                    max_attempts=self._config.max_retries,
                )

            classification = await self._stage(
                HealStage.CLASSIFYING, self._classifier.classify, error, trace_id, assist
            )
            proposal = await self._stage(HealStage.PROPOSING, self._proposer.propose, error, classification, assist)
            validation = await self._stage(HealStage.VALIDATING, self._validator.validate, proposal)
            critique = await self._stage(
                HealStage.CRITIQUING, self._critic.critique, proposal, classification, validation
            )

            tests = None
            if self._config.generate_tests:
                tests = await self._stage(
                    HealStage.SYNTHESIZING, self._synthesizer.synthesize, proposal, classification
                )

            narrative = await self._stage(
                HealStage.NARRATING, self._narrator.narrate, proposal, classification, validation, critique, tests
            )
        except Exception as e:
            self._state = HealStage.FAILED
            logger.error(
                "selfheal_failed",
                issue_id=issue_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            classification = await self._fallback_classification(error, trace_id)
            return SelfHealResult(
                success=False,
                issue_id=issue_id,
                classification=classification,
                metadata=self._metadata(start_time, started, 0, False, trace_id),
                error=str(e),
            )

        automated = validation.recommendation == Recommendation.APPROVE
        confidence = compute_confidence(classification.confidence, validation.validation_result)
        metadata = self._metadata(start_time, started, confidence, automated, trace_id)

        self._state = HealStage.DONE
        logger.info(
            "selfheal_completed",
            issue_id=issue_id,
            verdict=validation.validation_result.value,
            confidence=confidence,
            automated=automated,
            auto_apply_eligible=metadata.auto_apply_eligible,
            duration_ms=metadata.duration,
        )

        return SelfHealResult(
            success=True,
            issue_id=issue_id,
            classification=classification,
            metadata=metadata,
            patch=proposal,
            validation=validation,
            critique=critique,
            tests=tests,
            commit_message=narrative.commit_message,
            pull_request_body=narrative.pull_request_body,
        )

    async def _stage(self, stage: HealStage, func: Callable[..., Any], *args: Any) -> Any:
        self._state = stage
        logger.info("selfheal_stage_started", stage=stage.value)
        started = time.monotonic()

        result = func(*args)
        if inspect.isawaitable(result):
            result = await result

        logger.info(
            "selfheal_stage_completed",
            stage=stage.value,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    async def _fallback_classification(self, error: ErrorInfo, trace_id: str) -> IssueClassification:
        try:
            return await self._classifier.classify(error, trace_id)
        except Exception as e:
            # The original failure is what gets reported
            logger.warning("fallback_classification_failed", error_type=type(e).__name__, error=str(e))
            return IssueClassification(
                primary_category="unknown",
                sub_category="unknown",
                severity=Severity.HIGH,
                confidence=0,
                affected_components=(),
                estimated_complexity=Complexity.COMPLEX,
                risk_level=RiskLevel.HIGH,
                trace_id=trace_id,
            )

    def _metadata(
        self,
        start_time: datetime,
        started: float,
        confidence: int,
        automated: bool,
        trace_id: str,
    ) -> HealMetadata:
        duration = max(0, int((time.monotonic() - started) * 1000))
        end_time = max(datetime.now(timezone.utc), start_time)
        eligible = (
            self._config.auto_apply
            and automated
            and confidence >= self._config.confidence_threshold * 100
        )
        return HealMetadata(
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            confidence=confidence,
            automated=automated,
            trace_id=trace_id,
            auto_apply_eligible=eligible,
        )
