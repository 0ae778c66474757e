"""Tests for selfheal.self_healing.engine"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from selfheal.self_healing.classifier import IssueClassifier
from selfheal.self_healing.engine import SelfHealEngine, compute_confidence
from selfheal.self_healing.models import (
    FaultRule,
    HealStage,
    Recommendation,
    ValidationVerdict,
)
from selfheal.self_healing.stubs import GUARD_DEPENDENCY
from selfheal.shared.domain.exceptions import ConfigurationError, HealInProgressError
from selfheal.shared.infrastructure.config_source import DictConfigSource


@pytest.fixture
def make_engine(empty_config_source, mock_client_factory):
    def _make(**options):
        return SelfHealEngine(options, config_source=empty_config_source, client_factory=mock_client_factory)

    return _make


class BlockingClassifier:
    """Classifier that waits for a release signal before classifying."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self._inner = IssueClassifier()

    async def classify(self, error, trace_id, assist=None):
        self.entered.set()
        await self.release.wait()
        return await self._inner.classify(error, trace_id, assist)


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_null_dereference_heals(self, make_engine, null_error):
        engine = make_engine(use_mock_llm=True)

        result = await engine.heal(null_error)

        assert result.success is True
        assert result.error is None
        assert result.issue_id.startswith("AUTO-")

        analysis = result.classification.runtime_error_analysis
        assert analysis.rule == FaultRule.NULL
        assert (analysis.target.start_line, analysis.target.end_line) == (10, 15)

        assert [f.path for f in result.patch.files] == ["a.ts"]
        assert GUARD_DEPENDENCY in result.patch.dependencies

        assert result.validation.validation_result == ValidationVerdict.PASS
        assert result.validation.recommendation == Recommendation.APPROVE
        assert not any("Contract placement" in risk for risk in result.critique.risks)
        assert "Self-heal: null" in result.pull_request_body
        assert result.commit_message.startswith("fix(selfheal): guard null fault")

        assert result.metadata.automated is True
        assert result.metadata.confidence == 90
        assert engine.state == HealStage.DONE

    @pytest.mark.asyncio
    async def test_trace_id_is_shared_by_every_stage(self, make_engine, null_error):
        result = await make_engine().heal(null_error)

        trace_id = result.metadata.trace_id
        assert trace_id.startswith("trace-")
        assert {
            result.classification.trace_id,
            result.patch.trace_id,
            result.validation.trace_id,
            result.critique.trace_id,
            result.tests.trace_id,
        } == {trace_id}
        assert f"Trace-ID: {trace_id}" in result.commit_message

    @pytest.mark.asyncio
    async def test_unmatched_error_still_succeeds(self, make_engine, unmatched_error):
        result = await make_engine().heal(unmatched_error)

        assert result.success is True
        assert result.patch.files == ()
        assert result.pull_request_body.startswith("## Automated Fix Summary")
        assert result.metadata.confidence == 50

    @pytest.mark.asyncio
    async def test_metadata_timing(self, make_engine, null_error):
        result = await make_engine().heal(null_error)

        assert result.metadata.duration >= 0
        assert result.metadata.end_time >= result.metadata.start_time

    @pytest.mark.asyncio
    async def test_result_serializes_to_camel_case(self, make_engine, null_error):
        data = (await make_engine().heal(null_error)).to_json()

        assert data["success"] is True
        assert data["classification"]["runtimeErrorAnalysis"]["rule"] == "null"
        assert data["validation"]["validationResult"] == "PASS"
        assert "pullRequestBody" in data
        assert isinstance(data["metadata"]["startTime"], str)


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_heal_is_rejected_without_blocking(self, make_engine, null_error):
        engine = make_engine()
        blocking = BlockingClassifier()
        engine._classifier = blocking

        first = asyncio.create_task(engine.heal(null_error))
        await blocking.entered.wait()

        assert engine.is_processing is True
        assert engine.state == HealStage.CLASSIFYING
        with pytest.raises(HealInProgressError, match="already in progress"):
            await asyncio.wait_for(engine.heal(null_error), timeout=1)

        blocking.release.set()
        result = await first

        assert result.success is True
        assert engine.is_processing is False

    @pytest.mark.asyncio
    async def test_guard_released_after_failure(self, make_engine, null_error):
        engine = make_engine()
        engine._proposer.propose = AsyncMock(side_effect=RuntimeError("boom"))

        await engine.heal(null_error)

        assert engine.is_processing is False

    @pytest.mark.asyncio
    async def test_sequential_heals_are_allowed(self, make_engine, null_error):
        engine = make_engine()

        first = await engine.heal(null_error)
        second = await engine.heal(null_error)

        assert first.success and second.success
        assert first.issue_id != second.issue_id


class TestFailurePath:
    @pytest.mark.asyncio
    async def test_stage_failure_returns_failed_result(self, make_engine, null_error):
        engine = make_engine()
        engine._validator.validate = MagicMock(side_effect=ValueError("validator crashed"))

        result = await engine.heal(null_error)

        assert result.success is False
        assert result.error == "validator crashed"
        assert result.patch is None
        assert result.metadata.confidence == 0
        assert result.metadata.automated is False
        # Best-effort re-classification keeps the rule match
        assert result.classification.runtime_error_analysis.rule == FaultRule.NULL
        assert engine.state == HealStage.FAILED

    @pytest.mark.asyncio
    async def test_classifier_failure_falls_back_to_unknown(self, make_engine, null_error):
        engine = make_engine()
        engine._classifier.classify = AsyncMock(side_effect=RuntimeError("classifier down"))

        result = await engine.heal(null_error)

        assert result.success is False
        assert result.error == "classifier down"
        assert result.classification.primary_category == "unknown"
        assert result.classification.severity.value == "high"
        assert result.classification.confidence == 0
        assert result.classification.trace_id == result.metadata.trace_id

    @pytest.mark.asyncio
    async def test_client_factory_failure_is_a_failed_result(self, empty_config_source, null_error):
        factory = AsyncMock(side_effect=RuntimeError("no transport"))
        engine = SelfHealEngine({"llm_assist": True}, config_source=empty_config_source, client_factory=factory)

        result = await engine.heal(null_error)

        assert result.success is False
        assert result.error == "no transport"


class TestConfidence:
    @pytest.mark.parametrize(
        "confidence, verdict, expected",
        [
            (90, ValidationVerdict.PASS, 90),
            (90, ValidationVerdict.WARN, 63),
            (85, ValidationVerdict.WARN, 60),
            (75, ValidationVerdict.WARN, 53),
            (90, ValidationVerdict.FAIL, 27),
            (0, ValidationVerdict.PASS, 0),
            (100, ValidationVerdict.PASS, 100),
        ],
    )
    def test_weighted_by_verdict(self, confidence, verdict, expected):
        assert compute_confidence(confidence, verdict) == expected

    def test_always_within_bounds(self):
        for confidence in range(0, 101):
            for verdict in ValidationVerdict:
                assert 0 <= compute_confidence(confidence, verdict) <= 100


class TestOptions:
    @pytest.mark.asyncio
    async def test_generate_tests_false_skips_synthesizer(self, make_engine, null_error):
        result = await make_engine(generate_tests=False).heal(null_error)

        assert result.tests is None
        assert "### Tests" not in result.pull_request_body

    @pytest.mark.asyncio
    async def test_auto_apply_eligibility(self, make_engine, null_error):
        eligible = await make_engine(auto_apply=True, confidence_threshold=0.8).heal(null_error)
        too_strict = await make_engine(auto_apply=True, confidence_threshold=0.95).heal(null_error)
        disabled = await make_engine(auto_apply=False).heal(null_error)

        assert eligible.metadata.auto_apply_eligible is True
        assert too_strict.metadata.auto_apply_eligible is False
        assert disabled.metadata.auto_apply_eligible is False

    @pytest.mark.asyncio
    async def test_client_is_created_lazily_and_cached(self, make_engine, mock_client_factory, unmatched_error):
        engine = make_engine(llm_assist=True, use_mock_llm=True)
        assert mock_client_factory.await_count == 0

        first = await engine.heal(unmatched_error)
        await engine.heal(unmatched_error)

        assert mock_client_factory.await_count == 1
        assert mock_client_factory.await_args.args[1] is True
        # The mock classify fixture refines the generic classification
        assert first.classification.sub_category == "null-reference"

    @pytest.mark.asyncio
    async def test_deterministic_mode_never_creates_client(self, make_engine, mock_client_factory, null_error):
        await make_engine().heal(null_error)

        mock_client_factory.assert_not_awaited()


class TestConstruction:
    @pytest.mark.parametrize(
        "options",
        [
            {"confidence_threshold": 1.5},
            {"confidence_threshold": -0.1},
            {"confidence_threshold": "high"},
            {"max_retries": 0},
            {"max_retries": "many"},
        ],
    )
    def test_invalid_options_fail_fast(self, options, empty_config_source):
        with pytest.raises(ConfigurationError, match="Invalid self-heal configuration"):
            SelfHealEngine(options, config_source=empty_config_source)

    def test_options_read_from_config_source(self):
        source = DictConfigSource(
            {"SELFHEAL_AUTO_APPLY": "true", "SELFHEAL_MAX_RETRIES": "5", "SELFHEAL_CONFIDENCE_THRESHOLD": "0.6"}
        )

        engine = SelfHealEngine(config_source=source)

        assert engine.config.auto_apply is True
        assert engine.config.max_retries == 5
        assert engine.config.confidence_threshold == 0.6

    def test_invalid_source_value_fails_fast(self):
        with pytest.raises(ConfigurationError, match="max_retries"):
            SelfHealEngine(config_source=DictConfigSource({"SELFHEAL_MAX_RETRIES": "0"}))

    def test_starts_idle(self, make_engine):
        engine = make_engine()

        assert engine.state == HealStage.IDLE
        assert engine.is_processing is False
