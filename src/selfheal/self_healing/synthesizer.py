"""Test stub synthesis for a proposed patch."""

from __future__ import annotations

from selfheal.self_healing.models import (
    ChangeType,
    CoverageEstimate,
    IssueClassification,
    PatchProposal,
    TestFile,
    TestSuite,
    TestType,
)
from selfheal.self_healing.stubs import (
    is_python_path,
    regression_test_stub,
    unit_test_path,
    unit_test_stub,
)
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# statements, branches, functions, lines
BASE_COVERAGE = (70, 60, 80, 75)
MAX_COVERAGE = (95, 90, 100, 95)
MAX_COVERAGE_BONUS = 20


class TestSynthesizer:
    """Builds regression and unit test stubs for a proposal."""

    __test__ = False

    def synthesize(self, proposal: PatchProposal, classification: IssueClassification) -> TestSuite:
        files = [
            *self._regression_tests(proposal, classification),
            *self._unit_tests(proposal),
            *self._integration_tests(proposal),
        ]

        suite = TestSuite(
            test_id=f"test-{proposal.patch_id}",
            description=f"Tests for: {proposal.description}",
            files=tuple(files),
            coverage=estimate_coverage(len(files)),
            trace_id=proposal.trace_id,
        )
        logger.info("tests_synthesized", files=len(files), trace_id=proposal.trace_id)
        return suite

    @staticmethod
    def _regression_tests(proposal: PatchProposal, classification: IssueClassification) -> list[TestFile]:
        analysis = classification.runtime_error_analysis
        if analysis is None:
            return [
                TestFile(
                    path=f"regression/{proposal.patch_id}.regression.test.ts",
                    content=regression_test_stub(
                        classification.sub_category,
                        ", ".join(classification.affected_components) or "unknown",
                        proposal.patch_id,
                        python=False,
                    ),
                    test_type=TestType.REGRESSION,
                )
            ]

        rule = analysis.rule.value
        python = is_python_path(analysis.target.file)
        if python:
            path = f"regression/test_selfheal_{rule}_{analysis.fingerprint}.py"
        else:
            path = f"regression/selfheal-{rule}-{analysis.fingerprint}.regression.test.ts"

        return [
            TestFile(
                path=path,
                content=regression_test_stub(rule, str(analysis.target), analysis.fingerprint, python=python),
                test_type=TestType.REGRESSION,
            )
        ]

    @staticmethod
    def _unit_tests(proposal: PatchProposal) -> list[TestFile]:
        return [
            TestFile(
                path=unit_test_path(file_change.path),
                content=unit_test_stub(file_change.path, proposal.patch_id),
                test_type=TestType.UNIT,
            )
            for file_change in proposal.files
            if file_change.change_type in (ChangeType.MODIFY, ChangeType.ADD)
        ]

    @staticmethod
    def _integration_tests(proposal: PatchProposal) -> list[TestFile]:
        # Integration tests need a running system; none are generated
        return []


def estimate_coverage(file_count: int) -> CoverageEstimate:
    bonus = min(file_count * 2, MAX_COVERAGE_BONUS)
    statements, branches, functions, lines = (
        min(base + bonus, cap) for base, cap in zip(BASE_COVERAGE, MAX_COVERAGE)
    )
    return CoverageEstimate(statements=statements, branches=branches, functions=functions, lines=lines)
