"""Rule-aware review of contract guards."""

from __future__ import annotations

import re

from selfheal.self_healing.models import (
    FaultRule,
    IssueClassification,
    PatchCritique,
    PatchProposal,
    ValidationResult,
    ValidationVerdict,
)
from selfheal.self_healing.stubs import GUARD_DEPENDENCY
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_NON_NULL_GUARD = re.compile(r"\bassert(?:NonNull|_non_null)\s*\(")
_RETURN = re.compile(r"\breturn\b")
_INFINITY_CHECK = re.compile(r"Infinity|isFinite|isfinite|isinf")
_NEGATIVE_ZERO_CHECK = re.compile(r"Object\.is|-0\b|copysign")
_UPPER_BOUND_CHECK = re.compile(r"\.length\b|\blen\s*\(")
_HARD_FAILURE = re.compile(r"\bthrow\b|\braise\b|assertUnreachable|assert_never")

# Validation warnings tolerated before a WARN verdict forces a revision
MAX_TOLERATED_WARNINGS = 2


class PatchCritic:
    """
    Looks for rule-specific omissions the generic validator cannot see.

    Only proposals that carry a RuntimeErrorAnalysis and declare the guard
    dependency are inspected; anything else gets an empty critique.
    """

    def critique(
        self,
        proposal: PatchProposal,
        classification: IssueClassification,
        validation: ValidationResult,
    ) -> PatchCritique:
        risks: list[str] = []
        adjustments: list[str] = []
        analysis = classification.runtime_error_analysis

        if analysis is not None and GUARD_DEPENDENCY in proposal.dependencies:
            for file_change in proposal.files:
                code = "\n".join(change.new_code for change in file_change.changes)
                self._check_rule(analysis.rule, code, file_change.path, risks, adjustments)

        should_revise = bool(risks) or (
            validation.validation_result == ValidationVerdict.WARN
            and len(validation.warnings) > MAX_TOLERATED_WARNINGS
        )

        logger.info(
            "patch_critiqued",
            risks=len(risks),
            adjustments=len(adjustments),
            should_revise=should_revise,
            trace_id=proposal.trace_id,
        )
        return PatchCritique(
            risks=tuple(risks),
            adjustments=tuple(adjustments),
            should_revise=should_revise,
            trace_id=proposal.trace_id,
        )

    @staticmethod
    def _check_rule(
        rule: FaultRule,
        code: str,
        path: str,
        risks: list[str],
        adjustments: list[str],
    ) -> None:
        if rule == FaultRule.NULL:
            guard = _NON_NULL_GUARD.search(code)
            early_return = _RETURN.search(code)
            if guard and early_return and early_return.start() < guard.start():
                risks.append(f"Contract placement: non-null guard in {path} follows a return and can be skipped")
                adjustments.append("Move the non-null contract above the first return statement")

        elif rule == FaultRule.NAN:
            if not _INFINITY_CHECK.search(code):
                risks.append(f"NaN guard in {path} does not reject Infinity")
                adjustments.append("Use a finite-number check instead of a NaN-only check")

        elif rule == FaultRule.DIVZERO:
            if not _NEGATIVE_ZERO_CHECK.search(code):
                risks.append(f"Zero guard in {path} does not consider negative zero")
                adjustments.append("Compare with Object.is(divisor, -0) or math.copysign as well")

        elif rule == FaultRule.OOB:
            if not _UPPER_BOUND_CHECK.search(code):
                risks.append(f"Bounds guard in {path} has no upper bound")
                adjustments.append("Check the index against the collection length")

        elif rule == FaultRule.UNREACHABLE:
            if not _HARD_FAILURE.search(code):
                risks.append(f"Unreachable branch in {path} does not fail hard")
                adjustments.append("Throw or call assertUnreachable in the impossible branch")
