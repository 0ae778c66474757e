"""Static safety checks over a proposed patch."""

from __future__ import annotations

import re

from selfheal.self_healing.models import (
    ChangeType,
    CheckStatus,
    PatchProposal,
    Recommendation,
    RiskLevel,
    Severity,
    ValidationChecklist,
    ValidationIssue,
    ValidationResult,
    ValidationVerdict,
)
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_UNDEFINED_SENTINEL = re.compile(r"\bundefined\b")
# Bare calls only; method calls such as regex.exec( or re.compile( are not dynamic evaluation
_DYNAMIC_EVAL = re.compile(r"(?<![.\w])(?:eval|exec|compile)\s*\(|\bnew\s+Function\s*\(")
_LOOP_HEADER = re.compile(r"^(?:for|while)\b\s*(?:await\s*)?(?:\(|.*:$)")

# Result bucket and issue type that fail each checklist entry
CHECKLIST_RULES = {
    "type_checking": ("critical", "type-error"),
    "linting": ("warnings", "style"),
    "testing": ("warnings", "test"),
    "security": ("critical", "security"),
    "performance": ("warnings", "performance"),
}


def has_nested_loop(code: str) -> bool:
    """
    True when a loop header starts inside the body of another loop.

    A loop body is the deeper-indented lines below its header, or the lines
    before its opening brace closes.
    """
    enclosing: list[tuple[int, int]] = []  # (indent, brace depth) of open loop headers
    depth = 0

    for line in code.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        indent = len(line) - len(line.lstrip())
        enclosing = [(i, d) for i, d in enclosing if indent > i or depth > d]

        if _LOOP_HEADER.match(stripped):
            if enclosing:
                return True
            enclosing.append((indent, depth))

        depth += line.count("{") - line.count("}")

    return False


class PatchValidator:
    """
    Runs four independent checks over every CodeChange of a proposal.

    Findings are returned as data in a ValidationResult; nothing here raises
    for a defective patch.
    """

    def validate(self, proposal: PatchProposal) -> ValidationResult:
        critical: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        informational: list[ValidationIssue] = []

        for file_change in proposal.files:
            if file_change.change_type == ChangeType.DELETE:
                warnings.append(
                    ValidationIssue(
                        type="compatibility",
                        severity=Severity.MEDIUM,
                        description=f"Patch deletes {file_change.path}",
                        location=file_change.path,
                        recommendation="Confirm no remaining callers depend on the deleted file",
                    )
                )

            for change in file_change.changes:
                location = f"{file_change.path}:{change.line_start}"

                if _UNDEFINED_SENTINEL.search(change.new_code):
                    critical.append(
                        ValidationIssue(
                            type="type-error",
                            severity=Severity.HIGH,
                            description="Replacement code references an unguarded undefined value",
                            location=location,
                            recommendation="Narrow the value before use or add a non-null contract",
                        )
                    )

                if _DYNAMIC_EVAL.search(change.new_code):
                    critical.append(
                        ValidationIssue(
                            type="security",
                            severity=Severity.CRITICAL,
                            description="Replacement code evaluates code dynamically",
                            location=location,
                            recommendation="Remove dynamic code evaluation",
                        )
                    )

                if has_nested_loop(change.new_code):
                    informational.append(
                        ValidationIssue(
                            type="performance",
                            severity=Severity.LOW,
                            description="Replacement code contains nested loops",
                            location=location,
                            recommendation="Check the loop bounds for large inputs",
                        )
                    )

        result = build_result(proposal.trace_id, critical, warnings, informational)
        logger.info(
            "patch_validated",
            verdict=result.validation_result.value,
            critical=len(critical),
            warnings=len(warnings),
            informational=len(informational),
            trace_id=proposal.trace_id,
        )
        return result


def build_result(
    trace_id: str,
    critical: list[ValidationIssue],
    warnings: list[ValidationIssue],
    informational: list[ValidationIssue],
) -> ValidationResult:
    """Derive verdict, risk, recommendation and checklist from bucketed issues."""
    if critical:
        verdict = ValidationVerdict.FAIL
    elif warnings:
        verdict = ValidationVerdict.WARN
    else:
        verdict = ValidationVerdict.PASS

    if any(issue.severity == Severity.CRITICAL for issue in critical):
        risk = RiskLevel.CRITICAL
    elif critical:
        risk = RiskLevel.HIGH
    elif len(warnings) > 3:
        risk = RiskLevel.MEDIUM
    else:
        risk = RiskLevel.LOW

    if verdict == ValidationVerdict.FAIL or risk == RiskLevel.CRITICAL:
        recommendation = Recommendation.REJECT
    elif verdict == ValidationVerdict.WARN or risk == RiskLevel.HIGH:
        recommendation = Recommendation.APPROVE_WITH_CHANGES
    else:
        recommendation = Recommendation.APPROVE

    buckets = {
        "critical": {issue.type for issue in critical},
        "warnings": {issue.type for issue in warnings},
    }
    checklist = ValidationChecklist(
        **{
            entry: CheckStatus.FAIL if issue_type in buckets[bucket] else CheckStatus.PASS
            for entry, (bucket, issue_type) in CHECKLIST_RULES.items()
        }
    )

    return ValidationResult(
        validation_result=verdict,
        critical_issues=tuple(critical),
        warnings=tuple(warnings),
        informational=tuple(informational),
        overall_risk=risk,
        recommendation=recommendation,
        checklist=checklist,
        trace_id=trace_id,
    )
