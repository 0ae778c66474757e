"""Issue classification using fault-rule pattern matching."""

from __future__ import annotations

import hashlib
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Optional

from selfheal.self_healing.assist import LlmAssist
from selfheal.self_healing.models import (
    Complexity,
    ErrorInfo,
    FaultRule,
    IssueClassification,
    RiskLevel,
    RuntimeErrorAnalysis,
    Severity,
    TargetSpan,
)
from selfheal.shared.infrastructure.logging import get_logger
from selfheal.shared.utils.json_parser import parse_json_from_llm

logger = get_logger(__name__)

# Lines covered by a target span when the error carries no end line
DEFAULT_SPAN_LINES = 5
MAX_AFFECTED_COMPONENTS = 5


def _ci(*patterns: str) -> list[re.Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# Evaluated in order against "<type>: <message>"; the first matching rule wins
RULE_PATTERNS: list[tuple[FaultRule, list[re.Pattern]]] = [
    (
        FaultRule.NULL,
        _ci(
            r"\bof (undefined|null)\b",
            r"'NoneType' object",
            r"\b(is|was) (null|undefined)\b",
            r"undefined is not an object",
            r"null ?pointer",
            r"null reference",
        ),
    ),
    (
        FaultRule.DIVZERO,
        _ci(
            r"ZeroDivisionError",
            r"divi(de|sion) by zero",
            r"DivideByZero",
            r"modulo by zero",
        ),
    ),
    (
        FaultRule.OOB,
        _ci(
            r"IndexError",
            r"index (is )?(out of|outside)",
            r"out of (range|bounds)",
            r"IndexOutOfRange",
            r"Invalid array length",
        ),
    ),
    (
        FaultRule.NAN,
        # "NaN" is matched case-sensitively so words like "nano" never hit
        [re.compile(r"\bNaN\b"), *_ci(r"not a number", r"invalid value encountered")],
    ),
    (
        FaultRule.UNREACHABLE,
        _ci(
            r"unreachable",
            r"should never (happen|be reached)",
            r"assertNever",
            r"non-exhaustive",
        ),
    ),
    (
        FaultRule.OTHER,
        _ci(
            r"AssertionError",
            r"assertion failed",
            r"contract violation",
            r"pre-?condition",
            r"post-?condition",
            r"invariant",
        ),
    ),
]


@dataclass(frozen=True)
class RuleProfile:
    sub_category: str
    severity: Severity
    confidence: int
    complexity: Complexity
    risk: RiskLevel
    explanation: str
    strategies: tuple[str, ...]


RULE_PROFILES: dict[FaultRule, RuleProfile] = {
    FaultRule.NULL: RuleProfile(
        "null-reference",
        Severity.HIGH,
        90,
        Complexity.SIMPLE,
        RiskLevel.MEDIUM,
        "A value was dereferenced while it was null or undefined.",
        ("insert-non-null-contract", "narrow-optional-type", "provide-default-value"),
    ),
    FaultRule.DIVZERO: RuleProfile(
        "division-by-zero",
        Severity.HIGH,
        90,
        Complexity.SIMPLE,
        RiskLevel.MEDIUM,
        "A divisor reached zero before the division ran.",
        ("insert-non-zero-contract", "guard-empty-input", "return-neutral-value"),
    ),
    FaultRule.OOB: RuleProfile(
        "index-out-of-bounds",
        Severity.HIGH,
        85,
        Complexity.MODERATE,
        RiskLevel.MEDIUM,
        "An index fell outside the bounds of the collection it addressed.",
        ("insert-range-contract", "check-collection-length", "clamp-index"),
    ),
    FaultRule.NAN: RuleProfile(
        "nan-propagation",
        Severity.MEDIUM,
        80,
        Complexity.MODERATE,
        RiskLevel.MEDIUM,
        "A numeric computation produced NaN and it propagated downstream.",
        ("insert-finite-number-contract", "validate-numeric-input", "reject-non-finite-results"),
    ),
    FaultRule.UNREACHABLE: RuleProfile(
        "unreachable-code",
        Severity.MEDIUM,
        75,
        Complexity.MODERATE,
        RiskLevel.HIGH,
        "Control flow reached a branch the code declares unreachable.",
        ("insert-exhaustiveness-contract", "handle-missing-case", "fail-fast-on-unknown-variant"),
    ),
    FaultRule.OTHER: RuleProfile(
        "contract-violation",
        Severity.MEDIUM,
        70,
        Complexity.COMPLEX,
        RiskLevel.HIGH,
        "An assertion or declared contract failed at runtime.",
        ("restate-violated-contract", "strengthen-precondition", "add-diagnostic-context"),
    ),
}

GENERIC_CATEGORIES = {
    "SyntaxError": "syntax-error",
    "TypeError": "type-error",
    "ReferenceError": "reference-error",
    "ImportError": "import-error",
    "ModuleNotFoundError": "import-error",
    "TimeoutError": "timeout",
}

_JS_FRAME = re.compile(r"at (?:.*? \()?([^\s()]+?):\d+(?::\d+)?\)?\s*$", re.MULTILINE)
_PY_FRAME = re.compile(r'File "([^"]+)", line \d+')


def match_fault_rule(error: ErrorInfo) -> Optional[FaultRule]:
    """Return the first fault rule matching the error, if any."""
    text = f"{error.type}: {error.message}"
    for rule, patterns in RULE_PATTERNS:
        if any(p.search(text) for p in patterns):
            return rule
    return None


def make_fingerprint(rule: FaultRule, timestamp_ms: int) -> str:
    return hashlib.sha256(f"{rule.value}:{timestamp_ms}".encode()).hexdigest()[:12]


def extract_stack_files(stack: Optional[str]) -> list[str]:
    """Files named in JavaScript or Python stack frames, in order, deduplicated."""
    if not stack:
        return []
    files: list[str] = []
    for match in (*_PY_FRAME.finditer(stack), *_JS_FRAME.finditer(stack)):
        path = match.group(1)
        if path not in files and not path.startswith(("node:", "<")):
            files.append(path)
    return files


class IssueClassifier:
    """Turns an ErrorInfo into an IssueClassification.

    Fault-rule matches get a RuntimeErrorAnalysis with a target span and
    repair strategies. Everything else gets a type-based generic
    classification, optionally refined by the model (``assist``).
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    async def classify(
        self,
        error: ErrorInfo,
        trace_id: str,
        assist: Optional[LlmAssist] = None,
    ) -> IssueClassification:
        components = self._affected_components(error)
        rule = match_fault_rule(error)

        if rule is not None:
            profile = RULE_PROFILES[rule]
            analysis = RuntimeErrorAnalysis(
                rule=rule,
                explanation=profile.explanation,
                target=self._target_span(error),
                strategies=profile.strategies,
                fingerprint=make_fingerprint(rule, int(self._clock() * 1000)),
            )
            logger.debug("fault_rule_matched", rule=rule.value, target=str(analysis.target), trace_id=trace_id)
            return IssueClassification(
                primary_category="runtime-error",
                sub_category=profile.sub_category,
                severity=profile.severity,
                confidence=profile.confidence,
                affected_components=components,
                estimated_complexity=profile.complexity,
                risk_level=profile.risk,
                trace_id=trace_id,
                runtime_error_analysis=analysis,
            )

        classification = IssueClassification(
            primary_category=GENERIC_CATEGORIES.get(error.type, "runtime-error"),
            sub_category="unclassified",
            severity=Severity.MEDIUM,
            confidence=50,
            affected_components=components,
            estimated_complexity=Complexity.MODERATE,
            risk_level=RiskLevel.MEDIUM,
            trace_id=trace_id,
        )

        if assist is None:
            return classification
        return await self._refine_with_model(error, classification, assist)

    @staticmethod
    def _target_span(error: ErrorInfo) -> TargetSpan:
        start = error.line if error.line and error.line > 0 else 1
        end = start + DEFAULT_SPAN_LINES

        # A caller-supplied end line is a richer location than the default window
        hinted_end = error.context.get("endLine", error.context.get("end_line"))
        if isinstance(hinted_end, int) and not isinstance(hinted_end, bool) and hinted_end >= start:
            end = hinted_end

        return TargetSpan(file=error.file or "unknown", start_line=start, end_line=end)

    @staticmethod
    def _affected_components(error: ErrorInfo) -> tuple[str, ...]:
        components = [error.file or "unknown"]
        for path in extract_stack_files(error.stack):
            if path not in components:
                components.append(path)
        return tuple(components[:MAX_AFFECTED_COMPONENTS])

    async def _refine_with_model(
        self,
        error: ErrorInfo,
        classification: IssueClassification,
        assist: LlmAssist,
    ) -> IssueClassification:
        content = await assist.ask(
            assist.prompts.classify,
            {
                "ERROR_TYPE": error.type,
                "ERROR_MESSAGE": error.message,
                "LOCATION": error.location,
                "STACK": error.stack or "(none)",
            },
        )
        data = parse_json_from_llm(content) if content else None
        if not isinstance(data, dict):
            logger.debug("model_classification_unusable", trace_id=classification.trace_id)
            return classification

        updates = {}
        if isinstance(data.get("primaryCategory"), str) and data["primaryCategory"].strip():
            updates["primary_category"] = data["primaryCategory"].strip()
        if isinstance(data.get("subCategory"), str) and data["subCategory"].strip():
            updates["sub_category"] = data["subCategory"].strip()
        try:
            updates["severity"] = Severity(str(data.get("severity", "")).lower())
        except ValueError:
            pass
        confidence = _normalize_confidence(data.get("confidence"))
        if confidence is not None:
            updates["confidence"] = confidence

        logger.info(
            "model_classification_applied",
            fields=sorted(updates),
            trace_id=classification.trace_id,
        )
        return replace(classification, **updates)


def _normalize_confidence(value) -> Optional[int]:
    """Model confidences arrive as 0-1 fractions or 0-100 percentages."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 1:
        value = value * 100
    return max(0, min(100, round(value)))
