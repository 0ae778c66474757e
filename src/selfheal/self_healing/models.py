"""Domain models for the self-healing pipeline.

Every stage output is a frozen dataclass: once a stage returns, later stages
read it but never change it. Collections are tuples for the same reason.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from selfheal.shared.domain.base_model import BaseDomainModel


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class FaultRule(str, Enum):
    """Closed set of well-known runtime failure shapes."""

    NULL = "null"
    DIVZERO = "divzero"
    OOB = "oob"
    NAN = "nan"
    UNREACHABLE = "unreachable"
    OTHER = "other"


class ChangeType(str, Enum):
    MODIFY = "MODIFY"
    ADD = "ADD"
    DELETE = "DELETE"


class ValidationVerdict(str, Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class Recommendation(str, Enum):
    APPROVE = "APPROVE"
    APPROVE_WITH_CHANGES = "APPROVE_WITH_CHANGES"
    REJECT = "REJECT"


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class TestType(str, Enum):
    __test__ = False

    UNIT = "unit"
    INTEGRATION = "integration"
    REGRESSION = "regression"
    PERFORMANCE = "performance"


class HealStage(str, Enum):
    """Engine states. FAILED is reachable from every running stage."""

    IDLE = "idle"
    CLASSIFYING = "classifying"
    PROPOSING = "proposing"
    VALIDATING = "validating"
    CRITIQUING = "critiquing"
    SYNTHESIZING = "synthesizing"
    NARRATING = "narrating"
    DONE = "done"
    FAILED = "failed"


def new_trace_id() -> str:
    """Per-run correlation id, e.g. ``trace-1718000000000-a1b2c3d``."""
    return f"trace-{int(time.time() * 1000)}-{secrets.token_hex(4)[:7]}"


def new_issue_id() -> str:
    return f"AUTO-{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"


@dataclass(frozen=True)
class ErrorInfo(BaseDomainModel):
    """A captured runtime error, as supplied by the caller."""

    message: str
    type: str = "Error"
    stack: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> str:
        if not self.file:
            return "unknown"
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class TargetSpan(BaseDomainModel):
    file: str
    start_line: int
    end_line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class RuntimeErrorAnalysis(BaseDomainModel):
    """Repair recipe attached to a classification that matched a fault rule."""

    rule: FaultRule
    explanation: str
    target: TargetSpan
    strategies: tuple[str, ...]
    fingerprint: str


@dataclass(frozen=True)
class IssueClassification(BaseDomainModel):
    primary_category: str
    sub_category: str
    severity: Severity
    confidence: int  # 0-100
    affected_components: tuple[str, ...]
    estimated_complexity: Complexity
    risk_level: RiskLevel
    trace_id: str
    requires_external_resources: bool = False
    runtime_error_analysis: Optional[RuntimeErrorAnalysis] = None


@dataclass(frozen=True)
class CodeChange(BaseDomainModel):
    line_start: int
    line_end: int
    original_code: str
    new_code: str
    reason: str


@dataclass(frozen=True)
class FileChange(BaseDomainModel):
    path: str
    change_type: ChangeType
    changes: tuple[CodeChange, ...] = ()


@dataclass(frozen=True)
class PatchProposal(BaseDomainModel):
    patch_id: str
    description: str
    files: tuple[FileChange, ...]
    dependencies: tuple[str, ...]
    risk_assessment: RiskLevel
    rollback_plan: str
    trace_id: str

    @property
    def is_actionable(self) -> bool:
        """An empty file list means "no actionable patch", not a failure."""
        return bool(self.files)


@dataclass(frozen=True)
class ValidationIssue(BaseDomainModel):
    type: str
    severity: Severity
    description: str
    location: str
    recommendation: str


@dataclass(frozen=True)
class ValidationChecklist(BaseDomainModel):
    type_checking: CheckStatus = CheckStatus.PASS
    linting: CheckStatus = CheckStatus.PASS
    testing: CheckStatus = CheckStatus.PASS
    security: CheckStatus = CheckStatus.PASS
    performance: CheckStatus = CheckStatus.PASS


@dataclass(frozen=True)
class ValidationResult(BaseDomainModel):
    validation_result: ValidationVerdict
    critical_issues: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...]
    informational: tuple[ValidationIssue, ...]
    overall_risk: RiskLevel
    recommendation: Recommendation
    checklist: ValidationChecklist
    trace_id: str


@dataclass(frozen=True)
class PatchCritique(BaseDomainModel):
    risks: tuple[str, ...]
    adjustments: tuple[str, ...]
    should_revise: bool
    trace_id: str

    @property
    def has_notes(self) -> bool:
        return bool(self.risks or self.adjustments)


@dataclass(frozen=True)
class TestFile(BaseDomainModel):
    __test__ = False

    path: str
    content: str
    test_type: TestType


@dataclass(frozen=True)
class CoverageEstimate(BaseDomainModel):
    statements: int
    branches: int
    functions: int
    lines: int


@dataclass(frozen=True)
class TestSuite(BaseDomainModel):
    __test__ = False

    test_id: str
    description: str
    files: tuple[TestFile, ...]
    coverage: CoverageEstimate
    trace_id: str


@dataclass(frozen=True)
class HealMetadata(BaseDomainModel):
    start_time: datetime
    end_time: datetime
    duration: int  # milliseconds
    confidence: int  # 0-100
    automated: bool
    trace_id: str
    auto_apply_eligible: bool = False


@dataclass(frozen=True)
class SelfHealResult(BaseDomainModel):
    """Terminal aggregate of one heal() call."""

    success: bool
    issue_id: str
    classification: IssueClassification
    metadata: HealMetadata
    patch: Optional[PatchProposal] = None
    validation: Optional[ValidationResult] = None
    critique: Optional[PatchCritique] = None
    tests: Optional[TestSuite] = None
    commit_message: Optional[str] = None
    pull_request_body: Optional[str] = None
    error: Optional[str] = None
