"""Tests for selfheal.self_healing.validator"""

import pytest

from selfheal.self_healing.models import (
    ChangeType,
    CheckStatus,
    CodeChange,
    FileChange,
    PatchProposal,
    Recommendation,
    RiskLevel,
    Severity,
    ValidationIssue,
    ValidationVerdict,
)
from selfheal.self_healing.validator import PatchValidator, build_result


def make_proposal(*files):
    return PatchProposal(
        patch_id="patch-1",
        description="test patch",
        files=tuple(files),
        dependencies=(),
        risk_assessment=RiskLevel.LOW,
        rollback_plan="revert",
        trace_id="trace-1",
    )


def modify(path, new_code):
    change = CodeChange(line_start=1, line_end=2, original_code="", new_code=new_code, reason="test")
    return FileChange(path=path, change_type=ChangeType.MODIFY, changes=(change,))


def issue(severity, issue_type="type-error"):
    return ValidationIssue(
        type=issue_type,
        severity=severity,
        description="d",
        location="a.ts:1",
        recommendation="r",
    )


@pytest.fixture
def validator():
    return PatchValidator()


class TestChecks:
    def test_clean_guard_passes(self, validator):
        result = validator.validate(make_proposal(modify("a.ts", 'assertNonNull(value, "value must not be null");')))

        assert result.validation_result == ValidationVerdict.PASS
        assert result.recommendation == Recommendation.APPROVE
        assert result.overall_risk == RiskLevel.LOW
        assert result.trace_id == "trace-1"

    def test_undefined_sentinel_is_critical_type_error(self, validator):
        result = validator.validate(make_proposal(modify("a.ts", "if (x === undefined) return;")))

        assert [i.type for i in result.critical_issues] == ["type-error"]
        assert result.critical_issues[0].severity == Severity.HIGH
        assert result.validation_result == ValidationVerdict.FAIL
        assert result.overall_risk == RiskLevel.HIGH
        assert result.recommendation == Recommendation.REJECT
        assert result.checklist.type_checking == CheckStatus.FAIL

    @pytest.mark.parametrize("code", ["eval(input)", "new Function('return 1')", "exec(source)"])
    def test_dynamic_evaluation_is_critical(self, validator, code):
        result = validator.validate(make_proposal(modify("a.ts", code)))

        assert result.critical_issues[0].type == "security"
        assert result.critical_issues[0].severity == Severity.CRITICAL
        assert result.overall_risk == RiskLevel.CRITICAL
        assert result.recommendation == Recommendation.REJECT
        assert result.checklist.security == CheckStatus.FAIL

    def test_nested_loops_are_informational(self, validator):
        code = "for (const a of xs) {\n  for (const b of ys) {\n    total += a * b;\n  }\n}"

        result = validator.validate(make_proposal(modify("a.ts", code)))

        assert result.informational[0].type == "performance"
        assert result.informational[0].severity == Severity.LOW
        assert result.validation_result == ValidationVerdict.PASS
        # Informational findings never fail the checklist
        assert result.checklist.performance == CheckStatus.PASS

    def test_python_nested_loops(self, validator):
        code = "for a in xs:\n    while a:\n        a -= 1\n"

        result = validator.validate(make_proposal(modify("m.py", code)))

        assert len(result.informational) == 1

    @pytest.mark.parametrize(
        "path, code",
        [
            ("a.ts", "for (const a of xs) {\n  total += a;\n}\nfor (const b of ys) {\n  total -= b;\n}"),
            ("m.py", "for a in xs:\n    total += a\nwhile total:\n    total -= 1\n"),
        ],
    )
    def test_sequential_loops_are_not_nested(self, validator, path, code):
        result = validator.validate(make_proposal(modify(path, code)))

        assert result.informational == ()

    @pytest.mark.parametrize(
        "path, code",
        [
            ("a.ts", "const m = /\\d+/.exec(input);"),
            ("a.py", "pattern = re.compile(r'\\d+')"),
            ("b.ts", "const value = obj.eval(expr);"),
        ],
    )
    def test_method_calls_are_not_dynamic_evaluation(self, validator, path, code):
        result = validator.validate(make_proposal(modify(path, code)))

        assert result.critical_issues == ()
        assert result.validation_result == ValidationVerdict.PASS
        assert result.recommendation == Recommendation.APPROVE

    def test_delete_is_compatibility_warning(self, validator):
        deleted = FileChange(path="old.ts", change_type=ChangeType.DELETE)

        result = validator.validate(make_proposal(deleted))

        assert result.warnings[0].type == "compatibility"
        assert result.warnings[0].severity == Severity.MEDIUM
        assert result.validation_result == ValidationVerdict.WARN
        assert result.recommendation == Recommendation.APPROVE_WITH_CHANGES

    def test_every_change_is_checked(self, validator):
        result = validator.validate(make_proposal(modify("a.ts", "ok();"), modify("b.ts", "eval(x)")))

        assert result.critical_issues[0].location == "b.ts:1"

    def test_empty_proposal_passes(self, validator):
        result = validator.validate(make_proposal())

        assert result.validation_result == ValidationVerdict.PASS
        assert result.recommendation == Recommendation.APPROVE


class TestBuildResult:
    def test_many_warnings_raise_risk(self):
        result = build_result("t", [], [issue(Severity.MEDIUM, "compatibility")] * 4, [])

        assert result.overall_risk == RiskLevel.MEDIUM
        assert result.validation_result == ValidationVerdict.WARN

    def test_three_warnings_stay_low(self):
        result = build_result("t", [], [issue(Severity.MEDIUM, "compatibility")] * 3, [])

        assert result.overall_risk == RiskLevel.LOW

    def test_checklist_reads_each_flag_from_its_bucket(self):
        result = build_result(
            "t",
            [issue(Severity.HIGH, "performance")],
            [issue(Severity.MEDIUM, "security"), issue(Severity.MEDIUM, "style")],
            [issue(Severity.LOW, "type-error")],
        )

        assert result.checklist.type_checking == CheckStatus.PASS
        assert result.checklist.security == CheckStatus.PASS
        assert result.checklist.performance == CheckStatus.PASS
        assert result.checklist.linting == CheckStatus.FAIL
        assert result.checklist.testing == CheckStatus.PASS

    def test_performance_warning_fails_checklist(self):
        result = build_result("t", [], [issue(Severity.MEDIUM, "performance")], [])

        assert result.checklist.performance == CheckStatus.FAIL


VERDICT_ORDER = [ValidationVerdict.PASS, ValidationVerdict.WARN, ValidationVerdict.FAIL]
RECOMMENDATION_ORDER = [Recommendation.APPROVE, Recommendation.APPROVE_WITH_CHANGES, Recommendation.REJECT]


class TestMonotonicity:
    """Adding a critical issue never improves the verdict or recommendation."""

    @pytest.mark.parametrize(
        "critical, warnings",
        [
            ([], []),
            ([], [issue(Severity.MEDIUM, "compatibility")]),
            ([], [issue(Severity.MEDIUM, "compatibility")] * 5),
            ([issue(Severity.HIGH)], []),
            ([issue(Severity.CRITICAL, "security")], [issue(Severity.MEDIUM, "compatibility")]),
        ],
    )
    @pytest.mark.parametrize("added", [Severity.HIGH, Severity.CRITICAL])
    def test_adding_critical_issue(self, critical, warnings, added):
        before = build_result("t", critical, warnings, [])
        after = build_result("t", critical + [issue(added)], warnings, [])

        assert VERDICT_ORDER.index(after.validation_result) >= VERDICT_ORDER.index(before.validation_result)
        assert RECOMMENDATION_ORDER.index(after.recommendation) >= RECOMMENDATION_ORDER.index(
            before.recommendation
        )
