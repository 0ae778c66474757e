"""Commit message and pull request body rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from selfheal.self_healing.models import (
    IssueClassification,
    PatchCritique,
    PatchProposal,
    RuntimeErrorAnalysis,
    TestSuite,
    ValidationResult,
)
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

COMMIT_PREFIX = "fix(selfheal):"
GENERATOR_NAME = "SelfHeal-LLM"


@dataclass(frozen=True)
class Narrative:
    commit_message: str
    pull_request_body: str


class Narrator:
    """
    Renders the human-facing text for a heal run.

    Proposals backed by a RuntimeErrorAnalysis use the contract template
    (rule, fingerprint, target span, analyzer estimate); everything else
    uses the generic summary.
    """

    def narrate(
        self,
        proposal: PatchProposal,
        classification: IssueClassification,
        validation: ValidationResult,
        critique: PatchCritique,
        tests: Optional[TestSuite] = None,
    ) -> Narrative:
        analysis = classification.runtime_error_analysis

        if analysis is not None:
            commit = self._contract_commit(proposal, analysis)
            sections = self._contract_body(proposal, analysis, validation)
        else:
            commit = self._generic_commit(proposal)
            sections = self._generic_body(proposal, classification)

        sections.append(self._validation_section(validation))
        if tests is not None:
            sections.append(self._tests_section(tests))
        sections.append(f"### Rollback\n\n{proposal.rollback_plan}")
        if critique.has_notes:
            sections.append(self._review_notes(critique))

        logger.debug("narrative_rendered", template="contract" if analysis else "generic", trace_id=proposal.trace_id)
        return Narrative(commit_message=commit, pull_request_body="\n\n".join(sections) + "\n")

    @staticmethod
    def _contract_commit(proposal: PatchProposal, analysis: RuntimeErrorAnalysis) -> str:
        return (
            f"{COMMIT_PREFIX} guard {analysis.rule.value} fault in {analysis.target.file}\n"
            "\n"
            f"{analysis.explanation}\n"
            "\n"
            f"Rule: {analysis.rule.value}\n"
            f"Fingerprint: {analysis.fingerprint}\n"
            f"Target: {analysis.target}\n"
            f"Patch-ID: {proposal.patch_id}\n"
            f"Trace-ID: {proposal.trace_id}"
        )

    @staticmethod
    def _generic_commit(proposal: PatchProposal) -> str:
        description = proposal.description[:1].lower() + proposal.description[1:]
        return (
            f"{COMMIT_PREFIX} {description}\n"
            "\n"
            f"Generated by: {GENERATOR_NAME}\n"
            f"Patch-ID: {proposal.patch_id}\n"
            f"Trace-ID: {proposal.trace_id}"
        )

    @staticmethod
    def _contract_body(
        proposal: PatchProposal,
        analysis: RuntimeErrorAnalysis,
        validation: ValidationResult,
    ) -> list[str]:
        # The guard is expected to clear one finding from each bucket
        before_critical = len(validation.critical_issues)
        before_warnings = len(validation.warnings)
        strategies = "\n".join(f"- {strategy}" for strategy in analysis.strategies)

        return [
            f"## Self-heal: {analysis.rule.value}",
            (
                f"**Fingerprint:** `{analysis.fingerprint}`\n"
                f"**Target:** `{analysis.target}`\n"
                f"**Patch:** `{proposal.patch_id}` (risk: {proposal.risk_assessment.value})"
            ),
            f"### Explanation\n\n{analysis.explanation}\n\n{proposal.description}",
            f"### Strategies\n\n{strategies}",
            (
                "### Analyzer summary (estimated)\n"
                "\n"
                "| Metric | Before | After |\n"
                "|---|---|---|\n"
                f"| Critical issues | {before_critical} | {max(0, before_critical - 1)} |\n"
                f"| Warnings | {before_warnings} | {max(0, before_warnings - 1)} |"
            ),
        ]

    @staticmethod
    def _generic_body(proposal: PatchProposal, classification: IssueClassification) -> list[str]:
        if proposal.files:
            changes = "\n".join(f"- `{f.path}` ({f.change_type.value})" for f in proposal.files)
        else:
            changes = "No file changes proposed; manual review required."

        return [
            "## Automated Fix Summary",
            (
                f"**Issue:** {classification.primary_category} / {classification.sub_category} "
                f"(severity: {classification.severity.value})\n"
                f"**Confidence:** {classification.confidence}%\n"
                f"**Patch:** `{proposal.patch_id}` (risk: {proposal.risk_assessment.value})"
            ),
            f"### Description\n\n{proposal.description}",
            f"### Changes\n\n{changes}",
        ]

    @staticmethod
    def _validation_section(validation: ValidationResult) -> str:
        lines = [
            "### Validation",
            "",
            f"- Verdict: {validation.validation_result.value}",
            f"- Recommendation: {validation.recommendation.value}",
            f"- Overall risk: {validation.overall_risk.value}",
        ]
        for issue in (*validation.critical_issues, *validation.warnings):
            lines.append(f"- {issue.severity.value}: {issue.description} ({issue.location})")
        return "\n".join(lines)

    @staticmethod
    def _tests_section(tests: TestSuite) -> str:
        lines = ["### Tests", ""]
        lines.extend(f"- `{t.path}` ({t.test_type.value})" for t in tests.files)
        coverage = tests.coverage
        lines.append(
            f"\nEstimated coverage: statements {coverage.statements}%, branches {coverage.branches}%, "
            f"functions {coverage.functions}%, lines {coverage.lines}%"
        )
        return "\n".join(lines)

    @staticmethod
    def _review_notes(critique: PatchCritique) -> str:
        lines = ["### Review Notes"]
        if critique.risks:
            lines.extend(["", "**Risks**", ""])
            lines.extend(f"- {risk}" for risk in critique.risks)
        if critique.adjustments:
            lines.extend(["", "**Adjustments**", ""])
            lines.extend(f"- {adjustment}" for adjustment in critique.adjustments)
        return "\n".join(lines)
