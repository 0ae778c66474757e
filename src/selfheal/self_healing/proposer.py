"""Patch proposal: contract guard insertion scoped to the target span."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from typing import Optional

from selfheal.self_healing.assist import LlmAssist
from selfheal.self_healing.models import (
    ChangeType,
    CodeChange,
    ErrorInfo,
    FileChange,
    IssueClassification,
    PatchProposal,
    RiskLevel,
)
from selfheal.self_healing.stubs import GUARD_DEPENDENCY, guard_for
from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

ROLLBACK_PLAN = "Revert commit to restore previous functionality"

_CODE_FENCE = re.compile(r"```[\w+-]*\n(.*?)```", re.DOTALL)


class PatchProposer:
    """
    Builds a PatchProposal for a classified error.

    With a RuntimeErrorAnalysis the proposal inserts one contract guard at
    the start of the target span and declares GUARD_DEPENDENCY. Without one
    the proposal has no files, unless model assist supplies a replacement
    for the reported line.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    async def propose(
        self,
        error: ErrorInfo,
        classification: IssueClassification,
        assist: Optional[LlmAssist] = None,
    ) -> PatchProposal:
        patch_id = f"patch-{int(self._clock() * 1000)}"
        risk = RiskLevel.HIGH if classification.risk_level == RiskLevel.HIGH else RiskLevel.LOW
        analysis = classification.runtime_error_analysis
        original_code = _source_snippet(error)

        if analysis is not None:
            target = analysis.target
            guard = guard_for(analysis.rule, target.file)
            new_code = f"{guard}\n{original_code}" if original_code else guard
            change = CodeChange(
                line_start=target.start_line,
                line_end=target.end_line,
                original_code=original_code,
                new_code=new_code,
                reason=f"{analysis.explanation} Strategy: {analysis.strategies[0]}.",
            )
            return PatchProposal(
                patch_id=patch_id,
                description=f"Insert {analysis.rule.value} contract guard in {target}",
                files=(FileChange(path=target.file, change_type=ChangeType.MODIFY, changes=(change,)),),
                dependencies=(GUARD_DEPENDENCY,),
                risk_assessment=risk,
                rollback_plan=ROLLBACK_PLAN,
                trace_id=classification.trace_id,
            )

        if assist is not None and error.file:
            proposal = await self._propose_with_model(error, classification, assist, patch_id, risk)
            if proposal is not None:
                return proposal

        logger.info(
            "no_actionable_patch",
            category=classification.primary_category,
            trace_id=classification.trace_id,
        )
        return PatchProposal(
            patch_id=patch_id,
            description=(
                f"No automated patch for {classification.primary_category}/"
                f"{classification.sub_category}; manual review required"
            ),
            files=(),
            dependencies=(),
            risk_assessment=risk,
            rollback_plan=ROLLBACK_PLAN,
            trace_id=classification.trace_id,
        )

    async def _propose_with_model(
        self,
        error: ErrorInfo,
        classification: IssueClassification,
        assist: LlmAssist,
        patch_id: str,
        risk: RiskLevel,
    ) -> Optional[PatchProposal]:
        line = error.line if error.line and error.line > 0 else 1
        content = await assist.ask(
            assist.prompts.propose_patch,
            {
                "ERROR_TYPE": error.type,
                "ERROR_MESSAGE": error.message,
                "FILE": error.file,
                "LINE": line,
                "CATEGORY": classification.primary_category,
                "SUB_CATEGORY": classification.sub_category,
            },
        )
        if not content:
            return None

        change = CodeChange(
            line_start=line,
            line_end=line,
            original_code=_source_snippet(error),
            new_code=_strip_code_fence(content),
            reason=f"Model-proposed fix for {error.type}: {error.message}",
        )
        logger.info("model_patch_proposed", file=error.file, trace_id=classification.trace_id)
        return PatchProposal(
            patch_id=patch_id,
            description=f"Apply model-proposed fix for {error.type} in {error.location}",
            files=(FileChange(path=error.file, change_type=ChangeType.MODIFY, changes=(change,)),),
            dependencies=(),
            risk_assessment=risk,
            rollback_plan=ROLLBACK_PLAN,
            trace_id=classification.trace_id,
        )


def _source_snippet(error: ErrorInfo) -> str:
    source = error.context.get("source")
    return source if isinstance(source, str) else ""


def _strip_code_fence(content: str) -> str:
    match = _CODE_FENCE.search(content)
    return (match.group(1) if match else content).strip()
