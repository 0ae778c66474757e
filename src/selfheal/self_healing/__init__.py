"""
Self-healing pipeline.

Classifies a captured runtime error, proposes a contract-guard patch,
validates and critiques it, synthesizes tests and renders the commit
message and pull request body.
"""

from selfheal.self_healing.config import PromptNames, SelfHealConfig
from selfheal.self_healing.engine import SelfHealEngine, compute_confidence
from selfheal.self_healing.models import (
    ErrorInfo,
    FaultRule,
    HealStage,
    IssueClassification,
    PatchProposal,
    SelfHealResult,
    ValidationResult,
)

__all__ = [
    "ErrorInfo",
    "FaultRule",
    "HealStage",
    "IssueClassification",
    "PatchProposal",
    "PromptNames",
    "SelfHealConfig",
    "SelfHealEngine",
    "SelfHealResult",
    "ValidationResult",
    "compute_confidence",
]
