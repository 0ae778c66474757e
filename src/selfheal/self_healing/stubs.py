"""Guard and test stub text for the supported target languages."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from selfheal.self_healing.models import FaultRule

# Module every contract guard is imported from
GUARD_DEPENDENCY = "contracts"

TS_GUARDS: dict[FaultRule, str] = {
    FaultRule.NULL: 'assertNonNull(value, "value must not be null");',
    FaultRule.DIVZERO: 'assertNonZero(divisor, "divisor must not be zero");',
    FaultRule.OOB: 'assertInRange(index, 0, items.length - 1, "index must be within bounds");',
    FaultRule.NAN: 'assertNotNaN(value, "value must be a number");',
    FaultRule.UNREACHABLE: "assertUnreachable(value);",
    FaultRule.OTHER: 'assertInvariant(condition, "invariant must hold");',
}

PY_GUARDS: dict[FaultRule, str] = {
    FaultRule.NULL: 'assert_non_null(value, "value must not be None")',
    FaultRule.DIVZERO: 'assert_non_zero(divisor, "divisor must not be zero")',
    FaultRule.OOB: 'assert_in_range(index, 0, len(items) - 1, "index must be within bounds")',
    FaultRule.NAN: 'assert_not_nan(value, "value must be a number")',
    FaultRule.UNREACHABLE: "assert_never(value)",
    FaultRule.OTHER: 'assert_invariant(condition, "invariant must hold")',
}


def is_python_path(path: str) -> bool:
    return path.endswith(".py")


def guard_for(rule: FaultRule, path: str) -> str:
    return (PY_GUARDS if is_python_path(path) else TS_GUARDS)[rule]


def unit_test_path(path: str) -> str:
    """``x.ts -> x.test.ts``; ``pkg/x.py -> pkg/test_x.py``."""
    pure = PurePosixPath(path)
    if is_python_path(path):
        return str(pure.with_name(f"test_{pure.name}"))
    if pure.suffix:
        return str(pure.with_suffix(f".test{pure.suffix}"))
    return f"{path}.test.ts"


def _python_name(text: str) -> str:
    return re.sub(r"\W+", "_", text).strip("_").lower() or "target"


def unit_test_stub(path: str, patch_id: str) -> str:
    module = PurePosixPath(path).stem
    if is_python_path(path):
        return (
            f"# Unit tests for {path} ({patch_id})\n"
            f"import {_python_name(module)}\n"
            "\n"
            "\n"
            f"def test_{_python_name(module)}_behaves_after_patch():\n"
            f"    assert {_python_name(module)} is not None\n"
        )
    return (
        f"// Unit tests for {path} ({patch_id})\n"
        f"import * as subject from './{module}';\n"
        "\n"
        f"describe('{module}', () => {{\n"
        "  it('behaves correctly after the patch', () => {\n"
        "    expect(subject).toBeDefined();\n"
        "  });\n"
        "});\n"
    )


def regression_test_stub(rule: str, target: str, fingerprint: str, python: bool) -> str:
    if python:
        return (
            f"# Regression test for {rule} fault at {target} ({fingerprint})\n"
            "import pytest\n"
            "\n"
            "\n"
            f"def test_selfheal_{_python_name(rule)}_{fingerprint}_does_not_recur():\n"
            f"    # Reproduce the failing input for {target}; the guard must reject it\n"
            "    with pytest.raises(AssertionError):\n"
            f"        raise AssertionError(\"{rule} guard\")\n"
        )
    return (
        f"// Regression test for {rule} fault at {target} ({fingerprint})\n"
        f"describe('selfheal {rule} regression {fingerprint}', () => {{\n"
        f"  it('does not recur at {target}', () => {{\n"
        f"    // Reproduce the failing input for {target}; the guard must reject it\n"
        f"    expect(() => {{ throw new Error('{rule} guard'); }}).toThrow();\n"
        "  });\n"
        "});\n"
    )
