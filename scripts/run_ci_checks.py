#!/usr/bin/env python3
# =============================================================================
# chainproof -- CI CHECKS RUNNER
# File:   scripts/run_ci_checks.py
# =============================================================================
#
# PURPOSE
# -------
# Runs every stage in _STAGES in order and stops at the first failure.
#
#   tests     pytest, with coverage of the chainproof package enforced at
#             >= 90% by pytest-cov.
#   example   usage_example.py runs end to end against a temporary store.
#
# Exit code: 0 if every stage passed, otherwise the 1-based position of the
# first failing stage in _STAGES.
#
# Usage:
#   pip install -e ".[test]"
#   python scripts/run_ci_checks.py
# =============================================================================

from __future__ import annotations

import subprocess
import sys
import pathlib
from typing import List, Tuple

_REPO_ROOT = pathlib.Path(__file__).parent.parent
_PYTHON    = sys.executable

_COVERAGE_FLOOR = 90

_STAGES: List[Tuple[str, List[str]]] = [
    (
        "tests",
        [
            _PYTHON, "-m", "pytest",
            "--cov=chainproof",
            "--cov-report=term-missing",
            "--cov-fail-under=" + str(_COVERAGE_FLOOR),
        ],
    ),
    ("example", [_PYTHON, "usage_example.py"]),
]


def _banner(text: str, char: str = "=") -> None:
    print(char * 72)
    print(text)
    print(char * 72)
    sys.stdout.flush()


def run_stage(name: str, cmd: List[str]) -> int:
    """Run one stage from the repository root; return its exit code."""
    _banner("CI STAGE " + name + ": " + " ".join(cmd), "-")
    return subprocess.run(cmd, cwd=str(_REPO_ROOT)).returncode


def main() -> int:
    passed: List[str] = []
    for position, (name, cmd) in enumerate(_STAGES, start=1):
        rc = run_stage(name, cmd)
        if rc != 0:
            _banner(
                "CI RESULT: FAIL  [stage=" + name + "  exit_code=" + str(rc) + "]\n"
                "passed before failure: " + (", ".join(passed) or "none")
            )
            return position
        passed.append(name)

    _banner("CI RESULT: PASS  [stages=" + ",".join(passed) + "]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
