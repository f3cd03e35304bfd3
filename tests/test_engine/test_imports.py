"""Every module imports cleanly as the first svgnorm import of a fresh interpreter."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize(
    "module",
    [
        "svgnorm.errors",
        "svgnorm.svg.parser",
        "svgnorm.svg.transform",
        "svgnorm.svg.path_grammar",
        "svgnorm.models.diagnostics",
        "svgnorm.engine.context",
        "svgnorm.engine.pipeline",
        "svgnorm.engine.passes.p01_transform_applier",
        "svgnorm.engine.passes.p03_defs_reachability",
        "svgnorm.normalize",
    ],
)
def test_module_imports_first(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
