"""Pytest configuration for the qbnexus test suite."""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

# Add the repository root to path for qbnexus imports
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from qbnexus.compiler import Compiler, CompilerOptions  # noqa: E402

NODE_TIMEOUT = 10


@pytest.fixture
def compiler() -> Compiler:
    """A fresh compiler with its own cache."""
    return Compiler(CompilerOptions())


@pytest.fixture
def run_js(tmp_path: Path):
    """Run generated JavaScript under Node.js; skips when node is missing.

    Returns a callable (code, stdin="") -> CompletedProcess[str]. The
    program runs with tmp_path as its working directory.
    """
    node = shutil.which("node")
    if node is None:
        pytest.skip("node is not installed")

    def run(code: str, stdin: str = "") -> subprocess.CompletedProcess[str]:
        script = tmp_path / "program.js"
        script.write_text(code, encoding="utf-8")
        return subprocess.run(
            [node, str(script)],
            input=stdin,
            capture_output=True,
            text=True,
            cwd=tmp_path,
            timeout=NODE_TIMEOUT,
        )

    return run
