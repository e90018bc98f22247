"""End-to-end tests: transpile QBasic, run the JavaScript under Node.js.

Test cases live in 03_run/*.tests files. Each case is QBasic source,
then '---', then the expected stdout. Lines in the expected section that
start with '@' are directives instead of output:

    @stdin: <text>            a line fed to the program's standard input
    @exit: <code>             expected exit code (default 0)
    @stderr-contains: <text>  stderr must contain text
    @target: web              compile for the web target

Cases are skipped when node is not installed.
"""

from pathlib import Path

import pytest

RUN_DIR = Path(__file__).parent / "03_run"


def parse_run_file(path: Path) -> list[tuple[str, str, list[str]]]:
    """Parse .tests file into (name, source, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, list[str]]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            source_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                source_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            while expected_lines and not expected_lines[-1].strip():
                expected_lines.pop()
            result.append((test_name, "\n".join(source_lines) + "\n", expected_lines))
        else:
            i += 1
    return result


def discover_run_tests() -> list[tuple[str, str, list[str]]]:
    results = []
    for test_file in sorted(RUN_DIR.glob("*.tests")):
        for name, source, expected in parse_run_file(test_file):
            results.append((f"{test_file.stem}/{name}", source, expected))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize test_run over run test files."""
    if "run_source" in metafunc.fixturenames:
        params = [
            pytest.param(source, expected, id=test_id)
            for test_id, source, expected in discover_run_tests()
        ]
        metafunc.parametrize("run_source,run_expected", params)


def split_expected(expected: list[str]) -> tuple[list[str], dict[str, list[str]]]:
    """Separate stdout lines from '@' directives."""
    stdout: list[str] = []
    directives: dict[str, list[str]] = {}
    for line in expected:
        if line.startswith("@"):
            key, _, value = line[1:].partition(":")
            directives.setdefault(key.strip(), []).append(value.strip())
        else:
            stdout.append(line)
    return stdout, directives


def test_run(compiler, run_js, run_source: str, run_expected: list[str]):
    """Compile a program, run it, compare its output."""
    stdout, directives = split_expected(run_expected)
    target = directives.get("target", ["node"])[0]
    stdin = "".join(s + "\n" for s in directives.get("stdin", []))
    exit_code = int(directives.get("exit", ["0"])[0])

    result = compiler.compile(run_source, target)
    assert result.success, result.format_diagnostics()
    proc = run_js(result.code, stdin)

    assert proc.returncode == exit_code, (
        f"expected exit {exit_code}, got {proc.returncode}\nstderr: {proc.stderr}"
    )
    for fragment in directives.get("stderr-contains", []):
        assert fragment in proc.stderr, f"expected stderr to contain {fragment!r}"
    assert proc.stdout.rstrip("\n") == "\n".join(stdout), (
        f"--- expected ---\n{chr(10).join(stdout)}\n--- got ---\n{proc.stdout}"
    )


def test_files_land_in_working_directory(compiler, run_js, tmp_path: Path):
    source = (
        'OPEN "notes.txt" FOR OUTPUT AS #1\n'
        'PRINT #1, "first"\n'
        'PRINT #1, "second"\n'
        "CLOSE #1\n"
    )
    result = compiler.compile(source)
    assert result.success
    proc = run_js(result.code)
    assert proc.returncode == 0, proc.stderr
    assert (tmp_path / "notes.txt").read_text() == "first\nsecond\n"
