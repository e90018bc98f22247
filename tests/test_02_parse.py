"""Pytest-based parser and code generation tests.

Test cases live in 02_parse/*.tests files. Each case is QBasic source,
then '---', then one expectation per line:

    ok                  no error diagnostics
    error: <text>       an error diagnostic whose message contains text
    warning: <text>     a warning diagnostic whose message contains text
    code: <line>        the generated JavaScript has a line equal to this
    no-code: <line>     the generated JavaScript has no line equal to this
    errors: <n>         exactly n error diagnostics
    target: web         compile for the web target instead of node
"""

import signal
from pathlib import Path

import pytest

from qbnexus.diagnostics import SEV_ERROR, SEV_WARNING
from qbnexus.frontend.parse import ParseResult, parse
from qbnexus.frontend.tokens import tokenize

PARSE_TIMEOUT = 5


def _timeout_handler(signum, frame):
    raise TimeoutError("parse() timed out")


signal.signal(signal.SIGALRM, _timeout_handler)

PARSE_DIR = Path(__file__).parent / "02_parse"


def parse_test_file(path: Path) -> list[tuple[str, str, list[str]]]:
    """Parse .tests file into (name, input, expectations) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, list[str]]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                if lines[i].strip():
                    expected_lines.append(lines[i].strip())
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            result.append((test_name, test_input, expected_lines))
        else:
            i += 1
    return result


def discover_parse_tests() -> list[tuple[str, str, list[str], str]]:
    """Find all parse tests, returns (test_id, input, expected, file_stem)."""
    results = []
    for test_file in sorted(PARSE_DIR.glob("*.tests")):
        tests = parse_test_file(test_file)
        for name, input_code, expected in tests:
            test_id = f"{test_file.stem}/{name}"
            results.append((test_id, input_code, expected, test_file.stem))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize tests over parse test files."""
    if "parse_input" in metafunc.fixturenames:
        tests = discover_parse_tests()
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected, _ in tests
        ]
        metafunc.parametrize("parse_input,parse_expected", params)


def code_lines(code: str) -> list[str]:
    return [line.strip() for line in code.split("\n") if line.strip()]


def messages(result: ParseResult, severity: str) -> list[str]:
    return [d.message for d in result.diagnostics if d.severity == severity]


def test_parse(parse_input: str, parse_expected: list[str]):
    """Verify the parser produces the expected code and diagnostics."""
    target = "node"
    for expectation in parse_expected:
        if expectation.startswith("target:"):
            target = expectation[7:].strip()
    try:
        signal.alarm(PARSE_TIMEOUT)
        result = parse(tokenize(parse_input), target)
    finally:
        signal.alarm(0)

    lines = code_lines(result.code)
    errors = messages(result, SEV_ERROR)
    warnings = messages(result, SEV_WARNING)
    for expectation in parse_expected:
        if expectation == "ok":
            if errors:
                pytest.fail(f"Expected ok, got errors: {errors}")
        elif expectation.startswith("error:"):
            expected_msg = expectation[6:].strip()
            if not any(expected_msg.lower() in m.lower() for m in errors):
                pytest.fail(f"Expected error containing {expected_msg!r}, got {errors}")
        elif expectation.startswith("warning:"):
            expected_msg = expectation[8:].strip()
            if not any(expected_msg.lower() in m.lower() for m in warnings):
                pytest.fail(
                    f"Expected warning containing {expected_msg!r}, got {warnings}"
                )
        elif expectation.startswith("code:"):
            expected_line = expectation[5:].strip()
            if expected_line not in lines:
                pytest.fail(
                    f"Expected line not found in output:\n{expected_line}\n--- got ---\n{result.code}"
                )
        elif expectation.startswith("no-code:"):
            unexpected = expectation[8:].strip()
            if unexpected in lines:
                pytest.fail(f"Unexpected line in output:\n{unexpected}")
        elif expectation.startswith("errors:"):
            count = int(expectation[7:].strip())
            if len(errors) != count:
                pytest.fail(f"Expected {count} error(s), got {errors}")
        elif expectation.startswith("target:"):
            continue
        else:
            pytest.fail(f"Unknown expected format: {expectation}")


# --- Structural properties ---


def test_braces_balance_after_unclosed_blocks():
    source = "FOR i = 1 TO 3\nIF i THEN\nDO\nWHILE 1\nSELECT CASE i\nCASE 1\n"
    result = parse(tokenize(source))
    assert result.code.count("{") == result.code.count("}")
    errors = messages(result, SEV_ERROR)
    assert "FOR without NEXT" in errors
    assert "Block IF without END IF" in errors
    assert "DO without LOOP" in errors
    assert "WHILE without WEND" in errors
    assert "SELECT CASE without END SELECT" in errors


def test_one_bad_line_keeps_the_rest():
    source = 'PRINT "a"\nx = = 1\nPRINT "b"\n'
    result = parse(tokenize(source))
    errors = [d for d in result.diagnostics if d.severity == SEV_ERROR]
    assert len(errors) == 1
    assert errors[0].line == 2
    lines = code_lines(result.code)
    assert '_print("a", true);' in lines
    assert '_print("b", true);' in lines


def test_one_error_reported_per_line():
    result = parse(tokenize("x = ( ( (\n"))
    assert len([d for d in result.diagnostics if d.severity == SEV_ERROR]) == 1


def test_garbage_input_terminates():
    source = ") ) , ; : # . = < > END ELSE CASE NEXT WEND LOOP\n" * 20
    result = parse(tokenize(source))
    assert result.code.endswith("})();")


def test_data_table_is_in_source_order():
    source = "DATA 1, 2\nREAD a\nSUB S\nDATA 3\nEND SUB\nDATA four, -5, 2.50\n"
    result = parse(tokenize(source))
    assert 'const _DATA = [1, 2, 3, "four", -5, 2.5];' in code_lines(result.code)


def test_function_result_slot():
    source = "FUNCTION F (a)\nIF a THEN EXIT FUNCTION\nF = 2\nEND FUNCTION\n"
    result = parse(tokenize(source))
    lines = code_lines(result.code)
    assert lines.count("return F_result;") == 2
    assert lines.index("let F_result = 0;") < lines.index("F_result = 2;")


def test_hoisted_declaration_precedes_use():
    source = "IF 1 THEN\ny = 2\nEND IF\nPRINT y\n"
    lines = code_lines(parse(tokenize(source)).code)
    assert lines.index("let y = 0;") < lines.index("y = 2;")


def test_web_and_node_share_the_body():
    source = "x = 1\nPRINT x\n"
    node = code_lines(parse(tokenize(source), "node").code)
    web = code_lines(parse(tokenize(source), "web").code)
    body = ["let x = 1;", "_print(x, true);"]
    for line in body:
        assert line in node
        assert line in web
    assert "rl.close();" in node
    assert "rl.close();" not in web


def test_unknown_statement_suggestions():
    result = parse(tokenize('PRIMT "x"\n'))
    diag = [d for d in result.diagnostics if d.severity == SEV_ERROR][0]
    assert diag.category == "reference"
    assert diag.suggestions[0] == "PRINT"
    assert len(diag.suggestions) <= 3


def test_procedure_call_before_definition():
    source = "Hello 1, 2\nSUB Hello (a, b)\nEND SUB\n"
    result = parse(tokenize(source))
    assert not messages(result, SEV_ERROR)
    assert "await Hello(1, 2);" in code_lines(result.code)
