"""Data-driven role expansion and role analysis tests.

Test cases live in 03_roles/*.tests files. The file stem names the phase
(expand or analyze). Format:

    === test name
    roles: Ana Bob
    (source form)
    ---
    (expected output, as emitted source)
    ---

The roles line is optional (no active roles). Expected output is the emitted
result of every top-level form, one per line.
"""

from pathlib import Path

import pytest

from choreo import analyze_source, emit, expand_source

ROLES_DIR = Path(__file__).parent / "03_roles"


def parse_roles_file(path: Path) -> list[tuple[str, list[str], str, str]]:
    """Parse .tests file into (name, roles, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, list[str], str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            roles: list[str] = []
            if i < len(lines) and lines[i].startswith("roles:"):
                roles = lines[i][len("roles:") :].split()
                i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, roles, test_input, expected))
        else:
            i += 1
    return result


def discover_roles_tests() -> list[tuple[str, str, list[str], str, str]]:
    """Find all role tests, returns (test_id, phase, roles, input, expected)."""
    results = []
    for test_file in sorted(ROLES_DIR.glob("*.tests")):
        for name, roles, input_code, expected in parse_roles_file(test_file):
            test_id = f"{test_file.stem}/{name}"
            results.append((test_id, test_file.stem, roles, input_code, expected))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize tests over role test files."""
    if "roles_case" in metafunc.fixturenames:
        params = [
            pytest.param((phase, roles, input_code, expected), id=test_id)
            for test_id, phase, roles, input_code, expected in discover_roles_tests()
        ]
        metafunc.parametrize("roles_case", params)


def test_cases_discovered():
    assert len(discover_roles_tests()) > 0


def test_roles(roles_case):
    """Verify expansion or analysis output matches the expected source."""
    phase, roles, source, expected = roles_case
    if phase == "expand":
        run = expand_source
    elif phase == "analyze":
        run = analyze_source
    else:
        pytest.fail(f"unknown phase '{phase}'")
    forms = run(source, roles)
    actual = "\n".join(emit(f) for f in forms)
    assert actual == expected
