"""Choreo CLI: read, role-expand and role-analyze choreography source."""

from __future__ import annotations

import sys

from . import extract_roles
from .emit import emit
from .reader import ReadError, read_all
from .roles import RoleError, analyze, expand
from .serialize import to_json
from .tokens import TokenizeError


PHASES: list[str] = ["read", "expand", "analyze"]

USAGE: str = """\
choreo [OPTIONS] [INPUT]

Role-expand and role-analyze a choreography. Reads INPUT, or stdin if absent.

Options:
  --roles A,B          Active roles (added to any ';; roles:' pragma)
  --stop-at PHASE      Stop after phase: read, expand, analyze
  --json               Print the result as JSON instead of source text
  --strict-branches    Reject if-branches owned by differing roles
  --strict-unlocated   Reject leaves with no owning role
  --strict             Enable --strict-branches and --strict-unlocated
  --help               Show this help message
"""


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def run_pipeline(
    source: str,
    roles: list[str],
    stop_at: str,
    as_json: bool,
    strict_branches: bool,
    strict_unlocated: bool,
) -> tuple[int, str]:
    """Run the passes over every top-level form. Returns (exit_code, output)."""
    try:
        forms = read_all(source)
    except (TokenizeError, ReadError) as e:
        print("error:" + str(e.line) + ":" + str(e.col) + ": " + e.msg, file=sys.stderr)
        return (1, "")
    results: list[object] = list(forms)
    try:
        if stop_at != "read":
            results = [expand(roles, form) for form in forms]
        if stop_at == "analyze":
            results = [
                analyze(
                    roles,
                    form,
                    strict_branches=strict_branches,
                    strict_unlocated=strict_unlocated,
                )
                for form in results
            ]
    except RoleError as e:
        print("error:" + str(e.line) + ":" + str(e.col) + ": " + e.msg, file=sys.stderr)
        return (1, "")
    if as_json:
        return (0, to_json(results))
    return (0, "\n".join(emit(r) for r in results))


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    input_file: str | None = None
    roles: list[str] = []
    stop_at = "analyze"
    as_json = False
    strict_branches = False
    strict_unlocated = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--roles":
            if i + 1 >= len(args):
                print("error: --roles requires an argument", file=sys.stderr)
                return 2
            for name in args[i + 1].split(","):
                name = name.strip()
                if name != "" and name not in roles:
                    roles.append(name)
            i += 2
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("error: --stop-at requires an argument", file=sys.stderr)
                return 2
            stop_at = args[i + 1]
            if stop_at not in PHASES:
                print("error: unknown phase '" + stop_at + "'", file=sys.stderr)
                return 2
            i += 2
        elif arg == "--json":
            as_json = True
            i += 1
        elif arg == "--strict":
            strict_branches = True
            strict_unlocated = True
            i += 1
        elif arg == "--strict-branches":
            strict_branches = True
            i += 1
        elif arg == "--strict-unlocated":
            strict_unlocated = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif input_file is None:
            input_file = arg
            i += 1
        else:
            print("error: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2

    source, code = read_source(input_file)
    if code != 0:
        return code
    for name in extract_roles(source):
        if name not in roles:
            roles.append(name)
    code, output = run_pipeline(
        source, roles, stop_at, as_json, strict_branches, strict_unlocated
    )
    if code == 0 and output != "":
        print(output)
    return code


if __name__ == "__main__":
    sys.exit(main())
