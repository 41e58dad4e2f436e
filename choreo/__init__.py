"""Choreography role expansion and role analysis: public API."""

from __future__ import annotations

from .ast import Annotated, Node
from .emit import emit
from .reader import ReadError as ReadError, read, read_all
from .roles import RoleError as RoleError, analyze, expand
from .serialize import serialize as to_dict, to_json
from .tokens import TokenizeError as TokenizeError


def extract_roles(source: str) -> list[str]:
    """Scan leading comment lines for a roles pragma. Returns the role names.

    The pragma looks like ";; roles: Ana Bob" and may be given more than once.
    """
    roles: list[str] = []
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith(";"):
            break
        body = stripped.lstrip(";").strip()
        if body.startswith("roles:"):
            for name in body[len("roles:") :].replace(",", " ").split():
                if name not in roles:
                    roles.append(name)
    return roles


def expand_source(source: str, roles: list[str] | None = None) -> list[Node]:
    """Read source and role-expand every top-level form."""
    active = extract_roles(source) if roles is None else roles
    return [expand(active, form) for form in read_all(source)]


def analyze_source(
    source: str,
    roles: list[str] | None = None,
    strict_branches: bool = False,
    strict_unlocated: bool = False,
) -> list[Annotated | Node]:
    """Read, role-expand and role-analyze every top-level form in source.

    If roles is None the active roles come from the source's roles pragma.
    """
    active = extract_roles(source) if roles is None else roles
    return [
        analyze(
            active,
            expand(active, form),
            strict_branches=strict_branches,
            strict_unlocated=strict_unlocated,
        )
        for form in read_all(source)
    ]
