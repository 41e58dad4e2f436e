"""Choreography emitter: renders trees back to s-expression source.

Annotated nodes print with a ^Role prefix when they have an owner:

    (do ^Ana x ^Bob y)
    ^Ana (let [^Ana x ^Ana 1] ^Ana x)
"""

from __future__ import annotations

from .ast import (
    Annotated,
    Do,
    Form,
    Ident,
    If,
    Keyword,
    Let,
    Literal,
    QualifiedIdent,
    RoleForm,
    Select,
    Vector,
)


def emit(node: object) -> str:
    """Render a surface, expanded, or annotated tree as source text."""
    if isinstance(node, Annotated):
        inner = emit(node.node)
        if node.owner is None:
            return inner
        return "^" + node.owner + " " + inner
    if isinstance(node, Ident):
        return node.name
    if isinstance(node, QualifiedIdent):
        return node.role + "/" + node.name
    if isinstance(node, Literal):
        return _emit_value(node.value)
    if isinstance(node, Do):
        return _list(["do"] + [emit(e) for e in node.exprs])
    if isinstance(node, Let):
        binders: list[str] = []
        for pattern, value in node.bindings:
            binders.append(emit(pattern))
            binders.append(emit(value))
        return _list(["let", "[" + " ".join(binders) + "]"] + [emit(e) for e in node.body])
    if isinstance(node, If):
        return _list(["if", emit(node.cond), emit(node.then), emit(node.else_)])
    if isinstance(node, Select):
        choosers = "[" + " ".join(emit(c) for c in node.choosers) + "]"
        return _list(["select", choosers] + [emit(e) for e in node.body])
    if isinstance(node, RoleForm):
        return _list([node.role] + [emit(e) for e in node.body])
    if isinstance(node, Form):
        return _list([emit(e) for e in node.items])
    if isinstance(node, Vector):
        return "[" + " ".join(emit(e) for e in node.items) + "]"
    raise TypeError("cannot emit " + type(node).__name__)


def _list(parts: list[str]) -> str:
    return "(" + " ".join(parts) + ")"


def _emit_value(value: object) -> str:
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, Keyword):
        return ":" + value.name
    if isinstance(value, str):
        return _quote(value)
    return repr(value)


def _quote(s: str) -> str:
    out: list[str] = ['"']
    for c in s:
        if c == "\\":
            out.append("\\\\")
        elif c == '"':
            out.append('\\"')
        elif c == "\n":
            out.append("\\n")
        elif c == "\r":
            out.append("\\r")
        elif c == "\t":
            out.append("\\t")
        elif c == "\0":
            out.append("\\0")
        else:
            out.append(c)
    out.append('"')
    return "".join(out)
