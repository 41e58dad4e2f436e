"""Choreography AST: surface, expanded and annotated node definitions."""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# POSITION
# ============================================================


@dataclass(frozen=True)
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# NODES
# ============================================================


class Node:
    """Base for all tree nodes."""


@dataclass
class Ident(Node):
    """Plain name."""

    name: str
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class QualifiedIdent(Node):
    """Role/name, the binding name owned by role."""

    role: str
    name: str
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class Literal(Node):
    """Atomic value: int, float, str, bool, None, or a Keyword."""

    value: object
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Keyword:
    """:name atom."""

    name: str


@dataclass
class Do(Node):
    """(do e ...): one or more expressions evaluated in order."""

    exprs: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class Let(Node):
    """(let [p v ...] e ...): bindings is a list of (pattern, value) pairs."""

    bindings: list[tuple[Node, Node]]
    body: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class If(Node):
    """(if cond then else)."""

    cond: Node
    then: Node
    else_: Node
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class Select(Node):
    """(select [c ...] e ...): choosers announce the branch, body reacts."""

    choosers: list[Node]
    body: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class RoleForm(Node):
    """(Role e ...): ownership wrapper placing its body at role."""

    role: str
    body: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class Form(Node):
    """Any other parenthesized list. Opaque to both passes."""

    items: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


@dataclass
class Vector(Node):
    """[e ...]: bracketed data such as a destructuring pattern. Opaque."""

    items: list[Node]
    pos: Pos | None = field(default=None, compare=False, repr=False)


# ============================================================
# ANNOTATIONS
# ============================================================


@dataclass
class Annotated:
    """A node together with its owning role and involved roles.

    For leaves (Ident, Literal, QualifiedIdent, or an opaque node forced under
    an ownership wrapper) node is the original node, boxed. For compound
    nodes node is a rebuilt Do/Let/If/Select whose children are Annotated,
    or left as-is when they are opaque.
    """

    node: object
    owner: str | None
    roles: frozenset[str] = frozenset()


# Deepest nesting accepted by the reader and both passes. Serialization
# spends several interpreter frames per level.
MAX_DEPTH = 100

LEAF_TYPES: tuple[type, ...] = (Ident, QualifiedIdent, Literal)


def node_pos(node: object) -> Pos | None:
    """Return the source position of node, or None if it has none."""
    return getattr(node, "pos", None)


def role_head(node: object, roles: frozenset[str]) -> tuple[str, list[Node]] | None:
    """Return (role, body) if node is an ownership wrapper under roles.

    An explicit RoleForm always counts (its role is validated by the
    analyzer). A Form counts only when its head is an Ident naming a member of
    roles; with any other head it is inert data.
    """
    if isinstance(node, RoleForm):
        return node.role, node.body
    if isinstance(node, Form) and len(node.items) > 0:
        head = node.items[0]
        if isinstance(head, Ident) and head.name in roles:
            return head.name, node.items[1:]
    return None
