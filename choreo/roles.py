"""Role expansion and role analysis.

Expansion rewrites role-qualified identifiers into explicit ownership
wrappers: Ana/x becomes (Ana x). It descends through do, let, if, select and
through ownership wrappers themselves, including let binders, which are never
evaluated but are expanded exactly like expressions. Every other shape is
returned untouched.

Analysis determines for each expression:

- the owning role: the role that holds the value of the expression, taken
  from the nearest enclosing ownership wrapper, or None when there is none;
- the involved roles: the roles taking part in evaluating the expression.

Annotations are returned in Annotated wrappers around rebuilt nodes:

    Annotated.owner: str | None   - owning role
    Annotated.roles: frozenset    - involved roles (see involved_roles)

Leaves are boxed the same way, so every node of an analyzed control form
exposes owner and roles. A compound node's owner is always the context it was
analyzed under and is never derived from its children. Forms outside the
attributed sublanguage (applications, vectors, forms headed by a name that is
not an active role) come back unchanged and unannotated, except that a
destructuring pattern in a let binding is boxed as a whole.

Which names are roles is decided only by membership in the active role set
passed to each call.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from .ast import (
    LEAF_TYPES,
    MAX_DEPTH,
    Annotated,
    Do,
    Ident,
    If,
    Let,
    Node,
    QualifiedIdent,
    RoleForm,
    Select,
    node_pos,
    role_head,
)


class RoleError(Exception):
    """Malformed or ill-placed form found by role expansion or analysis."""

    def __init__(self, msg: str, line: int = 0, col: int = 0):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        if line > 0:
            super().__init__(msg + " at line " + str(line) + " col " + str(col))
        else:
            super().__init__(msg)


def _error(msg: str, node: object) -> RoleError:
    pos = node_pos(node)
    if pos is None:
        return RoleError(msg)
    return RoleError(msg, pos.line, pos.col)


def active_roles(roles: Iterable[str]) -> frozenset[str]:
    """Freeze the caller's role names into an active role set."""
    if isinstance(roles, str):
        raise TypeError("roles must be an iterable of role names, not a string")
    return frozenset(roles)


# ============================================================
# SHAPE CHECKS
# ============================================================


def _check_depth(node: object, depth: int) -> None:
    # Leaves do not recurse. Expansion wraps a qualified leaf in a role form,
    # so the synthesized name sits one level below the read depth.
    if depth > MAX_DEPTH and not isinstance(node, LEAF_TYPES):
        raise _error("form nested too deeply", node)


def _check_do(node: Do) -> None:
    if len(node.exprs) == 0:
        raise _error("do requires at least one expression", node)


def _check_let(node: Let) -> None:
    for binding in node.bindings:
        if not isinstance(binding, (tuple, list)) or len(binding) != 2:
            raise _error("let binding must be a (pattern, value) pair", node)


def _check_if(node: If) -> None:
    if node.cond is None or node.then is None or node.else_ is None:
        raise _error("if requires exactly 3 parts", node)


def _check_select(node: Select) -> None:
    if len(node.choosers) == 0:
        raise _error("select requires at least one chooser", node)


def _check_role_body(node: object, body: list[Node]) -> None:
    if len(body) == 0:
        raise _error("role form requires at least one expression", node)


# ============================================================
# EXPANSION
# ============================================================


def expand(roles: Iterable[str], node: Node) -> Node:
    """Expand every role-qualified identifier in node into a role form.

    roles names the recognized roles. Qualified identifiers whose role is not
    among them are left exactly as they are.
    """
    return _expand(active_roles(roles), node, 0)


def _expand(roles: frozenset[str], node: Node, depth: int) -> Node:
    _check_depth(node, depth)
    if isinstance(node, QualifiedIdent):
        if node.role in roles:
            return RoleForm(node.role, [Ident(node.name, node.pos)], node.pos)
        return node
    if isinstance(node, Do):
        _check_do(node)
        return Do(_expand_all(roles, node.exprs, depth), node.pos)
    if isinstance(node, Let):
        _check_let(node)
        bindings = [
            (_expand(roles, pattern, depth + 1), _expand(roles, value, depth + 1))
            for pattern, value in node.bindings
        ]
        return Let(bindings, _expand_all(roles, node.body, depth), node.pos)
    if isinstance(node, If):
        _check_if(node)
        return If(
            _expand(roles, node.cond, depth + 1),
            _expand(roles, node.then, depth + 1),
            _expand(roles, node.else_, depth + 1),
            node.pos,
        )
    if isinstance(node, Select):
        _check_select(node)
        return Select(
            _expand_all(roles, node.choosers, depth),
            _expand_all(roles, node.body, depth),
            node.pos,
        )
    wrapped = role_head(node, roles)
    if wrapped is not None and wrapped[0] in roles:
        role, body = wrapped
        _check_role_body(node, body)
        return RoleForm(role, _expand_all(roles, body, depth), node_pos(node))
    return node


def _expand_all(roles: frozenset[str], nodes: list[Node], depth: int) -> list[Node]:
    return [_expand(roles, n, depth + 1) for n in nodes]


# ============================================================
# ANALYSIS
# ============================================================


@dataclass(frozen=True)
class RoleContext:
    """Context for role analysis at one position in the tree.

    role is the owner inherited from the nearest enclosing ownership wrapper.
    Each child of a form receives its parent's context unchanged; only an
    ownership wrapper replaces role.
    """

    roles: frozenset[str]
    role: str | None = None
    strict_branches: bool = False
    strict_unlocated: bool = False


def analyze(
    roles: Iterable[str],
    node: Node,
    strict_branches: bool = False,
    strict_unlocated: bool = False,
) -> Annotated | Node:
    """Annotate node and its subforms with their owning and involved roles.

    Analysis starts with no inherited owner. With strict_branches, an if
    whose branches are owned by two different roles and that has no
    enclosing owner is rejected. With strict_unlocated, a leaf that ends up
    with no owner is rejected.
    """
    ctx = RoleContext(
        active_roles(roles),
        None,
        strict_branches=strict_branches,
        strict_unlocated=strict_unlocated,
    )
    return analyze_ctx(ctx, node)


def analyze_ctx(ctx: RoleContext, node: Node, depth: int = 0) -> Annotated | Node:
    """Analyze node under ctx. Opaque nodes are returned unchanged."""
    _check_depth(node, depth)
    wrapped = role_head(node, ctx.roles)
    if wrapped is not None:
        role, body = wrapped
        return _analyze_role_form(ctx, node, role, body, depth)
    if isinstance(node, LEAF_TYPES):
        return _analyze_leaf(ctx, node)
    if isinstance(node, Do):
        _check_do(node)
        exprs = _analyze_all(ctx, node.exprs, depth)
        return Annotated(Do(exprs, node.pos), ctx.role, involved_roles(exprs))
    if isinstance(node, Let):
        _check_let(node)
        bindings = [
            (_analyze_pattern(ctx, pattern, depth + 1), analyze_ctx(ctx, value, depth + 1))
            for pattern, value in node.bindings
        ]
        body = _analyze_all(ctx, node.body, depth)
        children = [part for pair in bindings for part in pair] + body
        return Annotated(Let(bindings, body, node.pos), ctx.role, involved_roles(children))
    if isinstance(node, If):
        _check_if(node)
        cond = analyze_ctx(ctx, node.cond, depth + 1)
        then = analyze_ctx(ctx, node.then, depth + 1)
        else_ = analyze_ctx(ctx, node.else_, depth + 1)
        check_branch_owners(ctx, node, then, else_)
        return Annotated(
            If(cond, then, else_, node.pos), ctx.role, involved_roles([cond, then, else_])
        )
    if isinstance(node, Select):
        _check_select(node)
        choosers = _analyze_all(ctx, node.choosers, depth)
        body = _analyze_all(ctx, node.body, depth)
        return Annotated(
            Select(choosers, body, node.pos), ctx.role, involved_roles(choosers + body)
        )
    return node


def _analyze_all(ctx: RoleContext, nodes: list[Node], depth: int) -> list[Annotated | Node]:
    return [analyze_ctx(ctx, n, depth + 1) for n in nodes]


def _analyze_pattern(ctx: RoleContext, pattern: Node, depth: int) -> Annotated:
    result = analyze_ctx(ctx, pattern, depth)
    if isinstance(result, Annotated):
        return result
    # Destructuring vector: one annotation for the pattern as a whole.
    return Annotated(result, ctx.role, involved_roles([], ctx.role))


def _analyze_leaf(ctx: RoleContext, node: Node) -> Annotated:
    if ctx.role is None:
        check_unlocated(ctx, node)
        return Annotated(node, None, frozenset())
    return Annotated(node, ctx.role, frozenset([ctx.role]))


def _analyze_role_form(
    ctx: RoleContext, node: Node, role: str, body: list[Node], depth: int
) -> Annotated:
    if role not in ctx.roles:
        raise _error("undeclared role in ownership wrapper: " + role, node)
    _check_role_body(node, body)
    inner = replace(ctx, role=role)
    if len(body) == 1:
        result = analyze_ctx(inner, body[0], depth + 1)
        if not isinstance(result, Annotated):
            # Opaque data placed at role, e.g. a destructuring pattern.
            return Annotated(result, role, involved_roles([], role))
        if result.owner == role:
            return Annotated(result.node, role, involved_roles([result], role))
        # A nested wrapper for another role keeps its own placement.
        return Annotated(Do([result], node_pos(node)), role, involved_roles([result], role))
    exprs = _analyze_all(inner, body, depth)
    return Annotated(Do(exprs, node_pos(node)), role, involved_roles(exprs, role))


# ============================================================
# POLICIES
# ============================================================


def involved_roles(children: list[object], wrapper_role: str | None = None) -> frozenset[str]:
    """Compute the roles attribute of a node from its analyzed children.

    Currently the union of the children's roles, plus the role of the
    ownership wrapper when the node is one. Opaque children contribute
    nothing.
    """
    result: set[str] = set()
    for child in children:
        if isinstance(child, Annotated):
            result |= child.roles
    if wrapper_role is not None:
        result.add(wrapper_role)
    return frozenset(result)


def check_branch_owners(ctx: RoleContext, node: If, then: object, else_: object) -> None:
    """Reject an unowned if whose branches are owned by different roles.

    Only enforced with strict_branches; otherwise such an if is simply left
    without an owner.
    """
    if not ctx.strict_branches or ctx.role is not None:
        return
    if not isinstance(then, Annotated) or not isinstance(else_, Annotated):
        return
    if then.owner is None or else_.owner is None or then.owner == else_.owner:
        return
    raise _error("differing result roles: " + then.owner + ", " + else_.owner, node)


def check_unlocated(ctx: RoleContext, node: Node) -> None:
    """Reject a leaf with no owning role. Only enforced with strict_unlocated."""
    if not ctx.strict_unlocated:
        return
    if isinstance(node, Ident):
        raise _error("unlocated form: " + node.name, node)
    if isinstance(node, QualifiedIdent):
        raise _error("unlocated form: " + node.role + "/" + node.name, node)
    raise _error("unlocated form: " + repr(getattr(node, "value", node)), node)
