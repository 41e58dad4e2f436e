"""Serialization of choreography trees to JSON-compatible dicts."""

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
    Pos,
    QualifiedIdent,
    RoleForm,
    Select,
    Vector,
)


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, str):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(serialize(x) for x in obj)
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    return _node_serialize(obj)


def _node_serialize(obj: object) -> dict[str, object]:
    """Serialize tree nodes via isinstance dispatch."""
    if isinstance(obj, Annotated):
        return {
            "_type": "Annotated",
            "owner": obj.owner,
            "roles": serialize(obj.roles),
            "node": serialize(obj.node),
        }
    if isinstance(obj, Pos):
        return {"_type": "Pos", "line": obj.line, "col": obj.col}
    if isinstance(obj, Keyword):
        return {"_type": "Keyword", "name": obj.name}
    d: dict[str, object] = {}
    if isinstance(obj, Ident):
        d["_type"] = "Ident"
        d["name"] = obj.name
    elif isinstance(obj, QualifiedIdent):
        d["_type"] = "QualifiedIdent"
        d["role"] = obj.role
        d["name"] = obj.name
    elif isinstance(obj, Literal):
        d["_type"] = "Literal"
        d["value"] = serialize(obj.value)
    elif isinstance(obj, Do):
        d["_type"] = "Do"
        d["exprs"] = serialize(obj.exprs)
    elif isinstance(obj, Let):
        d["_type"] = "Let"
        d["bindings"] = [
            {"pattern": serialize(p), "value": serialize(v)} for p, v in obj.bindings
        ]
        d["body"] = serialize(obj.body)
    elif isinstance(obj, If):
        d["_type"] = "If"
        d["cond"] = serialize(obj.cond)
        d["then"] = serialize(obj.then)
        d["else"] = serialize(obj.else_)
    elif isinstance(obj, Select):
        d["_type"] = "Select"
        d["choosers"] = serialize(obj.choosers)
        d["body"] = serialize(obj.body)
    elif isinstance(obj, RoleForm):
        d["_type"] = "RoleForm"
        d["role"] = obj.role
        d["body"] = serialize(obj.body)
    elif isinstance(obj, Form):
        d["_type"] = "Form"
        d["items"] = serialize(obj.items)
    elif isinstance(obj, Vector):
        d["_type"] = "Vector"
        d["items"] = serialize(obj.items)
    else:
        raise TypeError("cannot serialize " + type(obj).__name__)
    d["pos"] = serialize(obj.pos)
    return d


# --- JSON output ---


def _json_escape(s: str) -> str:
    """Escape a string for JSON output."""
    result: list[str] = []
    for c in s:
        if c == "\\":
            result.append("\\\\")
        elif c == '"':
            result.append('\\"')
        elif c == "\n":
            result.append("\\n")
        elif c == "\r":
            result.append("\\r")
        elif c == "\t":
            result.append("\\t")
        elif ord(c) < 0x20:
            result.append("\\u" + format(ord(c), "04x"))
        else:
            result.append(c)
    return "".join(result)


def _to_json(obj: object, indent: int, level: int) -> str:
    if obj is None:
        return "null"
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, (int, float)):
        return repr(obj)
    if isinstance(obj, str):
        return '"' + _json_escape(obj) + '"'
    pad = " " * (indent * (level + 1))
    pad_close = " " * (indent * level)
    if isinstance(obj, list):
        if len(obj) == 0:
            return "[]"
        parts = [pad + _to_json(x, indent, level + 1) for x in obj]
        return "[\n" + ",\n".join(parts) + "\n" + pad_close + "]"
    if isinstance(obj, dict):
        if len(obj) == 0:
            return "{}"
        parts = [
            pad + '"' + _json_escape(str(k)) + '": ' + _to_json(v, indent, level + 1)
            for k, v in obj.items()
        ]
        return "{\n" + ",\n".join(parts) + "\n" + pad_close + "}"
    return '"<unserializable>"'


def to_json(obj: object) -> str:
    """Serialize a tree (or serialized structure) to pretty-printed JSON."""
    return _to_json(serialize(obj), 2, 0)
