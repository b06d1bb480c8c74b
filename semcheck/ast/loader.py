# semcheck/ast/loader.py
"""
JSON <-> AST.

A node is an object whose "node" key names the class ("VarDecl",
"BinaryOp", ...) and whose other keys are the dataclass fields. Child nodes
nest as objects, child lists as arrays, "pos" is [line, column].

    {"node": "Program", "statements": [
        {"node": "VarDecl", "type_ann": "integer", "name": "x",
         "init": {"node": "IntLiteral", "value": 1, "pos": [1, 13]},
         "pos": [1, 1]}
    ]}
"""
from __future__ import annotations
import json
from dataclasses import fields
from typing import Any, Dict

from . import nodes as A

_CLASSES = {cls.__name__: cls for cls in A.NODE_TYPES}
_LIST_FIELDS = frozenset({"statements", "params", "args"})
_TEXT_FIELDS = frozenset({"name", "op", "type_ann", "return_type"})
# literal payloads; everywhere else "value" holds a child expression
_LITERAL_VALUES = {
    A.IntLiteral: (int,),
    A.FloatLiteral: (int, float),
    A.StringLiteral: (str,),
    A.BoolLiteral: (bool,),
}


class ASTFormatError(ValueError):
    pass


def node_from_dict(data: Any, path: str = "$") -> A.Node:
    if not isinstance(data, dict):
        raise ASTFormatError(f"{path}: expected an object with a 'node' key, got {type(data).__name__}")
    kind = data.get("node")
    cls = _CLASSES.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ASTFormatError(f"{path}: unknown node kind {kind!r}")

    known = {f.name for f in fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        # annotations from a previous dump are recomputed, never trusted
        if key in ("node", "resolved_type"):
            continue
        if key not in known:
            raise ASTFormatError(f"{path}: unknown field {key!r} for {kind}")
        kwargs[key] = _field_from_json(cls, key, value, f"{path}.{key}")
    return cls(**kwargs)


def _field_from_json(cls: type, key: str, value: Any, path: str) -> Any:
    if key == "pos":
        if value is None:
            return None
        if (not isinstance(value, list) or len(value) != 2
                or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)):
            raise ASTFormatError(f"{path}: expected [line, column]")
        return (value[0], value[1])
    if key in _LIST_FIELDS:
        if not isinstance(value, list):
            raise ASTFormatError(f"{path}: expected an array, got {_json_kind(value)}")
        return [node_from_dict(v, f"{path}[{i}]") for i, v in enumerate(value)]
    if key in _TEXT_FIELDS:
        if not isinstance(value, str):
            raise ASTFormatError(f"{path}: expected a string, got {_json_kind(value)}")
        return value
    if key == "value" and cls in _LITERAL_VALUES:
        allowed = _LITERAL_VALUES[cls]
        # JSON true/false must not pass for a number
        if not isinstance(value, allowed) or (isinstance(value, bool) and bool not in allowed):
            raise ASTFormatError(f"{path}: {_json_kind(value)} is not a valid {cls.__name__} value")
        return float(value) if cls is A.FloatLiteral else value
    # every remaining field is a single child node, possibly absent
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ASTFormatError(f"{path}: expected a node object or null, got {_json_kind(value)}")
    return node_from_dict(value, path)


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def load_program(data: Any) -> A.Program:
    try:
        node = node_from_dict(data)
    except RecursionError:
        raise ASTFormatError("$: AST nesting exceeds the interpreter recursion limit") from None
    if not isinstance(node, A.Program):
        raise ASTFormatError(f"$: root must be a Program node, got {type(node).__name__}")
    return node


def loads(text: str) -> A.Program:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as ex:
        raise ASTFormatError(f"invalid JSON: {ex}") from ex
    except RecursionError:
        raise ASTFormatError("invalid JSON: nesting exceeds the interpreter recursion limit") from None
    return load_program(data)


def read_text(path: str) -> str:
    """Read a UTF-8 file; undecodable bytes are a format error, not a crash."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except UnicodeDecodeError as ex:
        raise ASTFormatError(f"{path}: not valid UTF-8 (byte {ex.start}: {ex.reason})") from ex


def load_file(path: str) -> A.Program:
    return loads(read_text(path))


def dump_node(node: A.Node) -> Dict[str, Any]:
    out: Dict[str, Any] = {"node": type(node).__name__}
    for f in fields(node):
        v = getattr(node, f.name)
        if f.name == "resolved_type":
            if v is not None:
                out[f.name] = str(v)
            continue
        if f.name == "pos":
            if v is not None:
                out[f.name] = [v[0], v[1]]
            continue
        if isinstance(v, A.Node):
            out[f.name] = dump_node(v)
        elif isinstance(v, list):
            out[f.name] = [dump_node(x) for x in v]
        else:
            out[f.name] = v
    return out
