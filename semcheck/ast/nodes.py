# semcheck/ast/nodes.py
from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from semcheck.sema.types import Type

Pos = Tuple[int, int]  # (line, column)

# ====== Base ======

@dataclass
class Node:
    pos: Optional[Pos] = None

# ====== Program and statements ======

@dataclass
class Program(Node):
    statements: List["Stmt"] = field(default_factory=list)

class Stmt(Node):
    pass

@dataclass
class Block(Stmt):
    statements: List[Stmt] = field(default_factory=list)

@dataclass
class VarDecl(Stmt):
    type_ann: str = ""
    name: str = ""
    init: Optional["Expr"] = None

@dataclass
class Assign(Stmt):
    name: str = ""
    value: "Expr" = None

@dataclass
class ExprStmt(Stmt):
    expr: "Expr" = None

@dataclass
class IfStmt(Stmt):
    cond: "Expr" = None
    then_block: Block = None
    else_block: Optional[Block] = None

@dataclass
class WhileStmt(Stmt):
    cond: "Expr" = None
    body: Block = None

@dataclass
class ForStmt(Stmt):
    init: Optional[Union[VarDecl, Assign]] = None
    cond: Optional["Expr"] = None
    update: Optional[Union[Assign, "Expr"]] = None
    body: Block = None

@dataclass
class BreakStmt(Stmt):
    pass

@dataclass
class ContinueStmt(Stmt):
    pass

@dataclass
class ReturnStmt(Stmt):
    value: Optional["Expr"] = None

@dataclass
class Param(Node):
    name: str = ""
    type_ann: str = ""

@dataclass
class FunctionDecl(Stmt):
    return_type: str = "void"
    name: str = ""
    params: List[Param] = field(default_factory=list)
    body: Block = None

# ====== Expressions ======

@dataclass
class Expr(Node):
    # filled in by the analyzer; not part of the tree's identity
    resolved_type: Optional["Type"] = field(default=None, compare=False, repr=False)

@dataclass
class Identifier(Expr):
    name: str = ""

@dataclass
class CallExpr(Expr):
    name: str = ""
    args: List[Expr] = field(default_factory=list)

@dataclass
class IntLiteral(Expr):
    value: int = 0

@dataclass
class FloatLiteral(Expr):
    value: float = 0.0

@dataclass
class StringLiteral(Expr):
    value: str = ""

@dataclass
class BoolLiteral(Expr):
    value: bool = False

@dataclass
class UnaryOp(Expr):
    op: str = ""
    expr: Expr = None

@dataclass
class BinaryOp(Expr):
    op: str = ""
    left: Expr = None
    right: Expr = None


# Every concrete node kind; each one needs a handler wherever the tree is dispatched on.
NODE_TYPES = (
    Program, Block, VarDecl, Assign, ExprStmt, IfStmt, WhileStmt, ForStmt,
    BreakStmt, ContinueStmt, ReturnStmt, Param, FunctionDecl,
    Identifier, CallExpr, IntLiteral, FloatLiteral, StringLiteral, BoolLiteral,
    UnaryOp, BinaryOp,
)

_NOT_CHILDREN = ("pos", "resolved_type")


def child_fields(node: Node) -> Iterator[Tuple[str, Node]]:
    """(field name, child node) pairs, in field order."""
    for f in fields(node):
        if f.name in _NOT_CHILDREN:
            continue
        v = getattr(node, f.name)
        if isinstance(v, Node):
            yield f.name, v
        elif isinstance(v, list):
            for item in v:
                if isinstance(item, Node):
                    yield f.name, item


def children(node: Node) -> Iterator[Node]:
    """Direct child nodes, in field order."""
    for _, child in child_fields(node):
        yield child


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal; iterative so very deep trees are fine."""
    stack = [node]
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(list(children(n))))
