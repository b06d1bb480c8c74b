# semcheck/ast/dot_export.py
from __future__ import annotations
from typing import Dict, List

from . import nodes as A

# edge labels per field; unlisted fields keep their own name
_EDGE_LABELS = {
    "statements": "",
    "left": "L",
    "right": "R",
    "args": "arg",
    "params": "param",
    "then_block": "then",
    "else_block": "else",
    "expr": "",
}


def _esc(text: str) -> str:
    # backslashes first, the other escapes introduce new ones
    return str(text).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class ASTDotExporter:
    """Renders a (possibly annotated) AST as a Graphviz digraph."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self._map: Dict[int, str] = {}

    def _nid(self, n: A.Node) -> str:
        key = id(n)
        if key not in self._map:
            self._map[key] = f"n{len(self._map)}"
        return self._map[key]

    def _label(self, n: A.Node) -> str:
        # compact labels per kind
        t = type(n).__name__
        if isinstance(n, A.VarDecl):
            label = f"{t}\\n{_esc(n.type_ann)} {_esc(n.name)}"
        elif isinstance(n, A.FunctionDecl):
            ps = ", ".join(f"{_esc(p.type_ann)} {_esc(p.name)}" for p in n.params)
            label = f"{t}\\n{_esc(n.return_type)} {_esc(n.name)}({ps})"
        elif isinstance(n, A.Param):
            label = f"param\\n{_esc(n.type_ann)} {_esc(n.name)}"
        elif isinstance(n, A.Assign):
            label = f"=\\n{_esc(n.name)}"
        elif isinstance(n, A.Identifier):
            label = f"Id\\n{_esc(n.name)}"
        elif isinstance(n, A.CallExpr):
            label = f"call\\n{_esc(n.name)}"
        elif isinstance(n, A.IntLiteral):
            label = f"Int\\n{n.value}"
        elif isinstance(n, A.FloatLiteral):
            label = f"Float\\n{n.value}"
        elif isinstance(n, A.StringLiteral):
            label = f"Str\\n{_esc(n.value)}"
        elif isinstance(n, A.BoolLiteral):
            label = f"Bool\\n{'true' if n.value else 'false'}"
        elif isinstance(n, A.UnaryOp):
            label = f"UnOp\\n{_esc(n.op)}"
        elif isinstance(n, A.BinaryOp):
            label = f"BinOp\\n{_esc(n.op)}"
        elif isinstance(n, A.ExprStmt):
            label = "expr;"
        else:
            label = {
                A.Program: "program", A.Block: "block", A.IfStmt: "if",
                A.WhileStmt: "while", A.ForStmt: "for", A.ReturnStmt: "return",
                A.BreakStmt: "break", A.ContinueStmt: "continue",
            }.get(type(n), t)
        if isinstance(n, A.Expr) and n.resolved_type is not None:
            label += f"\\n: {n.resolved_type}"
        return label

    def _emit(self, s: str) -> None:
        self.lines.append("  " + s)

    def _edge(self, a: A.Node, b: A.Node, label: str = "") -> None:
        aid = self._nid(a); bid = self._nid(b)
        if label:
            self._emit(f'{aid} -> {bid} [label="{label}"];')
        else:
            self._emit(f"{aid} -> {bid};")

    def _node(self, n: A.Node) -> None:
        self._emit(f'{self._nid(n)} [label="{self._label(n)}"];')

    def _walk(self, root: A.Node) -> None:
        stack = [root]
        while stack:
            n = stack.pop()
            self._node(n)
            kids = [(child, _EDGE_LABELS.get(name, name)) for name, child in A.child_fields(n)]
            for child, label in kids:
                self._edge(n, child, label)
            stack.extend(child for child, _ in reversed(kids))

    def to_dot(self, root: A.Node) -> str:
        self.lines = ["digraph AST {", '  node [shape=box, fontsize=10, fontname="Courier"];']
        self._map = {}
        self._walk(root)
        self.lines.append("}")
        return "\n".join(self.lines)
