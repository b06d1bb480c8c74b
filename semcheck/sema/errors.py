# semcheck/sema/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ErrorKind(Enum):
    # value = stable code, shown to users and in --json output
    UNDECLARED_IDENTIFIER   = "E100"
    DUPLICATE_DECLARATION   = "E101"
    UNKNOWN_TYPE            = "E120"
    TYPE_MISMATCH           = "E200"
    INVALID_OPERAND_TYPE    = "E201"
    ARITY_MISMATCH          = "E202"
    ARGUMENT_TYPE_MISMATCH  = "E203"
    NOT_CALLABLE            = "E204"
    INVALID_JUMP            = "E300"
    INVALID_CONDITION_TYPE  = "E301"
    RETURN_OUTSIDE_FUNCTION = "E302"
    RETURN_TYPE_MISMATCH    = "E303"
    STACK_EXHAUSTED         = "E900"
    INTERNAL_ERROR          = "E999"

    @property
    def code(self) -> str:
        return self.value


# Short aliases, handy in tests and call sites
E_UNDECLARED       = ErrorKind.UNDECLARED_IDENTIFIER
E_DUPLICATE_ID     = ErrorKind.DUPLICATE_DECLARATION
E_UNKNOWN_TYPE     = ErrorKind.UNKNOWN_TYPE
E_TYPE_MISMATCH    = ErrorKind.TYPE_MISMATCH
E_OP_TYPES         = ErrorKind.INVALID_OPERAND_TYPE
E_CALL_ARITY       = ErrorKind.ARITY_MISMATCH
E_ARG_TYPE         = ErrorKind.ARGUMENT_TYPE_MISMATCH
E_NOT_CALLABLE     = ErrorKind.NOT_CALLABLE
E_BAD_JUMP         = ErrorKind.INVALID_JUMP
E_COND_NOT_BOOL    = ErrorKind.INVALID_CONDITION_TYPE
E_RETURN_OUTSIDE   = ErrorKind.RETURN_OUTSIDE_FUNCTION
E_RETURN_TYPE      = ErrorKind.RETURN_TYPE_MISMATCH
E_STACK_EXHAUSTED  = ErrorKind.STACK_EXHAUSTED
E_INTERNAL         = ErrorKind.INTERNAL_ERROR


Pos = Tuple[int, int]


class SemanticError(Exception):
    """
    First semantic violation found by the analyzer.

    Carries the error kind, a human readable message naming the offending
    identifier/construct and, when the AST node had one, its position.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        pos: Optional[Pos] = None,
        node: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        if pos is None and node is not None:
            pos = getattr(node, "pos", None)
        self.line, self.column = pos if pos is not None else (-1, -1)
        self.node = node

    @property
    def code(self) -> str:
        return self.kind.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "kind": self.kind.name,
            "message": self.message,
            "line": self.line,
            "col": self.column,
        }

    def __str__(self) -> str:
        return f"{self.code} @ {self.line}:{self.column} - {self.message}"

    def __repr__(self) -> str:
        return f"SemanticError({self.kind.name}, {self.message!r}, line={self.line}, column={self.column})"


@dataclass
class ReportedError:
    source: str
    error: SemanticError


class ErrorReporter:
    """Collects the failures of several independent analyses (one per input)."""
    def __init__(self) -> None:
        self.errors: List[ReportedError] = []

    def report(self, source: str, error: SemanticError) -> None:
        self.errors.append(ReportedError(source, error))

    def has_errors(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def summary(self) -> str:
        return "\n".join(f"{r.source}: {r.error}" for r in self.errors)
