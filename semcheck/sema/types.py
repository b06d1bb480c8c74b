# semcheck/sema/types.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple


# -----------------------------
# Exceptions
# -----------------------------
class SemanticTypeError(TypeError):
    pass


# -----------------------------
# Base types
# -----------------------------
@dataclass(frozen=True)
class Type:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrimitiveType(Type):
    pass


@dataclass(frozen=True)
class VoidType(Type):
    pass


@dataclass(frozen=True)
class FunctionType(Type):
    params: Tuple[Type, ...]
    ret: Type

    def __str__(self) -> str:
        ps = ", ".join(str(p) for p in self.params)
        return f"({ps}) -> {self.ret}"


# Primitive singletons
BOOLEAN = PrimitiveType("boolean")
INTEGER = PrimitiveType("integer")
FLOAT   = PrimitiveType("float")
STRING  = PrimitiveType("string")
VOID    = VoidType("void")

_BY_NAME: Dict[str, Type] = {
    "integer": INTEGER, "int": INTEGER,
    "float": FLOAT,
    "boolean": BOOLEAN, "bool": BOOLEAN,
    "string": STRING,
    "void": VOID,
}


def lookup_type(name: str) -> Type:
    t = _BY_NAME.get(name)
    if t is None:
        raise SemanticTypeError(f"unknown type '{name}'")
    return t


# Helpers
def is_numeric(t: Type) -> bool:
    return t in (INTEGER, FLOAT)

def is_boolean(t: Type) -> bool:
    return t == BOOLEAN

def is_string(t: Type) -> bool:
    return t == STRING

def is_void(t: Type) -> bool:
    return isinstance(t, VoidType)

def unify_numeric(a: Type, b: Type, widening: bool = False) -> Type:
    if not (is_numeric(a) and is_numeric(b)):
        raise SemanticTypeError(f"expected numeric operands, got {a} and {b}")
    if a == b:
        return a
    if widening:
        return FLOAT
    raise SemanticTypeError(f"mixed numeric operands {a} and {b} (no implicit widening)")


# -----------------------------
# Compatibility
# -----------------------------
def types_are_compatible(declared: Type, actual: Type, widening: bool = False) -> bool:
    # void never flows into a slot
    if is_void(declared) or is_void(actual):
        return False
    if declared == actual:
        return True
    # opt-in promotion: integer -> float
    if widening and actual == INTEGER and declared == FLOAT:
        return True
    return False


# -----------------------------
# Operators
# -----------------------------
ARITHMETIC_OPS = ("+", "-", "*", "/", "%")
LOGICAL_OPS    = ("&&", "||")
RELATIONAL_OPS = ("<", "<=", ">", ">=")
EQUALITY_OPS   = ("==", "!=")
UNARY_OPS      = ("-", "!")

BINARY_OPS = ARITHMETIC_OPS + LOGICAL_OPS + RELATIONAL_OPS + EQUALITY_OPS


def result_arith(op: str, a: Type, b: Type, widening: bool = False) -> Type:
    # string concatenation
    if op == "+" and is_string(a) and is_string(b):
        return STRING
    return unify_numeric(a, b, widening)

def result_logical(a: Type, b: Type) -> Type:
    if is_boolean(a) and is_boolean(b):
        return BOOLEAN
    raise SemanticTypeError(f"logical operator requires boolean operands, got {a} and {b}")

def result_relational(a: Type, b: Type, widening: bool = False) -> Type:
    unify_numeric(a, b, widening)
    return BOOLEAN

def result_equality(a: Type, b: Type, widening: bool = False) -> Type:
    if is_void(a) or is_void(b):
        raise SemanticTypeError("cannot compare void values")
    if a == b:
        return BOOLEAN
    if widening and is_numeric(a) and is_numeric(b):
        return BOOLEAN
    raise SemanticTypeError(f"equality requires operands of the same type, got {a} and {b}")


def result_binary(op: str, a: Type, b: Type, widening: bool = False) -> Type:
    if op in ARITHMETIC_OPS:
        return result_arith(op, a, b, widening)
    if op in LOGICAL_OPS:
        return result_logical(a, b)
    if op in RELATIONAL_OPS:
        return result_relational(a, b, widening)
    if op in EQUALITY_OPS:
        return result_equality(a, b, widening)
    raise KeyError(op)


def result_unary(op: str, t: Type) -> Type:
    if op == "-":
        if is_numeric(t):
            return t
        raise SemanticTypeError(f"unary '-' requires a numeric operand, got {t}")
    if op == "!":
        if is_boolean(t):
            return BOOLEAN
        raise SemanticTypeError(f"'!' requires a boolean operand, got {t}")
    raise KeyError(op)


# -----------------------------
# Functions
# -----------------------------
def function_type(params: Sequence[Type], ret: Type) -> FunctionType:
    return FunctionType(name="fn", params=tuple(params), ret=ret)
