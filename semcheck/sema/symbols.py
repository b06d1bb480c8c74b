# semcheck/sema/symbols.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .types import Type, FunctionType, function_type

Pos = Tuple[int, int]


# Symbols are frozen: once declared in a scope they never change.
@dataclass(frozen=True)
class Symbol:
    name: str
    # subclasses fix kind
    kind: str = field(default="symbol")
    # declaration site, ignored by equality
    pos: Optional[Pos] = field(default=None, compare=False)

    def is_variable(self) -> bool:
        return False

    def is_function(self) -> bool:
        return False


@dataclass(frozen=True)
class VariableSymbol(Symbol):
    kind: str = field(default="var", init=False)
    type: Optional[Type] = None

    def is_variable(self) -> bool:
        return True

    def __str__(self) -> str:
        return f"{self.name}: {self.type}"


@dataclass(frozen=True)
class ParamSymbol(VariableSymbol):
    kind: str = field(default="param", init=False)


@dataclass(frozen=True)
class FunctionSymbol(Symbol):
    kind: str = field(default="func", init=False)
    params: Tuple[ParamSymbol, ...] = ()
    ret: Optional[Type] = None

    def is_function(self) -> bool:
        return True

    @property
    def param_types(self) -> Tuple[Type, ...]:
        return tuple(p.type for p in self.params)

    @property
    def type(self) -> FunctionType:
        return function_type(self.param_types, self.ret)

    def signature(self) -> str:
        ps = ", ".join(str(t) for t in self.param_types)
        return f"({ps}) -> {self.ret}"

    def __str__(self) -> str:
        return f"{self.name}{self.signature()}"
