# semcheck/sema/scopes.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import SemanticError, ErrorKind, Pos
from .symbols import Symbol

log = logging.getLogger(__name__)


@dataclass
class Scope:
    """
    One lexical frame:
    - kind: 'global' | 'function' | 'block'
    - parent: enclosing frame (lexical chain)
    - _symbols: local name -> symbol table
    """
    name: str
    kind: str
    parent: Optional["Scope"] = None
    _symbols: Dict[str, Symbol] = field(default_factory=dict)

    # False if the name already exists in THIS frame (shadowing outer frames is fine)
    def declare(self, sym: Symbol) -> bool:
        if sym.name in self._symbols:
            return False
        self._symbols[sym.name] = sym
        return True

    def resolve_local(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    # innermost-first along the parent chain
    def resolve(self, name: str) -> Optional[Symbol]:
        s: Optional[Scope] = self
        while s is not None:
            hit = s._symbols.get(name)
            if hit is not None:
                return hit
            s = s.parent
        return None

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def items(self) -> Iterable[Tuple[str, Symbol]]:
        return self._symbols.items()

    def __len__(self) -> int:
        return len(self._symbols)


class GlobalScope(Scope):
    def __init__(self) -> None:
        super().__init__(name="::global::", kind="global", parent=None)


class FunctionScope(Scope):
    def __init__(self, name: str, parent: Optional[Scope]) -> None:
        super().__init__(name=name, kind="function", parent=parent)


class BlockScope(Scope):
    def __init__(self, name: str, parent: Optional[Scope]) -> None:
        super().__init__(name=name, kind="block", parent=parent)


class ScopeStack:
    """
    Scope table used by the analyzer.

    Starts empty; the analyzer opens the global frame when it enters the
    program. Redeclaration is checked against the innermost frame only,
    resolution walks frames innermost to outermost.
    """
    def __init__(self) -> None:
        self._stack: List[Scope] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> Scope:
        if not self._stack:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, "no open scope")
        return self._stack[-1]

    @property
    def global_scope(self) -> Scope:
        if not self._stack:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, "no open scope")
        return self._stack[0]

    def enter_scope(self, scope: Scope) -> Scope:
        self._stack.append(scope)
        log.debug("enter %s scope %s (depth %d)", scope.kind, scope.name, len(self._stack))
        return scope

    def exit_scope(self) -> Scope:
        if not self._stack:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, "exit_scope() called with no open scope")
        scope = self._stack.pop()
        log.debug("exit %s scope %s (%d symbols)", scope.kind, scope.name, len(scope))
        return scope

    def enter_global(self) -> GlobalScope:
        if self._stack:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, "global scope opened twice")
        return self.enter_scope(GlobalScope())

    @contextmanager
    def scoped(self, scope: Scope) -> Iterator[Scope]:
        """Push `scope` for the duration of the with-block, popping it on every exit path."""
        self.enter_scope(scope)
        try:
            yield scope
        finally:
            self.exit_scope()

    # parent is always the current frame
    def block(self, name: str = "{block}"):
        return self.scoped(BlockScope(name=name, parent=self.current))

    def function(self, name: str):
        return self.scoped(FunctionScope(name=name, parent=self.current))

    def check_fresh(self, name: str, pos: Optional[Pos] = None) -> None:
        """Raise DUPLICATE_DECLARATION if `name` is already bound in the innermost frame."""
        prev = self.current.resolve_local(name)
        if prev is None:
            return
        where = f" (previous declaration at {prev.pos[0]}:{prev.pos[1]})" if prev.pos else ""
        raise SemanticError(
            ErrorKind.DUPLICATE_DECLARATION,
            f"'{name}' is already declared in this scope{where}",
            pos,
        )

    def declare(self, sym: Symbol, pos: Optional[Pos] = None) -> Symbol:
        self.check_fresh(sym.name, pos if pos is not None else sym.pos)
        self.current.declare(sym)
        return sym

    def resolve(self, name: str, pos: Optional[Pos] = None) -> Symbol:
        sym = self.current.resolve(name)
        if sym is None:
            raise SemanticError(ErrorKind.UNDECLARED_IDENTIFIER, f"undeclared identifier '{name}'", pos)
        return sym
