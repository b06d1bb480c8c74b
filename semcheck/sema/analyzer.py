# semcheck/sema/analyzer.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from semcheck.ast import nodes as A

from .errors import SemanticError, ErrorKind
from .scopes import ScopeStack
from .symbols import Symbol, VariableSymbol, ParamSymbol, FunctionSymbol
from .types import (
    Type, INTEGER, FLOAT, STRING, BOOLEAN,
    SemanticTypeError, lookup_type, is_boolean, is_void,
    types_are_compatible, result_binary, result_unary,
)

log = logging.getLogger(__name__)

# Counts every node level, sub-expressions included: a chain of n binary
# operators nests n + 1 levels below its statement.
DEFAULT_MAX_DEPTH = 200


class SemanticAnalyzer:
    """
    Single fail-fast pass over a Program.

    Every node kind has exactly one ``visit<Kind>`` handler. Statement
    handlers return True when the statement always leaves the enclosing
    body (return/break/continue); expression handlers return the static
    type, which ``visit`` also stores in the node's ``resolved_type`` slot.
    """

    def __init__(self, allow_widening: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.allow_widening = allow_widening
        self.max_depth = max_depth
        # symbols of the global frame after the last successful run
        self.global_symbols: Dict[str, Symbol] = {}
        self._reset()

    def _reset(self) -> None:
        self.scopes = ScopeStack()
        self.current_function: Optional[FunctionSymbol] = None
        self.loop_depth = 0
        self._depth = 0

    # ===== Entrypoint =====

    def analyze(self, program: A.Program) -> A.Program:
        if not isinstance(program, A.Program):
            raise SemanticError(
                ErrorKind.INTERNAL_ERROR,
                f"analysis must start at a Program node, got {type(program).__name__}",
            )
        self._reset()
        self.global_symbols = {}
        log.debug("analyzing program with %d top-level statements", len(program.statements))
        try:
            self.visit(program)
        except SemanticError as err:
            log.debug("analysis failed: %r", err)
            _clear_annotations(program)
            raise
        except RecursionError:
            _clear_annotations(program)
            raise SemanticError(
                ErrorKind.STACK_EXHAUSTED,
                "program nesting exceeds the interpreter recursion limit",
            ) from None
        finally:
            # the scope table never outlives the call
            self._reset()
        log.debug("analysis succeeded, %d global symbols", len(self.global_symbols))
        return program

    def visit(self, node: A.Node):
        handler = getattr(self, f"visit{type(node).__name__}", None)
        if handler is None:
            raise SemanticError(
                ErrorKind.INTERNAL_ERROR,
                f"no semantic rule for node kind {type(node).__name__}",
                node=node if isinstance(node, A.Node) else None,
            )
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                raise SemanticError(
                    ErrorKind.STACK_EXHAUSTED,
                    f"program nesting exceeds {self.max_depth} levels (statements and sub-expressions)",
                    node=node,
                )
            result = handler(node)
        finally:
            self._depth -= 1
        if isinstance(node, A.Expr):
            node.resolved_type = result
        return result

    # ===== Helpers =====

    def _compatible(self, declared: Type, actual: Type) -> bool:
        return types_are_compatible(declared, actual, self.allow_widening)

    def _value_type(self, expr: A.Expr) -> Type:
        """Type of an expression used where a value is required."""
        t = self.visit(expr)
        if is_void(t):
            raise SemanticError(
                ErrorKind.TYPE_MISMATCH,
                f"call to '{getattr(expr, 'name', '?')}' returns void, a value is required here",
                node=expr,
            )
        return t

    def _resolve_ann(self, ann: str, node: A.Node, what: str, allow_void: bool = False) -> Type:
        try:
            t = lookup_type(ann)
        except SemanticTypeError:
            raise SemanticError(ErrorKind.UNKNOWN_TYPE, f"unknown type '{ann}' for {what}", node=node) from None
        if is_void(t) and not allow_void:
            raise SemanticError(ErrorKind.TYPE_MISMATCH, f"{what} cannot have type void", node=node)
        return t

    def _require_boolean(self, cond: A.Expr, construct: str) -> None:
        t = self._value_type(cond)
        if not is_boolean(t):
            raise SemanticError(
                ErrorKind.INVALID_CONDITION_TYPE,
                f"{construct} condition must be boolean, got {t}",
                node=cond,
            )

    def _visit_statements(self, statements: List[A.Stmt]) -> bool:
        leaves = False
        for st in statements:
            if self.visit(st):
                leaves = True
        return leaves

    def _statements_of(self, block: A.Block, owner: A.Node) -> List[A.Stmt]:
        if not isinstance(block, A.Block):
            raise SemanticError(
                ErrorKind.INTERNAL_ERROR,
                f"{type(owner).__name__} expects a Block, got {type(block).__name__}",
                node=owner,
            )
        return block.statements

    def _visit_body(self, block: A.Block, name: str, owner: Optional[A.Node] = None) -> bool:
        statements = self._statements_of(block, owner if owner is not None else block)
        with self.scopes.block(name):
            return self._visit_statements(statements)

    # ===== Program and blocks =====

    def visitProgram(self, node: A.Program) -> bool:
        self.scopes.enter_global()
        try:
            self._visit_statements(node.statements)
            self.global_symbols = dict(self.scopes.global_scope.items())
        finally:
            self.scopes.exit_scope()
        return False

    def visitBlock(self, node: A.Block) -> bool:
        return self._visit_body(node, "{block}")

    # ===== Declarations and assignment =====

    def visitVarDecl(self, node: A.VarDecl) -> bool:
        self.scopes.check_fresh(node.name, node.pos)
        declared = self._resolve_ann(node.type_ann, node, f"variable '{node.name}'")
        # declared before the initializer is analysed: `int x = x;` resolves x
        self.scopes.declare(VariableSymbol(name=node.name, type=declared, pos=node.pos), node.pos)
        if node.init is not None:
            actual = self._value_type(node.init)
            if not self._compatible(declared, actual):
                raise SemanticError(
                    ErrorKind.TYPE_MISMATCH,
                    f"cannot initialize '{node.name}' of type {declared} with a value of type {actual}",
                    node=node.init,
                )
        return False

    def visitAssign(self, node: A.Assign) -> bool:
        sym = self.scopes.resolve(node.name, node.pos)
        if not isinstance(sym, VariableSymbol):
            raise SemanticError(ErrorKind.TYPE_MISMATCH, f"cannot assign to function '{node.name}'", node=node)
        actual = self._value_type(node.value)
        if not self._compatible(sym.type, actual):
            raise SemanticError(
                ErrorKind.TYPE_MISMATCH,
                f"cannot assign a value of type {actual} to '{node.name}' of type {sym.type}",
                node=node.value,
            )
        return False

    def visitExprStmt(self, node: A.ExprStmt) -> bool:
        self.visit(node.expr)
        return False

    # ===== Control flow =====

    def visitIfStmt(self, node: A.IfStmt) -> bool:
        self._require_boolean(node.cond, "if")
        then_leaves = self._visit_body(node.then_block, "{then}", node)
        else_leaves = False
        if node.else_block is not None:
            # sibling of the then-scope, not nested in it
            else_leaves = self._visit_body(node.else_block, "{else}", node)
        return then_leaves and else_leaves

    def visitWhileStmt(self, node: A.WhileStmt) -> bool:
        self._require_boolean(node.cond, "while")
        self.loop_depth += 1
        self._visit_body(node.body, "{while}", node)
        self.loop_depth -= 1
        return False

    def visitForStmt(self, node: A.ForStmt) -> bool:
        # one frame for init/cond/update/body so the loop variable is visible in all four
        with self.scopes.block("{for}"):
            if node.init is not None:
                if not isinstance(node.init, (A.VarDecl, A.Assign)):
                    raise SemanticError(
                        ErrorKind.INTERNAL_ERROR,
                        f"for-init must be a declaration or assignment, got {type(node.init).__name__}",
                        node=node.init,
                    )
                self.visit(node.init)
            if node.cond is not None:
                self._require_boolean(node.cond, "for")
            if node.update is not None:
                if not isinstance(node.update, (A.Assign, A.Expr)):
                    raise SemanticError(
                        ErrorKind.INTERNAL_ERROR,
                        f"for-update must be an assignment or expression, got {type(node.update).__name__}",
                        node=node.update,
                    )
                self.visit(node.update)
            self.loop_depth += 1
            self._visit_statements(self._statements_of(node.body, node))
            self.loop_depth -= 1
        return False

    def visitBreakStmt(self, node: A.BreakStmt) -> bool:
        if self.loop_depth == 0:
            raise SemanticError(ErrorKind.INVALID_JUMP, "'break' outside of a loop", node=node)
        return True

    def visitContinueStmt(self, node: A.ContinueStmt) -> bool:
        if self.loop_depth == 0:
            raise SemanticError(ErrorKind.INVALID_JUMP, "'continue' outside of a loop", node=node)
        return True

    # ===== Functions =====

    def visitParam(self, node: A.Param) -> ParamSymbol:
        t = self._resolve_ann(node.type_ann, node, f"parameter '{node.name}'")
        return ParamSymbol(name=node.name, type=t, pos=node.pos)

    def visitFunctionDecl(self, node: A.FunctionDecl) -> bool:
        self.scopes.check_fresh(node.name, node.pos)
        ret = self._resolve_ann(node.return_type, node, f"function '{node.name}'", allow_void=True)
        params = tuple(self.visit(p) for p in node.params)
        fsym = FunctionSymbol(name=node.name, params=params, ret=ret, pos=node.pos)
        # declared before the body so recursive calls resolve
        self.scopes.declare(fsym, node.pos)

        outer_fn, outer_loops = self.current_function, self.loop_depth
        self.current_function, self.loop_depth = fsym, 0
        with self.scopes.function(node.name):
            for p in params:
                self.scopes.declare(p, p.pos)
            always_returns = self._visit_statements(self._statements_of(node.body, node))
        self.current_function, self.loop_depth = outer_fn, outer_loops

        if not always_returns and not is_void(ret):
            raise SemanticError(
                ErrorKind.RETURN_TYPE_MISMATCH,
                f"function '{node.name}' must return {ret} but may finish without returning a value",
                node=node,
            )
        return False

    def visitReturnStmt(self, node: A.ReturnStmt) -> bool:
        fn = self.current_function
        if fn is None:
            raise SemanticError(ErrorKind.RETURN_OUTSIDE_FUNCTION, "'return' outside of a function", node=node)
        if node.value is None:
            if not is_void(fn.ret):
                raise SemanticError(
                    ErrorKind.RETURN_TYPE_MISMATCH,
                    f"function '{fn.name}' must return a value of type {fn.ret}",
                    node=node,
                )
            return True
        if is_void(fn.ret):
            raise SemanticError(
                ErrorKind.RETURN_TYPE_MISMATCH,
                f"void function '{fn.name}' cannot return a value",
                node=node.value,
            )
        actual = self._value_type(node.value)
        if not self._compatible(fn.ret, actual):
            raise SemanticError(
                ErrorKind.RETURN_TYPE_MISMATCH,
                f"function '{fn.name}' declared to return {fn.ret} returns {actual}",
                node=node.value,
            )
        return True

    def visitCallExpr(self, node: A.CallExpr) -> Type:
        sym = self.scopes.resolve(node.name, node.pos)
        if not isinstance(sym, FunctionSymbol):
            raise SemanticError(
                ErrorKind.NOT_CALLABLE,
                f"'{node.name}' is a variable of type {sym.type}, not a function",
                node=node,
            )
        arg_types = [self._value_type(a) for a in node.args]
        if len(arg_types) != len(sym.params):
            raise SemanticError(
                ErrorKind.ARITY_MISMATCH,
                f"function '{node.name}' expects {len(sym.params)} arguments, got {len(arg_types)}",
                node=node,
            )
        for i, (arg, arg_t, param) in enumerate(zip(node.args, arg_types, sym.params), start=1):
            if not self._compatible(param.type, arg_t):
                raise SemanticError(
                    ErrorKind.ARGUMENT_TYPE_MISMATCH,
                    f"argument {i} of '{node.name}' ('{param.name}') expects {param.type}, got {arg_t}",
                    node=arg,
                )
        return sym.ret

    # ===== Expressions =====

    def visitIdentifier(self, node: A.Identifier) -> Type:
        sym = self.scopes.resolve(node.name, node.pos)
        if not isinstance(sym, VariableSymbol):
            raise SemanticError(
                ErrorKind.TYPE_MISMATCH,
                f"function '{node.name}' cannot be used as a value",
                node=node,
            )
        return sym.type

    def visitIntLiteral(self, node: A.IntLiteral) -> Type:
        return INTEGER

    def visitFloatLiteral(self, node: A.FloatLiteral) -> Type:
        return FLOAT

    def visitStringLiteral(self, node: A.StringLiteral) -> Type:
        return STRING

    def visitBoolLiteral(self, node: A.BoolLiteral) -> Type:
        return BOOLEAN

    def visitUnaryOp(self, node: A.UnaryOp) -> Type:
        t = self._value_type(node.expr)
        try:
            return result_unary(node.op, t)
        except SemanticTypeError as ex:
            raise SemanticError(ErrorKind.INVALID_OPERAND_TYPE, str(ex), node=node) from None
        except KeyError:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, f"unknown unary operator '{node.op}'", node=node) from None

    def visitBinaryOp(self, node: A.BinaryOp) -> Type:
        left = self._value_type(node.left)
        right = self._value_type(node.right)
        try:
            return result_binary(node.op, left, right, self.allow_widening)
        except SemanticTypeError as ex:
            raise SemanticError(ErrorKind.INVALID_OPERAND_TYPE, f"'{node.op}': {ex}", node=node) from None
        except KeyError:
            raise SemanticError(ErrorKind.INTERNAL_ERROR, f"unknown binary operator '{node.op}'", node=node) from None


def _clear_annotations(program: A.Program) -> None:
    for n in A.walk(program):
        if isinstance(n, A.Expr):
            n.resolved_type = None


def analyze(
    program: A.Program,
    *,
    allow_widening: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> A.Program:
    """Check `program` and return it with every expression's resolved_type filled in.

    Raises SemanticError on the first violation; no annotation is left behind then.
    """
    return SemanticAnalyzer(allow_widening=allow_widening, max_depth=max_depth).analyze(program)
