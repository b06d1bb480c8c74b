# semcheck/tests/test_analyzer.py
import pytest

from semcheck.ast import nodes as A
from semcheck.sema.analyzer import DEFAULT_MAX_DEPTH, SemanticAnalyzer, analyze
from semcheck.sema.errors import (
    ErrorKind, SemanticError,
    E_UNDECLARED, E_DUPLICATE_ID, E_UNKNOWN_TYPE, E_TYPE_MISMATCH, E_OP_TYPES,
    E_CALL_ARITY, E_ARG_TYPE, E_NOT_CALLABLE, E_BAD_JUMP, E_COND_NOT_BOOL,
    E_RETURN_OUTSIDE, E_RETURN_TYPE, E_STACK_EXHAUSTED, E_INTERNAL,
)
from semcheck.sema.types import INTEGER, FLOAT, BOOLEAN, STRING, VOID
from semcheck.tests.ast_helpers import (
    prog, block, lit, ident, var, assign, binop, unop, call, expr, ret,
    func, if_, while_, for_, error_of,
)

# ---------- Positives ----------

def test_ok_program_with_functions_loops_and_calls():
    p = prog(
        func("int", "sum", [("int", "a"), ("int", "b")], ret(binop("+", ident("a"), ident("b")))),
        var("int", "total", lit(0)),
        for_(var("int", "i", lit(0)), binop("<", ident("i"), lit(10)), assign("i", binop("+", ident("i"), lit(1))),
             assign("total", call("sum", ident("total"), ident("i")))),
        while_(binop(">", ident("total"), lit(0)),
               assign("total", binop("-", ident("total"), lit(1)))),
        var("string", "greeting", binop("+", lit("hi "), lit("there"))),
        var("bool", "done", binop("&&", unop("!", lit(False)), binop("==", ident("greeting"), lit("x")))),
    )
    assert analyze(p) is p

def test_expressions_are_annotated():
    init = binop("*", lit(2), lit(3))
    cond = binop("<", ident("x"), lit(1))
    p = prog(var("integer", "x", init), if_(cond, block()))
    analyze(p)
    assert init.resolved_type == INTEGER
    assert init.left.resolved_type == INTEGER
    assert cond.resolved_type == BOOLEAN
    assert cond.left.resolved_type == INTEGER

def test_recursive_call_resolves():
    p = prog(func("int", "fact", [("int", "n")],
                  if_(binop("<=", ident("n"), lit(1)), block(ret(lit(1))),
                      block(ret(binop("*", ident("n"), call("fact", binop("-", ident("n"), lit(1)))))))))
    analyze(p)

def test_void_function_and_call_statement():
    p = prog(
        var("int", "counter", lit(0)),
        func("void", "bump", [], assign("counter", binop("+", ident("counter"), lit(1))), ret()),
        expr(call("bump")),
    )
    analyze(p)
    assert p.statements[2].expr.resolved_type == VOID

# ---------- Declarations ----------

def test_unknown_type_annotation():
    err = error_of(prog(var("Dog", "rex")))
    assert err.kind is E_UNKNOWN_TYPE
    assert "Dog" in err.message

def test_void_variable_is_rejected():
    assert error_of(prog(var("void", "nothing"))).kind is E_TYPE_MISMATCH

def test_declaration_initializer_mismatch():
    err = error_of(prog(var("int", "x", lit(True), pos=(1, 1))))
    assert err.kind is E_TYPE_MISMATCH
    assert "'x'" in err.message

def test_self_referential_initializer_resolves():
    p = prog(var("int", "x", binop("+", ident("x"), lit(1))))
    analyze(p)

def test_duplicate_declaration_reported_before_type_errors():
    p = prog(var("int", "x"), var("Unknown", "x"))
    assert error_of(p).kind is E_DUPLICATE_ID

# ---------- Assignment ----------

def test_assignment_to_undeclared():
    err = error_of(prog(assign("y", lit(1), pos=(2, 4))))
    assert err.kind is E_UNDECLARED
    assert (err.line, err.column) == (2, 4)

def test_assignment_type_mismatch():
    p = prog(var("int", "x"), assign("x", lit("text")))
    assert error_of(p).kind is E_TYPE_MISMATCH

def test_assignment_to_function():
    p = prog(func("void", "f", []), assign("f", lit(1)))
    assert error_of(p).kind is E_TYPE_MISMATCH

def test_function_used_as_value():
    p = prog(func("int", "f", [], ret(lit(1))), var("int", "x", ident("f")))
    assert error_of(p).kind is E_TYPE_MISMATCH

def test_void_call_used_as_value():
    p = prog(func("void", "f", []), var("int", "x", call("f")))
    err = error_of(p)
    assert err.kind is E_TYPE_MISMATCH
    assert "void" in err.message

# ---------- Control flow ----------

def test_while_condition_must_be_boolean():
    assert error_of(prog(while_(lit(1)))).kind is E_COND_NOT_BOOL

def test_for_condition_must_be_boolean():
    p = prog(for_(var("int", "i", lit(0)), ident("i"), None))
    assert error_of(p).kind is E_COND_NOT_BOOL

def test_for_parts_are_optional():
    analyze(prog(for_(None, None, None)))

def test_for_variable_not_visible_after_loop():
    p = prog(
        for_(var("int", "i", lit(0)), binop("<", ident("i"), lit(3)), assign("i", binop("+", ident("i"), lit(1)))),
        assign("i", lit(0)),
    )
    assert error_of(p).kind is E_UNDECLARED

def test_for_body_shares_the_loop_frame():
    p = prog(for_(var("int", "i", lit(0)), None, None, var("int", "i", lit(1))))
    assert error_of(p).kind is E_DUPLICATE_ID

def test_for_update_can_be_an_expression():
    p = prog(
        func("int", "tick", [], ret(lit(1))),
        for_(None, lit(True), call("tick"), A.BreakStmt()),
    )
    analyze(p)

def test_for_with_malformed_init_is_internal_error():
    p = prog(A.ForStmt(init=expr(lit(1)), body=block()))
    assert error_of(p).kind is E_INTERNAL

def test_else_scope_is_sibling_of_then_scope():
    p = prog(if_(lit(True), block(var("int", "t", lit(1))), block(assign("t", lit(2)))))
    assert error_of(p).kind is E_UNDECLARED

def test_break_and_continue_inside_loops():
    analyze(prog(while_(lit(True), A.BreakStmt(), A.ContinueStmt())))
    analyze(prog(while_(lit(True), if_(lit(False), block(A.BreakStmt())))))

def test_break_outside_loop():
    assert error_of(prog(A.BreakStmt())).kind is E_BAD_JUMP
    assert error_of(prog(A.ContinueStmt())).kind is E_BAD_JUMP

def test_break_in_function_nested_in_loop_is_rejected():
    p = prog(while_(lit(True), func("void", "f", [], A.BreakStmt())))
    assert error_of(p).kind is E_BAD_JUMP

# ---------- Functions ----------

def test_duplicate_function_name():
    p = prog(var("int", "f"), func("void", "f", []))
    assert error_of(p).kind is E_DUPLICATE_ID

def test_duplicate_parameter_name():
    err = error_of(prog(func("int", "f", [("int", "a"), ("bool", "a")], ret(lit(1)))))
    assert err.kind is E_DUPLICATE_ID
    assert "'a'" in err.message

def test_parameters_may_shadow_globals():
    p = prog(var("bool", "a", lit(True)), func("int", "f", [("int", "a")], ret(ident("a"))))
    analyze(p)

def test_local_cannot_redeclare_parameter():
    p = prog(func("int", "f", [("int", "a")], var("int", "a", lit(1)), ret(ident("a"))))
    assert error_of(p).kind is E_DUPLICATE_ID

def test_nested_block_may_shadow_parameter():
    p = prog(func("int", "f", [("int", "a")], block(var("bool", "a", lit(True))), ret(ident("a"))))
    analyze(p)

def test_parameters_not_visible_after_function():
    p = prog(func("int", "f", [("int", "a")], ret(ident("a"))), assign("a", lit(1)))
    assert error_of(p).kind is E_UNDECLARED

def test_missing_return_in_non_void_function():
    p = prog(func("int", "f", [("int", "a")], if_(binop(">", ident("a"), lit(0)), block(ret(ident("a"))))))
    err = error_of(p)
    assert err.kind is E_RETURN_TYPE
    assert "'f'" in err.message

def test_if_else_both_returning_counts_as_return():
    p = prog(func("int", "sign", [("int", "a")],
                  if_(binop(">", ident("a"), lit(0)), block(ret(lit(1))), block(ret(lit(-1))))))
    analyze(p)

def test_return_inside_loop_does_not_count():
    p = prog(func("int", "f", [], while_(lit(True), ret(lit(1)))))
    assert error_of(p).kind is E_RETURN_TYPE

def test_bare_return_in_non_void_function():
    assert error_of(prog(func("int", "f", [], ret()))).kind is E_RETURN_TYPE

def test_value_return_in_void_function():
    assert error_of(prog(func("void", "f", [], ret(lit(1))))).kind is E_RETURN_TYPE

def test_return_outside_function():
    assert error_of(prog(ret(lit(1)))).kind is E_RETURN_OUTSIDE

def test_call_undeclared_function():
    err = error_of(prog(expr(call("nope", pos=(4, 2)))))
    assert err.kind is E_UNDECLARED
    assert "nope" in err.message

def test_forward_reference_is_undeclared():
    p = prog(func("int", "a", [], ret(call("b"))), func("int", "b", [], ret(lit(1))))
    assert error_of(p).kind is E_UNDECLARED

def test_call_a_variable():
    p = prog(var("int", "x", lit(1)), expr(call("x")))
    assert error_of(p).kind is E_NOT_CALLABLE

def test_argument_type_mismatch_names_the_argument():
    p = prog(func("int", "f", [("int", "a"), ("bool", "flag")], ret(ident("a"))),
             expr(call("f", lit(1), lit(2))))
    err = error_of(p)
    assert err.kind is E_ARG_TYPE
    assert "argument 2" in err.message and "flag" in err.message

def test_arity_checked_before_argument_types():
    p = prog(func("int", "f", [("int", "a")], ret(ident("a"))), expr(call("f", lit(True), lit(2))))
    assert error_of(p).kind is E_CALL_ARITY

def test_call_result_type_is_return_type():
    c = call("f")
    p = prog(func("string", "f", [], ret(lit("s"))), var("string", "s", c))
    analyze(p)
    assert c.resolved_type == STRING

# ---------- Operators ----------

@pytest.mark.parametrize("e", [
    binop("+", lit(1), lit(True)),
    binop("-", lit("a"), lit("b")),
    binop("&&", lit(1), lit(True)),
    binop("<", lit(True), lit(False)),
    binop("==", lit(1), lit("1")),
    binop("+", lit(1), lit(1.5)),
    unop("!", lit(1)),
    unop("-", lit("a")),
])
def test_invalid_operands(e):
    assert error_of(prog(expr(e))).kind is E_OP_TYPES

def test_unknown_operator_is_internal_error():
    assert error_of(prog(expr(binop("**", lit(1), lit(2))))).kind is E_INTERNAL

# ---------- Widening (opt-in) ----------

def test_widening_disabled_by_default():
    assert error_of(prog(var("float", "f", lit(1)))).kind is E_TYPE_MISMATCH

def test_widening_allows_int_to_float():
    mixed = binop("+", lit(1.5), lit(2))
    p = prog(var("float", "f", lit(1)), var("float", "g", mixed))
    analyze(p, allow_widening=True)
    assert mixed.resolved_type == FLOAT

def test_widening_never_narrows():
    assert error_of(prog(var("int", "i", lit(1.5))), allow_widening=True).kind is E_TYPE_MISMATCH

# ---------- Failure handling ----------

def test_failure_leaves_no_annotations():
    init = binop("+", lit(1), lit(2))
    p = prog(var("int", "x", init), assign("y", lit(1)))
    error_of(p)
    assert init.resolved_type is None
    assert init.left.resolved_type is None

def test_deep_nesting_is_stack_exhausted():
    e = lit(0)
    for _ in range(5000):
        e = binop("+", e, lit(1))
    err = error_of(prog(expr(e)))
    assert err.kind is E_STACK_EXHAUSTED

def test_depth_limit_counts_expression_nesting():
    def chain(n):
        e = lit(0)
        for _ in range(n):
            e = binop("+", e, lit(1))
        return prog(expr(e))
    # Program, ExprStmt, n operators, then the innermost literal
    analyze(chain(DEFAULT_MAX_DEPTH - 3))
    assert error_of(chain(DEFAULT_MAX_DEPTH - 2)).kind is E_STACK_EXHAUSTED

def test_max_depth_is_configurable():
    e = lit(0)
    for _ in range(20):
        e = unop("-", e)
    p = prog(expr(e))
    analyze(p)
    assert error_of(p, max_depth=10).kind is E_STACK_EXHAUSTED

def test_non_program_root_is_internal_error():
    with pytest.raises(SemanticError) as exc:
        analyze(block())
    assert exc.value.kind is E_INTERNAL

def test_unknown_node_kind_is_internal_error():
    class Mystery(A.Stmt):
        pass
    assert error_of(prog(Mystery())).kind is E_INTERNAL

def test_missing_child_is_internal_error():
    p = prog(var("int", "x"), A.Assign(name="x"))
    assert error_of(p).kind is E_INTERNAL


def test_non_block_body_is_internal_error():
    p = prog(A.WhileStmt(cond=lit(True), body=expr(lit(1))))
    err = error_of(p)
    assert err.kind is E_INTERNAL
    assert "WhileStmt expects a Block" in err.message
    fn = A.FunctionDecl(return_type="void", name="f", params=[], body=None)
    assert error_of(prog(fn)).kind is E_INTERNAL

def test_analyzer_instance_is_reusable_and_exposes_globals():
    an = SemanticAnalyzer()
    with pytest.raises(SemanticError):
        an.analyze(prog(var("int", "x"), var("int", "x")))
    an.analyze(prog(var("int", "x"), func("bool", "f", [], ret(lit(True)))))
    assert set(an.global_symbols) == {"x", "f"}
    assert an.global_symbols["f"].ret == BOOLEAN
    assert an.scopes.depth == 0
