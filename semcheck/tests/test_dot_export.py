# semcheck/tests/test_dot_export.py
from semcheck.ast.dot_export import ASTDotExporter
from semcheck.sema.analyzer import analyze
from semcheck.tests.ast_helpers import prog, lit, ident, var, binop, if_, block


def _sample():
    return prog(
        var("int", "x", binop("+", lit(1), lit(2))),
        if_(binop("<", ident("x"), lit(3)), block(), block()),
    )


def test_dot_structure():
    dot = ASTDotExporter().to_dot(_sample())
    lines = dot.splitlines()
    assert lines[0] == "digraph AST {"
    assert lines[-1] == "}"
    assert '[label="program"];' in dot
    assert "VarDecl\\nint x" in dot
    assert "BinOp\\n+" in dot
    assert '[label="init"];' in dot
    assert '[label="then"];' in dot and '[label="else"];' in dot

def test_every_node_emitted_once():
    dot = ASTDotExporter().to_dot(_sample())
    labels = [l for l in dot.splitlines() if "[label=" in l and "->" not in l]
    # program, vardecl, binop, 2 ints, if, binop, id, int, 2 blocks
    assert len(labels) == 11

def test_annotated_labels_show_types():
    p = _sample()
    analyze(p)
    dot = ASTDotExporter().to_dot(p)
    assert "BinOp\\n+\\n: integer" in dot
    assert "BinOp\\n<\\n: boolean" in dot

def test_quotes_are_escaped():
    dot = ASTDotExporter().to_dot(prog(var("string", "s", lit('say "hi"'))))
    assert 'say \\"hi\\"' in dot

def test_backslashes_and_newlines_are_escaped():
    dot = ASTDotExporter().to_dot(prog(var("string", "s", lit("a\\b\nc"))))
    assert "Str\\na\\\\b\\nc" in dot
    body = dot.splitlines()[1:-1]
    assert all(l.endswith(";") for l in body)
