# semcheck/tools/ast_dump.py
from __future__ import annotations
import argparse
import subprocess
import sys
from typing import List, Optional

from semcheck.ast.dot_export import ASTDotExporter
from semcheck.ast.loader import ASTFormatError, load_file
from semcheck.sema.analyzer import analyze
from semcheck.sema.errors import SemanticError


def _emit_dot_to_stdout(dot: str) -> None:
    sys.stdout.write(dot.replace("\r\n", "\n") + "\n")

def _emit_png_via_dot(dot: str, png_path: str) -> int:
    # needs Graphviz 'dot' on PATH
    proc = subprocess.run(
        ["dot", "-Tpng", "-o", png_path],
        input=dot.encode("utf-8"),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    if proc.returncode != 0:
        sys.stderr.write(proc.stderr.decode("utf-8", errors="replace"))
    return proc.returncode

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="python -m semcheck.tools.ast_dump", description="AST -> Graphviz DOT")
    ap.add_argument("file", help="AST file (.json)")
    ap.add_argument("--annotate", action="store_true", help="run the analyzer first and show resolved types")
    ap.add_argument("--png", metavar="OUT", help="render with Graphviz instead of printing DOT")
    args = ap.parse_args(argv)

    try:
        program = load_file(args.file)
    except (OSError, ASTFormatError) as ex:
        sys.stderr.write(f"{args.file}: {ex}\n")
        return 2
    if args.annotate:
        try:
            analyze(program)
        except SemanticError as err:
            sys.stderr.write(f"{args.file}: {err}\n")
            return 1

    dot = ASTDotExporter().to_dot(program)
    if args.png:
        return _emit_png_via_dot(dot, args.png)
    _emit_dot_to_stdout(dot)
    return 0

if __name__ == "__main__":
    sys.exit(main())
