# semcheck/cli.py
from __future__ import annotations
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from semcheck.ast.loader import ASTFormatError, loads, read_text
from semcheck.sema.analyzer import DEFAULT_MAX_DEPTH, SemanticAnalyzer
from semcheck.sema.errors import ErrorReporter, SemanticError
from semcheck.sema.symbols import FunctionSymbol, Symbol

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SEMANTIC = 1
EXIT_INPUT = 2


def _serialize_symbols(symbols: Dict[str, Symbol]) -> List[Dict[str, Any]]:
    out = []
    for name, sym in symbols.items():
        if isinstance(sym, FunctionSymbol):
            out.append({
                "name": name,
                "kind": sym.kind,
                "params": [{"name": p.name, "type": str(p.type)} for p in sym.params],
                "ret": str(sym.ret),
            })
        else:
            out.append({"name": name, "kind": sym.kind, "type": str(getattr(sym, "type", None))})
    return out


def _read_source(path: str) -> str:
    if path != "-":
        return read_text(path)
    try:
        return sys.stdin.read()
    except UnicodeDecodeError as ex:
        raise ASTFormatError(f"<stdin>: not valid text ({ex.reason})") from ex


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="semcheck",
        description="Semantic checker for JSON-serialized ASTs",
    )
    ap.add_argument("files", nargs="*", default=["-"], help="AST files (.json); '-' or nothing reads stdin")
    ap.add_argument("--json", action="store_true", help="machine readable output")
    ap.add_argument("--symbols", action="store_true", help="include the global symbols of each passing file")
    ap.add_argument("--widen", action="store_true", help="accept integer -> float promotion")
    ap.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH, help="maximum AST nesting depth, sub-expressions included")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rep = ErrorReporter()
    input_errors: List[Dict[str, Any]] = []
    symbols: Dict[str, List[Dict[str, Any]]] = {}
    analyzer = SemanticAnalyzer(allow_widening=args.widen, max_depth=args.max_depth)

    for path in args.files:
        name = "<stdin>" if path == "-" else path
        try:
            program = loads(_read_source(path))
        except (OSError, ASTFormatError) as ex:
            log.warning("cannot load %s: %s", name, ex)
            input_errors.append({"file": name, "code": "INPUT", "message": str(ex)})
            continue
        try:
            analyzer.analyze(program)
        except SemanticError as err:
            rep.report(name, err)
            continue
        symbols[name] = _serialize_symbols(analyzer.global_symbols)

    if args.json:
        errors = [dict(r.error.to_dict(), file=r.source) for r in rep.errors] + input_errors
        payload = {
            "ok": not errors,
            "errors": errors,
            "symbols": symbols if args.symbols else None,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for e in input_errors:
            print(f"{e['file']}: {e['message']}", file=sys.stderr)
        for name, syms in symbols.items():
            print(f"{name}: OK")
            if args.symbols:
                print(json.dumps(syms, ensure_ascii=False, indent=2))
        if rep.has_errors():
            print(rep.summary())

    if input_errors:
        return EXIT_INPUT
    return EXIT_SEMANTIC if rep.has_errors() else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
