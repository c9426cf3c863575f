"""CLI entry point for the Endive interpreter.

Usage:
    python -m endive [-v|-vv|-vvv] [--no-check] <program_file>
    python -m endive [-v...] --check <program_file>
    python -m endive [-v...] --emit-java <program_file>
    python -m endive [-v...] --emit-ast <program_file>
    python -m endive [-v...] [--no-check] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --no-check    Run the program without analyzing it first
  --check       Only parse and analyze the program
  --emit-java   Analyze the program and print the generated Java class
  --emit-ast    Parse the given .end file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. The exit status is the Integer returned by
`main/0`, or 1 when any stage fails or `main/0` returns anything
other than an Integer.
"""

import argparse
import json
import sys
from pathlib import Path

from .analyzer import Analyzer
from .ast_json import ast_to_obj, ast_from_obj
from .errors import AnalysisError, EvaluationError, ParseError
from .generator import generate
from .interpreter import Interpreter
from .parser import parse_program
from .types import type_name

STAGE_NAMES = (
    (ParseError, 'Parse'),
    (AnalysisError, 'Analysis'),
    (EvaluationError, 'Runtime'),
)


def read_file(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def exit_status(result) -> int:
    if isinstance(result, int) and not isinstance(result, bool):
        return result
    raise EvaluationError(f'main/0 returned {type_name(result)}, not Integer')


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Endive language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--no-check', action='store_true', help='skip static analysis before running')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='ENDIVE_FILE', help='emit AST JSON for the given .end file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    group.add_argument('--emit-java', metavar='ENDIVE_FILE', help='print the Java translation of the given .end file')
    group.add_argument('--check', metavar='ENDIVE_FILE', help='parse and analyze the given .end file without running it')
    parser.add_argument('program', nargs='?', help='Endive program file (.end) to execute')
    args = parser.parse_args(argv)

    try:
        # Emit AST mode
        if args.emit_ast:
            program_file = Path(args.emit_ast)
            ast_program = parse_program(read_file(program_file))
            obj = ast_to_obj(ast_program)
            out_path = program_file.with_name(program_file.name + '.ast.json')
            with open(out_path, 'w', encoding='utf-8') as out:
                json.dump(obj, out, ensure_ascii=False, indent=2)
            print(str(out_path))
            return

        if args.emit_java:
            ast_program = parse_program(read_file(Path(args.emit_java)))
            Analyzer(debug_level=args.v).analyze(ast_program)
            print(generate(ast_program))
            return

        if args.check:
            ast_program = parse_program(read_file(Path(args.check)))
            Analyzer(debug_level=args.v).analyze(ast_program)
            return

        # Execute from AST JSON
        if args.ast:
            ast_program = ast_from_obj(json.loads(read_file(Path(args.ast))))
        else:
            # Default: execute source file
            if not args.program:
                parser.error('missing program file; or use --emit-ast/--ast/--emit-java/--check')
            ast_program = parse_program(read_file(Path(args.program)))

        if not args.no_check:
            Analyzer(debug_level=args.v).analyze(ast_program)
        status = exit_status(Interpreter(debug_level=args.v).run(ast_program))
    except (ParseError, AnalysisError, EvaluationError) as e:
        stage = next(name for cls, name in STAGE_NAMES if isinstance(e, cls))
        print(f"{stage} error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(status)


if __name__ == '__main__':
    main()
