from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from lark import UnexpectedInput

from .ast_builder import build_ast
from .ast_nodes import Block
from .evaluator import evaluate_program
from .parser import parse_source
from .runtime import Context
from .tree import AstPair
from .types import NoisError, NoisUnit, NoisValue
from .utils import stringify

logger = logging.getLogger(__name__)

def parse(src: str, grammar_path: Optional[str]=None) -> AstPair[Block]:
    """Source text to AST. Lark's UnexpectedInput propagates unchanged."""
    tree = parse_source(src, grammar_path)

    try:
        return build_ast(tree, src)
    except NoisError as exc:
        exc.attach_location(src)
        raise

def run(src: str, grammar_path: Optional[str]=None) -> NoisValue:
    """Parse and evaluate `src`, returning the program value.

    Evaluation recurses on the host stack, so a self-referencing definition
    (`x = x + 1`) or unbounded user recursion ends in `RecursionError`.
    """
    block = parse(src, grammar_path)
    ctx = Context.with_stdlib(src)
    logger.debug("running program of %d statements", len(block.value.statements))

    return evaluate_program(block, ctx).value

def format_error(err: BaseException, source: str) -> str:
    """Render an error with the offending source line and a caret underline."""
    if isinstance(err, UnexpectedInput):
        return f"{type(err).__name__}: {err}".rstrip()

    if not isinstance(err, NoisError) or err.span is None:
        return str(err)

    span = err.span
    line, col = span.line_col(source)
    line_start = source.rfind("\n", 0, span.start) + 1
    line_end = source.find("\n", span.start)
    if line_end == -1:
        line_end = len(source)

    width = max(1, min(span.end, line_end) - span.start)
    gutter = " " * len(str(line))

    return "\n".join([
        err.message,
        f"{gutter}--> {line}:{col}",
        f"{gutter} |",
        f"{line} | {source[line_start:line_end]}",
        f"{gutter} | {' ' * (col - 1)}{'^' * width}",
    ])

def _load_source(arg: Optional[str]) -> str:
    """The program named on the command line: stdin for `-`, a script path, or inline code."""
    if arg is None or arg == "-":
        text = sys.stdin.read()
        if not text:
            raise SystemExit("nois: empty program on stdin")
        return text

    script = Path(arg)
    if script.is_file():
        return script.read_text(encoding="utf-8")

    return arg

def main(argv: Optional[List[str]]=None) -> int:
    parser = argparse.ArgumentParser(prog="nois", description="Evaluate a Nois program.")
    parser.add_argument("source", nargs="?", default="-", help="file path, literal source, or - for stdin")
    parser.add_argument("--grammar", default=None, help="path to an alternative grammar.lark")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("NOIS_LOG_LEVEL", "WARNING"),
        help="logging level (default: $NOIS_LOG_LEVEL or WARNING)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    source = _load_source(args.source)

    try:
        result = run(source, grammar_path=args.grammar)
    except (NoisError, UnexpectedInput) as exc:
        print(format_error(exc, source), file=sys.stderr)
        return 1
    except RecursionError:
        print("stack exhausted: definition or function recursion too deep", file=sys.stderr)
        return 1

    if not isinstance(result, NoisUnit):
        print(stringify(result))

    return 0

if __name__ == "__main__":
    sys.exit(main())
