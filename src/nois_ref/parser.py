from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from lark import Lark, Token, Tree

GRAMMAR_PATH = Path(__file__).resolve().parent / "grammar.lark"

# Brackets inside which newlines never separate statements.
_QUIET_OPENERS = {"LPAR", "LSQB", "STRUCT_OPEN", "ENUM_OPEN"}
_OPENERS = _QUIET_OPENERS | {"LBRACE"}
_CLOSERS = {"RPAR", "RSQB", "RBRACE"}

# A newline right after one of these continues the current statement.
_CONTINUATIONS = {
    "ADD", "SUB", "MUL", "DIV", "EXP", "REM", "DOT", "SPREAD", "BANG",
    "EQ", "NE", "GE", "LE", "GT", "LT", "AND", "OR",
    "ASSIGN", "ARROW", "COMMA", "VBAR", "MATCH",
} | _OPENERS


class NewlineFilter:
    """Postlex stage turning newlines and `;` into statement separators.

    Separators survive only at the top level and directly inside `{ }`
    blocks; runs of them collapse to one `_NL`, and a separator followed by
    `}` or a leading `.` accessor is dropped.
    """

    NL_type = "_NL"
    SEMI_type = "SEMI"
    always_accept: Tuple[str, ...] = (NL_type, SEMI_type)

    def process(self, stream: Iterator[Token]) -> Iterator[Token]:
        brackets: List[str] = []
        pending: Optional[Token] = None
        prev: Optional[str] = None

        for tok in stream:
            kind = tok.type

            if kind in (self.NL_type, self.SEMI_type):
                quiet = bool(brackets) and brackets[-1] in _QUIET_OPENERS
                if quiet or prev is None or prev in _CONTINUATIONS:
                    continue
                if pending is None:
                    pending = Token.new_borrow_pos(self.NL_type, tok.value, tok)
                continue

            if pending is not None:
                if kind not in ("RBRACE", "DOT"):
                    yield pending
                pending = None

            if kind in _OPENERS:
                brackets.append(kind)
            elif kind in _CLOSERS and brackets:
                brackets.pop()

            prev = kind
            yield tok


@lru_cache(maxsize=None)
def _read_grammar(grammar_path: Optional[str]) -> str:
    path = Path(grammar_path) if grammar_path else GRAMMAR_PATH

    if not path.exists():
        raise FileNotFoundError(f"grammar not found: {path}")

    return path.read_text(encoding="utf-8")


@lru_cache(maxsize=None)
def make_parser(grammar_path: Optional[str] = None) -> Lark:
    return Lark(
        _read_grammar(grammar_path),
        parser="earley",
        lexer="basic",
        postlex=NewlineFilter(),
        start="program",
        maybe_placeholders=False,
        propagate_positions=True,
    )


def parse_source(src: str, grammar_path: Optional[str] = None) -> Tree:
    """Parse Nois source into a lark parse tree rooted at `program`."""
    return make_parser(grammar_path).parse(src)
