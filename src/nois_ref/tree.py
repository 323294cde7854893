"""Shared helpers for working with lark Tree/Token nodes and source spans.

Every AST node and runtime value is wrapped in an :class:`AstPair` that carries
the :class:`Span` it came from, so errors can be reported against the source.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from lark import Token, Tree
from typing_extensions import TypeAlias, TypeGuard

Node: TypeAlias = Tree | Token

T = TypeVar("T")


@dataclass(frozen=True)
class Span:
    """Source excerpt plus its start/end offsets. Never mutated."""

    text: str
    start: int
    end: int

    @classmethod
    def from_node(cls, node: Node, source: str) -> Span:
        start, end = node_source_span(node)
        if start is None or end is None:
            return cls("", 0, 0)

        return cls(source[start:end], start, end)

    @classmethod
    def join(cls, first: Span, last: Span, source: str) -> Span:
        return cls(source[first.start:last.end], first.start, last.end)

    def line_col(self, source: str) -> Tuple[int, int]:
        line = source.count("\n", 0, self.start) + 1
        last_nl = source.rfind("\n", 0, self.start)
        col = self.start + 1 if last_nl == -1 else self.start - last_nl

        return line, col


class AstPair(Generic[T]):
    """A payload tagged with its source span.

    Equality looks at the payload only; display hides the span.
    """

    __slots__ = ("span", "value")

    def __init__(self, span: Span, value: T):
        self.span = span
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AstPair):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"AstPair({self.value!r})"

    def __str__(self) -> str:
        return str(self.value)


def is_tree(node: Any) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Any) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Any) -> Optional[str]:
    return node.data if is_tree(node) else None

def token_kind(node: Any) -> Optional[str]:
    return str(node.type) if is_token(node) else None

def tree_children(node: Any) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def subtrees(node: Any) -> List[Tree]:
    """Tree children only; anonymous punctuation tokens are skipped."""
    return [ch for ch in tree_children(node) if is_tree(ch)]

def node_meta(node: Any) -> Optional[Any]:
    return getattr(node, "meta", None)

def node_source_span(node: Any) -> Tuple[Optional[int], Optional[int]]:
    if is_token(node):
        return node.start_pos, node.end_pos

    meta = node_meta(node)
    if meta is not None and not getattr(meta, "empty", True):
        start = getattr(meta, "start_pos", None)
        end = getattr(meta, "end_pos", None)

        if start is not None and end is not None:
            return start, end

    if is_tree(node):
        child_spans = [node_source_span(child) for child in tree_children(node)]
        child_starts = [s for s, _ in child_spans if s is not None]
        child_ends = [e for _, e in child_spans if e is not None]

        if child_starts and child_ends:
            return min(child_starts), max(child_ends)

    return None, None
