from __future__ import annotations

from typing import Any, Callable, List, Tuple

from typing_extensions import TypeAlias

from ..runtime import Context, Definition
from ..tree import AstPair, Span
from ..types import NoisError, NoisUnit, NoisValue

EvalFunc: TypeAlias = Callable[[AstPair[Any], Context], AstPair[NoisValue]]

Bindings: TypeAlias = List[Tuple[str, Definition]]

def attach_span(exc: NoisError, span: Span) -> NoisError:
    """Report `exc` at `span` unless it already points somewhere."""
    if exc.span is None:
        exc.span = span
    return exc

def unit_at(span: Span) -> AstPair[NoisValue]:
    return AstPair(span, NoisUnit())

def install_bindings(ctx: Context, bindings: Bindings) -> None:
    for name, definition in bindings:
        ctx.define(name, definition)
