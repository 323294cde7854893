"""Binding assignees (`x`, `_`, `[a, ..rest]`) to expressions and values."""

from __future__ import annotations

from ..ast_nodes import Assignee, DestructureList, Expression, Hole, Identifier
from ..runtime import Context, UserDefinition, ValueDefinition
from ..tree import AstPair
from ..types import GrammarShapeError, NoisTypeError, NoisValue
from .common import Bindings, EvalFunc
from .match import match_pattern_item

def assign_expression_definitions(
    assignee: AstPair[Assignee],
    expression: AstPair[Expression],
    ctx: Context,
    eval_func: EvalFunc,
) -> Bindings:
    """Bindings for `assignee = expression`.

    A plain identifier binds the unevaluated expression; a hole evaluates it for
    its effects; a destructure list evaluates it once and binds the parts.
    """
    match assignee.value:
        case Identifier(name=name):
            return [(name, UserDefinition(assignee.span, expression))]
        case Hole():
            eval_func(expression, ctx)
            return []
        case DestructureList():
            return assign_value_definitions(assignee, eval_func(expression, ctx))

    raise GrammarShapeError(f"unexpected assignee {assignee.value!r}", assignee.span)

def assign_value_definitions(assignee: AstPair[Assignee], value: AstPair[NoisValue]) -> Bindings:
    match assignee.value:
        case Identifier(name=name):
            return [(name, ValueDefinition(value))]
        case Hole():
            return []
        case DestructureList():
            bindings = match_pattern_item(value, assignee)  # type: ignore[arg-type]
            if bindings is None:
                raise NoisTypeError(f"unable to destructure {value.value!r}", assignee.span)
            return bindings

    raise GrammarShapeError(f"unexpected assignee {assignee.value!r}", assignee.span)
