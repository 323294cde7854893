"""
Structural pattern matching for `match` clauses and destructuring.

A match attempt returns the bindings to install, or None when the pattern does
not match. None is an ordinary outcome used to try the next clause; malformed
patterns (several spreads, a spread outside a list, a length mismatch) raise.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ..ast_nodes import (
    Boolean,
    DestructureList,
    Float,
    Hole,
    Integer,
    MatchClause,
    MatchExpression,
    PatternIdentifier,
    PatternItem,
    PatternList,
    String,
)
from ..runtime import Context, ValueDefinition
from ..tree import AstPair
from ..types import (
    GrammarShapeError,
    NoisList,
    NoisTypeError,
    NoisValue,
    PatternLengthError,
    PatternSpreadAmbiguityError,
    PatternSpreadMisuseError,
)
from ..utils import pattern_literal_value, type_name, value_equals
from .common import Bindings, EvalFunc

logger = logging.getLogger(__name__)

def match_expression(
    expression: AstPair[MatchExpression],
    ctx: Context,
    eval_func: EvalFunc,
) -> Optional[Tuple[AstPair[MatchClause], Bindings]]:
    """Evaluate the condition once and return the first matching clause with its bindings."""
    value = eval_func(expression.value.condition, ctx)

    for i, clause in enumerate(expression.value.match_clauses):
        bindings = match_pattern_item(value, clause.value.pattern)

        if bindings is not None:
            logger.debug("matched pattern #%d: %r", i, clause.value.pattern)
            return clause, bindings

    return None

def match_pattern_item(value: AstPair[NoisValue], pattern: AstPair[PatternItem]) -> Optional[Bindings]:
    match pattern.value:
        case Hole():
            return []
        case Integer() | Float() | Boolean() | String():
            literal = pattern_literal_value(pattern.value)
            if literal is not None and value_equals(literal, value.value):
                return []
            return None
        case PatternIdentifier(identifier=ident, spread=False):
            return [(ident.value.name, ValueDefinition(value))]
        case PatternIdentifier(spread=True):
            raise PatternSpreadMisuseError("unexpected spread", pattern.span)
        case PatternList(items=items) | DestructureList(items=items):
            return _match_list(value, pattern, items)

    raise GrammarShapeError(f"unexpected pattern {pattern.value!r}", pattern.span)

def _is_spread(item: AstPair[PatternItem]) -> bool:
    return isinstance(item.value, PatternIdentifier) and item.value.spread

def _match_list(
    value: AstPair[NoisValue],
    pattern: AstPair[PatternItem],
    items: Sequence[AstPair[PatternItem]],
) -> Optional[Bindings]:
    lst = value.value
    if not isinstance(lst, NoisList):
        raise NoisTypeError(f"expected list, found {type_name(lst)}", pattern.span)

    spreads = [i for i, item in enumerate(items) if _is_spread(item)]
    if len(spreads) > 1:
        raise PatternSpreadAmbiguityError("ambiguous spreading logic: single spread identifier allowed", pattern.span)

    elements = [AstPair(value.span, v) for v in lst.items]

    if not spreads:
        if len(items) != len(elements):
            raise PatternLengthError(
                f"incompatible pattern length {len(items)}, expected {len(elements)} to match {value.value!r}",
                pattern.span,
            )
        return _match_positional(elements, items)

    i = spreads[0]
    before, after = items[:i], items[i + 1:]
    if len(elements) < len(items) - 1:
        raise PatternLengthError(
            f"incompatible pattern length {len(items)}, expected at least {len(items) - 1} items in {value.value!r}",
            pattern.span,
        )

    tail_start = len(elements) - len(after)
    head = _match_positional(elements[:i], before)
    if head is None:
        return None
    tail = _match_positional(elements[tail_start:], after)
    if tail is None:
        return None

    spread_item = items[i].value
    assert isinstance(spread_item, PatternIdentifier)
    rest = NoisList(list(lst.items[i:tail_start]))
    return head + [(spread_item.identifier.value.name, ValueDefinition(AstPair(value.span, rest)))] + tail

def _match_positional(
    elements: List[AstPair[NoisValue]],
    items: Sequence[AstPair[PatternItem]],
) -> Optional[Bindings]:
    bindings: Bindings = []

    for element, item in zip(elements, items):
        matched = match_pattern_item(element, item)
        if matched is None:
            return None
        bindings.extend(matched)

    return bindings
