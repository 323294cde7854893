from __future__ import annotations

import logging
from typing import Any, Optional

from .ast_nodes import (
    BinaryExpression,
    Block,
    Boolean,
    EnumDefinition,
    Float,
    FunctionCall,
    FunctionInit,
    Hole,
    Identifier,
    Integer,
    ListInit,
    MatchExpression,
    OperandExpression,
    String,
    StructDefinition,
    UnaryExpression,
    ValueTypeOperand,
)
from .eval.blocks import eval_block, eval_match
from .eval.common import attach_span
from .eval.expr import eval_binary, eval_unary
from .eval.fn import eval_function_call, evaluate_arguments
from .runtime import Context, SystemDefinition, UserDefinition, ValueDefinition
from .tree import AstPair
from .types import (
    GrammarShapeError,
    NoisBool,
    NoisError,
    NoisFloat,
    NoisFn,
    NoisInt,
    NoisList,
    NoisSystemFn,
    NoisType,
    NoisTypeError,
    NoisValue,
    ReturnSignal,
    UnknownIdentifierError,
    string_value,
)

logger = logging.getLogger(__name__)

def eval_node(node: AstPair[Any], ctx: Context) -> AstPair[NoisValue]:
    """Evaluate any AST node; errors raised without a span are reported at `node`."""
    try:
        return _eval(node, ctx)
    except NoisError as exc:
        attach_span(exc, node.span)
        raise

def _eval(node: AstPair[Any], ctx: Context) -> AstPair[NoisValue]:
    span = node.span

    match node.value:
        case Block():
            return eval_block(node, ctx, eval_node)
        case OperandExpression(operand=operand):
            return eval_node(operand, ctx)
        case UnaryExpression():
            return eval_unary(node, ctx, eval_node)
        case BinaryExpression():
            return eval_binary(node, ctx, eval_node)
        case MatchExpression():
            return eval_match(node, ctx, eval_node)
        case Identifier():
            return resolve_identifier(node, ctx)
        case FunctionCall():
            return eval_function_call(node, ctx, eval_node)
        case FunctionInit():
            return AstPair(span, NoisFn(node))
        case Integer(value=i):
            return AstPair(span, NoisInt(i))
        case Float(value=f):
            return AstPair(span, NoisFloat(f))
        case Boolean(value=b):
            return AstPair(span, NoisBool(b))
        case String(value=s):
            return AstPair(span, string_value(s))
        case ListInit(items=items):
            values = evaluate_arguments(items, ctx, eval_node)
            return AstPair(span, NoisList([v.value for v in values]))
        case ValueTypeOperand(value_type=vt):
            return AstPair(span, NoisType(vt))
        case Hole():
            raise NoisTypeError("hole cannot be used as a value", span)
        case StructDefinition():
            raise NoisTypeError("struct definitions cannot be evaluated", span)
        case EnumDefinition():
            raise NoisTypeError("enum definitions cannot be evaluated", span)

    raise GrammarShapeError(f"cannot evaluate {node.value!r}", span)

def resolve_identifier(identifier: AstPair[Identifier], ctx: Context) -> AstPair[NoisValue]:
    name = identifier.value.name
    found = ctx.lookup(name)
    if found is None:
        raise UnknownIdentifierError(name, identifier.span)

    depth, definition = found

    match definition:
        case ValueDefinition(value=value):
            return AstPair(identifier.span, value.value)
        case UserDefinition(expression=expression):
            logger.debug("evaluate definition %s @%s", name, ctx.scope_stack[depth].name)
            with ctx.truncated(depth + 1):
                value = eval_node(expression, ctx)
            return AstPair(identifier.span, value.value)
        case SystemDefinition(function=function):
            return AstPair(identifier.span, NoisSystemFn(name, function))

    raise GrammarShapeError(f"unexpected definition {definition!r}", identifier.span)

def evaluate_program(block: AstPair[Block], ctx: Optional[Context]=None) -> AstPair[NoisValue]:
    """Run a program block; a top-level `return` ends the program with its value."""
    if ctx is None:
        ctx = Context.with_stdlib()

    try:
        return eval_block(block, ctx, eval_node)
    except ReturnSignal as signal:
        return signal.value
    except NoisError as exc:
        attach_span(exc, block.span)
        exc.attach_location(ctx.source)
        raise
