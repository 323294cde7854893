from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ..ast_nodes import BinaryExpression, Expression, FunctionCall, Identifier, OperandExpression
from ..runtime import Context, Scope, SystemDefinition
from ..tree import AstPair, Span
from ..types import (
    ArityError,
    NoisFn,
    NoisList,
    NoisSystemFn,
    NoisTypeError,
    NoisValue,
    ReturnSignal,
    UnknownIdentifierError,
)
from ..utils import type_name
from .common import EvalFunc, install_bindings
from .destructure import assign_value_definitions

logger = logging.getLogger(__name__)

MethodCallee = Tuple[Span, AstPair[NoisValue]]

def evaluate_arguments(
    arguments: Sequence[AstPair[Expression]],
    ctx: Context,
    eval_func: EvalFunc,
) -> List[AstPair[NoisValue]]:
    """Evaluate call arguments in the caller's scope, flattening spread lists."""
    evaluated: List[AstPair[NoisValue]] = []

    for arg in arguments:
        value = eval_func(arg, ctx)
        if isinstance(value.value, NoisList) and value.value.spread:
            evaluated.extend(AstPair(value.span, item) for item in value.value.items)
        else:
            evaluated.append(value)

    return evaluated

def call_function(
    fn_value: AstPair[NoisValue],
    args: List[AstPair[NoisValue]],
    ctx: Context,
    eval_func: EvalFunc,
    name: str,
    callee: Span,
    method_callee: Optional[MethodCallee]=None,
) -> AstPair[NoisValue]:
    """Call a function value: bind parameters in a fresh scope and run its block."""
    fn = fn_value.value
    if isinstance(fn, NoisSystemFn):
        return call_system(SystemDefinition(fn.function), args, ctx, name, callee, method_callee)
    if not isinstance(fn, NoisFn):
        raise NoisTypeError(f"'{name}' is not a function, found {type_name(fn)}", callee)

    definition = fn.definition.value
    if len(definition.parameters) != len(args):
        raise ArityError(
            f"function '{name}' expects {len(definition.parameters)} arguments, found {len(args)}", callee
        )

    scope = Scope(name, callee=callee, params=list(args), method_callee=method_callee)

    with ctx.scoped(scope):
        for param, arg in zip(definition.parameters, args):
            install_bindings(ctx, assign_value_definitions(param, arg))

        try:
            result = eval_func(definition.block, ctx)
        except ReturnSignal as signal:
            result = signal.value

    return AstPair(callee, result.value)

def call_system(
    definition: SystemDefinition,
    args: List[AstPair[NoisValue]],
    ctx: Context,
    name: str,
    callee: Span,
    method_callee: Optional[MethodCallee]=None,
) -> AstPair[NoisValue]:
    scope = Scope(name, callee=callee, params=list(args), method_callee=method_callee)

    with ctx.scoped(scope):
        return definition.function.call_fn(args, ctx)

def call_named(
    identifier: AstPair[Identifier],
    args: List[AstPair[NoisValue]],
    ctx: Context,
    eval_func: EvalFunc,
    callee: Span,
    method_callee: Optional[MethodCallee]=None,
) -> AstPair[NoisValue]:
    name = identifier.value.name
    found = ctx.lookup(name)
    if found is None:
        raise UnknownIdentifierError(name, identifier.span)

    _, definition = found
    if isinstance(definition, SystemDefinition):
        return call_system(definition, args, ctx, name, callee, method_callee)

    fn_value = eval_func(identifier, ctx)
    return call_function(fn_value, args, ctx, eval_func, name, callee, method_callee)

def eval_function_call(call: AstPair[FunctionCall], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    args = evaluate_arguments(call.value.arguments, ctx, eval_func)
    return call_named(call.value.identifier, args, ctx, eval_func, call.span)

def eval_accessor(expression: AstPair[BinaryExpression], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    """`recv.f(args)` calls `f(recv, args...)`; `recv.f` calls `f(recv)`."""
    binary = expression.value
    right = binary.right.value

    if not isinstance(right, OperandExpression):
        raise NoisTypeError("expected function call or identifier after '.'", binary.right.span)

    operand = right.operand
    recv = eval_func(binary.left, ctx)

    match operand.value:
        case FunctionCall(identifier=identifier, arguments=arguments):
            args = [recv] + evaluate_arguments(arguments, ctx, eval_func)
        case Identifier():
            identifier = operand  # type: ignore[assignment]
            args = [recv]
        case _:
            raise NoisTypeError("expected function call or identifier after '.'", operand.span)

    logger.debug("method call %s on %r", identifier.value, recv.value)
    return call_named(identifier, args, ctx, eval_func, expression.span, (expression.span, recv))
