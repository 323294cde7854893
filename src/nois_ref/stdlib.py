"""Built-in packages (io, operators, list and value helpers) for the Nois runtime."""

from __future__ import annotations

from typing import List

from .ast_nodes import BinaryOperator, UnaryOperator
from .eval.expr import apply_binary_operator, apply_unary_operator, unary_function_name
from .eval.fn import call_function
from .evaluator import eval_node
from .runtime import Context, Package, StdlibFn
from .tree import AstPair
from .types import (
    NoisBool,
    NoisFn,
    NoisIndexError,
    NoisInt,
    NoisList,
    NoisSystemFn,
    NoisTypeError,
    NoisUnit,
    NoisValue,
    TypeCastError,
)
from .utils import cast_value, stringify, type_name, value_equals, value_type

Args = List[AstPair[NoisValue]]

def arg_error(expected: str, args: Args) -> NoisTypeError:
    found = ", ".join(type_name(a.value) for a in args)
    return NoisTypeError(f"expected {expected}, found ({found})")

def _render(args: Args) -> str:
    return " ".join(stringify(a.value) for a in args)

# ---------- io ----------

io_package = Package("io")

@io_package.register("print")
def std_print(args: Args, _ctx: Context) -> NoisUnit:
    print(_render(args), end="")
    return NoisUnit()

@io_package.register("println")
def std_println(args: Args, _ctx: Context) -> NoisUnit:
    print(_render(args))
    return NoisUnit()

# ---------- operators ----------

binary_operator_package = Package("binary_operator")
unary_operator_package = Package("unary_operator")

def _binary(op: BinaryOperator) -> StdlibFn:
    def call(args: Args, _ctx: Context) -> NoisValue:
        if len(args) != 2:
            raise arg_error("(*, *)", args)
        return apply_binary_operator(op, args[0].value, args[1].value)

    return call

def _unary(op: UnaryOperator) -> StdlibFn:
    def call(args: Args, _ctx: Context) -> NoisValue:
        if len(args) != 1:
            raise arg_error("(*)", args)
        return apply_unary_operator(op, args[0].value)

    return call

for _op in BinaryOperator:
    if _op is not BinaryOperator.ACCESSOR:
        binary_operator_package.register(str(_op))(_binary(_op))

for _uop in UnaryOperator:
    unary_operator_package.register(unary_function_name(_uop))(_unary(_uop))

# ---------- list ----------

list_package = Package("list")

@list_package.register("range")
def std_range(args: Args, _ctx: Context) -> NoisList:
    match [a.value for a in args]:
        case [NoisInt(value=end)]:
            start = 0
        case [NoisInt(value=start), NoisInt(value=end)]:
            pass
        case _:
            raise arg_error("(I) or (I, I)", args)

    return NoisList([NoisInt(i) for i in range(start, end)])

@list_package.register("len")
def std_len(args: Args, _ctx: Context) -> NoisInt:
    match [a.value for a in args]:
        case [NoisList(items=items)]:
            return NoisInt(len(items))

    raise arg_error("([*])", args)

def _list_and_fn(args: Args, extra: int=0) -> List[NoisValue]:
    values = [a.value for a in args]
    if (
        len(values) != 2 + extra
        or not isinstance(values[0], NoisList)
        or not isinstance(values[-1], (NoisFn, NoisSystemFn))
    ):
        raise arg_error("([*], " + "*, " * extra + "Fn)", args)
    return values[0].items

def _apply(fn: AstPair[NoisValue], call_args: Args, ctx: Context, name: str) -> NoisValue:
    return call_function(fn, call_args, ctx, eval_node, name, ctx.resolve_callee()).value

@list_package.register("map")
def std_map(args: Args, ctx: Context) -> NoisList:
    items = _list_and_fn(args)
    fn = args[-1]
    return NoisList([_apply(fn, [AstPair(args[0].span, item)], ctx, "map") for item in items])

@list_package.register("filter")
def std_filter(args: Args, ctx: Context) -> NoisList:
    items = _list_and_fn(args)
    fn = args[-1]
    kept: List[NoisValue] = []

    for item in items:
        keep = _apply(fn, [AstPair(args[0].span, item)], ctx, "filter")
        if not isinstance(keep, NoisBool):
            raise NoisTypeError(f"filter predicate must return B, found {type_name(keep)}")
        if keep.value:
            kept.append(item)

    return NoisList(kept)

@list_package.register("reduce")
def std_reduce(args: Args, ctx: Context) -> NoisValue:
    items = _list_and_fn(args, extra=1)
    acc = args[1]
    fn = args[-1]

    for item in items:
        acc = AstPair(acc.span, _apply(fn, [acc, AstPair(args[0].span, item)], ctx, "reduce"))

    return acc.value

@list_package.register("at")
def std_at(args: Args, _ctx: Context) -> NoisValue:
    match [a.value for a in args]:
        case [NoisList(items=items), NoisInt(value=index)]:
            if index < 0 or index >= len(items):
                raise NoisIndexError(f"index {index} out of bounds for list of length {len(items)}")
            return items[index]

    raise arg_error("([*], I)", args)

# ---------- value ----------

value_package = Package("value")

@value_package.register("type")
def std_type(args: Args, _ctx: Context) -> NoisValue:
    if len(args) != 1:
        raise arg_error("(*)", args)
    return value_type(args[0].value)

@value_package.register("to")
def std_to(args: Args, _ctx: Context) -> NoisValue:
    if len(args) != 2:
        raise arg_error("(*, T)", args)

    value, target = args[0].value, args[1].value
    cast = cast_value(value, target)
    if cast is None:
        raise TypeCastError(f"unable to cast {stringify(value)} of type {type_name(value)} to {stringify(target)}")
    return cast

@value_package.register("eq")
def std_eq(args: Args, _ctx: Context) -> NoisBool:
    if len(args) != 2:
        raise arg_error("(*, *)", args)
    return NoisBool(value_equals(args[0].value, args[1].value))

PACKAGES: List[Package] = [
    io_package,
    binary_operator_package,
    unary_operator_package,
    list_package,
    value_package,
]
