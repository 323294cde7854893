from __future__ import annotations

import math
from typing import Callable, Dict, Optional

from ..ast_nodes import BinaryExpression, BinaryOperator, UnaryExpression, UnaryOperator
from ..runtime import Context, SystemDefinition
from ..tree import AstPair
from ..types import (
    ArithmeticTypeError,
    NoisBool,
    NoisChar,
    NoisFloat,
    NoisInt,
    NoisList,
    NoisOverflowError,
    NoisTypeError,
    NoisValue,
    NoisZeroDivisionError,
    UnknownIdentifierError,
)
from ..utils import I128_MAX, I128_MIN, is_string, stringify, type_name, value_equals
from .common import EvalFunc
from .fn import call_system, eval_accessor

def unary_function_name(op: UnaryOperator) -> str:
    """Scope key of a unary operator; kept apart from the binary `+`/`-`."""
    return f"unary{op.value}"

def eval_binary(expression: AstPair[BinaryExpression], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    op = expression.value.operator.value
    if op is BinaryOperator.ACCESSOR:
        return eval_accessor(expression, ctx, eval_func)

    lhs = eval_func(expression.value.left, ctx)
    rhs = eval_func(expression.value.right, ctx)
    return _call_operator(str(op), [lhs, rhs], expression, ctx)

def eval_unary(expression: AstPair[UnaryExpression], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    operand = eval_func(expression.value.operand, ctx)
    name = unary_function_name(expression.value.operator.value)
    return _call_operator(name, [operand], expression, ctx)

def _call_operator(name: str, args, expression: AstPair, ctx: Context) -> AstPair[NoisValue]:
    found = ctx.lookup(name)
    if found is None or not isinstance(found[1], SystemDefinition):
        raise UnknownIdentifierError(name, expression.span)

    return call_system(found[1], args, ctx, name, expression.span)

# ---------- value arithmetic ----------

def _int(value: int) -> NoisInt:
    if value < I128_MIN or value > I128_MAX:
        raise NoisOverflowError(f"integer overflow: {value}")
    return NoisInt(value)

def _incompatible(lhs: NoisValue, op: str, rhs: NoisValue) -> ArithmeticTypeError:
    return ArithmeticTypeError(f"incompatible operands: {type_name(lhs)} {op} {type_name(rhs)}")

def _numbers(lhs: NoisValue, rhs: NoisValue):
    """Promote a mixed Integer/Float pair; None unless both are numbers."""
    match (lhs, rhs):
        case (NoisInt(value=a), NoisInt(value=b)):
            return a, b
        case (NoisInt(value=a), NoisFloat(value=b)) | (NoisFloat(value=a), NoisInt(value=b)):
            return float(a), float(b)
        case (NoisFloat(value=a), NoisFloat(value=b)):
            return a, b

    return None

def _wrap(value) -> NoisValue:
    return _int(value) if isinstance(value, int) else NoisFloat(value)

def add_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    def _add(a: NoisValue, b: NoisValue) -> Optional[NoisValue]:
        match (a, b):
            case (NoisInt(value=x), NoisInt(value=y)):
                return _int(x + y)
            case (NoisFloat(value=x), NoisFloat(value=y)):
                return NoisFloat(x + y)
            case (NoisInt(value=x), NoisFloat(value=y)):
                return NoisFloat(x + y)
            case (NoisList(items=l1, spread=s1), NoisList(items=l2, spread=s2)):
                if s1 == s2:
                    return NoisList(l1 + l2)
                # the spread side is flattened, the other list becomes one element
                if s1:
                    return NoisList(l1 + [b])
                return NoisList([a] + l2)
            case (NoisList(items=l1), _):
                return NoisList(l1 + [b])
            case (_, NoisList(items=l2)):
                return NoisList([a] + l2)

        return None

    result = _add(lhs, rhs)
    if result is None:
        result = _add(rhs, lhs)
    if result is None:
        raise _incompatible(lhs, "+", rhs)

    return result

def sub_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    pair = _numbers(lhs, rhs)
    if pair is None:
        raise _incompatible(lhs, "-", rhs)

    a, b = pair
    return _wrap(a - b)

def mul_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    pair = _numbers(lhs, rhs)
    if pair is None:
        raise _incompatible(lhs, "*", rhs)

    a, b = pair
    return _wrap(a * b)

def div_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    pair = _numbers(lhs, rhs)
    if pair is None:
        raise _incompatible(lhs, "/", rhs)

    a, b = pair
    if b == 0:
        raise NoisZeroDivisionError("division by zero")
    if isinstance(a, int) and isinstance(b, int):
        quotient = abs(a) // abs(b)
        return _int(quotient if (a < 0) == (b < 0) else -quotient)

    return NoisFloat(a / b)

def rem_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    pair = _numbers(lhs, rhs)
    if pair is None:
        raise _incompatible(lhs, "%", rhs)

    a, b = pair
    if b == 0:
        raise NoisZeroDivisionError("remainder by zero")
    if isinstance(a, int) and isinstance(b, int):
        remainder = abs(a) % abs(b)
        return _int(-remainder if a < 0 else remainder)

    return NoisFloat(math.fmod(a, b))

def exp_values(lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    pair = _numbers(lhs, rhs)
    if pair is None:
        raise _incompatible(lhs, "^", rhs)

    a, b = pair
    if isinstance(a, int) and isinstance(b, int) and b >= 0:
        if abs(a) > 1 and b > 127:
            raise NoisOverflowError(f"integer overflow: {a} ^ {b}")
        return _int(a ** b)
    if a == 0 and b < 0:
        raise NoisZeroDivisionError("zero raised to a negative power")

    try:
        return NoisFloat(math.pow(a, b))
    except ValueError:
        return NoisFloat(math.nan)
    except OverflowError:
        return NoisFloat(math.inf)

def _ordering_key(lhs: NoisValue, rhs: NoisValue):
    pair = _numbers(lhs, rhs)
    if pair is not None:
        return pair

    match (lhs, rhs):
        case (NoisChar(value=a), NoisChar(value=b)):
            return a, b
        case (NoisBool(value=a), NoisBool(value=b)):
            return a, b

    if is_string(lhs) and is_string(rhs):
        return stringify(lhs), stringify(rhs)

    return None

_COMPARISONS: Dict[BinaryOperator, Callable[[object, object], bool]] = {
    BinaryOperator.GREATER: lambda a, b: a > b,  # type: ignore[operator]
    BinaryOperator.GREATER_OR_EQUALS: lambda a, b: a >= b,  # type: ignore[operator]
    BinaryOperator.LESS: lambda a, b: a < b,  # type: ignore[operator]
    BinaryOperator.LESS_OR_EQUALS: lambda a, b: a <= b,  # type: ignore[operator]
}

def compare_values(op: BinaryOperator, lhs: NoisValue, rhs: NoisValue) -> NoisBool:
    if op is BinaryOperator.EQUALS:
        return NoisBool(value_equals(lhs, rhs))
    if op is BinaryOperator.NOT_EQUALS:
        return NoisBool(not value_equals(lhs, rhs))

    keys = _ordering_key(lhs, rhs)
    if keys is None:
        raise NoisTypeError(f"incompatible operands: {type_name(lhs)} {op} {type_name(rhs)}")

    return NoisBool(_COMPARISONS[op](*keys))

def logical_values(op: BinaryOperator, lhs: NoisValue, rhs: NoisValue) -> NoisBool:
    if not isinstance(lhs, NoisBool) or not isinstance(rhs, NoisBool):
        raise NoisTypeError(f"incompatible operands: {type_name(lhs)} {op} {type_name(rhs)}")

    if op is BinaryOperator.AND:
        return NoisBool(lhs.value and rhs.value)
    return NoisBool(lhs.value or rhs.value)

def apply_binary_operator(op: BinaryOperator, lhs: NoisValue, rhs: NoisValue) -> NoisValue:
    match op:
        case BinaryOperator.ADD:
            return add_values(lhs, rhs)
        case BinaryOperator.SUBTRACT:
            return sub_values(lhs, rhs)
        case BinaryOperator.MULTIPLY:
            return mul_values(lhs, rhs)
        case BinaryOperator.DIVIDE:
            return div_values(lhs, rhs)
        case BinaryOperator.REMAINDER:
            return rem_values(lhs, rhs)
        case BinaryOperator.EXPONENT:
            return exp_values(lhs, rhs)
        case BinaryOperator.AND | BinaryOperator.OR:
            return logical_values(op, lhs, rhs)
        case BinaryOperator.ACCESSOR:
            raise NoisTypeError("accessor is not a value operator")

    return compare_values(op, lhs, rhs)

def apply_unary_operator(op: UnaryOperator, value: NoisValue) -> NoisValue:
    match (op, value):
        case (UnaryOperator.PLUS, NoisInt() | NoisFloat()):
            return value
        case (UnaryOperator.MINUS, NoisInt(value=i)):
            return _int(-i)
        case (UnaryOperator.MINUS, NoisFloat(value=f)):
            return NoisFloat(-f)
        case (UnaryOperator.NOT, NoisBool(value=b)):
            return NoisBool(not b)
        case (UnaryOperator.SPREAD, NoisList(items=items, spread=spread)):
            if spread:
                raise NoisTypeError(f"list is already spread {stringify(value)}")
            return NoisList(list(items), spread=True)
        case (UnaryOperator.SPREAD, _):
            raise NoisTypeError(f"{op} cannot be applied to {stringify(value)}, not a list")

    raise NoisTypeError(f"{op} cannot be applied to {type_name(value)}")
