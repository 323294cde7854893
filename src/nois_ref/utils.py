from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Optional

from .ast_nodes import Boolean, Float, Integer, PatternItem, String, UnaryOperator, ValueType
from .types import (
    NoisBool,
    NoisChar,
    NoisFloat,
    NoisFn,
    NoisInt,
    NoisList,
    NoisSystemFn,
    NoisType,
    NoisUnit,
    NoisValue,
    list_type,
    string_value,
)

I128_MIN = -(2 ** 127)
I128_MAX = 2 ** 127 - 1

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(
    r"[+-]?(\d+\.?\d*([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE,
)

def value_equals(lhs: NoisValue, rhs: NoisValue) -> bool:
    match (lhs, rhs):
        # Any is a wildcard against every type descriptor, in both directions
        case (NoisType(value_type=ValueType.ANY), NoisType() | NoisList()):
            return True
        case (NoisType() | NoisList(), NoisType(value_type=ValueType.ANY)):
            return True
        case (NoisType(value_type=a), NoisType(value_type=b)):
            return a == b
        case (NoisList(items=ia, spread=sa), NoisList(items=ib, spread=sb)):
            if sa != sb or len(ia) != len(ib):
                return False
            return all(value_equals(a, b) for a, b in zip(ia, ib))
        case (NoisFn(definition=a), NoisFn(definition=b)):
            return a == b
        case (NoisSystemFn(function=a), NoisSystemFn(function=b)):
            return a is b
        case (NoisUnit(), NoisUnit()):
            return True
        case (NoisInt(value=a), NoisInt(value=b)):
            return a == b
        case (NoisFloat(value=a), NoisFloat(value=b)):
            return a == b
        case (NoisChar(value=a), NoisChar(value=b)):
            return a == b
        case (NoisBool(value=a), NoisBool(value=b)):
            return a == b
        case _:
            return False

def format_float(value: float) -> str:
    """Positional float rendering: `5.0` prints as `5`, `1e21` without exponent."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        text = str(int(value))
        return "-0" if value == 0 and math.copysign(1.0, value) < 0 else text

    text = repr(value)
    if "e" in text or "E" in text:
        return format(Decimal(text), "f")
    return text

def is_string(value: NoisValue) -> bool:
    return (
        isinstance(value, NoisList)
        and not value.spread
        and bool(value.items)
        and all(isinstance(item, NoisChar) for item in value.items)
    )

def stringify(value: NoisValue) -> str:
    """Display form used by print and by casts to `[C]`."""
    match value:
        case NoisUnit():
            return "()"
        case NoisInt(value=i):
            return str(i)
        case NoisFloat(value=f):
            return format_float(f)
        case NoisChar(value=c):
            return c
        case NoisBool(value=b):
            return "True" if b else "False"
        case NoisList(items=items, spread=spread):
            if is_string(value):
                return "".join(item.value for item in items)  # type: ignore[union-attr]
            prefix = str(UnaryOperator.SPREAD) if spread else ""
            return prefix + "[" + ", ".join(stringify(item) for item in items) + "]"
        case NoisFn() | NoisSystemFn():
            return "<fn>"
        case NoisType(value_type=vt):
            return str(vt)

    raise TypeError(f"not a Nois value: {value!r}")

def value_type(value: NoisValue) -> NoisValue:
    """Inferred type: a `NoisType`, or a list of types for list values."""
    match value:
        case NoisUnit():
            return NoisType(ValueType.UNIT)
        case NoisInt():
            return NoisType(ValueType.INTEGER)
        case NoisFloat():
            return NoisType(ValueType.FLOAT)
        case NoisChar():
            return NoisType(ValueType.CHAR)
        case NoisBool():
            return NoisType(ValueType.BOOLEAN)
        case NoisFn() | NoisSystemFn():
            return NoisType(ValueType.FUNCTION)
        case NoisType():
            return NoisType(ValueType.TYPE)
        case NoisList(items=items):
            if not items:
                return list_type(ValueType.ANY)

            types = [value_type(item) for item in items]
            if len({repr(t) for t in types}) == 1:
                return NoisList([types[0]])
            return NoisList(types)

    raise TypeError(f"not a Nois value: {value!r}")

def type_name(value: NoisValue) -> str:
    return stringify(value_type(value))

STRING_TYPE = list_type(ValueType.CHAR)

def cast_value(value: NoisValue, target: NoisValue) -> Optional[NoisValue]:
    """Explicit cast of `value` to the type `target`; None means no conversion."""
    own_type = value_type(value)
    if value_equals(own_type, target):
        return value

    if isinstance(target, NoisList):
        if not target.items or not value_equals_exact(target.items[0], NoisType(ValueType.CHAR)):
            return None
        if isinstance(value, (NoisUnit, NoisInt, NoisFloat, NoisChar, NoisBool)):
            return string_value(stringify(value))
        return None

    if not isinstance(target, NoisType):
        return None

    vt = target.value_type
    if isinstance(value, NoisList):
        if not value_equals(own_type, STRING_TYPE):
            return None
        return _parse_string(stringify(value), vt)

    match (value, vt):
        case (NoisInt(value=i), ValueType.FLOAT):
            return NoisFloat(float(i))
        case (NoisFloat(value=f), ValueType.INTEGER):
            if math.isnan(f) or math.isinf(f):
                return None
            truncated = int(f)
            if truncated < I128_MIN or truncated > I128_MAX:
                return None
            return NoisInt(truncated)
        case (NoisInt(value=i), ValueType.CHAR):
            if i < 0 or i > 0x10FFFF or 0xD800 <= i <= 0xDFFF:
                return None
            return NoisChar(chr(i))
        case (NoisChar(value=c), ValueType.INTEGER):
            return NoisInt(ord(c))

    return None

def value_equals_exact(lhs: NoisValue, rhs: NoisValue) -> bool:
    """Equality without the Any wildcard."""
    return repr(lhs) == repr(rhs)

def _parse_string(text: str, vt: ValueType) -> Optional[NoisValue]:
    match vt:
        case ValueType.UNIT:
            return NoisUnit()
        case ValueType.INTEGER:
            if not _INT_RE.fullmatch(text):
                return None
            parsed = int(text)
            if parsed < I128_MIN or parsed > I128_MAX:
                return None
            return NoisInt(parsed)
        case ValueType.FLOAT:
            if not _FLOAT_RE.fullmatch(text):
                return None
            return NoisFloat(float(text))
        case ValueType.CHAR:
            return NoisChar(text) if len(text) == 1 else None
        case ValueType.BOOLEAN:
            if text == "True":
                return NoisBool(True)
            if text == "False":
                return NoisBool(False)
            return None

    return None

def pattern_literal_value(pattern: PatternItem) -> Optional[NoisValue]:
    match pattern:
        case Integer(value=i):
            return NoisInt(i)
        case Float(value=f):
            return NoisFloat(f)
        case Boolean(value=b):
            return NoisBool(b)
        case String(value=s):
            return string_value(s)

    return None
