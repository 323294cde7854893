from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from typing_extensions import TypeAlias

from .ast_nodes import FunctionInit, ValueType
from .tree import AstPair, Span

if TYPE_CHECKING:
    from .runtime import LibFunction

# ---------- Value Model ----------
# Equality between values goes through utils.value_equals, never through the
# generated __eq__, because of the Any wildcard rule.

@dataclass(eq=False)
class NoisUnit:
    def __repr__(self) -> str:
        return "()"

@dataclass(eq=False)
class NoisInt:
    value: int
    def __repr__(self) -> str:
        return f"I({self.value})"

@dataclass(eq=False)
class NoisFloat:
    value: float
    def __repr__(self) -> str:
        return f"F({self.value})"

@dataclass(eq=False)
class NoisChar:
    value: str
    def __repr__(self) -> str:
        return f"C({self.value!r})"

@dataclass(eq=False)
class NoisBool:
    value: bool
    def __repr__(self) -> str:
        return f"B({self.value})"

@dataclass(eq=False)
class NoisList:
    items: List['NoisValue'] = field(default_factory=list)
    spread: bool = False
    def __repr__(self) -> str:
        prefix = ".." if self.spread else ""
        return prefix + "[" + ", ".join(repr(x) for x in self.items) + "]"

@dataclass(eq=False)
class NoisFn:
    # TODO: closures don't capture their defining scope; add an environment
    # field here once closure capture is designed.
    definition: AstPair[FunctionInit]
    def __repr__(self) -> str:
        return "<fn>"

@dataclass(eq=False)
class NoisSystemFn:
    """Standard-library function referenced by name instead of called."""
    name: str
    function: LibFunction
    def __repr__(self) -> str:
        return "<fn>"

@dataclass(eq=False)
class NoisType:
    value_type: ValueType
    def __repr__(self) -> str:
        return str(self.value_type)

NoisValue: TypeAlias = (
    NoisUnit
    | NoisInt
    | NoisFloat
    | NoisChar
    | NoisBool
    | NoisList
    | NoisFn
    | NoisSystemFn
    | NoisType
)

def string_value(text: str) -> NoisList:
    """Strings are character lists."""
    return NoisList([NoisChar(c) for c in text])

def list_type(*types: ValueType) -> NoisList:
    return NoisList([NoisType(t) for t in types])

# ---------- Exceptions ----------

class NoisError(Exception):
    """Base error: a message plus the span it is reported at."""

    def __init__(self, message: str, span: Optional[Span] = None):
        super().__init__(message)
        self.message = message
        self.span = span
        self.location: Optional[Tuple[int, int]] = None

    def attach_location(self, source: Optional[str]) -> None:
        if source is None or self.span is None or self.location is not None:
            return

        self.location = self.span.line_col(source)

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        if self.location is None:
            return self.message

        line, col = self.location
        return f"{self.message} (line {line}, col {col})"

class GrammarShapeError(NoisError):
    pass

class OperatorChainingError(NoisError):
    pass

class TypeCastError(NoisError):
    pass

class ArithmeticTypeError(NoisError):
    pass

class NoisTypeError(NoisError):
    pass

class NoisZeroDivisionError(NoisError):
    pass

class NoisOverflowError(NoisError):
    pass

class PatternSpreadAmbiguityError(NoisError):
    pass

class PatternSpreadMisuseError(NoisError):
    pass

class PatternLengthError(NoisError):
    pass

class UnknownIdentifierError(NoisError):
    def __init__(self, name: str, span: Optional[Span] = None):
        super().__init__(f"identifier '{name}' not found", span)
        self.name = name

class MatchExhaustedError(NoisError):
    pass

class CalleeResolutionError(NoisError):
    pass

class ArityError(NoisError):
    pass

class NoisIndexError(NoisError):
    pass

class ReturnSignal(Exception):
    """Internal control-flow exception used to implement `return`."""
    def __init__(self, value: AstPair[NoisValue]):
        self.value = value
