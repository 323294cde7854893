"""Typed AST for Nois programs.

Every child reference is an :class:`AstPair` so each node keeps the span it was
built from. Sequences are tuples, which keeps nodes hashable and lets function
values compare by their syntactic definition.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from typing_extensions import TypeAlias

from .tree import AstPair


class Associativity(Enum):
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


class BinaryOperator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EXPONENT = "^"
    REMAINDER = "%"
    ACCESSOR = "."
    EQUALS = "=="
    NOT_EQUALS = "!="
    GREATER = ">"
    GREATER_OR_EQUALS = ">="
    LESS = "<"
    LESS_OR_EQUALS = "<="
    AND = "&&"
    OR = "||"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]

    @property
    def associativity(self) -> Associativity:
        return _ASSOCIATIVITY[self]

    def __str__(self) -> str:
        return self.value


_PRECEDENCE = {
    BinaryOperator.ACCESSOR: 8,
    BinaryOperator.EXPONENT: 7,
    BinaryOperator.MULTIPLY: 6,
    BinaryOperator.DIVIDE: 6,
    BinaryOperator.REMAINDER: 6,
    BinaryOperator.ADD: 5,
    BinaryOperator.SUBTRACT: 5,
    BinaryOperator.EQUALS: 3,
    BinaryOperator.NOT_EQUALS: 3,
    BinaryOperator.GREATER: 3,
    BinaryOperator.GREATER_OR_EQUALS: 3,
    BinaryOperator.LESS: 3,
    BinaryOperator.LESS_OR_EQUALS: 3,
    BinaryOperator.AND: 2,
    BinaryOperator.OR: 1,
}

_ASSOCIATIVITY = {
    BinaryOperator.ACCESSOR: Associativity.LEFT,
    BinaryOperator.EXPONENT: Associativity.RIGHT,
    BinaryOperator.MULTIPLY: Associativity.LEFT,
    BinaryOperator.DIVIDE: Associativity.LEFT,
    BinaryOperator.REMAINDER: Associativity.LEFT,
    BinaryOperator.ADD: Associativity.LEFT,
    BinaryOperator.SUBTRACT: Associativity.LEFT,
    BinaryOperator.EQUALS: Associativity.NONE,
    BinaryOperator.NOT_EQUALS: Associativity.NONE,
    BinaryOperator.GREATER: Associativity.NONE,
    BinaryOperator.GREATER_OR_EQUALS: Associativity.NONE,
    BinaryOperator.LESS: Associativity.NONE,
    BinaryOperator.LESS_OR_EQUALS: Associativity.NONE,
    BinaryOperator.AND: Associativity.RIGHT,
    BinaryOperator.OR: Associativity.RIGHT,
}


class UnaryOperator(Enum):
    PLUS = "+"
    MINUS = "-"
    NOT = "!"
    SPREAD = ".."

    def __str__(self) -> str:
        return self.value


class ValueType(Enum):
    UNIT = "()"
    INTEGER = "I"
    FLOAT = "F"
    CHAR = "C"
    BOOLEAN = "B"
    FUNCTION = "Fn"
    ANY = "*"
    TYPE = "T"

    def __str__(self) -> str:
        return self.value


# ---------- Leaves shared by operands, assignees and patterns ----------

@dataclass(frozen=True)
class Identifier:
    name: str

    def __str__(self) -> str:
        return self.name

@dataclass(frozen=True)
class Hole:
    def __str__(self) -> str:
        return "_"

@dataclass(frozen=True)
class Integer:
    value: int

@dataclass(frozen=True)
class Float:
    value: float

@dataclass(frozen=True)
class Boolean:
    value: bool

@dataclass(frozen=True)
class String:
    value: str


# ---------- Program structure ----------

@dataclass(frozen=True)
class Block:
    statements: Tuple[AstPair[Statement], ...]


@dataclass(frozen=True)
class Return:
    expression: Optional[AstPair[Expression]]

@dataclass(frozen=True)
class Assignment:
    assignee: AstPair[Assignee]
    expression: AstPair[Expression]

@dataclass(frozen=True)
class ExpressionStatement:
    expression: AstPair[Expression]

Statement: TypeAlias = Union[Return, Assignment, ExpressionStatement]


# ---------- Expressions ----------

@dataclass(frozen=True)
class OperandExpression:
    operand: AstPair[Operand]

@dataclass(frozen=True)
class UnaryExpression:
    operator: AstPair[UnaryOperator]
    operand: AstPair[Expression]

@dataclass(frozen=True)
class BinaryExpression:
    left: AstPair[Expression]
    operator: AstPair[BinaryOperator]
    right: AstPair[Expression]

@dataclass(frozen=True)
class MatchClause:
    pattern: AstPair[PatternItem]
    block: AstPair[Block]

@dataclass(frozen=True)
class MatchExpression:
    condition: AstPair[Expression]
    match_clauses: Tuple[AstPair[MatchClause], ...]

Expression: TypeAlias = Union[OperandExpression, UnaryExpression, BinaryExpression, MatchExpression]


# ---------- Operands ----------

@dataclass(frozen=True)
class ListInit:
    items: Tuple[AstPair[Expression], ...]

@dataclass(frozen=True)
class FunctionInit:
    parameters: Tuple[AstPair[Assignee], ...]
    block: AstPair[Block]

@dataclass(frozen=True)
class FunctionCall:
    identifier: AstPair[Identifier]
    arguments: Tuple[AstPair[Expression], ...]

@dataclass(frozen=True)
class StructDefinition:
    fields: Tuple[AstPair[Identifier], ...]

@dataclass(frozen=True)
class EnumDefinition:
    values: Tuple[AstPair[Identifier], ...]

@dataclass(frozen=True)
class ValueTypeOperand:
    value_type: ValueType

Operand: TypeAlias = Union[
    Hole,
    Integer,
    Float,
    Boolean,
    String,
    Identifier,
    ListInit,
    FunctionInit,
    FunctionCall,
    StructDefinition,
    EnumDefinition,
    ValueTypeOperand,
]


# ---------- Assignees and patterns ----------

@dataclass(frozen=True)
class PatternIdentifier:
    """Identifier inside a destructure/pattern list, optionally spread (`..rest`)."""
    identifier: AstPair[Identifier]
    spread: bool = False

@dataclass(frozen=True)
class DestructureList:
    items: Tuple[AstPair[DestructureItem], ...]

@dataclass(frozen=True)
class PatternList:
    items: Tuple[AstPair[PatternItem], ...]

DestructureItem: TypeAlias = Union[Hole, PatternIdentifier, DestructureList]

Assignee: TypeAlias = Union[Identifier, Hole, DestructureList]

PatternItem: TypeAlias = Union[Hole, Integer, Float, Boolean, String, PatternIdentifier, PatternList]
