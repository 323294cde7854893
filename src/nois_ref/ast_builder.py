"""Parse tree to typed AST.

The builder walks the lark tree produced by :mod:`nois_ref.parser` and returns
:class:`AstPair`-wrapped nodes from :mod:`nois_ref.ast_nodes`. Binary
expressions arrive from the grammar as a flat run of terms and operators and are
assembled here with an explicit operator/operand stack pair.
"""
from __future__ import annotations

import re
from typing import List, Optional

from lark import Token, Tree

from .ast_nodes import (
    Assignee,
    Assignment,
    Associativity,
    BinaryExpression,
    BinaryOperator,
    Block,
    Boolean,
    DestructureItem,
    DestructureList,
    EnumDefinition,
    Expression,
    ExpressionStatement,
    Float,
    FunctionCall,
    FunctionInit,
    Hole,
    Identifier,
    Integer,
    ListInit,
    MatchClause,
    MatchExpression,
    Operand,
    OperandExpression,
    PatternIdentifier,
    PatternItem,
    PatternList,
    Return,
    Statement,
    String,
    StructDefinition,
    UnaryExpression,
    UnaryOperator,
    ValueType,
    ValueTypeOperand,
)
from .tree import AstPair, Node, Span, is_token, is_tree, subtrees, token_kind, tree_children, tree_label
from .types import GrammarShapeError, NoisOverflowError, OperatorChainingError
from .utils import I128_MAX

_BINARY_TOKENS = {
    "ADD": BinaryOperator.ADD,
    "SUB": BinaryOperator.SUBTRACT,
    "MUL": BinaryOperator.MULTIPLY,
    "DIV": BinaryOperator.DIVIDE,
    "EXP": BinaryOperator.EXPONENT,
    "REM": BinaryOperator.REMAINDER,
    "DOT": BinaryOperator.ACCESSOR,
    "EQ": BinaryOperator.EQUALS,
    "NE": BinaryOperator.NOT_EQUALS,
    "GT": BinaryOperator.GREATER,
    "GE": BinaryOperator.GREATER_OR_EQUALS,
    "LT": BinaryOperator.LESS,
    "LE": BinaryOperator.LESS_OR_EQUALS,
    "AND": BinaryOperator.AND,
    "OR": BinaryOperator.OR,
}

_UNARY_TOKENS = {
    "ADD": UnaryOperator.PLUS,
    "SUB": UnaryOperator.MINUS,
    "BANG": UnaryOperator.NOT,
    "SPREAD": UnaryOperator.SPREAD,
}

_VALUE_TYPES = {
    "type_unit": ValueType.UNIT,
    "type_any": ValueType.ANY,
}

# Type names are plain identifiers in the grammar; only operand position reads them as types.
_TYPE_NAMES = {
    t.value: t
    for t in (ValueType.INTEGER, ValueType.FLOAT, ValueType.CHAR, ValueType.BOOLEAN, ValueType.FUNCTION, ValueType.TYPE)
}

_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", '"': '"', "'": "'", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")


def assemble_binary(
    operands: List[AstPair[Expression]],
    operators: List[AstPair[BinaryOperator]],
    source: str,
) -> AstPair[Expression]:
    """Combine `operands[0] op[0] operands[1] ...` honoring precedence and associativity."""
    if len(operands) != len(operators) + 1:
        raise GrammarShapeError(
            f"expected {len(operators) + 1} operands for {len(operators)} operators, found {len(operands)}"
        )

    operand_stack: List[AstPair[Expression]] = [operands[0]]
    operator_stack: List[AstPair[BinaryOperator]] = []

    def reduce() -> None:
        op = operator_stack.pop()
        right = operand_stack.pop()
        left = operand_stack.pop()
        span = Span.join(left.span, right.span, source)
        operand_stack.append(AstPair(span, BinaryExpression(left, op, right)))

    for o1, operand in zip(operators, operands[1:]):
        while operator_stack:
            o2 = operator_stack[-1]
            p1, p2 = o1.value.precedence, o2.value.precedence

            if (
                p1 == p2
                and o1.value.associativity is Associativity.NONE
                and o2.value.associativity is Associativity.NONE
            ):
                raise OperatorChainingError(
                    f"operators '{o2.value}' and '{o1.value}' cannot be chained", o1.span
                )

            if (o1.value.associativity is not Associativity.RIGHT and p1 == p2) or p1 < p2:
                reduce()
            else:
                break

        operator_stack.append(o1)
        operand_stack.append(operand)

    while operator_stack:
        reduce()

    return operand_stack[0]


def unescape_string(raw: str) -> str:
    body = raw[1:-1]

    def replace(m: re.Match[str]) -> str:
        esc = m.group(1)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc in _ESCAPES:
            return _ESCAPES[esc]
        raise GrammarShapeError(f"unable to parse string {raw}: unknown escape \\{esc}")

    return _ESCAPE_RE.sub(replace, body)


class AstBuilder:
    def __init__(self, source: str):
        self.source = source

    def span(self, node: Node) -> Span:
        return Span.from_node(node, self.source)

    def _expect(self, node: Node, *labels: str) -> Tree:
        if not is_tree(node) or tree_label(node) not in labels:
            found = tree_label(node) or token_kind(node)
            raise GrammarShapeError(f"expected {' or '.join(labels)}, found {found}", self.span(node))
        return node

    # ---------- program structure ----------

    def build_program(self, tree: Tree) -> AstPair[Block]:
        node = self._expect(tree, "program", "block")
        statements = tuple(self.build_statement(ch) for ch in subtrees(node))
        return AstPair(self.span(node), Block(statements))

    build_block = build_program

    def build_statement(self, node: Node) -> AstPair[Statement]:
        span = self.span(node)

        match tree_label(node):
            case "return_statement":
                exprs = subtrees(node)
                value = self.build_expression(exprs[0]) if exprs else None
                return AstPair(span, Return(value))
            case "assignment":
                assignee_node, expr_node = subtrees(node)
                return AstPair(span, Assignment(self.build_assignee(assignee_node), self.build_expression(expr_node)))
            case "expression":
                return AstPair(span, ExpressionStatement(self.build_expression(node)))

        raise GrammarShapeError(f"expected statement, found {tree_label(node) or token_kind(node)}", span)

    # ---------- expressions ----------

    def build_expression(self, node: Node) -> AstPair[Expression]:
        if tree_label(node) != "expression":
            return self.build_term(node)

        operands: List[AstPair[Expression]] = []
        operators: List[AstPair[BinaryOperator]] = []

        for ch in tree_children(node):
            if tree_label(ch) == "binary_operator":
                operators.append(self.build_binary_operator(ch))
            else:
                operands.append(self.build_term(ch))

        if len(operands) == 1 and not operators:
            return operands[0]

        return assemble_binary(operands, operators, self.source)

    def build_term(self, node: Node) -> AstPair[Expression]:
        match tree_label(node):
            case "expression":
                return self.build_expression(node)
            case "unary_expression":
                return self.build_unary(node)
            case "match_expression":
                return self.build_match(node)

        operand = self.build_operand(node)
        return AstPair(operand.span, OperandExpression(operand))

    def build_binary_operator(self, node: Node) -> AstPair[BinaryOperator]:
        tok = self._single_token(node)
        op = _BINARY_TOKENS.get(tok.type)
        if op is None:
            raise GrammarShapeError(f"expected binary operator, found {tok.type}", self.span(tok))
        return AstPair(self.span(tok), op)

    def build_unary(self, node: Node) -> AstPair[Expression]:
        op_node, operand_node = tree_children(node)
        tok = self._single_token(op_node)
        op = _UNARY_TOKENS.get(tok.type)
        if op is None:
            raise GrammarShapeError(f"expected unary operator, found {tok.type}", self.span(tok))

        operand = self.build_term(operand_node)
        return AstPair(self.span(node), UnaryExpression(AstPair(self.span(tok), op), operand))

    def build_match(self, node: Node) -> AstPair[Expression]:
        parts = subtrees(node)
        if not parts:
            raise GrammarShapeError("match expression without condition", self.span(node))

        condition = self.build_expression(parts[0])
        clauses = tuple(self.build_match_clause(ch) for ch in parts[1:])
        return AstPair(self.span(node), MatchExpression(condition, clauses))

    def build_match_clause(self, node: Node) -> AstPair[MatchClause]:
        pattern_node, block_node = subtrees(self._expect(node, "match_clause"))
        pattern = self.build_pattern_item(pattern_node)
        block = self.build_block(block_node)
        return AstPair(self.span(node), MatchClause(pattern, block))

    # ---------- operands ----------

    def build_operand(self, node: Node) -> AstPair[Operand]:
        span = self.span(node)

        match tree_label(node):
            case "hole":
                return AstPair(span, Hole())
            case "identifier":
                ident = self.build_identifier(node)
                if ident.value.name in _TYPE_NAMES:
                    return AstPair(span, ValueTypeOperand(_TYPE_NAMES[ident.value.name]))
                return ident
            case "integer":
                return AstPair(span, self._integer(node))
            case "float":
                return AstPair(span, Float(float(self._single_token(node).value)))
            case "boolean":
                return AstPair(span, Boolean(self._single_token(node).type == "TRUE"))
            case "string":
                return AstPair(span, String(unescape_string(str(self._single_token(node).value))))
            case "list_init":
                items = tuple(self.build_expression(ch) for ch in subtrees(node))
                return AstPair(span, ListInit(items))
            case "function_init":
                return AstPair(span, self._function_init(node))
            case "function_call":
                ident_node, args_node = subtrees(node)
                args = tuple(self.build_expression(ch) for ch in subtrees(args_node))
                return AstPair(span, FunctionCall(self.build_identifier(ident_node), args))
            case "struct_define":
                fields = tuple(self.build_identifier(ch) for ch in subtrees(node))
                return AstPair(span, StructDefinition(fields))
            case "enum_define":
                values = tuple(self.build_identifier(ch) for ch in subtrees(node))
                return AstPair(span, EnumDefinition(values))
            case "value_type":
                return AstPair(span, ValueTypeOperand(self._value_type(node)))

        raise GrammarShapeError(f"expected operand, found {tree_label(node) or token_kind(node)}", span)

    def build_identifier(self, node: Node) -> AstPair[Identifier]:
        tok = self._single_token(self._expect(node, "identifier"))
        return AstPair(self.span(node), Identifier(str(tok.value)))

    def _integer(self, node: Node) -> Integer:
        text = str(self._single_token(node).value)
        value = int(text)
        if value > I128_MAX:
            raise NoisOverflowError(f"unable to parse integer {text}", self.span(node))
        return Integer(value)

    def _function_init(self, node: Node) -> FunctionInit:
        params: tuple = ()
        block: Optional[AstPair[Block]] = None

        for ch in subtrees(node):
            if tree_label(ch) == "parameter_list":
                params = tuple(self.build_assignee(p) for p in subtrees(ch))
            elif tree_label(ch) == "block":
                block = self.build_block(ch)

        if block is None:
            raise GrammarShapeError("function without body", self.span(node))

        return FunctionInit(params, block)

    def _value_type(self, node: Node) -> ValueType:
        inner = subtrees(node)
        if len(inner) != 1 or tree_label(inner[0]) not in _VALUE_TYPES:
            raise GrammarShapeError("expected value type", self.span(node))
        return _VALUE_TYPES[tree_label(inner[0])]  # type: ignore[index]

    # ---------- assignees and patterns ----------

    def build_assignee(self, node: Node) -> AstPair[Assignee]:
        span = self.span(node)

        match tree_label(node):
            case "identifier":
                return self.build_identifier(node)
            case "hole":
                return AstPair(span, Hole())
            case "destructure_list":
                return AstPair(span, self._destructure_list(node))

        raise GrammarShapeError(f"expected assignee, found {tree_label(node) or token_kind(node)}", span)

    def _destructure_list(self, node: Node) -> DestructureList:
        items = tuple(self.build_destructure_item(ch) for ch in subtrees(node))
        return DestructureList(items)

    def build_destructure_item(self, node: Node) -> AstPair[DestructureItem]:
        span = self.span(self._expect(node, "destructure_item"))
        inner = subtrees(node)[0]

        match tree_label(inner):
            case "hole":
                return AstPair(span, Hole())
            case "identifier":
                return AstPair(span, PatternIdentifier(self.build_identifier(inner), self._has_token(node, "SPREAD")))
            case "destructure_list":
                return AstPair(span, self._destructure_list(inner))

        raise GrammarShapeError(f"expected destructure item, found {tree_label(inner)}", span)

    def build_pattern_item(self, node: Node) -> AstPair[PatternItem]:
        span = self.span(self._expect(node, "pattern_item"))
        inner = subtrees(node)[0]
        negative = self._has_token(node, "SUB")

        match tree_label(inner):
            case "hole":
                return AstPair(span, Hole())
            case "integer":
                value = self._integer(inner).value
                return AstPair(span, Integer(-value if negative else value))
            case "float":
                value = float(self._single_token(inner).value)
                return AstPair(span, Float(-value if negative else value))
            case "boolean":
                return AstPair(span, Boolean(self._single_token(inner).type == "TRUE"))
            case "string":
                return AstPair(span, String(unescape_string(str(self._single_token(inner).value))))
            case "identifier":
                return AstPair(span, PatternIdentifier(self.build_identifier(inner), self._has_token(node, "SPREAD")))
            case "pattern_list":
                items = tuple(self.build_pattern_item(ch) for ch in subtrees(inner))
                return AstPair(span, PatternList(items))

        raise GrammarShapeError(f"expected pattern item, found {tree_label(inner)}", span)

    # ---------- tokens ----------

    def _single_token(self, node: Node) -> Token:
        tokens = [ch for ch in tree_children(node) if is_token(ch)]
        if len(tokens) != 1:
            raise GrammarShapeError(f"expected a single token in {tree_label(node)}", self.span(node))
        return tokens[0]

    def _has_token(self, node: Node, kind: str) -> bool:
        return any(token_kind(ch) == kind for ch in tree_children(node))


def build_ast(tree: Tree, source: str) -> AstPair[Block]:
    return AstBuilder(source).build_program(tree)
