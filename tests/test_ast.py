from __future__ import annotations

from textwrap import dedent

import pytest
from lark import Tree

from nois_ref.ast_builder import AstBuilder, assemble_binary, unescape_string
from nois_ref.ast_nodes import (
    Assignment,
    BinaryOperator,
    Boolean,
    DestructureList,
    EnumDefinition,
    ExpressionStatement,
    Float,
    FunctionCall,
    FunctionInit,
    Hole,
    Identifier,
    Integer,
    ListInit,
    MatchExpression,
    OperandExpression,
    PatternIdentifier,
    PatternList,
    Return,
    String,
    StructDefinition,
    UnaryExpression,
    UnaryOperator,
    ValueType,
    ValueTypeOperand,
)
from nois_ref.tree import AstPair, Span

from tests.support.harness import (
    GrammarShapeError,
    NoisOverflowError,
    only_expression,
    parse_pipeline,
)

NOWHERE = Span("", 0, 0)


def ident(name: str) -> AstPair[Identifier]:
    return AstPair(NOWHERE, Identifier(name))


def operand_of(source: str):
    expr = only_expression(source).value
    assert isinstance(expr, OperandExpression), f"expected operand, got {expr!r}"
    return expr.operand.value


@pytest.mark.parametrize(
    "source, expected",
    [
        pytest.param("12", Integer(12), id="integer"),
        pytest.param("12.5", Float(12.5), id="float"),
        pytest.param("1e21", Float(1e21), id="float-exponent"),
        pytest.param("True", Boolean(True), id="true"),
        pytest.param("False", Boolean(False), id="false"),
        pytest.param('"hello"', String("hello"), id="string-double"),
        pytest.param("'hello'", String("hello"), id="string-single"),
        pytest.param(r'"a\nb"', String("a\nb"), id="string-newline-escape"),
        pytest.param(r'"\u0041b"', String("Ab"), id="string-unicode-escape"),
        pytest.param(r"'it\'s'", String("it's"), id="string-quote-escape"),
        pytest.param("_", Hole(), id="hole"),
        pytest.param("foo_bar", Identifier("foo_bar"), id="identifier"),
        pytest.param("()", ValueTypeOperand(ValueType.UNIT), id="type-unit"),
        pytest.param("I", ValueTypeOperand(ValueType.INTEGER), id="type-integer"),
        pytest.param("F", ValueTypeOperand(ValueType.FLOAT), id="type-float"),
        pytest.param("C", ValueTypeOperand(ValueType.CHAR), id="type-char"),
        pytest.param("B", ValueTypeOperand(ValueType.BOOLEAN), id="type-boolean"),
        pytest.param("Fn", ValueTypeOperand(ValueType.FUNCTION), id="type-function"),
        pytest.param("*", ValueTypeOperand(ValueType.ANY), id="type-any"),
        pytest.param("T", ValueTypeOperand(ValueType.TYPE), id="type-type"),
    ],
)
def test_leaf_operands(source: str, expected: object) -> None:
    assert operand_of(source) == expected


@pytest.mark.parametrize(
    "source, count",
    [
        pytest.param("[]", 0, id="empty"),
        pytest.param("[,]", 0, id="empty-comma"),
        pytest.param("[1]", 1, id="single"),
        pytest.param("[1, 2, 'abc',]", 3, id="trailing-comma"),
        pytest.param("[\n  1,\n  2\n]", 2, id="multiline"),
    ],
)
def test_list_init(source: str, count: int) -> None:
    operand = operand_of(source)
    assert isinstance(operand, ListInit)
    assert len(operand.items) == count


def test_string_type_is_list_of_char_type() -> None:
    operand = operand_of("[C]")
    assert isinstance(operand, ListInit)
    assert operand.items[0].value.operand.value == ValueTypeOperand(ValueType.CHAR)


def test_function_init_parameters() -> None:
    operand = operand_of("|a, [b, ..c], _| { a }")
    assert isinstance(operand, FunctionInit)

    a, destructure, hole = operand.parameters
    assert a.value == Identifier("a")
    assert destructure.value == DestructureList(
        (
            AstPair(NOWHERE, PatternIdentifier(ident("b"))),
            AstPair(NOWHERE, PatternIdentifier(ident("c"), spread=True)),
        )
    )
    assert hole.value == Hole()
    assert len(operand.block.value.statements) == 1


def test_function_init_without_parameters() -> None:
    operand = operand_of("|| { 1 }")
    assert isinstance(operand, FunctionInit)
    assert operand.parameters == ()


def test_function_call_arguments() -> None:
    operand = operand_of("foo(a, 1,)")
    assert isinstance(operand, FunctionCall)
    assert operand.identifier.value == Identifier("foo")
    assert len(operand.arguments) == 2


def test_struct_and_enum_definitions() -> None:
    struct = operand_of("#{a, b}")
    assert struct == StructDefinition((ident("a"), ident("b")))

    enum = operand_of("|{Red, Green}")
    assert enum == EnumDefinition((ident("Red"), ident("Green")))


def test_type_names_stay_identifiers_outside_operands() -> None:
    enum = operand_of("|{A, B, C}")
    assert enum == EnumDefinition((ident("A"), ident("B"), ident("C")))

    struct = operand_of("#{I, T, name}")
    assert struct == StructDefinition((ident("I"), ident("T"), ident("name")))

    call = operand_of("F(B)")
    assert isinstance(call, FunctionCall)
    assert call.identifier.value == Identifier("F")
    assert call.arguments[0].value.operand.value == ValueTypeOperand(ValueType.BOOLEAN)


def test_unary_expression() -> None:
    expr = only_expression("..xs").value
    assert isinstance(expr, UnaryExpression)
    assert expr.operator.value is UnaryOperator.SPREAD
    assert expr.operand.value.operand.value == Identifier("xs")


@pytest.mark.parametrize(
    "source, kind",
    [
        pytest.param("a = 1", Identifier, id="identifier"),
        pytest.param("_ = 1", Hole, id="hole"),
        pytest.param("[a, _, ..t] = xs", DestructureList, id="destructure"),
    ],
)
def test_assignment_assignees(source: str, kind: type) -> None:
    statement = parse_pipeline(source).value.statements[0].value
    assert isinstance(statement, Assignment)
    assert isinstance(statement.assignee.value, kind)


def test_destructure_items() -> None:
    statement = parse_pipeline("[a, _, [b], ..t] = xs").value.statements[0].value
    items = [item.value for item in statement.assignee.value.items]

    assert items[0] == PatternIdentifier(ident("a"))
    assert items[1] == Hole()
    assert items[2] == DestructureList((AstPair(NOWHERE, PatternIdentifier(ident("b"))),))
    assert items[3] == PatternIdentifier(ident("t"), spread=True)


def test_return_statements() -> None:
    block = parse_pipeline("return\nreturn 1")
    bare, valued = [s.value for s in block.value.statements]

    assert bare == Return(None)
    assert isinstance(valued, Return)
    assert valued.expression.value.operand.value == Integer(1)


def test_match_expression_patterns() -> None:
    source = dedent(
        """\
        match x {
          -1 => { 1 }
          2.5 => { 2 }
          "s" => { 3 }
          True => { 4 }
          [a, [_], ..rest] => { 5 }
          other => { 6 }
        }
        """
    )
    expr = only_expression(source).value
    assert isinstance(expr, MatchExpression)

    patterns = [clause.value.pattern.value for clause in expr.match_clauses]
    assert patterns[0] == Integer(-1)
    assert patterns[1] == Float(2.5)
    assert patterns[2] == String("s")
    assert patterns[3] == Boolean(True)
    assert patterns[4] == PatternList(
        (
            AstPair(NOWHERE, PatternIdentifier(ident("a"))),
            AstPair(NOWHERE, PatternList((AstPair(NOWHERE, Hole()),))),
            AstPair(NOWHERE, PatternIdentifier(ident("rest"), spread=True)),
        )
    )
    assert patterns[5] == PatternIdentifier(ident("other"))


def test_spans_cover_source() -> None:
    source = "x = 1\nfoo + 12"
    block = parse_pipeline(source)
    expr = block.value.statements[1].value.expression

    assert expr.span.text == "foo + 12"
    assert expr.span.line_col(source) == (2, 1)
    assert expr.value.right.span.line_col(source) == (2, 7)


def test_ast_pair_equality_ignores_span() -> None:
    assert AstPair(Span("a", 0, 1), Integer(1)) == AstPair(Span("a", 5, 6), Integer(1))
    assert repr(AstPair(NOWHERE, Integer(1))) == "AstPair(Integer(value=1))"


def test_program_of_statements() -> None:
    block = parse_pipeline("a = 1\nb = 2\na + b")
    kinds = [type(s.value) for s in block.value.statements]
    assert kinds == [Assignment, Assignment, ExpressionStatement]


def test_empty_program() -> None:
    assert parse_pipeline("").value.statements == ()


def test_integer_literal_out_of_range() -> None:
    with pytest.raises(NoisOverflowError):
        parse_pipeline("170141183460469231731687303715884105728")


def test_unexpected_tree_is_grammar_shape_error() -> None:
    with pytest.raises(GrammarShapeError):
        AstBuilder("").build_statement(Tree("bogus", []))


def test_assemble_binary_checks_shape() -> None:
    with pytest.raises(GrammarShapeError):
        assemble_binary([], [AstPair(NOWHERE, BinaryOperator.ADD)], "")


def test_unknown_escape_rejected() -> None:
    with pytest.raises(GrammarShapeError):
        unescape_string(r'"\q"')
