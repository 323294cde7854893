from __future__ import annotations

from ..ast_nodes import Assignment, Block, ExpressionStatement, MatchExpression, Return, Statement
from ..runtime import Context, Scope
from ..tree import AstPair
from ..types import GrammarShapeError, MatchExhaustedError, NoisValue, ReturnSignal
from .common import EvalFunc, install_bindings, unit_at
from .destructure import assign_expression_definitions
from .match import match_expression

def eval_block(block: AstPair[Block], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    """Run statements in order; the block's value is the last statement's value."""
    result = unit_at(block.span)

    for statement in block.value.statements:
        result = eval_statement(statement, ctx, eval_func)

    return result

def eval_statement(statement: AstPair[Statement], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    match statement.value:
        case Return(expression=expression):
            value = eval_func(expression, ctx) if expression is not None else unit_at(statement.span)
            raise ReturnSignal(value)
        case Assignment(assignee=assignee, expression=expression):
            install_bindings(ctx, assign_expression_definitions(assignee, expression, ctx, eval_func))
            return unit_at(statement.span)
        case ExpressionStatement(expression=expression):
            return eval_func(expression, ctx)

    raise GrammarShapeError(f"unexpected statement {statement.value!r}", statement.span)

def eval_match(expression: AstPair[MatchExpression], ctx: Context, eval_func: EvalFunc) -> AstPair[NoisValue]:
    matched = match_expression(expression, ctx, eval_func)
    if matched is None:
        raise MatchExhaustedError("no match", expression.value.condition.span)

    clause, bindings = matched
    with ctx.scoped(Scope("match")):
        install_bindings(ctx, bindings)
        return eval_func(clause.value.block, ctx)
