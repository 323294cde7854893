from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    ArityError,
    NoisTypeError,
    UnknownIdentifierError,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            add = |a, b| { a + b }
            add(2, 3)
            """
        ),
        ("int", 5),
        None,
        id="call-user-function",
    ),
    pytest.param(
        dedent(
            """\
            one = || { 1 }
            one()
            """
        ),
        ("int", 1),
        None,
        id="call-without-parameters",
    ),
    pytest.param(
        dedent(
            """\
            f = |x| {
              y = x * 2
              y + 1
            }
            f(4)
            """
        ),
        ("int", 9),
        None,
        id="multiline-body-last-value",
    ),
    pytest.param(
        dedent(
            """\
            fact = |n| {
              match n {
                0 => { 1 }
                _ => { n * fact(n - 1) }
              }
            }
            fact(5)
            """
        ),
        ("int", 120),
        None,
        id="recursion",
    ),
    pytest.param(
        dedent(
            """\
            fib = |n| {
              match n < 2 {
                True => { n }
                False => { fib(n - 1) + fib(n - 2) }
              }
            }
            fib(10)
            """
        ),
        ("int", 55),
        None,
        id="recursion-two-branches",
    ),
    pytest.param(
        dedent(
            """\
            f = |x| {
              return x * 2
              99
            }
            f(4)
            """
        ),
        ("int", 8),
        None,
        id="early-return",
    ),
    pytest.param(
        dedent(
            """\
            f = || {
              return
            }
            f()
            """
        ),
        ("unit", None),
        None,
        id="bare-return-is-unit",
    ),
    pytest.param(
        dedent(
            """\
            return 5
            6
            """
        ),
        ("int", 5),
        None,
        id="top-level-return",
    ),
    pytest.param(
        dedent(
            """\
            f = || { }
            f()
            """
        ),
        ("unit", None),
        None,
        id="empty-body-is-unit",
    ),
    pytest.param(
        dedent(
            """\
            first = |[h, ..t]| { h }
            first([7, 8, 9])
            """
        ),
        ("int", 7),
        None,
        id="destructure-parameter",
    ),
    pytest.param(
        dedent(
            """\
            rest = |[_, ..t]| { t }
            rest([7, 8, 9])
            """
        ),
        ("list", "[8, 9]"),
        None,
        id="destructure-parameter-spread",
    ),
    pytest.param(
        dedent(
            """\
            second = |_, b| { b }
            second(1, 2)
            """
        ),
        ("int", 2),
        None,
        id="hole-parameter",
    ),
    pytest.param(
        dedent(
            """\
            apply = |f, x| { f(x) }
            apply(|n| { n + 1 }, 4)
            """
        ),
        ("int", 5),
        None,
        id="higher-order",
    ),
    pytest.param(
        dedent(
            """\
            sum3 = |a, b, c| { a + b + c }
            xs = [1, 2, 3]
            sum3(..xs)
            """
        ),
        ("int", 6),
        None,
        id="spread-arguments",
    ),
    pytest.param(
        dedent(
            """\
            sum3 = |a, b, c| { a + b + c }
            sum3(1, ..[2, 3])
            """
        ),
        ("int", 6),
        None,
        id="spread-mixed-arguments",
    ),
    pytest.param(
        dedent(
            """\
            double = |x| { x * 2 }
            3.double()
            """
        ),
        ("int", 6),
        None,
        id="method-call-user-function",
    ),
    pytest.param(
        dedent(
            """\
            add = |a, b| { a + b }
            1.add(2).add(3)
            """
        ),
        ("int", 6),
        None,
        id="method-chain",
    ),
    pytest.param(
        dedent(
            """\
            double = |x| { x * 2 }
            5.double
            """
        ),
        ("int", 10),
        None,
        id="accessor-identifier-call",
    ),
    pytest.param(
        "[1, 2, 3].map(|x| { x * 2 }).len()",
        ("int", 3),
        None,
        id="stdlib-method-chain",
    ),
    pytest.param(
        dedent(
            """\
            f = || { y }
            y = 3
            f()
            """
        ),
        ("int", 3),
        None,
        id="free-name-resolved-at-call",
    ),
    pytest.param(
        dedent(
            """\
            f = || { y }
            g = |y| { f() }
            g(7)
            """
        ),
        ("int", 7),
        None,
        id="free-name-resolved-through-caller",
    ),
    pytest.param(
        dedent(
            """\
            make = |x| { |y| { x + y } }
            add1 = make(1)
            add1(2)
            """
        ),
        None,
        UnknownIdentifierError,
        id="closure-does-not-capture",
    ),
    pytest.param(
        dedent(
            """\
            f = || { 1 }
            f == f
            """
        ),
        ("bool", True),
        None,
        id="function-equality",
    ),
    pytest.param(
        dedent(
            """\
            f = |a| { a }
            f(1, 2)
            """
        ),
        None,
        ArityError,
        id="too-many-arguments",
    ),
    pytest.param(
        dedent(
            """\
            f = |a, b| { a }
            f(1)
            """
        ),
        None,
        ArityError,
        id="too-few-arguments",
    ),
    pytest.param(
        dedent(
            """\
            x = 1
            x(2)
            """
        ),
        None,
        NoisTypeError,
        id="call-non-function",
    ),
    pytest.param("[[1], [2, 3], []].map(len)", ("list", "[1, 2, 0]"), None, id="stdlib-function-as-argument"),
    pytest.param("size = len\nsize('abc')", ("int", 3), None, id="stdlib-function-alias"),
    pytest.param("type(println)", ("type", "Fn"), None, id="stdlib-function-type"),
    pytest.param("eq(len, len)", ("bool", True), None, id="stdlib-function-equality"),
    pytest.param("nope(1)", None, UnknownIdentifierError, id="call-unknown"),
    pytest.param("1.nope()", None, UnknownIdentifierError, id="method-unknown"),
    pytest.param("1.(2)", None, NoisTypeError, id="accessor-needs-call"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_functions(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_arity_message_names_function() -> None:
    with pytest.raises(ArityError) as exc_info:
        run_runtime_case("f = |a| { a }\nf()", None, None)

    assert exc_info.value.message == "function 'f' expects 1 arguments, found 0"


def test_method_call_is_logged(nois_debug_log) -> None:
    run_runtime_case("[1].len()", ("int", 1), None)
    messages = [r.getMessage() for r in nois_debug_log.records]

    assert any(m.startswith("method call") for m in messages)
    assert any("push scope @len" in m for m in messages)
    assert any("pop scope @len" in m for m in messages)
