from __future__ import annotations

from textwrap import dedent

import pytest
from lark import UnexpectedInput

from tests.support.harness import (
    NoisIndexError,
    NoisTypeError,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("[1, 2, 3]", ("list", "[1, 2, 3]"), None, id="list-literal"),
    pytest.param("[]", ("list", "[]"), None, id="empty-list"),
    pytest.param("[1, [2, [3]]]", ("list", "[1, [2, [3]]]"), None, id="nested-list"),
    pytest.param("[1, 2] + [3]", ("list", "[1, 2, 3]"), None, id="concat"),
    pytest.param("[1, 2] + 3", ("list", "[1, 2, 3]"), None, id="append"),
    pytest.param("0 + [1, 2]", ("list", "[0, 1, 2]"), None, id="prepend"),
    pytest.param("..[1, 2] + [3]", ("list", "[1, 2, [3]]"), None, id="spread-plus-list"),
    pytest.param("[1] + ..[2, 3]", ("list", "[[1], 2, 3]"), None, id="list-plus-spread"),
    pytest.param("..[1]", ("display", "..[1]"), None, id="spread-value"),
    pytest.param(
        dedent(
            """\
            a = [1, 2, 3]
            [..a, 4]
            """
        ),
        ("list", "[1, 2, 3, 4]"),
        None,
        id="spread-in-list-literal",
    ),
    pytest.param(
        dedent(
            """\
            a = [1]
            b = [2, 3]
            [0, ..a, ..b]
            """
        ),
        ("list", "[0, 1, 2, 3]"),
        None,
        id="multiple-spreads-in-literal",
    ),
    pytest.param("..1", None, NoisTypeError, id="spread-scalar"),
    pytest.param("....[1]", None, UnexpectedInput, id="spread-twice-does-not-parse"),
    pytest.param('"ab" + "cd"', ("string", "abcd"), None, id="string-concat"),
    pytest.param('"ab" + \'c\'', ("string", "abc"), None, id="string-plus-char-string"),
    pytest.param('"abc".len()', ("int", 3), None, id="string-len"),
    pytest.param("range(4)", ("list", "[0, 1, 2, 3]"), None, id="range-end"),
    pytest.param("range(2, 5)", ("list", "[2, 3, 4]"), None, id="range-start-end"),
    pytest.param("range(3, 1)", ("list", "[]"), None, id="range-empty"),
    pytest.param("range(1.5)", None, NoisTypeError, id="range-rejects-float"),
    pytest.param("len([])", ("int", 0), None, id="len-empty"),
    pytest.param("[1, 2].len()", ("int", 2), None, id="len-method"),
    pytest.param("len(1)", None, NoisTypeError, id="len-rejects-scalar"),
    pytest.param("range(4).map(|x| { x * x })", ("list", "[0, 1, 4, 9]"), None, id="map"),
    pytest.param(
        "range(6).filter(|x| { x % 2 == 0 })",
        ("list", "[0, 2, 4]"),
        None,
        id="filter",
    ),
    pytest.param("[1, 2].filter(|x| { x })", None, NoisTypeError, id="filter-needs-boolean"),
    pytest.param(
        "[1, 2, 3, 4].reduce(0, |acc, x| { acc + x })",
        ("int", 10),
        None,
        id="reduce-sum",
    ),
    pytest.param(
        "[].reduce(7, |acc, x| { acc + x })",
        ("int", 7),
        None,
        id="reduce-empty-returns-initial",
    ),
    pytest.param(
        "['a', 'b'].reduce('', |acc, x| { acc + x })",
        ("string", "ab"),
        None,
        id="reduce-strings",
    ),
    pytest.param("[1, 2].map(1)", None, NoisTypeError, id="map-needs-function"),
    pytest.param("[5, 6, 7].at(1)", ("int", 6), None, id="at"),
    pytest.param('"xyz".at(2)', ("char", "z"), None, id="at-string"),
    pytest.param("[5].at(1)", None, NoisIndexError, id="at-out-of-bounds"),
    pytest.param("[5].at(-1)", None, NoisIndexError, id="at-negative"),
    pytest.param(
        dedent(
            """\
            squares = range(1, 4).map(|x| { x * x })
            squares.reduce(0, |acc, x| { acc + x })
            """
        ),
        ("int", 14),
        None,
        id="pipeline",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_collections(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_stdlib_callback_runs_in_callee_scope(nois_debug_log) -> None:
    run_runtime_case("[1, 2].map(|x| { x + 1 })", ("list", "[2, 3]"), None)
    messages = [r.getMessage() for r in nois_debug_log.records]

    assert sum("push scope @map" in m for m in messages) == 3
