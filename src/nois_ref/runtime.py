from __future__ import annotations

import importlib
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from typing_extensions import TypeAlias

from .ast_nodes import Expression
from .tree import AstPair, Span
from .types import CalleeResolutionError, NoisError, NoisValue

logger = logging.getLogger(__name__)

# ---------- Definitions ----------

@dataclass
class UserDefinition:
    """Lazy binding: the expression is evaluated again on every lookup."""
    assignee_span: Span
    expression: AstPair[Expression]

@dataclass
class ValueDefinition:
    value: AstPair[NoisValue]

@dataclass
class SystemDefinition:
    function: LibFunction

Definition: TypeAlias = Union[UserDefinition, ValueDefinition, SystemDefinition]

# ---------- Scope stack ----------

@dataclass
class Scope:
    name: str
    definitions: Dict[str, Definition] = field(default_factory=dict)
    callee: Optional[Span] = None
    params: List[AstPair[NoisValue]] = field(default_factory=list)
    method_callee: Optional[Tuple[Span, AstPair[NoisValue]]] = None

class Context:
    """Interpreter state for one program run: the scope stack plus its source."""

    def __init__(self, source: Optional[str]=None):
        self.source = source
        self.scope_stack: List[Scope] = []

    @classmethod
    def with_stdlib(cls, source: Optional[str]=None) -> Context:
        ctx = cls(source)
        ctx.push_scope(stdlib_scope())
        ctx.push_scope(Scope("global"))
        return ctx

    @property
    def top(self) -> Scope:
        if not self.scope_stack:
            raise NoisError("scope stack is empty")
        return self.scope_stack[-1]

    def push_scope(self, scope: Scope) -> None:
        self.scope_stack.append(scope)
        logger.debug("push scope @%s", scope.name)

    def pop_scope(self) -> Scope:
        scope = self.scope_stack.pop()
        logger.debug("pop scope @%s", scope.name)
        return scope

    @contextmanager
    def scoped(self, scope: Scope) -> Iterator[Scope]:
        self.push_scope(scope)
        try:
            yield scope
        finally:
            self.pop_scope()

    @contextmanager
    def truncated(self, depth: int) -> Iterator[None]:
        """Temporarily hide every scope above `depth`."""
        hidden = self.scope_stack[depth:]
        del self.scope_stack[depth:]
        try:
            yield
        finally:
            self.scope_stack.extend(hidden)

    def define(self, name: str, definition: Definition) -> None:
        self.top.definitions[name] = definition

    def lookup(self, name: str) -> Optional[Tuple[int, Definition]]:
        """Innermost definition of `name` and the index of the scope holding it."""
        for index in range(len(self.scope_stack) - 1, -1, -1):
            found = self.scope_stack[index].definitions.get(name)
            if found is not None:
                return index, found

        return None

    def resolve_callee(self) -> Span:
        scope = self.top
        if scope.method_callee is not None:
            return scope.method_callee[0]
        if scope.callee is not None:
            return scope.callee

        raise CalleeResolutionError(f"callee not found in scope @{scope.name}")

# ---------- Standard library contract ----------

StdlibFn: TypeAlias = Callable[[List[AstPair[NoisValue]], Context], NoisValue]

@dataclass
class LibFunction:
    name: str
    fn: StdlibFn

    def call(self, args: List[AstPair[NoisValue]], ctx: Context) -> NoisValue:
        return self.fn(args, ctx)

    def call_fn(self, args: List[AstPair[NoisValue]], ctx: Context) -> AstPair[NoisValue]:
        """Invoke with evaluated arguments; the result takes the call-site span."""
        callee = ctx.resolve_callee()

        try:
            result = self.call(args, ctx)
        except NoisError as exc:
            if exc.span is None:
                exc.span = callee
            raise

        logger.debug("stdlib function call %r, args: %r, result: %r", self.name, args, result)
        return AstPair(callee, result)

class Package:
    """Named group of standard-library definitions."""

    def __init__(self, name: str):
        self.name = name
        self.definitions: Dict[str, Definition] = {}

    def register(self, name: str):
        def dec(fn: StdlibFn) -> StdlibFn:
            self.definitions[name] = SystemDefinition(LibFunction(name, fn))
            return fn

        return dec

    def __repr__(self) -> str:
        return f"Package({self.name!r}, {sorted(self.definitions)!r})"

def stdlib_packages() -> List[Package]:
    """Load the stdlib module so its packages register their functions."""
    module = importlib.import_module(".stdlib", __package__)
    return list(module.PACKAGES)

def stdlib_scope() -> Scope:
    scope = Scope("stdlib")

    for package in stdlib_packages():
        scope.definitions.update(package.definitions)

    return scope
