"""
Variable and function resolution for evalex.

A configuration is handed to every evaluation and answers two questions:
what value a variable name has, and what a function name returns for a
tuple of arguments. Variables and functions live in separate namespaces.
Evaluation only reads from a configuration; mutation happens through the
implementation's own setters, outside evaluation.

Usage::

    from evalex.core.configuration import MappingConfiguration
    from evalex.core.expression_lang.parser import parse_expr

    config = MappingConfiguration()
    config.set_variable("a", 1)
    config.set_function("double", lambda args: args.items[0].value * 2, argument_count=1)
    parse_expr("double(a) + 1").eval(config)   # IntValue(value=3)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from evalex.core.errors import ExpressionArityError, ExpressionLookupError
from evalex.core.ir.values import TupleValue, Value, to_value

logger = logging.getLogger(__name__)

FunctionBody = Callable[[TupleValue], Any]


class Function:
    """A callable bound to a function name.

    The body receives the evaluated arguments as a ``TupleValue`` and
    returns a value; native Python results are converted with ``to_value``.
    When ``argument_count`` is set, calls with a different number of
    arguments fail before the body runs.
    """

    __slots__ = ("body", "argument_count")

    def __init__(self, body: FunctionBody, argument_count: int | None = None) -> None:
        self.body = body
        self.argument_count = argument_count

    def __repr__(self) -> str:
        return f"Function({getattr(self.body, '__name__', self.body)!r}, argument_count={self.argument_count})"

    def call(self, name: str, args: TupleValue) -> Value:
        if self.argument_count is not None and len(args.items) != self.argument_count:
            raise ExpressionArityError(name, self.argument_count, len(args.items))
        return to_value(self.body(args))


class Configuration(ABC):
    """Resolves variable and function names during evaluation."""

    @abstractmethod
    def resolve_variable(self, name: str) -> Value | None:
        """Return the value bound to *name*, or ``None`` if unbound."""

    @abstractmethod
    def call_function(self, name: str, args: TupleValue) -> Value:
        """Call the function bound to *name* with *args*.

        Raises:
            ExpressionLookupError: If no function is bound to *name*.
        """


class EmptyConfiguration(Configuration):
    """A configuration with no bindings at all."""

    def resolve_variable(self, name: str) -> Value | None:
        return None

    def call_function(self, name: str, args: TupleValue) -> Value:
        raise ExpressionLookupError(name, "function")


EMPTY_CONFIGURATION = EmptyConfiguration()


class MappingConfiguration(Configuration):
    """A configuration backed by two dicts: variables and functions.

    Not synchronized: callers evaluating from several threads must not
    mutate it concurrently.
    """

    def __init__(
        self,
        variables: Mapping[str, Any] | None = None,
        functions: Mapping[str, Function | FunctionBody] | None = None,
    ) -> None:
        self.variables: dict[str, Value] = {}
        self.functions: dict[str, Function] = {}
        for name, value in (variables or {}).items():
            self.set_variable(name, value)
        for name, function in (functions or {}).items():
            self.set_function(name, function)

    def __repr__(self) -> str:
        return f"MappingConfiguration(variables={sorted(self.variables)}, functions={sorted(self.functions)})"

    # -- Evaluation (read-only) --

    def resolve_variable(self, name: str) -> Value | None:
        return self.variables.get(name)

    def call_function(self, name: str, args: TupleValue) -> Value:
        function = self.functions.get(name)
        if function is None:
            raise ExpressionLookupError(name, "function")
        return function.call(name, args)

    # -- Mutation --

    def set_variable(self, name: str, value: Any) -> None:
        """Bind *name* to *value* (a Value or native Python data)."""
        self.variables[name] = to_value(value)
        logger.debug("Set variable %s = %s", name, self.variables[name])

    def remove_variable(self, name: str) -> Value | None:
        """Unbind *name*, returning its previous value if it had one."""
        return self.variables.pop(name, None)

    def set_function(
        self,
        name: str,
        function: Function | FunctionBody,
        argument_count: int | None = None,
    ) -> None:
        """Bind *name* to a Function or a plain callable."""
        if not isinstance(function, Function):
            function = Function(function, argument_count)
        elif argument_count is not None:
            function = Function(function.body, argument_count)
        self.functions[name] = function
        logger.debug("Set function %s (argument_count=%s)", name, function.argument_count)

    def remove_function(self, name: str) -> Function | None:
        """Unbind the function *name*, returning it if it was bound."""
        return self.functions.pop(name, None)

    def assign(self, statement: str) -> Value:
        """Evaluate ``name = expression`` and bind the result to *name*.

        The right-hand side is evaluated against the current bindings
        first; the variable is only stored once evaluation succeeds.
        """
        from evalex.core.expression_lang.evaluator import evaluate
        from evalex.core.expression_lang.parser import parse_assignment

        name, tree = parse_assignment(statement)
        value = evaluate(tree, self)
        self.set_variable(name, value)
        return value
