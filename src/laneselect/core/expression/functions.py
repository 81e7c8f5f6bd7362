"""Built-in functions available to predicate expressions."""
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..errors import ExpressionError
from .base import EvaluationContext

# Static result types used by the type checker.
BOOLEAN = "boolean"
NUMBER = "number"
STRING = "string"
NULL = "null"
ANY = "any"


@dataclass(frozen=True)
class Function:
    """A callable exposed to expressions under a namespaced name."""
    name: str
    impl: Callable[..., Any]
    min_args: int
    max_args: int
    returns: str
    uses_record: bool = False

    def check_arity(self, count: int) -> None:
        if not self.min_args <= count <= self.max_args:
            expected = (
                str(self.min_args)
                if self.min_args == self.max_args
                else f"{self.min_args} to {self.max_args}"
            )
            raise ExpressionError(
                f"Function '{self.name}' takes {expected} argument(s), got {count}"
            )


class FunctionRegistry:
    """Registry of functions callable from expressions."""

    def __init__(self):
        self._functions: dict[str, Function] = {}

    def register(self, function: Function) -> None:
        """Register a function.

        Raises:
            ValueError: If a function with the same name is already registered
        """
        if function.name in self._functions:
            raise ValueError(f"Function '{function.name}' is already registered")
        self._functions[function.name] = function

    def get(self, name: str) -> Optional[Function]:
        return self._functions.get(name)

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def list_functions(self) -> list[str]:
        return sorted(self._functions)


def _record(context: EvaluationContext):
    if context.record is None:
        raise ExpressionError("No record bound to the evaluation context")
    return context.record


def _string(value: Any, function: str) -> str:
    if not isinstance(value, str):
        raise ExpressionError(f"Function '{function}' expects a string, got {type_name(value)}")
    return value


def _integer(value: Any, function: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ExpressionError(f"Function '{function}' expects an integer, got {type_name(value)}")
    return value


def type_name(value: Any) -> str:
    """Name of a runtime value's type as expressions see it."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "BOOLEAN"
    if isinstance(value, int):
        return "INTEGER"
    if isinstance(value, float):
        return "DOUBLE"
    if isinstance(value, str):
        return "STRING"
    if isinstance(value, (list, tuple)):
        return "LIST"
    if isinstance(value, Mapping):
        return "MAP"
    return type(value).__name__.upper()


def record_value(context: EvaluationContext, path: str) -> Any:
    record = _record(context)
    try:
        return record.get(_string(path, "record:value"))
    except KeyError:
        raise ExpressionError(f"Field '{path}' does not exist in record '{record.id}'") from None
    except ValueError as e:
        raise ExpressionError(str(e)) from e


def record_exists(context: EvaluationContext, path: str) -> bool:
    try:
        return _record(context).has(_string(path, "record:exists"))
    except ValueError as e:
        raise ExpressionError(str(e)) from e


def record_type(context: EvaluationContext, path: str) -> str:
    return type_name(record_value(context, path))


def record_id(context: EvaluationContext) -> str:
    return _record(context).id


def record_attribute(context: EvaluationContext, name: str) -> Optional[str]:
    return _record(context).header.attributes.get(_string(name, "record:attribute"))


def str_substring(value: Any, begin: Any, end: Any) -> str:
    text = _string(value, "str:substring")
    begin = _integer(begin, "str:substring")
    end = _integer(end, "str:substring")
    if begin < 0 or end < begin:
        raise ExpressionError(f"Invalid substring range [{begin}, {end})")
    return text[begin:end]


def str_matches(value: Any, pattern: Any) -> bool:
    try:
        return re.fullmatch(_string(pattern, "str:matches"), _string(value, "str:matches")) is not None
    except re.error as e:
        raise ExpressionError(f"Invalid regular expression {pattern!r}: {e}") from e


def _string_function(name: str, impl: Callable[..., Any], arity: int, returns: str) -> Function:
    def call(*args):
        return impl(*(_string(arg, name) for arg in args))

    return Function(name, call, arity, arity, returns)


def default_registry() -> FunctionRegistry:
    """Build a registry holding the record and string functions."""
    registry = FunctionRegistry()
    for function in (
        Function("record:value", record_value, 1, 1, ANY, uses_record=True),
        Function("record:exists", record_exists, 1, 1, BOOLEAN, uses_record=True),
        Function("record:type", record_type, 1, 1, STRING, uses_record=True),
        Function("record:id", record_id, 0, 0, STRING, uses_record=True),
        Function("record:attribute", record_attribute, 1, 1, ANY, uses_record=True),
        _string_function("str:trim", str.strip, 1, STRING),
        _string_function("str:toUpper", str.upper, 1, STRING),
        _string_function("str:toLower", str.lower, 1, STRING),
        _string_function("str:startsWith", str.startswith, 2, BOOLEAN),
        _string_function("str:endsWith", str.endswith, 2, BOOLEAN),
        _string_function("str:contains", lambda s, part: part in s, 2, BOOLEAN),
        _string_function("str:replace", str.replace, 3, STRING),
        _string_function("str:length", len, 1, NUMBER),
        Function("str:substring", str_substring, 3, 3, STRING),
        Function("str:matches", str_matches, 2, 2, BOOLEAN),
    ):
        registry.register(function)
    return registry
