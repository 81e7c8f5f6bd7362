"""Error taxonomy for lane selection."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Configuration issue codes with their message templates."""

    EMPTY_ROUTES = "EMPTY_ROUTES"
    LANE_COUNT_MISMATCH = "LANE_COUNT_MISMATCH"
    UNKNOWN_LANE = "UNKNOWN_LANE"
    MISSING_DEFAULT = "MISSING_DEFAULT"
    MALFORMED_EXPRESSION = "MALFORMED_EXPRESSION"
    INVALID_EXPRESSION = "INVALID_EXPRESSION"
    INVALID_CONSTANT = "INVALID_CONSTANT"

    @property
    def template(self) -> str:
        return _TEMPLATES[self]

    def render(self, *args: Any) -> str:
        """Render the message template with the issue arguments."""
        return self.template.format(*args)


_TEMPLATES = {
    ErrorCode.EMPTY_ROUTES: "There must be at least one lane predicate",
    ErrorCode.LANE_COUNT_MISMATCH: (
        "The number of lane predicates '{0}' must match the number of output lanes '{1}'"
    ),
    ErrorCode.UNKNOWN_LANE: "Output lane '{0}' of predicate '{1}' is not a declared output lane",
    ErrorCode.MISSING_DEFAULT: "The last lane predicate must be 'default'",
    ErrorCode.MALFORMED_EXPRESSION: "Predicate '{0}' must be enclosed in '${{' and '}}'",
    ErrorCode.INVALID_EXPRESSION: "Invalid predicate '{0}': {1}",
    ErrorCode.INVALID_CONSTANT: "Invalid constant '{0}': {1}",
}


@dataclass(frozen=True)
class ConfigIssue:
    """A single configuration problem found during validation."""

    group: str
    field: str
    code: ErrorCode
    args: tuple[Any, ...] = ()

    @property
    def message(self) -> str:
        return self.code.render(*self.args)

    def __str__(self) -> str:
        return f"{self.group}.{self.field} {self.code.value}: {self.message}"


class LaneselectError(Exception):
    """Base class for lane selection failures."""


class ConfigurationError(LaneselectError):
    """Raised when a routing configuration has one or more issues."""

    def __init__(self, issues: list[ConfigIssue]):
        self.issues = list(issues)
        summary = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"{len(self.issues)} configuration issue(s): {summary}")


class ExpressionError(LaneselectError):
    """Raised when an expression cannot be evaluated."""


class ExpressionSyntaxError(ExpressionError):
    """Raised when an expression cannot be parsed."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class RecordRoutingError(LaneselectError):
    """Raised when a single record cannot be routed.

    The record is not dispatched to any lane. The caller decides what to do
    with it (error lane, discard, stop).
    """

    def __init__(self, record_id: str, expression: str, cause: Exception):
        self.record_id = record_id
        self.expression = expression
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Record '{self.record_id}' failed predicate '{self.expression}': {self.cause}"
        )


class RouterNotInitializedError(LaneselectError):
    """Raised when records are processed before the stage is initialized."""
