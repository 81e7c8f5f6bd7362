"""Predicate expression evaluation."""
from .base import (
    EXPRESSION_CLOSE,
    EXPRESSION_OPEN,
    EvaluationContext,
    ExpressionEvaluator,
    is_delimited,
)
from .evaluator import ELEvaluator
from .functions import Function, FunctionRegistry, default_registry
from .parser import parse_expression

__all__ = [
    "EXPRESSION_CLOSE",
    "EXPRESSION_OPEN",
    "EvaluationContext",
    "ExpressionEvaluator",
    "is_delimited",
    "ELEvaluator",
    "Function",
    "FunctionRegistry",
    "default_registry",
    "parse_expression",
]
