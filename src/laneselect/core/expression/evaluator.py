"""Default evaluator for ``${...}`` predicate expressions."""
import operator
from typing import Any, Mapping, Optional

from ..errors import ExpressionError
from .base import EvaluationContext, ExpressionEvaluator
from .functions import (
    ANY,
    BOOLEAN,
    NULL,
    NUMBER,
    STRING,
    FunctionRegistry,
    default_registry,
    type_name,
)
from .parser import Binary, Call, Literal, Name, Node, Unary, parse_expression

_COMPARISONS = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}

_ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(left: Any, right: Any) -> bool:
    # Booleans never equal numbers; lists and tuples compare element-wise.
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(map(_equals, left, right))
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(_equals(left[key], right[key]) for key in left)
    return left == right


def _static_type(value: Any) -> str:
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if _is_number(value):
        return NUMBER
    if isinstance(value, str):
        return STRING
    return ANY


class ELEvaluator(ExpressionEvaluator):
    """Tree-walking evaluator for predicate expressions.

    Supports boolean logic, comparisons, arithmetic, constants and the
    functions of a ``FunctionRegistry`` (record and string functions by
    default). Syntax trees are cached per expression string; all record
    state lives in the ``EvaluationContext``.
    """

    def __init__(self, functions: Optional[FunctionRegistry] = None):
        """Initialize the evaluator.

        Args:
            functions: Function registry; defaults to the built-in functions
        """
        self.functions = functions or default_registry()

    def evaluate(self, context: EvaluationContext, expression: str) -> Any:
        """Evaluate an expression and return its raw value.

        Raises:
            ExpressionError: If the expression cannot be parsed or evaluated
        """
        return self._eval(parse_expression(expression), context)

    def evaluate_boolean(self, context: EvaluationContext, expression: str) -> bool:
        result = self.evaluate(context, expression)
        if not isinstance(result, bool):
            raise ExpressionError(
                f"Expression must evaluate to BOOLEAN, got {type_name(result)}"
            )
        return result

    def static_check_boolean(self, context: EvaluationContext, expression: str) -> None:
        result_type = self._infer(parse_expression(expression), context)
        if result_type not in (BOOLEAN, ANY):
            raise ExpressionError(
                f"Expression must evaluate to BOOLEAN, got {result_type.upper()}"
            )

    def _eval(self, node: Node, context: EvaluationContext) -> Any:
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, Name):
            if node.name not in context.variables:
                raise ExpressionError(f"Unknown variable '{node.name}'")
            return context.variables[node.name]

        if isinstance(node, Unary):
            value = self._eval(node.operand, context)
            if node.op == "!":
                return not self._boolean(value, "not")
            if node.op == "-":
                if not _is_number(value):
                    raise ExpressionError(f"Cannot negate {type_name(value)}")
                return -value
            # empty
            return value is None or (isinstance(value, (str, list, tuple, Mapping)) and not value)

        if isinstance(node, Binary):
            return self._eval_binary(node, context)

        return self._eval_call(node, context)

    def _eval_binary(self, node: Binary, context: EvaluationContext) -> Any:
        # Logical operators short-circuit.
        if node.op == "&&":
            return self._boolean(self._eval(node.left, context), "and") and self._boolean(
                self._eval(node.right, context), "and"
            )
        if node.op == "||":
            return self._boolean(self._eval(node.left, context), "or") or self._boolean(
                self._eval(node.right, context), "or"
            )

        left = self._eval(node.left, context)
        right = self._eval(node.right, context)

        if node.op == "==":
            return _equals(left, right)
        if node.op == "!=":
            return not _equals(left, right)

        if node.op in _COMPARISONS:
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                raise ExpressionError(
                    f"Cannot compare {type_name(left)} and {type_name(right)} with '{node.op}'"
                )
            return _COMPARISONS[node.op](left, right)

        if not (_is_number(left) and _is_number(right)):
            raise ExpressionError(
                f"Operator '{node.op}' requires numbers, got {type_name(left)} and {type_name(right)}"
            )
        try:
            return _ARITHMETIC[node.op](left, right)
        except ZeroDivisionError:
            raise ExpressionError("Division by zero") from None

    def _eval_call(self, node: Call, context: EvaluationContext) -> Any:
        function = self.functions.get(node.function)
        if function is None:
            raise ExpressionError(f"Unknown function '{node.function}'")
        function.check_arity(len(node.args))
        args = [self._eval(arg, context) for arg in node.args]
        if function.uses_record:
            args.insert(0, context)
        try:
            return function.impl(*args)
        except ExpressionError:
            raise
        except (TypeError, ValueError) as e:
            raise ExpressionError(f"Function '{node.function}' failed: {e}") from e

    @staticmethod
    def _boolean(value: Any, op: str) -> bool:
        if not isinstance(value, bool):
            raise ExpressionError(f"Operator '{op}' requires BOOLEAN operands, got {type_name(value)}")
        return value

    def _infer(self, node: Node, context: EvaluationContext) -> str:
        """Infer the static result type of a syntax tree.

        Record-dependent values are typed ``ANY`` and checked at run time.
        """
        if isinstance(node, Literal):
            return _static_type(node.value)

        if isinstance(node, Name):
            if node.name not in context.variables:
                raise ExpressionError(f"Unknown variable '{node.name}'")
            return _static_type(context.variables[node.name])

        if isinstance(node, Unary):
            operand = self._infer(node.operand, context)
            if node.op == "!":
                self._require(operand, (BOOLEAN,), "not")
                return BOOLEAN
            if node.op == "-":
                self._require(operand, (NUMBER,), "-")
                return NUMBER
            return BOOLEAN

        if isinstance(node, Binary):
            left = self._infer(node.left, context)
            right = self._infer(node.right, context)
            if node.op in ("&&", "||"):
                name = "and" if node.op == "&&" else "or"
                self._require(left, (BOOLEAN,), name)
                self._require(right, (BOOLEAN,), name)
                return BOOLEAN
            if node.op in ("==", "!="):
                return BOOLEAN
            if node.op in _COMPARISONS:
                self._require(left, (NUMBER, STRING), node.op)
                self._require(right, (NUMBER, STRING), node.op)
                if ANY not in (left, right) and left != right:
                    raise ExpressionError(
                        f"Cannot compare {left.upper()} and {right.upper()} with '{node.op}'"
                    )
                return BOOLEAN
            self._require(left, (NUMBER,), node.op)
            self._require(right, (NUMBER,), node.op)
            return NUMBER

        function = self.functions.get(node.function)
        if function is None:
            raise ExpressionError(f"Unknown function '{node.function}'")
        function.check_arity(len(node.args))
        for arg in node.args:
            self._infer(arg, context)
        return function.returns

    @staticmethod
    def _require(actual: str, allowed: tuple[str, ...], op: str) -> None:
        if actual != ANY and actual not in allowed:
            raise ExpressionError(
                f"Operator '{op}' does not accept {actual.upper()} operands"
            )
