"""Expression evaluator interface used by the router."""
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from ..models import Record

EXPRESSION_OPEN = "${"
EXPRESSION_CLOSE = "}"


def is_delimited(expression: str) -> bool:
    """Check that an expression is wrapped in ``${`` and ``}``."""
    return expression.startswith(EXPRESSION_OPEN) and expression.endswith(EXPRESSION_CLOSE)


class EvaluationContext:
    """Mutable binding state for one evaluation at a time.

    Holds the constants and the record currently being evaluated. A context
    may be rebound to a new record between evaluations, but must not be
    shared by concurrent evaluations.
    """

    def __init__(self):
        self.variables: dict[str, Any] = {}
        self.record: Optional[Record] = None


class ExpressionEvaluator(ABC):
    """Boolean expression evaluator consumed by the route table builder and router.

    Implementations raise ``ExpressionError`` (or a subclass) for every
    evaluation failure, including timeouts.
    """

    def create_context(self) -> EvaluationContext:
        """Create an empty evaluation context."""
        return EvaluationContext()

    def bind_record(self, context: EvaluationContext, record: Optional[Record]) -> None:
        """Bind a record into the context, replacing any previous one."""
        context.record = record

    def bind_constants(self, context: EvaluationContext, constants: Mapping[str, Any]) -> None:
        """Bind constants into the context as variables."""
        context.variables = dict(constants)

    @abstractmethod
    def evaluate_boolean(self, context: EvaluationContext, expression: str) -> bool:
        """Evaluate a delimited expression to a boolean.

        Args:
            context: Context with the record and constants bound
            expression: Expression wrapped in ``${...}``

        Returns:
            The boolean result

        Raises:
            ExpressionError: If the expression fails or does not yield a boolean
        """
        pass

    @abstractmethod
    def static_check_boolean(self, context: EvaluationContext, expression: str) -> None:
        """Check without evaluating that an expression can yield a boolean.

        Raises:
            ExpressionError: If the expression is invalid or is not boolean typed
        """
        pass
