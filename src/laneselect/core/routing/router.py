"""Router: dispatches each record to the lanes whose predicates it satisfies."""
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import ConfigIssue, ConfigurationError, ExpressionError, RecordRoutingError
from ..expression import ELEvaluator, EvaluationContext, ExpressionEvaluator
from ..models import Record, RecordHeader, RouteTable
from .builder import CONFIG_GROUP, PREDICATES_FIELD, VALIDATION_RECORD_LABEL, predicate_issue

logger = logging.getLogger(__name__)


class Router:
    """Routes records through a validated route table.

    Every predicate that evaluates true sends the record to its lane, so a
    record can be dispatched to several lanes. Records matching no predicate
    go to the default lane.

    The route table and constants are shared read-only. Each call to
    ``route`` uses its own evaluation context unless one is passed in, which
    makes concurrent calls on distinct records safe.
    """

    def __init__(
        self,
        route_table: RouteTable,
        constants: Optional[Mapping[str, Any]] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
    ):
        """Initialize the router.

        Args:
            route_table: Route table produced by ``RouteTableBuilder``
            constants: Resolved constants from the same build
            evaluator: Expression evaluator; defaults to ``ELEvaluator``

        Raises:
            TypeError: If ``route_table`` is not a ``RouteTable``
            ConfigurationError: If a rule is not a boolean ``${...}`` expression
        """
        if not isinstance(route_table, RouteTable):
            raise TypeError(
                f"Router requires a validated RouteTable, got {type(route_table).__name__}"
            )
        self.route_table = route_table
        self.constants = (
            constants if isinstance(constants, MappingProxyType) else MappingProxyType(dict(constants or {}))
        )
        self.evaluator = evaluator or ELEvaluator()
        self._check_rules()

    def _check_rules(self) -> None:
        # A RouteTable constructed directly has not been through the builder.
        context = self.create_context()
        self.evaluator.bind_record(
            context, Record(value={}, header=RecordHeader(VALIDATION_RECORD_LABEL))
        )
        issues = []
        for rule in self.route_table.predicate_rules:
            problem = predicate_issue(self.evaluator, context, rule.expression)
            if problem is not None:
                code, args = problem
                issues.append(ConfigIssue(CONFIG_GROUP, PREDICATES_FIELD, code, args))
        if issues:
            raise ConfigurationError(issues)

    def create_context(self) -> EvaluationContext:
        """Create an evaluation context with the constants bound.

        A context may be reused for successive ``route`` calls on one thread.
        """
        context = self.evaluator.create_context()
        self.evaluator.bind_constants(context, self.constants)
        return context

    def route(
        self,
        record: Record,
        batch_maker=None,
        context: Optional[EvaluationContext] = None,
    ) -> frozenset[str]:
        """Route one record.

        All predicates are evaluated before anything is dispatched, so a
        record that fails evaluation reaches no lane at all.

        Args:
            record: Record to route
            batch_maker: Optional sink; ``add_record`` is called once per lane
            context: Evaluation context to reuse; a fresh one is created if omitted

        Returns:
            The non-empty set of lanes the record was dispatched to

        Raises:
            RecordRoutingError: If a predicate fails for this record
        """
        if context is None:
            context = self.create_context()

        lanes: list[str] = []
        self.evaluator.bind_record(context, record)
        try:
            for rule in self.route_table.predicate_rules:
                try:
                    matched = self.evaluator.evaluate_boolean(context, rule.expression)
                except ExpressionError as e:
                    raise RecordRoutingError(record.id, rule.expression, e) from e
                if matched:
                    logger.debug(
                        f"Record '{record.id}' satisfies condition '{rule.expression}', "
                        f"going to lane '{rule.lane_id}'"
                    )
                    if rule.lane_id not in lanes:
                        lanes.append(rule.lane_id)
        finally:
            self.evaluator.bind_record(context, None)

        if not lanes:
            logger.debug(
                f"Record '{record.id}' does not satisfy any condition, going to default lane "
                f"'{self.route_table.default_lane}'"
            )
            lanes.append(self.route_table.default_lane)

        if batch_maker is not None:
            for lane in lanes:
                batch_maker.add_record(record, lane)
        return frozenset(lanes)


def route(
    record: Record,
    route_table: RouteTable,
    constants: Optional[Mapping[str, Any]] = None,
    evaluator: Optional[ExpressionEvaluator] = None,
    batch_maker=None,
) -> frozenset[str]:
    """Route a single record without keeping a ``Router`` around.

    See ``Router.route``.
    """
    return Router(route_table, constants, evaluator).route(record, batch_maker)
