"""Route table builder: validates lane predicates before any record flows."""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, Union

from ..errors import ConfigIssue, ConfigurationError, ErrorCode, ExpressionError
from ..expression import ELEvaluator, EvaluationContext, ExpressionEvaluator, is_delimited
from ..models import RouteRule, RouteTable
from ..schemas import DEFAULT_PREDICATE, LanePredicate
from .constants import resolve_constants

if TYPE_CHECKING:
    from ..stage.context import StageContext

logger = logging.getLogger(__name__)

CONFIG_GROUP = "CONDITIONS"
PREDICATES_FIELD = "lanePredicates"
CONSTANTS_FIELD = "constants"
VALIDATION_RECORD_LABEL = "forValidation"

LanePredicateLike = Union[LanePredicate, Mapping[str, Any]]


@dataclass
class BuildResult:
    """Outcome of building a route table.

    Exactly one of ``route_table`` and ``issues`` is meaningful: when any
    issue was found, no route table is produced.
    """
    route_table: Optional[RouteTable] = None
    constants: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    issues: list[ConfigIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues and self.route_table is not None

    def raise_for_issues(self) -> "BuildResult":
        """Raise ``ConfigurationError`` with every issue if the build failed."""
        if not self.ok:
            raise ConfigurationError(self.issues)
        return self


def predicate_issue(
    evaluator: ExpressionEvaluator, context: EvaluationContext, predicate: Any
) -> Optional[tuple[ErrorCode, tuple]]:
    """Check one lane predicate.

    Returns:
        ``(code, args)`` describing the problem, or None if the predicate is
        a delimited boolean expression
    """
    if not isinstance(predicate, str) or not is_delimited(predicate):
        return ErrorCode.MALFORMED_EXPRESSION, (predicate,)
    try:
        evaluator.static_check_boolean(context, predicate)
    except ExpressionError as e:
        return ErrorCode.INVALID_EXPRESSION, (predicate, str(e))
    return None


def _entry_fields(entry: LanePredicateLike) -> tuple[Any, Any]:
    if isinstance(entry, LanePredicate):
        return entry.predicate, entry.output_lane
    lane = entry.get("outputLane", entry.get("output_lane"))
    return entry.get("predicate"), lane


class RouteTableBuilder:
    """Builds an immutable ``RouteTable`` from configured lane predicates.

    Validation accumulates every issue it can find instead of stopping at
    the first one, so an operator sees all configuration problems at once.
    """

    def __init__(self, context: "StageContext", evaluator: Optional[ExpressionEvaluator] = None):
        """Initialize the builder.

        Args:
            context: Host context providing output lanes and issue creation
            evaluator: Expression evaluator used for the static checks
        """
        self.context = context
        self.evaluator = evaluator or ELEvaluator()

    def build(
        self,
        lane_predicates: Sequence[LanePredicateLike],
        declared_output_lanes: Optional[Iterable[str]] = None,
        constants: Optional[Mapping[str, Any]] = None,
    ) -> BuildResult:
        """Validate lane predicates and build the route table.

        Args:
            lane_predicates: Ordered ``{outputLane, predicate}`` entries; the
                last one must have the predicate ``"default"``
            declared_output_lanes: Output lanes of the stage; defaults to the
                lanes of the host context
            constants: Constants available to predicates

        Returns:
            BuildResult with the route table and resolved constants, or the
            accumulated issues
        """
        issues: list[ConfigIssue] = []
        issue = self.context.create_config_issue

        if declared_output_lanes is None:
            declared_output_lanes = self.context.get_output_lanes()
        declared = list(declared_output_lanes)

        entries = [_entry_fields(entry) for entry in lane_predicates or ()]
        if not entries:
            issues.append(issue(CONFIG_GROUP, PREDICATES_FIELD, ErrorCode.EMPTY_ROUTES))

        if len(entries) != len(declared):
            issues.append(
                issue(
                    CONFIG_GROUP,
                    PREDICATES_FIELD,
                    ErrorCode.LANE_COUNT_MISMATCH,
                    len(entries),
                    len(declared),
                )
            )

        for predicate, lane in entries:
            logger.debug(f"Condition '{predicate}' to lane '{lane}'")
            if lane not in declared:
                issues.append(
                    issue(CONFIG_GROUP, PREDICATES_FIELD, ErrorCode.UNKNOWN_LANE, lane, predicate)
                )

        # "default" is a configuration marker for the fallback lane, never an expression.
        has_default = bool(entries) and entries[-1][0] == DEFAULT_PREDICATE
        if entries and not has_default:
            issues.append(issue(CONFIG_GROUP, PREDICATES_FIELD, ErrorCode.MISSING_DEFAULT))

        resolved_constants = resolve_constants(
            constants, issue, CONFIG_GROUP, CONSTANTS_FIELD, issues
        )

        predicate_entries = entries[:-1] if has_default else entries
        issues.extend(self._check_predicates(predicate_entries, resolved_constants))

        if issues:
            for found in issues:
                logger.debug(f"Configuration issue: {found}")
            return BuildResult(constants=resolved_constants, issues=issues)

        rules = [RouteRule(expression=predicate, lane_id=lane) for predicate, lane in entries[:-1]]
        rules.append(RouteRule(expression=None, lane_id=entries[-1][1]))
        return BuildResult(route_table=RouteTable(tuple(rules)), constants=resolved_constants)

    def _check_predicates(
        self, entries: list[tuple[Any, Any]], constants: Mapping[str, Any]
    ) -> list[ConfigIssue]:
        """Check that each predicate is delimited and boolean typed."""
        issues = []
        issue = self.context.create_config_issue

        context = self.evaluator.create_context()
        self.evaluator.bind_constants(context, constants)
        self.evaluator.bind_record(context, self.context.create_record(VALIDATION_RECORD_LABEL))

        for predicate, _lane in entries:
            problem = predicate_issue(self.evaluator, context, predicate)
            if problem is not None:
                code, args = problem
                issues.append(issue(CONFIG_GROUP, PREDICATES_FIELD, code, *args))
        return issues
