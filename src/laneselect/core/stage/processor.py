"""Selector stage: validates its configuration, then routes records."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..errors import ConfigIssue, ConfigurationError, RecordRoutingError, RouterNotInitializedError
from ..expression import ELEvaluator, ExpressionEvaluator
from ..models import Record
from ..routing import BuildResult, Router, RouteTableBuilder
from .context import StageContext
from .sinks import BatchMaker, ErrorSink

logger = logging.getLogger(__name__)


class OnRecordError(str, Enum):
    """What to do with a record whose predicates fail to evaluate."""
    TO_ERROR = "to_error"
    DISCARD = "discard"
    STOP_PIPELINE = "stop_pipeline"


@dataclass
class BatchSummary:
    """Counts for one processed batch."""
    processed: int = 0
    rejected: int = 0
    lanes: dict[str, int] = field(default_factory=dict)


class SelectorProcessor:
    """Stage that routes each record to the lanes whose predicates it matches.

    Lifecycle: ``validate()`` reports issues, ``init()`` refuses to start when
    any exist, and only then may records be processed.
    """

    def __init__(
        self,
        lane_predicates: Sequence[Any],
        constants: Optional[Mapping[str, Any]],
        context: StageContext,
        evaluator: Optional[ExpressionEvaluator] = None,
        on_record_error: OnRecordError | str = OnRecordError.TO_ERROR,
    ):
        self.lane_predicates = list(lane_predicates or [])
        self.constants = dict(constants or {})
        self.context = context
        self.evaluator = evaluator or ELEvaluator()
        self.on_record_error = OnRecordError(on_record_error)
        self._router: Optional[Router] = None

    def _build(self) -> BuildResult:
        builder = RouteTableBuilder(self.context, self.evaluator)
        return builder.build(self.lane_predicates, self.context.get_output_lanes(), self.constants)

    def validate(self) -> list[ConfigIssue]:
        """Validate the configuration and return every issue found."""
        return self._build().issues

    def init(self) -> Router:
        """Validate the configuration and prepare the router.

        Raises:
            ConfigurationError: If the configuration has any issue
        """
        result = self._build()
        if not result.ok:
            for issue in result.issues:
                logger.error(f"Configuration issue: {issue}")
            raise ConfigurationError(result.issues)
        self._router = Router(result.route_table, result.constants, self.evaluator)
        logger.info(
            f"Selector initialized with {len(result.route_table)} lanes, "
            f"default lane '{result.route_table.default_lane}'"
        )
        return self._router

    @property
    def router(self) -> Router:
        if self._router is None:
            raise RouterNotInitializedError("Selector has not been initialized; call init() first")
        return self._router

    def process(self, record: Record, batch_maker: BatchMaker) -> frozenset[str]:
        """Route one record into the batch maker.

        Raises:
            RecordRoutingError: If a predicate fails for this record
            RouterNotInitializedError: If ``init()`` has not succeeded
        """
        return self.router.route(record, batch_maker)

    def process_batch(
        self,
        records: Iterable[Record],
        batch_maker: BatchMaker,
        error_sink: Optional[ErrorSink] = None,
    ) -> BatchSummary:
        """Route a batch of records, applying the on-record-error policy.

        Args:
            records: Records to route
            batch_maker: Sink receiving dispatched records
            error_sink: Sink for rejected records under ``to_error``

        Returns:
            BatchSummary with processed, rejected and per-lane counts

        Raises:
            RecordRoutingError: Under ``stop_pipeline``, for the first failing record
        """
        router = self.router
        context = router.create_context()
        summary = BatchSummary()

        for record in records:
            summary.processed += 1
            try:
                lanes = router.route(record, batch_maker, context)
            except RecordRoutingError as e:
                summary.rejected += 1
                if self.on_record_error is OnRecordError.STOP_PIPELINE:
                    raise
                logger.warning(str(e))
                if self.on_record_error is OnRecordError.TO_ERROR and error_sink is not None:
                    error_sink.add_error(record, e)
                continue
            for lane in lanes:
                summary.lanes[lane] = summary.lanes.get(lane, 0) + 1

        return summary
