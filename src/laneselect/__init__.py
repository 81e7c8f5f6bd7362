"""Laneselect - predicate based record routing.

Routes a stream of records to named output lanes: every lane whose
predicate a record satisfies receives it, and records matching no
predicate go to the default lane.
"""
__version__ = "0.1.0"

from .core.config.settings import LaneselectConfig, get_config, init_config
from .core.errors import (
    ConfigIssue,
    ConfigurationError,
    ErrorCode,
    ExpressionError,
    ExpressionSyntaxError,
    LaneselectError,
    RecordRoutingError,
    RouterNotInitializedError,
)
from .core.expression import (
    ELEvaluator,
    EvaluationContext,
    ExpressionEvaluator,
    FunctionRegistry,
)
from .core.models import Record, RecordHeader, RouteRule, RouteTable
from .core.routing import BuildResult, Router, RouteTableBuilder, route
from .core.schemas import DEFAULT_PREDICATE, LanePredicate
from .core.stage import (
    BatchMaker,
    BatchSummary,
    DefaultStageContext,
    ErrorSink,
    InMemoryBatchMaker,
    OnRecordError,
    SelectorProcessor,
    StageContext,
)

from . import core

__all__ = [
    # Version
    "__version__",
    # Config
    "LaneselectConfig",
    "init_config",
    "get_config",
    # Errors
    "ConfigIssue",
    "ConfigurationError",
    "ErrorCode",
    "ExpressionError",
    "ExpressionSyntaxError",
    "LaneselectError",
    "RecordRoutingError",
    "RouterNotInitializedError",
    # Expressions
    "ELEvaluator",
    "EvaluationContext",
    "ExpressionEvaluator",
    "FunctionRegistry",
    # Models
    "Record",
    "RecordHeader",
    "RouteRule",
    "RouteTable",
    # Schemas
    "DEFAULT_PREDICATE",
    "LanePredicate",
    # Routing
    "BuildResult",
    "RouteTableBuilder",
    "Router",
    "route",
    # Stage
    "BatchMaker",
    "BatchSummary",
    "DefaultStageContext",
    "ErrorSink",
    "InMemoryBatchMaker",
    "OnRecordError",
    "SelectorProcessor",
    "StageContext",
    # Core module
    "core",
]
