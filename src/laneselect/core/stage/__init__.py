"""Host-facing stage interfaces and the selector stage."""
from .context import DefaultStageContext, StageContext
from .processor import BatchSummary, OnRecordError, SelectorProcessor
from .sinks import BatchMaker, ErrorSink, InMemoryBatchMaker

__all__ = [
    "DefaultStageContext",
    "StageContext",
    "BatchSummary",
    "OnRecordError",
    "SelectorProcessor",
    "BatchMaker",
    "ErrorSink",
    "InMemoryBatchMaker",
]
