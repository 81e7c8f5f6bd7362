"""Dispatch sinks that collect routed and rejected records."""
from abc import ABC, abstractmethod
from collections import defaultdict

from ..errors import RecordRoutingError
from ..models import Record


class BatchMaker(ABC):
    """Receives records dispatched to output lanes.

    ``add_record`` is called once per lane a record is routed to, so the
    same record may arrive several times on different lanes.
    """

    @abstractmethod
    def add_record(self, record: Record, lane_id: str) -> None:
        pass


class InMemoryBatchMaker(BatchMaker):
    """Collects dispatched records per lane, in arrival order."""

    def __init__(self):
        self.lanes: dict[str, list[Record]] = defaultdict(list)

    def add_record(self, record: Record, lane_id: str) -> None:
        self.lanes[lane_id].append(record)

    def get_records(self, lane_id: str) -> list[Record]:
        return list(self.lanes.get(lane_id, ()))

    def counts(self) -> dict[str, int]:
        return {lane: len(records) for lane, records in self.lanes.items()}


class ErrorSink:
    """Collects records rejected during routing together with the error."""

    def __init__(self):
        self.errors: list[tuple[Record, RecordRoutingError]] = []

    def add_error(self, record: Record, error: RecordRoutingError) -> None:
        self.errors.append((record, error))

    def __len__(self) -> int:
        return len(self.errors)
