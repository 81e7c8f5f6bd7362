"""Host context consumed by the route table builder."""
from abc import ABC, abstractmethod
from typing import Any, Iterable

from ..errors import ConfigIssue, ErrorCode
from ..models import Record, RecordHeader


class StageContext(ABC):
    """What the hosting pipeline exposes to the selector stage."""

    @abstractmethod
    def get_output_lanes(self) -> list[str]:
        """Get the declared output lanes of the stage, in order."""
        pass

    @abstractmethod
    def create_record(self, label: str) -> Record:
        """Create an empty record, e.g. for validation-time dry runs."""
        pass

    def create_config_issue(self, group: str, field: str, code: ErrorCode, *args: Any) -> ConfigIssue:
        """Create a configuration issue for the given config group and field."""
        return ConfigIssue(group=group, field=field, code=code, args=args)


class DefaultStageContext(StageContext):
    """Stage context backed by a fixed list of output lanes."""

    def __init__(self, output_lanes: Iterable[str]):
        self._output_lanes = list(output_lanes)

    def get_output_lanes(self) -> list[str]:
        return list(self._output_lanes)

    def create_record(self, label: str) -> Record:
        return Record(value={}, header=RecordHeader(source_id=label))
