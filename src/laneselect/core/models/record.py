"""Record model handed to the router by the host."""
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

_SEGMENT = re.compile(r"([^/\[\]]*)((?:\[\d+\])*)")
_INDEX = re.compile(r"\[(\d+)\]")

_MISSING = object()
_ABSENT = object()


def parse_field_path(path: str) -> list[str | int]:
    """Split a field path such as ``/order/items[0]/sku`` into steps.

    Returns:
        List of mapping keys (str) and sequence indexes (int)

    Raises:
        ValueError: If the path is not a valid field path
    """
    if path in ("", "/"):
        return []
    if not path.startswith("/"):
        raise ValueError(f"Field path must start with '/': {path!r}")

    steps: list[str | int] = []
    for segment in path[1:].split("/"):
        match = _SEGMENT.fullmatch(segment)
        if match is None or (not match.group(1) and not match.group(2)):
            raise ValueError(f"Invalid field path: {path!r}")
        if match.group(1):
            steps.append(match.group(1))
        steps.extend(int(index) for index in _INDEX.findall(match.group(2)))
    return steps


@dataclass
class RecordHeader:
    """Record metadata: where it came from plus free-form attributes."""
    source_id: str
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Record:
    """A unit of input flowing through the router.

    The value is semi-structured data (nested dicts and lists) addressed by
    field paths.
    """
    value: Any = None
    header: RecordHeader = field(default_factory=lambda: RecordHeader(source_id=str(uuid.uuid4())))

    @property
    def id(self) -> str:
        return self.header.source_id

    def get(self, path: str, default: Any = _MISSING) -> Any:
        """Get the value at a field path.

        Args:
            path: Field path (e.g. "/customer/country")
            default: Value returned when the field does not exist

        Returns:
            Value at the path

        Raises:
            KeyError: If the field does not exist and no default is given
        """
        value = self.value
        for step in parse_field_path(path):
            if isinstance(step, str) and isinstance(value, dict) and step in value:
                value = value[step]
            elif isinstance(step, int) and isinstance(value, list) and step < len(value):
                value = value[step]
            else:
                if default is _MISSING:
                    raise KeyError(path)
                return default
        return value

    def has(self, path: str) -> bool:
        """Check whether a field path exists in the record."""
        return self.get(path, _ABSENT) is not _ABSENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON line layout used by ``from_dict``."""
        return {
            "id": self.header.source_id,
            "attributes": dict(self.header.attributes),
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: Optional[str] = None) -> "Record":
        """Build a record from a parsed JSON line.

        Objects with a ``value`` key use the envelope layout
        ``{"id": ..., "attributes": {...}, "value": ...}``. Any other object is
        taken as the record value itself.
        """
        if "value" in data and set(data) <= {"id", "attributes", "value"}:
            source_id = data.get("id") or default_id or str(uuid.uuid4())
            attributes = {str(k): str(v) for k, v in (data.get("attributes") or {}).items()}
            return cls(value=data["value"], header=RecordHeader(str(source_id), attributes))
        return cls(value=data, header=RecordHeader(default_id or str(uuid.uuid4())))

