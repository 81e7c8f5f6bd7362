"""Route table models."""
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class RouteRule:
    """A predicate and the lane it sends matching records to.

    ``expression`` is None only for the terminal default rule.
    """
    expression: Optional[str]
    lane_id: str

    @property
    def is_default(self) -> bool:
        return self.expression is None


class RouteTable:
    """Immutable, ordered sequence of route rules ending in the default rule.

    Instances are produced by ``RouteTableBuilder`` after validation and are
    safe to share between threads.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: tuple[RouteRule, ...]):
        if not rules or not rules[-1].is_default:
            raise ValueError("Route table must end with the default rule")
        if any(rule.is_default for rule in rules[:-1]):
            raise ValueError("Only the last rule of a route table may be the default rule")
        object.__setattr__(self, "_rules", tuple(rules))

    def __setattr__(self, name, value):
        raise AttributeError("RouteTable is immutable")

    @property
    def rules(self) -> tuple[RouteRule, ...]:
        return self._rules

    @property
    def predicate_rules(self) -> tuple[RouteRule, ...]:
        """All rules except the terminal default rule, in table order."""
        return self._rules[:-1]

    @property
    def default_rule(self) -> RouteRule:
        return self._rules[-1]

    @property
    def default_lane(self) -> str:
        return self._rules[-1].lane_id

    @property
    def lanes(self) -> tuple[str, ...]:
        return tuple(rule.lane_id for rule in self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[RouteRule]:
        return iter(self._rules)

    def __getitem__(self, index: int) -> RouteRule:
        return self._rules[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RouteTable):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"RouteTable({list(self._rules)!r})"
