"""Route table building and record routing."""
from .builder import BuildResult, RouteTableBuilder
from .constants import resolve_constants
from .router import Router, route

__all__ = [
    "BuildResult",
    "RouteTableBuilder",
    "resolve_constants",
    "Router",
    "route",
]
