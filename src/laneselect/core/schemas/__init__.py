"""Configuration schemas."""
from .predicate import DEFAULT_PREDICATE, LanePredicate

__all__ = [
    "DEFAULT_PREDICATE",
    "LanePredicate",
]
