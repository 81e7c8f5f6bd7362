"""Data models for records and route tables."""
from .record import Record, RecordHeader, parse_field_path
from .route import RouteRule, RouteTable

__all__ = [
    "Record",
    "RecordHeader",
    "parse_field_path",
    "RouteRule",
    "RouteTable",
]
