"""Tests for the record model."""
import pytest

from laneselect.core.models import Record, RecordHeader, parse_field_path


def test_parse_field_path():
    """Test splitting field paths into steps."""
    assert parse_field_path("/a/b[2][0]/c") == ["a", "b", 2, 0, "c"]
    assert parse_field_path("/") == []
    assert parse_field_path("") == []


@pytest.mark.parametrize("path", ["a/b", "/a//b", "/a[x]"])
def test_parse_field_path_invalid(path):
    """Test rejecting invalid field paths."""
    with pytest.raises(ValueError):
        parse_field_path(path)


def test_get_and_has():
    """Test reading nested fields."""
    record = Record({"a": {"b": [10, {"c": None}]}}, RecordHeader("r"))

    assert record.get("/a/b[0]") == 10
    assert record.get("/a/b[1]/c") is None
    assert record.has("/a/b[1]/c")
    assert not record.has("/a/b[5]")
    assert record.get("/missing", "fallback") == "fallback"
    with pytest.raises(KeyError):
        record.get("/a/x")


def test_from_dict_envelope():
    """Test parsing the record envelope layout."""
    record = Record.from_dict({"id": "k1", "attributes": {"topic": 1}, "value": {"x": 1}})

    assert record.id == "k1"
    assert record.header.attributes == {"topic": "1"}
    assert record.value == {"x": 1}
    assert Record.from_dict(record.to_dict()).to_dict() == record.to_dict()


def test_from_dict_bare_object():
    """Test that a bare object becomes the record value."""
    record = Record.from_dict({"x": 1, "value": 2}, default_id="line-1")

    assert record.id == "line-1"
    assert record.value == {"x": 1, "value": 2}
