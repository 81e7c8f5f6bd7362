"""Tests for route table building and configuration validation."""
import pytest

from laneselect.core.errors import ConfigurationError, ErrorCode
from laneselect.core.models import RouteRule
from laneselect.core.routing import RouteTableBuilder
from laneselect.core.schemas import LanePredicate
from laneselect.core.stage import DefaultStageContext


def _codes(result):
    return [issue.code for issue in result.issues]


@pytest.fixture
def builder():
    """Create builder for lanes A, B and C."""
    return RouteTableBuilder(DefaultStageContext(["A", "B", "C"]))


def test_build_valid_table(builder):
    """Test building a table with K routes and K lanes."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${record:value('/x') > limit}"},
            {"outputLane": "B", "predicate": "${str:startsWith(record:value('/name'), 'b')}"},
            {"outputLane": "C", "predicate": "default"},
        ],
        constants={"limit": 5},
    )

    assert result.ok
    table = result.route_table
    assert len(table) == 3
    assert table[0] == RouteRule("${record:value('/x') > limit}", "A")
    assert table[1].lane_id == "B"
    assert table[2] == RouteRule(None, "C")
    assert table.default_lane == "C"
    assert [rule.lane_id for rule in table.predicate_rules] == ["A", "B"]
    assert dict(result.constants) == {"limit": 5}


def test_build_preserves_configuration_order(builder):
    """Test that route order follows configuration order with default last."""
    result = builder.build(
        [
            LanePredicate(output_lane="C", predicate="${true}"),
            LanePredicate(output_lane="A", predicate="${false}"),
            LanePredicate(output_lane="B", predicate="default"),
        ]
    )

    assert result.ok
    assert result.route_table.lanes == ("C", "A", "B")
    assert result.route_table[-1].is_default


def test_declared_lanes_default_to_context():
    """Test that declared lanes come from the host context when not given."""
    builder = RouteTableBuilder(DefaultStageContext(["only"]))
    result = builder.build([{"outputLane": "only", "predicate": "default"}])

    assert result.ok
    assert len(result.route_table) == 1
    assert result.route_table.predicate_rules == ()


def test_empty_routes(builder):
    """Test that an empty configuration still reports lane and constant issues."""
    result = builder.build([], constants={"bad name": 1, "limit": 5})

    assert not result.ok
    assert result.route_table is None
    assert _codes(result) == [
        ErrorCode.EMPTY_ROUTES,
        ErrorCode.LANE_COUNT_MISMATCH,
        ErrorCode.INVALID_CONSTANT,
    ]
    assert result.issues[1].args == (0, 3)
    assert result.issues[2].args[0] == "bad name"
    assert dict(result.constants) == {"limit": 5}


def test_empty_routes_without_declared_lanes():
    """Test that no routes and no lanes report only the empty configuration."""
    result = RouteTableBuilder(DefaultStageContext([])).build([])

    assert _codes(result) == [ErrorCode.EMPTY_ROUTES]


def test_missing_default():
    """Test that the last route must be the default sentinel."""
    builder = RouteTableBuilder(DefaultStageContext(["A", "B"]))
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${x}"},
            {"outputLane": "B", "predicate": "${y}"},
        ],
        constants={"x": True, "y": False},
    )

    assert not result.ok
    assert _codes(result) == [ErrorCode.MISSING_DEFAULT]


def test_lane_count_mismatch(builder):
    """Test that routes and declared lanes must match in number."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${true}"},
            {"outputLane": "B", "predicate": "default"},
        ]
    )

    assert not result.ok
    assert _codes(result) == [ErrorCode.LANE_COUNT_MISMATCH]
    assert result.issues[0].args == (2, 3)
    assert "'2'" in result.issues[0].message and "'3'" in result.issues[0].message


def test_unknown_lane(builder):
    """Test that every output lane must be declared."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${true}"},
            {"outputLane": "Z", "predicate": "${false}"},
            {"outputLane": "C", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.UNKNOWN_LANE]
    assert result.issues[0].args == ("Z", "${false}")


def test_malformed_expression(builder):
    """Test that predicates must be wrapped in ${...}."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "record:value('/x') > 5"},
            {"outputLane": "B", "predicate": "${true"},
            {"outputLane": "C", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.MALFORMED_EXPRESSION, ErrorCode.MALFORMED_EXPRESSION]
    assert result.issues[0].args == ("record:value('/x') > 5",)


def test_default_sentinel_before_last_is_malformed(builder):
    """Test that 'default' is only special in the last position."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "default"},
            {"outputLane": "B", "predicate": "${true}"},
            {"outputLane": "C", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.MALFORMED_EXPRESSION]


def test_invalid_expression(builder):
    """Test that predicates must type-check as boolean."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${record:value('/x') + 1}"},
            {"outputLane": "B", "predicate": "${undefined_constant > 1}"},
            {"outputLane": "C", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.INVALID_EXPRESSION, ErrorCode.INVALID_EXPRESSION]
    assert result.issues[0].args[0] == "${record:value('/x') + 1}"
    assert "BOOLEAN" in result.issues[0].args[1]
    assert "undefined_constant" in result.issues[1].args[1]


def test_invalid_constants(builder):
    """Test that invalid constants are reported and dropped."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${true}"},
            {"outputLane": "B", "predicate": "${false}"},
            {"outputLane": "C", "predicate": "default"},
        ],
        constants={"ok": 1, "bad name": 2, "and": 3, "nothing": None, "obj": object()},
    )

    assert _codes(result) == [ErrorCode.INVALID_CONSTANT] * 4
    assert [issue.args[0] for issue in result.issues] == ["bad name", "and", "nothing", "obj"]
    assert dict(result.constants) == {"ok": 1}


def test_issues_accumulate(builder):
    """Test that independent issues are all reported together."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "no-delimiters"},
            {"outputLane": "Q", "predicate": "${1}"},
        ],
        constants={"1x": 1},
    )

    assert set(_codes(result)) == {
        ErrorCode.LANE_COUNT_MISMATCH,
        ErrorCode.UNKNOWN_LANE,
        ErrorCode.MISSING_DEFAULT,
        ErrorCode.INVALID_CONSTANT,
        ErrorCode.MALFORMED_EXPRESSION,
        ErrorCode.INVALID_EXPRESSION,
    }
    assert all(issue.group == "CONDITIONS" for issue in result.issues)


def test_raise_for_issues(builder):
    """Test converting issues into a ConfigurationError."""
    result = builder.build([])

    with pytest.raises(ConfigurationError) as exc_info:
        result.raise_for_issues()
    assert exc_info.value.issues == result.issues


def test_constants_are_read_only(builder):
    """Test that resolved constants cannot be mutated."""
    source = {"limits": [1, 2]}
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${true}"},
            {"outputLane": "B", "predicate": "${false}"},
            {"outputLane": "C", "predicate": "default"},
        ],
        constants=source,
    )

    with pytest.raises(TypeError):
        result.constants["new"] = 1
    source["limits"].append(3)
    assert result.constants["limits"] == (1, 2)


def test_nested_constants_are_frozen(builder):
    """Test that lists and dicts inside constants cannot be mutated."""
    result = builder.build(
        [
            {"outputLane": "A", "predicate": "${true}"},
            {"outputLane": "B", "predicate": "${false}"},
            {"outputLane": "C", "predicate": "default"},
        ],
        constants={"limits": [1, [2, 3]], "bounds": {"low": [0]}},
    )

    limits = result.constants["limits"]
    assert limits == (1, (2, 3))
    assert not hasattr(limits, "append")
    assert not hasattr(limits[1], "append")
    with pytest.raises(TypeError):
        result.constants["bounds"]["high"] = 9
    assert result.constants["bounds"]["low"] == (0,)


def test_deeply_nested_predicate_is_invalid():
    """Test that excessive nesting is reported instead of overflowing the stack."""
    builder = RouteTableBuilder(DefaultStageContext(["A", "B"]))
    nested = "${" + "(" * 400 + "true" + ")" * 400 + "}"

    result = builder.build(
        [
            {"outputLane": "A", "predicate": nested},
            {"outputLane": "B", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.INVALID_EXPRESSION]
    assert "nests too deeply" in result.issues[0].message


def test_long_predicate_chain_is_invalid():
    """Test that a very long operator chain is reported as invalid."""
    builder = RouteTableBuilder(DefaultStageContext(["A", "B"]))
    chain = "${" + " + ".join(["1"] * 2000) + " > 0}"

    result = builder.build(
        [
            {"outputLane": "A", "predicate": chain},
            {"outputLane": "B", "predicate": "default"},
        ]
    )

    assert _codes(result) == [ErrorCode.INVALID_EXPRESSION]


def test_validation_uses_synthetic_record():
    """Test that static checks run against the context's validation record."""
    created = []

    class RecordingContext(DefaultStageContext):
        def create_record(self, label):
            created.append(label)
            return super().create_record(label)

    builder = RouteTableBuilder(RecordingContext(["A", "B"]))
    builder.build(
        [
            {"outputLane": "A", "predicate": "${record:exists('/x')}"},
            {"outputLane": "B", "predicate": "default"},
        ]
    )

    assert created == ["forValidation"]
