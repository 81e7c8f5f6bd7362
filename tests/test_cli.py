"""Tests for the command-line interface."""
import json

import pytest
from click.testing import CliRunner

from laneselect.__main__ import cli


CONFIG_YAML = """
lane_predicates:
  - outputLane: A
    predicate: "${record:value('/x') > 5}"
  - outputLane: B
    predicate: default
"""


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    """Write a two-lane configuration."""
    path = tmp_path / "laneselect.yaml"
    path.write_text(CONFIG_YAML)
    return path


def test_init_creates_config(runner, tmp_path):
    """Test creating the default configuration."""
    path = tmp_path / "new.yaml"

    result = runner.invoke(cli, ["init", "-c", str(path)])

    assert result.exit_code == 0
    assert path.exists()
    assert "high, low" in result.output

    result = runner.invoke(cli, ["init", "-c", str(path)])
    assert "already exists" in result.output


def test_validate_ok(runner, config_path):
    """Test validating a correct configuration."""
    result = runner.invoke(cli, ["validate", "-c", str(config_path)])

    assert result.exit_code == 0
    assert "valid" in result.output


def test_validate_reports_all_issues(runner, tmp_path):
    """Test that validation lists every issue and fails."""
    path = tmp_path / "bad.yaml"
    path.write_text(
        "lane_predicates:\n"
        "  - outputLane: A\n"
        "    predicate: \"x > 1\"\n"
        "  - outputLane: B\n"
        "    predicate: \"${1}\"\n"
        "output_lanes: [A, B, C]\n"
    )

    result = runner.invoke(cli, ["validate", "-c", str(path)])

    assert result.exit_code == 1
    assert "LANE_COUNT_MISMATCH" in result.output
    assert "MISSING_DEFAULT" in result.output
    assert "MALFORMED_EXPRESSION" in result.output
    assert "INVALID_EXPRESSION" in result.output


def test_route_writes_lane_files(runner, config_path, tmp_path):
    """Test routing JSON lines into per-lane files."""
    input_path = tmp_path / "records.jsonl"
    input_path.write_text(
        "\n".join(
            [
                json.dumps({"id": "one", "value": {"x": 10}}),
                json.dumps({"x": 1}),
                json.dumps({"y": 3}),
                "",
            ]
        )
    )
    out = tmp_path / "out"

    result = runner.invoke(
        cli, ["route", "-c", str(config_path), str(input_path), "-o", str(out)]
    )

    assert result.exit_code == 0, result.output
    assert "Routed 3 record(s), 1 rejected" in result.output

    lane_a = [json.loads(line) for line in (out / "A.jsonl").read_text().splitlines()]
    lane_b = [json.loads(line) for line in (out / "B.jsonl").read_text().splitlines()]
    errors = [json.loads(line) for line in (out / "errors.jsonl").read_text().splitlines()]

    assert [r["id"] for r in lane_a] == ["one"]
    assert [r["value"] for r in lane_b] == [{"x": 1}]
    assert errors[0]["value"] == {"y": 3}
    assert errors[0]["error"]["expression"] == "${record:value('/x') > 5}"


def test_route_refuses_invalid_config(runner, tmp_path):
    """Test that routing does not start with configuration issues."""
    path = tmp_path / "bad.yaml"
    path.write_text("lane_predicates: []\n")
    input_path = tmp_path / "records.jsonl"
    input_path.write_text("{}\n")

    result = runner.invoke(cli, ["route", "-c", str(path), str(input_path)])

    assert result.exit_code == 1
    assert "EMPTY_ROUTES" in result.output


def test_status_shows_route_table(runner, config_path):
    """Test printing the route table."""
    result = runner.invoke(cli, ["status", "-c", str(config_path)])

    assert result.exit_code == 0
    assert "0. ${record:value('/x') > 5} -> A" in result.output
    assert "1. (default) -> B" in result.output
