"""CLI interface for Laneselect.

This module provides a command-line interface for writing, validating and
running lane selector configurations against JSON lines input.
"""
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import LaneselectConfig, init_config
from .core.errors import ConfigurationError, RecordRoutingError
from .core.models import Record
from .core.stage import (
    DefaultStageContext,
    ErrorSink,
    InMemoryBatchMaker,
    SelectorProcessor,
)

logger = logging.getLogger(__name__)


def _setup_logging(config: LaneselectConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        filename=config.log_file,
    )


def _load_config(config_path: Optional[str]) -> LaneselectConfig:
    return init_config(config_path) if config_path else init_config()


def _build_processor(config: LaneselectConfig) -> SelectorProcessor:
    return SelectorProcessor(
        lane_predicates=config.lane_predicates,
        constants=config.constants,
        context=DefaultStageContext(config.get_output_lanes()),
        on_record_error=config.on_record_error,
    )


def _read_records(lines) -> list[Record]:
    records = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        data = json.loads(line)
        if not isinstance(data, dict):
            raise click.ClickException(f"Line {line_number}: expected a JSON object")
        records.append(Record.from_dict(data, default_id=f"{lines.name}::{line_number}"))
    return records


@click.group()
@click.version_option(version=__version__)
def cli():
    """Laneselect - predicate based record routing.

    Routes each record to every lane whose predicate it satisfies, or to
    the default lane when none match.
    """
    pass


@cli.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False),
    default="laneselect.yaml",
    help="Path to configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Force overwrite existing config")
def init(config_path: str, force: bool):
    """Initialize a Laneselect configuration.

    Creates a configuration file with an example predicate and the default lane.
    """
    config_file = Path(config_path)

    if config_file.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite")
        return

    try:
        config = LaneselectConfig.create_default_config(config_file)

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo(f"\nLanes: {', '.join(config.get_output_lanes())}")
        click.echo(f"Edit {config_path} to customize predicates and constants.")

    except Exception as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def validate(config: str):
    """Validate lane predicates, lanes and constants.

    Reports every configuration issue at once and exits with status 1 if
    there are any.
    """
    app_config = _load_config(config)
    _setup_logging(app_config)

    issues = _build_processor(app_config).validate()
    if issues:
        click.echo(f"✗ {len(issues)} configuration issue(s):", err=True)
        for issue in issues:
            click.echo(f"  [{issue.code.value}] {issue.message}", err=True)
        sys.exit(1)

    click.echo(f"✓ Configuration is valid ({len(app_config.lane_predicates)} lanes)")


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.argument("input_file", type=click.File("r"))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default="routed",
    help="Directory receiving one <lane>.jsonl file per lane",
)
def route(config: str, input_file, output_dir: str):
    """Route JSON lines records to lane files.

    Each line is either a record envelope {"id", "attributes", "value"} or a
    bare JSON object used as the record value. Rejected records are written
    to errors.jsonl when on_record_error is to_error.
    """
    app_config = _load_config(config)
    _setup_logging(app_config)

    processor = _build_processor(app_config)
    try:
        processor.init()
    except ConfigurationError as e:
        click.echo(f"✗ {len(e.issues)} configuration issue(s):", err=True)
        for issue in e.issues:
            click.echo(f"  [{issue.code.value}] {issue.message}", err=True)
        sys.exit(1)

    try:
        records = _read_records(input_file)
    except json.JSONDecodeError as e:
        click.echo(f"Error reading input: {e}", err=True)
        sys.exit(1)

    batch_maker = InMemoryBatchMaker()
    error_sink = ErrorSink()
    try:
        summary = processor.process_batch(records, batch_maker, error_sink)
    except RecordRoutingError as e:
        click.echo(f"✗ Pipeline stopped: {e}", err=True)
        sys.exit(1)

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    for lane in app_config.get_output_lanes():
        with open(out / f"{lane}.jsonl", "w") as f:
            for record in batch_maker.get_records(lane):
                f.write(json.dumps(record.to_dict()) + "\n")
    if error_sink.errors:
        with open(out / "errors.jsonl", "w") as f:
            for record, error in error_sink.errors:
                entry = record.to_dict()
                entry["error"] = {"expression": error.expression, "message": str(error.cause)}
                f.write(json.dumps(entry) + "\n")

    logger.info(f"Wrote {len(app_config.get_output_lanes())} lane file(s) to {out}")
    click.echo(f"Routed {summary.processed} record(s), {summary.rejected} rejected")
    for lane in app_config.get_output_lanes():
        click.echo(f"  {lane}: {summary.lanes.get(lane, 0)}")


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def status(config: str):
    """Show the route table built from the configuration."""
    try:
        app_config = _load_config(config)

        click.echo("Laneselect Status")
        click.echo("=" * 50)
        click.echo(f"Configuration: {config or 'default'}")
        click.echo(f"On record error: {app_config.on_record_error.value}")
        click.echo(f"Log Level: {app_config.log_level}")

        router = _build_processor(app_config).init()
        click.echo("\nRoute table:")
        for index, rule in enumerate(router.route_table):
            predicate = rule.expression if rule.expression is not None else "(default)"
            click.echo(f"  {index}. {predicate} -> {rule.lane_id}")
        if router.constants:
            click.echo("\nConstants:")
            for name, value in router.constants.items():
                click.echo(f"  {name} = {value!r}")

    except Exception as e:
        click.echo(f"Error checking status: {e}", err=True)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
