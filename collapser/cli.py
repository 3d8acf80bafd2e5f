"""CLI entry point for collapser."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from collapser.records import OUTPUT_FORMATS


# Default config template
CONFIG_TEMPLATE = """\
key:
  strip_whitespace: true  # Collapse runs of whitespace before comparing values
  casefold: false         # Compare values case-insensitively
  ignore_kinds: []        # Kinds that never collapse

output:
  format: yaml  # yaml | json

logging:
  level: WARNING
"""

_PROJECT_ROOT_OPTION = click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Project root directory (default: cwd).",
)


def _setup(project_root: str) -> dict:
    """Load config (or defaults) and configure logging. Exits 1 on a bad config."""
    from collapser.config import ConfigError, load_config_or_defaults, log_level

    try:
        config = load_config_or_defaults(Path(project_root))
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        raise SystemExit(1)

    logging.basicConfig(
        level=log_level(config),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    return config


def _load(input_path: str, config: dict) -> list:
    from collapser.config import key_policy_from_config
    from collapser.records import RecordError, load_records

    try:
        return load_records(Path(input_path), key_policy_from_config(config))
    except RecordError as exc:
        click.echo(f"Record error: {exc}", err=True)
        raise SystemExit(1)


@click.group()
def cli() -> None:
    """Collapser: fold duplicate contact data rows into single entries."""


@cli.command()
@_PROJECT_ROOT_OPTION
def init(project_root: str) -> None:
    """Initialize .collapser/ directory with a default config."""
    root = Path(project_root)
    collapser_dir = root / ".collapser"

    if collapser_dir.exists():
        click.echo(f".collapser/ already exists at {collapser_dir}")
        raise SystemExit(1)

    collapser_dir.mkdir(parents=True)
    config_path = collapser_dir / "config.yaml"
    config_path.write_text(CONFIG_TEMPLATE)
    click.echo(f"Created {config_path}")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@_PROJECT_ROOT_OPTION
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write collapsed records here instead of stdout.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default: from config).",
)
@click.option(
    "--matching",
    is_flag=True,
    default=False,
    help="Compare records pairwise instead of by key.",
)
def run(
    input_path: str,
    project_root: str,
    output_path: str | None,
    fmt: str | None,
    matching: bool,
) -> None:
    """Collapse duplicate records in INPUT_PATH."""
    from collapser.collapse import collapse, collapse_matching
    from collapser.records import dump_records

    config = _setup(project_root)
    entries = _load(input_path, config)
    before = len(entries)

    if matching:
        collapse_matching(entries)
    else:
        collapse(entries)

    rendered = dump_records(entries, fmt or config["output"]["format"])
    if output_path:
        Path(output_path).write_text(rendered)
    else:
        click.echo(rendered, nl=False)

    click.echo(f"Collapsed {before} record(s) into {len(entries)}.", err=True)


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@_PROJECT_ROOT_OPTION
def groups(input_path: str, project_root: str) -> None:
    """Show which records in INPUT_PATH would collapse together."""
    from collapser.records import group_report

    config = _setup(project_root)
    entries = _load(input_path, config)
    report = group_report(entries)

    for (kind, value), ids in report:
        click.echo(f"{kind} {value}: ids {', '.join(str(i) for i in ids)}")
    click.echo(f"{len(report)} group(s) would collapse.")
