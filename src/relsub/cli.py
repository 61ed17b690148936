#!/usr/bin/env python3
"""
relsub CLI - Command Line Interface

Substitutes orphaned stated relationships with inferred ones, or looks up a
concept's relationships in both views.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from relsub._version import __version__
from relsub.core.config import Settings
from relsub.core.exceptions import RelsubError
from relsub.core.logging import AsyncLogger, logger
from relsub.models.stats import SubstitutionStats
from relsub.rf2.descriptions import DescriptionIndex
from relsub.services.substitution_service import SubstitutionService

console = Console()

QUIT_COMMAND = "quit"


def is_concept_id(value: str) -> bool:
    """A bare SCTID selects lookup mode; anything else is an output path."""
    return value.isascii() and value.isdigit()


def render_stats(stats: SubstitutionStats, output: Path, effective_time: str, rows: int) -> None:
    """Print the run summary as a table."""
    table = Table(title="Substitution summary", show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Stated relationships", str(stats.total_stated))
    table.add_row("Needed replacement", str(stats.needs_replaced))
    table.add_row("Replaced", str(stats.replaced))
    table.add_row("Unresolved", str(stats.remainder))
    for family in ("Alg1", "Alg2", "Alg3", "Alg4", "Alg5", "AlgMGS"):
        table.add_row(f"  {family}", str(stats.hits(family)))
    table.add_row("Unsafe candidates avoided", str(stats.unsafe_rejections))
    table.add_row("Rows written", str(rows))

    console.print(table)
    console.print(f"Output: {output} (effective time {effective_time})", markup=False, highlight=False)


def print_concept(service: SubstitutionService, concept_id: int) -> None:
    for line in service.lookup().relationship_lines(concept_id):
        click.echo(line)


def run_interactive(service: SubstitutionService) -> None:
    """Prompt for concept ids until 'quit' or end of input."""
    while True:
        try:
            value = click.prompt(
                "Enter source concept sctid", default="", show_default=False
            ).strip()
        except (click.Abort, EOFError):
            click.echo()
            break

        if value == QUIT_COMMAND:
            break
        if not value:
            continue
        if not is_concept_id(value):
            click.echo(click.style(f"Not a concept id: {value}", fg="yellow"))
            continue
        print_concept(service, int(value))


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="relsub")
@click.argument("stated_file", type=click.Path(path_type=Path))
@click.argument("inferred_file", type=click.Path(path_type=Path))
@click.argument("target")
@click.option("-i", "--interactive", is_flag=True, help="Query concepts interactively afterwards")
@click.option(
    "--descriptions",
    type=click.Path(path_type=Path),
    help="RF2 description file used to print concept names",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="YAML configuration file (default: ./.relsub)",
)
@click.option("--debug", is_flag=True, help="Log at DEBUG level")
def cli(
    stated_file: Path,
    inferred_file: Path,
    target: str,
    interactive: bool,
    descriptions: Optional[Path],
    config_path: Optional[Path],
    debug: bool,
):
    """
    Replace stated relationships missing from the inferred view.

    TARGET is either the output file (its path must contain an 8-digit
    effective time, e.g. sct2_Relationship_Delta_INT_20230131.txt) or a
    concept id whose stated and inferred relationships are printed.
    """
    try:
        settings = Settings(config_path)
        AsyncLogger.configure(
            level="DEBUG" if debug else settings.get("logging.level", "INFO"),
            log_file=settings.get("logging.file"),
            rotation_size_mb=settings.get("logging.rotation_size_mb", 10),
        )

        description_index = None
        if descriptions is not None:
            description_index = DescriptionIndex(settings).load(descriptions)

        service = SubstitutionService(settings, descriptions=description_index)

        if is_concept_id(target):
            service.load(stated_file, inferred_file)
            print_concept(service, int(target))
        else:
            output = Path(target)
            stats = service.run(stated_file, inferred_file, output)
            render_stats(stats, output, service.effective_time or "", service.rows_written)

        if interactive:
            run_interactive(service)

    except RelsubError as e:
        logger.error("{code}: {error}", code=e.code, error=e.message, error_id=e.id)
        click.echo(click.style(f"✗ {e.message}", fg="red"), err=True)
        for suggestion in e.suggestions:
            click.echo(f"  {suggestion}", err=True)
        sys.exit(1)


def main():
    """Main entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.")
        sys.exit(130)
    except Exception as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        if os.environ.get("RELSUB_DEBUG"):
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
