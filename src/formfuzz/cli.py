# src/formfuzz/cli.py
"""formfuzz Command Line Interface.

Usage:
    formfuzz run examples/forms/res_partner.yaml              # Defaults
    formfuzz run form.yaml --preset=stress --seed=42          # Reproducible
    formfuzz run form.yaml --config=fuzz.yaml --max-rows=2    # Overrides
    formfuzz run form.yaml --json                             # Machine output
    formfuzz presets                                          # List presets
"""

from __future__ import annotations

import asyncio
import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Annotated, Any

import pydantic
import typer
import yaml

from formfuzz import __version__
from formfuzz.contracts import FuzzResult
from formfuzz.core.config import list_presets, load_config
from formfuzz.forms import DomainError, StaticFormBackend

app = typer.Typer(
    name="formfuzz",
    help="formfuzz: fill a form view with random values and try to save it.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"formfuzz version {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """formfuzz: random form filling for reactive form views."""
    from formfuzz.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


@app.command()
def run(
    form_file: Annotated[
        Path,
        typer.Argument(
            help="YAML form definition to fuzz.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    view_ref: Annotated[
        str | None,
        typer.Option("--view-ref", help="Alternative form view declared under 'views'."),
    ] = None,
    preset: Annotated[
        str | None,
        typer.Option(
            "--preset",
            "-p",
            help="Preset configuration to use. Use 'formfuzz presets' to list available.",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to YAML configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Random seed for a reproducible run."),
    ] = None,
    min_rows: Annotated[
        int | None,
        typer.Option("--min-rows", help="Fewest rows per one2many field.", min=1),
    ] = None,
    max_rows: Annotated[
        int | None,
        typer.Option("--max-rows", help="Most rows per one2many field.", min=1),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the run report as JSON."),
    ] = False,
) -> None:
    """Fuzz one new record of the form and try to save it.

    Exits with status 1 when the save fails.

    Configuration precedence (highest to lowest):
    1. Command-line flags
    2. Config file (--config)
    3. Preset (--preset)
    4. Built-in defaults
    """
    from formfuzz.engine import FuzzSession

    cli_overrides: dict[str, Any] = {}
    if seed is not None:
        cli_overrides["seed"] = seed

    row_overrides: dict[str, int] = {}
    if min_rows is not None:
        row_overrides["min_rows"] = min_rows
    if max_rows is not None:
        row_overrides["max_rows"] = max_rows
    if row_overrides:
        cli_overrides["one2many"] = row_overrides

    try:
        settings = load_config(preset=preset, config_file=config_file, cli_overrides=cli_overrides)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    except (pydantic.ValidationError, yaml.YAMLError, ValueError) as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    try:
        backend = StaticFormBackend.from_yaml(form_file)
    except (pydantic.ValidationError, yaml.YAMLError, ET.ParseError, ValueError) as e:
        typer.secho(f"Invalid form definition: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    session = FuzzSession(backend, settings)
    try:
        result = asyncio.run(session.run(backend.definition.model, view_ref))
    except DomainError as e:
        typer.secho(f"Domain error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        _print_summary(result)

    if not result.succeeded:
        raise typer.Exit(1)


def _print_summary(result: FuzzResult) -> None:
    if result.succeeded:
        typer.secho(f"Saved {result.model} record {result.record_id}", fg=typer.colors.GREEN)
    else:
        message = result.error["exception"] if result.error is not None else "unknown error"
        typer.secho(f"Could not save {result.model}: {message}", fg=typer.colors.RED)

    typer.echo(f"  Fields processed: {result.processed_count}")
    typer.echo(f"  Required fields processed: {result.required_processed_count}")
    typer.echo(f"  Fields ignored by onchange: {result.ignored_count}")

    for name, value in result.to_dict()["processed"].items():
        typer.echo(f"    {name}: {value!r}")


@app.command()
def presets() -> None:
    """List available preset configurations."""
    available = list_presets()
    if not available:
        typer.echo("No presets found.")
        return

    typer.secho("Available presets:", fg=typer.colors.GREEN)
    for name in sorted(available):
        typer.echo(f"  - {name}")

    typer.echo()
    typer.echo("Use with: formfuzz run FORM_FILE --preset=<name>")


def main() -> None:
    """Entry point for formfuzz CLI."""
    app()


if __name__ == "__main__":
    main()
