"""Typer CLI entrypoint for grading runs."""

from __future__ import annotations

from importlib import import_module
from pathlib import Path
from typing import Any

import typer

from assessor import __version__

_SUBCOMMAND_SPECS: list[tuple[str, str]] = [
    ("cache", "cli.commands.cache"),
    ("config", "cli.commands.config"),
]

app = typer.Typer(
    help="Grade student submissions against a remote assessor backend.",
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    add_completion=True,
)


@app.callback()
def root(
    ctx: typer.Context,
    version_flag: bool = typer.Option(
        False,
        "-v",
        "--version",
        help="Print the version and exit.",
    ),
) -> None:
    if version_flag:
        typer.echo(__version__)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command(help="Grade every submission of an assignment file.")
def grade(
    assignment_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        metavar="ASSIGNMENT",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the graded assignment (default: overwrite the input).",
    ),
    batch_size: int | None = typer.Option(None, "--batch-size", min=1, help="Requests per batch."),
    max_retries: int | None = typer.Option(
        None, "--max-retries", min=0, help="Retries per unit for invalid or failed responses."
    ),
    backend_url: str | None = typer.Option(None, "--backend-url", help="Assessor backend base URL."),
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Cache root directory."),
    cache_scope: str | None = typer.Option(
        None, "--cache-scope", help="Cache scope (assessment|none)."
    ),
    json_out: bool = typer.Option(False, "--json", help="Print the run report as JSON."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    from pydantic import ValidationError

    from core.config import get_settings
    from core.logging import configure_logging
    from schemas.requests import GradingRunOptions
    from services.grading_runner import run_grading
    from services.io import load_assignment, save_assignment

    configure_logging(log_level or get_settings().log_level)

    payload: dict[str, Any] = {
        "batch_size": batch_size,
        "max_validation_retries": max_retries,
        "backend_url": backend_url,
        "cache_dir": str(cache_dir) if cache_dir else None,
        "cache_scope": cache_scope.strip().lower() if cache_scope else None,
    }
    try:
        options = GradingRunOptions.model_validate(
            {key: value for key, value in payload.items() if value is not None}
        )
        assignment = load_assignment(assignment_path)
    except (ValidationError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    report = run_grading(assignment, options)
    target = save_assignment(assignment, output or assignment_path)

    if json_out:
        from cli.commands.shared import emit_json

        emit_json(report.model_dump(mode="json"))
    else:
        _print_summary(report, target)

    if report.aborted:
        raise typer.Exit(code=2)


def _print_summary(report: Any, target: Path) -> None:
    from rich.table import Table

    from cli.commands.shared import console

    style = "red" if report.aborted else "green"
    console.print(f"[bold {style}]{report.message}[/bold {style}]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Count")
    table.add_column("Units", justify="right")
    for name, value in report.counts.model_dump().items():
        table.add_row(name.replace("_", " "), str(value))
    table.add_row("batches sent", str(report.batches_sent))
    table.add_row("backend calls", str(report.backend_calls))
    console.print(table)
    for entry in report.log:
        if entry.level == "info":
            continue
        color = "red" if entry.level == "error" else "yellow"
        console.print(f"[{color}]{entry.level}[/{color}] {entry.message}")
    console.print(f"Wrote {target}")


def _register_subcommands() -> None:
    for name, module_path in _SUBCOMMAND_SPECS:
        module = import_module(module_path)
        app.add_typer(module.app, name=name)


_register_subcommands()


def main() -> None:
    app()


__all__ = ["app", "main"]
