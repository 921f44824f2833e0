"""Configuration inspection commands."""

from __future__ import annotations

from typing import Any

import typer

from core.config import Settings, get_settings
from schemas.requests import GradingRunOptions
from .shared import emit_json, redact_settings


app = typer.Typer(
    help="Inspect the effective configuration.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("show", help="Show the effective settings (API key redacted).")
def show_config(
    json_out: bool = typer.Option(True, "--json/--no-json", help="Output JSON."),
) -> None:
    payload = redact_settings(get_settings().model_dump())
    if json_out:
        emit_json(payload)
        return
    for key, value in payload.items():
        typer.echo(f"{key}={value}")


@app.command("diff", help="Show settings that differ from the defaults.")
def diff_config() -> None:
    current = redact_settings(get_settings().model_dump())
    defaults = _settings_defaults()
    diff: dict[str, dict[str, Any]] = {}
    for key, value in current.items():
        default = defaults.get(key)
        if value != default:
            diff[key] = {"value": value, "default": default}
    emit_json(diff)


@app.command("options", help="Show the per-run options schema.")
def list_run_options() -> None:
    emit_json(GradingRunOptions.model_json_schema())


def _settings_defaults() -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for name, field in Settings.model_fields.items():
        defaults[name] = field.get_default(call_default_factory=True)
    return defaults


__all__ = ["app"]
