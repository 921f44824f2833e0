"""Shared helpers for CLI subcommands."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console

console = Console()

REDACTED = "***"


def emit_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


def redact_settings(payload: dict[str, Any]) -> dict[str, Any]:
    redacted = dict(payload)
    if redacted.get("api_key"):
        redacted["api_key"] = REDACTED
    return redacted


__all__ = ["REDACTED", "console", "emit_json", "redact_settings"]
