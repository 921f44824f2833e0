"""Assessment cache maintenance commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer

from .shared import emit_json

if TYPE_CHECKING:
    from persistence.cache import CacheManager


app = typer.Typer(
    help="Inspect and prune the assessment cache.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
    no_args_is_help=True,
)


@app.command("stats", help="Show persistent assessment cache statistics.")
def cache_stats(
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Cache root directory."),
) -> None:
    manager = _build_cache_manager(cache_dir)
    if manager is None:
        emit_json({"enabled": False, "assessments": {"entries": 0}})
        return
    emit_json({"enabled": True, "scope": manager.scope, "assessments": manager.stats()})


@app.command("prune", help="Delete cache entries older than N days.")
def cache_prune(
    days: int = typer.Option(
        30,
        "--days",
        min=1,
        help="Remove entries created more than this many days ago.",
    ),
    cache_dir: Path | None = typer.Option(None, "--cache-dir", help="Cache root directory."),
) -> None:
    manager = _build_cache_manager(cache_dir)
    if manager is None:
        emit_json({"removed": 0, "reason": "cache_disabled"})
        return
    removed = manager.prune_older_than(days=days)
    emit_json({"removed": removed})


def _build_cache_manager(cache_dir: Path | None) -> "CacheManager | None":
    from core.config import get_settings
    from persistence.cache import CacheManager
    from persistence.sqlite_store import SqliteStore

    settings = get_settings()
    if settings.cache_scope == "none":
        return None
    base_dir = Path(cache_dir or settings.cache_dir)
    store = SqliteStore(base_dir / "metadata.sqlite")
    return CacheManager(base_dir, store, scope=settings.cache_scope)


__all__ = ["app"]
