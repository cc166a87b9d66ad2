"""aerie-actions CLI - check and load sequence adaptations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from aerie_actions import __version__
from aerie_actions.adaptation import (
    AdaptationError,
    AdaptationLoader,
    SandboxExecutor,
    default_registry,
    validate,
)
from aerie_actions.utils.config import get_settings

console = Console()


def run_async(coro: Any) -> Any:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def _members(adaptation: Any) -> dict[str, Any]:
    if isinstance(adaptation, Mapping):
        return dict(adaptation)
    members = getattr(adaptation, "__dict__", {})
    return {name: value for name, value in members.items() if not name.startswith("_")}


def _print_adaptation(adaptation: Any, title: str) -> None:
    table = Table(title=title)
    table.add_column("Export", style="cyan")
    table.add_column("Kind")
    for name, value in sorted(_members(adaptation).items()):
        kind = "function" if callable(value) else type(value).__name__
        table.add_row(name, kind)
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="aerie-actions")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """aerie-actions - tools for Aerie action and adaptation authors.

    \b
    Adaptation Commands:
        adaptation check <file>          Evaluate a local adaptation file
        adaptation load <workspace_id>   Load a workspace's adaptation from the database
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.group()
def adaptation() -> None:
    """Sequence adaptation commands."""
    pass


@adaptation.command("check")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--timeout", type=float, default=None, help="Evaluation timeout in seconds")
def check(file: Path, timeout: float | None) -> None:
    """Evaluate an adaptation file in the sandbox and list its exports."""
    source = file.read_text(encoding="utf-8")
    executor = SandboxExecutor(timeout_seconds=timeout)

    async def _check() -> Any:
        result = await executor.execute(source, default_registry(), adaptation_id=file.name)
        for line in result.output:
            console.print(f"[dim]{escape(line)}[/dim]")
        return validate(result.value, file.name, None)

    try:
        loaded = run_async(_check())
    except AdaptationError as e:
        console.print(f"[red]{e.kind.value}:[/red] {escape(str(e))}")
        raise SystemExit(1)

    _print_adaptation(loaded, f"Adaptation {file.name}")
    console.print("[green]OK[/green]")


@adaptation.command("load")
@click.argument("workspace_id", type=int)
@click.option("--dsn", default=None, help="Postgres DSN (default from DATABASE_URL)")
def load(workspace_id: int, dsn: str | None) -> None:
    """Load the adaptation bound to WORKSPACE_ID and list its exports."""
    import asyncpg

    dsn = dsn or get_settings().database_url

    async def _load() -> Any:
        conn = await asyncpg.connect(dsn)
        try:
            return await AdaptationLoader(conn).load_adaptation(workspace_id)
        finally:
            await conn.close()

    try:
        loaded = run_async(_load())
    except AdaptationError as e:
        console.print(f"[red]{e.kind.value}:[/red] {escape(str(e))}")
        raise SystemExit(1)

    _print_adaptation(loaded, f"Workspace {workspace_id} adaptation")


if __name__ == "__main__":
    cli()
