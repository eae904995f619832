"""
schedview CLI entry point.

Commands:
    schedview snapshot  Full scheduler snapshot as JSON
    schedview job NAME GROUP  Detail for one job
    schedview trigger NAME GROUP  Detail for one trigger
    schedview version

Engine state is read from a TOML/JSON state file (--state, or
engine.state_file in the config).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console

if TYPE_CHECKING:
    from schedview.core.config import SchedViewConfig
    from schedview.snapshot.builder import SnapshotBuilder

app = typer.Typer(
    name="schedview",
    help="Read-only snapshots of a job scheduler.",
    add_completion=False,
)

console = Console()

STATE_HELP = "Engine state file (.toml or .json)"


def _load_config(verbose: bool) -> "SchedViewConfig":
    from schedview.core.config import SchedViewConfig
    from schedview.core.errors import ConfigError
    from schedview.core.logging import setup_logging

    try:
        config = SchedViewConfig.load()
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e.message}")
        raise typer.Exit(1)

    setup_logging(
        log_dir=config.get_log_dir(),
        console_level=logging.DEBUG if verbose else config.logging.console_level,
        file_level=config.logging.file_level,
    )
    return config


def _make_builder(
    config: "SchedViewConfig", state: Path | None, concurrency: int | None
) -> "SnapshotBuilder":
    from schedview.core.errors import EngineStateError
    from schedview.engine.loader import load_engine
    from schedview.snapshot.builder import SnapshotBuilder

    state_path = state or (Path(config.engine.state_file) if config.engine.state_file else None)
    if state_path is None:
        console.print(
            "[yellow]No engine state given.[/yellow]\n"
            "[dim]Pass --state FILE or set engine.state_file in schedview.toml[/dim]"
        )
        raise typer.Exit(1)

    try:
        engine = load_engine(state_path)
    except EngineStateError as e:
        console.print(f"[red]Cannot load engine state:[/red] {e.message}")
        raise typer.Exit(1)

    snapshot_config = config.snapshot
    if concurrency is not None:
        snapshot_config = snapshot_config.model_copy(update={"max_concurrency": max(concurrency, 1)})
    return SnapshotBuilder(engine, config=snapshot_config)


def _emit(data: dict[str, Any]) -> None:
    console.print_json(data=data)


def _run(coro: Any) -> Any:
    from schedview.core.errors import SchedViewError

    try:
        return asyncio.run(coro)
    except SchedViewError as e:
        console.print(f"[red]Engine query failed:[/red] {e.message}")
        raise typer.Exit(1)


@app.command()
def snapshot(
    state: Path = typer.Option(None, "--state", "-s", help=STATE_HELP),
    concurrency: int = typer.Option(None, "--concurrency", "-c", help="Max in-flight engine queries"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Print a full snapshot of the scheduler."""
    config = _load_config(verbose)
    builder = _make_builder(config, state, concurrency)
    result = _run(builder.get_snapshot())
    _emit(result.to_dict())


@app.command()
def job(
    name: str = typer.Argument(..., help="Job name"),
    group: str = typer.Argument(..., help="Job group"),
    state: Path = typer.Option(None, "--state", "-s", help=STATE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Print detail for one job."""
    config = _load_config(verbose)
    builder = _make_builder(config, state, None)
    detail = _run(builder.get_job_detail(name, group))
    if detail is None:
        console.print(f"[yellow]Job {group}.{name} not found (or scheduler is shut down)[/yellow]")
        raise typer.Exit(1)
    _emit(detail.to_dict())


@app.command()
def trigger(
    name: str = typer.Argument(..., help="Trigger name"),
    group: str = typer.Argument(..., help="Trigger group"),
    state: Path = typer.Option(None, "--state", "-s", help=STATE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Print detail for one trigger."""
    config = _load_config(verbose)
    builder = _make_builder(config, state, None)
    detail = _run(builder.get_trigger_detail(name, group))
    if detail is None:
        console.print(f"[yellow]Trigger {group}.{name} not found (or scheduler is shut down)[/yellow]")
        raise typer.Exit(1)
    _emit(detail.to_dict())


@app.command()
def version() -> None:
    """Show schedview version."""
    from schedview import __version__
    console.print(f"schedview v{__version__}")


if __name__ == "__main__":
    app()
