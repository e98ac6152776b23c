"""Command line interface for FileInventory."""

from __future__ import annotations

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from fileinventory.config import AppConfig
from fileinventory.errors import FatalWalkError
from fileinventory.output.json_writer import write_json
from fileinventory.output.storage import SQLiteInventoryStore
from fileinventory.scan.classifier import SpecialEntryPolicy
from fileinventory.scan.hasher import ensure_algorithm
from fileinventory.scan.pipeline import scan_tree
from fileinventory.scan.walker import count_files


console = Console()
app = typer.Typer(help="FileInventory - hash every file under a directory tree")

OUTPUT_FORMATS = ("json", "sqlite")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    output: Optional[Path],
    output_format: str,
    workers: Optional[int],
    algorithm: str,
    skip_names: Optional[List[str]],
    skip_prefixes: Optional[List[str]],
    no_default_skips: bool,
    special: str,
) -> AppConfig:
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"Unknown format {output_format!r}; choose from {', '.join(OUTPUT_FORMATS)}")
    try:
        SpecialEntryPolicy(special)
    except ValueError as exc:
        raise typer.BadParameter(f"Unknown special-entry policy {special!r}") from exc
    try:
        algorithm = ensure_algorithm(algorithm)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    defaults = AppConfig()
    base_names = () if no_default_skips else defaults.skip_names
    base_prefixes = () if no_default_skips else defaults.skip_prefixes
    if output is None:
        output = defaults.output_path if output_format == "json" else Path("file_inventory.db")

    return AppConfig(
        output_path=output,
        output_format=output_format,
        workers=workers if workers is not None else defaults.workers,
        algorithm=algorithm,
        special_policy=special,
        skip_names=tuple(base_names) + tuple(skip_names or ()),
        skip_prefixes=tuple(base_prefixes) + tuple(skip_prefixes or ()),
    )


@app.command()
def scan(
    directory: Path = typer.Argument(Path("."), help="Directory to scan.", resolve_path=True),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Number of hashing workers"),
    algorithm: str = typer.Option(AppConfig().algorithm, help="hashlib digest algorithm"),
    output_format: str = typer.Option("json", "--format", help="Output format: json or sqlite"),
    skip_name: Optional[List[str]] = typer.Option(None, "--skip-name", help="Extra base name to exclude"),
    skip_prefix: Optional[List[str]] = typer.Option(None, "--skip-prefix", help="Extra path prefix to exclude"),
    no_default_skips: bool = typer.Option(False, "--no-default-skips", help="Do not exclude VCS/trash/system paths"),
    special: str = typer.Option("log", help="Special entries: log, ignore or report"),
    count: bool = typer.Option(True, "--count/--no-count", help="Count files first to size the progress bar"),
    progress: bool = typer.Option(True, "--progress/--no-progress", help="Show a progress bar"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Hash every regular file under DIRECTORY and save the inventory."""
    _setup_logging(verbose)
    config = _build_config(
        output, output_format, workers, algorithm, skip_name, skip_prefix, no_default_skips, special
    )
    rules = config.skip_rules()

    total: Optional[int] = None
    if count:
        console.print(f"Counting files in [bold]{directory}[/bold]...")
        try:
            total = count_files(str(directory), rules)
        except FatalWalkError as exc:
            console.print(f"[red]Cannot scan {escape(str(directory))}: {escape(str(exc))}[/red]")
            raise typer.Exit(code=1)
        console.print(f"Found {total} files")

    console.print(f"Scanning [bold]{directory}[/bold] with {config.workers} workers...")
    bar = (
        Progress(
            TextColumn("[cyan]Hashing files...[/cyan]"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        if progress
        else None
    )
    with bar if bar is not None else nullcontext():
        task = bar.add_task("hashing", total=total) if bar is not None else None

        def _advance(_: object) -> None:
            if bar is not None:
                bar.advance(task)

        result = scan_tree(
            directory,
            workers=config.workers,
            rules=rules,
            algorithm=config.algorithm,
            chunk_size=config.chunk_size,
            queue_factor=config.queue_factor,
            special_policy=SpecialEntryPolicy(config.special_policy),
            on_record=_advance,
            on_error=_advance,
        )

    resolved = config.resolve_output_path(Path.cwd())
    if config.output_format == "json":
        write_json(result.records, resolved)
    else:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        store = SQLiteInventoryStore(resolved)
        try:
            store.save_scan(result)
        finally:
            store.close()

    console.print(
        f"Hashed: {len(result.records)}, errors: {result.error_count}, "
        f"skipped: {result.stats.skipped}, pruned: {result.stats.pruned}"
    )
    console.print(f"Results saved to [bold]{resolved}[/bold]")
    if result.fatal_error is not None:
        console.print(f"[red]Scan incomplete: {escape(str(result.fatal_error))}[/red]")
        raise typer.Exit(code=1)


@app.command()
def count(
    directory: Path = typer.Argument(Path("."), help="Directory to count.", resolve_path=True),
    skip_name: Optional[List[str]] = typer.Option(None, "--skip-name", help="Extra base name to exclude"),
    skip_prefix: Optional[List[str]] = typer.Option(None, "--skip-prefix", help="Extra path prefix to exclude"),
    no_default_skips: bool = typer.Option(False, "--no-default-skips", help="Do not exclude VCS/trash/system paths"),
) -> None:
    """Count the files a scan of DIRECTORY would hash."""
    defaults = AppConfig()
    config = AppConfig(
        skip_names=(() if no_default_skips else defaults.skip_names) + tuple(skip_name or ()),
        skip_prefixes=(() if no_default_skips else defaults.skip_prefixes) + tuple(skip_prefix or ()),
    )
    try:
        total = count_files(str(directory), config.skip_rules())
    except FatalWalkError as exc:
        console.print(f"[red]Cannot scan {escape(str(directory))}: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    console.print(f"{total} files")
