from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from ..adapters import get_renderer
from ..config import DEFAULT_CONFIG, AppConfig, ConfigError, build_config, dump_config
from ..constraint import PROJECT_CONFIG_FILES
from ..context import RunContext, configure_logging
from ..converter import ConverterService
from ..loader import ConfigLoader
from ..merger import MergerService
from ..migration import migrate_all, migrate_config, validate_config_file
from ..models import Summary
from ..utils import atomic_write_bytes

console = Console()

app = typer.Typer(help="Batch Markdown/HTML to PDF conversion and per-directory PDF merging")
config_app = typer.Typer(help="Check and upgrade configuration files")
app.add_typer(config_app, name="config")

HTML_EXTENSIONS = [".html", ".htm"]
INTERRUPTED_EXIT_CODE = 130


def _overrides(
    *,
    input_path: str | None = None,
    output_path: str | None = None,
    extensions: list[str] | None = None,
    **options: Any,
) -> dict[str, Any]:
    """Build command-line overrides from the flags that were actually given."""

    overrides: dict[str, Any] = {}
    if input_path is not None or extensions is not None:
        section: dict[str, Any] = {}
        if input_path is not None:
            section["path"] = input_path
        if extensions is not None:
            section["extensions"] = extensions
        overrides["input"] = section
    if output_path is not None:
        overrides["output"] = {"path": output_path}
    given = {key: value for key, value in options.items() if value is not None}
    if given:
        overrides["options"] = given
    return overrides


def _load_config(context: RunContext, overrides: dict[str, Any], config_path: Path | None) -> AppConfig:
    try:
        return ConfigLoader(context=context).load(overrides, config_path=config_path)
    except ConfigError as exc:
        console.print(f"[red]Configuration error[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc


def _run(coroutine: Coroutine[Any, Any, Summary], context: RunContext) -> Summary:
    try:
        return asyncio.run(coroutine)
    except KeyboardInterrupt:
        context.logger.warning("Interrupted, stopping")
        raise typer.Exit(INTERRUPTED_EXIT_CODE) from None


def _print_summary(summary: Summary, title: str) -> None:
    table = Table(title=title)
    table.add_column("Total", justify="right")
    table.add_column("Succeeded", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Success rate", justify="right")
    table.add_column("Duration", justify="right")
    table.add_row(
        str(summary.total),
        str(summary.success),
        str(summary.failed),
        str(summary.skipped),
        f"{summary.success_rate:.1f}%",
        f"{summary.duration_ms / 1000:.2f}s",
    )
    console.print(table)
    if summary.failed_operations:
        console.print("[red]Failed operations:[/red]")
        for operation in summary.failed_operations:
            console.print(f"  {operation.path}: {operation.error}", markup=False, highlight=False, soft_wrap=True)


def _convert(kind: str, overrides: dict[str, Any], config_path: Path | None, verbose: bool) -> None:
    configure_logging(verbose, console)
    context = RunContext.create()
    cfg = _load_config(context, overrides, config_path)
    renderer = get_renderer(kind)  # type: ignore[arg-type]
    service = ConverterService(cfg, renderer=renderer, context=context)
    summary = _run(service.convert_all(), context)
    _print_summary(summary, f"{renderer.label} conversion summary")


@app.command()
def convert(
    input_path: str | None = typer.Option(None, "-i", "--input", help="Directory with Markdown files"),
    output_path: str | None = typer.Option(None, "-o", "--output", help="Directory for generated PDFs"),
    config: Path | None = typer.Option(None, "-c", "--config", help="Path to a config file"),
    theme: str | None = typer.Option(None, "-t", "--theme", help="Rendering theme"),
    concurrent: int | None = typer.Option(None, "--concurrent", help="Files converted at the same time"),
    timeout: int | None = typer.Option(None, "--timeout", help="Per-file timeout in milliseconds"),
    page_format: str | None = typer.Option(None, "--format", help="Page format: A4, Letter, A3 or A5"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Convert every Markdown file under the input directory to PDF."""

    overrides = _overrides(
        input_path=input_path,
        output_path=output_path,
        theme=theme,
        concurrent=concurrent,
        timeout=timeout,
        format=page_format,
    )
    _convert("markdown", overrides, config, verbose)


@app.command()
def html(
    input_path: str | None = typer.Option(None, "-i", "--input", help="Directory with HTML files"),
    output_path: str | None = typer.Option(None, "-o", "--output", help="Directory for generated PDFs"),
    config: Path | None = typer.Option(None, "-c", "--config", help="Path to a config file"),
    concurrent: int | None = typer.Option(None, "--concurrent", help="Files converted at the same time"),
    timeout: int | None = typer.Option(None, "--timeout", help="Per-file timeout in milliseconds"),
    page_format: str | None = typer.Option(None, "--format", help="Page format: A4, Letter, A3 or A5"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Convert every HTML file under the input directory to PDF."""

    overrides = _overrides(
        input_path=input_path,
        output_path=output_path,
        extensions=HTML_EXTENSIONS,
        concurrent=concurrent,
        timeout=timeout,
        format=page_format,
    )
    _convert("html", overrides, config, verbose)


@app.command()
def merge(
    input_path: str | None = typer.Option(None, "-i", "--input", help="Directory tree with PDF files"),
    output_path: str | None = typer.Option(None, "-o", "--output", help="Directory for merged PDFs"),
    config: Path | None = typer.Option(None, "-c", "--config", help="Path to a config file"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing merged files"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Merge the PDFs of each sub-directory into one file per directory."""

    configure_logging(verbose, console)
    context = RunContext.create()
    overrides = _overrides(input_path=input_path, output_path=output_path, overwrite=overwrite or None)
    cfg = _load_config(context, overrides, config)
    service = MergerService(cfg, context=context)
    summary = _run(service.merge_all(), context)
    _print_summary(summary, "Merge summary")


@app.command()
def init(
    global_: bool = typer.Option(False, "--global", help="Write the user config instead of the project config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write the default configuration file."""

    target = ConfigLoader().user_config_path if global_ else Path(PROJECT_CONFIG_FILES[0])
    if target.exists() and not force:
        console.print(f"[yellow]Config file already exists[/yellow]: {target} (use --force to replace it)")
        raise typer.Exit(1)
    content = dump_config(build_config(DEFAULT_CONFIG)) + "\n"
    atomic_write_bytes(target, content.encode("utf-8"))
    console.print(f"[green]Created[/green] {target}")


def _project_config(path: Path | None) -> Path:
    if path is not None:
        return path
    for name in PROJECT_CONFIG_FILES:
        candidate = Path(name)
        if candidate.is_file():
            return candidate
    console.print("[red]No config file found[/red] in the current directory")
    raise typer.Exit(1)


@config_app.command("validate")
def validate_config(
    path: Path | None = typer.Argument(None, help="Config file to check (defaults to the project config)"),
) -> None:
    """Report every invalid field of a config file."""

    target = _project_config(path)
    result = validate_config_file(target)
    if result.valid:
        console.print(f"[green]Valid[/green] {target}")
        return
    console.print(f"[red]Invalid[/red] {target}")
    for error in result.errors:
        console.print(f"  {error}", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1)


@config_app.command("migrate")
def migrate(
    path: Path = typer.Argument(Path("."), help="Config file, or a directory whose config files are migrated"),
    backup: bool = typer.Option(True, "--backup/--no-backup", help="Keep a timestamped copy of each rewritten file"),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Rewrite legacy config files in the current format."""

    configure_logging(verbose, console)
    context = RunContext.create()
    if path.is_dir():
        report = migrate_all(path, backup=backup, context=context)
        for migrated in report.migrated:
            console.print(f"[green]Migrated[/green] {migrated}")
        for failed, error in report.failed:
            console.print(f"  {failed}: {error}", markup=False, highlight=False, soft_wrap=True)
        if not report.migrated and not report.failed:
            console.print("Nothing to migrate")
        if report.failed:
            raise typer.Exit(1)
        return
    if not path.is_file():
        console.print(f"[red]Config file does not exist[/red]: {path}")
        raise typer.Exit(1)
    if validate_config_file(path).valid:
        console.print(f"Already up to date: {path}")
        return
    try:
        migrate_config(path, backup=backup, context=context)
    except ConfigError as exc:
        console.print(f"[red]Migration failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]Migrated[/green] {path}")


if __name__ == "__main__":
    app()
