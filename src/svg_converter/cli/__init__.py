from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import AppConfig, load_config
from ..core import ConversionService
from ..errors import ConversionError
from ..logging import configure_logging
from ..models import ConversionRequest, ConvertEvent, ItemEvent, ProgressEvent

console = Console()

app = typer.Typer(help="Local SVG-to-PNG conversion toolkit")


def _load_config(path: Path | None, *, verbose: bool = False) -> AppConfig:
    cfg = load_config(path)
    configure_logging("DEBUG" if verbose else cfg.runtime.log_level)
    return cfg


def _fail(exc: ConversionError) -> NoReturn:
    console.print(f"[red]Failed[/red]: {exc.code} - {exc}")
    raise typer.Exit(1) from exc


@app.command()
def size(
    file: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Print the intrinsic pixel size of an SVG file."""
    service = ConversionService(_load_config(config))
    try:
        result = service.get_size(file)
    except ConversionError as exc:
        _fail(exc)
    console.print(f"{result.width}x{result.height}")


@app.command()
def count(
    folder: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Count SVG files below a folder."""
    service = ConversionService(_load_config(config))
    try:
        total = service.count_files(folder)
    except ConversionError as exc:
        _fail(exc)
    console.print(str(total))


@app.command()
def scan(
    folder: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Report whether every SVG below a folder shares one size."""
    service = ConversionService(_load_config(config))
    try:
        info = service.scan_folder_sizes(folder)
    except ConversionError as exc:
        _fail(exc)
    table = Table(title=f"{info.total} SVG file(s)")
    table.add_column("Size")
    for unique in info.unique_sizes:
        table.add_row(f"{unique.width}x{unique.height}")
    console.print(table)
    if info.all_same:
        console.print("[green]All files share one size.[/green]")
    else:
        console.print("[yellow]Files have different sizes.[/yellow]")


@app.command()
def convert(
    inputs: list[Path],
    folder: bool = typer.Option(False, "--folder", help="Walk the single input folder recursively"),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Write all PNGs here"),
    scale: float | None = typer.Option(None, "--scale", "-s", help="Uniform scale factor"),
    width: int | None = typer.Option(None, "--width", help="Exact output width"),
    height: int | None = typer.Option(None, "--height", help="Exact output height"),
    crop: bool = typer.Option(False, "--crop", help="Exact mode: cover and center-crop instead of stretching"),
    background: str | None = typer.Option(None, "--background", "--bg", help="Background colour #RRGGBB"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-file timings"),
) -> None:
    """Convert SVG files (or a folder of them) to PNG."""
    cfg = _load_config(config, verbose=verbose)
    if folder and len(inputs) != 1:
        console.print("[red]--folder takes exactly one input folder[/red]")
        raise typer.Exit(2)
    exact = width is not None or height is not None
    request = ConversionRequest(
        input_mode="folder" if folder else "file",
        input_path=str(inputs[0]),
        input_paths=() if folder else tuple(str(path) for path in inputs),
        output_dir=str(output_dir) if output_dir else None,
        size_mode="exact" if exact else "scale",
        scale=scale,
        width=width,
        height=height,
        crop=crop if exact else None,
        background=background,
    )
    service = ConversionService(cfg)
    try:
        plan = service.prepare(request)
    except ConversionError as exc:
        _fail(exc)

    items: list[ItemEvent] = []
    progress = Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )
    task_id = progress.add_task("start", total=len(plan.inputs))

    def on_event(event: ConvertEvent) -> None:
        if isinstance(event, ItemEvent):
            items.append(event)
            return
        if isinstance(event, ProgressEvent):
            name = Path(event.last_svg).name if event.last_svg else ""
            progress.update(
                task_id,
                completed=event.ok + event.failed,
                description=f"{event.phase} {name}".strip(),
            )

    with progress:
        summary = service.run_sync(plan, on_event)

    table = Table(title="Conversion results")
    table.add_column("#")
    table.add_column("SVG")
    table.add_column("PNG")
    table.add_column("Size")
    for item in items:
        if item.ok:
            table.add_row(str(item.index), item.svg, item.png, f"{item.out_width}x{item.out_height}")
        else:
            table.add_row(str(item.index), item.svg, f"[red]{item.error}[/red]", "-")
    console.print(table)
    console.print(
        f"Processed {summary.total} files: {summary.ok} succeeded, {summary.failed} failed."
    )
    if summary.failed:
        raise typer.Exit(1)


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    """Run the local HTTP API."""
    import uvicorn

    from ..api import create_app

    cfg = _load_config(config)
    api = create_app(config, require_enabled=False)
    uvicorn.run(api, host=host or cfg.api.host, port=port or cfg.api.port)


def main() -> None:
    app()


if __name__ == "__main__":
    app()
