# src/chanlog/cli.py
"""
chanlog Command Line Interface (CLI).

Developer tooling around the logging core, built with `typer` and `rich`:

- **tokens**: show every placeholder with the value it would expand to now.
- **render**: expand a template exactly as a channel would.
- **list**:   tabulate snapshot artifacts in a directory.
- **show**:   print a snapshot's text, unpacking `.zip` bundles.

Usage
-----
    $ chanlog tokens
    $ chanlog render "%dom/%month %hour24:%minute [%level] %prompt" -l ERROR -m "disk full"
    $ chanlog list logs/
    $ chanlog show logs/2026-10-19-1.zip
"""

from __future__ import annotations

import stat
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chanlog.core.levels import Level
from chanlog.core.options import RenderOptions
from chanlog.core.placeholders import Placeholder
from chanlog.core.settings import load_settings
from chanlog.core.sinks import ENCODING
from chanlog.snapshots import LOG_SUFFIX, ZIP_SUFFIX

# Pick up CHANLOG_* overrides before any command runs
load_dotenv()

app = typer.Typer(
    help="chanlog: inspect templates and snapshot files.",
    rich_markup_mode="markdown",
)
console = Console()


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _read_snapshot(path: Path) -> str:
    """Return the text of a `.log` file or of the single entry in a `.zip`."""
    if path.suffix == ZIP_SUFFIX:
        with zipfile.ZipFile(path) as bundle:
            names = bundle.namelist()
            if len(names) != 1:
                raise ValueError(f"expected one entry in {path.name}, found {len(names)}")
            return bundle.read(names[0]).decode(ENCODING)
    return path.read_text(encoding=ENCODING)


def _is_read_only(path: Path) -> bool:
    return not stat.S_IMODE(path.stat().st_mode) & (stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH)


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def tokens() -> None:
    """List every placeholder marker with its current value."""
    options = RenderOptions()
    now = datetime.now()
    table = Table(title="Placeholders", header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Marker", style="magenta")
    table.add_column("Now")
    for item in Placeholder:
        value = options.expand(item.marker, Level.INFO, payload="<message>", now=now)
        table.add_row(item.name, item.marker, value)
    console.print(table)


@app.command()  # type: ignore[misc]
def render(
    template: Annotated[str, typer.Argument(help="Template text containing %markers.")],
    level: Annotated[
        str,
        typer.Option("--level", "-l", help="Level name for %level."),
    ] = "INFO",
    message: Annotated[
        str,
        typer.Option("--message", "-m", help="Text substituted for %prompt."),
    ] = "",
    title: Annotated[
        str,
        typer.Option("--title", "-t", help="Text substituted for %title."),
    ] = "",
) -> None:
    """Expand TEMPLATE the way a channel renders a line."""
    try:
        parsed = Level.parse(level)
    except ValueError as e:
        console.print(f"[bold red]Unknown level:[/bold red] {level}")
        raise typer.Exit(code=2) from e
    options = RenderOptions(title=title)
    console.print(options.render(template, parsed, False, payload=message), markup=False)


@app.command("list")  # type: ignore[misc]
def list_snapshots(
    directory: Annotated[
        Path | None,
        typer.Argument(help="Snapshot directory (default: CHANLOG_SNAPSHOT_DIR or logs/)."),
    ] = None,
) -> None:
    """Tabulate `.log` and `.zip` snapshot artifacts."""
    target = directory if directory is not None else load_settings().snapshot_dir
    if not target.is_dir():
        console.print(f"[bold red]❌ Not a directory:[/bold red] {target}")
        raise typer.Exit(code=1)

    artifacts = sorted(
        p for p in target.iterdir() if p.is_file() and p.suffix in (LOG_SUFFIX, ZIP_SUFFIX)
    )
    table = Table(title=str(target), header_style="bold cyan")
    table.add_column("File")
    table.add_column("Kind")
    table.add_column("Bytes", justify="right")
    table.add_column("Sealed")
    for path in artifacts:
        table.add_row(
            path.name,
            path.suffix.lstrip("."),
            str(path.stat().st_size),
            "yes" if _is_read_only(path) else "no",
        )
    console.print(table)
    console.print(f"[dim]{len(artifacts)} artifact(s)[/dim]")


@app.command()  # type: ignore[misc]
def show(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a `.log` or `.zip` snapshot.",
        ),
    ],
) -> None:
    """Print the text stored in a snapshot artifact."""
    try:
        text = _read_snapshot(file)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        console.print(f"\n[bold red]❌ Read Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    body = Text(text.rstrip("\n")) if text.strip() else Text("(empty)", style="dim")
    console.print(Panel(body, title=file.name, border_style="green"))


if __name__ == "__main__":
    app()
