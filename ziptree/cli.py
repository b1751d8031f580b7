"""ziptree CLI: pack directory trees into a ZIP and unpack them again.

Commands:
- pack SOURCE... --out ARCHIVE   (SOURCE is ``path`` or ``path=prefix``)
- pack --task task.json          (JSON task validated against the schema)
- unpack ARCHIVE DEST
- list ARCHIVE
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from ziptree.errors import ArchiveError
from ziptree.logging import set_verbose
from ziptree.package.pack import pack as pack_task
from ziptree.package.unpack import list_entries
from ziptree.package.unpack import unpack as unpack_archive
from ziptree.types import ArchiveTask, PackSource
from ziptree.validator import load_task

app = typer.Typer(add_completion=False, help="Pack directory trees into ZIP archives and back")
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every entry (DEBUG)"),
) -> None:
    set_verbose(verbose)


def parse_source(value: str) -> PackSource:
    """``path=prefix`` -> PackSource; a bare directory keeps its own name."""
    if "=" in value:
        path, prefix = value.split("=", 1)
        return PackSource(source=path, prefix=prefix)
    p = Path(value)
    return PackSource(source=value, prefix=p.resolve().name if p.is_dir() else "")


def _fail(exc: ArchiveError) -> None:
    rprint(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


@app.command()
def pack(
    sources: list[str] | None = typer.Argument(
        None, help="Files or directories, optionally as path=prefix", show_default=False
    ),
    out: str | None = typer.Option(None, "--out", "-o", help="Archive to create"),
    task: str | None = typer.Option(None, "--task", help="JSON pack task file"),
) -> None:
    try:
        if task:
            if sources or out:
                raise typer.BadParameter("--task cannot be combined with SOURCE/--out")
            archive_task = load_task(Path(task))
        else:
            if not sources or not out:
                raise typer.BadParameter("give SOURCE... and --out, or --task")
            archive_task = ArchiveTask(destination=out, sources=[parse_source(s) for s in sources])
        pack_task(archive_task)
    except ArchiveError as exc:
        _fail(exc)
    rprint(f"[green]Packed:[/green] {archive_task.destination}")


@app.command()
def unpack(
    archive: str = typer.Argument(..., help="ZIP archive to extract"),
    dest: str = typer.Argument(..., help="Destination directory (created if missing)"),
) -> None:
    try:
        unpack_archive(Path(archive), Path(dest))
    except ArchiveError as exc:
        _fail(exc)
    rprint(f"[green]Unpacked:[/green] {archive} -> {dest}")


@app.command("list")
def list_(archive: str = typer.Argument(..., help="ZIP archive to inspect")) -> None:
    try:
        entries = list_entries(Path(archive))
    except ArchiveError as exc:
        _fail(exc)

    table = Table(title=f"{archive} ({len(entries)} entries)")
    table.add_column("Entry", style="cyan")
    table.add_column("Size", justify="right")
    for e in entries:
        table.add_row(e.name, "-" if e.is_dir else str(e.size))
    console.print(table)


if __name__ == "__main__":
    app()
