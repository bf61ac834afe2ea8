"""vectordesk documents — upload PDFs into a folder and track processing.

Usage:
  vectordesk documents list docs Manuals
  vectordesk documents upload docs Manuals guide.pdf --meta category=Hardware
  vectordesk documents upload docs Manuals big.pdf --no-wait
  vectordesk documents process docs Manuals
  vectordesk documents delete docs Manuals guide.pdf --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vectordesk.cli.format import format_date, format_file_size, format_status, truncate_text
from vectordesk.cli.workspace import (
    load_cli_config,
    open_workspace,
    resolve_document,
    resolve_folder,
    resolve_project,
    run,
)
from vectordesk.models import Document, DocumentStatus

console = Console()

documents_app = typer.Typer(help="Upload and manage documents.", no_args_is_help=True)

DbOption = Annotated[Path | None, typer.Option("--db", help="Path to .vectordesk.db.")]
BackendOption = Annotated[
    str | None, typer.Option("--backend", help="sqlite | memory | http (overrides config).")
]
ProjectArg = Annotated[str, typer.Argument(help="Project id or name.")]
FolderArg = Annotated[str, typer.Argument(help="Folder id or name.")]


@documents_app.command("list")
def list_cmd(
    project: ProjectArg,
    folder: FolderArg,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """List the documents in a folder with their processing status."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            target = resolve_folder(ws.store, found.id, folder)
            return target, ws.store.get_documents(target.id)

    target, documents = run(_go())
    if not documents:
        console.print(
            f"[dim]No documents in {target.name}.[/]\n"
            f"  Run:  vectordesk documents upload {project} {folder} <file.pdf>"
        )
        return

    table = Table(title=f"Documents in {target.name}")
    table.add_column("Name", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Size", justify="right")
    table.add_column("Vectors", justify="right")
    table.add_column("Uploaded")
    for d in documents:
        table.add_row(
            truncate_text(d.name, 40),
            d.id,
            format_status(d.status),
            format_file_size(d.file_size),
            str(d.vector_count) if d.vector_count is not None else "-",
            format_date(d.created_at),
        )
    console.print(table)


@documents_app.command("upload")
def upload_cmd(
    project: ProjectArg,
    folder: FolderArg,
    files: Annotated[list[Path], typer.Argument(help="PDF file(s) to upload.")],
    meta: Annotated[
        list[str] | None,
        typer.Option("--meta", "-m", help="Metadata value as key=value (repeatable)."),
    ] = None,
    wait: Annotated[
        bool, typer.Option("--wait/--no-wait", help="Wait for processing to finish.")
    ] = True,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Upload PDFs; every file gets the same metadata values."""
    metadata = _parse_meta(meta or [])
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            target = resolve_folder(ws.store, found.id, folder)
            uploaded = [
                await ws.uploader.upload(path, target.id, found.id, metadata) for path in files
            ]
            if not wait:
                return uploaded
            await ws.processor.drain()
            return [ws.store.get_document(d.id) for d in uploaded]

    for document in run(_go()):
        _print_result(document)
    if not wait:
        console.print(
            "[dim]Processing continues when you run:  "
            f"vectordesk documents process {project} {folder}[/]"
        )


@documents_app.command("process")
def process_cmd(
    project: ProjectArg,
    folder: FolderArg,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Finish processing every document still marked processing in a folder."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            target = resolve_folder(ws.store, found.id, folder)
            waiting = [
                d for d in ws.store.get_documents(target.id)
                if d.status is DocumentStatus.PROCESSING
            ]
            for document in waiting:
                ws.processor.schedule(document)
            await ws.processor.drain()
            return [ws.store.get_document(d.id) for d in waiting]

    finished = run(_go())
    if not finished:
        console.print("[dim]Nothing to process.[/]")
        return
    for document in finished:
        _print_result(document)


@documents_app.command("delete")
def delete_cmd(
    project: ProjectArg,
    folder: FolderArg,
    document: Annotated[str, typer.Argument(help="Document id or file name.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Delete one document."""
    cfg = load_cli_config(db, backend)

    async def _lookup():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            target = resolve_folder(ws.store, found.id, folder)
            return resolve_document(ws.store, target.id, document)

    doc = run(_lookup())
    if not yes and not typer.confirm(f"Delete document '{doc.name}'?", default=False):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    async def _delete():
        async with open_workspace(cfg) as ws:
            await ws.store.delete_document(doc.id)

    run(_delete())
    console.print(f"[green]✓[/] Deleted document: {doc.name}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_meta(pairs: list[str]) -> dict[str, str] | None:
    metadata: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            console.print(
                f"[red]Error:[/] Cannot parse metadata '{pair}'.\n"
                "  Format:  --meta <key>=<value>"
            )
            raise typer.Exit(1)
        metadata[key.strip()] = value
    return metadata or None


def _print_result(document: Document) -> None:
    line = f"{format_status(document.status)}  {document.name}  [dim]{document.id}[/]"
    if document.status is DocumentStatus.COMPLETED:
        line += f"  ({document.vector_count} vectors)"
    elif document.status is DocumentStatus.ERROR:
        line += f"  [red]{escape(document.error_message or '')}[/]"
    console.print(line)
