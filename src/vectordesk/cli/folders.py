"""vectordesk folders — per-folder chunking and metadata settings.

Metadata fields are given as ``--field <key>:<type>[:<opt1>,<opt2>][:optional]``:

  vectordesk folders create docs Manuals --chunk-size 800 --chunk-overlap 100 \\
      --field category:select:Hardware,Software --field pages:number:optional
  vectordesk folders show docs Manuals
  vectordesk folders update docs Manuals --chunk-size 400
  vectordesk folders delete docs Manuals --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vectordesk.cli.errors import err_bad_field_spec, err_validation, warn_settings_change
from vectordesk.cli.format import format_date
from vectordesk.cli.workspace import (
    load_cli_config,
    open_workspace,
    resolve_folder,
    resolve_project,
    run,
)
from vectordesk.errors import Result
from vectordesk.folder_config import (
    add_field,
    build_folder_config,
    fields_from_config,
    update_field,
)
from vectordesk.models import CreateFolderPayload, FieldType, Folder, MetadataField

console = Console()

folders_app = typer.Typer(help="Manage folders and their processing settings.", no_args_is_help=True)

DbOption = Annotated[Path | None, typer.Option("--db", help="Path to .vectordesk.db.")]
BackendOption = Annotated[
    str | None, typer.Option("--backend", help="sqlite | memory | http (overrides config).")
]
FieldOption = Annotated[
    list[str] | None,
    typer.Option("--field", "-f", help="<key>:<type>[:<opt1>,<opt2>][:optional] (repeatable)."),
]


def parse_field_specs(specs: list[str]) -> list[MetadataField]:
    """Turn ``--field`` strings into editable field rows, in order.

    Raises:
        ValueError: A spec has an unknown type or too many parts.
    """
    fields: list[MetadataField] = []
    for spec in specs:
        parts = spec.split(":")
        key = parts[0].strip()
        type_name = parts[1].strip().lower() if len(parts) > 1 and parts[1].strip() else "text"
        try:
            field_type = FieldType(type_name)
        except ValueError:
            raise ValueError(spec) from None

        options: list[str] = []
        required = True
        for extra in parts[2:]:
            word = extra.strip()
            if word == "optional":
                required = False
            elif word == "required":
                required = True
            elif field_type is FieldType.SELECT and not options:
                options = [o.strip() for o in word.split(",") if o.strip()]
            else:
                raise ValueError(spec)

        fields = add_field(fields, field_type)
        fields = update_field(fields, len(fields) - 1, key=key, options=options, required=required)
    return fields


@folders_app.command("list")
def list_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """List a project's folders (read through the folder cache)."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            await ws.cache.refresh(found.id)
            return found, ws.cache.get(found.id)

    found, folders = run(_go())
    if not folders:
        console.print(
            f"[dim]No folders in {found.name}.[/]\n"
            f"  Run:  vectordesk folders create {found.id} <name>"
        )
        return

    table = Table(title=f"Folders in {found.name}")
    table.add_column("Name", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Chunk size", justify="right")
    table.add_column("Overlap", justify="right")
    table.add_column("Metadata")
    table.add_column("Documents", justify="right")
    table.add_column("Created")
    for f in folders:
        table.add_row(
            f.name,
            f.id,
            str(f.chunk_size),
            str(f.chunk_overlap),
            ", ".join(f.metadata_params) or "-",
            str(f.document_count),
            format_date(f.created_at),
        )
    console.print(table)


@folders_app.command("create")
def create_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    name: Annotated[str, typer.Argument(help="Folder name (at least 3 characters).")],
    chunk_size: Annotated[
        int | None, typer.Option("--chunk-size", help="Characters per chunk (100–5000).")
    ] = None,
    chunk_overlap: Annotated[
        int | None, typer.Option("--chunk-overlap", help="Overlap in characters (≤ size/2).")
    ] = None,
    field: FieldOption = None,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Create a folder with its chunking settings and metadata fields."""
    cfg = load_cli_config(db, backend)
    fields = _parse_or_exit(field or [])
    size = chunk_size if chunk_size is not None else cfg.folders.chunk_size
    overlap = chunk_overlap if chunk_overlap is not None else cfg.folders.chunk_overlap
    payload = _validated(build_folder_config(name, size, overlap, fields))

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            payload.project_id = found.id
            folder = await ws.store.create_folder(payload)
            await ws.cache.refresh(found.id)
            return folder

    folder = run(_go())
    console.print(f"[green]✓[/] Created folder [bold]{folder.name}[/] ({folder.id})")
    _print_settings(folder)


@folders_app.command("show")
def show_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    folder: Annotated[str, typer.Argument(help="Folder id or name.")],
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Show a folder's processing settings and metadata fields."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            return resolve_folder(ws.store, found.id, folder)

    found_folder = run(_go())
    console.print(f"[bold]{found_folder.name}[/]  [dim]{found_folder.id}[/]")
    _print_settings(found_folder)


@folders_app.command("update")
def update_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    folder: Annotated[str, typer.Argument(help="Folder id or name.")],
    name: Annotated[str | None, typer.Option("--name", help="New folder name.")] = None,
    chunk_size: Annotated[int | None, typer.Option("--chunk-size")] = None,
    chunk_overlap: Annotated[int | None, typer.Option("--chunk-overlap")] = None,
    field: FieldOption = None,
    clear_fields: Annotated[
        bool, typer.Option("--clear-fields", help="Remove every metadata field.")
    ] = False,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Edit a folder's settings. Given --field values are appended to the schema."""
    cfg = load_cli_config(db, backend)
    extra_fields = _parse_or_exit(field or [])
    console.print(warn_settings_change())

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            current = resolve_folder(ws.store, found.id, folder)
            fields = [] if clear_fields else fields_from_config(current)
            payload = _validated(
                build_folder_config(
                    name if name is not None else current.name,
                    chunk_size if chunk_size is not None else current.chunk_size,
                    chunk_overlap if chunk_overlap is not None else current.chunk_overlap,
                    fields + extra_fields,
                    project_id=found.id,
                )
            )
            updated = await ws.store.update_folder(found.id, current.id, payload)
            await ws.cache.refresh(found.id)
            return updated

    updated = run(_go())
    console.print(f"[green]✓[/] Updated folder [bold]{updated.name}[/]")
    _print_settings(updated)


@folders_app.command("delete")
def delete_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    folder: Annotated[str, typer.Argument(help="Folder id or name.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Delete a folder and every document in it."""
    cfg = load_cli_config(db, backend)

    async def _lookup():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            return found, resolve_folder(ws.store, found.id, folder)

    found, target = run(_lookup())
    console.print(
        f"\nDelete folder: [bold]{target.name}[/]  ({target.document_count} documents)"
    )
    if not yes and not typer.confirm("Confirm deletion?", default=False):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    async def _delete():
        async with open_workspace(cfg) as ws:
            await ws.store.delete_folder(found.id, target.id)
            ws.cache.invalidate(found.id)

    run(_delete())
    console.print(f"[green]✓[/] Deleted folder: {target.name}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_or_exit(specs: list[str]) -> list[MetadataField]:
    try:
        return parse_field_specs(specs)
    except ValueError as exc:
        console.print(err_bad_field_spec(str(exc)))
        raise typer.Exit(1) from exc


def _validated(result: Result[CreateFolderPayload]) -> CreateFolderPayload:
    if not result.ok:
        console.print(err_validation(result.error))
        raise typer.Exit(1)
    return result.unwrap()


def _print_settings(folder: Folder) -> None:
    console.print(
        f"  Chunk size: {folder.chunk_size}  |  Overlap: {folder.chunk_overlap}  |  "
        f"Documents: {folder.document_count}"
    )
    config = folder.metadata_config or {}
    for key in folder.metadata_params:
        spec = config.get(key)
        if spec is None:
            console.print(f"  • {key}")
            continue
        options = escape(f" [{', '.join(spec.options)}]") if spec.options else ""
        flag = "required" if spec.required else "optional"
        console.print(f"  • {key}: {spec.type.value}{options} ({flag})")
