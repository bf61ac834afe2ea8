"""vectordesk projects — list, create and inspect projects.

Usage:
  vectordesk projects list
  vectordesk projects create "Support articles"
  vectordesk projects show "Support articles"
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from vectordesk.cli.errors import err_validation
from vectordesk.cli.format import format_date
from vectordesk.cli.workspace import load_cli_config, open_workspace, resolve_project, run
from vectordesk.folder_config import validate_name
from vectordesk.models import CreateProjectPayload

console = Console()

projects_app = typer.Typer(help="Manage projects.", no_args_is_help=True)

DbOption = Annotated[Path | None, typer.Option("--db", help="Path to .vectordesk.db.")]
BackendOption = Annotated[
    str | None, typer.Option("--backend", help="sqlite | memory | http (overrides config).")
]


@projects_app.command("list")
def list_cmd(db: DbOption = None, backend: BackendOption = None) -> None:
    """List all projects with their folder and document counts."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            return ws.store.get_projects()

    projects = run(_go())
    if not projects:
        console.print("[dim]No projects yet.[/]\n  Run:  vectordesk projects create <name>")
        return

    table = Table(title="Projects")
    table.add_column("Name", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Folders", justify="right")
    table.add_column("Documents", justify="right")
    table.add_column("Created")
    for p in projects:
        table.add_row(
            p.name, p.id, str(p.folder_count), str(p.document_count), format_date(p.created_at)
        )
    console.print(table)


@projects_app.command("create")
def create_cmd(
    name: Annotated[str, typer.Argument(help="Project name (at least 3 characters).")],
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Create a new project."""
    checked = validate_name(name, label="Project")
    if not checked.ok:
        console.print(err_validation(checked.error))
        raise typer.Exit(1)

    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            return await ws.store.create_project(CreateProjectPayload(name=checked.unwrap()))

    project = run(_go())
    console.print(f"[green]✓[/] Created project [bold]{project.name}[/] ({project.id})")


@projects_app.command("show")
def show_cmd(
    project: Annotated[str, typer.Argument(help="Project id or name.")],
    db: DbOption = None,
    backend: BackendOption = None,
) -> None:
    """Show one project and its folders."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            found = resolve_project(ws.store, project)
            return found, ws.store.get_folders(found.id)

    found, folders = run(_go())
    console.print(f"[bold]{found.name}[/]  [dim]{found.id}[/]")
    console.print(
        f"  Folders: {found.folder_count}  |  Documents: {found.document_count}  |  "
        f"Created: {format_date(found.created_at)}"
    )
    for folder in folders:
        console.print(f"  • {folder.name}  [dim]({folder.document_count} documents)[/]")
