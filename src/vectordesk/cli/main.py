"""vectordesk CLI entry point."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from vectordesk.auth import API_KEY_ENV, Session
from vectordesk.cli.documents import documents_app
from vectordesk.cli.errors import err_invalid_api_key
from vectordesk.cli.folders import folders_app
from vectordesk.cli.init import init_cmd
from vectordesk.cli.projects import projects_app
from vectordesk.cli.workspace import load_cli_config, open_workspace, run
from vectordesk.config import ConfigError
from vectordesk.models import DocumentStatus
from vectordesk.transport import create_transport

console = Console()


def _version() -> str:
    try:
        return importlib.metadata.version("vectordesk")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vectordesk {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="vectordesk",
    help=(
        "vectordesk — management console for document vectorization.\n\n"
        "  vectordesk projects   Group folders into projects.\n"
        "  vectordesk folders    Chunking settings and metadata fields per folder.\n"
        "  vectordesk documents  Upload PDFs and follow their processing."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """vectordesk — management console for document vectorization."""


app.command("init")(init_cmd)
app.add_typer(projects_app, name="projects")
app.add_typer(folders_app, name="folders")
app.add_typer(documents_app, name="documents")


@app.command("login")
def login_cmd(
    api_url: Annotated[
        str | None, typer.Option("--api-url", help="API base URL (overrides config).")
    ] = None,
) -> None:
    """Check the API key in VECTORDESK_API_KEY against the remote API."""
    cfg = load_cli_config(backend="http")
    if api_url is not None:
        cfg.api.url = api_url

    async def _go() -> bool:
        try:
            transport = create_transport(
                "http", api_url=cfg.api.url, timeout=cfg.api.timeout
            )
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        try:
            return await Session(transport).login_from_env()
        finally:
            await transport.close()

    if not run(_go()):
        console.print(err_invalid_api_key(API_KEY_ENV))
        raise typer.Exit(1)
    console.print(f"[green]✓[/] API key accepted by {cfg.api.url}")


@app.command("status")
def status_cmd(
    db: Annotated[Path | None, typer.Option("--db", help="Path to .vectordesk.db.")] = None,
    backend: Annotated[
        str | None, typer.Option("--backend", help="sqlite | memory | http (overrides config).")
    ] = None,
) -> None:
    """Show backend settings and totals across all projects."""
    cfg = load_cli_config(db, backend)

    async def _go():
        async with open_workspace(cfg) as ws:
            projects = ws.store.get_projects()
            by_status = {status: 0 for status in DocumentStatus}
            for project in projects:
                for folder in ws.store.get_folders(project.id):
                    for document in ws.store.get_documents(folder.id):
                        by_status[document.status] += 1
            return projects, by_status

    projects, by_status = run(_go())

    where = cfg.api.url if cfg.backend.kind == "http" else cfg.backend.db_path
    if cfg.backend.kind == "memory":
        where = "in-memory (not persisted)"
    lines = [
        f"Backend:    [bold]{cfg.backend.kind}[/]  [dim]{where}[/]",
        f"Projects:   {len(projects)}",
        f"Folders:    {sum(p.folder_count for p in projects)}",
        f"Documents:  {sum(p.document_count for p in projects)}",
        f"  processing {by_status[DocumentStatus.PROCESSING]}  |  "
        f"completed {by_status[DocumentStatus.COMPLETED]}  |  "
        f"error {by_status[DocumentStatus.ERROR]}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]vectordesk[/]", expand=False))


@app.command("version")
def version_cmd() -> None:
    """Show the installed vectordesk version."""
    typer.echo(f"vectordesk {_version()}")


if __name__ == "__main__":
    app()
