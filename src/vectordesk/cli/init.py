"""vectordesk init — scaffold config files and the local database.

Creates:
  ~/.vectordesk/config.yaml  — global settings (created once, mode 0o600)
  vectordesk.yaml            — per-project settings template
  .vectordesk.db             — local SQLite backend with schema applied
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from vectordesk.config import ensure_global_config
from vectordesk.db.connection import Database
from vectordesk.db.migrations import run_migrations

console = Console()

_PROJECT_TEMPLATE = """\
# vectordesk per-project configuration.
# API keys never go here — export VECTORDESK_API_KEY instead.

backend:
  kind: sqlite          # sqlite | memory | http
  db_path: .vectordesk.db

folders:
  chunk_size: 1000      # 100–5000
  chunk_overlap: 200    # at most chunk_size / 2

processing:
  delay_seconds: 3.0
  failure_rate: 0.1
"""


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = Path("."),
) -> None:
    """Create config files and the local database."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    global_path = ensure_global_config()
    console.print(f"[green]✓[/] Global config: {global_path}")

    project_cfg = project_dir / "vectordesk.yaml"
    if project_cfg.exists():
        console.print(f"[dim]  {project_cfg.name} already exists — left unchanged.[/]")
    else:
        project_cfg.write_text(_PROJECT_TEMPLATE, encoding="utf-8")
        console.print(f"[green]✓[/] Created {project_cfg}")

    db_path = project_dir / ".vectordesk.db"
    with Database(db_path) as conn:
        run_migrations(conn)
    console.print(f"[green]✓[/] Database ready: {db_path}")
    console.print("\n  Next:  vectordesk projects create <name>")
