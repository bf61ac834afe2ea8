"""CLI composition root.

Builds transport → store → cache / processor / uploader for one command
invocation, and maps core exceptions to actionable messages.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console

from vectordesk.auth import Session
from vectordesk.cache import FolderCache
from vectordesk.cli.errors import (
    err_config,
    err_invalid_api_key,
    err_not_found,
    err_transport,
    err_upload,
    err_validation,
)
from vectordesk.config import ConfigError, VectordeskConfig, load_config
from vectordesk.errors import (
    AuthenticationError,
    InvalidFolderConfig,
    NotFound,
    TransportFailure,
    UploadError,
)
from vectordesk.logging_utils import setup_logging
from vectordesk.models import Document, Folder, Project
from vectordesk.processing import ProcessingSimulator
from vectordesk.store import EntityStore
from vectordesk.transport import create_transport
from vectordesk.upload import Uploader

console = Console()

T = TypeVar("T")


@dataclass
class Workspace:
    cfg: VectordeskConfig
    session: Session
    store: EntityStore
    cache: FolderCache
    processor: ProcessingSimulator
    uploader: Uploader


def load_cli_config(db: Path | None = None, backend: str | None = None) -> VectordeskConfig:
    """Load config, apply CLI flag overrides and set up logging."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    if db is not None:
        cfg.backend.db_path = str(db)
    if backend is not None:
        cfg.backend.kind = backend
    setup_logging(cfg.logging)
    return cfg


@asynccontextmanager
async def open_workspace(cfg: VectordeskConfig) -> AsyncIterator[Workspace]:
    """Compose and load a workspace; the transport is closed on exit.

    The http backend requires ``VECTORDESK_API_KEY``; local backends do not.
    """
    try:
        transport = create_transport(
            cfg.backend.kind,
            db_path=cfg.backend.db_path,
            api_url=cfg.api.url,
            timeout=cfg.api.timeout,
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    store = EntityStore(transport)
    try:
        session = Session(transport)
        if cfg.backend.kind == "http" and not await session.login_from_env():
            raise AuthenticationError("API key rejected")
        await store.load()

        processor = ProcessingSimulator(
            store,
            delay=cfg.processing.delay_seconds,
            failure_rate=cfg.processing.failure_rate,
            min_vectors=cfg.processing.min_vectors,
            max_vectors=cfg.processing.max_vectors,
        )
        yield Workspace(
            cfg=cfg,
            session=session,
            store=store,
            cache=FolderCache.for_store(store),
            processor=processor,
            uploader=Uploader(store, processor, max_bytes=cfg.upload.max_bytes),
        )
    finally:
        await store.close()


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro* to completion, turning core errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except NotFound as exc:
        console.print(err_not_found(exc.kind, exc.entity_id))
        raise typer.Exit(1) from exc
    except TransportFailure as exc:
        console.print(err_transport(str(exc)))
        raise typer.Exit(1) from exc
    except AuthenticationError as exc:
        console.print(err_invalid_api_key())
        raise typer.Exit(1) from exc
    except UploadError as exc:
        console.print(err_upload(str(exc)))
        raise typer.Exit(1) from exc
    except InvalidFolderConfig as exc:
        console.print(err_validation(exc.error))
        raise typer.Exit(1) from exc
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


# ---------------------------------------------------------------------------
# Reference resolution (id or exact name)
# ---------------------------------------------------------------------------


def resolve_project(store: EntityStore, ref: str) -> Project:
    for project in store.get_projects():
        if project.id == ref:
            return project
    for project in store.get_projects():
        if project.name == ref:
            return project
    raise NotFound("Project", ref)


def resolve_folder(store: EntityStore, project_id: str, ref: str) -> Folder:
    folders = store.get_folders(project_id)
    for folder in folders:
        if folder.id == ref:
            return folder
    for folder in folders:
        if folder.name == ref:
            return folder
    raise NotFound("Folder", ref)


def resolve_document(store: EntityStore, folder_id: str, ref: str) -> Document:
    documents = store.get_documents(folder_id)
    for document in documents:
        if document.id == ref:
            return document
    for document in documents:
        if document.name == ref:
            return document
    raise NotFound("Document", ref)
