"""Local SQLite backend.

Persists projects, folders and documents in ``.vectordesk.db`` so the CLI
keeps state between invocations. Calls run inline on the event loop; every
statement is short and local.
"""

from __future__ import annotations

import sqlite3
import uuid
from pathlib import Path

from vectordesk.db.connection import Database
from vectordesk.db.migrations import run_migrations
from vectordesk.db.repository import Repository
from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    Document,
    DocumentStatus,
    Folder,
    Project,
    utc_now,
)
from vectordesk.transport.base import Transport


class SqliteTransport(Transport):
    """Transport backed by a local SQLite file.

    The local backend has no accounts; any non-empty API key is accepted.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._conn: sqlite3.Connection = Database(db_path).connect()
        run_migrations(self._conn)
        self._repo = Repository(self._conn)

    @property
    def repository(self) -> Repository:
        return self._repo

    async def validate_api_key(self, api_key: str) -> bool:
        return bool(api_key and api_key.strip())

    # -- projects -------------------------------------------------------

    async def list_projects(self) -> list[Project]:
        return self._repo.list_projects()

    async def create_project(self, payload: CreateProjectPayload) -> Project:
        project = Project(id=_new_id(), name=payload.name, created_at=utc_now())
        self._repo.add_project(project)
        return project

    # -- folders --------------------------------------------------------

    async def list_folders(self, project_id: str) -> list[Folder]:
        return self._repo.list_folders(project_id)

    async def create_folder(self, payload: CreateFolderPayload) -> Folder:
        folder = Folder(
            id=_new_id(),
            name=payload.name,
            project_id=payload.project_id,
            chunk_size=payload.chunk_size,
            chunk_overlap=payload.chunk_overlap,
            metadata_params=list(payload.metadata_params),
            metadata_config=dict(payload.metadata_config),
            created_at=utc_now(),
        )
        self._repo.add_folder(folder)
        return folder

    async def update_folder(
        self, project_id: str, folder_id: str, payload: CreateFolderPayload
    ) -> Folder:
        existing = self._repo.get_folder(folder_id)
        if existing is None or existing.project_id != project_id:
            raise LookupError(f"folder {folder_id} not found in project {project_id}")
        existing.name = payload.name
        existing.chunk_size = payload.chunk_size
        existing.chunk_overlap = payload.chunk_overlap
        existing.metadata_params = list(payload.metadata_params)
        existing.metadata_config = dict(payload.metadata_config)
        self._repo.update_folder(existing)
        return existing

    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        self._repo.delete_folder(folder_id)

    # -- documents ------------------------------------------------------

    async def list_documents(self, project_id: str, folder_id: str) -> list[Document]:
        return self._repo.list_documents(folder_id)

    async def create_document(self, payload: CreateDocumentPayload) -> Document:
        document = Document(
            id=_new_id(),
            name=payload.name,
            folder_id=payload.folder_id,
            project_id=payload.project_id,
            status=DocumentStatus.PROCESSING,
            created_at=utc_now(),
            file_size=payload.file_size,
            metadata=dict(payload.metadata) if payload.metadata else None,
        )
        self._repo.add_document(document)
        return document

    async def save_document_status(self, document: Document) -> None:
        self._repo.update_document_status(document)

    async def delete_document(
        self, project_id: str, folder_id: str, document_id: str
    ) -> None:
        if self._repo.delete_document(document_id) == 0:
            raise LookupError(f"document {document_id} not found")

    async def close(self) -> None:
        self._conn.close()


def _new_id() -> str:
    return uuid.uuid4().hex
