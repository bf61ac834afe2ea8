"""In-memory mock backend.

Stands in for the remote API in tests and offline demos. One instance is
owned by whoever composes the application; there is no module-level state.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import replace

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


class MemoryTransport(Transport):
    """Dict-backed transport. Returned records are copies, never live rows.

    Counts on returned projects/folders are computed from the stored rows,
    the way a real backend would report them.
    """

    def __init__(self, api_keys: set[str] | None = None) -> None:
        self._api_keys = api_keys
        self._projects: dict[str, Project] = {}
        self._folders: dict[str, Folder] = {}
        self._documents: dict[str, Document] = {}

    async def validate_api_key(self, api_key: str) -> bool:
        if not api_key:
            return False
        return self._api_keys is None or api_key in self._api_keys

    # -- projects -------------------------------------------------------

    async def list_projects(self) -> list[Project]:
        return [self._project_view(p) for p in self._projects.values()]

    async def create_project(self, payload: CreateProjectPayload) -> Project:
        project = Project(id=_new_id(), name=payload.name, created_at=utc_now())
        self._projects[project.id] = project
        return replace(project)

    # -- folders --------------------------------------------------------

    async def list_folders(self, project_id: str) -> list[Folder]:
        return [
            self._folder_view(f)
            for f in self._folders.values()
            if f.project_id == project_id
        ]

    async def create_folder(self, payload: CreateFolderPayload) -> Folder:
        if payload.project_id not in self._projects:
            raise KeyError(f"unknown project {payload.project_id}")
        folder = Folder(
            id=_new_id(),
            name=payload.name,
            project_id=payload.project_id,
            chunk_size=payload.chunk_size,
            chunk_overlap=payload.chunk_overlap,
            metadata_params=list(payload.metadata_params),
            metadata_config=copy.deepcopy(payload.metadata_config),
            created_at=utc_now(),
        )
        self._folders[folder.id] = folder
        return self._folder_view(folder)

    async def update_folder(
        self, project_id: str, folder_id: str, payload: CreateFolderPayload
    ) -> Folder:
        folder = self._folders[folder_id]
        if folder.project_id != project_id:
            raise KeyError(f"folder {folder_id} is not in project {project_id}")
        updated = replace(
            folder,
            name=payload.name,
            chunk_size=payload.chunk_size,
            chunk_overlap=payload.chunk_overlap,
            metadata_params=list(payload.metadata_params),
            metadata_config=copy.deepcopy(payload.metadata_config),
        )
        self._folders[folder_id] = updated
        return self._folder_view(updated)

    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        del self._folders[folder_id]
        for doc_id in [d.id for d in self._documents.values() if d.folder_id == folder_id]:
            del self._documents[doc_id]

    # -- documents ------------------------------------------------------

    async def list_documents(self, project_id: str, folder_id: str) -> list[Document]:
        return [replace(d) for d in self._documents.values() if d.folder_id == folder_id]

    async def create_document(self, payload: CreateDocumentPayload) -> Document:
        if payload.folder_id not in self._folders:
            raise KeyError(f"unknown folder {payload.folder_id}")
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
        self._documents[document.id] = document
        return replace(document)

    async def save_document_status(self, document: Document) -> None:
        stored = self._documents[document.id]
        self._documents[document.id] = replace(
            stored,
            status=document.status,
            vector_count=document.vector_count,
            error_message=document.error_message,
        )

    async def delete_document(
        self, project_id: str, folder_id: str, document_id: str
    ) -> None:
        del self._documents[document_id]

    # -- helpers --------------------------------------------------------

    def _project_view(self, project: Project) -> Project:
        return replace(
            project,
            folder_count=sum(1 for f in self._folders.values() if f.project_id == project.id),
            document_count=sum(
                1 for d in self._documents.values() if d.project_id == project.id
            ),
        )

    def _folder_view(self, folder: Folder) -> Folder:
        return replace(
            folder,
            metadata_params=list(folder.metadata_params),
            metadata_config=copy.deepcopy(folder.metadata_config),
            document_count=sum(
                1 for d in self._documents.values() if d.folder_id == folder.id
            ),
        )


def _new_id() -> str:
    return uuid.uuid4().hex
