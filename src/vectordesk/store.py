"""Entity Store: authoritative in-memory collections with derived counters.

The store is the only writer of ``Project.folder_count``,
``Project.document_count`` and ``Folder.document_count``. Every mutating
operation follows the same shape:

  1. check local preconditions (raise NotFound / InvalidStateTransition)
  2. await the transport (the only suspension point)
  3. re-check preconditions, since other coroutines may have run meanwhile
  4. apply the collection change and counter updates together, synchronously

Folder settings are checked against the folder rules before step 2
(InvalidFolderConfig). A transport failure in step 2 raises TransportFailure
and leaves the store untouched. Transport results are copied on the way in
and reads return deep copies, so callers cannot mutate store state.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Awaitable
from dataclasses import replace
from typing import TypeVar

from vectordesk.errors import (
    InvalidFolderConfig,
    InvalidStateTransition,
    NotFound,
    TransportFailure,
    VectordeskError,
)
from vectordesk.folder_config import check_folder_payload
from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    Document,
    DocumentStatus,
    Folder,
    Project,
)
from vectordesk.transport.base import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityStore:
    """Projects, folders and documents keyed by id, in insertion order."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._projects: dict[str, Project] = {}
        self._folders: dict[str, Folder] = {}
        self._documents: dict[str, Document] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Hydrate every collection from the transport.

        Counts are taken as reported by the backend. On failure the current
        contents are kept.
        """
        projects = await self._call("list projects", self.transport.list_projects())
        folders: list[Folder] = []
        documents: list[Document] = []
        for project in projects:
            project_folders = await self._call(
                "list folders", self.transport.list_folders(project.id)
            )
            folders.extend(project_folders)
            for folder in project_folders:
                documents.extend(
                    await self._call(
                        "list documents",
                        self.transport.list_documents(project.id, folder.id),
                    )
                )

        self._projects = {p.id: copy.deepcopy(p) for p in projects}
        self._folders = {f.id: copy.deepcopy(f) for f in folders}
        self._documents = {d.id: copy.deepcopy(d) for d in documents}
        logger.info(
            "Loaded %d projects, %d folders, %d documents",
            len(projects),
            len(folders),
            len(documents),
        )

    def reset(self) -> None:
        """Drop every cached entity."""
        self._projects.clear()
        self._folders.clear()
        self._documents.clear()

    async def close(self) -> None:
        self.reset()
        await self.transport.close()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(self, payload: CreateProjectPayload) -> Project:
        project = copy.deepcopy(
            await self._call("create project", self.transport.create_project(payload))
        )
        project.folder_count = 0
        project.document_count = 0
        self._projects[project.id] = project
        logger.info("Created project %s (%s)", project.id, project.name)
        return copy.deepcopy(project)

    def get_projects(self) -> list[Project]:
        return [copy.deepcopy(p) for p in self._projects.values()]

    def get_project(self, project_id: str) -> Project:
        return copy.deepcopy(self._require_project(project_id))

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def create_folder(self, payload: CreateFolderPayload) -> Folder:
        """Persist a folder and bump its project's ``folder_count``.

        Raises InvalidFolderConfig (store unchanged) for settings that break
        a folder rule.
        """
        self._require_project(payload.project_id)
        _check_folder(payload)
        folder = copy.deepcopy(
            await self._call("create folder", self.transport.create_folder(payload))
        )

        project = self._require_project(payload.project_id)
        folder.document_count = 0
        self._folders[folder.id] = folder
        project.folder_count += 1
        logger.info("Created folder %s in project %s", folder.id, project.id)
        return copy.deepcopy(folder)

    async def update_folder(
        self, project_id: str, folder_id: str, payload: CreateFolderPayload
    ) -> Folder:
        """Replace a folder's name and processing settings. Counts are kept."""
        self._require_folder(project_id, folder_id)
        _check_folder(payload)
        payload = replace(payload, project_id=project_id)
        updated = await self._call(
            "update folder", self.transport.update_folder(project_id, folder_id, payload)
        )

        folder = self._require_folder(project_id, folder_id)
        folder.name = updated.name
        folder.chunk_size = updated.chunk_size
        folder.chunk_overlap = updated.chunk_overlap
        folder.metadata_params = list(updated.metadata_params)
        folder.metadata_config = copy.deepcopy(updated.metadata_config)
        logger.info("Updated folder %s", folder_id)
        return copy.deepcopy(folder)

    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        """Delete a folder and its documents, decrementing project counters."""
        self._require_folder(project_id, folder_id)
        await self._call("delete folder", self.transport.delete_folder(project_id, folder_id))

        folder = self._folders.pop(folder_id, None)
        if folder is None:
            raise NotFound("Folder", folder_id)
        doomed = [d.id for d in self._documents.values() if d.folder_id == folder_id]
        for doc_id in doomed:
            del self._documents[doc_id]
        if (project := self._projects.get(project_id)) is not None:
            project.folder_count -= 1
            project.document_count -= len(doomed)
        logger.info("Deleted folder %s (%d documents)", folder_id, len(doomed))

    def get_folders(self, project_id: str) -> list[Folder]:
        return [
            copy.deepcopy(f) for f in self._folders.values() if f.project_id == project_id
        ]

    def get_folder(self, project_id: str, folder_id: str) -> Folder:
        return copy.deepcopy(self._require_folder(project_id, folder_id))

    async def fetch_folders(self, project_id: str) -> list[Folder]:
        """Read the backend's folder list for *project_id*."""
        return await self._call("list folders", self.transport.list_folders(project_id))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, payload: CreateDocumentPayload) -> Document:
        """Persist a processing document and bump folder + project counts."""
        self._require_folder(payload.project_id, payload.folder_id)
        document = copy.deepcopy(
            await self._call("create document", self.transport.create_document(payload))
        )

        folder = self._require_folder(payload.project_id, payload.folder_id)
        project = self._require_project(payload.project_id)
        document.status = DocumentStatus.PROCESSING
        document.vector_count = None
        document.error_message = None
        self._documents[document.id] = document
        folder.document_count += 1
        project.document_count += 1
        logger.info("Created document %s in folder %s", document.id, folder.id)
        return copy.deepcopy(document)

    async def complete_document(self, document_id: str, vector_count: int) -> Document:
        """Move a processing document to ``completed`` with *vector_count*."""
        if vector_count < 0:
            raise ValueError("vector_count must be >= 0")
        return await self._finish(
            document_id, DocumentStatus.COMPLETED, vector_count=vector_count
        )

    async def fail_document(self, document_id: str, error_message: str) -> Document:
        """Move a processing document to ``error`` with *error_message*."""
        return await self._finish(
            document_id, DocumentStatus.ERROR, error_message=error_message
        )

    async def delete_document(self, document_id: str) -> None:
        """Remove a document and decrement its folder and project counts.

        Raises NotFound (store unchanged) when the id is unknown.
        """
        document = self._require_document(document_id)
        try:
            await self._call(
                "delete document",
                self.transport.delete_document(
                    document.project_id, document.folder_id, document_id
                ),
            )
        except TransportFailure:
            # A concurrent delete of the same id removed the backend row first.
            if document_id not in self._documents:
                raise NotFound("Document", document_id) from None
            raise

        # A concurrent delete may have won while we were suspended.
        document = self._documents.pop(document_id, None)
        if document is None:
            raise NotFound("Document", document_id)
        if (folder := self._folders.get(document.folder_id)) is not None:
            folder.document_count -= 1
        if (project := self._projects.get(document.project_id)) is not None:
            project.document_count -= 1
        logger.info("Deleted document %s", document_id)

    def get_documents(self, folder_id: str) -> list[Document]:
        return [
            copy.deepcopy(d) for d in self._documents.values() if d.folder_id == folder_id
        ]

    def get_document(self, document_id: str) -> Document:
        return copy.deepcopy(self._require_document(document_id))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _finish(
        self,
        document_id: str,
        status: DocumentStatus,
        *,
        vector_count: int | None = None,
        error_message: str | None = None,
    ) -> Document:
        current = self._require_processing(document_id)
        target = copy.deepcopy(current)
        target.status = status
        target.vector_count = vector_count
        target.error_message = error_message
        try:
            await self._call(
                f"mark document {status.value}", self.transport.save_document_status(target)
            )
        except TransportFailure:
            # The backend refuses a status for a row deleted meanwhile.
            if document_id not in self._documents:
                raise NotFound("Document", document_id) from None
            raise

        # Deleted or finished by someone else during the await: do not resurrect.
        current = self._require_processing(document_id)
        current.status = status
        current.vector_count = vector_count
        current.error_message = error_message
        logger.info("Document %s is now %s", document_id, status.value)
        return copy.deepcopy(current)

    def _require_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFound("Project", project_id)
        return project

    def _require_folder(self, project_id: str, folder_id: str) -> Folder:
        folder = self._folders.get(folder_id)
        if folder is None or folder.project_id != project_id:
            raise NotFound("Folder", folder_id)
        return folder

    def _require_document(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound("Document", document_id)
        return document

    def _require_processing(self, document_id: str) -> Document:
        document = self._require_document(document_id)
        if document.status is not DocumentStatus.PROCESSING:
            raise InvalidStateTransition(document_id, document.status.value)
        return document

    async def _call(self, operation: str, pending: Awaitable[T]) -> T:
        """Await a transport call, normalising failures to TransportFailure."""
        try:
            return await pending
        except VectordeskError:
            raise
        except Exception as exc:
            logger.warning("Transport call '%s' failed: %s", operation, exc)
            raise TransportFailure(operation, exc) from exc


def _check_folder(payload: CreateFolderPayload) -> None:
    result = check_folder_payload(payload)
    if not result.ok:
        raise InvalidFolderConfig(result.error)  # type: ignore[arg-type]
