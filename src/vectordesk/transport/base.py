"""Backend transport contract.

A transport is the remote (or local) API the Entity Store writes through.
It assigns ids and creation timestamps; it never holds UI state. Every
method is a coroutine because every call is a potential suspension point.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    Document,
    Folder,
    Project,
)


class Transport(ABC):
    """Abstract base for all backends (memory, sqlite, http)."""

    @abstractmethod
    async def validate_api_key(self, api_key: str) -> bool:
        """Return True when *api_key* is accepted by the backend."""

    def set_api_key(self, api_key: str) -> None:
        """Use *api_key* for later calls. Default: the backend needs no key."""

    # -- projects -------------------------------------------------------

    @abstractmethod
    async def list_projects(self) -> list[Project]:
        """Return every project, oldest first."""

    @abstractmethod
    async def create_project(self, payload: CreateProjectPayload) -> Project:
        """Persist a new project and return it with id + created_at set."""

    # -- folders --------------------------------------------------------

    @abstractmethod
    async def list_folders(self, project_id: str) -> list[Folder]:
        """Return the folders of *project_id*, oldest first."""

    @abstractmethod
    async def create_folder(self, payload: CreateFolderPayload) -> Folder:
        """Persist a new folder under ``payload.project_id``."""

    @abstractmethod
    async def update_folder(
        self, project_id: str, folder_id: str, payload: CreateFolderPayload
    ) -> Folder:
        """Replace the name + processing settings of an existing folder."""

    @abstractmethod
    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        """Delete a folder and all of its documents."""

    # -- documents ------------------------------------------------------

    @abstractmethod
    async def list_documents(self, project_id: str, folder_id: str) -> list[Document]:
        """Return the documents of a folder, oldest first."""

    @abstractmethod
    async def create_document(self, payload: CreateDocumentPayload) -> Document:
        """Persist a new document in ``processing`` state."""

    @abstractmethod
    async def save_document_status(self, document: Document) -> None:
        """Persist the status, vector count and error message of *document*."""

    @abstractmethod
    async def delete_document(
        self, project_id: str, folder_id: str, document_id: str
    ) -> None:
        """Delete a single document."""

    async def close(self) -> None:
        """Release any held resources. Default: nothing to release."""
