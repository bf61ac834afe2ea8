"""Domain models for projects, folders and documents.

Field names are snake_case in Python; ``to_dict()`` / ``from_dict()`` convert
to and from the camelCase wire shape used by the HTTP API and the SQLite
backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

MIN_CHUNK_SIZE = 100
MAX_CHUNK_SIZE = 5000


class FieldType(str, Enum):
    """Metadata field types a folder schema may declare."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class DocumentStatus(str, Enum):
    """Document processing lifecycle. COMPLETED and ERROR are terminal."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FieldSpec:
    type: FieldType = FieldType.TEXT
    options: list[str] | None = None  # select only
    required: bool = True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "required": self.required}
        if self.options is not None:
            data["options"] = list(self.options)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldSpec:
        options = data.get("options")
        return cls(
            type=FieldType(data.get("type", "text")),
            options=list(options) if options is not None else None,
            required=bool(data.get("required", True)),
        )


@dataclass
class MetadataField:
    """One editable row of a folder's metadata schema (form state)."""

    key: str = ""
    type: FieldType = FieldType.SELECT
    options: list[str] = field(default_factory=list)
    required: bool = True


@dataclass
class Project:
    id: str
    name: str
    created_at: str = field(default_factory=utc_now)
    folder_count: int = 0
    document_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "folderCount": self.folder_count,
            "documentCount": self.document_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            created_at=str(data.get("createdAt") or utc_now()),
            folder_count=int(data.get("folderCount", 0)),
            document_count=int(data.get("documentCount", 0)),
        )


@dataclass
class Folder:
    id: str
    name: str
    project_id: str
    chunk_size: int = 1000
    chunk_overlap: int = 200
    metadata_params: list[str] = field(default_factory=list)
    metadata_config: dict[str, FieldSpec] | None = None
    created_at: str = field(default_factory=utc_now)
    document_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "projectId": self.project_id,
            "chunkSize": self.chunk_size,
            "chunkOverlap": self.chunk_overlap,
            "metadataParams": list(self.metadata_params),
            "createdAt": self.created_at,
            "documentCount": self.document_count,
        }
        if self.metadata_config is not None:
            data["metadataConfig"] = {
                k: spec.to_dict() for k, spec in self.metadata_config.items()
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Folder:
        raw_config = data.get("metadataConfig")
        config = (
            {k: FieldSpec.from_dict(v) for k, v in raw_config.items()}
            if raw_config is not None
            else None
        )
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            project_id=str(data["projectId"]),
            chunk_size=int(data.get("chunkSize", 1000)),
            chunk_overlap=int(data.get("chunkOverlap", 200)),
            metadata_params=list(data.get("metadataParams", [])),
            metadata_config=config,
            created_at=str(data.get("createdAt") or utc_now()),
            document_count=int(data.get("documentCount", 0)),
        )


@dataclass
class Document:
    id: str
    name: str
    folder_id: str
    project_id: str
    status: DocumentStatus = DocumentStatus.PROCESSING
    created_at: str = field(default_factory=utc_now)
    file_size: int = 0
    vector_count: int | None = None
    error_message: str | None = None
    metadata: dict[str, str] | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not DocumentStatus.PROCESSING

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "folderId": self.folder_id,
            "projectId": self.project_id,
            "status": self.status.value,
            "createdAt": self.created_at,
            "fileSize": self.file_size,
        }
        if self.vector_count is not None:
            data["vectorCount"] = self.vector_count
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        vector_count = data.get("vectorCount")
        metadata = data.get("metadata")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            folder_id=str(data["folderId"]),
            project_id=str(data["projectId"]),
            status=DocumentStatus(data.get("status", "processing")),
            created_at=str(data.get("createdAt") or utc_now()),
            file_size=int(data.get("fileSize", 0)),
            vector_count=int(vector_count) if vector_count is not None else None,
            error_message=data.get("errorMessage"),
            metadata={str(k): str(v) for k, v in metadata.items()} if metadata else None,
        )


# ---------------------------------------------------------------------------
# Creation payloads
# ---------------------------------------------------------------------------


@dataclass
class CreateProjectPayload:
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


@dataclass
class CreateFolderPayload:
    """Validated folder settings, as produced by ``folder_config.to_persistable``."""

    name: str
    chunk_size: int
    chunk_overlap: int
    metadata_params: list[str] = field(default_factory=list)
    metadata_config: dict[str, FieldSpec] = field(default_factory=dict)
    project_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "projectId": self.project_id,
            "chunkSize": self.chunk_size,
            "chunkOverlap": self.chunk_overlap,
            "metadataParams": list(self.metadata_params),
            "metadataConfig": {
                k: spec.to_dict() for k, spec in self.metadata_config.items()
            },
        }


@dataclass
class CreateDocumentPayload:
    name: str
    folder_id: str
    project_id: str
    file_size: int
    metadata: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "folderId": self.folder_id,
            "projectId": self.project_id,
            "fileSize": self.file_size,
        }
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data
