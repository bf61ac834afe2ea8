"""Local upload mechanism: PDF checks, metadata checks, store hand-off.

Security/size requirements:
- PDF only: ``.pdf`` suffix and a file pypdf can open with at least one page.
- Max file size: 20 MB unless configured otherwise.
- Metadata must match the folder's schema (known keys, required values
  present, select values among the options, number/date values parseable).
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

from vectordesk.errors import UploadError
from vectordesk.models import (
    CreateDocumentPayload,
    Document,
    FieldSpec,
    FieldType,
    Folder,
)
from vectordesk.processing import ProcessingSimulator
from vectordesk.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 20 * 1024 * 1024  # 20 MB


class Uploader:
    """Turn a local PDF into a processing Document in the store."""

    def __init__(
        self,
        store: EntityStore,
        processor: ProcessingSimulator | None = None,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.store = store
        self.processor = processor
        self.max_bytes = max_bytes

    async def upload(
        self,
        path: Path | str,
        folder_id: str,
        project_id: str,
        metadata: dict[str, str] | None = None,
    ) -> Document:
        """Validate *path* and *metadata*, create the document, start processing.

        Raises:
            UploadError: The file or metadata is rejected.
            NotFound: The folder does not exist in the project.
            TransportFailure: The backend rejected the create.
        """
        file_path = Path(path)
        folder = self.store.get_folder(project_id, folder_id)
        size = self._check_file(file_path)
        clean = validate_metadata(folder, metadata)

        document = await self.store.create_document(
            CreateDocumentPayload(
                name=file_path.name,
                folder_id=folder_id,
                project_id=project_id,
                file_size=size,
                metadata=clean,
            )
        )
        logger.info("Uploaded %s as document %s", file_path.name, document.id)
        if self.processor is not None:
            self.processor.schedule(document)
        return document

    def _check_file(self, path: Path) -> int:
        if not path.is_file():
            raise UploadError(f"File not found: '{path}'")
        if path.suffix.lower() != ".pdf":
            raise UploadError(f"Only PDF files are supported: '{path.name}'")

        size = path.stat().st_size
        if size > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise UploadError(f"File size exceeds the {limit_mb:.0f}MB limit: '{path.name}'")

        try:
            pages = len(pypdf.PdfReader(path).pages)
        except (PyPdfError, ValueError, OSError) as exc:
            raise UploadError(f"Not a readable PDF: '{path.name}' ({exc})") from exc
        if pages == 0:
            raise UploadError(f"PDF has no pages: '{path.name}'")
        return size


def validate_metadata(
    folder: Folder, metadata: dict[str, str] | None
) -> dict[str, str] | None:
    """Check *metadata* against *folder*'s schema; return the cleaned values.

    Returns None when no values were supplied and none are required.
    """
    values = {k: str(v).strip() for k, v in (metadata or {}).items()}
    config = folder.metadata_config or {}

    unknown = [k for k in values if k not in folder.metadata_params]
    if unknown:
        raise UploadError(
            f"Unknown metadata field(s) for folder '{folder.name}': {', '.join(sorted(unknown))}"
        )

    clean: dict[str, str] = {}
    for key in folder.metadata_params:
        spec = config.get(key, FieldSpec())
        value = values.get(key, "")
        if not value:
            if spec.required:
                raise UploadError(f"Metadata field '{key}' is required")
            continue
        _check_value(key, spec, value)
        clean[key] = value
    return clean or None


def _check_value(key: str, spec: FieldSpec, value: str) -> None:
    if spec.type is FieldType.NUMBER:
        try:
            float(value)
        except ValueError:
            raise UploadError(f"Metadata field '{key}' must be a number, got '{value}'") from None
    elif spec.type is FieldType.DATE:
        try:
            date.fromisoformat(value)
        except ValueError:
            raise UploadError(
                f"Metadata field '{key}' must be a date (YYYY-MM-DD), got '{value}'"
            ) from None
    elif spec.type is FieldType.SELECT and value not in (spec.options or []):
        raise UploadError(
            f"Metadata field '{key}' must be one of: {', '.join(spec.options or [])}"
        )
