"""Repository pattern for the local SQLite backend.

Single interface for projects, folders and documents. Counts reported on
projects and folders are computed by SQL from the stored rows.
"""

from __future__ import annotations

import json
import sqlite3

from vectordesk.models import Document, DocumentStatus, FieldSpec, Folder, Project

_PROJECT_SELECT = """
SELECT p.id, p.name, p.created_at,
       (SELECT COUNT(*) FROM folders f WHERE f.project_id = p.id) AS folder_count,
       (SELECT COUNT(*) FROM documents d WHERE d.project_id = p.id) AS document_count
FROM projects p
"""

_FOLDER_SELECT = """
SELECT f.id, f.project_id, f.name, f.chunk_size, f.chunk_overlap,
       f.metadata_params, f.metadata_config, f.created_at,
       (SELECT COUNT(*) FROM documents d WHERE d.folder_id = f.id) AS document_count
FROM folders f
"""

_DOCUMENT_SELECT = """
SELECT id, folder_id, project_id, name, status, file_size, vector_count,
       error_message, metadata, created_at
FROM documents
"""


class Repository:
    """Data access layer for all vectordesk entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> None:
        self._conn.execute(
            "INSERT INTO projects (id, name, created_at) VALUES (?, ?, ?)",
            (project.id, project.name, project.created_at),
        )
        self._conn.commit()

    def get_project(self, project_id: str) -> Project | None:
        """Return a project by ID, or None if not found."""
        row = self._conn.execute(
            _PROJECT_SELECT + " WHERE p.id = ?", (project_id,)
        ).fetchone()
        return _row_to_project(row) if row else None

    def list_projects(self) -> list[Project]:
        """Return all projects in insertion order (may be empty)."""
        rows = self._conn.execute(_PROJECT_SELECT + " ORDER BY p.rowid").fetchall()
        return [_row_to_project(r) for r in rows]

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def add_folder(self, folder: Folder) -> None:
        self._conn.execute(
            """
            INSERT INTO folders (id, project_id, name, chunk_size, chunk_overlap,
                                 metadata_params, metadata_config, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                folder.id,
                folder.project_id,
                folder.name,
                folder.chunk_size,
                folder.chunk_overlap,
                json.dumps(folder.metadata_params),
                _dump_config(folder.metadata_config),
                folder.created_at,
            ),
        )
        self._conn.commit()

    def update_folder(self, folder: Folder) -> None:
        """Replace the name and processing settings of *folder*."""
        self._conn.execute(
            """
            UPDATE folders
            SET name = ?, chunk_size = ?, chunk_overlap = ?,
                metadata_params = ?, metadata_config = ?
            WHERE id = ?
            """,
            (
                folder.name,
                folder.chunk_size,
                folder.chunk_overlap,
                json.dumps(folder.metadata_params),
                _dump_config(folder.metadata_config),
                folder.id,
            ),
        )
        self._conn.commit()

    def get_folder(self, folder_id: str) -> Folder | None:
        row = self._conn.execute(
            _FOLDER_SELECT + " WHERE f.id = ?", (folder_id,)
        ).fetchone()
        return _row_to_folder(row) if row else None

    def list_folders(self, project_id: str) -> list[Folder]:
        rows = self._conn.execute(
            _FOLDER_SELECT + " WHERE f.project_id = ? ORDER BY f.rowid", (project_id,)
        ).fetchall()
        return [_row_to_folder(r) for r in rows]

    def delete_folder(self, folder_id: str) -> None:
        """Delete a folder; its documents go with it (ON DELETE CASCADE)."""
        self._conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
        self._conn.commit()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_document(self, document: Document) -> None:
        self._conn.execute(
            """
            INSERT INTO documents (id, folder_id, project_id, name, status, file_size,
                                   vector_count, error_message, metadata, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                document.id,
                document.folder_id,
                document.project_id,
                document.name,
                document.status.value,
                document.file_size,
                document.vector_count,
                document.error_message,
                json.dumps(document.metadata) if document.metadata is not None else None,
                document.created_at,
            ),
        )
        self._conn.commit()

    def get_document(self, document_id: str) -> Document | None:
        row = self._conn.execute(
            _DOCUMENT_SELECT + " WHERE id = ?", (document_id,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents(self, folder_id: str) -> list[Document]:
        rows = self._conn.execute(
            _DOCUMENT_SELECT + " WHERE folder_id = ? ORDER BY rowid", (folder_id,)
        ).fetchall()
        return [_row_to_document(r) for r in rows]

    def update_document_status(self, document: Document) -> None:
        self._conn.execute(
            """
            UPDATE documents SET status = ?, vector_count = ?, error_message = ?
            WHERE id = ?
            """,
            (
                document.status.value,
                document.vector_count,
                document.error_message,
                document.id,
            ),
        )
        self._conn.commit()

    def delete_document(self, document_id: str) -> int:
        """Delete a document. Returns the number of rows removed (0 or 1)."""
        cur = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        self._conn.commit()
        return cur.rowcount


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _dump_config(config: dict[str, FieldSpec] | None) -> str | None:
    if config is None:
        return None
    return json.dumps({k: spec.to_dict() for k, spec in config.items()})


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        folder_count=row["folder_count"],
        document_count=row["document_count"],
    )


def _row_to_folder(row: sqlite3.Row) -> Folder:
    raw_config = row["metadata_config"]
    config = (
        {k: FieldSpec.from_dict(v) for k, v in json.loads(raw_config).items()}
        if raw_config
        else None
    )
    return Folder(
        id=row["id"],
        project_id=row["project_id"],
        name=row["name"],
        chunk_size=row["chunk_size"],
        chunk_overlap=row["chunk_overlap"],
        metadata_params=json.loads(row["metadata_params"]),
        metadata_config=config,
        created_at=row["created_at"],
        document_count=row["document_count"],
    )


def _row_to_document(row: sqlite3.Row) -> Document:
    raw_meta = row["metadata"]
    return Document(
        id=row["id"],
        folder_id=row["folder_id"],
        project_id=row["project_id"],
        name=row["name"],
        status=DocumentStatus(row["status"]),
        file_size=row["file_size"],
        vector_count=row["vector_count"],
        error_message=row["error_message"],
        metadata=json.loads(raw_meta) if raw_meta else None,
        created_at=row["created_at"],
    )
