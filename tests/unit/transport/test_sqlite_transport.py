"""Tests for the local SQLite backend."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    DocumentStatus,
    FieldSpec,
    FieldType,
)
from vectordesk.store import EntityStore
from vectordesk.transport.sqlite import SqliteTransport


def _folder_payload(project_id: str) -> CreateFolderPayload:
    return CreateFolderPayload(
        name="Manuals",
        chunk_size=800,
        chunk_overlap=100,
        metadata_params=["category", "pages"],
        metadata_config={
            "category": FieldSpec(FieldType.SELECT, ["A", "B"], True),
            "pages": FieldSpec(FieldType.NUMBER, None, False),
        },
        project_id=project_id,
    )


@pytest.fixture
def sqlite_transport(tmp_path: Path):
    transport = SqliteTransport(tmp_path / ".vectordesk.db")
    yield transport
    asyncio.run(transport.close())


def test_state_survives_reopen(tmp_path: Path):
    db_path = tmp_path / ".vectordesk.db"

    async def write():
        transport = SqliteTransport(db_path)
        store = EntityStore(transport)
        project = await store.create_project(CreateProjectPayload(name="Support"))
        folder = await store.create_folder(_folder_payload(project.id))
        await store.create_document(
            CreateDocumentPayload(
                name="guide.pdf",
                folder_id=folder.id,
                project_id=project.id,
                file_size=100,
                metadata={"category": "A"},
            )
        )
        await store.close()
        return project, folder

    async def read():
        store = EntityStore(SqliteTransport(db_path))
        await store.load()
        try:
            return (
                store.get_project(project.id),
                store.get_folder(project.id, folder.id),
                store.get_documents(folder.id),
            )
        finally:
            await store.close()

    project, folder = asyncio.run(write())
    loaded_project, loaded_folder, docs = asyncio.run(read())

    assert (loaded_project.folder_count, loaded_project.document_count) == (1, 1)
    assert loaded_folder.metadata_params == ["category", "pages"]
    assert loaded_folder.metadata_config["category"].options == ["A", "B"]
    assert loaded_folder.metadata_config["pages"].options is None
    assert docs[0].metadata == {"category": "A"}
    assert docs[0].status is DocumentStatus.PROCESSING


def test_update_folder_persists(sqlite_transport):
    async def scenario():
        project = await sqlite_transport.create_project(CreateProjectPayload(name="Support"))
        folder = await sqlite_transport.create_folder(_folder_payload(project.id))
        payload = CreateFolderPayload(
            name="Renamed", chunk_size=400, chunk_overlap=50, project_id=project.id
        )
        await sqlite_transport.update_folder(project.id, folder.id, payload)
        return await sqlite_transport.list_folders(project.id)

    [folder] = asyncio.run(scenario())
    assert folder.name == "Renamed"
    assert folder.chunk_size == 400
    assert folder.metadata_params == []


def test_update_folder_in_wrong_project(sqlite_transport):
    async def scenario():
        project = await sqlite_transport.create_project(CreateProjectPayload(name="Support"))
        folder = await sqlite_transport.create_folder(_folder_payload(project.id))
        await sqlite_transport.update_folder("other", folder.id, _folder_payload("other"))

    with pytest.raises(LookupError):
        asyncio.run(scenario())


def test_delete_missing_document(sqlite_transport):
    with pytest.raises(LookupError):
        asyncio.run(sqlite_transport.delete_document("p", "f", "missing"))


def test_delete_folder_cascades(sqlite_transport):
    async def scenario():
        project = await sqlite_transport.create_project(CreateProjectPayload(name="Support"))
        folder = await sqlite_transport.create_folder(_folder_payload(project.id))
        doc = await sqlite_transport.create_document(
            CreateDocumentPayload(
                name="a.pdf", folder_id=folder.id, project_id=project.id, file_size=1
            )
        )
        await sqlite_transport.delete_folder(project.id, folder.id)
        return doc

    doc = asyncio.run(scenario())
    assert sqlite_transport.repository.get_document(doc.id) is None


def test_any_non_empty_key_is_valid(sqlite_transport):
    assert asyncio.run(sqlite_transport.validate_api_key("local"))
    assert not asyncio.run(sqlite_transport.validate_api_key("  "))
