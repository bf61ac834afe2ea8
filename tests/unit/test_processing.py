"""Tests for the simulated processing notifier."""

from __future__ import annotations

import asyncio
import random

import pytest

from vectordesk.errors import NotFound
from vectordesk.models import (
    CreateDocumentPayload,
    CreateFolderPayload,
    CreateProjectPayload,
    DocumentStatus,
)
from vectordesk.processing import DEFAULT_ERROR_MESSAGE, ProcessingSimulator


async def _new_document(store):
    project = await store.create_project(CreateProjectPayload(name="Support"))
    folder = await store.create_folder(
        CreateFolderPayload(
            name="Manuals", chunk_size=1000, chunk_overlap=200, project_id=project.id
        )
    )
    return await store.create_document(
        CreateDocumentPayload(
            name="guide.pdf", folder_id=folder.id, project_id=project.id, file_size=10
        )
    )


def test_processing_completes_with_positive_vector_count(store):
    processor = ProcessingSimulator(
        store, delay=0, failure_rate=0.0, rng=random.Random(7)
    )

    async def scenario():
        doc = await _new_document(store)
        task = processor.schedule(doc)
        result = await task
        return doc, result

    doc, result = asyncio.run(scenario())
    assert result.status is DocumentStatus.COMPLETED
    assert 10 <= result.vector_count <= 500
    assert store.get_document(doc.id).status is DocumentStatus.COMPLETED


def test_processing_failure_sets_error_message(store):
    processor = ProcessingSimulator(store, delay=0, failure_rate=1.0)

    async def scenario():
        doc = await _new_document(store)
        processor.schedule(doc)
        await processor.drain()
        return doc

    doc = asyncio.run(scenario())
    stored = store.get_document(doc.id)
    assert stored.status is DocumentStatus.ERROR
    assert stored.error_message == DEFAULT_ERROR_MESSAGE
    assert stored.vector_count is None


def test_vector_count_respects_bounds(store):
    processor = ProcessingSimulator(
        store, delay=0, failure_rate=0.0, min_vectors=3, max_vectors=3
    )

    async def scenario():
        doc = await _new_document(store)
        return await processor.schedule(doc)

    assert asyncio.run(scenario()).vector_count == 3


def test_delete_before_completion_is_not_resurrected(store):
    processor = ProcessingSimulator(store, delay=0.01, failure_rate=0.0)

    async def scenario():
        doc = await _new_document(store)
        task = processor.schedule(doc)
        await store.delete_document(doc.id)
        return doc, await task

    doc, result = asyncio.run(scenario())
    assert result is None
    with pytest.raises(NotFound):
        store.get_document(doc.id)
    assert store.get_documents(doc.folder_id) == []


def test_already_finished_document_is_skipped(store):
    processor = ProcessingSimulator(store, delay=0, failure_rate=0.0)

    async def scenario():
        doc = await _new_document(store)
        await store.fail_document(doc.id, "manual")
        return doc, await processor.schedule(doc)

    doc, result = asyncio.run(scenario())
    assert result is None
    assert store.get_document(doc.id).error_message == "manual"


def test_drain_waits_for_all_and_clears_pending(store):
    processor = ProcessingSimulator(store, delay=0, failure_rate=0.0)

    async def scenario():
        doc = await _new_document(store)
        processor.schedule(doc)
        assert processor.pending == 1
        await processor.drain()
        return doc

    doc = asyncio.run(scenario())
    assert processor.pending == 0
    assert store.get_document(doc.id).is_terminal


@pytest.mark.parametrize(
    "kwargs",
    [
        {"failure_rate": -0.1},
        {"failure_rate": 1.5},
        {"min_vectors": 0},
        {"min_vectors": 10, "max_vectors": 5},
    ],
)
def test_invalid_settings_rejected(store, kwargs):
    with pytest.raises(ValueError):
        ProcessingSimulator(store, **kwargs)
