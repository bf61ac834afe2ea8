"""Tests for the per-project folder cache."""

from __future__ import annotations

import asyncio
import logging

import pytest

from vectordesk.cache import FolderCache
from vectordesk.errors import TransportFailure
from vectordesk.models import CreateFolderPayload, CreateProjectPayload, Folder


def _folder(project_id: str, name: str) -> Folder:
    return Folder(id=f"{project_id}-{name}", name=name, project_id=project_id)


class ScriptedLoader:
    """Folder loader whose answers (or failures) are set per project."""

    def __init__(self) -> None:
        self.folders: dict[str, list[Folder]] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, project_id: str) -> list[Folder]:
        self.calls.append(project_id)
        if self.gate is not None:
            await self.gate.wait()
        if project_id in self.failing:
            raise TransportFailure("list folders", ConnectionError("down"))
        return list(self.folders.get(project_id, []))


# ---------------------------------------------------------------------------
# get / refresh
# ---------------------------------------------------------------------------


def test_get_unloaded_project_is_empty_and_does_not_fetch():
    loader = ScriptedLoader()
    cache = FolderCache(loader)
    assert cache.get("p1") == []
    assert not cache.is_loaded("p1")
    assert loader.calls == []


def test_refresh_populates_entry():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Manuals")]
    cache = FolderCache(loader)

    result = asyncio.run(cache.refresh("p1"))

    assert [f.name for f in result] == ["Manuals"]
    assert [f.name for f in cache.get("p1")] == ["Manuals"]
    assert cache.is_loaded("p1")
    assert cache.project_ids() == ["p1"]


def test_refresh_replaces_entry_wholesale():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Old"), _folder("p1", "Kept")]
    cache = FolderCache(loader)
    asyncio.run(cache.refresh("p1"))

    loader.folders["p1"] = [_folder("p1", "Kept"), _folder("p1", "New")]
    asyncio.run(cache.refresh("p1"))

    assert [f.name for f in cache.get("p1")] == ["Kept", "New"]


def test_failed_refresh_keeps_previous_entry():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Manuals")]
    cache = FolderCache(loader)
    asyncio.run(cache.refresh("p1"))

    loader.failing.add("p1")
    with pytest.raises(TransportFailure):
        asyncio.run(cache.refresh("p1"))

    assert [f.name for f in cache.get("p1")] == ["Manuals"]


def test_get_returns_copies():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Manuals")]
    cache = FolderCache(loader)
    asyncio.run(cache.refresh("p1"))

    cache.get("p1")[0].name = "Mutated"
    assert cache.get("p1")[0].name == "Manuals"


def test_concurrent_refreshes_share_one_fetch():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Manuals")]
    cache = FolderCache(loader)

    async def scenario():
        loader.gate = asyncio.Event()
        first = asyncio.ensure_future(cache.refresh("p1"))
        second = asyncio.ensure_future(cache.refresh("p1"))
        await asyncio.sleep(0)
        loader.gate.set()
        return await asyncio.gather(first, second)

    first, second = asyncio.run(scenario())
    assert loader.calls == ["p1"]
    assert first == second


# ---------------------------------------------------------------------------
# refresh_all
# ---------------------------------------------------------------------------


def test_refresh_all_isolates_failures(caplog):
    loader = ScriptedLoader()
    loader.folders = {"ok": [_folder("ok", "A")], "bad": [_folder("bad", "B")]}
    cache = FolderCache(loader)

    async def scenario():
        await cache.refresh("ok")
        await cache.refresh("bad")
        loader.folders["ok"] = [_folder("ok", "A"), _folder("ok", "A2")]
        loader.folders["bad"] = []
        loader.failing.add("bad")
        with caplog.at_level(logging.WARNING, logger="vectordesk.cache"):
            return await cache.refresh_all()

    failures = asyncio.run(scenario())

    assert list(failures) == ["bad"]
    assert isinstance(failures["bad"], TransportFailure)
    assert [f.name for f in cache.get("ok")] == ["A", "A2"]
    assert [f.name for f in cache.get("bad")] == ["B"]
    assert "bad" in caplog.text


def test_refresh_all_with_nothing_cached():
    cache = FolderCache(ScriptedLoader())
    assert asyncio.run(cache.refresh_all()) == {}


# ---------------------------------------------------------------------------
# invalidate
# ---------------------------------------------------------------------------


def test_invalidate_one_project():
    loader = ScriptedLoader()
    loader.folders = {"p1": [_folder("p1", "A")], "p2": [_folder("p2", "B")]}
    cache = FolderCache(loader)

    async def scenario():
        await cache.refresh("p1")
        await cache.refresh("p2")

    asyncio.run(scenario())
    cache.invalidate("p1")
    assert not cache.is_loaded("p1")
    assert cache.is_loaded("p2")


def test_invalidate_all():
    loader = ScriptedLoader()
    loader.folders = {"p1": [_folder("p1", "A")], "p2": [_folder("p2", "B")]}
    cache = FolderCache(loader)

    async def scenario():
        await cache.refresh("p1")
        await cache.refresh("p2")

    asyncio.run(scenario())
    cache.invalidate()
    assert cache.project_ids() == []


def test_fetch_finishing_after_invalidate_is_discarded():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Stale")]
    cache = FolderCache(loader)

    async def scenario():
        loader.gate = asyncio.Event()
        pending = asyncio.ensure_future(cache.refresh("p1"))
        await asyncio.sleep(0)
        cache.invalidate("p1")
        loader.gate.set()
        return await pending

    returned = asyncio.run(scenario())
    assert [f.name for f in returned] == ["Stale"]
    assert not cache.is_loaded("p1")
    assert cache.get("p1") == []


def test_refresh_after_invalidate_starts_new_fetch():
    loader = ScriptedLoader()
    loader.folders["p1"] = [_folder("p1", "Fresh")]
    cache = FolderCache(loader)

    async def scenario():
        loader.gate = asyncio.Event()
        stale = asyncio.ensure_future(cache.refresh("p1"))
        await asyncio.sleep(0)
        cache.invalidate("p1")
        fresh = asyncio.ensure_future(cache.refresh("p1"))
        await asyncio.sleep(0)
        loader.gate.set()
        await asyncio.gather(stale, fresh)

    asyncio.run(scenario())
    assert loader.calls == ["p1", "p1"]
    assert [f.name for f in cache.get("p1")] == ["Fresh"]


# ---------------------------------------------------------------------------
# Store-backed cache
# ---------------------------------------------------------------------------


def test_for_store_reads_backend_folders(store):
    async def scenario():
        project = await store.create_project(CreateProjectPayload(name="Support"))
        cache = FolderCache.for_store(store)
        await store.create_folder(
            CreateFolderPayload(
                name="Manuals", chunk_size=1000, chunk_overlap=200, project_id=project.id
            )
        )
        await cache.refresh(project.id)
        return cache, project

    cache, project = asyncio.run(scenario())
    assert [f.name for f in cache.get(project.id)] == ["Manuals"]
