"""Per-project folder cache for navigation views.

The cache never subscribes to store mutations. After creating, editing or
deleting a folder the caller must ``refresh`` (or ``invalidate``) the
affected project before trusting ``get``.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable

from vectordesk.models import Folder
from vectordesk.store import EntityStore

logger = logging.getLogger(__name__)

FolderLoader = Callable[[str], Awaitable[list[Folder]]]


class FolderCache:
    """Lazily populated ``project_id -> [Folder]`` mapping.

    - ``refresh`` replaces an entry wholesale; on failure the old entry stays.
    - Concurrent ``refresh`` calls for one project share a single fetch.
    - A fetch that completes after its project was invalidated is discarded.
    """

    def __init__(self, loader: FolderLoader) -> None:
        self._loader = loader
        self._entries: dict[str, list[Folder]] = {}
        self._generations: dict[str, int] = {}
        self._pending: dict[str, tuple[int, asyncio.Task[list[Folder]]]] = {}

    @classmethod
    def for_store(cls, store: EntityStore) -> FolderCache:
        """Cache that reads folder lists through *store*'s transport."""
        return cls(store.fetch_folders)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, project_id: str) -> list[Folder]:
        """Cached folders for *project_id*; empty if never loaded. Never fetches."""
        return copy.deepcopy(self._entries.get(project_id, []))

    def is_loaded(self, project_id: str) -> bool:
        return project_id in self._entries

    def project_ids(self) -> list[str]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self, project_id: str) -> list[Folder]:
        """Fetch the folder list for *project_id* and replace its entry.

        Raises whatever the loader raises (normally TransportFailure); the
        previous entry is left in place.
        """
        generation = self._generations.get(project_id, 0)
        pending = self._pending.get(project_id)
        if pending is not None and pending[0] == generation and not pending[1].done():
            return copy.deepcopy(await asyncio.shield(pending[1]))

        task = asyncio.ensure_future(self._fetch(project_id, generation))
        self._pending[project_id] = (generation, task)
        try:
            folders = await asyncio.shield(task)
        finally:
            if self._pending.get(project_id, (None, None))[1] is task:
                del self._pending[project_id]
        return copy.deepcopy(folders)

    async def refresh_all(self) -> dict[str, Exception]:
        """Refresh every cached project concurrently.

        One project's failure does not affect the others. Returns the
        failures keyed by project id (empty when everything succeeded).
        """
        project_ids = list(self._entries)
        results = await asyncio.gather(
            *(self.refresh(pid) for pid in project_ids), return_exceptions=True
        )
        failures: dict[str, Exception] = {}
        for pid, result in zip(project_ids, results):
            if isinstance(result, Exception):
                logger.warning("Failed to refresh folders for project %s: %s", pid, result)
                failures[pid] = result
            elif isinstance(result, BaseException):
                raise result
        return failures

    def invalidate(self, project_id: str | None = None) -> None:
        """Drop one project's entry, or every entry when *project_id* is None.

        In-flight fetches for dropped projects will not repopulate them.
        """
        targets = (
            [project_id]
            if project_id is not None
            else list(set(self._entries) | set(self._pending))
        )
        for pid in targets:
            self._generations[pid] = self._generations.get(pid, 0) + 1
            self._entries.pop(pid, None)

    async def _fetch(self, project_id: str, generation: int) -> list[Folder]:
        folders = list(await self._loader(project_id))
        if self._generations.get(project_id, 0) != generation:
            logger.debug("Discarding stale folder list for project %s", project_id)
            return folders
        self._entries[project_id] = folders
        return folders
