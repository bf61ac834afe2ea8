"""Simulated document-processing notifier.

The real pipeline (chunking, embedding, vector storage) runs in a separate
backend. Here each uploaded document gets an asyncio task that, after a
delay, completes it with a random vector count or fails it. A document
deleted before its task fires stays deleted: the store answers NotFound and
the task quietly ends.
"""

from __future__ import annotations

import asyncio
import logging
import random

from vectordesk.errors import InvalidStateTransition, NotFound
from vectordesk.models import Document
from vectordesk.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to process document"


class ProcessingSimulator:
    """Resolve processing documents after *delay* seconds."""

    def __init__(
        self,
        store: EntityStore,
        *,
        delay: float = 3.0,
        failure_rate: float = 0.1,
        min_vectors: int = 10,
        max_vectors: int = 500,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be in [0.0, 1.0]")
        if not 1 <= min_vectors <= max_vectors:
            raise ValueError("need 1 <= min_vectors <= max_vectors")
        self.store = store
        self.delay = delay
        self.failure_rate = failure_rate
        self.min_vectors = min_vectors
        self.max_vectors = max_vectors
        self._rng = rng or random.Random()
        self._tasks: set[asyncio.Task[Document | None]] = set()

    def schedule(self, document: Document) -> asyncio.Task[Document | None]:
        """Start the delayed transition for *document* and return its task."""
        task = asyncio.ensure_future(self._run(document.id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled transition to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, document_id: str) -> Document | None:
        await asyncio.sleep(self.delay)
        try:
            if self._rng.random() < self.failure_rate:
                return await self.store.fail_document(document_id, DEFAULT_ERROR_MESSAGE)
            vectors = self._rng.randint(self.min_vectors, self.max_vectors)
            return await self.store.complete_document(document_id, vectors)
        except NotFound:
            logger.info("Document %s was deleted before processing finished", document_id)
            return None
        except InvalidStateTransition as exc:
            logger.warning("Skipping processing result: %s", exc)
            return None
