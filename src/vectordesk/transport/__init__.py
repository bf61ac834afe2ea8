"""Backend transports: in-memory mock, local SQLite and HTTP API."""

from __future__ import annotations

from pathlib import Path

from vectordesk.transport.base import Transport
from vectordesk.transport.http import HttpTransport
from vectordesk.transport.memory import MemoryTransport
from vectordesk.transport.sqlite import SqliteTransport

__all__ = [
    "Transport",
    "MemoryTransport",
    "SqliteTransport",
    "HttpTransport",
    "create_transport",
]


def create_transport(
    kind: str,
    *,
    db_path: Path | str = ".vectordesk.db",
    api_url: str = "http://localhost:3000",
    api_key: str = "",
    timeout: float = 30.0,
) -> Transport:
    """Build the transport named by *kind* (``sqlite``, ``memory`` or ``http``)."""
    if kind == "sqlite":
        return SqliteTransport(db_path)
    if kind == "memory":
        return MemoryTransport()
    if kind == "http":
        return HttpTransport(api_url, api_key=api_key, timeout=timeout)
    raise ValueError(f"Unknown backend '{kind}'. Expected one of: sqlite, memory, http.")
