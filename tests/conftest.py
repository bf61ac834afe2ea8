"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pypdf
import pytest

from vectordesk.db.connection import Database
from vectordesk.db.migrations import run_migrations
from vectordesk.store import EntityStore
from vectordesk.transport.memory import MemoryTransport


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with migrations applied, closed after test."""
    db = Database(tmp_path / ".vectordesk.db")
    conn = db.connect()
    run_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def transport():
    return MemoryTransport()


@pytest.fixture
def store(transport):
    return EntityStore(transport)


def _write_pdf(path: Path, pages: int = 1) -> Path:
    writer = pypdf.PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=72, height=72)
    with open(path, "wb") as fh:
        writer.write(fh)
    return path


@pytest.fixture
def make_pdf():
    """Factory writing a real PDF with *pages* blank pages to a path."""
    return _write_pdf


@pytest.fixture
def pdf_file(tmp_path):
    return _write_pdf(tmp_path / "guide.pdf")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep user config and VECTORDESK_* variables out of every test."""
    for var in (
        "VECTORDESK_API_URL",
        "VECTORDESK_API_KEY",
        "VECTORDESK_BACKEND",
        "VECTORDESK_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "vectordesk.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml"
    )
