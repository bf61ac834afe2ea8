"""Fixtures for CLI tests: an isolated working directory with fast processing."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """CWD with a vectordesk.yaml that makes simulated processing instant."""
    (tmp_path / "vectordesk.yaml").write_text(
        yaml.dump({"processing": {"delay_seconds": 0, "failure_rate": 0.0}}),
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def db_args(workdir: Path) -> list[str]:
    return ["--db", str(workdir / ".vectordesk.db")]
