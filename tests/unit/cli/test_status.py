"""Tests for vectordesk status."""

from __future__ import annotations

from typer.testing import CliRunner

from vectordesk.cli.main import app

runner = CliRunner()


def test_status_empty(db_args):
    result = runner.invoke(app, ["status", *db_args])
    assert result.exit_code == 0, result.output
    assert "sqlite" in result.output
    assert "Projects:   0" in result.output


def test_status_counts_documents_by_status(db_args, workdir, make_pdf):
    pdf = make_pdf(workdir / "guide.pdf")
    runner.invoke(app, ["projects", "create", "Support", *db_args])
    runner.invoke(app, ["folders", "create", "Support", "Manuals", *db_args])
    runner.invoke(app, ["documents", "upload", "Support", "Manuals", str(pdf), *db_args])

    result = runner.invoke(app, ["status", *db_args])
    assert result.exit_code == 0
    assert "Projects:   1" in result.output
    assert "Folders:    1" in result.output
    assert "completed 1" in result.output


def test_status_memory_backend(workdir):
    result = runner.invoke(app, ["status", "--backend", "memory"])
    assert result.exit_code == 0
    assert "in-memory" in result.output


def test_status_http_backend_requires_api_key(workdir):
    result = runner.invoke(app, ["status", "--backend", "http"])
    assert result.exit_code == 1
    assert "VECTORDESK_API_KEY" in result.output
