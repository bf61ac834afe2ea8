"""Tests for vectordesk folders commands."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from vectordesk.cli.folders import parse_field_specs
from vectordesk.cli.main import app
from vectordesk.models import FieldType

runner = CliRunner()


@pytest.fixture
def project(db_args):
    result = runner.invoke(app, ["projects", "create", "Support", *db_args])
    assert result.exit_code == 0, result.output
    return "Support"


# ---------------------------------------------------------------------------
# --field parsing
# ---------------------------------------------------------------------------


def test_parse_field_specs():
    fields = parse_field_specs(
        ["category:select:Hardware,Software", "pages:number:optional", "author"]
    )
    assert [f.key for f in fields] == ["category", "pages", "author"]
    assert fields[0].options == ["Hardware", "Software"]
    assert fields[1].type is FieldType.NUMBER
    assert fields[1].required is False
    assert fields[2].type is FieldType.TEXT


def test_parse_field_specs_select_without_options_is_left_for_validation():
    [field] = parse_field_specs(["category:select"])
    assert field.options == []


@pytest.mark.parametrize("spec", ["category:colour", "pages:number:1,2", "a:select:x:y"])
def test_parse_field_specs_rejects(spec):
    with pytest.raises(ValueError):
        parse_field_specs([spec])


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def test_create_folder_with_fields(project, db_args):
    result = runner.invoke(
        app,
        [
            "folders", "create", project, "Manuals",
            "--chunk-size", "800", "--chunk-overlap", "100",
            "--field", "category:select:Hardware,Software",
            "--field", "pages:number:optional",
            *db_args,
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Created folder" in result.output
    assert "Chunk size: 800" in result.output

    result = runner.invoke(app, ["folders", "show", project, "Manuals", *db_args])
    assert result.exit_code == 0
    assert "category: select" in result.output
    assert "pages: number" in result.output


def test_create_folder_uses_config_defaults(project, db_args):
    result = runner.invoke(app, ["folders", "create", project, "Manuals", *db_args])
    assert result.exit_code == 0
    assert "Chunk size: 1000" in result.output
    assert "Overlap: 200" in result.output


def test_create_folder_clamps_overlap(project, db_args):
    result = runner.invoke(
        app,
        ["folders", "create", project, "Manuals", "--chunk-size", "1000",
         "--chunk-overlap", "600", *db_args],
    )
    assert result.exit_code == 0
    assert "Overlap: 500" in result.output


def test_create_folder_select_without_options(project, db_args):
    result = runner.invoke(
        app, ["folders", "create", project, "Manuals", "--field", "category:select", *db_args]
    )
    assert result.exit_code == 1
    assert "at least one option" in result.output


def test_create_folder_duplicate_keys(project, db_args):
    result = runner.invoke(
        app,
        ["folders", "create", project, "Manuals",
         "--field", "author", "--field", "author:date", *db_args],
    )
    assert result.exit_code == 1
    assert "more than once" in result.output


def test_create_folder_bad_field_spec(project, db_args):
    result = runner.invoke(
        app, ["folders", "create", project, "Manuals", "--field", "a:colour", *db_args]
    )
    assert result.exit_code == 1
    assert "Cannot parse metadata field" in result.output


def test_list_folders(project, db_args):
    runner.invoke(app, ["folders", "create", project, "Manuals", *db_args])
    result = runner.invoke(app, ["folders", "list", project, *db_args])
    assert result.exit_code == 0
    assert "Manuals" in result.output


def test_list_folders_empty(project, db_args):
    result = runner.invoke(app, ["folders", "list", project, *db_args])
    assert result.exit_code == 0
    assert "No folders" in result.output


def test_update_folder_appends_fields(project, db_args):
    runner.invoke(
        app, ["folders", "create", project, "Manuals", "--field", "author", *db_args]
    )
    result = runner.invoke(
        app,
        ["folders", "update", project, "Manuals", "--chunk-size", "400",
         "--field", "released:date", *db_args],
    )
    assert result.exit_code == 0, result.output
    assert "only affects documents uploaded afterwards" in result.output
    assert "Chunk size: 400" in result.output
    # overlap re-clamped to the new bound
    assert "Overlap: 200" in result.output
    assert "author: text" in result.output
    assert "released: date" in result.output


def test_update_folder_clear_fields_and_rename(project, db_args):
    runner.invoke(
        app, ["folders", "create", project, "Manuals", "--field", "author", *db_args]
    )
    result = runner.invoke(
        app,
        ["folders", "update", project, "Manuals", "--name", "Guides", "--clear-fields",
         *db_args],
    )
    assert result.exit_code == 0
    assert "Updated folder Guides" in result.output
    assert "author" not in result.output.split("Updated folder")[1]


def test_delete_folder(project, db_args):
    runner.invoke(app, ["folders", "create", project, "Manuals", *db_args])
    result = runner.invoke(app, ["folders", "delete", project, "Manuals", "--yes", *db_args])
    assert result.exit_code == 0
    assert "Deleted folder" in result.output

    result = runner.invoke(app, ["projects", "show", project, *db_args])
    assert "Folders: 0" in result.output


def test_delete_folder_cancelled(project, db_args):
    runner.invoke(app, ["folders", "create", project, "Manuals", *db_args])
    result = runner.invoke(
        app, ["folders", "delete", project, "Manuals", *db_args], input="n\n"
    )
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    result = runner.invoke(app, ["folders", "show", project, "Manuals", *db_args])
    assert result.exit_code == 0


def test_show_unknown_folder(project, db_args):
    result = runner.invoke(app, ["folders", "show", project, "Nope", *db_args])
    assert result.exit_code == 1
    assert "Folder not found" in result.output
