"""Integration tests for the MacroBoard command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from macroboard import __version__
from macroboard.cli import cli

CATALOG = {
    "tables": {
        "facts": {"description": "Primary fact table", "expected_columns": ["col", "value"]},
        "dims": {"description": "Dimension table", "expected_columns": ["col", "label"]},
    },
    "macros": {
        "summary": {
            "name": "Summary",
            "description": "Count rows per column value",
            "category": "exploration",
            "depends_on": ["facts"],
            "sqlTemplate": "SELECT col, COUNT(*) FROM {{facts}} GROUP BY col",
        },
        "labelled": {
            "name": "Labelled facts",
            "description": "Facts joined with their labels",
            "category": "quality",
            "depends_on": ["facts", "dims"],
            "sqlTemplate": "SELECT f.col, d.label FROM {{facts}} f JOIN {{dims}} d USING (col)",
        },
    },
}


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")
    return path


@pytest.fixture
def facts_csv(tmp_path):
    path = tmp_path / "facts.csv"
    path.write_text("col,value\na,1\nb,2\n", encoding="utf-8")
    return path


@pytest.fixture
def invoke(settings):
    runner = CliRunner()

    def _invoke(*args):
        with patch("macroboard.cli.get_settings", return_value=settings), \
             patch("macroboard.cli.configure_logging"):
            return runner.invoke(cli, [str(a) for a in args])

    return _invoke


def test_roles_lists_usage_counts(invoke, catalog_file):
    result = invoke("roles", "--catalog", catalog_file)

    assert result.exit_code == 0, result.output
    assert "facts" in result.output
    assert "2 template(s)" in result.output
    assert "[col, label]" in result.output


def test_roles_without_catalog(invoke):
    result = invoke("roles")

    assert result.exit_code == 2
    assert "No catalog given" in result.output


def test_roles_with_invalid_catalog(invoke, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"macros": {"bad-id": {"sqlTemplate": "SELECT 1"}}}', encoding="utf-8")

    result = invoke("roles", "--catalog", path)

    assert result.exit_code == 1
    assert "Invalid catalog document" in result.output


def test_templates_without_files(invoke, catalog_file):
    result = invoke("templates", "--catalog", catalog_file)

    assert result.exit_code == 0, result.output
    assert "0/2 templates available (0%)" in result.output


def test_templates_unlocked_by_loaded_file(invoke, catalog_file, facts_csv):
    result = invoke("templates", "--catalog", catalog_file, facts_csv)

    assert result.exit_code == 0, result.output
    assert "facts -> facts" in result.output
    assert "1/2 templates available (50%)" in result.output
    assert "Summary [exploration] (ready)" in result.output
    assert "SELECT * FROM summary()" in result.output
    assert "Labelled facts" not in result.output


def test_templates_all_shows_missing_roles(invoke, catalog_file, facts_csv):
    result = invoke("templates", "--catalog", catalog_file, "--all", facts_csv)

    assert result.exit_code == 0, result.output
    assert "Labelled facts [quality] (needs dims)" in result.output


def test_templates_search(invoke, catalog_file, facts_csv):
    result = invoke("templates", "--catalog", catalog_file, "--all", "--search", "labels", facts_csv)

    assert result.exit_code == 0, result.output
    assert "Labelled facts" in result.output
    assert "Summary [" not in result.output


def test_templates_explicit_binding(invoke, catalog_file, tmp_path):
    path = tmp_path / "stays.csv"
    path.write_text("col,value\na,1\n", encoding="utf-8")

    result = invoke("templates", "--catalog", catalog_file, "--bind", "facts=stays", path)

    assert result.exit_code == 0, result.output
    assert "facts -> stays" in result.output
    assert "Summary [exploration] (ready)" in result.output


@pytest.mark.parametrize("value", ["facts", "=stays", "unknown=stays"])
def test_templates_rejects_bad_bindings(invoke, catalog_file, value):
    result = invoke("templates", "--catalog", catalog_file, "--bind", value)

    assert result.exit_code == 2
    assert "--bind" in result.output


def test_templates_rejects_unsupported_file_type(invoke, catalog_file, tmp_path):
    path = tmp_path / "facts.txt"
    path.write_text("col,value\na,1\n", encoding="utf-8")

    result = invoke("templates", "--catalog", catalog_file, path)

    assert result.exit_code == 2
    assert "unsupported file type 'facts.txt'" in result.output
    assert not isinstance(result.exception, ValueError)


def test_version_comes_from_package(invoke):
    result = invoke("--version")

    assert result.exit_code == 0
    assert f"MacroBoard, version {__version__}" in result.output
