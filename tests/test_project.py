"""
Tests for project creation, loading and tabular output.
"""

import json

import pytest

from tabular_i18n.core.store import ProgressStore
from tabular_i18n.project.creator import create_project
from tabular_i18n.project.generator import (
    FileGenerationError,
    sync_rows_from_progress,
    write_tabular_output,
)
from tabular_i18n.project.loader import (
    ConfigurationError,
    load_job,
    load_project,
    read_rows,
    resolve_target_languages,
)


class TestCreateProject:
    """Tests for create_project()."""

    def test_creates_layout(self, write_csv, projects_dir):
        csv_path = write_csv("strings.csv", ["key", "en", "fr", "de"], [["greet", "Hello", "", ""]])

        project = create_project("game", csv_path, "en", "key", projects_dir)

        project_dir = projects_dir / "game"
        config = json.loads((project_dir / "config.json").read_text(encoding="utf-8"))
        assert config == {
            "name": "game",
            "sourceFile": "strings.csv",
            "languages": ["en", "fr", "de"],
            "baseLanguage": "en",
            "keyColumn": "key",
        }
        assert (project_dir / "strings.csv").exists()
        for lang in ("en", "fr", "de"):
            assert (project_dir / lang).is_dir()
        assert project.target_languages == ["fr", "de"]

    def test_existing_project(self, make_project, write_csv, projects_dir):
        make_project([["greet", "Hello", ""]])
        csv_path = write_csv("other.csv", ["key", "en", "fr"], [])

        with pytest.raises(ConfigurationError) as exc_info:
            create_project("demo", csv_path, "en", "key", projects_dir)

        assert exc_info.value.code == "project_exists"

    def test_missing_csv(self, tmp_path, projects_dir):
        with pytest.raises(ConfigurationError) as exc_info:
            create_project("demo", tmp_path / "nope.csv", "en", "key", projects_dir)

        assert exc_info.value.code == "source_missing"
        assert not (projects_dir / "demo").exists()

    def test_missing_key_column(self, write_csv, projects_dir):
        csv_path = write_csv("strings.csv", ["id", "en", "fr"], [])

        with pytest.raises(ConfigurationError) as exc_info:
            create_project("demo", csv_path, "en", "key", projects_dir)

        assert exc_info.value.code == "column_missing"

    def test_base_language_not_in_csv(self, write_csv, projects_dir):
        csv_path = write_csv("strings.csv", ["key", "en", "fr"], [])

        with pytest.raises(ConfigurationError) as exc_info:
            create_project("demo", csv_path, "ja", "key", projects_dir)

        assert exc_info.value.code == "language_invalid"


class TestLoadProject:
    """Tests for project and job loading."""

    def test_unknown_project(self, projects_dir):
        with pytest.raises(ConfigurationError) as exc_info:
            load_project("missing", projects_dir)

        assert exc_info.value.code == "project_missing"

    def test_incomplete_config(self, projects_dir):
        project_dir = projects_dir / "broken"
        project_dir.mkdir()
        (project_dir / "config.json").write_text(json.dumps({"name": "broken"}), encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            load_project("broken", projects_dir)

        assert exc_info.value.details["missing_fields"] == ["sourceFile", "languages", "baseLanguage", "keyColumn"]

    def test_load_job(self, make_project, projects_dir):
        make_project([["greet", "Hello", ""], ["bye", "Goodbye", "Au revoir"]])

        project = load_project("demo", projects_dir)
        job = load_job(project)

        assert job.key_column == "key"
        assert job.target_languages == ["fr"]
        assert job.rows == [
            {"key": "greet", "en": "Hello", "fr": ""},
            {"key": "bye", "en": "Goodbye", "fr": "Au revoir"},
        ]

    def test_duplicate_keys(self, make_project, projects_dir):
        make_project([["greet", "Hello", ""], ["greet", "Hi", ""]])

        with pytest.raises(ConfigurationError) as exc_info:
            load_job(load_project("demo", projects_dir))

        assert exc_info.value.code == "duplicate_keys"

    def test_resolve_target_languages(self, make_project):
        project = make_project([], header=("key", "en", "fr", "de"))

        assert resolve_target_languages(project) == ["fr", "de"]
        assert resolve_target_languages(project, "de") == ["de"]
        with pytest.raises(ConfigurationError):
            resolve_target_languages(project, "it")
        with pytest.raises(ConfigurationError):
            resolve_target_languages(project, "en")


class TestTabularOutput:
    """Tests for output generation."""

    def test_columns_and_order(self, tmp_path):
        rows = [
            {"key": "greet", "en": "Hello", "fr": "Bonjour", "extra": "dropped"},
            {"key": "bye", "en": "Goodbye"},
        ]
        out = tmp_path / "out.csv"

        write_tabular_output(out, rows, "key", ["en", "fr"])

        fieldnames, written = read_rows(out)
        assert fieldnames == ["key", "en", "fr"]
        assert written == [
            {"key": "greet", "en": "Hello", "fr": "Bonjour"},
            {"key": "bye", "en": "Goodbye", "fr": ""},
        ]
        assert [p.name for p in tmp_path.iterdir()] == ["out.csv"]

    def test_multiline_and_quotes_survive(self, tmp_path):
        rows = [{"key": "k", "en": 'Say "hi",\nthen leave', "fr": ""}]
        out = tmp_path / "out.csv"

        write_tabular_output(out, rows, "key", ["en", "fr"])

        assert read_rows(out)[1] == rows

    def test_write_failure(self, tmp_path):
        out = tmp_path / "out.csv"
        out.mkdir()

        with pytest.raises(FileGenerationError):
            write_tabular_output(out, [], "key", ["en"])

    def test_sync_from_progress_store_wins(self, tmp_path):
        store = ProgressStore(tmp_path / "progress.json", "fr", {"Hello": "Bonjour", "Bye": ""})
        rows = [
            {"key": "a", "en": "Hello", "fr": "Salut"},
            {"key": "b", "en": "Bye", "fr": "Ciao"},
            {"key": "c", "en": "Other", "fr": ""},
        ]

        changed = sync_rows_from_progress(rows, "en", "fr", store)

        assert changed == 1
        assert [row["fr"] for row in rows] == ["Bonjour", "Ciao", ""]
