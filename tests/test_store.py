"""
Tests for the per-language progress store.
"""

import json

import pytest

from tabular_i18n.core.store import (
    ProgressStore,
    ProgressStoreError,
    load_progress,
    save_progress,
)


class TestLoadProgress:
    """Tests for load_progress()."""

    def test_missing_file_is_empty(self, tmp_path):
        assert load_progress(tmp_path / "fr" / "progress.json") == {}

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "progress.json"
        path.write_text("{ not json", encoding="utf-8")

        assert load_progress(path) == {}

    def test_non_object_is_empty(self, tmp_path):
        path = tmp_path / "progress.json"
        path.write_text('["Hello", "Bonjour"]', encoding="utf-8")

        assert load_progress(path) == {}

    def test_non_string_values_are_dropped(self, tmp_path):
        path = tmp_path / "progress.json"
        path.write_text(json.dumps({"Hello": "Bonjour", "Bad": 3}), encoding="utf-8")

        assert load_progress(path) == {"Hello": "Bonjour"}


class TestSaveProgress:
    """Tests for save_progress()."""

    def test_written_as_utf8_json(self, tmp_path):
        path = tmp_path / "fr" / "progress.json"

        save_progress(path, {"Hello": "Bonjour", "Tea": "Thé"})

        content = path.read_text(encoding="utf-8")
        assert "Thé" in content
        assert json.loads(content) == {"Hello": "Bonjour", "Tea": "Thé"}

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "progress.json"

        save_progress(path, {"a": "b"})
        save_progress(path, {"a": "c"})

        assert [p.name for p in tmp_path.iterdir()] == ["progress.json"]
        assert load_progress(path) == {"a": "c"}

    def test_write_failure_raises(self, tmp_path):
        """A target that cannot be replaced raises ProgressStoreError."""
        path = tmp_path / "progress.json"
        path.mkdir()

        with pytest.raises(ProgressStoreError) as exc_info:
            save_progress(path, {"a": "b"})

        assert exc_info.value.path == path
        assert [p.name for p in tmp_path.iterdir()] == ["progress.json"]


class TestProgressStore:
    """Tests for the ProgressStore wrapper."""

    def test_empty_translation_counts_as_missing(self, tmp_path):
        store = ProgressStore(tmp_path / "progress.json", "fr", {"Hello": "", "Bye": "Au revoir"})

        assert "Hello" not in store
        assert store.get("Hello") is None
        assert "Bye" in store
        assert store.get("Bye") == "Au revoir"

    def test_flush_and_reload(self, tmp_path):
        path = tmp_path / "fr" / "progress.json"
        store = ProgressStore.load(path, "fr")
        assert len(store) == 0

        store.set("Hello", "Bonjour")
        store.update([("Yes", "Oui"), ("No", "Non")])
        store.flush()

        reloaded = ProgressStore.load(path, "fr")
        assert reloaded.as_dict() == {"Hello": "Bonjour", "Yes": "Oui", "No": "Non"}
        assert sorted(reloaded) == ["Hello", "No", "Yes"]
