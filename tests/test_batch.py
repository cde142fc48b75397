"""
Tests for batch planning and the batch pass.
"""

import json

import pytest

from tabular_i18n.core.store import ProgressStore
from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.translation.batch import (
    BatchIntegrityError,
    BatchTranslator,
    chunk_texts,
    is_text_suitable_for_batch,
    preserve_case,
    select_eligible,
    split_batch_response,
)


def rows_from(*texts, lang_values=None):
    lang_values = lang_values or {}
    return [
        {"key": f"k{i}", "en": text, "fr": lang_values.get(text, "")}
        for i, text in enumerate(texts)
    ]


class TestEligibility:
    """Tests for batch eligibility and selection."""

    def test_suitable_text(self):
        assert is_text_suitable_for_batch("Hello", 100)
        assert is_text_suitable_for_batch("x" * 100, 100)
        assert not is_text_suitable_for_batch("x" * 101, 100)
        assert not is_text_suitable_for_batch("line one\nline two", 100)
        assert not is_text_suitable_for_batch("line one\r\nline two", 100)

    def test_select_skips_done_and_dedups(self, tmp_path):
        """Filled cells, stored texts, empty texts and repeats are skipped."""
        store = ProgressStore(tmp_path / "progress.json", "fr", {"Stored": "Enregistré"})
        rows = rows_from(
            "Hello", "Done", "Stored", "", "Hello", "hello", "Multi\nline", "x" * 150,
            lang_values={"Done": "Fait"},
        )

        assert select_eligible(rows, "en", "fr", store, 100) == ["Hello", "hello"]

    def test_chunk_texts(self):
        assert chunk_texts(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]
        assert chunk_texts([], 30) == []

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValueError):
            chunk_texts(["a"], 0)


class TestSplitResponse:
    """Tests for splitting batch responses."""

    def test_case_preservation(self):
        assert preserve_case("Hello", "bonjour") == "Bonjour"
        assert preserve_case("hello", "Bonjour") == "Bonjour"
        assert preserve_case("hello", "bonjour") == "bonjour"
        assert preserve_case("Hello", "") == ""
        assert preserve_case("Hello", "你好") == "你好"

    def test_split_strips_and_preserves_case(self):
        result = split_batch_response(["Hello", "world"], " bonjour \nmonde\n")

        assert result == ["Bonjour", "monde"]

    def test_line_count_mismatch(self):
        with pytest.raises(BatchIntegrityError) as exc_info:
            split_batch_response(["Hello", "world", "again"], "bonjour monde\nencore")

        error = exc_info.value
        assert error.texts == ["Hello", "world", "again"]
        assert error.translated == ["bonjour monde", "encore"]
        assert error.raw_response == "bonjour monde\nencore"


class TestBatchTranslator:
    """Tests for BatchTranslator.run()."""

    def test_chunks_are_flushed_one_by_one(self, tmp_path, service_factory):
        """Every successful chunk is on disk before the next request."""
        path = tmp_path / "progress.json"
        store = ProgressStore(path, "fr")
        flushed_before_call = []

        def on_call(text):
            flushed_before_call.append(json.loads(path.read_text(encoding="utf-8")) if path.exists() else {})

        service = service_factory(
            translations={"Hello": "bonjour", "Yes": "oui", "No": "non"},
            on_call=on_call,
        )
        translator = BatchTranslator(service, store, "en", "fr")

        result = translator.run(["Hello", "Yes", "No"], batch_size=2)

        assert service.calls == ["Hello\nYes", "No"]
        assert flushed_before_call == [{}, {"Hello": "Bonjour", "Yes": "Oui"}]
        assert store.as_dict() == {"Hello": "Bonjour", "Yes": "Oui", "No": "Non"}
        assert result.total_batches == 2
        assert result.translated_count == 3
        # pacing only between chunks
        assert service.pace_calls == 1

    def test_mismatch_falls_back(self, tmp_path, service_factory):
        """Under the fallback policy a bad batch is dropped and the rest go on."""
        store = ProgressStore(tmp_path / "progress.json", "fr")

        def responder(text, target_lang):
            if text.startswith("Hello"):
                return "just one line"
            return "non"

        service = service_factory(responder=responder)
        translator = BatchTranslator(service, store, "en", "fr", failure_policy="fallback")

        result = translator.run(["Hello", "Yes", "No"], batch_size=2)

        assert result.failed_batches == 1
        assert result.fallback_count == 2
        assert result.translated_count == 1
        assert store.as_dict() == {"No": "Non"}

    def test_mismatch_aborts(self, tmp_path, service_factory):
        store = ProgressStore(tmp_path / "progress.json", "fr")
        service = service_factory(responder=lambda text, target_lang: "one line")
        translator = BatchTranslator(service, store, "en", "fr", failure_policy="abort")

        with pytest.raises(BatchIntegrityError):
            translator.run(["Hello", "Yes"], batch_size=2)

        assert store.as_dict() == {}

    def test_remote_failure_falls_back(self, tmp_path, service_factory):
        store = ProgressStore(tmp_path / "progress.json", "fr")
        service = service_factory(fail_on={"Hello\nYes"})
        translator = BatchTranslator(service, store, "en", "fr")

        result = translator.run(["Hello", "Yes"], batch_size=2)

        assert result.failed_batches == 1
        assert store.as_dict() == {}

    def test_remote_failure_aborts(self, tmp_path, service_factory):
        store = ProgressStore(tmp_path / "progress.json", "fr")
        service = service_factory(fail_on={"Hello\nYes"})
        translator = BatchTranslator(service, store, "en", "fr", failure_policy="abort")

        with pytest.raises(TranslationError):
            translator.run(["Hello", "Yes"], batch_size=2)

    def test_cancel_check_stops_before_next_chunk(self, tmp_path, service_factory):
        store = ProgressStore(tmp_path / "progress.json", "fr")
        service = service_factory()
        checks = iter([False, True])
        translator = BatchTranslator(service, store, "en", "fr", cancel_check=lambda: next(checks))

        result = translator.run(["a", "b", "c"], batch_size=1)

        assert result.cancelled is True
        assert service.calls == ["a"]
        assert list(store) == ["a"]

    def test_unknown_policy(self, tmp_path, fake_service):
        with pytest.raises(ValueError):
            BatchTranslator(fake_service, ProgressStore(tmp_path / "p.json", "fr"), "en", "fr", failure_policy="retry")
