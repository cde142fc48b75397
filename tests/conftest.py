"""
Pytest configuration for the tabular-i18n tests.

Shared fixtures: temporary projects, a scripted translation service and a
helper building httpx clients on a MockTransport.
"""

import csv

import httpx
import pytest

from tabular_i18n.project.creator import create_project
from tabular_i18n.remote.exceptions import TranslationError


class FakeService:
    """
    Stand-in for TranslationService that translates line by line.

    Each line is looked up in translations, or rendered as "[<lang>] <line>".
    Texts listed in fail_on raise a TranslationError. responder, when given,
    replaces the whole lookup (used to return malformed batch responses).
    on_call is invoked with the request text before it is answered.
    """

    def __init__(self, translations=None, fail_on=(), responder=None, on_call=None):
        self.translations = dict(translations or {})
        self.fail_on = set(fail_on)
        self.responder = responder
        self.on_call = on_call
        self.calls = []
        self.pace_calls = 0

    def _translate_line(self, line, target_lang):
        if line in self.translations:
            return self.translations[line]
        return f"[{target_lang}] {line}"

    def translate(self, text, source_lang, target_lang):
        self.calls.append(text)
        if self.on_call:
            self.on_call(text)
        if text in self.fail_on:
            raise TranslationError(f"Cannot translate {text!r}", code="http_error", status=500)
        if self.responder:
            return self.responder(text, target_lang)
        return "\n".join(self._translate_line(line, target_lang) for line in text.split("\n"))

    def pace(self):
        self.pace_calls += 1
        return False


@pytest.fixture
def projects_dir(tmp_path):
    """Directory holding the projects of a test."""
    directory = tmp_path / "projects"
    directory.mkdir()
    return directory


@pytest.fixture
def write_csv(tmp_path):
    """Write a CSV file (header + rows) under tmp_path and return its path."""
    def _write(name, header, rows):
        csv_path = tmp_path / name
        with open(csv_path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return csv_path
    return _write


@pytest.fixture
def make_project(write_csv, projects_dir):
    """
    Create a project from rows.

    Default layout: key column "key", base language "en", target "fr".
    """
    def _make(rows, name="demo", header=("key", "en", "fr"), base_language="en", key_column="key"):
        csv_path = write_csv(f"{name}.csv", header, rows)
        return create_project(name, csv_path, base_language, key_column, projects_dir)
    return _make


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
def service_factory():
    """Build a FakeService with custom translations or failures."""
    return FakeService


@pytest.fixture
def mock_client():
    """Build an httpx.Client whose requests are answered by handler."""
    clients = []

    def _build(handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _build

    for client in clients:
        client.close()
