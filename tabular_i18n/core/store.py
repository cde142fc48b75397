"""
Progress store persistence.

One JSON object per target language maps the exact source text to its
translation. This file is the single source of truth for completed work:
- load_progress() never fails the caller (missing/corrupt -> empty)
- save_progress() writes atomically (temp file + rename) and raises on error
"""

import json
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from tabular_i18n.logger import get_logger

logger = get_logger(__name__)

PROGRESS_FILE_NAME = "progress.json"


class ProgressStoreError(Exception):
    """Raised when progress cannot be written to disk."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


def load_progress(path: Path) -> Dict[str, str]:
    """
    Load a progress file.

    Args:
        path: Location of the progress JSON file

    Returns:
        Mapping of source text to translation; empty if the file is absent,
        unreadable, or not a JSON object of strings
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No progress file at {path}, starting empty")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading progress file {path}: {e}")
        return {}

    if not isinstance(content, dict):
        logger.error(f"Progress file {path} does not contain a JSON object, ignoring it")
        return {}

    progress = {
        source: translated
        for source, translated in content.items()
        if isinstance(translated, str)
    }
    skipped = len(content) - len(progress)
    if skipped:
        logger.warning(f"Ignored {skipped} non-string entries in {path}")

    logger.debug(f"Loaded {len(progress)} progress entries from {path}")
    return progress


def save_progress(path: Path, progress: Dict[str, str]) -> None:
    """
    Write a progress file atomically.

    The data goes to a temp file in the same directory which is then renamed
    over the target, so a reader never observes a half-written file.

    Raises:
        ProgressStoreError: If the write fails
    """
    path = Path(path)
    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        # Create temp file in the same directory (for atomic rename)
        temp_fd, temp_name = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.stem}_",
            suffix=".json.tmp"
        )
        temp_path = Path(temp_name)

        with open(temp_fd, 'w', encoding='utf-8') as f:
            json.dump(progress, f, ensure_ascii=False, indent=2)
            f.write('\n')

        temp_path.replace(path)
        logger.debug(f"Progress saved to {path} ({len(progress)} entries)")

    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise ProgressStoreError(f"Error saving progress file {path}: {e}", path=path)


class ProgressStore:
    """
    In-memory progress for one target language, backed by a JSON file.

    An entry whose translation is the empty string counts as missing, so
    that an empty response from the service is retried on the next pass.
    """

    def __init__(self, path: Path, language: str, entries: Optional[Dict[str, str]] = None):
        self.path = Path(path)
        self.language = language
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def load(cls, path: Path, language: str) -> "ProgressStore":
        return cls(path, language, load_progress(path))

    def __contains__(self, source_text: str) -> bool:
        return bool(self._entries.get(source_text))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, source_text: str) -> Optional[str]:
        """Return the stored translation, or None if there is none."""
        return self._entries.get(source_text) or None

    def set(self, source_text: str, translation: str) -> None:
        self._entries[source_text] = translation

    def update(self, items: Iterable[Tuple[str, str]]) -> None:
        for source_text, translation in items:
            self._entries[source_text] = translation

    def as_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def flush(self) -> None:
        """Persist the current entries (atomic, raises ProgressStoreError)."""
        save_progress(self.path, self._entries)
