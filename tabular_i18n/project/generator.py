"""
Tabular output generator module.

This module handles regenerating the tabular file from the in-memory job:
- Syncing a language column from its authoritative progress store
- Atomic file writing (temp file + rename)
"""

import csv
import tempfile
from pathlib import Path
from typing import Dict, List

from tabular_i18n.core.store import ProgressStore
from tabular_i18n.logger import get_logger

logger = get_logger(__name__)


class FileGenerationError(Exception):
    """File generation error."""
    pass


def sync_rows_from_progress(
    rows: List[Dict[str, str]],
    base_language: str,
    language: str,
    store: ProgressStore,
) -> int:
    """
    Copy translations from the progress store into the language column.

    The store wins over whatever the row holds, so a translation that was
    flushed to the store but never reached the row is not lost.

    Returns:
        Number of cells that changed
    """
    changed = 0
    for row in rows:
        translation = store.get(row.get(base_language, ""))
        if translation and row.get(language) != translation:
            row[language] = translation
            changed += 1
    if changed:
        logger.debug(f"Synced {changed} {language} cells from progress")
    return changed


def build_output_rows(rows: List[Dict[str, str]], key_column: str, languages: List[str]) -> List[Dict[str, str]]:
    """One output row per input row: key column then every language, in order."""
    output = []
    for row in rows:
        out_row = {key_column: row.get(key_column, "")}
        for lang in languages:
            out_row[lang] = row.get(lang) or ""
        output.append(out_row)
    return output


def write_tabular_output(
    file_path: Path,
    rows: List[Dict[str, str]],
    key_column: str,
    languages: List[str],
) -> None:
    """
    Write the CSV output atomically.

    Raises:
        FileGenerationError: If write fails
    """
    file_path = Path(file_path)
    fieldnames = [key_column] + [lang for lang in languages if lang != key_column]
    output_rows = build_output_rows(rows, key_column, fieldnames[1:])

    temp_path = None
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Create temp file in the same directory (for atomic rename)
        temp_fd, temp_name = tempfile.mkstemp(
            dir=file_path.parent,
            prefix=f".{file_path.stem}_",
            suffix=".csv.tmp"
        )
        temp_path = Path(temp_name)

        with open(temp_fd, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(output_rows)

        temp_path.replace(file_path)

    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
        raise FileGenerationError(f"Atomic write failed for {file_path}: {e}")

    logger.info(f"Saved {len(output_rows)} records to {file_path}")
