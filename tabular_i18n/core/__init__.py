"""
Core module - Persistence utilities

This module provides:
- store: Per-language progress store (atomic JSON persistence)
"""

from tabular_i18n.core.store import (
    PROGRESS_FILE_NAME,
    ProgressStore,
    ProgressStoreError,
    load_progress,
    save_progress,
)
