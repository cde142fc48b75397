"""
Run state shared between the pipeline and the shutdown path.

The orchestrator writes it; the signal handler only reads it (and sets the
cancellation event). flush() is the single routine used both at the end of
every language and on interruption or fault.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tabular_i18n.core.store import ProgressStore
from tabular_i18n.logger import get_logger
from tabular_i18n.project.generator import sync_rows_from_progress, write_tabular_output
from tabular_i18n.project.loader import Job

logger = get_logger(__name__)


@dataclass
class RunState:
    """Currently active job, language, progress store and output location."""

    job: Optional[Job] = None
    output_path: Optional[Path] = None
    current_language: Optional[str] = None
    store: Optional[ProgressStore] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    cancel_reason: Optional[str] = None
    _flush_lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def attach(self, job: Job, output_path: Path) -> None:
        self.job = job
        self.output_path = Path(output_path)

    def begin_language(self, language: str, store: ProgressStore) -> None:
        self.current_language = language
        self.store = store

    def request_cancel(self, reason: str = "cancel requested") -> None:
        """Ask the pipeline to stop at its next safe point."""
        if not self.cancel_event.is_set():
            self.cancel_reason = reason
            logger.info(f"Cancellation requested: {reason}")
        self.cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self.cancel_event.is_set()

    def flush(self) -> bool:
        """
        Persist progress and regenerate the tabular output.

        Safe to call at any time and more than once: fields that are not
        populated yet are skipped. Write failures propagate.

        Returns:
            True if the tabular output was written
        """
        with self._flush_lock:
            if self.store is not None:
                self.store.flush()
                logger.info(f"Progress saved to {self.store.path}")

            if self.job is None or self.output_path is None:
                logger.info("No current state to save")
                return False

            if self.current_language and self.store is not None:
                sync_rows_from_progress(
                    self.job.rows,
                    self.job.base_language,
                    self.current_language,
                    self.store,
                )

            logger.info(f"Saving CSV to {self.output_path}")
            write_tabular_output(
                self.output_path,
                self.job.rows,
                self.job.key_column,
                self.job.languages,
            )
            return True
