"""
Translation Manager Module

Main TranslationManager class that coordinates the translation workflow.
Each target language goes through the same sequence:

    LOADED -> BATCH_PASS -> ITEM_PASS -> FLUSHED

- LOADED: read the language's progress store (optionally clearing cells
  that have no backing progress entry when rebuilding)
- BATCH_PASS: translate short single-line texts in joined requests
- ITEM_PASS: translate whatever is still missing one text at a time
- FLUSHED: save progress and regenerate the tabular output
"""

import time
from typing import Any, Callable, Dict, List, Optional

from tabular_i18n import config as cfg
from tabular_i18n.core.store import ProgressStore
from tabular_i18n.logger import get_logger
from tabular_i18n.project.loader import ConfigurationError, Job, Project, resolve_target_languages
from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.translation.batch import BatchTranslator, select_eligible
from tabular_i18n.translation.progress import TranslationProgress
from tabular_i18n.translation.state import RunState
from tabular_i18n.translation.validator import validate_placeholders_preserved

logger = get_logger(__name__)


class TranslationManager:
    """
    Manages the translation workflow for one project.

    Features:
    - Batch pass then per-item pass for each target language
    - Progress store reuse (identical source texts are translated once)
    - Cooperative cancellation between rows and batches
    - Flush after every unit of work and at the end of each language
    """

    def __init__(
        self,
        project: Project,
        job: Job,
        service,
        state: Optional[RunState] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize translation manager.

        Args:
            project: Loaded project (languages, progress locations)
            job: Rows to translate, mutated in place
            service: TranslationService (or anything with translate/pace)
            state: Run state shared with the shutdown handler
            config: Loaded configuration dict (defaults when omitted)
        """
        self.project = project
        self.job = job
        self.service = service
        self.state = state or RunState()
        self.config = config or cfg.DEFAULT_CONFIG
        self.failed_items: List[Dict[str, Any]] = []
        self.start_time: Optional[float] = None
        self._progress_callback: Optional[Callable[[TranslationProgress], bool]] = None

        if self.state.job is None:
            self.state.attach(job, project.source_path)

    def _cancelled(self) -> bool:
        return self.state.cancel_requested

    def _emit(self, progress: TranslationProgress) -> bool:
        """Send a progress update; a True return requests cancellation."""
        if self._progress_callback and self._progress_callback(progress):
            self.state.request_cancel("progress callback")
            return True
        return False

    def _build_result(
        self,
        languages: List[str],
        translated_count: int,
        reused_count: int,
        failure_count: int,
        cancelled: bool = False,
    ) -> Dict[str, Any]:
        """Build the result dictionary."""
        elapsed_time = time.time() - self.start_time if self.start_time else 0

        result = {
            "success": failure_count == 0 and not cancelled,
            "languages": languages,
            "total_translated": translated_count,
            "total_reused": reused_count,
            "total_failed": failure_count,
            "failed_items": self.failed_items,
            "elapsed_time": elapsed_time,
            "cancelled": cancelled,
        }

        logger.info(
            "Translation %s in %.1f seconds (translated=%d, reused=%d, failed=%d)",
            "cancelled" if cancelled else "completed",
            elapsed_time,
            translated_count,
            reused_count,
            failure_count,
        )

        return result

    def _load_language(self, lang: str, rebuild: bool) -> ProgressStore:
        """LOADED: read the progress store and apply the rebuild flag."""
        store = ProgressStore.load(self.project.progress_path(lang), lang)
        self.state.begin_language(lang, store)
        logger.info(f"Loaded {len(store)} progress entries for {lang}")

        if rebuild:
            cleared = 0
            for row in self.job.rows:
                if row.get(self.job.base_language, "") in store:
                    continue
                if row.get(lang):
                    cleared += 1
                row[lang] = ""
            logger.info(f"Rebuild: cleared {cleared} {lang} cells without a progress entry")

        return store

    def _run_batch_pass(
        self,
        lang: str,
        store: ProgressStore,
        lang_idx: int,
        total_languages: int,
        batch_size: int,
        batch_max_text_length: int,
        failure_policy: str,
    ):
        """BATCH_PASS: translate eligible short texts in joined requests."""
        logger.info("Processing short phrases in batches...")

        texts = select_eligible(
            self.job.rows,
            self.job.base_language,
            lang,
            store,
            batch_max_text_length,
        )

        def on_batch_done(batch_number: int, total_batches: int, batch_len: int) -> bool:
            return self._emit(TranslationProgress(
                current_language=lang,
                total_languages=total_languages,
                completed_languages=lang_idx,
                current_batch=batch_number,
                total_batches=total_batches,
                batch_items_count=batch_len,
                phase="batch_done",
            ))

        translator = BatchTranslator(
            self.service,
            store,
            self.job.base_language,
            lang,
            failure_policy=failure_policy,
            cancel_check=self._cancelled,
            progress_callback=on_batch_done,
        )
        return translator.run(texts, batch_size)

    def _run_item_pass(self, lang: str, store: ProgressStore, lang_idx: int, total_languages: int) -> Dict[str, Any]:
        """ITEM_PASS: fill every remaining cell, reusing progress where possible."""
        base_language = self.job.base_language
        key_column = self.job.key_column
        counts = {"translated": 0, "reused": 0, "failed": 0, "cancelled": False}
        total_rows = len(self.job.rows)

        for row_idx, row in enumerate(self.job.rows):
            if self._cancelled():
                counts["cancelled"] = True
                break

            if row.get(lang):
                continue

            source_text = row.get(base_language) or ""
            if not source_text:
                logger.debug(f"Skipping {row.get(key_column)}: empty {base_language} text")
                continue

            existing = store.get(source_text)
            if existing:
                row[lang] = existing
                counts["reused"] += 1
                continue

            logger.info(f"Translating: {source_text}")
            try:
                translation = self.service.translate(source_text, base_language, lang)
            except TranslationError as e:
                if e.code == "cancelled":
                    counts["cancelled"] = True
                    break
                logger.error(f'Error translating text "{source_text}": {e}')
                self._record_failure(row, lang, str(e))
                counts["failed"] += 1
                continue

            if not translation:
                logger.warning(f'Empty translation for "{source_text}", leaving it unset')
                self._record_failure(row, lang, "empty_translation")
                counts["failed"] += 1
                continue

            is_valid, reason = validate_placeholders_preserved(source_text, translation)
            if not is_valid:
                logger.warning(f"[PLACEHOLDER] {row.get(key_column)}: {reason}")

            store.set(source_text, translation)
            row[lang] = translation
            # Save progress after each successful translation
            store.flush()
            counts["translated"] += 1

            if self._emit(TranslationProgress(
                current_language=lang,
                total_languages=total_languages,
                completed_languages=lang_idx,
                current_item=row_idx + 1,
                total_items=total_rows,
                current_key=row.get(key_column, ""),
                current_text=source_text,
                success_count=counts["translated"],
                failure_count=counts["failed"],
                phase="item_pass",
            )):
                counts["cancelled"] = True
                break

            # Wait before next request
            if self.service.pace():
                counts["cancelled"] = True
                break

        return counts

    def _record_failure(self, row: Dict[str, str], lang: str, error: str) -> None:
        self.failed_items.append({
            "key": row.get(self.job.key_column, ""),
            "language_code": lang,
            "source_text": row.get(self.job.base_language, ""),
            "error": error,
        })

    def translate_project(
        self,
        target_language: Optional[str] = None,
        rebuild: bool = False,
        skip_batch: bool = False,
        batch_size: Optional[int] = None,
        batch_max_text_length: Optional[int] = None,
        batch_failure_policy: Optional[str] = None,
        progress_callback: Optional[Callable[[TranslationProgress], bool]] = None,
    ) -> Dict[str, Any]:
        """
        Translate every missing cell for the target languages.

        Args:
            target_language: Only this language (default: every non-base language)
            rebuild: Clear cells whose source text has no progress entry
            skip_batch: Skip the batch pass
            batch_size: Texts per batch request
            batch_max_text_length: Longest text eligible for batching
            batch_failure_policy: "fallback" or "abort" on a failed batch
            progress_callback: Optional callback; returning True cancels

        Returns:
            Dict with results including success status, counts and failures

        Raises:
            ConfigurationError: Invalid target language or batch failure
                policy (before any work)
            BatchIntegrityError, TranslationError: Failed batch under "abort"
            ProgressStoreError, FileGenerationError: Persistence failures
        """
        languages = resolve_target_languages(self.project, target_language)

        batch_size = batch_size or self.config.get("batch_size", cfg.DEFAULT_BATCH_SIZE)
        batch_max_text_length = batch_max_text_length or self.config.get(
            "batch_max_text_length", cfg.DEFAULT_BATCH_MAX_TEXT_LENGTH
        )
        failure_policy = batch_failure_policy or self.config.get("batch_failure_policy", "fallback")
        if failure_policy not in cfg.BATCH_FAILURE_POLICIES:
            raise ConfigurationError(
                f'Unknown batch failure policy "{failure_policy}" '
                f"(expected one of: {', '.join(cfg.BATCH_FAILURE_POLICIES)})",
                code="config_invalid",
                details={"batch_failure_policy": failure_policy},
            )
        if batch_size < 1:
            raise ConfigurationError(
                f"batch_size must be at least 1, got {batch_size}",
                code="config_invalid",
                details={"batch_size": batch_size},
            )

        logger.info(f"Starting translation for project {self.project.name}: {', '.join(languages) or 'nothing to do'}")
        self.start_time = time.time()
        self.failed_items = []
        self._progress_callback = progress_callback

        translated_count = 0
        reused_count = 0
        failure_count = 0
        total_languages = len(languages)

        # Process each language completely before moving to the next
        for lang_idx, lang in enumerate(languages):
            if self._cancelled():
                logger.info("Translation cancelled before processing %s", lang)
                self.state.flush()
                return self._build_result(languages, translated_count, reused_count, failure_count, cancelled=True)

            logger.info(f"Processing language: {lang}")
            store = self._load_language(lang, rebuild)
            self._emit(TranslationProgress(
                current_language=lang,
                total_languages=total_languages,
                completed_languages=lang_idx,
                total_items=len(self.job.rows),
                phase="loaded",
            ))

            if not skip_batch and not self._cancelled():
                self._emit(TranslationProgress(
                    current_language=lang,
                    total_languages=total_languages,
                    completed_languages=lang_idx,
                    phase="batch_pass",
                ))
                batch_result = self._run_batch_pass(
                    lang, store, lang_idx, total_languages,
                    batch_size, batch_max_text_length, failure_policy,
                )
                translated_count += batch_result.translated_count
                if batch_result.cancelled and not self._cancelled():
                    self.state.request_cancel("batch pass interrupted")
                self.state.flush()

            if self._cancelled():
                logger.info(f"Translation cancelled while processing {lang}")
                self.state.flush()
                return self._build_result(languages, translated_count, reused_count, failure_count, cancelled=True)

            self._emit(TranslationProgress(
                current_language=lang,
                total_languages=total_languages,
                completed_languages=lang_idx,
                total_items=len(self.job.rows),
                phase="item_pass",
            ))
            counts = self._run_item_pass(lang, store, lang_idx, total_languages)
            translated_count += counts["translated"]
            reused_count += counts["reused"]
            failure_count += counts["failed"]

            # Save progress and output for current language
            self.state.flush()

            if counts["cancelled"]:
                logger.info(f"Translation cancelled while processing {lang}")
                return self._build_result(languages, translated_count, reused_count, failure_count, cancelled=True)

            self._emit(TranslationProgress(
                current_language=lang,
                total_languages=total_languages,
                completed_languages=lang_idx + 1,
                success_count=counts["translated"],
                failure_count=counts["failed"],
                phase="flushed",
            ))
            logger.info(f"Completed translations for {lang}")

        self._emit(TranslationProgress(
            current_language="",
            total_languages=total_languages,
            completed_languages=total_languages,
            success_count=translated_count,
            failure_count=failure_count,
            phase="completed",
        ))
        return self._build_result(languages, translated_count, reused_count, failure_count)
