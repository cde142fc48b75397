"""
Batch Translation Module

Groups short, single-line source texts into one multi-line request:
- Eligibility and deduplication of source texts
- Fixed-size chunking in source order
- Splitting the response back per item, with case preservation

A batch relies on the service answering line N with the translation of
line N. A response with the wrong number of lines cannot be attributed to
keys and raises BatchIntegrityError.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from tabular_i18n.core.store import ProgressStore
from tabular_i18n.logger import get_logger
from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.translation.validator import validate_placeholders_preserved

logger = get_logger(__name__)

BATCH_SEPARATOR = "\n"


class BatchIntegrityError(Exception):
    """Batch response line count does not match the batch item count."""

    def __init__(self, message: str, texts: List[str], raw_response: str, translated: List[str]):
        super().__init__(message)
        self.texts = texts
        self.raw_response = raw_response
        self.translated = translated


@dataclass
class BatchRunResult:
    """Outcome of a batch pass."""
    total_batches: int = 0
    translated_count: int = 0
    failed_batches: int = 0
    fallback_count: int = 0
    cancelled: bool = False


def is_text_suitable_for_batch(text: str, max_text_length: int) -> bool:
    """Single-line texts no longer than max_text_length can be batched."""
    return "\n" not in text and "\r" not in text and len(text) <= max_text_length


def select_eligible(
    rows: Iterable[Dict[str, str]],
    base_language: str,
    language: str,
    store: ProgressStore,
    max_text_length: int,
) -> List[str]:
    """
    Collect the untranslated short source texts, deduplicated, in row order.

    A row is eligible when its language cell is empty, its source text has
    no progress entry, and the text is suitable for batching. Deduplication
    is by exact (case-sensitive) value.
    """
    selected: List[str] = []
    seen = set()

    for row in rows:
        if row.get(language):
            continue

        source_text = row.get(base_language) or ""
        if (
            source_text
            and source_text not in store
            and source_text not in seen
            and is_text_suitable_for_batch(source_text, max_text_length)
        ):
            selected.append(source_text)
            seen.add(source_text)

    return selected


def chunk_texts(texts: List[str], batch_size: int) -> List[List[str]]:
    """Split texts into consecutive chunks of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    return [texts[i:i + batch_size] for i in range(0, len(texts), batch_size)]


def preserve_case(source: str, translated: str) -> str:
    """
    Upper-case the first character of translated if source starts upper case.

    Only the first code point is considered, using Unicode case properties:
    scripts without case are left as they are, and an upper-case result is
    never lowered.
    """
    if not source or not translated:
        return translated
    if source[0].isupper() and translated[0].islower():
        return translated[0].upper() + translated[1:]
    return translated


def split_batch_response(texts: List[str], translated_batch: str) -> List[str]:
    """
    Split a joined batch response back into one result per source text.

    Raises:
        BatchIntegrityError: If the line count differs from len(texts)
    """
    translated = translated_batch.rstrip(BATCH_SEPARATOR).split(BATCH_SEPARATOR)

    if len(translated) != len(texts):
        raise BatchIntegrityError(
            f"Batch returned {len(translated)} lines for {len(texts)} texts",
            texts=texts,
            raw_response=translated_batch,
            translated=translated,
        )

    return [
        preserve_case(source, line.strip())
        for source, line in zip(texts, translated)
    ]


class BatchTranslator:
    """
    Runs the batch pass for one target language.

    Every successful chunk is written to the progress store and flushed
    before the next chunk is sent.
    """

    def __init__(
        self,
        service,
        store: ProgressStore,
        source_lang: str,
        target_lang: str,
        failure_policy: str = "fallback",
        cancel_check: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[int, int, int], bool]] = None,
    ):
        if failure_policy not in ("fallback", "abort"):
            raise ValueError(f"Unknown batch failure policy: {failure_policy}")
        self.service = service
        self.store = store
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.failure_policy = failure_policy
        self.cancel_check = cancel_check
        self.progress_callback = progress_callback

    def translate_batch(self, texts: List[str]) -> List[str]:
        """Translate a chunk as one joined request and split the result."""
        batch_text = BATCH_SEPARATOR.join(texts)
        translated_batch = self.service.translate(batch_text, self.source_lang, self.target_lang)
        return split_batch_response(texts, translated_batch)

    def _log_integrity_error(self, error: BatchIntegrityError) -> None:
        logger.error(f"Error translating batch: {error}")
        logger.error("======================= Source batch ========================")
        for idx, text in enumerate(error.texts):
            logger.error(f"  [{idx}] {text!r}")
        logger.error("======================= Split response ========================")
        for idx, text in enumerate(error.translated):
            logger.error(f"  [{idx}] {text!r}")
        logger.error("======================= Raw response ========================")
        logger.error(repr(error.raw_response))

    def run(self, texts: List[str], batch_size: int) -> BatchRunResult:
        """
        Translate texts chunk by chunk.

        Raises:
            BatchIntegrityError, TranslationError: Under the "abort" policy
            ProgressStoreError: If progress cannot be saved
        """
        result = BatchRunResult()

        if not texts:
            logger.info("No short phrases to process in batches.")
            return result

        chunks = chunk_texts(texts, batch_size)
        result.total_batches = len(chunks)
        logger.info(
            f"Found {len(texts)} unique short phrases for batch processing "
            f"({len(chunks)} batches of up to {batch_size})."
        )

        for batch_idx, batch in enumerate(chunks):
            if self.cancel_check and self.cancel_check():
                logger.info("Batch pass cancelled")
                result.cancelled = True
                break

            logger.info(f"Translating batch {batch_idx + 1}/{len(chunks)} ({len(batch)} phrases)...")

            try:
                translations = self.translate_batch(batch)
            except BatchIntegrityError as e:
                self._log_integrity_error(e)
                if self.failure_policy == "abort":
                    raise
                logger.warning(f"Batch {batch_idx + 1} discarded, its {len(batch)} phrases go to the item pass")
                result.failed_batches += 1
                result.fallback_count += len(batch)
                continue
            except TranslationError as e:
                if e.code == "cancelled":
                    result.cancelled = True
                    break
                logger.error(f"Error translating batch {batch_idx + 1}: {e}")
                if self.failure_policy == "abort":
                    raise
                logger.warning(f"Batch {batch_idx + 1} failed, its {len(batch)} phrases go to the item pass")
                result.failed_batches += 1
                result.fallback_count += len(batch)
                continue

            for source_text, translation in zip(batch, translations):
                is_valid, reason = validate_placeholders_preserved(source_text, translation)
                if not is_valid:
                    logger.warning(f"[PLACEHOLDER] {source_text!r} -> {translation!r}: {reason}")

            self.store.update(zip(batch, translations))
            self.store.flush()
            result.translated_count += len(batch)

            if self.progress_callback and self.progress_callback(batch_idx + 1, len(chunks), len(batch)):
                result.cancelled = True
                break

            if batch_idx + 1 < len(chunks) and self.service.pace():
                result.cancelled = True
                break

        logger.info(
            f"Batch processing completed: {result.translated_count} phrases translated, "
            f"{result.failed_batches} batches failed."
        )
        return result
