"""
Translation module - Core translation functionality

This module provides:
- TranslationManager: Main translation workflow coordinator
- RunState: Run context shared with the shutdown path
- TranslationProgress: Progress tracking dataclass
- Placeholder masking and validation
- Batch planning and batch translation
"""

from tabular_i18n.translation.placeholders import mask, unmask
from tabular_i18n.translation.validator import (
    extract_placeholders,
    validate_placeholders_preserved,
)
from tabular_i18n.translation.batch import (
    BatchIntegrityError,
    BatchRunResult,
    BatchTranslator,
    chunk_texts,
    is_text_suitable_for_batch,
    preserve_case,
    select_eligible,
    split_batch_response,
)
from tabular_i18n.translation.progress import TranslationProgress
from tabular_i18n.translation.state import RunState
from tabular_i18n.translation.manager import TranslationManager
