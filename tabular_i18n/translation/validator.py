"""
Translation Validation Module

Contains validation functions for checking translation quality:
- Placeholder preservation checks
"""

from collections import Counter
from typing import List, Optional, Tuple

from tabular_i18n.logger import get_logger
from tabular_i18n.translation.placeholders import PLACEHOLDER_PATTERN

logger = get_logger(__name__)


def extract_placeholders(text: str) -> List[str]:
    """
    Extract all {param} placeholders from text.

    Args:
        text: Text to extract placeholders from

    Returns:
        List of placeholder strings (with braces) in order of appearance
    """
    if not text:
        return []
    return [match.group(0) for match in PLACEHOLDER_PATTERN.finditer(text)]


def validate_placeholders_preserved(source: str, translation: str) -> Tuple[bool, Optional[str]]:
    """
    Check that the translation carries exactly the placeholders of the source.

    Order is not checked: translations legitimately move parameters around.

    Args:
        source: Original source text
        translation: Translated text after unmasking

    Returns:
        Tuple of (is_valid, error_reason)
    """
    source_params = Counter(extract_placeholders(source))
    translation_params = Counter(extract_placeholders(translation))

    if source_params == translation_params:
        return True, None

    missing = source_params - translation_params
    if missing:
        return False, f"placeholders_lost:{','.join(sorted(missing))}"

    extra = translation_params - source_params
    return False, f"placeholders_added:{','.join(sorted(extra))}"
