"""
Remote Module

This module provides the translation service client and related utilities.
"""

from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.remote.service import (
    AttemptOutcome,
    TranslationAttempt,
    TranslationService,
    get_retry_delay,
)

__all__ = [
    'TranslationError',
    'AttemptOutcome',
    'TranslationAttempt',
    'TranslationService',
    'get_retry_delay',
]
