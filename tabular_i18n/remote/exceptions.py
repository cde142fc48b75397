"""
Remote Service Exceptions

This module contains exception classes for the translation service client.
Separated to avoid circular imports between service.py and providers.py.
"""

from typing import Optional


class TranslationError(Exception):
    """Translation service error with optional code, HTTP status and details."""

    def __init__(self, message: str, code: str = None, status: Optional[int] = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.status = status
        self.details = details or {}
