"""
Translation Progress Data Class

Contains the TranslationProgress dataclass for tracking translation progress.
"""

from dataclasses import dataclass


@dataclass
class TranslationProgress:
    """Progress information for ongoing translation."""
    current_language: str
    total_languages: int
    completed_languages: int
    current_item: int = 0
    total_items: int = 0
    current_key: str = ""
    current_text: str = ""
    success_count: int = 0
    failure_count: int = 0
    # Batch progress fields
    current_batch: int = 0           # Current batch number (1-indexed)
    total_batches: int = 0           # Total batches for current language
    batch_items_count: int = 0       # Number of texts in current batch
    phase: str = "loaded"            # loaded|batch_pass|batch_done|item_pass|flushed|completed
