"""
tabular-i18n: resumable bulk translation of CSV language columns.

Organisation of the package:
- remote/: translation service client with retries
- translation/: placeholder masking, batching, orchestration
- core/: per-language progress store
- project/: project creation, loading and tabular output
- tasks.py: job runner (signals, exit codes)
- cli.py: command line interface
"""

__version__ = "0.1.0"
