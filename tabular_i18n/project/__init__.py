"""
Project module - Project management functionality

This module provides:
- creator: Project creation from a CSV file
- loader: Project config and tabular source loading
- generator: Tabular output generation
"""

from tabular_i18n.project.loader import (
    ConfigurationError,
    Job,
    Project,
    load_job,
    load_project,
    read_rows,
    resolve_target_languages,
)

from tabular_i18n.project.creator import create_project

from tabular_i18n.project.generator import (
    FileGenerationError,
    build_output_rows,
    sync_rows_from_progress,
    write_tabular_output,
)
