"""
Project creation from a tabular source file.

This module handles the complete project creation workflow:
1. Validate the CSV (key column and base language column present)
2. Create the project directory with config.json
3. Create one directory per language and copy the CSV in
"""

import csv
import json
import shutil
from pathlib import Path

from tabular_i18n.logger import get_logger
from tabular_i18n.project.loader import (
    CSV_ENCODING,
    PROJECT_CONFIG_FILE,
    ConfigurationError,
    Project,
    get_project_dir,
)

logger = get_logger(__name__)


def _read_header(csv_path: Path) -> list:
    with open(csv_path, 'r', encoding=CSV_ENCODING, newline='') as f:
        reader = csv.reader(f)
        for header in reader:
            if any(cell.strip() for cell in header):
                return header
    return []


def create_project(
    name: str,
    csv_path: Path,
    base_language: str,
    key_column: str,
    projects_dir: Path,
) -> Project:
    """
    Create a new project from a CSV file.

    Args:
        name: Project name (also the directory name)
        csv_path: Path to the CSV file (header row: key column + languages)
        base_language: Column holding the source language
        key_column: Column holding the stable translation keys
        projects_dir: Directory that holds all projects

    Returns:
        The created Project

    Raises:
        ConfigurationError: If the project exists or the CSV does not fit
    """
    logger.info(f"Creating project: {name}")

    if not name:
        raise ConfigurationError("Project name is required", code="project_missing")

    csv_path = Path(csv_path).resolve()
    project_dir = get_project_dir(name, projects_dir)

    if project_dir.exists():
        raise ConfigurationError(f'Project "{name}" already exists', code="project_exists")

    logger.info(f"Trying to read CSV from: {csv_path}")
    if not csv_path.exists():
        raise ConfigurationError(f"CSV file not found: {csv_path}", code="source_missing")

    try:
        header = _read_header(csv_path)
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Error reading CSV file {csv_path}: {e}", code="source_invalid")

    if not header:
        raise ConfigurationError(f"CSV file is empty: {csv_path}", code="source_invalid")

    if key_column not in header:
        raise ConfigurationError(
            f'Key column "{key_column}" not found in CSV file. '
            f"Available columns: {', '.join(header)}",
            code="column_missing",
            details={"available_columns": header},
        )

    # Language codes are the headers other than the key column
    languages = [column for column in header if column != key_column]

    if base_language not in languages:
        raise ConfigurationError(
            f'Base language "{base_language}" not found in CSV file. '
            f"Available languages: {', '.join(languages)}",
            code="language_invalid",
            details={"languages": languages},
        )

    project = Project(
        name=name,
        directory=project_dir,
        source_file=csv_path.name,
        languages=languages,
        base_language=base_language,
        key_column=key_column,
    )

    project_dir.mkdir(parents=True)
    with open(project_dir / PROJECT_CONFIG_FILE, 'w', encoding='utf-8') as f:
        json.dump(project.to_config(), f, indent=2, ensure_ascii=False)

    for lang in languages:
        project.language_dir(lang).mkdir(exist_ok=True)

    shutil.copyfile(csv_path, project.source_path)

    logger.info(f'Project "{name}" created successfully')
    logger.info(f"Languages detected: {', '.join(languages)}")
    logger.info(f"Base language: {base_language}")
    logger.info(f'Using "{key_column}" as translation key column')

    return project
