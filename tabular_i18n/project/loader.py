"""
Project loading.

A project lives in <projects_dir>/<name>/ and contains:
- config.json: name, sourceFile, languages, baseLanguage, keyColumn
- the tabular source file (CSV) named by sourceFile
- one directory per language holding that language's progress.json
"""

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from tabular_i18n.core.store import PROGRESS_FILE_NAME
from tabular_i18n.logger import get_logger

logger = get_logger(__name__)

PROJECT_CONFIG_FILE = "config.json"
CSV_ENCODING = "utf-8-sig"


class ConfigurationError(ValueError):
    """Invalid or missing project configuration; fatal before any translation."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


@dataclass
class Project:
    """A translation project as described by its config.json."""
    name: str
    directory: Path
    source_file: str
    languages: List[str]
    base_language: str
    key_column: str

    @property
    def source_path(self) -> Path:
        return self.directory / self.source_file

    @property
    def config_path(self) -> Path:
        return self.directory / PROJECT_CONFIG_FILE

    @property
    def target_languages(self) -> List[str]:
        return [lang for lang in self.languages if lang != self.base_language]

    def language_dir(self, language: str) -> Path:
        return self.directory / language

    def progress_path(self, language: str) -> Path:
        return self.language_dir(language) / PROGRESS_FILE_NAME

    def to_config(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sourceFile": self.source_file,
            "languages": list(self.languages),
            "baseLanguage": self.base_language,
            "keyColumn": self.key_column,
        }


@dataclass
class Job:
    """Rows to translate plus the column roles; rows are mutated in place."""
    rows: List[Dict[str, str]]
    key_column: str
    base_language: str
    languages: List[str] = field(default_factory=list)

    @property
    def target_languages(self) -> List[str]:
        return [lang for lang in self.languages if lang != self.base_language]


def get_project_dir(name: str, projects_dir: Path) -> Path:
    return Path(projects_dir) / name


def load_project(name: str, projects_dir: Path) -> Project:
    """
    Load a project's config.json.

    Raises:
        ConfigurationError: If the project or a required setting is missing
    """
    if not name:
        raise ConfigurationError("Project name is required", code="project_missing")

    project_dir = get_project_dir(name, projects_dir)
    config_path = project_dir / PROJECT_CONFIG_FILE

    if not config_path.exists():
        raise ConfigurationError(
            f'Project "{name}" not found',
            code="project_missing",
            details={"config_path": str(config_path)},
        )

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Cannot read project config {config_path}: {e}",
            code="project_invalid",
        )

    missing = [
        key for key in ("sourceFile", "languages", "baseLanguage", "keyColumn")
        if not config.get(key)
    ]
    if missing:
        raise ConfigurationError(
            f"Project config {config_path} is missing: {', '.join(missing)}",
            code="project_invalid",
            details={"missing_fields": missing},
        )

    project = Project(
        name=config.get("name", name),
        directory=project_dir,
        source_file=config["sourceFile"],
        languages=list(config["languages"]),
        base_language=config["baseLanguage"],
        key_column=config["keyColumn"],
    )

    if project.base_language not in project.languages:
        raise ConfigurationError(
            f'Base language "{project.base_language}" is not one of the project languages',
            code="language_invalid",
            details={"languages": project.languages},
        )

    logger.debug(f"Loaded project {project.name} from {config_path}")
    return project


def read_rows(csv_path: Path) -> tuple:
    """
    Read a CSV file with a header row.

    Returns:
        (fieldnames, rows) where rows are dicts of column -> text, with
        missing cells as empty strings
    """
    with open(csv_path, 'r', encoding=CSV_ENCODING, newline='') as f:
        reader = csv.DictReader(f)
        fieldnames = list(reader.fieldnames or [])
        rows = [
            {column: (value or "") for column, value in record.items() if column is not None}
            for record in reader
        ]
    return fieldnames, rows


def load_job(project: Project) -> Job:
    """
    Read the project's tabular source into a Job.

    Raises:
        ConfigurationError: If the file is missing, lacks the key or base
            language column, or has duplicate keys
    """
    csv_path = project.source_path
    if not csv_path.exists():
        raise ConfigurationError(
            f"Source file not found: {csv_path}",
            code="source_missing",
        )

    try:
        fieldnames, rows = read_rows(csv_path)
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read source file {csv_path}: {e}", code="source_invalid")

    for column in (project.key_column, project.base_language):
        if column not in fieldnames:
            raise ConfigurationError(
                f'Column "{column}" not found in {csv_path.name}',
                code="column_missing",
                details={"available_columns": fieldnames},
            )

    seen_keys = set()
    duplicates = []
    for row in rows:
        key = row.get(project.key_column, "")
        if key in seen_keys:
            duplicates.append(key)
        seen_keys.add(key)
    if duplicates:
        raise ConfigurationError(
            f"Duplicate keys in {csv_path.name}: {', '.join(duplicates[:10])}",
            code="duplicate_keys",
            details={"duplicates": duplicates},
        )

    logger.info(f"Loaded {len(rows)} rows from {csv_path}")
    return Job(
        rows=rows,
        key_column=project.key_column,
        base_language=project.base_language,
        languages=list(project.languages),
    )


def resolve_target_languages(project: Project, requested: Optional[str] = None) -> List[str]:
    """
    Resolve which languages to process.

    Raises:
        ConfigurationError: If the requested language is not a project
            language or is the base language
    """
    if not requested:
        return project.target_languages

    if requested not in project.languages:
        raise ConfigurationError(
            f'Language "{requested}" is not defined in project configuration',
            code="language_invalid",
            details={"languages": project.languages},
        )
    if requested == project.base_language:
        raise ConfigurationError(
            f'Language "{requested}" is the base language of the project',
            code="language_invalid",
        )
    return [requested]
