"""
Translation job runner.

Wires a RunState to the process signals, runs the TranslationManager and
maps the outcome to a process exit code. Every failure path attempts a
best-effort flush of progress and tabular output first.
"""

from __future__ import annotations

import signal
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from tabular_i18n import config as cfg
from tabular_i18n.core.store import ProgressStoreError
from tabular_i18n.logger import get_logger
from tabular_i18n.project.generator import FileGenerationError
from tabular_i18n.project.loader import ConfigurationError, load_job, load_project
from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.remote.service import TranslationService
from tabular_i18n.translation.batch import BatchIntegrityError
from tabular_i18n.translation.manager import TranslationManager
from tabular_i18n.translation.state import RunState

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class JobOptions:
    """Options for one translation run (CLI flags over config values)."""

    project: str
    language: Optional[str] = None
    rebuild: bool = False
    skip_batch: bool = False
    batch_size: Optional[int] = None
    batch_max_text_length: Optional[int] = None
    batch_failure_policy: Optional[str] = None
    projects_dir: Optional[Path] = None
    overrides: Dict[str, Any] = field(default_factory=dict)


def install_signal_handlers(
    state: RunState,
    grace_seconds: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[], None]:
    """
    Route SIGINT/SIGTERM into the run state.

    The first signal requests a cooperative stop: the pipeline notices it
    between rows or batches and goes through its normal flush. A second
    signal flushes right away from the handler, waits grace_seconds for
    file writes to settle, and exits with status 0.

    Returns:
        A function restoring the previous handlers
    """
    previous = {sig: signal.getsignal(sig) for sig in HANDLED_SIGNALS}

    def _handle(signum, frame):
        name = signal.Signals(signum).name
        if not state.cancel_requested:
            logger.warning(f"Process interrupted ({name}), stopping after the current request...")
            state.request_cancel(name)
            return

        logger.warning(f"Received {name} again, initiating immediate shutdown...")
        try:
            state.flush()
            logger.info("All progress saved successfully.")
        except Exception as e:
            logger.error(f"Error during shutdown flush: {e}")
            sleep(grace_seconds)
            raise SystemExit(EXIT_FAILURE)
        sleep(grace_seconds)
        raise SystemExit(EXIT_OK)

    for sig in HANDLED_SIGNALS:
        signal.signal(sig, _handle)

    def restore():
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return restore


def _best_effort_flush(state: RunState) -> None:
    """Flush whatever the run state holds, logging instead of raising."""
    try:
        state.flush()
    except Exception as e:
        logger.error(f"Error saving progress during shutdown: {e}")


def run_translation_job(
    options: JobOptions,
    config: Optional[Dict[str, Any]] = None,
    service: Optional[TranslationService] = None,
    state: Optional[RunState] = None,
    install_signals: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Run a full translation job and return the process exit code.

    Args:
        options: Project name, language and pipeline flags
        config: Loaded configuration (defaults when omitted)
        service: Translation service (built from config when omitted)
        state: Run state (a fresh one when omitted)
        install_signals: Register SIGINT/SIGTERM handlers for the run
        sleep: Used for the shutdown grace delay

    Returns:
        EXIT_OK on completion or clean interruption, EXIT_FAILURE otherwise
    """
    config = dict(config or cfg.DEFAULT_CONFIG)
    config.update({k: v for k, v in options.overrides.items() if v is not None})
    state = state or RunState()
    grace_seconds = float(config.get("shutdown_grace_seconds", 2.0))
    projects_dir = Path(options.projects_dir or config.get("projects_dir", "data/projects"))

    restore_signals = install_signal_handlers(state, grace_seconds, sleep) if install_signals else None
    owns_service = service is None

    try:
        project = load_project(options.project, projects_dir)
        job = load_job(project)
        state.attach(job, project.source_path)

        if service is None:
            service = TranslationService.from_config(config, cancel_event=state.cancel_event)

        manager = TranslationManager(project, job, service, state=state, config=config)
        result = manager.translate_project(
            target_language=options.language,
            rebuild=options.rebuild,
            skip_batch=options.skip_batch,
            batch_size=options.batch_size,
            batch_max_text_length=options.batch_max_text_length,
            batch_failure_policy=options.batch_failure_policy,
        )

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        _best_effort_flush(state)
        return EXIT_FAILURE

    except (BatchIntegrityError, TranslationError) as e:
        logger.error(f"Batch translation failed, aborting run: {e}")
        _best_effort_flush(state)
        sleep(grace_seconds)
        return EXIT_FAILURE

    except (ProgressStoreError, FileGenerationError) as e:
        logger.error(f"Could not save progress: {e}")
        _best_effort_flush(state)
        return EXIT_FAILURE

    except Exception as exc:
        logger.exception(f"Unhandled error: {type(exc).__name__}: {exc}")
        _best_effort_flush(state)
        sleep(grace_seconds)
        return EXIT_FAILURE

    finally:
        if restore_signals:
            restore_signals()
        if owns_service and service is not None:
            service.close()

    if result.get("cancelled"):
        logger.info(f"Translation interrupted ({state.cancel_reason}), progress saved.")
        sleep(grace_seconds)
        return EXIT_OK

    logger.info("Translation process completed!")
    if result.get("total_failed"):
        logger.warning(f"{result['total_failed']} texts could not be translated and were left empty")
    return EXIT_OK
