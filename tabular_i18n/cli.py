"""Command line interface: create projects and translate them."""

import argparse
from pathlib import Path
from typing import List, Optional

from tabular_i18n import config as cfg
from tabular_i18n.logger import get_logger, set_log_mode
from tabular_i18n.project.creator import create_project
from tabular_i18n.project.loader import ConfigurationError
from tabular_i18n.tasks import EXIT_FAILURE, EXIT_OK, JobOptions, run_translation_job

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabular-i18n",
        description="Translate the language columns of a CSV file through a DeepLX-compatible API.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("--projects-dir", type=Path, help="Directory holding the projects")
    parser.add_argument("--log-mode", choices=cfg.LOG_MODES, help="Logging verbosity")

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser(
        "create",
        help="Create a project from a CSV file",
        epilog="example: tabular-i18n create -n myproject -c path/to/file.csv -b en -k translation_key",
    )
    create.add_argument("-n", "--name", required=True, help="Project name")
    create.add_argument("-c", "--csv", required=True, type=Path, help="Path to CSV file")
    create.add_argument("-b", "--base-lang", required=True, help="Base language code")
    create.add_argument("-k", "--key", required=True, help="Column name containing translation keys")

    translate = subparsers.add_parser(
        "translate",
        help="Translate a project",
        epilog=(
            "examples:\n"
            "  tabular-i18n translate myproject fr    Translate myproject to French\n"
            "  tabular-i18n translate myproject       Translate myproject to all languages\n"
            "  tabular-i18n translate -p myproject -l fr"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    translate.add_argument("project_arg", nargs="?", metavar="project", help="Project name")
    translate.add_argument("lang_arg", nargs="?", metavar="lang", help="Target language code (optional)")
    translate.add_argument("-p", "--project", help="Project name")
    translate.add_argument("-l", "--lang", help="Target language code (optional)")
    translate.add_argument("-a", "--api", help="API endpoint")
    translate.add_argument("--pro", action="store_true", default=None, help="Use pro API endpoint")
    translate.add_argument("--skip-batch", action="store_true", help="Skip batch processing")
    translate.add_argument("--batch-size", type=int, help="Batch size")
    translate.add_argument("--batch-max-text-length", type=int, help="Max text length for batching")
    translate.add_argument(
        "--batch-failure",
        choices=cfg.BATCH_FAILURE_POLICIES,
        help="On a failed batch: fall back to per-item translation, or abort the run",
    )
    translate.add_argument(
        "--rebuild",
        action="store_true",
        help="Rebuild translations based on progress files",
    )
    return parser


def _run_create(args, config) -> int:
    projects_dir = args.projects_dir or Path(config["projects_dir"])
    try:
        create_project(args.name, args.csv, args.base_lang, args.key, projects_dir)
    except ConfigurationError as e:
        logger.error(f"Error creating project: {e}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"Error creating project: {e}")
        return EXIT_FAILURE
    return EXIT_OK


def _run_translate(args, config) -> int:
    project_name = args.project or args.project_arg
    if not project_name:
        logger.error("Project name is required")
        return EXIT_FAILURE

    options = JobOptions(
        project=project_name,
        language=args.lang or args.lang_arg,
        rebuild=args.rebuild,
        skip_batch=args.skip_batch,
        batch_size=args.batch_size,
        batch_max_text_length=args.batch_max_text_length,
        batch_failure_policy=args.batch_failure,
        projects_dir=args.projects_dir,
        overrides={"api_endpoint": args.api, "pro": args.pro},
    )
    return run_translation_job(options, config=config)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = cfg.load_config(args.config)
    set_log_mode(args.log_mode or config.get("log_mode", "info"))

    if args.command == "create":
        return _run_create(args, config)
    return _run_translate(args, config)
