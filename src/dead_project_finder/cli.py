# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Command-line interface for Dead Project Finder.

Exit status:
- 0: analysis completed
- 1: a project manifest could not be analyzed, or a reference cycle was found
- 2: invalid configuration (missing source root or project file)
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from dead_project_finder.analyzers import MSBuildProjectAnalyzer, ProjectAnalysisError
from dead_project_finder.config import Config, ConfigurationError
from dead_project_finder.logging_setup import setup_logging
from dead_project_finder.service import AnalysisContext, DeadProjectFinderService
from dead_project_finder.walker import CyclicReferenceError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def _add_bool_option(
    parser: argparse.ArgumentParser,
    *names: str,
    default: Optional[bool] = None,
    **kwargs: str,
) -> None:
    """Add an option usable as a bare flag or with an explicit true/false value."""
    parser.add_argument(
        *names,
        nargs="?",
        const=True,
        default=default,
        type=_parse_bool,
        metavar="BOOL",
        **kwargs,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dead-project-finder",
        description=(
            'Recursively scans project references within a source folder, counting '
            'dependencies and optionally reporting unreferenced (i.e., "dead") projects.'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--sourceRoot",
        type=Path,
        required=True,
        help="Root directory of source tree to analyze",
    )
    parser.add_argument(
        "--projectFile",
        type=Path,
        required=True,
        help="Project file to analyze",
    )
    _add_bool_option(
        parser,
        "--reportProjects",
        default=False,
        help="Whether to report all top-level projects and their dependencies individually",
    )
    _add_bool_option(
        parser,
        "--reportUnusedProjects",
        "--reportUnused",
        dest="reportUnusedProjects",
        default=True,
        help=(
            "Whether to scan for and report unused projects starting from the "
            "source code root directory"
        ),
    )
    parser.add_argument(
        "--packageListFile",
        type=Path,
        default=None,
        help="Project file declaring the packages to check for unreferenced entries",
    )
    parser.add_argument(
        "--ignorePath",
        action="extend",
        nargs="*",
        default=[],
        help="Path to ignore (relative to --sourceRoot) for dependency analysis. Repeatable.",
    )
    _add_bool_option(
        parser,
        "--enableFileCaching",
        help=(
            "Whether to enable file caching between invocations. Usually only "
            "helpful to disable for debugging purposes."
        ),
    )
    _add_bool_option(
        parser,
        "--detectReferenceCycles",
        help="Whether to stop with an error when projects reference each other cyclically",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: ./.dead_project_finder.yml)",
    )
    parser.add_argument(
        "--logDir",
        type=Path,
        default=None,
        help="Directory for JSON log files (default: no log file)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:]).

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    setup_logging(
        log_dir=args.logDir,
        log_level=logging.DEBUG if args.verbose else logging.INFO,
    )

    config = Config(config_path=args.config)
    analyzer = MSBuildProjectAnalyzer()

    try:
        config.override(
            enable_file_caching=args.enableFileCaching,
            detect_reference_cycles=args.detectReferenceCycles,
            ignore_paths=config.ignore_paths + list(args.ignorePath),
        )
        context = AnalysisContext.create(args.sourceRoot, args.projectFile, config, analyzer)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    service = DeadProjectFinderService(context, analyzer)
    try:
        service.run(
            report_projects=args.reportProjects,
            report_unused_projects=args.reportUnusedProjects,
            package_list_file=args.packageListFile,
        )
    except (ProjectAnalysisError, CyclicReferenceError) as e:
        logger.error(str(e))
        return 1

    return 0
