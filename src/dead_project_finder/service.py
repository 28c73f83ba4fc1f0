# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""DeadProjectFinderService - coordinates one analysis run.

Key Responsibilities:
- Build the per-run AnalysisContext (ignore set, caches, counters)
- Resolve the entry-point project and fan out over its direct references
- Compute the unreferenced project and package sets
- Drive the console report

Run Workflow:
1. Validate source root and project file (ConfigurationError if missing)
2. Build PathFilter from ignore paths and .gitmodules
3. Resolve the entry point; its project references are the top-level projects
4. GlobalAggregator walks every top-level project in parallel
5. UnreferencedSetComputer subtracts the counters from the inventory
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dead_project_finder.aggregator import GlobalAggregator
from dead_project_finder.analyzers.base import ProjectAnalyzer
from dead_project_finder.config import Config, ConfigurationError
from dead_project_finder.file_cache import ContentAddressedCache
from dead_project_finder.models import GlobalCounters, WalkResult
from dead_project_finder.path_filter import PathFilter
from dead_project_finder.report import ReportWriter
from dead_project_finder.resolver import MemoizingResolver
from dead_project_finder.unreferenced import UnreferencedSetComputer
from dead_project_finder.walker import DependencyWalker

logger = logging.getLogger(__name__)


@dataclass
class AnalysisContext:
    """Everything one run shares between its components.

    Constructed once per run and passed to each component explicitly, so
    several runs (or tests) can coexist in one process.
    """

    source_root: Path
    project_file: Path
    config: Config
    path_filter: PathFilter
    file_cache: ContentAddressedCache
    resolver: MemoizingResolver
    counters: GlobalCounters = field(default_factory=GlobalCounters)

    @classmethod
    def create(
        cls,
        source_root: Path,
        project_file: Path,
        config: Config,
        analyzer: ProjectAnalyzer,
    ) -> "AnalysisContext":
        """Validate inputs and build a fresh context.

        Raises:
            ConfigurationError: If the source root or project file does not exist.
        """
        source_root = Path(os.path.abspath(source_root))
        project_file = Path(os.path.abspath(project_file))

        if not source_root.is_dir():
            raise ConfigurationError(f"Source root directory {source_root} does not exist.")
        if not project_file.is_file():
            raise ConfigurationError(f"Project file {project_file} does not exist.")

        path_filter = PathFilter.for_source_root(source_root, config.ignore_paths)
        file_cache = ContentAddressedCache(config.cache_dir, enabled=config.enable_file_caching)

        def is_ignored(projectpath: str) -> bool:
            try:
                relative_path = os.path.relpath(projectpath, source_root)
            except ValueError:
                return False
            return path_filter.is_ignored(relative_path)

        resolver = MemoizingResolver(analyzer, file_cache, is_ignored)
        return cls(
            source_root=source_root,
            project_file=project_file,
            config=config,
            path_filter=path_filter,
            file_cache=file_cache,
            resolver=resolver,
        )


@dataclass
class RunSummary:
    """Outcome of a run."""

    walk_results: List[WalkResult]
    project_counts: Dict[str, int]
    package_counts: Dict[str, int]
    unreferenced_projects: Optional[List[str]]
    unreferenced_packages: Optional[List[str]]
    elapsed_ms: int


class DeadProjectFinderService:
    """Runs the dependency analysis for one entry-point project.

    Usage:
        context = AnalysisContext.create(root, project, config, MSBuildProjectAnalyzer())
        service = DeadProjectFinderService(context, analyzer)
        summary = service.run(report_unused_projects=True)
    """

    def __init__(
        self,
        context: AnalysisContext,
        analyzer: ProjectAnalyzer,
        report: Optional[ReportWriter] = None,
    ) -> None:
        """Initialize the service.

        Args:
            context: Per-run state built by AnalysisContext.create().
            analyzer: Analyzer used for the package-list manifest.
            report: Writer for the console report (default: stdout).
        """
        self.context = context
        self._analyzer = analyzer
        self._report = report or ReportWriter()
        self._walker = DependencyWalker(
            context.resolver,
            str(context.source_root),
            detect_cycles=context.config.detect_reference_cycles,
        )

    def run(
        self,
        report_projects: bool = False,
        report_unused_projects: bool = True,
        package_list_file: Optional[Path] = None,
    ) -> RunSummary:
        """Analyze the entry point and report.

        Args:
            report_projects: Whether to write a block per top-level project.
            report_unused_projects: Whether to compute unreferenced project files.
            package_list_file: Manifest declaring packages to check for use.

        Returns:
            RunSummary with counts and unreferenced sets.

        Raises:
            ProjectAnalysisError: If any reachable manifest cannot be analyzed.
            CyclicReferenceError: If the cycle guard detects a reference cycle.
        """
        context = self.context

        package_list_exists = package_list_file is not None and package_list_file.is_file()
        self._report.write_banner(
            source_root=str(context.source_root),
            caching_enabled=context.file_cache.enabled,
            report_projects=report_projects,
            report_unused_projects=report_unused_projects,
            package_list_file=str(package_list_file) if package_list_file else None,
            package_list_exists=package_list_exists,
            ignore_paths=context.config.ignore_paths,
            project_file=str(context.project_file),
        )
        if package_list_file is not None and not package_list_exists:
            logger.warning(f"Package list file {package_list_file} does not exist or cannot be read")

        start = time.perf_counter()
        root_analysis = context.resolver.resolve(str(context.project_file))

        aggregator = GlobalAggregator(
            self._walker,
            context.counters,
            report=self._report if report_projects else None,
            max_workers=context.config.max_workers,
        )
        walk_results = aggregator.run(root_analysis.project_references)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        self._report.write_global_counts(context.counters, elapsed_ms)
        logger.debug(f"File cache statistics: {context.file_cache.get_statistics()}")

        computer = UnreferencedSetComputer(
            context.source_root,
            context.path_filter,
            context.config.project_extensions,
            context.config.inventory_excluded_prefixes,
        )

        unreferenced_projects = None
        if report_unused_projects:
            unreferenced_projects = computer.unreferenced_projects(
                context.project_file, context.counters.projects
            )
            self._report.write_unreferenced_projects(unreferenced_projects)

        unreferenced_packages = None
        if package_list_file is not None and package_list_exists:
            declared = self._analyzer.list_declared_packages(os.path.abspath(package_list_file))
            unreferenced_packages = computer.unreferenced_packages(
                declared, context.counters.packages
            )
            self._report.write_unreferenced_packages(unreferenced_packages)

        return RunSummary(
            walk_results=walk_results,
            project_counts=context.counters.projects.to_dict(),
            package_counts=context.counters.packages.to_dict(),
            unreferenced_projects=unreferenced_projects,
            unreferenced_packages=unreferenced_packages,
            elapsed_ms=elapsed_ms,
        )
