# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Parallel fan-out over top-level projects.

One walk runs per top-level reference of the entry-point project, scheduled
on a shared thread pool. Each walk runs synchronously to completion; only the
top-level fan-out is parallel. Every edge of every walk is folded into the
run's GlobalCounters, one increment per occurrence. Since the walks start one
level below the entry point, all of these edges are transitive references of
the entry point.

The first walk failure (analyzer error, reference cycle) cancels walks that
have not started yet and is re-raised once the running ones finish.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence

from dead_project_finder.models import GlobalCounters, WalkResult
from dead_project_finder.report import ReportWriter
from dead_project_finder.walker import DependencyWalker

logger = logging.getLogger(__name__)


class GlobalAggregator:
    """Runs one DependencyWalker walk per top-level project and merges counts.

    Usage:
        aggregator = GlobalAggregator(walker, counters)
        results = aggregator.run(root_analysis.project_references)
        counters.projects.items()
    """

    def __init__(
        self,
        walker: DependencyWalker,
        counters: GlobalCounters,
        report: Optional[ReportWriter] = None,
        max_workers: int = 0,
    ) -> None:
        """Initialize the aggregator.

        Args:
            walker: Walker shared by all workers.
            counters: Run-wide counters to increment.
            report: When given, each finished walk is rendered as a report block.
            max_workers: Pool size; 0 means one worker per top-level project.
        """
        self._walker = walker
        self._counters = counters
        self._report = report
        self._max_workers = max_workers

    def run(self, top_level_projects: Sequence[str]) -> List[WalkResult]:
        """Walk every top-level project concurrently.

        Args:
            top_level_projects: Absolute paths of the entry point's direct references.

        Returns:
            Walk results in the order of top_level_projects.

        Raises:
            ProjectAnalysisError: If any reachable manifest cannot be analyzed.
            CyclicReferenceError: If a reference cycle is detected.
        """
        if not top_level_projects:
            return []

        workers = self._max_workers or len(top_level_projects)
        logger.debug(f"Walking {len(top_level_projects)} top-level projects on {workers} workers")

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="walker") as executor:
            futures: Dict["Future[WalkResult]", int] = {
                executor.submit(self._walk_one, project): index
                for index, project in enumerate(top_level_projects)
            }
            done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise error

        results: List[Optional[WalkResult]] = [None] * len(top_level_projects)
        for future, index in futures.items():
            results[index] = future.result()
        return [result for result in results if result is not None]

    def _walk_one(self, projectpath: str) -> WalkResult:
        result = self._walker.walk(projectpath)
        self._counters.record(result)
        logger.debug(f"Walked {projectpath} in {result.elapsed_ms} ms")

        if self._report is not None:
            self._report.write_project_block(result)
        return result
