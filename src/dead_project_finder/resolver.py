# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""In-process memoization of project analysis results.

MemoizingResolver is the single entry point the walker uses to obtain a
project's direct references. Within one run, each project path is analyzed
at most once:

1. A Future for the path key is registered under a lock before any work
   starts, so concurrent callers for the same key wait on one computation.
2. The owner consults the content-addressed cache, then the analyzer.
3. A fresh analysis is published to the cache. If another writer already
   published a record for the same content, that complete record is adopted.

Analyzer failures propagate to every caller waiting on the key.

Thread Safety:
- _lock protects _entries; computation happens outside the lock.
"""

import logging
import os
from concurrent.futures import Future
from threading import Lock
from typing import Dict, Optional

from dead_project_finder.analyzers.base import IgnorePredicate, ProjectAnalyzer
from dead_project_finder.file_cache import ContentAddressedCache
from dead_project_finder.models import ProjectAnalysis

logger = logging.getLogger(__name__)


def _never_ignored(_path: str) -> bool:
    return False


class MemoizingResolver:
    """Run-scoped, concurrency-safe cache of ProjectAnalysis by project path.

    Path keys compare case-insensitively.

    Usage:
        resolver = MemoizingResolver(analyzer, file_cache, path_filter_predicate)
        analysis = resolver.resolve("/src/App/App.csproj")
    """

    def __init__(
        self,
        analyzer: ProjectAnalyzer,
        file_cache: Optional[ContentAddressedCache] = None,
        is_ignored: Optional[IgnorePredicate] = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            analyzer: Analyzer invoked on a miss in both cache tiers.
            file_cache: Optional persistent cache tier.
            is_ignored: Predicate passed through to the analyzer.
        """
        self._analyzer = analyzer
        self._file_cache = file_cache
        self._is_ignored = is_ignored or _never_ignored

        self._entries: Dict[str, "Future[ProjectAnalysis]"] = {}
        self._lock = Lock()

        self._analyzer_calls = 0

    @staticmethod
    def _key(projectpath: str) -> str:
        return os.path.abspath(projectpath).casefold()

    def resolve(self, projectpath: str) -> ProjectAnalysis:
        """Return the direct references of a project file.

        Args:
            projectpath: Path to project file.

        Returns:
            The same ProjectAnalysis for every call with this path during the run.

        Raises:
            ProjectAnalysisError: If the analyzer fails for this path.
        """
        key = self._key(projectpath)

        with self._lock:
            future = self._entries.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._entries[key] = future

        assert future is not None
        if not is_owner:
            return future.result()

        try:
            analysis = self._compute(os.path.abspath(projectpath))
        except BaseException as e:
            future.set_exception(e)
            raise

        future.set_result(analysis)
        return analysis

    def _compute(self, projectpath: str) -> ProjectAnalysis:
        if self._file_cache is not None:
            cached = self._file_cache.try_load(projectpath)
            if cached is not None:
                return self._apply_ignores(cached)

        with self._lock:
            self._analyzer_calls += 1
        logger.debug(f"Analyzing {projectpath}")
        analysis = self._analyzer.analyze(projectpath, self._is_ignored)

        if self._file_cache is None:
            return analysis

        try:
            stored = self._file_cache.store(projectpath, analysis)
        except OSError as e:
            logger.warning(f"Unable to cache analysis of {projectpath}: {e}")
            return analysis

        if not stored and self._file_cache.enabled:
            # Another writer (usually another process) published first; its
            # record is complete by construction, so prefer it when readable.
            committed = self._file_cache.try_load(projectpath)
            if committed is not None:
                return self._apply_ignores(committed)

        return analysis

    def _apply_ignores(self, analysis: ProjectAnalysis) -> ProjectAnalysis:
        """Drop references a cached record kept but this run's ignore set excludes."""
        kept = tuple(p for p in analysis.project_references if not self._is_ignored(p))
        if len(kept) == len(analysis.project_references):
            return analysis
        return ProjectAnalysis(
            file_path=analysis.file_path,
            project_references=kept,
            package_references=analysis.package_references,
        )

    def is_resolved(self, projectpath: str) -> bool:
        """Return True if projectpath has a completed, successful result."""
        with self._lock:
            future = self._entries.get(self._key(projectpath))
        return future is not None and future.done() and future.exception() is None

    @property
    def analyzer_calls(self) -> int:
        """Number of times the analyzer has been invoked this run."""
        with self._lock:
            return self._analyzer_calls

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
