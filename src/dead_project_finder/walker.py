# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Recursive expansion of project references.

The walker turns one project into the flattened, depth-annotated sequence of
everything it transitively references. Traversal is depth-first in the order
the analyzer reports references:

    App (0)
      Lib (1)
        Core (2)
      Core (1)

Duplicate edges are kept, so Core above is emitted (and later counted) twice.
Packages are leaves and carry the depth of the project declaring them.

A reference to a file that does not exist is reported and prunes that branch.
Cyclic references raise CyclicReferenceError unless the guard is disabled, in
which case recursion is unbounded.
"""

import logging
import os
import time
from typing import List, Set

from dead_project_finder.models import ReferenceEdge, WalkResult
from dead_project_finder.resolver import MemoizingResolver

logger = logging.getLogger(__name__)


class CyclicReferenceError(Exception):
    """Raised when a project transitively references itself."""

    def __init__(self, chain: List[str]):
        super().__init__("Cyclic project reference: " + " -> ".join(chain))
        self.chain = chain


class DependencyWalker:
    """Depth-first expansion of one project's reference tree.

    Stateless between walks; safe to share between worker threads since all
    shared state lives in the resolver.

    Usage:
        walker = DependencyWalker(resolver, source_root)
        result = walker.walk("/src/App/App.csproj")
        for edge in result.project_edges:
            print("  " * edge.depth + "- " + edge.target)
    """

    def __init__(
        self,
        resolver: MemoizingResolver,
        source_root: str,
        detect_cycles: bool = True,
    ) -> None:
        """Initialize the walker.

        Args:
            resolver: Source of each project's direct references.
            source_root: Edge targets are reported relative to this directory.
            detect_cycles: Whether to fail fast on cyclic references.
        """
        self._resolver = resolver
        self._source_root = os.path.abspath(source_root)
        self._detect_cycles = detect_cycles

    def relative_path(self, projectpath: str) -> str:
        """Return projectpath relative to the source root."""
        try:
            return os.path.relpath(projectpath, self._source_root)
        except ValueError:
            # Different drive on Windows
            return projectpath

    def walk(self, projectpath: str) -> WalkResult:
        """Flatten all projects and packages reachable from projectpath.

        Args:
            projectpath: Project to start from; emitted at depth 0.

        Returns:
            WalkResult with project and package edges plus elapsed time.

        Raises:
            ProjectAnalysisError: If any reachable manifest cannot be analyzed.
            CyclicReferenceError: If the cycle guard is on and a cycle is found.
        """
        start = time.perf_counter()
        result = WalkResult(root=os.path.abspath(projectpath))

        self._visit(os.path.abspath(projectpath), 0, result, [], set())

        result.elapsed_ms = int((time.perf_counter() - start) * 1000)
        return result

    def _visit(
        self,
        projectpath: str,
        depth: int,
        result: WalkResult,
        chain: List[str],
        active: Set[str],
    ) -> None:
        if not os.path.isfile(projectpath):
            logger.warning(f"*** {projectpath} was referenced but does not exist!")
            return

        key = os.path.normcase(projectpath).casefold()
        if self._detect_cycles and key in active:
            raise CyclicReferenceError(
                [self.relative_path(p) for p in chain] + [self.relative_path(projectpath)]
            )

        analysis = self._resolver.resolve(projectpath)
        result.project_edges.append(ReferenceEdge(depth, self.relative_path(projectpath)))

        if self._detect_cycles:
            chain.append(projectpath)
            active.add(key)
        try:
            for reference in analysis.project_references:
                self._visit(reference, depth + 1, result, chain, active)
        finally:
            if self._detect_cycles:
                chain.pop()
                active.discard(key)

        for package in analysis.package_references:
            result.package_edges.append(ReferenceEdge(depth, package))
