# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Test doubles shared by the unit tests."""

import os
import threading
import time
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Tuple

from dead_project_finder.analyzers.base import (
    IgnorePredicate,
    ProjectAnalysisError,
    ProjectAnalyzer,
)
from dead_project_finder.models import ProjectAnalysis


class FakeAnalyzer(ProjectAnalyzer):
    """In-memory analyzer with a declared reference graph.

    add() also writes the project file to disk, since the walker checks that
    referenced files exist and the file cache hashes their bytes.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.graph: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {}
        self.calls: Counter = Counter()
        self.delay = delay
        self._lock = threading.Lock()

    def add(
        self,
        path: Path,
        projects: Iterable[Path] = (),
        packages: Iterable[str] = (),
    ) -> str:
        path.parent.mkdir(parents=True, exist_ok=True)
        project_refs = tuple(os.path.abspath(p) for p in projects)
        path.write_text(f"<Project><!-- {path.name} {project_refs} {tuple(packages)} --></Project>")
        key = os.path.abspath(path)
        self.graph[key] = (project_refs, tuple(packages))
        return key

    def analyze(self, projectpath: str, is_ignored: IgnorePredicate) -> ProjectAnalysis:
        with self._lock:
            self.calls[projectpath] += 1
        if self.delay:
            time.sleep(self.delay)

        if projectpath not in self.graph:
            raise ProjectAnalysisError(projectpath, "not part of the fake graph")

        projects, packages = self.graph[projectpath]
        return ProjectAnalysis(
            file_path=projectpath,
            project_references=tuple(p for p in projects if not is_ignored(p)),
            package_references=packages,
        )

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())
