# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for project manifest analyzers."""

from abc import ABC, abstractmethod
from typing import Callable, List

from dead_project_finder.models import ProjectAnalysis

# Receives an absolute project path, returns True if it lies in an ignored subtree
IgnorePredicate = Callable[[str], bool]


class ProjectAnalysisError(Exception):
    """Raised when a project manifest cannot be read or evaluated.

    This is fatal for a run: a malformed manifest means the reference graph
    itself cannot be trusted.
    """

    def __init__(self, filepath: str, reason: str):
        super().__init__(f"Failed to analyze {filepath}: {reason}")
        self.filepath = filepath
        self.reason = reason


class ProjectAnalyzer(ABC):
    """Analyzes one project manifest into its direct references.

    Implementations must be safe to call from several threads at once and must
    not cache results across calls; memoization is the resolver's job.
    """

    @abstractmethod
    def analyze(self, projectpath: str, is_ignored: IgnorePredicate) -> ProjectAnalysis:
        """Return the direct project and package references of a project file.

        Args:
            projectpath: Absolute path to the project file.
            is_ignored: Predicate suppressing references into ignored subtrees.

        Returns:
            ProjectAnalysis with absolute project paths and package names in
            declaration order.

        Raises:
            ProjectAnalysisError: If the manifest is unreadable or malformed.
        """
        pass

    def list_declared_packages(self, manifestpath: str) -> List[str]:
        """Return every package a package-list manifest declares.

        Args:
            manifestpath: Absolute path to the manifest.

        Raises:
            ProjectAnalysisError: If the manifest is unreadable or malformed.
        """
        return list(self.analyze(manifestpath, lambda _path: False).package_references)
