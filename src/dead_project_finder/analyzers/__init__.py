# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project manifest analyzers.

An analyzer turns one project file into its direct project and package
references. The engine only depends on the ProjectAnalyzer interface, so tests
can substitute a fake implementation.

Components:
- ProjectAnalyzer: Abstract analyzer interface
- MSBuildProjectAnalyzer: Reader for MSBuild-style XML project files
"""

from dead_project_finder.analyzers.base import (
    IgnorePredicate,
    ProjectAnalysisError,
    ProjectAnalyzer,
)
from dead_project_finder.analyzers.msbuild_analyzer import MSBuildProjectAnalyzer

__all__ = [
    "IgnorePredicate",
    "MSBuildProjectAnalyzer",
    "ProjectAnalysisError",
    "ProjectAnalyzer",
]
