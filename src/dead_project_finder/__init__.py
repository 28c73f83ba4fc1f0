# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Dead Project Finder: unreferenced project and package detection."""

from .aggregator import GlobalAggregator
from .analyzers import MSBuildProjectAnalyzer, ProjectAnalysisError, ProjectAnalyzer
from .config import Config, ConfigurationError
from .file_cache import ContentAddressedCache
from .models import GlobalCounters, ProjectAnalysis, ReferenceCounter, ReferenceEdge, WalkResult
from .path_filter import PathFilter
from .report import ReportWriter
from .resolver import MemoizingResolver
from .service import AnalysisContext, DeadProjectFinderService, RunSummary
from .unreferenced import UnreferencedSetComputer
from .walker import CyclicReferenceError, DependencyWalker

__version__ = "0.1.0"

__all__ = [
    "AnalysisContext",
    "Config",
    "ConfigurationError",
    "ContentAddressedCache",
    "CyclicReferenceError",
    "DeadProjectFinderService",
    "DependencyWalker",
    "GlobalAggregator",
    "GlobalCounters",
    "MSBuildProjectAnalyzer",
    "MemoizingResolver",
    "PathFilter",
    "ProjectAnalysis",
    "ProjectAnalysisError",
    "ProjectAnalyzer",
    "ReferenceCounter",
    "ReferenceEdge",
    "ReportWriter",
    "RunSummary",
    "UnreferencedSetComputer",
    "WalkResult",
]
