# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Console report formatting.

Every public method writes one complete block while holding the writer's
lock, so reports produced by concurrent walkers never interleave.

Report layout (per top-level project, then global sections):

    ===========================
    # MyLib.csproj
    # Analysis completed in 12 ms.
    # Project dependency tree:
    - MyLib/MyLib.csproj
      - MyRecursiveLib/MyRecursiveLib.csproj
    # Package references:
    - Newtonsoft.Json
    # Recursive project dependencies:
    # - MyRecursiveLib/MyRecursiveLib.csproj (1 recursive references)
    # Recursive package references:
"""

import logging
import os
import sys
from threading import Lock
from typing import Dict, Iterable, List, Optional, TextIO, Tuple

from dead_project_finder.models import GlobalCounters, ReferenceEdge, WalkResult

logger = logging.getLogger(__name__)

SEPARATOR = "==========================="


def group_recursive(edges: Iterable[ReferenceEdge]) -> List[Tuple[str, int]]:
    """Count depth > 0 edges by target, in order of first appearance, ignoring case."""
    groups: Dict[str, List] = {}
    for edge in edges:
        if edge.depth == 0:
            continue
        folded = edge.target.casefold()
        if folded in groups:
            groups[folded][1] += 1
        else:
            groups[folded] = [edge.target, 1]
    return [(target, count) for target, count in groups.values()]


class ReportWriter:
    """Serialized writer for the textual analysis report."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        """Initialize the writer.

        Args:
            stream: Output stream (default: sys.stdout at write time).
        """
        self._stream = stream
        self._lock = Lock()

    def _emit(self, lines: List[str]) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.write("".join(line + "\n" for line in lines))
            stream.flush()

    def write_banner(
        self,
        source_root: str,
        caching_enabled: bool,
        report_projects: bool,
        report_unused_projects: bool,
        package_list_file: Optional[str],
        package_list_exists: bool,
        ignore_paths: List[str],
        project_file: str,
    ) -> None:
        lines = [
            "",
            f"Source root path: {source_root}",
            f"File caching enabled: {caching_enabled}",
            f"Reporting all top-level projects in project: {report_projects}",
            f"Discovering and reporting unreferenced projects: {report_unused_projects}",
        ]
        if package_list_file:
            if package_list_exists:
                lines.append(
                    f"Discovering and reporting unreferenced packages from file: "
                    f"{package_list_file}"
                )
            else:
                lines.append(
                    f"Package list file {package_list_file} does not exist or cannot be read"
                )
        if ignore_paths:
            lines.append(f"Ignoring paths: {','.join(ignore_paths)}")
        lines.append(f"Getting all recursive references in {project_file}...")
        self._emit(lines)

    def write_project_block(self, result: WalkResult) -> None:
        """Write the report block for one top-level project."""
        lines = [
            SEPARATOR,
            f"# {os.path.basename(result.root)}",
            f"# Analysis completed in {result.elapsed_ms} ms.",
            "# Project dependency tree:",
        ]
        lines.extend("  " * edge.depth + "- " + edge.target for edge in result.project_edges)

        lines.append("# Package references:")
        lines.extend(
            "- " + edge.target for edge in result.package_edges if edge.depth == 0
        )

        lines.append("# Recursive project dependencies:")
        lines.extend(
            f"# - {target} ({count} recursive references)"
            for target, count in group_recursive(result.project_edges)
        )

        lines.append("# Recursive package references:")
        lines.extend(
            f"# - {target} ({count} recursive references)"
            for target, count in group_recursive(result.package_edges)
        )
        self._emit(lines)

    def write_global_counts(self, counters: GlobalCounters, elapsed_ms: int) -> None:
        lines = ["", SEPARATOR, "Globally referenced projects:"]
        lines.extend(
            f" - {key} ({count} recursive references)" for key, count in counters.projects.items()
        )
        lines.extend(["", SEPARATOR, "Globally referenced packages:"])
        lines.extend(
            f" - {key} ({count} recursive references)" for key, count in counters.packages.items()
        )
        lines.extend(["", f"Global analysis completed in {elapsed_ms} ms."])
        self._emit(lines)

    def write_unreferenced_projects(self, paths: List[str]) -> None:
        lines = [
            "",
            "Finding unreferenced project files...",
            f"{len(paths)} unreferenced project files found:",
        ]
        lines.extend(f" - {path}" for path in paths)
        lines.append("")
        self._emit(lines)

    def write_unreferenced_packages(self, names: List[str]) -> None:
        lines = [
            "",
            "Finding unreferenced packages...",
            f"{len(names)} unreferenced packages found:",
        ]
        lines.extend(f" - {name}" for name in names)
        lines.append("")
        self._emit(lines)
