# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Computation of unreferenced projects and packages.

    unreferenced projects = inventory - ignored - entry point - referenced
    unreferenced packages = declared packages - referenced

All comparisons ignore case; results are sorted ascending ignoring case.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Sequence, Set

from dead_project_finder.models import ReferenceCounter
from dead_project_finder.path_filter import PathFilter, normalize_relative_path

logger = logging.getLogger(__name__)


def _sorted_casefold(values: Iterable[str]) -> List[str]:
    return sorted(values, key=lambda value: (value.casefold(), value))


class UnreferencedSetComputer:
    """Derives the dead-project and dead-package reports from finished counters.

    Usage:
        computer = UnreferencedSetComputer(root, path_filter, [".csproj"], [".git"])
        dead = computer.unreferenced_projects(project_file, counters.projects)
    """

    def __init__(
        self,
        source_root: Path,
        path_filter: PathFilter,
        project_extensions: Sequence[str],
        excluded_prefixes: Sequence[str] = (".git", "packages"),
    ) -> None:
        """Initialize the computer.

        Args:
            source_root: Directory to inventory.
            path_filter: Ignore set applied to the inventory.
            project_extensions: Suffixes identifying project files (case-insensitive).
            excluded_prefixes: Relative-path prefixes never inventoried.
        """
        self._source_root = Path(os.path.abspath(source_root))
        self._path_filter = path_filter
        self._extensions = tuple(ext.casefold() for ext in project_extensions)
        self._excluded_prefixes = tuple(
            normalize_relative_path(prefix) for prefix in excluded_prefixes
        )

    def _is_excluded(self, relative_path: str) -> bool:
        return relative_path.startswith(self._excluded_prefixes) or self._path_filter.is_ignored(
            relative_path
        )

    def inventory(self) -> List[str]:
        """List project files under the source root, relative to it.

        Ignored subtrees and excluded prefixes are skipped.
        """
        found: List[str] = []
        for dirpath, dirnames, filenames in os.walk(self._source_root):
            relative_dir = os.path.relpath(dirpath, self._source_root)
            if relative_dir == os.curdir:
                relative_dir = ""

            # Prune whole subtrees whose every descendant would be excluded
            dirnames[:] = [
                name
                for name in dirnames
                if not self._is_excluded(os.path.join(relative_dir, name))
            ]

            for filename in filenames:
                if not filename.casefold().endswith(self._extensions):
                    continue
                relative_path = os.path.join(relative_dir, filename)
                if not self._is_excluded(relative_path):
                    found.append(relative_path)

        logger.debug(f"Inventory found {len(found)} project files under {self._source_root}")
        return _sorted_casefold(found)

    def unreferenced_projects(
        self, root_project: Path, referenced: ReferenceCounter
    ) -> List[str]:
        """Return inventoried project files that nothing references.

        Args:
            root_project: Entry-point project, never reported.
            referenced: Counter keyed by source-root-relative project paths.

        Returns:
            Relative paths, distinct and sorted ignoring case.
        """
        try:
            root_relative = os.path.relpath(os.path.abspath(root_project), self._source_root)
        except ValueError:
            root_relative = str(root_project)

        excluded: Set[str] = {key.casefold() for key in referenced.keys()}
        excluded.add(root_relative.casefold())

        result: List[str] = []
        seen: Set[str] = set()
        for path in self.inventory():
            folded = path.casefold()
            if folded in excluded or folded in seen:
                continue
            seen.add(folded)
            result.append(path)
        return result

    @staticmethod
    def unreferenced_packages(declared: Iterable[str], referenced: ReferenceCounter) -> List[str]:
        """Return declared package names that no walk referenced.

        Args:
            declared: Every package the package-list manifest declares.
            referenced: Counter keyed by package name.

        Returns:
            Package names, distinct and sorted ignoring case.
        """
        result: List[str] = []
        seen: Set[str] = set()
        for name in declared:
            folded = name.casefold()
            if folded in seen or name in referenced:
                continue
            seen.add(folded)
            result.append(name)
        return _sorted_casefold(result)
