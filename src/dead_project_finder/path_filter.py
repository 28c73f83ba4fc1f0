# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Ignore-set handling for source tree analysis.

Ignored paths are plain string prefixes relative to the source root. They come
from explicit --ignorePath entries and from Git submodule paths declared in the
.gitmodules file at the source root. There are no wildcard semantics.
"""

import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)

GITMODULES_FILENAME = ".gitmodules"


def normalize_relative_path(path: str) -> str:
    """Convert either separator style to the host separator."""
    return path.replace("/", os.sep).replace("\\", os.sep)


def read_submodule_paths(source_root: Path) -> List[str]:
    """Read submodule paths declared in {source_root}/.gitmodules.

    Only `path = <dir>` entries whose directory exists under the source root
    are returned. One informational log line is emitted per discovered path.

    Args:
        source_root: Root directory of the source tree.

    Returns:
        Relative submodule paths, in declaration order.
    """
    gitmodules_path = source_root / GITMODULES_FILENAME
    paths: List[str] = []

    if not gitmodules_path.is_file():
        logger.debug(f"No {GITMODULES_FILENAME} found at {gitmodules_path}")
        return paths

    try:
        with open(gitmodules_path, encoding="utf-8") as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read {gitmodules_path}: {e}")
        return paths

    for line in lines:
        line = line.strip()
        if not line.startswith("path = "):
            continue

        tokens = line.split("=")
        if len(tokens) != 2:
            continue

        relative_path = normalize_relative_path(tokens[1].strip())
        if (source_root / relative_path).is_dir():
            logger.info(f"Adding Git submodule path {relative_path} to ignore list")
            paths.append(relative_path)

    return paths


class PathFilter:
    """Prefix-based membership test over the ignore set.

    Built once per run and read-only afterwards.

    Usage:
        path_filter = PathFilter.for_source_root(root, ["third_party"])
        path_filter.is_ignored("third_party/zlib/zlib.vcxproj")  # True
    """

    def __init__(self, ignore_paths: Optional[Iterable[str]] = None) -> None:
        self._prefixes: FrozenSet[str] = frozenset(
            normalize_relative_path(path) for path in (ignore_paths or ()) if path
        )

    @classmethod
    def for_source_root(
        cls, source_root: Path, ignore_paths: Optional[Iterable[str]] = None
    ) -> "PathFilter":
        """Build a filter from explicit ignore paths plus discovered submodules."""
        paths = list(ignore_paths or ())
        paths.extend(read_submodule_paths(source_root))
        return cls(paths)

    @property
    def prefixes(self) -> FrozenSet[str]:
        return self._prefixes

    def is_ignored(self, relative_path: str) -> bool:
        """Return True if any ignore prefix is a prefix of relative_path."""
        relative_path = normalize_relative_path(relative_path)
        return any(relative_path.startswith(prefix) for prefix in self._prefixes)

    def __len__(self) -> int:
        return len(self._prefixes)
