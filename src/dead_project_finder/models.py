# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for dead project analysis.

This module defines the data structures shared by every component:
- ProjectAnalysis: Direct references of a single project file
- ReferenceEdge: A (depth, target) pair emitted while walking
- WalkResult: Flattened project and package edges of one walk
- ReferenceCounter: Thread-safe, case-insensitive occurrence counter
- GlobalCounters: Project and package counters for a whole run

ProjectAnalysis serializes to JSON-compatible primitives so it can be
persisted by the content-addressed file cache.
"""

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Iterable, List, NamedTuple, Tuple

logger = logging.getLogger(__name__)

# Bumped whenever the persisted record layout changes
CACHE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class ProjectAnalysis:
    """Direct (non-transitive) references declared by one project file.

    Produced once per distinct file path per run and never mutated.
    Duplicates in either reference list are preserved.
    """

    file_path: str  # Absolute, canonical path of the analyzed project file
    project_references: Tuple[str, ...] = ()  # Absolute paths, declaration order
    package_references: Tuple[str, ...] = ()  # Package names, declaration order

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a versioned, JSON-compatible dict."""
        return {
            "version": CACHE_FORMAT_VERSION,
            "file_path": self.file_path,
            "project_references": list(self.project_references),
            "package_references": list(self.package_references),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectAnalysis":
        """Deserialize from a dict produced by to_dict().

        Unknown fields are ignored and missing reference lists default to empty.

        Raises:
            ValueError: If the record has an unsupported version or bad field types.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        version = data.get("version")
        if version != CACHE_FORMAT_VERSION:
            raise ValueError(f"Unsupported cache record version: {version!r}")

        file_path = data.get("file_path", "")
        project_references = data.get("project_references") or []
        package_references = data.get("package_references") or []

        if not isinstance(file_path, str):
            raise ValueError("file_path must be a string")
        for name, values in (
            ("project_references", project_references),
            ("package_references", package_references),
        ):
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ValueError(f"{name} must be a list of strings")

        return cls(
            file_path=file_path,
            project_references=tuple(project_references),
            package_references=tuple(package_references),
        )


class ReferenceEdge(NamedTuple):
    """A reference discovered while walking.

    Depth 0 marks the walked project itself (or its own packages); deeper
    levels are transitive descendants.
    """

    depth: int
    target: str


@dataclass
class WalkResult:
    """Flattened output of walking one top-level project."""

    root: str
    project_edges: List[ReferenceEdge] = field(default_factory=list)
    package_edges: List[ReferenceEdge] = field(default_factory=list)
    elapsed_ms: int = 0


class ReferenceCounter:
    """Case-insensitive occurrence counter safe for concurrent increments.

    The first spelling seen for a key is the one reported.
    """

    def __init__(self) -> None:
        self._counts: Dict[str, List[Any]] = {}  # casefolded key -> [display key, count]
        self._lock = Lock()

    def increment(self, key: str, amount: int = 1) -> None:
        folded = key.casefold()
        with self._lock:
            entry = self._counts.get(folded)
            if entry is None:
                self._counts[folded] = [key, amount]
            else:
                entry[1] += amount

    def update(self, keys: Iterable[str]) -> None:
        """Increment once per occurrence in keys."""
        for key in keys:
            self.increment(key)

    def get(self, key: str) -> int:
        with self._lock:
            entry = self._counts.get(key.casefold())
            return entry[1] if entry else 0

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return key.casefold() in self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def keys(self) -> List[str]:
        with self._lock:
            return [entry[0] for entry in self._counts.values()]

    def items(self) -> List[Tuple[str, int]]:
        """Return (key, count) pairs sorted by key, ignoring case."""
        with self._lock:
            pairs = [(entry[0], entry[1]) for entry in self._counts.values()]
        return sorted(pairs, key=lambda pair: (pair[0].casefold(), pair[0]))

    def to_dict(self) -> Dict[str, int]:
        return dict(self.items())


@dataclass
class GlobalCounters:
    """Reference counts accumulated across all top-level walks of a run."""

    projects: ReferenceCounter = field(default_factory=ReferenceCounter)
    packages: ReferenceCounter = field(default_factory=ReferenceCounter)

    def record(self, result: WalkResult) -> None:
        """Fold one walk's edges into the counters, one increment per edge."""
        self.projects.update(edge.target for edge in result.project_edges)
        self.packages.update(edge.target for edge in result.package_edges)
