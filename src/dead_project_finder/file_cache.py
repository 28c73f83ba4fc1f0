# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Content-addressed on-disk cache for project analysis results.

Each record holds the direct references of one project file and is stored as
`{basename}.{md5 of file bytes}` under the cache directory. Validity is
enforced by the key itself: once a project file changes, its new hash yields
a new key and the old record is never looked up again.

Key Features:
- Records are never overwritten; publication is create-if-absent
- Readers see either no record or a complete one (temp file + hard link)
- Corrupt or unknown-version records are deleted and reported as a miss
- Disabled mode turns every lookup into a miss and every store into a no-op

Thread Safety:
- No in-process locking: the file system primitives are the coordination point,
  so several workers and several processes can share one cache directory.
"""

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from dead_project_finder.models import ProjectAnalysis

logger = logging.getLogger(__name__)


def compute_content_hash(filepath: str) -> str:
    """Compute the lowercase hex MD5 digest of a file's bytes.

    Args:
        filepath: Path to file.

    Returns:
        32-character lowercase hex string.

    Raises:
        OSError: If the file cannot be read.
    """
    hasher = hashlib.md5()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _relocatable(projectpath: str, analysis: ProjectAnalysis) -> ProjectAnalysis:
    """Store project references relative to the project file's directory.

    Records are keyed by basename and content only, so the same bytes at another
    location must resolve their references against that location.
    """
    project_dir = os.path.dirname(projectpath)
    references = []
    for reference in analysis.project_references:
        try:
            references.append(os.path.relpath(reference, project_dir))
        except ValueError:
            # Different drive on Windows
            references.append(reference)
    return ProjectAnalysis(
        file_path=analysis.file_path,
        project_references=tuple(references),
        package_references=analysis.package_references,
    )


def _rebase(projectpath: str, analysis: ProjectAnalysis) -> ProjectAnalysis:
    """Resolve relative references of a loaded record against projectpath."""
    project_dir = os.path.dirname(projectpath)
    return ProjectAnalysis(
        file_path=projectpath,
        project_references=tuple(
            os.path.normpath(os.path.join(project_dir, reference))
            for reference in analysis.project_references
        ),
        package_references=analysis.package_references,
    )


class ContentAddressedCache:
    """Persists ProjectAnalysis records keyed by project file content.

    Usage:
        cache = ContentAddressedCache(Path(".cache"))
        analysis = cache.try_load(path)
        if analysis is None:
            analysis = analyzer.analyze(path, is_ignored)
            cache.store(path, analysis)
    """

    def __init__(self, cache_dir: Path, enabled: bool = True) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Directory for cache records (created on first use).
            enabled: When False, try_load always misses and store does nothing.
        """
        self._cache_dir = cache_dir
        self._enabled = enabled

        self._stats_lock = Lock()
        self._hits = 0
        self._misses = 0
        self._stores = 0
        self._collisions = 0
        self._corrupt_records = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def record_path(self, projectpath: str, content_hash: Optional[str] = None) -> Path:
        """Return the record path for the current content of projectpath.

        Raises:
            OSError: If the project file cannot be read for hashing.
        """
        if content_hash is None:
            content_hash = compute_content_hash(projectpath)
        return self._cache_dir / f"{os.path.basename(projectpath)}.{content_hash}"

    def try_load(self, projectpath: str) -> Optional[ProjectAnalysis]:
        """Load the cached analysis for the project file's current content.

        Args:
            projectpath: Absolute path to project file.

        Returns:
            The cached ProjectAnalysis, or None on a miss.
        """
        if not self._enabled:
            return None

        try:
            self._ensure_cache_dir()
        except OSError as e:
            logger.warning(f"Cache directory {self._cache_dir} is unusable: {e}")
            self._count("_misses")
            return None

        try:
            record = self.record_path(projectpath)
        except OSError as e:
            logger.debug(f"Cannot hash {projectpath} for cache lookup: {e}")
            self._count("_misses")
            return None

        analysis = self._read_record(record, projectpath)
        if analysis is None:
            self._count("_misses")
            logger.debug(f"Cache miss: {record.name}")
        else:
            self._count("_hits")
            logger.debug(f"Cache hit: {record.name}")
        return analysis

    def store(self, projectpath: str, analysis: ProjectAnalysis) -> bool:
        """Persist an analysis unless a record for this content already exists.

        The record is written to a temporary file and then hard-linked into
        place, so the final name appears atomically and is never overwritten.

        Args:
            projectpath: Absolute path to project file.
            analysis: Analysis to persist.

        Returns:
            True if this call created the record. False if caching is disabled
            or the record already existed (someone else cached it first).

        Raises:
            OSError: If the project file cannot be hashed or the cache directory
                is not writable.
        """
        if not self._enabled:
            return False

        self._ensure_cache_dir()
        record = self.record_path(projectpath)
        payload = json.dumps(_relocatable(projectpath, analysis).to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(
            dir=str(self._cache_dir), prefix=f".{record.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.link(tmp_name, record)
        except FileExistsError:
            self._count("_collisions")
            logger.debug(f"Cache record already exists: {record.name}")
            return False
        finally:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

        self._count("_stores")
        logger.debug(f"Cached analysis of {projectpath} as {record.name}")
        return True

    def get_statistics(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics.
        """
        with self._stats_lock:
            return {
                "enabled": self._enabled,
                "hits": self._hits,
                "misses": self._misses,
                "stores": self._stores,
                "collisions": self._collisions,
                "corrupt_records": self._corrupt_records,
            }

    def _ensure_cache_dir(self) -> None:
        self._cache_dir.mkdir(parents=True, exist_ok=True)

    def _read_record(self, record: Path, projectpath: str) -> Optional[ProjectAnalysis]:
        """Read and validate one record; delete it if it is unusable."""
        try:
            with open(record, encoding="utf-8") as f:
                data = json.load(f)
            return _rebase(projectpath, ProjectAnalysis.from_dict(data))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, UnicodeDecodeError) as e:
            # json.JSONDecodeError is a ValueError; OSError covers unreadable entries
            logger.warning(f"Discarding unreadable cache record {record}: {e}")
            self._count("_corrupt_records")
            try:
                if record.is_dir():
                    record.rmdir()
                else:
                    record.unlink()
            except OSError as unlink_error:
                logger.debug(f"Could not delete cache record {record}: {unlink_error}")
            return None

    def _count(self, attribute: str) -> None:
        with self._stats_lock:
            setattr(self, attribute, getattr(self, attribute) + 1)
