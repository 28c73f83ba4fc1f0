# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Analyzer for MSBuild-style XML project files (.csproj, .vcxproj, ...).

This is a static reader, not an MSBuild evaluator:
- ProjectReference / PackageReference `Include` values, semicolon lists allowed
- $(MSBuildThisFileDirectory), $(MSBuildProjectDirectory) and simple
  unconditional PropertyGroup properties are expanded
- Relative <Import Project="..."/> files that exist are read as well, each once
- Item and import Conditions are not evaluated; every declared item counts
- Backslash separators are normalized to the host separator

Error Recovery:
- Unreadable root file or malformed XML: ProjectAnalysisError (fatal)
- Missing or malformed imported file: logged and skipped
"""

import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Set

from dead_project_finder.analyzers.base import (
    IgnorePredicate,
    ProjectAnalysisError,
    ProjectAnalyzer,
)
from dead_project_finder.models import ProjectAnalysis

logger = logging.getLogger(__name__)

_PROPERTY_PATTERN = re.compile(r"\$\(([A-Za-z_][A-Za-z0-9_.\-]*)\)")


def _local_name(tag: str) -> str:
    """Strip an XML namespace: '{ns}ItemGroup' -> 'ItemGroup'."""
    return tag.rsplit("}", 1)[-1]


def _normalize(path: str) -> str:
    return path.replace("\\", os.sep).replace("/", os.sep)


class _ManifestState:
    """Mutable state collected while reading one root manifest and its imports."""

    def __init__(self, root_path: str) -> None:
        self.root_path = root_path
        self.properties: Dict[str, str] = {
            "MSBuildProjectDirectory": os.path.dirname(root_path),
            "MSBuildProjectFile": os.path.basename(root_path),
            "MSBuildProjectName": os.path.splitext(os.path.basename(root_path))[0],
            "MSBuildProjectFullPath": root_path,
        }
        self.project_references: List[str] = []
        self.package_references: List[str] = []
        self.package_versions: List[str] = []
        self.visited: Set[str] = set()


class MSBuildProjectAnalyzer(ProjectAnalyzer):
    """Static reader for MSBuild XML manifests.

    Usage:
        analyzer = MSBuildProjectAnalyzer()
        analysis = analyzer.analyze("/src/App/App.csproj", lambda path: False)
    """

    def __init__(self, follow_imports: bool = True) -> None:
        """Initialize the analyzer.

        Args:
            follow_imports: Whether relative <Import> files contribute items.
        """
        self.follow_imports = follow_imports

    def analyze(self, projectpath: str, is_ignored: IgnorePredicate) -> ProjectAnalysis:
        projectpath = os.path.abspath(projectpath)
        state = self._read_manifest(projectpath)

        project_references = []
        for reference in state.project_references:
            if is_ignored(reference):
                logger.debug(f"Skipping ignored reference {reference} in {projectpath}")
                continue
            project_references.append(reference)

        return ProjectAnalysis(
            file_path=projectpath,
            project_references=tuple(project_references),
            package_references=tuple(state.package_references),
        )

    def list_declared_packages(self, manifestpath: str) -> List[str]:
        """Return PackageReference and PackageVersion names, first occurrence wins."""
        state = self._read_manifest(os.path.abspath(manifestpath))

        seen: Set[str] = set()
        packages: List[str] = []
        for name in state.package_references + state.package_versions:
            if name.casefold() not in seen:
                seen.add(name.casefold())
                packages.append(name)
        return packages

    def _read_manifest(self, projectpath: str) -> _ManifestState:
        state = _ManifestState(projectpath)
        root = self._parse(projectpath)
        if root is None:
            raise ProjectAnalysisError(projectpath, "file does not exist")
        self._collect(root, projectpath, state)
        return state

    def _parse(self, filepath: str, required: bool = True) -> Optional[ET.Element]:
        """Parse an XML file.

        Returns:
            Root element, or None if the file does not exist.

        Raises:
            ProjectAnalysisError: If the file is malformed (or unreadable) and required.
        """
        try:
            return ET.parse(filepath).getroot()
        except FileNotFoundError:
            return None
        except ET.ParseError as e:
            if required:
                raise ProjectAnalysisError(filepath, f"malformed XML: {e}") from e
            logger.warning(f"Skipping malformed import {filepath}: {e}")
            return None
        except OSError as e:
            if required:
                raise ProjectAnalysisError(filepath, str(e)) from e
            logger.warning(f"Skipping unreadable import {filepath}: {e}")
            return None

    def _collect(self, root: ET.Element, filepath: str, state: _ManifestState) -> None:
        """Collect properties, items and imports from one XML file, in document order."""
        state.visited.add(os.path.normcase(filepath))
        # Item paths resolve against the project, even inside imported files
        project_dir = os.path.dirname(state.root_path)

        for element in root:
            name = _local_name(element.tag)
            if name == "PropertyGroup":
                self._collect_properties(element, filepath, state)
            elif name == "ItemGroup":
                self._collect_items(element, project_dir, filepath, state)
            elif name == "Import" and self.follow_imports:
                self._follow_import(element, filepath, state)
            elif name == "ImportGroup" and self.follow_imports:
                for child in element:
                    if _local_name(child.tag) == "Import":
                        self._follow_import(child, filepath, state)

    def _collect_properties(
        self, group: ET.Element, filepath: str, state: _ManifestState
    ) -> None:
        if group.get("Condition"):
            return
        for prop in group:
            if prop.get("Condition") or len(prop):
                continue
            value = (prop.text or "").strip()
            state.properties[_local_name(prop.tag)] = self._expand(value, filepath, state)

    def _collect_items(
        self, group: ET.Element, project_dir: str, filepath: str, state: _ManifestState
    ) -> None:
        for item in group:
            kind = _local_name(item.tag)
            include = item.get("Include")
            if not include:
                continue

            for value in self._split(self._expand(include, filepath, state)):
                if kind == "ProjectReference":
                    target = os.path.normpath(os.path.join(project_dir, _normalize(value)))
                    state.project_references.append(target)
                elif kind == "PackageReference":
                    state.package_references.append(value)
                elif kind == "PackageVersion":
                    state.package_versions.append(value)

    def _follow_import(self, element: ET.Element, filepath: str, state: _ManifestState) -> None:
        project = element.get("Project")
        if not project:
            return

        expanded = self._expand(project, filepath, state)
        if "$(" in expanded or "*" in expanded:
            logger.debug(f"Not following unresolved import '{project}' in {filepath}")
            return

        import_path = os.path.normpath(
            os.path.join(os.path.dirname(filepath), _normalize(expanded))
        )
        if os.path.normcase(import_path) in state.visited:
            return

        root = self._parse(import_path, required=False)
        if root is None:
            logger.debug(f"Import {import_path} from {filepath} not found, skipping")
            return
        self._collect(root, import_path, state)

    def _expand(self, value: str, filepath: str, state: _ManifestState) -> str:
        """Expand $(Name) properties; unknown properties are left in place."""

        def replace(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name == "MSBuildThisFileDirectory":
                return os.path.dirname(filepath) + os.sep
            if name == "MSBuildThisFileFullPath":
                return filepath
            return state.properties.get(name, match.group(0))

        return _PROPERTY_PATTERN.sub(replace, value)

    @staticmethod
    def _split(value: str) -> List[str]:
        return [part.strip() for part in value.split(";") if part.strip()]
