# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""End-to-end tests: command line through analyzer, cache and report.

Every test runs from its own temporary working directory, so the default
`.cache` directory is private to the test.
"""

import io
import os
from pathlib import Path
from typing import List

import pytest

from dead_project_finder.analyzers import IgnorePredicate, MSBuildProjectAnalyzer
from dead_project_finder.cli import main
from dead_project_finder.config import Config
from dead_project_finder.models import ProjectAnalysis
from dead_project_finder.report import ReportWriter
from dead_project_finder.service import AnalysisContext, DeadProjectFinderService, RunSummary

from tests.integration.conftest import write_project


class CountingAnalyzer(MSBuildProjectAnalyzer):
    """MSBuildProjectAnalyzer that records every analyzed path."""

    def __init__(self) -> None:
        super().__init__()
        self.analyzed: List[str] = []

    def analyze(self, projectpath: str, is_ignored: IgnorePredicate) -> ProjectAnalysis:
        self.analyzed.append(projectpath)
        return super().analyze(projectpath, is_ignored)


def _run_cli(source_tree: Path, *extra: str) -> int:
    return main(
        [
            "--sourceRoot",
            str(source_tree),
            "--projectFile",
            str(source_tree / "MyExe" / "MyExe.csproj"),
            *extra,
        ]
    )


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


class TestCommandLine:
    """Tests driving main()."""

    def test_global_counts(self, source_tree: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run_cli(source_tree) == 0

        out = capsys.readouterr().out
        assert f"Source root path: {source_tree}" in out
        assert " - " + os.path.join("MyRecursiveLib", "MyRecursiveLib.csproj") + (
            " (2 recursive references)"
        ) in out
        assert " - " + os.path.join("MyNativeLib", "MyNativeLib.vcxproj") + (
            " (1 recursive references)"
        ) in out
        assert " - " + os.path.join("MyLib", "MyLib.csproj") + " (1 recursive references)" in out
        assert " - Newtonsoft.Json (3 recursive references)" in out
        # The entry point's own packages are not counted
        assert "Serilog (" not in out

    def test_unreferenced_projects(self, source_tree: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run_cli(source_tree) == 0

        out = capsys.readouterr().out
        assert "1 unreferenced project files found:" in out
        assert " - " + os.path.join("UnusedLibrary", "UnusedLibrary.csproj") in out

    def test_unreferenced_projects_can_be_disabled(
        self, source_tree: Path, capsys: pytest.CaptureFixture
    ) -> None:
        assert _run_cli(source_tree, "--reportUnused", "false") == 0

        assert "Finding unreferenced project files..." not in capsys.readouterr().out

    def test_unreferenced_packages(self, source_tree: Path, capsys: pytest.CaptureFixture) -> None:
        package_list = source_tree / "Directory.Packages.props"

        assert _run_cli(source_tree, "--packageListFile", str(package_list)) == 0

        out = capsys.readouterr().out
        assert "1 unreferenced packages found:\n - Moq\n" in out

    def test_missing_package_list_is_reported(
        self, source_tree: Path, capsys: pytest.CaptureFixture
    ) -> None:
        missing = source_tree / "nope.props"

        assert _run_cli(source_tree, "--packageListFile", str(missing)) == 0

        out = capsys.readouterr().out
        assert f"Package list file {missing} does not exist or cannot be read" in out
        assert "Finding unreferenced packages..." not in out

    def test_report_projects_writes_blocks(
        self, source_tree: Path, capsys: pytest.CaptureFixture
    ) -> None:
        assert _run_cli(source_tree, "--reportProjects") == 0

        out = capsys.readouterr().out
        assert "# MyLib.csproj\n" in out
        assert "\n  - " + os.path.join("MyRecursiveLib", "MyRecursiveLib.csproj") + "\n" in out
        assert out.count("# Project dependency tree:") == 3

    def test_ignore_path_hides_subtree(self, source_tree: Path, capsys: pytest.CaptureFixture) -> None:
        assert _run_cli(source_tree, "--ignorePath", "MyNative", "UnusedLib") == 0

        out = capsys.readouterr().out
        assert "Ignoring paths: MyNative,UnusedLib" in out
        assert "MyNativeLib.vcxproj (" not in out
        assert "0 unreferenced project files found:" in out

    def test_missing_reference_does_not_abort(
        self, source_tree: Path, capsys: pytest.CaptureFixture
    ) -> None:
        write_project(
            source_tree / "MyLib" / "MyLib.csproj",
            """<Project>
  <ItemGroup>
    <ProjectReference Include="..\\Ghost\\Ghost.csproj" />
    <ProjectReference Include="..\\MyRecursiveLib\\MyRecursiveLib.csproj" />
  </ItemGroup>
</Project>
""",
        )

        assert _run_cli(source_tree) == 0

        captured = capsys.readouterr()
        ghost = source_tree / "Ghost" / "Ghost.csproj"
        assert f"*** {ghost} was referenced but does not exist!" in captured.err
        assert "(2 recursive references)" in captured.out

    def test_missing_source_root_exits_2(self, tmp_path: Path, source_tree: Path) -> None:
        exit_code = main(
            [
                "--sourceRoot",
                str(tmp_path / "nowhere"),
                "--projectFile",
                str(source_tree / "MyExe" / "MyExe.csproj"),
            ]
        )

        assert exit_code == 2

    def test_missing_project_file_exits_2(self, source_tree: Path) -> None:
        exit_code = main(
            ["--sourceRoot", str(source_tree), "--projectFile", str(source_tree / "None.csproj")]
        )

        assert exit_code == 2

    def test_malformed_manifest_exits_1(
        self, source_tree: Path, capsys: pytest.CaptureFixture
    ) -> None:
        write_project(source_tree / "MyNativeLib" / "MyNativeLib.vcxproj", "<Project><ItemGroup>")

        assert _run_cli(source_tree) == 1
        assert "malformed XML" in capsys.readouterr().err

    def test_reference_cycle_exits_1(self, source_tree: Path, capsys: pytest.CaptureFixture) -> None:
        write_project(
            source_tree / "MyRecursiveLib" / "MyRecursiveLib.csproj",
            """<Project>
  <ItemGroup>
    <ProjectReference Include="..\\MyLib\\MyLib.csproj" />
  </ItemGroup>
</Project>
""",
        )

        assert _run_cli(source_tree) == 1
        assert "Cyclic project reference" in capsys.readouterr().err

    def test_cache_records_written_to_working_directory(
        self, tmp_path: Path, source_tree: Path
    ) -> None:
        assert _run_cli(source_tree) == 0

        names = sorted(p.name.split(".")[0] for p in (tmp_path / ".cache").iterdir())
        assert names == ["MyExe", "MyLib", "MyNativeLib", "MyRecursiveLib"]

    def test_caching_can_be_disabled(self, tmp_path: Path, source_tree: Path) -> None:
        assert _run_cli(source_tree, "--enableFileCaching", "false") == 0

        assert not (tmp_path / ".cache").exists()


class TestService:
    """Tests driving DeadProjectFinderService directly."""

    def _run(self, tmp_path: Path, source_tree: Path, analyzer: CountingAnalyzer) -> RunSummary:
        config = Config(config_path=tmp_path / "absent.yml")
        context = AnalysisContext.create(
            source_tree, source_tree / "MyExe" / "MyExe.csproj", config, analyzer
        )
        service = DeadProjectFinderService(context, analyzer, ReportWriter(io.StringIO()))
        return service.run(package_list_file=source_tree / "Directory.Packages.props")

    def test_summary(self, tmp_path: Path, source_tree: Path) -> None:
        summary = self._run(tmp_path, source_tree, CountingAnalyzer())

        assert summary.project_counts == {
            os.path.join("MyLib", "MyLib.csproj"): 1,
            os.path.join("MyNativeLib", "MyNativeLib.vcxproj"): 1,
            os.path.join("MyRecursiveLib", "MyRecursiveLib.csproj"): 2,
        }
        assert summary.unreferenced_projects == [os.path.join("UnusedLibrary", "UnusedLibrary.csproj")]
        assert summary.unreferenced_packages == ["Moq"]
        assert len(summary.walk_results) == 3

    def test_each_project_analyzed_once_per_run(self, tmp_path: Path, source_tree: Path) -> None:
        analyzer = CountingAnalyzer()

        self._run(tmp_path, source_tree, analyzer)

        assert len(analyzer.analyzed) == len(set(analyzer.analyzed)) == 4

    def test_second_run_served_from_cache(self, tmp_path: Path, source_tree: Path) -> None:
        first = self._run(tmp_path, source_tree, CountingAnalyzer())
        analyzer = CountingAnalyzer()

        second = self._run(tmp_path, source_tree, analyzer)

        assert analyzer.analyzed == []
        assert second.project_counts == first.project_counts
        assert second.unreferenced_projects == first.unreferenced_projects

    def test_edited_project_is_reanalyzed(self, tmp_path: Path, source_tree: Path) -> None:
        self._run(tmp_path, source_tree, CountingAnalyzer())
        write_project(
            source_tree / "MyLib" / "MyLib.csproj",
            """<Project>
  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" />
  </ItemGroup>
</Project>
""",
        )
        analyzer = CountingAnalyzer()

        summary = self._run(tmp_path, source_tree, analyzer)

        assert analyzer.analyzed == [str(source_tree / "MyLib" / "MyLib.csproj")]
        assert summary.project_counts[os.path.join("MyRecursiveLib", "MyRecursiveLib.csproj")] == 1
