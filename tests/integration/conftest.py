# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for integration tests.

Provides a representative MSBuild source tree.
"""

from pathlib import Path

import pytest

MSBUILD_NS = "http://schemas.microsoft.com/developer/msbuild/2003"


def write_project(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Create a small solution-like tree.

    Reference graph:
        MyExe -> MyRecursiveLib, MyNativeLib, MyLib
        MyLib -> MyRecursiveLib
        UnusedLibrary (nothing references it)

    Packages:
        MyExe: Serilog
        MyLib, MyRecursiveLib: Newtonsoft.Json
        Directory.Packages.props declares Newtonsoft.Json and Moq

    Returns:
        Path to the source root
    """
    root = tmp_path / "src_tree"

    write_project(
        root / "MyExe" / "MyExe.csproj",
        """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
  </PropertyGroup>
  <ItemGroup>
    <ProjectReference Include="..\\MyRecursiveLib\\MyRecursiveLib.csproj" />
    <ProjectReference Include="..\\MyNativeLib\\MyNativeLib.vcxproj" />
    <ProjectReference Include="..\\MyLib\\MyLib.csproj" />
  </ItemGroup>
  <ItemGroup>
    <PackageReference Include="Serilog" />
  </ItemGroup>
</Project>
""",
    )
    write_project(
        root / "MyLib" / "MyLib.csproj",
        """<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <ProjectReference Include="..\\MyRecursiveLib\\MyRecursiveLib.csproj" />
    <PackageReference Include="Newtonsoft.Json" />
  </ItemGroup>
</Project>
""",
    )
    write_project(
        root / "MyRecursiveLib" / "MyRecursiveLib.csproj",
        """<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" />
  </ItemGroup>
</Project>
""",
    )
    write_project(
        root / "MyNativeLib" / "MyNativeLib.vcxproj",
        f"""<?xml version="1.0" encoding="utf-8"?>
<Project DefaultTargets="Build" ToolsVersion="17.0" xmlns="{MSBUILD_NS}">
  <PropertyGroup Label="Globals">
    <ProjectGuid>{{3C5E2B1A-7D4F-4A8E-9B6C-1F2E3D4C5B6A}}</ProjectGuid>
  </PropertyGroup>
  <ItemGroup>
    <ClCompile Include="native.cpp" />
  </ItemGroup>
</Project>
""",
    )
    write_project(
        root / "UnusedLibrary" / "UnusedLibrary.csproj",
        """<Project Sdk="Microsoft.NET.Sdk" />
""",
    )
    write_project(
        root / "Directory.Packages.props",
        """<Project>
  <ItemGroup>
    <PackageVersion Include="Newtonsoft.Json" Version="13.0.3" />
    <PackageVersion Include="Moq" Version="4.20.70" />
  </ItemGroup>
</Project>
""",
    )
    return root
