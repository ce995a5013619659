"""Tests for unity_builder/project.py - offline project settings"""

from __future__ import annotations

from pathlib import Path

import pytest

from unity_builder.exceptions import ProjectError
from unity_builder.project import (
    BuildSettings,
    ProjectInfo,
    ProjectSettings,
    find_project_root,
    is_unity_project,
)

PROJECT_SETTINGS = """%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!129 &1
PlayerSettings:
  companyName: Studio
  productName: My Game
  bundleVersion: 3.1
  AndroidBundleVersionCode: 3100
  scriptingDefineSymbols:
    Android: ODIN_INSPECTOR;DEBUG_MODE
    Standalone: STEAM
  additionalCompilerArguments: {}
"""

EDITOR_BUILD_SETTINGS = """EditorBuildSettings:
  m_Scenes:
  - enabled: 1
    path: Assets/Scenes/Boot.unity
    guid: 1111
  - enabled: 0
    path: Assets/Scenes/Sandbox.unity
    guid: 2222
  - enabled: 1
    path: Assets/Scenes/Main.unity
    guid: 3333
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "Game"
    (root / "Assets").mkdir(parents=True)
    settings = root / "ProjectSettings"
    settings.mkdir()
    (settings / "ProjectSettings.asset").write_text(PROJECT_SETTINGS, encoding="utf-8")
    (settings / "EditorBuildSettings.asset").write_text(EDITOR_BUILD_SETTINGS, encoding="utf-8")
    return root


class TestProjectDetection:
    def test_is_unity_project(self, project: Path) -> None:
        assert is_unity_project(project) is True
        assert is_unity_project(project / "Assets") is False

    def test_find_project_root_from_subdirectory(self, project: Path) -> None:
        nested = project / "Assets" / "Scripts"
        nested.mkdir()

        assert find_project_root(nested) == project.resolve()

    def test_find_project_root_outside_project(self, tmp_path: Path) -> None:
        assert find_project_root(tmp_path) is None


class TestProjectSettings:
    def test_values(self, project: Path) -> None:
        settings = ProjectSettings.from_file(project)

        assert settings.product_name == "My Game"
        assert settings.version == "3.1"

    def test_defines(self, project: Path) -> None:
        settings = ProjectSettings.from_file(project)

        assert settings.defines_for("Android") == ["ODIN_INSPECTOR", "DEBUG_MODE"]
        assert settings.defines_for("Standalone") == ["STEAM"]
        assert settings.defines_for("iOS") == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ProjectError):
            ProjectSettings.from_file(tmp_path)


class TestBuildSettings:
    def test_enabled_paths(self, project: Path) -> None:
        settings = BuildSettings.from_file(project)

        assert len(settings.scenes) == 3
        assert settings.enabled_paths == ["Assets/Scenes/Boot.unity", "Assets/Scenes/Main.unity"]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert BuildSettings.from_file(tmp_path).scenes == []


class TestProjectInfo:
    def test_from_path(self, project: Path) -> None:
        info = ProjectInfo.from_path(project)

        assert info.path == project.resolve()
        assert info.settings.product_name == "My Game"
        assert info.build_settings.enabled_paths == ["Assets/Scenes/Boot.unity", "Assets/Scenes/Main.unity"]

    def test_only_player_settings_needed(self, tmp_path: Path) -> None:
        root = tmp_path / "Bare"
        (root / "Assets").mkdir(parents=True)
        (root / "ProjectSettings").mkdir()
        (root / "ProjectSettings" / "ProjectSettings.asset").write_text(PROJECT_SETTINGS, encoding="utf-8")

        info = ProjectInfo.from_path(root)

        assert info.settings.product_name == "My Game"
        assert info.settings.version == "3.1"
        assert info.build_settings.scenes == []

    def test_not_a_project(self, tmp_path: Path) -> None:
        with pytest.raises(ProjectError) as exc_info:
            ProjectInfo.from_path(tmp_path)

        assert exc_info.value.code == "INVALID_PROJECT"
