"""Offline reading of Unity project settings.

Used to resolve product name, bundle version, define symbols and scenes
without a running editor, e.g. to preview build paths.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from unity_builder.exceptions import ProjectError


def is_unity_project(path: Path) -> bool:
    """Check if path is a Unity project (has Assets/ and ProjectSettings/)."""
    return (path / "Assets").is_dir() and (path / "ProjectSettings").is_dir()


def find_project_root(start: Path) -> Path | None:
    """Walk up from ``start`` to the enclosing Unity project, if any."""
    start = start.resolve()
    for candidate in [start, *start.parents]:
        if is_unity_project(candidate):
            return candidate
    return None


@dataclass(frozen=True)
class ProjectSettings:
    """Subset of ProjectSettings/ProjectSettings.asset relevant to builds."""

    product_name: str
    version: str  # bundleVersion
    scripting_defines: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_file(cls, project_path: Path) -> ProjectSettings:
        """Parse ProjectSettings/ProjectSettings.asset (YAML)."""
        settings_file = project_path / "ProjectSettings/ProjectSettings.asset"
        if not settings_file.exists():
            raise ProjectError(f"ProjectSettings.asset not found: {settings_file}", "PROJECT_SETTINGS_NOT_FOUND")

        content = settings_file.read_text(encoding="utf-8")

        def extract_value(key: str, default: str = "") -> str:
            match = re.search(rf"^\s*{key}:[ \t]*(.*)$", content, re.MULTILINE)
            return match.group(1).strip() if match else default

        return cls(
            product_name=extract_value("productName", "Unknown"),
            version=extract_value("bundleVersion", "0.1"),
            scripting_defines=_parse_defines(content),
        )

    def defines_for(self, group: str) -> list[str]:
        return list(self.scripting_defines.get(group, []))


def _parse_defines(content: str) -> dict[str, list[str]]:
    """Parse the ``scriptingDefineSymbols`` map: ``  Android: A;B``."""
    block = re.search(r"^([ \t]*)scriptingDefineSymbols:[ \t]*\n((?:\1[ \t]+[^\n]*\n?)*)", content, re.MULTILINE)
    if not block:
        return {}

    defines: dict[str, list[str]] = {}
    for line in block.group(2).splitlines():
        key, sep, value = line.strip().partition(":")
        if sep:
            defines[key.strip()] = [s for s in value.strip().split(";") if s]
    return defines


@dataclass(frozen=True)
class BuildScene:
    """Scene included in build."""

    path: str
    enabled: bool


@dataclass(frozen=True)
class BuildSettings:
    """Scenes from ProjectSettings/EditorBuildSettings.asset."""

    scenes: list[BuildScene] = field(default_factory=list)

    @classmethod
    def from_file(cls, project_path: Path) -> BuildSettings:
        build_file = project_path / "ProjectSettings/EditorBuildSettings.asset"
        if not build_file.exists():
            return cls(scenes=[])

        content = build_file.read_text(encoding="utf-8")
        scene_blocks = re.findall(r"-\s+enabled:\s*(\d+)\s+path:\s*([^\s]+)", content)
        return cls(scenes=[BuildScene(path=path, enabled=enabled == "1") for enabled, path in scene_blocks])

    @property
    def enabled_paths(self) -> list[str]:
        return [s.path for s in self.scenes if s.enabled]


@dataclass
class ProjectInfo:
    """Unity project information needed to preview a build."""

    path: Path
    settings: ProjectSettings
    build_settings: BuildSettings

    @classmethod
    def from_path(cls, project_path: Path) -> ProjectInfo:
        project_path = project_path.resolve()
        if not is_unity_project(project_path):
            raise ProjectError(f"Not a valid Unity project: {project_path}", "INVALID_PROJECT")

        return cls(
            path=project_path,
            settings=ProjectSettings.from_file(project_path),
            build_settings=BuildSettings.from_file(project_path),
        )
