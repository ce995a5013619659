"""Build report model and build metadata persistence."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from unity_builder.parameters import BuildParameters

BUILD_REPORT_FILE = "BuildReport.json"
BUILD_PARAMETERS_FILE = "BuildParameters.json"


class BuildResult(str, Enum):
    UNKNOWN = "Unknown"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class BuildSummary(BaseModel):
    """BuildReport.summary as sent by the editor."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    result: BuildResult = BuildResult.UNKNOWN
    platform: str = ""
    output_path: str = Field(default="", alias="outputPath")
    total_size: int = Field(default=0, alias="totalSize")
    total_time_seconds: float = Field(default=0.0, alias="totalTimeSeconds")
    total_errors: int = Field(default=0, alias="totalErrors")
    total_warnings: int = Field(default=0, alias="totalWarnings")


class BuildReport(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: BuildSummary = Field(default_factory=BuildSummary)
    steps: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> BuildReport:
        return cls.model_validate(data)

    @property
    def succeeded(self) -> bool:
        return self.summary.result is BuildResult.SUCCEEDED


def _write_json(directory: Path, file_name: str, data: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_text(data, encoding="utf-8")
    return path


def save_build_report(report: BuildReport, directory: Path) -> Path:
    return _write_json(directory, BUILD_REPORT_FILE, report.model_dump_json(indent=2, by_alias=True))


def save_parameters(parameters: BuildParameters, directory: Path) -> Path:
    """Write BuildParameters.json; enums are written by name."""
    return _write_json(directory, BUILD_PARAMETERS_FILE, parameters.model_dump_json(indent=2))
