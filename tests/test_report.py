"""Tests for unity_builder/report.py - build report model and metadata files"""

from __future__ import annotations

import json
from pathlib import Path

from unity_builder.parameters import AndroidSettings, BuildParameters, BuildTarget
from unity_builder.report import (
    BUILD_PARAMETERS_FILE,
    BUILD_REPORT_FILE,
    BuildReport,
    BuildResult,
    save_build_report,
    save_parameters,
)

ENGINE_REPORT = {
    "summary": {
        "result": "Succeeded",
        "platform": "Android",
        "outputPath": "/builds/QA/MyGame_v1.2/MyGame_v1.2.apk",
        "totalSize": 52428800,
        "totalTimeSeconds": 312.5,
        "totalErrors": 0,
        "totalWarnings": 14,
        "buildGuid": "ignored",
    },
    "steps": [{"name": "Build player", "durationSeconds": 300.1}],
}


class TestBuildReport:
    def test_from_response(self) -> None:
        report = BuildReport.from_response(ENGINE_REPORT)

        assert report.summary.result is BuildResult.SUCCEEDED
        assert report.summary.output_path == "/builds/QA/MyGame_v1.2/MyGame_v1.2.apk"
        assert report.summary.total_warnings == 14
        assert report.succeeded is True
        assert report.steps[0]["name"] == "Build player"

    def test_failed_report(self) -> None:
        report = BuildReport.from_response({"summary": {"result": "Failed", "totalErrors": 3}})

        assert report.succeeded is False
        assert report.summary.total_errors == 3

    def test_empty_response_is_unknown(self) -> None:
        report = BuildReport.from_response({})

        assert report.summary.result is BuildResult.UNKNOWN
        assert report.succeeded is False


class TestPersistence:
    def test_save_build_report_creates_directory(self, tmp_path: Path) -> None:
        directory = tmp_path / "QA" / "MyGame_v1.2"

        path = save_build_report(BuildReport.from_response(ENGINE_REPORT), directory)

        assert path == directory / BUILD_REPORT_FILE
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["result"] == "Succeeded"
        assert data["summary"]["totalWarnings"] == 14

    def test_save_parameters_writes_enum_names(self, tmp_path: Path) -> None:
        parameters = BuildParameters(
            build_target=BuildTarget.ANDROID,
            build_version="1.2",
            build_suffix="qa",
            build_identifier="abc123",
            build_directory=tmp_path,
            platform_settings=AndroidSettings(generate_aab=True),
        )

        path = save_parameters(parameters, tmp_path / "out")

        assert path.name == BUILD_PARAMETERS_FILE
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["build_target"] == "Android"
        assert data["platform_settings"]["android_symbols"] == "Public"
        assert data["platform_settings"]["generate_aab"] is True
        assert BuildParameters.model_validate(data) == parameters
