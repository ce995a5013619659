"""Tests for unity_builder/builder.py - build orchestration and batch mode"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from unity_builder.arguments import CommandLineArguments
from unity_builder.builder import Builder, build_batch_mode, local_build_identifier, parameters_from_arguments
from unity_builder.config import BuilderConfig, SigningConfig
from unity_builder.exceptions import SigningError, UnityBuilderError
from unity_builder.parameters import AndroidCreateSymbols, AndroidSettings, BuildParameters, BuildTarget, IOSSettings
from unity_builder.report import BUILD_PARAMETERS_FILE, BUILD_REPORT_FILE

SUCCEEDED = {"summary": {"result": "Succeeded", "platform": "Android"}}
FAILED = {"summary": {"result": "Failed", "totalErrors": 2}}


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.player_settings.product_name.return_value = "My Game"
    client.player_settings.bundle_version.return_value = "3.1"
    client.player_settings.get_defines.return_value = ["ODIN_INSPECTOR"]
    client.build.enabled_scene_paths.return_value = ["Assets/Scenes/Boot.unity", "Assets/Scenes/Main.unity"]
    client.build.build_player.return_value = SUCCEEDED
    return client


@pytest.fixture
def config(tmp_path: Path) -> BuilderConfig:
    return BuilderConfig(build_directory=tmp_path / "Builds", build_timeout_ms=1000)


@pytest.fixture
def sut(client: MagicMock, config: BuilderConfig) -> Builder:
    return Builder(client, config)


def make_parameters(root: Path, **overrides: object) -> BuildParameters:
    values: dict[str, object] = {
        "build_target": BuildTarget.ANDROID,
        "build_version": "1.2",
        "build_suffix": "qa",
        "build_identifier": "abc123",
        "build_directory": root,
        "debug_mode": True,
    }
    values.update(overrides)
    return BuildParameters(**values)


class TestLocalBuildIdentifier:
    def test_epoch_seconds(self) -> None:
        now = datetime(2024, 1, 1, 0, 0, 30, 900000, tzinfo=timezone.utc)

        assert local_build_identifier(now) == "local1704067230"

    def test_before_epoch_is_clamped(self) -> None:
        assert local_build_identifier(datetime(1960, 1, 1, tzinfo=timezone.utc)) == "local0"


class TestGenerateBuild:
    def test_call_sequence(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        parameters = make_parameters(config.build_directory, generate_addressables=True)

        sut.generate_build(parameters)

        client.player_settings.set_bundle_version.assert_called_once_with("1.2")
        client.player_settings.set_defines.assert_called_once_with("Android", ["ODIN_INSPECTOR", "DEBUG_MODE"])
        client.player_settings.set_android.assert_called_once_with(bundle_version_code=1200, use_custom_keystore=False)
        assert client.addressables.mock_calls == [call.clean(), call.build()]
        client.build.build_player.assert_called_once()

    def test_build_options(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        parameters = make_parameters(config.build_directory)

        outcome = sut.generate_build(parameters)

        options = client.build.build_player.call_args[0][0]
        expected_dir = config.build_directory / "QA" / "MyGame_v1.2_qa_abc123"
        assert options.location_path == expected_dir / "MyGame_v1.2_qa_abc123.apk"
        assert options.scenes == ("Assets/Scenes/Boot.unity", "Assets/Scenes/Main.unity")
        assert options.options == ()
        assert client.build.build_player.call_args.kwargs["timeout_ms"] == 1000
        assert outcome.directory == expected_dir
        assert outcome.location_path == options.location_path
        assert outcome.succeeded is True

    def test_skips_addressables_when_disabled(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        sut.generate_build(make_parameters(config.build_directory, generate_addressables=False))

        client.addressables.clean.assert_not_called()
        client.addressables.build.assert_not_called()

    def test_writes_parameters_and_report(self, sut: Builder, config: BuilderConfig) -> None:
        outcome = sut.generate_build(make_parameters(config.build_directory, save_build_report=True))

        assert (outcome.directory / BUILD_REPORT_FILE).exists()
        data = json.loads((outcome.directory / BUILD_PARAMETERS_FILE).read_text(encoding="utf-8"))
        assert data["build_version"] == "1.2"

    def test_report_file_only_when_enabled(self, sut: Builder, config: BuilderConfig) -> None:
        outcome = sut.generate_build(make_parameters(config.build_directory, save_build_report=False))

        assert not (outcome.directory / BUILD_REPORT_FILE).exists()
        assert (outcome.directory / BUILD_PARAMETERS_FILE).exists()

    def test_failed_build_still_writes_parameters(
        self,
        sut: Builder,
        client: MagicMock,
        config: BuilderConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        client.build.build_player.return_value = FAILED

        with caplog.at_level(logging.ERROR, logger="unity_builder.builder"):
            outcome = sut.generate_build(make_parameters(config.build_directory))

        assert outcome.succeeded is False
        assert (outcome.directory / BUILD_PARAMETERS_FILE).exists()
        assert "Build Status: Failed" in caplog.text

    def test_development_build_options(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        outcome = sut.generate_build(make_parameters(config.build_directory, is_development_build=True))

        options = client.build.build_player.call_args[0][0]
        assert options.options == ("Development",)
        assert outcome.directory.parent.name == "Development"

    def test_ios_build(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        outcome = sut.generate_build(make_parameters(config.build_directory, build_target=BuildTarget.IOS))

        client.player_settings.set_android.assert_not_called()
        client.player_settings.get_defines.assert_called_once_with("iOS")
        assert outcome.location_path.name == "MyGame_v1.2_qa_abc123.ipa"

    def test_unsigned_bundle_fails_before_engine(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        parameters = make_parameters(config.build_directory, platform_settings=AndroidSettings(generate_aab=True))

        with pytest.raises(SigningError):
            sut.generate_build(parameters)

        assert client.mock_calls == []
        assert not config.build_directory.exists()

    def test_signed_bundle(self, client: MagicMock, config: BuilderConfig) -> None:
        config.signing = SigningConfig("Store/game.keystore", "a", "release", "b")
        parameters = make_parameters(config.build_directory, platform_settings=AndroidSettings(generate_aab=True))

        outcome = Builder(client, config).generate_build(parameters)

        assert outcome.location_path.suffix == ".aab"
        kwargs = client.player_settings.set_android.call_args.kwargs
        assert kwargs["use_custom_keystore"] is True
        assert kwargs["keystore_name"] == "Store/game.keystore"

    def test_engine_error_propagates(self, sut: Builder, client: MagicMock, config: BuilderConfig) -> None:
        client.build.build_player.side_effect = UnityBuilderError("Build in progress", "INSTANCE_BUSY")

        with pytest.raises(UnityBuilderError):
            sut.generate_build(make_parameters(config.build_directory))

        assert not config.build_directory.exists()


class TestParametersFromArguments:
    def test_full_flags(self, tmp_path: Path) -> None:
        args = CommandLineArguments(
            "-buildVersion=1.2 -buildSuffix=qa -commitHash=abc123 -buildId=77 "
            "-generateAddressables=true -developmentBuild=true -debugMode=true -saveBuildReport=true "
            "-symbols=Debugging -generateAab=false"
        )

        parameters = parameters_from_arguments(args, BuildTarget.ANDROID, tmp_path)

        assert parameters.build_version == "1.2"
        assert parameters.build_suffix == "qa"
        assert parameters.build_identifier == "abc123"
        assert parameters.generate_addressables is True
        assert parameters.is_development_build is True
        assert parameters.debug_mode is True
        assert parameters.save_build_report is True
        assert parameters.build_directory == tmp_path
        assert isinstance(parameters.platform_settings, AndroidSettings)
        assert parameters.platform_settings.android_symbols is AndroidCreateSymbols.DEBUGGING

    def test_build_id_when_no_commit_hash(self, tmp_path: Path) -> None:
        parameters = parameters_from_arguments(CommandLineArguments("-buildId=77"), BuildTarget.IOS, tmp_path)

        assert parameters.build_identifier == "77"
        assert isinstance(parameters.platform_settings, IOSSettings)

    def test_defaults(self, tmp_path: Path) -> None:
        parameters = parameters_from_arguments(CommandLineArguments(""), BuildTarget.ANDROID, tmp_path, "3.1")

        assert parameters.build_version == "3.1"
        assert parameters.build_identifier == ""
        assert parameters.generate_addressables is False
        assert parameters.debug_mode is False
        assert parameters.save_build_report is False

    def test_directory_flag(self, tmp_path: Path) -> None:
        args = CommandLineArguments(f"-buildDirectory={tmp_path / 'ci'}")

        parameters = parameters_from_arguments(args, BuildTarget.ANDROID, tmp_path)

        assert parameters.build_directory == tmp_path / "ci"

    def test_invalid_symbols_flag_keeps_default(self, tmp_path: Path) -> None:
        args = CommandLineArguments("-symbols=everything")

        parameters = parameters_from_arguments(args, BuildTarget.ANDROID, tmp_path)

        assert parameters.platform_settings.android_symbols is AndroidCreateSymbols.PUBLIC


class TestBuildBatchMode:
    def test_invalid_target_aborts(
        self,
        client: MagicMock,
        config: BuilderConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="unity_builder.builder"):
            result = build_batch_mode(client, config, "-buildTarget=Switch2 -buildVersion=1.2")

        assert result is None
        assert "Error trying to parse Build Target" in caplog.text
        assert client.mock_calls == []
        assert not config.build_directory.exists()

    def test_missing_target_aborts(self, client: MagicMock, config: BuilderConfig) -> None:
        assert build_batch_mode(client, config, "-buildVersion=1.2") is None
        client.build.build_player.assert_not_called()

    def test_builds_with_flags(self, client: MagicMock, config: BuilderConfig) -> None:
        outcome = build_batch_mode(
            client,
            config,
            "Unity -batchmode -buildTarget=Android -buildVersion=1.2 -buildSuffix=qa -commitHash=abc123",
        )

        assert outcome is not None
        assert outcome.directory == config.build_directory / "Release" / "MyGame_v1.2_qa_abc123"
        assert (outcome.directory / BUILD_PARAMETERS_FILE).exists()
        client.player_settings.bundle_version.assert_not_called()

    def test_missing_version_uses_engine_bundle_version(self, client: MagicMock, config: BuilderConfig) -> None:
        outcome = build_batch_mode(client, config, "-buildTarget=Android")

        assert outcome is not None
        client.player_settings.set_bundle_version.assert_called_once_with("3.1")
        assert outcome.location_path.name == "MyGame_v3.1.apk"
