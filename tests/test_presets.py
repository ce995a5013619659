"""Tests for unity_builder/presets.py - Debug / Release / Development presets"""

from __future__ import annotations

from pathlib import Path

import pytest

from unity_builder.exceptions import PresetError
from unity_builder.parameters import AndroidCreateSymbols, AndroidSettings, BuildParameters, BuildTarget, IOSSettings
from unity_builder.presets import Preset, apply_preset, remove_channel_prefix, strip_version


@pytest.fixture
def android() -> BuildParameters:
    return BuildParameters(
        build_target=BuildTarget.ANDROID,
        build_version="1.4.2",
        build_directory=Path("/builds"),
        platform_settings=AndroidSettings(android_symbols=AndroidCreateSymbols.PUBLIC, generate_aab=True),
    )


class TestVersionHelpers:
    def test_strip_version(self) -> None:
        assert strip_version("v1.4.2-rc1") == "1.4.21"

    def test_remove_channel_prefix(self) -> None:
        assert remove_channel_prefix("99.1.4") == "1.4"
        assert remove_channel_prefix("00.1.4") == "1.4"
        assert remove_channel_prefix("99.00.1.4") == "1.4"

    def test_remove_channel_prefix_leaves_inner_parts(self) -> None:
        assert remove_channel_prefix("1.99.4") == "1.99.4"


class TestDebugPreset:
    def test_values(self, android: BuildParameters) -> None:
        result = apply_preset(android, Preset.DEBUG)

        assert result.build_version == "99.1.4.2"
        assert result.debug_mode is True
        assert result.generate_addressables is True
        assert result.save_build_report is False
        assert isinstance(result.platform_settings, AndroidSettings)
        assert result.platform_settings.android_symbols is AndroidCreateSymbols.DISABLED
        assert result.platform_settings.generate_aab is False

    def test_reapplying_does_not_stack_prefix(self, android: BuildParameters) -> None:
        twice = apply_preset(apply_preset(android, Preset.DEBUG), Preset.DEBUG)

        assert twice.build_version == "99.1.4.2"

    def test_original_is_untouched(self, android: BuildParameters) -> None:
        apply_preset(android, Preset.DEBUG)

        assert android.build_version == "1.4.2"
        assert android.platform_settings.generate_aab is True


class TestReleasePreset:
    def test_values(self, android: BuildParameters) -> None:
        debug = apply_preset(android, Preset.DEBUG)

        result = apply_preset(debug, "release")

        assert result.build_version == "1.4.2"
        assert result.debug_mode is False
        assert result.save_build_report is True
        assert isinstance(result.platform_settings, AndroidSettings)
        assert result.platform_settings.android_symbols is AndroidCreateSymbols.PUBLIC
        assert result.platform_settings.generate_aab is True


class TestDevelopmentPreset:
    def test_values(self, android: BuildParameters) -> None:
        result = apply_preset(apply_preset(android, Preset.DEBUG), Preset.DEVELOPMENT)

        assert result.build_version == "00.1.4.2"
        assert result.is_development_build is True
        assert result.debug_mode is True
        assert result.save_build_report is False
        assert result.platform_settings.generate_aab is False


class TestPresetParsing:
    def test_names_are_case_insensitive(self) -> None:
        assert Preset.parse("Release") is Preset.RELEASE

    def test_unknown_preset(self, android: BuildParameters) -> None:
        with pytest.raises(PresetError):
            apply_preset(android, "nightly")

    def test_ios_settings_are_kept(self) -> None:
        ios = BuildParameters(build_target=BuildTarget.IOS, build_version="2.0", build_directory=Path("/b"))

        result = apply_preset(ios, Preset.RELEASE)

        assert isinstance(result.platform_settings, IOSSettings)
