"""Build presets: Debug, Release and Development.

Presets rewrite the channel prefix of the version ("99." for debug builds,
"00." for development builds, none for release) and set the flags each
channel ships with.
"""

from __future__ import annotations

import re
from enum import Enum

from unity_builder.exceptions import PresetError
from unity_builder.parameters import AndroidCreateSymbols, AndroidSettings, BuildParameters

DEBUG_VERSION_PREFIX = "99."
DEVELOPMENT_VERSION_PREFIX = "00."
_CHANNEL_PREFIXES = (DEBUG_VERSION_PREFIX, DEVELOPMENT_VERSION_PREFIX)


class Preset(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"
    DEVELOPMENT = "development"

    @classmethod
    def parse(cls, value: str) -> Preset:
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            names = ", ".join(p.value for p in cls)
            raise PresetError(f"Unknown preset '{value}' (expected one of: {names})", "INVALID_PRESET") from e


def strip_version(version: str) -> str:
    """Keep digits and dots only."""
    return re.sub(r"[^0-9.]", "", version)


def remove_channel_prefix(version: str) -> str:
    while version.startswith(_CHANNEL_PREFIXES):
        version = version[len(DEBUG_VERSION_PREFIX) :]
    return version


def _android_update(parameters: BuildParameters, symbols: AndroidCreateSymbols, generate_aab: bool) -> dict:
    settings = parameters.platform_settings
    if not isinstance(settings, AndroidSettings):
        return {}
    return {"platform_settings": settings.model_copy(update={"android_symbols": symbols, "generate_aab": generate_aab})}


def apply_preset(parameters: BuildParameters, preset: Preset | str) -> BuildParameters:
    """Return a copy of ``parameters`` with the preset applied."""
    if not isinstance(preset, Preset):
        preset = Preset.parse(preset)

    version = parameters.build_version

    if preset is Preset.DEBUG:
        return parameters.model_copy(
            update={
                "build_version": DEBUG_VERSION_PREFIX + remove_channel_prefix(strip_version(version)),
                "debug_mode": True,
                "generate_addressables": True,
                "save_build_report": False,
                **_android_update(parameters, AndroidCreateSymbols.DISABLED, False),
            }
        )

    if preset is Preset.DEVELOPMENT:
        return parameters.model_copy(
            update={
                "build_version": DEVELOPMENT_VERSION_PREFIX + remove_channel_prefix(strip_version(version)),
                "debug_mode": True,
                "is_development_build": True,
                "generate_addressables": True,
                "save_build_report": False,
                **_android_update(parameters, AndroidCreateSymbols.DISABLED, False),
            }
        )

    return parameters.model_copy(
        update={
            "build_version": remove_channel_prefix(version),
            "debug_mode": False,
            "generate_addressables": True,
            "save_build_report": True,
            **_android_update(parameters, AndroidCreateSymbols.PUBLIC, True),
        }
    )
