"""
Build Parameters
================

Build targets, per-platform settings and the immutable parameter record a
build runs with. Naming and directory layout are derived here as pure
functions so they can be computed without an editor connection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from unity_builder.exceptions import BuildTargetError, SigningError

if TYPE_CHECKING:
    from unity_builder.client import UnityClient
    from unity_builder.config import SigningConfig

DEVELOPMENT_MARKER = "_DEVELOPMENT"
VERSION_CODE_LENGTH = 4


# =============================================================================
# Enums
# =============================================================================


class BuildTarget(str, Enum):
    """Subset of UnityEditor.BuildTarget; values are the Unity member names."""

    STANDALONE_OSX = "StandaloneOSX"
    STANDALONE_WINDOWS = "StandaloneWindows"
    IOS = "iOS"
    ANDROID = "Android"
    STANDALONE_WINDOWS64 = "StandaloneWindows64"
    WEBGL = "WebGL"
    STANDALONE_LINUX64 = "StandaloneLinux64"

    @property
    def unity_id(self) -> int:
        return _UNITY_TARGET_IDS[self]

    @property
    def group(self) -> str:
        """NamedBuildTarget used for scripting define symbols."""
        if self in (BuildTarget.ANDROID, BuildTarget.IOS, BuildTarget.WEBGL):
            return self.value
        return "Standalone"

    @property
    def platform(self) -> str:
        """Discriminator of the PlatformSettings variant for this target."""
        if self in (BuildTarget.ANDROID, BuildTarget.IOS):
            return self.value
        return "Standalone"


_UNITY_TARGET_IDS: dict[BuildTarget, int] = {
    BuildTarget.STANDALONE_OSX: 2,
    BuildTarget.STANDALONE_WINDOWS: 5,
    BuildTarget.IOS: 9,
    BuildTarget.ANDROID: 13,
    BuildTarget.STANDALONE_WINDOWS64: 19,
    BuildTarget.WEBGL: 20,
    BuildTarget.STANDALONE_LINUX64: 24,
}


def parse_build_target(value: str) -> BuildTarget:
    """Parse a build target by Unity member name or numeric id.

    Raises:
        BuildTargetError: If the value names no known target.
    """
    text = value.strip()
    for target in BuildTarget:
        if target.value == text:
            return target
    if text.lstrip("+-").isdigit():
        for target, unity_id in _UNITY_TARGET_IDS.items():
            if unity_id == int(text):
                return target
    raise BuildTargetError(f"Unknown build target: '{value}'", "INVALID_BUILD_TARGET")


class AndroidCreateSymbols(str, Enum):
    DISABLED = "Disabled"
    PUBLIC = "Public"
    DEBUGGING = "Debugging"

    @classmethod
    def parse(cls, value: str) -> AndroidCreateSymbols:
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise ValueError(f"Unknown Android symbols mode: '{value}'")


# =============================================================================
# Version Code
# =============================================================================


def derive_version_code(version: str) -> int:
    """Android bundleVersionCode from a dotted version string.

    Keeps the digits only and right-pads them with zeros to four places:
    '1.2' -> 1200, '2.10.3' -> 2103. Longer digit runs are not truncated.
    """
    digits = re.sub(r"[^0-9.]", "", version).replace(".", "")
    return int(digits.ljust(VERSION_CODE_LENGTH, "0"))


# =============================================================================
# Build Options
# =============================================================================


@dataclass(frozen=True)
class BuildPlayerOptions:
    """Arguments for the engine's player build."""

    scenes: tuple[str, ...]
    target: BuildTarget
    location_path: Path
    options: tuple[str, ...] = ()
    extras: dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "target": self.target.value,
            "outputPath": str(self.location_path),
            "scenes": list(self.scenes),
            "options": list(self.options),
        }
        params.update(self.extras)
        return params


# =============================================================================
# Platform Settings
# =============================================================================


class PlatformSettings(BaseModel):
    """Base for per-platform settings. Replaced whole when the target changes."""

    model_config = ConfigDict(frozen=True)

    platform: str

    def get_extension(self, target: BuildTarget) -> str:
        """File extension of the player built for ``target``."""
        return ""

    def validate_signing(self, signing: SigningConfig | None) -> None:
        """Fail before any engine call if the build cannot be signed."""

    def apply_to(self, options: BuildPlayerOptions) -> BuildPlayerOptions:
        return options

    def apply_platform_modifiers(
        self,
        client: UnityClient,
        parameters: BuildParameters,
        signing: SigningConfig | None = None,
    ) -> None:
        pass


class AndroidSettings(PlatformSettings):
    platform: Literal["Android"] = "Android"
    android_symbols: AndroidCreateSymbols = AndroidCreateSymbols.PUBLIC
    generate_aab: bool = False

    def get_extension(self, target: BuildTarget) -> str:
        return ".aab" if self.generate_aab else ".apk"

    def validate_signing(self, signing: SigningConfig | None) -> None:
        if self.generate_aab and (signing is None or not signing.is_complete):
            raise SigningError(
                "Signed app bundle requested but keystore credentials are incomplete. "
                "Set them in [signing] or UNITY_KEYSTORE_PATH / UNITY_KEYSTORE_PASS / "
                "UNITY_KEYALIAS_NAME / UNITY_KEYALIAS_PASS.",
                "SIGNING_INCOMPLETE",
            )

    def apply_platform_modifiers(
        self,
        client: UnityClient,
        parameters: BuildParameters,
        signing: SigningConfig | None = None,
    ) -> None:
        self.validate_signing(signing)

        client.player_settings.set_editor_build(
            android_create_symbols=self.android_symbols.value,
            build_app_bundle=self.generate_aab,
        )

        keystore: dict[str, str] = {}
        if self.generate_aab and signing is not None:
            keystore = {
                "keystore_name": signing.keystore_path or "",
                "keystore_pass": signing.keystore_pass or "",
                "keyalias_name": signing.keyalias_name or "",
                "keyalias_pass": signing.keyalias_pass or "",
            }

        client.player_settings.set_android(
            bundle_version_code=derive_version_code(parameters.build_version),
            use_custom_keystore=self.generate_aab,
            **keystore,
        )


class IOSSettings(PlatformSettings):
    platform: Literal["iOS"] = "iOS"

    def get_extension(self, target: BuildTarget) -> str:
        return ".ipa"


class StandaloneSettings(PlatformSettings):
    """Desktop and WebGL players. The extension follows the build target."""

    platform: Literal["Standalone"] = "Standalone"

    def get_extension(self, target: BuildTarget) -> str:
        return _STANDALONE_EXTENSIONS.get(target, "")


_STANDALONE_EXTENSIONS: dict[BuildTarget, str] = {
    BuildTarget.STANDALONE_WINDOWS: ".exe",
    BuildTarget.STANDALONE_WINDOWS64: ".exe",
    BuildTarget.STANDALONE_OSX: ".app",
}

AnyPlatformSettings = Annotated[
    Union[AndroidSettings, IOSSettings, StandaloneSettings],
    Field(discriminator="platform"),
]


def settings_for_target(target: BuildTarget) -> PlatformSettings:
    """Fresh default settings for a target; previous platform state is discarded."""
    if target is BuildTarget.ANDROID:
        return AndroidSettings()
    if target is BuildTarget.IOS:
        return IOSSettings()
    return StandaloneSettings()


# =============================================================================
# Naming
# =============================================================================


def build_name(
    product_name: str,
    version: str,
    suffix: str | None = None,
    is_development: bool = False,
    identifier: str | None = None,
    extension: str = "",
) -> str:
    """Artifact name: Product_v1.2[_suffix][_DEVELOPMENT][_identifier][.ext]"""
    name = f"{product_name.replace(' ', '')}_v{version}"
    if suffix:
        name += f"_{suffix}"
    if is_development:
        name += DEVELOPMENT_MARKER
    if identifier:
        name += f"_{identifier}"
    return name + extension


def intermediate_folder(is_development: bool, debug_mode: bool) -> str:
    if is_development:
        return "Development"
    return "QA" if debug_mode else "Release"


def build_paths(
    product_name: str,
    version: str,
    suffix: str | None,
    is_development: bool,
    identifier: str | None,
    debug_mode: bool,
    extension: str,
    root: Path,
) -> tuple[Path, str]:
    """Return (directory, file_name) for a build.

    The directory ends in the extensionless build name, so the file stem and
    the directory name always agree.
    """
    stem = build_name(product_name, version, suffix, is_development, identifier)
    directory = Path(root) / intermediate_folder(is_development, debug_mode) / stem
    return directory, stem + extension


# =============================================================================
# Build Parameters
# =============================================================================


class BuildParameters(BaseModel):
    """Inputs of a single build. Never mutated once the build starts."""

    model_config = ConfigDict(frozen=True)

    build_target: BuildTarget
    build_version: str = ""
    build_suffix: str = ""
    generate_addressables: bool = False
    is_development_build: bool = False
    build_directory: Path
    build_identifier: str = ""
    platform_settings: AnyPlatformSettings
    save_build_report: bool = False
    debug_mode: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_platform_settings(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("platform_settings") is None and "build_target" in data:
            data = {**data, "platform_settings": settings_for_target(BuildTarget(data["build_target"]))}
        return data

    @model_validator(mode="after")
    def _settings_match_target(self) -> BuildParameters:
        if self.platform_settings.platform != self.build_target.platform:
            raise ValueError(
                f"{type(self.platform_settings).__name__} cannot be used for target {self.build_target.value}"
            )
        return self

    def with_target(self, target: BuildTarget) -> BuildParameters:
        """Copy for another target with that target's default platform settings."""
        return self.model_copy(update={"build_target": target, "platform_settings": settings_for_target(target)})

    def get_build_name(self, product_name: str, include_extension: bool) -> str:
        extension = self.platform_settings.get_extension(self.build_target) if include_extension else ""
        return build_name(
            product_name,
            self.build_version,
            self.build_suffix,
            self.is_development_build,
            self.build_identifier,
            extension,
        )

    def get_build_paths(self, product_name: str) -> tuple[Path, str]:
        return build_paths(
            product_name,
            self.build_version,
            self.build_suffix,
            self.is_development_build,
            self.build_identifier,
            self.debug_mode,
            self.platform_settings.get_extension(self.build_target),
            self.build_directory,
        )

    def get_build_directory(self, product_name: str) -> Path:
        return self.get_build_paths(product_name)[0]

    def location_path(self, product_name: str) -> Path:
        directory, file_name = self.get_build_paths(product_name)
        return directory / file_name

    def get_build_options(self, product_name: str, scenes: list[str]) -> BuildPlayerOptions:
        options = BuildPlayerOptions(
            scenes=tuple(scenes),
            target=self.build_target,
            location_path=self.location_path(product_name),
            options=("Development",) if self.is_development_build else (),
        )
        return self.platform_settings.apply_to(options)

    def describe(self, product_name: str) -> str:
        return (
            "Build Parameters :::::::::\n"
            f"    - Game: {product_name}\n"
            f"    - Version: {self.build_version}\n"
            f"    - Target: {self.build_target.value}\n"
            f"    - Suffix: {self.build_suffix}\n"
            f"    - Directory: {self.build_directory}\n"
            f"    - Development: {self.is_development_build}\n"
            f"    - Addressables: {self.generate_addressables}\n"
            f"    - Debug Mode: {self.debug_mode}"
        )
