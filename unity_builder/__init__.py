"""
Unity Builder
=============

Build driver for Unity projects. Resolves build parameters (target,
version, suffix, presets), derives artifact names and output directories,
and drives a running Unity Editor through the Unity Bridge Relay Server.

Usage:
    from unity_builder import Builder, BuilderConfig, BuildParameters, BuildTarget, UnityClient

    config = BuilderConfig.load()
    client = UnityClient.from_config(config)

    parameters = BuildParameters(
        build_target=BuildTarget.ANDROID,
        build_version="1.2",
        build_suffix="qa",
        build_identifier="abc123",
        build_directory=config.build_directory,
    )
    Builder(client, config).generate_build(parameters)
"""

from unity_builder.builder import Builder, BuildOutcome, build_batch_mode, local_build_identifier
from unity_builder.client import RelayConnection, UnityClient
from unity_builder.config import BuilderConfig, SigningConfig
from unity_builder.exceptions import UnityBuilderError
from unity_builder.parameters import (
    AndroidCreateSymbols,
    AndroidSettings,
    BuildParameters,
    BuildTarget,
    IOSSettings,
    StandaloneSettings,
    build_name,
    build_paths,
    derive_version_code,
    parse_build_target,
    settings_for_target,
)
from unity_builder.presets import Preset, apply_preset
from unity_builder.report import BuildReport

__all__ = [
    "AndroidCreateSymbols",
    "AndroidSettings",
    "BuildOutcome",
    "BuildParameters",
    "BuildReport",
    "BuildTarget",
    "Builder",
    "BuilderConfig",
    "IOSSettings",
    "Preset",
    "RelayConnection",
    "SigningConfig",
    "StandaloneSettings",
    "UnityBuilderError",
    "UnityClient",
    "apply_preset",
    "build_batch_mode",
    "build_name",
    "build_paths",
    "derive_version_code",
    "local_build_identifier",
    "parse_build_target",
    "settings_for_target",
]
