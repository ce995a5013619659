"""
Build Orchestration
===================

Applies BuildParameters to the editor, builds Addressables and the player,
and writes the build metadata next to the artifact.

Usage:
    config = BuilderConfig.load()
    client = UnityClient.from_config(config)

    # Interactive submit
    Builder(client, config).generate_build(parameters)

    # CI: Unity-style flags, e.g. "-buildTarget=Android -buildVersion=1.2"
    build_batch_mode(client, config, command_line)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from unity_builder.arguments import (
    ANDROID_SYMBOLS,
    BUILD_COMMIT_HASH,
    BUILD_DIRECTORY,
    BUILD_ID,
    BUILD_SUFFIX,
    BUILD_TARGET,
    BUILD_VERSION,
    DEBUG_MODE,
    DEVELOPMENT_BUILD,
    GENERATE_AAB,
    GENERATE_ADDRESSABLES,
    SAVE_BUILD_REPORT,
    CommandLineArguments,
)
from unity_builder.client import UnityClient
from unity_builder.config import BuilderConfig
from unity_builder.exceptions import BuildTargetError
from unity_builder.parameters import (
    AndroidCreateSymbols,
    AndroidSettings,
    BuildParameters,
    BuildTarget,
    PlatformSettings,
    parse_build_target,
    settings_for_target,
)
from unity_builder.report import BuildReport, save_build_report, save_parameters
from unity_builder.symbols import apply_debug_symbol

logger = logging.getLogger(__name__)


def local_build_identifier(now: datetime | None = None) -> str:
    """Identifier for builds started by hand: 'local' + epoch seconds."""
    now = now or datetime.now(timezone.utc)
    return f"local{max(math.floor(now.timestamp()), 0)}"


@dataclass(frozen=True)
class BuildOutcome:
    """What a finished build produced."""

    report: BuildReport
    location_path: Path
    directory: Path
    symbols: list[str]

    @property
    def succeeded(self) -> bool:
        return self.report.succeeded


class Builder:
    """Runs one build against a connected editor."""

    def __init__(self, client: UnityClient, config: BuilderConfig) -> None:
        self._client = client
        self._config = config

    def generate_build(self, parameters: BuildParameters) -> BuildOutcome:
        """Configure the editor, build, and persist metadata.

        A failed engine build is logged; the parameters file is still written.

        Raises:
            SigningError: If a signed bundle is requested without credentials.
                Raised before the editor is touched.
            UnityBuilderError: For relay or command failures.
            OSError: If the metadata files cannot be written.
        """
        parameters.platform_settings.validate_signing(self._config.signing)

        self._client.player_settings.set_bundle_version(parameters.build_version)
        product_name = self._client.player_settings.product_name()
        scenes = self._client.build.enabled_scene_paths()
        options = parameters.get_build_options(product_name, scenes)
        directory = parameters.get_build_directory(product_name)

        symbols = apply_debug_symbol(self._client, parameters.build_target, parameters.debug_mode)

        logger.info(parameters.describe(product_name))

        logger.info(f"Builder :: Applying Settings of type {type(parameters.platform_settings).__name__}")
        parameters.platform_settings.apply_platform_modifiers(self._client, parameters, self._config.signing)

        if parameters.generate_addressables:
            self.generate_addressable_assets()

        logger.info("Builder :: Building Player.")
        response = self._client.build.build_player(options, timeout_ms=self._config.build_timeout_ms)
        report = BuildReport.from_response(response)

        if parameters.save_build_report:
            save_build_report(report, directory)

        status = report.summary.result.value
        if report.succeeded:
            logger.info(f"Builder :: Build Status: {status}")
        else:
            logger.error(f"Builder :: Build Status: {status} ({report.summary.total_errors} errors)")
        save_parameters(parameters, directory)

        return BuildOutcome(report=report, location_path=options.location_path, directory=directory, symbols=symbols)

    def generate_addressable_assets(self) -> None:
        logger.info("Builder :: Generating Addressable Assets.")
        self._client.addressables.clean()
        self._client.addressables.build()


# =============================================================================
# Batch Mode
# =============================================================================


def _platform_settings_from_arguments(args: CommandLineArguments, target: BuildTarget) -> PlatformSettings:
    settings = settings_for_target(target)
    if not isinstance(settings, AndroidSettings):
        return settings

    update: dict[str, object] = {}
    if ANDROID_SYMBOLS in args:
        try:
            update["android_symbols"] = AndroidCreateSymbols.parse(args.get(ANDROID_SYMBOLS))
        except ValueError:
            logger.warning(f"Ignoring invalid -{ANDROID_SYMBOLS} value '{args.get(ANDROID_SYMBOLS)}'")
    if GENERATE_AAB in args:
        update["generate_aab"] = args.get_bool(GENERATE_AAB)
    return settings.model_copy(update=update) if update else settings


def parameters_from_arguments(
    args: CommandLineArguments,
    target: BuildTarget,
    default_directory: Path,
    default_version: str = "",
) -> BuildParameters:
    """Build parameters from batch-mode flags.

    The identifier is the commit hash, or the CI build id when no hash is given.
    """
    directory = args.get(BUILD_DIRECTORY)
    return BuildParameters(
        build_target=target,
        build_version=args.get(BUILD_VERSION) or default_version,
        build_suffix=args.get(BUILD_SUFFIX),
        build_identifier=args.get(BUILD_COMMIT_HASH) or args.get(BUILD_ID),
        build_directory=Path(directory).expanduser() if directory else default_directory,
        is_development_build=args.get_bool(DEVELOPMENT_BUILD),
        generate_addressables=args.get_bool(GENERATE_ADDRESSABLES),
        debug_mode=args.get_bool(DEBUG_MODE),
        save_build_report=args.get_bool(SAVE_BUILD_REPORT),
        platform_settings=_platform_settings_from_arguments(args, target),
    )


def build_batch_mode(
    client: UnityClient,
    config: BuilderConfig,
    command_line: str | None = None,
) -> BuildOutcome | None:
    """Build from ``-name=value`` flags.

    Returns None, without touching the editor or the file system, when the
    build target cannot be parsed.
    """
    args = CommandLineArguments(command_line)
    logger.debug(f"Command line arguments: {args}")

    try:
        target = parse_build_target(args.get(BUILD_TARGET))
    except BuildTargetError:
        logger.error("Error trying to parse Build Target")
        return None

    default_version = "" if args.get(BUILD_VERSION) else client.player_settings.bundle_version()
    parameters = parameters_from_arguments(args, target, config.build_directory, default_version)
    return Builder(client, config).generate_build(parameters)
