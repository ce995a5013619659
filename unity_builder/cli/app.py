"""
Unity Builder - Typer Application
==================================

Commands:
    build   configure the editor and build the player (interactive submit)
    batch   build from Unity-style ``-name=value`` flags (CI)
    plan    preview names, paths and version code without an editor
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Annotated, Any

import typer

from unity_builder.builder import Builder, BuildOutcome, build_batch_mode, local_build_identifier
from unity_builder.cli.output import (
    console,
    err_console,
    print_build_summary,
    print_error,
    print_instances_table,
    print_json,
    print_key_value,
    print_success,
    print_warning,
)
from unity_builder.client import UnityClient
from unity_builder.config import CONFIG_FILE_NAME, BuilderConfig
from unity_builder.exceptions import ProjectError, UnityBuilderError
from unity_builder.parameters import (
    AndroidCreateSymbols,
    AndroidSettings,
    BuildParameters,
    BuildTarget,
    derive_version_code,
    parse_build_target,
    settings_for_target,
)
from unity_builder.presets import Preset, apply_preset
from unity_builder.project import ProjectInfo, find_project_root
from unity_builder.symbols import toggle_debug_symbol

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _on_retry_callback(code: str, message: str, attempt: int, backoff_ms: int) -> None:
    err_console.print(
        f"[dim][Retry][/dim] {code}: {message} (attempt {attempt}, waiting {backoff_ms}ms)",
        style="yellow",
    )


@dataclass
class CLIContext:
    """Context object shared across commands via ctx.obj."""

    config: BuilderConfig
    client: UnityClient
    json_mode: bool = False


app = typer.Typer(
    name="unity-builder",
    help="Unity Builder - Configure and build Unity players via Relay Server",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    ctx: typer.Context,
    relay_host: Annotated[
        str | None,
        typer.Option("--relay-host", help="Relay server host", envvar="UNITY_RELAY_HOST"),
    ] = None,
    relay_port: Annotated[
        int | None,
        typer.Option("--relay-port", help="Relay server port", envvar="UNITY_RELAY_PORT"),
    ] = None,
    instance: Annotated[
        str | None,
        typer.Option("--instance", "-i", help="Target Unity instance (project path)", envvar="UNITY_INSTANCE"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Socket timeout in seconds"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help=f"Config file (default: nearest {CONFIG_FILE_NAME})"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output JSON format"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging"),
    ] = False,
) -> None:
    """Unity Builder - Configure and build Unity players via Relay Server."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)

    try:
        config = BuilderConfig.load(config_path)
    except UnityBuilderError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None

    if relay_host is not None:
        config.relay_host = relay_host
    if relay_port is not None:
        config.relay_port = relay_port
    if timeout is not None:
        config.timeout = timeout
    if instance is not None:
        config.instance = instance

    ctx.obj = CLIContext(
        config=config,
        client=UnityClient.from_config(config, on_retry=_on_retry_callback),
        json_mode=json_output,
    )


# =============================================================================
# Shared Build Options
# =============================================================================

TargetOpt = Annotated[str, typer.Option("--target", help="BuildTarget name (Android, iOS, StandaloneWindows64, ...)")]
VersionOpt = Annotated[str | None, typer.Option("--version", "-v", help="Build version (default: bundleVersion)")]
SuffixOpt = Annotated[str, typer.Option("--suffix", "-s", help="Differentiator appended to the build name")]
BuildIdOpt = Annotated[
    str | None, typer.Option("--build-id", help="Commit hash or CI id (default: local<epoch seconds>)")
]
DirectoryOpt = Annotated[Path | None, typer.Option("--directory", "-d", help="Build root directory")]
PresetOpt = Annotated[str | None, typer.Option("--preset", "-p", help="debug, release or development")]
AddressablesOpt = Annotated[
    bool | None, typer.Option("--addressables/--no-addressables", help="Build Addressables content first")
]
DevelopmentOpt = Annotated[bool | None, typer.Option("--development/--no-development", help="Development build")]
SaveReportOpt = Annotated[bool | None, typer.Option("--save-report/--no-save-report", help="Write BuildReport.json")]
DebugModeOpt = Annotated[bool | None, typer.Option("--debug-mode/--release-mode", help="Toggle the DEBUG_MODE define")]
SymbolsOpt = Annotated[str | None, typer.Option("--symbols", help="Android symbols: Disabled, Public, Debugging")]
AabOpt = Annotated[bool | None, typer.Option("--aab/--apk", help="Android: build a signed app bundle")]


def _resolve_parameters(
    target: BuildTarget,
    version: str,
    suffix: str,
    build_id: str,
    directory: Path,
    preset: Preset | None,
    addressables: bool | None,
    development: bool | None,
    save_report: bool | None,
    debug_mode: bool | None,
    symbols: str | None,
    aab: bool | None,
) -> BuildParameters:
    """Defaults, then the preset, then explicitly given options."""
    parameters = BuildParameters(
        build_target=target,
        build_version=version,
        build_suffix=suffix,
        build_identifier=build_id,
        build_directory=directory,
        generate_addressables=True,
        is_development_build=False,
        save_build_report=True,
        debug_mode=True,
        platform_settings=settings_for_target(target),
    )
    if preset is not None:
        parameters = apply_preset(parameters, preset)

    overrides: dict[str, Any] = {
        key: value
        for key, value in (
            ("generate_addressables", addressables),
            ("is_development_build", development),
            ("save_build_report", save_report),
            ("debug_mode", debug_mode),
        )
        if value is not None
    }

    settings = parameters.platform_settings
    if isinstance(settings, AndroidSettings) and (symbols is not None or aab is not None):
        android: dict[str, Any] = {}
        if symbols is not None:
            try:
                android["android_symbols"] = AndroidCreateSymbols.parse(symbols)
            except ValueError as e:
                raise typer.BadParameter(str(e), param_hint="--symbols") from e
        if aab is not None:
            android["generate_aab"] = aab
        overrides["platform_settings"] = settings.model_copy(update=android)

    return parameters.model_copy(update=overrides) if overrides else parameters


def _parameters_view(parameters: BuildParameters, product_name: str) -> dict[str, Any]:
    directory, file_name = parameters.get_build_paths(product_name)
    view: dict[str, Any] = {
        "product_name": product_name,
        "target": parameters.build_target.value,
        "version": parameters.build_version,
        "suffix": parameters.build_suffix,
        "identifier": parameters.build_identifier,
        "development": parameters.is_development_build,
        "debug_mode": parameters.debug_mode,
        "addressables": parameters.generate_addressables,
        "save_report": parameters.save_build_report,
        "directory": str(directory),
        "file_name": file_name,
    }
    settings = parameters.platform_settings
    if isinstance(settings, AndroidSettings):
        view["android_symbols"] = settings.android_symbols.value
        view["app_bundle"] = settings.generate_aab
        view["version_code"] = derive_version_code(parameters.build_version)
    return view


def _outcome_view(outcome: BuildOutcome) -> dict[str, Any]:
    return {
        "result": outcome.report.summary.result.value,
        "location_path": str(outcome.location_path),
        "directory": str(outcome.directory),
        "symbols": outcome.symbols,
        "summary": outcome.report.summary.model_dump(mode="json", by_alias=True),
    }


def _print_outcome(context: CLIContext, outcome: BuildOutcome) -> None:
    if context.json_mode:
        print_json(_outcome_view(outcome))
        return

    print_build_summary(outcome.report.summary.model_dump(mode="json", by_alias=True))
    if outcome.succeeded:
        print_success(f"Built {outcome.location_path}")
    else:
        print_error(f"Build {outcome.report.summary.result.value}", "BUILD_FAILED")


def _parse_target_or_exit(target: str) -> BuildTarget:
    try:
        return parse_build_target(target)
    except UnityBuilderError as e:
        names = ", ".join(t.value for t in BuildTarget)
        print_error(f"{e.message} (expected one of: {names})", e.code)
        raise typer.Exit(1) from None


def _parse_preset_or_exit(preset: str | None) -> Preset | None:
    if preset is None:
        return None
    try:
        return Preset.parse(preset)
    except UnityBuilderError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None


# =============================================================================
# Basic Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show CLI version."""
    try:
        ver = pkg_version("unity-builder")
    except PackageNotFoundError:
        ver = "unknown"
    console.print(f"unity-builder {ver}")


@app.command()
def instances(ctx: typer.Context) -> None:
    """List connected Unity instances."""
    context: CLIContext = ctx.obj
    try:
        result = context.client.list_instances()
    except UnityBuilderError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None

    if context.json_mode:
        print_json(result)
    else:
        print_instances_table(result)


# =============================================================================
# Build Commands
# =============================================================================


@app.command()
def build(
    ctx: typer.Context,
    target: TargetOpt = BuildTarget.ANDROID.value,
    build_version: VersionOpt = None,
    suffix: SuffixOpt = "",
    build_id: BuildIdOpt = None,
    directory: DirectoryOpt = None,
    preset: PresetOpt = None,
    addressables: AddressablesOpt = None,
    development: DevelopmentOpt = None,
    save_report: SaveReportOpt = None,
    debug_mode: DebugModeOpt = None,
    symbols: SymbolsOpt = None,
    aab: AabOpt = None,
    interactive: Annotated[
        bool,
        typer.Option("--interactive", "-I", help="Prompt for target, version and preset"),
    ] = False,
    reveal: Annotated[
        bool,
        typer.Option("--reveal", help="Open the output folder when the build succeeds"),
    ] = False,
) -> None:
    """Configure the editor and build the player.

    Defaults: addressables on, debug mode on, report saved, identifier
    local<epoch seconds>. A preset is applied before explicit options.
    """
    from unity_builder.cli.interactive import prompt_build_target, prompt_confirm, prompt_preset, prompt_version

    context: CLIContext = ctx.obj
    build_target = _parse_target_or_exit(target)
    chosen_preset = _parse_preset_or_exit(preset)

    try:
        if interactive:
            build_target = prompt_build_target(build_target)

        resolved_version = build_version or context.client.player_settings.bundle_version()
        if interactive:
            resolved_version = prompt_version(resolved_version)
            chosen_preset = prompt_preset() or chosen_preset

        parameters = _resolve_parameters(
            build_target,
            resolved_version,
            suffix,
            build_id or local_build_identifier(),
            directory or context.config.build_directory,
            chosen_preset,
            addressables,
            development,
            save_report,
            debug_mode,
            symbols,
            aab,
        )

        if interactive and not prompt_confirm("Generate build?", default=True):
            print_warning("Build cancelled")
            raise typer.Exit(0)

        outcome = Builder(context.client, context.config).generate_build(parameters)
    except UnityBuilderError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None

    _print_outcome(context, outcome)
    if not outcome.succeeded:
        raise typer.Exit(1)

    if reveal or (interactive and prompt_confirm("Open build folder?", default=False)):
        typer.launch(str(outcome.location_path), locate=True)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def batch(ctx: typer.Context) -> None:
    """Build from Unity-style flags.

    Flags: -buildTarget -buildVersion -buildSuffix -commitHash -buildId
    -generateAddressables -developmentBuild -debugMode -saveBuildReport
    -buildDirectory -symbols -generateAab

    Example:
        unity-builder batch -buildTarget=Android -buildVersion=1.2 -commitHash=abc123
    """
    context: CLIContext = ctx.obj
    command_line = " ".join(ctx.args) if ctx.args else None

    try:
        outcome = build_batch_mode(context.client, context.config, command_line)
    except UnityBuilderError as e:
        print_error(e.message, e.code)
        raise typer.Exit(1) from None

    # An unparseable target is logged by build_batch_mode; nothing was built.
    if outcome is None:
        return

    _print_outcome(context, outcome)


@app.command()
def plan(
    ctx: typer.Context,
    target: TargetOpt = BuildTarget.ANDROID.value,
    build_version: VersionOpt = None,
    suffix: SuffixOpt = "",
    build_id: BuildIdOpt = None,
    directory: DirectoryOpt = None,
    preset: PresetOpt = None,
    addressables: AddressablesOpt = None,
    development: DevelopmentOpt = None,
    save_report: SaveReportOpt = None,
    debug_mode: DebugModeOpt = None,
    symbols: SymbolsOpt = None,
    aab: AabOpt = None,
    product_name: Annotated[
        str | None,
        typer.Option("--product-name", help="Product name (default: from ProjectSettings.asset)"),
    ] = None,
    project: Annotated[
        Path | None,
        typer.Option("--project", help="Unity project path (default: enclosing project of the cwd)"),
    ] = None,
) -> None:
    """Preview build name, paths, version code and define symbols. No editor needed."""
    context: CLIContext = ctx.obj
    build_target = _parse_target_or_exit(target)
    chosen_preset = _parse_preset_or_exit(preset)

    info: ProjectInfo | None = None
    root = find_project_root(project or Path.cwd())
    if root is not None:
        try:
            info = ProjectInfo.from_path(root)
        except ProjectError as e:
            print_warning(f"Ignoring project settings: {e.message}")

    name = product_name or (info.settings.product_name if info else None)
    if not name:
        print_error("Product name unknown: pass --product-name or run inside a Unity project", "NO_PRODUCT_NAME")
        raise typer.Exit(1)

    parameters = _resolve_parameters(
        build_target,
        build_version or (info.settings.version if info else ""),
        suffix,
        build_id or local_build_identifier(),
        directory or context.config.build_directory,
        chosen_preset,
        addressables,
        development,
        save_report,
        debug_mode,
        symbols,
        aab,
    )

    view = _parameters_view(parameters, name)
    current_symbols = info.settings.defines_for(build_target.group) if info else []
    view["symbols"] = toggle_debug_symbol(current_symbols, parameters.debug_mode)
    if info is not None:
        view["scenes"] = info.build_settings.enabled_paths

    if context.json_mode:
        print_json(view)
    else:
        print_key_value(view, title="Build Plan")


# =============================================================================
# Config Commands
# =============================================================================

config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show current configuration (passwords redacted)."""
    context: CLIContext = ctx.obj
    config_file = BuilderConfig._find_config_file()
    config = context.config

    data = {
        "config_file": str(config_file) if config_file else None,
        "relay_host": config.relay_host,
        "relay_port": config.relay_port,
        "timeout": config.timeout,
        "build_timeout_ms": config.build_timeout_ms,
        "instance": config.instance,
        "build_directory": str(config.build_directory),
        "signing": config.signing.redacted(),
    }

    if context.json_mode:
        print_json(data)
    else:
        signing = data.pop("signing")
        print_key_value(data, title="Unity Builder Configuration")
        print_key_value(signing, title="Signing")


@config_app.command("init")
def config_init(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output path"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Generate default .unity-builder.toml configuration file."""
    output_path = output or Path(CONFIG_FILE_NAME)

    if output_path.exists() and not force:
        print_error(f"{output_path} already exists. Use --force to overwrite.")
        raise typer.Exit(1) from None

    output_path.write_text(BuilderConfig().to_toml(), encoding="utf-8")
    print_success(f"Created {output_path}")


def cli_main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli_main()
