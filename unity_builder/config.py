"""
Unity Builder Configuration
============================

Protocol constants and the TOML-backed configuration object.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from unity_builder.exceptions import ConfigError

# =============================================================================
# Protocol Constants
# =============================================================================

DEFAULT_RELAY_HOST = "127.0.0.1"
DEFAULT_RELAY_PORT = 6500
HEADER_SIZE = 4
MAX_PAYLOAD_BYTES = 16 * 1024 * 1024  # 16 MiB
DEFAULT_TIMEOUT_MS = 30000
BUILD_TIMEOUT_MS = 3_600_000  # player builds routinely take tens of minutes
CONFIG_FILE_NAME = ".unity-builder.toml"


def default_build_directory() -> Path:
    return Path.home() / "Desktop" / "Builds"


# =============================================================================
# Signing
# =============================================================================


@dataclass
class SigningConfig:
    """Android keystore credentials.

    Values come from the ``[signing]`` table of the config file and are
    overridden by ``UNITY_KEYSTORE_PATH``, ``UNITY_KEYSTORE_PASS``,
    ``UNITY_KEYALIAS_NAME`` and ``UNITY_KEYALIAS_PASS``. Empty variables are
    ignored.
    """

    keystore_path: str | None = None
    keystore_pass: str | None = None
    keyalias_name: str | None = None
    keyalias_pass: str | None = None

    @property
    def is_complete(self) -> bool:
        return all((self.keystore_path, self.keystore_pass, self.keyalias_name, self.keyalias_pass))

    def with_env(self, environ: dict[str, str] | None = None) -> SigningConfig:
        env = os.environ if environ is None else environ
        return SigningConfig(
            keystore_path=env.get("UNITY_KEYSTORE_PATH") or self.keystore_path,
            keystore_pass=env.get("UNITY_KEYSTORE_PASS") or self.keystore_pass,
            keyalias_name=env.get("UNITY_KEYALIAS_NAME") or self.keyalias_name,
            keyalias_pass=env.get("UNITY_KEYALIAS_PASS") or self.keyalias_pass,
        )

    def redacted(self) -> dict[str, Any]:
        return {
            "keystore_path": self.keystore_path,
            "keystore_pass": "***" if self.keystore_pass else None,
            "keyalias_name": self.keyalias_name,
            "keyalias_pass": "***" if self.keyalias_pass else None,
        }


# =============================================================================
# Builder Configuration
# =============================================================================


@dataclass
class BuilderConfig:
    """Configuration for Unity Builder"""

    relay_host: str = DEFAULT_RELAY_HOST
    relay_port: int = DEFAULT_RELAY_PORT
    timeout: float = 5.0
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    build_timeout_ms: int = BUILD_TIMEOUT_MS
    instance: str | None = None
    build_directory: Path = field(default_factory=default_build_directory)
    # Retry settings
    retry_initial_ms: int = 500
    retry_max_ms: int = 8000
    retry_max_time_ms: int = 30000
    signing: SigningConfig = field(default_factory=SigningConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> BuilderConfig:
        """Load configuration from TOML file."""
        config = cls()

        toml_path = config_path if config_path and config_path.exists() else cls._find_config_file()

        if toml_path:
            try:
                with open(toml_path, "rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid config file {toml_path}: {e}", "CONFIG_INVALID") from e
            config = cls._from_dict(data)

        config.signing = config.signing.with_env()
        return config

    @classmethod
    def _find_config_file(cls) -> Path | None:
        """Find config file in current directory or Unity project root"""
        cwd = Path.cwd()

        config_in_cwd = cwd / CONFIG_FILE_NAME
        if config_in_cwd.exists():
            return config_in_cwd

        for parent in [cwd, *list(cwd.parents)]:
            if (parent / "Assets").is_dir() and (parent / "ProjectSettings").is_dir():
                config_in_project = parent / CONFIG_FILE_NAME
                if config_in_project.exists():
                    return config_in_project
                break

        return None

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> BuilderConfig:
        """Create config from dictionary (TOML data)"""
        signing = data.get("signing", {})
        build_directory = data.get("build_directory")
        return cls(
            relay_host=data.get("relay_host", DEFAULT_RELAY_HOST),
            relay_port=data.get("relay_port", DEFAULT_RELAY_PORT),
            timeout=float(data.get("timeout", 5.0)),
            timeout_ms=data.get("timeout_ms", DEFAULT_TIMEOUT_MS),
            build_timeout_ms=data.get("build_timeout_ms", BUILD_TIMEOUT_MS),
            instance=data.get("instance"),
            build_directory=Path(build_directory).expanduser() if build_directory else default_build_directory(),
            retry_initial_ms=data.get("retry_initial_ms", 500),
            retry_max_ms=data.get("retry_max_ms", 8000),
            retry_max_time_ms=data.get("retry_max_time_ms", 30000),
            signing=SigningConfig(
                keystore_path=signing.get("keystore_path"),
                keystore_pass=signing.get("keystore_pass"),
                keyalias_name=signing.get("keyalias_name"),
                keyalias_pass=signing.get("keyalias_pass"),
            ),
        )

    def to_toml(self) -> str:
        """Generate TOML string from config.

        Passwords are never written; supply them through the environment.
        """
        instance_line = f'instance = "{self.instance}"' if self.instance else '# instance = "/path/to/project"'
        keystore_str = f'"{self.signing.keystore_path}"' if self.signing.keystore_path else '""'
        alias_str = f'"{self.signing.keyalias_name}"' if self.signing.keyalias_name else '""'
        return f'''# Unity Builder Configuration

relay_host = "{self.relay_host}"
relay_port = {self.relay_port}
timeout = {self.timeout}
timeout_ms = {self.timeout_ms}
build_timeout_ms = {self.build_timeout_ms}
{instance_line}
build_directory = "{self.build_directory.as_posix()}"

# Retry settings (exponential backoff)
retry_initial_ms = {self.retry_initial_ms}
retry_max_ms = {self.retry_max_ms}
retry_max_time_ms = {self.retry_max_time_ms}

# Android signing. Set UNITY_KEYSTORE_PASS / UNITY_KEYALIAS_PASS in the environment.
[signing]
keystore_path = {keystore_str}
keyalias_name = {alias_str}
'''
