"""Command line argument resolution for batch-mode builds.

Custom arguments MUST start with ``COMMAND_DELIMITER`` to be read, e.g.::

    Unity -batchmode -executeMethod ... -buildTarget=Android -buildVersion=1.2
"""

from __future__ import annotations

import sys

COMMAND_DELIMITER = "-"

BUILD_TARGET = "buildTarget"
BUILD_VERSION = "buildVersion"  # Version shown on device
BUILD_SUFFIX = "buildSuffix"  # Differentiator appended to the build name
BUILD_COMMIT_HASH = "commitHash"  # Commit the build was created from
BUILD_ID = "buildId"  # CI job number, used when no commit hash is given
BUILD_DIRECTORY = "buildDirectory"
GENERATE_ADDRESSABLES = "generateAddressables"
DEVELOPMENT_BUILD = "developmentBuild"
DEBUG_MODE = "debugMode"
SAVE_BUILD_REPORT = "saveBuildReport"
ANDROID_SYMBOLS = "symbols"
GENERATE_AAB = "generateAab"


def current_command_line() -> str:
    return " ".join(sys.argv)


def parse_bool(value: str) -> bool:
    """Permissive bool parse: only 'true' (any case) is True."""
    return value.strip().lower() == "true"


class CommandLineArguments:
    """Case-insensitive view over ``-name=value`` flags."""

    def __init__(self, command_line: str | None = None) -> None:
        self._arguments = self._parse(current_command_line() if command_line is None else command_line)

    @staticmethod
    def _parse(command_line: str) -> dict[str, str]:
        arguments: dict[str, str] = {}
        for token in command_line.split(" "):
            if not token.startswith(COMMAND_DELIMITER):
                continue
            parts = token.lstrip(COMMAND_DELIMITER).split("=")
            arguments[parts[0].lower()] = parts[1] if len(parts) > 1 else ""
        return arguments

    def get(self, key: str) -> str:
        return self._arguments.get(key.lower(), "")

    def get_bool(self, key: str) -> bool:
        return parse_bool(self.get(key))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._arguments

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self._arguments.items())


def extract_command_argument(argument_name: str, command_line: str | None = None) -> str:
    """Return the value of a single ``-name=value`` flag, or ''.

    Unlike CommandLineArguments the lookup is case-sensitive and works on the
    raw string, so values containing '=' are returned whole.
    """
    if not command_line:
        command_line = current_command_line()

    prefix = f"{COMMAND_DELIMITER}{argument_name}="
    start = command_line.find(prefix)
    if start < 0:
        return ""

    start += len(prefix)
    end = command_line.find(" ", start)
    return command_line[start:end] if end >= 0 else command_line[start:]


def check_command_argument(argument_name: str, command_line: str | None = None) -> bool:
    return parse_bool(extract_command_argument(argument_name, command_line))
