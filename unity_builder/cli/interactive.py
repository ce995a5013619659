"""Interactive prompts using InquirerPy."""

from __future__ import annotations

import sys

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from unity_builder.parameters import BuildTarget
from unity_builder.presets import Preset


def is_tty() -> bool:
    """Check if running in an interactive TTY."""
    return sys.stdin.isatty() and sys.stdout.isatty()


def prompt_build_target(default: BuildTarget) -> BuildTarget:
    """Ask for the build target. Returns ``default`` outside a TTY."""
    if not is_tty():
        return default

    selected: BuildTarget = inquirer.select(
        message="Build Target:",
        choices=[Choice(value=t, name=t.value) for t in BuildTarget],
        default=default,
    ).execute()
    return selected


def prompt_preset() -> Preset | None:
    """Ask for a preset; None keeps the current values."""
    if not is_tty():
        return None

    choices: list[Choice] = [Choice(value=None, name="Custom (no preset)")]
    choices.extend(Choice(value=p, name=p.value.capitalize()) for p in Preset)

    selected: Preset | None = inquirer.select(message="Preset:", choices=choices, default=None).execute()
    return selected


def prompt_version(default: str) -> str:
    if not is_tty():
        return default

    version: str = inquirer.text(message="Build Version:", default=default).execute()
    return version.strip() or default


def prompt_confirm(message: str, default: bool = False) -> bool:
    """Prompt user for yes/no confirmation. Returns ``default`` outside a TTY."""
    if not is_tty():
        return default

    result: bool = inquirer.confirm(message=message, default=default).execute()
    return result
