"""Scripting define symbol toggling."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from unity_builder.client import UnityClient
    from unity_builder.parameters import BuildTarget

logger = logging.getLogger(__name__)

DEBUG_MODE_SYMBOL = "DEBUG_MODE"


def toggle_symbol(symbols: Iterable[str], symbol: str, enabled: bool) -> list[str]:
    """Return the full symbol set with ``symbol`` present iff ``enabled``.

    Duplicates and empty entries are dropped; the order of the remaining
    symbols is kept.
    """
    result = [s for s in dict.fromkeys(symbols) if s and s != symbol]
    if enabled:
        result.append(symbol)
    return result


def toggle_debug_symbol(symbols: Iterable[str], debug_mode: bool) -> list[str]:
    return toggle_symbol(symbols, DEBUG_MODE_SYMBOL, debug_mode)


def apply_debug_symbol(client: UnityClient, target: BuildTarget, debug_mode: bool) -> list[str]:
    """Read the target group's defines, toggle DEBUG_MODE and write the whole set back."""
    current = client.player_settings.get_defines(target.group)
    symbols = toggle_debug_symbol(current, debug_mode)
    logger.info(f"Defined Symbols: {','.join(symbols)}")
    client.player_settings.set_defines(target.group, symbols)
    return symbols
