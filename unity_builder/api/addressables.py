"""Addressables API for Unity Builder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from unity_builder.client import RelayConnection

# Content builds are slower than settings calls but far quicker than player builds.
ADDRESSABLES_TIMEOUT_MS = 1_800_000


class AddressablesAPI:
    """Addressable asset content builds via Relay Server."""

    def __init__(self, conn: RelayConnection) -> None:
        self._conn = conn

    def clean(self) -> dict[str, Any]:
        """Clean player content of the active data builder."""
        return self._conn.send_request("addressables", {"action": "clean"})

    def build(self, timeout_ms: int = ADDRESSABLES_TIMEOUT_MS) -> dict[str, Any]:
        """Build player content with the active data builder.

        Args:
            timeout_ms: Command timeout, also used as the retry window
        """
        return self._conn.send_request(
            "addressables",
            {"action": "build"},
            timeout_ms=timeout_ms,
            retry_max_time_ms=timeout_ms,
        )
