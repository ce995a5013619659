"""Build API for Unity Builder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from unity_builder.config import BUILD_TIMEOUT_MS

if TYPE_CHECKING:
    from unity_builder.client import RelayConnection
    from unity_builder.parameters import BuildPlayerOptions


class BuildAPI:
    """Build pipeline operations via Relay Server."""

    def __init__(self, conn: RelayConnection) -> None:
        self._conn = conn

    def settings(self) -> dict[str, Any]:
        """Get current build settings (active target, development flag, ...)."""
        return self._conn.send_request("build", {"action": "settings"})

    def scenes(self) -> list[dict[str, Any]]:
        """Get the Build Settings scene list as ``[{"path": ..., "enabled": ...}]``."""
        data = self._conn.send_request("build", {"action": "scenes"})
        scenes: list[dict[str, Any]] = data.get("scenes", [])
        return scenes

    def enabled_scene_paths(self) -> list[str]:
        """Paths of the enabled Build Settings scenes, in build order.

        Entries without an ``enabled`` flag count as enabled.
        """
        return [s["path"] for s in self.scenes() if s.get("enabled", True)]

    def build_player(self, options: BuildPlayerOptions, timeout_ms: int = BUILD_TIMEOUT_MS) -> dict[str, Any]:
        """Run BuildPipeline.BuildPlayer and return the serialized BuildReport.

        The request is sent exactly once. A TIMEOUT or INSTANCE_BUSY answer
        may come from a build that is still running, so it is raised instead
        of being retried.

        Args:
            options: Scenes, output path, target and build options.
            timeout_ms: How long the engine may spend on the build.

        Returns:
            BuildReport dictionary with ``summary`` and ``steps``.

        Raises:
            TimeoutError: If the build did not finish within timeout_ms.
            InstanceError: If the Unity instance is busy or reloading.
        """
        params: dict[str, Any] = {"action": "build", **options.to_params()}
        return self._conn.send_request(
            "build",
            params,
            timeout_ms=timeout_ms,
            retry_max_time_ms=0,
        )
