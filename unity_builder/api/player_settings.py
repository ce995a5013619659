"""PlayerSettings API for Unity Builder.

Every setter mutates editor-global state (PlayerSettings and
EditorUserBuildSettings); the builder treats it as owned for the duration
of one build.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from unity_builder.client import RelayConnection


class PlayerSettingsAPI:
    """PlayerSettings operations via Relay Server."""

    def __init__(self, conn: RelayConnection) -> None:
        self._conn = conn

    def get(self) -> dict[str, Any]:
        """Get productName, companyName, bundleVersion and Android info."""
        return self._conn.send_request("player_settings", {"action": "get"})

    def product_name(self) -> str:
        """PlayerSettings.productName, empty when unset."""
        return str(self.get().get("productName", ""))

    def bundle_version(self) -> str:
        """PlayerSettings.bundleVersion, empty when unset."""
        return str(self.get().get("bundleVersion", ""))

    def set_bundle_version(self, version: str) -> dict[str, Any]:
        """Set PlayerSettings.bundleVersion.

        Args:
            version: Version string (e.g., '1.2')
        """
        return self._conn.send_request("player_settings", {"action": "set_bundle_version", "version": version})

    def get_defines(self, group: str) -> list[str]:
        """Get the scripting define symbols of a build target group.

        Args:
            group: NamedBuildTarget name (e.g., 'Android', 'iOS', 'Standalone')

        Returns:
            Symbols in the order the editor reports them.
        """
        data = self._conn.send_request("player_settings", {"action": "get_defines", "group": group})
        symbols: list[str] = data.get("symbols", [])
        return symbols

    def set_defines(self, group: str, symbols: list[str]) -> dict[str, Any]:
        """Replace the whole define symbol set of a group.

        Args:
            group: NamedBuildTarget name
            symbols: Complete symbol list; symbols not listed are removed
        """
        return self._conn.send_request(
            "player_settings",
            {"action": "set_defines", "group": group, "symbols": symbols},
        )

    def set_android(
        self,
        bundle_version_code: int,
        use_custom_keystore: bool,
        keystore_name: str | None = None,
        keystore_pass: str | None = None,
        keyalias_name: str | None = None,
        keyalias_pass: str | None = None,
    ) -> dict[str, Any]:
        """Apply PlayerSettings.Android values.

        Args:
            bundle_version_code: PlayerSettings.Android.bundleVersionCode
            use_custom_keystore: Sign with the given keystore instead of the debug one
            keystore_name: Keystore file path (sent only when given)
            keystore_pass: Keystore password (sent only when given)
            keyalias_name: Key alias (sent only when given)
            keyalias_pass: Key alias password (sent only when given)
        """
        params: dict[str, Any] = {
            "action": "set_android",
            "bundleVersionCode": bundle_version_code,
            "useCustomKeystore": use_custom_keystore,
        }
        if keystore_name is not None:
            params["keystoreName"] = keystore_name
        if keystore_pass is not None:
            params["keystorePass"] = keystore_pass
        if keyalias_name is not None:
            params["keyaliasName"] = keyalias_name
        if keyalias_pass is not None:
            params["keyaliasPass"] = keyalias_pass
        return self._conn.send_request("player_settings", params)

    def set_editor_build(
        self,
        android_create_symbols: str | None = None,
        build_app_bundle: bool | None = None,
    ) -> dict[str, Any]:
        """Apply EditorUserBuildSettings values. Omitted values are left untouched.

        Args:
            android_create_symbols: 'Disabled', 'Public' or 'Debugging'
            build_app_bundle: Build an .aab instead of an .apk
        """
        params: dict[str, Any] = {"action": "set_editor_build"}
        if android_create_symbols is not None:
            params["androidCreateSymbols"] = android_create_symbols
        if build_app_bundle is not None:
            params["buildAppBundle"] = build_app_bundle
        return self._conn.send_request("player_settings", params)
