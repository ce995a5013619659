"""Unity Builder API Classes.

Re-exports all API classes for convenient imports:
    from unity_builder.api import BuildAPI, PlayerSettingsAPI, ...
"""

from unity_builder.api.addressables import AddressablesAPI
from unity_builder.api.build import BuildAPI
from unity_builder.api.player_settings import PlayerSettingsAPI

__all__ = [
    "AddressablesAPI",
    "BuildAPI",
    "PlayerSettingsAPI",
]
