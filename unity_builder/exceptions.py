"""Unity Builder exceptions."""

from __future__ import annotations


class UnityBuilderError(Exception):
    """Unity Builder operation error"""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


# =============================================================================
# Relay Errors
# =============================================================================


class ConnectionError(UnityBuilderError):
    """Connection to relay server failed"""

    pass


class ProtocolError(UnityBuilderError):
    """Protocol error"""

    pass


class InstanceError(UnityBuilderError):
    """Instance-related error"""

    pass


class TimeoutError(UnityBuilderError):
    """Command timeout"""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(UnityBuilderError):
    """Configuration file could not be read"""

    pass


class BuildTargetError(UnityBuilderError):
    """Build target could not be parsed"""

    pass


class PresetError(UnityBuilderError):
    """Unknown build preset"""

    pass


class SigningError(UnityBuilderError):
    """Signed build requested without complete credentials"""

    pass


class ProjectError(UnityBuilderError):
    """Unity project path or settings invalid"""

    pass
