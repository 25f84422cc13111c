from __future__ import annotations


class DiffDriveError(Exception):
    pass


class ConfigError(DiffDriveError, ValueError):
    """Bad geometry or configuration, raised at construction time."""


class OdometryError(DiffDriveError, RuntimeError):
    pass


class NotInitializedError(OdometryError):
    """update/reset-dependent call made before initialize()."""
