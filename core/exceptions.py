"""Custom exception hierarchy for the directory player.

This module provides a structured exception hierarchy for consistent
error handling across the application.
"""

from pathlib import Path
from typing import Optional


class MusicPlayerError(Exception):
    """Base exception for all player errors."""

    pass


class ConfigurationError(MusicPlayerError):
    """Errors related to configuration."""

    pass


class CatalogError(MusicPlayerError):
    """The catalog root directory cannot be read. Fatal at startup."""

    def __init__(self, root: Path, cause: Optional[BaseException] = None):
        self.root = root
        self.cause = cause
        message = f"Cannot read music directory {root}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class DiscoveryWarning(MusicPlayerError):
    """A subtree could not be read during discovery and was skipped."""

    def __init__(self, path: Path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Skipped {path}: {cause}")


class PlayerError(MusicPlayerError):
    """Errors related to the audio output."""

    pass


class DeviceInitError(PlayerError):
    """No usable audio output is available. Fatal at startup."""

    pass


class PlaybackError(MusicPlayerError):
    """Errors raised by the playback session."""

    pass


class LoadFailed(PlaybackError):
    """A track could not be opened, decoded or started."""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"Failed to load track {index}: {cause}")


class UserError(MusicPlayerError):
    """A command was issued that makes no sense in the current state."""

    pass


class NoActiveTrack(UserError):
    """Transport command issued while nothing is loaded."""

    def __init__(self, message: str = "No track is loaded"):
        super().__init__(message)
