from __future__ import annotations


class ChunkMarkerError(RuntimeError):
    """Base class for failures raised by chunk_marker."""


class ConfigError(ChunkMarkerError):
    """Raised when a configuration file cannot be used."""


class HostError(ChunkMarkerError):
    """Raised when a call into the host process fails."""


class SaveDecodeError(ChunkMarkerError):
    """Raised when save data cannot be decoded into world objects."""


class NoPositionError(ChunkMarkerError):
    """Raised when a player has no live position in the world."""
