"""Per-chunk physics/component cost analysis and marker overlays."""

__version__ = "0.1.0"
