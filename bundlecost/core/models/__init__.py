"""Data models for bundlecost."""

from .entities import Camera, PosePrior, PosePriorCoordinateSystem

__all__ = [
    "Camera",
    "PosePrior",
    "PosePriorCoordinateSystem",
]
