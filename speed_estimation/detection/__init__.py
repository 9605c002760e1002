"""
Stationary-motion detection for zero-velocity updates.
"""

from .zupt import StationaryDetector

__all__ = [
    'StationaryDetector',
]
