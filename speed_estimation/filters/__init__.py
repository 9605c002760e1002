"""
Speed estimation filters.

This module provides the two-state (speed, accelerometer bias) Kalman filter
used to fuse forward acceleration with ground speed fixes.
"""

from .speed_kf import SpeedKalmanFilter, KMH_PER_MS

__all__ = [
    'SpeedKalmanFilter',
    'KMH_PER_MS',
]
