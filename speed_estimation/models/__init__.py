"""
Measurement models for speed estimation.

This module provides the noise model that maps fix accuracy and age to the
variance used by the speed filter.
"""

from .measurement_noise import gps_speed_variance, accuracy_smoothing_alpha, GpsSpeedSmoother

__all__ = [
    'gps_speed_variance',
    'accuracy_smoothing_alpha',
    'GpsSpeedSmoother',
]
