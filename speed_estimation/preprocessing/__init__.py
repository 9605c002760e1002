"""
Inertial sample preprocessing.
"""

from .sensor_processor import SensorPreprocessor

__all__ = [
    'SensorPreprocessor',
]
