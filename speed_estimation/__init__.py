"""
Speed Estimation Library

Fuses high-rate inertial forward acceleration with low-rate ground speed
fixes into a smooth, low-latency speed estimate for speed-limit alerting.
Implements a two-state (speed, accelerometer bias) Kalman filter, a sensor
preprocessor and a zero-velocity (ZUPT) stationary detector.

License: MIT
"""

__version__ = "1.0.0"

from .config import SpeedEstimationConfig, load_config
from .filters.speed_kf import SpeedKalmanFilter
from .preprocessing.sensor_processor import SensorPreprocessor
from .detection.zupt import StationaryDetector
from .fusion import SpeedFusionEngine, EstimateRecord
from .types import AccelerationSample, OrientationSample, VelocityFix

__all__ = [
    'SpeedEstimationConfig',
    'load_config',
    'SpeedKalmanFilter',
    'SensorPreprocessor',
    'StationaryDetector',
    'SpeedFusionEngine',
    'EstimateRecord',
    'AccelerationSample',
    'OrientationSample',
    'VelocityFix',
]
