"""
Configuration for the speed estimation pipeline.

Every tuning constant of the filter, the sensor preprocessor, the stationary
detector and the speed-limit consumer is defined here as a named module-level
default and grouped into frozen dataclasses that can be overridden per
deployment (from a dict or a JSON file).
"""

import json
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path


# ============================================================================
# DEFAULTS
# ============================================================================
# Kalman filter
PROCESS_NOISE_SPEED = 0.1        # q_v  [m²/s²]
PROCESS_NOISE_BIAS = 1e-5        # q_b  [m²/s⁴], slow bias drift
GPS_SPEED_VARIANCE = 0.25        # r_gps [m²/s²] ~ (0.5 m/s)²
ZUPT_VARIANCE = 1e-3             # zero-velocity pseudo-measurement [m²/s²]
MAX_ACCELERATION = 5.0           # [m/s²]
MAX_SPEED_MS = 50.0              # [m/s] ~ 180 km/h

# Sensor preprocessor
SMOOTHING_WINDOW = 5             # samples
MIN_SPEED_FOR_BEARING = 2.0      # [m/s]
MAX_SAMPLE_INTERVAL = 1.0        # [s]
EMIT_THRESHOLD = 0.1             # [m/s²]
CLAMP_WARN_RATIO = 0.8

# Stationary detector
STATIONARY_WINDOW = 20           # samples
STATIONARY_MIN_SAMPLES = 5
MAX_MEAN_SPEED_FOR_STOP = 0.5    # [m/s]
MAX_PEAK_SPEED_FOR_STOP = 1.0    # [m/s]
MAX_ACCEL_STD_FOR_STOP = 0.5     # [m/s²]
MAX_MEAN_ACCEL_FOR_STOP = 0.3    # [m/s²]
MIN_STOP_DURATION = 2.0          # [s]

# Fix measurement noise
ACCURACY_SIGMA = 3.0             # horizontal accuracy ~ 3 sigma
MAX_TIME_FACTOR = 5.0

# Speed limit consumer
SPEED_LIMIT_KMH = 25.0
ALERT_HYSTERESIS_KMH = 1.0
MIN_ALERT_INTERVAL_S = 4.0
# ============================================================================


def _require_positive(name, value):
    if not value > 0:
        raise ValueError(f"{name} must be positive, got {value!r}")


def _require_non_negative(name, value):
    if not value >= 0:
        raise ValueError(f"{name} must be non-negative, got {value!r}")


@dataclass(frozen=True)
class FilterConfig:
    """Process/measurement noise and physical bounds of the speed filter."""
    q_v: float = PROCESS_NOISE_SPEED
    q_b: float = PROCESS_NOISE_BIAS
    r_gps: float = GPS_SPEED_VARIANCE
    zupt_variance: float = ZUPT_VARIANCE
    max_acceleration: float = MAX_ACCELERATION
    max_speed_ms: float = MAX_SPEED_MS

    def validate(self):
        _require_non_negative('q_v', self.q_v)
        _require_non_negative('q_b', self.q_b)
        _require_positive('r_gps', self.r_gps)
        _require_positive('zupt_variance', self.zupt_variance)
        _require_positive('max_acceleration', self.max_acceleration)
        _require_positive('max_speed_ms', self.max_speed_ms)
        return self


@dataclass(frozen=True)
class PreprocessorConfig:
    """Smoothing, clamping and gating of the forward-acceleration signal."""
    smoothing_window: int = SMOOTHING_WINDOW
    max_acceleration: float = MAX_ACCELERATION
    min_speed_for_bearing: float = MIN_SPEED_FOR_BEARING
    max_dt: float = MAX_SAMPLE_INTERVAL
    emit_threshold: float = EMIT_THRESHOLD
    warn_ratio: float = CLAMP_WARN_RATIO
    # Azimuth of each orientation sample overwrites the bearing
    orientation_updates_bearing: bool = True

    def validate(self):
        if int(self.smoothing_window) != self.smoothing_window or self.smoothing_window < 1:
            raise ValueError(f"smoothing_window must be a positive integer, got {self.smoothing_window!r}")
        _require_positive('max_acceleration', self.max_acceleration)
        _require_non_negative('min_speed_for_bearing', self.min_speed_for_bearing)
        _require_positive('max_dt', self.max_dt)
        _require_non_negative('emit_threshold', self.emit_threshold)
        if not 0 < self.warn_ratio <= 1:
            raise ValueError(f"warn_ratio must be in (0, 1], got {self.warn_ratio!r}")
        return self


@dataclass(frozen=True)
class DetectorConfig:
    """Window sizes and thresholds of the stationary (ZUPT) detector."""
    window_size: int = STATIONARY_WINDOW
    min_samples: int = STATIONARY_MIN_SAMPLES
    max_mean_speed: float = MAX_MEAN_SPEED_FOR_STOP
    max_peak_speed: float = MAX_PEAK_SPEED_FOR_STOP
    max_accel_std: float = MAX_ACCEL_STD_FOR_STOP
    max_mean_accel: float = MAX_MEAN_ACCEL_FOR_STOP
    min_stop_duration: float = MIN_STOP_DURATION

    def validate(self):
        if int(self.window_size) != self.window_size or self.window_size < 1:
            raise ValueError(f"window_size must be a positive integer, got {self.window_size!r}")
        if not 1 <= self.min_samples <= self.window_size:
            raise ValueError(
                f"min_samples must be in [1, window_size={self.window_size}], got {self.min_samples!r}")
        _require_non_negative('max_mean_speed', self.max_mean_speed)
        _require_non_negative('max_peak_speed', self.max_peak_speed)
        _require_non_negative('max_accel_std', self.max_accel_std)
        _require_non_negative('max_mean_accel', self.max_mean_accel)
        _require_non_negative('min_stop_duration', self.min_stop_duration)
        return self


@dataclass(frozen=True)
class NoiseConfig:
    """Mapping from fix accuracy and age to measurement variance."""
    accuracy_sigma: float = ACCURACY_SIGMA
    max_time_factor: float = MAX_TIME_FACTOR

    def validate(self):
        _require_positive('accuracy_sigma', self.accuracy_sigma)
        _require_positive('max_time_factor', self.max_time_factor)
        return self


@dataclass(frozen=True)
class AlertConfig:
    """Speed limit and alert rate limiting."""
    limit_kmh: float = SPEED_LIMIT_KMH
    hysteresis_kmh: float = ALERT_HYSTERESIS_KMH
    min_interval_s: float = MIN_ALERT_INTERVAL_S

    def validate(self):
        _require_non_negative('limit_kmh', self.limit_kmh)
        _require_non_negative('hysteresis_kmh', self.hysteresis_kmh)
        _require_non_negative('min_interval_s', self.min_interval_s)
        return self


_SECTIONS = {
    'filter': FilterConfig,
    'preprocessor': PreprocessorConfig,
    'detector': DetectorConfig,
    'noise': NoiseConfig,
    'alert': AlertConfig,
}


@dataclass(frozen=True)
class SpeedEstimationConfig:
    """
    Complete configuration of the fusion pipeline.

    Examples
    --------
    >>> cfg = SpeedEstimationConfig.from_dict({'filter': {'q_v': 0.05}})
    >>> cfg.filter.q_v
    0.05
    >>> cfg.detector.window_size
    20
    """
    filter: FilterConfig = field(default_factory=FilterConfig)
    preprocessor: PreprocessorConfig = field(default_factory=PreprocessorConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    alert: AlertConfig = field(default_factory=AlertConfig)

    def validate(self):
        for name in _SECTIONS:
            getattr(self, name).validate()
        return self

    @classmethod
    def from_dict(cls, data):
        """
        Build a configuration from a (possibly partial) nested dict.

        Parameters
        ----------
        data : dict
            Mapping of section name to a mapping of overridden values.

        Returns
        -------
        SpeedEstimationConfig
            Validated configuration.

        Raises
        ------
        ValueError
            If a section or a key is unknown, or a value is out of range.
        """
        data = dict(data or {})
        unknown = set(data) - set(_SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration section(s): {sorted(unknown)}")

        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = data.get(name) or {}
            allowed = {f.name for f in fields(section_cls)}
            bad = set(values) - allowed
            if bad:
                raise ValueError(f"Unknown key(s) in '{name}': {sorted(bad)}")
            sections[name] = section_cls(**values)

        return cls(**sections).validate()

    def to_dict(self):
        return asdict(self)


def load_config(path):
    """
    Load a configuration from a JSON file.

    Parameters
    ----------
    path : str or Path
        JSON file with optional sections ``filter``, ``preprocessor``,
        ``detector``, ``noise`` and ``alert``.

    Returns
    -------
    SpeedEstimationConfig
    """
    with open(Path(path), 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be an object, got {type(data).__name__}")
    return SpeedEstimationConfig.from_dict(data)
