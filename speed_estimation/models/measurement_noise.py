"""
Measurement noise models for ground speed fixes.

Provides the variance used by the speed filter for each fix, derived from the
receiver's reported horizontal accuracy and from the age of the previous
fix, and an accuracy-weighted smoother for raw fix speed.

Variance model:
    r = (accuracy / k)^2 * min(elapsed_s, max_time_factor)
with k = 3 (accuracy treated as a 3-sigma radius) and a time factor of 1.0
for the first fix.
"""

import math

from ..config import NoiseConfig


def gps_speed_variance(accuracy_m, elapsed_ms=None, config=None):
    """
    Measurement variance for a speed fix.

    Parameters
    ----------
    accuracy_m : float
        Reported horizontal accuracy [m], must be > 0
    elapsed_ms : float, optional
        Time since the previous accepted fix [ms]. None for the first fix.
    config : NoiseConfig, optional
        Scaling constants (default: ``NoiseConfig()``)

    Returns
    -------
    float or None
        Variance [m²/s²], or None when the accuracy is not usable.

    Examples
    --------
    >>> gps_speed_variance(3.0)
    1.0
    >>> gps_speed_variance(3.0, elapsed_ms=2000)
    2.0
    >>> gps_speed_variance(3.0, elapsed_ms=60000)
    5.0
    """
    config = config or NoiseConfig()

    if accuracy_m is None or not (accuracy_m > 0 and math.isfinite(accuracy_m)):
        return None

    if elapsed_ms is None:
        time_factor = 1.0
    else:
        time_factor = min(max(elapsed_ms, 0.0) / 1000.0, config.max_time_factor)

    r = (accuracy_m / config.accuracy_sigma) ** 2 * time_factor

    # Back-to-back fixes would give r = 0
    return r if r > 0 else None


def accuracy_smoothing_alpha(accuracy_m):
    """
    Weight of a new fix in the exponential speed smoother.

    Very accurate fixes are trusted almost entirely, poor ones only lightly.

    Parameters
    ----------
    accuracy_m : float
        Reported horizontal accuracy [m]

    Returns
    -------
    float
        Smoothing factor alpha in (0, 1)
    """
    if accuracy_m <= 3:
        return 0.9
    elif accuracy_m <= 8:
        return 0.8
    elif accuracy_m <= 20:
        return 0.6
    elif accuracy_m <= 50:
        return 0.4
    return 0.2


class GpsSpeedSmoother:
    """
    Accuracy-weighted exponential smoothing of raw fix speed.

    A GPS-only reference signal, reported next to the fused estimate:
        v = alpha * v_fix + (1 - alpha) * v_prev

    Attributes
    ----------
    speed_ms : float
        Current smoothed speed [m/s]
    """

    def __init__(self):
        self.speed_ms = 0.0

    def update(self, speed_ms, accuracy_m):
        """Blend a new fix in and return the smoothed speed [m/s]."""
        alpha = accuracy_smoothing_alpha(accuracy_m)
        self.speed_ms = alpha * max(speed_ms, 0.0) + (1 - alpha) * self.speed_ms
        return self.speed_ms

    def reset(self):
        self.speed_ms = 0.0
