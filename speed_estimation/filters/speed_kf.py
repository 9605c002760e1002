"""
Two-state Kalman filter for longitudinal speed.

State: x = [v, b]
- v: speed along the direction of travel [m/s]
- b: accelerometer bias [m/s²]

Process model (driven by measured forward acceleration a):
    v_k = v_{k-1} + (a - b_{k-1}) * dt + w_v
    b_k = b_{k-1} + w_b

Measurement model (ground speed fix or zero-velocity pseudo-measurement):
    z = v + n,    H = [1, 0]

The 2x2 algebra is written out explicitly with Python floats. The filter is
updated once per inertial sample, and the explicit form keeps that path free
of array allocations and matrix inversions.
"""

import logging
import math

import numpy as np

from ..config import FilterConfig

logger = logging.getLogger(__name__)


KMH_PER_MS = 3.6


class SpeedKalmanFilter:
    """
    Speed/bias Kalman filter fusing forward acceleration with speed fixes.

    State and covariance are private: they are only changed by ``predict``,
    ``update_with_gps``, ``update_zero_velocity`` and ``reset``. Accessors
    return plain floats or fresh copies.

    Parameters
    ----------
    config : FilterConfig, optional
        Noise parameters and physical bounds. Defaults to ``FilterConfig()``.

    Examples
    --------
    >>> kf = SpeedKalmanFilter()
    >>> kf.predict(1.0, 0.02)
    >>> kf.update_with_gps(0.5, r=0.25)
    >>> round(kf.speed_kmh, 2) >= 0
    True
    """

    def __init__(self, config=None):
        self.config = (config or FilterConfig()).validate()

        self.q_v = self.config.q_v
        self.q_b = self.config.q_b
        self.r_gps = self.config.r_gps

        self._init_state()

    def _init_state(self):
        # State
        self._v = 0.0
        self._b = 0.0

        # Covariance (identity)
        self._p00 = 1.0
        self._p01 = 0.0
        self._p10 = 0.0
        self._p11 = 1.0

        # Last correction, for consistency checks (NIS)
        self._y = 0.0
        self._s = 0.0
        self._k0 = 0.0
        self._k1 = 0.0

        self._prediction_count = 0
        self._update_count = 0

    def predict(self, a_meas, dt):
        """
        Propagate the state with a forward acceleration measurement.

        Parameters
        ----------
        a_meas : float
            Measured forward acceleration [m/s²], clamped to
            [-max_acceleration, max_acceleration].
        dt : float
            Time since the previous prediction [s]. Non-positive values are
            ignored.
        """
        if not (dt > 0 and math.isfinite(dt) and math.isfinite(a_meas)):
            return

        a_max = self.config.max_acceleration
        a = min(max(a_meas, -a_max), a_max)

        # x_k|k-1 = F x + B a
        self._v += (a - self._b) * dt

        # P_k|k-1 = F P F^T + Q,  F = [[1, -dt], [0, 1]]
        p00, p01, p10, p11 = self._p00, self._p01, self._p10, self._p11

        fp00 = p00 - dt * p10
        fp01 = p01 - dt * p11

        self._p00 = fp00 - dt * fp01 + self.q_v
        self._p01 = fp01
        self._p10 = p10 - dt * p11
        self._p11 = p11 + self.q_b

        self._prediction_count += 1

        self._v = min(max(self._v, 0.0), self.config.max_speed_ms)

    def update_with_gps(self, v_gps, r=None):
        """
        Correct the state with a speed measurement.

        Parameters
        ----------
        v_gps : float
            Measured speed [m/s]
        r : float, optional
            Measurement variance [m²/s²] (default: ``r_gps``). Non-positive
            values are ignored.
        """
        if r is None:
            r = self.r_gps
        if not (r > 0 and math.isfinite(r) and math.isfinite(v_gps)):
            return

        p00, p01, p10, p11 = self._p00, self._p01, self._p10, self._p11

        # H = [1, 0]
        y = v_gps - self._v          # innovation
        s = p00 + r                  # innovation covariance (scalar)
        k0 = p00 / s                 # K = P H^T S^-1
        k1 = p10 / s

        self._v += k0 * y
        self._b += k1 * y

        # P = (I - K H) P
        self._p00 = (1.0 - k0) * p00
        self._p01 = (1.0 - k0) * p01
        self._p10 = p10 - k1 * p00
        self._p11 = p11 - k1 * p01

        # Remove rounding asymmetry
        off = 0.5 * (self._p01 + self._p10)
        self._p01 = off
        self._p10 = off

        self._y, self._s, self._k0, self._k1 = y, s, k0, k1
        self._update_count += 1

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Speed update: z=%.3f m/s, innovation=%.3f m/s, K0=%.4f", v_gps, y, k0)

    def update_zero_velocity(self, r_zu=None):
        """
        Zero-velocity update (ZUPT).

        Pulls the speed towards zero with a very confident pseudo-measurement.
        The bias is corrected through the cross-covariance, not reset.

        Parameters
        ----------
        r_zu : float, optional
            Pseudo-measurement variance (default: ``config.zupt_variance``)
        """
        if r_zu is None:
            r_zu = self.config.zupt_variance
        self.update_with_gps(0.0, r_zu)
        logger.debug("ZUPT update applied")

    def reset(self):
        """Reset state to zero, covariance to identity and clear counters."""
        self._init_state()
        logger.debug("Filter reset")

    @property
    def speed_ms(self):
        return self._v

    @property
    def speed_kmh(self):
        """Speed in km/h, within [0, 3.6 * max_speed_ms]."""
        return min(max(self._v * KMH_PER_MS, 0.0), self.config.max_speed_ms * KMH_PER_MS)

    @property
    def bias(self):
        return self._b

    @property
    def speed_uncertainty(self):
        """Standard deviation of the speed estimate [m/s]."""
        return math.sqrt(max(self._p00, 0.0))

    @property
    def state(self):
        """(speed [m/s], bias [m/s²])"""
        return self._v, self._b

    @property
    def covariance(self):
        """Copy of the 2x2 state covariance."""
        return np.array([[self._p00, self._p01],
                         [self._p10, self._p11]])

    @property
    def innovation(self):
        return self._y

    @property
    def innovation_covariance(self):
        return self._s

    @property
    def gain(self):
        """Kalman gain of the last correction, (K0, K1)."""
        return self._k0, self._k1

    @property
    def prediction_count(self):
        return self._prediction_count

    @property
    def update_count(self):
        return self._update_count

    @property
    def is_initialized(self):
        """True once at least one correction has been applied."""
        return self._update_count > 0

    def summary(self):
        """Diagnostic summary string, for logging only."""
        return (f"Predictions: {self._prediction_count}, Updates: {self._update_count}, "
                f"Speed: {self.speed_kmh:.1f} km/h, Bias: {self._b:.3f} m/s²")

    def __repr__(self):
        return (f"SpeedKalmanFilter(speed={self._v:.3f} m/s, bias={self._b:.4f} m/s², "
                f"sigma_v={self.speed_uncertainty:.3f} m/s)")
