"""
Speed limit monitoring.

Decides when the host should sound an over-speed alert. The alert itself
(tone, notification) belongs to the host.
"""

import logging
import time

from .config import AlertConfig

logger = logging.getLogger(__name__)


class SpeedLimitMonitor:
    """
    Threshold comparison with hysteresis and a minimum alert interval.

    An alert is due when ``speed_kmh > limit_kmh + hysteresis_kmh`` and more
    than ``min_interval_s`` has elapsed since the previous alert.

    Parameters
    ----------
    config : AlertConfig, optional
        Limit, hysteresis and interval (default: ``AlertConfig()``)
    """

    def __init__(self, config=None):
        self.config = (config or AlertConfig()).validate()
        self._limit_kmh = float(self.config.limit_kmh)
        self._last_alert_at = None
        self.alert_count = 0

    @property
    def limit_kmh(self):
        return self._limit_kmh

    def set_limit(self, limit_kmh):
        """Change the speed limit [km/h]."""
        if not limit_kmh >= 0:
            raise ValueError(f"Speed limit must be non-negative, got {limit_kmh!r}")
        self._limit_kmh = float(limit_kmh)
        logger.info("Speed limit set to %.0f km/h", self._limit_kmh)

    def is_over_limit(self, speed_kmh):
        return speed_kmh > self._limit_kmh + self.config.hysteresis_kmh

    def check(self, speed_kmh, now=None):
        """
        Check a speed reading.

        Parameters
        ----------
        speed_kmh : float
            Current speed [km/h]
        now : float, optional
            Monotonic time [s] (default: ``time.monotonic()``)

        Returns
        -------
        bool
            True if an alert should be raised now
        """
        if not self.is_over_limit(speed_kmh):
            return False

        now = time.monotonic() if now is None else now
        if self._last_alert_at is not None and now - self._last_alert_at <= self.config.min_interval_s:
            return False

        self._last_alert_at = now
        self.alert_count += 1
        logger.info("Speed %.1f km/h over limit %.0f km/h", speed_kmh, self._limit_kmh)
        return True

    def reset(self):
        self._last_alert_at = None
        self.alert_count = 0
