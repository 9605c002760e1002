"""
ZUPT (Zero Velocity Update) Detector
=====================================

Detects that the vehicle is stationary from a trailing window of forward
acceleration and estimated speed. All criteria must hold:
1. mean speed and peak speed are small
2. acceleration spread (standard deviation) is small
3. mean acceleration is close to zero

The classification is debounced: "stopped" is reported only once the
criteria have held continuously for ``min_stop_duration`` seconds. The first
qualifying sample starts the dwell clock.
"""

import logging
import time
from collections import deque

import numpy as np

from ..config import DetectorConfig

logger = logging.getLogger(__name__)


class StationaryDetector:
    """
    Stationary-motion detector feeding zero-velocity updates.

    Parameters
    ----------
    config : DetectorConfig, optional
        Window sizes and thresholds (default: ``DetectorConfig()``)

    Examples
    --------
    >>> det = StationaryDetector()
    >>> stopped = [det.update(0.0, 0.1, timestamp=0.1 * k) for k in range(40)]
    >>> stopped[10], stopped[-1]
    (False, True)
    """

    def __init__(self, config=None):
        self.config = (config or DetectorConfig()).validate()

        self.accel_buffer = deque(maxlen=self.config.window_size)
        self.speed_buffer = deque(maxlen=self.config.window_size)

        self.is_stopped = False
        self.stop_started_at = 0.0
        self._candidate_since = None
        self._last_update = None

        self.samples_processed = 0

    def update(self, acceleration, speed, timestamp=None):
        """
        Add a sample and return the debounced stationary state.

        Parameters
        ----------
        acceleration : float
            Forward acceleration [m/s²]
        speed : float
            Current speed estimate [m/s]
        timestamp : float, optional
            Monotonic time [s] (default: ``time.monotonic()``)

        Returns
        -------
        bool
            True if the vehicle is considered stopped
        """
        now = time.monotonic() if timestamp is None else timestamp

        self.accel_buffer.append(acceleration)
        self.speed_buffer.append(speed)
        self.samples_processed += 1
        self._last_update = now

        if len(self.accel_buffer) < self.config.min_samples:
            return False

        was_stopped = self.is_stopped

        if self.classify():
            if self._candidate_since is None:
                self._candidate_since = now
            self.is_stopped = now - self._candidate_since >= self.config.min_stop_duration
        else:
            self._candidate_since = None
            self.is_stopped = False

        if self.is_stopped != was_stopped:
            if self.is_stopped:
                self.stop_started_at = self._candidate_since
                logger.debug("Stop detected at speed %.2f m/s", speed)
            else:
                stop_duration = now - self.stop_started_at
                logger.debug("Stop ended after %.1f s", stop_duration)

        return self.is_stopped

    def classify(self):
        """
        Instantaneous (not debounced) classification of the current window.

        Returns
        -------
        bool
            True if every stationary criterion holds
        """
        cfg = self.config
        if len(self.accel_buffer) < cfg.min_samples:
            return False

        speeds = np.asarray(self.speed_buffer)
        if speeds.mean() > cfg.max_mean_speed or speeds.max() > cfg.max_peak_speed:
            return False

        accels = np.asarray(self.accel_buffer)
        if accels.std() > cfg.max_accel_std:
            return False

        if abs(accels.mean()) > cfg.max_mean_accel:
            return False

        return True

    def stop_duration(self, now=None):
        """Duration of the current stop [s], 0 when moving."""
        if not self.is_stopped:
            return 0.0
        if now is None:
            now = self._last_update if self._last_update is not None else time.monotonic()
        return now - self.stop_started_at

    def statistics(self):
        """Get current detection statistics."""
        n = len(self.accel_buffer)
        return {
            'is_stopped': self.is_stopped,
            'mean_speed': float(np.mean(self.speed_buffer)) if n else 0.0,
            'mean_accel': float(np.mean(self.accel_buffer)) if n else 0.0,
            'accel_std': float(np.std(self.accel_buffer)) if n else 0.0,
            'samples_processed': self.samples_processed,
        }

    def summary(self):
        """Diagnostic summary string, for logging only."""
        s = self.statistics()
        return (f"Stopped: {s['is_stopped']}, AvgSpeed: {s['mean_speed']:.2f} m/s, "
                f"AvgAccel: {s['mean_accel']:.2f} m/s², AccelStd: {s['accel_std']:.2f}")

    def reset(self):
        """Reset detector to initial state."""
        self.accel_buffer.clear()
        self.speed_buffer.clear()
        self.is_stopped = False
        self.stop_started_at = 0.0
        self._candidate_since = None
        self._last_update = None
        self.samples_processed = 0
        logger.debug("ZUPT detector reset")
