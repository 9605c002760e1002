"""
Forward acceleration from raw inertial samples.

Pipeline for each linear acceleration sample:
1. dt from consecutive timestamps, samples with dt <= 0 or dt > max_dt dropped
2. device frame -> world frame with the latest orientation basis
3. projection on the direction of travel (fix bearing above
   ``min_speed_for_bearing``, world x axis below it)
4. trailing moving average
5. clamp to +/- max_acceleration
6. gating: nothing is emitted until the signal first exceeds
   ``emit_threshold``, everything is emitted afterwards
"""

import logging
import math
from collections import deque

from ..config import PreprocessorConfig
from ..common.angles import bearing_to_radians
from ..common.rotation import IDENTITY, as_rotation_basis, heading_from_matrix, rotate_to_world
from ..types import ForwardAcceleration, NS_PER_S

logger = logging.getLogger(__name__)


class SensorPreprocessor:
    """
    Converts orientation and linear acceleration samples into a smoothed
    forward-acceleration signal for the speed filter.

    Parameters
    ----------
    config : PreprocessorConfig, optional
        Tuning constants (default: ``PreprocessorConfig()``)
    on_acceleration : callable, optional
        Called as ``on_acceleration(value, dt)`` for every emitted sample.

    Notes
    -----
    Until the first orientation sample arrives the device frame is taken as
    the world frame.
    """

    def __init__(self, config=None, on_acceleration=None):
        self.config = (config or PreprocessorConfig()).validate()
        self.on_acceleration = on_acceleration

        self._buffer = deque(maxlen=self.config.smoothing_window)
        self.reset()

    def reset(self):
        """Forget timing, smoothing, gating and bearing context."""
        self._last_timestamp = 0
        self._bearing = 0.0
        self._speed = 0.0
        self._initialized = False
        self._high_accel = False
        self._rotation = IDENTITY
        self._buffer.clear()

    # ------------------------------------------------------------------
    # Context setters (fix path)
    # ------------------------------------------------------------------
    def update_bearing_from_gps(self, bearing_degrees):
        """Set the direction of travel from a fix bearing [deg]."""
        if bearing_degrees is None or not math.isfinite(bearing_degrees):
            return
        self._bearing = bearing_to_radians(bearing_degrees)

    def update_speed(self, speed_ms):
        """Set the latest observed speed [m/s], used to pick the forward axis."""
        if speed_ms is None or not math.isfinite(speed_ms):
            return
        self._speed = speed_ms

    # ------------------------------------------------------------------
    # Sample processing
    # ------------------------------------------------------------------
    def process_orientation(self, sample):
        """
        Store the rotation basis of an orientation sample.

        Parameters
        ----------
        sample : OrientationSample
            Rotation vector or rotation matrix payload

        Returns
        -------
        bool
            False if the sample was malformed and ignored.
        """
        try:
            rotation = as_rotation_basis(sample.values)
        except ValueError as e:
            logger.debug("Orientation sample dropped: %s", e)
            return False

        self._rotation = rotation

        if self.config.orientation_updates_bearing:
            self._bearing = heading_from_matrix(rotation)

        return True

    def process_acceleration(self, sample):
        """
        Process one linear acceleration sample.

        Parameters
        ----------
        sample : AccelerationSample
            Device-frame acceleration [m/s²] with a nanosecond timestamp

        Returns
        -------
        ForwardAcceleration or None
            The emitted forward acceleration, or None when the sample was
            dropped or gated.
        """
        timestamp = sample.timestamp_ns
        if not timestamp:
            return None

        if self._last_timestamp > 0:
            dt = (timestamp - self._last_timestamp) / NS_PER_S
        else:
            dt = 0.0

        if dt <= 0 or dt > self.config.max_dt:
            self._last_timestamp = timestamp
            return None

        self._last_timestamp = timestamp

        if not (math.isfinite(sample.x) and math.isfinite(sample.y) and math.isfinite(sample.z)):
            logger.debug("Non-finite acceleration sample dropped at %d ns", timestamp)
            return None

        world = rotate_to_world(self._rotation, sample.x, sample.y, sample.z)
        forward = self._forward_component(world)

        self._buffer.append(forward)
        smoothed = sum(self._buffer) / len(self._buffer)

        a_max = self.config.max_acceleration
        clamped = min(max(smoothed, -a_max), a_max)

        # One warning per excursion above the threshold
        high = abs(clamped) > a_max * self.config.warn_ratio
        if high and not self._high_accel:
            logger.warning("High acceleration detected: %.2f m/s²", clamped)
        self._high_accel = high

        if not (self._initialized or abs(clamped) > self.config.emit_threshold):
            return None

        self._initialized = True

        if self.on_acceleration is not None:
            self.on_acceleration(clamped, dt)

        return ForwardAcceleration(value=clamped, dt=dt, timestamp_ns=timestamp)

    def _forward_component(self, world):
        world_x, world_y, _ = world

        if self._speed > self.config.min_speed_for_bearing:
            return world_x * math.cos(self._bearing) + world_y * math.sin(self._bearing)

        # Low speed: world x taken as the direction of travel
        return world_x

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def current_bearing(self):
        """Bearing used for the forward projection [rad]."""
        return self._bearing

    @property
    def uses_gps_bearing(self):
        """True when the forward projection currently uses the bearing."""
        return self._speed > self.config.min_speed_for_bearing

    @property
    def is_initialized(self):
        return self._initialized

    @property
    def rotation_matrix(self):
        """Latest rotation basis as a row-major tuple of 9 floats."""
        return self._rotation
