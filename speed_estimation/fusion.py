"""
Speed fusion engine.

Wires the sensor preprocessor, the stationary detector and the speed filter
together and serializes every state change through one lock, so inertial
callbacks and fix callbacks may arrive on different threads.

Per inertial sample:
    preprocessor -> filter.predict -> detector.update -> (ZUPT if stopped)
Per speed fix:
    variance(accuracy, age) -> filter.update_with_gps -> preprocessor context
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional

from .alerting import SpeedLimitMonitor
from .config import SpeedEstimationConfig
from .detection import StationaryDetector
from .filters import SpeedKalmanFilter, KMH_PER_MS
from .models import gps_speed_variance, GpsSpeedSmoother
from .preprocessing import SensorPreprocessor
from .status import SpeedStatus, StatusBoard
from .types import AccelerationSample, OrientationSample, VelocityFix, NS_PER_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimateRecord:
    """Filter output after one processed event."""
    timestamp_ns: int
    source: str              # 'accel' or 'fix'
    speed_ms: float
    speed_kmh: float
    uncertainty_ms: float
    bias: float
    is_stopped: bool
    alert: bool
    innovation: Optional[float] = None
    innovation_variance: Optional[float] = None

    @property
    def time_s(self):
        return self.timestamp_ns / NS_PER_S


class SpeedFusionEngine:
    """
    Single owner of the speed estimation state.

    Parameters
    ----------
    config : SpeedEstimationConfig, optional
        Pipeline configuration (default: ``SpeedEstimationConfig()``)
    status_board : StatusBoard, optional
        Where snapshots are published. A private board is created if omitted.

    Examples
    --------
    >>> engine = SpeedFusionEngine()
    >>> fix = VelocityFix(speed_ms=10.0, accuracy_m=3.0, timestamp_ns=1_000_000_000)
    >>> record = engine.handle_fix(fix)
    >>> record.speed_ms > 0
    True
    """

    def __init__(self, config=None, status_board=None):
        self.config = (config or SpeedEstimationConfig()).validate()

        self.filter = SpeedKalmanFilter(self.config.filter)
        self.preprocessor = SensorPreprocessor(self.config.preprocessor)
        self.detector = StationaryDetector(self.config.detector)
        self.limit_monitor = SpeedLimitMonitor(self.config.alert)
        self.gps_smoother = GpsSpeedSmoother()
        self.status_board = status_board if status_board is not None else StatusBoard()

        self._lock = threading.Lock()
        self._reset_context()

    def _reset_context(self):
        self._last_fix_ns = None
        self._last_accuracy = None
        self._last_provider = None
        self.fixes_rejected = 0
        self.zupt_count = 0

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def handle_orientation(self, sample):
        """Update the rotation basis (and bearing) from an orientation sample."""
        with self._lock:
            self.preprocessor.process_orientation(sample)

    def handle_acceleration(self, sample):
        """
        Process one linear acceleration sample.

        Returns
        -------
        EstimateRecord or None
            None when the preprocessor dropped or gated the sample.
        """
        with self._lock:
            forward = self.preprocessor.process_acceleration(sample)
            if forward is None:
                return None

            self.filter.predict(forward.value, forward.dt)

            now_s = forward.timestamp_ns / NS_PER_S
            stopped = self.detector.update(forward.value, self.filter.speed_ms, timestamp=now_s)
            if stopped:
                self.filter.update_zero_velocity()
                self.zupt_count += 1

            return self._record(forward.timestamp_ns, 'accel', stopped)

    def handle_fix(self, fix):
        """
        Correct the filter with a speed fix.

        Returns
        -------
        EstimateRecord or None
            None when the fix was rejected (invalid speed or accuracy,
            duplicate timestamp).
        """
        with self._lock:
            if fix.speed_ms is None or not (math.isfinite(fix.speed_ms) and fix.speed_ms >= 0):
                return self._reject_fix(fix, "invalid speed")

            elapsed_ms = None
            if self._last_fix_ns is not None:
                elapsed_ms = (fix.timestamp_ns - self._last_fix_ns) / 1e6
                if elapsed_ms <= 0:
                    return self._reject_fix(fix, "out-of-order timestamp")

            r = gps_speed_variance(fix.accuracy_m, elapsed_ms, self.config.noise)
            if r is None:
                return self._reject_fix(fix, "invalid accuracy")

            self.filter.update_with_gps(fix.speed_ms, r)

            self.preprocessor.update_speed(fix.speed_ms)
            if fix.bearing_deg is not None:
                self.preprocessor.update_bearing_from_gps(fix.bearing_deg)

            self.gps_smoother.update(fix.speed_ms, fix.accuracy_m)

            self._last_fix_ns = fix.timestamp_ns
            self._last_accuracy = fix.accuracy_m
            self._last_provider = fix.provider

            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Fix %.2f m/s (acc %.1f m, r=%.3f) -> %s",
                             fix.speed_ms, fix.accuracy_m, r, self.filter.summary())

            return self._record(fix.timestamp_ns, 'fix', self.detector.is_stopped,
                                innovation=self.filter.innovation,
                                innovation_variance=self.filter.innovation_covariance)

    def handle(self, event):
        """Dispatch a sample to the matching handler."""
        if isinstance(event, AccelerationSample):
            return self.handle_acceleration(event)
        if isinstance(event, VelocityFix):
            return self.handle_fix(event)
        if isinstance(event, OrientationSample):
            self.handle_orientation(event)
            return None
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def run(self, events):
        """
        Process an iterable of samples in order.

        Yields
        ------
        EstimateRecord
            One record per sample that changed the estimate.
        """
        for event in events:
            record = self.handle(event)
            if record is not None:
                yield record

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _reject_fix(self, fix, reason):
        self.fixes_rejected += 1
        logger.debug("Fix at %d ns rejected: %s", fix.timestamp_ns, reason)
        return None

    def _record(self, timestamp_ns, source, stopped, innovation=None, innovation_variance=None):
        speed_kmh = self.filter.speed_kmh
        alert = self.limit_monitor.check(speed_kmh, now=timestamp_ns / NS_PER_S)

        self.status_board.publish(SpeedStatus(
            speed_kmh=speed_kmh,
            gps_speed_kmh=self.gps_smoother.speed_ms * KMH_PER_MS,
            bias=self.filter.bias,
            uncertainty_ms=self.filter.speed_uncertainty,
            is_stopped=stopped,
            over_limit=self.limit_monitor.is_over_limit(speed_kmh),
            accuracy_m=self._last_accuracy,
            provider=self._last_provider,
            last_fix_ns=self._last_fix_ns,
            timestamp_ns=timestamp_ns,
        ))

        return EstimateRecord(
            timestamp_ns=timestamp_ns,
            source=source,
            speed_ms=self.filter.speed_ms,
            speed_kmh=speed_kmh,
            uncertainty_ms=self.filter.speed_uncertainty,
            bias=self.filter.bias,
            is_stopped=stopped,
            alert=alert,
            innovation=innovation,
            innovation_variance=innovation_variance,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def status(self):
        return self.status_board.snapshot()

    def set_speed_limit(self, limit_kmh):
        with self._lock:
            self.limit_monitor.set_limit(limit_kmh)

    def reset(self):
        """Reset every component to its initial state."""
        with self._lock:
            self.filter.reset()
            self.preprocessor.reset()
            self.detector.reset()
            self.limit_monitor.reset()
            self.gps_smoother.reset()
            self._reset_context()
            self.status_board.publish(SpeedStatus())

    def summary(self):
        """Diagnostic summary string, for logging only."""
        with self._lock:
            return (f"{self.filter.summary()} | {self.detector.summary()} | "
                    f"ZUPTs: {self.zupt_count}, rejected fixes: {self.fixes_rejected}")
