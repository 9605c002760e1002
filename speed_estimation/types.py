"""
Typed sensor samples consumed by the speed estimation pipeline.

Time base convention: every sample carries ``timestamp_ns``, an integer
monotonic timestamp in nanoseconds, so that streams of different kinds can be
merged and ordered.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


NS_PER_S = 1_000_000_000


@dataclass(frozen=True)
class AccelerationSample:
    """Linear (gravity-free) acceleration in the device frame [m/s²]."""
    x: float
    y: float
    z: float
    timestamp_ns: int


@dataclass(frozen=True)
class OrientationSample:
    """
    Device orientation.

    Attributes:
        values: Either a rotation vector (3, 4 or 5 components, as reported
                by a rotation-vector sensor) or the 9 row-major entries of a
                device-to-world rotation matrix.
        timestamp_ns: Monotonic timestamp.
    """
    values: Tuple[float, ...]
    timestamp_ns: int


@dataclass(frozen=True)
class VelocityFix:
    """
    Ground speed fix from the positioning receiver.

    Attributes:
        speed_ms: Ground speed [m/s], expected >= 0.
        accuracy_m: Horizontal accuracy [m], expected > 0.
        timestamp_ns: Monotonic timestamp.
        bearing_deg: Course over ground [deg], None when unavailable.
        provider: Name of the location provider (gps, network, ...).
    """
    speed_ms: float
    accuracy_m: float
    timestamp_ns: int
    bearing_deg: Optional[float] = None
    provider: str = 'gps'


@dataclass(frozen=True)
class ForwardAcceleration:
    """Smoothed, clamped forward acceleration emitted by the preprocessor."""
    value: float
    dt: float
    timestamp_ns: int
