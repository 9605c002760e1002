"""
Shared estimator status.

The fusion engine is the only writer: it publishes an immutable
``SpeedStatus`` snapshot after every processed event. Consumers (UI,
notification, broadcast layers) read the latest snapshot from the
``StatusBoard`` from any thread.
"""

import threading
from dataclasses import dataclass
from typing import Optional

from .types import NS_PER_S


@dataclass(frozen=True)
class SpeedStatus:
    """Snapshot of the estimator outputs."""
    speed_kmh: float = 0.0
    gps_speed_kmh: float = 0.0
    bias: float = 0.0
    uncertainty_ms: float = 1.0
    is_stopped: bool = False
    over_limit: bool = False
    accuracy_m: Optional[float] = None
    provider: Optional[str] = None
    last_fix_ns: Optional[int] = None
    timestamp_ns: Optional[int] = None


class StatusBoard:
    """
    Lock-guarded holder of the latest ``SpeedStatus``.

    Parameters
    ----------
    started_ns : int, optional
        Time the fix search started [ns], used by ``describe``.
    """

    def __init__(self, started_ns=None):
        self._lock = threading.Lock()
        self._status = SpeedStatus()
        self.started_ns = started_ns

    def publish(self, status):
        with self._lock:
            self._status = status

    def snapshot(self):
        with self._lock:
            return self._status

    def describe(self, now_ns):
        """
        Human-readable positioning status.

        Parameters
        ----------
        now_ns : int
            Current monotonic time [ns]

        Returns
        -------
        str
            "GPS active (Ns ago)" once a fix has been received, otherwise
            "Searching for GPS... (Ns)".
        """
        status = self.snapshot()
        if status.last_fix_ns is not None:
            age_s = (now_ns - status.last_fix_ns) // NS_PER_S
            return f"GPS active ({age_s}s ago)"
        if self.started_ns is not None:
            searching_s = (now_ns - self.started_ns) // NS_PER_S
            return f"Searching for GPS... ({searching_s}s)"
        return "Searching for GPS..."
