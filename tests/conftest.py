import matplotlib

matplotlib.use('Agg')

import pytest

from speed_estimation.filters import SpeedKalmanFilter
from speed_estimation.types import AccelerationSample, NS_PER_S


T0_NS = NS_PER_S


def accel_stream(values, rate_hz=50.0, start_ns=T0_NS, axis='x'):
    """Acceleration samples at a fixed rate, one per value, along one device axis."""
    period_ns = int(round(NS_PER_S / rate_hz))
    samples = []
    for k, v in enumerate(values):
        xyz = {'x': 0.0, 'y': 0.0, 'z': 0.0}
        xyz[axis] = v
        samples.append(AccelerationSample(timestamp_ns=start_ns + k * period_ns, **xyz))
    return samples


@pytest.fixture
def kf():
    return SpeedKalmanFilter()


@pytest.fixture
def make_accel_stream():
    return accel_stream
