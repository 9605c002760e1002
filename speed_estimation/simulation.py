"""
Synthetic drive generator for testing the speed estimation pipeline.

Generates a drive from a piecewise-constant forward acceleration profile and
produces everything the fusion engine consumes:
    - accel_samples: device-frame linear acceleration at ``rate_hz``
    - orientation_samples: rotation vectors matching the heading
    - fixes: noisy ground speed fixes at ``fix_rate_hz``
    - true_speed / time: ground truth at the inertial rate
"""

import math

import numpy as np

from .common.angles import wrap_to_pi
from .types import AccelerationSample, OrientationSample, VelocityFix, NS_PER_S


# Accelerate, cruise, brake to a stop, stand still
DEFAULT_PROFILE = [
    (5.0, 1.5),     # (duration [s], forward acceleration [m/s²])
    (10.0, 0.0),
    (5.0, -1.5),
    (5.0, 0.0),
]


def generate_drive(profile=None, rate_hz=50.0, fix_rate_hz=1.0, heading_deg=0.0,
                   accel_noise_std=0.05, accel_bias=0.0, fix_speed_std=0.3,
                   fix_accuracy_m=5.0, fix_dropout=(), start_ns=NS_PER_S, seed=0):
    """
    Generate a straight-line drive.

    Parameters
    ----------
    profile : list of (float, float), optional
        Segments of (duration [s], forward acceleration [m/s²]).
        Default: accelerate, cruise, brake, stand still.
    rate_hz : float, optional
        Inertial sample rate (default: 50)
    fix_rate_hz : float, optional
        Speed fix rate (default: 1)
    heading_deg : float, optional
        Constant heading, counter-clockwise from the world x axis
        (default: 0), the convention of the forward projection.
        The device is mounted with its x axis along the direction of travel.
    accel_noise_std : float, optional
        White noise on each acceleration axis [m/s²]
    accel_bias : float, optional
        Constant bias added on the device x axis [m/s²]
    fix_speed_std : float, optional
        Noise on fix speed [m/s]
    fix_accuracy_m : float, optional
        Reported horizontal accuracy of every fix [m]
    fix_dropout : sequence of (float, float), optional
        Time intervals [s] with no fixes (tunnels, urban canyons)
    start_ns : int, optional
        Timestamp of the first sample [ns]
    seed : int, optional
        Random seed

    Returns
    -------
    dict
        - time: array (N,) seconds since start
        - true_speed: array (N,) [m/s]
        - true_accel: array (N,) [m/s²]
        - accel_samples: list of AccelerationSample
        - orientation_samples: list of OrientationSample
        - fixes: list of VelocityFix
        - dt: inertial sample period [s]
    """
    if profile is None:
        profile = DEFAULT_PROFILE
    if rate_hz <= 0 or fix_rate_hz <= 0:
        raise ValueError("Sample rates must be positive")

    rng = np.random.default_rng(seed)
    dt = 1.0 / rate_hz

    true_accel = np.concatenate([
        np.full(int(round(duration * rate_hz)), accel) for duration, accel in profile
    ])
    N = len(true_accel)
    time = np.arange(N) * dt

    # Integrate, the vehicle cannot reverse
    true_speed = np.zeros(N)
    for k in range(1, N):
        true_speed[k] = max(true_speed[k - 1] + true_accel[k - 1] * dt, 0.0)
    # Round-off left over from integrating back down to zero
    true_speed[true_speed < 1e-9] = 0.0
    # Braking into a standstill produces no acceleration once stopped
    stopped = (true_speed <= 0.0) & (true_accel < 0.0)
    true_accel = np.where(stopped, 0.0, true_accel)

    # Device x axis along travel: rotation about z by the heading
    yaw = float(wrap_to_pi(math.radians(heading_deg)))
    rotation_vector = (0.0, 0.0, math.sin(yaw / 2.0), math.cos(yaw / 2.0))

    timestamps = start_ns + np.round(time * NS_PER_S).astype(np.int64)

    noise = rng.normal(0.0, accel_noise_std, size=(N, 3))
    accel_samples = [
        AccelerationSample(
            x=float(true_accel[k] + accel_bias + noise[k, 0]),
            y=float(noise[k, 1]),
            z=float(noise[k, 2]),
            timestamp_ns=int(timestamps[k]),
        )
        for k in range(N)
    ]

    orientation_samples = [OrientationSample(values=rotation_vector, timestamp_ns=int(timestamps[0]))]

    fix_step = max(int(round(rate_hz / fix_rate_hz)), 1)
    fixes = []
    for k in range(fix_step, N, fix_step):
        if any(lo <= time[k] < hi for lo, hi in fix_dropout):
            continue
        measured = max(true_speed[k] + rng.normal(0.0, fix_speed_std), 0.0)
        fixes.append(VelocityFix(
            speed_ms=float(measured),
            accuracy_m=float(fix_accuracy_m),
            timestamp_ns=int(timestamps[k]),
            bearing_deg=float(heading_deg) if true_speed[k] > 0 else None,
        ))

    return {
        'time': time,
        'true_speed': true_speed,
        'true_accel': true_accel,
        'accel_samples': accel_samples,
        'orientation_samples': orientation_samples,
        'fixes': fixes,
        'dt': dt,
    }
