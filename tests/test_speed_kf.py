import math

import numpy as np
import pytest

from speed_estimation.config import FilterConfig
from speed_estimation.filters import SpeedKalmanFilter


def test_initial_state(kf):
    assert kf.state == (0.0, 0.0)
    np.testing.assert_array_equal(kf.covariance, np.eye(2))
    assert kf.speed_uncertainty == 1.0
    assert not kf.is_initialized


def test_covariance_is_a_copy(kf):
    P = kf.covariance
    P[0, 0] = 42.0
    assert kf.covariance[0, 0] == 1.0


@pytest.mark.parametrize('dt', [1e-3, 0.02, 0.5, 3.0])
def test_zero_acceleration_prediction_keeps_speed(kf, dt):
    kf.update_with_gps(5.0, 1e-6)
    assert kf.bias == 0.0
    before = kf.speed_ms

    kf.predict(0.0, dt)

    assert kf.speed_ms == before


def test_prediction_integrates_acceleration_minus_bias(kf):
    kf.predict(1.0, 0.5)
    assert kf.speed_ms == pytest.approx(0.5)

    P = kf.covariance
    # F P F^T + Q with F = [[1, -0.5], [0, 1]], P = I
    np.testing.assert_allclose(P, [[1.25 + 0.1, -0.5], [-0.5, 1.0 + 1e-5]])


def test_acceleration_is_clamped(kf):
    kf.predict(100.0, 1.0)
    assert kf.speed_ms == pytest.approx(5.0)


def test_speed_is_clamped_to_physical_range(kf):
    kf.predict(5.0, 20.0)
    assert kf.speed_ms == 50.0
    assert kf.speed_kmh == pytest.approx(180.0)

    kf.reset()
    kf.predict(-5.0, 1.0)
    assert kf.speed_ms == 0.0


@pytest.mark.parametrize('dt', [0.0, -1.0, float('nan'), float('inf')])
def test_invalid_dt_leaves_filter_untouched(kf, dt):
    kf.predict(2.0, 0.1)
    kf.update_with_gps(1.0, 0.5)
    state = kf.state
    P = kf.covariance
    counts = (kf.prediction_count, kf.update_count)

    kf.predict(3.0, dt)

    assert kf.state == state
    np.testing.assert_array_equal(kf.covariance, P)
    assert (kf.prediction_count, kf.update_count) == counts


@pytest.mark.parametrize('r', [0.0, -0.25, float('nan')])
def test_invalid_variance_is_ignored(kf, r):
    kf.predict(1.0, 1.0)
    state = kf.state
    P = kf.covariance

    kf.update_with_gps(10.0, r)

    assert kf.state == state
    np.testing.assert_array_equal(kf.covariance, P)
    assert kf.update_count == 0


def test_non_finite_measurement_is_ignored(kf):
    kf.update_with_gps(float('nan'), 0.25)
    assert kf.state == (0.0, 0.0)
    assert kf.update_count == 0


def test_converges_to_repeated_measurement(kf):
    for _ in range(10):
        kf.update_with_gps(10.0, 0.01)

    assert abs(kf.speed_ms - 10.0) < 0.01
    assert kf.is_initialized


def test_default_measurement_variance():
    kf = SpeedKalmanFilter(FilterConfig(r_gps=1.0))
    kf.update_with_gps(4.0)
    # P00 = 1, r = 1 -> K0 = 0.5
    assert kf.speed_ms == pytest.approx(2.0)
    assert kf.gain[0] == pytest.approx(0.5)
    assert kf.innovation == pytest.approx(4.0)
    assert kf.innovation_covariance == pytest.approx(2.0)


def test_zero_velocity_update_pulls_speed_to_zero(kf):
    kf.predict(5.0, 1.0)
    assert kf.speed_ms == pytest.approx(5.0)

    kf.update_zero_velocity()
    assert kf.speed_ms < 5.0

    for _ in range(4):
        kf.update_zero_velocity()
    assert kf.speed_ms < 0.1


def test_zero_velocity_update_corrects_bias_through_cross_covariance(kf):
    # Speed drifted up although the vehicle is still: positive bias
    kf.predict(0.5, 1.0)
    kf.update_zero_velocity()
    assert kf.bias > 0.0


def test_gps_update_applies_kalman_gain_after_dead_reckoning(kf):
    for _ in range(250):
        kf.predict(1.0, 0.02)
    assert kf.speed_ms == pytest.approx(5.0, abs=1e-9)

    before = kf.speed_ms
    p00 = kf.covariance[0, 0]
    k0 = p00 / (p00 + 0.25)

    kf.update_with_gps(4.5, 0.25)

    assert kf.speed_ms == pytest.approx(before + k0 * (4.5 - before))
    assert 4.5 < kf.speed_ms < 5.0


def test_covariance_stays_positive_semidefinite():
    rng = np.random.default_rng(1)
    kf = SpeedKalmanFilter()

    for k in range(3000):
        kf.predict(rng.normal(0.0, 2.0), rng.uniform(0.005, 0.05))
        if k % 50 == 0:
            kf.update_with_gps(abs(rng.normal(8.0, 3.0)), rng.uniform(0.01, 5.0))
        if k % 333 == 0:
            kf.update_zero_velocity()

        P = kf.covariance
        scale = max(1.0, P[0, 0] * P[1, 1])
        assert P[0, 0] >= 0.0
        assert P[1, 1] >= 0.0
        assert P[0, 0] * P[1, 1] - P[0, 1] * P[1, 0] >= -1e-9 * scale
        assert P[0, 1] == pytest.approx(P[1, 0], abs=1e-12)


def test_reset(kf):
    kf.predict(2.0, 1.0)
    kf.update_with_gps(1.0, 0.1)

    kf.reset()

    assert kf.state == (0.0, 0.0)
    np.testing.assert_array_equal(kf.covariance, np.eye(2))
    assert kf.prediction_count == 0
    assert kf.update_count == 0
    assert not kf.is_initialized


def test_summary_and_uncertainty(kf):
    kf.predict(1.0, 1.0)
    kf.update_with_gps(1.0, 0.5)

    summary = kf.summary()
    assert 'Predictions: 1' in summary
    assert 'Updates: 1' in summary
    assert 'km/h' in summary
    assert kf.speed_uncertainty == pytest.approx(math.sqrt(kf.covariance[0, 0]))


def test_invalid_config_is_rejected():
    with pytest.raises(ValueError):
        SpeedKalmanFilter(FilterConfig(r_gps=0.0))
