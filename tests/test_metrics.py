import numpy as np
import pytest

from speed_estimation.metrics import compute_all_metrics, mae, nis, nis_bounds, print_metrics, rmse


def test_error_metrics():
    est = np.array([1.0, 2.0, 3.0, 4.0])
    truth = np.array([1.0, 2.0, 3.0, 6.0])

    assert rmse(est, truth) == pytest.approx(1.0)
    assert mae(est, truth) == pytest.approx(0.5)


def test_nis():
    np.testing.assert_allclose(nis([1.0, -2.0], [1.0, 2.0]), [1.0, 2.0])


def test_nis_bounds_narrow_with_more_samples():
    lo_small, hi_small = nis_bounds(10)
    lo_large, hi_large = nis_bounds(1000)

    assert lo_small < lo_large < 1.0 < hi_large < hi_small


def test_consistent_innovations():
    S = np.linspace(0.5, 2.0, 500)
    # Innovations of exactly one standard deviation: NIS = 1
    y = np.sqrt(S) * np.where(np.arange(500) % 2, 1.0, -1.0)

    metrics = compute_all_metrics(np.zeros(3), np.zeros(3), innovations=y, innovation_variances=S)

    assert metrics['rmse'] == 0.0
    assert metrics['nis'].shape == (500,)
    assert metrics['nis_consistent']


def test_overconfident_filter_is_flagged():
    y = np.full(100, 3.0)
    metrics = compute_all_metrics([1.0], [1.0], innovations=y, innovation_variances=np.ones(100))
    assert not metrics['nis_consistent']


def test_metrics_without_innovations(capsys):
    metrics = compute_all_metrics([1.0, 2.0], [1.5, 2.0])
    assert 'nis' not in metrics
    assert metrics['max_error'] == pytest.approx(0.5)

    print_metrics(metrics, filter_name="Test")
    out = capsys.readouterr().out
    assert 'Test Performance Metrics' in out
    assert 'NIS' not in out
