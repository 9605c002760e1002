import matplotlib.pyplot as plt
import numpy as np
import pytest

from speed_estimation.visualization import plot_bias, plot_speed
from speed_estimation.visualization.speed import _stop_intervals


def test_stop_intervals():
    time = np.arange(6.0)
    assert _stop_intervals(time, [False, True, True, False, True, True]) == [(1.0, 3.0), (4.0, 5.0)]
    assert _stop_intervals(time, [False] * 6) == []
    assert _stop_intervals(time, [True] * 6) == [(0.0, 5.0)]


def test_plot_speed(tmp_path):
    time = np.linspace(0.0, 10.0, 101)
    speed = np.clip(time - 2.0, 0.0, None)
    stopped = speed == 0.0
    path = tmp_path / 'speed.png'

    fig, ax = plot_speed(time, speed, uncertainty=np.full_like(time, 0.2),
                         ground_truth=(time, speed), fixes=(time[::10], speed[::10]),
                         stopped=stopped, speed_limit=25.0, save_path=path, show=False)

    assert path.exists()
    labels = ax.get_legend_handles_labels()[1]
    assert 'Estimate' in labels
    assert 'Stopped (ZUPT)' in labels
    assert ax.get_ylabel() == 'Speed (km/h)'
    # Estimate line scaled to km/h
    estimate = [line for line in ax.get_lines() if line.get_label() == 'Estimate'][0]
    np.testing.assert_allclose(estimate.get_ydata(), speed * 3.6)
    plt.close(fig)


def test_plot_speed_rejects_unknown_units():
    with pytest.raises(ValueError):
        plot_speed([0.0, 1.0], [0.0, 1.0], units='mph', show=False)


def test_plot_bias():
    fig, ax = plot_bias(np.arange(5.0), np.linspace(0.0, 0.1, 5), true_bias=0.15, show=False)
    assert ax.get_legend_handles_labels()[1] == ['Estimate', 'True bias']
    plt.close(fig)
