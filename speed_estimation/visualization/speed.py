"""
Speed estimate visualization.

Functions for plotting the fused speed with its uncertainty band, the speed
fixes, stop intervals and the accelerometer bias estimate.
"""

import numpy as np
import matplotlib.pyplot as plt


def _stop_intervals(time, stopped):
    """(start, end) pairs of consecutive True runs in ``stopped``."""
    stopped = np.asarray(stopped, dtype=bool)
    if not stopped.any():
        return []

    edges = np.diff(stopped.astype(int))
    starts = list(np.where(edges == 1)[0] + 1)
    ends = list(np.where(edges == -1)[0] + 1)
    if stopped[0]:
        starts.insert(0, 0)
    if stopped[-1]:
        ends.append(len(stopped) - 1)

    return [(time[s], time[e]) for s, e in zip(starts, ends)]


def plot_speed(time, speed, uncertainty=None, ground_truth=None, fixes=None,
               stopped=None, speed_limit=None, n_std=3.0, units='km/h',
               title="Fused Speed Estimate", figsize=(10, 5), save_path=None, show=True):
    """
    Plot the speed estimate over time.

    Parameters
    ----------
    time : np.ndarray
        Time vector [s] (N,)
    speed : np.ndarray
        Speed estimates in m/s (N,)
    uncertainty : np.ndarray, optional
        Speed standard deviation in m/s (N,), drawn as a +/- n_std band
    ground_truth : tuple of np.ndarray, optional
        (time, speed in m/s) of the true speed
    fixes : tuple of np.ndarray, optional
        (time, speed in m/s) of the speed fixes
    stopped : np.ndarray of bool, optional
        Stationary flag (N,), stop intervals are shaded
    speed_limit : float, optional
        Limit drawn as a horizontal line, in ``units``
    n_std : float, optional
        Width of the uncertainty band (default: 3-sigma)
    units : {'km/h', 'm/s'}, optional
        Display units
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size
    save_path : str, optional
        Path to save figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    if units not in ('km/h', 'm/s'):
        raise ValueError(f"units must be 'km/h' or 'm/s', got {units!r}")
    scale = 3.6 if units == 'km/h' else 1.0

    time = np.asarray(time)
    speed = np.asarray(speed) * scale

    fig, ax = plt.subplots(figsize=figsize)

    if stopped is not None:
        for i, (t0, t1) in enumerate(_stop_intervals(time, stopped)):
            ax.axvspan(t0, t1, color='grey', alpha=0.2,
                       label='Stopped (ZUPT)' if i == 0 else None)

    if uncertainty is not None:
        band = n_std * np.asarray(uncertainty) * scale
        ax.fill_between(time, np.maximum(speed - band, 0.0), speed + band,
                        color='lightblue', alpha=0.4, label=f'±{n_std:g}σ')

    if ground_truth is not None:
        t_true, v_true = ground_truth
        ax.plot(t_true, np.asarray(v_true) * scale, 'k--', linewidth=1.5,
                label='Ground Truth', alpha=0.6)

    ax.plot(time, speed, 'b-', linewidth=2, label='Estimate', alpha=0.8)

    if fixes is not None:
        t_fix, v_fix = fixes
        ax.plot(t_fix, np.asarray(v_fix) * scale, 'r.', markersize=8, label='Speed fixes')

    if speed_limit is not None:
        ax.axhline(speed_limit, color='orange', linestyle=':', linewidth=1.5, label='Limit')

    ax.set_xlabel('Time (s)', fontsize=12)
    ax.set_ylabel(f'Speed ({units})', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax


def plot_bias(time, bias, true_bias=None, title="Accelerometer Bias Estimate",
              figsize=(10, 4), save_path=None, show=True):
    """
    Plot the accelerometer bias estimate over time.

    Parameters
    ----------
    time : np.ndarray
        Time vector [s] (N,)
    bias : np.ndarray
        Bias estimates [m/s²] (N,)
    true_bias : float, optional
        Known bias, drawn as a reference line
    title : str, optional
        Plot title
    figsize : tuple, optional
        Figure size
    save_path : str, optional
        Path to save figure
    show : bool, optional
        Whether to display the plot

    Returns
    -------
    fig, ax
        Matplotlib figure and axes
    """
    fig, ax = plt.subplots(figsize=figsize)

    ax.plot(time, bias, 'g-', linewidth=2, label='Estimate', alpha=0.8)
    if true_bias is not None:
        ax.axhline(true_bias, color='k', linestyle='--', linewidth=1.5,
                   label='True bias', alpha=0.6)

    ax.set_xlabel('Time (s)', fontsize=12)
    ax.set_ylabel('Bias (m/s²)', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    if show:
        plt.show()

    return fig, ax
