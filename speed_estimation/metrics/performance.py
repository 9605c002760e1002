"""
Performance metrics for evaluating speed estimation quality.

Includes RMSE, MAE and the Normalized Innovation Squared (NIS) consistency
test for the scalar speed measurement.
"""

import numpy as np
from scipy.stats import chi2


def rmse(estimates, ground_truth):
    """
    Root Mean Square Error.

    Parameters
    ----------
    estimates : array_like
        Estimated speeds (N,)
    ground_truth : array_like
        True speeds (N,)

    Returns
    -------
    float
        RMSE value
    """
    estimates = np.asarray(estimates, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)

    return float(np.sqrt(np.mean((estimates - ground_truth) ** 2)))


def mae(estimates, ground_truth):
    """
    Mean Absolute Error.

    Parameters
    ----------
    estimates : array_like
        Estimated speeds (N,)
    ground_truth : array_like
        True speeds (N,)

    Returns
    -------
    float
        MAE value
    """
    estimates = np.asarray(estimates, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)

    return float(np.mean(np.abs(estimates - ground_truth)))


def nis(innovations, innovation_variances):
    """
    Normalized Innovation Squared for scalar measurements.

    For a consistent filter, NIS follows a chi-squared distribution with one
    degree of freedom (mean ~ 1).

    Parameters
    ----------
    innovations : array_like
        Innovations y_k (N,)
    innovation_variances : array_like
        Innovation variances S_k (N,)

    Returns
    -------
    np.ndarray
        NIS values y_k² / S_k (N,)
    """
    y = np.asarray(innovations, dtype=float)
    S = np.asarray(innovation_variances, dtype=float)

    return y ** 2 / S


def nis_bounds(n, confidence=0.95, dof=1):
    """
    Two-sided confidence interval for the mean NIS over n samples.

    The sum of n NIS values follows chi2(n * dof).

    Parameters
    ----------
    n : int
        Number of NIS samples
    confidence : float, optional
        Confidence level (default: 0.95)
    dof : int, optional
        Measurement dimension (default: 1)

    Returns
    -------
    tuple of float
        (lower, upper) bounds for the mean NIS
    """
    alpha = 1.0 - confidence
    lower = chi2.ppf(alpha / 2, n * dof) / n
    upper = chi2.ppf(1 - alpha / 2, n * dof) / n
    return float(lower), float(upper)


def compute_all_metrics(estimates, ground_truth, innovations=None, innovation_variances=None,
                        confidence=0.95):
    """
    Compute all available metrics.

    Parameters
    ----------
    estimates : array_like
        Estimated speeds (N,)
    ground_truth : array_like
        True speeds (N,)
    innovations : array_like, optional
        Innovations of the speed fixes (M,)
    innovation_variances : array_like, optional
        Innovation variances of the speed fixes (M,)
    confidence : float, optional
        Confidence level of the NIS bounds

    Returns
    -------
    dict
        Dictionary with computed metrics
    """
    metrics = {
        'rmse': rmse(estimates, ground_truth),
        'mae': mae(estimates, ground_truth),
        'max_error': float(np.max(np.abs(np.asarray(estimates) - np.asarray(ground_truth)))),
    }

    if innovations is not None and innovation_variances is not None and len(innovations):
        nis_vals = nis(innovations, innovation_variances)
        metrics['nis'] = nis_vals
        metrics['nis_mean'] = float(np.mean(nis_vals))
        metrics['nis_bounds'] = nis_bounds(len(nis_vals), confidence)
        lo, hi = metrics['nis_bounds']
        metrics['nis_consistent'] = lo <= metrics['nis_mean'] <= hi

    return metrics


def print_metrics(metrics, filter_name="Speed filter"):
    """
    Print metrics in a formatted way.

    Parameters
    ----------
    metrics : dict
        Dictionary of metrics from compute_all_metrics
    filter_name : str, optional
        Name of the filter for display
    """
    print(f"\n{filter_name} Performance Metrics")
    print("=" * 50)

    print(f"RMSE: {metrics['rmse']:.4f} m/s ({metrics['rmse'] * 3.6:.2f} km/h)")
    print(f"MAE: {metrics['mae']:.4f} m/s")
    print(f"Max error: {metrics['max_error']:.4f} m/s")

    if 'nis_mean' in metrics:
        lo, hi = metrics['nis_bounds']
        verdict = "consistent" if metrics['nis_consistent'] else "inconsistent"
        print(f"NIS mean: {metrics['nis_mean']:.2f} (bounds {lo:.2f} - {hi:.2f}, {verdict})")

    print("=" * 50)
