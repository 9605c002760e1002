"""
Performance metrics for speed estimation evaluation.
"""

from .performance import rmse, mae, nis, nis_bounds, compute_all_metrics, print_metrics

__all__ = [
    'rmse',
    'mae',
    'nis',
    'nis_bounds',
    'compute_all_metrics',
    'print_metrics',
]
