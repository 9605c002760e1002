"""
Visualization utilities for speed estimation.
"""

from .speed import plot_speed, plot_bias

__all__ = [
    'plot_speed',
    'plot_bias',
]
