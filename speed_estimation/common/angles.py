"""
Angle utilities for bearing handling.

Functions for wrapping angles to [-pi, pi] and converting
compass bearings reported in degrees to radians.
"""

import math

import numpy as np


def wrap_to_pi(angle):
    """
    Wrap angle to [-pi, pi) using a modulo operation.

    Parameters
    ----------
    angle : float or np.ndarray
        Angle(s) in radians

    Returns
    -------
    float or np.ndarray
        Wrapped angle(s)
    """
    angle = np.asarray(angle)
    return (angle + np.pi) % (2 * np.pi) - np.pi


def bearing_to_radians(bearing_deg):
    """
    Convert a bearing in degrees to radians in [-pi, pi].

    Scalar-only version used on the per-fix path.

    Examples
    --------
    >>> round(bearing_to_radians(90.0), 6)
    1.570796
    >>> round(bearing_to_radians(270.0), 6)
    -1.570796
    """
    rad = math.radians(bearing_deg)
    return math.atan2(math.sin(rad), math.cos(rad))
