"""
Common utilities for speed estimation.

Includes angle handling and device-to-world rotation helpers.
"""

from .angles import wrap_to_pi, bearing_to_radians
from .rotation import (IDENTITY, rotation_matrix_from_vector, as_rotation_basis,
                       azimuth_from_matrix, heading_from_matrix, rotate_to_world)

__all__ = [
    'wrap_to_pi',
    'bearing_to_radians',
    'IDENTITY',
    'rotation_matrix_from_vector',
    'as_rotation_basis',
    'azimuth_from_matrix',
    'heading_from_matrix',
    'rotate_to_world',
]
