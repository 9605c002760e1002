"""
Device-to-world rotation helpers.

The rotation basis is kept as a flat, row-major tuple of 9 floats and applied
with explicit scalar arithmetic: these functions run once per inertial sample.

Conventions follow the rotation-vector sensor of mobile devices: the vector
part of a unit quaternion (x*sin(θ/2), y*sin(θ/2), z*sin(θ/2)), optionally
followed by the scalar part cos(θ/2) and a heading accuracy estimate.
"""

import math

import numpy as np


IDENTITY = (1.0, 0.0, 0.0,
            0.0, 1.0, 0.0,
            0.0, 0.0, 1.0)


def rotation_matrix_from_vector(rotation_vector):
    """
    Compute the device-to-world rotation matrix from a rotation vector.

    Parameters
    ----------
    rotation_vector : sequence of float
        3, 4 or 5 components [q1, q2, q3(, q0(, accuracy))]. When the scalar
        part q0 is missing it is recovered from the unit-norm constraint.

    Returns
    -------
    tuple of float
        Row-major 3x3 rotation matrix (9 entries)
    """
    q1 = float(rotation_vector[0])
    q2 = float(rotation_vector[1])
    q3 = float(rotation_vector[2])

    if len(rotation_vector) >= 4:
        q0 = float(rotation_vector[3])
    else:
        q0 = 1.0 - q1 * q1 - q2 * q2 - q3 * q3
        q0 = math.sqrt(q0) if q0 > 0 else 0.0

    sq_q1 = 2 * q1 * q1
    sq_q2 = 2 * q2 * q2
    sq_q3 = 2 * q3 * q3
    q1_q2 = 2 * q1 * q2
    q3_q0 = 2 * q3 * q0
    q1_q3 = 2 * q1 * q3
    q2_q0 = 2 * q2 * q0
    q2_q3 = 2 * q2 * q3
    q1_q0 = 2 * q1 * q0

    return (1 - sq_q2 - sq_q3, q1_q2 - q3_q0, q1_q3 + q2_q0,
            q1_q2 + q3_q0, 1 - sq_q1 - sq_q3, q2_q3 - q1_q0,
            q1_q3 - q2_q0, q2_q3 + q1_q0, 1 - sq_q1 - sq_q2)


def as_rotation_basis(values):
    """
    Turn an orientation payload into a flat rotation basis.

    Parameters
    ----------
    values : array_like
        Rotation vector (3, 4 or 5 components), 9 row-major matrix entries
        or a 3x3 array.

    Returns
    -------
    tuple of float
        Row-major 3x3 rotation matrix (9 entries)

    Raises
    ------
    ValueError
        If the payload has an unsupported size or non-finite entries.
    """
    arr = np.asarray(values, dtype=float).ravel()

    if not np.all(np.isfinite(arr)):
        raise ValueError("Orientation values must be finite")

    if arr.size == 9:
        return tuple(float(v) for v in arr)
    if arr.size in (3, 4, 5):
        return rotation_matrix_from_vector(arr)

    raise ValueError(f"Expected 3, 4, 5 or 9 orientation values, got {arr.size}")


def azimuth_from_matrix(r):
    """
    Azimuth (rotation about -z) of a rotation basis, in radians [-pi, pi].

    Same quantity as the first orientation angle reported by mobile
    orientation APIs.
    """
    return math.atan2(r[1], r[4])


def heading_from_matrix(r):
    """
    Heading of the device x axis in the world horizontal plane, in radians
    [-pi, pi], counter-clockwise from world x.

    Same convention as the forward projection ``wx*cos(b) + wy*sin(b)``.
    For a pure rotation about z this equals ``-azimuth_from_matrix(r)``.
    """
    return math.atan2(r[3], r[0])


def rotate_to_world(r, x, y, z):
    """
    Project a device-frame vector into the world frame.

    Parameters
    ----------
    r : sequence of float
        Row-major rotation basis (9 entries)
    x, y, z : float
        Device-frame components

    Returns
    -------
    tuple of float
        (world_x, world_y, world_z)
    """
    return (r[0] * x + r[1] * y + r[2] * z,
            r[3] * x + r[4] * y + r[5] * z,
            r[6] * x + r[7] * y + r[8] * z)
