"""Rotation, quaternion and skew-matrix helpers shared by the controllers.

Quaternions are 4-vectors ordered ``[w, x, y, z]``.
"""

import math

import numpy as np


def _vector(value, size, name):
    arr = np.asarray(value, dtype=float)
    if arr.shape != (size,):
        raise ValueError(f"{name} must have shape ({size},), got {arr.shape}")
    return arr


def _matrix3(value, name):
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3, 3):
        raise ValueError(f"{name} must have shape (3, 3), got {arr.shape}")
    return arr


def matrix_hat(v):
    """Return the skew-symmetric matrix ``[v]x`` with ``[v]x @ w == v x w``."""
    x, y, z = _vector(v, 3, "v")
    return np.array(
        [
            [0.0, -z, y],
            [z, 0.0, -x],
            [-y, x, 0.0],
        ]
    )


def matrix_hat_inv(m):
    """Extract the axial vector ``(m[1, 2], m[2, 0], m[0, 1])`` of a 3x3 matrix.

    This is the sign convention the attitude error terms are built on: for a
    skew-symmetric matrix ``matrix_hat(v)`` it yields ``-v``.
    """
    mat = _matrix3(m, "m")
    return np.array([mat[1, 2], mat[2, 0], mat[0, 1]])


def quat_multiplication(q, p):
    """Hamilton product ``q * p`` of two ``[w, x, y, z]`` quaternions."""
    q0, q1, q2, q3 = _vector(q, 4, "q")
    p0, p1, p2, p3 = _vector(p, 4, "p")
    return np.array(
        [
            p0 * q0 - p1 * q1 - p2 * q2 - p3 * q3,
            p0 * q1 + p1 * q0 - p2 * q3 + p3 * q2,
            p0 * q2 + p1 * q3 + p2 * q0 - p3 * q1,
            p0 * q3 - p1 * q2 + p2 * q1 + p3 * q0,
        ]
    )


def quat2rot_matrix(q):
    """Rotation matrix of a ``[w, x, y, z]`` quaternion."""
    w, x, y, z = _vector(q, 4, "q")
    return np.array(
        [
            [w * w + x * x - y * y - z * z, 2 * x * y - 2 * w * z, 2 * w * y + 2 * x * z],
            [2 * w * z + 2 * x * y, w * w - x * x + y * y - z * z, 2 * y * z - 2 * w * x],
            [2 * x * z - 2 * w * y, 2 * w * x + 2 * y * z, w * w - x * x - y * y + z * z],
        ]
    )


def rot2quaternion(r):
    """Quaternion ``[w, x, y, z]`` of a rotation matrix."""
    m = _matrix3(r, "r")
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        quat = [
            0.25 * s,
            (m[2, 1] - m[1, 2]) / s,
            (m[0, 2] - m[2, 0]) / s,
            (m[1, 0] - m[0, 1]) / s,
        ]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
        quat = [
            (m[2, 1] - m[1, 2]) / s,
            0.25 * s,
            (m[0, 1] + m[1, 0]) / s,
            (m[0, 2] + m[2, 0]) / s,
        ]
    elif m[1, 1] > m[2, 2]:
        s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
        quat = [
            (m[0, 2] - m[2, 0]) / s,
            (m[0, 1] + m[1, 0]) / s,
            0.25 * s,
            (m[1, 2] + m[2, 1]) / s,
        ]
    else:
        s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
        quat = [
            (m[1, 0] - m[0, 1]) / s,
            (m[0, 2] + m[2, 0]) / s,
            (m[1, 2] + m[2, 1]) / s,
            0.25 * s,
        ]
    return np.array(quat)