"""Small vector, quaternion and matrix helpers for scene transforms.

Quaternions are ``(w, x, y, z)`` sequences. Matrices are numpy arrays in
row-major mathematical layout: an affine "4x3" transform is a ``(3, 4)``
array whose last column is the translation.
"""

from __future__ import annotations

import math

import numpy as np


def _vector(values, size: int) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (size,):
        raise ValueError(f"expected a vector of {size} components, got shape {arr.shape}")
    return arr


def quat_to_mat3(q) -> np.ndarray:
    """Return the 3x3 rotation matrix of quaternion ``q``."""
    w, x, y, z = _vector(q, 4)
    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
        ]
    )


def quat_inverse(q) -> np.ndarray:
    """Return the multiplicative inverse of quaternion ``q``."""
    arr = _vector(q, 4)
    norm2 = float(arr @ arr)
    if norm2 == 0.0:
        raise ValueError("cannot invert a zero quaternion")
    return np.array([arr[0], -arr[1], -arr[2], -arr[3]]) / norm2


def quat_multiply(a, b) -> np.ndarray:
    """Return the Hamilton product ``a * b``."""
    aw, ax, ay, az = _vector(a, 4)
    bw, bx, by, bz = _vector(b, 4)
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by + ay * bw + az * bx - ax * bz,
            aw * bz + az * bw + ax * by - ay * bx,
        ]
    )


def quat_rotate(q, v) -> np.ndarray:
    """Rotate vector ``v`` by unit quaternion ``q``."""
    arr = _vector(q, 4)
    vec = _vector(v, 3)
    axis = arr[1:]
    uv = np.cross(axis, vec)
    uuv = np.cross(axis, uv)
    return vec + (uv * arr[0] + uuv) * 2.0


def angle_axis(angle: float, axis) -> np.ndarray:
    """Return the quaternion rotating by ``angle`` radians about ``axis``."""
    vec = _vector(axis, 3)
    half = 0.5 * float(angle)
    s = math.sin(half)
    return np.array([math.cos(half), vec[0] * s, vec[1] * s, vec[2] * s])


def pad_affine(m) -> np.ndarray:
    """Extend a ``(3, 4)`` affine matrix to ``(4, 4)`` with a ``(0, 0, 0, 1)`` row."""
    arr = np.asarray(m, dtype=np.float64)
    if arr.shape != (3, 4):
        raise ValueError(f"expected a (3, 4) matrix, got shape {arr.shape}")
    return np.vstack([arr, [0.0, 0.0, 0.0, 1.0]])


def infinite_perspective(fovy: float, aspect: float, near: float) -> np.ndarray:
    """Return a right-handed perspective projection with no far plane."""
    extent = math.tan(0.5 * float(fovy)) * float(near)
    left, right = -extent * aspect, extent * aspect
    bottom, top = -extent, extent
    result = np.zeros((4, 4))
    result[0, 0] = (2.0 * near) / (right - left)
    result[1, 1] = (2.0 * near) / (top - bottom)
    result[2, 2] = -1.0
    result[3, 2] = -1.0
    result[2, 3] = -2.0 * near
    return result