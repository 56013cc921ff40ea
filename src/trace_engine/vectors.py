"""Plain 3-vector helpers: normalization and look-rotation frames."""

from __future__ import annotations

import numpy as np

FORWARD = np.array([0.0, 0.0, 1.0])

_EPSILON = 1e-12


def as_vector(value) -> np.ndarray:
    """Coerce a 3-sequence to a finite float64 array, rejecting other shapes."""
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"expected a 3D vector, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise ValueError(f"vector has non-finite components: {vec}")
    return vec


def normalize(vec: np.ndarray) -> np.ndarray:
    """Unit vector along `vec`, or the zero vector if `vec` has no length."""
    norm = float(np.linalg.norm(vec))
    if norm < _EPSILON:
        return np.zeros(3)
    return vec / norm


def is_zero(vec: np.ndarray) -> bool:
    return float(np.dot(vec, vec)) < _EPSILON * _EPSILON


def look_rotation(forward: np.ndarray, up: np.ndarray) -> np.ndarray:
    """Orthonormal basis looking along `forward` with `up` as the up hint.

    Rows are the local x, y and z axes expressed in world coordinates, so
    ``basis @ v`` maps a world vector into the local frame.
    """
    z_axis = normalize(forward)
    x_axis = normalize(np.cross(up, z_axis))
    y_axis = np.cross(z_axis, x_axis)
    return np.vstack([x_axis, y_axis, z_axis])


def to_local(basis: np.ndarray, vec: np.ndarray) -> np.ndarray:
    return basis @ vec
