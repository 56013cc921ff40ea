"""Turn a resampled trajectory into direction tokens.

Each token describes where the motion goes next, expressed in a local frame
built from the current heading and the direction back towards the origin of
the trajectory's coordinate space (typically the performer's head). That
makes the token string independent of the gesture's absolute orientation.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from trace_engine.alphabet import DirectionAlphabet
from trace_engine.trajectory import Trajectory
from trace_engine.vectors import is_zero, look_rotation, normalize, to_local

SAMPLE_REJECTION_THRESHOLD = 0.98


def segment_direction(
    prior: np.ndarray, frm: np.ndarray, to: np.ndarray
) -> Optional[np.ndarray]:
    """Direction of the segment frm→to in the frame at `frm`.

    Returns None when the frame is ill-conditioned: the heading is (anti)parallel
    to the way back to the origin, or one of the directions has no length.
    """
    forward = normalize(frm - prior)
    back = normalize(-frm)
    step = normalize(to - frm)
    if is_zero(forward) or is_zero(back) or is_zero(step):
        return None

    if abs(float(np.dot(forward, back))) > SAMPLE_REJECTION_THRESHOLD:
        return None

    up = np.cross(forward, back)
    basis = look_rotation(forward, up)
    return to_local(basis, step)


def tokenize(trajectory: Trajectory, alphabet: DirectionAlphabet) -> list[int]:
    """One token per accepted (prior, from, to) triple, starting at the third point."""
    tokens = []
    points = trajectory.points
    for idx in range(2, len(points)):
        direction = segment_direction(points[idx - 2], points[idx - 1], points[idx])
        if direction is not None:
            tokens.append(alphabet.nearest(direction))
    return tokens
