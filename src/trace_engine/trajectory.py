"""Arc-length resampled 3D trajectories.

A Trajectory is a polyline whose consecutive points sit exactly one
`segment_length` apart. Raw samples are fed to a TrajectoryBuilder, which
inserts linear interpolants as the motion progresses; resampling re-walks an
existing trajectory with a coarser spacing so that gestures of any size or
speed end up with the same point density.

Usage:
    with TrajectoryBuilder(segment_length=0.01) as builder:
        for hand, head in samples:
            builder.add(hand, reference=head)
    trajectory = builder.finalize()
    coarse = trajectory.resample(16)
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

import numpy as np

from trace_engine.vectors import as_vector

DEFAULT_SEGMENT_LENGTH = 0.01

# Accept interpolation parameters a hair above 1 so float error on an
# exactly-spaced point does not drop it.
_T_TOLERANCE = 1e-9


class Trajectory:
    """An immutable, evenly spaced polyline."""

    def __init__(self, points: np.ndarray, segment_length: float):
        pts = np.array(points, dtype=np.float64).reshape(-1, 3)
        pts.flags.writeable = False
        self._points = pts
        self.segment_length = float(segment_length)

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def length(self) -> float:
        """Nominal length: point count times segment length."""
        return len(self._points) * self.segment_length

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._points)

    def __getitem__(self, index: int) -> np.ndarray:
        return self._points[index]

    def __repr__(self) -> str:
        return f"Trajectory(points={len(self)}, segment_length={self.segment_length:g})"

    def resample(self, target_count: int) -> Trajectory:
        return resample(self, target_count)

    @classmethod
    def from_points(
        cls,
        points: Iterable,
        segment_length: float = DEFAULT_SEGMENT_LENGTH,
    ) -> Trajectory:
        """Build a trajectory from raw offset points in one go."""
        builder = TrajectoryBuilder(segment_length)
        for pt in points:
            builder.add(pt)
        return builder.finalize()


class TrajectoryBuilder:
    """Accumulates raw points into a Trajectory.

    The first point is kept as-is. Every later raw point emits zero or more
    points spaced `segment_length` apart along the straight line from the last
    emitted point towards it.
    """

    def __init__(self, segment_length: float = DEFAULT_SEGMENT_LENGTH):
        if not segment_length > 0:
            raise ValueError(f"segment_length must be positive, got {segment_length}")
        self.segment_length = float(segment_length)
        self._points: list[np.ndarray] = []
        self._trajectory: Optional[Trajectory] = None

    def __len__(self) -> int:
        return len(self._points)

    @property
    def finalized(self) -> bool:
        return self._trajectory is not None

    def add(self, point, reference=None) -> int:
        """Add a raw sample, optionally relative to a reference point.

        Returns:
            Number of trajectory points emitted for this sample.
        """
        if self._trajectory is not None:
            raise RuntimeError("cannot add points to a finalized trajectory")

        pt = as_vector(point)
        if reference is not None:
            pt = pt - as_vector(reference)

        if not self._points:
            self._points.append(pt)
            return 1

        emitted = 0
        while True:
            last = self._points[-1]
            dist = float(np.linalg.norm(pt - last))
            if dist <= 0.0:
                break
            t = self.segment_length / dist
            if t > 1.0 + _T_TOLERANCE:
                break
            nxt = (1.0 - t) * last + t * pt
            # steps below float spacing at this magnitude make no progress
            if float(np.linalg.norm(pt - nxt)) >= dist:
                break
            self._points.append(nxt)
            emitted += 1
        return emitted

    def extend(self, points: Iterable) -> int:
        return sum(self.add(pt) for pt in points)

    def finalize(self) -> Trajectory:
        """Freeze the accumulated points. Repeated calls return the same object."""
        if self._trajectory is None:
            self._trajectory = Trajectory(np.array(self._points).reshape(-1, 3), self.segment_length)
        return self._trajectory

    def __enter__(self) -> TrajectoryBuilder:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.finalize()
        return False


def resample(trajectory: Trajectory, target_count: int) -> Trajectory:
    """Re-walk `trajectory` with spacing length / target_count.

    Trajectories with fewer than two points have nothing to re-space and are
    returned unchanged.
    """
    if target_count < 1:
        raise ValueError(f"target_count must be at least 1, got {target_count}")
    if len(trajectory) < 2:
        return trajectory

    builder = TrajectoryBuilder(trajectory.length / target_count)
    for pt in trajectory:
        builder.add(pt)
    return builder.finalize()
