"""Tests for arc-length trajectory building and resampling."""

import numpy as np
import pytest

from trace_engine.synthetic import circle
from trace_engine.trajectory import Trajectory, TrajectoryBuilder, resample


def straight(n=33, step=0.01):
    """n points along +x, `step` apart."""
    return np.column_stack([np.arange(n) * step, np.zeros(n), np.zeros(n)])


def spacings(trajectory):
    return np.linalg.norm(np.diff(trajectory.points, axis=0), axis=1)


class TestBuilder:
    def test_first_point_kept(self):
        builder = TrajectoryBuilder(0.01)
        assert builder.add([0.1, 0.2, 0.3]) == 1
        np.testing.assert_allclose(builder.finalize().points, [[0.1, 0.2, 0.3]])

    def test_interpolates_long_step(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([0, 0, 0])
        assert builder.add([0.035, 0, 0]) == 3
        traj = builder.finalize()
        np.testing.assert_allclose(traj.points[:, 0], [0.0, 0.01, 0.02, 0.03], atol=1e-12)

    def test_short_step_emits_nothing(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([0, 0, 0])
        assert builder.add([0.004, 0, 0]) == 0
        assert len(builder) == 1

    def test_short_steps_accumulate(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([0, 0, 0])
        builder.add([0.006, 0, 0])
        assert builder.add([0.012, 0, 0]) == 1
        np.testing.assert_allclose(builder.finalize().points[-1], [0.01, 0, 0], atol=1e-12)

    def test_repeated_point(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([0.1, 0, 0])
        assert builder.add([0.1, 0, 0]) == 0

    def test_far_from_origin_terminates(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([1e17, 0, 0])
        # float spacing near 1e17 is 16, far coarser than the segment length
        emitted = builder.add([1e17 + 1000.0, 0, 0])
        assert emitted >= 0
        assert len(builder) <= 1 + 1000

    def test_reference_is_subtracted(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([1.0, 1.0, 1.5], reference=[1.0, 1.0, 1.0])
        np.testing.assert_allclose(builder.finalize().points, [[0, 0, 0.5]])

    def test_points_evenly_spaced(self):
        traj = Trajectory.from_points(circle(), 0.01)
        np.testing.assert_allclose(spacings(traj), 0.01, rtol=1e-9)

    def test_rejects_bad_segment_length(self):
        with pytest.raises(ValueError):
            TrajectoryBuilder(0.0)
        with pytest.raises(ValueError):
            TrajectoryBuilder(-0.01)

    def test_rejects_bad_point(self):
        builder = TrajectoryBuilder(0.01)
        with pytest.raises(ValueError):
            builder.add([1.0, 2.0])


class TestFinalize:
    def test_idempotent(self):
        builder = TrajectoryBuilder(0.01)
        builder.add([0, 0, 0])
        assert builder.finalize() is builder.finalize()
        assert builder.finalized

    def test_add_after_finalize(self):
        builder = TrajectoryBuilder(0.01)
        builder.finalize()
        with pytest.raises(RuntimeError):
            builder.add([0, 0, 0])

    def test_context_manager_finalizes(self):
        with TrajectoryBuilder(0.01) as builder:
            builder.add([0, 0, 0])
            builder.add([0.05, 0, 0])
        assert builder.finalized
        assert len(builder.finalize()) == 6

    def test_context_manager_propagates_errors(self):
        with pytest.raises(KeyError):
            with TrajectoryBuilder(0.01) as builder:
                raise KeyError("boom")
        assert builder.finalized

    def test_empty_builder(self):
        traj = TrajectoryBuilder(0.01).finalize()
        assert len(traj) == 0
        assert traj.points.shape == (0, 3)
        assert traj.length == 0.0


class TestTrajectory:
    def test_read_only(self):
        traj = Trajectory(straight(), 0.01)
        with pytest.raises(ValueError):
            traj.points[0, 0] = 1.0

    def test_copies_input(self):
        pts = straight()
        traj = Trajectory(pts, 0.01)
        pts[0, 0] = 5.0
        assert traj.points[0, 0] == 0.0

    def test_nominal_length(self):
        traj = Trajectory(straight(33), 0.01)
        assert traj.length == pytest.approx(0.33)

    def test_sequence_protocol(self):
        traj = Trajectory(straight(5), 0.01)
        assert len(traj) == 5
        assert len(list(traj)) == 5
        np.testing.assert_allclose(traj[2], [0.02, 0, 0])


class TestResample:
    def test_coarser_count(self):
        traj = Trajectory(straight(33), 0.01)
        coarse = resample(traj, 16)
        assert len(coarse) == 16
        assert coarse.segment_length == pytest.approx(0.33 / 16)
        np.testing.assert_allclose(spacings(coarse), 0.33 / 16, rtol=1e-9)

    def test_same_count_keeps_points(self):
        traj = Trajectory(straight(33), 0.01)
        same = traj.resample(33)
        assert len(same) == 33
        np.testing.assert_allclose(same.points, traj.points, atol=1e-12)

    def test_finer_count(self):
        traj = Trajectory(straight(33), 0.01)
        assert len(traj.resample(32)) == 32

    def test_scale_invariant_count(self):
        small = Trajectory.from_points(circle(radius=0.1), 0.01)
        large = Trajectory.from_points(circle(radius=0.3), 0.01)
        assert abs(len(small.resample(16)) - len(large.resample(16))) <= 1

    def test_tiny_trajectory_unchanged(self):
        traj = Trajectory(np.array([[0.0, 0.0, 0.5]]), 0.01)
        assert resample(traj, 8) is traj
        empty = TrajectoryBuilder(0.01).finalize()
        assert resample(empty, 8) is empty

    def test_invalid_target(self):
        traj = Trajectory(straight(), 0.01)
        with pytest.raises(ValueError):
            traj.resample(0)
