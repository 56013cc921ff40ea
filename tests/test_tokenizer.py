"""Tests for direction tokenization."""

import math

import numpy as np
import pytest

from trace_engine.synthetic import circle, line
from trace_engine.tokenizer import segment_direction, tokenize
from trace_engine.trajectory import Trajectory


def rotation_z(degrees):
    a = math.radians(degrees)
    return np.array([
        [math.cos(a), -math.sin(a), 0.0],
        [math.sin(a), math.cos(a), 0.0],
        [0.0, 0.0, 1.0],
    ])


class TestSegmentDirection:
    def test_straight_ahead_is_forward(self):
        frm = np.array([0.0, 0.2, 0.5])
        prior = frm - [0.01, 0, 0]
        to = frm + [0.01, 0, 0]
        np.testing.assert_allclose(segment_direction(prior, frm, to), [0, 0, 1], atol=1e-12)

    def test_right_angle_turn(self):
        frm = np.array([0.0, 0.2, 0.5])
        prior = frm - [0.01, 0, 0]
        to = frm + [0, 0.01, 0]
        local = segment_direction(prior, frm, to)
        assert abs(local[2]) < 1e-12
        assert np.linalg.norm(local) == pytest.approx(1.0)

    def test_heading_towards_origin_rejected(self):
        prior = np.array([0.0, 0.0, 0.52])
        frm = np.array([0.0, 0.0, 0.51])
        to = np.array([0.0, 0.0, 0.5])
        assert segment_direction(prior, frm, to) is None

    def test_heading_away_from_origin_rejected(self):
        prior = np.array([0.0, 0.0, 0.5])
        frm = np.array([0.0, 0.0, 0.51])
        to = np.array([0.01, 0.0, 0.52])
        assert segment_direction(prior, frm, to) is None

    def test_degenerate_segments_rejected(self):
        frm = np.array([0.0, 0.2, 0.5])
        assert segment_direction(frm, frm, frm + [0.01, 0, 0]) is None
        assert segment_direction(frm - [0.01, 0, 0], frm, frm) is None

    def test_at_origin_rejected(self):
        origin = np.zeros(3)
        assert segment_direction(origin - [0.01, 0, 0], origin, [0.01, 0, 0]) is None


class TestTokenize:
    def test_straight_line_all_forward(self, small_directions):
        traj = Trajectory(line(samples=20), 0.01)
        tokens = tokenize(traj, small_directions)
        assert tokens == [0] * 18

    def test_radial_line_fully_rejected(self, small_directions):
        pts = np.column_stack([np.zeros(20), np.zeros(20), np.linspace(0.1, 0.5, 20)])
        assert tokenize(Trajectory(pts, 0.01), small_directions) == []

    def test_too_short(self, small_directions):
        assert tokenize(Trajectory(np.zeros((0, 3)), 0.01), small_directions) == []
        assert tokenize(Trajectory(line(samples=2), 0.01), small_directions) == []

    def test_tokens_in_range(self, small_directions):
        traj = Trajectory.from_points(circle(), 0.01).resample(32)
        tokens = tokenize(traj, small_directions)
        assert tokens
        assert all(0 <= t < len(small_directions) for t in tokens)

    def test_rotation_about_origin_invariant(self, small_directions):
        traj = Trajectory.from_points(circle(), 0.01).resample(16)
        rotated = Trajectory(traj.points @ rotation_z(37.0).T, traj.segment_length)
        assert tokenize(rotated, small_directions) == tokenize(traj, small_directions)
