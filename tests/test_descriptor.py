"""Tests for multi-resolution descriptors."""

import pytest

from trace_engine.descriptor import (
    UNIFORM,
    WEIGHTED,
    Descriptor,
    DescriptorMismatchError,
    build_descriptor,
    level_weights,
    resolutions,
)
from trace_engine.levenshtein import Alphabet
from trace_engine.synthetic import circle, line
from trace_engine.trajectory import Trajectory


@pytest.fixture
def binary():
    return Alphabet.basic([0, 1])


class TestLevels:
    def test_default_resolutions(self):
        assert resolutions() == [32, 16, 8, 4]

    def test_small_resolutions(self):
        assert resolutions(8) == [8, 4]
        assert resolutions(3) == [3]
        assert resolutions(2) == []

    def test_odd_resolution_halves_down(self):
        assert resolutions(20) == [20, 10, 5]

    def test_weighted(self):
        assert level_weights(4, WEIGHTED) == [1.0, 2.0, 4.0, 8.0]

    def test_uniform(self):
        assert level_weights(3, UNIFORM) == [1.0, 1.0, 1.0]

    def test_unknown_weighting(self):
        with pytest.raises(ValueError):
            level_weights(4, "quadratic")


class TestDistance:
    def test_weighted_sum(self, binary):
        a = Descriptor.from_lists([[0, 0], [0]], binary)
        b = Descriptor.from_lists([[1, 0], [1]], binary)
        assert a.distance(b) == 3.0
        assert a.distance(b, WEIGHTED) == 3.0

    def test_uniform_sum(self, binary):
        a = Descriptor.from_lists([[0, 0], [0]], binary)
        b = Descriptor.from_lists([[1, 0], [1]], binary)
        assert a.distance(b, UNIFORM) == 2.0

    def test_coarse_levels_weigh_more(self, binary):
        base = Descriptor.from_lists([[0, 0], [0]], binary)
        fine_diff = Descriptor.from_lists([[1, 0], [0]], binary)
        coarse_diff = Descriptor.from_lists([[0, 0], [1]], binary)
        assert base.distance(coarse_diff) > base.distance(fine_diff)

    def test_level_count_mismatch(self, binary):
        a = Descriptor.from_lists([[0], [0]], binary)
        b = Descriptor.from_lists([[0]], binary)
        with pytest.raises(DescriptorMismatchError):
            a.distance(b)

    def test_mismatch_is_value_error(self):
        assert issubclass(DescriptorMismatchError, ValueError)


class TestDescriptor:
    def test_lists_round_trip(self, binary):
        levels = [[0, 1, 1], [1], []]
        d = Descriptor.from_lists(levels, binary)
        assert d.to_lists() == levels
        assert Descriptor.from_lists(d.to_lists(), binary) == d

    def test_equality(self, binary):
        a = Descriptor.from_lists([[0, 1]], binary)
        assert a == Descriptor.from_lists([[0, 1]], binary)
        assert a != Descriptor.from_lists([[1, 0]], binary)

    def test_build_levels(self, small_directions):
        alphabet = Alphabet.from_directions(small_directions)
        traj = Trajectory.from_points(circle(), 0.01)
        d = build_descriptor(traj, small_directions, alphabet)
        assert len(d) == 4
        lengths = [len(level) for level in d.levels]
        assert lengths == sorted(lengths, reverse=True)
        assert lengths[0] > lengths[-1]

    def test_build_custom_finest(self, small_directions):
        alphabet = Alphabet.from_directions(small_directions)
        traj = Trajectory.from_points(circle(), 0.01)
        assert len(build_descriptor(traj, small_directions, alphabet, finest=16)) == 3

    def test_line_is_all_forward(self, small_directions):
        alphabet = Alphabet.from_directions(small_directions)
        traj = Trajectory.from_points(line(), 0.01)
        d = build_descriptor(traj, small_directions, alphabet)
        for level in d.to_lists():
            assert level
            assert set(level) == {0}

    def test_self_distance_zero(self, small_directions):
        alphabet = Alphabet.from_directions(small_directions)
        traj = Trajectory.from_points(circle(), 0.01)
        d = build_descriptor(traj, small_directions, alphabet)
        assert d.distance(d) == 0.0

    def test_scale_changes_little(self, small_directions):
        alphabet = Alphabet.from_directions(small_directions)

        def describe(points):
            return build_descriptor(Trajectory.from_points(points, 0.01), small_directions, alphabet)

        small = describe(circle(radius=0.2))
        large = describe(circle(radius=0.3))
        straight = describe(line())
        assert small.distance(large) < small.distance(straight)
