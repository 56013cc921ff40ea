"""Multi-resolution trajectory descriptors.

A descriptor holds one token string per resolution level. Levels are built
by halving from the finest resolution (32 points by default) while the
resolution stays above 2, and are stored finest first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from trace_engine.alphabet import DirectionAlphabet
from trace_engine.levenshtein import Alphabet, TokenString
from trace_engine.profiler import PipelineProfiler
from trace_engine.tokenizer import tokenize
from trace_engine.trajectory import Trajectory

FINEST_RESOLUTION = 32

WEIGHTED = "weighted"
UNIFORM = "uniform"
LEVEL_WEIGHTINGS = (WEIGHTED, UNIFORM)


class DescriptorMismatchError(ValueError):
    """Raised when two descriptors have different level layouts."""


def resolutions(finest: int = FINEST_RESOLUTION) -> list[int]:
    """Resolutions visited by the descriptor, e.g. [32, 16, 8, 4]."""
    levels = []
    res = finest
    while res > 2:
        levels.append(res)
        res //= 2
    return levels


def level_weights(count: int, weighting: str = WEIGHTED) -> list[float]:
    """Per-level weights, finest level first.

    "weighted" doubles the weight at each coarser level so that agreement on
    the overall shape counts more than agreement on fine detail.
    """
    if weighting == WEIGHTED:
        return [float(2 ** idx) for idx in range(count)]
    if weighting == UNIFORM:
        return [1.0] * count
    raise ValueError(f"unknown level weighting {weighting!r}; expected one of {LEVEL_WEIGHTINGS}")


@dataclass(eq=False)
class Descriptor:
    """Token strings for one trajectory, one per resolution level."""

    levels: list[TokenString]

    def __len__(self) -> int:
        return len(self.levels)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Descriptor):
            return NotImplemented
        return self.levels == other.levels

    def distance(self, other: Descriptor, weighting: str = WEIGHTED) -> float:
        if len(self.levels) != len(other.levels):
            raise DescriptorMismatchError(
                f"descriptor level counts differ: {len(self.levels)} vs {len(other.levels)}"
            )
        weights = level_weights(len(self.levels), weighting)
        return sum(
            weight * mine.distance(theirs)
            for weight, mine, theirs in zip(weights, self.levels, other.levels)
        )

    def to_lists(self) -> list[list[int]]:
        return [list(level.symbols) for level in self.levels]

    @classmethod
    def from_lists(cls, levels: Sequence[Sequence[int]], alphabet: Alphabet) -> Descriptor:
        return cls([TokenString(level, alphabet) for level in levels])


def build_descriptor(
    trajectory: Trajectory,
    directions: DirectionAlphabet,
    alphabet: Alphabet,
    finest: int = FINEST_RESOLUTION,
    profiler: Optional[PipelineProfiler] = None,
) -> Descriptor:
    """Resample and tokenize `trajectory` at every descriptor resolution.

    With a profiler, each level reports one `resample` and one `tokenize` timing.
    """
    levels = []
    for res in resolutions(finest):
        if profiler is None:
            tokens = tokenize(trajectory.resample(res), directions)
        else:
            with profiler.stage("resample"):
                resampled = trajectory.resample(res)
            with profiler.stage("tokenize"):
                tokens = tokenize(resampled, directions)
        levels.append(TokenString(tokens, alphabet))
    return Descriptor(levels)
