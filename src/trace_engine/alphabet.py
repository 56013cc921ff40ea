"""Direction alphabet: well-separated unit vectors used as motion tokens.

The vectors are spread over the unit sphere by a simple repulsive relaxation
(a cheap take on the Thomson problem). Token indices end up in saved
vocabularies, so generation must be reproducible for a given seed and the
order of the vectors must never change once created.

Usage:
    alphabet = generate_alphabet()             # 128 tokens, token 0 = forward
    token = alphabet.nearest([0.1, 0.0, 0.99])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from trace_engine.vectors import FORWARD, as_vector, normalize

logger = logging.getLogger("trace_engine.alphabet")

DEFAULT_SIZE = 128
DEFAULT_ITERATIONS = 256
DEFAULT_START_STEP = 0.1
DEFAULT_END_STEP = 0.001
DEFAULT_SEED = 11311

_EPSILON_SQUARED = 1e-3 * 1e-3


@dataclass(frozen=True)
class DirectionAlphabet:
    """An ordered, fixed set of unit vectors.

    The first `pinned` vectors were supplied by the caller and left untouched
    by the relaxation.
    """

    vectors: np.ndarray  # shape (N, 3), read-only
    pinned: int = 0

    def __post_init__(self):
        vectors = np.array(self.vectors, dtype=np.float64)
        if vectors.ndim != 2 or vectors.shape[1] != 3 or len(vectors) == 0:
            raise ValueError(f"alphabet must be a non-empty (N, 3) array, got {vectors.shape}")
        if not np.all(np.isfinite(vectors)):
            raise ValueError("alphabet vectors must be finite")
        if np.any(np.linalg.norm(vectors, axis=1) < 1e-9):
            raise ValueError("alphabet vectors must be non-zero")
        if not 0 <= self.pinned <= len(vectors):
            raise ValueError(f"pinned count {self.pinned} out of range")
        vectors.flags.writeable = False
        object.__setattr__(self, "vectors", vectors)

    def __len__(self) -> int:
        return len(self.vectors)

    def __getitem__(self, index: int) -> np.ndarray:
        return self.vectors[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, DirectionAlphabet):
            return NotImplemented
        return np.array_equal(self.vectors, other.vectors)

    def __hash__(self) -> int:
        return hash(self.vectors.tobytes())

    def nearest(self, direction) -> int:
        """Index of the token with the highest cosine similarity.

        `np.argmax` returns the first maximum, so ties go to the lowest index.
        """
        scores = self.vectors @ as_vector(direction)
        return int(np.argmax(scores))

    def to_list(self) -> list[list[float]]:
        return self.vectors.tolist()

    @classmethod
    def from_list(cls, data: Iterable[Sequence[float]], pinned: int = 0) -> DirectionAlphabet:
        return cls(vectors=np.array(list(data), dtype=np.float64), pinned=pinned)


def _lerp(start: float, end: float, t: float) -> float:
    return (1.0 - t) * start + t * end


def generate_alphabet(
    size: int = DEFAULT_SIZE,
    iterations: int = DEFAULT_ITERATIONS,
    start_step: float = DEFAULT_START_STEP,
    end_step: float = DEFAULT_END_STEP,
    seed: Optional[int] = DEFAULT_SEED,
    pinned: Sequence[Sequence[float]] = (FORWARD,),
) -> DirectionAlphabet:
    """Generate `size` well-separated unit vectors.

    Args:
        size: Number of tokens.
        iterations: Relaxation passes over the non-pinned vectors.
        start_step: Step size of the first pass.
        end_step: Step size of the last pass (linearly interpolated between).
        seed: RNG seed; the default keeps token indices stable across runs.
        pinned: Vectors placed verbatim at the lowest indices.

    Returns:
        The generated DirectionAlphabet.
    """
    if size < 1:
        raise ValueError("alphabet size must be positive")
    if len(pinned) > size:
        raise ValueError(f"{len(pinned)} pinned vectors do not fit in an alphabet of {size}")
    if iterations < 0:
        raise ValueError("iterations must be non-negative")

    rng = np.random.default_rng(seed)
    vectors = rng.random((size, 3)) - 0.5
    vectors /= np.linalg.norm(vectors, axis=1, keepdims=True)

    for idx, fixed in enumerate(pinned):
        vectors[idx] = as_vector(fixed)

    n_pinned = len(pinned)
    for iteration in range(iterations):
        t = iteration / (iterations - 1) if iterations > 1 else 0.0
        step = _lerp(start_step, end_step, t)

        for idx in range(n_pinned, size):
            here = vectors[idx]
            diffs = here - vectors
            sq = np.einsum("ij,ij->i", diffs, diffs)
            apart = sq >= _EPSILON_SQUARED
            # d / |d| / |d|^2: inverse-square push along the separation
            force = (diffs[apart] / (np.sqrt(sq[apart]) * sq[apart])[:, None]).sum(axis=0)
            vectors[idx] = normalize(here + step * force)

    logger.debug(
        "Generated %d-token alphabet (%d pinned, %d iterations, seed=%s)",
        size, n_pinned, iterations, seed,
    )
    return DirectionAlphabet(vectors=vectors, pinned=n_pinned)
