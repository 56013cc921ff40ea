"""Weighted Levenshtein distance over arbitrary alphabets.

Wagner-Fischer dynamic program with per-symbol insertion and deletion costs
and a symmetric substitution cost matrix. Only the final distance is
computed; the edit path is never reconstructed.

Usage:
    alphabet = Alphabet.basic("abcdefghijklmnopqrstuvwxyz")
    kitten = TokenString("kitten", alphabet)
    kitten.distance(TokenString("sitting", alphabet))   # 3.0
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Sequence

import numpy as np

from trace_engine.alphabet import DirectionAlphabet


class AlphabetMismatchError(ValueError):
    """Raised when comparing strings built over different alphabets."""


class Alphabet:
    """Symbols plus the cost of inserting, deleting and substituting them."""

    def __init__(
        self,
        symbols: Iterable[Hashable],
        insertion_cost: Callable[[Hashable], float],
        deletion_cost: Callable[[Hashable], float],
        substitution_cost: Callable[[Hashable, Hashable], float],
    ):
        self.symbols: list = list(symbols)
        self._index: dict = {}
        for idx, symbol in enumerate(self.symbols):
            if symbol in self._index:
                raise ValueError(f"duplicate symbol in alphabet: {symbol!r}")
            self._index[symbol] = idx

        n = len(self.symbols)
        self.insertion_costs = np.array([insertion_cost(s) for s in self.symbols], dtype=np.float64)
        self.deletion_costs = np.array([deletion_cost(s) for s in self.symbols], dtype=np.float64)

        # Only the upper triangle is evaluated; the matrix is mirrored.
        sub = np.zeros((n, n), dtype=np.float64)
        for i in range(n):
            for j in range(i + 1, n):
                sub[i, j] = sub[j, i] = substitution_cost(self.symbols[i], self.symbols[j])
        self.substitution_costs = sub

        for arr in (self.insertion_costs, self.deletion_costs, self.substitution_costs):
            arr.flags.writeable = False

    @classmethod
    def basic(cls, symbols: Iterable[Hashable]) -> Alphabet:
        """Classic Levenshtein: every edit costs 1, an exact match costs 0."""
        return cls(symbols, lambda _: 1.0, lambda _: 1.0, lambda a, b: 0.0 if a == b else 1.0)

    @classmethod
    def from_directions(
        cls,
        directions: DirectionAlphabet,
        known_sequences: Sequence[Sequence[int]] = (),
    ) -> Alphabet:
        """Cost alphabet over token indices of a DirectionAlphabet.

        Substituting two tokens costs their cosine distance (0 for the same
        direction, 2 for opposite ones). Insertion and deletion cost the
        reciprocal of a token's expected count per known sequence, so tokens
        that show up often are cheap to add or drop; unseen tokens cost 1.
        """
        vectors = directions.vectors
        counts = np.zeros(len(vectors), dtype=np.float64)
        for seq in known_sequences:
            for token in seq:
                counts[token] += 1

        expected = np.ones(len(vectors), dtype=np.float64)
        if known_sequences:
            seen = counts > 0
            expected[seen] = counts[seen] / len(known_sequences)

        return cls(
            range(len(vectors)),
            lambda idx: 1.0 / expected[idx],
            lambda idx: 1.0 / expected[idx],
            lambda a, b: 1.0 - float(np.dot(vectors[a], vectors[b])),
        )

    def __len__(self) -> int:
        return len(self.symbols)

    def index_of(self, symbol: Hashable) -> int:
        try:
            return self._index[symbol]
        except KeyError:
            raise KeyError(f"symbol {symbol!r} is not in the alphabet") from None

    def matches(self, other: Alphabet) -> bool:
        """True for the same alphabet instance or an identical definition."""
        if self is other:
            return True
        return (
            self.symbols == other.symbols
            and np.array_equal(self.insertion_costs, other.insertion_costs)
            and np.array_equal(self.deletion_costs, other.deletion_costs)
            and np.array_equal(self.substitution_costs, other.substitution_costs)
        )


class TokenString:
    """A sequence of symbols bound to the alphabet it was built from."""

    def __init__(self, symbols: Iterable[Hashable], alphabet: Alphabet):
        self.alphabet = alphabet
        self.symbols = list(symbols)
        self.indices = [alphabet.index_of(s) for s in self.symbols]

    def __len__(self) -> int:
        return len(self.indices)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TokenString):
            return NotImplemented
        return self.indices == other.indices and self.alphabet.matches(other.alphabet)

    def __repr__(self) -> str:
        return f"TokenString({self.symbols!r})"

    def distance(self, other: TokenString) -> float:
        return edit_distance(self, other)


def edit_distance(source: TokenString, target: TokenString) -> float:
    """Minimum total cost of editing `source` into `target`.

    Uses O(N*M) DP over an (N+1, M+1) cost matrix.
    """
    if not source.alphabet.matches(target.alphabet):
        raise AlphabetMismatchError("cannot compare strings built over different alphabets")

    alphabet = source.alphabet
    ins = alphabet.insertion_costs
    dele = alphabet.deletion_costs
    sub = alphabet.substitution_costs
    a, b = source.indices, target.indices
    n, m = len(a), len(b)

    cost = np.zeros((n + 1, m + 1), dtype=np.float64)
    for i in range(n):
        cost[i + 1, 0] = cost[i, 0] + dele[a[i]]
    for j in range(m):
        cost[0, j + 1] = cost[0, j] + ins[b[j]]

    for i in range(1, n + 1):
        from_token = a[i - 1]
        sub_row = sub[from_token]
        delete = dele[from_token]
        for j in range(1, m + 1):
            to_token = b[j - 1]
            cost[i, j] = min(
                cost[i, j - 1] + ins[to_token],
                cost[i - 1, j] + delete,
                cost[i - 1, j - 1] + sub_row[to_token],
            )

    return float(cost[n, m])
