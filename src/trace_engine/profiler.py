"""Timing for the stages of the recognition pipeline.

A Vocabulary given a profiler reports `resample` and `tokenize` once per
descriptor level; callers time their own blocks (`build`, `classify`, ...)
with `stage()`.

    profiler = PipelineProfiler()
    vocab = Vocabulary(profiler=profiler)
    with profiler.stage("classify"):
        vocab.classify(trajectory)
    for stats in profiler.summary().values():
        print(stats.name, stats.mean_ms)
"""

from __future__ import annotations

import time
from collections import Counter, defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np


@dataclass
class StageStats:
    """Timings of one stage over the retained window."""
    name: str
    calls: int  # all calls since the last reset, not just the window
    mean_ms: float
    p95_ms: float
    max_ms: float
    total_ms: float


class PipelineProfiler:
    """Collects wall-clock durations per named stage."""

    def __init__(self, window_size: int = 256):
        self._durations: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=window_size))
        self._calls: Counter = Counter()

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block, including blocks that raise."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - t0) * 1000.0)

    def record(self, name: str, elapsed_ms: float):
        self._durations[name].append(elapsed_ms)
        self._calls[name] += 1

    def stats(self, name: str) -> Optional[StageStats]:
        durations = self._durations.get(name)
        if not durations:
            return None
        window = np.fromiter(durations, dtype=np.float64)
        return StageStats(
            name=name,
            calls=self._calls[name],
            mean_ms=float(window.mean()),
            p95_ms=float(np.percentile(window, 95)),
            max_ms=float(window.max()),
            total_ms=float(window.sum()),
        )

    def summary(self) -> dict[str, StageStats]:
        """Stats of every timed stage, most expensive first."""
        all_stats = [self.stats(name) for name in self._durations]
        all_stats = [s for s in all_stats if s is not None]
        all_stats.sort(key=lambda s: s.total_ms, reverse=True)
        return {s.name: s for s in all_stats}

    def reset(self):
        self._durations.clear()
        self._calls.clear()
