"""Capture-side facade: turn live point streams into recognition results.

A capture loop opens a trace, feeds it hand positions relative to a moving
reference (usually the head), and gets a RecognitionResult back once the
trace closes.

Usage:
    tracer = Tracer(vocabulary_path="vocabulary.json")

    with tracer.trace() as trace:
        while trigger_held():
            trace.add_point(hand_position(), head_position())

    if trace.result.recognized:
        print("Traced:", trace.result.name)

    # Teaching new gestures:
    tracer.train(trajectory, "fireball")
    tracer.save()
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from trace_engine.config import TraceConfig
from trace_engine.metrics import MetricsCollector
from trace_engine.trajectory import Trajectory, TrajectoryBuilder
from trace_engine.vocabulary import RecognitionResult, Vocabulary

logger = logging.getLogger("trace_engine.tracer")


class TraceSession:
    """One in-progress gesture. Finalized exactly once when closed."""

    def __init__(self, tracer: Tracer, segment_length: float):
        self._tracer = tracer
        self._builder = TrajectoryBuilder(segment_length)
        self.trajectory: Optional[Trajectory] = None
        self.result: Optional[RecognitionResult] = None

    def add_point(self, point, reference=None) -> int:
        return self._builder.add(point, reference)

    def finish(self) -> RecognitionResult:
        """Finalize and classify. Later calls return the first result."""
        if self.result is None:
            self.trajectory = self._builder.finalize()
            self.result = self._tracer.complete(self.trajectory)
        return self.result

    def abort(self):
        """Finalize without classifying."""
        if self.trajectory is None:
            self.trajectory = self._builder.finalize()

    def __enter__(self) -> TraceSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.finish()
        else:
            self.abort()
        return False


class Tracer:
    """Owns a vocabulary and classifies completed traces against it.

    With `auto_learn`, every completed trace is also learned: recognized
    traces join their class and unrecognized ones start a new class named by
    a running counter.
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        config: Optional[TraceConfig] = None,
        vocabulary_path: Optional[str | Path] = None,
        auto_learn: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.vocabulary_path = Path(vocabulary_path) if vocabulary_path else None
        if vocabulary is None:
            if self.vocabulary_path is not None:
                vocabulary = Vocabulary.load_or_create(self.vocabulary_path, config=config)
            else:
                vocabulary = Vocabulary(config=config)
        self.vocabulary = vocabulary
        self.auto_learn = auto_learn
        self.metrics = metrics or MetricsCollector()
        self._new_classes = 0

    @property
    def config(self) -> TraceConfig:
        return self.vocabulary.config

    def trace(self) -> TraceSession:
        return TraceSession(self, self.config.segment_length)

    def classify(self, trajectory: Trajectory) -> RecognitionResult:
        t0 = time.perf_counter()
        result = self.vocabulary.classify(trajectory)
        self.metrics.record_latency(time.perf_counter() - t0)

        if result.recognized:
            self.metrics.record_recognition(result.name)
            logger.info("Recognized %r (cost=%.3f)", result.name, result.cost)
        else:
            self.metrics.record_rejection()
            logger.info("Trace not recognized (best cost=%.3f)", result.cost)
        return result

    def complete(self, trajectory: Trajectory) -> RecognitionResult:
        """Handle a finished trace: classify it and learn from it if enabled."""
        result = self.classify(trajectory)
        if self.auto_learn:
            if result.recognized:
                self.add_example(trajectory, result.name)
            else:
                self.add_example(trajectory, self._next_class_name())
        return result

    def add_example(self, trajectory: Trajectory, name: str):
        self.vocabulary.add_example(trajectory, name)
        self.metrics.record_example(name)

    def train(self, trajectory: Trajectory, name: str) -> RecognitionResult:
        """Add a labelled example, warning if it looked like another class."""
        result = self.vocabulary.classify(trajectory)
        if result.recognized and result.name != name:
            logger.warning(
                "%r was recognized as %r; trajectories may be ambiguous", name, result.name
            )
        self.add_example(trajectory, name)
        return result

    def save(self, path: Optional[str | Path] = None):
        target = Path(path) if path else self.vocabulary_path
        if target is None:
            raise ValueError("no vocabulary path given")
        self.vocabulary.save(target)

    def _next_class_name(self) -> str:
        while str(self._new_classes) in self.vocabulary:
            self._new_classes += 1
        name = str(self._new_classes)
        self._new_classes += 1
        return name
