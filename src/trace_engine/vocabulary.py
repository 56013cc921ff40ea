"""Gesture vocabulary: named classes of exemplar descriptors.

Each class keeps its exemplars, a centroid (the exemplar closest to all the
others) and a spread (mean distance from the other exemplars to the
centroid). A query is scored against every class as

    cost = distance(query, centroid) / spread

so that loose and tight classes are compared on the same unitless scale.
The lowest cost wins if it is below the acceptance threshold.

Usage:
    vocab = Vocabulary()
    vocab.add_example(trajectory, "circle")
    result = vocab.classify(other_trajectory)
    if result.recognized:
        print(result.name, result.cost)
    vocab.save("vocabulary.json")
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from trace_engine.alphabet import DirectionAlphabet, generate_alphabet
from trace_engine.config import TraceConfig
from trace_engine.descriptor import WEIGHTED, Descriptor, build_descriptor, resolutions
from trace_engine.levenshtein import Alphabet
from trace_engine.profiler import PipelineProfiler
from trace_engine.trajectory import Trajectory

logger = logging.getLogger("trace_engine.vocabulary")

DEFAULT_SPREAD = 1.0
SNAPSHOT_VERSION = 1


class VocabularyLoadError(ValueError):
    """Raised when a vocabulary snapshot cannot be read or is malformed."""


@dataclass
class ClassScore:
    """How well a query matched one class."""
    name: str
    cost: float  # normalized by the class spread
    distance: float  # raw descriptor distance to the centroid


@dataclass
class RecognitionResult:
    """Outcome of classifying one trajectory."""
    name: Optional[str]  # None when not recognized
    cost: float
    distance: float

    @property
    def recognized(self) -> bool:
        return self.name is not None


class GestureClass:
    """A named cluster of exemplar descriptors."""

    def __init__(self, name: str, weighting: str = WEIGHTED):
        self.name = name
        self.weighting = weighting
        self._exemplars: list[Descriptor] = []
        self._distances = np.zeros((0, 0), dtype=np.float64)  # [a, b] = d(a, b)
        self.centroid_index = -1
        self.spread = DEFAULT_SPREAD

    def __len__(self) -> int:
        return len(self._exemplars)

    def __repr__(self) -> str:
        return f"GestureClass({self.name!r}, exemplars={len(self)}, spread={self.spread:.3f})"

    @property
    def exemplars(self) -> list[Descriptor]:
        return list(self._exemplars)

    @property
    def centroid(self) -> Descriptor:
        if not self._exemplars:
            raise ValueError(f"class {self.name!r} has no exemplars")
        return self._exemplars[self.centroid_index]

    def add(self, descriptor: Descriptor):
        """Append an exemplar and refresh the centroid and spread."""
        n = len(self._exemplars)
        grown = np.zeros((n + 1, n + 1), dtype=np.float64)
        grown[:n, :n] = self._distances
        for idx, exemplar in enumerate(self._exemplars):
            grown[n, idx] = descriptor.distance(exemplar, self.weighting)
            grown[idx, n] = exemplar.distance(descriptor, self.weighting)

        self._exemplars.append(descriptor)
        self._distances = grown
        self._recalculate()

    def _recalculate(self):
        n = len(self._exemplars)
        totals = self._distances.sum(axis=1)
        # argmin picks the first minimum: ties go to the oldest exemplar
        self.centroid_index = int(np.argmin(totals))

        if n > 1:
            spread = float(self._distances[:, self.centroid_index].sum()) / (n - 1)
            # identical exemplars have no spread to normalize by
            self.spread = spread if spread > 0 else DEFAULT_SPREAD
        else:
            self.spread = DEFAULT_SPREAD

    def distance_to_centroid(self, descriptor: Descriptor) -> float:
        return descriptor.distance(self.centroid, self.weighting)

    def match_cost(self, descriptor: Descriptor) -> float:
        return self.distance_to_centroid(descriptor) / self.spread


class Vocabulary:
    """Maps class names to GestureClasses over one shared direction alphabet."""

    def __init__(
        self,
        directions: Optional[DirectionAlphabet] = None,
        config: Optional[TraceConfig] = None,
        profiler: Optional[PipelineProfiler] = None,
    ):
        self.config = (config or TraceConfig()).validate()
        self.profiler = profiler
        if directions is None:
            directions = generate_alphabet(
                size=self.config.alphabet_size,
                iterations=self.config.alphabet_iterations,
                start_step=self.config.alphabet_start_step,
                end_step=self.config.alphabet_end_step,
                seed=self.config.alphabet_seed,
            )
        self.directions = directions
        self.alphabet = Alphabet.from_directions(directions)
        self.classes: dict[str, GestureClass] = {}

    def __len__(self) -> int:
        return len(self.classes)

    def __contains__(self, name: str) -> bool:
        return name in self.classes

    def __iter__(self) -> Iterator[GestureClass]:
        return iter(self.classes.values())

    @property
    def names(self) -> list[str]:
        return list(self.classes)

    @property
    def level_count(self) -> int:
        return len(resolutions(self.config.finest_resolution))

    def describe(self, trajectory: Trajectory) -> Descriptor:
        return build_descriptor(
            trajectory, self.directions, self.alphabet, self.config.finest_resolution,
            profiler=self.profiler,
        )

    def add_descriptor(self, descriptor: Descriptor, name: str) -> GestureClass:
        if len(descriptor) != self.level_count:
            raise ValueError(
                f"descriptor has {len(descriptor)} levels, vocabulary expects {self.level_count}"
            )
        gesture_class = self.classes.get(name)
        if gesture_class is None:
            gesture_class = GestureClass(name, self.config.level_weighting)
            self.classes[name] = gesture_class
            logger.info("Created gesture class %r", name)

        gesture_class.add(descriptor)
        logger.debug(
            "Class %r: %d exemplars, centroid=%d, spread=%.3f",
            name, len(gesture_class), gesture_class.centroid_index, gesture_class.spread,
        )
        return gesture_class

    def add_example(self, trajectory: Trajectory, name: str) -> GestureClass:
        """Describe `trajectory` and add it to class `name` (created if new)."""
        return self.add_descriptor(self.describe(trajectory), name)

    def score_descriptor(self, descriptor: Descriptor) -> list[ClassScore]:
        scores = []
        for gesture_class in self.classes.values():
            if not len(gesture_class):
                continue
            distance = gesture_class.distance_to_centroid(descriptor)
            scores.append(ClassScore(
                name=gesture_class.name,
                cost=distance / gesture_class.spread,
                distance=distance,
            ))
        scores.sort(key=lambda s: (s.cost, s.distance, s.name))
        return scores

    def scores(self, trajectory: Trajectory) -> list[ClassScore]:
        """Match cost of `trajectory` against every class, best first."""
        return self.score_descriptor(self.describe(trajectory))

    def classify_descriptor(self, descriptor: Descriptor) -> RecognitionResult:
        scores = self.score_descriptor(descriptor)
        if not scores:
            return RecognitionResult(name=None, cost=math.inf, distance=math.inf)

        for s in scores:
            logger.debug("  %-20s cost=%.3f distance=%.3f", s.name, s.cost, s.distance)

        best = scores[0]
        if best.cost < self.config.acceptance_threshold:
            return RecognitionResult(name=best.name, cost=best.cost, distance=best.distance)
        return RecognitionResult(name=None, cost=best.cost, distance=best.distance)

    def classify(self, trajectory: Trajectory) -> RecognitionResult:
        """Name of the best matching class, or an unrecognized result."""
        return self.classify_descriptor(self.describe(trajectory))

    def to_dict(self) -> dict:
        return {
            "version": SNAPSHOT_VERSION,
            "finest_resolution": self.config.finest_resolution,
            "level_weighting": self.config.level_weighting,
            "alphabet": self.directions.to_list(),
            "classes": {
                name: [ex.to_lists() for ex in gesture_class.exemplars]
                for name, gesture_class in self.classes.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict, config: Optional[TraceConfig] = None) -> Vocabulary:
        """Rebuild a vocabulary from a snapshot dict.

        The alphabet is restored verbatim; centroids and spreads are recomputed
        from the stored exemplars.
        """
        if not isinstance(data, dict):
            raise VocabularyLoadError("snapshot must be a mapping")
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise VocabularyLoadError(f"unsupported snapshot version {version!r}")

        config = config or TraceConfig()
        try:
            config = dataclasses.replace(
                config,
                finest_resolution=int(data.get("finest_resolution", config.finest_resolution)),
                level_weighting=data.get("level_weighting", config.level_weighting),
            ).validate()
            directions = DirectionAlphabet.from_list(data["alphabet"])
        except (KeyError, TypeError, ValueError) as e:
            raise VocabularyLoadError(f"invalid snapshot header: {e}") from e

        vocab = cls(directions=directions, config=config)
        classes = data.get("classes", {})
        if not isinstance(classes, dict):
            raise VocabularyLoadError("'classes' must map names to exemplar lists")

        size = len(directions)
        for name, exemplars in classes.items():
            if not isinstance(exemplars, list):
                raise VocabularyLoadError(f"class {name!r} must hold a list of exemplars")
            for ex_idx, levels in enumerate(exemplars):
                if not isinstance(levels, list) or not all(isinstance(level, list) for level in levels):
                    raise VocabularyLoadError(
                        f"class {name!r} exemplar {ex_idx} must be a list of token lists"
                    )
                if any(isinstance(t, bool) or not isinstance(t, int) for level in levels for t in level):
                    raise VocabularyLoadError(
                        f"class {name!r} exemplar {ex_idx} holds non-integer tokens"
                    )
                if any(not 0 <= t < size for level in levels for t in level):
                    raise VocabularyLoadError(
                        f"class {name!r} exemplar {ex_idx} references tokens outside the alphabet"
                    )
                if len(levels) != vocab.level_count:
                    raise VocabularyLoadError(
                        f"class {name!r} exemplar {ex_idx} has {len(levels)} levels, "
                        f"expected {vocab.level_count}"
                    )
                vocab.add_descriptor(Descriptor.from_lists(levels, vocab.alphabet), str(name))

        return vocab

    def save(self, path: str | Path):
        """Write the full snapshot to `path` as JSON, replacing any existing file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f)
        logger.info("Saved vocabulary with %d classes to %s", len(self), path)

    @classmethod
    def load(cls, path: str | Path, config: Optional[TraceConfig] = None) -> Vocabulary:
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise VocabularyLoadError(f"cannot read vocabulary {path}: {e}") from e

        vocab = cls.from_dict(data, config=config)
        logger.info("Loaded vocabulary with %d classes from %s", len(vocab), path)
        return vocab

    @classmethod
    def load_or_create(cls, path: str | Path, config: Optional[TraceConfig] = None) -> Vocabulary:
        """Load `path` if it exists and is valid, else start a fresh vocabulary."""
        path = Path(path)
        if path.exists():
            try:
                return cls.load(path, config=config)
            except VocabularyLoadError as e:
                logger.warning("Falling back to a fresh vocabulary: %s", e)
        return cls(config=config)
