"""TraceEngine configuration.

Settings live in a dataclass and can be loaded from / saved to YAML:

    segment_length: 0.01
    finest_resolution: 32
    acceptance_threshold: 4.0
    level_weighting: weighted
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml

from trace_engine.alphabet import (
    DEFAULT_END_STEP,
    DEFAULT_ITERATIONS,
    DEFAULT_SEED,
    DEFAULT_SIZE,
    DEFAULT_START_STEP,
)
from trace_engine.descriptor import FINEST_RESOLUTION, LEVEL_WEIGHTINGS, WEIGHTED
from trace_engine.trajectory import DEFAULT_SEGMENT_LENGTH

logger = logging.getLogger("trace_engine.config")


@dataclass
class TraceConfig:
    segment_length: float = DEFAULT_SEGMENT_LENGTH
    finest_resolution: int = FINEST_RESOLUTION
    acceptance_threshold: float = 4.0  # normalized match cost, unitless
    level_weighting: str = WEIGHTED
    alphabet_size: int = DEFAULT_SIZE
    alphabet_iterations: int = DEFAULT_ITERATIONS
    alphabet_start_step: float = DEFAULT_START_STEP
    alphabet_end_step: float = DEFAULT_END_STEP
    alphabet_seed: int = DEFAULT_SEED
    log_level: str = "info"

    def validate(self) -> TraceConfig:
        """Raise ValueError on settings the pipeline cannot work with."""
        if not self.segment_length > 0:
            raise ValueError(f"segment_length must be positive, got {self.segment_length}")
        if self.finest_resolution < 3:
            raise ValueError(f"finest_resolution must be at least 3, got {self.finest_resolution}")
        if not self.acceptance_threshold > 0:
            raise ValueError(f"acceptance_threshold must be positive, got {self.acceptance_threshold}")
        if self.level_weighting not in LEVEL_WEIGHTINGS:
            raise ValueError(
                f"level_weighting must be one of {LEVEL_WEIGHTINGS}, got {self.level_weighting!r}"
            )
        if self.alphabet_size < 2:
            raise ValueError(f"alphabet_size must be at least 2, got {self.alphabet_size}")
        if self.alphabet_iterations < 0:
            raise ValueError("alphabet_iterations must be non-negative")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ValueError(f"unknown log_level {self.log_level!r}")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> TraceConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known}).validate()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_yaml(cls, path: str | Path) -> TraceConfig:
        """Load settings from a YAML file. Missing keys keep their defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
