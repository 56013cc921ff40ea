"""Trace recording and replay: capture raw labelled point streams to disk.

Recordings keep the raw offset points (not the resampled trajectory), so the
same takes can be replayed with different segment lengths or vocabularies.
Useful for:
- Training a vocabulary offline from collected takes
- Evaluating recognition accuracy on held-out takes
- Tests that need real-looking motion without a tracking device
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from trace_engine.trajectory import DEFAULT_SEGMENT_LENGTH, Trajectory
from trace_engine.vectors import as_vector


@dataclass
class RecordedTrace:
    """One labelled take."""
    label: str
    points: list[list[float]]  # raw offset points, (N, 3) as nested lists
    duration: float = 0.0
    metadata: dict = field(default_factory=dict)

    def to_trajectory(self, segment_length: float = DEFAULT_SEGMENT_LENGTH) -> Trajectory:
        return Trajectory.from_points(self.points, segment_length)


class TraceRecorder:
    """Records labelled point streams.

    Usage:
        recorder = TraceRecorder()
        recorder.start("circle")
        # In your capture loop:
        recorder.add_point(hand, reference=head)
        recorder.stop()
        recorder.save("takes.json")
    """

    def __init__(self):
        self._traces: list[RecordedTrace] = []
        self._label: Optional[str] = None
        self._points: list[list[float]] = []
        self._start_time: Optional[float] = None

    def start(self, label: str):
        """Begin a new take."""
        self._label = label
        self._points = []
        self._start_time = time.monotonic()

    def add_point(self, point, reference=None):
        if self._label is None:
            return
        pt = as_vector(point)
        if reference is not None:
            pt = pt - as_vector(reference)
        self._points.append(pt.tolist())

    def stop(self) -> Optional[RecordedTrace]:
        """Finish the current take. Returns it, or None if nothing was recording."""
        if self._label is None:
            return None

        trace = RecordedTrace(
            label=self._label,
            points=self._points,
            duration=time.monotonic() - self._start_time,
        )
        self._traces.append(trace)
        self._label = None
        self._points = []
        return trace

    @property
    def is_recording(self) -> bool:
        return self._label is not None

    @property
    def traces(self) -> list[RecordedTrace]:
        return list(self._traces)

    def save(self, path: str | Path):
        """Save all takes to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "trace_count": len(self._traces),
            "traces": [
                {
                    "label": t.label,
                    "duration": t.duration,
                    "points": t.points,
                    "metadata": t.metadata,
                }
                for t in self._traces
            ],
        }
        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path):
        """Save in compact binary format (numpy npz)."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        lengths = np.array([len(t.points) for t in self._traces], dtype=np.int64)
        if self._traces and lengths.sum() > 0:
            points = np.concatenate(
                [np.array(t.points, dtype=np.float64).reshape(-1, 3) for t in self._traces]
            )
        else:
            points = np.zeros((0, 3), dtype=np.float64)

        np.savez_compressed(
            path,
            points=points,
            lengths=lengths,
            durations=np.array([t.duration for t in self._traces], dtype=np.float64),
            labels=np.array([json.dumps([t.label for t in self._traces])]),
        )


class TracePlayer:
    """Reads recorded takes back.

    Usage:
        player = TracePlayer.load("takes.json")
        for trace in player.play():
            vocab.add_example(trace.to_trajectory(), trace.label)
    """

    def __init__(self, traces: list[RecordedTrace]):
        self._traces = traces

    @classmethod
    def load(cls, path: str | Path) -> TracePlayer:
        """Load takes from a JSON or npz recording."""
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        traces = [
            RecordedTrace(
                label=t["label"],
                points=t["points"],
                duration=t.get("duration", 0.0),
                metadata=t.get("metadata", {}),
            )
            for t in data["traces"]
        ]
        return cls(traces)

    @classmethod
    def _load_compact(cls, path: Path) -> TracePlayer:
        data = np.load(path, allow_pickle=False)
        points = data["points"]
        lengths = data["lengths"]
        durations = data["durations"]
        labels = json.loads(str(data["labels"][0]))

        traces = []
        offset = 0
        for label, n, duration in zip(labels, lengths, durations):
            n = int(n)
            traces.append(RecordedTrace(
                label=label,
                points=points[offset:offset + n].tolist(),
                duration=float(duration),
            ))
            offset += n
        return cls(traces)

    @property
    def trace_count(self) -> int:
        return len(self._traces)

    @property
    def labels(self) -> list[str]:
        return sorted({t.label for t in self._traces})

    def play(self) -> Iterator[RecordedTrace]:
        yield from self._traces

    def get_trace(self, index: int) -> Optional[RecordedTrace]:
        if 0 <= index < len(self._traces):
            return self._traces[index]
        return None
