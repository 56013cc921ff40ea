"""Prometheus-compatible metrics for TraceEngine.

Renders the Prometheus text exposition format directly.

Tracked metrics:
- trace_engine_recognitions_total (counter, by class name)
- trace_engine_rejections_total (counter)
- trace_engine_examples_total (counter, by class name)
- trace_engine_classify_latency_seconds (histogram)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")



class _Histogram:
    """Simple histogram with configurable buckets."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Counts recognition outcomes and training examples."""

    def __init__(self):
        self._recognitions: Counter = Counter()
        self._examples: Counter = Counter()
        self._rejections = 0
        self._lock = threading.Lock()

        # Classification latency: 1ms to 1s
        self._latency = _Histogram([0.001, 0.005, 0.010, 0.025, 0.050, 0.100, 0.250, 1.0])
        self._start_time = time.time()

    def record_recognition(self, name: str):
        with self._lock:
            self._recognitions[name] += 1

    def record_rejection(self):
        with self._lock:
            self._rejections += 1

    def record_example(self, name: str):
        with self._lock:
            self._examples[name] += 1

    def record_latency(self, seconds: float):
        self._latency.observe(seconds)

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        uptime = time.time() - self._start_time
        lines.append("# HELP trace_engine_uptime_seconds Time since the collector was created")
        lines.append("# TYPE trace_engine_uptime_seconds gauge")
        lines.append(f"trace_engine_uptime_seconds {uptime:.1f}")
        lines.append("")

        with self._lock:
            recognitions = sorted(self._recognitions.items())
            examples = sorted(self._examples.items())
            rejections = self._rejections

        lines.append("# HELP trace_engine_recognitions_total Recognized trajectories by class")
        lines.append("# TYPE trace_engine_recognitions_total counter")
        for name, count in recognitions:
            lines.append(f'trace_engine_recognitions_total{{gesture="{_escape_label(name)}"}} {count}')
        lines.append("")

        lines.append("# HELP trace_engine_rejections_total Trajectories matching no class")
        lines.append("# TYPE trace_engine_rejections_total counter")
        lines.append(f"trace_engine_rejections_total {rejections}")
        lines.append("")

        lines.append("# HELP trace_engine_examples_total Training examples added by class")
        lines.append("# TYPE trace_engine_examples_total counter")
        for name, count in examples:
            lines.append(f'trace_engine_examples_total{{gesture="{_escape_label(name)}"}} {count}')
        lines.append("")

        lines.append(self._latency.render(
            "trace_engine_classify_latency_seconds",
            "Time to describe and classify one trajectory",
        ))
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def recognition_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._recognitions)

    @property
    def example_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._examples)

    @property
    def rejections(self) -> int:
        with self._lock:
            return self._rejections
