"""Built-in synthetic gesture shapes.

Raw 3D point paths placed half a meter in front of the origin, as if drawn
by a hand relative to the head. Used for demos, benchmarks and tests.

Usage:
    points = circle(radius=0.2)
    takes = [perturb(points, jitter=0.003, seed=i) for i in range(5)]
"""

from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np

DEFAULT_CENTER = (0.0, 0.0, 0.5)


def line(
    length: float = 0.6,
    samples: int = 60,
    center=(0.0, 0.2, 0.5),
    direction=(1.0, 0.0, 0.0),
) -> np.ndarray:
    """Straight stroke through `center`."""
    d = np.asarray(direction, dtype=np.float64)
    d = d / np.linalg.norm(d)
    t = np.linspace(-0.5, 0.5, samples)[:, None] * length
    return np.asarray(center, dtype=np.float64) + t * d


def circle(
    radius: float = 0.25,
    samples: int = 120,
    center=DEFAULT_CENTER,
    loops: float = 1.0,
    clockwise: bool = False,
) -> np.ndarray:
    """Circle in the plane facing the origin."""
    angles = np.linspace(0.0, 2 * math.pi * loops, samples)
    if clockwise:
        angles = -angles
    pts = np.column_stack([radius * np.cos(angles), radius * np.sin(angles), np.zeros(samples)])
    return pts + np.asarray(center, dtype=np.float64)


def coil(
    radius: float = 0.15,
    loops: int = 3,
    pitch: float = 0.03,
    samples_per_loop: int = 60,
    center=DEFAULT_CENTER,
) -> np.ndarray:
    """Helix advancing away from the origin."""
    n = loops * samples_per_loop
    angles = np.linspace(0.0, 2 * math.pi * loops, n)
    pts = np.column_stack([
        radius * np.cos(angles),
        radius * np.sin(angles),
        pitch * angles / (2 * math.pi),
    ])
    return pts + np.asarray(center, dtype=np.float64)


def zigzag(
    width: float = 0.6,
    height: float = 0.2,
    teeth: int = 4,
    samples_per_edge: int = 10,
    center=DEFAULT_CENTER,
) -> np.ndarray:
    """Sawtooth stroke: `teeth` up-down pairs from left to right."""
    corners = []
    edges = teeth * 2
    for i in range(edges + 1):
        x = -width / 2 + width * i / edges
        y = height / 2 if i % 2 else -height / 2
        corners.append((x, y, 0.0))
    corners = np.array(corners)

    pts = [corners[0]]
    for a, b in zip(corners[:-1], corners[1:]):
        for k in range(1, samples_per_edge + 1):
            pts.append(a + (b - a) * k / samples_per_edge)
    return np.array(pts) + np.asarray(center, dtype=np.float64)


def wave(
    width: float = 0.6,
    amplitude: float = 0.1,
    periods: float = 2.0,
    samples: int = 120,
    center=DEFAULT_CENTER,
) -> np.ndarray:
    """Smooth horizontal wave."""
    x = np.linspace(-width / 2, width / 2, samples)
    y = amplitude * np.sin(2 * math.pi * periods * (x + width / 2) / width)
    pts = np.column_stack([x, y, np.zeros(samples)])
    return pts + np.asarray(center, dtype=np.float64)


SHAPES: dict[str, Callable[..., np.ndarray]] = {
    "line": line,
    "circle": circle,
    "coil": coil,
    "zigzag": zigzag,
    "wave": wave,
}


def perturb(
    points: np.ndarray,
    jitter: float = 0.0,
    scale: float = 1.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Scale a path about its centroid and add Gaussian jitter."""
    rng = np.random.default_rng(seed)
    pts = np.asarray(points, dtype=np.float64)
    centroid = pts.mean(axis=0)
    out = centroid + (pts - centroid) * scale
    if jitter > 0:
        out = out + rng.normal(0.0, jitter, size=out.shape)
    return out


def make_takes(
    name: str,
    count: int,
    jitter: float = 0.002,
    scale_range: tuple[float, float] = (0.8, 1.2),
    seed: int = 0,
) -> list[np.ndarray]:
    """`count` varied performances of the built-in shape `name`."""
    if name not in SHAPES:
        raise KeyError(f"unknown shape {name!r}; expected one of {sorted(SHAPES)}")
    rng = np.random.default_rng(seed)
    base = SHAPES[name]()
    takes = []
    for _ in range(count):
        scale = float(rng.uniform(*scale_range))
        takes.append(perturb(base, jitter=jitter, scale=scale, seed=int(rng.integers(1 << 31))))
    return takes
