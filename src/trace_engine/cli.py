"""TraceEngine CLI: the main entry point for offline operations.

Usage:
    trace-engine train       - Build a vocabulary from recorded takes
    trace-engine classify    - Classify the takes in a recording
    trace-engine evaluate    - Measure accuracy on labelled recordings
    trace-engine info        - Describe a saved vocabulary
    trace-engine alphabet    - Generate a direction alphabet
    trace-engine benchmark   - Time the recognition pipeline
    trace-engine demo        - Train and classify synthetic shapes
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="trace-engine",
    help="✍️  Recognize freehand 3D gestures from a few examples.",
    add_completion=False,
)


@app.callback()
def main_options(
    log_level: str = typer.Option("warning", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Optional[str]):
    from trace_engine.config import TraceConfig

    if path is None:
        return TraceConfig()
    try:
        cfg = TraceConfig.from_yaml(path)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Invalid config {path}: {e}", err=True)
        raise typer.Exit(1)
    logging.getLogger("trace_engine").setLevel(cfg.log_level.upper())
    return cfg


def _load_vocabulary(path: str):
    from trace_engine.vocabulary import Vocabulary, VocabularyLoadError

    try:
        return Vocabulary.load(path)
    except VocabularyLoadError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


def _recording_files(data_dir: str) -> list[Path]:
    data_path = Path(data_dir)
    if not data_path.exists():
        typer.echo(f"❌ Data directory not found: {data_dir}", err=True)
        raise typer.Exit(1)

    files = sorted(list(data_path.glob("*.json")) + list(data_path.glob("*.npz")))
    if not files:
        typer.echo(f"❌ No recording files found in {data_dir}", err=True)
        raise typer.Exit(1)
    return files


def _load_takes(path: Path, segment_length: float) -> list:
    """(label, trajectory) pairs from a recording, or exit on a malformed file."""
    from trace_engine.recorder import TracePlayer

    try:
        return [
            (trace.label, trace.to_trajectory(segment_length))
            for trace in TracePlayer.load(path).play()
        ]
    except (OSError, KeyError, TypeError, ValueError) as e:
        typer.echo(f"❌ Invalid recording {path}: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def train(
    data_dir: str = typer.Argument(..., help="Directory with recorded .json/.npz takes"),
    output: str = typer.Option("vocabulary.json", "-o", help="Output vocabulary path"),
    config: Optional[str] = typer.Option(None, help="Path to a YAML config"),
    update: bool = typer.Option(False, help="Add to the existing vocabulary at OUTPUT"),
):
    """Build a vocabulary from recorded takes."""
    from trace_engine.tracer import Tracer
    from trace_engine.vocabulary import Vocabulary

    cfg = _load_config(config)
    files = _recording_files(data_dir)

    if update:
        vocab = Vocabulary.load_or_create(output, config=cfg)
    else:
        vocab = Vocabulary(config=cfg)
    tracer = Tracer(vocabulary=vocab)

    typer.echo(f"📂 Loading {len(files)} recording files...")
    takes = 0
    for f in files:
        for label, trajectory in _load_takes(f, cfg.segment_length):
            tracer.train(trajectory, label)
            takes += 1

    if takes == 0:
        typer.echo("❌ No takes found in recordings.", err=True)
        raise typer.Exit(1)

    vocab.save(output)
    typer.echo(f"\n✅ Trained on {takes} takes, {len(vocab)} classes")
    for gesture_class in vocab:
        typer.echo(f"   {gesture_class.name:20s} exemplars={len(gesture_class)}  spread={gesture_class.spread:.3f}")
    typer.echo(f"   Vocabulary saved to: {output}")


@app.command()
def classify(
    vocabulary: str = typer.Argument(..., help="Path to a saved vocabulary"),
    recording: str = typer.Argument(..., help="Recording with takes to classify"),
    show_scores: bool = typer.Option(False, "--scores", help="Print the cost of every class"),
):
    """Classify every take in a recording."""
    vocab = _load_vocabulary(vocabulary)
    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    takes = _load_takes(path, vocab.config.segment_length)
    typer.echo(f"▶️  Classifying {len(takes)} takes from {path.name}")
    for idx, (label, trajectory) in enumerate(takes):
        result = vocab.classify(trajectory)
        got = result.name if result.recognized else "?"
        typer.echo(f"   [{idx}] {label or '-':15s} → {got} (cost={result.cost:.3f})")
        if show_scores:
            for score in vocab.scores(trajectory):
                typer.echo(f"         {score.name:15s} cost={score.cost:.3f} distance={score.distance:.3f}")


@app.command()
def evaluate(
    vocabulary: str = typer.Argument(..., help="Path to a saved vocabulary"),
    data_dir: str = typer.Argument(..., help="Directory with labelled held-out takes"),
):
    """Report recognition accuracy on labelled takes."""
    vocab = _load_vocabulary(vocabulary)
    files = _recording_files(data_dir)

    total = correct = rejected = 0
    for f in files:
        for label, trajectory in _load_takes(f, vocab.config.segment_length):
            result = vocab.classify(trajectory)
            total += 1
            if not result.recognized:
                rejected += 1
            elif result.name == label:
                correct += 1

    if total == 0:
        typer.echo("❌ No takes found in recordings.", err=True)
        raise typer.Exit(1)

    typer.echo(f"📊 Takes:    {total}")
    typer.echo(f"   Correct:  {correct} ({correct / total:.1%})")
    typer.echo(f"   Wrong:    {total - correct - rejected}")
    typer.echo(f"   Rejected: {rejected}")


@app.command()
def info(
    vocabulary: str = typer.Argument(..., help="Path to a saved vocabulary"),
):
    """Describe a saved vocabulary."""
    vocab = _load_vocabulary(vocabulary)
    typer.echo(f"📖 {vocabulary}")
    typer.echo(f"   Alphabet:   {len(vocab.directions)} tokens")
    typer.echo(f"   Levels:     {vocab.level_count} (finest={vocab.config.finest_resolution}, {vocab.config.level_weighting})")
    typer.echo(f"   Classes:    {len(vocab)}")
    for gesture_class in vocab:
        typer.echo(
            f"   {gesture_class.name:20s} exemplars={len(gesture_class)}  "
            f"centroid={gesture_class.centroid_index}  spread={gesture_class.spread:.3f}"
        )


@app.command()
def alphabet(
    size: int = typer.Option(128, help="Number of tokens"),
    iterations: int = typer.Option(256, help="Relaxation iterations"),
    seed: int = typer.Option(11311, help="Random seed"),
    output: Optional[str] = typer.Option(None, "-o", help="Write the vectors as JSON"),
):
    """Generate a direction alphabet and report its separation."""
    import numpy as np
    from trace_engine.alphabet import generate_alphabet

    directions = generate_alphabet(size=size, iterations=iterations, seed=seed)
    dots = directions.vectors @ directions.vectors.T
    np.fill_diagonal(dots, -1.0)
    min_angle = float(np.degrees(np.arccos(np.clip(dots.max(), -1.0, 1.0))))

    typer.echo(f"🧭 Generated {len(directions)} tokens (seed={seed})")
    typer.echo(f"   Closest pair: {min_angle:.2f}°")

    if output:
        Path(output).write_text(json.dumps(directions.to_list()))
        typer.echo(f"💾 Saved to: {output}")


@app.command()
def benchmark(
    iterations: int = typer.Option(50, help="Classifications to time"),
    examples: int = typer.Option(5, help="Training takes per shape"),
):
    """Time descriptor extraction and classification on synthetic shapes."""
    from trace_engine.profiler import PipelineProfiler
    from trace_engine.synthetic import SHAPES, make_takes
    from trace_engine.trajectory import Trajectory
    from trace_engine.vocabulary import Vocabulary

    profiler = PipelineProfiler()
    t0 = time.perf_counter()
    vocab = Vocabulary(profiler=profiler)
    typer.echo(f"⚡ Alphabet generated in {(time.perf_counter() - t0) * 1000:.0f} ms")

    for idx, name in enumerate(SHAPES):
        for points in make_takes(name, examples, seed=idx):
            with profiler.stage("build"):
                trajectory = Trajectory.from_points(points, vocab.config.segment_length)
            with profiler.stage("add_example"):
                vocab.add_example(trajectory, name)

    queries = []
    for idx, name in enumerate(SHAPES):
        queries.extend(make_takes(name, 1, seed=1000 + idx))

    for i in range(iterations):
        with profiler.stage("build"):
            trajectory = Trajectory.from_points(queries[i % len(queries)], vocab.config.segment_length)
        with profiler.stage("describe"):
            descriptor = vocab.describe(trajectory)
        with profiler.stage("classify"):
            vocab.classify_descriptor(descriptor)

    typer.echo("\n📈 Stage breakdown:")
    for stats in profiler.summary().values():
        typer.echo(
            f"   {stats.name:12s} mean={stats.mean_ms:.3f}ms  p95={stats.p95_ms:.3f}ms  "
            f"total={stats.total_ms:.1f}ms  calls={stats.calls}"
        )


@app.command()
def demo(
    examples: int = typer.Option(4, help="Training takes per shape"),
    queries: int = typer.Option(3, help="Held-out takes per shape"),
    output: Optional[str] = typer.Option(None, "-o", help="Save the trained vocabulary"),
):
    """Train on synthetic shapes and classify held-out takes."""
    from trace_engine.synthetic import SHAPES, make_takes
    from trace_engine.tracer import Tracer
    from trace_engine.trajectory import Trajectory

    tracer = Tracer()
    segment_length = tracer.config.segment_length

    for idx, name in enumerate(SHAPES):
        for points in make_takes(name, examples, seed=idx):
            tracer.train(Trajectory.from_points(points, segment_length), name)
    typer.echo(f"🎓 Trained {len(tracer.vocabulary)} shapes with {examples} takes each")

    correct = total = 0
    for idx, name in enumerate(SHAPES):
        for points in make_takes(name, queries, seed=100 + idx):
            with tracer.trace() as trace:
                for pt in points:
                    trace.add_point(pt)
            got = trace.result.name if trace.result.recognized else "?"
            mark = "✅" if got == name else "❌"
            typer.echo(f"   {mark} {name:10s} → {got} (cost={trace.result.cost:.3f})")
            total += 1
            correct += got == name

    typer.echo(f"\n📊 Accuracy: {correct}/{total}")
    if output:
        tracer.save(output)
        typer.echo(f"💾 Saved to: {output}")


def main():
    app()


if __name__ == "__main__":
    main()
