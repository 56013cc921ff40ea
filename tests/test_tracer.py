"""Tests for the capture-side Tracer facade."""

import logging

import numpy as np
import pytest

from trace_engine.metrics import MetricsCollector
from trace_engine.synthetic import coil, line
from trace_engine.tracer import Tracer
from trace_engine.trajectory import Trajectory
from trace_engine.vocabulary import Vocabulary


def traj(points):
    return Trajectory.from_points(points, 0.01)


def perform(tracer, points, reference=None):
    with tracer.trace() as trace:
        for pt in points:
            trace.add_point(pt, reference)
    return trace


@pytest.fixture
def tracer(vocab):
    return Tracer(vocabulary=vocab)


class TestSession:
    def test_recognizes_trained_shape(self, tracer):
        tracer.train(traj(line()), "line")
        trace = perform(tracer, line())
        assert trace.result.name == "line"
        assert len(trace.trajectory) > 0

    def test_reference_is_subtracted(self, tracer):
        tracer.train(traj(line()), "line")
        head = np.array([0.3, 1.6, -0.2])
        trace = perform(tracer, line() + head, reference=head)
        assert trace.result.name == "line"

    def test_finish_is_idempotent(self, tracer):
        session = tracer.trace()
        for pt in line():
            session.add_point(pt)
        first = session.finish()
        assert session.finish() is first
        assert tracer.metrics.rejections == 1

    def test_exception_aborts(self, tracer):
        with pytest.raises(RuntimeError):
            with tracer.trace() as trace:
                for pt in line():
                    trace.add_point(pt)
                raise RuntimeError("tracking lost")
        assert trace.result is None
        assert trace.trajectory is not None
        assert tracer.metrics.rejections == 0

    def test_empty_trace(self, tracer):
        trace = perform(tracer, [])
        assert len(trace.trajectory) == 0
        assert not trace.result.recognized


class TestLearning:
    def test_auto_learn_creates_classes(self, vocab):
        tracer = Tracer(vocabulary=vocab, auto_learn=True)
        first = perform(tracer, line())
        assert not first.result.recognized
        assert vocab.names == ["0"]

        second = perform(tracer, line())
        assert second.result.name == "0"
        assert len(vocab.classes["0"]) == 2
        assert tracer.metrics.example_counts == {"0": 2}

    def test_auto_learn_skips_taken_names(self, vocab):
        tracer = Tracer(vocabulary=vocab, auto_learn=True)
        tracer.train(traj(line()), "0")
        perform(tracer, coil())
        assert vocab.names == ["0", "1"]

    def test_train_warns_on_ambiguity(self, tracer, caplog):
        tracer.train(traj(line()), "line")
        with caplog.at_level(logging.WARNING, logger="trace_engine.tracer"):
            result = tracer.train(traj(line()), "stroke")
        assert result.name == "line"
        assert "may be ambiguous" in caplog.text
        assert "stroke" in tracer.vocabulary

    def test_train_same_class_is_quiet(self, tracer, caplog):
        tracer.train(traj(line()), "line")
        with caplog.at_level(logging.WARNING, logger="trace_engine.tracer"):
            tracer.train(traj(line()), "line")
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


class TestMetrics:
    def test_counts(self, vocab):
        metrics = MetricsCollector()
        tracer = Tracer(vocabulary=vocab, metrics=metrics)
        tracer.train(traj(line()), "line")
        perform(tracer, line())
        perform(tracer, coil())

        assert metrics.recognition_counts == {"line": 1}
        assert metrics.rejections == 1
        assert metrics.example_counts == {"line": 1}
        assert "trace_engine_classify_latency_seconds_count 2" in metrics.render()


class TestPersistence:
    def test_save_without_path(self, tracer):
        with pytest.raises(ValueError):
            tracer.save()

    def test_save_and_reload(self, tracer, tmp_path):
        tracer.train(traj(line()), "line")
        path = tmp_path / "vocab.json"
        tracer.save(path)

        reloaded = Tracer(vocabulary_path=path)
        assert reloaded.vocabulary.names == ["line"]
        assert perform(reloaded, line()).result.name == "line"

    def test_default_save_path(self, small_config, tmp_path):
        path = tmp_path / "vocab.json"
        tracer = Tracer(config=small_config, vocabulary_path=path)
        assert len(tracer.vocabulary) == 0
        tracer.train(traj(line()), "line")
        tracer.save()
        assert Vocabulary.load(path).names == ["line"]
