"""Shared fixtures: generating the full 128-token alphabet takes about a second,
so tests share one small alphabet unless they need the default."""

import pytest

from trace_engine.alphabet import generate_alphabet
from trace_engine.config import TraceConfig
from trace_engine.vocabulary import Vocabulary


@pytest.fixture(scope="session")
def small_directions():
    return generate_alphabet(size=32, iterations=64)


@pytest.fixture(scope="session")
def default_directions():
    return generate_alphabet()


@pytest.fixture
def small_config():
    return TraceConfig(alphabet_size=16, alphabet_iterations=8)


@pytest.fixture
def vocab(small_directions):
    return Vocabulary(directions=small_directions)
