"""TraceEngine - few-shot recognition of freehand 3D gestures."""

__version__ = "0.1.0"

from trace_engine.alphabet import DirectionAlphabet, generate_alphabet
from trace_engine.config import TraceConfig
from trace_engine.descriptor import Descriptor, DescriptorMismatchError, build_descriptor
from trace_engine.levenshtein import Alphabet, AlphabetMismatchError, TokenString, edit_distance
from trace_engine.metrics import MetricsCollector
from trace_engine.profiler import PipelineProfiler
from trace_engine.recorder import RecordedTrace, TracePlayer, TraceRecorder
from trace_engine.tokenizer import tokenize
from trace_engine.tracer import TraceSession, Tracer
from trace_engine.trajectory import Trajectory, TrajectoryBuilder, resample
from trace_engine.vocabulary import (
    ClassScore,
    GestureClass,
    RecognitionResult,
    Vocabulary,
    VocabularyLoadError,
)
