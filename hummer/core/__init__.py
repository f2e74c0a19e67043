"""Core types and constants for Hummer."""

from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_FRAME_SIZE,
    DEFAULT_HOP_SIZE,
    DEFAULT_TEMPO,
    COMMON_TIME_SIGNATURES,
)
from .errors import AnalysisError, InsufficientDataError, EngineUnavailableError
from .pitch import freq_to_midi, midi_to_freq, pitch_class_name, pitch_class_index
from .types import (
    AnalysisResult,
    ChordPrediction,
    KeyEstimate,
    KeyMode,
    Measure,
    NoteEvent,
    PitchFrame,
    TimeSignature,
    clamp,
)

__all__ = [
    # Constants
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_FRAME_SIZE",
    "DEFAULT_HOP_SIZE",
    "DEFAULT_TEMPO",
    "COMMON_TIME_SIGNATURES",
    # Errors
    "AnalysisError",
    "InsufficientDataError",
    "EngineUnavailableError",
    # Pitch helpers
    "freq_to_midi",
    "midi_to_freq",
    "pitch_class_name",
    "pitch_class_index",
    # Types
    "AnalysisResult",
    "ChordPrediction",
    "KeyEstimate",
    "KeyMode",
    "Measure",
    "NoteEvent",
    "PitchFrame",
    "TimeSignature",
    "clamp",
]
