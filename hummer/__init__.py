"""Hummer - Melody, key and chord transcription for hummed recordings.

Architecture Layers:
    1. core/          - Value types, constants, errors
    2. input/         - Audio loading
    3. analysis/      - Low-level signal analysis (pitch, tempo)
    4. transcription/ - Notes grouped into measures
    5. inference/     - Musical understanding (key, chords)
    6. output/        - Export (JSON, MIDI, MusicXML)

The pipeline module chains the layers; cli.py exposes them on the command line.
"""

__version__ = "0.1.0"

# Core types
from .core import (
    AnalysisError,
    AnalysisResult,
    ChordPrediction,
    EngineUnavailableError,
    InsufficientDataError,
    KeyEstimate,
    KeyMode,
    Measure,
    NoteEvent,
    PitchFrame,
    TimeSignature,
)

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import PitchTracker, PitchTrackerConfig, TempoAnalyzer

# Transcription layer
from .transcription import NoteSegmenter

# Inference layer
from .inference import ChordInferenceConfig, ChordInferenceEngine, KeyEstimator

# Output layer
from .output import MIDIExporter, MusicXMLExporter, to_dict

# Pipeline
from .pipeline import HummingAnalyzer, analyze, track_pitch

__all__ = [
    # Core
    "AnalysisError",
    "AnalysisResult",
    "ChordPrediction",
    "EngineUnavailableError",
    "InsufficientDataError",
    "KeyEstimate",
    "KeyMode",
    "Measure",
    "NoteEvent",
    "PitchFrame",
    "TimeSignature",
    # Input
    "AudioLoader",
    # Analysis
    "PitchTracker",
    "PitchTrackerConfig",
    "TempoAnalyzer",
    # Transcription
    "NoteSegmenter",
    # Inference
    "KeyEstimator",
    "ChordInferenceEngine",
    "ChordInferenceConfig",
    # Output
    "to_dict",
    "MIDIExporter",
    "MusicXMLExporter",
    # Pipeline
    "HummingAnalyzer",
    "analyze",
    "track_pitch",
]
