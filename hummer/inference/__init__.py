"""Inference layer - Musical understanding of the transcribed melody.

This layer builds harmonic context from measures of notes:
- Key estimation (tonal center, mode)
- Chord inference per measure with progression context

Pipeline: Measures → Key (global) → Chords (measure by measure)
"""

from .key import KeyEstimator, KeyCandidate
from .chords import (
    ChordInferenceEngine,
    ChordInferenceConfig,
    ChordQuality,
    ChordStep,
    ChordTemplate,
    CandidateScore,
    ProgressionTag,
    diatonic_templates,
    parse_chord_symbol,
    measure_histogram,
    score_template,
    transition_bonus,
    shared_tone_fraction,
    chromatic_penalty,
    reuse_confidence,
)

__all__ = [
    # Key estimation
    "KeyEstimator",
    "KeyCandidate",
    # Chord inference
    "ChordInferenceEngine",
    "ChordInferenceConfig",
    "ChordQuality",
    "ChordStep",
    "ChordTemplate",
    "CandidateScore",
    "ProgressionTag",
    "diatonic_templates",
    "parse_chord_symbol",
    "measure_histogram",
    "score_template",
    "transition_bonus",
    "shared_tone_fraction",
    "chromatic_penalty",
    "reuse_confidence",
]
