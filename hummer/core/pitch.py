"""Frequency and pitch-class conversions."""

import numpy as np

from .constants import PITCH_NAMES, PITCH_CLASS_INDEX, SOLFEGE_NAMES


def freq_to_midi(freq: float) -> int:
    """Convert frequency (Hz) to the nearest MIDI pitch."""
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    return int(round(69 + 12 * np.log2(freq / 440.0)))


def midi_to_freq(midi: int) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return 440.0 * (2 ** ((midi - 69) / 12.0))


def pitch_class_name(freq: float) -> str:
    """Get the pitch-class name of a frequency (e.g. 261.6 -> 'C')."""
    return PITCH_NAMES[freq_to_midi(freq) % 12]


def pitch_class_index(name: str) -> int:
    """
    Get the pitch class (0-11) of a note name.

    Accepts sharp and flat spellings ("C#", "Db").

    Raises:
        ValueError: If the name is not a known pitch class
    """
    try:
        return PITCH_CLASS_INDEX[name]
    except KeyError:
        raise ValueError(f"Unknown pitch class name: {name!r}") from None


def solfege_name(pitch_class: int) -> str:
    """Fixed-do syllable for a pitch class."""
    return SOLFEGE_NAMES[pitch_class % 12]


def semitone_distance(freq_a: float, freq_b: float) -> float:
    """Absolute distance between two frequencies in semitones."""
    return abs(12.0 * np.log2(freq_a / freq_b))
