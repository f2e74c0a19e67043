"""Value types shared by every pipeline stage."""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Sequence, Tuple, Union

from .constants import MAJOR_SCALE, MINOR_SCALE, PITCH_NAMES
from .pitch import freq_to_midi, pitch_class_index, solfege_name


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, float(value)))


@dataclass(frozen=True)
class PitchFrame:
    """Pitch estimate for one analysis frame."""

    time: float  # Frame start in seconds
    duration: float  # Seconds covered by this frame (one hop)
    frequency: Optional[float]  # Hz, None when unvoiced
    confidence: float  # Peak-to-band energy ratio (0-1)
    amplitude: float  # RMS of the unwindowed frame

    @property
    def is_voiced(self) -> bool:
        return self.frequency is not None


@dataclass(frozen=True)
class NoteEvent:
    """A sustained pitch inside a measure, timed in beats."""

    name: str  # Pitch-class name (e.g., "C", "F#")
    frequency: float  # Average frequency in Hz
    start_beat: float  # Beats from the measure start
    duration_beats: float
    confidence: float = 1.0

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return pitch_class_index(self.name)

    @property
    def midi_note(self) -> int:
        return freq_to_midi(self.frequency)

    @property
    def solfege(self) -> str:
        return solfege_name(self.pitch_class)

    @property
    def end_beat(self) -> float:
        return self.start_beat + self.duration_beats


@dataclass(frozen=True)
class ChordPrediction:
    """A chord proposed for a measure.

    Two predictions are equal when they name the same chord in the same
    function, whatever their confidence.
    """

    symbol: str  # Display symbol (e.g., "G7", "Am")
    degree: str  # Roman numeral in the key (e.g., "V7", "vi")
    confidence: float = field(default=0.0, compare=False)


class KeyMode(Enum):
    """Key modes supported by the estimator."""
    MAJOR = "major"
    MINOR = "minor"

    @property
    def intervals(self) -> Tuple[int, ...]:
        return MAJOR_SCALE if self is KeyMode.MAJOR else MINOR_SCALE

    @property
    def other(self) -> "KeyMode":
        return KeyMode.MINOR if self is KeyMode.MAJOR else KeyMode.MAJOR


@dataclass(frozen=True)
class KeyEstimate:
    """Global key of a recording."""

    tonic: int  # Pitch class of the tonic (0-11)
    mode: KeyMode
    confidence: float

    @property
    def tonic_name(self) -> str:
        return PITCH_NAMES[self.tonic]

    @property
    def name(self) -> str:
        return f"{self.tonic_name} {self.mode.value}"

    @property
    def scale(self) -> FrozenSet[int]:
        """Pitch classes of the diatonic scale."""
        return frozenset((self.tonic + i) % 12 for i in self.mode.intervals)

    @property
    def relative_key(self) -> str:
        """
        Get the relative major/minor key.

        Relative minor is 3 semitones down from major.
        Relative major is 3 semitones up from minor.
        """
        if self.mode is KeyMode.MAJOR:
            return f"{PITCH_NAMES[(self.tonic - 3) % 12]} minor"
        return f"{PITCH_NAMES[(self.tonic + 3) % 12]} major"

    @property
    def parallel_key(self) -> str:
        return f"{self.tonic_name} {self.mode.other.value}"


@dataclass(frozen=True)
class TimeSignature:
    """Meter of a recording (e.g., 3/4, 6/8)."""

    upper: int = 4  # Beats per measure
    lower: int = 4  # Note value of one beat

    def __post_init__(self):
        if self.upper < 1:
            raise ValueError(f"Time signature numerator must be >= 1, got {self.upper}")
        if self.lower not in (1, 2, 4, 8, 16, 32):
            raise ValueError(f"Time signature denominator must be a power of two, got {self.lower}")

    @property
    def beats_per_measure(self) -> int:
        return self.upper

    @classmethod
    def parse(cls, text: str) -> "TimeSignature":
        """Parse a "upper/lower" string such as "6/8"."""
        try:
            upper, lower = text.strip().split("/")
            return cls(int(upper), int(lower))
        except ValueError as exc:
            raise ValueError(f"Invalid time signature {text!r}: {exc}") from None

    @classmethod
    def coerce(cls, value: Union["TimeSignature", Tuple[int, int], str]) -> "TimeSignature":
        """Accept a TimeSignature, an (upper, lower) tuple or a "upper/lower" string."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        upper, lower = value
        return cls(int(upper), int(lower))

    def __str__(self) -> str:
        return f"{self.upper}/{self.lower}"


@dataclass(frozen=True)
class Measure:
    """One measure of the transcription with its chord annotation."""

    index: int  # 0-based measure number
    start_time: float  # Seconds
    notes: Tuple[NoteEvent, ...] = ()
    chord_suggestions: Tuple[ChordPrediction, ...] = ()
    automatic_chord: Optional[ChordPrediction] = None
    selected_chord: Optional[ChordPrediction] = None  # Set by the user, never by the engine

    @property
    def chord(self) -> Optional[ChordPrediction]:
        """Effective chord: the user's choice, else the engine's pick."""
        if self.selected_chord is not None:
            return self.selected_chord
        return self.automatic_chord

    def with_chords(
        self,
        suggestions: Sequence[ChordPrediction],
        automatic: Optional[ChordPrediction],
    ) -> "Measure":
        return dataclasses.replace(
            self,
            chord_suggestions=tuple(suggestions),
            automatic_chord=automatic,
        )

    def select_chord(self, chord: Optional[ChordPrediction]) -> "Measure":
        """Override the effective chord (None clears the override)."""
        return dataclasses.replace(self, selected_chord=chord)


@dataclass(frozen=True)
class AnalysisResult:
    """Complete transcription of one recording."""

    measures: Tuple[Measure, ...]
    key: Optional[KeyEstimate]
    bpm: float
    time_signature: TimeSignature

    @property
    def chords(self) -> Tuple[Optional[ChordPrediction], ...]:
        """Effective chord of every measure."""
        return tuple(m.chord for m in self.measures)

    def measure(self, index: int) -> Measure:
        for measure in self.measures:
            if measure.index == index:
                return measure
        raise KeyError(f"No measure with index {index}")

    def select_chord(self, index: int, chord: Optional[ChordPrediction]) -> "AnalysisResult":
        """
        Return a copy with the chord of one measure overridden.

        Raises:
            KeyError: If no measure has this index
        """
        target = self.measure(index)
        measures = tuple(
            m.select_chord(chord) if m is target else m
            for m in self.measures
        )
        return dataclasses.replace(self, measures=measures)
