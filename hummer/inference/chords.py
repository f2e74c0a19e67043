"""Chord inference - One chord per measure from a sung melody.

Implements key-aware chord selection with:
- Diatonic triad and seventh templates derived from the estimated key
- Borrowed major dominant in minor keys
- Duration-weighted template matching per measure
- Progression context from the previously chosen chord
- Chord reuse when no candidate is convincing (avoids flicker)
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from ..core import (
    PITCH_NAMES,
    ChordPrediction,
    KeyEstimate,
    KeyMode,
    Measure,
    NoteEvent,
    clamp,
)
from ..core.pitch import pitch_class_index

logger = logging.getLogger(__name__)


class ChordQuality(Enum):
    """Chord qualities with their intervals above the root."""
    MAJOR = ("major", (0, 4, 7), "")
    MINOR = ("minor", (0, 3, 7), "m")
    DIMINISHED = ("diminished", (0, 3, 6), "°")
    MAJOR7 = ("major7", (0, 4, 7, 11), "maj7")
    DOMINANT7 = ("dominant7", (0, 4, 7, 10), "7")
    MINOR7 = ("minor7", (0, 3, 7, 10), "m7")
    HALF_DIMINISHED7 = ("half_diminished7", (0, 3, 6, 10), "ø7")

    def __init__(self, label: str, intervals: Tuple[int, ...], suffix: str):
        self.label = label
        self.intervals = intervals
        self.suffix = suffix

    @property
    def has_seventh(self) -> bool:
        return len(self.intervals) > 3

    @classmethod
    def from_suffix(cls, suffix: str) -> "ChordQuality":
        for quality in cls:
            if quality.suffix == suffix:
                return quality
        raise ValueError(f"Unknown chord suffix: {suffix!r}")


class ProgressionTag(Enum):
    """Harmonic function of a scale degree, shared by its triad and seventh."""
    I = "I"
    ii = "ii"
    iii = "iii"
    IV = "IV"
    V = "V"
    vi = "vi"
    vii_dim = "vii°"
    i = "i"
    ii_dim = "ii°"
    III = "III"
    iv = "iv"
    v = "v"
    VI = "VI"
    VII = "VII"


_TAG_INDEX = {tag: index for index, tag in enumerate(ProgressionTag)}

# Bonus for moving from one function to another
_PROGRESSION_BONUS = {
    (ProgressionTag.V, ProgressionTag.I): 0.18,
    (ProgressionTag.V, ProgressionTag.vi): 0.08,
    (ProgressionTag.ii, ProgressionTag.V): 0.15,
    (ProgressionTag.IV, ProgressionTag.V): 0.12,
    (ProgressionTag.I, ProgressionTag.IV): 0.10,
    (ProgressionTag.I, ProgressionTag.V): 0.08,
    (ProgressionTag.vi, ProgressionTag.ii): 0.09,
    (ProgressionTag.iii, ProgressionTag.vi): 0.08,
    (ProgressionTag.IV, ProgressionTag.I): 0.14,
    (ProgressionTag.ii, ProgressionTag.I): 0.07,
    (ProgressionTag.i, ProgressionTag.iv): 0.10,
    (ProgressionTag.iv, ProgressionTag.V): 0.12,
    (ProgressionTag.V, ProgressionTag.i): 0.18,
}


def _build_transition_table() -> np.ndarray:
    """Progression bonuses as a (from tag, to tag) matrix, 0 for unlisted pairs."""
    table = np.zeros((len(ProgressionTag), len(ProgressionTag)))
    for (src, dst), bonus in _PROGRESSION_BONUS.items():
        table[_TAG_INDEX[src], _TAG_INDEX[dst]] = bonus
    return table


TRANSITION_TABLE = _build_transition_table()

REPEAT_BONUS = 0.06
FAR_ROOT_PENALTY = 0.05  # Root moves up 7 or more semitones
DISJOINT_ROOT_PENALTY = 0.04  # Root moves up 5 or more with no common tone
SHARED_TONE_WEIGHT = 0.05
CHROMATIC_WEIGHT = 0.1


@dataclass(frozen=True)
class ChordTemplate:
    """A diatonic chord of the current key."""

    root: int  # Pitch class (0-11)
    quality: ChordQuality
    degree: str  # Roman numeral shown to the user (e.g., "V7")
    tag: ProgressionTag

    @property
    def tones(self) -> Tuple[int, ...]:
        """Chord tones as pitch classes: root, third, fifth[, seventh]."""
        return tuple((self.root + i) % 12 for i in self.quality.intervals)

    @property
    def tone_set(self) -> FrozenSet[int]:
        return frozenset(self.tones)

    @property
    def symbol(self) -> str:
        """Get chord symbol (e.g., 'Cmaj7', 'Am', 'B°')."""
        return PITCH_NAMES[self.root] + self.quality.suffix

    def predict(self, confidence: float) -> ChordPrediction:
        return ChordPrediction(
            symbol=self.symbol,
            degree=self.degree,
            confidence=clamp(confidence),
        )


# (offset from tonic, quality, degree label, progression tag), triads then sevenths
_DEGREES = {
    KeyMode.MAJOR: [
        (0, ChordQuality.MAJOR, "I", ProgressionTag.I),
        (2, ChordQuality.MINOR, "ii", ProgressionTag.ii),
        (4, ChordQuality.MINOR, "iii", ProgressionTag.iii),
        (5, ChordQuality.MAJOR, "IV", ProgressionTag.IV),
        (7, ChordQuality.MAJOR, "V", ProgressionTag.V),
        (9, ChordQuality.MINOR, "vi", ProgressionTag.vi),
        (11, ChordQuality.DIMINISHED, "vii°", ProgressionTag.vii_dim),
        (0, ChordQuality.MAJOR7, "Imaj7", ProgressionTag.I),
        (2, ChordQuality.MINOR7, "ii7", ProgressionTag.ii),
        (4, ChordQuality.MINOR7, "iii7", ProgressionTag.iii),
        (5, ChordQuality.MAJOR7, "IVmaj7", ProgressionTag.IV),
        (7, ChordQuality.DOMINANT7, "V7", ProgressionTag.V),
        (9, ChordQuality.MINOR7, "vi7", ProgressionTag.vi),
        (11, ChordQuality.HALF_DIMINISHED7, "viiø7", ProgressionTag.vii_dim),
    ],
    KeyMode.MINOR: [
        (0, ChordQuality.MINOR, "i", ProgressionTag.i),
        (2, ChordQuality.DIMINISHED, "ii°", ProgressionTag.ii_dim),
        (3, ChordQuality.MAJOR, "III", ProgressionTag.III),
        (5, ChordQuality.MINOR, "iv", ProgressionTag.iv),
        (7, ChordQuality.MINOR, "v", ProgressionTag.v),
        (8, ChordQuality.MAJOR, "VI", ProgressionTag.VI),
        (10, ChordQuality.MAJOR, "VII", ProgressionTag.VII),
        (0, ChordQuality.MINOR7, "i7", ProgressionTag.i),
        (2, ChordQuality.HALF_DIMINISHED7, "iiø7", ProgressionTag.ii_dim),
        (3, ChordQuality.MAJOR7, "IIImaj7", ProgressionTag.III),
        (5, ChordQuality.MINOR7, "iv7", ProgressionTag.iv),
        (7, ChordQuality.DOMINANT7, "V7", ProgressionTag.V),
        (8, ChordQuality.MAJOR7, "VImaj7", ProgressionTag.VI),
        (10, ChordQuality.DOMINANT7, "VII7", ProgressionTag.VII),
    ],
}


def parse_chord_symbol(symbol: str) -> Tuple[int, ChordQuality]:
    """
    Split a chord symbol such as "F#m7" into root pitch class and quality.

    Raises:
        ValueError: If the symbol is not one this engine produces
    """
    split = 2 if symbol[1:2] in ("#", "b") else 1
    root, suffix = symbol[:split], symbol[split:]
    return pitch_class_index(root), ChordQuality.from_suffix(suffix)


def diatonic_templates(key: KeyEstimate) -> List[ChordTemplate]:
    """
    Chord templates available in a key.

    Templates with a tone outside the scale are dropped, except the
    dominant (V, V7) of a minor key, borrowed from harmonic minor.
    """
    templates = [
        ChordTemplate((key.tonic + offset) % 12, quality, degree, tag)
        for offset, quality, degree, tag in _DEGREES[key.mode]
    ]

    if key.mode is KeyMode.MINOR:
        dominant = ChordTemplate((key.tonic + 7) % 12, ChordQuality.MAJOR, "V", ProgressionTag.V)
        if not any(t.root == dominant.root and t.quality is dominant.quality for t in templates):
            templates.append(dominant)

    scale = key.scale
    return [
        t for t in templates
        if (key.mode is KeyMode.MINOR and t.tag is ProgressionTag.V)
        or t.tone_set <= scale
    ]


def measure_histogram(notes: Sequence[NoteEvent]) -> Tuple[np.ndarray, float]:
    """
    Duration-weighted pitch-class histogram of one measure.

    Returns:
        Tuple of (12-element histogram in beats, total beats)
    """
    histogram = np.zeros(12)
    for note in notes:
        histogram[note.pitch_class] += note.duration_beats
    return histogram, float(histogram.sum())


@dataclass(frozen=True)
class CandidateScore:
    """How well a template explains a measure, before context."""

    template: ChordTemplate
    coverage: float  # Share of weight on chord tones
    root_weight: float
    third_weight: float
    seventh_weight: Optional[float]  # None for triads
    penalty: float  # Share of weight outside the scale

    @property
    def base_confidence(self) -> float:
        raw = (
            0.6 * self.coverage
            + 0.2 * self.root_weight
            + 0.15 * self.third_weight
            - 0.4 * self.penalty
        )
        if self.seventh_weight is not None:
            raw += 0.1 * self.seventh_weight
        return clamp(raw)


def score_template(
    template: ChordTemplate,
    histogram: np.ndarray,
    total: float,
    scale: FrozenSet[int],
) -> CandidateScore:
    """Score a template against a measure histogram (total must be > 0)."""
    tones = template.tones
    seventh = histogram[tones[3]] / total if template.quality.has_seventh else None
    outside = sum(histogram[pc] for pc in range(12) if pc not in scale)

    return CandidateScore(
        template=template,
        coverage=float(histogram[list(template.tone_set)].sum()) / total,
        root_weight=float(histogram[tones[0]]) / total,
        third_weight=float(histogram[tones[1]]) / total,
        seventh_weight=None if seventh is None else float(seventh),
        penalty=float(outside) / total,
    )


def shared_tone_fraction(previous: ChordTemplate, candidate: ChordTemplate) -> float:
    """Share of the previous chord's tones that the candidate keeps."""
    prev_tones = previous.tone_set
    if not prev_tones:
        return 0.0
    return len(prev_tones & candidate.tone_set) / len(prev_tones)


def transition_bonus(previous: ChordTemplate, candidate: ChordTemplate) -> float:
    """
    Context bonus for moving from the previous chord to a candidate.

    Common progressions and repeats are rewarded; large upward root moves
    are penalised, more so when the chords have no tone in common.
    """
    bonus = float(TRANSITION_TABLE[_TAG_INDEX[previous.tag], _TAG_INDEX[candidate.tag]])

    if previous.tag is candidate.tag:
        bonus += REPEAT_BONUS

    interval = (candidate.root - previous.root) % 12
    if interval >= 7:
        bonus -= FAR_ROOT_PENALTY
    if interval >= 5 and not (previous.tone_set & candidate.tone_set):
        bonus -= DISJOINT_ROOT_PENALTY

    return bonus


def chromatic_penalty(
    histogram: np.ndarray,
    total: float,
    template: ChordTemplate,
    scale: FrozenSet[int],
) -> float:
    """Share of weight on pitch classes in neither the scale nor the chord."""
    if total <= 0:
        return 0.0
    allowed = scale | template.tone_set
    outside = sum(histogram[pc] for pc in range(12) if pc not in allowed)
    return float(outside) / total


def reuse_confidence(previous: ChordTemplate, histogram: np.ndarray, total: float, weight: float = 0.6) -> float:
    """Confidence of repeating the previous chord over this measure."""
    if total <= 0:
        return 0.0
    return weight * float(histogram[list(previous.tone_set)].sum()) / total


@dataclass
class ChordInferenceConfig:
    """Configuration for chord inference.

    Attributes:
        candidate_threshold: Minimum base confidence of a candidate (default: 0.15)
        selection_threshold: Minimum context score to pick a new chord (default: 0.25)
        reuse_threshold: Minimum confidence to repeat the previous chord (default: 0.3)
        reuse_weight: Scale applied to the previous chord's coverage (default: 0.6)
        max_suggestions: Ranked alternatives kept per measure (default: 5)
        require_seventh_evidence: Seventh chords need their seventh sung (default: True)
    """

    candidate_threshold: float = 0.15
    selection_threshold: float = 0.25
    reuse_threshold: float = 0.3
    reuse_weight: float = 0.6
    max_suggestions: int = 5
    require_seventh_evidence: bool = True


@dataclass(frozen=True)
class ChordStep:
    """Outcome of one measure and the context carried into the next."""

    previous: Optional[ChordTemplate]  # Template to use as context next
    prediction: Optional[ChordPrediction]
    suggestions: Tuple[ChordPrediction, ...] = ()


class ChordInferenceEngine:
    """Choose one chord per measure given the key.

    The engine holds only configuration. The previously chosen chord is
    passed into :meth:`step` and returned from it, so each measure can be
    scored in isolation and :meth:`annotate` is a plain left fold.
    """

    def __init__(self, config: Optional[ChordInferenceConfig] = None, **overrides):
        config = config or ChordInferenceConfig()
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self.config = config

    def candidates(
        self,
        histogram: np.ndarray,
        total: float,
        key: KeyEstimate,
    ) -> List[CandidateScore]:
        """Templates that explain the measure well enough, in template order."""
        if total <= 0:
            return []

        scale = key.scale
        result = []
        for template in diatonic_templates(key):
            candidate = score_template(template, histogram, total, scale)
            if self.config.require_seventh_evidence and candidate.seventh_weight == 0:
                continue
            if candidate.base_confidence >= self.config.candidate_threshold:
                result.append(candidate)
        return result

    def context_score(
        self,
        candidate: CandidateScore,
        previous: Optional[ChordTemplate],
        histogram: np.ndarray,
        total: float,
        scale: FrozenSet[int],
    ) -> float:
        """Base confidence adjusted for the previous chord and chromatic notes."""
        score = candidate.base_confidence
        if previous is not None:
            score += transition_bonus(previous, candidate.template)
            score += SHARED_TONE_WEIGHT * shared_tone_fraction(previous, candidate.template)
        score -= CHROMATIC_WEIGHT * chromatic_penalty(histogram, total, candidate.template, scale)
        return clamp(score)

    def step(
        self,
        measure: Measure,
        key: KeyEstimate,
        previous: Optional[ChordTemplate] = None,
    ) -> ChordStep:
        """
        Infer the chord of one measure.

        Args:
            measure: Measure to annotate
            key: Global key
            previous: Template emitted for an earlier measure, if any

        Returns:
            ChordStep with the prediction, ranked suggestions and the
            template to carry forward
        """
        histogram, total = measure_histogram(measure.notes)
        if total <= 0:
            return ChordStep(previous=previous, prediction=None)

        candidates = self.candidates(histogram, total, key)
        if not candidates:
            reused = self._reuse(previous, histogram, total)
            if reused is not None:
                return ChordStep(previous=previous, prediction=reused, suggestions=(reused,))
            return ChordStep(previous=previous, prediction=None)

        scale = key.scale
        scored = [
            (c.template, self.context_score(c, previous, histogram, total, scale))
            for c in candidates
        ]
        # Stable sort: among equal scores the earlier template (triads first) leads
        ranked = sorted(scored, key=lambda item: item[1], reverse=True)
        suggestions = self._top_suggestions(ranked)

        best_template, best_score = ranked[0]
        if best_score >= self.config.selection_threshold:
            pick = best_template.predict(best_score)
            return ChordStep(
                previous=best_template,
                prediction=pick,
                suggestions=self._ensure_contains(suggestions, pick),
            )

        reused = self._reuse(previous, histogram, total)
        if reused is not None:
            return ChordStep(
                previous=previous,
                prediction=reused,
                suggestions=self._ensure_contains(suggestions, reused),
            )

        return ChordStep(previous=previous, prediction=None, suggestions=suggestions)

    def annotate(
        self,
        measures: Sequence[Measure],
        key: Optional[KeyEstimate],
    ) -> List[Measure]:
        """
        Annotate measures with chords, left to right.

        Args:
            measures: Measures in ascending index order
            key: Global key; without one no chords are inferred

        Returns:
            New measures with suggestions and automatic chords set
        """
        if key is None:
            return [m.with_chords((), None) for m in measures]

        annotated = []
        previous: Optional[ChordTemplate] = None
        for measure in measures:
            result = self.step(measure, key, previous)
            annotated.append(measure.with_chords(result.suggestions, result.prediction))
            previous = result.previous

        logger.debug(
            "Annotated %d measures: %s",
            len(annotated),
            " ".join(m.automatic_chord.degree if m.automatic_chord else "-" for m in annotated),
        )
        return annotated

    def _reuse(
        self,
        previous: Optional[ChordTemplate],
        histogram: np.ndarray,
        total: float,
    ) -> Optional[ChordPrediction]:
        """Repeat the previous chord if the measure still fits it."""
        if previous is None:
            return None
        confidence = reuse_confidence(previous, histogram, total, self.config.reuse_weight)
        if confidence >= self.config.reuse_threshold:
            return previous.predict(confidence)
        return None

    def _top_suggestions(self, ranked) -> Tuple[ChordPrediction, ...]:
        suggestions: List[ChordPrediction] = []
        for template, score in ranked:
            prediction = template.predict(score)
            if prediction not in suggestions:
                suggestions.append(prediction)
            if len(suggestions) == self.config.max_suggestions:
                break
        return tuple(suggestions)

    def _ensure_contains(
        self,
        suggestions: Tuple[ChordPrediction, ...],
        pick: ChordPrediction,
    ) -> Tuple[ChordPrediction, ...]:
        if pick in suggestions:
            return suggestions
        return (pick,) + suggestions[:self.config.max_suggestions - 1]
