"""Key estimation - Identify the tonal center of a recording.

Implements profile-matching key detection with:
- Krumhansl-Schmuckler key profiles
- Temperley key profiles (alternative weighting)
- Relative major/minor disambiguation for closely scoring modes
- Confidence from the margin over the best key of the other mode
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..core import KeyEstimate, KeyMode, Measure, clamp

logger = logging.getLogger(__name__)


@dataclass
class KeyCandidate:
    """Best tonic for one mode with its profile score."""
    tonic: int
    mode: KeyMode
    score: float


class KeyEstimator:
    """Estimate a single global key from transcribed measures.

    Scores are raw dot products between the duration histogram and a key
    profile rotated to each tonic, so a longer recording yields larger
    scores but the same ranking.
    """

    # Krumhansl-Schmuckler key profiles (cognitive-based)
    KRUMHANSL_MAJOR = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    KRUMHANSL_MINOR = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    # Temperley key profiles (corpus-based, often more accurate for pop/rock)
    TEMPERLEY_MAJOR = np.array(
        [5.0, 2.0, 3.5, 2.0, 4.5, 4.0, 2.0, 4.5, 2.0, 3.5, 1.5, 4.0]
    )
    TEMPERLEY_MINOR = np.array(
        [5.0, 2.0, 3.5, 4.5, 2.0, 4.0, 2.0, 4.5, 3.5, 2.0, 1.5, 4.0]
    )

    # Relative score gap under which the two modes count as tied
    TIE_MARGIN = 0.12

    def __init__(
        self,
        profile_type: str = "krumhansl",
        tie_margin: float = TIE_MARGIN,
    ):
        """
        Initialize KeyEstimator.

        Args:
            profile_type: Key profile algorithm ("krumhansl" or "temperley")
            tie_margin: Relative gap between mode winners treated as a tie
        """
        if profile_type == "temperley":
            self.profiles = {
                KeyMode.MAJOR: self.TEMPERLEY_MAJOR,
                KeyMode.MINOR: self.TEMPERLEY_MINOR,
            }
        elif profile_type == "krumhansl":
            self.profiles = {
                KeyMode.MAJOR: self.KRUMHANSL_MAJOR,
                KeyMode.MINOR: self.KRUMHANSL_MINOR,
            }
        else:
            raise ValueError(f"Unknown profile type: {profile_type!r}")
        self.profile_type = profile_type
        self.tie_margin = tie_margin

    @staticmethod
    def histogram(measures: Iterable[Measure]) -> np.ndarray:
        """
        Build the duration-weighted pitch-class histogram of all notes.

        Returns:
            12-element array, beats per pitch class
        """
        histogram = np.zeros(12)
        for measure in measures:
            for note in measure.notes:
                histogram[note.pitch_class] += note.duration_beats
        return histogram

    def score_keys(self, histogram: np.ndarray) -> np.ndarray:
        """
        Score every tonic for both modes.

        Returns:
            Array of shape (2, 12): row 0 major, row 1 minor, column = tonic
        """
        # np.roll(profile, t)[i] == profile[(i - t) % 12]
        return np.array([
            [float(np.dot(histogram, np.roll(self.profiles[mode], tonic))) for tonic in range(12)]
            for mode in (KeyMode.MAJOR, KeyMode.MINOR)
        ])

    def estimate(self, measures: Iterable[Measure]) -> Optional[KeyEstimate]:
        """
        Estimate the key of a recording.

        Args:
            measures: Transcribed measures

        Returns:
            KeyEstimate, or None if there is no pitched content
        """
        return self.estimate_from_histogram(self.histogram(measures))

    def estimate_from_histogram(self, histogram: np.ndarray) -> Optional[KeyEstimate]:
        histogram = np.asarray(histogram, dtype=float)
        if not np.any(histogram > 0):
            return None

        scores = self.score_keys(histogram)
        major = self._best(scores[0], KeyMode.MAJOR)
        minor = self._best(scores[1], KeyMode.MINOR)

        best, alternate = (major, minor) if major.score >= minor.score else (minor, major)
        larger = max(major.score, minor.score)
        if larger > 0 and abs(major.score - minor.score) / larger < self.tie_margin:
            best, alternate = self._break_tie(histogram, major, minor)

        difference = max(0.0, best.score - alternate.score)
        margin = difference / best.score if best.score > 0 else 0.0
        estimate = KeyEstimate(
            tonic=best.tonic,
            mode=best.mode,
            confidence=clamp(0.2 + 0.8 * margin),
        )
        logger.debug(
            "Key %s (score %.2f vs %.2f, confidence %.2f)",
            estimate.name, best.score, alternate.score, estimate.confidence,
        )
        return estimate

    @staticmethod
    def _best(row: np.ndarray, mode: KeyMode) -> KeyCandidate:
        tonic = int(np.argmax(row))  # First maximum: lowest tonic wins ties
        return KeyCandidate(tonic=tonic, mode=mode, score=float(row[tonic]))

    def _break_tie(
        self,
        histogram: np.ndarray,
        major: KeyCandidate,
        minor: KeyCandidate,
    ):
        """
        Choose between closely scoring major and minor candidates.

        Relative keys (C major / A minor) share a scale, so profile scores
        barely separate them. The key whose tonic is literally sounded more,
        counted over its tonic triad, wins; the raw tonic weight and then
        major settle exact ties.
        """
        def presence(candidate: KeyCandidate):
            third = 4 if candidate.mode is KeyMode.MAJOR else 3
            triad = [candidate.tonic, (candidate.tonic + third) % 12, (candidate.tonic + 7) % 12]
            return float(histogram[triad].sum()), float(histogram[candidate.tonic])

        if presence(major) >= presence(minor):
            return major, minor
        return minor, major
