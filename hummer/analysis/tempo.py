"""Tempo estimation for recordings without a declared tempo."""

import logging

import librosa
import numpy as np

from ..core.constants import DEFAULT_TEMPO

logger = logging.getLogger(__name__)


class TempoAnalyzer:
    """Estimate beats-per-minute from audio."""

    def __init__(self, hop_length: int = 512, default_bpm: float = DEFAULT_TEMPO):
        self.hop_length = hop_length
        self.default_bpm = default_bpm

    def detect(self, audio: np.ndarray, sr: int) -> float:
        """
        Detect tempo.

        Args:
            audio: Audio array
            sr: Sample rate

        Returns:
            Tempo in BPM (default_bpm when no beat is found)
        """
        tempo, _ = librosa.beat.beat_track(
            y=audio,
            sr=sr,
            hop_length=self.hop_length,
        )

        # Handle tempo as array (newer librosa versions)
        tempo = np.atleast_1d(tempo)
        bpm = float(tempo[0]) if len(tempo) > 0 else 0.0

        if not np.isfinite(bpm) or bpm <= 0:
            logger.info("No beat found, using default tempo %.1f BPM", self.default_bpm)
            return self.default_bpm
        return bpm
