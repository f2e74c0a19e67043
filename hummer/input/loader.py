"""Audio loading for recorded takes."""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import librosa
import numpy as np

from ..core.constants import DEFAULT_SR

logger = logging.getLogger(__name__)


class AudioLoader:
    """Load a recording from disk as a mono float buffer."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aiff", ".caf"}

    def __init__(
        self,
        target_sr: Optional[int] = DEFAULT_SR,
        mono: bool = True,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the file's rate)
            mono: Convert to mono if True
            normalize: Peak-normalize amplitude if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    def load(self, path: Union[str, Path]) -> Tuple[np.ndarray, int]:
        """
        Load audio file and preprocess.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (audio array, sample rate)

        Raises:
            ValueError: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        # librosa handles resampling and mono conversion
        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=self.mono)
        logger.debug("Loaded %s: %d samples at %d Hz", path.name, len(audio), sr)

        if self.normalize:
            audio = self._normalize(audio)

        return audio, int(sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if audio.size else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    def get_duration(self, audio: np.ndarray, sr: Optional[int] = None) -> float:
        """Get duration in seconds."""
        sr = sr or self.target_sr
        return len(audio) / sr
