"""Pitch tracking - Per-frame fundamental frequency of a monophonic voice.

Slides a Hann-windowed FFT across the recording, takes the strongest bin in
the singing range as the pitch estimate and then smooths the contour with a
median over confident neighbours.
"""

import dataclasses
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Optional

import librosa
import numpy as np
import scipy.fft
import scipy.signal

from ..core import PitchFrame
from ..core.constants import (
    DEFAULT_FRAME_SIZE,
    DEFAULT_HOP_SIZE,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MIN_FREQUENCY,
)
from ..core.errors import EngineUnavailableError, InsufficientDataError
from ..core.pitch import semitone_distance

logger = logging.getLogger(__name__)


@dataclass
class PitchTrackerConfig:
    """Configuration for pitch tracking.

    Attributes:
        frame_size: FFT length in samples, a power of two (default: 4096)
        hop_size: Samples between frame starts (default: 1024)
        min_frequency: Lowest tracked frequency in Hz (default: 70)
        max_frequency: Highest tracked frequency in Hz (default: 1000)
        min_amplitude: RMS below which a frame is silent (default: 0.02)
        min_confidence: Peak ratio below which a frame is unvoiced (default: 0.15)
        smoothing_radius: Neighbour frames on each side used for smoothing (default: 2)
        min_neighbors: Confident neighbours needed to smooth a frame (default: 3)
        median_weight: Share of the neighbour median in the blend (default: 0.65)
        max_jump_semitones: Jump from the previous output treated as an outlier (default: 10)
        jump_confidence: Raw confidence under which a jump is dropped (default: 0.25)
    """

    frame_size: int = DEFAULT_FRAME_SIZE
    hop_size: int = DEFAULT_HOP_SIZE
    min_frequency: float = DEFAULT_MIN_FREQUENCY
    max_frequency: float = DEFAULT_MAX_FREQUENCY
    min_amplitude: float = 0.02
    min_confidence: float = 0.15
    smoothing_radius: int = 2
    min_neighbors: int = 3
    median_weight: float = 0.65
    max_jump_semitones: float = 10.0
    jump_confidence: float = 0.25


class PitchTracker:
    """Estimate one fundamental frequency per frame.

    The tracker keeps no state between calls; every call to :meth:`track`
    returns an independent one-shot iterator.
    """

    def __init__(self, config: Optional[PitchTrackerConfig] = None, **overrides):
        """
        Initialize PitchTracker.

        Args:
            config: Optional PitchTrackerConfig
            **overrides: Individual config fields (e.g., hop_size=512)
        """
        config = config or PitchTrackerConfig()
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self.config = config

    def track(self, samples: Iterable[float], sample_rate: float) -> Iterator[PitchFrame]:
        """
        Track pitch across a recording.

        Input is validated immediately; frames are computed lazily.

        Args:
            samples: Mono audio samples
            sample_rate: Sample rate in Hz

        Returns:
            Iterator of smoothed PitchFrame, one per hop

        Raises:
            InsufficientDataError: If the recording is shorter than one frame
            EngineUnavailableError: If the FFT cannot be set up
        """
        audio = np.asarray(samples, dtype=np.float64)
        if audio.ndim != 1:
            raise ValueError(f"Expected mono samples, got array of shape {audio.shape}")
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        if len(audio) < self.config.frame_size:
            raise InsufficientDataError(
                f"Recording has {len(audio)} samples, "
                f"need at least {self.config.frame_size} for one analysis frame"
            )

        window = self._build_window()
        logger.debug(
            "Tracking %d samples at %.0f Hz (frame=%d, hop=%d)",
            len(audio), sample_rate, self.config.frame_size, self.config.hop_size,
        )
        raw = self._raw_frames(audio, float(sample_rate), window)
        return self._smooth(raw)

    def _build_window(self) -> np.ndarray:
        """Hann window for the configured frame size."""
        size = self.config.frame_size
        if size < 2 or size & (size - 1):
            raise EngineUnavailableError(
                f"Frame size must be a power of two for the radix-2 FFT, got {size}"
            )
        try:
            return scipy.signal.get_window("hann", size)
        except (ValueError, MemoryError) as exc:
            raise EngineUnavailableError(f"Could not build analysis window: {exc}") from exc

    def _band_limits(self, sample_rate: float) -> tuple:
        """Inclusive FFT bin range of the tracked frequency band."""
        size = self.config.frame_size
        low = max(1, int(self.config.min_frequency / sample_rate * size))
        high = min(size // 2 - 1, int(self.config.max_frequency / sample_rate * size))
        return low, high

    def _raw_frames(
        self,
        audio: np.ndarray,
        sample_rate: float,
        window: np.ndarray,
    ) -> Iterator[PitchFrame]:
        """Unsmoothed per-frame estimates."""
        size = self.config.frame_size
        hop = self.config.hop_size
        low, high = self._band_limits(sample_rate)
        frame_duration = hop / sample_rate

        frames = librosa.util.frame(audio, frame_length=size, hop_length=hop)

        for i in range(frames.shape[-1]):
            frame = frames[:, i]
            rms = float(np.sqrt(np.mean(frame ** 2)))

            spectrum = scipy.fft.rfft(frame * window)
            power = np.abs(spectrum) ** 2

            peak_index = low
            confidence = 0.0
            if high > low:
                band = power[low:high + 1]
                energy = float(band.sum())
                peak_index = low + int(np.argmax(band))
                if energy > 0:
                    confidence = float(band.max()) / energy

            silent = rms < self.config.min_amplitude or confidence < self.config.min_confidence
            frequency = None if silent else peak_index * sample_rate / size

            yield PitchFrame(
                time=i * hop / sample_rate,
                duration=frame_duration,
                frequency=frequency,
                confidence=confidence,
                amplitude=rms,
            )

    def _smooth(self, frames: Iterable[PitchFrame]) -> Iterator[PitchFrame]:
        """
        Median-smooth the contour using a bounded look-ahead.

        Each frame sees `smoothing_radius` raw frames on either side.
        """
        radius = self.config.smoothing_radius
        if radius <= 0:
            yield from frames
            return

        history: Deque[PitchFrame] = deque(maxlen=radius)
        pending: Deque[PitchFrame] = deque()
        previous: Optional[float] = None

        def emit(current: PitchFrame) -> PitchFrame:
            lookahead = list(pending)[:radius]
            neighbors = [*history, current, *lookahead]
            refined = self._refine(current, neighbors, previous)
            history.append(current)
            return refined

        for frame in frames:
            pending.append(frame)
            if len(pending) > radius:
                out = emit(pending.popleft())
                previous = out.frequency
                yield out

        while pending:
            out = emit(pending.popleft())
            previous = out.frequency
            yield out

    def _refine(
        self,
        frame: PitchFrame,
        neighbors: List[PitchFrame],
        previous: Optional[float],
    ) -> PitchFrame:
        """Blend one frame with the median of its confident neighbours."""
        if frame.frequency is None:
            return frame

        confident = sorted(
            n.frequency for n in neighbors
            if n.frequency is not None and n.confidence >= self.config.min_confidence
        )
        if len(confident) < self.config.min_neighbors:
            return frame

        median = confident[len(confident) // 2]
        weight = self.config.median_weight
        blended = (1.0 - weight) * frame.frequency + weight * median

        if (
            previous is not None
            and semitone_distance(blended, previous) > self.config.max_jump_semitones
            and frame.confidence < self.config.jump_confidence
        ):
            blended = None

        return PitchFrame(
            time=frame.time,
            duration=frame.duration,
            frequency=blended,
            confidence=frame.confidence,
            amplitude=frame.amplitude,
        )
