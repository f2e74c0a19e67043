"""Tests for frame-level pitch tracking."""

import pytest
import numpy as np
from collections.abc import Iterator
from pathlib import Path
import sys

# Add package root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from hummer.analysis import PitchTracker, PitchTrackerConfig
from hummer.core import (
    EngineUnavailableError,
    InsufficientDataError,
    PitchFrame,
    pitch_class_name,
)

SR = 44100


def sine(freq: float, seconds: float, sr: int = SR, amplitude: float = 0.5) -> np.ndarray:
    """Generate a pure tone."""
    t = np.arange(int(seconds * sr)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def frame(time: float, frequency, confidence: float = 0.5) -> PitchFrame:
    return PitchFrame(
        time=time,
        duration=0.02,
        frequency=frequency,
        confidence=confidence,
        amplitude=0.3,
    )


class TestPitchTracker:
    """Tests for PitchTracker on synthetic audio."""

    def test_a4_sine(self):
        """Test a 440 Hz tone is tracked as A in every frame."""
        frames = list(PitchTracker().track(sine(440.0, 1.0), SR))

        # One frame per complete 4096-sample window, hop 1024
        assert len(frames) == 1 + (SR - 4096) // 1024
        assert all(f.is_voiced for f in frames)
        assert {pitch_class_name(f.frequency) for f in frames} == {"A"}

    def test_c4_sine(self):
        frames = list(PitchTracker().track(sine(261.63, 1.0), SR))
        assert {pitch_class_name(f.frequency) for f in frames} == {"C"}

    def test_frame_timing(self):
        frames = list(PitchTracker().track(sine(440.0, 0.5), SR))
        assert frames[0].time == 0.0
        assert frames[1].time == pytest.approx(1024 / SR)
        assert frames[0].duration == pytest.approx(1024 / SR)

    def test_confidence_range(self):
        frames = list(PitchTracker().track(sine(330.0, 0.5), SR))
        assert all(0.0 <= f.confidence <= 1.0 for f in frames)

    def test_silence_is_unvoiced(self):
        """Test silent input yields frames without frequency."""
        frames = list(PitchTracker().track(np.zeros(SR), SR))
        assert frames
        assert not any(f.is_voiced for f in frames)
        assert all(f.confidence == 0.0 for f in frames)

    def test_quiet_tone_is_unvoiced(self):
        frames = list(PitchTracker().track(sine(440.0, 0.5, amplitude=0.01), SR))
        assert not any(f.is_voiced for f in frames)

    def test_short_buffer(self):
        """Test a buffer shorter than one frame is rejected."""
        with pytest.raises(InsufficientDataError):
            PitchTracker().track(np.zeros(4095), SR)

    def test_short_buffer_is_value_error(self):
        with pytest.raises(ValueError):
            PitchTracker().track(np.zeros(100), SR)

    def test_exact_frame_length(self):
        frames = list(PitchTracker().track(sine(440.0, 1.0)[:4096], SR))
        assert len(frames) == 1

    def test_non_power_of_two_frame(self):
        with pytest.raises(EngineUnavailableError):
            PitchTracker(frame_size=3000).track(np.zeros(SR), SR)

    def test_stereo_rejected(self):
        with pytest.raises(ValueError):
            PitchTracker().track(np.zeros((2, SR)), SR)

    def test_returns_iterator(self):
        """Test frames are produced lazily."""
        result = PitchTracker().track(sine(440.0, 1.0), SR)
        assert isinstance(result, Iterator)
        first = next(result)
        assert first.time == 0.0

    def test_deterministic(self):
        audio = sine(392.0, 0.7)
        tracker = PitchTracker()
        assert list(tracker.track(audio, SR)) == list(tracker.track(audio, SR))

    def test_config_overrides(self):
        tracker = PitchTracker(PitchTrackerConfig(hop_size=512), min_confidence=0.3)
        assert tracker.config.hop_size == 512
        assert tracker.config.min_confidence == 0.3
        assert tracker.config.frame_size == 4096

    def test_smaller_hop_gives_more_frames(self):
        audio = sine(440.0, 1.0)
        coarse = list(PitchTracker().track(audio, SR))
        fine = list(PitchTracker(hop_size=512).track(audio, SR))
        assert len(fine) > len(coarse)


class TestSmoothing:
    """Tests for median smoothing of the raw contour."""

    def test_outlier_pulled_toward_neighbours(self):
        tracker = PitchTracker()
        raw = [frame(i * 0.02, f) for i, f in enumerate([440.0, 440.0, 470.0, 440.0, 440.0])]

        smoothed = list(tracker._smooth(iter(raw)))

        # 0.35 * 470 + 0.65 * 440
        assert smoothed[2].frequency == pytest.approx(450.5)
        assert len(smoothed) == len(raw)

    def test_too_few_neighbours_keeps_raw(self):
        tracker = PitchTracker()
        raw = [frame(0.0, None), frame(0.02, 300.0), frame(0.04, None)]
        smoothed = list(tracker._smooth(iter(raw)))
        assert [f.frequency for f in smoothed] == [None, 300.0, None]

    def test_low_confidence_jump_dropped(self):
        """Test a far jump with weak evidence becomes unvoiced."""
        tracker = PitchTracker(smoothing_radius=1, min_neighbors=1)
        raw = [frame(i * 0.02, 200.0) for i in range(3)] + [frame(0.06, 800.0, confidence=0.2)]

        smoothed = list(tracker._smooth(iter(raw)))

        assert smoothed[2].frequency == pytest.approx(200.0)
        assert smoothed[3].frequency is None

    def test_confident_jump_kept(self):
        tracker = PitchTracker(smoothing_radius=1, min_neighbors=1)
        raw = [frame(i * 0.02, 200.0) for i in range(3)] + [frame(0.06, 800.0, confidence=0.9)]
        smoothed = list(tracker._smooth(iter(raw)))
        assert smoothed[3].frequency is not None

    def test_unvoiced_frames_untouched(self):
        tracker = PitchTracker()
        raw = [frame(i * 0.02, 440.0) for i in range(5)]
        raw[2] = frame(0.04, None)
        smoothed = list(tracker._smooth(iter(raw)))
        assert smoothed[2].frequency is None
