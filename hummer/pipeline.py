"""End-to-end analysis of a hummed or sung recording.

Stages:
    1. Pitch tracking (analysis.pitch)
    2. Note and measure segmentation (transcription.segmenter)
    3. Key estimation (inference.key)
    4. Chord inference (inference.chords)
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .analysis import PitchTracker, PitchTrackerConfig, TempoAnalyzer
from .core import AnalysisResult, PitchFrame, TimeSignature
from .core.constants import DEFAULT_SR, DEFAULT_TIME_SIGNATURE, MIN_NOTE_BEATS
from .inference import ChordInferenceConfig, ChordInferenceEngine, KeyEstimator
from .input import AudioLoader
from .transcription import NoteSegmenter

logger = logging.getLogger(__name__)

TimeSignatureLike = Union[TimeSignature, Tuple[int, int], str]


def track_pitch(
    samples: Sequence[float],
    sample_rate: float,
    config: Optional[PitchTrackerConfig] = None,
) -> Iterator[PitchFrame]:
    """
    Track the pitch contour of a recording.

    Raises:
        InsufficientDataError: If the recording is shorter than one frame
    """
    return PitchTracker(config).track(samples, sample_rate)


def analyze(
    samples: Sequence[float],
    sample_rate: float,
    bpm: float,
    time_signature: TimeSignatureLike = DEFAULT_TIME_SIGNATURE,
    pitch_config: Optional[PitchTrackerConfig] = None,
    chord_config: Optional[ChordInferenceConfig] = None,
    key_profile: str = "krumhansl",
    min_note_beats: float = MIN_NOTE_BEATS,
) -> AnalysisResult:
    """
    Transcribe a recording into measures, key and chords.

    A recording with no pitched content is a valid result: its measures
    carry no notes and the key is None.

    Args:
        samples: Mono audio samples
        sample_rate: Sample rate in Hz
        bpm: Tempo in beats per minute
        time_signature: TimeSignature, (upper, lower) tuple or "upper/lower"
        pitch_config: Optional pitch tracker configuration
        chord_config: Optional chord inference configuration
        key_profile: Key profile ("krumhansl" or "temperley")
        min_note_beats: Shortest note kept, in beats

    Returns:
        AnalysisResult

    Raises:
        InsufficientDataError: If the recording is shorter than one frame
        EngineUnavailableError: If the spectral analysis cannot be set up
    """
    return HummingAnalyzer(
        pitch_config=pitch_config,
        chord_config=chord_config,
        key_profile=key_profile,
        min_note_beats=min_note_beats,
    ).analyze(samples, sample_rate, bpm, time_signature)


class HummingAnalyzer:
    """Bundle of pipeline components sharing one configuration.

    Components are stateless between runs, so one analyzer can serve any
    number of recordings.
    """

    def __init__(
        self,
        pitch_config: Optional[PitchTrackerConfig] = None,
        chord_config: Optional[ChordInferenceConfig] = None,
        key_profile: str = "krumhansl",
        min_note_beats: float = MIN_NOTE_BEATS,
        target_sr: int = DEFAULT_SR,
    ):
        self.pitch_tracker = PitchTracker(pitch_config)
        self.key_estimator = KeyEstimator(profile_type=key_profile)
        self.chord_engine = ChordInferenceEngine(chord_config)
        self.min_note_beats = min_note_beats
        self.loader = AudioLoader(target_sr=target_sr)
        self.tempo_analyzer = TempoAnalyzer()

    def analyze(
        self,
        samples: Sequence[float],
        sample_rate: float,
        bpm: float,
        time_signature: TimeSignatureLike = DEFAULT_TIME_SIGNATURE,
    ) -> AnalysisResult:
        """Run all stages on an in-memory recording."""
        meter = TimeSignature.coerce(time_signature)
        segmenter = NoteSegmenter(bpm, meter, min_note_beats=self.min_note_beats)

        frames = self.pitch_tracker.track(samples, sample_rate)
        measures = segmenter.segment(frames)
        key = self.key_estimator.estimate(measures)
        if key is None:
            logger.info("No pitched content found; skipping chord inference")
        measures = self.chord_engine.annotate(measures, key)

        logger.info(
            "Analyzed %d measures at %.1f BPM in %s (key: %s)",
            len(measures), bpm, meter, key.name if key else "none",
        )
        return AnalysisResult(
            measures=tuple(measures),
            key=key,
            bpm=float(bpm),
            time_signature=meter,
        )

    def analyze_file(
        self,
        path: Union[str, Path],
        bpm: Optional[float] = None,
        time_signature: TimeSignatureLike = DEFAULT_TIME_SIGNATURE,
    ) -> AnalysisResult:
        """
        Load and analyze an audio file.

        Args:
            path: Path to audio file
            bpm: Tempo in BPM; estimated from the audio when None
            time_signature: Meter of the recording

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format not supported
        """
        audio, sr = self.loader.load(path)
        if bpm is None:
            bpm = self.tempo_analyzer.detect(audio, sr)
            logger.info("Estimated tempo: %.1f BPM", bpm)
        return self.analyze(np.asarray(audio), sr, bpm, time_signature)
