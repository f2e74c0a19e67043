"""Note segmentation - Turn a pitch contour into measures of notes."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..core import Measure, NoteEvent, PitchFrame, TimeSignature
from ..core.constants import MIN_NOTE_BEATS
from ..core.pitch import pitch_class_name

logger = logging.getLogger(__name__)


@dataclass
class _RunningNote:
    """Frames accumulated for the note currently being held."""

    name: str
    start_time: float
    frequency_sum: float = 0.0
    confidence_sum: float = 0.0
    frame_count: int = 0

    def add(self, frame: PitchFrame) -> None:
        self.frequency_sum += frame.frequency
        self.confidence_sum += frame.confidence
        self.frame_count += 1


class NoteSegmenter:
    """Group pitch frames into notes and measures.

    Measures are laid out on the declared tempo grid. Only measures that
    received at least one frame are returned, so silent stretches past the
    end of a take leave gaps in the index sequence instead of empty
    placeholder measures.
    """

    def __init__(
        self,
        bpm: float,
        time_signature: Union[TimeSignature, Tuple[int, int], str] = TimeSignature(),
        min_note_beats: float = MIN_NOTE_BEATS,
    ):
        """
        Initialize NoteSegmenter.

        Args:
            bpm: Tempo in beats per minute
            time_signature: Meter, e.g. TimeSignature(3, 4), (6, 8) or "4/4"
            min_note_beats: Notes shorter than this are dropped as spurious
        """
        if bpm <= 0:
            raise ValueError(f"Tempo must be positive, got {bpm}")
        self.bpm = float(bpm)
        self.time_signature = TimeSignature.coerce(time_signature)
        self.min_note_beats = min_note_beats

    @property
    def seconds_per_beat(self) -> float:
        """Duration of one beat (the time signature's lower note value)."""
        return (60.0 / self.bpm) * (4.0 / self.time_signature.lower)

    @property
    def measure_duration(self) -> float:
        """Duration of one measure in seconds."""
        return self.time_signature.upper * self.seconds_per_beat

    def measure_index(self, time: float) -> int:
        return max(0, int(time // self.measure_duration))

    def segment(self, frames: Iterable[PitchFrame]) -> List[Measure]:
        """
        Segment pitch frames into measures.

        Args:
            frames: Pitch frames in time order

        Returns:
            Measures in ascending index order, one per index holding frames
        """
        by_measure: Dict[int, List[PitchFrame]] = defaultdict(list)
        for frame in frames:
            by_measure[self.measure_index(frame.time)].append(frame)

        measures = [
            self._build_measure(index, by_measure[index])
            for index in sorted(by_measure)
        ]
        logger.debug(
            "Segmented %d measures with %d notes",
            len(measures), sum(len(m.notes) for m in measures),
        )
        return measures

    def _build_measure(self, index: int, frames: List[PitchFrame]) -> Measure:
        start_time = index * self.measure_duration
        notes: List[NoteEvent] = []
        current: Optional[_RunningNote] = None

        def finalize(end_time: float) -> None:
            nonlocal current
            if current is None:
                return
            note = self._make_note(current, end_time, start_time)
            if note is not None:
                notes.append(note)
            current = None

        # Consecutive frames on the same pitch class form one sustained note
        for frame in frames:
            if frame.frequency is None:
                finalize(frame.time)
                continue

            name = pitch_class_name(frame.frequency)
            if current is not None and current.name == name:
                current.add(frame)
            else:
                finalize(frame.time)
                current = _RunningNote(name=name, start_time=frame.time)
                current.add(frame)

        last = frames[-1]
        finalize(last.time + last.duration)

        return Measure(index=index, start_time=start_time, notes=tuple(notes))

    def _make_note(
        self,
        running: _RunningNote,
        end_time: float,
        measure_start: float,
    ) -> Optional[NoteEvent]:
        """Close a running note, or None if it is too short to be real."""
        duration_beats = (end_time - running.start_time) / self.seconds_per_beat
        if duration_beats < self.min_note_beats:
            return None

        return NoteEvent(
            name=running.name,
            frequency=running.frequency_sum / running.frame_count,
            start_beat=(running.start_time - measure_start) / self.seconds_per_beat,
            duration_beats=duration_beats,
            confidence=running.confidence_sum / running.frame_count,
        )
