"""MIDI export functionality."""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import pretty_midi

from ..core import AnalysisResult, ChordPrediction
from ..inference import parse_chord_symbol

logger = logging.getLogger(__name__)


class MIDIExporter:
    """Export an analysis as a melody track plus a block-chord track."""

    def __init__(
        self,
        program: int = 0,
        chord_program: int = 0,
        chord_octave: int = 3,
        velocity: int = 100,
        chord_velocity: int = 70,
    ):
        """
        Initialize MIDIExporter.

        Args:
            program: MIDI program number for the melody (0-127)
            chord_program: MIDI program number for the chords (0-127)
            chord_octave: Octave of chord roots (3 puts C at MIDI 48)
            velocity: Melody note velocity
            chord_velocity: Chord note velocity
        """
        self.program = program
        self.chord_program = chord_program
        self.chord_octave = chord_octave
        self.velocity = velocity
        self.chord_velocity = chord_velocity

    def to_pretty_midi(self, result: AnalysisResult) -> pretty_midi.PrettyMIDI:
        """Convert an analysis to a PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=result.bpm)
        seconds_per_beat = (60.0 / result.bpm) * (4.0 / result.time_signature.lower)
        measure_duration = result.time_signature.upper * seconds_per_beat

        melody = pretty_midi.Instrument(program=self.program, name="Melody")
        chords = pretty_midi.Instrument(program=self.chord_program, name="Chords")

        for measure in result.measures:
            for note in measure.notes:
                start = measure.start_time + note.start_beat * seconds_per_beat
                melody.notes.append(pretty_midi.Note(
                    velocity=self.velocity,
                    pitch=note.midi_note,
                    start=start,
                    end=start + note.duration_beats * seconds_per_beat,
                ))

            for pitch in self._voicing(measure.chord):
                chords.notes.append(pretty_midi.Note(
                    velocity=self.chord_velocity,
                    pitch=pitch,
                    start=measure.start_time,
                    end=measure.start_time + measure_duration,
                ))

        midi.instruments.append(melody)
        midi.instruments.append(chords)
        return midi

    def export(self, result: AnalysisResult, output_path: Union[str, Path]) -> None:
        """
        Export an analysis to a MIDI file.

        Args:
            result: AnalysisResult to export
            output_path: Path to output MIDI file
        """
        midi = self.to_pretty_midi(result)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(str(output_path))
        logger.info("Wrote MIDI to %s", output_path)

    def _voicing(self, chord: Optional[ChordPrediction]) -> Tuple[int, ...]:
        """Close-position MIDI pitches for a chord, root at the chord octave."""
        if chord is None:
            return ()
        try:
            root, quality = parse_chord_symbol(chord.symbol)
        except ValueError:
            logger.info("Cannot voice chord %r, leaving measure empty", chord.symbol)
            return ()
        base = 12 * (self.chord_octave + 1) + root
        return tuple(base + interval for interval in quality.intervals)
