"""MusicXML lead-sheet export via music21."""

import logging
from pathlib import Path
from typing import Optional, Union

from ..core import PITCH_NAMES, AnalysisResult, ChordPrediction, Measure
from ..inference import ChordQuality, parse_chord_symbol

logger = logging.getLogger(__name__)

# music21 ChordSymbol kinds (MusicXML <kind> values)
CHORD_KINDS = {
    ChordQuality.MAJOR: "major",
    ChordQuality.MINOR: "minor",
    ChordQuality.DIMINISHED: "diminished",
    ChordQuality.MAJOR7: "major-seventh",
    ChordQuality.DOMINANT7: "dominant-seventh",
    ChordQuality.MINOR7: "minor-seventh",
    ChordQuality.HALF_DIMINISHED7: "half-diminished-seventh",
}


def quantize(quarters: float, grid: int = 16) -> float:
    """Round a quarter-note length to 1/grid of a quarter."""
    return round(quarters * grid) / grid


class MusicXMLExporter:
    """Export an analysis as a single-staff lead sheet."""

    def __init__(self, title: str = "Hummed Melody", grid: int = 16):
        """
        Initialize MusicXMLExporter.

        Args:
            title: Score title
            grid: Subdivisions of a quarter note used for quantization
        """
        self.title = title
        self.grid = grid

    def to_score(self, result: AnalysisResult):
        """Build a music21 Score without saving."""
        try:
            from music21 import key as m21_key
            from music21 import metadata, meter, stream
            from music21 import tempo as m21_tempo
        except ImportError:
            raise ImportError("music21 is required for MusicXML export")

        score = stream.Score()
        score.metadata = metadata.Metadata()
        score.metadata.title = self.title

        part = stream.Part()
        quarters_per_beat = 4.0 / result.time_signature.lower
        measure_length = result.time_signature.upper * quarters_per_beat

        by_index = {m.index: m for m in result.measures}
        last_index = max(by_index) if by_index else -1

        for index in range(last_index + 1):
            bar = stream.Measure(number=index + 1)
            if index == 0:
                bar.insert(0, m21_tempo.MetronomeMark(number=result.bpm))
                bar.insert(0, meter.TimeSignature(str(result.time_signature)))
                if result.key is not None:
                    bar.insert(0, m21_key.Key(result.key.tonic_name, result.key.mode.value))
            self._fill_measure(bar, by_index.get(index), quarters_per_beat, measure_length)
            part.append(bar)

        score.append(part)
        return score

    def export(self, result: AnalysisResult, output_path: Union[str, Path]) -> None:
        """
        Export an analysis to a MusicXML file.

        Args:
            result: AnalysisResult to export
            output_path: Path to output MusicXML file
        """
        score = self.to_score(result)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        score.write("musicxml", fp=str(output_path))
        logger.info("Wrote MusicXML to %s", output_path)

    def _fill_measure(
        self,
        bar,
        measure: Optional[Measure],
        quarters_per_beat: float,
        measure_length: float,
    ) -> None:
        """Append notes and rests covering exactly one measure."""
        from music21 import note as m21_note

        cursor = 0.0
        if measure is not None:
            symbol = self._chord_symbol(measure.chord)
            if symbol is not None:
                bar.insert(0, symbol)

            for event in measure.notes:
                offset = max(cursor, quantize(event.start_beat * quarters_per_beat, self.grid))
                length = min(
                    quantize(event.duration_beats * quarters_per_beat, self.grid),
                    measure_length - offset,
                )
                if length <= 0:
                    continue
                if offset > cursor:
                    bar.append(m21_note.Rest(quarterLength=offset - cursor))
                pitched = m21_note.Note()
                pitched.pitch.midi = event.midi_note
                pitched.duration.quarterLength = length
                bar.append(pitched)
                cursor = offset + length

        if cursor < measure_length:
            bar.append(m21_note.Rest(quarterLength=measure_length - cursor))

    def _chord_symbol(self, chord: Optional[ChordPrediction]):
        if chord is None:
            return None
        from music21 import harmony

        try:
            root, quality = parse_chord_symbol(chord.symbol)
        except ValueError:
            logger.info("Cannot notate chord %r, leaving measure without symbol", chord.symbol)
            return None
        return harmony.ChordSymbol(root=PITCH_NAMES[root], kind=CHORD_KINDS[quality])
