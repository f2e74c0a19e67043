"""JSON-ready representation of an analysis."""

from typing import Any, Dict, Optional

from ..core import AnalysisResult, ChordPrediction, Measure, NoteEvent


def _chord_dict(chord: Optional[ChordPrediction]) -> Optional[Dict[str, Any]]:
    if chord is None:
        return None
    return {
        "symbol": chord.symbol,
        "degree": chord.degree,
        "confidence": round(chord.confidence, 4),
    }


def _note_dict(note: NoteEvent) -> Dict[str, Any]:
    return {
        "name": note.name,
        "solfege": note.solfege,
        "frequency": round(note.frequency, 2),
        "midi": note.midi_note,
        "start_beat": round(note.start_beat, 4),
        "duration_beats": round(note.duration_beats, 4),
        "confidence": round(note.confidence, 4),
    }


def _measure_dict(measure: Measure) -> Dict[str, Any]:
    return {
        "index": measure.index,
        "start_time": round(measure.start_time, 4),
        "notes": [_note_dict(n) for n in measure.notes],
        "suggestions": [_chord_dict(c) for c in measure.chord_suggestions],
        "automatic_chord": _chord_dict(measure.automatic_chord),
        "selected_chord": _chord_dict(measure.selected_chord),
        "chord": _chord_dict(measure.chord),
    }


def to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """
    Convert an analysis to plain dicts and lists.

    Args:
        result: AnalysisResult to convert

    Returns:
        Dictionary suitable for json.dumps
    """
    key = None
    if result.key is not None:
        key = {
            "tonic": result.key.tonic_name,
            "mode": result.key.mode.value,
            "name": result.key.name,
            "confidence": round(result.key.confidence, 4),
            "relative": result.key.relative_key,
        }

    return {
        "key": key,
        "bpm": round(result.bpm, 2),
        "time_signature": str(result.time_signature),
        "measures": [_measure_dict(m) for m in result.measures],
    }
