"""Output layer - Export analyses to various formats.

This layer handles exporting an analysis to:
- JSON-ready dictionaries
- MIDI files (melody and block chords)
- MusicXML lead sheets (for notation software)
"""

from .serialize import to_dict
from .midi import MIDIExporter
from .musicxml import MusicXMLExporter

__all__ = [
    "to_dict",
    "MIDIExporter",
    "MusicXMLExporter",
]
