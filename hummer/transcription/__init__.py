"""Transcription layer - Note-level structure from the pitch contour.

Converts per-frame pitch estimates into discrete note events laid out in
measures on the declared tempo grid.
"""

from .segmenter import NoteSegmenter

__all__ = [
    "NoteSegmenter",
]
