"""Analysis layer - Low-level signal analysis.

This layer extracts per-frame information from raw audio:
- Pitch tracking (fundamental frequency, voicing, confidence)
- Tempo estimation
"""

from .pitch import PitchTracker, PitchTrackerConfig
from .tempo import TempoAnalyzer

__all__ = [
    "PitchTracker",
    "PitchTrackerConfig",
    "TempoAnalyzer",
]
