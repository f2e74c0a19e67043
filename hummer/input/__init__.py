"""Input layer - Recorded audio from files."""

from .loader import AudioLoader

__all__ = ["AudioLoader"]
