"""Global constants for Hummer."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
SOLFEGE_NAMES = ["Do", "Do#", "Re", "Re#", "Mi", "Fa", "Fa#", "Sol", "Sol#", "La", "La#", "Si"]

# Enharmonic spellings accepted when parsing note names
PITCH_CLASS_INDEX = {
    "C": 0, "C#": 1, "Db": 1,
    "D": 2, "D#": 3, "Eb": 3,
    "E": 4, "Fb": 4, "E#": 5,
    "F": 5, "F#": 6, "Gb": 6,
    "G": 7, "G#": 8, "Ab": 8,
    "A": 9, "A#": 10, "Bb": 10,
    "B": 11, "Cb": 11, "B#": 0,
}

# Scale intervals from the tonic
MAJOR_SCALE = (0, 2, 4, 5, 7, 9, 11)
MINOR_SCALE = (0, 2, 3, 5, 7, 8, 10)  # Natural minor

# Audio processing defaults
DEFAULT_SR = 44100
DEFAULT_FRAME_SIZE = 4096
DEFAULT_HOP_SIZE = 1024
DEFAULT_MIN_FREQUENCY = 70.0
DEFAULT_MAX_FREQUENCY = 1000.0

# Musical defaults
DEFAULT_TEMPO = 90.0
DEFAULT_TIME_SIGNATURE = (4, 4)
COMMON_TIME_SIGNATURES = ((2, 4), (3, 4), (4, 4), (6, 8), (5, 4))
MIN_NOTE_BEATS = 0.05
