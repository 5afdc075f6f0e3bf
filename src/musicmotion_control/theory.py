from __future__ import annotations

from typing import Dict, List, Tuple

NOTE_NAMES: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Scale definitions as semitone offsets from the root.
# Some scales end on the octave (12) so the top of the hand range resolves to it.
SCALES: Dict[str, List[int]] = {
    "major": [0, 2, 4, 5, 7, 9, 11],
    "minor": [0, 2, 3, 5, 7, 8, 10],
    "pentatonic": [0, 2, 4, 7, 9, 12],
    "majorBlues": [0, 3, 5, 6, 7, 10, 12],
    "minorBlues": [0, 3, 5, 6, 7, 10, 12],
    "chromatic": list(range(13)),
}

CHORD_TYPES: Dict[str, List[int]] = {
    "major": [0, 4, 7],
    "minor": [0, 3, 7],
    "diminished": [0, 3, 6],
    "augmented": [0, 4, 8],
    "dominant7": [0, 4, 7, 10],
    "minor7": [0, 3, 7, 10],
    "major7": [0, 4, 7, 11],
    "diminished7": [0, 3, 6, 9],
    "sus4": [0, 5, 7],
}

CHORD_SUFFIXES: Dict[str, str] = {
    "major": "",
    "minor": "m",
    "diminished": "dim",
    "augmented": "aug",
    "dominant7": "7",
    "minor7": "m7",
    "major7": "maj7",
    "diminished7": "dim7",
    "sus4": "sus4",
}

# Chord quality per scale degree.
PROGRESSIONS: Dict[str, List[str]] = {
    "major": ["major", "minor", "minor", "major", "dominant7", "minor", "diminished"],
    "minor": ["minor", "diminished", "major", "minor", "minor", "major", "major"],
    "majorBlues": ["dominant7", "minor7", "dominant7", "minor7", "dominant7", "minor7"],
    "minorBlues": ["dominant7", "minor7", "dominant7", "minor7", "dominant7", "minor7"],
}

SEVENTH_UPGRADES: Dict[str, str] = {
    "major": "major7",
    "minor": "minor7",
    "diminished": "diminished7",
}

DEFAULT_ROOT = 0  # C
DEFAULT_OCTAVE = 4
MIN_OCTAVE = 0
MAX_OCTAVE = 9
# MIDI number of C at the reference octave (C4).
REFERENCE_OCTAVE = 4
REFERENCE_MIDI = 60


def default_progression(length: int) -> List[str]:
    """Alternating major/minor qualities for scales without a dedicated table."""
    return ["major" if i % 2 == 0 else "minor" for i in range(max(1, length))]


def pitch_class_from_name(name) -> int:
    """Index of `name` in NOTE_NAMES, or -1 when it is not a note name."""
    try:
        return NOTE_NAMES.index(name)
    except ValueError:
        return -1
