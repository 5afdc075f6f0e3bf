"""
Position -> pitch / chord quantization.

Both entry points are total: whatever the gesture value or configuration, they
return a valid `Pitch` / non-empty `Chord` and never raise. Tracking noise must
never turn into an exception or a missing note in the audio path.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from .config import ScaleConfig
from .theory import (
    CHORD_SUFFIXES,
    CHORD_TYPES,
    DEFAULT_OCTAVE,
    DEFAULT_ROOT,
    NOTE_NAMES,
    REFERENCE_MIDI,
    REFERENCE_OCTAVE,
    SEVENTH_UPGRADES,
)
from .types import Chord, Pitch
from .utils import is_number, map_range, normalize_position

logger = logging.getLogger(__name__)

MAX_CHORD_DEGREES = 8
FALLBACK_QUALITY = "major"


def _valid_root(root) -> Optional[int]:
    if isinstance(root, int) and not isinstance(root, bool) and 0 <= root < 12:
        return root
    return None


def _valid_octave(octave) -> int:
    if is_number(octave):
        return int(octave)
    return DEFAULT_OCTAVE


def _valid_offset(value) -> Optional[int]:
    if is_number(value) and 0 <= value <= 12:
        return int(value)
    return None


def _scale(config: ScaleConfig) -> Optional[List[int]]:
    """Validated semitone offsets, or None when any entry is unusable."""
    intervals = getattr(config, "intervals", None)
    if not isinstance(intervals, (list, tuple)) or not intervals:
        return None
    offsets = [_valid_offset(v) for v in intervals]
    if any(o is None for o in offsets):
        logger.debug("Invalid scale intervals %r", intervals)
        return None
    return offsets


def _int_setting(config, name: str, default: int) -> int:
    value = getattr(config, name, default)
    return int(value) if is_number(value) else default


def get_note(y, config: ScaleConfig) -> Pitch:
    """
    Map a vertical hand position to a scale note.

    The axis is inverted (image y grows downwards, a raised hand plays higher) and
    spread over `note_range` scale positions, so the top of the range spans more
    than one octave.
    """
    octave = _valid_octave(getattr(config, "octave", DEFAULT_OCTAVE))
    root = _valid_root(getattr(config, "root", None))
    if root is None:
        logger.debug("Invalid root %r, falling back to C", getattr(config, "root", None))
        return Pitch.of(DEFAULT_ROOT, octave)

    scale = _scale(config)
    if scale is None:
        return Pitch.of(root, octave)

    total = max(_int_setting(config, "note_range", len(scale)), len(scale))
    position = int(math.floor(map_range(normalize_position(y), 0.0, 1.0, total, 0)))
    position = min(max(position, 0), total - 1)

    octave_offset, index = divmod(position, len(scale))
    midi = REFERENCE_MIDI + root + scale[index] + 12 * (octave - REFERENCE_OCTAVE + octave_offset)
    return Pitch.from_midi(midi)


def _chord_notes(root_pc: int, octave: int, intervals: Sequence) -> List[Pitch]:
    base = Pitch.of(root_pc, octave).midi
    notes: List[Pitch] = []
    for interval in intervals:
        if not is_number(interval):
            continue
        p = Pitch.from_midi(base + int(interval))
        if p not in notes:
            notes.append(p)
    return notes


def _chord_name(root_pc: int, quality: str) -> str:
    return f"{NOTE_NAMES[root_pc]}{CHORD_SUFFIXES.get(quality, quality)}"


def fallback_chord(root=DEFAULT_ROOT, octave=DEFAULT_OCTAVE) -> Chord:
    """Root-position major triad one octave below `octave` (the harmony register)."""
    root_pc = _valid_root(root)
    if root_pc is None:
        root_pc = DEFAULT_ROOT
    notes = _chord_notes(root_pc, _valid_octave(octave) - 1, CHORD_TYPES[FALLBACK_QUALITY])
    return Chord(root=root_pc, quality=FALLBACK_QUALITY, notes=tuple(notes), name=_chord_name(root_pc, FALLBACK_QUALITY))


def chord_degree(y, config: ScaleConfig) -> int:
    """Scale degree selected by `y` inside the chord band (0 for an unusable scale)."""
    scale = _scale(config)
    if scale is None:
        return 0
    degrees = max(1, min(_int_setting(config, "chord_range", MAX_CHORD_DEGREES), len(scale), MAX_CHORD_DEGREES))
    low = getattr(config, "chord_low", 0.0)
    high = getattr(config, "chord_high", 1.0)
    if not (is_number(low) and is_number(high)):
        low, high = 0.0, 1.0
    position = int(math.floor(map_range(normalize_position(y), low, high, degrees, 0)))
    return min(max(position, 0), degrees - 1) % len(scale)


def _quality_for(degree: int, progression, use_seventh: bool) -> str:
    quality = FALLBACK_QUALITY
    if isinstance(progression, (list, tuple)) and progression:
        quality = progression[degree % len(progression)]
    if not isinstance(quality, str) or quality not in CHORD_TYPES:
        logger.debug("Unknown chord quality %r, using %s", quality, FALLBACK_QUALITY)
        quality = FALLBACK_QUALITY
    if use_seventh:
        quality = SEVENTH_UPGRADES.get(quality, quality)
    return quality


def get_chord(y, config: ScaleConfig, use_seventh: bool = False) -> Chord:
    """
    Map a vertical hand position to a diatonic chord.

    Only the central band (`chord_low`..`chord_high`) of the axis selects chords,
    quantized to at most 8 degrees. Chord notes sit one octave below the melody
    register.
    """
    octave = _valid_octave(getattr(config, "octave", DEFAULT_OCTAVE))
    root = _valid_root(getattr(config, "root", None))
    if root is None:
        return fallback_chord(DEFAULT_ROOT, octave)

    scale = _scale(config)
    if scale is None:
        return fallback_chord(root, octave)

    degree = chord_degree(y, config)
    quality = _quality_for(degree, getattr(config, "progression", ()), use_seventh)

    chord_root = (root + scale[degree]) % 12
    notes = _chord_notes(chord_root, octave - 1, CHORD_TYPES[quality])
    if not notes:
        return fallback_chord(root, octave)
    return Chord(root=chord_root, quality=quality, notes=tuple(notes), name=_chord_name(chord_root, quality))
