from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .theory import MAX_OCTAVE, MIN_OCTAVE, NOTE_NAMES
from .utils import clamp_int, distance, is_number


Point3 = Tuple[float, float, float]

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8

_PITCH_RE = re.compile(r"^([A-G]#?)(-?\d+)$")


@dataclass(frozen=True)
class HandLandmark:
    """A single hand landmark in normalized image coordinates."""

    idx: int
    x_norm: float
    y_norm: float
    z_norm: float = 0.0

    @property
    def point(self) -> Point3:
        return (self.x_norm, self.y_norm, self.z_norm)


@dataclass(frozen=True)
class HandSample:
    """One tracked hand for one frame, as delivered by the hand-tracking provider."""

    handedness_label: Optional[str]  # "Left" / "Right" (may be None)
    landmarks: Tuple[HandLandmark, ...]  # normally 21, may be fewer

    def _landmark(self, idx: int) -> Optional[HandLandmark]:
        if idx < len(self.landmarks):
            return self.landmarks[idx]
        return None

    @property
    def wrist(self) -> Optional[HandLandmark]:
        return self._landmark(WRIST)

    @property
    def thumb_tip(self) -> Optional[HandLandmark]:
        return self._landmark(THUMB_TIP)

    @property
    def index_tip(self) -> Optional[HandLandmark]:
        return self._landmark(INDEX_TIP)

    @property
    def pinch_distance(self) -> Optional[float]:
        """Thumb-tip to index-tip distance, or None when either tip is missing."""
        thumb, index = self.thumb_tip, self.index_tip
        if thumb is None or index is None:
            return None
        d = distance(thumb.point, index.point)
        return d if is_number(d) else None


def hand_sample_from_landmarks(label: Optional[str], landmarks: Iterable) -> HandSample:
    """
    Build a HandSample from any sequence of objects exposing `.x`, `.y` and
    optionally `.z` (MediaPipe landmarks, test doubles, ...).

    Missing or non-numeric coordinates become NaN; the position normalizer deals
    with them downstream.
    """
    out = []
    for idx, lm in enumerate(landmarks or ()):
        coords = []
        for attr in ("x", "y", "z"):
            v = getattr(lm, attr, None)
            coords.append(float(v) if is_number(v) else float("nan"))
        out.append(HandLandmark(idx=idx, x_norm=coords[0], y_norm=coords[1], z_norm=coords[2]))
    return HandSample(handedness_label=label, landmarks=tuple(out))


@dataclass(frozen=True, order=True)
class Pitch:
    """A note identified by pitch class (0 = C) and octave; `str()` gives e.g. `C#4`."""

    octave: int
    pitch_class: int

    @property
    def midi(self) -> int:
        return 12 * (self.octave + 1) + self.pitch_class

    @property
    def name(self) -> str:
        return f"{NOTE_NAMES[self.pitch_class]}{self.octave}"

    def __str__(self) -> str:
        return self.name

    @classmethod
    def of(cls, pitch_class: int, octave: int) -> "Pitch":
        return cls(octave=clamp_int(octave, MIN_OCTAVE, MAX_OCTAVE), pitch_class=pitch_class % 12)

    @classmethod
    def from_midi(cls, midi: int) -> "Pitch":
        """Pitch for a MIDI number; the octave is clamped into the supported range."""
        midi = int(midi)
        return cls.of(midi % 12, midi // 12 - 1)

    @classmethod
    def parse(cls, text: str) -> "Pitch":
        m = _PITCH_RE.match(str(text).strip())
        if m is None:
            raise ValueError(f"Not a pitch name: {text!r}")
        octave = int(m.group(2))
        if not MIN_OCTAVE <= octave <= MAX_OCTAVE:
            raise ValueError(f"Octave out of range in {text!r}")
        return cls(octave=octave, pitch_class=NOTE_NAMES.index(m.group(1)))


@dataclass(frozen=True)
class Chord:
    """An immutable chord: root pitch class, quality key, ordered notes and display name."""

    root: int
    quality: str
    notes: Tuple[Pitch, ...]
    name: str

    def __post_init__(self) -> None:
        if not self.notes:
            raise ValueError(f"Chord {self.name!r} has no notes")

    @property
    def root_name(self) -> str:
        return NOTE_NAMES[self.root % 12]

    @property
    def bass(self) -> Pitch:
        """Lowest note by MIDI number."""
        return min(self.notes, key=lambda p: p.midi)

    def bass_first(self) -> Tuple[Pitch, ...]:
        return tuple(sorted(self.notes, key=lambda p: p.midi))

    def __str__(self) -> str:
        return self.name
