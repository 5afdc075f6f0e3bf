# config.py — musicmotion gesture control
# All tunable parameters live here. Built once at startup and passed down.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple, Union

from .theory import (
    DEFAULT_OCTAVE,
    DEFAULT_ROOT,
    PROGRESSIONS,
    SCALES,
    default_progression,
    pitch_class_from_name,
)
from .utils import clamp_int

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Logging (used by the scripts; the library never configures handlers)
# ---------------------------------------------------------------------------
LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"

DEFAULT_SCALE = "major"
MIN_CONFIG_OCTAVE = 1  # chords sit one octave below, keep that >= 0
MAX_CONFIG_OCTAVE = 8


# ---------------------------------------------------------------------------
# Musical configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ScaleConfig:
    """
    Musical configuration consumed by the quantizer.

    Construct through `ScaleConfig.create()` to get names resolved and validated;
    the raw constructor takes values as-is and the quantizer stays total even for
    malformed ones.
    """

    root: int = DEFAULT_ROOT
    intervals: Tuple[int, ...] = tuple(SCALES[DEFAULT_SCALE])
    octave: int = DEFAULT_OCTAVE
    progression: Tuple[str, ...] = tuple(PROGRESSIONS[DEFAULT_SCALE])
    scale_name: str = DEFAULT_SCALE
    note_range: int = 14      # scale positions across the full hand range
    chord_low: float = 0.15   # chords only react inside this band of the axis
    chord_high: float = 0.85
    chord_range: int = 7      # number of chord degrees (capped at 8 and scale length)

    @classmethod
    def create(
        cls,
        root: Union[str, int] = "C",
        scale: str = DEFAULT_SCALE,
        octave: int = DEFAULT_OCTAVE,
        **kwargs,
    ) -> "ScaleConfig":
        if isinstance(root, int) and not isinstance(root, bool) and 0 <= root < 12:
            root_pc = root
        else:
            root_pc = pitch_class_from_name(root)
            if root_pc < 0:
                logger.warning("Unknown root %r, using C", root)
                root_pc = DEFAULT_ROOT

        if scale not in SCALES:
            logger.warning("Unknown scale %r, using %s. Available: %s", scale, DEFAULT_SCALE, list(SCALES))
            scale = DEFAULT_SCALE
        intervals = tuple(SCALES[scale])

        try:
            octave_i = int(octave)
        except (TypeError, ValueError):
            logger.warning("Invalid octave %r, using %d", octave, DEFAULT_OCTAVE)
            octave_i = DEFAULT_OCTAVE
        clamped = clamp_int(octave_i, MIN_CONFIG_OCTAVE, MAX_CONFIG_OCTAVE)
        if clamped != octave_i:
            logger.warning("Octave %d out of range, clamped to %d", octave_i, clamped)

        progression = tuple(PROGRESSIONS.get(scale) or default_progression(len(intervals)))
        return cls(
            root=root_pc,
            intervals=intervals,
            octave=clamped,
            progression=progression,
            scale_name=scale,
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Gesture change detection
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class FilterConfig:
    threshold: float = 0.03     # normalized distance that always counts as a real move
    min_interval: float = 0.06  # seconds between emissions when the move is small
    velocity_alpha: float = 0.4  # EMA weight of the newest speed sample


NOTE_FILTER = FilterConfig(threshold=0.03, min_interval=0.06)
CHORD_FILTER = FilterConfig(threshold=0.08, min_interval=0.15)


# ---------------------------------------------------------------------------
# Polyphony
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AllocatorConfig:
    max_voices: int = 4
    fast_velocity: float = 1.2   # normalized units / second, above this the hand is "moving"
    slow_velocity: float = 0.3   # below this a settling hand gets a third voice
    settle_time: float = 0.2     # seconds below fast_velocity before the full chord
    release_offset: float = 0.02
    attack_offset: float = 0.07
    glide_offset: float = 0.05
    harmony_velocity: float = 0.6
    melody_velocity: float = 0.8
    min_attack_velocity: float = 0.2


# ---------------------------------------------------------------------------
# Volume (pinch distance -> decibels)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class VolumeConfig:
    min_pinch: float = 0.01
    max_pinch: float = 0.1
    min_db: float = -75.0
    max_db: float = -15.0
    melody_db: float = -10.0
    harmony_db: float = -14.0


@dataclass(frozen=True)
class EngineConfig:
    scale: ScaleConfig = field(default_factory=ScaleConfig.create)
    note_filter: FilterConfig = NOTE_FILTER
    chord_filter: FilterConfig = CHORD_FILTER
    allocator: AllocatorConfig = field(default_factory=AllocatorConfig)
    volume: VolumeConfig = field(default_factory=VolumeConfig)
    mirrored: bool = True       # selfie view: MediaPipe "Left" is the user's right hand
    use_seventh: bool = False
