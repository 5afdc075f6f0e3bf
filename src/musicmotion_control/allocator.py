"""
allocator.py — polyphony management for the gesture-driven voice groups.

Harmony (PolyphonyAllocator)
----------------------------
Every gesture sample is turned into a target note set and diffed against what
is already sounding:

  MOVING    hand faster than `fast_velocity`      → bass note only
  SETTLING  slowed down, timer running            → bass + 1 (+1 more when very slow)
  SETTLED   below `fast_velocity` for settle_time → full chord, capped at max_voices

Only the release/attack parts of the diff reach the synth; notes common to the
old and new target keep sounding untouched. The sounding set never exceeds
`max_voices`.

Melody (MelodyVoice)
--------------------
A single voice: attacked from silence, glided in place on note changes.

Both release everything and reset when their hand disappears. Synth failures
are logged and absorbed; the internal model keeps the intended state and the
next diff corrects any mismatch.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .config import AllocatorConfig
from .feedback import VisualFeedback
from .types import Chord, Pitch
from .utils import clamp, is_number

logger = logging.getLogger(__name__)


class HandState(enum.Enum):
    MOVING = "moving"
    SETTLING = "settling"
    SETTLED = "settled"


@dataclass(frozen=True)
class VoiceDiff:
    release: Tuple[Pitch, ...] = ()
    attack: Tuple[Pitch, ...] = ()
    keep: Tuple[Pitch, ...] = ()

    @property
    def sounding(self) -> FrozenSet[Pitch]:
        return frozenset(self.keep) | frozenset(self.attack)

    @property
    def is_empty(self) -> bool:
        return not self.release and not self.attack


def bass_first(notes: Iterable[Pitch]) -> List[Pitch]:
    """Unique notes ordered by MIDI number, lowest first."""
    return sorted(set(notes), key=lambda p: p.midi)


def diff_voices(previous: Iterable[Pitch], target: Sequence[Pitch], max_voices: int) -> VoiceDiff:
    """
    Partition `previous` / `target` into release, attack and keep sets.

    `target` order is the priority order: when the budget is short, attacks are
    cut from the end. Kept notes count against the budget first.
    """
    prev = list(dict.fromkeys(previous))
    wanted = list(dict.fromkeys(target))
    wanted_set = set(wanted)
    prev_set = set(prev)

    keep = [p for p in wanted if p in prev_set]
    release = [p for p in prev if p not in wanted_set]
    budget = max(0, max_voices - len(keep))
    attack = [p for p in wanted if p not in prev_set][:budget]
    return VoiceDiff(release=tuple(release), attack=tuple(attack), keep=tuple(keep))


def attack_velocity(base: float, speed: float, fast_velocity: float, minimum: float) -> float:
    """Softer attacks for faster hands; a hand at `fast_velocity` or beyond plays at half `base`."""
    if not is_number(speed) or fast_velocity <= 0:
        return base
    factor = 1.0 - 0.5 * clamp(speed / fast_velocity, 0.0, 1.0)
    return clamp(base * factor, minimum, 1.0)


@dataclass
class AllocatorState:
    sounding: List[Pitch] = field(default_factory=list)
    hand_state: HandState = HandState.SETTLING
    settle_start: Optional[float] = None
    last_change: Optional[float] = None
    chord: Optional[Chord] = None


class PolyphonyAllocator:
    """
    Harmony voice manager. Sole owner of the sounding note set for its synth.

    Call ``update(chord, velocity, now)`` once per gesture sample, with the
    currently selected chord and the hand speed. ``present=False`` (or a
    ``None`` chord) force-releases everything.
    """

    def __init__(self, synth, config: Optional[AllocatorConfig] = None, feedback: Optional[VisualFeedback] = None) -> None:
        self.synth = synth
        self.config = config or AllocatorConfig()
        self.feedback = feedback
        self.state = AllocatorState()

    @property
    def sounding(self) -> FrozenSet[Pitch]:
        return frozenset(self.state.sounding)

    @property
    def hand_state(self) -> HandState:
        return self.state.hand_state

    # ── state machine ───────────────────────────────────────────────────────

    def _advance(self, velocity: float, now: float) -> HandState:
        st = self.state
        cfg = self.config
        previous = st.hand_state
        if is_number(velocity) and velocity >= cfg.fast_velocity:
            st.hand_state = HandState.MOVING
            st.settle_start = None
        elif st.hand_state is HandState.MOVING:
            st.hand_state = HandState.SETTLING
            st.settle_start = now
        elif st.hand_state is HandState.SETTLING:
            if st.settle_start is None:
                st.settle_start = now
            elif now - st.settle_start >= cfg.settle_time:
                st.hand_state = HandState.SETTLED
        if st.hand_state is not previous:
            logger.debug("harmony hand %s -> %s (velocity=%.3f)", previous.value, st.hand_state.value, velocity)
        return st.hand_state

    def target_notes(self, chord: Chord, velocity: float) -> List[Pitch]:
        """Notes the current hand state allows for `chord`, bass first."""
        ordered = bass_first(chord.notes)
        hs = self.state.hand_state
        if hs is HandState.MOVING:
            count = 1
        elif hs is HandState.SETTLING:
            slow = is_number(velocity) and velocity < self.config.slow_velocity
            count = 3 if slow else 2
        else:
            count = len(ordered)
        return ordered[: max(0, min(count, self.config.max_voices))]

    # ── synth boundary ──────────────────────────────────────────────────────

    def _call(self, what: str, fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.warning("harmony synth %s failed for %s", what, args[0] if args else "", exc_info=True)

    # ── public ──────────────────────────────────────────────────────────────

    def update(self, chord: Optional[Chord], velocity: float, now: float, present: bool = True) -> VoiceDiff:
        if not present or chord is None:
            return self.release_all(now)

        self._advance(velocity, now)
        target = self.target_notes(chord, velocity)
        diff = diff_voices(self.state.sounding, target, self.config.max_voices)
        was_silent = not self.state.sounding
        chord_changed = chord != self.state.chord
        self.state.chord = chord
        if chord_changed and self.feedback is not None:
            pulse = 1.0 if was_silent else attack_velocity(1.0, velocity, self.config.fast_velocity, 0.3)
            self.feedback.trigger_pulse(pulse)
        if diff.is_empty:
            return diff

        cfg = self.config
        if diff.release:
            self._call("release", self.synth.release, list(diff.release), now + cfg.release_offset)
        if diff.attack:
            vel = attack_velocity(cfg.harmony_velocity, velocity, cfg.fast_velocity, cfg.min_attack_velocity)
            self._call("attack", self.synth.attack, list(diff.attack), vel, now + cfg.attack_offset)

        # Optimistic: the model reflects intent even if the synth raised.
        self.state.sounding = list(diff.keep) + list(diff.attack)
        self.state.last_change = now
        return diff

    def release_all(self, now: float) -> VoiceDiff:
        """Release every sounding note and return to the initial state."""
        released = tuple(self.state.sounding)
        if released:
            logger.debug("harmony release all: %s", ", ".join(map(str, released)))
            self._call("release_all", self.synth.release_all, now)
        self.state = AllocatorState()
        return VoiceDiff(release=released)


@dataclass
class MelodyState:
    note: Optional[Pitch] = None


class MelodyVoice:
    """Single-voice melody: attack from silence, glide on change, release on exit."""

    def __init__(self, synth, config: Optional[AllocatorConfig] = None, feedback: Optional[VisualFeedback] = None) -> None:
        self.synth = synth
        self.config = config or AllocatorConfig()
        self.feedback = feedback
        self.state = MelodyState()

    @property
    def note(self) -> Optional[Pitch]:
        return self.state.note

    def _call(self, what: str, fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.warning("melody synth %s failed for %s", what, args[0] if args else "", exc_info=True)

    def update(self, note: Optional[Pitch], velocity: float, now: float, present: bool = True) -> bool:
        """Returns True when the synth was told to change something."""
        if not present or note is None:
            return self.release(now)

        cfg = self.config
        current = self.state.note
        if current is None:
            vel = attack_velocity(cfg.melody_velocity, velocity, cfg.fast_velocity, cfg.min_attack_velocity)
            self._call("attack", self.synth.attack, note, vel, now)
            self.state.note = note
            if self.feedback is not None:
                self.feedback.trigger_explosion(1.0)
            return True
        if note == current:
            return False

        self._call("set_pitch", self.synth.set_pitch, current, note, now + cfg.glide_offset)
        self.state.note = note
        if self.feedback is not None:
            self.feedback.trigger_explosion(0.8)
        return True

    def release(self, now: float) -> bool:
        current = self.state.note
        self.state = MelodyState()
        if current is None:
            return False
        self._call("release", self.synth.release, current, now)
        return True
