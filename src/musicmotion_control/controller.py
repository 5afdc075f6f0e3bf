"""
controller.py — one landmark batch in, synth calls and feedback out.

Routing by handedness
---------------------
melody hand   →  wrist y  → note filter  → MelodyVoice
harmony hand  →  wrist y  → chord filter → PolyphonyAllocator
either hand   →  thumb/index pinch distance → channel volume (dB)

With a mirrored (selfie) camera, MediaPipe's "Left" is the user's right hand,
which plays the melody. The two axes share no state; a hand leaving the frame
releases its voices and resets its filter within the same call.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional, Sequence

from .allocator import HandState, MelodyVoice, PolyphonyAllocator
from .config import EngineConfig
from .feedback import VisualFeedback
from .gesture_filter import GestureChangeFilter
from .quantizer import get_chord, get_note
from .types import Chord, HandSample, Pitch
from .utils import is_number, map_range

logger = logging.getLogger(__name__)

MELODY = "melody"
HARMONY = "harmony"


@dataclass(frozen=True)
class InstrumentSnapshot:
    """What the instrument is doing after one batch, for HUDs and visuals."""

    melody_present: bool
    harmony_present: bool
    note: Optional[Pitch]
    chord: Optional[Chord]
    harmony_state: HandState
    sounding: frozenset
    melody_db: float
    harmony_db: float
    explosion_intensity: float
    pulse_intensity: float


def pinch_to_db(pinch: Optional[float], config) -> float:
    """Map a thumb/index distance to decibels; a missing pinch counts as fully open."""
    if not is_number(pinch):
        pinch = config.max_pinch
    return map_range(pinch, config.min_pinch, config.max_pinch, config.min_db, config.max_db)


class InstrumentController:
    """
    Drives a melody and a harmony synth facade from hand-tracking batches.

    The facades need ``attack``, ``release``, ``release_all``, ``set_pitch`` and
    ``set_volume`` (see ``audio.VoiceChannel``).
    """

    def __init__(
        self,
        melody_synth,
        harmony_synth,
        config: Optional[EngineConfig] = None,
        feedback: Optional[VisualFeedback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or EngineConfig()
        self.feedback = feedback or VisualFeedback()
        self.clock = clock
        self.melody_synth = melody_synth
        self.harmony_synth = harmony_synth

        scale = self.config.scale
        self.note_filter = GestureChangeFilter(partial(get_note, config=scale), self.config.note_filter)
        self.chord_filter = GestureChangeFilter(
            partial(get_chord, config=scale, use_seventh=self.config.use_seventh), self.config.chord_filter
        )
        self.melody = MelodyVoice(melody_synth, self.config.allocator, self.feedback)
        self.harmony = PolyphonyAllocator(harmony_synth, self.config.allocator, self.feedback)

        self._present: Dict[str, bool] = {MELODY: False, HARMONY: False}
        self._volume_db: Dict[str, float] = {
            MELODY: self.config.volume.melody_db,
            HARMONY: self.config.volume.harmony_db,
        }

    def role_of(self, hand: HandSample) -> Optional[str]:
        label = (hand.handedness_label or "").lower()
        if label not in ("left", "right"):
            return None
        melody_label = "left" if self.config.mirrored else "right"
        return MELODY if label == melody_label else HARMONY

    def _set_volume(self, role: str, synth, pinch: Optional[float]) -> None:
        db = pinch_to_db(pinch, self.config.volume)
        self._volume_db[role] = db
        try:
            synth.set_volume(db)
        except Exception:
            logger.warning("%s set_volume failed", role, exc_info=True)

    def _play_melody(self, hand: HandSample, now: float) -> None:
        self._set_volume(MELODY, self.melody_synth, hand.pinch_distance)
        wrist = hand.wrist
        decision = self.note_filter.update(wrist.y_norm if wrist else None, now)
        self.melody.update(self.note_filter.current_symbol, decision.velocity, now)

    def _play_harmony(self, hand: HandSample, now: float) -> None:
        self._set_volume(HARMONY, self.harmony_synth, hand.pinch_distance)
        wrist = hand.wrist
        decision = self.chord_filter.update(wrist.y_norm if wrist else None, now)
        self.harmony.update(self.chord_filter.current_symbol, decision.velocity, now)

    def _hand_lost(self, role: str, now: float) -> None:
        logger.info("%s hand lost, releasing", role)
        if role == MELODY:
            self.melody.release(now)
            self.note_filter.reset()
        else:
            self.harmony.release_all(now)
            self.chord_filter.reset()

    def process(self, hands: Sequence[HandSample], now: Optional[float] = None) -> InstrumentSnapshot:
        """Handle one landmark batch (zero or more hands)."""
        now = self.clock() if now is None else now
        by_role: Dict[str, HandSample] = {}
        for hand in hands or ():
            role = self.role_of(hand)
            if role is not None and role not in by_role:
                by_role[role] = hand

        for role, play in ((MELODY, self._play_melody), (HARMONY, self._play_harmony)):
            hand = by_role.get(role)
            was_present = self._present[role]
            self._present[role] = hand is not None
            if hand is not None:
                if not was_present:
                    logger.info("%s hand detected", role)
                play(hand, now)
            elif was_present:
                self._hand_lost(role, now)

        self.feedback.decay(now)
        return self.snapshot()

    def stop(self, now: Optional[float] = None) -> None:
        """Release everything, as if both hands left."""
        now = self.clock() if now is None else now
        for role in (MELODY, HARMONY):
            if self._present[role]:
                self._hand_lost(role, now)
            self._present[role] = False

    def snapshot(self) -> InstrumentSnapshot:
        return InstrumentSnapshot(
            melody_present=self._present[MELODY],
            harmony_present=self._present[HARMONY],
            note=self.melody.note,
            chord=self.harmony.state.chord,
            harmony_state=self.harmony.hand_state,
            sounding=self.harmony.sounding,
            melody_db=self._volume_db[MELODY],
            harmony_db=self._volume_db[HARMONY],
            explosion_intensity=self.feedback.explosion_intensity,
            pulse_intensity=self.feedback.pulse_intensity,
        )
