from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from musicmotion_control.types import HandLandmark, HandSample, Pitch


class RecordingSynth:
    """Synth facade double: records every call, optionally raising on some of them."""

    def __init__(self, fail_on: Tuple[str, ...] = ()) -> None:
        self.calls: List[tuple] = []
        self.fail_on = set(fail_on)
        self.volume_db: Optional[float] = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def attack(self, notes, velocity=0.8, time=None):
        self._record("attack", notes, velocity, time)

    def release(self, notes, time=None):
        self._record("release", notes, time)

    def release_all(self, time=None):
        self._record("release_all", time)

    def set_pitch(self, voice, note, time=None):
        self._record("set_pitch", voice, note, time)

    def set_volume(self, decibels):
        self.volume_db = decibels
        self._record("set_volume", decibels)

    def named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def note_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] != "set_volume"]


def make_hand(label: str, y: float, pinch: float = 0.1) -> HandSample:
    landmarks = [HandLandmark(idx=i, x_norm=0.5, y_norm=y) for i in range(21)]
    landmarks[4] = HandLandmark(idx=4, x_norm=0.4, y_norm=0.5)
    landmarks[8] = HandLandmark(idx=8, x_norm=0.4 + pinch, y_norm=0.5)
    return HandSample(handedness_label=label, landmarks=tuple(landmarks))


def p(name: str) -> Pitch:
    return Pitch.parse(name)


@pytest.fixture
def synth():
    return RecordingSynth()
