#!/usr/bin/env python3
"""
Headless demo: plays scripted hand sweeps through the instrument, no camera needed.

The harmony hand sweeps fast (bass only), slows down (partial chord) and rests
(full chord) while the melody hand walks up the scale.
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import sys
import time

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from musicmotion_control import config  # noqa: E402
from musicmotion_control.audio import PRESETS, SynthEngine  # noqa: E402
from musicmotion_control.config import EngineConfig, ScaleConfig  # noqa: E402
from musicmotion_control.controller import InstrumentController  # noqa: E402
from musicmotion_control.theory import SCALES  # noqa: E402
from musicmotion_control.types import HandLandmark, HandSample  # noqa: E402

logger = logging.getLogger("sweep_demo")


def synthetic_hand(label: str, y: float, pinch: float = 0.08) -> HandSample:
    landmarks = [HandLandmark(idx=i, x_norm=0.5, y_norm=y) for i in range(21)]
    landmarks[4] = HandLandmark(idx=4, x_norm=0.5, y_norm=y - 0.1)
    landmarks[8] = HandLandmark(idx=8, x_norm=0.5 + pinch, y_norm=y - 0.1)
    return HandSample(handedness_label=label, landmarks=tuple(landmarks))


def harmony_y(t: float) -> float:
    if t < 2.0:
        return 0.5 + 0.35 * math.sin(2 * math.pi * 1.5 * t)  # fast sweep
    if t < 4.0:
        return 0.5 + 0.2 * math.sin(2 * math.pi * 0.2 * t)  # slow drift
    return 0.45  # rest


def main() -> int:
    ap = argparse.ArgumentParser(description="Scripted gesture sweep through the instrument.")
    ap.add_argument("--scale", type=str, default="major", choices=list(SCALES.keys()))
    ap.add_argument("--sound", type=str, default="pad", choices=list(PRESETS.keys()))
    ap.add_argument("--seconds", type=float, default=6.0)
    ap.add_argument("--fps", type=float, default=30.0, help="Simulated tracking rate")
    ap.add_argument("--verbose", action="store_true", help="Set log level to DEBUG")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else config.LOG_LEVEL, format=config.LOG_FORMAT)

    engine_config = EngineConfig(scale=ScaleConfig.create(scale=args.scale), mirrored=False)
    with SynthEngine(preset=args.sound) as engine:
        instrument = InstrumentController(engine.melody, engine.harmony, engine_config, clock=engine.now)
        start = engine.now()
        last_state = None
        while True:
            t = engine.now() - start
            if t >= args.seconds:
                break
            melody_y = 1.0 - (t / args.seconds)
            snap = instrument.process([synthetic_hand("Right", melody_y), synthetic_hand("Left", harmony_y(t))])
            if snap.harmony_state != last_state:
                logger.info("t=%.2fs harmony %s, chord %s, voices %d", t, snap.harmony_state.value, snap.chord, len(snap.sounding))
                last_state = snap.harmony_state
            time.sleep(1.0 / args.fps)
        instrument.process([])
        time.sleep(1.0)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
