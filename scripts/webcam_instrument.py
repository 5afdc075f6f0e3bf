#!/usr/bin/env python3
"""
Two-hand webcam instrument.

Right hand (vertical position) plays the melody, left hand selects chords.
Pinching thumb and index finger together turns that hand's voice down.
"""

from __future__ import annotations

import argparse
import logging
import os
import platform
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from musicmotion_control import config  # noqa: E402
from musicmotion_control.audio import PRESETS, SynthEngine  # noqa: E402
from musicmotion_control.config import AllocatorConfig, EngineConfig, ScaleConfig  # noqa: E402
from musicmotion_control.controller import InstrumentController  # noqa: E402
from musicmotion_control.theory import NOTE_NAMES, SCALES  # noqa: E402
from musicmotion_control.tracking import HandTracker, draw_hands  # noqa: E402

logger = logging.getLogger("webcam_instrument")


def main() -> int:
    ap = argparse.ArgumentParser(description="Gesture-controlled melody + chord instrument.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument(
        "--no-mirror",
        action="store_true",
        help="Disable horizontal mirroring (default is mirrored/selfie mode)",
    )
    ap.add_argument("--root", type=str, default="C", choices=list(NOTE_NAMES), help="Root note (default: C)")
    ap.add_argument("--scale", type=str, default="major", choices=list(SCALES.keys()), help="Scale (default: major)")
    ap.add_argument("--octave", type=int, default=4, help="Melody octave (default: 4)")
    ap.add_argument("--sound", type=str, default="pad", choices=list(PRESETS.keys()), help="Sound preset (default: pad)")
    ap.add_argument("--max-voices", type=int, default=4, help="Maximum simultaneous chord voices (default: 4)")
    ap.add_argument("--sevenths", action="store_true", help="Upgrade triads to seventh chords")
    ap.add_argument("--verbose", action="store_true", help="Set log level to DEBUG")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )

    engine_config = EngineConfig(
        scale=ScaleConfig.create(root=args.root, scale=args.scale, octave=args.octave),
        allocator=AllocatorConfig(max_voices=args.max_voices),
        # MediaPipe labels flipped frames correctly; raw frames come out swapped.
        mirrored=args.no_mirror,
        use_seventh=args.sevenths,
    )

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)

    if not cap.isOpened():
        raise RuntimeError(
            f"Could not open camera index {args.camera}. "
            "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
        )

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)

    engine = SynthEngine(
        preset=args.sound,
        melody_db=engine_config.volume.melody_db,
        harmony_db=engine_config.volume.harmony_db,
    )

    with HandTracker() as tracker, engine:
        instrument = InstrumentController(engine.melody, engine.harmony, engine_config, clock=engine.now)
        logger.info("Scale: %s %s, octave %d, sound %s", args.root, args.scale, args.octave, args.sound)
        logger.info("Press 'q' or ESC to quit")

        try:
            while True:
                ok, frame = cap.read()
                if not ok:
                    break

                if not args.no_mirror:
                    frame = cv2.flip(frame, 1)

                hands = tracker.process(frame)
                snap = instrument.process(hands)

                labels = []
                for hand in hands:
                    role = instrument.role_of(hand)
                    if role == "melody":
                        labels.append(str(snap.note) if snap.note else "")
                    elif role == "harmony":
                        labels.append(snap.chord.name if snap.chord else "")
                    else:
                        labels.append("")
                frame = draw_hands(frame, hands, labels)

                # HUD
                cv2.putText(
                    frame,
                    f"note: {snap.note or '-'} | chord: {snap.chord or '-'} ({snap.harmony_state.value}) "
                    f"| voices: {len(snap.sounding)} | press q to quit",
                    (12, 28),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.7,
                    (255, 255, 255),
                    2,
                    cv2.LINE_AA,
                )
                pulse = int(12 + 30 * max(snap.explosion_intensity, snap.pulse_intensity))
                cv2.circle(frame, (frame.shape[1] - 50, 50), pulse, (255, 80, 200), -1, cv2.LINE_AA)

                cv2.imshow("musicmotion - instrument", frame)
                key = cv2.waitKey(1) & 0xFF
                if key in (ord("q"), 27):
                    break
        finally:
            instrument.stop()

    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
