from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import cv2

from .types import HandSample, hand_sample_from_landmarks

logger = logging.getLogger(__name__)

HAND_CONNECTIONS: List[Tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),          # thumb
    (0, 5), (5, 6), (6, 7), (7, 8),          # index
    (5, 9), (9, 10), (10, 11), (11, 12),     # middle
    (9, 13), (13, 14), (14, 15), (15, 16),   # ring
    (13, 17), (17, 18), (18, 19), (19, 20),  # pinky
    (0, 17),                                 # palm base
]


class HandTracker:
    """
    MediaPipe Hands wrapper producing `HandSample`s.

    Input frames are expected as **BGR** images (OpenCV default).
    """

    def __init__(
        self,
        max_num_hands: int = 2,
        model_complexity: int = 1,
        min_detection_confidence: float = 0.75,
        min_tracking_confidence: float = 0.75,
    ) -> None:
        import mediapipe as mp  # type: ignore

        if not hasattr(mp, "solutions"):
            raise RuntimeError(
                "Your installed `mediapipe` package does not expose `mp.solutions`.\n"
                "Install a build that ships the Hands solution, e.g. `pip install 'mediapipe<0.10.30'`."
            )
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=max_num_hands,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._seen_hands = 0

    def close(self) -> None:
        self._hands.close()

    def __enter__(self) -> "HandTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def process(self, frame_bgr) -> List[HandSample]:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._hands.process(frame_rgb)

        landmark_sets = results.multi_hand_landmarks or []
        handedness_list = results.multi_handedness or []
        if len(landmark_sets) != self._seen_hands:
            logger.debug("tracking %d hand(s)", len(landmark_sets))
            self._seen_hands = len(landmark_sets)

        samples: List[HandSample] = []
        for i, hand_landmarks in enumerate(landmark_sets):
            label: Optional[str] = None
            if i < len(handedness_list) and handedness_list[i].classification:
                label = getattr(handedness_list[i].classification[0], "label", None)
            samples.append(hand_sample_from_landmarks(label, hand_landmarks.landmark))
        return samples


def draw_hands(frame_bgr, hands: Sequence[HandSample], labels: Sequence[str] = ()):
    """Draw landmarks, the pinch line and an optional text label per hand."""
    h, w = frame_bgr.shape[:2]

    def px(lm):
        if lm is None or not (lm.x_norm == lm.x_norm and lm.y_norm == lm.y_norm):  # NaN check
            return None
        return (int(round(lm.x_norm * w)), int(round(lm.y_norm * h)))

    for i, hand in enumerate(hands):
        pts = [px(lm) for lm in hand.landmarks]
        for a, b in HAND_CONNECTIONS:
            if a < len(pts) and b < len(pts) and pts[a] and pts[b]:
                cv2.line(frame_bgr, pts[a], pts[b], (0, 255, 255), 2, cv2.LINE_AA)
        for p in pts:
            if p:
                cv2.circle(frame_bgr, p, 3, (40, 255, 120), -1, lineType=cv2.LINE_AA)

        thumb, index = px(hand.thumb_tip), px(hand.index_tip)
        if thumb and index:
            cv2.line(frame_bgr, thumb, index, (255, 0, 255), 3, cv2.LINE_AA)

        wrist = px(hand.wrist)
        if wrist and i < len(labels) and labels[i]:
            org = (wrist[0] - 15, max(0, wrist[1] - 30))
            cv2.putText(frame_bgr, labels[i], org, cv2.FONT_HERSHEY_SIMPLEX, 0.9, (0, 0, 0), 4, cv2.LINE_AA)
            cv2.putText(frame_bgr, labels[i], org, cv2.FONT_HERSHEY_SIMPLEX, 0.9, (255, 255, 255), 2, cv2.LINE_AA)
    return frame_bgr
