from __future__ import annotations

import math
from typing import Optional

from .utils import clamp, is_number


class VisualFeedback:
    """
    Scalar impulses published for the visualization layer.

    `explosion_intensity` fires on melodic note changes, `pulse_intensity` on chord
    changes. Both live in [0, 1] and decay exponentially with wall-clock time.
    """

    def __init__(self, half_life: float = 0.25) -> None:
        self.half_life = half_life
        self.explosion_intensity = 0.0
        self.pulse_intensity = 0.0
        self._last_decay: Optional[float] = None

    def trigger_explosion(self, value: float = 1.0) -> None:
        self.explosion_intensity = clamp(float(value), 0.0, 1.0) if is_number(value) else 1.0

    def trigger_pulse(self, value: float = 1.0) -> None:
        self.pulse_intensity = clamp(float(value), 0.0, 1.0) if is_number(value) else 1.0

    def decay(self, now: float) -> None:
        last, self._last_decay = self._last_decay, now
        if last is None or now <= last or self.half_life <= 0:
            return
        factor = math.pow(0.5, (now - last) / self.half_life)
        self.explosion_intensity *= factor
        self.pulse_intensity *= factor
