"""
gesture_filter.py — per-axis change detection.

Decides whether a new hand sample is worth acting on. A new musical symbol is
emitted only when it differs from the last emitted one AND either enough time
has passed or the hand moved further than the axis threshold since the last
emission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .config import FilterConfig
from .utils import is_number, normalize_position

logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass
class AxisState:
    last_raw_value: Optional[float] = None
    last_sample_time: Optional[float] = None
    last_emitted_symbol: Any = None
    last_emit_time: Optional[float] = None
    last_significant_value: Optional[float] = None
    velocity: float = 0.0  # smoothed speed, normalized units per second


@dataclass(frozen=True)
class FilterDecision(Generic[S]):
    accepted: bool
    symbol: S           # candidate symbol for this sample (emitted or not)
    value: float        # normalized position
    velocity: float


class GestureChangeFilter(Generic[S]):
    """
    Hysteresis gate for one control axis.

    Args:
        quantize: maps a normalized position to a musical symbol (note, chord...)
        config: thresholds for this axis
    """

    def __init__(self, quantize: Callable[[float], S], config: FilterConfig) -> None:
        self.quantize = quantize
        self.config = config
        self.state = AxisState()

    def reset(self) -> None:
        self.state = AxisState()

    @property
    def current_symbol(self) -> Optional[S]:
        return self.state.last_emitted_symbol

    def _update_velocity(self, value: float, now: float) -> float:
        st = self.state
        if not is_number(now):
            return st.velocity
        if st.last_raw_value is not None and st.last_sample_time is not None and now > st.last_sample_time:
            speed = abs(value - st.last_raw_value) / (now - st.last_sample_time)
            a = self.config.velocity_alpha
            if not (0.0 <= a <= 1.0):
                a = 1.0
            st.velocity = (1 - a) * st.velocity + a * speed
        st.last_raw_value = value
        st.last_sample_time = now
        return st.velocity

    def update(self, raw, now: float) -> FilterDecision[S]:
        value = normalize_position(raw)
        velocity = self._update_velocity(value, now)
        candidate = self.quantize(value)
        st = self.state

        if candidate == st.last_emitted_symbol:
            return FilterDecision(False, candidate, value, velocity)

        if st.last_emit_time is None or not is_number(now):
            elapsed_ok = True
        else:
            elapsed_ok = (now - st.last_emit_time) >= self.config.min_interval
        moved = st.last_significant_value is None or abs(value - st.last_significant_value) > self.config.threshold

        if not (elapsed_ok or moved):
            return FilterDecision(False, candidate, value, velocity)

        logger.debug("emit %s (value=%.3f velocity=%.3f)", candidate, value, velocity)
        st.last_emitted_symbol = candidate
        st.last_emit_time = now
        st.last_significant_value = value
        return FilterDecision(True, candidate, value, velocity)
