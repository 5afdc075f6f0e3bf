import pytest

from musicmotion_control.config import FilterConfig, ScaleConfig
from musicmotion_control.gesture_filter import GestureChangeFilter
from musicmotion_control.quantizer import get_note


def bucket(y):
    """Ten equal bins, enough to reason about boundaries in tests."""
    return min(int(y * 10), 9)


@pytest.fixture
def gate():
    return GestureChangeFilter(bucket, FilterConfig(threshold=0.05, min_interval=0.1, velocity_alpha=1.0))


def test_first_sample_is_emitted(gate):
    d = gate.update(0.42, now=0.0)
    assert d.accepted
    assert d.symbol == 4
    assert gate.current_symbol == 4


def test_same_symbol_is_never_re_emitted(gate):
    gate.update(0.42, now=0.0)
    for i in range(1, 10):
        assert not gate.update(0.43, now=i * 1.0).accepted


def test_jitter_across_boundary_is_held_back(gate):
    gate.update(0.49, now=0.0)
    # crosses into bin 5 but moved only 0.02 and only 20 ms later
    d = gate.update(0.51, now=0.02)
    assert not d.accepted
    assert d.symbol == 5
    assert gate.current_symbol == 4


def test_small_move_accepted_after_interval(gate):
    gate.update(0.49, now=0.0)
    assert gate.update(0.51, now=0.15).accepted
    assert gate.current_symbol == 5


def test_large_move_accepted_immediately(gate):
    gate.update(0.49, now=0.0)
    d = gate.update(0.71, now=0.01)
    assert d.accepted
    assert gate.current_symbol == 7
    assert gate.state.last_significant_value == pytest.approx(0.71)
    assert gate.state.last_emit_time == 0.01


def test_velocity_estimate(gate):
    gate.update(0.2, now=0.0)
    d = gate.update(0.4, now=0.1)
    assert d.velocity == pytest.approx(2.0)
    d = gate.update(0.4, now=0.2)
    assert d.velocity == pytest.approx(0.0)


def test_velocity_is_smoothed():
    f = GestureChangeFilter(bucket, FilterConfig(velocity_alpha=0.5))
    f.update(0.0, now=0.0)
    f.update(0.1, now=0.1)  # raw 1.0 -> 0.5
    assert f.state.velocity == pytest.approx(0.5)


def test_invalid_samples_are_normalized(gate):
    d = gate.update(float("nan"), now=0.0)
    assert d.accepted
    assert d.value == 0.5
    assert gate.update(None, now=None).symbol == 5


def test_reset_forgets_everything(gate):
    gate.update(0.42, now=0.0)
    gate.reset()
    assert gate.current_symbol is None
    assert gate.state.velocity == 0.0
    assert gate.update(0.42, now=0.01).accepted


def test_with_note_quantizer():
    config = ScaleConfig.create()
    f = GestureChangeFilter(lambda y: get_note(y, config), FilterConfig(threshold=0.03, min_interval=0.06))
    assert str(f.update(1.0, now=0.0).symbol) == "C4"
    assert f.update(0.0, now=0.01).accepted
    assert str(f.current_symbol) == "B5"
