import math
from decimal import Decimal

import pytest

from musicmotion_control.utils import clamp_int, db_to_gain, distance, map_range, normalize_position


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0.25, 0.25),
        (0, 0.0),
        (1, 1.0),
        (-3.0, 0.0),
        (7.5, 1.0),
        (None, 0.5),
        (float("nan"), 0.5),
        (float("inf"), 0.5),
        ("0.3", 0.5),
        (True, 0.5),
        (10 ** 400, 0.5),
        (Decimal("sNaN"), 0.5),
    ],
)
def test_normalize_position(raw, expected):
    assert normalize_position(raw) == expected


def test_map_range_inverted_and_clamped():
    assert map_range(0.0, 0.0, 1.0, 14, 0) == 14
    assert map_range(1.0, 0.0, 1.0, 14, 0) == 0
    assert map_range(2.0, 0.0, 1.0, 14, 0) == 0
    assert map_range(0.5, 0.0, 1.0, 0, 10) == pytest.approx(5.0)


def test_map_range_degenerate_input():
    assert map_range(0.4, 0.5, 0.5, -75, -15) == -75


def test_distance():
    assert distance((0, 0), (3, 4)) == pytest.approx(5.0)
    assert distance((0, 0, 9), (3, 4, -9)) == pytest.approx(5.0)
    assert math.isinf(distance(None, (1, 1)))
    assert math.isinf(distance((float("nan"), 0), (1, 1)))


def test_clamp_int_and_gain():
    assert clamp_int(12, 0, 9) == 9
    assert db_to_gain(0.0) == pytest.approx(1.0)
    assert db_to_gain(-20.0) == pytest.approx(0.1)
