import re

import pytest

from musicmotion_control.config import ScaleConfig
from musicmotion_control.quantizer import chord_degree, fallback_chord, get_chord, get_note
from musicmotion_control.types import Pitch

PITCH_RE = re.compile(r"^[A-G]#?\d$")
GRID = [i / 100 for i in range(101)]


@pytest.fixture
def c_major():
    return ScaleConfig.create(root="C", scale="major", octave=4)


def test_note_extremes(c_major):
    assert str(get_note(1.0, c_major)) == "C4"
    # 14 positions: y=0 -> position 13 -> index 6 (B) one octave up
    assert str(get_note(0.0, c_major)) == "B5"


def test_note_middle(c_major):
    # position floor(7.0) = 7 -> one octave up, index 0
    assert str(get_note(0.5, c_major)) == "C5"


@pytest.mark.parametrize("scale", ["major", "minor", "pentatonic", "majorBlues", "minorBlues", "chromatic"])
@pytest.mark.parametrize("root", ["C", "F#", "B"])
def test_note_always_valid_and_monotonic(scale, root):
    config = ScaleConfig.create(root=root, scale=scale, octave=4)
    midis = []
    for y in GRID:
        note = get_note(y, config)
        assert PITCH_RE.match(str(note))
        midis.append(note.midi)
    # y grows downwards on screen: pitch must never rise as y increases
    assert all(a >= b for a, b in zip(midis, midis[1:]))
    assert all(a - b <= 12 for a, b in zip(midis, midis[1:]))


def test_note_root_and_octave_shift():
    config = ScaleConfig.create(root="D", scale="minor", octave=3)
    assert str(get_note(1.0, config)) == "D3"


@pytest.mark.parametrize("y", [None, float("nan"), "high", -5, 42, 10 ** 400])
def test_note_bad_input_never_raises(c_major, y):
    assert PITCH_RE.match(str(get_note(y, c_major)))


def test_note_neutral_default_for_missing_input(c_major):
    assert get_note(None, c_major) == get_note(0.5, c_major)


@pytest.mark.parametrize("intervals", [(0, 2, 40, 5), (0, "x", 4), (0, -1, 4), (), None])
def test_note_invalid_scale_falls_back_to_root(intervals):
    config = ScaleConfig(root=2, intervals=intervals, octave=4)
    for y in (0.0, 0.5, 1.0):
        assert get_note(y, config) == Pitch(octave=4, pitch_class=2)


@pytest.mark.parametrize("root", ["C", 12, -1, None, 3.5])
def test_note_invalid_root_falls_back_to_c(root):
    config = ScaleConfig(root=root, octave=5)
    assert get_note(0.3, config) == Pitch(octave=5, pitch_class=0)


def test_note_octave_is_clamped():
    config = ScaleConfig(octave=9)
    assert get_note(0.0, config).octave == 9
    assert get_note(0.0, None).octave <= 9


def test_chord_middle_is_subdominant(c_major):
    assert chord_degree(0.5, c_major) == 3
    chord = get_chord(0.5, c_major)
    assert chord.name == "F"
    assert chord.quality == "major"
    assert [str(n) for n in chord.notes] == ["F3", "A3", "C4"]


def test_chord_dead_zones(c_major):
    # outside 0.15..0.85 the selection no longer changes
    assert get_chord(0.0, c_major) == get_chord(0.1, c_major)
    assert get_chord(1.0, c_major) == get_chord(0.9, c_major)
    assert get_chord(1.0, c_major).name == "C"
    assert get_chord(0.0, c_major).name == "Bdim"


def test_chord_progression_major(c_major):
    names = []
    for y in GRID:
        name = get_chord(y, c_major).name
        if not names or names[-1] != name:
            names.append(name)
    assert names == ["Bdim", "Am", "G7", "F", "Em", "Dm", "C"]


def test_chord_minor_scale():
    config = ScaleConfig.create(root="A", scale="minor", octave=4)
    chord = get_chord(1.0, config)
    assert chord.name == "Am"
    assert [str(n) for n in chord.notes] == ["A3", "C4", "E4"]


def test_chord_sevenths(c_major):
    assert get_chord(1.0, c_major, use_seventh=True).name == "Cmaj7"
    assert get_chord(0.5, c_major, use_seventh=True).notes[-1] == Pitch.parse("E4")
    chord = get_chord(0.7, c_major, use_seventh=True)
    assert chord.quality == "minor7"
    assert len(chord.notes) == 4


def test_chord_degrees_capped_at_eight():
    config = ScaleConfig.create(root="C", scale="chromatic", octave=4, chord_range=12)
    degrees = {chord_degree(y, config) for y in GRID}
    assert degrees == set(range(8))


def test_chord_blues_progression():
    config = ScaleConfig.create(root="E", scale="minorBlues", octave=4)
    assert get_chord(1.0, config).name == "E7"


@pytest.mark.parametrize(
    "config",
    [
        ScaleConfig(root="C"),
        ScaleConfig(root=99),
        ScaleConfig(intervals=(0, 13, 4)),
        ScaleConfig(intervals=("a",)),
        ScaleConfig(intervals=None),
        ScaleConfig(progression=("nonsense",) * 7),
        ScaleConfig(progression=([1, 2],) * 7),
        ScaleConfig(progression=()),
        ScaleConfig(chord_range=float("nan"), chord_low=None),
        ScaleConfig(octave="four"),
        None,
    ],
)
def test_chord_never_raises_and_is_non_empty(config):
    for y in (None, 0.0, 0.5, 1.0):
        chord = get_chord(y, config)
        assert chord.notes
        assert len(set(chord.notes)) == len(chord.notes)
        assert all(PITCH_RE.match(str(n)) for n in chord.notes)


def test_chord_invalid_scale_gives_root_triad():
    config = ScaleConfig(root=7, intervals=(0, 2, 99), octave=4)
    chord = get_chord(0.5, config)
    assert chord == fallback_chord(7, 4)
    assert [str(n) for n in chord.notes] == ["G3", "B3", "D4"]
    assert chord.name == "G"


def test_fallback_chord_bad_root():
    chord = fallback_chord("H", 4)
    assert chord.name == "C"
    assert [str(n) for n in chord.notes] == ["C3", "E3", "G3"]


def test_oversized_octave_falls_back_to_default():
    config = ScaleConfig(octave=10 ** 400)
    assert get_note(0.5, config) == get_note(0.5, ScaleConfig(octave=4))
    assert get_chord(0.5, config).notes
