from types import SimpleNamespace

import pytest
from conftest import make_hand, p

from musicmotion_control.config import ScaleConfig
from musicmotion_control.theory import PROGRESSIONS, SCALES
from musicmotion_control.types import Chord, HandSample, Pitch, hand_sample_from_landmarks


def test_pitch_basics():
    c4 = Pitch.parse("C4")
    assert c4.midi == 60
    assert str(Pitch.parse("F#3")) == "F#3"
    assert Pitch.from_midi(61) == Pitch(octave=4, pitch_class=1)
    assert Pitch.from_midi(200).octave == 9
    assert Pitch.of(14, 4) == Pitch(octave=4, pitch_class=2)


@pytest.mark.parametrize("text", ["H4", "C", "Db4", "C10", ""])
def test_pitch_parse_rejects(text):
    with pytest.raises(ValueError):
        Pitch.parse(text)


def test_chord_bass_and_name():
    chord = Chord(root=7, quality="dominant7", notes=(p("D4"), p("G3"), p("F4"), p("B3")), name="G7")
    assert chord.bass == p("G3")
    assert chord.bass_first() == (p("G3"), p("B3"), p("D4"), p("F4"))
    assert chord.root_name == "G"
    assert str(chord) == "G7"


def test_chord_requires_notes():
    with pytest.raises(ValueError, match="no notes"):
        Chord(root=0, quality="major", notes=(), name="C")


def test_hand_sample_from_landmarks():
    raw = [SimpleNamespace(x=0.1 * i, y=0.5, z=0.0) for i in range(21)]
    raw[0] = SimpleNamespace(x=0.2, y=None)
    hand = hand_sample_from_landmarks("Left", raw)
    assert hand.handedness_label == "Left"
    assert len(hand.landmarks) == 21
    assert hand.wrist.y_norm != hand.wrist.y_norm  # NaN
    assert hand.pinch_distance == pytest.approx(0.4)


def test_pinch_distance_missing_tips():
    assert HandSample("Right", ()).pinch_distance is None
    assert make_hand("Right", 0.5, pinch=0.05).pinch_distance == pytest.approx(0.05)


def test_scale_config_create():
    config = ScaleConfig.create(root="A", scale="minor", octave=3)
    assert config.root == 9
    assert config.intervals == tuple(SCALES["minor"])
    assert config.progression == tuple(PROGRESSIONS["minor"])
    assert config.octave == 3


def test_scale_config_fallbacks(caplog):
    config = ScaleConfig.create(root="H", scale="dorian", octave=42)
    assert config.root == 0
    assert config.scale_name == "major"
    assert config.octave == 8
    assert "Unknown root" in caplog.text
    assert "Unknown scale" in caplog.text


def test_scale_config_chromatic_progression():
    config = ScaleConfig.create(scale="chromatic")
    assert len(config.progression) >= 7
    assert set(config.progression) <= {"major", "minor"}
