import pytest
from notes.pitch import resolve_pitch, frequency_of, midi_number, pitch_from_semitone

@pytest.mark.parametrize("args, expected", [
    ((1, 0, 0, 4), ("C", 4)),
    ((1, 1, 0, 4), ("Cs", 4)),
    ((3, 0, 0, 4), ("E", 4)),
    ((6, -1, 0, 4), ("Gs", 4)),
    ((3, 0, -1, 4), ("E", 3)),
    ((5, 0, 2, 3), ("G", 5)),
    ((7, 1, 0, 4), ("C", 5)),   # 升記號跨八度
    ((1, -1, 0, 4), ("B", 3)),  # 降記號跨八度
    ((1, 0, -5, 4), ("C", -1)),
])
def test_resolve_pitch(args, expected):
    assert resolve_pitch(*args) == expected

@pytest.mark.parametrize("degree", [0, 8, -1])
def test_resolve_pitch_rejects_non_degrees(degree):
    with pytest.raises(ValueError):
        resolve_pitch(degree, 0, 0, 4)

def test_frequency_reference_pitches():
    assert frequency_of("A", 4) == pytest.approx(440.0)
    assert frequency_of("A", 5) == pytest.approx(880.0)
    assert frequency_of("A", 3) == pytest.approx(220.0)
    assert frequency_of("C", 4) == pytest.approx(261.6256, rel=1e-6)
    assert frequency_of("B", 4) == pytest.approx(493.8833, rel=1e-6)

def test_frequency_unknown_pitch_class():
    with pytest.raises(ValueError):
        frequency_of("H", 4)

def test_midi_number():
    assert midi_number("C", 4) == 60
    assert midi_number("A", 4) == 69
    assert midi_number("B", -1) == 11

def test_pitch_from_semitone_normalizes_negatives():
    assert pitch_from_semitone(-1) == ("B", -1)
    assert pitch_from_semitone(49) == ("Cs", 4)
