# notes/pitch.py
from typing import Tuple

PITCH_CLASSES = ["C", "Cs", "D", "Ds", "E", "F", "Fs", "G", "Gs", "A", "As", "B"]
DEGREE_TO_SEMITONE = {1: 0, 2: 2, 3: 4, 4: 5, 5: 7, 6: 9, 7: 11}  # C 大調 1=C ... 7=B

# 與 A 的半音距離（同一八度內）
_OFFSET_FROM_A = {pc: i - 9 for i, pc in enumerate(PITCH_CLASSES)}

def pitch_from_semitone(abs_semitone: int) -> Tuple[str, int]:
    """絕對半音數 (octave*12 + pc) -> (pitch_class, octave)。負數也會正規化。"""
    return PITCH_CLASSES[abs_semitone % 12], abs_semitone // 12

def resolve_pitch(degree: int, accidental: int, octave_shift: int, base_octave: int) -> Tuple[str, int]:
    """Scale degree 1-7 plus modifiers -> (pitch_class, octave).

    An accidental can carry the pitch across an octave boundary: ``7#`` in
    octave 4 resolves to C5 and ``1b`` to B3.
    """
    if degree not in DEGREE_TO_SEMITONE:
        raise ValueError(f"degree must be 1-7, got {degree!r}")
    abs_semi = (base_octave + octave_shift) * 12 + DEGREE_TO_SEMITONE[degree] + accidental
    return pitch_from_semitone(abs_semi)

def frequency_of(pitch_class: str, octave: int) -> float:
    try:
        semitone = _OFFSET_FROM_A[pitch_class] + (octave - 4) * 12
    except KeyError:
        raise ValueError(f"Unknown pitch class: {pitch_class}") from None
    return 440.0 * 2 ** (semitone / 12)

def midi_number(pitch_class: str, octave: int) -> int:
    """C4 = 60（系統 MIDI 音源用）"""
    if pitch_class not in _OFFSET_FROM_A:
        raise ValueError(f"Unknown pitch class: {pitch_class}")
    return (octave + 1) * 12 + PITCH_CLASSES.index(pitch_class)
