# notation/compiler.py
import math, logging
from typing import List, Optional
from notes.model import TimedNote, TieAccumulator
from notes.pitch import resolve_pitch
from notation.tokenizer import parse_token, BAR_LINES, HOLD

# 累加誤差容許值（以拍為單位）
_SNAP_EPS = 1e-9

def snap_to_beat(t: float, beat: float) -> float:
    k = t / beat
    if abs(k - round(k)) < _SNAP_EPS:
        return round(k) * beat
    return math.ceil(k) * beat

def beat_ms(bpm: float) -> float:
    if bpm <= 0:
        raise ValueError(f"bpm must be positive, got {bpm!r}")
    return 60000.0 / bpm

def compile_notation(text: str, base_octave: int = 4, bpm: float = 90) -> List[TimedNote]:
    """Compile numbered notation into timed notes.

    Tokens are whitespace separated. ``|`` / ``/`` snap the cursor up to the
    next beat, a bare ``-`` holds for one beat, and anything unrecognised is
    skipped as a one-beat gap. Tied notes (``1~ 1``) of the same pitch merge
    into one note that starts where the tie opened.

    Output offsets are non-decreasing and every note has a concrete duration.
    """
    beat = beat_ms(bpm)
    t = 0.0
    out: List[TimedNote] = []
    tie: Optional[TieAccumulator] = None

    for tok in text.split():
        # 小節線：推進到下一拍的整數倍
        if tok in BAR_LINES:
            t = snap_to_beat(t, beat)
            continue
        if tok == HOLD:
            t += beat
            continue

        nt = parse_token(tok)
        if nt is None:
            logging.debug("compile_notation: unrecognised token %r at t=%.1fms", tok, t)
            t += beat
            continue

        dur = nt.duration_ms(beat)

        # 休止符：先收尾進行中的連音
        if nt.degree == 0:
            if tie is not None:
                out.append(tie.to_note()); tie = None
            t += dur
            continue

        pc, octave = resolve_pitch(nt.degree, nt.accidental, nt.octave_shift, base_octave)

        if tie is not None and tie.same_pitch(pc, octave):
            tie.duration_ms += dur
            if not nt.tie:
                out.append(tie.to_note()); tie = None
        else:
            if tie is not None:
                # 音高改變，結束上一條連音
                out.append(tie.to_note()); tie = None
            if nt.tie:
                tie = TieAccumulator(t, pc, octave, dur)
            else:
                out.append(TimedNote(t, pc, octave, dur))
        t += dur

    if tie is not None:
        out.append(tie.to_note())
    return out
