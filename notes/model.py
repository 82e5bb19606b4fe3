# notes/model.py
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class TimedNote:
    offset_ms: float                     # 相對於序列開頭
    pitch_class: str                     # "C", "Cs", ... "B"
    octave: int
    duration_ms: Optional[float] = None  # None = 錄音/分享連結來的音，時值由間隔推算

    @property
    def end_ms(self) -> Optional[float]:
        if self.duration_ms is None:
            return None
        return self.offset_ms + self.duration_ms

@dataclass(frozen=True)
class NotationToken:
    degree: int          # 0 = 休止符
    accidental: int = 0  # -1 / 0 / +1
    octave_shift: int = 0
    divisor: int = 1     # 1, 2, 4
    extend_beats: int = 0
    tie: bool = False

    def duration_ms(self, beat_ms: float) -> float:
        return beat_ms / self.divisor + self.extend_beats * beat_ms

@dataclass
class TieAccumulator:
    start_ms: float
    pitch_class: str
    octave: int
    duration_ms: float

    def same_pitch(self, pitch_class: str, octave: int) -> bool:
        return self.pitch_class == pitch_class and self.octave == octave

    def to_note(self) -> TimedNote:
        return TimedNote(self.start_ms, self.pitch_class, self.octave, self.duration_ms)
