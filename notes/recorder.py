# notes/recorder.py
from typing import List, Optional
from notes.model import TimedNote

class Recorder:
    """錄下互動按鍵（只記起點，時值播放時由間隔推算）"""
    def __init__(self):
        self.recording = False
        self.sequence: List[TimedNote] = []
        self._start_ms: Optional[float] = None

    def start(self, now_ms: float):
        self.sequence = []
        self._start_ms = now_ms
        self.recording = True

    def record(self, pitch_class: str, octave: int, now_ms: float) -> bool:
        if not self.recording:
            return False
        t = max(0.0, now_ms - self._start_ms)
        self.sequence.append(TimedNote(t, pitch_class, octave))
        return True

    def stop(self) -> List[TimedNote]:
        self.recording = False
        return list(self.sequence)
