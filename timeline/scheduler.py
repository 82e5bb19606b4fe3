# timeline/scheduler.py
import heapq, itertools, logging
from typing import Callable, List, Optional, Sequence

from audio.voices import Voice, VoiceManager
from config import PlaybackConfig
from notes.model import TimedNote

class TimerQueue:
    """Single-threaded timer heap driven by the main loop.

    Actions fire in (time, insertion) order. Nothing is ever cancelled: a
    second playback scheduled on top of a running one simply overlaps it.
    """
    def __init__(self):
        self._heap: list[tuple[float, int, Callable[[], None]]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def call_at(self, when_ms: float, action: Callable[[], None]):
        heapq.heappush(self._heap, (when_ms, next(self._seq), action))

    def next_due(self) -> Optional[float]:
        return self._heap[0][0] if self._heap else None

    def run_due(self, now_ms: float) -> int:
        fired = 0
        while self._heap and self._heap[0][0] <= now_ms:
            _, _, action = heapq.heappop(self._heap)
            fired += 1
            try:
                action()
            except Exception:
                logging.exception("timer action failed")
        return fired

def effective_duration(seq: Sequence[TimedNote], i: int, min_ms: float = 80.0,
                       tail_ms: float = 600.0) -> float:
    """有明確時值就用；否則用與下一個音的間隔；最後一個音用 tail_ms。"""
    n = seq[i]
    if n.duration_ms is not None:
        return max(min_ms, n.duration_ms)
    if i < len(seq) - 1:
        return max(min_ms, seq[i + 1].offset_ms - n.offset_ms)
    return max(min_ms, tail_ms)

HighlightFn = Callable[[str, int, bool], None]

class PlaybackScheduler:
    """
    把整段序列一次排進 TimerQueue：
    - when 時啟動 voice（起音淡入）
    - when + duration 時交給 VoiceManager.stop_or_hold（踏板可延長）
    - 高亮用同樣的時間窗，但不受踏板影響
    """
    def __init__(self, voices: VoiceManager, timers: TimerQueue,
                 cfg: Optional[PlaybackConfig] = None, on_highlight: Optional[HighlightFn] = None):
        self.voices = voices
        self.timers = timers
        self.cfg = cfg or PlaybackConfig()
        self.on_highlight = on_highlight

    def _start_action(self, note: TimedNote, slot: List[Optional[Voice]]):
        def start():
            slot[0] = self.voices.start_playback_voice(note.pitch_class, note.octave)
        return start

    def _stop_action(self, slot: List[Optional[Voice]]):
        def stop():
            if slot[0] is not None:
                self.voices.stop_or_hold(slot[0])
        return stop

    def schedule(self, seq: Sequence[TimedNote], now_ms: float) -> int:
        if not seq:
            return 0
        first = seq[0].offset_ms
        for i, note in enumerate(seq):
            when = now_ms + (note.offset_ms - first)
            dur = effective_duration(seq, i, self.cfg.min_duration_ms, self.cfg.tail_ms)
            slot: List[Optional[Voice]] = [None]
            self.timers.call_at(when, self._start_action(note, slot))
            self.timers.call_at(when + dur, self._stop_action(slot))
            if self.on_highlight is not None:
                pc, octv, hl = note.pitch_class, note.octave, self.on_highlight
                self.timers.call_at(when, lambda pc=pc, o=octv: hl(pc, o, True))
                self.timers.call_at(when + dur, lambda pc=pc, o=octv: hl(pc, o, False))
        logging.debug("scheduled %d note(s) from t=%.1fms", len(seq), now_ms)
        return len(seq)
