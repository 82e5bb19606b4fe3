# audio/voices.py
"""Voice registry and sustain pedal.

Owns the only mutable playback state in the program: voices started by held
keys, voices started by automatic playback, and the pedal flag. The pedal
only defers the release of playback voices; letting go of a key always stops
that key's own voice.

Everything here is meant to be driven from the single event-loop thread.
"""
import time, logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional

from audio.sink import AudioSink, SinkError
from config import AudioConfig
from notes.pitch import frequency_of

PEDAL_SOURCES = ("pointer", "space")

@dataclass(eq=False)
class Voice:
    handle: Any
    pitch_class: str
    octave: int
    started_at: float

class VoiceManager:
    def __init__(self, sink: AudioSink, cfg: Optional[AudioConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.sink = sink
        self.cfg = cfg or AudioConfig()
        self.clock = clock
        self._interactive: Dict[Hashable, Voice] = {}
        self._playing: List[Voice] = []    # 自動播放中、尚未到結束時間
        self._sustained: List[Voice] = []  # 到了結束時間但被踏板留住
        self._pedal = False

    # ---------- 狀態 ----------
    @property
    def pedal(self) -> bool:
        return self._pedal

    @property
    def sustained(self) -> int:
        return len(self._sustained)

    def is_held(self, voice: Voice) -> bool:
        return any(v is voice for v in self._sustained)

    def is_sounding(self, pitch_class: str, octave: int) -> bool:
        for v in list(self._interactive.values()) + self._playing + self._sustained:
            if v.pitch_class == pitch_class and v.octave == octave:
                return True
        return False

    # ---------- 發聲 ----------
    def _start(self, pitch_class: str, octave: int, level: float) -> Optional[Voice]:
        handle = self.sink.start_tone(frequency_of(pitch_class, octave),
                                      self.cfg.attack_ms / 1000.0, level)
        if handle is None:
            return None
        return Voice(handle, pitch_class, octave, self.clock())

    def _stop(self, voice: Voice):
        try:
            self.sink.release(voice.handle, self.cfg.release_ms / 1000.0, self.cfg.stop_ms / 1000.0)
        except SinkError as e:
            # 排程停止與自然衰減互相競爭，屬正常情況
            logging.debug("release ignored for %s%d: %s", voice.pitch_class, voice.octave, e)

    # ---------- 互動按鍵 ----------
    def start_interactive_voice(self, key: Hashable, pitch_class: str, octave: int) -> bool:
        if key in self._interactive:
            return False
        voice = self._start(pitch_class, octave, self.cfg.interactive_level)
        if voice is None:
            return False
        self._interactive[key] = voice
        return True

    def stop_interactive_voice(self, key: Hashable) -> bool:
        voice = self._interactive.pop(key, None)
        if voice is None:
            return False
        self._stop(voice)
        return True

    # ---------- 自動播放 ----------
    def start_playback_voice(self, pitch_class: str, octave: int) -> Optional[Voice]:
        voice = self._start(pitch_class, octave, self.cfg.level)
        if voice is not None:
            self._playing.append(voice)
        return voice

    def stop_or_hold(self, voice: Voice):
        self._playing = [v for v in self._playing if v is not voice]
        if self._pedal:
            if not self.is_held(voice):
                self._sustained.append(voice)
        else:
            self._stop(voice)

    def stop_all_sustained(self) -> int:
        held, self._sustained = self._sustained, []
        for v in held:
            self._stop(v)
        return len(held)

    # ---------- 踏板 ----------
    def pedal_down(self, source: str = "pointer") -> bool:
        if source not in PEDAL_SOURCES:
            raise ValueError(f"Unknown pedal source: {source}")
        if self._pedal:
            return False
        self._pedal = True
        logging.debug("pedal down (%s)", source)
        return True

    def pedal_up(self, source: str = "pointer") -> bool:
        if source not in PEDAL_SOURCES:
            raise ValueError(f"Unknown pedal source: {source}")
        if not self._pedal:
            return False
        self._pedal = False
        n = self.stop_all_sustained()
        logging.debug("pedal up (%s), released %d voice(s)", source, n)
        return True

    def stop_all(self):
        for key in list(self._interactive):
            self.stop_interactive_voice(key)
        playing, self._playing = self._playing, []
        for v in playing:
            self._stop(v)
        self.stop_all_sustained()
