# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class KeyboardConfig:
    window_w: int = 1280
    window_h: int = 420
    start_octave: int = 4
    white_count: int = 14

@dataclass
class NotationConfig:
    base_octave: int = 4
    bpm: float = 90.0

@dataclass
class AudioConfig:
    backend: str = "tone"          # "tone" (pygame.mixer 正弦波) 或 "midi"（系統 MIDI）
    sample_rate: int = 44100
    attack_ms: float = 20.0
    level: float = 0.4             # 自動播放音量
    interactive_level: float = 0.5
    release_ms: float = 60.0
    stop_ms: float = 80.0
    max_voices: int = 32

@dataclass
class PlaybackConfig:
    min_duration_ms: float = 80.0
    tail_ms: float = 600.0         # 最後一個音沒有時值時使用

@dataclass
class AppConfig:
    keyboard: KeyboardConfig = field(default_factory=KeyboardConfig)
    notation: NotationConfig = field(default_factory=NotationConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    songs_dir: Optional[str] = None

START_OCTAVE_RANGE = (1, 7)
WHITE_COUNT_RANGE = (7, 28)

def clamp_keyboard(cfg: KeyboardConfig) -> KeyboardConfig:
    lo, hi = START_OCTAVE_RANGE
    cfg.start_octave = max(lo, min(hi, int(cfg.start_octave)))
    lo, hi = WHITE_COUNT_RANGE
    cfg.white_count = max(lo, min(hi, int(cfg.white_count)))
    return cfg
