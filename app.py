# app.py
import json, logging
import pygame
from collections import Counter
from typing import Dict, Hashable, List, Optional, Tuple

from config import AppConfig
from notes.model import TimedNote
from notes.codec import build_share_query, to_capture
from notes.recorder import Recorder
from notation.compiler import compile_notation
from render.renderer import Renderer, STATUS_H
from audio.synth import make_synth
from audio.voices import VoiceManager
from timeline.scheduler import TimerQueue, PlaybackScheduler
from input.keymap import DEFAULT_KEYMAP, key_to_pitch
from songs.catalog import SongCatalog
from utils.crashlog import log_exception

POINTER = "pointer"

class App:
    def __init__(self, cfg: AppConfig, sequence: Optional[List[TimedNote]] = None,
                 keymap: Optional[Dict[int, int]] = None, song_id: Optional[str] = None,
                 recording_path: Optional[str] = None):
        self.cfg = cfg
        self.renderer = Renderer(cfg.keyboard)
        self.synth = make_synth(cfg.audio)
        self.voices = VoiceManager(self.synth, cfg.audio, clock=self.now_ms)
        self.timers = TimerQueue()
        self.player = PlaybackScheduler(self.voices, self.timers, cfg.playback,
                                        on_highlight=self._on_highlight)
        self.recorder = Recorder()
        self.catalog = SongCatalog(cfg.songs_dir)
        self.keymap: Dict[int, int] = dict(keymap or DEFAULT_KEYMAP)
        self.recording_path = recording_path

        # 狀態
        self.sequence: List[TimedNote] = list(sequence or [])
        self.song_id = song_id
        self.share_query: Optional[str] = None
        self.pressed: Dict[Hashable, Tuple[str, int]] = {}  # 互動按鍵 -> 音高
        self.auto_lit: Counter = Counter()                   # 自動播放高亮計數
        self._pointer_pedal = False

        # UI 訊息（toast）
        self._msg = ""
        self._msg_time = 0.0

    def now_ms(self) -> float:
        return float(pygame.time.get_ticks())

    # ---------- UI 訊息 ----------
    def _toast(self, msg: str, secs: float = 3.0):
        self._msg = msg
        self._msg_time = max(self._msg_time, secs)

    def _on_highlight(self, pitch_class: str, octave: int, on: bool):
        key = (pitch_class, octave)
        if on:
            self.auto_lit[key] += 1
        else:
            self.auto_lit[key] -= 1
            if self.auto_lit[key] <= 0:
                del self.auto_lit[key]

    # ---------- 互動發聲 ----------
    def press(self, key: Hashable, pitch_class: str, octave: int):
        if key in self.pressed:
            return
        # 沒有空閒聲部時仍照常錄進去
        self.recorder.record(pitch_class, octave, self.now_ms())
        self.pressed[key] = (pitch_class, octave)
        self.voices.start_interactive_voice(key, pitch_class, octave)

    def release(self, key: Hashable):
        self.voices.stop_interactive_voice(key)
        self.pressed.pop(key, None)

    # ---------- 錄音 / 播放 / 分享 ----------
    def start_record(self):
        self.recorder.start(self.now_ms())
        self._toast("Recording…", 2.0)

    def stop_record(self):
        if not self.recorder.recording:
            return
        self.sequence = self.recorder.stop()
        self.song_id = None
        self.update_share_link()
        if self.recording_path and self.sequence:
            try:
                with open(self.recording_path, "w", encoding="utf-8") as f:
                    json.dump(to_capture(self.sequence), f, ensure_ascii=False, indent=2)
            except OSError as e:
                log_exception("save recording", e)
                self._toast("Failed to save recording (see logs)", 5.0)
        self._toast(f"Recorded {len(self.sequence)} note(s)", 2.0)

    def play(self):
        if not self.sequence:
            self._toast("Nothing to play", 2.0)
            return
        self.player.schedule(self.sequence, self.now_ms())

    def update_share_link(self) -> Optional[str]:
        if not self.sequence:
            return None
        kb = self.cfg.keyboard
        self.share_query = build_share_query(self.sequence, kb.start_octave, kb.white_count, self.song_id)
        logging.info("Share link: ?%s", self.share_query)
        return self.share_query

    def share(self):
        q = self.update_share_link()
        if q is None:
            self._toast("Nothing to share", 2.0)
            return
        print(f"?{q}")
        self._toast("Share link printed to console", 2.0)

    def load_song(self, song_id: str, autoplay: bool = True) -> bool:
        song = self.catalog.load(song_id)
        if song is None:
            self._toast(f"Song not found: {song_id}", 3.0)
            return False
        self.sequence = compile_notation(song.notation, song.base_octave, song.tempo)
        self.song_id = song.id
        self._toast(song.title, 3.0)
        self.update_share_link()
        if autoplay:
            self.play()
        return True

    def next_song(self):
        ids = [s["id"] for s in self.catalog.songs()]
        if not ids:
            self._toast("No songs available", 2.0)
            return
        i = ids.index(self.song_id) + 1 if self.song_id in ids else 0
        self.load_song(ids[i % len(ids)])

    # ---------- 事件 ----------
    def _on_button(self, label: str) -> bool:
        if label == "RECORD":
            self.start_record()
        elif label == "STOP":
            self.stop_record()
        elif label == "PLAY":
            self.play()
        elif label == "SHARE":
            self.share()
        elif label == "SONG":
            self.next_song()
        elif label == "PEDAL":
            self._pointer_pedal = True
            self.voices.pedal_down("pointer")
        elif label == "QUIT":
            return False
        return True

    def handle_event(self, e) -> bool:
        if e.type == pygame.QUIT:
            return False

        if e.type == pygame.KEYDOWN:
            if e.key == pygame.K_ESCAPE:
                return False
            # 空白鍵：踏板
            if e.key == pygame.K_SPACE:
                self.voices.pedal_down("space")
            elif e.key in self.keymap:
                pc, octave = key_to_pitch(self.keymap[e.key], self.cfg.keyboard.start_octave)
                self.press(("key", e.key), pc, octave)

        elif e.type == pygame.KEYUP:
            if e.key == pygame.K_SPACE:
                self.voices.pedal_up("space")
            elif e.key in self.keymap:
                self.release(("key", e.key))

        elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
            if e.pos[1] <= STATUS_H:
                label = self.renderer.button_at(e.pos)
                if label:
                    return self._on_button(label)
            else:
                pitch = self.renderer.key_at(e.pos)
                if pitch:
                    self.press(POINTER, *pitch)

        elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
            if self._pointer_pedal:
                self._pointer_pedal = False
                self.voices.pedal_up("pointer")
            self.release(POINTER)

        elif e.type == pygame.MOUSEMOTION and POINTER in self.pressed:
            # 指標離開琴鍵視同放開
            if self.renderer.key_at(e.pos) != self.pressed[POINTER]:
                self.release(POINTER)
        return True

    # ---------- Main loop ----------
    def run(self):
        running = True
        while running:
            dt = self.renderer.tick(60)
            for e in pygame.event.get():
                if not self.handle_event(e):
                    running = False
                    break
            if not running:
                break

            self.timers.run_due(self.now_ms())

            # ===== 訊息倒數（toast） =====
            if self._msg_time > 0:
                self._msg_time -= dt
                if self._msg_time <= 0:
                    self._msg_time = 0
                    self._msg = ""

            # ----- Render -----
            self.renderer.begin_frame()
            right_fields = [
                f"REC: {'ON' if self.recorder.recording else 'OFF'}",
                f"PEDAL: {'DOWN' if self.voices.pedal else 'UP'}",
                f"NOTES: {len(self.sequence)}",
            ]
            if self.song_id: right_fields.append(f"SONG: {self.song_id}")
            if self._msg: right_fields.append(self._msg)
            pressed = {"PEDAL"} if self.voices.pedal else set()
            if self.recorder.recording: pressed.add("RECORD")
            self.renderer.draw_status_bar("  |  ".join(right_fields), pressed)
            self.renderer.hud(f"octave {self.cfg.keyboard.start_octave}  keys {len(self.keymap)}  "
                              f"pending {len(self.timers)}")
            self.renderer.draw_keyboard(set(self.pressed.values()) | set(self.auto_lit))
            self.renderer.end_frame()

        self.voices.stop_all()
        self.synth.close()
        pygame.quit()
