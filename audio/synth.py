# audio/synth.py
import itertools, logging
import numpy as np
import pygame
import pygame.midi

from audio.sink import AudioSink, SinkError
from config import AudioConfig
from notes.pitch import pitch_from_semitone, midi_number

DRUM_CH = 9  # GM: ch10(索引9)為打擊，避免使用

class ToneSynth(AudioSink):
    """
    pygame.mixer 正弦波音源：
    - 每個頻率產生一段整數週期的循環波形（快取）
    - start_tone 以 fade_ms 做起音，release 以 fadeout 淡出後停止
    """
    LOOP_SECONDS = 0.5

    def __init__(self, cfg: AudioConfig):
        self.cfg = cfg
        self.ready = False
        self._cache: dict[float, pygame.mixer.Sound] = {}
        self._live: dict[int, tuple] = {}  # token -> (channel, sound)
        self._tokens = itertools.count(1)
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=cfg.sample_rate, size=-16, channels=1, buffer=512)
            pygame.mixer.set_num_channels(cfg.max_voices)
            self.ready = True
            logging.info("[Synth] pygame.mixer ready: %r", pygame.mixer.get_init())
        except pygame.error as e:
            logging.warning("[Synth] mixer init failed: %s", e)

    def _sound(self, freq: float) -> pygame.mixer.Sound:
        key = round(freq, 3)
        snd = self._cache.get(key)
        if snd is not None:
            return snd
        sr, _, channels = pygame.mixer.get_init()
        cycles = max(1, int(round(freq * self.LOOP_SECONDS)))
        n = max(2, int(round(sr * cycles / freq)))
        wave = np.sin(2.0 * np.pi * cycles * np.arange(n) / n)
        samples = (wave * 32767 * 0.9).astype(np.int16)
        if channels > 1:
            samples = np.ascontiguousarray(np.repeat(samples[:, None], channels, axis=1))
        snd = pygame.sndarray.make_sound(samples)
        self._cache[key] = snd
        return snd

    def start_tone(self, freq: float, attack_s: float, level: float):
        if not self.ready:
            return None
        ch = pygame.mixer.find_channel(False)
        if ch is None:
            logging.debug("[Synth] no free mixer channel, dropping %.1fHz", freq)
            return None
        snd = self._sound(freq)
        ch.set_volume(max(0.0, min(1.0, level)))
        ch.play(snd, loops=-1, fade_ms=max(1, int(attack_s * 1000)))
        token = next(self._tokens)
        self._live[token] = (ch, snd)
        return token

    def release(self, handle, release_s: float, stop_s: float) -> None:
        entry = self._live.pop(handle, None)
        if entry is None:
            raise SinkError(f"voice {handle!r} already released")
        ch, snd = entry
        if ch.get_sound() is not snd:
            raise SinkError(f"voice {handle!r} channel was reused")
        # mixer 只有線性淡出：直接淡到硬停時間點
        ch.fadeout(max(1, int(max(release_s, stop_s) * 1000)))

    def close(self):
        for ch, _ in self._live.values():
            ch.stop()
        self._live.clear()
        if self.ready:
            pygame.mixer.quit()
        self.ready = False

class MidiSynth(AudioSink):
    """
    系統 MIDI 音源 + 簡易多語音分配（token）：
    - start_tone(freq, ...) -> token（頻率換成最接近的 MIDI 音）
    - release(token) 精準關閉該次觸發
    MIDI 沒有起音/淡出曲線，由音色自己處理。
    """
    def __init__(self, cfg: AudioConfig):
        self.cfg = cfg
        self.midi_out = None
        self.channels = [ch for ch in range(16) if ch != DRUM_CH]
        self._rr_index = 0
        self._tokens = itertools.count(1)
        self._token_map: dict[int, tuple[int, int]] = {}  # token -> (ch, pitch)
        try:
            pygame.midi.init()
            dev = pygame.midi.get_default_output_id()
            if dev != -1:
                self.midi_out = pygame.midi.Output(dev)
                for ch in self.channels:
                    self.midi_out.set_instrument(0, ch)  # Acoustic Grand
                logging.info("[Synth] Using system MIDI out (device %d)", dev)
            else:
                logging.warning("[Synth] No MIDI output device found")
        except pygame.midi.MidiException as e:
            logging.warning("[Synth] MIDI init failed: %s", e)

    @staticmethod
    def freq_to_midi(freq: float) -> int:
        semis = int(round(12 * np.log2(freq / 440.0))) + 57  # A4 = 4*12 + 9
        pc, octave = pitch_from_semitone(semis)
        return max(0, min(127, midi_number(pc, octave)))

    def _alloc_channel(self) -> int:
        ch = self.channels[self._rr_index % len(self.channels)]
        self._rr_index += 1
        return ch

    def start_tone(self, freq: float, attack_s: float, level: float):
        if self.midi_out is None:
            return None
        ch = self._alloc_channel()
        pitch = self.freq_to_midi(freq)
        vel = max(1, min(127, int(level * 127)))
        try:
            self.midi_out.note_on(pitch, vel, ch)
        except Exception as e:
            logging.debug("[Synth] note_on failed (ch=%d pitch=%d): %s", ch, pitch, e)
            return None
        token = next(self._tokens)
        self._token_map[token] = (ch, pitch)
        return token

    def release(self, handle, release_s: float, stop_s: float) -> None:
        ch, p = self._token_map.pop(handle, (None, None))
        if ch is None or self.midi_out is None:
            raise SinkError(f"voice {handle!r} already released")
        try:
            self.midi_out.note_off(p, 0, ch)
        except Exception as e:
            raise SinkError(f"note_off failed for voice {handle!r}: {e}") from e

    def close(self):
        if self.midi_out is not None:
            for ch, p in self._token_map.values():
                try: self.midi_out.note_off(p, 0, ch)
                except Exception as e: logging.debug("[Synth] note_off on close failed: %s", e)
            self._token_map.clear()
            self.midi_out.close()
            self.midi_out = None
        pygame.midi.quit()

def make_synth(cfg: AudioConfig) -> AudioSink:
    if cfg.backend == "midi":
        return MidiSynth(cfg)
    return ToneSynth(cfg)
