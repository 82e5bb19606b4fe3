import pytest

from audio.sink import AudioSink, SinkError
from audio.voices import VoiceManager
from config import AudioConfig, PlaybackConfig
from timeline.scheduler import TimerQueue, PlaybackScheduler

class FakeSink(AudioSink):
    def __init__(self, capacity=None):
        self.capacity = capacity
        self.started = []   # (handle, freq, attack_s, level)
        self.released = []  # (handle, release_s, stop_s)
        self.live = set()
        self._next = 0

    def start_tone(self, freq, attack_s, level):
        if self.capacity is not None and len(self.live) >= self.capacity:
            return None
        self._next += 1
        self.live.add(self._next)
        self.started.append((self._next, freq, attack_s, level))
        return self._next

    def release(self, handle, release_s, stop_s):
        if handle not in self.live:
            raise SinkError(f"{handle} already finished")
        self.live.remove(handle)
        self.released.append((handle, release_s, stop_s))

    def finish(self, handle):
        """模擬音源自行結束"""
        self.live.discard(handle)

    @property
    def released_handles(self):
        return [h for h, _, _ in self.released]

@pytest.fixture
def sink():
    return FakeSink()

@pytest.fixture
def voices(sink):
    return VoiceManager(sink, AudioConfig(), clock=lambda: 0.0)

@pytest.fixture
def timers():
    return TimerQueue()

@pytest.fixture
def highlights():
    return []

@pytest.fixture
def player(voices, timers, highlights):
    return PlaybackScheduler(voices, timers, PlaybackConfig(),
                             on_highlight=lambda pc, o, on: highlights.append((pc, o, on)))
