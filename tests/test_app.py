import pytest

import app as app_module
from config import AppConfig

class StubRenderer:
    def __init__(self, cfg):
        self.cfg = cfg

@pytest.fixture
def clock():
    return {"now": 1000.0}

@pytest.fixture
def piano(monkeypatch, clock, sink):
    sink.capacity = 1
    monkeypatch.setattr(app_module, "Renderer", StubRenderer)
    monkeypatch.setattr(app_module, "make_synth", lambda cfg: sink)
    monkeypatch.setattr(app_module.App, "now_ms", lambda self: clock["now"])
    return app_module.App(AppConfig())

def test_press_is_recorded_when_no_voice_is_free(piano, clock):
    piano.start_record()
    piano.press(("key", 1), "C", 4)
    clock["now"] = 1250.0
    piano.press(("key", 2), "E", 4)   # 容量已滿
    piano.stop_record()
    assert [(n.offset_ms, n.pitch_class) for n in piano.sequence] == [(0, "C"), (250, "E")]
    assert len(piano.synth.started) == 1

def test_held_key_is_recorded_once(piano):
    piano.start_record()
    piano.press("pointer", "G", 4)
    piano.press("pointer", "G", 4)
    piano.release("pointer")
    piano.stop_record()
    assert len(piano.sequence) == 1
    assert piano.pressed == {}

def test_voices_use_the_loop_clock(piano, clock):
    clock["now"] = 4321.0
    piano.press("pointer", "A", 4)
    assert piano.voices._interactive["pointer"].started_at == 4321.0
