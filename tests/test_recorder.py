from notes.model import TimedNote
from notes.recorder import Recorder
from timeline.scheduler import effective_duration

def test_records_offsets_relative_to_start():
    rec = Recorder()
    assert not rec.record("C", 4, 500)
    rec.start(1000)
    assert rec.record("C", 4, 1000)
    rec.record("E", 4, 1250)
    rec.record("G", 4, 1600)
    seq = rec.stop()
    assert seq == [TimedNote(0, "C", 4), TimedNote(250, "E", 4), TimedNote(600, "G", 4)]
    assert not rec.recording
    assert not rec.record("A", 4, 1700)

def test_recorded_notes_get_durations_from_spacing():
    rec = Recorder()
    rec.start(0)
    rec.record("C", 4, 0)
    rec.record("D", 4, 400)
    seq = rec.stop()
    assert [effective_duration(seq, i) for i in range(len(seq))] == [400, 600]

def test_restart_clears_previous_take():
    rec = Recorder()
    rec.start(0)
    rec.record("C", 4, 10)
    rec.stop()
    rec.start(100)
    assert rec.stop() == []
