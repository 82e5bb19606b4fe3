import base64, json
from urllib.parse import quote

import pytest
from notes.model import TimedNote
from notes.codec import (
    encode_sequence, decode_sequence, to_capture, from_capture,
    build_share_query, parse_share_query, round_ms,
)
from notation.compiler import compile_notation

def _token(payload: str) -> str:
    return base64.urlsafe_b64encode(payload.encode("ascii")).decode("ascii")

def _project(seq):
    return [(round_ms(n.offset_ms), n.pitch_class, n.octave) for n in seq]

def test_wire_format_is_escaped_json_triples():
    token = encode_sequence([TimedNote(0, "C", 4, 500.0), TimedNote(250.4, "Fs", 3)])
    raw = base64.urlsafe_b64decode(token).decode("ascii")
    assert raw == "%5B%5B0%2C%22C%22%2C4%5D%2C%5B250%2C%22Fs%22%2C3%5D%5D"
    assert "+" not in token and "/" not in token

def test_round_trip_drops_duration():
    seq = compile_notation("1 3_ 5#. 0 6,~ 6, | 7b")
    decoded = decode_sequence(encode_sequence(seq))
    assert decoded is not None
    assert _project(decoded) == _project(seq)
    assert all(n.duration_ms is None for n in decoded)

def test_offsets_round_half_up():
    decoded = decode_sequence(encode_sequence([TimedNote(333.5, "C", 4), TimedNote(333.49, "D", 4)]))
    assert [n.offset_ms for n in decoded] == [334, 333]

def test_empty_sequence_is_not_a_failure():
    assert decode_sequence(encode_sequence([])) == []

def test_accepts_standard_alphabet_without_padding():
    payload = quote(json.dumps([[0, "A", 4], [1200, "As", 2]], separators=(",", ":")), safe="-_.!~*'()")
    token = base64.b64encode(payload.encode("ascii")).decode("ascii").rstrip("=")
    decoded = decode_sequence(token)
    assert _project(decoded) == [(0, "A", 4), (1200, "As", 2)]

@pytest.mark.parametrize("token", [
    "",
    "!!!not-base64!!!",
    _token("not json"),
    _token(quote('{"a":1}')),
    _token(quote('[[1,"H",4]]')),
    _token(quote('[[-1,"C",4]]')),
    _token(quote('[[1,"C"]]')),
    _token(quote('[[1,"C",4.5]]')),
    _token(quote('[[true,"C",4]]')),
    _token(quote('[[1,"C",4],"x"]')),
    _token("%E0%A4%A"),
])
def test_decode_failures_return_none(token):
    assert decode_sequence(token) is None

def test_decode_non_string():
    assert decode_sequence(None) is None

def test_decode_deeply_nested_json():
    assert decode_sequence(_token("[" * 100000)) is None

def test_oversized_numbers_are_rejected():
    token = _token(quote("[[" + "9" * 400 + ',"C",4]]'))
    assert decode_sequence(token) is None

def test_capture_round_trip_keeps_durations():
    seq = [TimedNote(0.0, "C", 4), TimedNote(120.5, "E", 4, 300.0)]
    rows = to_capture(seq)
    assert rows == [{"t": 0.0, "note": "C", "octave": 4},
                    {"t": 120.5, "note": "E", "octave": 4, "d": 300.0}]
    assert from_capture(json.loads(json.dumps(rows))) == seq

@pytest.mark.parametrize("rows", [
    None,
    {"t": 0},
    [{"t": -5, "note": "C", "octave": 4}],
    [{"t": 0, "note": "X", "octave": 4}],
    [{"t": 0, "note": "C", "octave": "4"}],
    [{"t": 0, "note": "C", "octave": 4, "d": 0}],
    [["not", "a", "dict"]],
    [{"t": 10 ** 400, "note": "C", "octave": 4}],
    [{"t": 0, "note": "C", "octave": 4, "d": 10 ** 400}],
])
def test_capture_rejects_bad_rows(rows):
    assert from_capture(rows) is None

def test_share_query_round_trip_and_clamping():
    seq = compile_notation("1 2 3")
    q = build_share_query(seq, start_octave=9, white_count=3, song_id="twinkle")
    state = parse_share_query("?" + q)
    assert _project(state.sequence) == _project(seq)
    assert state.start_octave == 7
    assert state.white_count == 7
    assert state.song_id == "twinkle"

def test_share_query_bad_values():
    state = parse_share_query("seq=garbage&start=abc&count=100")
    assert state.sequence is None
    assert state.start_octave is None
    assert state.white_count == 28
    assert state.song_id is None

def test_share_query_without_seq():
    state = parse_share_query("start=0")
    assert state.sequence is None
    assert state.start_octave == 1
