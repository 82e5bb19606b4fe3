import pytest
from notes.model import NotationToken
from notation.tokenizer import parse_token

@pytest.mark.parametrize("text, expected", [
    ("1", NotationToken(1)),
    ("0", NotationToken(0)),
    ("5#", NotationToken(5, accidental=1)),
    ("4♯", NotationToken(4, accidental=1)),
    ("7b", NotationToken(7, accidental=-1)),
    ("3♭", NotationToken(3, accidental=-1)),
    ("1..", NotationToken(1, octave_shift=2)),
    ("1.,", NotationToken(1, octave_shift=0)),
    ("6,,", NotationToken(6, octave_shift=-2)),
    ("2_", NotationToken(2, divisor=2)),
    ("2__", NotationToken(2, divisor=4)),
    ("4--", NotationToken(4, extend_beats=2)),
    ("1~", NotationToken(1, tie=True)),
    ("0_", NotationToken(0, divisor=2)),
    ("5#.,._-~", NotationToken(5, accidental=1, octave_shift=1, divisor=2, extend_beats=1, tie=True)),
])
def test_parse_valid_tokens(text, expected):
    assert parse_token(text) == expected

@pytest.mark.parametrize("text", [
    "", "8", "9", "x", "#1", "1___", "1~~", "1#b", "1##", "1~-", "1-_", "1_.", "12", "1?", "|", "-",
])
def test_parse_rejects_malformed(text):
    assert parse_token(text) is None

def test_token_duration():
    beat = 600.0
    assert parse_token("1").duration_ms(beat) == 600.0
    assert parse_token("1_").duration_ms(beat) == 300.0
    assert parse_token("1__").duration_ms(beat) == 150.0
    assert parse_token("1--").duration_ms(beat) == 1800.0
    assert parse_token("1_-").duration_ms(beat) == 900.0
