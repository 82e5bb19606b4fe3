# notation/tokenizer.py
"""Scanner for one whitespace-separated unit of numbered notation.

Token grammar, left to right::

    degree      0-7            (0 = rest)
    accidental  # ♯ b ♭        optional, at most one
    octave      . ,            any number, any order
    divisor     _ __           optional (half / quarter of a beat)
    extend      -              any number, one beat each
    tie         ~              optional, last
"""
from typing import Optional
from notes.model import NotationToken

BAR_LINES = ("|", "/")
HOLD = "-"

SHARPS = ("#", "♯")
FLATS = ("b", "♭")

def parse_token(text: str) -> Optional[NotationToken]:
    """回傳 NotationToken；不合語法時回傳 None（呼叫端決定怎麼處理）。"""
    if not text or text[0] not in "01234567":
        return None
    degree = int(text[0])
    i, n = 1, len(text)

    accidental = 0
    if i < n and text[i] in SHARPS:
        accidental = 1; i += 1
    elif i < n and text[i] in FLATS:
        accidental = -1; i += 1

    shift = 0
    while i < n and text[i] in ".,":
        shift += 1 if text[i] == "." else -1
        i += 1

    underscores = 0
    while i < n and text[i] == "_":
        underscores += 1; i += 1
    if underscores > 2:
        return None

    dashes = 0
    while i < n and text[i] == "-":
        dashes += 1; i += 1

    tie = False
    if i < n and text[i] == "~":
        tie = True; i += 1

    if i != n:
        return None
    return NotationToken(
        degree=degree,
        accidental=accidental,
        octave_shift=shift,
        divisor=(1, 2, 4)[underscores],
        extend_beats=dashes,
        tie=tie,
    )
