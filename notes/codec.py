# notes/codec.py
"""Share-link and recording formats for timed note sequences.

Share token (stable wire format)::

    urlsafe_base64( percent_escape( json([[offset_ms_int, pitch_class, octave], ...]) ) )

Only offset, pitch class and octave travel through the token; durations are
dropped and playback infers them from note spacing.
"""
import base64, binascii, json, math, logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional
from urllib.parse import quote, unquote, urlencode, parse_qs

from config import START_OCTAVE_RANGE, WHITE_COUNT_RANGE
from notes.model import TimedNote
from notes.pitch import PITCH_CLASSES

# 與瀏覽器 encodeURIComponent 相同的保留字元
_URI_COMPONENT_SAFE = "-_.!~*'()"

def round_ms(x: float) -> int:
    """四捨五入（.5 一律進位，不用 Python 的銀行家捨入）"""
    return int(math.floor(x + 0.5))

def encode_sequence(seq: Iterable[TimedNote]) -> str:
    data = [[round_ms(n.offset_ms), n.pitch_class, int(n.octave)] for n in seq]
    text = json.dumps(data, separators=(",", ":"))
    escaped = quote(text, safe=_URI_COMPONENT_SAFE)
    return base64.urlsafe_b64encode(escaped.encode("ascii")).decode("ascii")

def _is_number(v: Any) -> bool:
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        # 超出 float 範圍的 JSON 整數
        return False

def _note_from_triple(item: Any) -> Optional[TimedNote]:
    if not isinstance(item, list) or len(item) != 3:
        return None
    t, pc, octave = item
    if not _is_number(t) or t < 0:
        return None
    if pc not in PITCH_CLASSES:
        return None
    if not isinstance(octave, int) or isinstance(octave, bool):
        return None
    return TimedNote(offset_ms=round_ms(t), pitch_class=pc, octave=octave)

def decode_sequence(token: str) -> Optional[List[TimedNote]]:
    """Inverse of :func:`encode_sequence`.

    Returns ``None`` for anything that is not a well-formed token. An encoded
    empty sequence decodes to ``[]``, which callers must keep apart from
    ``None``. Both base64 alphabets are accepted, as is missing padding.
    """
    if not isinstance(token, str):
        return None
    s = token.strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    s += "=" * (-len(s) % 4)
    try:
        raw = base64.b64decode(s, validate=True)
        arr = json.loads(unquote(raw.decode("ascii"), errors="strict"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError) as e:
        logging.debug("decode_sequence: rejected token (%s)", e)
        return None
    if not isinstance(arr, list):
        return None
    out: List[TimedNote] = []
    for item in arr:
        note = _note_from_triple(item)
        if note is None:
            logging.debug("decode_sequence: bad entry %r", item)
            return None
        out.append(note)
    return out

# ---------- 錄音格式 ----------
def to_capture(seq: Iterable[TimedNote]) -> List[dict]:
    rows = []
    for n in seq:
        row = {"t": n.offset_ms, "note": n.pitch_class, "octave": n.octave}
        if n.duration_ms is not None:
            row["d"] = n.duration_ms
        rows.append(row)
    return rows

def from_capture(rows: Any) -> Optional[List[TimedNote]]:
    """錄音 JSON（[{t, note, octave, d?}, ...]）還原；格式不對回傳 None。"""
    if not isinstance(rows, list):
        return None
    out: List[TimedNote] = []
    for r in rows:
        if not isinstance(r, dict):
            return None
        t, pc, octave, d = r.get("t"), r.get("note"), r.get("octave"), r.get("d")
        if not _is_number(t) or t < 0 or pc not in PITCH_CLASSES:
            return None
        if not isinstance(octave, int) or isinstance(octave, bool):
            return None
        if d is not None and (not _is_number(d) or d <= 0):
            return None
        out.append(TimedNote(float(t), pc, octave, None if d is None else float(d)))
    return out

# ---------- 分享連結 ----------
@dataclass
class ShareState:
    sequence: Optional[List[TimedNote]] = None
    start_octave: Optional[int] = None
    white_count: Optional[int] = None
    song_id: Optional[str] = None

def _clamp(v: int, bounds) -> int:
    lo, hi = bounds
    return max(lo, min(hi, v))

def build_share_query(seq: Iterable[TimedNote], start_octave: int, white_count: int,
                      song_id: Optional[str] = None) -> str:
    params = {"seq": encode_sequence(seq), "start": str(start_octave), "count": str(white_count)}
    if song_id:
        params["song"] = song_id
    return urlencode(params)

def _int_param(qs: dict, name: str) -> Optional[int]:
    vals = qs.get(name)
    if not vals:
        return None
    try:
        return int(float(vals[0]))
    except (ValueError, OverflowError):
        return None

def parse_share_query(query: str) -> ShareState:
    qs = parse_qs(query.lstrip("?"))
    state = ShareState()
    if qs.get("seq"):
        state.sequence = decode_sequence(qs["seq"][0])
    start = _int_param(qs, "start")
    if start is not None:
        state.start_octave = _clamp(start, START_OCTAVE_RANGE)
    count = _int_param(qs, "count")
    if count is not None:
        state.white_count = _clamp(count, WHITE_COUNT_RANGE)
    if qs.get("song"):
        state.song_id = qs["song"][0]
    return state
