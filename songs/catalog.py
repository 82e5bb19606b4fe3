# songs/catalog.py
import json, logging, math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

DEFAULT_SONGS_DIR = Path(__file__).resolve().parent

@dataclass(frozen=True)
class Song:
    id: str
    title: str
    notation: str
    base_octave: int = 4
    tempo: float = 90.0

class SongCatalog:
    """
    曲譜目錄（index.json + 簡譜文字檔）：
    {"songs": [{"id", "title", "notationPath", "baseOctave", "tempo"}]}
    找不到或讀取失敗一律回傳 None，呼叫端當作「沒有可播放的內容」。
    """
    def __init__(self, root: Union[str, Path, None] = None):
        self.root = Path(root) if root else DEFAULT_SONGS_DIR
        self._index: Optional[List[dict]] = None

    def songs(self) -> List[dict]:
        if self._index is None:
            self._index = self._load_index()
        return list(self._index)

    def _load_index(self) -> List[dict]:
        path = self.root / "index.json"
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logging.warning("Song index unavailable (%s): %s", path, e)
            return []
        songs = data.get("songs", []) if isinstance(data, dict) else []
        return [s for s in songs if isinstance(s, dict) and "id" in s and "notationPath" in s]

    def load(self, song_id: str) -> Optional[Song]:
        entry = next((s for s in self.songs() if s["id"] == song_id), None)
        if entry is None:
            logging.info("Song not found: %r", song_id)
            return None
        path = self.root / entry["notationPath"]
        try:
            notation = path.read_text(encoding="utf-8")
        except OSError as e:
            logging.warning("Failed to read notation for %r: %s", song_id, e)
            return None
        try:
            tempo = float(entry.get("tempo", 90))
            if not math.isfinite(tempo) or tempo <= 0:
                raise ValueError(f"tempo must be positive, got {tempo!r}")
            return Song(
                id=entry["id"],
                title=entry.get("title", entry["id"]),
                notation=notation,
                base_octave=int(entry.get("baseOctave", 4)),
                tempo=tempo,
            )
        except (TypeError, ValueError, OverflowError) as e:
            logging.warning("Bad catalog entry %r: %s", song_id, e)
            return None
