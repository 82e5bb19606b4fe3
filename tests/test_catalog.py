import json

import pytest

from songs.catalog import SongCatalog, Song
from notation.compiler import compile_notation

def _write_catalog(root, songs, files):
    (root / "index.json").write_text(json.dumps({"songs": songs}), encoding="utf-8")
    for name, text in files.items():
        (root / name).write_text(text, encoding="utf-8")

def test_load_song(tmp_path):
    _write_catalog(tmp_path,
                   [{"id": "scale", "title": "Scale", "notationPath": "scale.txt", "baseOctave": 3, "tempo": 120}],
                   {"scale.txt": "1 2 3 4 5 6 7 1."})
    cat = SongCatalog(tmp_path)
    assert [s["id"] for s in cat.songs()] == ["scale"]
    song = cat.load("scale")
    assert song == Song("scale", "Scale", "1 2 3 4 5 6 7 1.", 3, 120.0)

def test_missing_entry_is_none(tmp_path):
    _write_catalog(tmp_path, [], {})
    assert SongCatalog(tmp_path).load("nope") is None

def test_missing_index_is_empty(tmp_path):
    cat = SongCatalog(tmp_path)
    assert cat.songs() == []
    assert cat.load("anything") is None

def test_unreadable_notation_is_none(tmp_path):
    _write_catalog(tmp_path, [{"id": "gone", "notationPath": "gone.txt"}], {})
    assert SongCatalog(tmp_path).load("gone") is None

def test_defaults_when_fields_absent(tmp_path):
    _write_catalog(tmp_path, [{"id": "x", "notationPath": "x.txt"}], {"x.txt": "1"})
    song = SongCatalog(tmp_path).load("x")
    assert (song.title, song.base_octave, song.tempo) == ("x", 4, 90.0)

def test_bundled_songs_compile():
    cat = SongCatalog()
    ids = [s["id"] for s in cat.songs()]
    assert "twinkle" in ids
    for song_id in ids:
        song = cat.load(song_id)
        assert song is not None
        assert compile_notation(song.notation, song.base_octave, song.tempo)

@pytest.mark.parametrize("tempo", [0, -60, "nan", "inf", "fast"])
def test_unusable_tempo_is_none(tmp_path, tempo):
    _write_catalog(tmp_path, [{"id": "t", "notationPath": "t.txt", "tempo": tempo}], {"t.txt": "1 2 3"})
    assert SongCatalog(tmp_path).load("t") is None
