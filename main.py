# main.py
import os, sys, json, argparse, logging, traceback
from typing import List, Optional, Tuple

from utils.crashlog import setup_crashlog, log_exception, log_dir
from config import AppConfig, KeyboardConfig, NotationConfig, AudioConfig, clamp_keyboard
from notes.model import TimedNote
from notes.codec import encode_sequence, decode_sequence, from_capture, parse_share_query
from notation.compiler import compile_notation
from songs.catalog import SongCatalog

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _init_logging(level=logging.INFO):
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format=LOG_FORMAT, encoding="utf-8")
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(os.path.join(log_dir(), "app.log"),
                                 maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError as e:
        logging.warning("file logging disabled: %s", e)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Numbered-notation piano")
    src = ap.add_mutually_exclusive_group()
    src.add_argument('--notation', help="notation text, or @file to read it from a file")
    src.add_argument('--song', help="song id from the catalog")
    src.add_argument('--seq', help="shared sequence token")
    src.add_argument('--load-recording', help="recording JSON saved earlier")
    src.add_argument('--link', help="share link (or its ?seq=...&start=...&count=...&song=... query)")
    ap.add_argument('--songs-dir', default=None)
    ap.add_argument('--bpm', type=float, default=90.0)
    ap.add_argument('--base-octave', type=int, default=4)
    ap.add_argument('--start', type=int, default=4, help="first octave on the keyboard (1-7)")
    ap.add_argument('--count', type=int, default=14, help="white keys on the keyboard (7-28)")
    ap.add_argument('--audio', default='tone', choices=['tone', 'midi'])
    ap.add_argument('--keymap', default=None, help="keymap JSON (key name -> semitone offset)")
    ap.add_argument('--save-recording', default=None, help="write recordings to this JSON file")
    ap.add_argument('--play', action='store_true', help="start playback right away")
    ap.add_argument('--print-token', action='store_true', help="print the share token and exit")
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap

def _read_notation(arg: str) -> str:
    if arg.startswith("@"):
        with open(arg[1:], "r", encoding="utf-8") as f:
            return f.read()
    return arg

def _load_song(cfg: AppConfig, song_id: str) -> Tuple[Optional[List[TimedNote]], Optional[str]]:
    song = SongCatalog(cfg.songs_dir).load(song_id)
    if song is None:
        return None, None
    return compile_notation(song.notation, song.base_octave, song.tempo), song.id

def _open_link(link: str, cfg: AppConfig) -> Tuple[Optional[List[TimedNote]], Optional[str]]:
    """分享連結：套用鍵盤設定；seq 解不開時改載入 song 指定的曲目"""
    query = link.split("?", 1)[1] if "?" in link else link
    state = parse_share_query(query.split("#", 1)[0])
    if state.start_octave is not None:
        cfg.keyboard.start_octave = state.start_octave
    if state.white_count is not None:
        cfg.keyboard.white_count = state.white_count
    if state.sequence is not None:
        return state.sequence, state.song_id
    if state.song_id:
        logging.info("Share link has no usable sequence, loading song %r", state.song_id)
        return _load_song(cfg, state.song_id)
    logging.warning("Share link has neither a decodable sequence nor a song")
    return None, None

def load_sequence(args, cfg: AppConfig) -> Tuple[Optional[List[TimedNote]], Optional[str]]:
    """回傳 (序列, 曲目 id)；序列為 None 表示沒有可播放的內容"""
    if args.load_recording:
        try:
            with open(args.load_recording, "r", encoding="utf-8") as f:
                rows = json.load(f)
        except (ValueError, RecursionError) as e:
            logging.warning("Recording file is not valid JSON: %s (%s)", args.load_recording, e)
            return None, None
        seq = from_capture(rows)
        if seq is None:
            logging.warning("Recording file is not a valid capture: %s", args.load_recording)
        return seq, None
    if args.link:
        return _open_link(args.link, cfg)
    if args.seq:
        seq = decode_sequence(args.seq)
        if seq is None:
            logging.warning("Shared sequence could not be decoded")
        return seq, None
    if args.notation:
        text = _read_notation(args.notation)
        return compile_notation(text, cfg.notation.base_octave, cfg.notation.bpm), None
    if args.song:
        return _load_song(cfg, args.song)
    return None, None

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _init_logging(logging.DEBUG if args.verbose else logging.INFO)

    cfg = AppConfig(
        keyboard=clamp_keyboard(KeyboardConfig(start_octave=args.start, white_count=args.count)),
        notation=NotationConfig(base_octave=args.base_octave, bpm=args.bpm),
        audio=AudioConfig(backend=args.audio),
        songs_dir=args.songs_dir,
    )
    if cfg.notation.bpm <= 0:
        logging.error("--bpm must be positive")
        return 2

    seq, song_id = load_sequence(args, cfg)

    if args.print_token:
        if seq is None:
            print("no sequence available", file=sys.stderr)
            return 1
        print(encode_sequence(seq))
        return 0

    keymap = None
    if args.keymap:
        from input.keymap import deserialize_keymap
        with open(args.keymap, "r", encoding="utf-8") as f:
            keymap = deserialize_keymap(json.load(f))

    setup_crashlog()
    logging.info("應用程式啟動")
    from app import App
    app = App(cfg, sequence=seq, keymap=keymap, song_id=song_id, recording_path=args.save_recording)
    if args.play:
        app.play()
    app.run()
    return 0

if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as e:
        try:
            log_exception("Top-level exception", e)
        except OSError:
            pass
        logging.error("未捕捉的例外：%s", e, exc_info=True)
        print("程式發生錯誤，請到 logs/ 資料夾看 app.log 與 error-*.txt")
        traceback.print_exc()
        sys.exit(1)
