# ========================= input/keymap.py =========================
import pygame
from typing import Dict, Tuple
from notes.pitch import pitch_from_semitone

# 預設配置：電腦鍵 -> 相對起始八度 C 的半音數（可被 JSON 覆蓋）
DEFAULT_KEYMAP: Dict[int, int] = {
    pygame.K_z: 0,   # C
    pygame.K_s: 1,
    pygame.K_x: 2,
    pygame.K_d: 3,
    pygame.K_c: 4,
    pygame.K_v: 5,
    pygame.K_g: 6,
    pygame.K_b: 7,
    pygame.K_h: 8,
    pygame.K_n: 9,
    pygame.K_j: 10,
    pygame.K_m: 11,
    pygame.K_COMMA: 12,  # 高八度 C
    pygame.K_q: 12,
    pygame.K_2: 13,
    pygame.K_w: 14,
    pygame.K_3: 15,
    pygame.K_e: 16,
    pygame.K_r: 17,
    pygame.K_5: 18,
    pygame.K_t: 19,
    pygame.K_6: 20,
    pygame.K_y: 21,
    pygame.K_7: 22,
    pygame.K_u: 23,
    pygame.K_i: 24,
}

def key_to_pitch(offset: int, start_octave: int) -> Tuple[str, int]:
    return pitch_from_semitone(start_octave * 12 + offset)

def name_to_keycode(name: str) -> int:
    """把 'z', 'comma' 等名稱轉回 pygame 的 keycode。"""
    try:
        return pygame.key.key_code(name)
    except (ValueError, pygame.error):
        # 允許純數字 keycode
        try:
            return int(name)
        except ValueError:
            raise ValueError(f"Unknown key name: {name}") from None

def deserialize_keymap(obj: dict) -> Dict[int, int]:
    """從名稱->半音數 的 JSON 還原為 keycode->半音數。"""
    out: Dict[int, int] = {}
    for kname, offset in obj.items():
        kc = name_to_keycode(str(kname))
        out[kc] = int(offset)
    return out
