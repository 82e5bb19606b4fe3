# render/renderer.py
import pygame, logging
from typing import Dict, List, Optional, Set, Tuple
from config import KeyboardConfig

STATUS_H = 36
BTN_PAD_X = 12
BTN_GAP = 10
WHITE_NOTES = ["C", "D", "E", "F", "G", "A", "B"]
BLACK_AFTER = {"C": "Cs", "D": "Ds", "F": "Fs", "G": "Gs", "A": "As"}
BUTTONS = ["RECORD", "STOP", "PLAY", "SHARE", "SONG", "PEDAL", "QUIT"]

Pitch = Tuple[str, int]

class Renderer:
    def __init__(self, cfg: KeyboardConfig):
        pygame.init()
        self.cfg = cfg
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h))
        pygame.display.set_caption("簡譜鋼琴")
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.clock = pygame.time.Clock()
        self.button_rects: Dict[str, pygame.Rect] = {}

        self.white_keys: List[Tuple[Pitch, pygame.Rect]] = []
        self.black_keys: List[Tuple[Pitch, pygame.Rect]] = []
        self.rebuild_layout()

    def rebuild_layout(self):
        w, h = self.cfg.window_w, self.cfg.window_h
        top = STATUS_H + 40
        white_h = h - top - 10
        white_w = w / self.cfg.white_count
        self.white_keys.clear(); self.black_keys.clear()

        octave = self.cfg.start_octave
        for idx in range(self.cfg.white_count):
            name = WHITE_NOTES[idx % 7]
            if idx and name == "C":
                octave += 1
            x = idx * white_w
            self.white_keys.append(((name, octave), pygame.Rect(int(x), top, int(white_w) - 1, white_h)))
            # 黑鍵放在相鄰白鍵之間
            if name in BLACK_AFTER and idx + 1 < self.cfg.white_count:
                bx = x + white_w * 0.7
                rect = pygame.Rect(int(bx), top, int(white_w * 0.6), int(white_h * 0.6))
                self.black_keys.append(((BLACK_AFTER[name], octave), rect))
        logging.debug("Keyboard layout rebuilt: start=%d white=%d", self.cfg.start_octave, self.cfg.white_count)

    def key_at(self, pos) -> Optional[Pitch]:
        # 先測黑鍵
        for pitch, rect in self.black_keys:
            if rect.collidepoint(pos):
                return pitch
        for pitch, rect in self.white_keys:
            if rect.collidepoint(pos):
                return pitch
        return None

    def button_at(self, pos) -> Optional[str]:
        for label, rect in self.button_rects.items():
            if rect.collidepoint(pos):
                return label
        return None

    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def begin_frame(self):
        self.screen.fill((12, 12, 14))

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, right_info_text: str = "", pressed: Set[str] = frozenset()):
        pygame.draw.rect(self.screen, (24, 24, 28), (0, 0, self.cfg.window_w, STATUS_H))
        pygame.draw.line(self.screen, (60, 60, 66), (0, STATUS_H), (self.cfg.window_w, STATUS_H), 1)

        x = 10; self.button_rects.clear()
        for label in BUTTONS:
            surf = self.font_small.render(label, True, (220, 220, 230))
            rect = surf.get_rect(); rect.topleft = (x + BTN_PAD_X, (STATUS_H - rect.height)//2)
            box = pygame.Rect(x, 4, rect.width + BTN_PAD_X*2, STATUS_H - 8)
            fill = (70, 90, 140) if label in pressed else (40, 40, 46)
            pygame.draw.rect(self.screen, fill, box, border_radius=6)
            pygame.draw.rect(self.screen, (75, 75, 85), box, 1, border_radius=6)
            self.screen.blit(surf, rect)
            self.button_rects[label] = box
            x += box.width + BTN_GAP

        if right_info_text:
            right = self.font_small.render(right_info_text, True, (180, 180, 190))
            self.screen.blit(right, (self.cfg.window_w - right.get_width() - 10, (STATUS_H - right.get_height())//2))

    def draw_keyboard(self, highlight: Optional[Set[Pitch]] = None):
        highlight = highlight or set()
        for pitch, rect in self.white_keys:
            fill = (230, 230, 230) if pitch not in highlight else (255, 240, 170)
            pygame.draw.rect(self.screen, fill, rect)
            pygame.draw.rect(self.screen, (60, 60, 66), rect, 1)
            if pitch == ("C", 4):
                label = self.font_small.render("C4", True, (120, 120, 130))
                self.screen.blit(label, (rect.centerx - label.get_width() // 2, rect.bottom - 22))
        for pitch, rect in self.black_keys:
            fill = (18, 18, 20) if pitch not in highlight else (255, 200, 120)
            pygame.draw.rect(self.screen, fill, rect)
            pygame.draw.rect(self.screen, (60, 60, 66), rect, 1)

    def hud(self, text: str):
        surf = self.font.render(text, True, (200, 200, 210))
        self.screen.blit(surf, (10, STATUS_H + 10))
