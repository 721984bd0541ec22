"""
どこで: `engine.ui` の HUD 表示モジュール。
何を: MetricSampler のキー/値ペアと一時メッセージを pyglet の Label でオーバーレイ描画する。
なぜ: ループ状態やタップテンポの結果を即座に可視化し、デバッグのフィードバックを高めるため。
"""

from __future__ import annotations

import time
from typing import Literal

import pyglet
from pyglet.window import Window

from ..core.frame_clock import Tickable
from .monitor import MetricSampler

Level = Literal["info", "warn", "error"]

_LEVEL_COLORS: dict[str, tuple[int, int, int, int]] = {
    "info": (255, 255, 255, 200),
    "warn": (255, 180, 0, 230),
    "error": (255, 60, 60, 230),
}


class OverlayHUD(Tickable):
    """MetricSampler が溜めた文字列を pyglet Label で描画する。"""

    def __init__(
        self,
        window: Window,
        sampler: MetricSampler,
        font_size: int = 8,
        color=(255, 255, 255, 155),
    ):
        self.window = window
        self.sampler = sampler
        self._labels: dict[str, pyglet.text.Label] = {}
        self._y_cursor = 10
        self._color = color
        self.font_size = font_size
        self._messages: list[tuple[str, float, Level]] = []

    # -------- Tickable --------
    def tick(self, dt: float) -> None:
        for key, txt in self.sampler.data.items():
            if key not in self._labels:
                self._labels[key] = pyglet.text.Label(
                    text="",
                    x=10,
                    y=self._y_cursor,
                    anchor_x="left",
                    anchor_y="bottom",
                    font_size=self.font_size,
                    color=self._color,
                )
                self._y_cursor += 14
            self._labels[key].text = f"{key} : {txt}"
        # メッセージの有効期限を掃除
        now = time.monotonic()
        self._messages = [m for m in self._messages if m[1] > now]

    # -------- draw --------
    def draw(self) -> None:
        for lab in self._labels.values():
            lab.draw()
        for text, _expire, level in self._messages:
            lbl = pyglet.text.Label(
                text=text,
                x=10,
                y=self.window.height - 10,
                anchor_x="left",
                anchor_y="top",
                font_size=self.font_size + 2,
                color=_LEVEL_COLORS[level],
            )
            lbl.draw()

    # ---- public helpers ----
    def show_message(self, text: str, level: Level = "info", timeout_sec: float = 2) -> None:
        expire = time.monotonic() + max(0.1, float(timeout_sec))
        self._messages.append((text, expire, level))
