"""
どこで: `engine.ui` の pyglet アダプタ。
何を: イコライザ（9 バー × 10 セグメント）と BPM 表示を pyglet Window に描画し、キー操作でドラマーを制御する。
なぜ: Equalizer/EnvelopeScheduler を `PygletFrameSource` 上で動かす最小の UI 面を提供するため。

操作:
    SPACE: 再生/停止, UP/DOWN: テンポ ±1, T: タップテンポ, ESC: 終了

使用例:
    drummer = Drummer(80)
    win = DrumMachineWindow(drummer, fps=60)
    pyglet.app.run()
"""

from __future__ import annotations

import logging
import time
from typing import Mapping

import pyglet
from pyglet.window import key

from common.decay import DEFAULT_EPSILON
from common.tempo import TempoTapper

from ..core.frame_clock import FrameClock, Tickable
from ..core.frame_source import PygletFrameSource
from ..drum.drummer import CHANGE, Drummer
from ..drum.equalizer import BAR_WEIGHTS, SEGMENT_COLORS, SEGMENTS, Equalizer, hex_to_rgb

logger = logging.getLogger(__name__)

BACKGROUND = (45, 45, 45)
PANEL = (0, 0, 0)
LCD_TEXT = (100, 193, 70, 255)
LIT_OPACITY = 255
DIM_OPACITY = 64  # 0.25


class DrumMachineWindow(pyglet.window.Window):
    def __init__(
        self,
        drummer: Drummer,
        *,
        fps: int = 60,
        epsilon: float = DEFAULT_EPSILON,
        half_lives: Mapping[str, float] | None = None,
        show_hud: bool = True,
        width: int = 650,
        height: int = 520,
    ):
        """ウィンドウを生成し、イコライザとドラマーを結線する。

        引数:
            drummer: イベント源（この Window が tick を駆動する）。
            fps: ドラマー tick とフレーム要求の間隔。
            epsilon: スケジューラのしきい値。
            half_lives: ドラム名 → 半減期 [ms]。
            show_hud: ループ状態/CPU/MEM の HUD を表示するか。
        """
        super().__init__(width=width, height=height, caption="PYGLET DRUM MACHINE")
        self._drummer = drummer
        self._batch = pyglet.graphics.Batch()
        self._closed = False
        self._tapper = TempoTapper()

        self._background = pyglet.shapes.Rectangle(
            0, 0, width, height, color=BACKGROUND, batch=self._batch
        )
        self._segments = self._build_bars(width, height)
        self._bpm_label = pyglet.text.Label(
            "",
            x=width - 32,
            y=60,
            anchor_x="right",
            anchor_y="center",
            font_size=32,
            color=LCD_TEXT,
            batch=self._batch,
        )
        self._status_label = pyglet.text.Label(
            "",
            x=32,
            y=60,
            anchor_x="left",
            anchor_y="center",
            font_size=14,
            color=(255, 255, 255, 255),
            batch=self._batch,
        )

        self._equalizer = Equalizer(
            drummer,
            on_render=self._apply_levels,
            frame_source=PygletFrameSource(fps),
            epsilon=epsilon,
            half_lives=half_lives,
        )

        tickables: list[Tickable] = [drummer]
        self._hud = None
        if show_hud:
            from .monitor import MetricSampler
            from .overlay import OverlayHUD

            sampler = MetricSampler(self._equalizer.scheduler)
            self._hud = OverlayHUD(self, sampler)
            tickables += [sampler, self._hud]
        self._frame_clock = FrameClock(tickables)
        pyglet.clock.schedule_interval(self._frame_clock.tick, 1 / max(1, int(fps)))

        self._unsubscribe_change = drummer.on(CHANGE, self._update_labels)
        self._update_labels()
        self._apply_levels()

    # ---- レイアウト -----------------------------------------------------
    def _build_bars(self, width: int, height: int) -> list[list[pyglet.shapes.Rectangle]]:
        pad, gap = 32, 4
        top = height - pad
        bottom = 120
        self._panel = pyglet.shapes.Rectangle(
            pad, bottom, width - 2 * pad, top - bottom, color=PANEL, batch=self._batch
        )
        inner = 12
        n = sum(len(w) for w in BAR_WEIGHTS.values())
        bar_w = (width - 2 * pad - 2 * inner - gap * (n - 1)) / n
        seg_h = (top - bottom - 2 * inner - gap * (SEGMENTS - 1)) / SEGMENTS
        bars: list[list[pyglet.shapes.Rectangle]] = []
        for b in range(n):
            x = pad + inner + b * (bar_w + gap)
            column = []
            for i, color in enumerate(SEGMENT_COLORS):
                # i=0 が最上段
                y = top - inner - (i + 1) * seg_h - i * gap
                rect = pyglet.shapes.Rectangle(
                    x, y, bar_w, seg_h, color=hex_to_rgb(color), batch=self._batch
                )
                rect.opacity = DIM_OPACITY
                column.append(rect)
            bars.append(column)
        return bars

    # ---- 描画通知 -------------------------------------------------------
    def _apply_levels(self) -> None:
        for column, lit in zip(self._segments, self._equalizer.levels()):
            start = SEGMENTS - int(lit)
            for i, rect in enumerate(column):
                rect.opacity = LIT_OPACITY if i >= start else DIM_OPACITY

    def _update_labels(self) -> None:
        self._bpm_label.text = f"{self._drummer.bpm} BPM"
        self._status_label.text = "PLAYING" if self._drummer.is_playing else "STOPPED"

    # ---- pyglet イベント ------------------------------------------------
    def on_draw(self):  # Pyglet 既定のイベント名
        self.clear()
        self._batch.draw()
        if self._hud is not None:
            self._hud.draw()

    def on_key_press(self, symbol, modifiers):  # noqa: ANN001
        if symbol == key.ESCAPE:
            self.dispatch_event("on_close")
        elif symbol == key.SPACE:
            self._drummer.toggle()
        elif symbol == key.UP:
            self._drummer.set_tempo(self._drummer.bpm + 1)
        elif symbol == key.DOWN:
            self._drummer.set_tempo(self._drummer.bpm - 1)
        elif symbol == key.T:
            bpm = self._tapper.tap(time.perf_counter())
            if bpm is not None:
                self._drummer.play(bpm)
                if self._hud is not None:
                    self._hud.show_message(f"TAP {self._drummer.bpm} BPM")

    def on_close(self):
        # 冪等なクリーンアップ（保留フレームの取消を含む）
        if not self._closed:
            self._closed = True
            pyglet.clock.unschedule(self._frame_clock.tick)
            self._unsubscribe_change()
            self._equalizer.close()
            self._drummer.stop()
            logger.debug("pyglet drum machine closed")
        super().on_close()


def run(drummer: Drummer, **kwargs) -> None:
    """Window を生成して pyglet のイベントループを回す（ブロッキング）。"""
    DrumMachineWindow(drummer, **kwargs)
    pyglet.app.run()


__all__ = ["DrumMachineWindow", "run"]
