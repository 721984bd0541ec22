"""
どこで: `engine.ui` の Dear PyGui アダプタ。
何を: drawlist 上のイコライザと PLAY/STOP/SET TEMPO/± ボタン、BPM 表示を持つパネルを構築し、
      手動レンダループで `FrameClock([drummer, FrameQueue])` を 1 フレームずつ進める。
なぜ: requestAnimationFrame 相当の `FrameQueue` をレンダループの各フレームで消化する UI 面を示すため。
"""

from __future__ import annotations

import logging
import time
from typing import Mapping

import dearpygui.dearpygui as dpg  # type: ignore

from common.decay import DEFAULT_EPSILON
from common.tempo import TempoTapper

from ..core.frame_clock import FrameClock
from ..core.frame_source import FrameQueue
from ..drum.drummer import CHANGE, Drummer
from ..drum.equalizer import SEGMENT_COLORS, SEGMENTS, Equalizer, hex_to_rgb

# タグ定数
ROOT_TAG = "__drm_root__"
BPM_TAG = "__drm_bpm__"
PLAY_TAG = "__drm_play__"
STOP_TAG = "__drm_stop__"

logger = logging.getLogger(__name__)

LIT_ALPHA = 255
DIM_ALPHA = 64


def _segment_tag(bar: int, segment: int) -> str:
    return f"__drm_seg_{bar}_{segment}__"


class DrumMachinePanel:
    """Dear PyGui によるドラムマシン実装。"""

    def __init__(
        self,
        drummer: Drummer,
        *,
        epsilon: float = DEFAULT_EPSILON,
        half_lives: Mapping[str, float] | None = None,
        width: int = 650,
        height: int = 560,
        title: str = "DEAR PYGUI DRUM MACHINE",
    ) -> None:
        self._drummer = drummer
        self._width = width
        self._height = height
        self._title = title
        self._closing = False
        self._tapper = TempoTapper()

        self._frames = FrameQueue()
        self._equalizer = Equalizer(
            drummer,
            on_render=self._apply_levels,
            frame_source=self._frames,
            epsilon=epsilon,
            half_lives=half_lives,
        )
        self._clock = FrameClock([drummer, self._frames])

        dpg.create_context()
        dpg.create_viewport(title=self._title, width=self._width, height=self._height)
        dpg.setup_dearpygui()
        self._build()
        self._unsubscribe_change = drummer.on(CHANGE, self._sync_controls)
        self._sync_controls()
        self._apply_levels()

    # ---- 構築 -----------------------------------------------------------
    def _build(self) -> None:
        bars = self._equalizer.bar_count
        eq_w, eq_h = self._width - 40, 300
        gap, inner = 4.0, 12.0
        bar_w = (eq_w - 2 * inner - gap * (bars - 1)) / bars
        seg_h = (eq_h - 2 * inner - gap * (SEGMENTS - 1)) / SEGMENTS

        with dpg.window(tag=ROOT_TAG, label=self._title, no_title_bar=True):
            with dpg.drawlist(width=eq_w, height=eq_h):
                dpg.draw_rectangle((0, 0), (eq_w, eq_h), fill=(0, 0, 0, 255), rounding=12)
                for b in range(bars):
                    x = inner + b * (bar_w + gap)
                    for i, color in enumerate(SEGMENT_COLORS):
                        y = inner + i * (seg_h + gap)
                        r, g, bl = hex_to_rgb(color)
                        dpg.draw_rectangle(
                            (x, y),
                            (x + bar_w, y + seg_h),
                            color=(0, 0, 0, 0),
                            fill=(r, g, bl, DIM_ALPHA),
                            rounding=4,
                            tag=_segment_tag(b, i),
                        )
            with dpg.group(horizontal=True):
                dpg.add_button(label="SET TEMPO", callback=self._on_tap, width=140, height=48)
                dpg.add_text("", tag=BPM_TAG)
                dpg.add_button(label="+", callback=self._on_tempo_up, width=40)
                dpg.add_button(label="-", callback=self._on_tempo_down, width=40)
            with dpg.group(horizontal=True):
                dpg.add_button(
                    label="PLAY", tag=PLAY_TAG, callback=self._on_play, width=140, height=48
                )
                dpg.add_button(
                    label="STOP", tag=STOP_TAG, callback=self._on_stop, width=140, height=48
                )
        dpg.set_primary_window(ROOT_TAG, True)

    # ---- 描画通知 -------------------------------------------------------
    def _apply_levels(self) -> None:
        for b, lit in enumerate(self._equalizer.levels()):
            start = SEGMENTS - int(lit)
            for i, color in enumerate(SEGMENT_COLORS):
                r, g, bl = hex_to_rgb(color)
                alpha = LIT_ALPHA if i >= start else DIM_ALPHA
                dpg.configure_item(_segment_tag(b, i), fill=(r, g, bl, alpha))

    def _sync_controls(self) -> None:
        playing = self._drummer.is_playing
        dpg.set_value(BPM_TAG, f"BPM {self._drummer.bpm:>3}")
        dpg.configure_item(PLAY_TAG, enabled=not playing)
        dpg.configure_item(STOP_TAG, enabled=playing)

    # ---- コールバック ---------------------------------------------------
    def _on_play(self, *_args) -> None:
        self._drummer.play()

    def _on_stop(self, *_args) -> None:
        self._drummer.stop()

    def _on_tempo_up(self, *_args) -> None:
        self._drummer.set_tempo(self._drummer.bpm + 1)

    def _on_tempo_down(self, *_args) -> None:
        self._drummer.set_tempo(self._drummer.bpm - 1)

    def _on_tap(self, *_args) -> None:
        bpm = self._tapper.tap(time.perf_counter())
        if bpm is not None:
            self._drummer.play(bpm)

    # ---- ループ ---------------------------------------------------------
    def run(self) -> None:
        """ビューポートを表示し、閉じられるまでレンダループを回す（ブロッキング）。"""
        dpg.show_viewport()
        try:
            while not self._closing and dpg.is_dearpygui_running():
                self._clock.tick()
                dpg.render_dearpygui_frame()
        finally:
            self.close()

    def close(self) -> None:
        # 閉鎖フラグを最初に立て、以降のフレームを無害化
        if self._closing:
            return
        self._closing = True
        self._unsubscribe_change()
        self._equalizer.close()
        self._drummer.stop()
        try:
            dpg.destroy_context()
        except Exception:
            logger.exception("destroy_context failed")


def run(drummer: Drummer, **kwargs) -> None:
    """パネルを生成してレンダループを回す（ブロッキング）。"""
    DrumMachinePanel(drummer, **kwargs).run()


__all__ = ["DrumMachinePanel", "run"]
