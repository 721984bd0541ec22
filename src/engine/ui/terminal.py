"""
どこで: `engine.ui` の端末アダプタ。
何を: イコライザを文字（10 行 × 9 列）で端末ストリームへ描き、一定秒数だけドラマーを再生する。
なぜ: GUI を持たない環境でも、同じ Equalizer/EnvelopeScheduler を `FrameQueue` 上で確認できるようにするため。
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Callable, Mapping, Sequence, TextIO

from common.decay import DEFAULT_EPSILON

from ..core.frame_clock import FrameClock
from ..core.frame_source import FrameQueue, monotonic_ms
from ..drum.drummer import Drummer
from ..drum.equalizer import SEGMENTS, Equalizer

logger = logging.getLogger(__name__)

LIT = "█"
DIM = "·"


def render_text(levels: Sequence[int], *, segments: int = SEGMENTS) -> str:
    """点灯セグメント数の列を、上から下への行テキストに変換する。"""
    rows = []
    for i in range(segments):
        start = segments - 1 - i  # この行が点灯する最小レベル - 1
        rows.append(" ".join(LIT if int(lit) > start else DIM for lit in levels))
    return "\n".join(rows)


class TerminalEqualizer:
    """端末へイコライザを描画するアダプタ。

    引数:
        drummer: イベント源。
        stream: 出力先（既定: sys.stdout）。
        fps: ループの更新レート。
        clock: フレーム/トリガ共有の時計 [ms]。
        sleep: 1 フレーム待機関数（テストで差し替え可能）。
    """

    def __init__(
        self,
        drummer: Drummer,
        *,
        stream: TextIO | None = None,
        fps: int = 30,
        epsilon: float = DEFAULT_EPSILON,
        half_lives: Mapping[str, float] | None = None,
        clock: Callable[[], float] = monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if int(fps) <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        self._drummer = drummer
        self._stream = stream if stream is not None else sys.stdout
        self._fps = int(fps)
        self._sleep = sleep
        self._frames = FrameQueue(clock)
        self._equalizer = Equalizer(
            drummer,
            on_render=self._draw,
            frame_source=self._frames,
            epsilon=epsilon,
            half_lives=half_lives,
            clock=clock,
        )
        self._clock = FrameClock([drummer, self._frames])
        self._drawn = 0
        self._ansi = bool(getattr(self._stream, "isatty", lambda: False)())

    @property
    def equalizer(self) -> Equalizer:
        return self._equalizer

    @property
    def frames_drawn(self) -> int:
        return self._drawn

    def _draw(self) -> None:
        text = f"{self._drummer.bpm:>3} BPM\n" + render_text(self._equalizer.levels())
        if self._ansi and self._drawn:
            # 前フレームの位置へ戻って上書き
            self._stream.write(f"\x1b[{SEGMENTS + 1}A\r")
        self._stream.write(text + "\n")
        self._stream.flush()
        self._drawn += 1

    def run(self, seconds: float) -> None:
        """`seconds` 秒ぶん再生して描画し、最後に停止/後始末する。"""
        dt = 1.0 / self._fps
        n = max(0, int(round(float(seconds) * self._fps)))
        self._drummer.play()
        try:
            for _ in range(n):
                self._clock.tick(dt)
                self._sleep(dt)
        except KeyboardInterrupt:
            logger.info("interrupted")
        finally:
            self.close()

    def close(self) -> None:
        self._equalizer.close()
        self._drummer.stop()


def run(drummer: Drummer, *, seconds: float = 8.0, **kwargs) -> None:
    TerminalEqualizer(drummer, **kwargs).run(seconds)


__all__ = ["TerminalEqualizer", "render_text", "run"]
