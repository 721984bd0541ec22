"""
どこで: `engine.drum` のイコライザモデル。
何を: kick/snare/hat の 3 エンベロープを 1 つの `EnvelopeScheduler` で駆動し、
      9 本のバー音量と点灯セグメント数を算出する `Equalizer`。
なぜ: 3 種の UI アダプタ（pyglet/Dear PyGui/端末）が同じモデルを共有し、描画だけを差し替えるため。
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Sequence

import numpy as np

from common.decay import DEFAULT_EPSILON

from ..core.envelope import Envelope, EnvelopeScheduler
from ..core.frame_source import FrameSource, monotonic_ms
from .drummer import HAT, KICK, SNARE, Drummer

logger = logging.getLogger(__name__)

DEFAULT_HALF_LIVES: dict[str, float] = {KICK: 220.0, SNARE: 280.0, HAT: 120.0}

# バーごとの重み（左から kick×4, snare×3, hat×2）
BAR_WEIGHTS: dict[str, tuple[float, ...]] = {
    KICK: (0.4, 0.8, 0.3, 0.1),
    SNARE: (0.4, 1.0, 0.7),
    HAT: (0.1, 0.8),
}
DRUM_ORDER = (KICK, SNARE, HAT)

SEGMENTS = 10
# 1 本のバーのセグメント色（上から下）
SEGMENT_COLORS: tuple[str, ...] = (
    "#FF3000",
    "#FF3000",
    "#E561C3",
    "#E561C3",
    "#FFD400",
    "#FFD400",
    "#64C146",
    "#64C146",
    "#1A72FF",
    "#1A72FF",
)


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """`#RRGGBB` を (r, g, b) 0..255 に変換する。"""
    s = color.lstrip("#")
    if len(s) != 6:
        raise ValueError(f"invalid color: {color!r}")
    return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)


def lit_segments(volumes: Sequence[float] | np.ndarray, segments: int = SEGMENTS) -> np.ndarray:
    """音量（0..1）から点灯セグメント数を返す。四捨五入は half-up、[0, segments] に収める。"""
    v = np.asarray(volumes, dtype=np.float64)
    n = np.floor(v * segments + 0.5)
    return np.clip(n, 0, segments).astype(np.int64)


class Equalizer:
    """ドラマーのイベントでエンベロープをトリガし、バー音量を提供する。

    引数:
        drummer: イベント源。None の場合は購読せず、`trigger()` で手動駆動する。
        on_render: 活動中フレームごとの描画通知。
        frame_source: スケジューラが使うフレーム要求プリミティブ。
        epsilon: スケジューラのしきい値。
        half_lives: ドラム名 → 半減期 [ms]（未指定分は既定値）。
        clock: トリガ時刻の時計 [ms]（frame_source と同じ時計）。
    """

    def __init__(
        self,
        drummer: Drummer | None,
        *,
        on_render: Callable[[], None],
        frame_source: FrameSource,
        epsilon: float = DEFAULT_EPSILON,
        half_lives: Mapping[str, float] | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        hl = dict(DEFAULT_HALF_LIVES)
        if half_lives:
            hl.update({k: float(v) for k, v in half_lives.items() if k in hl})
        self._scheduler = EnvelopeScheduler(
            on_render, epsilon, frame_source=frame_source, clock=clock
        )
        self._envelopes: dict[str, Envelope] = {
            name: self._scheduler.create_envelope(hl[name], name=name) for name in DRUM_ORDER
        }
        self._weights = np.concatenate(
            [np.asarray(BAR_WEIGHTS[name], dtype=np.float64) for name in DRUM_ORDER]
        )
        # バー → エンベロープの対応（[0,0,0,0,1,1,1,2,2]）
        self._owner = np.repeat(
            np.arange(len(DRUM_ORDER)), [len(BAR_WEIGHTS[n]) for n in DRUM_ORDER]
        )
        self._unsubscribers: list[Callable[[], None]] = []
        if drummer is not None:
            for name in DRUM_ORDER:
                env = self._envelopes[name]
                self._unsubscribers.append(drummer.on(name, lambda env=env: env.trigger(1.0)))

    @property
    def scheduler(self) -> EnvelopeScheduler:
        return self._scheduler

    @property
    def envelopes(self) -> Mapping[str, Envelope]:
        return dict(self._envelopes)

    @property
    def bar_count(self) -> int:
        return int(self._weights.size)

    def trigger(self, drum: str, amplitude: float = 1.0) -> None:
        """ドラム名で直接トリガする。"""
        self._envelopes[drum].trigger(amplitude)

    def values(self) -> np.ndarray:
        """エンベロープ値（kick, snare, hat の順）。"""
        return np.array([self._envelopes[n].value for n in DRUM_ORDER], dtype=np.float64)

    def volumes(self) -> np.ndarray:
        """9 本のバー音量（エンベロープ値 × バー重み）。"""
        return self.values()[self._owner] * self._weights

    def levels(self) -> np.ndarray:
        """9 本のバーの点灯セグメント数。"""
        return lit_segments(self.volumes())

    def close(self) -> None:
        """購読解除とスケジューラの停止（冪等）。"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._scheduler.close()


__all__ = [
    "Equalizer",
    "BAR_WEIGHTS",
    "DEFAULT_HALF_LIVES",
    "DRUM_ORDER",
    "SEGMENTS",
    "SEGMENT_COLORS",
    "hex_to_rgb",
    "lit_segments",
]
