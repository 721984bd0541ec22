"""
どこで: `engine.core` のフレーム要求プリミティブ。
何を: 「次の表示更新前にコールバックを 1 回呼ぶ」要求/取消の `FrameSource` Protocol と、
      手動ステップ式 `FrameQueue`・pyglet クロック式 `PygletFrameSource` を提供。
なぜ: エンベロープスケジューラをホスト（pyglet/Dear PyGui/端末ループ/テスト）から切り離し、
      同じ時計（ミリ秒）でトリガ時刻とフレーム時刻を揃えるため。
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Callable, Hashable, Protocol

FrameCallback = Callable[[float], None]
FrameHandle = Hashable

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """単調増加（意図）の時計をミリ秒で返す。トリガとフレームで共有する既定時計。"""
    return time.perf_counter() * 1000.0


class FrameSource(Protocol):
    """ホストのフレーム要求/取消インターフェース。"""

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        """次フレームで `callback(now_ms)` を 1 回だけ呼ぶよう予約し、ハンドルを返す。"""
        ...

    def cancel_frame(self, handle: FrameHandle) -> None:
        """未発火の予約を取り消す。発火済み/不明なハンドルは no-op。"""
        ...


class FrameQueue:
    """明示ステップで駆動するフレーム要求キュー（requestAnimationFrame 相当）。

    - `step(now_ms)` は、ステップ開始前に要求されたコールバックだけを発火する。
      ステップ中に新たに要求されたものは次のステップまで待つ。
    - `Tickable` として `FrameClock` に載せられる（`tick(dt)` は自前の時計で step）。
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms) -> None:
        self._clock = clock
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: FrameHandle) -> None:
        self._pending.pop(handle, None)  # type: ignore[call-overload]

    @property
    def pending(self) -> int:
        """未発火の要求数。"""
        return len(self._pending)

    def step(self, now_ms: float | None = None) -> int:
        """保留中の要求を発火し、発火数を返す。"""
        now = self._clock() if now_ms is None else float(now_ms)
        batch = self._pending
        self._pending = {}
        fired = 0
        for handle, cb in batch.items():
            cb(now)
            fired += 1
        return fired

    # -------- Tickable --------
    def tick(self, dt: float) -> None:
        self.step()


class PygletFrameSource:
    """`pyglet.clock.schedule_once` で次フレームを予約する FrameSource。

    pyglet は経過秒 `dt` を渡すため、共有時計から `now_ms` を読み直して渡す。
    """

    def __init__(self, fps: int = 60, clock: Callable[[], float] = monotonic_ms) -> None:
        if int(fps) <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        self._interval = 1.0 / float(fps)
        self._clock = clock

    def request_frame(self, callback: FrameCallback) -> Any:
        import pyglet

        def _fire(_dt: float) -> None:
            callback(self._clock())

        pyglet.clock.schedule_once(_fire, self._interval)
        return _fire

    def cancel_frame(self, handle: FrameHandle) -> None:
        import pyglet

        # 発火済みの関数を unschedule しても pyglet 側で no-op
        pyglet.clock.unschedule(handle)  # type: ignore[arg-type]


__all__ = ["FrameSource", "FrameQueue", "PygletFrameSource", "monotonic_ms"]
