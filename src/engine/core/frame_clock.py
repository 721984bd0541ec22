"""
どこで: `engine.core` の簡易フレームドライバ。
何を: 1 フレーム更新 `tick(dt)` を持つ `Tickable` Protocol と、その列を固定順序で呼び出す FrameClock。
なぜ: GUI/端末ループから呼び出すだけで、ドラマー → フレームキュー → HUD の更新順を統一するため。
"""

from __future__ import annotations

import time
from typing import Protocol, Sequence


class Tickable(Protocol):
    """1 フレーム分の更新を行うインターフェース。"""

    def tick(self, dt: float) -> None:
        """内部状態を `dt` 秒ぶん進める。"""


class FrameClock:
    """登録された Tickable を固定順序で実行するだけの極小クラス。"""

    def __init__(self, tickables: Sequence[Tickable]):
        self._tickables = tuple(tickables)
        self._last_time = time.perf_counter()
        self._frames = 0

    @property
    def frames(self) -> int:
        """`tick` が呼ばれた回数。"""
        return self._frames

    # pyglet は schedule_interval 経由で dt を渡す。手動ループは省略して自前で測る
    def tick(self, dt: float | None = None) -> None:
        if dt is None:
            now = time.perf_counter()
            dt = now - self._last_time
            self._last_time = now

        self._frames += 1
        for t in self._tickables:
            t.tick(dt)
