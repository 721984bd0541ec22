"""
どこで: `engine.ui` の計測サブモジュール。
何を: EnvelopeScheduler の状態（RUNNING/IDLE・活動数・描画レート）と、プロセスの CPU/MEM を
      一定間隔でサンプリングし、HUD 描画向けに文字列辞書として保持する。
なぜ: アイドル時にフレーム処理が止まっていることを目視で確認できるようにするため。
"""

from __future__ import annotations

import os
import time

import psutil

from ..core.envelope import EnvelopeScheduler
from ..core.frame_clock import Tickable


class MetricSampler(Tickable):
    """スケジューラ状態・CPU・MEM を一定間隔でサンプリングし dict に保持する。"""

    def __init__(self, scheduler: EnvelopeScheduler, interval: float = 0.2):
        self._scheduler = scheduler
        self._proc = psutil.Process(os.getpid())
        self._interval = interval
        # 前回サンプリング時刻と描画回数（実効描画レート算出に使用）
        self._last = 0.0
        self._last_renders = scheduler.render_count
        self.data: dict[str, str] = {}

    # -------- Tickable --------
    def tick(self, dt: float) -> None:
        now = time.time()
        if now - self._last < self._interval:
            return
        elapsed = now - self._last if self._last > 0.0 else 0.0
        self._last = now

        renders = self._scheduler.render_count
        dv = renders - self._last_renders
        self._last_renders = renders
        rate = (dv / elapsed) if elapsed > 0.0 else 0.0

        # 表示順序：LOOP を最初にして左下に固定
        self.data.update(
            LOOP=self._scheduler.state.upper(),
            ACTIVE=f"{self._scheduler.active_count}",
            RENDER=f"{rate:4.1f}/s",
            CPU=f"{self._proc.cpu_percent(0.0):4.1f}%",
            MEM=self._human(self._proc.memory_info().rss),
        )

    # -------- helpers --------
    @staticmethod
    def _human(n: float) -> str:
        for u in "B KB MB GB TB".split():
            if n < 1024:
                return f"{n:4.1f}{u}"
            n /= 1024
        return f"{n:4.1f}PB"
