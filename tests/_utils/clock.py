"""テスト用の手動時計（ミリ秒）。"""

from __future__ import annotations


class FakeClock:
    """`clock()` で現在時刻 [ms] を返し、`advance()`/`set()` で進める。"""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now = float(start_ms)

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += float(ms)
        return self.now

    def set(self, ms: float) -> float:
        self.now = float(ms)
        return self.now
