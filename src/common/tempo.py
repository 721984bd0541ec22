"""
どこで: `common.tempo`
何を: タップ時刻の列からテンポ（BPM）を推定するタップテンポ計測器。
なぜ: "SET TEMPO" ボタン/キーの連打でドラマーのテンポを合わせるため。UI 非依存の純粋部品。
"""

from __future__ import annotations

from collections import deque


class TempoTapper:
    """タップ間隔の移動平均から BPM を返す。

    引数:
        reset_after: この秒数を超える間隔が空いたら計測をやり直す。
        max_intervals: 平均に使う直近の間隔数。
    """

    def __init__(self, *, reset_after: float = 2.0, max_intervals: int = 4) -> None:
        if reset_after <= 0.0:
            raise ValueError("reset_after は正の値が必要")
        if max_intervals < 1:
            raise ValueError("max_intervals は 1 以上が必要")
        self._reset_after = float(reset_after)
        self._taps: deque[float] = deque(maxlen=int(max_intervals) + 1)

    def tap(self, now_s: float) -> int | None:
        """時刻 `now_s` [秒] のタップを記録し、推定 BPM（2 タップ目以降）を返す。"""
        t = float(now_s)
        if self._taps:
            gap = t - self._taps[-1]
            if gap <= 0.0 or gap > self._reset_after:
                self._taps.clear()
        self._taps.append(t)
        if len(self._taps) < 2:
            return None
        span = self._taps[-1] - self._taps[0]
        avg = span / (len(self._taps) - 1)
        return int(round(60.0 / avg))

    def reset(self) -> None:
        self._taps.clear()

    @property
    def tap_count(self) -> int:
        return len(self._taps)


__all__ = ["TempoTapper"]
