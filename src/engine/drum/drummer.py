"""
どこで: `engine.drum` のステップシーケンサ。
何を: BPM に従って 8 分音符ステップを刻み、kick/snare/hat/change イベントを購読者へ通知する `Drummer`。
なぜ: エンベロープをトリガする離散イベント源を、UI フレームワーク非依存の Tickable として提供するため。

パターン（1 小節 = 8 ステップ）:
- hat: 全ステップ
- kick: 0, 4
- snare: 2, 6
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

KICK = "kick"
SNARE = "snare"
HAT = "hat"
CHANGE = "change"
EVENTS = (KICK, SNARE, HAT, CHANGE)

MIN_BPM = 30
MAX_BPM = 300
STEPS_PER_BAR = 8
STEPS_PER_BEAT = 2

# ステップごとに鳴らすドラム
PATTERN: tuple[tuple[str, ...], ...] = (
    (KICK, HAT),
    (HAT,),
    (SNARE, HAT),
    (HAT,),
    (KICK, HAT),
    (HAT,),
    (SNARE, HAT),
    (HAT,),
)

Listener = Callable[[], None]


def clamp_bpm(bpm: float) -> int:
    """BPM を整数に丸め、[MIN_BPM, MAX_BPM] にクランプする。"""
    return max(MIN_BPM, min(MAX_BPM, int(round(float(bpm)))))


class Drummer:
    """テンポ駆動のドラムイベント発生器。`tick(dt)` で時間を進める。"""

    def __init__(self, bpm: float = 80) -> None:
        self._bpm = clamp_bpm(bpm)
        self._playing = False
        self._step = 0
        self._elapsed = 0.0
        self._listeners: dict[str, list[Listener]] = {name: [] for name in EVENTS}

    # ---- 参照 -----------------------------------------------------------
    @property
    def bpm(self) -> int:
        return self._bpm

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def step(self) -> int:
        """次に鳴るステップ番号（0..7）。"""
        return self._step

    @property
    def step_seconds(self) -> float:
        """1 ステップ（8 分音符）の長さ [秒]。"""
        return 60.0 / self._bpm / STEPS_PER_BEAT

    # ---- 購読 -----------------------------------------------------------
    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """`event` を購読し、解除用の関数を返す。"""
        if event not in self._listeners:
            raise ValueError(f"unknown drummer event: {event!r}")
        self._listeners[event].append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners[event].remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception:
                logger.exception("drummer listener for %r failed", event)

    # ---- 操作 -----------------------------------------------------------
    def play(self, bpm: float | None = None) -> None:
        """再生を開始する（`bpm` 指定時はテンポも更新）。先頭ステップを即座に鳴らす。"""
        if bpm is not None:
            self._bpm = clamp_bpm(bpm)
        was_playing = self._playing
        self._playing = True
        if not was_playing:
            self._step = 0
            self._elapsed = 0.0
            self._play_step()
        self._emit(CHANGE)

    def stop(self) -> None:
        if not self._playing:
            return
        self._playing = False
        self._emit(CHANGE)

    def toggle(self) -> None:
        if self._playing:
            self.stop()
        else:
            self.play()

    def set_tempo(self, bpm: float) -> None:
        new_bpm = clamp_bpm(bpm)
        if new_bpm == self._bpm:
            return
        self._bpm = new_bpm
        logger.debug("tempo set to %d bpm", new_bpm)
        self._emit(CHANGE)

    # -------- Tickable --------
    def tick(self, dt: float) -> None:
        if not self._playing or dt <= 0.0:
            return
        self._elapsed += float(dt)
        # 跨いだステップ境界をすべて鳴らす
        while self._playing and self._elapsed >= self.step_seconds:
            self._elapsed -= self.step_seconds
            self._play_step()

    def _play_step(self) -> None:
        drums = PATTERN[self._step]
        self._step = (self._step + 1) % STEPS_PER_BAR
        for drum in drums:
            self._emit(drum)


__all__ = [
    "Drummer",
    "KICK",
    "SNARE",
    "HAT",
    "CHANGE",
    "PATTERN",
    "MIN_BPM",
    "MAX_BPM",
    "clamp_bpm",
]
