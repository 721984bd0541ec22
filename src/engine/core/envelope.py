"""
どこで: `engine.core` のエンベロープ駆動スケジューラ。
何を: 登録された `Envelope` 群を単一のフレームコールバックで進め、活動中のみフレームを要求する
      `EnvelopeScheduler` と、トリガで減衰をやり直す `Envelope` を提供。
なぜ: 何かが動いている間だけ描画コストを払い、1 フレーム内の更新を 1 回の描画通知にまとめるため。

状態遷移（スケジューラ単位）:
- Idle（保留ハンドルなし）→ Running（保留ハンドルあり）: 活動中エンベロープがある状態で `ensure_loop()`。
- Running → Idle: フレームで epsilon 超のエンベロープが 1 つも無かったとき。
- `close()` 後は再スケジュールしない（UI 面のアンマウント相当）。

スレッド:
- 単一スレッド前提。`trigger` はイベントハンドラから、フレームは FrameSource から呼ばれる。
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from common.decay import (
    DEFAULT_EPSILON,
    DecaySequence,
    validate_epsilon,
    validate_half_life,
)

from .frame_source import FrameHandle, FrameSource, monotonic_ms

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"


def clamp_amplitude(amplitude: float) -> float:
    """トリガ振幅を [0, 1] に丸める。NaN は 0。"""
    a = float(amplitude)
    if math.isnan(a) or a <= 0.0:
        return 0.0
    if a >= 1.0:
        return 1.0
    return a


class Envelope:
    """1 つの論理信号（kick/snare/hat 等）の減衰エンベロープ。

    `EnvelopeScheduler.create_envelope()` から生成する。直接生成は想定しない。
    """

    __slots__ = ("_scheduler", "_half_life_ms", "_value", "_sequence", "name")

    def __init__(
        self, scheduler: "EnvelopeScheduler", half_life_ms: float, name: str | None = None
    ) -> None:
        self._scheduler = scheduler
        self._half_life_ms = validate_half_life(half_life_ms)
        self._value = 0.0
        self._sequence: Optional[DecaySequence] = None
        self.name = name

    @property
    def value(self) -> float:
        """最後にサンプルした（またはトリガ直後の）値。アイドル時は 0。"""
        return self._value

    @property
    def half_life_ms(self) -> float:
        return self._half_life_ms

    @property
    def active(self) -> bool:
        """減衰シーケンスが生きているか。"""
        return self._sequence is not None

    def trigger(self, amplitude: float = 1.0) -> None:
        """値を即座に `amplitude` へ設定し、減衰を現在時刻からやり直す。

        - 振幅は [0, 1] にクランプする。0 は消音（シーケンスを破棄して値 0）。
        - 進行中の減衰は破棄される（2 つの減衰が混ざることはない）。
        - スケジューラの close 後は何もしない。
        """
        if self._scheduler.closed:
            return
        a = clamp_amplitude(amplitude)
        if a != amplitude:
            logger.debug("trigger amplitude %r clamped to %s (%s)", amplitude, a, self.name)
        self._value = a
        if a <= 0.0:
            self._sequence = None
            return
        sched = self._scheduler
        self._sequence = DecaySequence.start(
            self._half_life_ms, a, sched.now(), epsilon=sched.epsilon
        )
        sched.ensure_loop()

    # ---- スケジューラからのみ呼ぶ ------------------------------------
    def _reset(self) -> None:
        self._sequence = None
        self._value = 0.0

    def _advance(self, now_ms: float) -> bool:
        """減衰を `now_ms` まで進め、epsilon 超で活動中なら True を返す。例外は投げない。"""
        seq = self._sequence
        if seq is None:
            return False
        try:
            value, done = seq.resume(now_ms)
        except Exception:
            logger.exception("envelope %s: decay step failed; snapping to 0", self.name)
            value, done = 0.0, True
        if not done and not math.isfinite(value):
            logger.error("envelope %s: non-finite sample %r; snapping to 0", self.name, value)
            done = True
        if done:
            self._sequence = None
            self._value = 0.0
            return False
        self._value = value
        return value > self._scheduler.epsilon

    def __repr__(self) -> str:
        return (
            f"Envelope(name={self.name!r}, half_life_ms={self._half_life_ms}, "
            f"value={self._value:.4f}, active={self.active})"
        )


class EnvelopeScheduler:
    """エンベロープ群を 1 本のフレームコールバックで駆動するスケジューラ。

    引数:
        on_active_frame: 活動中のフレームごとに 1 回呼ばれる描画通知（引数なし）。
        epsilon: 活動判定/減衰終了のしきい値（>0）。
        frame_source: フレーム要求プリミティブ（必須）。
        clock: トリガ時刻に使う時計 [ms]。FrameSource のタイムスタンプと同じ時計を渡すこと。
    """

    def __init__(
        self,
        on_active_frame: Callable[[], None],
        epsilon: float = DEFAULT_EPSILON,
        *,
        frame_source: FrameSource,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self._on_active_frame = on_active_frame
        self._epsilon = validate_epsilon(epsilon)
        self._frame_source = frame_source
        self._clock = clock
        self._envelopes: list[Envelope] = []
        self._pending: Optional[FrameHandle] = None
        self._closed = False
        self._frame_count = 0
        self._render_count = 0

    # ---- 参照 -----------------------------------------------------------
    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def frame_source(self) -> FrameSource:
        return self._frame_source

    @property
    def envelopes(self) -> tuple[Envelope, ...]:
        """登録順（安定インデックス）のエンベロープ。"""
        return tuple(self._envelopes)

    @property
    def is_running(self) -> bool:
        return self._pending is not None

    @property
    def state(self) -> str:
        return RUNNING if self._pending is not None else IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_count(self) -> int:
        return sum(1 for e in self._envelopes if e.active)

    @property
    def frame_count(self) -> int:
        """実行したフレームコールバック数。"""
        return self._frame_count

    @property
    def render_count(self) -> int:
        """`on_active_frame` を呼んだ回数。"""
        return self._render_count

    def now(self) -> float:
        return float(self._clock())

    # ---- 公開操作 -------------------------------------------------------
    def create_envelope(self, half_life_ms: float, name: str | None = None) -> Envelope:
        """半減期 `half_life_ms` のエンベロープを登録して返す。不正値は構築時に例外。"""
        env = Envelope(self, half_life_ms, name=name)
        self._envelopes.append(env)
        return env

    def ensure_loop(self) -> None:
        """保留中のフレームが無ければ 1 つだけ要求する（冪等）。"""
        if self._pending is not None or self._closed:
            return
        self._pending = self._frame_source.request_frame(self._on_frame)
        logger.debug("envelope loop: idle -> running")

    def close(self) -> None:
        """保留中のフレームを取り消し、全エンベロープを 0 に戻して以降のスケジュールを止める（冪等）。"""
        self._closed = True
        for env in self._envelopes:
            env._reset()
        handle = self._pending
        self._pending = None
        if handle is not None:
            self._frame_source.cancel_frame(handle)
            logger.debug("envelope loop: cancelled on close")

    # ---- フレーム -------------------------------------------------------
    def _on_frame(self, now_ms: float) -> None:
        # このハンドルは発火済み。render 中の trigger は ensure_loop で再要求できる。
        self._pending = None
        if self._closed:
            return
        self._frame_count += 1
        any_active = False
        for env in self._envelopes:
            if env._advance(now_ms):
                any_active = True

        if not any_active:
            logger.debug("envelope loop: running -> idle (frame %d)", self._frame_count)
            return

        self._render_count += 1
        try:
            self._on_active_frame()
        except Exception:
            # 1 つの描画失敗でループ全体を止めない
            logger.exception("on_active_frame callback failed")
        self.ensure_loop()

    def __repr__(self) -> str:
        return (
            f"EnvelopeScheduler(state={self.state}, envelopes={len(self._envelopes)}, "
            f"epsilon={self._epsilon})"
        )


__all__ = ["Envelope", "EnvelopeScheduler", "clamp_amplitude", "IDLE", "RUNNING"]
