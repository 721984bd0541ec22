"""
どこで: `api.envelope`
何を: エンベロープスケジューラのファクトリ関数を公開する薄いファサード。
なぜ: 利用者が `from api import create_envelope_scheduler` で取得できるようにするため（実装は `engine.core.envelope`）。
"""

from __future__ import annotations

from typing import Callable

from common.decay import DEFAULT_EPSILON, InvalidParameterError
from engine.core.envelope import Envelope, EnvelopeScheduler
from engine.core.frame_source import FrameQueue, FrameSource, monotonic_ms


def create_envelope_scheduler(
    on_active_frame: Callable[[], None],
    epsilon: float = DEFAULT_EPSILON,
    *,
    frame_source: FrameSource | None = None,
    clock: Callable[[], float] = monotonic_ms,
) -> EnvelopeScheduler:
    """スケジューラを構成して返すファクトリ。

    引数:
        on_active_frame: 活動中フレームごとに 1 回呼ばれる描画通知。
        epsilon: 活動判定/減衰終了のしきい値（>0）。
        frame_source: フレーム要求プリミティブ。None なら `clock` を共有する `FrameQueue` を生成し、
            `scheduler.frame_source.step()`（または FrameClock への登録）で駆動する。
        clock: トリガ時刻の時計 [ms]。

    返り値:
        EnvelopeScheduler: `create_envelope(half_life_ms)` でエンベロープを登録する。
    """
    source = frame_source if frame_source is not None else FrameQueue(clock)
    return EnvelopeScheduler(on_active_frame, epsilon, frame_source=source, clock=clock)


__all__ = [
    "create_envelope_scheduler",
    "Envelope",
    "EnvelopeScheduler",
    "FrameQueue",
    "InvalidParameterError",
]
