"""
どこで: `api` 入口（高レベル公開 API）。
何を: エンベロープスケジューラのファクトリ・ドラムマシンの実行ランナーを再輸出。
なぜ: 利用者が単一名前空間からエンベロープ生成 → トリガ → 実行まで完結できるようにするため。

Usage:
    from api import create_envelope_scheduler

    sched = create_envelope_scheduler(lambda: redraw(), epsilon=0.001)
    kick = sched.create_envelope(220)
    kick.trigger(1.0)
    sched.frame_source.step()   # FrameQueue を手動で進める
    print(kick.value)
"""

from common.decay import InvalidParameterError

from .drum_machine import build_headless, run_drum_machine
from .drum_machine import run_drum_machine as run
from .envelope import Envelope, EnvelopeScheduler, create_envelope_scheduler

__all__ = [
    # メインAPI
    "create_envelope_scheduler",
    "run_drum_machine",
    "run",  # 実行（エイリアス、簡易）
    "build_headless",
    # クラス（高度な使用）
    "Envelope",
    "EnvelopeScheduler",
    "InvalidParameterError",
]

# バージョン情報
__version__ = "2026.10"
