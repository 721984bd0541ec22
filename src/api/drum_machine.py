"""
どこで: `api.drum_machine`（実行ランナー）。
何を: ドラマーとイコライザを組み立て、指定の UI バリアント（pyglet / Dear PyGui / 端末）で実行する。
なぜ: 同じエンベロープ駆動ロジックを 3 種のフロントエンドで動かすデモを 1 つの入口から起動するため。

実行フロー（概要）:
1) 設定解決: FPS/BPM/epsilon/半減期を「明示指定 > 設定済みの DRM_* 環境変数 > configs/*.yaml > 既定値」で確定。
2) `Drummer` を生成。
3) `init_only=True` の場合は GUI を読み込まず、`FrameQueue` 上のヘッドレス構成を返して終了。
4) バリアントごとのアダプタを遅延インポートして実行（ブロッキング）。

注意:
- ヘッドレス/仮想環境では `pyglet`/`dearpygui` の初期化に失敗する場合がある。端末バリアントは常に動く。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from engine.core.frame_clock import FrameClock
from engine.core.frame_source import FrameQueue, monotonic_ms
from engine.drum.drummer import Drummer
from engine.drum.equalizer import Equalizer

from .drum_runner.utils import resolve_bpm, resolve_epsilon, resolve_fps, resolve_half_lives

logger = logging.getLogger(__name__)

VARIANTS = ("pyglet", "dpg", "terminal")


@dataclass
class HeadlessDrumMachine:
    """GUI を持たない構成。テストや組み込み用に手動で `clock.tick(dt)` する。"""

    drummer: Drummer
    equalizer: Equalizer
    frames: FrameQueue
    clock: FrameClock
    fps: int

    def close(self) -> None:
        self.equalizer.close()
        self.drummer.stop()


def build_headless(
    *,
    bpm: float | None = None,
    fps: int | None = None,
    epsilon: float | None = None,
    half_lives: Mapping[str, float] | None = None,
    on_render: Callable[[], None] | None = None,
    clock: Callable[[], float] = monotonic_ms,
) -> HeadlessDrumMachine:
    """ドラマー + イコライザ + FrameQueue を結線して返す。"""
    drummer = Drummer(resolve_bpm(bpm))
    frames = FrameQueue(clock)
    equalizer = Equalizer(
        drummer,
        on_render=on_render if on_render is not None else (lambda: None),
        frame_source=frames,
        epsilon=resolve_epsilon(epsilon),
        half_lives=resolve_half_lives(half_lives),
        clock=clock,
    )
    return HeadlessDrumMachine(
        drummer=drummer,
        equalizer=equalizer,
        frames=frames,
        clock=FrameClock([drummer, frames]),
        fps=resolve_fps(fps),
    )


def run_drum_machine(
    variant: str = "pyglet",
    *,
    bpm: float | None = None,
    fps: int | None = None,
    epsilon: float | None = None,
    half_lives: Mapping[str, float] | None = None,
    seconds: float = 8.0,
    show_hud: bool = True,
    init_only: bool = False,
) -> HeadlessDrumMachine | None:
    """ドラムマシンを実行する。

    Parameters
    ----------
    variant : str
        "pyglet" / "dpg" / "terminal"。
    bpm, fps, epsilon, half_lives
        明示指定（None で設定ファイル/環境変数から解決）。
    seconds : float
        端末バリアントの再生秒数。
    show_hud : bool
        pyglet バリアントで HUD を表示するか。
    init_only : bool
        True で GUI を読み込まず、ヘッドレス構成を返す。

    Raises
    ------
    ValueError
        未知のバリアント。
    InvalidParameterError
        明示指定の epsilon/半減期が不正。
    """
    if variant not in VARIANTS:
        raise ValueError(f"unknown variant: {variant!r}; allowed={', '.join(VARIANTS)}")

    if init_only:
        return build_headless(bpm=bpm, fps=fps, epsilon=epsilon, half_lives=half_lives)

    r_fps = resolve_fps(fps)
    r_eps = resolve_epsilon(epsilon)
    r_half = resolve_half_lives(half_lives)
    drummer = Drummer(resolve_bpm(bpm))
    logger.info("starting %s drum machine at %d bpm (%d fps)", variant, drummer.bpm, r_fps)

    # 遅延インポート（未使用のツールキットを読み込まない）
    if variant == "pyglet":
        from engine.ui import pyglet_window

        pyglet_window.run(
            drummer, fps=r_fps, epsilon=r_eps, half_lives=r_half, show_hud=show_hud
        )
    elif variant == "dpg":
        from engine.ui import dpg_window

        dpg_window.run(drummer, epsilon=r_eps, half_lives=r_half)
    else:
        from engine.ui import terminal

        terminal.run(drummer, seconds=seconds, fps=r_fps, epsilon=r_eps, half_lives=r_half)
    return None


__all__ = ["run_drum_machine", "build_headless", "HeadlessDrumMachine", "VARIANTS"]
