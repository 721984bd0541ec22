"""
どこで: `common.settings`
何を: プロジェクトの環境変数（`DRM_*`）を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。

優先順位:
- 有効な値で設定された `DRM_*` は設定ファイル（configs/*.yaml）より優先される。
- 未設定/不正値のキーは `overridden()` が False を返し、設定ファイル → 既定値の順に解決される。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .decay import DEFAULT_EPSILON
from .env import env_bool, env_float, env_int


@dataclass
class _Settings:
    # エンベロープ
    ENVELOPE_EPSILON: float = DEFAULT_EPSILON

    # ループ/ドラマー
    FPS: int = 60
    BPM: int = 80

    # Misc
    DEBUG_FRAMES: bool = False


_settings = _Settings()
# 有効な値で設定されていた環境変数名
_overridden: set[str] = set()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - 不正値は既定値へフォールバック、FPS/BPM は下限 1 に丸める。
    """
    defaults = _Settings()
    _overridden.clear()

    eps = env_float("DRM_ENVELOPE_EPSILON", math.nan, positive=True)
    if math.isnan(eps):
        _settings.ENVELOPE_EPSILON = defaults.ENVELOPE_EPSILON
    else:
        _settings.ENVELOPE_EPSILON = eps
        _overridden.add("DRM_ENVELOPE_EPSILON")

    fps = env_int("DRM_FPS", None, min_value=1)
    _settings.FPS = defaults.FPS if fps is None else fps
    if fps is not None:
        _overridden.add("DRM_FPS")

    bpm = env_int("DRM_BPM", None, min_value=1)
    _settings.BPM = defaults.BPM if bpm is None else bpm
    if bpm is not None:
        _overridden.add("DRM_BPM")

    _settings.DEBUG_FRAMES = env_bool("DRM_DEBUG_FRAMES", False)


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


def overridden(name: str) -> bool:
    """`name`（例: "DRM_FPS"）が有効な値で環境から与えられていれば True。"""
    return name in _overridden


# 初期ロード
reload_from_env()


__all__ = ["get", "overridden", "reload_from_env", "_Settings"]
