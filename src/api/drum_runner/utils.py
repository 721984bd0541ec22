"""
どこで: `api.drum_runner.utils`（純粋関数/小ヘルパ）。
何を: FPS/BPM/epsilon/半減期の解決（明示指定 > 設定済みの DRM_* 環境変数 > 設定ファイル > 既定値）を提供。
なぜ: `api.drum_machine` を薄く保ち、テスト容易性と再利用性を上げるため。
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from common import settings
from common.decay import InvalidParameterError, validate_epsilon, validate_half_life
from engine.drum.equalizer import DEFAULT_HALF_LIVES

logger = logging.getLogger(__name__)


def _section(cfg: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if cfg is not None:
        return cfg
    try:
        from util.utils import drum_machine_section

        return drum_machine_section()
    except Exception as e:  # noqa: BLE001 - 設定読込はフェイルソフト
        logger.debug("config load failed: %s", e, exc_info=True)
        return {}


def resolve_fps(requested_fps: int | None, *, cfg: Mapping[str, Any] | None = None) -> int:
    """FPS を解決して 1 以上の int を返す。

    - 明示指定があればそれを優先（数値化できない/<=0 は既定へ）。
    - 次に `DRM_FPS`（設定されている場合）、設定ファイル、最後に既定値。
    """
    default = settings.get().FPS
    if requested_fps is not None:
        try:
            return max(1, int(requested_fps))
        except (TypeError, ValueError):
            return max(1, int(default))
    if settings.overridden("DRM_FPS"):
        return max(1, int(default))
    try:
        return max(1, int(_section(cfg).get("fps", default)))
    except (TypeError, ValueError):
        return max(1, int(default))


def resolve_bpm(requested_bpm: float | None, *, cfg: Mapping[str, Any] | None = None) -> float:
    """BPM を解決する（明示 > `DRM_BPM` > 設定ファイル > 既定。範囲のクランプは Drummer 側）。"""
    default = settings.get().BPM
    if requested_bpm is not None:
        raw = requested_bpm
    elif settings.overridden("DRM_BPM"):
        return float(default)
    else:
        raw = _section(cfg).get("bpm", default)
    try:
        v = float(raw)
    except (TypeError, ValueError):
        return float(default)
    return v if math.isfinite(v) and v > 0 else float(default)


def resolve_epsilon(requested: float | None, *, cfg: Mapping[str, Any] | None = None) -> float:
    """epsilon を解決する（明示 > `DRM_ENVELOPE_EPSILON` > 設定ファイル > 既定）。

    明示指定の不正値は `InvalidParameterError`、設定ファイルの不正値は既定へ。
    """
    if requested is not None:
        return validate_epsilon(requested)
    default = settings.get().ENVELOPE_EPSILON
    if settings.overridden("DRM_ENVELOPE_EPSILON"):
        return default
    try:
        return validate_epsilon(_section(cfg).get("epsilon", default))
    except InvalidParameterError:
        logger.warning("invalid epsilon in config; using %s", default)
        return default


def resolve_half_lives(
    requested: Mapping[str, float] | None = None, *, cfg: Mapping[str, Any] | None = None
) -> dict[str, float]:
    """ドラム名 → 半減期 [ms] を解決する。未知のドラム名は無視する。"""
    out = dict(DEFAULT_HALF_LIVES)
    conf = _section(cfg).get("half_life_ms", {})
    if isinstance(conf, Mapping):
        for name, value in conf.items():
            if name not in out:
                continue
            try:
                out[name] = validate_half_life(value)
            except InvalidParameterError:
                logger.warning("invalid half_life_ms for %s in config: %r", name, value)
    if requested:
        for name, value in requested.items():
            if name in out:
                out[name] = validate_half_life(value)
    return out


__all__ = ["resolve_fps", "resolve_bpm", "resolve_epsilon", "resolve_half_lives"]
