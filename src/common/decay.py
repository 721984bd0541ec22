"""
どこで: `common.decay`
何を: 半減期・開始振幅・開始時刻から、外部時刻で再開するたびに減衰値を返す指数減衰シーケンスを提供。
なぜ: エンベロープ/スケジューラから独立した純粋ロジックとして、フレーム駆動の減衰計算を再利用するため。

設計方針:
- 状態は `DecaySequence` インスタンスが専有し、`resume(now_ms)` でのみ更新する。
- 時刻の逆行は経過 0 として扱う（値は増えず、例外も出さない）。
- 値が `epsilon` 以下になった時点で終了し、終端値は厳密に 0。
- 終了済み/破棄済みのシーケンスは再始動しない（新しいトリガは新インスタンス）。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_EPSILON = 0.001


class InvalidParameterError(ValueError):
    """構築時パラメータ（半減期/開始値/epsilon 等）が不正な場合に送出される例外。"""


def validate_half_life(half_life_ms: float) -> float:
    """半減期 [ms] を検証して float で返す。0 以下・非有限は `InvalidParameterError`。"""
    try:
        h = float(half_life_ms)
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"half_life_ms must be a number, got {half_life_ms!r}") from e
    if not math.isfinite(h) or h <= 0.0:
        raise InvalidParameterError(f"half_life_ms must be > 0, got {half_life_ms!r}")
    return h


def validate_epsilon(epsilon: float) -> float:
    """終了しきい値を検証する。正の有限値のみ許容。"""
    try:
        e = float(epsilon)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"epsilon must be a number, got {epsilon!r}") from exc
    if not math.isfinite(e) or e <= 0.0:
        raise InvalidParameterError(f"epsilon must be > 0, got {epsilon!r}")
    return e


@dataclass(frozen=True)
class DecayParameters:
    """1 回のトリガに対応する減衰パラメータ（不変）。

    引数:
        half_life_ms: 半減期 [ms]（>0）。
        start_value: 開始振幅（>=0、有限）。
        start_time_ms: 開始時刻 [ms]（ホストのフレーム時刻と同じ時計）。
    """

    half_life_ms: float
    start_value: float
    start_time_ms: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "half_life_ms", validate_half_life(self.half_life_ms))
        v = float(self.start_value)
        if not math.isfinite(v) or v < 0.0:
            raise InvalidParameterError(f"start_value must be >= 0, got {self.start_value!r}")
        object.__setattr__(self, "start_value", v)
        object.__setattr__(self, "start_time_ms", float(self.start_time_ms))


class DecaySequence:
    """外部時刻で再開される有限の指数減衰シーケンス。

    `resume(now_ms)` は `(value, done)` を返す。`done=True` のとき value は 0.0。
    """

    __slots__ = ("_params", "_epsilon", "_value", "_last_ms", "_done")

    def __init__(self, params: DecayParameters, *, epsilon: float = DEFAULT_EPSILON) -> None:
        self._params = params
        self._epsilon = validate_epsilon(epsilon)
        self._value = params.start_value
        self._last_ms = params.start_time_ms
        # 開始値がしきい値以下なら生まれた時点で終了
        self._done = self._value <= self._epsilon
        if self._done:
            self._value = 0.0

    @classmethod
    def start(
        cls,
        half_life_ms: float,
        start_value: float,
        start_time_ms: float,
        *,
        epsilon: float = DEFAULT_EPSILON,
    ) -> "DecaySequence":
        """パラメータを組み立ててシーケンスを生成するショートカット。"""
        return cls(DecayParameters(half_life_ms, start_value, start_time_ms), epsilon=epsilon)

    # ---- 参照 -----------------------------------------------------------
    @property
    def params(self) -> DecayParameters:
        return self._params

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def value(self) -> float:
        """最後に観測した値（終了後は 0.0）。"""
        return self._value

    @property
    def last_sample_time_ms(self) -> float:
        return self._last_ms

    @property
    def done(self) -> bool:
        return self._done

    # ---- 再開 -----------------------------------------------------------
    def resume(self, now_ms: float) -> tuple[float, bool]:
        """時刻 `now_ms` まで減衰を進め、`(value, done)` を返す。"""
        if self._done:
            return 0.0, True
        now = float(now_ms)
        # 逆行/非単調な時計は経過 0 に丸める
        delta = max(0.0, now - self._last_ms)
        self._last_ms = now
        self._value *= 0.5 ** (delta / self._params.half_life_ms)
        if self._value <= self._epsilon:
            self._value = 0.0
            self._done = True
            return 0.0, True
        return self._value, False

    def __repr__(self) -> str:
        state = "done" if self._done else f"{self._value:.6f}"
        return f"DecaySequence(half_life_ms={self._params.half_life_ms}, value={state})"


def termination_bound_ms(
    half_life_ms: float, amplitude: float, epsilon: float = DEFAULT_EPSILON
) -> int:
    """振幅 `amplitude` が `epsilon` 以下に落ちるまでの経過時間上限 [ms] を返す。

    `ceil(h * log2(a / epsilon))`。`a <= epsilon` なら 0。
    """
    h = validate_half_life(half_life_ms)
    e = validate_epsilon(epsilon)
    a = float(amplitude)
    if a <= e:
        return 0
    return int(math.ceil(h * math.log2(a / e)))


__all__ = [
    "DEFAULT_EPSILON",
    "DecayParameters",
    "DecaySequence",
    "InvalidParameterError",
    "termination_bound_ms",
    "validate_epsilon",
    "validate_half_life",
]
