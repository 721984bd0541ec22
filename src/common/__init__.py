"""
どこで: `common` パッケージ。
何を: 減衰シーケンス・タップテンポ・環境変数/設定・ロギングなど、UI 非依存の軽量部品。
なぜ: engine/api 層から再利用する共通基盤を分離し、依存の向きを単純化するため。
"""

from .decay import DecayParameters, DecaySequence, InvalidParameterError

__all__ = [
    "DecayParameters",
    "DecaySequence",
    "InvalidParameterError",
]
