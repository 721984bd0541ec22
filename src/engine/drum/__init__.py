"""
どこで: `engine.drum` サブパッケージ。
何を: ドラムイベント源（Drummer）と、エンベロープで駆動するイコライザモデル（Equalizer）。
なぜ: UI アダプタから共通のドメインロジックを切り出すため。
"""

from .drummer import Drummer
from .equalizer import Equalizer

__all__ = ["Drummer", "Equalizer"]
