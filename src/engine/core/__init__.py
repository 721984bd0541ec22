"""
どこで: `engine.core` サブパッケージ。
何を: フレーム駆動（Tickable/FrameClock/FrameSource）とエンベロープスケジューラを提供。
なぜ: 減衰計算と描画通知の基盤を構成し、上位層（drum/UI）から再利用可能にするため。
"""
