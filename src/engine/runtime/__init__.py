"""
どこで: `engine.runtime` サブパッケージ。
何を: `PlaybackManager` をフレーム単位で駆動し、確定したフレームを出力先へ渡す `Player`。
なぜ: オフライン書き出し（全体/範囲）と実時間再生（`FrameClock` 経由）を同じ経路で扱うため。
"""

from .player import FrameSink, Player, SceneError

__all__ = ["FrameSink", "Player", "SceneError"]
