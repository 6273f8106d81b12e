"""
どこで: `engine.playback` サブパッケージ。
何を: 論理時間の所有者 `PlaybackManager` と、シーン向けの読み取り専用ビュー `PlaybackStatus`。
なぜ: シーク/再計算/シーン引き継ぎをコアから分離しつつ、同じインターフェースで駆動するため。
"""

from .manager import PlaybackManager
from .status import PlaybackStatus

__all__ = ["PlaybackManager", "PlaybackStatus"]
