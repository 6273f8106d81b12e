"""
どこで: `engine.core` の更新インターフェース。
何を: 実時間の経過 `dt` [sec] を受け取る `tick(dt)` を持つ `Tickable` Protocol。
なぜ: プレイヤーやログ出力などフレーム駆動のオブジェクトを `FrameClock` から一様に呼ぶため。
"""

from typing import Protocol


class Tickable(Protocol):
    """実時間で駆動されるオブジェクト。"""

    def tick(self, dt: float) -> None:
        """`dt` 秒ぶん経過したものとして内部状態を進める。"""
