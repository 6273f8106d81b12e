"""
どこで: `engine.scenes.metadata`
何を: シーンのメタデータ（乱数シード）。
なぜ: `reset()` ごとに同じシードで乱数源を作り直し、実行ごとの乱数を再現可能にするため。
"""

from __future__ import annotations

from common import settings
from engine.events import ValueDispatcher, ValueSubscribable


class SceneMetadata:
    """シードを値セルとして保持する（変更は購読者へ通知される）。"""

    def __init__(self, seed: int | None = None) -> None:
        initial = settings.get().DEFAULT_SEED if seed is None else int(seed)
        self._seed: ValueDispatcher[int] = ValueDispatcher(initial)

    @property
    def seed(self) -> int:
        return self._seed.current

    @seed.setter
    def seed(self, value: int) -> None:
        self._seed.current = int(value)

    @property
    def on_seed_changed(self) -> ValueSubscribable[int]:
        return self._seed.subscribable  # type: ignore[return-value]


__all__ = ["SceneMetadata"]
