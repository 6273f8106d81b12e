"""
どこで: `engine.events` サブパッケージ。
何を: 同期 publish/subscribe プリミティブ（イベント・値セル・フラグ）。
なぜ: スケジューラ/シーンの状態を購読者に所有権を渡さず公開する最小基盤として。
"""

from .dispatcher import (
    EventDispatcher,
    FlagDispatcher,
    Subscribable,
    Unsubscribe,
    ValueDispatcher,
    ValueSubscribable,
)

__all__ = [
    "EventDispatcher",
    "FlagDispatcher",
    "Subscribable",
    "Unsubscribe",
    "ValueDispatcher",
    "ValueSubscribable",
]
