"""
どこで: `engine.signals` サブパッケージ。
何を: 依存収集コンテキストと最小限のリアクティブ値（Signal/Computed/AsyncResource）。
なぜ: 同期的な描画パスが遅延解決される非同期値を待てるようにするため。
"""

from .dependency import DependencyContext, PromiseHandle
from .signal import AsyncResource, Computed, Signal, collect_promise

__all__ = [
    "DependencyContext",
    "PromiseHandle",
    "AsyncResource",
    "Computed",
    "Signal",
    "collect_promise",
]
