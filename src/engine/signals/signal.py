"""
どこで: `engine.signals.signal`
何を: 読み出し時に依存として登録される書き込み可能セル `Signal` と、遅延評価・キャッシュ付きの
      派生値 `Computed`、および遅延ロードされる非同期値 `AsyncResource`。
なぜ: 描画パスの中で「準備中の値」を読んでもブロックせず、`DependencyContext` 経由で
      呼び出し側に待機と再実行を委ねるため。
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Generic, TypeVar

from engine.events import Subscribable, ValueDispatcher

from .dependency import DependencyContext, PromiseHandle

T = TypeVar("T")


class Signal(Generic[T]):
    """読み出しで依存登録される値セル。`sig()` で取得、`sig(value)` で設定。"""

    def __init__(self, initial: T, owner: Any = None) -> None:
        self.owner = owner
        self._cell: ValueDispatcher[T] = ValueDispatcher(initial)

    def __call__(self, *value: T) -> T:
        if value:
            self.set(value[0])
            return value[0]
        return self.get()

    def get(self) -> T:
        DependencyContext.collect(self._cell.subscribable)
        return self._cell.current

    def set(self, value: T) -> None:
        self._cell.current = value

    def peek(self) -> T:
        """依存登録せずに現在値を返す。"""
        return self._cell.current

    @property
    def on_changed(self) -> Subscribable[T]:
        return self._cell.subscribable


class Computed(DependencyContext[Any], Generic[T]):
    """依存が変化するまで結果をキャッシュする派生値。

    評価中に集めた依存（`Signal` 読み出し）と、所有する未解決ハンドルの解決で dirty になる。
    自身の読み出しも外側の評価へ依存として伝播する。
    """

    def __init__(self, factory: Callable[[], T], owner: Any = None) -> None:
        super().__init__(owner)
        self._factory = factory
        self._last: T | None = None
        self._changed: ValueDispatcher[int] = ValueDispatcher(0)
        self.on_invalidated.subscribe(self._bump)

    def _bump(self, _value: object = None) -> None:
        self._changed.current = self._changed.current + 1

    def __call__(self) -> T:
        if self.is_dirty():
            with self.collecting():
                self._last = self._factory()
        DependencyContext.collect(self._changed.subscribable)
        return self._last  # type: ignore[return-value]


class AsyncResource(Generic[T]):
    """初回読み出しでローダを起動し、解決まではプレースホルダを返す非同期値。

    - 未解決の読み出しは毎回 `DependencyContext.collect_promise` にハンドルを登録する。
    - 解決後の読み出しは値をそのまま返す。ローダの例外は読み出し側へ伝搬する。
    - 読み出しは実行中のイベントループ内（シーンのパス中）で行うこと。
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        placeholder: T | None = None,
        *,
        key: str | None = None,
    ) -> None:
        self._loader = loader
        self._placeholder = placeholder
        self._future: asyncio.Future[T] | None = None
        self.key = key

    def __call__(self) -> T | None:
        return self.get()

    def get(self) -> T | None:
        if self._future is None:
            self._future = asyncio.ensure_future(self._loader())
        if self._future.done():
            return self._future.result()
        DependencyContext.collect_promise(self._future, self._placeholder)
        return self._placeholder

    async def load(self) -> T:
        """ローダの完了を待って値を返す（依存登録はしない）。"""
        if self._future is None:
            self._future = asyncio.ensure_future(self._loader())
        return await self._future

    @property
    def ready(self) -> bool:
        return self._future is not None and self._future.done()

    def reset(self) -> None:
        """次回の読み出しでローダを再実行させる。"""
        if self._future is not None and not self._future.done():
            self._future.cancel()
        self._future = None


def collect_promise(awaitable: Awaitable[T], initial: T | None = None) -> PromiseHandle[T]:
    """`DependencyContext.collect_promise` の関数版。"""
    return DependencyContext.collect_promise(awaitable, initial)


__all__ = ["Signal", "Computed", "AsyncResource", "collect_promise"]
