"""
どこで: `engine.signals.dependency`
何を: 同期的な評価パス中に見つかった未解決の非同期値（`PromiseHandle`）を蓄積する
      プロセス全体のレジストリと、依存を収集するスコープ付きコンテキスト `DependencyContext`。
なぜ: 描画パスが準備中のアセットを読んでもジェネレータを止めずにプレースホルダを返し、
      パス後に呼び出し側がまとめて待機→再実行できるようにするため（再試行ディシプリン）。

設計要点:
- `collect_promise()` はハンドルを登録し、取得時点のスタックと、最内の収集コンテキストの
  `owner` を記録する。複数回の登録は蓄積される。
- `consume_promises()` は前回の消費以降のハンドルを返してクリアする（同期・原子的）。
- インスタンスは `with ctx.collecting():` で収集スタックへ積まれ、どの経路でも取り除かれる。
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Awaitable, ClassVar, Generic, Iterator, TypeVar

from engine.events import FlagDispatcher, Subscribable, Unsubscribe, ValueSubscribable

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PromiseHandle(Generic[T]):
    """評価中に見つかった未解決値。

    `awaitable` は待機対象（`asyncio.Future`/`Task` に正規化済み）。解決後は `value` に結果が入る。
    `owner` は収集時点で最内にあった `DependencyContext` の所有者。
    """

    awaitable: Awaitable[T]
    value: T | None = None
    stack: str | None = None
    owner: Any = None
    _resolved: bool = field(default=False, init=False, repr=False)

    @property
    def resolved(self) -> bool:
        return self._resolved

    async def wait(self) -> T | None:
        result = await self.awaitable
        self.value = result
        self._resolved = True
        return result


class DependencyContext(Generic[T]):
    """依存（購読対象）と未解決ハンドルを収集するスコープ。

    クラス属性の収集スタック/ハンドル列はプロセス全体で共有される。
    """

    _collection_stack: ClassVar[list["DependencyContext[Any]"]] = []
    _promises: ClassVar[list[PromiseHandle[Any]]] = []

    def __init__(self, owner: T | None = None) -> None:
        self.owner = owner
        self._dependencies: dict[Subscribable[Any], Unsubscribe] = {}
        self._invalidated = FlagDispatcher()
        self._invalidated.raise_()

    # ---- invalidation ---------------------------------------------------
    @property
    def on_invalidated(self) -> Subscribable[None]:
        return self._invalidated.subscribable

    def is_dirty(self) -> bool:
        return self._invalidated.is_raised()

    def mark_dirty(self, _value: object = None) -> None:
        self._invalidated.raise_()

    # ---- collection scope ---------------------------------------------
    @contextmanager
    def collecting(self) -> Iterator["DependencyContext[T]"]:
        """この文脈を収集スタックへ積み、本体で読まれた依存を記録する。

        再収集のたびに前回の依存購読は解除される。
        """
        if self in DependencyContext._collection_stack:
            raise RuntimeError("A circular dependency occurred between signals.")
        self.clear_dependencies()
        self._invalidated.reset()
        DependencyContext._collection_stack.append(self)
        try:
            yield self
        finally:
            popped = DependencyContext._collection_stack.pop()
            if popped is not self:
                raise RuntimeError("Dependency context was exited out of order.")

    def clear_dependencies(self) -> None:
        for unsubscribe in self._dependencies.values():
            unsubscribe()
        self._dependencies.clear()

    def dispose(self) -> None:
        self.clear_dependencies()
        self._invalidated.clear()

    @property
    def dependency_count(self) -> int:
        return len(self._dependencies)

    def _track(self, subscribable: Subscribable[Any]) -> None:
        if subscribable in self._dependencies:
            return
        if isinstance(subscribable, ValueSubscribable):
            # 現在値の即時再生で自身を dirty にしない
            unsubscribe = subscribable.subscribe(
                self._on_dependency_changed, dispatch_immediately=False
            )
        else:
            unsubscribe = subscribable.subscribe(self._on_dependency_changed)
        self._dependencies[subscribable] = unsubscribe

    def _on_dependency_changed(self, _value: object = None) -> None:
        self.mark_dirty()

    # ---- process-wide API ---------------------------------------------
    @classmethod
    def current(cls) -> "DependencyContext[Any] | None":
        return cls._collection_stack[-1] if cls._collection_stack else None

    @classmethod
    def collect(cls, subscribable: Subscribable[Any]) -> None:
        """最内の収集コンテキストに依存を登録する（収集中でなければ何もしない）。"""
        context = cls.current()
        if context is not None:
            context._track(subscribable)

    @classmethod
    def collect_promise(
        cls, awaitable: Awaitable[Any], initial: Any = None
    ) -> PromiseHandle[Any]:
        """未解決の非同期値を登録してハンドルを返す。

        コルーチンはタスク化し、解決時には所有コンテキストを dirty にする。
        """
        if inspect.iscoroutine(awaitable):
            awaitable = asyncio.ensure_future(awaitable)
        context = cls.current()
        handle: PromiseHandle[Any] = PromiseHandle(
            awaitable=awaitable,
            value=initial,
            stack="".join(traceback.format_stack(limit=16)[:-1]),
            owner=context.owner if context is not None else None,
        )
        if context is not None and isinstance(awaitable, asyncio.Future):
            awaitable.add_done_callback(lambda _f: context.mark_dirty())
        cls._promises.append(handle)
        return handle

    @classmethod
    def has_promises(cls) -> bool:
        return bool(cls._promises)

    @classmethod
    def consume_promises(cls) -> list[PromiseHandle[Any]]:
        """前回の消費以降に集まったハンドルを返してクリアする。"""
        promises = cls._promises[:]
        cls._promises.clear()
        return promises

    @classmethod
    async def wait_for(cls, handles: list[PromiseHandle[Any]]) -> None:
        """ハンドルを全て待機する（空なら即座に戻る）。"""
        if handles:
            await asyncio.gather(*(handle.wait() for handle in handles))


__all__ = ["DependencyContext", "PromiseHandle"]
