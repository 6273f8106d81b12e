"""
どこで: `engine.threading.scheduler`
何を: yield された値の分類（`YieldKind` / `classify`）と、スレッド木を 1 論理フレームずつ
      多重化するルートスケジューラ `threads()`。
なぜ: 同時に進行する 1 ステップは常に 1 つだけ、という協調的マルチタスクを決定的な順序で
      実現するため（プリエンプションなし）。

yield 値の扱い:
- `None`                : そのスレッドの今フレームを終える（時刻を delta だけ進める）。
- ジェネレータ          : 子スレッドとして生成し、親へは `Thread` を送り返す。
                          親は同じフレーム内で続行する。
- Promisable/awaitable  : 上位（シーン）へそのまま yield し、送り返された値で再開する。
- その他                : 同様に上位へ渡す（シーン側で警告のうえ素通しされる）。
"""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generator, Protocol, runtime_checkable

from engine.core.context import ExecutionContext, current_context

from .thread import Thread, ThreadGenerator

logger = logging.getLogger(__name__)


@runtime_checkable
class Promisable(Protocol):
    """待機可能値への明示的な変換を持つ遅延ハンドル。"""

    def to_awaitable(self) -> Awaitable[Any]: ...


class YieldKind(Enum):
    NONE = "none"
    THREAD = "thread"
    PROMISABLE = "promisable"
    AWAITABLE = "awaitable"
    OPAQUE = "opaque"


def classify(value: Any) -> YieldKind:
    """yield 値を 1 度だけ分類する（判定順は固定）。"""
    if value is None:
        return YieldKind.NONE
    if inspect.isgenerator(value):
        return YieldKind.THREAD
    if isinstance(value, Promisable):
        return YieldKind.PROMISABLE
    if inspect.isawaitable(value):
        return YieldKind.AWAITABLE
    return YieldKind.OPAQUE


def threads(
    factory: Callable[[], ThreadGenerator],
    callback: Callable[[Thread], None] | None = None,
    *,
    context: ExecutionContext | None = None,
) -> Generator[Any, Any, None]:
    """ルートスレッドを生成し、生存スレッドが無くなるまでフレームごとに進める。

    各フレームでは全生存スレッドを LIFO キューで 1 回ずつ進める。`None` を yield した
    スレッドは次フレームへ持ち越され、全スレッドが終わると本ジェネレータも終了する。

    Parameters
    ----------
    factory : Callable[[], ThreadGenerator]
        ルートのジェネレータを生成する関数（シーン実行文脈の中で呼ばれる）。
    callback : Callable[[Thread], None] | None
        ルートスレッドの生成通知。
    context : ExecutionContext | None
        スレッドのスコープを積む実行コンテキスト。省略時は最内の活性コンテキスト。
    """
    ctx = context or current_context()
    root = Thread(factory(), context=ctx, name="root")
    if callback is not None:
        callback(root)

    alive: list[Thread] = [root]
    while alive:
        carried: list[Thread] = []
        queue = list(alive)
        playback = ctx.playback
        dt = playback.delta_time if playback is not None else 0.0
        while queue:
            thread = queue.pop()
            if thread.canceled or thread.done:
                continue

            result = thread.next()
            if result.done:
                thread.cancel()
                continue

            kind = classify(result.value)
            if kind is YieldKind.THREAD:
                child = Thread(result.value, context=ctx)
                thread.add(child)
                # 親には子スレッドを送り返す（join 用）。親を先に積み、子を先に進める
                thread.value = child
                queue.append(thread)
                queue.append(child)
            elif kind is YieldKind.NONE:
                thread.update(dt)
                for child in thread.drain():
                    carried.insert(0, child)
                carried.insert(0, thread)
            else:
                thread.value = yield result.value
                queue.append(thread)

        alive = [thread for thread in carried if not thread.canceled]
        if alive:
            yield None


__all__ = ["Promisable", "YieldKind", "classify", "threads"]
