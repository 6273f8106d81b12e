"""
どこで: `engine.events.dispatcher`
何を: 値を保持しないイベント (`EventDispatcher`)、最新値を保持する値セル (`ValueDispatcher`)、
      一度だけ立つフラグ (`FlagDispatcher`) と、それらの購読専用ファサード `Subscribable`。
なぜ: シーン/スケジューラの状態変化（キャッシュ更新・リセット・スレッド差し替え等）を
      所有権を渡さずに外部へ公開するため。

設計要点:
- 通知は同期的で、順序は購読順。
- ハンドラで発生した例外は握りつぶさず、変更操作の呼び出し側へそのまま伝搬する。
- 通知中に購読解除されたハンドラは、その通知の残りでは呼ばれない。
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")

Handler = Callable[[T], object]
Unsubscribe = Callable[[], None]


class _DispatcherBase(Generic[T]):
    def __init__(self) -> None:
        self._handlers: list[Handler[T]] = []
        self.subscribable: Subscribable[T] = Subscribable(self)

    def subscribe(self, handler: Handler[T]) -> Unsubscribe:
        """ハンドラを登録し、解除用の関数を返す。"""
        self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: Handler[T]) -> None:
        """ハンドラを解除する（未登録なら何もしない）。"""
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def clear(self) -> None:
        self._handlers.clear()

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def _notify(self, value: T) -> None:
        # 通知中の購読/解除に耐えるよう、スナップショットを走査する
        for handler in list(self._handlers):
            if handler in self._handlers:
                handler(value)


class Subscribable(Generic[T]):
    """ディスパッチャの購読面だけを公開する読み取り専用ビュー。"""

    __slots__ = ("_dispatcher",)

    def __init__(self, dispatcher: _DispatcherBase[T]) -> None:
        self._dispatcher = dispatcher

    def subscribe(self, handler: Handler[T]) -> Unsubscribe:
        return self._dispatcher.subscribe(handler)

    def unsubscribe(self, handler: Handler[T]) -> None:
        self._dispatcher.unsubscribe(handler)


class EventDispatcher(_DispatcherBase[T]):
    """値を保持しないイベントチャネル。"""

    def dispatch(self, value: T = None) -> None:  # type: ignore[assignment]
        self._notify(value)


class ValueDispatcher(_DispatcherBase[T]):
    """最新値を保持し、変更時に購読者へ通知する値セル。

    - `current` の代入は、等価な値であれば通知しない。
    - 新しい購読者には既定で現在値を即座に再生する（初期状態の取りこぼし防止）。
    """

    def __init__(self, initial: T) -> None:
        super().__init__()
        self._value = initial
        self.subscribable = ValueSubscribable(self)

    @property
    def current(self) -> T:
        return self._value

    @current.setter
    def current(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        self._notify(value)

    def subscribe(self, handler: Handler[T], dispatch_immediately: bool = True) -> Unsubscribe:  # type: ignore[override]
        unsubscribe = super().subscribe(handler)
        if dispatch_immediately:
            handler(self._value)
        return unsubscribe


class ValueSubscribable(Subscribable[T]):
    """`ValueDispatcher` 用の購読ビュー（現在値の参照も許可）。"""

    __slots__ = ()

    @property
    def current(self) -> T:
        return self._dispatcher.current  # type: ignore[attr-defined]

    def subscribe(self, handler: Handler[T], dispatch_immediately: bool = True) -> Unsubscribe:  # type: ignore[override]
        return self._dispatcher.subscribe(handler, dispatch_immediately)  # type: ignore[call-arg]


class FlagDispatcher(_DispatcherBase[None]):
    """`raise_()` で一度だけ発火し、`reset()` まで立ったままのフラグ。

    立っている間に購読したハンドラには即座に通知する。
    """

    def __init__(self) -> None:
        super().__init__()
        self._value = False

    def raise_(self) -> None:
        if not self._value:
            self._value = True
            self._notify(None)

    def reset(self) -> None:
        self._value = False

    def is_raised(self) -> bool:
        return self._value

    def subscribe(self, handler: Handler[None]) -> Unsubscribe:
        unsubscribe = super().subscribe(handler)
        if self._value:
            handler(None)
        return unsubscribe


__all__ = [
    "EventDispatcher",
    "ValueDispatcher",
    "FlagDispatcher",
    "Subscribable",
    "ValueSubscribable",
    "Handler",
    "Unsubscribe",
]
