from __future__ import annotations

import pytest

from engine.events import EventDispatcher, FlagDispatcher, ValueDispatcher


def test_event_dispatcher_notifies_in_subscription_order() -> None:
    d: EventDispatcher[int] = EventDispatcher()
    seen: list[tuple[str, int]] = []
    d.subscribe(lambda v: seen.append(("a", v)))
    d.subscribe(lambda v: seen.append(("b", v)))
    d.dispatch(1)
    assert seen == [("a", 1), ("b", 1)]


def test_unsubscribe_handle_removes_handler() -> None:
    d: EventDispatcher[int] = EventDispatcher()
    seen: list[int] = []
    off = d.subscribe(seen.append)
    d.dispatch(1)
    off()
    d.dispatch(2)
    assert seen == [1]
    assert d.handler_count == 0
    off()  # 2 回目は no-op


def test_handler_removed_during_dispatch_is_skipped() -> None:
    d: EventDispatcher[None] = EventDispatcher()
    seen: list[str] = []

    def second(_v: object) -> None:
        seen.append("second")

    def first(_v: object) -> None:
        seen.append("first")
        d.unsubscribe(second)

    d.subscribe(first)
    d.subscribe(second)
    d.dispatch()
    assert seen == ["first"]


def test_handler_exception_propagates_to_dispatcher_caller() -> None:
    d: EventDispatcher[None] = EventDispatcher()

    def boom(_v: object) -> None:
        raise ValueError("boom")

    d.subscribe(boom)
    with pytest.raises(ValueError):
        d.dispatch()


def test_value_dispatcher_replays_current_and_skips_equal_values() -> None:
    d: ValueDispatcher[int] = ValueDispatcher(1)
    seen: list[int] = []
    d.subscribable.subscribe(seen.append)
    assert seen == [1]
    d.current = 1
    assert seen == [1]
    d.current = 2
    assert seen == [1, 2]
    assert d.subscribable.current == 2


def test_value_dispatcher_subscribe_without_replay() -> None:
    d: ValueDispatcher[str] = ValueDispatcher("a")
    seen: list[str] = []
    d.subscribe(seen.append, dispatch_immediately=False)
    assert seen == []
    d.current = "b"
    assert seen == ["b"]


def test_flag_dispatcher_fires_once_until_reset() -> None:
    f = FlagDispatcher()
    hits: list[None] = []
    f.subscribe(hits.append)
    f.raise_()
    f.raise_()
    assert len(hits) == 1
    assert f.is_raised()

    late: list[None] = []
    f.subscribe(late.append)
    assert len(late) == 1  # 立っている間の購読は即時通知

    f.reset()
    f.raise_()
    assert len(hits) == 2
