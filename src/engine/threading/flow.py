"""
どこで: `engine.threading.flow`
何を: スレッドジェネレータを組み合わせるフロー制御ヘルパ（待機・並列・直列・結合・遷移）。
なぜ: シーン記述側が `yield from wait_for(1)` のように時間軸を宣言的に書けるようにするため。

使い方:
    def scene(view):
        end = use_transition()
        yield from wait_for(0.5)
        end()
        yield from all_(fade(a), fade(b))
        finish_scene()
        yield from wait_for(1)

注意:
- ジェネレータを `yield` すると子スレッドとして並行に進む（親には `Thread` が返る）。
- `yield from` は同じスレッド内で直列に実行する。
"""

from __future__ import annotations

import inspect
import math
from typing import Any, Callable, Iterable

from engine.core.context import use_playback, use_scene, use_thread

from .thread import Thread, ThreadGenerator

# 浮動小数の累積誤差で 1 フレーム余計に待たないための許容幅
_TIME_EPSILON = 1e-9

Task = ThreadGenerator | Thread


def wait_for(seconds: float = 0.0, after: ThreadGenerator | None = None) -> ThreadGenerator:
    """`seconds` 秒ぶんフレームを進める。終了時にスレッド時刻を目標時刻へ揃える。"""
    thread = use_thread()
    step = use_playback().frames_to_seconds(1)
    target = thread.time + seconds
    # step を引くことで、スレッド時刻がプロジェクト時刻より先行した状態を保つ
    while target - step > thread.fixed + _TIME_EPSILON:
        yield
    thread.time = target
    if after is not None:
        yield from after


def wait_until(predicate: Callable[[], bool]) -> ThreadGenerator:
    while not predicate():
        yield


def _resolve_threads(tasks: Iterable[Task]) -> list[Thread]:
    parent = use_thread()
    resolved: list[Thread] = []
    for task in tasks:
        if isinstance(task, Thread):
            resolved.append(task)
            continue
        for child in parent.children:
            if child.runner is task:
                resolved.append(child)
                break
    return resolved


def join(*tasks: Task, all: bool = True) -> ThreadGenerator:
    """子スレッドの終了を待つ。`all=False` ならどれか 1 つで戻る。"""
    parent = use_thread()
    threads = _resolve_threads(tasks)
    start_time = parent.time
    if not threads:
        return
    if all:
        while any(not t.canceled for t in threads):
            yield
        child_time = max(t.time for t in threads)
    else:
        while not any(t.canceled for t in threads):
            yield
        child_time = min(t.time for t in threads if t.canceled)
    parent.time = max(start_time, child_time)


def all_(*tasks: ThreadGenerator) -> ThreadGenerator:
    """全タスクを並行に起動し、全ての終了を待つ。"""
    spawned = []
    for task in tasks:
        spawned.append((yield task))
    yield from join(*spawned)


def any_(*tasks: ThreadGenerator) -> ThreadGenerator:
    """全タスクを並行に起動し、最初の終了を待つ（残りは走り続ける）。"""
    spawned = []
    for task in tasks:
        spawned.append((yield task))
    yield from join(*spawned, all=False)


def chain(*tasks: ThreadGenerator | Callable[[], Any]) -> ThreadGenerator:
    """タスクを順に実行する。呼び出し可能オブジェクトはその場で呼ぶ。"""
    for task in tasks:
        if inspect.isgenerator(task):
            yield from task
        else:
            task()


def delay(seconds: float, task: ThreadGenerator | Callable[[], Any]) -> ThreadGenerator:
    yield from wait_for(seconds)
    if inspect.isgenerator(task):
        yield from task
    else:
        task()


def sequence(interval: float, *tasks: ThreadGenerator) -> ThreadGenerator:
    """`interval` 秒ずつずらしてタスクを起動し、全ての終了を待つ。"""
    spawned = []
    for task in tasks:
        spawned.append((yield task))
        yield from wait_for(interval)
    yield from join(*spawned)


def loop(count: float, factory: Callable[[int], ThreadGenerator | None]) -> ThreadGenerator:
    """`factory(i)` を `count` 回繰り返す（`math.inf` で無限）。

    ジェネレータを返さない反復は 1 フレームを消費する。
    """
    i = 0
    while i < count or math.isinf(count):
        result = factory(i)
        if inspect.isgenerator(result):
            yield from result
        else:
            yield
        i += 1


def spawn(task: ThreadGenerator | Callable[[], ThreadGenerator]) -> Thread:
    """現在のスレッドに子を登録する（次フレームから進む）。ジェネレータ外から呼べる。"""
    runner = task if inspect.isgenerator(task) else task()  # type: ignore[operator]
    return use_thread().spawn(runner)


def cancel(*tasks: Task) -> None:
    for thread in _resolve_threads(tasks):
        thread.cancel()


def finish_scene() -> None:
    """現在のシーンを「遷移アウト可能」にする。"""
    use_scene().enter_can_transition_out()


def use_transition() -> Callable[[], None]:
    """遷移インを開始し、終了させる関数を返す。

    呼び出し時にシーンは `INITIAL` に入り、返り値を呼ぶと `AFTER_TRANSITION_IN` に戻る。
    """
    scene = use_scene()
    scene.enter_initial()
    return scene.enter_after_transition_in


def transition(seconds: float) -> ThreadGenerator:
    end = use_transition()
    yield from wait_for(seconds)
    end()


__all__ = [
    "wait_for",
    "wait_until",
    "join",
    "all_",
    "any_",
    "chain",
    "delay",
    "sequence",
    "loop",
    "spawn",
    "cancel",
    "finish_scene",
    "use_transition",
    "transition",
]
