"""
どこで: `engine.core.context`
何を: 「現在実行中のシーン/プレイバック/スレッド」をスタックで保持する `ExecutionContext` と、
      深いヘルパ関数から参照するための読み取り専用アクセサ（`use_scene()` など）。
なぜ: 引数で受け渡さなくても、ネストしたリアクティブ読み出しが正しい所有シーンを解決できるように
      するため。push/pop は必ず対称（例外経路を含む）に行い、単一所有の不変条件を守る。

設計要点:
- `scene_scope(scene, playback)` / `thread_scope(thread)` はコンテキストマネージャ。
  入場で push、退出で pop（`finally`）。
- pop 時にスタック先頭が自身でなければ `ContextError`（非対称な利用の検出）。
- 既定インスタンス `default_context` はプロセス全体で 1 つ。シーンは別インスタンスを
  参照渡しで受け取ることもできる。
- スコープに入ったインスタンスはモジュールの活性スタックにも積まれ、引数なしの
  `use_*()` は最内の活性コンテキスト（無ければ `default_context`）を参照する。
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:  # pragma: no cover - 型のみ
    from engine.playback.status import PlaybackStatus
    from engine.scenes.random import Random
    from engine.threading.thread import Thread

logger = logging.getLogger(__name__)


class ContextError(RuntimeError):
    """実行コンテキストの誤用（未設定での参照、非対称な pop）。"""


class ExecutionContext:
    """シーン/プレイバック/スレッドのスタック。"""

    def __init__(self) -> None:
        self._scenes: list[Any] = []
        self._playbacks: list[PlaybackStatus] = []
        self._threads: list[Thread] = []

    # ---- scopes ---------------------------------------------------------
    @contextmanager
    def scene_scope(self, scene: Any, playback: PlaybackStatus) -> Iterator[None]:
        self._scenes.append(scene)
        self._playbacks.append(playback)
        _active.append(self)
        try:
            yield
        finally:
            self._pop(_active, self, "execution")
            self._pop(self._playbacks, playback, "playback")
            self._pop(self._scenes, scene, "scene")

    @contextmanager
    def thread_scope(self, thread: Thread) -> Iterator[None]:
        self._threads.append(thread)
        _active.append(self)
        try:
            yield
        finally:
            self._pop(_active, self, "execution")
            self._pop(self._threads, thread, "thread")

    @staticmethod
    def _pop(stack: list[Any], expected: Any, kind: str) -> None:
        if not stack or stack[-1] is not expected:
            raise ContextError(f"{kind} context was exited out of order")
        stack.pop()

    # ---- lookups --------------------------------------------------------
    @property
    def scene(self) -> Any | None:
        return self._scenes[-1] if self._scenes else None

    @property
    def playback(self) -> PlaybackStatus | None:
        return self._playbacks[-1] if self._playbacks else None

    @property
    def thread(self) -> Thread | None:
        return self._threads[-1] if self._threads else None

    @property
    def depth(self) -> int:
        return len(self._scenes)


default_context = ExecutionContext()

# scene_scope/thread_scope に入っているインスタンス（内側が末尾）
_active: list[ExecutionContext] = []


def current_context() -> ExecutionContext:
    """最内の活性コンテキストを返す。どのスコープにも入っていなければ `default_context`。"""
    return _active[-1] if _active else default_context


def use_scene(context: ExecutionContext | None = None) -> Any:
    """現在のシーンを返す。実行中のシーンが無ければ `ContextError`。"""
    scene = (context or current_context()).scene
    if scene is None:
        raise ContextError("The scene is not available in the current context.")
    return scene


def use_playback(context: ExecutionContext | None = None) -> PlaybackStatus:
    playback = (context or current_context()).playback
    if playback is None:
        raise ContextError("The playback is not available in the current context.")
    return playback


def use_thread(context: ExecutionContext | None = None) -> Thread:
    thread = (context or current_context()).thread
    if thread is None:
        raise ContextError("The thread is not available in the current context.")
    return thread


def use_time(context: ExecutionContext | None = None) -> float:
    """現在スレッドの論理時刻。スレッド外ではプレイバック時刻（それも無ければ 0）。"""
    ctx = context or current_context()
    if ctx.thread is not None:
        return ctx.thread.time
    if ctx.playback is not None:
        return ctx.playback.time
    return 0.0


def use_logger(context: ExecutionContext | None = None) -> logging.Logger:
    scene = (context or current_context()).scene
    return getattr(scene, "logger", None) or logger


def use_random(context: ExecutionContext | None = None) -> Random:
    return use_scene(context).random


__all__ = [
    "ContextError",
    "ExecutionContext",
    "default_context",
    "current_context",
    "use_scene",
    "use_playback",
    "use_thread",
    "use_time",
    "use_logger",
    "use_random",
]
