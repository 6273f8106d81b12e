"""
どこで: `engine.scenes.generator_scene`
何を: ジェネレータでアニメーションを記述するシーンの既定実装 `GeneratorScene`。
      ルートスレッドの駆動（`next()`）、ライフサイクル状態機械、再計算によるフレーム範囲の
      メモ化（`recalculate()`）、依存が揃うまでの再描画（`render()`）を担う。
なぜ: 任意の入れ子計算を「決定的・シーク可能・再入可能」なタイムラインとして扱うため。

状態遷移（不正な遷移は警告して無視）:
- enter_initial              : AFTER_TRANSITION_IN → INITIAL
- enter_after_transition_in  : INITIAL → AFTER_TRANSITION_IN
- enter_can_transition_out   : AFTER_TRANSITION_IN | INITIAL → CAN_TRANSITION_OUT
- ジェネレータ完了            : 任意 → FINISHED

エラー方針:
- 回復可能な状態はロガーへ報告するだけで、スケジューラループを巻き戻さない。
- ユーザのジェネレータ内で送出された例外は `next()`/`render()` からそのまま伝搬する。
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, Generic, TypeVar

from common import settings
from common.logging import payload_extra
from common.types import Vec2
from engine.events import (
    EventDispatcher,
    Subscribable,
    ValueDispatcher,
    ValueSubscribable,
)
from engine.signals import DependencyContext
from engine.threading import StepResult, Thread, ThreadGenerator, YieldKind, classify, threads

from .random import Random
from .scene import SceneDescription
from .state import TRANSITION_UNKNOWN, CachedSceneData, SceneRenderEvent, SceneState

TView = TypeVar("TView")
T = TypeVar("T")

ThreadGeneratorFactory = Callable[[Any], ThreadGenerator]

logger = logging.getLogger(__name__)

_UNREADY_MESSAGE = (
    "Tried to access an asynchronous property before the node was ready. "
    "Make sure to yield the node before accessing the property."
)


class GeneratorScene(ABC, Generic[TView]):
    """ジェネレータ駆動シーンの抽象基底。

    サブクラスは `get_view()` と `draw(context)` を実装する。`update()` は各再開の直後に
    呼ばれ、レイアウト計算などに使える。
    """

    def __init__(self, description: SceneDescription[ThreadGeneratorFactory]) -> None:
        self.name = description.name
        self.playback = description.playback
        self.logger = description.logger or logger
        self.meta = description.meta
        self.creation_stack = description.stack
        self.context = description.context
        self.max_render_iterations = settings.get().MAX_RENDER_ITERATIONS
        self.random = Random(self.meta.seed)

        self._runner_factory = description.config
        self._size: Vec2 = description.size
        self._previous_scene: Any = None
        self._runner: ThreadGenerator | None = None
        self._state = SceneState.INITIAL
        self._cached = False
        self._counters: dict[str, int] = {}

        self._cache: ValueDispatcher[CachedSceneData] = ValueDispatcher(CachedSceneData())
        self._reloaded: EventDispatcher[None] = EventDispatcher()
        self._recalculated: EventDispatcher[None] = EventDispatcher()
        self._thread: ValueDispatcher[Thread | None] = ValueDispatcher(None)
        self._render_lifecycle: EventDispatcher[tuple[SceneRenderEvent, Any]] = EventDispatcher()
        self._after_reset: EventDispatcher[None] = EventDispatcher()

    # ---- events ---------------------------------------------------------
    @property
    def on_cache_changed(self) -> ValueSubscribable[CachedSceneData]:
        return self._cache.subscribable  # type: ignore[return-value]

    @property
    def on_reloaded(self) -> Subscribable[None]:
        return self._reloaded.subscribable

    @property
    def on_recalculated(self) -> Subscribable[None]:
        return self._recalculated.subscribable

    @property
    def on_thread_changed(self) -> ValueSubscribable[Thread | None]:
        return self._thread.subscribable  # type: ignore[return-value]

    @property
    def on_render_lifecycle(self) -> Subscribable[tuple[SceneRenderEvent, Any]]:
        return self._render_lifecycle.subscribable

    @property
    def on_reset(self) -> Subscribable[None]:
        return self._after_reset.subscribable

    # ---- frames ---------------------------------------------------------
    @property
    def cache(self) -> CachedSceneData:
        return self._cache.current

    @property
    def first_frame(self) -> float:
        return self._cache.current.first_frame

    @property
    def last_frame(self) -> float:
        return self.first_frame + self._cache.current.duration

    @property
    def previous(self) -> Any:
        return self._previous_scene

    @property
    def state(self) -> SceneState:
        return self._state

    def get_size(self) -> Vec2:
        return self._size

    # ---- hooks ----------------------------------------------------------
    @abstractmethod
    def get_view(self) -> TView: ...

    @abstractmethod
    def draw(self, context: Any) -> None: ...

    def update(self) -> None:
        """メインジェネレータの各ステップ後に呼ばれる（既定は何もしない）。"""

    def create_key(self, prefix: str) -> str:
        """リセットごとに 0 から振り直される、シーン内で一意なキーを返す。"""
        count = self._counters.get(prefix, 0)
        self._counters[prefix] = count + 1
        return f"{self.name}/{prefix}-{count}"

    # ---- rendering ------------------------------------------------------
    async def render(self, context: Any) -> None:
        """依存が揃うまで（上限つきで）描画を繰り返す。

        各パスで集まった未解決ハンドルを待機してから描き直す。上限に達した場合は
        その時点の状態で打ち切る（例外にはしない）。
        """
        promises = DependencyContext.consume_promises()
        iterations = 0
        self._render_lifecycle.dispatch((SceneRenderEvent.BEFORE_RENDER, context))
        while True:
            iterations += 1
            await DependencyContext.wait_for(promises)
            context.save()
            context.clear()
            self._render_lifecycle.dispatch((SceneRenderEvent.BEGIN_RENDER, context))
            try:
                self.execute(lambda: self.draw(context))
            finally:
                context.restore()
            self._render_lifecycle.dispatch((SceneRenderEvent.FINISH_RENDER, context))

            promises = DependencyContext.consume_promises()
            if not promises or iterations >= self.max_render_iterations:
                break
        self._render_lifecycle.dispatch((SceneRenderEvent.AFTER_RENDER, context))

        if iterations > 1:
            self.logger.debug("render iterations: %d", iterations)

    # ---- lifecycle ------------------------------------------------------
    def reload(
        self,
        config: ThreadGeneratorFactory | None = None,
        size: Vec2 | None = None,
        stack: str | None = None,
    ) -> None:
        """構成を差し替え、キャッシュを無効化する。"""
        if config is not None:
            self._runner_factory = config
        if size is not None:
            self._size = size
        if stack is not None:
            self.creation_stack = stack
        self._cached = False
        self._reloaded.dispatch()

    async def recalculate(self, set_frame: Callable[[float], None]) -> None:
        """シーンを 1 フレームずつ空走させ、フレーム範囲と遷移長を求めてキャッシュする。

        既にキャッシュ済みなら最終フレームを報告し、キャッシュを再公開するだけで戻る。
        """
        cached = replace(self._cache.current)
        cached.first_frame = self.playback.frame
        cached.last_frame = cached.first_frame + cached.duration

        if self.is_cached():
            set_frame(cached.last_frame)
            self._cache.current = cached
            return

        cached.transition_duration = TRANSITION_UNKNOWN
        await self.reset()
        while not self.can_transition_out():
            if (
                cached.transition_duration == TRANSITION_UNKNOWN
                and self._state is SceneState.AFTER_TRANSITION_IN
            ):
                cached.transition_duration = self.playback.frame - cached.first_frame
            set_frame(self.playback.frame + 1)
            await self.next()

        if cached.transition_duration == TRANSITION_UNKNOWN:
            cached.transition_duration = 0

        cached.last_frame = self.playback.frame
        cached.duration = cached.last_frame - cached.first_frame
        # ホスト側のイベントループを長時間占有しないよう一度だけ譲る
        await asyncio.sleep(0)
        self._cached = True
        self._cache.current = cached
        self._recalculated.dispatch()

    async def next(self) -> None:
        """ルートスケジューラを 1 論理フレームぶん進める。"""
        runner = self._runner
        if runner is None:
            return

        result = self._step(runner, None)
        self.update()
        while result.value is not None:
            value = result.value
            kind = classify(value)
            if kind is YieldKind.PROMISABLE:
                resolved = await value.to_awaitable()
            elif kind is YieldKind.AWAITABLE:
                resolved = await value
            else:
                if settings.get().WARN_INVALID_YIELD:
                    self.logger.warning(
                        "Invalid value yielded by the scene.",
                        extra=payload_extra(object=value),
                    )
                resolved = value
            result = self._step(runner, resolved)
            self.update()

        promises = DependencyContext.consume_promises()
        if promises:
            await DependencyContext.wait_for(promises)
            owner = promises[0].owner
            self.logger.error(
                _UNREADY_MESSAGE,
                extra=payload_extra(
                    stack=promises[0].stack,
                    inspect=getattr(owner, "key", None) if owner is not None else None,
                ),
            )

        if result.done:
            self._state = SceneState.FINISHED

    def _step(self, runner: ThreadGenerator, value: Any) -> StepResult:
        def resume() -> StepResult:
            try:
                return StepResult(done=False, value=runner.send(value))
            except StopIteration as stop:
                return StepResult(done=True, value=stop.value)

        return self.execute(resume)

    async def reset(self, previous_scene: Any = None) -> None:
        """ルートスレッドを作り直して最初の安定点まで進める。

        以前のスレッド木は後始末せずに破棄する。
        """
        if self._cache.current.first_frame != self.playback.frame:
            self._cache.current = replace(self._cache.current, first_frame=self.playback.frame)
        self._counters = {}
        self._previous_scene = previous_scene
        self.random = Random(self.meta.seed)
        self._runner = threads(
            lambda: self._runner_factory(self.get_view()),
            self._set_thread,
            context=self.context,
        )
        self._state = SceneState.AFTER_TRANSITION_IN
        self._after_reset.dispatch()
        await self.next()

    def _set_thread(self, thread: Thread) -> None:
        self._thread.current = thread

    # ---- state queries / transitions ---------------------------------
    def is_after_transition_in(self) -> bool:
        return self._state is SceneState.AFTER_TRANSITION_IN

    def can_transition_out(self) -> bool:
        return self._state in (SceneState.CAN_TRANSITION_OUT, SceneState.FINISHED)

    def is_finished(self) -> bool:
        return self._state is SceneState.FINISHED

    def is_cached(self) -> bool:
        return self._cached

    def enter_initial(self) -> None:
        if self._state is SceneState.AFTER_TRANSITION_IN:
            self._state = SceneState.INITIAL
        else:
            self.logger.warning(
                "Scene %s entered initial in an unexpected state: %s",
                self.name,
                self._state.value,
            )

    def enter_after_transition_in(self) -> None:
        if self._state is SceneState.INITIAL:
            self._state = SceneState.AFTER_TRANSITION_IN
        else:
            self.logger.warning(
                "Scene %s transitioned in an unexpected state: %s",
                self.name,
                self._state.value,
            )

    def enter_can_transition_out(self) -> None:
        # INITIAL からの遷移は再計算中にのみ起こる
        if self._state in (SceneState.AFTER_TRANSITION_IN, SceneState.INITIAL):
            self._state = SceneState.CAN_TRANSITION_OUT
        else:
            self.logger.warning(
                "Scene %s was marked as finished in an unexpected state: %s",
                self.name,
                self._state.value,
            )

    # ---- context --------------------------------------------------------
    def execute(self, callback: Callable[[], T]) -> T:
        """このシーンを実行コンテキストに積んだ状態で `callback` を呼ぶ。"""
        with self.context.scene_scope(self, self.playback):
            return callback()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, state={self._state.value})"


__all__ = ["GeneratorScene", "ThreadGeneratorFactory"]
