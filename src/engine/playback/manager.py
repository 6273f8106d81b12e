"""
どこで: `engine.playback.manager`
何を: シーン列と論理時間（フレーム/速度）を所有し、1 ティック前進・シーク・再計算・
      シーン間の引き継ぎ（遷移中は前シーンも進める）を行う `PlaybackManager`。
なぜ: 外部プレイヤーが任意フレームへ前後にスクラブできるよう、キャッシュ済みのシーン境界を
      使って「最適なシーンをリセット → 目標フレームまで前進」で再現するため。

設計要点:
- 後退シーク（または別のキャッシュ済みシーンへのシーク）は、そのシーンを先頭フレームから
  リセットして前進し直す。前進シークは現在位置からそのまま進める。
- 再計算中は速度を 1 に固定し、各シーンの `recalculate()` を先頭から順に連結する。
"""

from __future__ import annotations

import logging
from typing import Sequence

from common import settings
from common.logging import payload_extra
from engine.events import EventDispatcher, Subscribable, ValueDispatcher, ValueSubscribable
from engine.scenes.scene import Scene

from .status import PlaybackStatus

logger = logging.getLogger(__name__)


class PlaybackManager:
    """論理時間の所有者。`status` をシーンへ渡して利用する。

    Parameters
    ----------
    fps : float | None
        フレームレート。`None` なら設定（`PXS_DEFAULT_FPS`）から解決する。
    speed : float
        再生速度（1 ティックで進むフレーム数）。小数の速度ではフレームも小数になる。
        `recalculate()` は速度 1 で走査するので、キャッシュされる範囲は整数フレーム。
    """

    def __init__(
        self,
        fps: float | None = None,
        speed: float = 1,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.fps: float = float(fps) if fps else settings.get().DEFAULT_FPS
        self.speed: float = speed
        self.duration: float = 0
        self.finished = False
        self.logger = logger or logging.getLogger(__name__)
        self.status = PlaybackStatus(self)
        self.previous_scene: Scene | None = None

        self._frame: ValueDispatcher[float] = ValueDispatcher(0)
        self._scenes: ValueDispatcher[list[Scene]] = ValueDispatcher([])
        self._current_scene: ValueDispatcher[Scene | None] = ValueDispatcher(None)
        self._recalculated: EventDispatcher[None] = EventDispatcher()
        self._finished: EventDispatcher[float] = EventDispatcher()

    # ---- observable state -----------------------------------------------
    @property
    def frame(self) -> float:
        return self._frame.current

    @frame.setter
    def frame(self, value: float) -> None:
        self._frame.current = value

    @property
    def on_frame_changed(self) -> ValueSubscribable[float]:
        return self._frame.subscribable  # type: ignore[return-value]

    @property
    def scenes(self) -> list[Scene]:
        return self._scenes.current

    @property
    def current_scene(self) -> Scene | None:
        return self._current_scene.current

    @current_scene.setter
    def current_scene(self, scene: Scene | None) -> None:
        self._current_scene.current = scene

    @property
    def on_scene_changed(self) -> ValueSubscribable[Scene | None]:
        return self._current_scene.subscribable  # type: ignore[return-value]

    @property
    def on_recalculated(self) -> Subscribable[None]:
        return self._recalculated.subscribable

    @property
    def on_finished(self) -> Subscribable[float]:
        return self._finished.subscribable

    # ---- setup ----------------------------------------------------------
    def setup(self, scenes: Sequence[Scene]) -> None:
        self._scenes.current = list(scenes)
        self.current_scene = self.scenes[0] if self.scenes else None

    def _require_scene(self) -> Scene:
        scene = self.current_scene
        if scene is None:
            raise RuntimeError("PlaybackManager has no scenes; call setup() first")
        return scene

    async def reset(self) -> None:
        """先頭シーンの先頭フレームへ戻してリセットする。"""
        self.previous_scene = None
        self.current_scene = self.scenes[0] if self.scenes else None
        self.frame = 0
        self.finished = False
        await self._require_scene().reset()

    prepare = reset

    async def recalculate(self) -> None:
        """全シーンのフレーム範囲を決定的に走査してキャッシュする。"""
        self.previous_scene = None
        speed = self.speed
        self.frame = 0
        self.speed = 1
        scenes: list[Scene] = []
        try:
            for scene in self.scenes:
                await scene.recalculate(self._set_frame)
                scenes.append(scene)
        finally:
            self.speed = speed
        self.duration = self.frame
        self.current_scene = scenes[0] if scenes else None
        self._recalculated.dispatch()

    def _set_frame(self, frame: float) -> None:
        self.frame = frame

    # ---- stepping -------------------------------------------------------
    async def advance_time(self) -> bool:
        """現在の速度で 1 ティック進める。終了したら True。"""
        self.finished = await self._next()
        if self.finished:
            self._finished.dispatch(self.frame)
        return self.finished

    next = advance_time

    async def seek(self, frame: float) -> bool:
        """`frame` へ移動する。後退時は最適なシーンをリセットしてから前進する。"""
        scene = self._require_scene()
        if frame <= self.frame or (scene.is_cached() and scene.last_frame < frame):
            best = self._find_best_scene(frame)
            if best is not scene:
                self.previous_scene = None
                self.current_scene = best
                self.frame = best.first_frame
                await best.reset()
            elif self.frame >= frame:
                self.previous_scene = None
                self.frame = scene.first_frame
                await scene.reset()

        self.finished = False
        while self.frame < frame and not self.finished:
            self.finished = await self._next()
        return self.finished

    async def _next(self) -> bool:
        scene = self._require_scene()
        if self.previous_scene is not None:
            await self.previous_scene.next()
            if self.previous_scene.is_finished():
                self.previous_scene = None

        self.frame = self.frame + self.speed

        if scene.is_finished():
            return True

        await scene.next()
        if self.previous_scene is not None and scene.is_after_transition_in():
            self.previous_scene = None

        if scene.can_transition_out():
            following = self._get_next_scene(scene)
            if following is not None:
                self.previous_scene = scene
                self.current_scene = following
                await following.reset(scene)
            if following is None or following.is_after_transition_in():
                self.previous_scene = None

        return self._require_scene().is_finished()

    def _get_next_scene(self, scene: Scene) -> Scene | None:
        scenes = self.scenes
        for index, candidate in enumerate(scenes):
            if candidate is scene:
                return scenes[index + 1] if index + 1 < len(scenes) else None
        return None

    def _find_best_scene(self, frame: float) -> Scene:
        best = self.scenes[0]
        for scene in self.scenes:
            if not scene.is_cached():
                self.logger.warning(
                    "Scene %s is not cached; seeking may be inaccurate.",
                    scene.name,
                    extra=payload_extra(inspect=scene.name),
                )
                return scene
            best = scene
            if scene.last_frame > frame:
                break
        return best


__all__ = ["PlaybackManager"]
