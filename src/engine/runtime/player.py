"""
どこで: `engine.runtime.player`
何を: `PlaybackManager` を 1 フレームずつ進め、各フレームでシーンを `Surface` に描画して
      出力先（`on_frame(frame, surface)`）へ渡す `Player`。ユーザコード由来の例外は
      `SceneError` でシーン名/フレームの文脈付きに伝搬する。
なぜ: 書き出しと実時間再生を同じ駆動経路で行い、失敗時にどのシーンのどのフレームかを
      呼び出し側で判別できるようにするため。

注意:
- `tick(dt)` は同期ループ（`FrameClock`）用。内部で専用のイベントループを持つため、
  実行中のイベントループの中からは呼ばないこと（その場合は `render_*` を await する）。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from engine.core.tickable import Tickable
from engine.playback import PlaybackManager
from engine.render import Surface

logger = logging.getLogger(__name__)

T = TypeVar("T")

FrameSink = Callable[[int, Surface], None]


class SceneError(Exception):
    """シーン実行中の例外をラップしてシーン名とフレームを付与。"""

    def __init__(
        self,
        scene: str | None = None,
        frame: float | None = None,
        original: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"SceneError(scene={scene!r}, frame={frame}): {original!r}"
        super().__init__(message)
        self.scene = scene
        self.frame = frame
        self.original = original


class Player(Tickable):
    """プレイバックを駆動して各フレームを描画する。

    Parameters
    ----------
    playback : PlaybackManager
        `setup()` 済みのプレイバック。
    surface : Surface
        描画先。各フレームの描画後に `on_frame` へ渡される（同一インスタンスを使い回す）。
    on_frame : FrameSink | None
        確定フレームの受け取り先。
    """

    def __init__(
        self,
        playback: PlaybackManager,
        surface: Surface,
        on_frame: FrameSink | None = None,
    ) -> None:
        self.playback = playback
        self.surface = surface
        self.on_frame = on_frame
        self.finished = False
        self._prepared = False
        self._accumulator = 0.0
        self._loop: asyncio.AbstractEventLoop | None = None

    # ---- async API ------------------------------------------------------
    async def prepare(self) -> None:
        """全シーンを再計算し、先頭へ戻す。"""
        await self._guard(self.playback.recalculate())
        await self._guard(self.playback.reset())
        self.finished = False
        self._prepared = True
        logger.debug(
            "prepared %d scene(s), duration=%s frames",
            len(self.playback.scenes),
            self.playback.duration,
        )

    async def render_frame(self) -> int:
        """現在フレームを描画して出力先へ渡し、フレーム番号を返す。"""
        scene = self.playback.current_scene
        if scene is None:
            raise RuntimeError("Player has no scene to render; call PlaybackManager.setup() first")
        frame = int(round(self.playback.frame))
        await self._guard(scene.render(self.surface))
        if self.on_frame is not None:
            self.on_frame(frame, self.surface)
        return frame

    async def render_all(self) -> list[int]:
        """再計算 → 先頭から最後まで描画し、描画したフレーム番号を返す。"""
        await self.prepare()
        return await self._render_until(None)

    async def render_range(self, start: float, end: float) -> list[int]:
        """`start` へシークし、`end` 未満のフレームを描画する。"""
        if end < start:
            raise ValueError(f"invalid frame range: start={start}, end={end}")
        if not self._prepared:
            await self.prepare()
        self.finished = await self._guard(self.playback.seek(start))
        if self.finished:
            return []
        return await self._render_until(end)

    async def _render_until(self, end: float | None) -> list[int]:
        frames: list[int] = []
        while end is None or self.playback.frame < end:
            frames.append(await self.render_frame())
            self.finished = await self._guard(self.playback.advance_time())
            if self.finished:
                break
        return frames

    async def _guard(self, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except SceneError:
            raise
        except Exception as exc:
            scene = self.playback.current_scene
            name = scene.name if scene is not None else None
            logger.exception("scene=%s frame=%s error=%s", name, self.playback.frame, exc)
            raise SceneError(name, self.playback.frame, exc) from exc

    # ---- Tickable -------------------------------------------------------
    def tick(self, dt: float) -> None:
        """実時間 `dt` [sec] ぶん再生する。

        初回は準備と先頭フレームの描画のみを行う。以降は 1/fps ごとに 1 ティック進め、
        進んだ場合だけ最新フレームを描画する（間のフレームは描画を省略）。
        """
        if self.finished:
            return
        loop = self._ensure_loop()
        if not self._prepared:
            loop.run_until_complete(self.prepare())
            loop.run_until_complete(self.render_frame())
            return

        self._accumulator += max(0.0, float(dt))
        interval = 1.0 / self.playback.fps
        advanced = False
        while self._accumulator >= interval and not self.finished:
            self._accumulator -= interval
            self.finished = loop.run_until_complete(self._guard(self.playback.advance_time()))
            advanced = True
        if advanced and not self.finished:
            loop.run_until_complete(self.render_frame())

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def close(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.close()
        self._loop = None


__all__ = ["FrameSink", "Player", "SceneError"]
