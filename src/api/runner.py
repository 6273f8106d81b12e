"""
どこで: `api.runner`（高レベル実行入口）。
何を: シーン生成 `make_scene`、FPS/シード/キャンバスの解決、同期エントリ `render()`。
なぜ: 利用者が非同期 API やプレイバックの配線を意識せず、ジェネレータ関数を並べるだけで
      タイムラインを書き出せるようにするため。

Usage:
    from api import render, wait_for, Rect

    def intro(view):
        box = Rect(width=10, height=10, fill="#ff0000")
        view.add(box)
        yield from wait_for(1)

    frames = render([("intro", intro)], fps=30)
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from typing import Mapping, Sequence

from common import settings
from common.types import Vec2
from engine.playback import PlaybackManager
from engine.render import Surface
from engine.runtime import FrameSink, Player
from engine.scenes import SceneDescription, SceneMetadata, ThreadGeneratorFactory, ViewScene
from util.utils import config_section

logger = logging.getLogger(__name__)

SceneSpec = tuple[str, ThreadGeneratorFactory]


def resolve_fps(requested_fps: float | None) -> float:
    """FPS を解決して正の値を返す。

    - 明示指定があればそれを優先（数値化できない/<=0 は設定値へ）。
    - 次に構成ファイル `playback.fps`、最後に `PXS_DEFAULT_FPS`。
    """
    fallback = settings.get().DEFAULT_FPS
    for candidate in (requested_fps, config_section("playback").get("fps")):
        if candidate is None:
            continue
        try:
            value = float(candidate)
        except (TypeError, ValueError):
            logger.warning("invalid fps %r; falling back to %s", candidate, fallback)
            return fallback
        return value if value > 0 else fallback
    return fallback


def resolve_seed(requested_seed: int | None) -> int:
    """シードを解決する（引数 > `playback.seed` > `PXS_DEFAULT_SEED`）。"""
    for candidate in (requested_seed, config_section("playback").get("seed")):
        if candidate is None:
            continue
        try:
            return int(candidate)
        except (TypeError, ValueError):
            logger.warning("invalid seed %r; using default", candidate)
            break
    return settings.get().DEFAULT_SEED


def resolve_canvas_size(size: Vec2 | None) -> tuple[int, int]:
    """キャンバス [px] を解決する（引数 > `canvas.width/height`）。正でなければ `ValueError`。"""
    if size is None:
        canvas = config_section("canvas")
        size = (canvas.get("width", 320), canvas.get("height", 180))
    try:
        w, h = int(size[0]), int(size[1])
    except (TypeError, ValueError, IndexError) as e:
        raise ValueError(f"invalid canvas size: {size!r}") from e
    if w <= 0 or h <= 0:
        raise ValueError(f"canvas size must be positive, got: {(w, h)}")
    return w, h


def make_scene(
    name: str,
    factory: ThreadGeneratorFactory,
    *,
    playback: PlaybackManager,
    size: Vec2 = (1920.0, 1080.0),
    seed: int | None = None,
    logger: logging.Logger | None = None,
) -> ViewScene:
    """ジェネレータ関数 `factory(view)` から `ViewScene` を生成する。"""
    description: SceneDescription[ThreadGeneratorFactory] = SceneDescription(
        name=name,
        config=factory,
        playback=playback.status,
        size=size,
        logger=logger,
        meta=SceneMetadata(resolve_seed(seed)),
        stack="".join(traceback.format_stack(limit=8)[:-1]),
    )
    return ViewScene(description)


def render(
    scenes: Sequence[SceneSpec] | Mapping[str, ThreadGeneratorFactory],
    *,
    fps: float | None = None,
    size: Vec2 | None = None,
    seed: int | None = None,
    background: object | None = None,
    on_frame: FrameSink | None = None,
    start: float | None = None,
    end: float | None = None,
) -> list[int]:
    """シーン列を再計算して書き出し、描画したフレーム番号を返す（同期）。

    `start`/`end` のいずれかを指定すると、その範囲だけを描画する。
    """
    items = list(scenes.items()) if isinstance(scenes, Mapping) else list(scenes)
    if not items:
        raise ValueError("render() requires at least one scene")

    width, height = resolve_canvas_size(size)
    if background is None:
        background = config_section("canvas").get("background", (0.0, 0.0, 0.0, 0.0))
    playback = PlaybackManager(resolve_fps(fps))
    playback.setup(
        [
            make_scene(name, factory, playback=playback, size=(float(width), float(height)), seed=seed)
            for name, factory in items
        ]
    )
    player = Player(playback, Surface(width, height, background), on_frame)

    async def run() -> list[int]:
        if start is None and end is None:
            return await player.render_all()
        await player.prepare()
        return await player.render_range(start or 0, playback.duration if end is None else end)

    return asyncio.run(run())


__all__ = [
    "SceneSpec",
    "make_scene",
    "render",
    "resolve_canvas_size",
    "resolve_fps",
    "resolve_seed",
]
