from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import pytest

from engine.core.frame_clock import FrameClock
from engine.playback import PlaybackManager
from engine.render import Surface
from engine.runtime import Player, SceneError
from engine.scenes import Rect
from engine.threading import wait_for
from tests._utils.scenes import make_view_scene


def _moving_box(view):
    box = Rect(width=1, height=1, fill="#ffffff")
    view.add(box)
    for x in range(4):
        box.x(x)
        yield
    yield from wait_for(0)


def _setup(playback: PlaybackManager, *factories: Any) -> None:
    playback.setup(
        [make_view_scene(f, playback=playback, name=f"s{i}") for i, f in enumerate(factories)]
    )


@pytest.mark.integration
def test_render_all_delivers_every_frame(playback: PlaybackManager) -> None:
    _setup(playback, _moving_box)
    seen: list[tuple[int, np.ndarray]] = []
    player = Player(playback, Surface(4, 1), lambda f, s: seen.append((f, s.snapshot())))

    frames = asyncio.run(player.render_all())

    assert frames == [0, 1, 2, 3]
    assert player.finished
    for frame, pixels in seen:
        # 各フレームで箱は x=frame にある
        assert pixels[0, frame, 3] == 1.0
        assert pixels[0].sum() == pytest.approx(4.0)


@pytest.mark.integration
def test_render_range_seeks_first(playback: PlaybackManager) -> None:
    _setup(playback, _moving_box, _moving_box)
    player = Player(playback, Surface(4, 1))

    async def main() -> list[int]:
        await player.prepare()
        return await player.render_range(2, 6)

    assert asyncio.run(main()) == [2, 3, 4, 5]


def test_render_range_rejects_inverted_range(playback: PlaybackManager) -> None:
    _setup(playback, _moving_box)
    player = Player(playback, Surface(1, 1))
    with pytest.raises(ValueError):
        asyncio.run(player.render_range(3, 1))


def test_user_errors_are_wrapped_with_scene_and_frame(playback: PlaybackManager) -> None:
    def broken(view):
        yield
        yield
        raise ValueError("bad scene")

    _setup(playback, broken)
    player = Player(playback, Surface(1, 1))

    with pytest.raises(SceneError) as info:
        asyncio.run(player.render_all())
    err = info.value
    assert err.scene == "s0"
    assert isinstance(err.original, ValueError)
    assert isinstance(err.__cause__, ValueError)


def test_tick_drives_playback_in_real_time(playback: PlaybackManager) -> None:
    _setup(playback, _moving_box)
    delivered: list[int] = []
    player = Player(playback, Surface(4, 1), lambda f, _s: delivered.append(f))
    clock = FrameClock([player])
    try:
        clock.tick(0.0)  # 準備 + 先頭フレーム
        clock.tick(1 / 30)
        clock.tick(2 / 30)  # 2 フレーム進み、最新のみ描画
        while not player.finished:
            clock.tick(1 / 30)
    finally:
        player.close()
    assert delivered[:3] == [0, 1, 3]
    assert player.finished


def test_frame_clock_measures_dt_when_not_given() -> None:
    times = iter([0.0, 0.5, 0.75])
    seen: list[float] = []

    class Recorder:
        def tick(self, dt: float) -> None:
            seen.append(dt)

    clock = FrameClock([Recorder()], clock=lambda: next(times))
    clock.tick()
    clock.tick()
    clock.tick(0.1)
    assert seen == [0.5, 0.25, 0.1]
