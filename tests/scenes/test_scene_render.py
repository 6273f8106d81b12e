from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import pytest

from common import settings
from common.logging import LogCollector
from engine.playback import PlaybackManager
from engine.render import Surface
from engine.scenes import GeneratorScene, Image, Rect, SceneDescription, SceneMetadata, SceneRenderEvent
from engine.signals import DependencyContext
from tests._utils.scenes import make_view_scene, run


class RecordingContext:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.depth = 0

    def save(self) -> None:
        self.calls.append("save")
        self.depth += 1

    def restore(self) -> None:
        self.calls.append("restore")
        self.depth -= 1

    def clear(self) -> None:
        self.calls.append("clear")


class PendingScene(GeneratorScene[None]):
    """最初の `pending` 回の描画で未解決の値を読むシーン。"""

    def __init__(self, description: SceneDescription[Any], pending: int) -> None:
        super().__init__(description)
        self.pending = pending
        self.draws = 0

    def get_view(self) -> None:
        return None

    def draw(self, context: Any) -> None:
        self.draws += 1
        if self.draws <= self.pending:
            DependencyContext.collect_promise(asyncio.sleep(0))


def _pending_scene(playback: PlaybackManager, pending: int) -> PendingScene:
    def body(view):
        yield

    description: SceneDescription[Any] = SceneDescription(
        name="pending", config=body, playback=playback.status, meta=SceneMetadata(0)
    )
    return PendingScene(description, pending)


@pytest.mark.parametrize("passes", [1, 2, 4])
def test_render_repeats_until_dependencies_settle(playback: PlaybackManager, passes: int) -> None:
    scene = _pending_scene(playback, passes - 1)
    ctx = RecordingContext()
    run(scene.render(ctx))
    assert scene.draws == passes
    assert ctx.calls == ["save", "clear", "restore"] * passes
    assert DependencyContext.consume_promises() == []


def test_render_stops_at_iteration_limit(playback: PlaybackManager) -> None:
    scene = _pending_scene(playback, 100)
    run(scene.render(RecordingContext()))
    assert scene.draws == 10


def test_iteration_limit_comes_from_environment(
    playback: PlaybackManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PXS_MAX_RENDER_ITERATIONS", "3")
    settings.reload_from_env()
    scene = _pending_scene(playback, 100)
    run(scene.render(RecordingContext()))
    assert scene.draws == 3


def test_render_lifecycle_events_wrap_each_pass(playback: PlaybackManager) -> None:
    scene = _pending_scene(playback, 1)
    events: list[SceneRenderEvent] = []
    scene.on_render_lifecycle.subscribe(lambda e: events.append(e[0]))
    run(scene.render(RecordingContext()))
    assert events == [
        SceneRenderEvent.BEFORE_RENDER,
        SceneRenderEvent.BEGIN_RENDER,
        SceneRenderEvent.FINISH_RENDER,
        SceneRenderEvent.BEGIN_RENDER,
        SceneRenderEvent.FINISH_RENDER,
        SceneRenderEvent.AFTER_RENDER,
    ]


def test_extra_passes_are_logged_at_debug(
    playback: PlaybackManager, log_collector: LogCollector
) -> None:
    run(_pending_scene(playback, 0).render(RecordingContext()))
    assert not any(m.startswith("render iterations") for m in log_collector.messages())
    run(_pending_scene(playback, 2).render(RecordingContext()))
    assert "render iterations: 3" in log_collector.messages("debug")


def test_context_is_restored_when_draw_raises(playback: PlaybackManager) -> None:
    class Broken(PendingScene):
        def draw(self, context: Any) -> None:
            raise RuntimeError("draw failed")

    def body(view):
        yield

    scene = Broken(
        SceneDescription(name="broken", config=body, playback=playback.status), 0
    )
    ctx = RecordingContext()
    with pytest.raises(RuntimeError):
        run(scene.render(ctx))
    assert ctx.depth == 0


def _red(w: int, h: int) -> np.ndarray:
    pixels = np.zeros((h, w, 4), dtype=np.float32)
    pixels[...] = (1.0, 0.0, 0.0, 1.0)
    return pixels


def test_view_scene_draws_async_image_after_retry(
    playback: PlaybackManager, log_collector: LogCollector
) -> None:
    async def load() -> np.ndarray:
        await asyncio.sleep(0)
        return _red(2, 2)

    def body(view):
        view.add(Rect(x=0, y=0, width=4, height=4, fill=(0.0, 0.0, 1.0, 1.0)))
        view.add(Image(load, x=1, y=1))
        yield

    scene = make_view_scene(body, playback=playback)
    surface = Surface(4, 4)

    async def main() -> None:
        await scene.reset()
        await scene.render(surface)

    run(main())
    assert surface.pixel(1, 1) == (1.0, 0.0, 0.0, 1.0)
    assert surface.pixel(0, 0) == (0.0, 0.0, 1.0, 1.0)
    assert "render iterations: 2" in log_collector.messages("debug")


def test_yielding_a_node_waits_for_its_resources(
    playback: PlaybackManager, log_collector: LogCollector
) -> None:
    ready: list[bool] = []

    async def load() -> np.ndarray:
        await asyncio.sleep(0)
        return _red(1, 1)

    def body(view):
        image = Image(load)
        view.add(image)
        yield image
        ready.append(image.pixels.ready)
        yield

    scene = make_view_scene(body, playback=playback)
    surface = Surface(2, 2)

    async def main() -> None:
        await scene.reset()
        await scene.render(surface)

    run(main())
    assert ready == [True]
    assert not any(m.startswith("render iterations") for m in log_collector.messages())


def test_reading_unready_value_in_generator_is_reported(
    playback: PlaybackManager, log_collector: LogCollector
) -> None:
    async def load() -> np.ndarray:
        await asyncio.sleep(0)
        return _red(1, 1)

    def body(view):
        image = Image(load)
        view.add(image)
        image.pixels()
        yield

    scene = make_view_scene(body, playback=playback)
    run(scene.reset())
    errors = [e for e in log_collector.entries if e.level == "error"]
    assert len(errors) == 1
    assert errors[0].message.startswith(
        "Tried to access an asynchronous property before the node was ready."
    )
    assert errors[0].payload is not None and errors[0].payload.stack
    assert DependencyContext.consume_promises() == []
