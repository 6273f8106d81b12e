from __future__ import annotations

import logging

import pytest

from engine.core.context import (
    ContextError,
    ExecutionContext,
    current_context,
    default_context,
    use_logger,
    use_playback,
    use_scene,
    use_thread,
    use_time,
)
from engine.playback import PlaybackManager


class _Scene:
    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"test.{name}")


def test_scopes_push_and_pop_symmetrically(playback: PlaybackManager) -> None:
    ctx = ExecutionContext()
    outer, inner = _Scene("outer"), _Scene("inner")
    with ctx.scene_scope(outer, playback.status):
        assert use_scene(ctx) is outer
        with ctx.scene_scope(inner, playback.status):
            assert use_scene(ctx) is inner
            assert ctx.depth == 2
        assert use_scene(ctx) is outer
    assert ctx.scene is None
    assert ctx.depth == 0


def test_scope_is_popped_when_body_raises(playback: PlaybackManager) -> None:
    ctx = ExecutionContext()
    with pytest.raises(KeyError):
        with ctx.scene_scope(_Scene("s"), playback.status):
            raise KeyError("x")
    assert ctx.scene is None
    assert ctx.playback is None


def test_accessors_raise_without_current_values() -> None:
    ctx = ExecutionContext()
    with pytest.raises(ContextError):
        use_scene(ctx)
    with pytest.raises(ContextError):
        use_playback(ctx)
    with pytest.raises(ContextError):
        use_thread(ctx)
    assert use_time(ctx) == 0.0


def test_out_of_order_exit_is_detected(playback: PlaybackManager) -> None:
    ctx = ExecutionContext()
    a = ctx.scene_scope(_Scene("a"), playback.status)
    b = ctx.scene_scope(_Scene("b"), playback.status)
    a.__enter__()
    b.__enter__()
    with pytest.raises(ContextError):
        a.__exit__(None, None, None)


def test_use_time_falls_back_to_playback_time(playback: PlaybackManager) -> None:
    ctx = ExecutionContext()
    playback.frame = 15
    with ctx.scene_scope(_Scene("s"), playback.status):
        assert use_time(ctx) == pytest.approx(0.5)


def test_use_logger_prefers_scene_logger(playback: PlaybackManager) -> None:
    ctx = ExecutionContext()
    scene = _Scene("named")
    with ctx.scene_scope(scene, playback.status):
        assert use_logger(ctx) is scene.logger
    assert use_logger(ctx).name == "engine.core.context"


def test_accessors_without_argument_use_innermost_active_context(
    playback: PlaybackManager,
) -> None:
    own = ExecutionContext()
    scene = _Scene("own")
    assert current_context() is default_context
    with own.scene_scope(scene, playback.status):
        assert current_context() is own
        assert use_scene() is scene
        assert use_logger() is scene.logger
    assert current_context() is default_context
    with pytest.raises(ContextError):
        use_scene()
